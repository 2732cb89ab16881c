"""API routes: timer commands, settings, and the state stream."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from pomotune.core.errors import ConfigInvalid, PersistenceError
from pomotune.focus.clock import ClockState
from pomotune.focus.intents import Command
from pomotune.focus.scheduler import SessionScheduler

logger = logging.getLogger(__name__)

router = APIRouter(tags=["api"])


class StateResponse(BaseModel):
    """Clock state as seen by UI collaborators."""
    remaining_seconds: int
    session_type: str
    running: bool
    paused: bool
    completed_work_sessions: int
    label: str
    remaining_display: str

    @classmethod
    def from_state(cls, state: ClockState) -> StateResponse:
        return cls(
            **state.to_dict(),
            label=state.session_type.label,
            remaining_display=state.remaining_display,
        )


class CommandResponse(BaseModel):
    """Result of a timer command."""
    success: bool
    state: StateResponse | None = None
    error: str | None = None


class DayStartRequest(BaseModel):
    enabled: bool
    time_of_day: str = Field(default="05:00", description="Local time as HH:MM")


class DayStartResponse(BaseModel):
    success: bool
    next_fire_at: str | None = None
    errors: list[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database_connected: bool
    database_size_mb: float
    ticking: bool
    listeners: int


def get_scheduler(request: Request) -> SessionScheduler:
    return request.app.state.scheduler


def _failure(status_code: int, model: BaseModel) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=model.model_dump())


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """API health check."""
    db = request.app.state.db
    return HealthResponse(
        status="healthy" if db.is_connected else "unhealthy",
        database_connected=db.is_connected,
        database_size_mb=await db.get_size_mb(),
        ticking=get_scheduler(request).is_ticking,
        listeners=request.app.state.broadcaster.listener_count,
    )


@router.get("/state", response_model=StateResponse)
async def get_state(request: Request) -> Any:
    try:
        state = await get_scheduler(request).current_state()
    except PersistenceError as e:
        return _failure(503, CommandResponse(success=False, error=str(e)))
    return StateResponse.from_state(state)


async def _run_command(request: Request, command: Command) -> Any:
    try:
        state = await get_scheduler(request).handle_command(command)
    except PersistenceError as e:
        logger.error(f"Command {command.value} failed: {e}")
        return _failure(503, CommandResponse(success=False, error=str(e)))
    return CommandResponse(success=True, state=StateResponse.from_state(state))


@router.post("/start", response_model=CommandResponse)
async def start(request: Request) -> Any:
    return await _run_command(request, Command.START)


@router.post("/pause", response_model=CommandResponse)
async def pause(request: Request) -> Any:
    return await _run_command(request, Command.PAUSE)


@router.post("/resume", response_model=CommandResponse)
async def resume(request: Request) -> Any:
    return await _run_command(request, Command.RESUME)


@router.post("/reset", response_model=CommandResponse)
async def reset(request: Request) -> Any:
    return await _run_command(request, Command.RESET)


@router.post("/day-start", response_model=DayStartResponse)
async def set_day_start(request: Request, body: DayStartRequest) -> Any:
    scheduler = get_scheduler(request)
    try:
        await scheduler.set_day_start(body.enabled, body.time_of_day)
    except ConfigInvalid as e:
        return _failure(422, DayStartResponse(success=False, errors=e.errors))
    except PersistenceError as e:
        return _failure(503, DayStartResponse(success=False, errors=[str(e)]))

    fire_at = scheduler.day_start_alarm.next_fire_at
    return DayStartResponse(
        success=True,
        next_fire_at=fire_at.isoformat(timespec="minutes") if fire_at else None,
    )


@router.get("/settings")
async def get_settings(request: Request) -> Any:
    try:
        settings = await get_scheduler(request).store.load_settings()
    except PersistenceError as e:
        return _failure(503, CommandResponse(success=False, error=str(e)))
    return settings.model_dump()


@router.put("/settings")
async def update_settings(request: Request, changes: dict[str, Any]) -> Any:
    try:
        settings = await get_scheduler(request).update_settings(changes)
    except ConfigInvalid as e:
        return JSONResponse(status_code=422, content={"success": False, "errors": e.errors})
    except PersistenceError as e:
        return JSONResponse(status_code=503, content={"success": False, "errors": [str(e)]})
    return settings.model_dump()


@router.websocket("/ws")
async def state_stream(websocket: WebSocket) -> None:
    """Push every persisted state change to the client."""
    broadcaster = websocket.app.state.broadcaster
    await websocket.accept()
    queue = broadcaster.subscribe()

    async def pump() -> None:
        while True:
            snapshot = await queue.get()
            await websocket.send_json(snapshot)

    sender = asyncio.create_task(pump())
    try:
        # Incoming messages are ignored; receiving is how a disconnect is noticed
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug(f"State stream sender stopped: {e}")
        broadcaster.unsubscribe(queue)
