"""FastAPI application exposing the timer's command surface and state stream."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pomotune import __version__
from pomotune.adapters.notifier import DesktopNotifier, LoggingNotifier
from pomotune.adapters.player import BrowserPlayer, LoggingPlayer
from pomotune.core.config import Config, get_config
from pomotune.focus.dispatcher import IntentDispatcher
from pomotune.focus.scheduler import SessionScheduler
from pomotune.storage.database import Database
from pomotune.storage.state_store import StateStore
from pomotune.web.broadcast import StateBroadcaster

logger = logging.getLogger(__name__)


def build_dispatcher(config: Config) -> IntentDispatcher:
    """Pick collaborators for the configured mode."""
    if config.scheduler.headless:
        return IntentDispatcher(LoggingNotifier(), LoggingPlayer())
    return IntentDispatcher(DesktopNotifier(), BrowserPlayer())


def create_app(config: Config | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Starting Pomotune daemon...")

        db = Database(config.db_path)
        await db.connect()

        broadcaster = StateBroadcaster()
        scheduler = SessionScheduler(
            StateStore(db, default_settings=config.timer),
            sink=build_dispatcher(config),
            on_state=broadcaster.publish,
            tick_seconds=config.scheduler.tick_seconds,
            handoff_delay=config.scheduler.handoff_delay_seconds,
        )

        app.state.db = db
        app.state.broadcaster = broadcaster
        app.state.scheduler = scheduler

        try:
            await scheduler.restore()
            yield
        finally:
            await scheduler.close()
            await db.close()
            logger.info("Daemon shutdown complete")

    app = FastAPI(
        title="Pomotune",
        description="Pomodoro timer with notifications and session music",
        version=__version__,
        lifespan=lifespan,
    )

    # UI collaborators run on localhost
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from pomotune.web.routes import api

    app.include_router(api.router, prefix="/api")

    return app


def run_server(config: Config | None = None) -> None:
    """Run the daemon's web server in the foreground."""
    import uvicorn

    config = config or get_config()
    host = config.web.host
    port = config.web.port

    logger.info(f"Serving Pomotune API at http://{host}:{port}/api")

    uvicorn.run(
        create_app(config),
        host=host,
        port=port,
        log_level=config.log_level.lower(),
    )
