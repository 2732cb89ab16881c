"""CLI commands for Pomotune using Typer."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pomotune import __version__
from pomotune.cli.client import DaemonClient, DaemonUnavailable
from pomotune.core.config import Config, TimerSettings, get_config
from pomotune.core.errors import ConfigInvalid, PersistenceError

app = typer.Typer(
    name="pomotune",
    help="Pomodoro timer daemon with notifications and session music.",
    add_completion=False,
)

console = Console()


def setup_logging(log_level: str, log_file: Path | None = None) -> None:
    """Configure logging for the application."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )

    # Reduce noise from external libraries
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def _client(config: Config) -> DaemonClient:
    return DaemonClient(config.api_url)


def _print_state(state: dict[str, Any], title: str = "Pomotune") -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    if not state["running"]:
        status = "[red bold]STOPPED[/red bold]"
    elif state["paused"]:
        status = "[yellow bold]PAUSED[/yellow bold]"
    else:
        status = "[green bold]RUNNING[/green bold]"

    table.add_row("Status", status)
    table.add_row("Session", state["label"])
    table.add_row("Remaining", state["remaining_display"])
    table.add_row("Completed", f"🍅 {state['completed_work_sessions']}")

    border = "green" if state["running"] and not state["paused"] else "yellow"
    console.print(Panel(table, title=title, border_style=border))


@app.command()
def run(
    log_level: str = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    ),
    headless: bool = typer.Option(
        False,
        "--headless",
        help="Log notifications and playback instead of performing them",
    ),
) -> None:
    """Run the timer daemon in the foreground."""
    config = get_config()
    if headless:
        config = config.model_copy(
            update={"scheduler": config.scheduler.model_copy(update={"headless": True})}
        )

    config.ensure_directories()
    setup_logging(log_level or config.log_level, config.log_dir / "daemon.log")

    console.print("[green]Starting Pomotune daemon...[/green]")
    console.print(f"API at [blue]{config.api_url}[/blue]")
    console.print("Press Ctrl+C to stop\n")

    from pomotune.web.app import run_server

    try:
        run_server(config)
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/yellow]")


def _send(name: str) -> None:
    config = get_config()

    try:
        status, body = asyncio.run(_client(config).command(name))
    except DaemonUnavailable as e:
        console.print(f"[red]{e}[/red]")
        console.print("Use 'pomotune run' to start the daemon.")
        raise typer.Exit(1)

    if status != 200 or not body.get("success"):
        console.print(f"[red]{name.capitalize()} failed: {body.get('error', status)}[/red]")
        raise typer.Exit(1)

    _print_state(body["state"])


@app.command()
def start() -> None:
    """Start the timer (a fresh work session if the clock is exhausted)."""
    _send("start")


@app.command()
def pause() -> None:
    """Pause the running session."""
    _send("pause")


@app.command()
def resume() -> None:
    """Resume a paused session."""
    _send("resume")


@app.command()
def reset() -> None:
    """Stop the timer and clear completed sessions."""
    _send("reset")


@app.command(name="day-start")
def day_start(
    enable: bool = typer.Option(
        True,
        "--enable/--disable",
        help="Enable or disable the daily day start session",
    ),
    at: str = typer.Option(None, "--time", "-t", help="Time of day as HH:MM"),
) -> None:
    """Enable, disable or reschedule the day start session."""
    config = get_config()

    async def _apply() -> tuple[int, dict[str, Any]]:
        time_of_day = at
        if time_of_day is None:
            time_of_day = (await _load_settings(config)).day_start.time_of_day
        return await _client(config).set_day_start(enable, time_of_day)

    try:
        status, body = asyncio.run(_apply())
    except DaemonUnavailable as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if status != 200:
        for error in body.get("errors", [str(status)]):
            console.print(f"[red]{error}[/red]")
        raise typer.Exit(1)

    if body.get("next_fire_at"):
        console.print(f"[green]Day start scheduled for {body['next_fire_at']}[/green]")
    else:
        console.print("[yellow]Day start disabled[/yellow]")


async def _with_store(config: Config, action):
    from pomotune.storage.database import Database
    from pomotune.storage.state_store import StateStore

    db = Database(config.db_path)
    await db.connect()
    try:
        return await action(StateStore(db, default_settings=config.timer))
    finally:
        await db.close()


async def _load_settings(config: Config) -> TimerSettings:
    async def action(store):
        return await store.load_settings()

    return await _with_store(config, action)


@app.command()
def status() -> None:
    """Show the timer state stored on disk."""
    config = get_config()

    async def action(store):
        return await store.load()

    try:
        state = asyncio.run(_with_store(config, action))
    except PersistenceError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    _print_state(
        {
            **state.to_dict(),
            "label": state.session_type.label,
            "remaining_display": state.remaining_display,
        },
        title="Pomotune Status",
    )


def _settings_table(settings: TimerSettings) -> Table:
    table = Table(title="Timer Settings", show_header=True, header_style="bold cyan")
    table.add_column("Setting")
    table.add_column("Value")

    table.add_row("[bold]Durations[/bold]", "")
    table.add_row("  Work", f"{settings.work_minutes} min")
    table.add_row("  Break", f"{settings.break_minutes} min")
    table.add_row("  Long Break", f"{settings.long_break_minutes} min")

    table.add_row("[bold]Media[/bold]", "")
    not_set = "[yellow]Not Set[/yellow]"
    table.add_row("  Focus", settings.media.focus_url or not_set)
    table.add_row("  Break", settings.media.break_url or not_set)
    table.add_row("  Day Start", settings.media.day_start_url or not_set)

    table.add_row("[bold]Day Start[/bold]", "")
    table.add_row("  Enabled", str(settings.day_start.enabled))
    table.add_row("  Time", settings.day_start.time_of_day)
    table.add_row("  Duration", f"{settings.day_start.duration_minutes} min")
    return table


@app.command()
def settings(
    work: int = typer.Option(None, "--work", "-w", help="Work session length in minutes"),
    short_break: int = typer.Option(None, "--break", "-b", help="Break length in minutes"),
    long_break: int = typer.Option(None, "--long-break", "-L", help="Long break length in minutes"),
    focus_url: str = typer.Option(None, "--focus-url", help="Media played during work sessions"),
    break_url: str = typer.Option(None, "--break-url", help="Media played during breaks"),
    day_start_url: str = typer.Option(None, "--day-start-url", help="Media played by the day start session"),
    day_start_duration: int = typer.Option(None, "--day-start-duration", help="Day start length in minutes"),
) -> None:
    """Show or update timer settings."""
    config = get_config()

    changes: dict[str, Any] = {}
    if work is not None:
        changes["work_minutes"] = work
    if short_break is not None:
        changes["break_minutes"] = short_break
    if long_break is not None:
        changes["long_break_minutes"] = long_break

    media = {
        key: value
        for key, value in (
            ("focus_url", focus_url),
            ("break_url", break_url),
            ("day_start_url", day_start_url),
        )
        if value is not None
    }
    if media:
        changes["media"] = media
    if day_start_duration is not None:
        changes["day_start"] = {"duration_minutes": day_start_duration}

    async def apply() -> TimerSettings:
        if changes:
            # A running daemon must see the change so it can re-arm its alarm
            client = _client(config)
            if await client.is_alive():
                status_code, body = await client.update_settings(changes)
                if status_code == 422:
                    raise ConfigInvalid("Invalid timer settings", body.get("errors"))
                if status_code != 200:
                    raise PersistenceError("; ".join(body.get("errors", [str(status_code)])))
                return TimerSettings.model_validate(body)

        async def action(store):
            current = await store.load_settings()
            if not changes:
                return current
            updated = current.updated(changes)
            await store.save_settings(updated)
            return updated

        return await _with_store(config, action)

    try:
        current = asyncio.run(apply())
    except ConfigInvalid as e:
        for error in e.errors:
            console.print(f"[red]{error}[/red]")
        raise typer.Exit(1)
    except PersistenceError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if changes:
        console.print("[green]Settings updated[/green]")
    console.print(_settings_table(current))


@app.command()
def config_show() -> None:
    """Show current configuration."""
    config = get_config()

    table = Table(title="Pomotune Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting")
    table.add_column("Value")

    # Paths
    table.add_row("[bold]Paths[/bold]", "")
    table.add_row("  Data Directory", str(config.data_dir))
    table.add_row("  Log Directory", str(config.log_dir))
    table.add_row("  Config File", str(config.config_file))
    table.add_row("  Database", str(config.db_path))

    # Scheduler
    table.add_row("[bold]Scheduler[/bold]", "")
    table.add_row("  Tick", f"{config.scheduler.tick_seconds}s")
    table.add_row("  Hand-off Delay", f"{config.scheduler.handoff_delay_seconds}s")
    table.add_row("  Headless", str(config.scheduler.headless))

    # Web
    table.add_row("[bold]API[/bold]", "")
    table.add_row("  URL", config.api_url)

    table.add_row("[bold]Logging[/bold]", "")
    table.add_row("  Level", config.log_level)

    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"Pomotune v{__version__}")


@app.callback()
def main_callback() -> None:
    """Pomotune - Pomodoro timer with notifications and session music."""
    pass


if __name__ == "__main__":
    app()
