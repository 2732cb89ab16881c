"""Configuration management with Pydantic and YAML support."""

from __future__ import annotations

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from pomotune.core.errors import ConfigInvalid
from pomotune.focus.clock import Durations

TIME_OF_DAY_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class MediaConfig(BaseModel):
    """Media references played during each kind of session."""

    focus_url: str | None = Field(default=None, description="Played during work sessions")
    break_url: str | None = Field(default=None, description="Played during breaks")
    day_start_url: str | None = Field(default=None, description="Played by the day start session")

    @field_validator("focus_url", "break_url", "day_start_url", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value


class DayStartConfig(BaseModel):
    """Daily "good morning" session settings."""

    enabled: bool = False
    time_of_day: str = Field(default="05:00", description="Local time as HH:MM")
    duration_minutes: int = Field(default=30, gt=0)

    @field_validator("time_of_day")
    @classmethod
    def _check_time_of_day(cls, value: str) -> str:
        if not TIME_OF_DAY_PATTERN.match(value):
            raise ValueError(f"time_of_day must be HH:MM, got {value!r}")
        return value


class TimerSettings(BaseModel):
    """User-editable timer settings, persisted alongside the clock state."""

    work_minutes: int = Field(default=25, gt=0)
    break_minutes: int = Field(default=5, gt=0)
    long_break_minutes: int = Field(default=15, gt=0)
    media: MediaConfig = Field(default_factory=MediaConfig)
    day_start: DayStartConfig = Field(default_factory=DayStartConfig)

    @model_validator(mode="after")
    def _day_start_needs_media(self) -> TimerSettings:
        if self.day_start.enabled and not self.media.day_start_url:
            raise ValueError("day start is enabled but no day_start_url is configured")
        return self

    @property
    def durations(self) -> Durations:
        """Session lengths in the form the clock consumes."""
        return Durations(
            work_minutes=self.work_minutes,
            break_minutes=self.break_minutes,
            long_break_minutes=self.long_break_minutes,
        )

    @classmethod
    def validated(cls, data: dict[str, Any]) -> TimerSettings:
        """Build settings from raw data, raising ConfigInvalid on any problem."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}"
                for err in e.errors()
            ]
            raise ConfigInvalid("Invalid timer settings", errors) from e

    def updated(self, changes: dict[str, Any]) -> TimerSettings:
        """Return a validated copy with nested changes merged in."""
        data = self.model_dump()
        for key, value in changes.items():
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value
        return TimerSettings.validated(data)


class WebConfig(BaseModel):
    """Command API configuration."""

    host: str = Field(default="127.0.0.1", description="Bind to localhost only")
    port: int = Field(default=8765, ge=1024, le=65535)


class SchedulerConfig(BaseModel):
    """Scheduler timing and collaborator selection."""

    tick_seconds: float = Field(default=1.0, gt=0)
    handoff_delay_seconds: float = Field(default=0.5, ge=0, description="Pause-to-play hand-off bound")
    headless: bool = Field(default=False, description="Log intents instead of notifying/playing")


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="POMOTUNE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # The YAML file arrives as init kwargs; environment variables outrank it
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    # Paths
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/pomotune")
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".local/state/pomotune")
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".config/pomotune")

    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    # Sub-configurations
    web: WebConfig = Field(default_factory=WebConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    timer: TimerSettings = Field(default_factory=TimerSettings)

    @property
    def db_path(self) -> Path:
        """Path to SQLite database."""
        return self.data_dir / "pomotune.db"

    @property
    def config_file(self) -> Path:
        """Path to YAML config file."""
        return self.config_dir / "config.yaml"

    @property
    def api_url(self) -> str:
        """Base URL of the running daemon's API."""
        return f"http://{self.web.host}:{self.web.port}/api"

    def ensure_directories(self) -> None:
        """Create all required directories."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        os.chmod(self.data_dir, 0o700)

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """Load configuration from YAML file, environment variables, and defaults.

        Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values
        """
        config_path = config_path or Path.home() / ".config/pomotune/config.yaml"

        yaml_config: dict[str, Any] = {}
        if config_path.exists():
            with open(config_path) as f:
                yaml_config = yaml.safe_load(f) or {}

        try:
            return cls(**yaml_config)
        except ValidationError as e:
            raise ConfigInvalid(
                f"Invalid configuration in {config_path}",
                [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
            ) from e

    def save(self, config_path: Path | None = None) -> None:
        """Save current configuration to YAML file."""
        config_path = config_path or self.config_file
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(exclude_none=True)

        for key in ["data_dir", "log_dir", "config_dir"]:
            if key in data:
                data[key] = str(data[key])

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        os.chmod(config_path, 0o600)


@lru_cache
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config.load()
