"""Storage layer for clock state and settings."""

from pomotune.storage.database import Database
from pomotune.storage.state_store import StateStore

__all__ = ["Database", "StateStore"]
