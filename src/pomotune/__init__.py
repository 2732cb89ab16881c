"""Pomotune: a Pomodoro timer daemon with notifications and session music."""

__version__ = "0.1.0"
