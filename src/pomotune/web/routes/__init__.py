"""Web routes for the Pomotune daemon."""

from pomotune.web.routes import api

__all__ = ["api"]
