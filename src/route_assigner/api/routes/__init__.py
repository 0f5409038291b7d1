"""Route group exports."""

from . import health, routes, sessions

__all__ = ["health", "routes", "sessions"]
