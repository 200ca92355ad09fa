"""Route group exports."""

from . import dispatch, health, travel

__all__ = ["dispatch", "health", "travel"]
