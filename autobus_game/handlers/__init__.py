"""HTTP handlers for the Autobus game."""

from .api import router

__all__ = ["router"]
