"""HTTP handlers for Kafanski Duel."""

from .api import router

__all__ = ["router"]
