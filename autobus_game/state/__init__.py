"""State primitives for the Autobus game."""

from .models import AutobusGame, AutobusLogEntry, AutobusPlayer

__all__ = ["AutobusGame", "AutobusLogEntry", "AutobusPlayer"]
