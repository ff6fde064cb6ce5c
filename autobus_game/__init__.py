"""Autobus: the pyramid drinking game and its bus finale."""

from .handlers import router
from .state import AutobusGame, AutobusLogEntry, AutobusPlayer
from .state.manager import STATE_MANAGER

__all__ = [
    "AutobusGame",
    "AutobusLogEntry",
    "AutobusPlayer",
    "STATE_MANAGER",
    "router",
]
