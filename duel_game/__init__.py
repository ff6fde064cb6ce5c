"""Kafanski Duel: a ten-round tavern stat battle for two."""

from .handlers import router
from .state import DuelLogEntry, DuelPlayerState, KafanskiDuel
from .state.manager import STATE_MANAGER

__all__ = [
    "DuelLogEntry",
    "DuelPlayerState",
    "KafanskiDuel",
    "STATE_MANAGER",
    "router",
]
