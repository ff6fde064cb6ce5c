"""State primitives for Kafanski Duel."""

from .models import DuelLogEntry, DuelPlayerState, KafanskiDuel

__all__ = ["DuelLogEntry", "DuelPlayerState", "KafanskiDuel"]
