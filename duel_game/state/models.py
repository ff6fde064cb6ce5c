"""Dataclasses describing a persisted Kafanski Duel."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

STATUS_WAITING = "waiting"
STATUS_ACTIVE = "active"
STATUS_FINISHED = "finished"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class DuelPlayerState:
    """Gauges and wallet of one duelist."""

    duel_id: int
    user_id: int
    alcometer: int = 0
    respect: int = 50
    stomak: int = 50
    novcanik: int = 500
    turn_number: int = 0
    pijani_foulovi: int = 0


@dataclass(slots=True)
class KafanskiDuel:
    duel_id: int
    player1_id: int
    player2_id: int
    status: str = STATUS_WAITING
    current_turn_user: Optional[int] = None
    winner_id: Optional[int] = None
    created_at: datetime = field(default_factory=utcnow)
    finished_at: Optional[datetime] = None

    def involves(self, user_id: int) -> bool:
        return user_id in (self.player1_id, self.player2_id)

    def opponent_of(self, user_id: int) -> int:
        return self.player2_id if user_id == self.player1_id else self.player1_id


@dataclass(slots=True)
class DuelLogEntry:
    duel_id: int
    user_id: int
    turn_number: int
    action_type: str
    flavor_text: str = ""
    created_at: datetime = field(default_factory=utcnow)
