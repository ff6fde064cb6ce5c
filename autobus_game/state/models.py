"""Dataclasses describing a persisted Autobus game."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from ..cards import Card, PyramidCard

STATUS_LOBBY = "lobby"
STATUS_ACTIVE = "active"
STATUS_FINISHED = "finished"

PHASE_LOBBY = "lobby"
PHASE_PYRAMID = "pyramid"
PHASE_BUS = "bus"
PHASE_FINISHED = "finished"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class AutobusGame:
    """One Autobus table: pyramid, draw pile and whose turn it is."""

    game_id: int
    created_by: int
    status: str = STATUS_LOBBY
    current_phase: str = PHASE_LOBBY
    pyramid_cards: Tuple[PyramidCard, ...] = ()
    deck: Tuple[Card, ...] = ()
    current_card_index: int = -1
    match_turn_index: int = 0
    matching_done: bool = False
    bus_player_id: Optional[int] = None
    bus_progress: int = 0
    bus_current_card: Optional[Card] = None
    bus_player_queue: Tuple[int, ...] = ()
    bus_queue_index: int = 0
    created_at: datetime = field(default_factory=utcnow)
    finished_at: Optional[datetime] = None

    @property
    def current_card(self) -> Optional[PyramidCard]:
        if 0 <= self.current_card_index < len(self.pyramid_cards):
            card = self.pyramid_cards[self.current_card_index]
            return card if card.flipped else None
        return None


@dataclass(slots=True)
class AutobusPlayer:
    """A seat at an Autobus table."""

    game_id: int
    user_id: int
    turn_order: int
    username: str = ""
    first_name: str = ""
    hand: Tuple[Card, ...] = ()
    drinks_received: int = 0
    passed_current: bool = False

    @property
    def display_name(self) -> str:
        return self.first_name or self.username or "Klovn"


@dataclass(slots=True)
class AutobusLogEntry:
    """One line of the table's action history."""

    game_id: int
    user_id: Optional[int]
    action_type: str
    flavor_text: str = ""
    card_data: Optional[Card] = None
    matched_card: Optional[Card] = None
    target_user_id: Optional[int] = None
    drinks_given: int = 0
    bus_guess: Optional[str] = None
    bus_result: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)


def ordered(players: List[AutobusPlayer] | Tuple[AutobusPlayer, ...]) -> List[AutobusPlayer]:
    return sorted(players, key=lambda player: player.turn_order)
