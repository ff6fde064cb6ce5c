"""Card and deck primitives plus the fixed pyramid layout."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

RANKS = ("2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A")
SUITS = ("♠️", "♥️", "♦️", "♣️")
RANK_VALUES: Dict[str, int] = {rank: value for value, rank in enumerate(RANKS, start=2)}

PYRAMID_SIZE = 15
LAST_PYRAMID_INDEX = PYRAMID_SIZE - 1
# (row, first index, card count); dealt bottom-up, row 1 is the top card.
PYRAMID_ROWS = (
    (5, 0, 5),
    (4, 5, 4),
    (3, 9, 3),
    (2, 12, 2),
    (1, 14, 1),
)


@dataclass(slots=True, frozen=True)
class Card:
    rank: str
    suit: str

    @property
    def value(self) -> int:
        return card_value(self.rank)

    def to_dict(self) -> Dict[str, str]:
        return {"rank": self.rank, "suit": self.suit}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Card":
        return cls(rank=str(payload["rank"]), suit=str(payload["suit"]))

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"


@dataclass(slots=True, frozen=True)
class PyramidCard:
    """A pyramid position: the dealt card, its index and whether it is face up."""

    rank: str
    suit: str
    index: int
    flipped: bool = False

    @property
    def card(self) -> Card:
        return Card(self.rank, self.suit)

    def to_dict(self) -> Dict[str, Any]:
        return {"rank": self.rank, "suit": self.suit, "index": self.index, "flipped": self.flipped}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "PyramidCard":
        return cls(
            rank=str(payload["rank"]),
            suit=str(payload["suit"]),
            index=int(payload["index"]),
            flipped=bool(payload.get("flipped", False)),
        )


def card_value(rank: str) -> int:
    """Numeric value used by the bus phase; aces are always high."""

    return RANK_VALUES.get(rank, 0)


def fresh_deck() -> List[Card]:
    return [Card(rank, suit) for rank in RANKS for suit in SUITS]


def create_deck(rng: Optional[random.Random] = None) -> List[Card]:
    """Return all 52 cards in uniformly random order (Fisher–Yates)."""

    rng = rng or random
    deck = fresh_deck()
    for i in range(len(deck) - 1, 0, -1):
        j = rng.randint(0, i)
        deck[i], deck[j] = deck[j], deck[i]
    return deck


def row_for_index(index: int) -> int:
    for row, start, count in PYRAMID_ROWS:
        if start <= index < start + count:
            return row
    return 5


def drink_value(row: int) -> int:
    return 6 - row


def drink_value_for_index(index: int) -> int:
    return drink_value(row_for_index(index))


def can_match(hand_card: Card | PyramidCard, flipped_card: Card | PyramidCard) -> bool:
    return hand_card.rank == flipped_card.rank


def pyramid_layout(cards: Sequence[PyramidCard]) -> List[Dict[str, Any]]:
    """Annotate each pyramid card with its row, position in the row and drink value."""

    starts = {row: start for row, start, _ in PYRAMID_ROWS}
    layout = []
    for index, card in enumerate(cards):
        row = row_for_index(index)
        layout.append(
            {
                **card.to_dict(),
                "row": row,
                "position": index - starts[row],
                "drinkValue": drink_value(row),
            }
        )
    return layout


def format_card(card: Card | PyramidCard | None) -> str:
    if card is None:
        return "—"
    return f"{card.rank}{card.suit}"


__all__ = [
    "Card",
    "LAST_PYRAMID_INDEX",
    "PYRAMID_ROWS",
    "PYRAMID_SIZE",
    "PyramidCard",
    "RANKS",
    "SUITS",
    "can_match",
    "card_value",
    "create_deck",
    "drink_value",
    "drink_value_for_index",
    "format_card",
    "fresh_deck",
    "pyramid_layout",
    "row_for_index",
]
