"""Result types and the failure vocabulary shared by both games."""

from __future__ import annotations

from dataclasses import dataclass

UNAUTHORIZED = "unauthorized"
NOT_FOUND = "not_found"
NOT_IN_GAME = "not_in_game"
NOT_CREATOR = "not_creator"
ALREADY_JOINED = "already_joined"
GAME_FULL = "game_full"
NOT_ENOUGH_PLAYERS = "not_enough_players"
NOT_ENOUGH_CARDS = "not_enough_cards"
GAME_NOT_ACTIVE = "game_not_active"
WRONG_PHASE = "wrong_phase"
MATCHING_NOT_DONE = "matching_not_done"
ALL_CARDS_FLIPPED = "all_cards_flipped"
NO_CARD_FLIPPED = "no_card_flipped"
MATCHING_CLOSED = "matching_closed"
NOT_YOUR_TURN = "not_your_turn"
CARD_NOT_IN_HAND = "card_not_in_hand"
CARD_DOES_NOT_MATCH = "card_does_not_match"
TARGET_NOT_IN_GAME = "target_not_in_game"
NOT_BUS_PLAYER = "not_bus_player"
INVALID_GUESS = "invalid_guess"
DECK_EXHAUSTED = "deck_exhausted"
INSUFFICIENT_FUNDS = "insufficient_funds"
UNKNOWN_ACTION = "unknown_action"
SELF_CHALLENGE = "self_challenge"
DUEL_EXISTS = "duel_exists"
BAD_REQUEST = "bad_request"

REASONS = frozenset(
    {
        UNAUTHORIZED,
        NOT_FOUND,
        NOT_IN_GAME,
        NOT_CREATOR,
        ALREADY_JOINED,
        GAME_FULL,
        NOT_ENOUGH_PLAYERS,
        NOT_ENOUGH_CARDS,
        GAME_NOT_ACTIVE,
        WRONG_PHASE,
        MATCHING_NOT_DONE,
        ALL_CARDS_FLIPPED,
        NO_CARD_FLIPPED,
        MATCHING_CLOSED,
        NOT_YOUR_TURN,
        CARD_NOT_IN_HAND,
        CARD_DOES_NOT_MATCH,
        TARGET_NOT_IN_GAME,
        NOT_BUS_PLAYER,
        INVALID_GUESS,
        DECK_EXHAUSTED,
        INSUFFICIENT_FUNDS,
        UNKNOWN_ACTION,
        SELF_CHALLENGE,
        DUEL_EXISTS,
        BAD_REQUEST,
    }
)


@dataclass(slots=True, frozen=True)
class Failure:
    """Rejected player request. Nothing derived from it may be persisted."""

    reason: str
    message: str = ""

    def __post_init__(self) -> None:
        if self.reason not in REASONS:
            raise ValueError(f"Unknown failure reason: {self.reason}")


class AuthenticationError(Exception):
    """Raised when a Telegram credential is missing, malformed or forged."""


class NotFoundError(LookupError):
    """Raised by state managers for unknown game or duel ids."""


class UnknownActionError(KeyError):
    """Raised when code asks the duel catalog for an action it does not have."""


__all__ = [
    "AuthenticationError",
    "Failure",
    "NotFoundError",
    "REASONS",
    "UnknownActionError",
]
