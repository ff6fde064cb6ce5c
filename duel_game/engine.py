"""Pure rules of Kafanski Duel.

Player states go in and new player states come out; nothing here touches
storage or mutates its arguments. Randomness (flavor text, tie-breaks)
comes from an injectable ``random.Random``.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Union

from shared import errors
from shared.errors import Failure, UnknownActionError

from .actions import ACTIONS, FLAVOR_TEXTS, DuelAction
from .state.models import DuelPlayerState

MAX_TURNS = 10
GAUGE_MIN = 0
GAUGE_MAX = 100
GAMBLE_SWEET_SPOT = (40, 70)
GAMBLE_WIN = 30
GAMBLE_LOSS = -40
DRUNK_FOUL_ABOVE = 80
FOUL_PENALTY = 10

LOSS_ALCOMETER = "Pao pod sto! Alcometer preko 95!"
LOSS_RESPECT = "Ekipa te izbacila! Respect ispod 10!"
LOSS_WALLET = "Bankrot! Nemas vise dinara!"


@dataclass(slots=True, frozen=True)
class ActionOutcome:
    state: DuelPlayerState
    flavor_text: str
    action: DuelAction


@dataclass(slots=True, frozen=True)
class ScoreVerdict:
    winner_id: int
    scores: Dict[int, int]
    tie_break: bool = False


def initial_state(duel_id: int, user_id: int) -> DuelPlayerState:
    return DuelPlayerState(duel_id=duel_id, user_id=user_id)


def clamp(value: int, low: int = GAUGE_MIN, high: int = GAUGE_MAX) -> int:
    return max(low, min(high, value))


def get_action(action_key: str) -> DuelAction:
    try:
        return ACTIONS[action_key]
    except KeyError:
        raise UnknownActionError(action_key) from None


def apply_action(
    state: DuelPlayerState, action_key: str, rng: Optional[random.Random] = None
) -> Union[ActionOutcome, Failure]:
    """Spend money on ``action_key`` and return the resulting player state."""

    action = get_action(action_key)
    if action.cost > state.novcanik:
        return Failure(errors.INSUFFICIENT_FUNDS, "Nemas dovoljno dinara!")

    alcometer, respect, stomak = state.alcometer, state.respect, state.stomak
    if action.gamble:
        low, high = GAMBLE_SWEET_SPOT
        respect = clamp(respect + (GAMBLE_WIN if low <= alcometer <= high else GAMBLE_LOSS))
    elif action.sets_alco is not None:
        alcometer = action.sets_alco
        respect = clamp(respect + action.respect)
    else:
        alcometer = clamp(alcometer + action.alco)
        respect = clamp(respect + action.respect)
        stomak = clamp(stomak + action.stomak)

    new_state = replace(
        state,
        alcometer=alcometer,
        respect=respect,
        stomak=stomak,
        novcanik=state.novcanik - action.cost,
        turn_number=state.turn_number + 1,
        pijani_foulovi=state.pijani_foulovi + (1 if alcometer > DRUNK_FOUL_ABOVE else 0),
    )
    flavors = FLAVOR_TEXTS.get(action_key, ())
    flavor_text = (rng or random).choice(flavors) if flavors else ""
    return ActionOutcome(state=new_state, flavor_text=flavor_text, action=action)


def check_instant_loss(state: DuelPlayerState) -> Optional[str]:
    """Reason the player lost on the spot, checked in a fixed order, or ``None``."""

    if state.alcometer > 95:
        return LOSS_ALCOMETER
    if state.respect < 10:
        return LOSS_RESPECT
    if state.novcanik < 0:
        return LOSS_WALLET
    return None


def calculate_score(state: DuelPlayerState) -> int:
    return state.respect * 2 + (GAUGE_MAX - state.alcometer) - state.pijani_foulovi * FOUL_PENALTY


def turn_limit_reached(first: DuelPlayerState, second: DuelPlayerState) -> bool:
    return first.turn_number >= MAX_TURNS and second.turn_number >= MAX_TURNS


def resolve_by_score(
    first: DuelPlayerState, second: DuelPlayerState, rng: Optional[random.Random] = None
) -> ScoreVerdict:
    """Higher score wins; an exact tie is a coin flip."""

    first_score = calculate_score(first)
    second_score = calculate_score(second)
    scores = {first.user_id: first_score, second.user_id: second_score}
    if first_score > second_score:
        return ScoreVerdict(winner_id=first.user_id, scores=scores)
    if second_score > first_score:
        return ScoreVerdict(winner_id=second.user_id, scores=scores)
    winner = (rng or random).choice((first.user_id, second.user_id))
    return ScoreVerdict(winner_id=winner, scores=scores, tie_break=True)


def available_actions(state: DuelPlayerState) -> Dict[str, Dict[str, Any]]:
    """The whole catalog, each entry flagged with whether it is affordable now."""

    return {
        key: {**action.to_dict(), "affordable": action.cost <= state.novcanik} for key, action in ACTIONS.items()
    }


__all__ = [
    "ActionOutcome",
    "MAX_TURNS",
    "ScoreVerdict",
    "apply_action",
    "available_actions",
    "calculate_score",
    "check_instant_loss",
    "clamp",
    "get_action",
    "initial_state",
    "resolve_by_score",
    "turn_limit_reached",
]
