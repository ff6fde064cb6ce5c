"""Kafanski Duel session reducer.

Each function takes the stored duel (and duelist states) plus the acting
user and returns a :class:`DuelTransition` to persist or a
:class:`~shared.errors.Failure`.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from shared import errors
from shared.errors import Failure
from shared.users import KnownUser

from .. import engine
from ..actions import ACTIONS
from ..state.models import STATUS_ACTIVE, STATUS_FINISHED, STATUS_WAITING, DuelLogEntry, DuelPlayerState, KafanskiDuel, utcnow
from ..state.storage import serialize_player_state

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DuelTransition:
    duel: KafanskiDuel
    states: List[DuelPlayerState] = field(default_factory=list)
    log: List[DuelLogEntry] = field(default_factory=list)
    notifications: List[Tuple[int, str]] = field(default_factory=list)
    payload: Dict[str, Any] = field(default_factory=lambda: {"ok": True})
    deleted: bool = False


Result = Union[DuelTransition, Failure]


def _name(users: Mapping[int, KnownUser], user_id: int) -> str:
    user = users.get(user_id)
    return user.display_name if user else "Klovn"


def create_duel(
    duel_id: int,
    challenger_id: int,
    opponent_id: int,
    users: Mapping[int, KnownUser],
    open_duels: Sequence[KafanskiDuel] = (),
) -> Result:
    """Challenge ``opponent_id``; both duelists start from the initial gauges.

    ``users`` holds everyone known to the service; only they can be challenged.
    """

    if challenger_id == opponent_id:
        return Failure(errors.SELF_CHALLENGE, "Ne mozes da izazoves samog sebe")
    if opponent_id not in users:
        return Failure(errors.NOT_FOUND, "Protivnik nije pronadjen")
    if any(d.involves(challenger_id) and d.involves(opponent_id) and d.status != STATUS_FINISHED for d in open_duels):
        return Failure(errors.DUEL_EXISTS, "Vec imate aktivan duel!")
    duel = KafanskiDuel(
        duel_id=duel_id, player1_id=challenger_id, player2_id=opponent_id, current_turn_user=challenger_id
    )
    return DuelTransition(
        duel=duel,
        states=[engine.initial_state(duel_id, challenger_id), engine.initial_state(duel_id, opponent_id)],
        notifications=[(opponent_id, f"{_name(users, challenger_id)} te izaziva na Kafanski Duel! 🍺")],
        payload={"ok": True, "duel_id": duel_id},
    )


def _pending_for(duel: KafanskiDuel, user_id: int) -> Optional[Failure]:
    if duel.player2_id != user_id or duel.status != STATUS_WAITING:
        return Failure(errors.NOT_FOUND, "Duel nije pronadjen ili vec prihvacen")
    return None


def accept_duel(duel: KafanskiDuel, user_id: int) -> Result:
    failure = _pending_for(duel, user_id)
    if failure:
        return failure
    started = replace(duel, status=STATUS_ACTIVE, current_turn_user=duel.player1_id)
    return DuelTransition(duel=started, notifications=[(duel.player1_id, "Duel je prihvacen, ti pocinjes!")])


def decline_duel(duel: KafanskiDuel, user_id: int) -> Result:
    failure = _pending_for(duel, user_id)
    if failure:
        return failure
    return DuelTransition(duel=duel, deleted=True, notifications=[(duel.player1_id, "Tvoj izazov za duel je odbijen")])


def apply_action(
    duel: KafanskiDuel,
    states: Sequence[DuelPlayerState],
    user_id: int,
    action_key: str,
    *,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> Result:
    """Play ``action_key`` for ``user_id`` and decide whether the duel is over."""

    if not duel.involves(user_id):
        return Failure(errors.NOT_IN_GAME, "Nisi ucesnik ovog duela")
    if duel.status != STATUS_ACTIVE:
        return Failure(errors.GAME_NOT_ACTIVE, "Duel nije aktivan")
    if duel.current_turn_user != user_id:
        return Failure(errors.NOT_YOUR_TURN, "Nije tvoj red!")
    if action_key not in ACTIONS:
        return Failure(errors.UNKNOWN_ACTION, "Nepoznata akcija")
    opponent_id = duel.opponent_of(user_id)
    mine = next((s for s in states if s.user_id == user_id), None)
    theirs = next((s for s in states if s.user_id == opponent_id), None)
    if mine is None or theirs is None:
        return Failure(errors.NOT_FOUND, "Stanje duela nije pronadjeno")

    outcome = engine.apply_action(mine, action_key, rng)
    if isinstance(outcome, Failure):
        return outcome
    new_state = outcome.state
    transition = DuelTransition(
        duel=duel,
        states=[new_state],
        log=[
            DuelLogEntry(
                duel_id=duel.duel_id,
                user_id=user_id,
                turn_number=new_state.turn_number,
                action_type=action_key,
                flavor_text=outcome.flavor_text,
            )
        ],
        payload={
            "ok": True,
            "flavor_text": outcome.flavor_text,
            "new_state": serialize_player_state(new_state),
            "game_over": False,
        },
    )

    loss_reason = engine.check_instant_loss(new_state)
    if loss_reason:
        logger.info("Duel %s: %s lost instantly (%s)", duel.duel_id, user_id, loss_reason)
        _finish(transition, opponent_id, now)
        transition.payload.update(loss_reason=loss_reason)
        return transition

    if engine.turn_limit_reached(new_state, theirs):
        verdict = engine.resolve_by_score(new_state, theirs, rng)
        _finish(transition, verdict.winner_id, now)
        transition.payload.update(my_score=verdict.scores[user_id], opp_score=verdict.scores[opponent_id])
        return transition

    transition.duel = replace(duel, current_turn_user=opponent_id)
    transition.notifications.append((opponent_id, "Tvoj red u Kafanskom duelu!"))
    return transition


def _finish(transition: DuelTransition, winner_id: int, now: Optional[datetime]) -> None:
    duel = transition.duel
    transition.duel = replace(duel, status=STATUS_FINISHED, winner_id=winner_id, finished_at=now or utcnow())
    transition.payload.update(game_over=True, winner_id=winner_id)
    transition.notifications.extend(
        (uid, "Pobedio si u duelu! 🏆" if uid == winner_id else "Izgubio si duel 💀")
        for uid in (duel.player1_id, duel.player2_id)
    )


__all__ = ["DuelTransition", "accept_duel", "apply_action", "create_duel", "decline_duel"]
