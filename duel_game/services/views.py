"""Read-only projections of duels for the mini-app."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence, Union

from shared import errors
from shared.errors import Failure
from shared.users import KnownUser, UserRegistry

from .. import engine
from ..state.manager import DuelStateManager
from ..state.models import STATUS_ACTIVE, DuelLogEntry, DuelPlayerState, KafanskiDuel
from ..state.storage import serialize_duel, serialize_log, serialize_player_state


def _identity(users: Mapping[int, KnownUser], user_id: int) -> Dict[str, Any]:
    user = users.get(user_id) or KnownUser(user_id=user_id)
    return {**user.to_dict(), "display_name": user.display_name}


def _duel_card(duel: KafanskiDuel, users: Mapping[int, KnownUser]) -> Dict[str, Any]:
    payload = serialize_duel(duel)
    for prefix, uid in (("p1", duel.player1_id), ("p2", duel.player2_id)):
        user = users.get(uid)
        payload[f"{prefix}_first"] = user.first_name if user else ""
        payload[f"{prefix}_user"] = user.username if user else ""
    return payload


def build_state_view(
    duel: KafanskiDuel,
    states: Sequence[DuelPlayerState],
    log: Sequence[DuelLogEntry],
    user_id: int,
    users: Optional[Mapping[int, KnownUser]] = None,
) -> Union[Dict[str, Any], Failure]:
    if not duel.involves(user_id):
        return Failure(errors.NOT_IN_GAME, "Nisi ucesnik ovog duela")
    users = users or {}
    by_user = {state.user_id: state for state in states}
    is_my_turn = duel.status == STATUS_ACTIVE and duel.current_turn_user == user_id
    mine = by_user.get(user_id)
    return {
        "duel": serialize_duel(duel),
        "players": {
            str(uid): {
                **_identity(users, uid),
                "state": serialize_player_state(by_user[uid]) if uid in by_user else None,
            }
            for uid in (duel.player1_id, duel.player2_id)
        },
        "my_id": user_id,
        "is_my_turn": is_my_turn,
        "available_actions": engine.available_actions(mine) if is_my_turn and mine else None,
        "recent_log": [serialize_log(entry) for entry in log],
        "max_turns": engine.MAX_TURNS,
    }


def build_active_view(manager: DuelStateManager, registry: UserRegistry, user_id: int) -> Dict[str, Any]:
    """My open duels, what I finished today and who I could challenge."""

    users = registry.known()
    return {
        "my_id": user_id,
        "active": [_duel_card(duel, users) for duel in manager.duels_for_user(user_id)],
        "recent_finished": [_duel_card(duel, users) for duel in manager.recently_finished(user_id)],
        "opponents": [user.to_dict() for user in registry.others(user_id)],
    }


__all__ = ["build_active_view", "build_state_view"]
