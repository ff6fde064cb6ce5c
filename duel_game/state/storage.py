"""JSON (de)serialisation of Kafanski duels."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from shared.json_store import JsonFileStore

from .models import DuelLogEntry, DuelPlayerState, KafanskiDuel, utcnow

LOGGER = logging.getLogger(__name__)

Snapshot = Tuple[Dict[int, KafanskiDuel], Dict[int, List[DuelPlayerState]], List[DuelLogEntry], int]

_STAT_FIELDS = ("alcometer", "respect", "stomak", "novcanik", "turn_number", "pijani_foulovi")


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        LOGGER.warning("Invalid datetime value %s in persisted duel state", value)
        return None


def serialize_duel(duel: KafanskiDuel) -> Dict[str, Any]:
    return {
        "id": duel.duel_id,
        "player1_id": duel.player1_id,
        "player2_id": duel.player2_id,
        "status": duel.status,
        "current_turn_user": duel.current_turn_user,
        "winner_id": duel.winner_id,
        "created_at": duel.created_at.isoformat(),
        "finished_at": duel.finished_at.isoformat() if duel.finished_at else None,
    }


def deserialize_duel(payload: Dict[str, Any]) -> KafanskiDuel:
    return KafanskiDuel(
        duel_id=int(payload["id"]),
        player1_id=int(payload["player1_id"]),
        player2_id=int(payload["player2_id"]),
        status=str(payload.get("status", "waiting")),
        current_turn_user=payload.get("current_turn_user"),
        winner_id=payload.get("winner_id"),
        created_at=_parse_datetime(payload.get("created_at")) or utcnow(),
        finished_at=_parse_datetime(payload.get("finished_at")),
    )


def serialize_player_state(state: DuelPlayerState) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"duel_id": state.duel_id, "user_id": state.user_id}
    payload.update({name: getattr(state, name) for name in _STAT_FIELDS})
    return payload


def deserialize_player_state(payload: Dict[str, Any]) -> DuelPlayerState:
    stats = {name: int(payload[name]) for name in _STAT_FIELDS if name in payload}
    return DuelPlayerState(duel_id=int(payload["duel_id"]), user_id=int(payload["user_id"]), **stats)


def serialize_log(entry: DuelLogEntry) -> Dict[str, Any]:
    return {
        "duel_id": entry.duel_id,
        "user_id": entry.user_id,
        "turn_number": entry.turn_number,
        "action_type": entry.action_type,
        "flavor_text": entry.flavor_text,
        "created_at": entry.created_at.isoformat(),
    }


def deserialize_log(payload: Dict[str, Any]) -> DuelLogEntry:
    return DuelLogEntry(
        duel_id=int(payload["duel_id"]),
        user_id=int(payload["user_id"]),
        turn_number=int(payload.get("turn_number", 0)),
        action_type=str(payload["action_type"]),
        flavor_text=str(payload.get("flavor_text") or ""),
        created_at=_parse_datetime(payload.get("created_at")) or utcnow(),
    )


class DuelStorage:
    """Read and write every duel to one JSON file."""

    def __init__(self, path: Path) -> None:
        self._store = JsonFileStore(path)

    def load(self) -> Snapshot:
        payload = self._store.read()
        duels: Dict[int, KafanskiDuel] = {}
        states: Dict[int, List[DuelPlayerState]] = {}
        log: List[DuelLogEntry] = []
        try:
            for entry in payload.get("duels", []):
                duel = deserialize_duel(entry)
                duels[duel.duel_id] = duel
            for entry in payload.get("states", []):
                state = deserialize_player_state(entry)
                states.setdefault(state.duel_id, []).append(state)
            log = [deserialize_log(entry) for entry in payload.get("log", [])]
        except (KeyError, TypeError, ValueError) as exc:
            LOGGER.error("Failed to deserialize duel state: %s", exc)
        next_id = int(payload.get("next_id") or max(duels, default=0) + 1)
        return duels, states, log, next_id

    def dump(
        self,
        duels: Dict[int, KafanskiDuel],
        states: Dict[int, List[DuelPlayerState]],
        log: List[DuelLogEntry],
        next_id: int,
    ) -> None:
        self._store.write(
            {
                "next_id": next_id,
                "duels": [serialize_duel(duel) for duel in duels.values()],
                "states": [serialize_player_state(s) for pair in states.values() for s in pair],
                "log": [serialize_log(entry) for entry in log],
            }
        )

    def clear(self) -> None:
        self._store.clear()


__all__ = ["DuelStorage"]
