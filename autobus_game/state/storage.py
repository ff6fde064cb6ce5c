"""JSON (de)serialisation of Autobus tables."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from shared.json_store import JsonFileStore

from ..cards import Card, PyramidCard
from .models import AutobusGame, AutobusLogEntry, AutobusPlayer, utcnow

LOGGER = logging.getLogger(__name__)

Snapshot = Tuple[Dict[int, AutobusGame], Dict[int, List[AutobusPlayer]], List[AutobusLogEntry], int]


def _card(payload: Optional[Dict[str, Any]]) -> Optional[Card]:
    return Card.from_dict(payload) if payload else None


def _card_dict(card: Optional[Card]) -> Optional[Dict[str, str]]:
    return card.to_dict() if card else None


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        LOGGER.warning("Invalid datetime value %s in persisted Autobus state", value)
        return None


def serialize_game(game: AutobusGame) -> Dict[str, Any]:
    return {
        "id": game.game_id,
        "created_by": game.created_by,
        "status": game.status,
        "current_phase": game.current_phase,
        "pyramid_cards": [card.to_dict() for card in game.pyramid_cards],
        "deck": [card.to_dict() for card in game.deck],
        "current_card_index": game.current_card_index,
        "match_turn_index": game.match_turn_index,
        "matching_done": game.matching_done,
        "bus_player_id": game.bus_player_id,
        "bus_progress": game.bus_progress,
        "bus_current_card": _card_dict(game.bus_current_card),
        "bus_player_queue": list(game.bus_player_queue),
        "bus_queue_index": game.bus_queue_index,
        "created_at": game.created_at.isoformat(),
        "finished_at": game.finished_at.isoformat() if game.finished_at else None,
    }


def deserialize_game(payload: Dict[str, Any]) -> AutobusGame:
    return AutobusGame(
        game_id=int(payload["id"]),
        created_by=int(payload["created_by"]),
        status=str(payload.get("status", "lobby")),
        current_phase=str(payload.get("current_phase", "lobby")),
        pyramid_cards=tuple(PyramidCard.from_dict(card) for card in payload.get("pyramid_cards") or []),
        deck=tuple(Card.from_dict(card) for card in payload.get("deck") or []),
        current_card_index=int(payload.get("current_card_index", -1)),
        match_turn_index=int(payload.get("match_turn_index", 0)),
        matching_done=bool(payload.get("matching_done", False)),
        bus_player_id=payload.get("bus_player_id"),
        bus_progress=int(payload.get("bus_progress", 0)),
        bus_current_card=_card(payload.get("bus_current_card")),
        bus_player_queue=tuple(int(uid) for uid in payload.get("bus_player_queue") or []),
        bus_queue_index=int(payload.get("bus_queue_index", 0)),
        created_at=_parse_datetime(payload.get("created_at")) or utcnow(),
        finished_at=_parse_datetime(payload.get("finished_at")),
    )


def serialize_player(player: AutobusPlayer) -> Dict[str, Any]:
    return {
        "game_id": player.game_id,
        "user_id": player.user_id,
        "turn_order": player.turn_order,
        "username": player.username,
        "first_name": player.first_name,
        "hand": [card.to_dict() for card in player.hand],
        "drinks_received": player.drinks_received,
        "passed_current": player.passed_current,
    }


def deserialize_player(payload: Dict[str, Any]) -> AutobusPlayer:
    return AutobusPlayer(
        game_id=int(payload["game_id"]),
        user_id=int(payload["user_id"]),
        turn_order=int(payload.get("turn_order", 0)),
        username=str(payload.get("username") or ""),
        first_name=str(payload.get("first_name") or ""),
        hand=tuple(Card.from_dict(card) for card in payload.get("hand") or []),
        drinks_received=int(payload.get("drinks_received", 0)),
        passed_current=bool(payload.get("passed_current", False)),
    )


def serialize_log(entry: AutobusLogEntry) -> Dict[str, Any]:
    return {
        "game_id": entry.game_id,
        "user_id": entry.user_id,
        "action_type": entry.action_type,
        "flavor_text": entry.flavor_text,
        "card_data": _card_dict(entry.card_data),
        "matched_card": _card_dict(entry.matched_card),
        "target_user_id": entry.target_user_id,
        "drinks_given": entry.drinks_given,
        "bus_guess": entry.bus_guess,
        "bus_result": entry.bus_result,
        "created_at": entry.created_at.isoformat(),
    }


def deserialize_log(payload: Dict[str, Any]) -> AutobusLogEntry:
    return AutobusLogEntry(
        game_id=int(payload["game_id"]),
        user_id=payload.get("user_id"),
        action_type=str(payload["action_type"]),
        flavor_text=str(payload.get("flavor_text") or ""),
        card_data=_card(payload.get("card_data")),
        matched_card=_card(payload.get("matched_card")),
        target_user_id=payload.get("target_user_id"),
        drinks_given=int(payload.get("drinks_given", 0)),
        bus_guess=payload.get("bus_guess"),
        bus_result=payload.get("bus_result"),
        created_at=_parse_datetime(payload.get("created_at")) or utcnow(),
    )


class AutobusStorage:
    """Read and write every Autobus table to one JSON file."""

    def __init__(self, path: Path) -> None:
        self._store = JsonFileStore(path)

    def load(self) -> Snapshot:
        payload = self._store.read()
        games: Dict[int, AutobusGame] = {}
        for entry in payload.get("games", []):
            try:
                game = deserialize_game(entry)
            except (KeyError, TypeError, ValueError) as exc:
                LOGGER.error("Failed to deserialize Autobus game %s: %s", entry, exc)
                continue
            games[game.game_id] = game
        players: Dict[int, List[AutobusPlayer]] = {}
        for entry in payload.get("players", []):
            try:
                player = deserialize_player(entry)
            except (KeyError, TypeError, ValueError) as exc:
                LOGGER.error("Failed to deserialize Autobus player %s: %s", entry, exc)
                continue
            players.setdefault(player.game_id, []).append(player)
        log: List[AutobusLogEntry] = []
        for entry in payload.get("log", []):
            try:
                log.append(deserialize_log(entry))
            except (KeyError, TypeError, ValueError) as exc:
                LOGGER.error("Skipping Autobus log entry %s: %s", entry, exc)
        next_id = int(payload.get("next_id") or max(games, default=0) + 1)
        return games, players, log, next_id

    def dump(
        self,
        games: Dict[int, AutobusGame],
        players: Dict[int, List[AutobusPlayer]],
        log: List[AutobusLogEntry],
        next_id: int,
    ) -> None:
        self._store.write(
            {
                "next_id": next_id,
                "games": [serialize_game(game) for game in games.values()],
                "players": [serialize_player(p) for seats in players.values() for p in seats],
                "log": [serialize_log(entry) for entry in log],
            }
        )

    def clear(self) -> None:
        self._store.clear()


__all__ = ["AutobusStorage"]
