"""Persistence-aware store for Autobus tables, seats and the action log."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from shared.config import get_settings
from shared.errors import NotFoundError

from .models import (
    STATUS_ACTIVE,
    STATUS_FINISHED,
    STATUS_LOBBY,
    AutobusGame,
    AutobusLogEntry,
    AutobusPlayer,
    ordered,
    utcnow,
)
from .storage import AutobusStorage

# Oldest entries beyond this are dropped per table.
LOG_LIMIT = 50


class AutobusStateManager:
    """Keeps every table in memory and mirrors changes to disk."""

    def __init__(self, storage: AutobusStorage) -> None:
        self._logger = logging.getLogger(__name__)
        self._storage = storage
        self._games: Dict[int, AutobusGame] = {}
        self._players: Dict[int, List[AutobusPlayer]] = {}
        self._logs: Dict[int, List[AutobusLogEntry]] = {}
        self._next_id = 1
        self._load_from_disk()

    # Lookup helpers ---------------------------------------------------
    def next_game_id(self) -> int:
        game_id = self._next_id
        self._next_id += 1
        return game_id

    def get_game(self, game_id: int) -> AutobusGame:
        game = self._games.get(game_id)
        if game is None:
            raise NotFoundError(f"Autobus game {game_id} does not exist")
        return game

    def get_players(self, game_id: int) -> List[AutobusPlayer]:
        return ordered(self._players.get(game_id, []))

    def recent_log(self, game_id: int, limit: int = 20) -> List[AutobusLogEntry]:
        return list(reversed(self._logs.get(game_id, [])))[:limit]

    def games_for_user(self, user_id: int, statuses: Iterable[str] = (STATUS_LOBBY, STATUS_ACTIVE)) -> List[AutobusGame]:
        wanted = set(statuses)
        games = [
            game
            for game in self._games.values()
            if game.status in wanted and any(p.user_id == user_id for p in self._players.get(game.game_id, []))
        ]
        return sorted(games, key=lambda game: game.created_at, reverse=True)

    def open_lobbies(self, user_id: int, limit: int = 10) -> List[AutobusGame]:
        joined = {game.game_id for game in self.games_for_user(user_id, (STATUS_LOBBY,))}
        lobbies = [g for g in self._games.values() if g.status == STATUS_LOBBY and g.game_id not in joined]
        return sorted(lobbies, key=lambda game: game.created_at, reverse=True)[:limit]

    def recently_finished(
        self, user_id: int, *, limit: int = 5, window: timedelta = timedelta(hours=24), now: Optional[datetime] = None
    ) -> List[AutobusGame]:
        cutoff = (now or utcnow()) - window
        games = [
            game
            for game in self.games_for_user(user_id, (STATUS_FINISHED,))
            if game.finished_at and game.finished_at > cutoff
        ]
        return sorted(games, key=lambda game: game.finished_at, reverse=True)[:limit]

    # Mutation helpers -------------------------------------------------
    def save_game(self, game: AutobusGame) -> AutobusGame:
        self._games[game.game_id] = game
        self._persist()
        return game

    def save_player(self, player: AutobusPlayer) -> AutobusPlayer:
        seats = [p for p in self._players.get(player.game_id, []) if p.user_id != player.user_id]
        seats.append(player)
        self._players[player.game_id] = ordered(seats)
        self._persist()
        return player

    def append_log(self, entry: AutobusLogEntry) -> None:
        self._extend_log([entry])
        self._persist()

    def commit(
        self,
        game: AutobusGame,
        players: Optional[Sequence[AutobusPlayer]] = None,
        log: Sequence[AutobusLogEntry] = (),
    ) -> AutobusGame:
        """Store the outcome of one accepted request with a single write."""

        self._games[game.game_id] = game
        if players is not None:
            self._players[game.game_id] = ordered(list(players))
        self._extend_log(log)
        self._persist()
        return game

    def reset(self) -> None:
        """Clear all stored data (used in tests)."""

        self._games.clear()
        self._players.clear()
        self._logs.clear()
        self._next_id = 1
        self._storage.clear()

    # Internal helpers -------------------------------------------------
    def _extend_log(self, entries: Iterable[AutobusLogEntry]) -> None:
        for entry in entries:
            kept = self._logs.setdefault(entry.game_id, [])
            kept.append(entry)
            del kept[:-LOG_LIMIT]

    def _persist(self) -> None:
        log = [entry for entries in self._logs.values() for entry in entries]
        try:
            self._storage.dump(self._games, self._players, log, self._next_id)
        except Exception as exc:  # pragma: no cover
            self._logger.exception("Failed to persist Autobus state: %s", exc)

    def _load_from_disk(self) -> None:
        try:
            games, players, log, next_id = self._storage.load()
        except Exception as exc:  # pragma: no cover
            self._logger.exception("Failed to load Autobus state: %s", exc)
            return
        self._games = games
        self._players = players
        self._logs = {}
        self._extend_log(log)
        self._next_id = next_id


STATE_MANAGER = AutobusStateManager(AutobusStorage(get_settings().autobus_state_path))


def get_state_manager() -> AutobusStateManager:
    return STATE_MANAGER
