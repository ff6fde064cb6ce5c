"""Persistence-aware store for duels, duelist states and the duel log."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from shared.config import get_settings
from shared.errors import NotFoundError

from .models import STATUS_ACTIVE, STATUS_FINISHED, STATUS_WAITING, DuelLogEntry, DuelPlayerState, KafanskiDuel, utcnow
from .storage import DuelStorage

# Oldest entries beyond this are dropped per duel.
LOG_LIMIT = 50


class DuelStateManager:
    """Keeps every duel in memory and mirrors changes to disk."""

    def __init__(self, storage: DuelStorage) -> None:
        self._logger = logging.getLogger(__name__)
        self._storage = storage
        self._duels: Dict[int, KafanskiDuel] = {}
        self._states: Dict[int, List[DuelPlayerState]] = {}
        self._logs: Dict[int, List[DuelLogEntry]] = {}
        self._next_id = 1
        self._load_from_disk()

    # Lookup helpers ---------------------------------------------------
    def next_duel_id(self) -> int:
        duel_id = self._next_id
        self._next_id += 1
        return duel_id

    def get_duel(self, duel_id: int) -> KafanskiDuel:
        duel = self._duels.get(duel_id)
        if duel is None:
            raise NotFoundError(f"Duel {duel_id} does not exist")
        return duel

    def get_states(self, duel_id: int) -> List[DuelPlayerState]:
        return sorted(self._states.get(duel_id, []), key=lambda state: state.user_id)

    def recent_log(self, duel_id: int, limit: int = 10) -> List[DuelLogEntry]:
        return list(reversed(self._logs.get(duel_id, [])))[:limit]

    def duels_for_user(
        self, user_id: int, statuses: Iterable[str] = (STATUS_WAITING, STATUS_ACTIVE)
    ) -> List[KafanskiDuel]:
        wanted = set(statuses)
        duels = [d for d in self._duels.values() if d.status in wanted and d.involves(user_id)]
        return sorted(duels, key=lambda duel: duel.created_at, reverse=True)

    def open_duels_between(self, first_id: int, second_id: int) -> List[KafanskiDuel]:
        return [duel for duel in self.duels_for_user(first_id) if duel.involves(second_id)]

    def recently_finished(
        self, user_id: int, *, limit: int = 5, window: timedelta = timedelta(hours=24), now: Optional[datetime] = None
    ) -> List[KafanskiDuel]:
        cutoff = (now or utcnow()) - window
        duels = [
            duel
            for duel in self.duels_for_user(user_id, (STATUS_FINISHED,))
            if duel.finished_at and duel.finished_at > cutoff
        ]
        return sorted(duels, key=lambda duel: duel.finished_at, reverse=True)[:limit]

    # Mutation helpers -------------------------------------------------
    def save_duel(self, duel: KafanskiDuel) -> KafanskiDuel:
        self._duels[duel.duel_id] = duel
        self._persist()
        return duel

    def save_state(self, state: DuelPlayerState) -> DuelPlayerState:
        pair = [s for s in self._states.get(state.duel_id, []) if s.user_id != state.user_id]
        pair.append(state)
        self._states[state.duel_id] = pair
        self._persist()
        return state

    def append_log(self, entry: DuelLogEntry) -> None:
        self._extend_log([entry])
        self._persist()

    def commit(
        self,
        duel: KafanskiDuel,
        states: Optional[Sequence[DuelPlayerState]] = None,
        log: Sequence[DuelLogEntry] = (),
    ) -> KafanskiDuel:
        """Store the outcome of one accepted request with a single write."""

        self._duels[duel.duel_id] = duel
        if states is not None:
            merged = {state.user_id: state for state in self._states.get(duel.duel_id, [])}
            merged.update({state.user_id: state for state in states})
            self._states[duel.duel_id] = list(merged.values())
        self._extend_log(log)
        self._persist()
        return duel

    def delete_duel(self, duel_id: int) -> None:
        self._duels.pop(duel_id, None)
        self._states.pop(duel_id, None)
        self._logs.pop(duel_id, None)
        self._persist()

    def reset(self) -> None:
        """Clear all stored data (used in tests)."""

        self._duels.clear()
        self._states.clear()
        self._logs.clear()
        self._next_id = 1
        self._storage.clear()

    # Internal helpers -------------------------------------------------
    def _extend_log(self, entries: Iterable[DuelLogEntry]) -> None:
        for entry in entries:
            kept = self._logs.setdefault(entry.duel_id, [])
            kept.append(entry)
            del kept[:-LOG_LIMIT]

    def _persist(self) -> None:
        log = [entry for entries in self._logs.values() for entry in entries]
        try:
            self._storage.dump(self._duels, self._states, log, self._next_id)
        except Exception as exc:  # pragma: no cover
            self._logger.exception("Failed to persist duel state: %s", exc)

    def _load_from_disk(self) -> None:
        try:
            duels, states, log, next_id = self._storage.load()
        except Exception as exc:  # pragma: no cover
            self._logger.exception("Failed to load duel state: %s", exc)
            return
        self._duels = duels
        self._states = states
        self._logs = {}
        self._extend_log(log)
        self._next_id = next_id


STATE_MANAGER = DuelStateManager(DuelStorage(get_settings().duel_state_path))


def get_state_manager() -> DuelStateManager:
    return STATE_MANAGER
