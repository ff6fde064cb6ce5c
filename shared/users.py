"""Registry of everyone who has opened one of the mini-apps."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .auth import TelegramUser
from .config import get_settings
from .json_store import JsonFileStore

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class KnownUser:
    user_id: int
    first_name: str = ""
    username: str = ""

    @property
    def display_name(self) -> str:
        return self.first_name or self.username or "Klovn"

    def to_dict(self) -> Dict[str, Any]:
        return {"telegram_id": self.user_id, "first_name": self.first_name, "username": self.username}


class UserRegistry:
    """Remembers authenticated Telegram users so they can be challenged and named."""

    def __init__(self, path: Path) -> None:
        self._store = JsonFileStore(path)
        self._users: Dict[int, KnownUser] = {}
        for entry in self._store.read().get("users", []):
            try:
                user = KnownUser(
                    user_id=int(entry["telegram_id"]),
                    first_name=str(entry.get("first_name") or ""),
                    username=str(entry.get("username") or ""),
                )
            except (KeyError, TypeError, ValueError) as exc:
                logger.error("Skipping stored user %s: %s", entry, exc)
                continue
            self._users[user.user_id] = user

    def remember(self, user: TelegramUser) -> KnownUser:
        known = KnownUser(user_id=user.id, first_name=user.first_name, username=user.username)
        if self._users.get(user.id) != known:
            self._users[user.id] = known
            self._persist()
        return known

    def get(self, user_id: int) -> Optional[KnownUser]:
        return self._users.get(user_id)

    def known(self) -> Dict[int, KnownUser]:
        return dict(self._users)

    def others(self, user_id: int) -> List[KnownUser]:
        """Everyone except ``user_id``, sorted by name."""

        users = [user for uid, user in self._users.items() if uid != user_id]
        return sorted(users, key=lambda user: (user.display_name.lower(), user.user_id))

    def reset(self) -> None:
        self._users.clear()
        self._store.clear()

    def _persist(self) -> None:
        try:
            self._store.write({"users": [user.to_dict() for user in self._users.values()]})
        except OSError as exc:
            logger.error("Failed to persist users: %s", exc)


USER_REGISTRY = UserRegistry(get_settings().users_state_path)


def get_user_registry() -> UserRegistry:
    return USER_REGISTRY


__all__ = ["KnownUser", "USER_REGISTRY", "UserRegistry", "get_user_registry"]
