"""Environment driven settings for the service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Tuple

BASE_DIR = Path(__file__).resolve().parents[1]


def _flag(value: str | None) -> bool:
    return (value or "0").strip().lower() in ("1", "true", "yes")


@dataclass(slots=True, frozen=True)
class Settings:
    telegram_bot_token: str
    debug: bool
    allowed_origins: Tuple[str, ...]
    autobus_state_path: Path
    duel_state_path: Path
    users_state_path: Path
    notify_debounce_seconds: float
    log_level: str


@lru_cache
def get_settings() -> Settings:
    """Read the environment once and cache the result."""

    return Settings(
        telegram_bot_token=os.environ.get("TELEGRAM_BOT_TOKEN", ""),
        debug=_flag(os.environ.get("DEBUG")),
        allowed_origins=tuple(
            origin.strip() for origin in os.environ.get("ALLOWED_ORIGINS", "*").split(",") if origin.strip()
        ),
        autobus_state_path=Path(
            os.environ.get("AUTOBUS_STATE_PATH", str(BASE_DIR / "autobus_game" / ".autobus_state.json"))
        ),
        duel_state_path=Path(os.environ.get("DUEL_STATE_PATH", str(BASE_DIR / "duel_game" / ".duel_state.json"))),
        users_state_path=Path(os.environ.get("USERS_STATE_PATH", str(BASE_DIR / "shared" / ".users.json"))),
        notify_debounce_seconds=float(os.environ.get("NOTIFY_DEBOUNCE_SECONDS", "3")),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )


__all__ = ["Settings", "get_settings"]
