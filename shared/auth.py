"""
Telegram Web App initData verification.
https://core.telegram.org/bots/webapps#validating-data-received-via-the-mini-app
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import parse_qsl

from .config import get_settings
from .errors import AuthenticationError

logger = logging.getLogger(__name__)

INIT_DATA_HEADER = "x-telegram-init-data"


@dataclass(slots=True, frozen=True)
class TelegramUser:
    id: int
    first_name: str = ""
    last_name: str = ""
    username: str = ""

    @property
    def display_name(self) -> str:
        return self.first_name or self.username or "Klovn"


def sign_init_data(fields: Dict[str, str], token: str) -> str:
    """Build the hash Telegram attaches to ``fields`` for the bot ``token``."""

    data_check_string = "\n".join(f"{k}={v}" for k, v in sorted(fields.items()))
    secret_key = hmac.new(b"WebAppData", token.encode(), hashlib.sha256).digest()
    return hmac.new(secret_key, data_check_string.encode(), hashlib.sha256).hexdigest()


def verify_init_data(init_data: Optional[str], *, token: Optional[str] = None) -> TelegramUser:
    """Check the initData signature and return the Telegram user it describes.

    Raises :class:`AuthenticationError` when the blob is absent, cannot be
    parsed or was not signed with the bot token.
    """

    if not init_data:
        raise AuthenticationError("Missing auth header")
    settings = get_settings()
    token = settings.telegram_bot_token if token is None else token
    try:
        parsed = dict(parse_qsl(init_data, strict_parsing=True))
    except ValueError as exc:
        raise AuthenticationError("Invalid init data") from exc

    if not token:
        if settings.debug:
            # Local development without a bot token: trust the payload.
            logger.warning("Accepting unsigned initData because DEBUG is enabled")
            return _parse_user(parsed)
        raise AuthenticationError("Bot token is not configured")

    hash_from_tg = parsed.pop("hash", None)
    if not hash_from_tg:
        raise AuthenticationError("Invalid init data")
    if not hmac.compare_digest(sign_init_data(parsed, token), hash_from_tg):
        raise AuthenticationError("Invalid init data")
    return _parse_user(parsed)


def verify(init_data: Optional[str]) -> int:
    """Map a signed credential blob to a stable numeric user id."""

    return verify_init_data(init_data).id


def _parse_user(parsed: Dict[str, str]) -> TelegramUser:
    user_str = parsed.get("user")
    if not user_str:
        raise AuthenticationError("Invalid init data")
    try:
        user = json.loads(user_str)
        return TelegramUser(
            id=int(user["id"]),
            first_name=user.get("first_name") or "",
            last_name=user.get("last_name") or "",
            username=user.get("username") or "",
        )
    except (json.JSONDecodeError, TypeError, KeyError, ValueError, AttributeError) as exc:
        raise AuthenticationError("Invalid init data") from exc


__all__ = ["INIT_DATA_HEADER", "TelegramUser", "sign_init_data", "verify", "verify_init_data"]
