"""FastAPI glue shared by the game routers."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, Optional, Tuple

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse

from . import errors
from .auth import TelegramUser, verify_init_data
from .config import get_settings
from .errors import AuthenticationError, Failure, NotFoundError
from .notifications import NotificationDispatcher
from .users import UserRegistry, get_user_registry

logger = logging.getLogger(__name__)

NOTIFIER = NotificationDispatcher(delay=get_settings().notify_debounce_seconds)

_STATUS_BY_REASON = {
    errors.UNAUTHORIZED: 401,
    errors.NOT_IN_GAME: 403,
    errors.NOT_CREATOR: 403,
    errors.NOT_FOUND: 404,
}


def get_notifier() -> NotificationDispatcher:
    return NOTIFIER


def current_user(
    x_telegram_init_data: Optional[str] = Header(default=None),
    registry: UserRegistry = Depends(get_user_registry),
) -> TelegramUser:
    """Resolve the caller from the mini-app's signed initData header and remember them."""

    user = verify_init_data(x_telegram_init_data)
    registry.remember(user)
    return user


def failure_response(failure: Failure) -> JSONResponse:
    status = _STATUS_BY_REASON.get(failure.reason, 400)
    return JSONResponse({"error": failure.reason, "message": failure.message}, status_code=status)


def bad_request(message: str) -> JSONResponse:
    return failure_response(Failure(errors.BAD_REQUEST, message))


async def read_json(request: Request) -> Dict[str, Any]:
    raw = await request.body()
    if not raw:
        return {}
    try:
        payload = json.loads(raw)
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def dispatch(notifier: NotificationDispatcher, notifications: Iterable[Tuple[int, str]]) -> None:
    """Queue pings after the state has been stored; never raises."""

    for user_id, text in notifications:
        try:
            notifier.notify(user_id, text)
        except Exception:  # pragma: no cover
            logger.exception("Failed to queue notification for %s", user_id)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthenticationError)
    async def _unauthorized(request: Request, exc: AuthenticationError) -> JSONResponse:
        logger.info("Rejected request to %s: %s", request.url.path, exc)
        return JSONResponse({"error": errors.UNAUTHORIZED, "message": str(exc)}, status_code=401)

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse({"error": errors.NOT_FOUND, "message": str(exc)}, status_code=404)


__all__ = [
    "NOTIFIER",
    "bad_request",
    "current_user",
    "dispatch",
    "failure_response",
    "get_notifier",
    "read_json",
    "register_error_handlers",
]
