"""HTTP endpoints the Kafanski Duel mini-app talks to."""

from __future__ import annotations

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from shared.auth import TelegramUser
from shared.errors import Failure
from shared.notifications import NotificationDispatcher
from shared.users import UserRegistry, get_user_registry
from shared.web import bad_request, current_user, dispatch, failure_response, get_notifier, read_json

from ..services import session
from ..services.views import build_active_view, build_state_view
from ..state.manager import DuelStateManager, get_state_manager

logger = logging.getLogger(__name__)

router = APIRouter()


def _store(
    result: Union[session.DuelTransition, Failure],
    manager: DuelStateManager,
    notifier: NotificationDispatcher,
) -> JSONResponse:
    if isinstance(result, Failure):
        return failure_response(result)
    if result.deleted:
        manager.delete_duel(result.duel.duel_id)
    else:
        manager.commit(result.duel, result.states, result.log)
    dispatch(notifier, result.notifications)
    return JSONResponse(result.payload)


@router.get("/api/duels")
async def duels_get(
    op: str = Query(default=""),
    duel_id: Optional[int] = Query(default=None, alias="id"),
    user: TelegramUser = Depends(current_user),
    manager: DuelStateManager = Depends(get_state_manager),
    registry: UserRegistry = Depends(get_user_registry),
) -> JSONResponse:
    if op == "active":
        return JSONResponse(build_active_view(manager, registry, user.id))
    if op != "state":
        return bad_request("Unknown op")
    if duel_id is None:
        return bad_request("Missing duel id")
    duel = manager.get_duel(duel_id)
    view = build_state_view(
        duel, manager.get_states(duel_id), manager.recent_log(duel_id), user.id, registry.known()
    )
    if isinstance(view, Failure):
        return failure_response(view)
    return JSONResponse(view)


@router.post("/api/duels")
async def duels_post(
    request: Request,
    op: str = Query(default=""),
    duel_id: Optional[int] = Query(default=None, alias="id"),
    user: TelegramUser = Depends(current_user),
    manager: DuelStateManager = Depends(get_state_manager),
    notifier: NotificationDispatcher = Depends(get_notifier),
    registry: UserRegistry = Depends(get_user_registry),
) -> JSONResponse:
    # No awaits between loading the duel and committing it.
    body = await read_json(request)
    if op == "create":
        try:
            opponent_id = int(body["opponent_id"])
        except (KeyError, TypeError, ValueError):
            return bad_request("Missing opponent_id")
        result = session.create_duel(
            manager.next_duel_id(),
            user.id,
            opponent_id,
            registry.known(),
            manager.open_duels_between(user.id, opponent_id),
        )
        return _store(result, manager, notifier)
    if op not in ("accept", "decline", "action"):
        return bad_request("Unknown op")
    if duel_id is None:
        return bad_request("Missing duel id")

    duel = manager.get_duel(duel_id)
    if op == "accept":
        result = session.accept_duel(duel, user.id)
    elif op == "decline":
        result = session.decline_duel(duel, user.id)
    else:
        result = session.apply_action(duel, manager.get_states(duel_id), user.id, str(body.get("action") or ""))
    if isinstance(result, Failure):
        logger.debug("Duel %s rejected %s from %s: %s", duel_id, op, user.id, result.reason)
    return _store(result, manager, notifier)
