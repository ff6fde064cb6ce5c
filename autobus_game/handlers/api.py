"""HTTP endpoints the Autobus mini-app talks to."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from shared.auth import TelegramUser
from shared.errors import Failure
from shared.notifications import NotificationDispatcher
from shared.web import bad_request, current_user, dispatch, failure_response, get_notifier, read_json

from ..cards import Card
from ..services import session
from ..services.views import build_lobby_view, build_state_view
from ..state.manager import AutobusStateManager, get_state_manager

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_action(op: str, body: Dict[str, Any]) -> Union[session.PlayerAction, JSONResponse]:
    if op == "flip":
        return session.Flip()
    if op == "pass":
        return session.Pass()
    if op == "match":
        card = body.get("card")
        target = body.get("target_user_id")
        if not isinstance(card, dict) or target is None:
            return bad_request("Missing card or target_user_id")
        try:
            return session.Match(card=Card.from_dict(card), target_user_id=int(target))
        except (KeyError, TypeError, ValueError):
            return bad_request("Malformed card or target_user_id")
    if op == "bus_guess":
        return session.BusGuess(guess=str(body.get("guess") or ""))
    return bad_request("Unknown op")


def _store(
    result: Union[session.Transition, Failure],
    manager: AutobusStateManager,
    notifier: NotificationDispatcher,
) -> JSONResponse:
    if isinstance(result, Failure):
        return failure_response(result)
    manager.commit(result.game, result.players, result.log)
    dispatch(notifier, result.notifications)
    return JSONResponse(result.payload)


@router.get("/api/autobus")
async def autobus_get(
    op: str = Query(default=""),
    game_id: Optional[int] = Query(default=None, alias="id"),
    user: TelegramUser = Depends(current_user),
    manager: AutobusStateManager = Depends(get_state_manager),
) -> JSONResponse:
    if op == "lobby":
        return JSONResponse(build_lobby_view(manager, user.id))
    if op != "state":
        return bad_request("Unknown op")
    if game_id is None:
        return bad_request("Missing game id")
    game = manager.get_game(game_id)
    view = build_state_view(game, manager.get_players(game_id), manager.recent_log(game_id), user.id)
    if isinstance(view, Failure):
        return failure_response(view)
    return JSONResponse(view)


@router.post("/api/autobus")
async def autobus_post(
    request: Request,
    op: str = Query(default=""),
    game_id: Optional[int] = Query(default=None, alias="id"),
    user: TelegramUser = Depends(current_user),
    manager: AutobusStateManager = Depends(get_state_manager),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> JSONResponse:
    # No awaits between loading the table and committing it.
    body = await read_json(request)
    if op == "create":
        created = session.create_game(
            manager.next_game_id(), user.id, username=user.username, first_name=user.first_name
        )
        logger.info("User %s created Autobus game %s", user.id, created.game.game_id)
        return _store(created, manager, notifier)
    if op not in ("join", "start", "flip", "match", "pass", "bus_guess"):
        return bad_request("Unknown op")
    if game_id is None:
        return bad_request("Missing game id")

    game = manager.get_game(game_id)
    players = manager.get_players(game_id)
    if op == "join":
        result = session.join_game(game, players, user.id, username=user.username, first_name=user.first_name)
    elif op == "start":
        result = session.start_game(game, players, user.id)
    else:
        action = _parse_action(op, body)
        if isinstance(action, JSONResponse):
            return action
        result = session.apply_action(game, players, user.id, action)
    if isinstance(result, Failure):
        logger.debug("Autobus %s rejected %s from %s: %s", game_id, op, user.id, result.reason)
    return _store(result, manager, notifier)
