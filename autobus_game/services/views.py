"""Read-only projections of an Autobus table for the mini-app."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence, Union

from shared import errors
from shared.errors import Failure

from ..cards import LAST_PYRAMID_INDEX, can_match, drink_value_for_index, pyramid_layout
from ..state.manager import AutobusStateManager
from ..state.models import PHASE_BUS, PHASE_PYRAMID, STATUS_LOBBY, AutobusGame, AutobusLogEntry, AutobusPlayer
from ..state.storage import serialize_game, serialize_log


def _player_summary(player: AutobusPlayer, game: AutobusGame) -> Dict[str, Any]:
    matching_open = game.current_phase == PHASE_PYRAMID and not game.matching_done
    return {
        "user_id": player.user_id,
        "username": player.username,
        "first_name": player.first_name,
        "hand_count": len(player.hand),
        "drinks_received": player.drinks_received,
        "turn_order": player.turn_order,
        "is_match_turn": matching_open and player.turn_order == game.match_turn_index,
        "passed_current": player.passed_current,
    }


def build_state_view(
    game: AutobusGame,
    players: Sequence[AutobusPlayer],
    log: Sequence[AutobusLogEntry],
    user_id: int,
) -> Union[Dict[str, Any], Failure]:
    """What ``user_id`` may see: face-down cards and other hands stay hidden."""

    me = next((p for p in players if p.user_id == user_id), None)
    if me is None and game.status != STATUS_LOBBY:
        return Failure(errors.NOT_IN_GAME, "Nisi ucesnik ove igre")

    pyramid = []
    for entry in pyramid_layout(game.pyramid_cards):
        pyramid.append(
            {
                "index": entry["index"],
                "row": entry["row"],
                "position": entry["position"],
                "drinkValue": entry["drinkValue"],
                "flipped": entry["flipped"],
                "rank": entry["rank"] if entry["flipped"] else None,
                "suit": entry["suit"] if entry["flipped"] else None,
            }
        )

    in_pyramid = game.current_phase == PHASE_PYRAMID
    flipped = game.current_card if in_pyramid else None
    current_flipped_card = None
    if flipped is not None:
        current_flipped_card = {
            "rank": flipped.rank,
            "suit": flipped.suit,
            "index": game.current_card_index,
            "drinkValue": drink_value_for_index(game.current_card_index),
        }

    is_my_match_turn = bool(
        in_pyramid
        and not game.matching_done
        and me is not None
        and me.turn_order == game.match_turn_index
        and game.current_card_index >= 0
    )
    matchable: List[Dict[str, str]] = []
    if flipped is not None and is_my_match_turn and not me.passed_current:
        matchable = [card.to_dict() for card in me.hand if can_match(card, flipped)]

    game_payload = serialize_game(game)
    for hidden in ("pyramid_cards", "deck"):
        game_payload.pop(hidden)
    game_payload["deck_count"] = len(game.deck)

    return {
        "game": game_payload,
        "players": [_player_summary(player, game) for player in players],
        "pyramid": pyramid,
        "my_hand": [card.to_dict() for card in me.hand] if me else [],
        "my_id": user_id,
        "current_flipped_card": current_flipped_card,
        "can_match": bool(matchable),
        "matchable_cards": matchable,
        "is_my_match_turn": is_my_match_turn,
        "needs_flip": in_pyramid
        and (game.current_card_index == -1 or game.matching_done)
        and game.current_card_index < LAST_PYRAMID_INDEX,
        "is_bus_player": game.current_phase == PHASE_BUS and game.bus_player_id == user_id,
        "recent_log": [serialize_log(entry) for entry in log],
    }


def _game_card(manager: AutobusStateManager, game: AutobusGame) -> Dict[str, Any]:
    payload = serialize_game(game)
    for hidden in ("pyramid_cards", "deck"):
        payload.pop(hidden)
    payload["players"] = [
        {
            "user_id": p.user_id,
            "username": p.username,
            "first_name": p.first_name,
            "turn_order": p.turn_order,
            "drinks_received": p.drinks_received,
            "hand_count": len(p.hand),
        }
        for p in manager.get_players(game.game_id)
    ]
    return payload


def build_lobby_view(manager: AutobusStateManager, user_id: int) -> Dict[str, Any]:
    """My running games, lobbies I could join and what I finished today."""

    return {
        "my_id": user_id,
        "my_games": [_game_card(manager, game) for game in manager.games_for_user(user_id)],
        "open_games": [_game_card(manager, game) for game in manager.open_lobbies(user_id)],
        "recent_finished": [_game_card(manager, game) for game in manager.recently_finished(user_id)],
    }


__all__ = ["build_lobby_view", "build_state_view"]
