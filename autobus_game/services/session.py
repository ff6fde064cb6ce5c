"""Autobus session reducer.

``apply_action(game, players, user_id, action)`` turns a persisted snapshot
and one player request into either a :class:`Transition` to store or a
:class:`~shared.errors.Failure` to report. The lobby helpers follow the
same contract.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from shared import errors
from shared.errors import Failure

from .. import engine
from ..cards import Card, format_card
from ..state.models import (
    PHASE_LOBBY,
    PHASE_PYRAMID,
    STATUS_ACTIVE,
    STATUS_LOBBY,
    AutobusGame,
    AutobusLogEntry,
    AutobusPlayer,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Flip:
    kind = "flip"


@dataclass(slots=True, frozen=True)
class Match:
    card: Card
    target_user_id: int
    kind = "match"


@dataclass(slots=True, frozen=True)
class Pass:
    kind = "pass"


@dataclass(slots=True, frozen=True)
class BusGuess:
    guess: str
    kind = "bus_guess"


PlayerAction = Union[Flip, Match, Pass, BusGuess]


@dataclass(slots=True)
class Transition:
    """Everything one accepted request changes, plus what to tell people."""

    game: AutobusGame
    players: List[AutobusPlayer]
    log: List[AutobusLogEntry] = field(default_factory=list)
    notifications: List[Tuple[int, str]] = field(default_factory=list)
    payload: Dict[str, Any] = field(default_factory=lambda: {"ok": True})


Result = Union[Transition, Failure]


def _find(players: Sequence[AutobusPlayer], user_id: Optional[int]) -> Optional[AutobusPlayer]:
    return next((player for player in players if player.user_id == user_id), None)


def _name(players: Sequence[AutobusPlayer], user_id: Optional[int]) -> str:
    player = _find(players, user_id)
    return player.display_name if player else "Klovn"


# Lobby ---------------------------------------------------------------
def create_game(game_id: int, user_id: int, *, username: str = "", first_name: str = "") -> Transition:
    game = AutobusGame(game_id=game_id, created_by=user_id)
    host = AutobusPlayer(game_id=game_id, user_id=user_id, turn_order=0, username=username, first_name=first_name)
    return Transition(game=game, players=[host], payload={"ok": True, "game_id": game_id})


def join_game(
    game: AutobusGame,
    players: Sequence[AutobusPlayer],
    user_id: int,
    *,
    username: str = "",
    first_name: str = "",
) -> Result:
    if game.status != STATUS_LOBBY:
        return Failure(errors.NOT_FOUND, "Igra nije pronadjena ili vec pocela")
    if _find(players, user_id):
        return Failure(errors.ALREADY_JOINED, "Vec si u igri")
    if len(players) >= engine.MAX_PLAYERS:
        return Failure(errors.GAME_FULL, f"Igra je puna (max {engine.MAX_PLAYERS} igraca)")
    seat = AutobusPlayer(
        game_id=game.game_id,
        user_id=user_id,
        turn_order=len(players),
        username=username,
        first_name=first_name,
    )
    notifications = [(game.created_by, f"{seat.display_name} se pridruzio tvojoj Autobus igri")]
    return Transition(game=game, players=[*players, seat], notifications=notifications)


def start_game(
    game: AutobusGame,
    players: Sequence[AutobusPlayer],
    user_id: int,
    rng: Optional[random.Random] = None,
) -> Result:
    if game.status != STATUS_LOBBY or game.current_phase != PHASE_LOBBY:
        return Failure(errors.NOT_FOUND, "Igra nije pronadjena ili vec pocela")
    if game.created_by != user_id:
        return Failure(errors.NOT_CREATOR, "Samo kreator moze da pokrene igru")
    ordered_players = sorted(players, key=lambda p: p.turn_order)
    deal = engine.deal_game([p.user_id for p in ordered_players], rng)
    if isinstance(deal, Failure):
        return deal
    next_game = replace(
        game,
        status=STATUS_ACTIVE,
        current_phase=PHASE_PYRAMID,
        pyramid_cards=deal.pyramid,
        deck=deal.deck,
        current_card_index=-1,
        match_turn_index=0,
        matching_done=False,
    )
    next_players = [replace(p, hand=deal.hands[p.user_id], passed_current=False) for p in ordered_players]
    logger.info("Autobus %s started with %d players", game.game_id, len(next_players))
    return Transition(
        game=next_game,
        players=next_players,
        notifications=[(p.user_id, "Autobus je poceo! 🚌") for p in next_players if p.user_id != user_id],
    )


# Table ---------------------------------------------------------------
def apply_action(
    game: AutobusGame,
    players: Sequence[AutobusPlayer],
    user_id: int,
    action: PlayerAction,
    *,
    now: Optional[datetime] = None,
) -> Result:
    """Validate ``action`` for ``user_id`` and compute the next table state."""

    if _find(players, user_id) is None:
        return Failure(errors.NOT_IN_GAME, "Nisi u igri")
    if isinstance(action, Flip):
        return _flip(game, players, user_id)
    if isinstance(action, Match):
        return _match(game, players, user_id, action)
    if isinstance(action, Pass):
        return _pass(game, players, user_id)
    if isinstance(action, BusGuess):
        return _bus_guess(game, players, user_id, action, now)
    return Failure(errors.BAD_REQUEST, f"Nepoznata akcija {action!r}")


def _flip(game: AutobusGame, players: Sequence[AutobusPlayer], user_id: int) -> Result:
    step = engine.flip_card(game, players)
    if isinstance(step, Failure):
        return step
    flipped = step.game.pyramid_cards[step.game.current_card_index]
    entry = AutobusLogEntry(
        game_id=game.game_id,
        user_id=user_id,
        action_type="flip_card",
        card_data=step.card,
        flavor_text=f"Okrenuta karta: {format_card(step.card)} ({step.drink_value} cugova)",
    )
    transition = Transition(
        game=step.game,
        players=step.players,
        log=[entry],
        payload={"ok": True, "card": flipped.to_dict(), "drink_value": step.drink_value},
    )
    _announce_match_turn(transition)
    return transition


def _match(game: AutobusGame, players: Sequence[AutobusPlayer], user_id: int, action: Match) -> Result:
    step = engine.match_card(game, players, user_id, action.card, action.target_user_id)
    if isinstance(step, Failure):
        return step
    actor = _find(step.players, user_id)
    target_name = _name(players, action.target_user_id)
    entry = AutobusLogEntry(
        game_id=game.game_id,
        user_id=user_id,
        action_type="match_card",
        matched_card=action.card,
        target_user_id=action.target_user_id,
        drinks_given=step.drink_value,
        flavor_text=(
            f"{actor.display_name} match-ovao {format_card(action.card)} "
            f"i dao {step.drink_value} cug(ova) igracu {target_name}!"
        ),
    )
    transition = Transition(
        game=step.game,
        players=step.players,
        log=[entry],
        payload={"ok": True, "drinks_given": step.drink_value, "cards_left": len(actor.hand)},
    )
    if action.target_user_id != user_id:
        transition.notifications.append(
            (action.target_user_id, f"{actor.display_name} ti je dao {step.drink_value} cug(ova) 🍺")
        )
    _after_matching_turn(transition, step)
    return transition


def _pass(game: AutobusGame, players: Sequence[AutobusPlayer], user_id: int) -> Result:
    step = engine.pass_turn(game, players, user_id)
    if isinstance(step, Failure):
        return step
    transition = Transition(game=step.game, players=step.players)
    _after_matching_turn(transition, step)
    return transition


def _after_matching_turn(transition: Transition, step: engine.Step) -> None:
    game = transition.game
    if step.bus_started:
        riders = [_name(transition.players, uid) for uid in game.bus_player_queue]
        if len(riders) > 1:
            text = f"Vise igraca ide u autobus: {', '.join(riders)}! Prvo {riders[0]}!"
        else:
            text = f"{riders[0]} ide u autobus! 🚌"
        transition.log.append(
            AutobusLogEntry(game_id=game.game_id, user_id=game.bus_player_id, action_type="bus_start", flavor_text=text)
        )
        transition.notifications.append((game.bus_player_id, "Ti si u autobusu! Pogadjaj veca ili manja."))
    elif step.game_over:
        transition.log.append(
            AutobusLogEntry(
                game_id=game.game_id, user_id=None, action_type="game_finished", flavor_text="Igra zavrsena bez autobusa!"
            )
        )
        transition.notifications.extend((p.user_id, "Autobus je zavrsen!") for p in transition.players)
    elif game.matching_done:
        ready = "Sledeca karta u piramidi je spremna za okretanje"
        transition.notifications.extend((p.user_id, ready) for p in transition.players)
    else:
        _announce_match_turn(transition)


def _announce_match_turn(transition: Transition) -> None:
    game = transition.game
    player = next((p for p in transition.players if p.turn_order == game.match_turn_index), None)
    if player is not None:
        transition.notifications.append((player.user_id, "Tvoj red: matchuj ili preskoci"))


def _bus_guess(
    game: AutobusGame,
    players: Sequence[AutobusPlayer],
    user_id: int,
    action: BusGuess,
    now: Optional[datetime],
) -> Result:
    previous_card = game.bus_current_card
    step = engine.bus_guess(game, players, user_id, action.guess, now=now)
    if isinstance(step, Failure):
        return step
    name = _name(players, user_id)
    shown = f"{format_card(previous_card)} → {format_card(step.card)}"
    if step.bus_result == engine.RESULT_CORRECT:
        direction = "Veca" if action.guess == engine.GUESS_HIGHER else "Manja"
        progress = game.bus_progress + 1
        flavor = f"{name} pogodio! {shown} ({direction}) ✅ {progress}/{engine.BUS_LENGTH}"
    else:
        miss = "ISTA KARTA!" if step.bus_result == engine.RESULT_SAME else "PROMASAJ!"
        flavor = f"{name}: {shown} {miss} 💀 Pije {step.penalty_drinks} cug(ova)! Reset!"
    transition = Transition(
        game=step.game,
        players=step.players,
        log=[
            AutobusLogEntry(
                game_id=game.game_id,
                user_id=user_id,
                action_type="bus_guess",
                card_data=step.card,
                bus_guess=action.guess,
                bus_result=step.bus_result,
                drinks_given=step.penalty_drinks,
                flavor_text=flavor,
            )
        ],
        payload={
            "ok": True,
            "result": step.bus_result,
            "new_card": step.card.to_dict(),
            "bus_progress": step.game.bus_progress,
            "penalty_drinks": step.penalty_drinks,
            "game_over": step.game_over,
            "flavor_text": flavor,
        },
    )
    if step.game_over:
        transition.log.append(
            AutobusLogEntry(
                game_id=game.game_id,
                user_id=user_id,
                action_type="game_finished",
                flavor_text=f"{name} izasao iz autobusa! Igra zavrsena! 🎉🚌",
            )
        )
        transition.notifications.extend((p.user_id, "Autobus je zavrsen!") for p in step.players if p.user_id != user_id)
    elif step.bus_exited:
        next_rider = step.game.bus_player_id
        transition.log.append(
            AutobusLogEntry(
                game_id=game.game_id, user_id=user_id, action_type="bus_exit", flavor_text=f"{name} izasao iz autobusa! 🎉"
            )
        )
        transition.payload["flavor_text"] = f"{name} izasao iz autobusa! Sledeci igrac ulazi..."
        transition.payload["next_bus_player"] = next_rider
        transition.notifications.append((next_rider, "Ti si u autobusu! Pogadjaj veca ili manja."))
    return transition


__all__ = [
    "BusGuess",
    "Flip",
    "Match",
    "Pass",
    "PlayerAction",
    "Transition",
    "apply_action",
    "create_game",
    "join_game",
    "start_game",
]
