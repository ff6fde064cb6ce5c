"""Pure state transitions for Autobus.

Every function takes the current game record and its players and returns
fresh objects; nothing passed in is mutated. Illegal moves come back as a
:class:`~shared.errors.Failure` instead of an exception.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple, Union

from shared import errors
from shared.errors import Failure

from .cards import (
    LAST_PYRAMID_INDEX,
    PYRAMID_SIZE,
    Card,
    PyramidCard,
    can_match,
    create_deck,
    drink_value_for_index,
)
from .state.models import (
    PHASE_BUS,
    PHASE_FINISHED,
    PHASE_PYRAMID,
    STATUS_ACTIVE,
    STATUS_FINISHED,
    AutobusGame,
    AutobusPlayer,
    utcnow,
)

logger = logging.getLogger(__name__)

HAND_SIZE = 5
BUS_LENGTH = 5
DECK_SIZE = 52
# 7 * 5 + 15 = 50 leaves two cards for the bus; eight players would need 55.
MAX_PLAYERS = (DECK_SIZE - PYRAMID_SIZE) // HAND_SIZE

GUESS_HIGHER = "higher"
GUESS_LOWER = "lower"
GUESSES = (GUESS_HIGHER, GUESS_LOWER)

RESULT_CORRECT = "correct"
RESULT_WRONG = "wrong"
RESULT_SAME = "same"


@dataclass(slots=True, frozen=True)
class Deal:
    hands: Dict[int, Tuple[Card, ...]]
    pyramid: Tuple[PyramidCard, ...]
    deck: Tuple[Card, ...]


@dataclass(slots=True)
class Step:
    """A legal move: the next game record and players plus what happened."""

    game: AutobusGame
    players: List[AutobusPlayer]
    card: Optional[Card] = None
    drink_value: int = 0
    bus_result: Optional[str] = None
    penalty_drinks: int = 0
    bus_started: bool = False
    bus_exited: bool = False

    @property
    def game_over(self) -> bool:
        return self.game.status == STATUS_FINISHED


Outcome = Union[Step, Failure]


def deal_game(player_ids: Sequence[int], rng: Optional[random.Random] = None) -> Union[Deal, Failure]:
    """Shuffle a deck, deal hands in ``player_ids`` order, then the pyramid."""

    if len(player_ids) < 1:
        return Failure(errors.NOT_ENOUGH_PLAYERS, "Potrebno je bar 1 igrac")
    if len(player_ids) * HAND_SIZE + PYRAMID_SIZE > DECK_SIZE:
        return Failure(errors.NOT_ENOUGH_CARDS, f"Spil je dovoljan za najvise {MAX_PLAYERS} igraca")
    deck = create_deck(rng)
    hands: Dict[int, Tuple[Card, ...]] = {}
    position = 0
    for player_id in player_ids:
        hands[player_id] = tuple(deck[position : position + HAND_SIZE])
        position += HAND_SIZE
    pyramid = tuple(
        PyramidCard(rank=card.rank, suit=card.suit, index=index)
        for index, card in enumerate(deck[position : position + PYRAMID_SIZE])
    )
    return Deal(hands=hands, pyramid=pyramid, deck=tuple(deck[position + PYRAMID_SIZE :]))


def _require_phase(game: AutobusGame, phase: str) -> Optional[Failure]:
    if game.status != STATUS_ACTIVE:
        return Failure(errors.GAME_NOT_ACTIVE, "Igra nije aktivna")
    if game.current_phase != phase:
        return Failure(errors.WRONG_PHASE, f"Nije {phase} faza")
    return None


def flip_card(game: AutobusGame, players: Sequence[AutobusPlayer]) -> Outcome:
    """Turn over the next pyramid card and reopen matching for everyone."""

    failure = _require_phase(game, PHASE_PYRAMID)
    if failure:
        return failure
    if game.current_card_index >= 0 and not game.matching_done:
        return Failure(errors.MATCHING_NOT_DONE, "Matching jos nije zavrsen za trenutnu kartu")
    next_index = game.current_card_index + 1
    if next_index >= PYRAMID_SIZE:
        return Failure(errors.ALL_CARDS_FLIPPED, "Sve karte su vec okrenute")

    pyramid = list(game.pyramid_cards)
    pyramid[next_index] = replace(pyramid[next_index], flipped=True)
    next_game = replace(
        game,
        pyramid_cards=tuple(pyramid),
        current_card_index=next_index,
        match_turn_index=0,
        matching_done=False,
    )
    next_players = [replace(player, passed_current=False) for player in players]
    return Step(
        game=next_game,
        players=next_players,
        card=pyramid[next_index].card,
        drink_value=drink_value_for_index(next_index),
    )


def _matching_actor(
    game: AutobusGame, players: Sequence[AutobusPlayer], actor_id: int
) -> Union[AutobusPlayer, Failure]:
    failure = _require_phase(game, PHASE_PYRAMID)
    if failure:
        return failure
    if game.matching_done:
        return Failure(errors.MATCHING_CLOSED, "Matching je zavrsen za ovu kartu")
    if game.current_card is None:
        return Failure(errors.NO_CARD_FLIPPED, "Nijedna karta nije okrenuta")
    actor = next((player for player in players if player.user_id == actor_id), None)
    if actor is None:
        return Failure(errors.NOT_IN_GAME, "Nisi u igri")
    if actor.turn_order != game.match_turn_index:
        return Failure(errors.NOT_YOUR_TURN, "Nije tvoj red za matching")
    return actor


def match_card(
    game: AutobusGame,
    players: Sequence[AutobusPlayer],
    actor_id: int,
    card: Card,
    target_id: int,
) -> Outcome:
    """Discard ``card`` onto the flipped card and hand its drinks to ``target_id``."""

    actor = _matching_actor(game, players, actor_id)
    if isinstance(actor, Failure):
        return actor
    flipped = game.current_card
    if card not in actor.hand:
        return Failure(errors.CARD_NOT_IN_HAND, "Nemas tu kartu u ruci")
    if not can_match(card, flipped):
        return Failure(errors.CARD_DOES_NOT_MATCH, "Karta se ne poklapa sa otvorenom kartom")
    if not any(player.user_id == target_id for player in players):
        return Failure(errors.TARGET_NOT_IN_GAME, "Ciljani igrac nije u igri")

    hand = list(actor.hand)
    hand.remove(card)
    value = drink_value_for_index(game.current_card_index)
    next_players = []
    for player in players:
        if player.user_id == actor_id:
            player = replace(player, hand=tuple(hand), passed_current=True)
        if player.user_id == target_id:
            player = replace(player, drinks_received=player.drinks_received + value)
        next_players.append(player)
    step = _advance_match_turn(game, next_players)
    step.card = card
    step.drink_value = value
    return step


def pass_turn(game: AutobusGame, players: Sequence[AutobusPlayer], actor_id: int) -> Outcome:
    """Decline to match the current card."""

    actor = _matching_actor(game, players, actor_id)
    if isinstance(actor, Failure):
        return actor
    next_players = [
        replace(player, passed_current=True) if player.user_id == actor_id else player for player in players
    ]
    return _advance_match_turn(game, next_players)


def _advance_match_turn(game: AutobusGame, players: List[AutobusPlayer]) -> Step:
    next_turn = game.match_turn_index + 1
    if next_turn < len(players):
        return Step(game=replace(game, match_turn_index=next_turn), players=players)
    closed = replace(game, match_turn_index=next_turn, matching_done=True)
    next_game = start_bus_phase(closed, players)
    return Step(game=next_game, players=players, bus_started=next_game.current_phase == PHASE_BUS)


def determine_bus_players(players: Sequence[AutobusPlayer]) -> List[AutobusPlayer]:
    """Players still holding the most cards, in turn order; empty if nobody holds any."""

    most = max((len(player.hand) for player in players), default=0)
    if most == 0:
        return []
    return sorted((p for p in players if len(p.hand) == most), key=lambda p: p.turn_order)


def start_bus_phase(
    game: AutobusGame, players: Sequence[AutobusPlayer], *, now: Optional[datetime] = None
) -> AutobusGame:
    """Leave the pyramid once the last card has been fully played."""

    if game.current_card_index < LAST_PYRAMID_INDEX or not game.matching_done:
        return game
    riders = determine_bus_players(players)
    if not riders:
        logger.info("Autobus %s finished without a bus: every hand is empty", game.game_id)
        return finish_game(game, now=now)
    if not game.deck:
        logger.warning("Autobus %s has no cards left for the bus", game.game_id)
        return finish_game(game, now=now)
    first_card, *rest = game.deck
    return replace(
        game,
        current_phase=PHASE_BUS,
        bus_player_id=riders[0].user_id,
        bus_progress=0,
        bus_current_card=first_card,
        deck=tuple(rest),
        bus_player_queue=tuple(player.user_id for player in riders),
        bus_queue_index=0,
    )


def finish_game(game: AutobusGame, *, now: Optional[datetime] = None, **changes) -> AutobusGame:
    return replace(
        game,
        status=STATUS_FINISHED,
        current_phase=PHASE_FINISHED,
        finished_at=now or utcnow(),
        **changes,
    )


def check_bus_guess(current_card: Card, new_card: Card, guess: str) -> str:
    current_value = current_card.value
    new_value = new_card.value
    if current_value == new_value:
        return RESULT_SAME
    if guess == GUESS_HIGHER and new_value > current_value:
        return RESULT_CORRECT
    if guess == GUESS_LOWER and new_value < current_value:
        return RESULT_CORRECT
    return RESULT_WRONG


def bus_penalty(progress: int) -> int:
    return max(progress, 1)


def bus_guess(
    game: AutobusGame,
    players: Sequence[AutobusPlayer],
    actor_id: int,
    guess: str,
    *,
    now: Optional[datetime] = None,
) -> Outcome:
    """Resolve one higher/lower guess for the player riding the bus."""

    if guess not in GUESSES:
        return Failure(errors.INVALID_GUESS, "Guess mora biti 'higher' ili 'lower'")
    failure = _require_phase(game, PHASE_BUS)
    if failure:
        return failure
    if game.bus_player_id != actor_id:
        return Failure(errors.NOT_BUS_PLAYER, "Nisi u autobusu")
    if game.bus_current_card is None or not game.deck:
        return Failure(errors.DECK_EXHAUSTED, "Nema vise karata u spilu")

    new_card, *deck = game.deck
    result = check_bus_guess(game.bus_current_card, new_card, guess)
    progress = game.bus_progress
    penalty = 0
    next_players = list(players)
    if result == RESULT_CORRECT:
        progress += 1
    else:
        penalty = bus_penalty(progress)
        progress = 0
        next_players = [
            replace(p, drinks_received=p.drinks_received + penalty) if p.user_id == actor_id else p
            for p in players
        ]

    if progress < BUS_LENGTH:
        next_game = replace(game, bus_progress=progress, bus_current_card=new_card, deck=tuple(deck))
        return Step(
            game=next_game, players=next_players, card=new_card, bus_result=result, penalty_drinks=penalty
        )

    next_index = game.bus_queue_index + 1
    if next_index < len(game.bus_player_queue):
        # An empty pile hands the next rider the card that was just revealed.
        next_card = deck.pop(0) if deck else new_card
        next_game = replace(
            game,
            bus_progress=0,
            bus_current_card=next_card,
            bus_player_id=game.bus_player_queue[next_index],
            bus_queue_index=next_index,
            deck=tuple(deck),
        )
    else:
        next_game = finish_game(
            game, now=now, bus_progress=progress, bus_current_card=new_card, deck=tuple(deck)
        )
    return Step(
        game=next_game,
        players=next_players,
        card=new_card,
        bus_result=result,
        penalty_drinks=penalty,
        bus_exited=True,
    )


__all__ = [
    "BUS_LENGTH",
    "Deal",
    "GUESSES",
    "HAND_SIZE",
    "MAX_PLAYERS",
    "Step",
    "bus_guess",
    "bus_penalty",
    "check_bus_guess",
    "deal_game",
    "determine_bus_players",
    "finish_game",
    "flip_card",
    "match_card",
    "pass_turn",
    "start_bus_phase",
]
