"""Tests for the pure Autobus transitions."""

from __future__ import annotations

import random
from dataclasses import replace
from typing import List, Optional, Sequence

import pytest

from autobus_game import engine
from autobus_game.cards import Card, PyramidCard, fresh_deck
from autobus_game.state.models import (
    PHASE_BUS,
    PHASE_FINISHED,
    PHASE_PYRAMID,
    STATUS_ACTIVE,
    STATUS_FINISHED,
    AutobusGame,
    AutobusPlayer,
)
from shared import errors
from shared.errors import Failure


def _pyramid(ranks: Optional[Sequence[str]] = None, flipped_through: int = -1) -> tuple:
    ranks = list(ranks or ["2"] * 15)
    return tuple(
        PyramidCard(rank=rank, suit="♠️", index=index, flipped=index <= flipped_through)
        for index, rank in enumerate(ranks)
    )


def _game(**overrides) -> AutobusGame:
    defaults = dict(
        game_id=1,
        created_by=10,
        status=STATUS_ACTIVE,
        current_phase=PHASE_PYRAMID,
        pyramid_cards=_pyramid(),
    )
    defaults.update(overrides)
    return AutobusGame(**defaults)


def _players(*hands: Sequence[Card]) -> List[AutobusPlayer]:
    return [
        AutobusPlayer(game_id=1, user_id=10 * (order + 1), turn_order=order, first_name=f"P{order}", hand=tuple(hand))
        for order, hand in enumerate(hands)
    ]


def _bus_game(current: Card, deck: Sequence[Card], *, progress: int = 0, queue=(10,), **overrides) -> AutobusGame:
    return _game(
        current_phase=PHASE_BUS,
        pyramid_cards=_pyramid(flipped_through=14),
        current_card_index=14,
        matching_done=True,
        bus_player_id=queue[0],
        bus_player_queue=tuple(queue),
        bus_current_card=current,
        bus_progress=progress,
        deck=tuple(deck),
        **overrides,
    )


# Dealing ---------------------------------------------------------------------
def test_deal_game_for_two_players_leaves_27_card_draw_pile() -> None:
    deal = engine.deal_game([10, 20], random.Random(3))

    assert [len(hand) for hand in deal.hands.values()] == [5, 5]
    assert len(deal.pyramid) == 15
    assert len(deal.deck) == 27
    assert [card.index for card in deal.pyramid] == list(range(15))
    assert not any(card.flipped for card in deal.pyramid)


@pytest.mark.parametrize("count", [1, 4, 7])
def test_deal_game_partitions_the_deck(count: int) -> None:
    deal = engine.deal_game(list(range(count)), random.Random(count))

    dealt = [card for hand in deal.hands.values() for card in hand]
    dealt += [card.card for card in deal.pyramid]
    dealt += list(deal.deck)
    assert len(dealt) == 52
    assert set(dealt) == set(fresh_deck())


def test_deal_game_consumes_hands_in_player_order_then_pyramid() -> None:
    class Identity(random.Random):
        def randint(self, a: int, b: int) -> int:
            return b

    deal = engine.deal_game([20, 10], Identity())
    ordered_deck = fresh_deck()

    assert deal.hands[20] == tuple(ordered_deck[0:5])
    assert deal.hands[10] == tuple(ordered_deck[5:10])
    assert deal.pyramid[0].card == ordered_deck[10]
    assert deal.deck[0] == ordered_deck[25]


def test_deal_game_rejects_empty_and_oversized_tables() -> None:
    empty = engine.deal_game([])
    crowded = engine.deal_game(list(range(engine.MAX_PLAYERS + 1)))

    assert isinstance(empty, Failure) and empty.reason == errors.NOT_ENOUGH_PLAYERS
    assert isinstance(crowded, Failure) and crowded.reason == errors.NOT_ENOUGH_CARDS
    assert engine.MAX_PLAYERS == 7


# Flipping --------------------------------------------------------------------
def test_first_flip_opens_matching_on_position_zero() -> None:
    game = _game()
    players = [replace(p, passed_current=True) for p in _players([], [])]

    step = engine.flip_card(game, players)

    assert step.game.current_card_index == 0
    assert step.game.pyramid_cards[0].flipped
    assert step.drink_value == 1
    assert step.game.match_turn_index == 0
    assert not step.game.matching_done
    assert not any(p.passed_current for p in step.players)
    # inputs untouched
    assert game.current_card_index == -1
    assert not game.pyramid_cards[0].flipped
    assert all(p.passed_current for p in players)


def test_flip_requires_matching_to_finish_first() -> None:
    game = _game(pyramid_cards=_pyramid(flipped_through=0), current_card_index=0)

    result = engine.flip_card(game, _players([]))

    assert isinstance(result, Failure)
    assert result.reason == errors.MATCHING_NOT_DONE


def test_flip_after_last_card_is_rejected() -> None:
    game = _game(pyramid_cards=_pyramid(flipped_through=14), current_card_index=14, matching_done=True)

    result = engine.flip_card(game, _players([]))

    assert result.reason == errors.ALL_CARDS_FLIPPED


def test_flip_outside_pyramid_phase_is_rejected() -> None:
    lobby = _game(status="lobby", current_phase="lobby")
    bus = _bus_game(Card("7", "♠️"), [Card("8", "♠️")])

    assert engine.flip_card(lobby, []).reason == errors.GAME_NOT_ACTIVE
    assert engine.flip_card(bus, []).reason == errors.WRONG_PHASE


def test_top_card_is_worth_five_drinks() -> None:
    game = _game(pyramid_cards=_pyramid(flipped_through=13), current_card_index=13, matching_done=True)

    step = engine.flip_card(game, _players([]))

    assert step.game.current_card_index == 14
    assert step.drink_value == 5


# Matching --------------------------------------------------------------------
def _open_card(rank: str = "7", index: int = 0, **overrides) -> AutobusGame:
    ranks = ["2"] * 15
    ranks[index] = rank
    return _game(pyramid_cards=_pyramid(ranks, flipped_through=index), current_card_index=index, **overrides)


def test_match_moves_drinks_to_target_and_advances_turn() -> None:
    seven = Card("7", "♥️")
    players = _players([seven, Card("3", "♣️")], [Card("9", "♦️")])

    step = engine.match_card(_open_card("7"), players, 10, seven, 20)

    actor, target = step.players
    assert actor.hand == (Card("3", "♣️"),)
    assert actor.passed_current
    assert target.drinks_received == 1
    assert step.game.match_turn_index == 1
    assert step.drink_value == 1
    assert players[0].hand == (seven, Card("3", "♣️"))


def test_match_may_target_yourself() -> None:
    seven = Card("7", "♥️")
    players = _players([seven], [])

    step = engine.match_card(_open_card("7", index=9), players, 10, seven, 10)

    assert step.players[0].drinks_received == 3
    assert step.players[0].hand == ()


@pytest.mark.parametrize(
    "actor, card, target, reason",
    [
        (20, Card("7", "♦️"), 10, errors.NOT_YOUR_TURN),
        (99, Card("7", "♦️"), 10, errors.NOT_IN_GAME),
        (10, Card("7", "♣️"), 20, errors.CARD_NOT_IN_HAND),
        (10, Card("8", "♥️"), 20, errors.CARD_DOES_NOT_MATCH),
        (10, Card("7", "♥️"), 99, errors.TARGET_NOT_IN_GAME),
    ],
)
def test_match_validation(actor: int, card: Card, target: int, reason: str) -> None:
    players = _players([Card("7", "♥️"), Card("8", "♥️")], [Card("7", "♦️")])

    result = engine.match_card(_open_card("7"), players, actor, card, target)

    assert isinstance(result, Failure)
    assert result.reason == reason


def test_match_before_any_flip_is_rejected() -> None:
    players = _players([Card("7", "♥️")])

    result = engine.match_card(_game(), players, 10, Card("7", "♥️"), 10)

    assert result.reason == errors.NO_CARD_FLIPPED


def test_match_after_matching_closed_is_rejected() -> None:
    players = _players([Card("7", "♥️")])

    result = engine.pass_turn(_open_card("7", matching_done=True), players, 10)

    assert result.reason == errors.MATCHING_CLOSED


def test_turn_rotation_with_four_players() -> None:
    players = _players([], [], [], [])
    step = engine.flip_card(_game(), players)
    game, players = step.game, step.players

    for order, player in enumerate(list(players)):
        assert game.match_turn_index == order
        step = engine.pass_turn(game, players, player.user_id)
        game, players = step.game, step.players

    assert game.match_turn_index == 4
    assert game.matching_done

    step = engine.flip_card(game, players)
    assert step.game.match_turn_index == 0
    assert not step.game.matching_done


# Bus phase -------------------------------------------------------------------
def _close_last_card(players: List[AutobusPlayer], deck: Sequence[Card]) -> engine.Step:
    game = _open_card("K", index=14, deck=tuple(deck), match_turn_index=len(players) - 1)
    return engine.pass_turn(game, players, players[-1].user_id)


def test_last_card_sends_biggest_hands_onto_the_bus() -> None:
    players = _players([Card("2", "♠️")], [Card("3", "♠️"), Card("4", "♠️")], [Card("5", "♠️"), Card("6", "♠️")])
    deck = [Card("9", "♥️"), Card("10", "♥️")]

    step = _close_last_card(players, deck)

    assert step.bus_started
    assert step.game.current_phase == PHASE_BUS
    assert step.game.bus_player_queue == (20, 30)
    assert step.game.bus_player_id == 20
    assert step.game.bus_current_card == Card("9", "♥️")
    assert step.game.deck == (Card("10", "♥️"),)
    assert step.game.bus_progress == 0


def test_empty_hands_finish_the_game_without_a_bus() -> None:
    step = _close_last_card(_players([], []), [Card("9", "♥️")])

    assert not step.bus_started
    assert step.game_over
    assert step.game.status == STATUS_FINISHED
    assert step.game.current_phase == PHASE_FINISHED
    assert step.game.finished_at is not None


def test_determine_bus_players_orders_ties_by_turn() -> None:
    players = list(reversed(_players([Card("2", "♠️")], [Card("3", "♠️")])))

    assert [p.user_id for p in engine.determine_bus_players(players)] == [10, 20]
    assert engine.determine_bus_players(_players([], [])) == []


def test_correct_guess_advances_progress() -> None:
    game = _bus_game(Card("7", "♠️"), [Card("K", "♦️"), Card("2", "♣️")], progress=2)

    step = engine.bus_guess(game, _players([Card("3", "♠️")]), 10, "higher")

    assert step.bus_result == "correct"
    assert step.penalty_drinks == 0
    assert step.game.bus_progress == 3
    assert step.game.bus_current_card == Card("K", "♦️")
    assert step.game.deck == (Card("2", "♣️"),)


def test_missed_guesses_charge_progress_then_one() -> None:
    players = _players([Card("3", "♠️")])
    game = _bus_game(Card("7", "♠️"), [Card("K", "♦️"), Card("A", "♣️")], progress=3)

    first = engine.bus_guess(game, players, 10, "lower")
    second = engine.bus_guess(first.game, first.players, 10, "lower")

    assert first.bus_result == "wrong"
    assert first.penalty_drinks == 3
    assert first.game.bus_progress == 0
    assert second.penalty_drinks == 1
    assert second.players[0].drinks_received == 4


def test_same_rank_counts_as_a_miss() -> None:
    game = _bus_game(Card("7", "♠️"), [Card("7", "♥️")], progress=1)

    step = engine.bus_guess(game, _players([Card("3", "♠️")]), 10, "higher")

    assert step.bus_result == "same"
    assert step.penalty_drinks == 1
    assert step.game.bus_progress == 0


def test_bus_guess_validation() -> None:
    game = _bus_game(Card("7", "♠️"), [])
    players = _players([Card("3", "♠️")], [Card("4", "♠️")])

    assert engine.bus_guess(game, players, 10, "sideways").reason == errors.INVALID_GUESS
    assert engine.bus_guess(game, players, 20, "higher").reason == errors.NOT_BUS_PLAYER
    assert engine.bus_guess(game, players, 10, "higher").reason == errors.DECK_EXHAUSTED
    assert engine.bus_guess(_game(), players, 10, "higher").reason == errors.WRONG_PHASE


def test_fifth_correct_guess_hands_the_bus_to_the_next_rider() -> None:
    game = _bus_game(Card("7", "♠️"), [Card("K", "♦️"), Card("5", "♣️")], progress=4, queue=(10, 20))
    players = _players([Card("3", "♠️")], [Card("4", "♠️")])

    step = engine.bus_guess(game, players, 10, "higher")

    assert step.bus_exited
    assert not step.game_over
    assert step.game.bus_player_id == 20
    assert step.game.bus_queue_index == 1
    assert step.game.bus_progress == 0
    assert step.game.bus_current_card == Card("5", "♣️")
    assert step.game.deck == ()


def test_last_rider_exiting_finishes_the_game() -> None:
    game = _bus_game(Card("7", "♠️"), [Card("2", "♦️")], progress=4)

    step = engine.bus_guess(game, _players([Card("3", "♠️")]), 10, "lower")

    assert step.bus_exited
    assert step.game_over
    assert step.game.bus_progress == engine.BUS_LENGTH
    assert step.game.status == STATUS_FINISHED


def test_bus_penalty_is_at_least_one() -> None:
    assert engine.bus_penalty(0) == 1
    assert engine.bus_penalty(4) == 4
