"""Tests for the Autobus card primitives and pyramid layout."""

from __future__ import annotations

import random

import pytest

from autobus_game.cards import (
    RANKS,
    SUITS,
    Card,
    PyramidCard,
    can_match,
    card_value,
    create_deck,
    drink_value_for_index,
    format_card,
    fresh_deck,
    pyramid_layout,
    row_for_index,
)
from autobus_game.engine import check_bus_guess


@pytest.mark.parametrize("seed", [0, 1, 7, 42, 1234])
def test_create_deck_is_a_permutation_of_all_52_cards(seed: int) -> None:
    deck = create_deck(random.Random(seed))

    assert len(deck) == 52
    assert len(set(deck)) == 52
    assert set(deck) == {Card(rank, suit) for rank in RANKS for suit in SUITS}


def test_create_deck_is_reproducible_with_the_same_seed() -> None:
    assert create_deck(random.Random(5)) == create_deck(random.Random(5))
    assert create_deck(random.Random(5)) != fresh_deck()


def test_card_values_are_ace_high() -> None:
    assert [card_value(rank) for rank in RANKS] == list(range(2, 15))
    assert card_value("A") == 14
    assert Card("J", "♠️").value == 11


def test_drink_values_follow_the_pyramid_rows() -> None:
    expected = [1] * 5 + [2] * 4 + [3] * 3 + [4] * 2 + [5]
    values = [drink_value_for_index(i) for i in range(15)]

    assert values == expected
    assert values == sorted(values)
    assert row_for_index(0) == 5
    assert row_for_index(14) == 1


def test_can_match_compares_rank_only() -> None:
    assert can_match(Card("7", "♠️"), Card("7", "♥️"))
    assert can_match(Card("7", "♦️"), PyramidCard("7", "♣️", index=3, flipped=True))
    assert not can_match(Card("7", "♠️"), Card("8", "♠️"))


def test_bus_guess_outcomes() -> None:
    seven = Card("7", "♠️")

    assert check_bus_guess(seven, Card("7", "♥️"), "higher") == "same"
    assert check_bus_guess(seven, Card("7", "♥️"), "lower") == "same"
    assert check_bus_guess(seven, Card("K", "♦️"), "higher") == "correct"
    assert check_bus_guess(seven, Card("K", "♦️"), "lower") == "wrong"
    assert check_bus_guess(seven, Card("2", "♣️"), "lower") == "correct"


def test_pyramid_layout_reports_row_position_and_value() -> None:
    cards = [PyramidCard("2", "♠️", index=i) for i in range(15)]
    layout = pyramid_layout(cards)

    assert [(e["row"], e["position"]) for e in layout[4:6]] == [(5, 4), (4, 0)]
    assert layout[14]["drinkValue"] == 5
    assert layout[12]["position"] == 0


def test_card_serialisation_and_formatting() -> None:
    card = Card("10", "♥️")

    assert Card.from_dict(card.to_dict()) == card
    assert format_card(card) == "10♥️"
    assert format_card(None) == "—"
