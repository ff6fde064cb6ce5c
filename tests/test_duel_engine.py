"""Tests for the Kafanski Duel rules engine."""

from __future__ import annotations

import random
from dataclasses import replace

import pytest

from duel_game import engine
from duel_game.actions import ACTIONS, FLAVOR_TEXTS
from duel_game.state.models import DuelPlayerState
from shared import errors
from shared.errors import Failure, UnknownActionError


def _state(**overrides) -> DuelPlayerState:
    return replace(engine.initial_state(1, 100), **overrides)


def test_initial_gauges() -> None:
    state = engine.initial_state(1, 100)

    assert (state.alcometer, state.respect, state.stomak, state.novcanik) == (0, 50, 50, 500)
    assert state.turn_number == 0
    assert state.pijani_foulovi == 0


def test_pivo_from_fresh_state() -> None:
    state = engine.initial_state(1, 100)

    outcome = engine.apply_action(state, "pivo", random.Random(0))

    new = outcome.state
    assert (new.alcometer, new.respect, new.novcanik, new.turn_number) == (10, 55, 450, 1)
    assert new.pijani_foulovi == 0
    assert outcome.flavor_text in FLAVOR_TEXTS["pivo"]
    assert state.novcanik == 500


def test_gauges_are_clamped() -> None:
    outcome = engine.apply_action(_state(alcometer=95, respect=95, stomak=95), "rakija")

    assert outcome.state.alcometer == 100
    assert outcome.state.respect == 100
    assert outcome.state.stomak == 85

    outcome = engine.apply_action(_state(alcometer=5, respect=10), "mineralna")
    assert outcome.state.alcometer == 0
    assert outcome.state.respect == 0


def test_drunk_foul_counts_above_eighty() -> None:
    fouled = engine.apply_action(_state(alcometer=75), "pivo").state
    borderline = engine.apply_action(_state(alcometer=70), "pivo").state

    assert fouled.alcometer == 85 and fouled.pijani_foulovi == 1
    assert borderline.alcometer == 80 and borderline.pijani_foulovi == 0


@pytest.mark.parametrize(
    "alcometer, respect",
    [(40, 80), (55, 80), (70, 80), (39, 10), (71, 10)],
)
def test_singing_depends_on_alcometer(alcometer: int, respect: int) -> None:
    outcome = engine.apply_action(_state(alcometer=alcometer), "pevaj")

    assert outcome.state.respect == respect
    assert outcome.state.alcometer == alcometer
    assert outcome.state.novcanik == 500


def test_singing_loss_is_clamped_at_zero() -> None:
    outcome = engine.apply_action(_state(alcometer=0, respect=20), "pevaj")

    assert outcome.state.respect == 0


def test_vomiting_resets_alcometer_and_costs_respect() -> None:
    sober = engine.apply_action(_state(alcometer=5, respect=60), "povracaj").state
    drunk = engine.apply_action(_state(alcometer=90, respect=60), "povracaj").state

    assert sober.alcometer == 20
    assert drunk.alcometer == 20
    assert drunk.respect == 10


def test_unaffordable_action_is_a_failure() -> None:
    result = engine.apply_action(_state(novcanik=100), "cevapi")

    assert isinstance(result, Failure)
    assert result.reason == errors.INSUFFICIENT_FUNDS


def test_unknown_action_key_raises() -> None:
    with pytest.raises(UnknownActionError):
        engine.apply_action(_state(), "sampanjac")


def test_flavor_text_is_empty_without_a_pool(monkeypatch) -> None:
    monkeypatch.setitem(FLAVOR_TEXTS, "pivo", ())

    assert engine.apply_action(_state(), "pivo").flavor_text == ""


def test_instant_loss_precedence() -> None:
    assert engine.check_instant_loss(_state(alcometer=96, respect=5, novcanik=-10)) == engine.LOSS_ALCOMETER
    assert engine.check_instant_loss(_state(respect=5, novcanik=-10)) == engine.LOSS_RESPECT
    assert engine.check_instant_loss(_state(novcanik=-10)) == engine.LOSS_WALLET
    assert engine.check_instant_loss(_state(alcometer=95, respect=10, novcanik=0)) is None


def test_score_formula() -> None:
    assert engine.calculate_score(_state(respect=70, alcometer=20, pijani_foulovi=1)) == 210


def test_resolve_by_score_picks_the_higher_score() -> None:
    first = _state(respect=70)
    second = replace(engine.initial_state(1, 200), respect=40)

    verdict = engine.resolve_by_score(first, second)

    assert verdict.winner_id == 100
    assert verdict.scores == {100: 240, 200: 180}
    assert not verdict.tie_break


def test_resolve_by_score_breaks_ties_with_injected_rng() -> None:
    first = _state()
    second = engine.initial_state(1, 200)

    winners = {engine.resolve_by_score(first, second, random.Random(seed)).winner_id for seed in range(20)}

    assert winners == {100, 200}
    assert engine.resolve_by_score(first, second, random.Random(4)).tie_break
    assert (
        engine.resolve_by_score(first, second, random.Random(4)).winner_id
        == engine.resolve_by_score(first, second, random.Random(4)).winner_id
    )


def test_turn_limit_needs_both_players() -> None:
    assert not engine.turn_limit_reached(_state(turn_number=10), _state(turn_number=9))
    assert engine.turn_limit_reached(_state(turn_number=10), _state(turn_number=10))


def test_available_actions_flags_affordability_without_hiding() -> None:
    catalog = engine.available_actions(_state(novcanik=60))

    assert set(catalog) == set(ACTIONS)
    assert catalog["pivo"]["affordable"] is True
    assert catalog["cevapi"]["affordable"] is False
    assert catalog["pevaj"]["affordable"] is True
