"""Tests for the Kafanski Duel session reducer and views."""

from __future__ import annotations

import random
from dataclasses import replace

from duel_game import engine
from duel_game.services import session
from duel_game.services.views import build_state_view
from duel_game.state.models import STATUS_ACTIVE, STATUS_FINISHED, KafanskiDuel
from shared import errors
from shared.users import KnownUser

USERS = {100: KnownUser(100, "Mika", "mika"), 200: KnownUser(200, "", "zika")}


def _active_duel():
    created = session.create_duel(1, 100, 200, USERS)
    accepted = session.accept_duel(created.duel, 200)
    return accepted.duel, created.states


def test_create_duel_starts_waiting_with_challenger_to_move() -> None:
    created = session.create_duel(5, 100, 200, USERS)

    assert created.duel.status == "waiting"
    assert created.duel.current_turn_user == 100
    assert [s.user_id for s in created.states] == [100, 200]
    assert created.notifications == [(200, "Mika te izaziva na Kafanski Duel! 🍺")]
    assert created.payload == {"ok": True, "duel_id": 5}


def test_create_duel_rejections() -> None:
    existing = KafanskiDuel(duel_id=1, player1_id=200, player2_id=100)

    assert session.create_duel(2, 100, 100, USERS).reason == errors.SELF_CHALLENGE
    assert session.create_duel(2, 100, 200, USERS, [existing]).reason == errors.DUEL_EXISTS
    finished = replace(existing, status=STATUS_FINISHED)
    assert isinstance(session.create_duel(2, 100, 200, USERS, [finished]), session.DuelTransition)


def test_only_known_users_can_be_challenged() -> None:
    stranger = session.create_duel(3, 100, 300, USERS)

    assert stranger.reason == errors.NOT_FOUND
    assert stranger.message == "Protivnik nije pronadjen"
    assert session.create_duel(3, 100, 200, {}).reason == errors.NOT_FOUND


def test_only_the_challenged_player_can_accept_or_decline() -> None:
    duel = session.create_duel(1, 100, 200, USERS).duel

    assert session.accept_duel(duel, 100).reason == errors.NOT_FOUND
    assert session.decline_duel(duel, 300).reason == errors.NOT_FOUND

    accepted = session.accept_duel(duel, 200)
    assert accepted.duel.status == STATUS_ACTIVE
    assert accepted.duel.current_turn_user == 100
    assert session.accept_duel(accepted.duel, 200).reason == errors.NOT_FOUND

    declined = session.decline_duel(duel, 200)
    assert declined.deleted


def test_action_hands_the_turn_over() -> None:
    duel, states = _active_duel()

    result = session.apply_action(duel, states, 100, "pivo", rng=random.Random(1))

    assert result.duel.current_turn_user == 200
    assert result.payload["new_state"]["alcometer"] == 10
    assert result.payload["new_state"]["novcanik"] == 450
    assert result.payload["game_over"] is False
    assert result.log[0].turn_number == 1
    assert result.notifications == [(200, "Tvoj red u Kafanskom duelu!")]


def test_action_gating() -> None:
    duel, states = _active_duel()
    waiting = session.create_duel(1, 100, 200, USERS).duel

    assert session.apply_action(duel, states, 300, "pivo").reason == errors.NOT_IN_GAME
    assert session.apply_action(waiting, states, 100, "pivo").reason == errors.GAME_NOT_ACTIVE
    assert session.apply_action(duel, states, 200, "pivo").reason == errors.NOT_YOUR_TURN
    assert session.apply_action(duel, states, 100, "sampanjac").reason == errors.UNKNOWN_ACTION
    broke = [replace(states[0], novcanik=10), states[1]]
    assert session.apply_action(duel, broke, 100, "pivo").reason == errors.INSUFFICIENT_FUNDS


def test_instant_loss_gives_the_opponent_the_win() -> None:
    duel, states = _active_duel()
    states = [replace(states[0], alcometer=90), states[1]]

    result = session.apply_action(duel, states, 100, "rakija")

    assert result.duel.status == STATUS_FINISHED
    assert result.duel.winner_id == 200
    assert result.payload["loss_reason"] == engine.LOSS_ALCOMETER
    assert result.payload["game_over"] is True
    assert {uid for uid, _ in result.notifications} == {100, 200}


def test_tenth_round_is_decided_on_score() -> None:
    duel, states = _active_duel()
    duel = replace(duel, current_turn_user=200)
    states = [
        replace(states[0], turn_number=10, respect=60),
        replace(states[1], turn_number=9, respect=40),
    ]

    result = session.apply_action(duel, states, 200, "kikiriki")

    assert result.duel.status == STATUS_FINISHED
    assert result.payload["winner_id"] == 100
    assert result.payload["my_score"] == 180
    assert result.payload["opp_score"] == 220


def test_state_view_only_offers_actions_on_my_turn() -> None:
    duel, states = _active_duel()

    mine = build_state_view(duel, states, [], 100)
    theirs = build_state_view(duel, states, [], 200)

    assert mine["is_my_turn"] is True
    assert "pivo" in mine["available_actions"]
    assert theirs["available_actions"] is None
    assert set(theirs["players"]) == {"100", "200"}
    assert theirs["max_turns"] == 10
    assert build_state_view(duel, states, [], 300).reason == errors.NOT_IN_GAME


def test_state_view_names_both_duelists() -> None:
    duel, states = _active_duel()

    view = build_state_view(duel, states, [], 100, USERS)

    assert view["players"]["100"]["first_name"] == "Mika"
    assert view["players"]["100"]["display_name"] == "Mika"
    assert view["players"]["200"]["username"] == "zika"
    assert view["players"]["200"]["display_name"] == "zika"
    assert view["players"]["200"]["state"]["novcanik"] == 500
    unnamed = build_state_view(duel, states, [], 100)
    assert unnamed["players"]["200"]["display_name"] == "Klovn"
