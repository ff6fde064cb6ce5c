"""Service layer for the Autobus game."""

from .session import BusGuess, Flip, Match, Pass, Transition, apply_action, create_game, join_game, start_game
from .views import build_lobby_view, build_state_view

__all__ = [
    "BusGuess",
    "Flip",
    "Match",
    "Pass",
    "Transition",
    "apply_action",
    "build_lobby_view",
    "build_state_view",
    "create_game",
    "join_game",
    "start_game",
]
