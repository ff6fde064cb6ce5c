"""Service layer for Kafanski Duel."""

from .session import DuelTransition, accept_duel, apply_action, create_duel, decline_duel
from .views import build_active_view, build_state_view

__all__ = [
    "DuelTransition",
    "accept_duel",
    "apply_action",
    "build_active_view",
    "build_state_view",
    "create_duel",
    "decline_duel",
]
