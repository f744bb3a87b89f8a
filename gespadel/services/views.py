"""Which dashboard an identity sees."""
from __future__ import annotations

import enum
from typing import Optional

from gespadel.models.player import Player, Role


class View(str, enum.Enum):
    PLAYER = "player"
    ORGANIZER = "organizer"


def resolve_view(
    player: Optional[Player],
    explicit_preference: Optional[View | str] = None,
    last_preference: Optional[View | str] = None,
) -> View:
    """Derive the active view. Pure: the caller persists the last chosen preference.

    organizer_player picks the explicit preference, then the sticky last one,
    then falls back to the player view.
    """
    if player is None:
        return View.PLAYER
    role = Role(player.role)
    if role is Role.ORGANIZER:
        return View.ORGANIZER
    elif role is Role.PLAYER:
        return View.PLAYER
    elif role is Role.ORGANIZER_PLAYER:
        for preference in (explicit_preference, last_preference):
            if preference is not None:
                return View(preference)
        return View.PLAYER
    raise ValueError(f"Unhandled role: {role}")
