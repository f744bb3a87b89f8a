"""Role checks shared by the lifecycle and registration engines."""
from __future__ import annotations

from typing import Optional

from gespadel.errors import AuthorizationError
from gespadel.models.player import Role

ORGANIZER_ROLES = frozenset({Role.ORGANIZER.value, Role.ORGANIZER_PLAYER.value})


def is_organizer(role: Optional[str]) -> bool:
    """True for organizer and organizer_player."""
    return role in ORGANIZER_ROLES


def require_organizer(role: Optional[str], action: str) -> None:
    """Raise AuthorizationError unless role may manage tournaments."""
    if not is_organizer(role):
        raise AuthorizationError(action, role)
