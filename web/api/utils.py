"""Shared API utilities."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from gespadel.models import Player
from gespadel.models.base import async_session_factory
from gespadel.services.mirror import StoreMirrors

logger = logging.getLogger("gespadel.api")

_mirrors: Optional[StoreMirrors] = None
_mirrors_lock = asyncio.Lock()


def player_display_name(player: Player | dict | None) -> str:
    """Human-readable name for a player record or mirror row."""
    if not player:
        return "Jugador no encontrado"
    name = player.get("name") if isinstance(player, dict) else player.name
    return (name or "").strip() or "Jugador no encontrado"


async def get_mirrors() -> StoreMirrors:
    """Process-wide mirrors, loaded on first use and kept current by the change feed."""
    global _mirrors
    if _mirrors is not None:
        return _mirrors
    async with _mirrors_lock:
        # Another request may have started them while we waited
        if _mirrors is None:
            mirrors = StoreMirrors()
            async with async_session_factory() as session:
                await mirrors.start(session)
            _mirrors = mirrors
            logger.info("Store mirrors started")
    return _mirrors


def close_mirrors() -> None:
    global _mirrors, _mirrors_lock
    if _mirrors is not None:
        _mirrors.stop()
        _mirrors = None
    # A lock that has had waiters is tied to the event loop it ran on
    _mirrors_lock = asyncio.Lock()
