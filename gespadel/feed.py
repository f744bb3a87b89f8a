"""In-process change feed: committed store writes fanned out to subscribers."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger("gespadel.feed")

ADDED = "added"
MODIFIED = "modified"
REMOVED = "removed"


@dataclass(frozen=True)
class Change:
    """One committed row change. ``data`` is the full row snapshot at flush time."""

    collection: str
    kind: str
    id: str
    data: dict[str, Any] = field(default_factory=dict)


Listener = Callable[[Change], None]


class ChangeFeed:
    """Collection-keyed publish/subscribe. Listeners run synchronously after commit."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def subscribe(self, collection: str, listener: Listener) -> Callable[[], None]:
        """Register listener; returns a callable that unsubscribes it."""
        self._listeners.setdefault(collection, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(collection, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def publish(self, change: Change) -> None:
        # Copy: a listener may unsubscribe (or subscribe) while we iterate
        for listener in list(self._listeners.get(change.collection, ())):
            try:
                listener(change)
            except Exception:
                # The write is already committed; a broken subscriber must not undo it
                logger.exception(
                    "Change listener failed for %s %s (%s)", change.collection, change.id, change.kind
                )

    def listener_count(self, collection: str) -> int:
        return len(self._listeners.get(collection, ()))


feed = ChangeFeed()
