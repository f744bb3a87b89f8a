"""Live in-memory mirrors of the players, tournaments and registrations collections."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from gespadel.feed import REMOVED, Change, feed
from gespadel.models import Player, Registration, Tournament
from gespadel.models.base import Base
from gespadel.repository import Repository

logger = logging.getLogger("gespadel.mirror")


def _sortable(value: Any) -> Any:
    # Rows loaded from SQLite carry naive datetimes, rows from a fresh flush carry aware ones
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CollectionMirror:
    """Snapshot of one collection kept current from the change feed.

    Rows are plain dicts (column snapshots), so readers never touch a session.
    Listeners run after each applied change and may read the mirror freely.
    """

    def __init__(self, model: type[Base], order_key: Optional[str] = None, reverse: bool = False):
        self.model = model
        self.collection = model.__tablename__
        self.order_key = order_key
        self.reverse = reverse
        self._rows: dict[str, dict[str, Any]] = {}
        self._buffer: list[Change] = []
        self._loading = False
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._listeners: list[Callable[[Change], None]] = []

    @property
    def started(self) -> bool:
        return self._unsubscribe is not None

    async def start(self, session: AsyncSession) -> None:
        """Subscribe, then load the snapshot. Changes seen during the load are replayed after it."""
        if self.started:
            return
        self._loading = True
        self._unsubscribe = feed.subscribe(self.collection, self._on_change)
        try:
            rows = await Repository(session, self.model).list()
            self._rows = {row.id: row.to_dict() for row in rows}
        finally:
            self._loading = False
        buffered, self._buffer = self._buffer, []
        for change in buffered:
            self._apply(change)
        logger.debug("Mirror %s loaded %s rows", self.collection, len(self._rows))

    def stop(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
        self._rows = {}
        self._buffer = []

    def listen(self, listener: Callable[[Change], None]) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def _on_change(self, change: Change) -> None:
        if self._loading:
            self._buffer.append(change)
            return
        self._apply(change)

    def _apply(self, change: Change) -> None:
        if change.kind == REMOVED:
            self._rows.pop(change.id, None)
        else:
            self._rows[change.id] = dict(change.data)
        for listener in list(self._listeners):
            listener(change)

    def get(self, row_id: str) -> Optional[dict[str, Any]]:
        row = self._rows.get(row_id)
        return dict(row) if row is not None else None

    def all(self) -> list[dict[str, Any]]:
        """Copies of every row, ordered by order_key when set."""
        rows = [dict(row) for row in self._rows.values()]
        if self.order_key:
            rows.sort(key=lambda row: _sortable(row.get(self.order_key)), reverse=self.reverse)
        return rows

    def __len__(self) -> int:
        return len(self._rows)


class StoreMirrors:
    """The three mirrored collections. Tournaments are ordered by start_date, latest first."""

    def __init__(self) -> None:
        self.players = CollectionMirror(Player, order_key="name")
        self.tournaments = CollectionMirror(Tournament, order_key="start_date", reverse=True)
        self.registrations = CollectionMirror(Registration, order_key="registration_date")

    def __iter__(self):
        return iter((self.players, self.tournaments, self.registrations))

    async def start(self, session: AsyncSession) -> None:
        for mirror in self:
            await mirror.start(session)

    def stop(self) -> None:
        for mirror in self:
            mirror.stop()
