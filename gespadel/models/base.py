"""Database base, session setup and change-feed hooks."""
from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import event, inspect
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Session

import config
from gespadel.feed import ADDED, MODIFIED, REMOVED, Change, feed


def new_id() -> str:
    """Opaque, stable id for players, tournaments and registrations."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""

    def to_dict(self) -> dict[str, Any]:
        """Column values only; never triggers a lazy load."""
        return {attr.key: getattr(self, attr.key) for attr in inspect(self).mapper.column_attrs}


engine = create_async_engine(
    config.DATABASE_URL,
    echo=config.DATABASE_ECHO,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def init_db() -> None:
    """Create all tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# --- Change feed ---
# Snapshots are taken at flush (ids and defaults are populated, nothing is expired)
# and only published once the transaction commits.

_PENDING_KEY = "gespadel_feed_changes"


def _snapshot(obj: Base, kind: str) -> Change:
    data = obj.to_dict()
    return Change(collection=obj.__tablename__, kind=kind, id=str(data.get("id")), data=data)


@event.listens_for(Session, "after_flush")
def _collect_changes(session: Session, flush_context) -> None:
    pending = session.info.setdefault(_PENDING_KEY, [])
    for obj in session.new:
        pending.append(_snapshot(obj, ADDED))
    for obj in session.dirty:
        if session.is_modified(obj, include_collections=False):
            pending.append(_snapshot(obj, MODIFIED))
    for obj in session.deleted:
        pending.append(_snapshot(obj, REMOVED))


@event.listens_for(Session, "after_commit")
def _publish_changes(session: Session) -> None:
    for change in session.info.pop(_PENDING_KEY, []):
        feed.publish(change)


@event.listens_for(Session, "after_soft_rollback")
def _discard_changes(session: Session, previous_transaction) -> None:
    session.info.pop(_PENDING_KEY, None)
