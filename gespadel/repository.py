"""Generic async repository over one model, plus commit helper.

Engines talk to the store only through this layer so every SQLAlchemy
failure surfaces as ``PersistenceError`` with the original chained.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gespadel.errors import NotFoundError, PersistenceError
from gespadel.feed import Change, feed
from gespadel.models.base import Base

logger = logging.getLogger("gespadel.repository")

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """Collection-style access to one table."""

    def __init__(self, session: AsyncSession, model: type[ModelT]):
        self.session = session
        self.model = model

    @property
    def collection(self) -> str:
        return self.model.__tablename__

    async def list(self, order_by: Any = None) -> list[ModelT]:
        return await self.query(order_by=order_by)

    async def get(self, entity_id: str) -> Optional[ModelT]:
        try:
            return await self.session.get(self.model, entity_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"get {self.collection}", str(e)) from e

    async def get_or_raise(self, entity_id: str) -> ModelT:
        obj = await self.get(entity_id)
        if obj is None:
            raise NotFoundError(self.model.__name__, entity_id)
        return obj

    async def query(
        self,
        *criteria: Any,
        order_by: Any = None,
        limit: Optional[int] = None,
    ) -> list[ModelT]:
        stmt = select(self.model).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(*order_by) if isinstance(order_by, (list, tuple)) else stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(f"query {self.collection}", str(e)) from e
        return list(result.scalars().all())

    async def first(self, *criteria: Any) -> Optional[ModelT]:
        rows = await self.query(*criteria, limit=1)
        return rows[0] if rows else None

    async def count(self, *criteria: Any) -> int:
        stmt = select(func.count()).select_from(self.model).where(*criteria)
        try:
            return int((await self.session.execute(stmt)).scalar_one())
        except SQLAlchemyError as e:
            raise PersistenceError(f"count {self.collection}", str(e)) from e

    def create(self, **fields: Any) -> ModelT:
        """Stage a new row; written on the next flush/commit."""
        obj = self.model(**fields)
        self.session.add(obj)
        return obj

    def update(self, obj: ModelT, **fields: Any) -> ModelT:
        for key, value in fields.items():
            setattr(obj, key, value)
        return obj

    async def delete(self, obj: ModelT) -> None:
        try:
            await self.session.delete(obj)
        except SQLAlchemyError as e:
            raise PersistenceError(f"delete {self.collection}", str(e)) from e

    def subscribe(self, listener: Callable[[Change], None]) -> Callable[[], None]:
        """Committed changes to this collection; returns unsubscribe."""
        return feed.subscribe(self.collection, listener)


async def commit(session: AsyncSession, operation: str) -> None:
    """Commit the unit of work, rolling back and raising PersistenceError on failure."""
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Commit failed during %s: %s", operation, e)
        raise PersistenceError(operation, str(e)) from e
