"""Generic async repository over a single ORM model."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Base


class BaseRepository[T: Base, IdT]:
    """Repository with basic CRUD operations bound to one session."""

    def __init__(self, session: AsyncSession, model: type[T]) -> None:
        """Initialize repository with database session and model type."""
        self.s = session
        self.model = model

    async def save(self, entity: T) -> T:
        """Add an entity to the session and flush it."""
        self.s.add(entity)
        await self.s.flush()
        return entity

    async def find_by_id(self, id: IdT) -> T | None:
        """Find an entity by primary key."""
        return await self.s.get(self.model, id)

    async def find_all(self) -> Sequence[T]:
        """Return every entity of this model."""
        result = await self.s.scalars(select(self.model))
        return result.all()

    async def delete(self, entity: T) -> None:
        """Delete an entity."""
        await self.s.delete(entity)

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self.s.commit()

