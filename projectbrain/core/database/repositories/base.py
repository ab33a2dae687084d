"""
Shared SQL repository.

Every domain repository extends ``AsyncSqlRepository``, which supplies CRUD,
filtered listing and counting over one SQLModel entity. Writes commit
immediately; services never manage transactions themselves.
"""

from __future__ import annotations

from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

EntityType = TypeVar("EntityType", bound=SQLModel)


class QueryBuilder:
    """Helpers that extend a select statement."""

    @staticmethod
    def apply_filters(stmt, model: Type[SQLModel], filters: Dict[str, Any]):
        """Add a WHERE clause per filter.

        ``None`` values and names the model lacks are skipped. Lists and
        tuples become ``IN`` clauses; anything else is compared for equality.
        """
        for key, value in filters.items():
            if value is None or not hasattr(model, key):
                continue
            column = getattr(model, key)
            if isinstance(value, (list, tuple, set)):
                stmt = stmt.where(column.in_(list(value)))
            else:
                stmt = stmt.where(column == value)
        return stmt

    @staticmethod
    def apply_pagination(stmt, limit: Optional[int], offset: Optional[int]):
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)
        return stmt


class AsyncSqlRepository(Generic[EntityType]):
    """CRUD over one entity type.

    Subclasses pass their model to ``__init__`` and may override
    ``default_order`` to control ``list`` ordering (newest first by default).
    """

    def __init__(self, session: AsyncSession, model: Type[EntityType]) -> None:
        self.session = session
        self.model = model

    def default_order(self):
        created_at = getattr(self.model, "created_at", None)
        return created_at.desc() if created_at is not None else None

    async def create(self, entity: EntityType) -> EntityType:
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def get_by_id(self, entity_id: str | int) -> Optional[EntityType]:
        return await self.session.get(self.model, entity_id)

    async def update(self, entity: EntityType) -> EntityType:
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def delete(self, entity_id: str | int) -> bool:
        """Delete by primary key. Returns False when the row does not exist."""
        entity = await self.get_by_id(entity_id)
        if entity is None:
            return False
        await self.session.delete(entity)
        await self.session.commit()
        return True

    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[EntityType]:
        stmt = select(self.model)
        order = self.default_order()
        if order is not None:
            stmt = stmt.order_by(order)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, self.model, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        return await self._all(stmt)

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        stmt = select(func.count()).select_from(self.model)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, self.model, filters)
        return await self._scalar_count(stmt)

    async def _first(self, stmt) -> Optional[EntityType]:
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def _all(self, stmt) -> List[EntityType]:
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def _scalar_count(self, stmt) -> int:
        result = await self.session.execute(stmt)
        return int(result.scalar_one() or 0)
