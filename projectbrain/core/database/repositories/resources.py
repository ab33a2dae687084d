"""Resource (stored file) repository implementation."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.resources import Resource
from .base import AsyncSqlRepository


class ResourceRepository(AsyncSqlRepository[Resource]):
    """Repository for file metadata."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Resource)

    async def get_by_file_name(self, user_id: Optional[str], file_name: str) -> Optional[Resource]:
        stmt = select(Resource).where(Resource.file_name == file_name)
        if user_id is None:
            stmt = stmt.where(Resource.user_id == None)  # noqa: E711
        else:
            stmt = stmt.where(Resource.user_id == user_id)
        return await self._first(stmt)

    async def list_for_user(self, user_id: str, include_shared: bool = True) -> List[Resource]:
        """User's own files, plus shared files when requested."""
        condition = Resource.user_id == user_id
        if include_shared:
            condition = condition | (Resource.is_shared == True)  # noqa: E712
        stmt = select(Resource).where(condition).order_by(Resource.file_name)
        return await self._all(stmt)

    async def count_for_user(self, user_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(Resource)
            .where((Resource.user_id == user_id) & (Resource.is_shared == False))  # noqa: E712
        )
        return await self._scalar_count(stmt)

    async def count_shared(self) -> int:
        stmt = select(func.count()).select_from(Resource).where(Resource.is_shared == True)  # noqa: E712
        return await self._scalar_count(stmt)
