"""
Journal repository implementations.

Data access for journal entries, tags and the entry/tag link table.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.journal import JournalEntry, JournalEntryTag, Tag
from .base import AsyncSqlRepository


class JournalEntryRepository(AsyncSqlRepository[JournalEntry]):
    """Repository for journal entries and their tag links."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, JournalEntry)

    async def get_for_user(self, entry_id: int, user_id: str) -> Optional[JournalEntry]:
        stmt = select(JournalEntry).where((JournalEntry.id == entry_id) & (JournalEntry.user_id == user_id))
        return await self._first(stmt)

    async def list_for_user(self, user_id: str, skip: int = 0, take: Optional[int] = None) -> List[JournalEntry]:
        """Entries for a user, newest first.

        Args:
            user_id: Owner of the entries
            skip: Number of entries to skip
            take: Maximum entries to return (all when None)

        Returns:
            List of JournalEntry instances
        """
        stmt = (
            select(JournalEntry)
            .where(JournalEntry.user_id == user_id)
            .order_by(JournalEntry.created_at.desc(), JournalEntry.id.desc())  # type: ignore[attr-defined]
            .offset(skip)
        )
        if take is not None:
            stmt = stmt.limit(take)
        return await self._all(stmt)

    async def count_for_user(self, user_id: str) -> int:
        return await self.count({"user_id": user_id})

    async def get_tags(self, entry_id: int) -> List[Tag]:
        stmt = (
            select(Tag)
            .join(JournalEntryTag, JournalEntryTag.tag_id == Tag.id)  # type: ignore[arg-type]
            .where(JournalEntryTag.journal_entry_id == entry_id)
            .order_by(Tag.name)
        )
        return await self._all(stmt)

    async def set_tags(self, entry_id: int, tag_ids: Sequence[int]) -> None:
        """Replace the tag links of an entry."""
        await self.session.execute(delete(JournalEntryTag).where(JournalEntryTag.journal_entry_id == entry_id))
        for tag_id in dict.fromkeys(tag_ids):
            self.session.add(JournalEntryTag(journal_entry_id=entry_id, tag_id=tag_id))
        await self.session.commit()

    async def remove_with_links(self, entry: JournalEntry) -> None:
        await self.session.execute(delete(JournalEntryTag).where(JournalEntryTag.journal_entry_id == entry.id))
        await self.session.delete(entry)
        await self.session.commit()


class TagRepository(AsyncSqlRepository[Tag]):
    """Repository for user-scoped tags."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Tag)

    def default_order(self):
        return Tag.name

    async def get_for_user(self, tag_id: int, user_id: str) -> Optional[Tag]:
        stmt = select(Tag).where((Tag.id == tag_id) & (Tag.user_id == user_id))
        return await self._first(stmt)

    async def get_by_name(self, name: str, user_id: str) -> Optional[Tag]:
        stmt = select(Tag).where((func.lower(Tag.name) == name.lower()) & (Tag.user_id == user_id))
        return await self._first(stmt)

    async def list_for_user(self, user_id: str) -> List[Tag]:
        stmt = select(Tag).where(Tag.user_id == user_id).order_by(Tag.name)
        return await self._all(stmt)

    async def get_owned(self, tag_ids: Sequence[int], user_id: str) -> List[Tag]:
        """Subset of ``tag_ids`` owned by the user."""
        if not tag_ids:
            return []
        stmt = select(Tag).where((Tag.id.in_(list(tag_ids))) & (Tag.user_id == user_id))  # type: ignore[union-attr]
        return await self._all(stmt)

    async def remove_with_links(self, tag: Tag) -> None:
        await self.session.execute(delete(JournalEntryTag).where(JournalEntryTag.tag_id == tag.id))
        await self.session.delete(tag)
        await self.session.commit()
