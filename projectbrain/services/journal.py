"""
Journal and tag services.

Tags are owned by a user; an entry can only be linked to the caller's own
tags; ids belonging to anyone else are dropped silently.
"""

from datetime import datetime
from typing import List, Optional, Sequence

from projectbrain.core.database.entities.journal import JournalEntry, Tag
from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.journal import JournalEntryRead, TagRead

logger = get_logger(__name__)


class JournalEntryService:
    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def to_read(self, entry: JournalEntry) -> JournalEntryRead:
        tags = await self.repos.journal_entries.get_tags(entry.id)  # type: ignore[arg-type]
        return JournalEntryRead(
            id=entry.id,  # type: ignore[arg-type]
            content=entry.content,
            summary=entry.summary,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
            tags=[TagRead.model_validate(t) for t in tags],
        )

    async def _owned_tag_ids(self, tag_ids: Sequence[int], user_id: str) -> List[int]:
        owned = await self.repos.tags.get_owned(tag_ids, user_id)
        return [t.id for t in owned if t.id is not None]

    async def add(self, entry: JournalEntry, tag_ids: Optional[Sequence[int]] = None) -> JournalEntryRead:
        created = await self.repos.journal_entries.create(entry)
        if tag_ids:
            await self.repos.journal_entries.set_tags(
                created.id, await self._owned_tag_ids(tag_ids, entry.user_id)  # type: ignore[arg-type]
            )
        return await self.to_read(created)

    async def get_entity(self, entry_id: int, user_id: str) -> Optional[JournalEntry]:
        return await self.repos.journal_entries.get_for_user(entry_id, user_id)

    async def get_by_id(self, entry_id: int, user_id: str) -> Optional[JournalEntryRead]:
        entry = await self.get_entity(entry_id, user_id)
        return await self.to_read(entry) if entry else None

    async def get_paged(self, user_id: str, skip: int, take: int) -> List[JournalEntryRead]:
        entries = await self.repos.journal_entries.list_for_user(user_id, skip, take)
        return [await self.to_read(e) for e in entries]

    async def get_recent(self, user_id: str, count: int = 5) -> List[JournalEntryRead]:
        return await self.get_paged(user_id, 0, count)

    async def count_for_user(self, user_id: str) -> int:
        return await self.repos.journal_entries.count_for_user(user_id)

    async def update(self, entry: JournalEntry, tag_ids: Optional[Sequence[int]] = None) -> JournalEntryRead:
        """Save entry changes. ``tag_ids`` of None keeps the current links."""
        entry.updated_at = datetime.utcnow()
        saved = await self.repos.journal_entries.update(entry)
        if tag_ids is not None:
            await self.repos.journal_entries.set_tags(
                saved.id, await self._owned_tag_ids(tag_ids, saved.user_id)  # type: ignore[arg-type]
            )
        return await self.to_read(saved)

    async def remove(self, entry: JournalEntry) -> None:
        await self.repos.journal_entries.remove_with_links(entry)
        logger.debug(f"Journal entry {entry.id} removed")


class TagService:
    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def add(self, tag: Tag) -> Tag:
        """Create the tag, or return the user's existing tag with that name."""
        tag.name = tag.name.strip()
        existing = await self.repos.tags.get_by_name(tag.name, tag.user_id)
        if existing is not None:
            return existing
        return await self.repos.tags.create(tag)

    async def get_by_id(self, tag_id: int, user_id: str) -> Optional[Tag]:
        return await self.repos.tags.get_for_user(tag_id, user_id)

    async def get_by_name(self, name: str, user_id: str) -> Optional[Tag]:
        return await self.repos.tags.get_by_name(name, user_id)

    async def get_all_for_user(self, user_id: str) -> List[Tag]:
        return await self.repos.tags.list_for_user(user_id)

    async def update(self, tag: Tag) -> Tag:
        tag.name = tag.name.strip()
        return await self.repos.tags.update(tag)

    async def remove(self, tag: Tag) -> None:
        await self.repos.tags.remove_with_links(tag)

    async def get_or_create(self, name: str, user_id: str) -> Tag:
        return await self.add(Tag(name=name, user_id=user_id))
