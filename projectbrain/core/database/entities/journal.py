"""
Journal entity models.

This module contains journal entries, user-owned tags, and the link table
associating entries with tags.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from ..base import Base


class JournalEntry(Base, table=True):
    """Free-text journal entry written by a user.

    Table: journal_entries
    """

    __tablename__ = "journal_entries"
    __table_args__ = ({"extend_existing": True},)

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: str = Field(foreign_key="users.id", index=True)
    content: str = Field(description="Entry body")
    summary: Optional[str] = Field(default=None, description="Short summary of the entry")

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: Optional[datetime] = Field(default=None)

    def __repr__(self) -> str:
        return f"JournalEntry(id={self.id}, user_id={self.user_id})"


class Tag(Base, table=True):
    """User-scoped label for journal entries.

    Table: tags
    """

    __tablename__ = "tags"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_tags_user_name"),
        {"extend_existing": True},
    )

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: str = Field(foreign_key="users.id", index=True)
    name: str = Field(max_length=100)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    def __repr__(self) -> str:
        return f"Tag(id={self.id}, name={self.name})"


class JournalEntryTag(Base, table=True):
    """Link between a journal entry and a tag.

    Table: journal_entry_tags
    """

    __tablename__ = "journal_entry_tags"
    __table_args__ = (
        UniqueConstraint("journal_entry_id", "tag_id", name="uq_journal_entry_tags_pair"),
        {"extend_existing": True},
    )

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    journal_entry_id: int = Field(foreign_key="journal_entries.id", index=True)
    tag_id: int = Field(foreign_key="tags.id", index=True)

    def __repr__(self) -> str:
        return f"JournalEntryTag(entry={self.journal_entry_id}, tag={self.tag_id})"
