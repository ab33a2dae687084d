"""Stored file (resource) entity models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from ..base import Base


class Resource(Base, table=True):
    """Metadata for an uploaded file. ``user_id`` is None for shared files.

    Table: resources
    """

    __tablename__ = "resources"
    __table_args__ = (
        UniqueConstraint("user_id", "file_name", name="uq_resources_user_file"),
        {"extend_existing": True},
    )

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: Optional[str] = Field(default=None, foreign_key="users.id", index=True)
    file_name: str = Field(max_length=255)
    location: str = Field(max_length=1024)
    size_in_bytes: int = Field(default=0)
    content_type: Optional[str] = Field(default=None, max_length=255)
    is_shared: bool = Field(default=False)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    def __repr__(self) -> str:
        return f"Resource(id={self.id}, file_name={self.file_name}, shared={self.is_shared})"
