"""Declarative base shared by every ProjectBrain table."""

from __future__ import annotations

from pydantic import ConfigDict
from sqlmodel import SQLModel


class Base(SQLModel):
    """Base class for all SQLModel entities."""

    # JSON columns hold plain lists/dicts of arbitrary values
    model_config = ConfigDict(arbitrary_types_allowed=True)
