"""Statistics I/O models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class CountStatistic(BaseModel):
    name: str
    count: int
    period: Optional[str] = None
