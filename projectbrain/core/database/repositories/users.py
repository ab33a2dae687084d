"""
User repository implementations.

This module provides data access for user accounts and coach profiles,
including the coach directory search.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.users import CoachProfile, User
from .base import AsyncSqlRepository


class UserRepository(AsyncSqlRepository[User]):
    """Repository for user accounts."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address (case-insensitive).

        Args:
            email: Email address

        Returns:
            User instance or None
        """
        stmt = select(User).where(func.lower(User.email) == email.lower())
        return await self._first(stmt)

    async def get_many(self, user_ids: Sequence[str]) -> List[User]:
        if not user_ids:
            return []
        stmt = select(User).where(User.id.in_(list(user_ids)))  # type: ignore[attr-defined]
        return await self._all(stmt)

    async def get_active_since(self, since: datetime) -> List[User]:
        """Users whose last recorded activity is at or after ``since``."""
        stmt = select(User).where(User.last_activity_at >= since)  # type: ignore[operator]
        return await self._all(stmt)

    async def count_active_since(self, since: datetime) -> int:
        stmt = select(func.count()).select_from(User).where(User.last_activity_at >= since)  # type: ignore[operator]
        return await self._scalar_count(stmt)

    async def count_roles(self) -> Counter:
        """Tally role membership across all users.

        Returns:
            Counter mapping role name to number of users, plus ``"_plain"``
            for users holding neither the coach nor the admin role
        """
        result = await self.session.execute(select(User.roles))
        tally: Counter = Counter()
        for (roles,) in result.all():
            roles = roles or []
            tally.update(set(roles))
            if "coach" not in roles and "admin" not in roles:
                tally["_plain"] += 1
        return tally


class CoachProfileRepository(AsyncSqlRepository[CoachProfile]):
    """Repository for coach profiles."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, CoachProfile)

    async def get_by_user_id(self, user_id: str) -> Optional[CoachProfile]:
        stmt = select(CoachProfile).where(CoachProfile.user_id == user_id)
        return await self._first(stmt)

    async def search(
        self,
        city: Optional[str] = None,
        state_province: Optional[str] = None,
        country: Optional[str] = None,
    ) -> List[tuple[CoachProfile, User]]:
        """Find onboarded coaches, optionally narrowed by location substrings.

        Args:
            city: Substring matched against the coach's city
            state_province: Substring matched against the coach's state/province
            country: Substring matched against the coach's country

        Returns:
            List of (profile, user) pairs
        """
        stmt = (
            select(CoachProfile, User)
            .join(User, User.id == CoachProfile.user_id)  # type: ignore[arg-type]
            .where(User.is_onboarded == True)  # noqa: E712
        )
        if city:
            stmt = stmt.where(User.city.ilike(f"%{city}%"))  # type: ignore[union-attr]
        if state_province:
            stmt = stmt.where(User.state_province.ilike(f"%{state_province}%"))  # type: ignore[union-attr]
        if country:
            stmt = stmt.where(User.country.ilike(f"%{country}%"))  # type: ignore[union-attr]
        stmt = stmt.order_by(User.full_name)
        result = await self.session.execute(stmt)
        return [(profile, user) for profile, user in result.all()]
