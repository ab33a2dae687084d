"""Coach rating service."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from projectbrain.core.database.entities.coach_ratings import CoachRating
from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.errors import AppException
from projectbrain.core.logging_config import get_logger

from .connections import ConnectionService

logger = get_logger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class CoachRatingService:
    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos
        self.connections = ConnectionService(repos)

    async def create_or_update_rating(
        self, user_id: str, coach_id: str, rating: int, feedback: Optional[str] = None
    ) -> CoachRating:
        """Rate a connected coach, replacing any earlier rating by the same user.

        Raises:
            AppException: ``INVALID_RATING`` or ``NOT_CONNECTED`` (400)
        """
        if rating < MIN_RATING or rating > MAX_RATING:
            raise AppException("INVALID_RATING", f"Rating must be between {MIN_RATING} and {MAX_RATING}")
        if not await self.connections.is_connected(user_id, coach_id):
            raise AppException("NOT_CONNECTED", "You can only rate coaches you are connected to")

        existing = await self.repos.coach_ratings.get_by_pair(user_id, coach_id)
        if existing is not None:
            return await self._apply(existing, rating, feedback)

        try:
            return await self.repos.coach_ratings.create(
                CoachRating(user_id=user_id, coach_id=coach_id, rating=rating, feedback=feedback)
            )
        except IntegrityError:
            # Concurrent first rating for the same pair
            await self.repos.session.rollback()
            existing = await self.repos.coach_ratings.get_by_pair(user_id, coach_id)
            if existing is None:
                raise
            logger.info(f"Rating for coach {coach_id} by {user_id} created concurrently, updating instead")
            return await self._apply(existing, rating, feedback)

    async def _apply(self, existing: CoachRating, rating: int, feedback: Optional[str]) -> CoachRating:
        existing.rating = rating
        existing.feedback = feedback
        existing.updated_at = datetime.utcnow()
        return await self.repos.coach_ratings.update(existing)

    async def get_rating(self, user_id: str, coach_id: str) -> Optional[CoachRating]:
        return await self.repos.coach_ratings.get_by_pair(user_id, coach_id)

    async def get_ratings_by_coach(self, coach_id: str, skip: int = 0, take: int = 20) -> List[CoachRating]:
        return await self.repos.coach_ratings.list_for_coach(coach_id, skip, take)

    async def get_average_rating(self, coach_id: str) -> Optional[float]:
        return await self.repos.coach_ratings.average_for_coach(coach_id)

    async def get_rating_count(self, coach_id: str) -> int:
        return await self.repos.coach_ratings.count_for_coach(coach_id)
