"""
Coach profile service.

Coach onboarding, availability and the coach directory search.
"""

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from projectbrain.core.database.entities.users import AvailabilityStatus, CoachProfile, User, UserRole
from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.errors import ValidationException
from projectbrain.core.logging_config import get_logger

from .users import UserService

logger = get_logger(__name__)


def _overlaps(profile_values: Sequence[str], wanted: Optional[Sequence[str]]) -> bool:
    # A coach with nothing listed matches any filter
    if not wanted or not profile_values:
        return True
    have = {value.lower() for value in profile_values}
    return any(value.lower() in have for value in wanted)


class CoachProfileService:
    """Manage coach profiles."""

    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos
        self.users = UserService(repos)

    async def get_by_user_id(self, user_id: str) -> Optional[CoachProfile]:
        return await self.repos.coach_profiles.get_by_user_id(user_id)

    async def create_or_update(
        self,
        user_id: str,
        qualifications: List[str],
        specialisms: List[str],
        age_groups: List[str],
    ) -> CoachProfile:
        """Create the coach profile or replace its lists, granting the coach role.

        Args:
            user_id: The coach's user id
            qualifications: Qualification names
            specialisms: Coaching specialisms
            age_groups: Client age groups served

        Returns:
            The saved profile
        """
        await self.users.require(user_id)
        profile = await self.repos.coach_profiles.get_by_user_id(user_id)
        if profile is None:
            profile = CoachProfile(user_id=user_id)
        profile.qualifications = list(qualifications)
        profile.specialisms = list(specialisms)
        profile.age_groups = list(age_groups)
        profile.updated_at = datetime.utcnow()
        saved = await self.repos.coach_profiles.update(profile)
        await self.users.add_role(user_id, UserRole.COACH)
        return saved

    async def update_availability_status(self, user_id: str, status: str) -> bool:
        """Set availability. Returns False when the user has no profile."""
        try:
            value = AvailabilityStatus(status).value
        except ValueError:
            raise ValidationException(
                f"Invalid availability status '{status}'",
                {"status": [s.value for s in AvailabilityStatus]},
            ) from None
        profile = await self.repos.coach_profiles.get_by_user_id(user_id)
        if profile is None:
            return False
        profile.availability_status = value
        profile.updated_at = datetime.utcnow()
        await self.repos.coach_profiles.update(profile)
        return True

    async def delete_by_user_id(self, user_id: str) -> bool:
        profile = await self.repos.coach_profiles.get_by_user_id(user_id)
        if profile is None:
            return False
        return await self.repos.coach_profiles.delete(profile.id)  # type: ignore[arg-type]

    async def search(
        self,
        city: Optional[str] = None,
        state_province: Optional[str] = None,
        country: Optional[str] = None,
        age_groups: Optional[List[str]] = None,
        specialisms: Optional[List[str]] = None,
    ) -> List[Tuple[CoachProfile, User]]:
        matches = await self.repos.coach_profiles.search(city, state_province, country)
        return [
            (profile, user)
            for profile, user in matches
            if _overlaps(profile.age_groups, age_groups) and _overlaps(profile.specialisms, specialisms)
        ]
