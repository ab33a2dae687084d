"""
User account service.

Registration, profile updates and role management for platform accounts.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from projectbrain.core.database.entities.users import User, UserRole
from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.errors import AppException, NotFoundException, ValidationException
from projectbrain.core.logging_config import get_logger

logger = get_logger(__name__)

VALID_ROLES = {role.value for role in UserRole}


class UserService:
    """CRUD and role management for users."""

    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def create(self, user: User) -> User:
        """Register a new user.

        Raises:
            AppException: USER_EXISTS (409) when the id or email is taken
        """
        if await self.repos.users.get_by_id(user.id) is not None:
            raise AppException("USER_EXISTS", f"User '{user.id}' already exists", status_code=409)
        if await self.repos.users.get_by_email(user.email) is not None:
            raise AppException("USER_EXISTS", f"Email '{user.email}' is already registered", status_code=409)
        created = await self.repos.users.create(user)
        logger.info(f"Registered user {created.id}")
        return created

    async def get_by_id(self, user_id: str) -> Optional[User]:
        return await self.repos.users.get_by_id(user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self.repos.users.get_by_email(email)

    async def require(self, user_id: str) -> User:
        user = await self.repos.users.get_by_id(user_id)
        if user is None:
            raise NotFoundException(f"User '{user_id}' not found", code="USER_NOT_FOUND")
        return user

    async def update(self, user_id: str, changes: Dict[str, Any]) -> User:
        """Apply a partial update to a user's profile fields."""
        user = await self.require(user_id)
        for key, value in changes.items():
            if key in ("id", "roles", "created_at") or not hasattr(user, key):
                continue
            setattr(user, key, value)
        user.updated_at = datetime.utcnow()
        return await self.repos.users.update(user)

    async def complete_onboarding(self, user_id: str) -> User:
        return await self.update(user_id, {"is_onboarded": True})

    async def update_roles(self, user_id: str, roles: List[str]) -> User:
        unknown = [role for role in roles if role not in VALID_ROLES]
        if unknown:
            raise ValidationException(f"Unknown roles: {', '.join(unknown)}", {"roles": unknown})
        user = await self.require(user_id)
        user.roles = list(dict.fromkeys(roles))
        user.updated_at = datetime.utcnow()
        logger.info(f"Roles for user {user_id} set to {user.roles}")
        return await self.repos.users.update(user)

    async def add_role(self, user_id: str, role: UserRole) -> User:
        user = await self.require(user_id)
        if user.has_role(role):
            return user
        return await self.update_roles(user_id, [*user.roles, role.value])

    async def delete(self, user_id: str) -> None:
        if not await self.repos.users.delete(user_id):
            raise NotFoundException(f"User '{user_id}' not found", code="USER_NOT_FOUND")
        logger.info(f"Deleted user {user_id}")

    async def list(self, skip: int = 0, take: int = 20) -> List[User]:
        return await self.repos.users.list(limit=take, offset=skip)

    async def count(self) -> int:
        return await self.repos.users.count()
