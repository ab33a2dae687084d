"""
Resource (uploaded file) service.

Keeps the file bytes in storage and the metadata row in the database in
step, and accounts stored bytes against the owner's plan.
"""

from datetime import datetime
from typing import List, Optional

from projectbrain.core.database.entities.resources import Resource
from projectbrain.core.database.entities.subscriptions import UserType
from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.errors import LimitExceededException
from projectbrain.core.logging_config import get_logger

from .feature_gate import FeatureGateService
from .storage import StorageClient, sanitize_file_name
from .usage_tracking import UsageTrackingService

logger = get_logger(__name__)


class ResourceService:
    def __init__(
        self,
        repos: SqlRepoBundle,
        storage: Optional[StorageClient] = None,
        feature_gate: Optional[FeatureGateService] = None,
        usage: Optional[UsageTrackingService] = None,
    ) -> None:
        self.repos = repos
        self.storage = storage or StorageClient()
        self.usage = usage or UsageTrackingService(repos)
        self.feature_gate = feature_gate or FeatureGateService(repos, usage=self.usage)

    async def upload(
        self, user_id: Optional[str], file_name: str, content: bytes, content_type: Optional[str] = None
    ) -> Resource:
        """Store a file, replacing any file of the same name for the owner.

        A ``user_id`` of None uploads a shared file, which is not gated or
        counted against anyone's plan.

        Raises:
            LimitExceededException: the owner's plan blocks the upload
        """
        name = sanitize_file_name(file_name)
        existing = await self.repos.resources.get_by_file_name(user_id, name)
        if user_id is not None:
            feature = "file_replace" if existing else "file_upload"
            allowed, error = await self.feature_gate.check_feature_access(user_id, UserType.USER.value, feature)
            if not allowed:
                raise LimitExceededException(error or "File upload limit reached")

        key = StorageClient.key_for(user_id, name)
        await self.storage.write(key, content)

        size = len(content)
        previous_size = existing.size_in_bytes if existing else 0
        if existing is None:
            resource = Resource(
                user_id=user_id,
                file_name=name,
                location=key,
                size_in_bytes=size,
                content_type=content_type,
                is_shared=user_id is None,
            )
            saved = await self.repos.resources.create(resource)
        else:
            existing.location = key
            existing.size_in_bytes = size
            existing.content_type = content_type or existing.content_type
            existing.updated_at = datetime.utcnow()
            saved = await self.repos.resources.update(existing)

        if user_id is not None:
            await self.usage.track_file_upload(user_id, size - previous_size)
        logger.info(f"Stored resource '{name}' ({size} bytes) for {user_id or 'shared'}")
        return saved

    async def get_by_file_name(self, user_id: Optional[str], file_name: str) -> Optional[Resource]:
        return await self.repos.resources.get_by_file_name(user_id, sanitize_file_name(file_name))

    async def get_accessible(self, user_id: str, file_name: str) -> Optional[Resource]:
        """The user's own file, falling back to a shared file of that name."""
        resource = await self.get_by_file_name(user_id, file_name)
        if resource is None:
            resource = await self.get_by_file_name(None, file_name)
        return resource

    async def get_all_for_user(self, user_id: str, include_shared: bool = True) -> List[Resource]:
        return await self.repos.resources.list_for_user(user_id, include_shared)

    async def read(self, resource: Resource) -> bytes:
        return await self.storage.read(resource.location)

    async def delete(self, user_id: Optional[str], file_name: str) -> bool:
        resource = await self.get_by_file_name(user_id, file_name)
        if resource is None:
            return False
        if not await self.storage.delete(resource.location):
            logger.warning(f"File for resource {resource.id} was already missing from storage")
        await self.repos.resources.delete(resource.id)  # type: ignore[arg-type]
        if user_id is not None:
            await self.usage.adjust_file_storage(user_id, -resource.size_in_bytes)
        return True

    async def count_for_user(self, user_id: str) -> int:
        return await self.repos.resources.count_for_user(user_id)

    async def count_shared(self) -> int:
        return await self.repos.resources.count_shared()
