"""
Local filesystem storage for uploaded files.

Files live under ``{root}/{owner}/{file_name}`` where ``owner`` is the user
id or ``shared``. Blocking file IO runs in worker threads.
"""

import asyncio
from pathlib import Path, PurePath
from typing import Optional

from projectbrain.core.errors import ValidationException
from projectbrain.core.logging_config import get_logger
from projectbrain.server.core.config import StorageConfig, settings

logger = get_logger(__name__)

SHARED_OWNER = "shared"


def sanitize_file_name(file_name: str) -> str:
    """Reduce a client supplied name to a safe basename.

    Raises:
        ValidationException: empty names and parent directory references
    """
    name = PurePath((file_name or "").replace("\\", "/")).name.strip()
    if not name or name in (".", ".."):
        raise ValidationException("Invalid file name", {"file_name": file_name})
    return name


class StorageClient:
    def __init__(self, config: Optional[StorageConfig] = None) -> None:
        self.root = Path((config or settings.storage).root)

    @staticmethod
    def key_for(user_id: Optional[str], file_name: str) -> str:
        return f"{user_id or SHARED_OWNER}/{sanitize_file_name(file_name)}"

    def _path(self, key: str) -> Path:
        owner, _, name = key.partition("/")
        return self.root / sanitize_file_name(owner) / sanitize_file_name(name)

    async def write(self, key: str, content: bytes) -> None:
        path = self._path(key)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)

        await asyncio.to_thread(_write)
        logger.debug(f"Stored {len(content)} bytes at {key}")

    async def read(self, key: str) -> bytes:
        return await asyncio.to_thread(self._path(key).read_bytes)

    async def delete(self, key: str) -> bool:
        path = self._path(key)

        def _delete() -> bool:
            if not path.exists():
                return False
            path.unlink()
            return True

        return await asyncio.to_thread(_delete)

    async def exists(self, key: str) -> bool:
        return await asyncio.to_thread(self._path(key).exists)
