"""
User activity tracking.

Activity is written to Redis on every authenticated request and mirrored to
``users.last_activity_at`` at most once per debounce interval per user. Reads
prefer the cache and fall back to the database when the cache is empty or
unavailable.

Cache keys:
    ``user:activity:{id}``        ISO timestamp of the last request
    ``user:activity:set:{id}``    JSON ``{"UserId", "Timestamp"}``
    ``user:activity:active:set``  JSON object of user id -> ISO timestamp
"""

import asyncio
import json
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from projectbrain.core.database.repositories.users import UserRepository
from projectbrain.core.logging_config import get_logger
from projectbrain.server.core.config import ActivityConfig, settings

logger = get_logger(__name__)

ACTIVITY_KEY = "user:activity:{user_id}"
ACTIVITY_SET_KEY = "user:activity:set:{user_id}"
ACTIVE_SET_KEY = "user:activity:active:set"

SessionFactory = Callable[[], AsyncSession]

# Last successful DB write per user, shared by every service instance in the process.
# Entries older than the debounce interval are dropped on each write.
_last_db_write: Dict[str, datetime] = {}
_last_db_write_lock = asyncio.Lock()


def _parse(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


async def write_activity_keys(redis: Redis, user_id: str, timestamp: datetime, ttl_seconds: int) -> None:
    """Write all three cache keys for one user, pruning the active set."""
    iso = timestamp.isoformat()
    await redis.set(ACTIVITY_KEY.format(user_id=user_id), iso, ex=ttl_seconds)
    await redis.set(
        ACTIVITY_SET_KEY.format(user_id=user_id),
        json.dumps({"UserId": user_id, "Timestamp": iso}),
        ex=ttl_seconds,
    )

    raw = await redis.get(ACTIVE_SET_KEY)
    try:
        active: Dict[str, str] = json.loads(raw) if raw else {}
    except ValueError:
        active = {}
    cutoff = datetime.utcnow() - timedelta(seconds=ttl_seconds)
    active = {uid: ts for uid, ts in active.items() if (_parse(ts) or datetime.min) >= cutoff}
    active[user_id] = iso
    await redis.set(ACTIVE_SET_KEY, json.dumps(active), ex=ttl_seconds)


class UserActivityService:
    """Record and query recent user activity."""

    def __init__(self, redis: Redis, session_factory: SessionFactory, config: Optional[ActivityConfig] = None):
        self.redis = redis
        self.session_factory = session_factory
        self.config = config or settings.activity

    @property
    def window(self) -> timedelta:
        return timedelta(seconds=self.config.window_seconds)

    async def update_last_activity(self, user_id: str) -> None:
        """Record activity now. Never raises."""
        now = datetime.utcnow()
        try:
            await write_activity_keys(self.redis, user_id, now, self.config.window_seconds)
        except (RedisError, OSError) as e:
            logger.warning(f"Failed to cache activity for user {user_id}: {e}")

        debounce = timedelta(seconds=self.config.db_debounce_seconds)
        async with _last_db_write_lock:
            last = _last_db_write.get(user_id)
            if last is not None and now - last < debounce:
                return

        try:
            async with self.session_factory() as session:
                users = UserRepository(session)
                user = await users.get_by_id(user_id)
                if user is None:
                    return
                user.last_activity_at = now
                await users.update(user)
        except SQLAlchemyError as e:
            logger.error(f"Failed to store last activity for user {user_id}: {e}", exc_info=True)
            return

        async with _last_db_write_lock:
            _last_db_write[user_id] = now
            for uid in [uid for uid, ts in _last_db_write.items() if now - ts >= debounce]:
                del _last_db_write[uid]

    async def _cached_active(self) -> Dict[str, datetime]:
        raw = await self.redis.get(ACTIVE_SET_KEY)
        if not raw:
            return {}
        cutoff = datetime.utcnow() - self.window
        parsed = {uid: _parse(ts) for uid, ts in json.loads(raw).items()}
        return {uid: ts for uid, ts in parsed.items() if ts is not None and ts >= cutoff}

    async def get_active_user_ids(self) -> List[str]:
        try:
            active = await self._cached_active()
            if active:
                return sorted(active)
        except (RedisError, OSError, ValueError) as e:
            logger.warning(f"Activity cache unavailable, reading active users from the database: {e}")

        async with self.session_factory() as session:
            users = await UserRepository(session).get_active_since(datetime.utcnow() - self.window)
        return sorted(u.id for u in users)

    async def get_active_users_count(self) -> int:
        return len(await self.get_active_user_ids())

    async def is_user_active(self, user_id: str, window_minutes: int = 60) -> bool:
        """Whether the user made a request within ``window_minutes``.

        The cache only remembers ``window_seconds`` of history, so longer
        windows and cache errors are answered from the database.
        """
        window = timedelta(minutes=window_minutes)
        try:
            timestamp = _parse(await self.redis.get(ACTIVITY_KEY.format(user_id=user_id)))
            if timestamp is None:
                raw = await self.redis.get(ACTIVITY_SET_KEY.format(user_id=user_id))
                if raw:
                    timestamp = _parse(json.loads(raw).get("Timestamp"))
            if timestamp is not None:
                return datetime.utcnow() - timestamp <= window
            if window_minutes * 60 <= self.config.window_seconds:
                return False
        except (RedisError, OSError, ValueError) as e:
            logger.warning(f"Activity cache unavailable for user {user_id}: {e}")

        async with self.session_factory() as session:
            user = await UserRepository(session).get_by_id(user_id)
        if user is None or user.last_activity_at is None:
            return False
        return datetime.utcnow() - user.last_activity_at <= window


class UserActivitySyncService:
    """Restore cache entries for users the database knows to be active."""

    def __init__(self, redis: Redis, session_factory: SessionFactory, config: Optional[ActivityConfig] = None):
        self.redis = redis
        self.session_factory = session_factory
        self.config = config or settings.activity

    async def sync_once(self) -> int:
        """Returns the number of users whose cache entries were re-populated."""
        since = datetime.utcnow() - timedelta(seconds=self.config.window_seconds)
        async with self.session_factory() as session:
            users = await UserRepository(session).get_active_since(since)

        restored = 0
        for user in users:
            try:
                if await self.redis.exists(ACTIVITY_KEY.format(user_id=user.id)):
                    continue
                await write_activity_keys(
                    self.redis,
                    user.id,
                    user.last_activity_at or datetime.utcnow(),
                    self.config.window_seconds,
                )
                restored += 1
            except (RedisError, OSError) as e:
                logger.warning(f"Failed to resync activity for user {user.id}: {e}")
        if restored:
            logger.info(f"Re-populated activity cache for {restored} users")
        return restored
