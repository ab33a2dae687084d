"""
Periodic background jobs.

Started from the application lifespan:

- Device token cleanup: proactive validation of push tokens followed by
  removal of stale inactive tokens.
- User activity resync: re-populates activity cache keys from the database
  after a cache flush or restart.

Each run opens its own database session. Failures are logged and the loop
keeps going.
"""

import asyncio
from typing import Awaitable, Callable, List

from projectbrain.core.cache import get_redis
from projectbrain.core.database.repositories import build_sql_repos_from_session
from projectbrain.core.database.session import async_session_maker
from projectbrain.core.logging_config import get_logger
from projectbrain.server.core.config import settings
from projectbrain.server.services.deps import build_cleanup_service
from projectbrain.services.user_activity import UserActivitySyncService

logger = get_logger(__name__)

Job = Callable[[], Awaitable[None]]


async def run_periodic(name: str, job: Job, interval_seconds: float, initial_delay_seconds: float = 0) -> None:
    """Run ``job`` forever, every ``interval_seconds``, until cancelled."""
    if initial_delay_seconds > 0:
        await asyncio.sleep(initial_delay_seconds)
    while True:
        try:
            await job()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Background job {name} failed: {e}", exc_info=True)
        await asyncio.sleep(interval_seconds)


async def device_token_cleanup_job() -> None:
    async with async_session_maker() as session:
        repos = build_sql_repos_from_session(session=session)
        cleanup = build_cleanup_service(repos)
        if cleanup is None:
            logger.debug("Push notifications not configured, skipping device token cleanup")
            return
        invalid = await cleanup.cleanup_invalid_tokens()
        removed = await cleanup.remove_stale_tokens()
        logger.info(f"Device token cleanup finished: {invalid} marked invalid, {removed} stale removed")


async def activity_sync_job() -> None:
    sync = UserActivitySyncService(get_redis(), async_session_maker, settings.activity)
    restored = await sync.sync_once()
    if restored:
        logger.info(f"Activity sync restored {restored} cache entries")


def start_background_jobs() -> List[asyncio.Task]:
    """Schedule the enabled jobs on the running loop."""
    tasks: List[asyncio.Task] = []
    push = settings.push_notifications
    if push.cleanup_enabled:
        tasks.append(
            asyncio.create_task(
                run_periodic(
                    "device_token_cleanup",
                    device_token_cleanup_job,
                    push.cleanup_interval_hours * 3600,
                    push.cleanup_initial_delay_seconds,
                ),
                name="device_token_cleanup",
            )
        )
    activity = settings.activity
    if activity.sync_enabled:
        tasks.append(
            asyncio.create_task(
                run_periodic("activity_sync", activity_sync_job, activity.sync_interval_seconds),
                name="activity_sync",
            )
        )
    logger.info(f"Started {len(tasks)} background job(s)")
    return tasks


async def stop_background_jobs(tasks: List[asyncio.Task]) -> None:
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    if tasks:
        logger.info("Background jobs stopped")
