"""
Device token maintenance.

Proactively validates tokens that have not been checked recently and deletes
tokens that have been inactive for a long time.
"""

from datetime import datetime, timedelta
from typing import Optional

from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.logging_config import get_logger
from projectbrain.server.core.config import PushNotificationConfig, settings

from .push_notifications import PushNotificationService

logger = get_logger(__name__)

VALIDATION_FAILED_REASON = "Proactive validation failed"
VALIDATION_DATA = {"type": "validation_test", "silent": "true"}


class DeviceTokenCleanupService:
    def __init__(
        self,
        repos: SqlRepoBundle,
        push: PushNotificationService,
        config: Optional[PushNotificationConfig] = None,
    ) -> None:
        self.repos = repos
        self.push = push
        self.config = config or settings.push_notifications

    async def cleanup_invalid_tokens(self) -> int:
        """Validate a batch of tokens with a silent send.

        Returns:
            Number of tokens marked invalid
        """
        try:
            now = datetime.utcnow()
            threshold = now - timedelta(days=self.config.validation_max_age_days)
            due = await self.repos.device_tokens.get_due_for_validation(threshold, self.config.validation_batch_size)
            if not due:
                logger.info("No device tokens due for validation")
                return 0

            result = await self.push.send_notification_to_multiple(
                [t.token for t in due], None, None, dict(VALIDATION_DATA)
            )
            invalid = set(result.invalid_tokens)
            marked = await self.repos.device_tokens.mark_invalid(sorted(invalid), VALIDATION_FAILED_REASON)

            unvalidated = invalid | set(result.failed_tokens)
            validated_ids = [t.id for t in due if t.token not in unvalidated and t.id is not None]
            await self.repos.device_tokens.mark_validated(validated_ids, now)

            logger.info(
                f"Validated {len(due)} device tokens: {marked} invalid, {len(result.failed_tokens)} failed"
            )
            return marked
        except Exception as e:
            logger.error(f"Device token validation failed: {e}", exc_info=True)
            raise

    async def remove_stale_tokens(self) -> int:
        """Delete inactive tokens unused for ``stale_token_days``."""
        try:
            cutoff = datetime.utcnow() - timedelta(days=self.config.stale_token_days)
            removed = await self.repos.device_tokens.delete_stale(cutoff)
            logger.info(f"Removed {removed} stale device tokens")
            return removed
        except Exception as e:
            logger.error(f"Stale device token removal failed: {e}", exc_info=True)
            raise
