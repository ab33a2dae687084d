"""
Push notifications over Firebase Cloud Messaging.

``PushNotificationService`` wraps the synchronous firebase-admin messaging
API in worker threads. ``DeviceTokenService`` manages the registration
tokens the notifications are sent to.
"""

import asyncio
import json
from datetime import datetime
from typing import Dict, List, Optional

import firebase_admin
from firebase_admin import credentials, exceptions, messaging

from projectbrain.core.database.entities.device_tokens import DeviceToken
from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.errors import AppException
from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.notifications import PushNotificationSendResult
from projectbrain.server.core.config import FirebaseConfig, settings

logger = get_logger(__name__)

FIREBASE_APP_NAME = "projectbrain"
MULTICAST_BATCH_SIZE = 500


def invalid_token_reason(error: Optional[Exception]) -> Optional[str]:
    """Reason string when ``error`` means the token can never succeed, else None."""
    if isinstance(error, messaging.UnregisteredError):
        return "UNREGISTERED"
    if isinstance(error, messaging.SenderIdMismatchError):
        return "SENDER_ID_MISMATCH"
    if isinstance(error, exceptions.InvalidArgumentError):
        return "INVALID_ARGUMENT"
    return None


class PushNotificationService:
    """Send push notifications and deactivate tokens FCM rejects."""

    def __init__(self, repos: SqlRepoBundle, config: Optional[FirebaseConfig] = None) -> None:
        self.repos = repos
        self.config = config or settings.firebase
        if not self.config.credentials_json:
            raise AppException(
                "PUSH_NOT_CONFIGURED", "FIREBASE_CREDENTIALS_JSON is not configured", status_code=503
            )
        self._app: Optional[firebase_admin.App] = None

    def _get_app(self) -> firebase_admin.App:
        if self._app is None:
            try:
                self._app = firebase_admin.get_app(FIREBASE_APP_NAME)
            except ValueError:
                cert = credentials.Certificate(json.loads(self.config.credentials_json or "{}"))
                self._app = firebase_admin.initialize_app(cert, name=FIREBASE_APP_NAME)
                logger.info("Firebase app initialized")
        return self._app

    @staticmethod
    def _notification(title: Optional[str], body: Optional[str]) -> Optional[messaging.Notification]:
        if title is None and body is None:
            return None
        return messaging.Notification(title=title, body=body)

    async def send_notification(
        self, token: str, title: Optional[str], body: Optional[str], data: Optional[Dict[str, str]] = None
    ) -> PushNotificationSendResult:
        """Send to a single device token."""
        message = messaging.Message(token=token, notification=self._notification(title, body), data=data or {})
        try:
            message_id = await asyncio.to_thread(messaging.send, message, app=self._get_app())
            return PushNotificationSendResult(success=True, message_id=message_id, success_count=1)
        except exceptions.FirebaseError as e:
            reason = invalid_token_reason(e)
            if reason:
                await self.repos.device_tokens.mark_invalid([token], reason)
                logger.info(f"Device token marked invalid ({reason})")
                return PushNotificationSendResult(failure_count=1, invalid_tokens=[token])
            logger.error(f"Failed to send push notification: {e}", exc_info=True)
            return PushNotificationSendResult(failure_count=1, failed_tokens=[token])

    async def send_notification_to_multiple(
        self,
        tokens: List[str],
        title: Optional[str],
        body: Optional[str],
        data: Optional[Dict[str, str]] = None,
    ) -> PushNotificationSendResult:
        """Multicast in batches, collecting invalid and failed tokens.

        Tokens FCM reports as unregistered, mismatched or malformed are
        deactivated with the error code as the reason.
        """
        result = PushNotificationSendResult()
        if not tokens:
            return result

        app = self._get_app()
        notification = self._notification(title, body)
        invalid_by_reason: Dict[str, List[str]] = {}

        for start in range(0, len(tokens), MULTICAST_BATCH_SIZE):
            batch = tokens[start : start + MULTICAST_BATCH_SIZE]
            message = messaging.MulticastMessage(tokens=batch, notification=notification, data=data or {})
            try:
                response = await asyncio.to_thread(messaging.send_each_for_multicast, message, app=app)
            except exceptions.FirebaseError as e:
                logger.error(f"Multicast batch of {len(batch)} failed: {e}", exc_info=True)
                result.failure_count += len(batch)
                result.failed_tokens.extend(batch)
                continue

            result.success_count += response.success_count
            result.failure_count += response.failure_count
            for token, send_response in zip(batch, response.responses):
                if send_response.success:
                    continue
                reason = invalid_token_reason(send_response.exception)
                if reason:
                    invalid_by_reason.setdefault(reason, []).append(token)
                    result.invalid_tokens.append(token)
                else:
                    result.failed_tokens.append(token)

        for reason, invalid in invalid_by_reason.items():
            await self.repos.device_tokens.mark_invalid(invalid, reason)
        if result.invalid_tokens:
            logger.info(f"Deactivated {len(result.invalid_tokens)} invalid device tokens")

        result.success = result.success_count > 0
        return result

    async def send_notification_to_topic(
        self, topic: str, title: str, body: str, data: Optional[Dict[str, str]] = None
    ) -> PushNotificationSendResult:
        message = messaging.Message(topic=topic, notification=self._notification(title, body), data=data or {})
        try:
            message_id = await asyncio.to_thread(messaging.send, message, app=self._get_app())
            return PushNotificationSendResult(success=True, message_id=message_id, success_count=1)
        except exceptions.FirebaseError as e:
            logger.error(f"Failed to send notification to topic {topic}: {e}", exc_info=True)
            return PushNotificationSendResult(failure_count=1)

    async def send_to_user(
        self, user_id: str, title: str, body: str, data: Optional[Dict[str, str]] = None
    ) -> PushNotificationSendResult:
        """Send to every active device of a user."""
        if not settings.feature_flags.push_notifications_enabled:
            logger.debug("Push notifications are disabled, skipping send")
            return PushNotificationSendResult()
        tokens = [t.token for t in await self.repos.device_tokens.get_active_for_user(user_id)]
        return await self.send_notification_to_multiple(tokens, title, body, data)


class DeviceTokenService:
    """Register and remove device tokens."""

    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def register_token(
        self, user_id: str, token: str, platform: Optional[str] = None, device_id: Optional[str] = None
    ) -> DeviceToken:
        """Upsert by token value, moving the token to ``user_id`` and reactivating it."""
        now = datetime.utcnow()
        existing = await self.repos.device_tokens.get_by_token(token)
        if existing is None:
            return await self.repos.device_tokens.create(
                DeviceToken(user_id=user_id, token=token, platform=platform, device_id=device_id, last_used_at=now)
            )
        if existing.user_id != user_id:
            logger.info(f"Device token moved from user {existing.user_id} to {user_id}")
        existing.user_id = user_id
        existing.platform = platform or existing.platform
        existing.device_id = device_id or existing.device_id
        existing.is_active = True
        existing.invalid_reason = None
        existing.last_used_at = now
        return await self.repos.device_tokens.update(existing)

    async def remove_token(self, user_id: str, token: str) -> bool:
        existing = await self.repos.device_tokens.get_by_token(token)
        if existing is None or existing.user_id != user_id:
            return False
        return await self.repos.device_tokens.delete(existing.id)  # type: ignore[arg-type]

    async def get_active_tokens(self, user_id: str) -> List[str]:
        return [t.token for t in await self.repos.device_tokens.get_active_for_user(user_id)]
