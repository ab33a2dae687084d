"""
Coach messaging service.

Messages flow between the two sides of an accepted connection. Sending is
gated by the sender's plan, counted for usage, and announced to the
recipient over push.
"""

from datetime import datetime
from typing import List, Optional

from projectbrain.core.database.entities.coach_messages import CoachMessage, MessageStatus, MessageType
from projectbrain.core.database.entities.connections import Connection, ConnectionStatus
from projectbrain.core.database.entities.subscriptions import UserType
from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.errors import (
    ForbiddenException,
    LimitExceededException,
    NotFoundException,
    ValidationException,
)
from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.coach_messages import ConversationSummary

from .feature_gate import FeatureGateService
from .push_notifications import PushNotificationService
from .usage_tracking import UsageTrackingService

logger = get_logger(__name__)

SNIPPET_LENGTH = 50
VOICE_SNIPPET = "Voice message"


def message_snippet(message: CoachMessage) -> str:
    if message.message_type == MessageType.VOICE.value:
        return VOICE_SNIPPET
    if len(message.content) > SNIPPET_LENGTH:
        return message.content[:SNIPPET_LENGTH] + "..."
    return message.content


class CoachMessageService:
    """Send, page and acknowledge coach messages."""

    def __init__(
        self,
        repos: SqlRepoBundle,
        feature_gate: Optional[FeatureGateService] = None,
        usage: Optional[UsageTrackingService] = None,
        push: Optional[PushNotificationService] = None,
    ) -> None:
        self.repos = repos
        self.usage = usage or UsageTrackingService(repos)
        self.feature_gate = feature_gate or FeatureGateService(repos, usage=self.usage)
        self.push = push

    async def _require_accepted(self, connection_id: str) -> Connection:
        connection = await self.repos.connections.get_by_id(connection_id)
        if connection is None:
            raise NotFoundException(f"Connection '{connection_id}' not found", code="CONNECTION_NOT_FOUND")
        if connection.status != ConnectionStatus.ACCEPTED.value:
            raise ValidationException("Connection is not accepted", code="NOT_CONNECTED")
        return connection

    async def send_message(self, connection_id: str, sender_id: str, content: str) -> CoachMessage:
        """Send a text message on an accepted connection.

        Raises:
            NotFoundException: unknown connection
            ValidationException: connection not accepted
            ForbiddenException: sender is not part of the connection
            LimitExceededException: the sender's plan blocks another message
        """
        connection = await self._require_accepted(connection_id)
        if not connection.involves(sender_id):
            raise ForbiddenException("You are not part of this conversation")

        sender_is_coach = sender_id == connection.coach_id
        if sender_is_coach:
            allowed, error = await self.feature_gate.check_feature_access(
                sender_id, UserType.COACH.value, "client_messages"
            )
        else:
            allowed, error = await self.feature_gate.check_feature_access(
                sender_id, UserType.USER.value, "coach_messages"
            )
        if not allowed:
            raise LimitExceededException(error or "Message limit reached")

        message = await self.repos.coach_messages.create(
            CoachMessage(
                connection_id=connection.id,
                user_id=connection.user_id,
                coach_id=connection.coach_id,
                sender_id=sender_id,
                message_type=MessageType.TEXT.value,
                content=content,
            )
        )

        if sender_is_coach:
            await self.usage.track_client_message(sender_id)
        else:
            await self.usage.track_coach_message(sender_id)

        recipient_id = connection.user_id if sender_is_coach else connection.coach_id
        await self._notify(message, recipient_id)
        return message

    async def _notify(self, message: CoachMessage, recipient_id: str) -> None:
        if self.push is None:
            return
        try:
            sender = await self.repos.users.get_by_id(message.sender_id)
            title = sender.full_name if sender and sender.full_name else "New message"
            await self.push.send_to_user(
                recipient_id,
                title,
                message_snippet(message),
                {"type": "coach_message", "connectionId": message.connection_id, "messageId": str(message.id)},
            )
        except Exception as e:
            logger.warning(f"Push notification for message {message.id} failed: {e}", exc_info=True)

    async def get_by_id(self, message_id: int) -> Optional[CoachMessage]:
        return await self.repos.coach_messages.get_by_id(message_id)

    async def delete(self, message_id: int, requester_id: str) -> bool:
        message = await self.repos.coach_messages.get_by_id(message_id)
        if message is None:
            return False
        if message.sender_id != requester_id:
            raise ForbiddenException("Only the sender can delete a message")
        return await self.repos.coach_messages.delete(message_id)

    async def get_conversation_messages(
        self, connection_id: str, page_size: int = 20, before: Optional[datetime] = None
    ) -> List[CoachMessage]:
        return await self.repos.coach_messages.get_conversation(connection_id, page_size, before)

    async def search_messages(self, connection_id: str, term: str) -> List[CoachMessage]:
        if not term or not term.strip():
            return []
        return await self.repos.coach_messages.search(connection_id, term.strip())

    async def mark_as_delivered(self, message_id: int, recipient_id: str) -> bool:
        message = await self.repos.coach_messages.get_by_id(message_id)
        if message is None or message.sender_id == recipient_id:
            return False
        if message.status == MessageStatus.SENT.value:
            message.status = MessageStatus.DELIVERED.value
            message.delivered_at = datetime.utcnow()
            await self.repos.coach_messages.update(message)
        return True

    async def mark_as_read(self, message_id: int, recipient_id: str) -> bool:
        message = await self.repos.coach_messages.get_by_id(message_id)
        if message is None or message.sender_id == recipient_id:
            return False
        self._mark_read(message, datetime.utcnow())
        await self.repos.coach_messages.update(message)
        return True

    @staticmethod
    def _mark_read(message: CoachMessage, now: datetime) -> None:
        message.status = MessageStatus.READ.value
        message.read_at = now
        if message.delivered_at is None:
            message.delivered_at = now

    async def mark_conversation_as_read(self, connection_id: str, current_user_id: str) -> int:
        """Mark every unread message from the other party as read.

        Returns:
            Number of messages updated
        """
        unread = await self.repos.coach_messages.get_unread(connection_id, current_user_id)
        now = datetime.utcnow()
        for message in unread:
            self._mark_read(message, now)
        if unread:
            await self.repos.coach_messages.save_all(unread)
        return len(unread)

    async def get_conversations(self, user_id: str, is_coach: bool) -> List[ConversationSummary]:
        """One summary per accepted connection, most recent activity first."""
        accepted = [ConnectionStatus.ACCEPTED.value]
        if is_coach:
            connections = await self.repos.connections.list_for_coach(user_id, accepted)
        else:
            connections = await self.repos.connections.list_for_user(user_id, accepted)

        other_ids = [c.user_id if is_coach else c.coach_id for c in connections]
        people = {u.id: u for u in await self.repos.users.get_many(list(set(other_ids + [user_id])))}

        summaries: List[ConversationSummary] = []
        for connection, other_id in zip(connections, other_ids):
            other = people.get(other_id)
            summary = ConversationSummary(
                connection_id=connection.id,
                other_person_id=other_id,
                other_person_name=other.full_name if other else "",
                unread_count=await self.repos.coach_messages.count_unread(connection.id, user_id),
            )
            latest = await self.repos.coach_messages.get_latest(connection.id)
            if latest is not None:
                sender = people.get(latest.sender_id)
                summary.last_message_snippet = message_snippet(latest)
                summary.last_message_sender_name = sender.full_name if sender else None
                summary.last_message_at = latest.created_at
            summaries.append(summary)

        summaries.sort(key=lambda s: s.last_message_at or datetime.min, reverse=True)
        return summaries
