"""
API endpoints for coach messaging.

Conversations between a user and a coach over an accepted connection:
sending, paging, searching, delivery/read receipts and deletion.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Query, status

from projectbrain.core.database.entities.users import User
from projectbrain.core.errors import ForbiddenException, NotFoundException
from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.coach_messages import CoachMessageCreate, CoachMessageRead, ConversationSummary
from projectbrain.core.models.io.common import MAX_PAGE_SIZE, MessageResponse
from projectbrain.core.models.io.journal import CountRead
from projectbrain.server.services.deps import CoachMessageServiceDep, ConnectionServiceDep, CurrentUserDep
from projectbrain.services.coach_messages import CoachMessageService
from projectbrain.services.connections import ConnectionService

logger = get_logger(__name__)

router = APIRouter(tags=["coach-messages"])


async def _require_participant(connection_id: str, user: User, connections: ConnectionService) -> None:
    connection = await connections.get_by_id(connection_id)
    if connection is None:
        raise NotFoundException("Connection not found", code="CONNECTION_NOT_FOUND")
    if user.id not in (connection.user_id, connection.coach_id):
        raise ForbiddenException("You are not a participant of this conversation")


async def _require_message_recipient(message_id: int, user: User, messages: CoachMessageService) -> None:
    message = await messages.get_by_id(message_id)
    if message is None:
        raise NotFoundException("Message not found", code="MESSAGE_NOT_FOUND")
    if user.id not in (message.user_id, message.coach_id):
        raise ForbiddenException("You are not a participant of this conversation")


@router.get(
    "/conversations",
    response_model=List[ConversationSummary],
    summary="List Conversations",
    description="One summary per accepted connection, most recent activity first.",
)
async def get_conversations(
    user: CurrentUserDep,
    messages: CoachMessageServiceDep,
    is_coach: bool = Query(False, description="List the caller's client conversations instead of coach ones"),
) -> List[ConversationSummary]:
    return await messages.get_conversations(user.id, is_coach)


@router.get(
    "/conversation/{connection_id}",
    response_model=List[CoachMessageRead],
    summary="Get Conversation Messages",
    description="Messages of a conversation, newest first. Use `before` to page further back.",
    responses={
        403: {"description": "Caller is not a participant"},
        404: {"description": "Connection not found"},
    },
)
async def get_conversation_messages(
    connection_id: str,
    user: CurrentUserDep,
    messages: CoachMessageServiceDep,
    connections: ConnectionServiceDep,
    page_size: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    before: Optional[datetime] = None,
) -> List[CoachMessageRead]:
    """
    Page through a conversation.

    - **page_size**: Number of messages to return.
    - **before**: Only return messages created before this timestamp.
    """
    await _require_participant(connection_id, user, connections)
    items = await messages.get_conversation_messages(connection_id, page_size, before)
    return [CoachMessageRead.model_validate(m) for m in items]


@router.get(
    "/conversation/{connection_id}/search",
    response_model=List[CoachMessageRead],
    summary="Search Conversation",
    description="Case-insensitive search over the text messages of a conversation.",
)
async def search_conversation(
    connection_id: str,
    user: CurrentUserDep,
    messages: CoachMessageServiceDep,
    connections: ConnectionServiceDep,
    term: str = Query(""),
) -> List[CoachMessageRead]:
    await _require_participant(connection_id, user, connections)
    return [CoachMessageRead.model_validate(m) for m in await messages.search_messages(connection_id, term)]


@router.post(
    "",
    response_model=CoachMessageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Send Message",
    description="Send a text message over an accepted connection. The recipient receives a push notification.",
    responses={
        400: {"description": "Connection is not accepted"},
        403: {"description": "Caller is not a participant"},
        404: {"description": "Connection not found"},
        429: {"description": "Monthly message limit reached"},
    },
)
async def send_message(
    payload: CoachMessageCreate, user: CurrentUserDep, messages: CoachMessageServiceDep
) -> CoachMessageRead:
    """
    Send a message.

    - **connection_id**: The accepted connection to send over.
    - **content**: Message text, 1 to 5000 characters.
    """
    message = await messages.send_message(payload.connection_id, user.id, payload.content)
    return CoachMessageRead.model_validate(message)


@router.put(
    "/conversation/{connection_id}/read",
    response_model=CountRead,
    summary="Mark Conversation Read",
    description="Mark every message from the other participant as read.",
    response_description="Number of messages marked read.",
)
async def mark_conversation_read(
    connection_id: str, user: CurrentUserDep, messages: CoachMessageServiceDep, connections: ConnectionServiceDep
) -> CountRead:
    await _require_participant(connection_id, user, connections)
    return CountRead(count=await messages.mark_conversation_as_read(connection_id, user.id))


@router.put(
    "/{message_id}/delivered",
    response_model=MessageResponse,
    summary="Mark Message Delivered",
    description="Record delivery of a message to the caller.",
    responses={404: {"description": "Message not found or sent by the caller"}},
)
async def mark_delivered(message_id: int, user: CurrentUserDep, messages: CoachMessageServiceDep) -> MessageResponse:
    await _require_message_recipient(message_id, user, messages)
    if not await messages.mark_as_delivered(message_id, user.id):
        raise NotFoundException("No message to mark as delivered", code="MESSAGE_NOT_FOUND")
    return MessageResponse(message="Message marked as delivered")


@router.put(
    "/{message_id}/read",
    response_model=MessageResponse,
    summary="Mark Message Read",
    description="Record that the caller read a message.",
    responses={404: {"description": "Message not found"}},
)
async def mark_read(message_id: int, user: CurrentUserDep, messages: CoachMessageServiceDep) -> MessageResponse:
    await _require_message_recipient(message_id, user, messages)
    if not await messages.mark_as_read(message_id, user.id):
        raise NotFoundException("No message to mark as read", code="MESSAGE_NOT_FOUND")
    return MessageResponse(message="Message marked as read")


@router.delete(
    "/{message_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Message",
    description="Delete a message. Only the sender may delete it.",
    responses={403: {"description": "Caller is not the sender"}, 404: {"description": "Message not found"}},
)
async def delete_message(message_id: int, user: CurrentUserDep, messages: CoachMessageServiceDep) -> None:
    if not await messages.delete(message_id, user.id):
        raise NotFoundException("Message not found", code="MESSAGE_NOT_FOUND")
