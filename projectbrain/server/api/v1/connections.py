"""
API endpoints for connections by id.

Lets either participant of a user/coach connection list, inspect and
remove it.
"""

from typing import List

from fastapi import APIRouter

from projectbrain.core.database.entities.connections import Connection
from projectbrain.core.database.entities.users import User
from projectbrain.core.errors import ForbiddenException, NotFoundException
from projectbrain.core.models.io.common import MessageResponse
from projectbrain.core.models.io.connections import ConnectionRead
from projectbrain.server.services.deps import ConnectionServiceDep, CurrentUserDep
from projectbrain.services.connections import ConnectionService

router = APIRouter(tags=["connections"])


async def _participant_connection(connection_id: str, user: User, connections: ConnectionService) -> Connection:
    connection = await connections.get_by_id(connection_id)
    if connection is None:
        raise NotFoundException("Connection not found", code="CONNECTION_NOT_FOUND")
    if user.id not in (connection.user_id, connection.coach_id):
        raise ForbiddenException("You are not a participant of this connection")
    return connection


@router.get(
    "",
    response_model=List[ConnectionRead],
    summary="List Connections",
    description="All connections where the caller is either the user or the coach.",
)
async def list_connections(user: CurrentUserDep, connections: ConnectionServiceDep) -> List[ConnectionRead]:
    return [ConnectionRead.model_validate(c) for c in await connections.get_connections_for(user.id)]


@router.get(
    "/{connection_id}",
    response_model=ConnectionRead,
    summary="Get Connection",
    description="Retrieve a connection the caller participates in.",
    responses={
        403: {"description": "Caller is not a participant"},
        404: {"description": "Connection not found"},
    },
)
async def get_connection(connection_id: str, user: CurrentUserDep, connections: ConnectionServiceDep) -> ConnectionRead:
    return ConnectionRead.model_validate(await _participant_connection(connection_id, user, connections))


@router.delete(
    "/{connection_id}",
    response_model=MessageResponse,
    summary="Remove Connection",
    description="Cancel a pending connection or delete an established one.",
    responses={
        403: {"description": "Caller is not a participant"},
        404: {"description": "Connection not found"},
    },
)
async def delete_connection(
    connection_id: str, user: CurrentUserDep, connections: ConnectionServiceDep
) -> MessageResponse:
    connection = await _participant_connection(connection_id, user, connections)
    await connections.cancel_or_delete_connection(connection.user_id, connection.coach_id)
    return MessageResponse(message="Connection removed")
