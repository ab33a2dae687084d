"""
Connection service.

Handles the user/coach connection lifecycle:
pending -> accepted | rejected | cancelled, with re-requests resetting a
cancelled or rejected connection back to pending.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from projectbrain.core.database.entities.connections import Connection, ConnectionStatus, RequestedBy
from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.logging_config import get_logger

logger = get_logger(__name__)

LIVE_STATUSES = (ConnectionStatus.ACCEPTED.value, ConnectionStatus.PENDING.value)


class ConnectionService:
    """Operations on user/coach connections."""

    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def get_connection(self, user_id: str, coach_id: str) -> Optional[Connection]:
        return await self.repos.connections.get_by_pair(user_id, coach_id)

    async def get_by_id(self, connection_id: str) -> Optional[Connection]:
        return await self.repos.connections.get_by_id(connection_id)

    async def create_connection_request(
        self,
        user_id: str,
        coach_id: str,
        requested_by: RequestedBy | str = RequestedBy.USER,
        message: Optional[str] = None,
    ) -> Connection:
        """Create or revive a connection request.

        Pending and accepted connections are returned unchanged. Cancelled or
        rejected ones go back to pending with the new request details.

        Args:
            user_id: Client side
            coach_id: Coach side
            requested_by: Which side is asking
            message: Optional note to the other side

        Returns:
            The pending (or already live) connection
        """
        requester = RequestedBy(requested_by).value
        existing = await self.repos.connections.get_by_pair(user_id, coach_id)
        now = datetime.utcnow()
        if existing is not None:
            if existing.status in LIVE_STATUSES:
                return existing
            existing.status = ConnectionStatus.PENDING.value
            existing.requested_by = requester
            existing.request_message = message
            existing.requested_at = now
            existing.responded_at = None
            existing.updated_at = now
            logger.info(f"Connection {existing.id} re-requested by {requester}")
            return await self.repos.connections.update(existing)

        connection = Connection(
            user_id=user_id,
            coach_id=coach_id,
            status=ConnectionStatus.PENDING.value,
            requested_by=requester,
            request_message=message,
            requested_at=now,
        )
        created = await self.repos.connections.create(connection)
        logger.info(f"Connection {created.id} requested between user {user_id} and coach {coach_id}")
        return created

    async def _respond(self, user_id: str, coach_id: str, status: ConnectionStatus) -> bool:
        connection = await self.repos.connections.get_by_pair(user_id, coach_id)
        if connection is None or connection.status != ConnectionStatus.PENDING.value:
            return False
        now = datetime.utcnow()
        connection.status = status.value
        connection.responded_at = now
        connection.updated_at = now
        await self.repos.connections.update(connection)
        return True

    async def accept_connection(self, user_id: str, coach_id: str) -> bool:
        return await self._respond(user_id, coach_id, ConnectionStatus.ACCEPTED)

    async def reject_connection(self, user_id: str, coach_id: str) -> bool:
        return await self._respond(user_id, coach_id, ConnectionStatus.REJECTED)

    async def cancel_or_delete_connection(self, user_id: str, coach_id: str) -> bool:
        """Cancel a pending request or delete any other connection.

        Returns:
            True in all cases, including when no connection exists
        """
        connection = await self.repos.connections.get_by_pair(user_id, coach_id)
        if connection is None:
            return True
        if connection.status == ConnectionStatus.PENDING.value:
            connection.status = ConnectionStatus.CANCELLED.value
            connection.updated_at = datetime.utcnow()
            await self.repos.connections.update(connection)
        else:
            await self.repos.connections.delete(connection.id)
        return True

    async def get_connected_coach_ids(self, user_id: str) -> List[Tuple[str, str]]:
        connections = await self.repos.connections.list_for_user(user_id, LIVE_STATUSES)
        return [(c.coach_id, c.status) for c in connections]

    async def get_connected_user_ids(self, coach_id: str) -> List[Tuple[str, str]]:
        connections = await self.repos.connections.list_for_coach(coach_id, LIVE_STATUSES)
        return [(c.user_id, c.status) for c in connections]

    async def get_connections_for(self, participant_id: str) -> List[Connection]:
        return await self.repos.connections.list_for_participant(participant_id)

    async def get_earliest_connection_date(self, user_id: str, coach_id: str) -> Optional[datetime]:
        return await self.repos.connections.earliest_date(user_id, coach_id)

    async def is_connected(self, user_id: str, coach_id: str) -> bool:
        connection = await self.repos.connections.get_by_pair(user_id, coach_id)
        return connection is not None and connection.status == ConnectionStatus.ACCEPTED.value
