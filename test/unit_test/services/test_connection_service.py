import pytest

from projectbrain.core.database.entities.connections import ConnectionStatus, RequestedBy
from projectbrain.services.connections import ConnectionService


@pytest.fixture
async def people(make_user):
    await make_user("user")
    await make_user("coach", roles=["user", "coach"])


class TestConnectionService:
    async def test_request_creates_pending_connection(self, repos, people):
        service = ConnectionService(repos)

        connection = await service.create_connection_request("user", "coach", message="Hi")

        assert connection.status == ConnectionStatus.PENDING.value
        assert connection.requested_by == RequestedBy.USER.value
        assert connection.request_message == "Hi"
        assert await service.is_connected("user", "coach") is False

    async def test_request_returns_live_connection_unchanged(self, repos, people):
        service = ConnectionService(repos)
        first = await service.create_connection_request("user", "coach", message="first")

        second = await service.create_connection_request("user", "coach", requested_by="coach", message="second")

        assert second.id == first.id
        assert second.request_message == "first"
        assert second.requested_by == "user"

    async def test_accept_and_reject_only_apply_to_pending(self, repos, people):
        service = ConnectionService(repos)
        assert await service.accept_connection("user", "coach") is False

        await service.create_connection_request("user", "coach")
        assert await service.accept_connection("user", "coach") is True
        assert await service.is_connected("user", "coach") is True
        assert (await service.get_connection("user", "coach")).responded_at is not None

        assert await service.reject_connection("user", "coach") is False

    async def test_rejected_connection_can_be_requested_again(self, repos, people):
        service = ConnectionService(repos)
        original = await service.create_connection_request("user", "coach")
        await service.reject_connection("user", "coach")

        revived = await service.create_connection_request("user", "coach", requested_by=RequestedBy.COACH)

        assert revived.id == original.id
        assert revived.status == ConnectionStatus.PENDING.value
        assert revived.requested_by == "coach"
        assert revived.responded_at is None

    async def test_cancel_pending_then_delete_other_states(self, repos, people):
        service = ConnectionService(repos)
        assert await service.cancel_or_delete_connection("user", "coach") is True

        await service.create_connection_request("user", "coach")
        await service.cancel_or_delete_connection("user", "coach")
        assert (await service.get_connection("user", "coach")).status == ConnectionStatus.CANCELLED.value

        await service.cancel_or_delete_connection("user", "coach")
        assert await service.get_connection("user", "coach") is None

    async def test_connected_ids_include_pending_and_accepted(self, repos, make_user, make_connection):
        await make_user("user")
        for coach in ("c1", "c2", "c3"):
            await make_user(coach, roles=["coach"])
        await make_connection("user", "c1")
        await make_connection("user", "c2", status="pending")
        await make_connection("user", "c3", status="rejected")
        service = ConnectionService(repos)

        coaches = dict(await service.get_connected_coach_ids("user"))
        assert coaches == {"c1": "accepted", "c2": "pending"}
        assert await service.get_connected_user_ids("c1") == [("user", "accepted")]
        assert len(await service.get_connections_for("user")) == 3
        assert await service.get_earliest_connection_date("user", "c1") is not None
