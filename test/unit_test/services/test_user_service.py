import pytest

from projectbrain.core.database.entities.users import User, UserRole
from projectbrain.core.errors import AppException, NotFoundException, ValidationException
from projectbrain.services.coach_profiles import CoachProfileService
from projectbrain.services.users import UserService


class TestUserService:
    async def test_create_registers_user_with_default_role(self, repos):
        service = UserService(repos)

        user = await service.create(User(id="auth0|alice", email="alice@example.com", full_name="Alice"))

        assert user.roles == ["user"]
        assert (await service.get_by_email("ALICE@example.com")).id == "auth0|alice"

    async def test_create_rejects_duplicate_id_and_email(self, repos, make_user):
        await make_user("alice")
        service = UserService(repos)

        with pytest.raises(AppException) as exc_info:
            await service.create(User(id="alice", email="other@example.com"))
        assert exc_info.value.code == "USER_EXISTS"
        assert exc_info.value.status_code == 409

        with pytest.raises(AppException):
            await service.create(User(id="bob", email="alice@example.com"))

    async def test_update_ignores_protected_fields(self, repos, make_user):
        await make_user("alice")
        service = UserService(repos)

        updated = await service.update("alice", {"city": "Leeds", "roles": ["admin"], "id": "mallory"})

        assert updated.id == "alice"
        assert updated.city == "Leeds"
        assert updated.roles == ["user"]

    async def test_complete_onboarding(self, repos, make_user):
        await make_user("alice")

        user = await UserService(repos).complete_onboarding("alice")

        assert user.is_onboarded is True

    async def test_update_roles_validates_and_deduplicates(self, repos, make_user):
        await make_user("alice")
        service = UserService(repos)

        user = await service.update_roles("alice", ["user", "coach", "coach"])
        assert user.roles == ["user", "coach"]

        with pytest.raises(ValidationException) as exc_info:
            await service.update_roles("alice", ["superuser"])
        assert exc_info.value.errors == {"roles": ["superuser"]}

    async def test_add_role_is_idempotent(self, repos, make_user):
        await make_user("alice")
        service = UserService(repos)

        await service.add_role("alice", UserRole.ADMIN)
        user = await service.add_role("alice", UserRole.ADMIN)

        assert user.roles == ["user", "admin"]

    async def test_require_and_delete_missing_user(self, repos):
        service = UserService(repos)

        with pytest.raises(NotFoundException):
            await service.require("ghost")
        with pytest.raises(NotFoundException):
            await service.delete("ghost")

    async def test_list_and_count(self, repos, make_user):
        for name in ("a", "b", "c"):
            await make_user(name)
        service = UserService(repos)

        assert await service.count() == 3
        assert len(await service.list(skip=1, take=5)) == 2


class TestCoachProfileService:
    async def test_create_or_update_grants_coach_role(self, repos, make_user):
        await make_user("coach")
        service = CoachProfileService(repos)

        profile = await service.create_or_update("coach", ["BACP"], ["anxiety"], ["adults"])

        assert profile.qualifications == ["BACP"]
        user = await repos.users.get_by_id("coach")
        assert user.has_role(UserRole.COACH)

        again = await service.create_or_update("coach", [], ["adhd"], [])
        assert again.id == profile.id
        assert again.specialisms == ["adhd"]

    async def test_update_availability_status(self, repos, make_user):
        await make_user("coach")
        service = CoachProfileService(repos)

        assert await service.update_availability_status("coach", "busy") is False

        await service.create_or_update("coach", [], [], [])
        assert await service.update_availability_status("coach", "busy") is True
        assert (await service.get_by_user_id("coach")).availability_status == "busy"

        with pytest.raises(ValidationException):
            await service.update_availability_status("coach", "sleeping")

    async def test_search_filters_location_and_overlaps(self, repos, make_user):
        await make_user("leeds", is_onboarded=True, city="Leeds")
        await make_user("york", is_onboarded=True, city="York")
        await make_user("draft", is_onboarded=False, city="Leeds")
        service = CoachProfileService(repos)
        await service.create_or_update("leeds", [], ["ADHD", "anxiety"], ["teens"])
        await service.create_or_update("york", [], [], [])
        await service.create_or_update("draft", [], ["adhd"], [])

        in_leeds = await service.search(city="lee")
        assert [user.id for _, user in in_leeds] == ["leeds"]

        adhd = await service.search(specialisms=["adhd"])
        # Coaches without specialisms listed match any filter
        assert sorted(user.id for _, user in adhd) == ["leeds", "york"]

        adults = await service.search(age_groups=["adults"])
        assert [user.id for _, user in adults] == ["york"]
