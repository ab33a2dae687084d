"""
Admin API endpoints for user management.

Listing, inspecting, re-roling and deleting platform accounts.
"""

from fastapi import APIRouter, Query, status

from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.common import PagedRequest, PagedResponse
from projectbrain.core.models.io.users import RolesUpdate, UserRead
from projectbrain.server.services.deps import AdminUserDep, UserServiceDep

logger = get_logger(__name__)

router = APIRouter(tags=["admin-users"])


@router.get(
    "",
    response_model=PagedResponse[UserRead],
    summary="List Users",
    description="List all users, paged.",
    response_description="One page of users.",
    responses={403: {"description": "Admin role required"}},
)
async def list_users(
    admin: AdminUserDep,
    users: UserServiceDep,
    page: int = Query(1),
    page_size: int = Query(20),
) -> PagedResponse[UserRead]:
    """
    List users.

    - **page**: 1-based page number.
    - **page_size**: Items per page, capped at 100.
    """
    paging = PagedRequest(page=page, page_size=page_size)
    items = await users.list(paging.skip, paging.take)
    total = await users.count()
    return PagedResponse[UserRead].build([UserRead.model_validate(u) for u in items], paging, total)


@router.get(
    "/{user_id}",
    response_model=UserRead,
    summary="Get User",
    description="Retrieve any user by id.",
    response_description="The user profile.",
    responses={404: {"description": "User not found"}},
)
async def get_user(user_id: str, admin: AdminUserDep, users: UserServiceDep) -> UserRead:
    return UserRead.model_validate(await users.require(user_id))


@router.put(
    "/{user_id}/roles",
    response_model=UserRead,
    summary="Update User Roles",
    description="Replace the roles of a user. Valid roles are user, coach and admin.",
    response_description="The updated user.",
    responses={
        400: {"description": "Unknown role"},
        404: {"description": "User not found"},
    },
)
async def update_user_roles(
    user_id: str, payload: RolesUpdate, admin: AdminUserDep, users: UserServiceDep
) -> UserRead:
    updated = await users.update_roles(user_id, payload.roles)
    logger.info(f"Admin {admin.id} set roles of {user_id} to {payload.roles}")
    return UserRead.model_validate(updated)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete User",
    description="Permanently delete a user account.",
    responses={
        204: {"description": "User deleted"},
        404: {"description": "User not found"},
    },
)
async def delete_user(user_id: str, admin: AdminUserDep, users: UserServiceDep) -> None:
    await users.delete(user_id)
    logger.info(f"Admin {admin.id} deleted user {user_id}")
