"""
API endpoints for the calling user's account.

Registration of the authenticated identity, profile reads and updates, and
onboarding completion.
"""

from typing import List

import httpx
from fastapi import APIRouter, BackgroundTasks, status

from projectbrain.core.database.entities.users import User
from projectbrain.core.errors import AppException
from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.users import UserCreate, UserRead, UserUpdate
from projectbrain.server.services.deps import CallerIdDep, CurrentUserDep, EmailServiceDep, UserServiceDep
from projectbrain.services.email import MailgunEmailService

logger = get_logger(__name__)

router = APIRouter(tags=["users"])


async def send_welcome_email(email: MailgunEmailService, to: str, name: str) -> None:
    # Runs after the response; the account already exists, so failures are only logged
    try:
        await email.send_welcome_email(to, name)
    except (AppException, httpx.HTTPError) as e:
        logger.warning(f"Welcome email to {to} failed: {e}")


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register User",
    description="Create the account for the authenticated identity in the X-User-Id header.",
    response_description="The newly registered user.",
    responses={
        201: {"description": "User registered"},
        401: {"description": "Missing identity header"},
        409: {"description": "User id or email already registered"},
    },
)
async def register_user(
    payload: UserCreate,
    caller_id: CallerIdDep,
    users: UserServiceDep,
    email: EmailServiceDep,
    background_tasks: BackgroundTasks,
) -> UserRead:
    """
    Register the calling identity.

    - **email**: Unique email address.
    - **full_name**: Display name.
    - **date_of_birth**: Optional date of birth.
    """
    user = User(id=caller_id, **payload.model_dump())
    created = await users.create(user)
    if email is not None:
        background_tasks.add_task(send_welcome_email, email, created.email, created.full_name)
    return UserRead.model_validate(created)


@router.get(
    "/me",
    response_model=UserRead,
    summary="Get Current User",
    description="Retrieve the profile of the calling user.",
    response_description="The user profile.",
)
async def get_me(user: CurrentUserDep) -> UserRead:
    return UserRead.model_validate(user)


@router.put(
    "/me",
    response_model=UserRead,
    summary="Update Current User",
    description="Update profile fields of the calling user. Fields left unset are not changed.",
    response_description="The updated user profile.",
)
async def update_me(payload: UserUpdate, user: CurrentUserDep, users: UserServiceDep) -> UserRead:
    """
    Partially update the calling user's profile.

    Only fields present in the request body are applied.
    """
    updated = await users.update(user.id, payload.model_dump(exclude_unset=True))
    return UserRead.model_validate(updated)


@router.get(
    "/roles",
    response_model=List[str],
    summary="Get Current User Roles",
    description="List the roles granted to the calling user.",
    response_description="Role names.",
)
async def get_my_roles(user: CurrentUserDep) -> List[str]:
    return list(user.roles or [])


@router.post(
    "/me/onboarding",
    response_model=UserRead,
    summary="Complete Onboarding",
    description="Mark the calling user as onboarded.",
    response_description="The updated user profile.",
)
async def complete_onboarding(user: CurrentUserDep, users: UserServiceDep) -> UserRead:
    updated = await users.complete_onboarding(user.id)
    logger.info(f"User {user.id} completed onboarding")
    return UserRead.model_validate(updated)
