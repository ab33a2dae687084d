"""
API endpoints for push notification device tokens.

Clients register their Firebase Cloud Messaging token after sign-in and
remove it on sign-out.
"""

from fastapi import APIRouter

from projectbrain.core.errors import AppException, NotFoundException
from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.common import MessageResponse
from projectbrain.core.models.io.notifications import (
    PushNotificationSendResult,
    RegisterTokenRequest,
    RemoveTokenRequest,
    TestNotificationRequest,
)
from projectbrain.server.services.deps import CurrentUserDep, DeviceTokenServiceDep, PushServiceDep

logger = get_logger(__name__)

router = APIRouter(tags=["push-notifications"])


@router.post(
    "/register-token",
    response_model=MessageResponse,
    summary="Register Device Token",
    description="Register or refresh the caller's device token. A token used by another account is reassigned.",
)
async def register_token(
    payload: RegisterTokenRequest, user: CurrentUserDep, tokens: DeviceTokenServiceDep
) -> MessageResponse:
    """
    Register a device token.

    - **token**: The FCM registration token.
    - **platform**: ios, android or web.
    - **device_id**: Optional client-side device identifier.
    """
    await tokens.register_token(user.id, payload.token, payload.platform, payload.device_id)
    return MessageResponse(message="Device token registered")


@router.post(
    "/test",
    response_model=PushNotificationSendResult,
    summary="Send Test Notification",
    description="Send a notification to every active device of the caller.",
    responses={503: {"description": "Push notifications are not configured"}},
)
async def send_test_notification(
    payload: TestNotificationRequest, user: CurrentUserDep, push: PushServiceDep
) -> PushNotificationSendResult:
    if push is None:
        raise AppException("PUSH_NOT_CONFIGURED", "Push notifications are not configured", status_code=503)
    return await push.send_to_user(user.id, payload.title, payload.body, payload.data)


@router.delete(
    "/remove-token",
    response_model=MessageResponse,
    summary="Remove Device Token",
    description="Remove one of the caller's device tokens.",
    responses={404: {"description": "Token not registered to the caller"}},
)
async def remove_token(
    payload: RemoveTokenRequest, user: CurrentUserDep, tokens: DeviceTokenServiceDep
) -> MessageResponse:
    if not await tokens.remove_token(user.id, payload.token):
        raise NotFoundException("Device token not found", code="TOKEN_NOT_FOUND")
    return MessageResponse(message="Device token removed")
