"""Push notification and email I/O models."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class RegisterTokenRequest(BaseModel):
    token: str = Field(min_length=1)
    platform: Optional[str] = Field(default=None, description="ios, android or web")
    device_id: Optional[str] = None


class RemoveTokenRequest(BaseModel):
    token: str = Field(min_length=1)


class TestNotificationRequest(BaseModel):
    title: str = "Test notification"
    body: str = "Push notifications are working."
    data: Dict[str, str] = Field(default_factory=dict)


class PushNotificationSendResult(BaseModel):
    """Outcome of a push send, single or multicast."""

    success: bool = False
    message_id: Optional[str] = None
    success_count: int = 0
    failure_count: int = 0
    invalid_tokens: List[str] = Field(default_factory=list)
    failed_tokens: List[str] = Field(default_factory=list)


class EmailMessage(BaseModel):
    """Outbound email. Either ``template`` or subject/body fields are used."""

    to: List[str] = Field(min_length=1)
    subject: Optional[str] = None
    html: Optional[str] = None
    text: Optional[str] = None
    template: Optional[str] = None
    variables: Dict[str, object] = Field(default_factory=dict)
    cc: List[str] = Field(default_factory=list)
    bcc: List[str] = Field(default_factory=list)
