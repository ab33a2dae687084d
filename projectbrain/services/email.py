"""
Outbound email through the Mailgun HTTP API.

Messages are posted as form data to ``{base_url}/{domain}/messages``. Either
a stored Mailgun template (with JSON variables) or explicit subject/html/text
bodies are sent.
"""

import json
from typing import Dict, List, Optional, Union

import httpx

from projectbrain.core.errors import AppException
from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.notifications import EmailMessage
from projectbrain.server.core.config import FeatureFlagConfig, MailgunConfig, settings

logger = get_logger(__name__)

WELCOME_TEMPLATE = "welcome email"


class MailgunEmailService:
    """Send email with Mailgun."""

    def __init__(
        self,
        config: Optional[MailgunConfig] = None,
        flags: Optional[FeatureFlagConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        """Create the email sender.

        Args:
            config: Mailgun settings; defaults to the application settings
            flags: Feature flags; ``emails_enabled`` off turns sending into a no-op
            client: Optional shared ``httpx.AsyncClient``; without one each send opens its own
            timeout: HTTP timeout for per-send clients

        Raises:
            AppException: ``MAILGUN_FROM_EMAIL`` is not configured
        """
        self.config = config or settings.mailgun
        self.flags = flags or settings.feature_flags
        if not self.config.from_email:
            raise AppException("EMAIL_NOT_CONFIGURED", "MAILGUN_FROM_EMAIL is not configured", status_code=503)
        self._client = client
        self.timeout = timeout

    @property
    def sender(self) -> str:
        if self.config.from_name:
            return f"{self.config.from_name} <{self.config.from_email}>"
        return self.config.from_email or ""

    def build_form(self, message: EmailMessage) -> Dict[str, Union[str, List[str]]]:
        """Form fields for a message. List values are sent as repeated fields."""
        form: Dict[str, Union[str, List[str]]] = {"from": self.sender, "to": list(message.to)}
        if message.cc:
            form["cc"] = list(message.cc)
        if message.bcc:
            form["bcc"] = list(message.bcc)

        if message.template:
            form["template"] = message.template
            if message.subject:
                form["subject"] = message.subject
            if message.variables:
                form["h:X-Mailgun-Variables"] = json.dumps(message.variables)
        else:
            if message.subject:
                form["subject"] = message.subject
            if message.html:
                form["html"] = message.html
            if message.text:
                form["text"] = message.text
        return form

    async def send_email(self, message: EmailMessage) -> bool:
        """Send one message.

        Returns:
            True when sent, False when email is disabled

        Raises:
            AppException: ``EMAIL_SEND_FAILED`` (502) on a non-2xx response
        """
        if not self.flags.emails_enabled:
            logger.warning(f"Emails are disabled, not sending '{message.subject or message.template}'")
            return False

        url = f"{self.config.base_url.rstrip('/')}/{self.config.domain}/messages"
        response = await self._post(url, self.build_form(message))
        if not response.is_success:
            logger.error(
                f"Mailgun rejected email to {', '.join(message.to)}: {response.status_code} {response.text}"
            )
            raise AppException(
                "EMAIL_SEND_FAILED",
                "Failed to send email",
                status_code=502,
                details={"status_code": response.status_code},
            )
        logger.info(f"Email sent to {', '.join(message.to)}")
        return True

    async def send_welcome_email(self, to: str, name: str) -> bool:
        """Send the stored welcome template to a newly registered user."""
        return await self.send_email(EmailMessage(to=[to], template=WELCOME_TEMPLATE, variables={"name": name}))

    async def _post(self, url: str, form: Dict[str, Union[str, List[str]]]) -> httpx.Response:
        auth = ("api", self.config.api_key or "")
        if self._client is not None:
            return await self._client.post(url, data=form, auth=auth)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(url, data=form, auth=auth)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
