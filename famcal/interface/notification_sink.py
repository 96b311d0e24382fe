"""Reminder delivery: push webhook sink with retry logic, or a disabled sink."""

import asyncio
import logging
from typing import Protocol

import httpx
from pydantic import BaseModel, Field

from famcal.core.config import Settings, constants


logger = logging.getLogger(__name__)


# HTTP status code constants for error handling
HTTP_CLIENT_ERROR_START = 400
HTTP_CLIENT_ERROR_END = 500


class NotificationSink(Protocol):
    """Fire-and-forget destination for reminders."""

    @property
    def enabled(self) -> bool:
        """Whether notify() delivers anything."""
        ...

    async def notify(self, title: str, body: str) -> None:
        """Deliver one reminder, best effort."""
        ...


class PushResult(BaseModel):
    """Result of posting a reminder to the push webhook."""

    success: bool = Field(..., description="Whether the push was accepted")
    status_code: int | None = Field(None, description="HTTP status of the last attempt")
    error: str | None = Field(None, description="Error message if failed")


class DisabledNotificationSink:
    """Sink used when notification permission was not granted."""

    enabled = False

    async def notify(self, title: str, body: str) -> None:
        """Drop the reminder."""
        logger.debug("Notification sink disabled, dropping reminder", extra={"title": title})


class WebhookNotificationSink:
    """POSTs ``{"title", "body"}`` to a push webhook."""

    enabled = True

    def __init__(
        self,
        *,
        url: str,
        api_key: str | None = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = constants.API_TIMEOUT_SECONDS,
    ) -> None:
        """Configure the webhook target and retry policy."""
        self.url = url
        self.api_key = api_key
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout

    async def notify(self, title: str, body: str) -> None:
        """Deliver a reminder; failures are logged, never raised."""
        result = await self.push(title=title, body=body)
        if result.success:
            logger.info("Reminder pushed", extra={"title": title, "status_code": result.status_code})
        else:
            logger.error("Reminder push failed", extra={"title": title, "error": result.error})

    async def push(self, *, title: str, body: str) -> PushResult:
        """POST the reminder with retry and exponential backoff on server errors."""
        payload = {"title": title, "body": body}
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-Api-Key"] = self.api_key

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, json=payload, headers=headers)

                    if response.is_success:
                        return PushResult(success=True, status_code=response.status_code)

                    if HTTP_CLIENT_ERROR_START <= response.status_code < HTTP_CLIENT_ERROR_END:
                        return PushResult(
                            success=False,
                            status_code=response.status_code,
                            error=f"Client error: {response.text}",
                        )

                    raise httpx.HTTPStatusError(
                        f"Server error: {response.status_code}", request=response.request, response=response
                    )
            except httpx.HTTPStatusError as e:
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(self.retry_delay * (2**attempt))
                else:
                    return PushResult(
                        success=False,
                        status_code=e.response.status_code,
                        error=f"Failed after retries: {e!s}",
                    )
            except Exception as e:
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(self.retry_delay * (2**attempt))
                else:
                    return PushResult(success=False, error=f"Failed after retries: {e!s}")

        return PushResult(success=False, error="Max retries exceeded")


def build_notification_sink(config: Settings) -> NotificationSink:
    """Pick the sink from the permission state read at startup."""
    if config.notification_permission != "granted":
        logger.info("Notifications not granted, reminders disabled", extra={"permission": config.notification_permission})
        return DisabledNotificationSink()

    if not config.notification_webhook_url:
        logger.warning("Notifications granted but no webhook URL configured, reminders disabled")
        return DisabledNotificationSink()

    return WebhookNotificationSink(url=config.notification_webhook_url, api_key=config.notification_api_key)
