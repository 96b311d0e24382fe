"""Tests for reminder delivery through the push webhook via httpx."""

from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from famcal.core.config import Settings
from famcal.interface.notification_sink import (
    DisabledNotificationSink,
    WebhookNotificationSink,
    build_notification_sink,
)


WEBHOOK_URL = "https://push.example.test/notify"


@pytest.fixture(autouse=True)
def mock_asyncio_sleep() -> Generator[AsyncMock, None, None]:
    """Mock asyncio.sleep to avoid actual delays in retry tests."""
    with patch("famcal.interface.notification_sink.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


def _response(status_code: int, text: str = "") -> MagicMock:
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    response.text = text
    response.request = MagicMock()
    return response


@pytest.mark.unit
class TestBuildNotificationSink:
    def test_default_permission_disables(self) -> None:
        sink = build_notification_sink(Settings(notification_permission="default", notification_webhook_url=WEBHOOK_URL))
        assert isinstance(sink, DisabledNotificationSink)
        assert sink.enabled is False

    def test_denied_permission_disables(self) -> None:
        sink = build_notification_sink(Settings(notification_permission="denied", notification_webhook_url=WEBHOOK_URL))
        assert sink.enabled is False

    def test_granted_without_url_disables(self) -> None:
        sink = build_notification_sink(Settings(notification_permission="granted", notification_webhook_url=None))
        assert sink.enabled is False

    def test_granted_with_url_enables(self) -> None:
        sink = build_notification_sink(
            Settings(notification_permission="granted", notification_webhook_url=WEBHOOK_URL, notification_api_key="k")
        )
        assert isinstance(sink, WebhookNotificationSink)
        assert sink.enabled is True
        assert sink.api_key == "k"

    async def test_disabled_sink_notify_is_noop(self) -> None:
        await DisabledNotificationSink().notify("Påminnelse", "Leo: Fotboll kl 14:30")


@pytest.mark.unit
class TestWebhookNotificationSink:
    async def test_push_success(self) -> None:
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(200)

            sink = WebhookNotificationSink(url=WEBHOOK_URL, api_key="secret")
            result = await sink.push(title="Påminnelse", body="Leo: Fotboll kl 14:30")

            assert result.success is True
            assert result.status_code == 200
            call_kwargs = mock_post.call_args.kwargs
            assert call_kwargs["json"] == {"title": "Påminnelse", "body": "Leo: Fotboll kl 14:30"}
            assert call_kwargs["headers"]["X-Api-Key"] == "secret"

    async def test_push_without_api_key_sends_no_header(self) -> None:
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(204)

            await WebhookNotificationSink(url=WEBHOOK_URL).push(title="t", body="b")

            assert "X-Api-Key" not in mock_post.call_args.kwargs["headers"]

    async def test_client_error_is_not_retried(self) -> None:
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(401, "Unauthorized")

            result = await WebhookNotificationSink(url=WEBHOOK_URL).push(title="t", body="b")

            assert result.success is False
            assert "Client error" in result.error
            assert mock_post.call_count == 1

    async def test_server_error_is_retried(self, mock_asyncio_sleep: AsyncMock) -> None:
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(503)

            result = await WebhookNotificationSink(url=WEBHOOK_URL, max_retries=3, retry_delay=1.0).push(
                title="t", body="b"
            )

            assert result.success is False
            assert result.error == "Failed after retries: Server error: 503"
            assert mock_post.call_count == 3
            assert [c.args[0] for c in mock_asyncio_sleep.call_args_list] == [1.0, 2.0]

    async def test_network_error_recovers(self) -> None:
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.side_effect = [httpx.ConnectError("refused"), _response(200)]

            result = await WebhookNotificationSink(url=WEBHOOK_URL).push(title="t", body="b")

            assert result.success is True
            assert mock_post.call_count == 2

    async def test_notify_never_raises(self) -> None:
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.side_effect = httpx.ConnectError("refused")

            await WebhookNotificationSink(url=WEBHOOK_URL, max_retries=2).notify("t", "b")

            assert mock_post.call_count == 2
