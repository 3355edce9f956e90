"""Unit tests for ResendDeliveryChannel, mocking the HTTP client."""

import httpx
import pytest

from seatline.notifications.channels import DeliveryError, ResendDeliveryChannel

# =============================================================================
# Mock HTTP infrastructure
# =============================================================================


class MockResponse:
    def __init__(self, *, json_data=None, status_code=200):
        self._json_data = json_data
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise httpx.HTTPStatusError(
                f"HTTP {self.status_code}",
                request=httpx.Request("POST", "https://api.resend.com/emails"),
                response=httpx.Response(self.status_code),
            )

    def json(self):
        return self._json_data


class MockHttpClient:
    """
    Replaces httpx.AsyncClient as the http_client_class.

    The channel calls self._http_client_class() and uses the result as an
    async context manager, so __call__ returns self.
    """

    def __init__(self, response: MockResponse | None = None, error: Exception | None = None):
        self.post_calls: list[dict] = []
        self._response = response or MockResponse(json_data={"id": "msg-123"})
        self._error = error

    async def post(self, url: str, **kwargs) -> MockResponse:
        self.post_calls.append({"url": url, **kwargs})
        if self._error is not None:
            raise self._error
        return self._response

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass

    def __call__(self):
        return self


class MockConfig:
    resend_api_key = "test-api-key"
    emails_from = "notifications@example.com"


async def send(channel: ResendDeliveryChannel) -> str | None:
    return await channel.send_content(
        recipients=["guest@example.com"],
        subject="Hello",
        html_body="<p>Hello</p>",
        text_body="Hello",
    )


# =============================================================================
# Tests
# =============================================================================


async def test_send_content_posts_message_and_returns_provider_id():
    client = MockHttpClient()
    channel = ResendDeliveryChannel(config=MockConfig(), http_client_class=client)

    message_id = await send(channel)

    assert message_id == "msg-123"
    assert len(client.post_calls) == 1
    call = client.post_calls[0]
    assert call["url"] == "https://api.resend.com/emails"
    assert call["headers"]["Authorization"] == "Bearer test-api-key"
    assert call["json"] == {
        "from": "notifications@example.com",
        "to": ["guest@example.com"],
        "subject": "Hello",
        "html": "<p>Hello</p>",
        "text": "Hello",
    }


async def test_rejected_message_raises_delivery_error():
    client = MockHttpClient(response=MockResponse(status_code=422))
    channel = ResendDeliveryChannel(config=MockConfig(), http_client_class=client)

    with pytest.raises(DeliveryError, match="422"):
        await send(channel)


async def test_transport_failure_raises_delivery_error():
    client = MockHttpClient(error=httpx.ConnectError("connection refused"))
    channel = ResendDeliveryChannel(config=MockConfig(), http_client_class=client)

    with pytest.raises(DeliveryError, match="connection refused"):
        await send(channel)
