"""Tests for DeliveryClient."""

import asyncio
import time

import httpx
import pytest

from webhook_server import WEBHOOK_URL, WebhookRecorder
from teams_sink.delivery import DeliveryClient
from teams_sink.errors import DeliveryErrorKind

PAYLOAD = b'{"@type":"MessageCard","text":"hello"}'
REFUSED_URL = "http://127.0.0.1:1/webhook"


class TestDeliveryClientSuccess:
    """Tests for successful deliveries."""

    @pytest.mark.asyncio
    async def test_send_posts_payload(self, delivery_client, webhook):
        """Test that the exact payload is POSTed."""
        result = await delivery_client.send(PAYLOAD, WEBHOOK_URL, timeout=5.0)

        assert result.ok
        assert result.status_code == 204
        assert webhook.bodies == [PAYLOAD]

    @pytest.mark.asyncio
    async def test_send_sets_content_type(self, delivery_client, webhook):
        """Test the JSON content type header."""
        await delivery_client.send(PAYLOAD, WEBHOOK_URL, timeout=5.0)
        assert webhook.headers[0]["content-type"] == "application/json"

    @pytest.mark.asyncio
    async def test_any_2xx_is_success(self):
        """Test that 200 and 202 both count as delivered."""
        for status in (200, 202):
            recorder = WebhookRecorder(status_code=status)
            async with recorder.client() as http_client:
                result = await DeliveryClient(http_client).send(PAYLOAD, WEBHOOK_URL, 5.0)
            assert result.ok
            assert result.status_code == status


class TestDeliveryClientFailures:
    """Tests for failed deliveries."""

    @pytest.mark.asyncio
    async def test_non_2xx_is_status_error(self):
        """Test that an error status becomes DeliveryError(STATUS)."""
        recorder = WebhookRecorder(status_code=500)
        async with recorder.client() as http_client:
            result = await DeliveryClient(http_client).send(PAYLOAD, WEBHOOK_URL, 5.0)

        assert not result.ok
        assert result.status_code == 500
        assert result.error.kind == DeliveryErrorKind.STATUS
        assert result.error.status_code == 500
        assert result.error.body_excerpt == "error 500"

    @pytest.mark.asyncio
    async def test_body_excerpt_is_truncated(self):
        """Test that long error bodies are cut to 200 characters."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, text="x" * 1000)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            result = await DeliveryClient(http_client).send(PAYLOAD, WEBHOOK_URL, 5.0)

        assert len(result.error.body_excerpt) == 200

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test that a slow webhook resolves to DeliveryError(TIMEOUT)."""
        recorder = WebhookRecorder(delay=2.0)
        async with recorder.client() as http_client:
            started = time.monotonic()
            result = await DeliveryClient(http_client).send(PAYLOAD, WEBHOOK_URL, timeout=0.1)
            elapsed = time.monotonic() - started

        assert result.error.kind == DeliveryErrorKind.TIMEOUT
        assert elapsed < 1.0

    @pytest.mark.asyncio
    async def test_httpx_timeout_exception(self):
        """Test that an httpx timeout is reported as TIMEOUT."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            result = await DeliveryClient(http_client).send(PAYLOAD, WEBHOOK_URL, 5.0)

        assert result.error.kind == DeliveryErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        """Test that a refused connection is a TRANSPORT error."""
        client = DeliveryClient()
        try:
            result = await client.send(PAYLOAD, REFUSED_URL, timeout=5.0)
        finally:
            await client.aclose()

        assert not result.ok
        assert result.status_code is None
        assert result.error.kind == DeliveryErrorKind.TRANSPORT
        assert isinstance(result.error.__cause__, httpx.TransportError)

    @pytest.mark.asyncio
    async def test_transport_error_from_mock(self):
        """Test that httpx transport errors never escape send()."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("name resolution failed", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            result = await DeliveryClient(http_client).send(PAYLOAD, WEBHOOK_URL, 5.0)

        assert result.error.kind == DeliveryErrorKind.TRANSPORT
        assert "name resolution failed" in str(result.error)


class TestDeliveryClientCancellation:
    """Tests for the cancellation signal."""

    @pytest.mark.asyncio
    async def test_cancelled_before_send(self, delivery_client, webhook):
        """Test that a pre-set signal skips the request."""
        cancel = asyncio.Event()
        cancel.set()

        result = await delivery_client.send(PAYLOAD, WEBHOOK_URL, 5.0, cancel=cancel)

        assert result.error.kind == DeliveryErrorKind.CANCELLED
        assert webhook.bodies == []

    @pytest.mark.asyncio
    async def test_cancelled_in_flight(self):
        """Test that setting the signal aborts an in-flight request promptly."""
        recorder = WebhookRecorder(delay=5.0)
        cancel = asyncio.Event()

        async with recorder.client() as http_client:
            client = DeliveryClient(http_client)
            asyncio.get_running_loop().call_later(0.1, cancel.set)

            started = time.monotonic()
            result = await client.send(PAYLOAD, WEBHOOK_URL, timeout=10.0, cancel=cancel)
            elapsed = time.monotonic() - started

        assert result.error.kind == DeliveryErrorKind.CANCELLED
        assert elapsed < 1.0
