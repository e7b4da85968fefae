"""Tests for the webhook sender."""

import errno
import json
import socket

import httpx
import pytest

from queuecord.delivery.classifier import is_transient_failure
from queuecord.delivery.sender import WebhookSender
from queuecord.delivery.types import Delivered, Failed, FailureCategory

URL = "https://discord.test/api/webhooks/1/token"


def _sender(handler) -> WebhookSender:
    return WebhookSender(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestWebhookSender:
    @pytest.mark.asyncio
    async def test_posts_json_content(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        outcome = await _sender(handler).send(URL, "hello there")

        assert outcome == Delivered(status_code=204)
        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert str(seen[0].url) == URL
        assert seen[0].headers["content-type"] == "application/json"
        assert json.loads(seen[0].content) == {"content": "hello there"}

    @pytest.mark.asyncio
    async def test_any_2xx_is_delivered(self):
        outcome = await _sender(lambda request: httpx.Response(200, json={"id": "1"})).send(URL, "hi")
        assert isinstance(outcome, Delivered)

    @pytest.mark.asyncio
    async def test_non_2xx_carries_status_code(self):
        outcome = await _sender(lambda request: httpx.Response(500, text="oops")).send(URL, "hi")
        assert isinstance(outcome, Failed)
        assert outcome.category is FailureCategory.HTTP_STATUS
        assert "500" in outcome.detail
        assert "Internal Server Error" in outcome.detail

    @pytest.mark.asyncio
    async def test_not_found(self):
        outcome = await _sender(lambda request: httpx.Response(404)).send(URL, "hi")
        assert isinstance(outcome, Failed)
        assert "404" in outcome.detail

    @pytest.mark.asyncio
    async def test_single_attempt_per_call(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(503)

        await _sender(handler).send(URL, "hi")
        assert calls == 1

    @pytest.mark.asyncio
    async def test_refused_connect_wrapped_by_httpx_is_transient(self):
        def handler(request: httpx.Request) -> httpx.Response:
            refused = ConnectionRefusedError(errno.ECONNREFUSED, "Connect call failed ('127.0.0.1', 9)")
            attempts = OSError("All connection attempts failed")
            attempts.__cause__ = ExceptionGroup("multiple connection attempts failed", [refused])
            raise httpx.ConnectError("All connection attempts failed", request=request) from attempts

        outcome = await _sender(handler).send(URL, "hi")
        assert isinstance(outcome, Failed)
        assert outcome.category is FailureCategory.CONNECTION
        assert "Connection refused" in outcome.detail
        assert is_transient_failure(outcome)

    @pytest.mark.asyncio
    async def test_closed_local_port_is_transient(self):
        with socket.socket() as sock:
            sock.bind(("127.0.0.1", 0))
            port = sock.getsockname()[1]

        sender = WebhookSender(timeout_s=5.0)
        try:
            outcome = await sender.send(f"http://127.0.0.1:{port}/hook", "hi")
        finally:
            await sender.aclose()

        assert isinstance(outcome, Failed)
        assert outcome.category is FailureCategory.CONNECTION
        assert is_transient_failure(outcome)

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        outcome = await _sender(handler).send(URL, "hi")
        assert isinstance(outcome, Failed)
        assert outcome.category is FailureCategory.TIMEOUT

    @pytest.mark.asyncio
    async def test_unsupported_protocol_is_invalid_endpoint(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.UnsupportedProtocol("Request URL has an unsupported protocol 'ftp://'.", request=request)

        outcome = await _sender(handler).send("ftp://discord.test/hook", "hi")
        assert isinstance(outcome, Failed)
        assert outcome.category is FailureCategory.INVALID_ENDPOINT

    @pytest.mark.asyncio
    async def test_other_transport_errors(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.RemoteProtocolError("Server disconnected without sending a response.", request=request)

        outcome = await _sender(handler).send(URL, "hi")
        assert isinstance(outcome, Failed)
        assert outcome.category is FailureCategory.TRANSPORT
        assert "Server disconnected" in outcome.detail

    @pytest.mark.asyncio
    async def test_aclose_leaves_caller_client_open(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(204)))
        sender = WebhookSender(client=client)
        await sender.aclose()
        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_aclose_closes_own_client(self):
        sender = WebhookSender()
        client = sender._get_client()
        await sender.aclose()
        assert client.is_closed
