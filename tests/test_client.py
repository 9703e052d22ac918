"""Tests for the rate-limited API client."""

import asyncio
import json
from unittest.mock import AsyncMock, Mock

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from csvload.auth import TokenProvider
from csvload.client import ApiClient, _decode_body
from csvload.errors import (
    LookupFailedError,
    RequestFailedError,
    TransportError,
    UnauthorizedError,
)
from orchestration import FatalRecordError, RateLimiter


def make_session(status=200, body=""):
    """Build a mock session whose request() yields one canned response."""
    mock_session = Mock(spec=aiohttp.ClientSession)
    mock_session.closed = False
    mock_response = Mock()
    mock_response.status = status
    mock_response.read = AsyncMock(return_value=body if isinstance(body, bytes) else body.encode("utf-8"))

    mock_session.request.return_value.__aenter__ = AsyncMock(return_value=mock_response)
    mock_session.request.return_value.__aexit__ = AsyncMock(return_value=None)
    return mock_session


class TestDecodeBody:
    """Test response body decoding."""

    def test_json_body(self):
        assert _decode_body('{"response": []}') == {"response": []}

    def test_text_body(self):
        assert _decode_body("accepted") == "accepted"

    def test_empty_body(self):
        assert _decode_body("") is None


@pytest.mark.unit
class TestApiClient:
    """Test ApiClient request handling."""

    def setup_method(self):
        """Set up test fixtures."""
        self.mock_rate_limiter = Mock(spec=RateLimiter)
        self.mock_rate_limiter.acquire = AsyncMock()
        self.token_provider = TokenProvider("token-1")
        self.client = ApiClient(rate_limiter=self.mock_rate_limiter, token_provider=self.token_provider)

    def test_session_requires_context(self):
        """Using the client outside its context is an error."""
        with pytest.raises(RuntimeError):
            self.client.session

    @pytest.mark.asyncio
    async def test_context_manages_session(self):
        """The session is created on entry and closed on exit."""
        async with self.client as client:
            session = client.session
            assert not session.closed
        assert session.closed
        with pytest.raises(RuntimeError):
            self.client.session

    @pytest.mark.asyncio
    async def test_post_success(self):
        """A 2xx response returns the decoded body."""
        mock_session = make_session(200, '{"id": "abc"}')
        self.client._session = mock_session

        body = await self.client.post("https://api.example.test/clients", {"dataList": []})

        assert body == {"id": "abc"}
        self.mock_rate_limiter.acquire.assert_awaited_once()
        args, kwargs = mock_session.request.call_args
        assert args == ("post", "https://api.example.test/clients")
        assert kwargs["json"] == {"dataList": []}
        assert kwargs["headers"]["Authorization"] == "Bearer token-1"
        assert kwargs["headers"]["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_token_read_at_call_time(self):
        """A refreshed token is used by the next request."""
        mock_session = make_session(200, "")
        self.client._session = mock_session

        await self.client.post("https://api.example.test/clients", {})
        self.token_provider.set_token("token-2")
        await self.client.post("https://api.example.test/clients", {})

        first, second = mock_session.request.call_args_list
        assert first.kwargs["headers"]["Authorization"] == "Bearer token-1"
        assert second.kwargs["headers"]["Authorization"] == "Bearer token-2"
        assert self.mock_rate_limiter.acquire.await_count == 2

    @pytest.mark.asyncio
    async def test_no_token_sends_no_authorization(self):
        mock_session = make_session(200, "")
        self.client._session = mock_session
        self.token_provider.set_token("")

        await self.client.post("https://api.example.test/clients", {})

        assert "Authorization" not in mock_session.request.call_args.kwargs["headers"]

    @pytest.mark.asyncio
    async def test_unauthorized(self):
        """A 401 raises the fatal UnauthorizedError."""
        self.client._session = make_session(401, '{"error": "expired"}')

        with pytest.raises(UnauthorizedError) as exc_info:
            await self.client.post("https://api.example.test/clients", {})

        assert exc_info.value.status == 401
        assert exc_info.value.body == {"error": "expired"}
        assert isinstance(exc_info.value, FatalRecordError)

    @pytest.mark.asyncio
    async def test_request_failed(self):
        """Any other non-2xx status is an ordinary record failure."""
        self.client._session = make_session(500, "server error")

        with pytest.raises(RequestFailedError) as exc_info:
            await self.client.post("https://api.example.test/clients", {})

        assert exc_info.value.status == 500
        assert exc_info.value.body == "server error"
        assert not isinstance(exc_info.value, FatalRecordError)

    @pytest.mark.asyncio
    async def test_connection_error_is_transport_error(self):
        """No response received is not treated as unauthorized."""
        mock_session = Mock(spec=aiohttp.ClientSession)
        mock_session.closed = False
        mock_session.request.side_effect = aiohttp.ClientConnectionError("connection refused")
        self.client._session = mock_session

        with pytest.raises(TransportError) as exc_info:
            await self.client.post("https://api.example.test/clients", {})

        assert exc_info.value.status is None
        assert not isinstance(exc_info.value, FatalRecordError)

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self):
        mock_session = Mock(spec=aiohttp.ClientSession)
        mock_session.closed = False
        mock_session.request.side_effect = asyncio.TimeoutError()
        self.client._session = mock_session

        with pytest.raises(TransportError, match="timed out"):
            await self.client.post("https://api.example.test/clients", {})

    @pytest.mark.asyncio
    async def test_lookup_field(self):
        """The first match's field is returned from an eq query."""
        body = {"response": [{"rateKey": "RK-1", "taxRateId": "T1"}]}
        mock_session = make_session(200, json.dumps(body))
        self.client._session = mock_session

        value = await self.client.lookup_field(
            "https://api.example.test/taxrateheader/query?size=1&page=0", "taxRateId", "T1", "rateKey"
        )

        assert value == "RK-1"
        assert mock_session.request.call_args.kwargs["json"] == [
            {"key": "taxRateId", "value": "T1", "operation": "eq"}
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        ['{"response": []}', '{"other": 1}', '{"response": [{"rateKey": null}]}', "not json", ""],
    )
    async def test_lookup_field_without_match(self, body):
        """A lookup without a usable identifier raises LookupFailedError."""
        self.client._session = make_session(200, body)

        with pytest.raises(LookupFailedError):
            await self.client.lookup_field(
                "https://api.example.test/query", "taxRateId", "T1", "rateKey"
            )

    @pytest.mark.asyncio
    async def test_unauthorized_with_undecodable_body(self):
        """A 401 whose body is not valid UTF-8 is still unauthorized."""
        self.client._session = make_session(401, b"\xff\xfe\xfa")

        with pytest.raises(UnauthorizedError) as exc_info:
            await self.client.post("https://api.example.test/clients", {})

        assert exc_info.value.status == 401

    @pytest.mark.asyncio
    async def test_unauthorized_with_unreadable_body(self):
        """A 401 whose body fails mid-read is classified by its status."""
        mock_session = make_session(401)
        response = await mock_session.request.return_value.__aenter__()
        response.read.side_effect = aiohttp.ClientPayloadError("Response payload is not completed")
        self.client._session = mock_session

        with pytest.raises(UnauthorizedError) as exc_info:
            await self.client.post("https://api.example.test/clients", {})

        assert exc_info.value.body is None

    @pytest.mark.asyncio
    async def test_failed_status_with_unreadable_body(self):
        mock_session = make_session(503)
        response = await mock_session.request.return_value.__aenter__()
        response.read.side_effect = aiohttp.ClientPayloadError("Response payload is not completed")
        self.client._session = mock_session

        with pytest.raises(RequestFailedError) as exc_info:
            await self.client.post("https://api.example.test/clients", {})

        assert exc_info.value.status == 503

    @pytest.mark.asyncio
    async def test_success_with_unreadable_body_is_transport_error(self):
        """A 2xx whose body cannot be read is not reported as a success."""
        mock_session = make_session(200)
        response = await mock_session.request.return_value.__aenter__()
        response.read.side_effect = aiohttp.ClientPayloadError("Response payload is not completed")
        self.client._session = mock_session

        with pytest.raises(TransportError) as exc_info:
            await self.client.post("https://api.example.test/clients", {})

        assert exc_info.value.status == 200
        assert not isinstance(exc_info.value, FatalRecordError)

    @pytest.mark.asyncio
    async def test_close_without_session(self):
        await self.client.close()
        assert self.client._session is None


@pytest.mark.integration
class TestApiClientOverHttp:
    """Test ApiClient against a local aiohttp server."""

    @pytest.mark.asyncio
    async def test_unauthorized_with_invalid_charset_body(self):
        """A 401 declared as UTF-8 JSON but carrying invalid bytes stays fatal."""

        async def reject(request):
            return web.Response(
                status=401, body=b"\xff\xfe\xfa", content_type="application/json", charset="utf-8"
            )

        app = web.Application()
        app.router.add_post("/clients", reject)
        server = TestServer(app)
        await server.start_server()

        rate_limiter = RateLimiter(tokens=10, interval=0.01)
        try:
            async with ApiClient(rate_limiter, TokenProvider("token-1")) as client:
                with pytest.raises(UnauthorizedError) as exc_info:
                    await client.post(str(server.make_url("/clients")), {"dataList": []})
        finally:
            rate_limiter.close()
            await server.close()

        assert exc_info.value.status == 401
        assert isinstance(exc_info.value.body, str)
