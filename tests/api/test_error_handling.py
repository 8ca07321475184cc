"""Tests for API error handling."""

import httpx
import pytest
from unittest.mock import AsyncMock

from acs_chat.api.models import ChatUser
from acs_chat.errors import (
    ChatError,
    RemoteError,
    ResponseDecodeError,
    TransportError,
    UnauthorizedError,
)
from tests.conftest import SAMPLE_MESSAGE_ID, SAMPLE_THREAD_ID, SAMPLE_USER_ID


class TestStatusMapping:
    """Non-2xx statuses map onto the error hierarchy."""

    @pytest.mark.asyncio
    async def test_unauthorized(self, chat_client, mock_http_client, mock_response):
        """401 raises UnauthorizedError."""
        mock_http_client.request = AsyncMock(return_value=mock_response(status_code=401, text="denied"))

        with pytest.raises(UnauthorizedError) as exc_info:
            await chat_client.threads.delete(SAMPLE_THREAD_ID)

        assert exc_info.value.status_code == 401
        assert exc_info.value.response == "denied"

    @pytest.mark.asyncio
    async def test_server_error_keeps_body(self, chat_client, mock_http_client, mock_response):
        """500 raises RemoteError carrying status and raw body."""
        mock_http_client.request = AsyncMock(return_value=mock_response(status_code=500, text="boom"))

        with pytest.raises(RemoteError) as exc_info:
            await chat_client.threads.delete(SAMPLE_THREAD_ID)

        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "boom"
        assert "boom" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_not_found(self, chat_client, mock_http_client, mock_response):
        """404 is a RemoteError, not UnauthorizedError."""
        mock_http_client.request = AsyncMock(return_value=mock_response(
            status_code=404, text='{"error": {"code": "NotFound"}}'
        ))

        with pytest.raises(RemoteError) as exc_info:
            await chat_client.messages.get(SAMPLE_THREAD_ID, SAMPLE_MESSAGE_ID)

        assert exc_info.value.status_code == 404
        assert "NotFound" in exc_info.value.body

    @pytest.mark.asyncio
    async def test_forbidden_on_create(self, chat_client, mock_http_client, mock_response):
        """403 is a RemoteError."""
        mock_http_client.request = AsyncMock(return_value=mock_response(status_code=403, text="forbidden"))

        with pytest.raises(RemoteError):
            await chat_client.threads.create("topic", ChatUser(id=SAMPLE_USER_ID))

    @pytest.mark.asyncio
    async def test_ok_without_body_is_success(self, chat_client, mock_http_client, mock_response):
        """200 with no body on a no-result operation does not raise."""
        mock_http_client.request = AsyncMock(return_value=mock_response(status_code=200))

        assert await chat_client.threads.delete(SAMPLE_THREAD_ID) is None

    @pytest.mark.asyncio
    async def test_all_errors_share_base(self, chat_client, mock_http_client, mock_response):
        """Callers can catch ChatError for any failure."""
        mock_http_client.request = AsyncMock(return_value=mock_response(status_code=503, text="busy"))

        with pytest.raises(ChatError):
            await chat_client.participants.list(SAMPLE_THREAD_ID)


class TestDecodeAndTransportErrors:
    """Bad bodies and failed exchanges."""

    @pytest.mark.asyncio
    async def test_invalid_json(self, chat_client, mock_http_client, mock_response):
        """A 2xx body that is not JSON raises ResponseDecodeError."""
        response = mock_response(status_code=200, text="not json")
        response.json.side_effect = ValueError("Expecting value")
        mock_http_client.request = AsyncMock(return_value=response)

        with pytest.raises(ResponseDecodeError) as exc_info:
            await chat_client.messages.get(SAMPLE_THREAD_ID, SAMPLE_MESSAGE_ID)

        assert "Expecting value" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_wrong_shape(self, chat_client, mock_http_client, mock_response):
        """A 2xx body missing required fields raises ResponseDecodeError."""
        mock_http_client.request = AsyncMock(return_value=mock_response({"unexpected": True}, 201))

        with pytest.raises(ResponseDecodeError):
            await chat_client.messages.send(SAMPLE_THREAD_ID, "hello")

    @pytest.mark.asyncio
    async def test_connection_failure(self, chat_client, mock_http_client):
        """httpx transport failures raise TransportError."""
        mock_http_client.request = AsyncMock(side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(TransportError) as exc_info:
            await chat_client.threads.list()

        assert "connection refused" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_timeout(self, chat_client, mock_http_client):
        """Timeouts are transport failures too."""
        mock_http_client.request = AsyncMock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(TransportError):
            await chat_client.messages.delete(SAMPLE_THREAD_ID, SAMPLE_MESSAGE_ID)
