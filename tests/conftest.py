"""Shared test fixtures for the acs-chat test suite."""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from typing import Any

from acs_chat.identity.client import AccessToken, IssuedIdentity

# Sample IDs used across tests
SAMPLE_HOST = "test-resource.communication.azure.com"
SAMPLE_ACCESS_KEY = "c2VjcmV0LWtleS1mb3ItdGVzdHM="  # base64("secret-key-for-tests")
SAMPLE_TOKEN = "t1"
SAMPLE_USER_ID = "8:acs:user_test789"
SAMPLE_OTHER_USER_ID = "8:acs:user_other456"
SAMPLE_THREAD_ID = "th-1"
SAMPLE_MESSAGE_ID = "msg-1"
API_VERSION_PARAM = "api-version=2021-09-07"


def in_minutes(minutes: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(minutes=minutes)


# ============================================================================
# Mock Response Data
# ============================================================================

MOCK_IDENTIFIER = {
    "rawId": SAMPLE_USER_ID,
    "communicationUser": {"id": SAMPLE_USER_ID},
}

MOCK_THREAD = {
    "id": SAMPLE_THREAD_ID,
    "topic": "topic",
    "createdOn": "2024-01-15T10:00:00Z",
    "createdByCommunicationIdentifier": MOCK_IDENTIFIER,
}

MOCK_THREAD_ITEM = {
    "id": SAMPLE_THREAD_ID,
    "topic": "topic",
    "lastMessageReceivedOn": "2024-01-15T10:30:00Z",
}

MOCK_PARTICIPANT = {
    "communicationIdentifier": MOCK_IDENTIFIER,
    "displayName": "Test User",
    "shareHistoryTime": "1970-01-01T00:00:00Z",
}

MOCK_MESSAGE = {
    "id": SAMPLE_MESSAGE_ID,
    "type": "text",
    "sequenceId": "3",
    "version": "1705314600000",
    "content": {"message": "hello"},
    "senderDisplayName": "Test User",
    "senderCommunicationIdentifier": MOCK_IDENTIFIER,
    "metadata": {"key": "value"},
    "createdOn": "2024-01-15T10:30:00.1234567+00:00",
}


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def mock_response():
    """Factory fixture to create mock HTTP responses."""
    def _create_response(data: Any = None, status_code: int = 200, text: str | None = None):
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = data
        response.text = text if text is not None else ("" if data is None else str(data))
        response.content = response.text.encode()
        return response
    return _create_response


@pytest.fixture
def mock_http_client(mock_response):
    """Create a mock httpx.AsyncClient whose request() succeeds with an empty body."""
    client = AsyncMock()
    client.request = AsyncMock(return_value=mock_response(None, 204))
    client.post = AsyncMock(return_value=mock_response(None, 204))
    return client


@pytest.fixture
def chat_client(mock_http_client):
    """ChatClient attached to a valid pre-minted token."""
    from acs_chat.api.client import ChatClient
    return ChatClient.from_token(
        SAMPLE_HOST,
        SAMPLE_TOKEN,
        in_minutes(60),
        http_client=mock_http_client,
    )


@pytest.fixture
def stub_identity():
    """Identity collaborator that mints SAMPLE_USER_ID with token 't1' for 60 minutes."""
    identity = AsyncMock()
    identity.create_identity = AsyncMock(return_value=IssuedIdentity(
        id=SAMPLE_USER_ID,
        access_token=AccessToken(token=SAMPLE_TOKEN, expires_on=in_minutes(60)),
    ))
    identity.issue_access_token = AsyncMock(
        return_value=AccessToken(token="t2", expires_on=in_minutes(1440))
    )
    return identity


def sent_request(mock_http_client, index: int = -1) -> dict[str, Any]:
    """Unpack a recorded request() call into method/url/headers/json."""
    call = mock_http_client.request.call_args_list[index]
    method, url = call[0]
    return {
        "method": method,
        "url": url,
        "headers": call[1]["headers"],
        "json": call[1].get("json"),
    }


# ============================================================================
# CLI Testing Fixtures
# ============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner."""
    from typer.testing import CliRunner
    return CliRunner()
