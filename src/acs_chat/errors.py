"""Exception hierarchy for the chat client."""

from __future__ import annotations

from typing import Any


class ChatError(Exception):
    """Base exception for chat service errors."""

    def __init__(self, message: str, status_code: int | None = None, response: Any = None):
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(self.message)


class UnauthorizedError(ChatError):
    """The service rejected the bearer token (HTTP 401)."""

    def __init__(self, message: str = "unauthorized", response: Any = None):
        super().__init__(message, 401, response)


class RemoteError(ChatError):
    """Any other non-success response. ``body`` is the raw response text."""

    def __init__(self, status_code: int, body: str):
        self.body = body
        super().__init__(f"API error {status_code}: {body}", status_code, body)


class ResponseDecodeError(ChatError):
    """A success response whose body could not be parsed."""

    def __init__(self, detail: str, status_code: int | None = None, response: Any = None):
        self.detail = detail
        super().__init__(f"Could not decode response: {detail}", status_code, response)


class TransportError(ChatError):
    """The HTTP exchange itself failed (connection, timeout, ...)."""


class TokenError(ChatError):
    """Base class for token acquisition failures."""


class TokenExpiredError(TokenError):
    """Held token is past its expiry and cannot be refreshed."""

    def __init__(self, message: str = "token expired"):
        super().__init__(message)


class NoTokenProvidedError(TokenError):
    """No credential material is available."""

    def __init__(self, message: str = "no token provided"):
        super().__init__(message)


class IssuanceFailedError(TokenError):
    """The identity service failed to create an identity or issue a token."""


class IssuanceReturnedEmptyError(TokenError):
    """The identity service reported success but returned no usable credential."""

    def __init__(self, message: str = "identity service returned no credential", response: Any = None):
        super().__init__(message, response=response)
