"""acs-chat - async client for the Communication Services chat REST API."""

__version__ = "0.1.0"

from .api import ChatClient, ChatMessageType, ChatUser
from .auth import CachedTokenSource, CallbackTokenSource, TokenSource
from .config import ChatSettings, configure_logging
from .errors import (
    ChatError,
    IssuanceFailedError,
    IssuanceReturnedEmptyError,
    NoTokenProvidedError,
    RemoteError,
    ResponseDecodeError,
    TokenError,
    TokenExpiredError,
    TransportError,
    UnauthorizedError,
)
from .identity import IdentityClient

__all__ = [
    "ChatClient",
    "ChatMessageType",
    "ChatUser",
    "ChatSettings",
    "configure_logging",
    "IdentityClient",
    "TokenSource",
    "CachedTokenSource",
    "CallbackTokenSource",
    "ChatError",
    "UnauthorizedError",
    "RemoteError",
    "ResponseDecodeError",
    "TransportError",
    "TokenError",
    "TokenExpiredError",
    "NoTokenProvidedError",
    "IssuanceFailedError",
    "IssuanceReturnedEmptyError",
]
