"""Authentication module for the chat client.

Provides the token sources a ChatClient draws bearer tokens from.

Usage:
    from acs_chat.auth import CachedTokenSource

    source = CachedTokenSource(token, expires_at)
    token = await source.get_token()
"""

from .credential import CachedTokenSource, CallbackTokenSource, TokenFetcher, TokenSource

__all__ = [
    "TokenSource",
    "CachedTokenSource",
    "CallbackTokenSource",
    "TokenFetcher",
]
