"""Token sources for chat API access.

A chat client always asks its current TokenSource for a bearer token:
- CachedTokenSource holds a token + expiry and refreshes it through the
  identity service when it can
- CallbackTokenSource delegates to a caller-supplied fetch function
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterable, Union

from ..config import DEFAULT_SCOPES, DEFAULT_TOKEN_TTL_MINUTES
from ..errors import (
    IssuanceFailedError,
    IssuanceReturnedEmptyError,
    NoTokenProvidedError,
    TokenExpiredError,
)
from ..identity.client import AccessToken, IdentityClient

log = logging.getLogger(__name__)

TokenFetcher = Callable[[], Union[str, Awaitable[str]]]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TokenSource:
    """Strategy that supplies a bearer token for each outbound call."""

    async def get_token(self) -> str:
        raise NotImplementedError


class CallbackTokenSource(TokenSource):
    """Return whatever the fetch function returns, with no caching or expiry checks."""

    def __init__(self, fetcher: TokenFetcher):
        self._fetcher = fetcher

    async def get_token(self) -> str:
        result = self._fetcher()
        if inspect.isawaitable(result):
            result = await result
        return result


class CachedTokenSource(TokenSource):
    """Holds a token and its expiry, refreshing through the identity service when possible.

    Refresh requires both an IdentityClient and the id of the user the token
    belongs to. Without them an expired token fails with TokenExpiredError.

    Usage:
        source = CachedTokenSource(token="...", expires_at=expiry)
        token = await source.get_token()

        # Self-refreshing
        source = CachedTokenSource(token, expiry, identity=identity, user_id=user.id)
    """

    def __init__(
        self,
        token: str = "",
        expires_at: datetime | None = None,
        identity: IdentityClient | None = None,
        user_id: str | None = None,
        scopes: Iterable[str] = DEFAULT_SCOPES,
        ttl_minutes: int = DEFAULT_TOKEN_TTL_MINUTES,
    ):
        self._credential = AccessToken(token=token or "", expires_on=_as_utc(expires_at or _EPOCH))
        self.identity = identity
        self.user_id = user_id
        self.scopes = tuple(scopes)
        self.ttl_minutes = ttl_minutes

        self._lock = asyncio.Lock()
        # Bumped by set_token so an in-flight refresh never clobbers a newer token
        self._generation = 0

    @property
    def token(self) -> str:
        return self._credential.token

    @property
    def expires_at(self) -> datetime:
        return self._credential.expires_on

    @property
    def is_expired(self) -> bool:
        return self._credential.is_expired

    @property
    def can_refresh(self) -> bool:
        return self.identity is not None and bool(self.user_id)

    def set_token(self, token: str, expires_at: datetime) -> None:
        """Adopt an externally minted token, replacing token and expiry together."""
        self._credential = AccessToken(token=token or "", expires_on=_as_utc(expires_at))
        self._generation += 1

    async def get_token(self) -> str:
        """Get a usable token, refreshing it first if expired and refreshable.

        Raises:
            NoTokenProvidedError: If no token is held
            TokenExpiredError: If the token is expired and cannot be refreshed
            IssuanceFailedError: If the refresh call fails
            IssuanceReturnedEmptyError: If the refresh yields no token
        """
        async with self._lock:
            if self.is_expired and self.can_refresh:
                await self._refresh_locked()
                return self.token

            if not self.token:
                raise NoTokenProvidedError()
            if self.is_expired:
                raise TokenExpiredError(
                    f"token expired at {self.expires_at.isoformat()} and cannot be refreshed"
                )
            return self.token

    async def refresh(self) -> None:
        """Issue a new token for ``user_id`` and store it."""
        async with self._lock:
            await self._refresh_locked()

    async def _refresh_locked(self) -> None:
        if not self.can_refresh:
            raise IssuanceFailedError("token refresh requires an identity client and user id")

        generation = self._generation
        log.debug("Refreshing access token for %s", self.user_id)
        try:
            issued = await self.identity.issue_access_token(
                self.user_id,
                scopes=self.scopes,
                expires_in_minutes=self.ttl_minutes,
            )
        except (IssuanceFailedError, IssuanceReturnedEmptyError):
            raise
        except Exception as e:
            raise IssuanceFailedError(f"token refresh failed: {e}") from e

        if issued is None or not issued.token:
            raise IssuanceReturnedEmptyError()

        if generation != self._generation:
            log.debug("Token replaced during refresh; keeping the adopted token")
            return

        self._credential = issued
        log.info("Access token refreshed (expires %s)", issued.expires_on.isoformat())
