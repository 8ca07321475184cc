"""Chat API client - typed wrapper for the chat REST API.

Supports two ways of obtaining bearer tokens:
1. Bootstrap: mint a new identity from the resource's access key; the token
   is refreshed automatically when it expires
2. Attach: use a pre-minted token + expiry (no refresh)

A caller-supplied fetch function can replace either via set_token_fetcher().
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, TypeVar
from urllib.parse import urlencode, urlsplit

import httpx
from pydantic import BaseModel, ValidationError

from ..auth.credential import CachedTokenSource, CallbackTokenSource, TokenFetcher, TokenSource
from ..config import (
    CHAT_API_VERSION,
    DEFAULT_SCOPES,
    DEFAULT_TOKEN_TTL_MINUTES,
    IDENTITY_API_VERSION,
    JSON_CONTENT_TYPE,
    ChatSettings,
    normalize_host,
)
from ..errors import (
    IssuanceReturnedEmptyError,
    RemoteError,
    ResponseDecodeError,
    TransportError,
    UnauthorizedError,
)
from ..identity.client import IdentityClient
from .messages import MessagesAPI
from .participants import ParticipantsAPI
from .threads import ThreadsAPI

log = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ChatClient:
    """Chat service client with thread, participant and message sub-APIs.

    Usage (bootstrap a new identity):
        async with await ChatClient.create(host, access_key) as chat:
            result = await chat.threads.create("standup", ChatUser(id=chat.user_id, display_name="Me"))
            await chat.messages.send(result.chat_thread.id, "hello")

    Usage (pre-minted token):
        async with ChatClient.from_token(host, token, expires_at) as chat:
            page = await chat.threads.list(max_page_size=20)
    """

    def __init__(
        self,
        host: str,
        credential: CachedTokenSource | None = None,
        *,
        api_version: str = CHAT_API_VERSION,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        """Initialize chat client.

        Args:
            host: Resource host, with or without scheme
            credential: Token holder; an empty one raises NoTokenProvidedError on use
            api_version: Value sent as the api-version query parameter
            http_client: Transport to use instead of a client-owned httpx.AsyncClient
            timeout: Request timeout for the client-owned transport
        """
        self.host = normalize_host(host)
        self.api_version = api_version
        self.credential = credential or CachedTokenSource()
        self._token_source: TokenSource = self.credential

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owned_identity: IdentityClient | None = None

        self.threads = ThreadsAPI(self)
        self.participants = ParticipantsAPI(self)
        self.messages = MessagesAPI(self)

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    async def create(
        cls,
        host: str,
        access_key: str | None = None,
        *,
        identity: IdentityClient | None = None,
        scopes: Iterable[str] = DEFAULT_SCOPES,
        ttl_minutes: int = DEFAULT_TOKEN_TTL_MINUTES,
        api_version: str = CHAT_API_VERSION,
        identity_api_version: str = IDENTITY_API_VERSION,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> "ChatClient":
        """Mint a new identity and return a client that refreshes its own token.

        Raises:
            IssuanceFailedError: If the identity service call fails
            IssuanceReturnedEmptyError: If no identity or token came back
        """
        owned = identity is None
        if identity is None:
            if not access_key:
                raise ValueError("access_key or identity is required")
            identity = IdentityClient(
                host,
                access_key,
                api_version=identity_api_version,
                http_client=http_client,
                timeout=timeout,
            )

        scopes = tuple(scopes)
        try:
            user = await identity.create_identity(scopes=scopes, expires_in_minutes=ttl_minutes)
            if user is None or user.access_token is None:
                raise IssuanceReturnedEmptyError()
        except Exception:
            if owned:
                await identity.close()
            raise

        credential = CachedTokenSource(
            token=user.access_token.token,
            expires_at=user.access_token.expires_on,
            identity=identity,
            user_id=user.id,
            scopes=scopes,
            ttl_minutes=ttl_minutes,
        )
        client = cls(
            host,
            credential,
            api_version=api_version,
            http_client=http_client,
            timeout=timeout,
        )
        if owned:
            client._owned_identity = identity
        return client

    @classmethod
    def from_token(
        cls,
        host: str,
        token: str,
        expires_at: datetime,
        *,
        api_version: str = CHAT_API_VERSION,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> "ChatClient":
        """Attach to a pre-minted token. Once it expires, calls fail with TokenExpiredError."""
        return cls(
            host,
            CachedTokenSource(token=token, expires_at=expires_at),
            api_version=api_version,
            http_client=http_client,
            timeout=timeout,
        )

    @classmethod
    async def from_settings(cls, settings: ChatSettings | None = None) -> "ChatClient":
        """Create a client from ACS_* environment settings.

        A configured token wins over the access key.
        """
        settings = settings or ChatSettings()
        host = settings.resolved_host()
        if not host:
            raise ValueError("ACS_ENDPOINT or ACS_CONNECTION_STRING not set")

        if settings.token:
            if settings.token_expires_at is None:
                raise ValueError("ACS_TOKEN_EXPIRES_AT is required with ACS_TOKEN")
            return cls.from_token(
                host,
                settings.token,
                settings.token_expires_at,
                api_version=settings.api_version,
                timeout=settings.timeout,
            )

        access_key = settings.resolved_access_key()
        if not access_key:
            raise ValueError("Set ACS_TOKEN, ACS_ACCESS_KEY or ACS_CONNECTION_STRING")
        return await cls.create(
            host,
            access_key,
            ttl_minutes=settings.token_ttl_minutes,
            api_version=settings.api_version,
            identity_api_version=settings.identity_api_version,
            timeout=settings.timeout,
        )

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def close(self) -> None:
        """Close the transports this client created."""
        if self._owned_identity:
            await self._owned_identity.close()
            self._owned_identity = None
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # Token handling
    # =========================================================================

    @property
    def user_id(self) -> str | None:
        """Identity id when bootstrapped, else None."""
        return self.credential.user_id

    async def get_token(self) -> str:
        """Get the bearer token for the next call from the active token source."""
        return await self._token_source.get_token()

    async def refresh(self) -> None:
        """Force a token refresh through the identity service."""
        await self.credential.refresh()

    def with_token(self, token: str, expires_at: datetime) -> "ChatClient":
        """Replace the held token and expiry in place."""
        self.credential.set_token(token, expires_at)
        return self

    def set_token_fetcher(self, fetcher: TokenFetcher) -> None:
        """Use ``fetcher`` for every subsequent call, bypassing the held token."""
        self._token_source = CallbackTokenSource(fetcher)

    # =========================================================================
    # HTTP
    # =========================================================================

    def _build_url(self, path: str, query: dict[str, Any] | None = None) -> str:
        """Absolute URL with only the present query parameters, api-version last."""
        params = {k: v for k, v in (query or {}).items() if v is not None}
        params["api-version"] = self.api_version
        return f"https://{self.host}{path}?{urlencode(params)}"

    def _continuation_url(self, next_link: str) -> str:
        """Resolve a nextLink into an absolute URL carrying api-version.

        Raises:
            ResponseDecodeError: If the link points at another host; the bearer
                token is only ever sent to this client's host
        """
        parts = urlsplit(next_link)
        if parts.netloc and parts.netloc.lower() != self.host.lower():
            raise ResponseDecodeError(f"nextLink points to another host: {parts.netloc}")
        url = next_link if parts.scheme else f"https://{self.host}/{next_link.lstrip('/')}"
        if "api-version=" not in parts.query:
            url += ("&" if parts.query else "?") + urlencode({"api-version": self.api_version})
        return url

    async def _request(
        self,
        method: str,
        path: str,
        *,
        query: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        model: type[ModelT] | None = None,
        content_type: str = JSON_CONTENT_TYPE,
        url: str | None = None,
    ) -> ModelT | None:
        """Make an authenticated API request and decode the result.

        Returns:
            ``model`` instance, or None when no model is given

        Raises:
            TokenError: If no token could be obtained
            UnauthorizedError: On 401
            RemoteError: On any other non-2xx status
            ResponseDecodeError: If a success body does not match ``model``
            TransportError: If the request could not be sent
        """
        token = await self.get_token()
        url = url or self._build_url(path, query)
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": content_type,
            "Accept": "application/json",
        }

        try:
            response = await self._client.request(method, url, headers=headers, json=json)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        status = response.status_code
        log.debug("%s %s -> %s", method, path, status)

        if 200 <= status < 300:
            if model is None:
                return None
            return self._decode(response, model)

        if status == 401:
            raise UnauthorizedError(response=response.text)

        raise RemoteError(status, response.text)

    @staticmethod
    def _decode(response: httpx.Response, model: type[ModelT]) -> ModelT:
        try:
            data = response.json()
        except ValueError as e:
            raise ResponseDecodeError(str(e), response.status_code) from e

        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ResponseDecodeError(str(e), response.status_code, data) from e
