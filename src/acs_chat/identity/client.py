"""Identity client for minting communication users and access tokens.

Handles the two calls the chat client needs:
1. Create a new identity together with an initial access token
2. Issue a fresh access token for an existing identity

Requests are authenticated with the resource's shared access key
(HMAC-SHA256), never with a bearer token.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable
from urllib.parse import quote, urlencode

import httpx
from pydantic import TypeAdapter

from ..config import DEFAULT_SCOPES, DEFAULT_TOKEN_TTL_MINUTES, IDENTITY_API_VERSION, normalize_host
from ..errors import IssuanceFailedError, IssuanceReturnedEmptyError
from .signing import HmacSigner

log = logging.getLogger(__name__)

_DATETIME = TypeAdapter(datetime)


def parse_timestamp(value: str) -> datetime:
    """Parse a service timestamp into an aware UTC datetime.

    The service emits up to 7 fractional digits and either 'Z' or an offset.
    """
    parsed = _DATETIME.validate_python(value.strip() if isinstance(value, str) else value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class AccessToken:
    """A bearer token and its expiry."""

    token: str
    expires_on: datetime

    @property
    def is_expired(self) -> bool:
        return datetime.now(timezone.utc) >= self.expires_on


@dataclass(frozen=True)
class IssuedIdentity:
    """A communication user returned by the identity service."""

    id: str
    access_token: AccessToken | None = None


class IdentityClient:
    """Client for the communication identity API.

    Usage:
        identity = IdentityClient(host, access_key)

        user = await identity.create_identity(scopes=["chat"], expires_in_minutes=60)
        token = await identity.issue_access_token(user.id, scopes=["chat"])
    """

    def __init__(
        self,
        host: str,
        access_key: str,
        api_version: str = IDENTITY_API_VERSION,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self.host = normalize_host(host)
        self.api_version = api_version
        self._signer = HmacSigner(access_key)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "IdentityClient":
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def _url(self, path: str) -> str:
        return f"https://{self.host}{path}?{urlencode({'api-version': self.api_version})}"

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send a signed POST and return the decoded JSON body.

        Raises:
            IssuanceFailedError: On transport failure or non-2xx status
            IssuanceReturnedEmptyError: On an empty or non-JSON success body
        """
        url = self._url(path)
        body = json.dumps(payload).encode("utf-8")
        headers = {"Content-Type": "application/json", **self._signer.get_headers("POST", url, body)}

        try:
            response = await self._client.post(url, content=body, headers=headers)
        except httpx.HTTPError as e:
            raise IssuanceFailedError(f"Identity request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise IssuanceFailedError(
                f"Identity request failed: {response.status_code}",
                status_code=response.status_code,
                response=response.text[:500],
            )

        if not response.content:
            raise IssuanceReturnedEmptyError()
        try:
            data = response.json()
        except ValueError as e:
            raise IssuanceReturnedEmptyError(f"Invalid identity response: {e}") from e
        if not isinstance(data, dict):
            raise IssuanceReturnedEmptyError(response=data)
        return data

    async def create_identity(
        self,
        scopes: Iterable[str] = DEFAULT_SCOPES,
        expires_in_minutes: int = DEFAULT_TOKEN_TTL_MINUTES,
    ) -> IssuedIdentity:
        """Create a new communication user and mint its first token.

        Args:
            scopes: Token scopes, e.g. ("chat", "voip"). Empty skips token creation.
            expires_in_minutes: Token lifetime (60 to 1440)

        Returns:
            IssuedIdentity with id and access token
        """
        scopes = list(scopes)
        payload: dict[str, Any] = {"createTokenFor": scopes}
        if scopes:
            payload["expiresInMinutes"] = expires_in_minutes

        data = await self._post("/identities", payload)
        identity = self._parse_identity_response(data, with_token=bool(scopes))
        log.info("Created identity %s", identity.id)
        return identity

    async def issue_access_token(
        self,
        user_id: str,
        scopes: Iterable[str] = DEFAULT_SCOPES,
        expires_in_minutes: int = DEFAULT_TOKEN_TTL_MINUTES,
    ) -> AccessToken:
        """Issue a new access token for an existing identity."""
        data = await self._post(
            f"/identities/{quote(user_id, safe='')}/:issueAccessToken",
            {"scopes": list(scopes), "expiresInMinutes": expires_in_minutes},
        )
        token = self._parse_access_token(data)
        log.info("Issued access token for %s (expires %s)", user_id, token.expires_on.isoformat())
        return token

    def _parse_identity_response(self, data: dict[str, Any], with_token: bool) -> IssuedIdentity:
        identity = data.get("identity") or {}
        user_id = identity.get("id") if isinstance(identity, dict) else None
        if not user_id:
            raise IssuanceReturnedEmptyError(
                "Invalid identity response: missing identity id",
                response=data,
            )
        access_token = self._parse_access_token(data.get("accessToken") or {}) if with_token else None
        return IssuedIdentity(id=user_id, access_token=access_token)

    def _parse_access_token(self, data: dict[str, Any]) -> AccessToken:
        """Raises IssuanceReturnedEmptyError if token or expiry is missing."""
        try:
            token = data["token"]
            expires_on = parse_timestamp(data["expiresOn"])
        except (KeyError, TypeError, ValueError) as e:
            raise IssuanceReturnedEmptyError(
                f"Invalid token response: {e}",
                response=data,
            ) from e
        if not token:
            raise IssuanceReturnedEmptyError("Identity service returned an empty token", response=data)
        return AccessToken(token=token, expires_on=expires_on)
