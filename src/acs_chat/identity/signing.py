"""HMAC-SHA256 shared-key request signing for the identity API."""

from __future__ import annotations

import base64
import hashlib
import hmac
from email.utils import formatdate
from urllib.parse import urlsplit

SIGNED_HEADERS = "x-ms-date;host;x-ms-content-sha256"


class HmacSigner:
    """Builds the headers for an HMAC-authenticated request.

    The access key is the base64 value shown in the resource's "Keys" blade.
    """

    def __init__(self, access_key: str):
        try:
            self._key = base64.b64decode(access_key, validate=True)
        except ValueError as e:
            raise ValueError("access key must be base64 encoded") from e

    @staticmethod
    def content_hash(body: bytes) -> str:
        return base64.b64encode(hashlib.sha256(body).digest()).decode()

    def sign(self, string_to_sign: str) -> str:
        digest = hmac.new(self._key, string_to_sign.encode("utf-8"), hashlib.sha256).digest()
        return base64.b64encode(digest).decode()

    def get_headers(
        self,
        method: str,
        url: str,
        body: bytes = b"",
        date: str | None = None,
    ) -> dict[str, str]:
        """Return signing headers for ``method url`` with the exact ``body`` bytes to be sent."""
        parts = urlsplit(url)
        path_and_query = parts.path + (f"?{parts.query}" if parts.query else "")
        date = date or formatdate(usegmt=True)
        content_hash = self.content_hash(body)

        string_to_sign = f"{method.upper()}\n{path_and_query}\n{date};{parts.netloc};{content_hash}"
        signature = self.sign(string_to_sign)

        return {
            "x-ms-date": date,
            "x-ms-content-sha256": content_hash,
            "Authorization": f"HMAC-SHA256 SignedHeaders={SIGNED_HEADERS}&Signature={signature}",
        }
