"""Tests for HMAC request signing."""

import base64
import hashlib
import hmac

import pytest

from acs_chat.identity.signing import HmacSigner
from tests.conftest import SAMPLE_ACCESS_KEY, SAMPLE_HOST

DATE = "Mon, 15 Jan 2024 10:00:00 GMT"


def expected_signature(string_to_sign: str) -> str:
    key = base64.b64decode(SAMPLE_ACCESS_KEY)
    digest = hmac.new(key, string_to_sign.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


class TestHmacSigner:
    """Tests for HmacSigner."""

    def test_rejects_non_base64_key(self):
        """Should refuse keys that are not base64."""
        with pytest.raises(ValueError):
            HmacSigner("not base64!!")

    def test_content_hash_of_empty_body(self):
        """Should hash the empty body to the well-known SHA-256 value."""
        assert HmacSigner.content_hash(b"") == "47DEQpj8HBSa+/TImW+5JCeuQeRkm5NMpJWZG3hSuFU="

    def test_headers(self):
        """Should sign method, path+query, date, host and content hash."""
        signer = HmacSigner(SAMPLE_ACCESS_KEY)
        body = b'{"createTokenFor": ["chat"]}'
        url = f"https://{SAMPLE_HOST}/identities?api-version=2023-10-01"

        headers = signer.get_headers("post", url, body, date=DATE)

        content_hash = base64.b64encode(hashlib.sha256(body).digest()).decode()
        string_to_sign = f"POST\n/identities?api-version=2023-10-01\n{DATE};{SAMPLE_HOST};{content_hash}"
        assert headers == {
            "x-ms-date": DATE,
            "x-ms-content-sha256": content_hash,
            "Authorization": (
                "HMAC-SHA256 SignedHeaders=x-ms-date;host;x-ms-content-sha256"
                f"&Signature={expected_signature(string_to_sign)}"
            ),
        }

    def test_signature_depends_on_body(self):
        """Should produce different signatures for different bodies."""
        signer = HmacSigner(SAMPLE_ACCESS_KEY)
        url = f"https://{SAMPLE_HOST}/identities?api-version=2023-10-01"

        first = signer.get_headers("POST", url, b"{}", date=DATE)
        second = signer.get_headers("POST", url, b"[]", date=DATE)

        assert first["Authorization"] != second["Authorization"]

    def test_default_date_is_rfc1123(self):
        """Should stamp a GMT date when none is given."""
        headers = HmacSigner(SAMPLE_ACCESS_KEY).get_headers("POST", f"https://{SAMPLE_HOST}/identities")

        assert headers["x-ms-date"].endswith(" GMT")
