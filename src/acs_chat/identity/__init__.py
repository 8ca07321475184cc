"""Identity module: mint communication users and access tokens.

Usage:
    from acs_chat.identity import IdentityClient

    async with IdentityClient(host, access_key) as identity:
        user = await identity.create_identity(scopes=["chat"], expires_in_minutes=60)
        token = await identity.issue_access_token(user.id)
"""

from .client import AccessToken, IdentityClient, IssuedIdentity, parse_timestamp
from .signing import HmacSigner

__all__ = [
    "AccessToken",
    "IdentityClient",
    "IssuedIdentity",
    "HmacSigner",
    "parse_timestamp",
]
