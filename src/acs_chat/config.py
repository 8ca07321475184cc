"""Client configuration via pydantic-settings."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.console import Console
from rich.logging import RichHandler

CHAT_API_VERSION = "2021-09-07"
IDENTITY_API_VERSION = "2023-10-01"

JSON_CONTENT_TYPE = "application/json"
MERGE_PATCH_CONTENT_TYPE = "application/merge-patch+json"

# Scopes and lifetime used for self-issued tokens
DEFAULT_SCOPES = ("chat", "voip")
DEFAULT_TOKEN_TTL_MINUTES = 1440


def normalize_host(endpoint: str) -> str:
    """Strip scheme and trailing slash: 'https://x.communication.azure.com/' -> 'x.communication.azure.com'."""
    host = endpoint.strip()
    for prefix in ("https://", "http://"):
        if host.lower().startswith(prefix):
            host = host[len(prefix):]
            break
    return host.rstrip("/")


def parse_connection_string(value: str) -> tuple[str, str]:
    """Split an ``endpoint=...;accesskey=...`` connection string.

    Returns:
        (host, access_key)

    Raises:
        ValueError: If either part is missing
    """
    parts: dict[str, str] = {}
    for segment in value.split(";"):
        if not segment.strip() or "=" not in segment:
            continue
        key, _, val = segment.partition("=")
        parts[key.strip().lower()] = val.strip()

    endpoint = parts.get("endpoint")
    access_key = parts.get("accesskey")
    if not endpoint or not access_key:
        raise ValueError("Connection string must contain 'endpoint' and 'accesskey'")
    return normalize_host(endpoint), access_key


class ChatSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ACS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    endpoint: str | None = None
    access_key: str | None = None
    connection_string: str | None = None

    # Pre-minted credential (attach mode)
    token: str | None = None
    token_expires_at: datetime | None = None

    api_version: str = CHAT_API_VERSION
    identity_api_version: str = IDENTITY_API_VERSION
    token_ttl_minutes: int = DEFAULT_TOKEN_TTL_MINUTES
    timeout: float = 30.0

    log_level: str = "INFO"
    log_file: Path | None = None

    def resolved_host(self) -> str | None:
        if self.endpoint:
            return normalize_host(self.endpoint)
        if self.connection_string:
            return parse_connection_string(self.connection_string)[0]
        return None

    def resolved_access_key(self) -> str | None:
        if self.access_key:
            return self.access_key
        if self.connection_string:
            return parse_connection_string(self.connection_string)[1]
        return None


def configure_logging(level: str = "INFO", log_file: Path | str | None = None) -> None:
    """Route ``acs_chat`` logs to stderr via rich, and optionally to a file."""
    logger = logging.getLogger("acs_chat")
    logger.setLevel(level.upper())
    logger.handlers.clear()

    logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True))

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    logger.propagate = False
