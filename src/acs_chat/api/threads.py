"""Threads API - create, delete and list chat threads."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import AsyncIterator, TYPE_CHECKING
from urllib.parse import quote

from .models import ChatThreadItem, ChatThreadsPage, ChatUser, CreateChatThreadRequest, CreateChatThreadResult

if TYPE_CHECKING:
    from .client import ChatClient


def format_start_time(value: datetime | str | None) -> str | None:
    """RFC 3339 UTC string for the startTime query parameter."""
    if value is None or isinstance(value, str):
        return value or None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def positive_or_none(value: int | None) -> int | None:
    """Page sizes and skip counts are only sent when positive."""
    return value if value and value > 0 else None


def thread_path(thread_id: str) -> str:
    return f"/chat/threads/{quote(thread_id, safe='')}"


class ThreadsAPI:
    """Chat thread operations.

    Usage:
        async with ChatClient.from_token(host, token, expires_at) as chat:
            result = await chat.threads.create("topic", ChatUser(id=user_id, display_name="Ann"))
            page = await chat.threads.list(max_page_size=20)
            await chat.threads.delete(result.chat_thread.id)
    """

    def __init__(self, client: "ChatClient"):
        self._client = client

    async def create(self, topic: str, *participants: ChatUser) -> CreateChatThreadResult:
        """Create a thread with an initial set of participants.

        Returns:
            The created thread plus any participants the service rejected
        """
        request = CreateChatThreadRequest(
            topic=topic,
            participants=[p.to_participant() for p in participants],
        )
        return await self._client._request(
            "POST",
            "/chat/threads",
            json=request.to_wire(),
            model=CreateChatThreadResult,
        )

    async def delete(self, thread_id: str) -> None:
        """Delete a thread."""
        await self._client._request("DELETE", thread_path(thread_id))

    async def list(
        self,
        max_page_size: int | None = None,
        start_time: datetime | str | None = None,
    ) -> ChatThreadsPage:
        """List threads the current user participates in.

        Args:
            max_page_size: Max threads per page (omitted when not positive)
            start_time: Only threads updated after this time
        """
        return await self._client._request(
            "GET",
            "/chat/threads",
            query={
                "maxPageSize": positive_or_none(max_page_size),
                "startTime": format_start_time(start_time),
            },
            model=ChatThreadsPage,
        )

    async def iter_all(
        self,
        max_page_size: int | None = None,
        start_time: datetime | str | None = None,
    ) -> AsyncIterator[ChatThreadItem]:
        """Yield every thread, following nextLink across pages."""
        page = await self.list(max_page_size=max_page_size, start_time=start_time)
        while True:
            for item in page.value:
                yield item
            if not page.next_link:
                return
            page = await self._client._request(
                "GET",
                "/chat/threads",
                url=self._client._continuation_url(page.next_link),
                model=ChatThreadsPage,
            )
