"""Messages API - send, read, edit and delete chat messages."""

from __future__ import annotations

from datetime import datetime
from typing import AsyncIterator, TYPE_CHECKING
from urllib.parse import quote

from ..config import MERGE_PATCH_CONTENT_TYPE
from .models import (
    ChatMessage,
    ChatMessagesPage,
    ChatMessageType,
    SendChatMessageRequest,
    SendChatMessageResult,
    UpdateChatMessageRequest,
)
from .threads import format_start_time, positive_or_none, thread_path

if TYPE_CHECKING:
    from .client import ChatClient


def message_path(thread_id: str, message_id: str) -> str:
    return f"{thread_path(thread_id)}/messages/{quote(message_id, safe='')}"


class MessagesAPI:
    """Chat message operations.

    Usage:
        sent = await chat.messages.send(thread_id, "hello")
        message = await chat.messages.get(thread_id, sent.id)
        await chat.messages.update(thread_id, sent.id, content="hello, edited")

        page = await chat.messages.list(thread_id, max_page_size=20)
        async for message in chat.messages.iter_all(thread_id):
            ...
    """

    def __init__(self, client: "ChatClient"):
        self._client = client

    async def send(
        self,
        thread_id: str,
        content: str,
        message_type: ChatMessageType | str = ChatMessageType.TEXT,
        sender_display_name: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> SendChatMessageResult:
        """Send a message to a thread.

        Args:
            thread_id: Target thread
            content: Message body
            message_type: "text" or "html"
            sender_display_name: Display name shown for the sender
            metadata: Free-form string key/values stored with the message

        Returns:
            SendChatMessageResult with the new message id
        """
        request = SendChatMessageRequest(
            content=content,
            type=ChatMessageType(message_type),
            sender_display_name=sender_display_name,
            metadata=metadata,
        )
        return await self._client._request(
            "POST",
            f"{thread_path(thread_id)}/messages",
            json=request.to_wire(),
            model=SendChatMessageResult,
        )

    async def get(self, thread_id: str, message_id: str) -> ChatMessage:
        """Get a single message."""
        return await self._client._request(
            "GET",
            message_path(thread_id, message_id),
            model=ChatMessage,
        )

    async def list(
        self,
        thread_id: str,
        max_page_size: int | None = None,
        start_time: datetime | str | None = None,
    ) -> ChatMessagesPage:
        """List messages in a thread, newest first.

        Args:
            thread_id: Thread to read
            max_page_size: Max messages per page
            start_time: Only messages after this time
        """
        return await self._client._request(
            "GET",
            f"{thread_path(thread_id)}/messages",
            query={
                "maxPageSize": positive_or_none(max_page_size),
                "startTime": format_start_time(start_time),
            },
            model=ChatMessagesPage,
        )

    async def iter_all(
        self,
        thread_id: str,
        max_page_size: int | None = None,
        start_time: datetime | str | None = None,
    ) -> AsyncIterator[ChatMessage]:
        """Yield every message, following nextLink across pages."""
        page = await self.list(thread_id, max_page_size=max_page_size, start_time=start_time)
        while True:
            for message in page.value:
                yield message
            if not page.next_link:
                return
            page = await self._client._request(
                "GET",
                f"{thread_path(thread_id)}/messages",
                url=self._client._continuation_url(page.next_link),
                model=ChatMessagesPage,
            )

    async def update(
        self,
        thread_id: str,
        message_id: str,
        content: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> None:
        """Edit a message. Only the fields given are changed (merge-patch)."""
        request = UpdateChatMessageRequest(content=content, metadata=metadata)
        await self._client._request(
            "PATCH",
            message_path(thread_id, message_id),
            json=request.to_wire(),
            content_type=MERGE_PATCH_CONTENT_TYPE,
        )

    async def delete(self, thread_id: str, message_id: str) -> None:
        """Delete a message."""
        await self._client._request("DELETE", message_path(thread_id, message_id))
