"""Participants API - manage thread membership."""

from __future__ import annotations

from typing import AsyncIterator, TYPE_CHECKING

from .models import ChatParticipant, ChatParticipantsPage, ChatUser, CommunicationIdentifier
from .threads import positive_or_none, thread_path

if TYPE_CHECKING:
    from .client import ChatClient


class ParticipantsAPI:
    """Thread participant operations."""

    def __init__(self, client: "ChatClient"):
        self._client = client

    async def add(self, thread_id: str, *participants: ChatUser) -> None:
        """Add users to a thread."""
        await self._client._request(
            "POST",
            f"{thread_path(thread_id)}/participants/:add",
            json={"participants": [p.to_participant().to_wire() for p in participants]},
        )

    async def remove(self, thread_id: str, user_id: str) -> None:
        """Remove a single user from a thread by communication user id."""
        await self._client._request(
            "POST",
            f"{thread_path(thread_id)}/participants/:remove",
            json=CommunicationIdentifier.from_user_id(user_id).to_wire(),
        )

    async def list(
        self,
        thread_id: str,
        max_page_size: int | None = None,
        skip: int | None = None,
    ) -> ChatParticipantsPage:
        """List participants of a thread.

        Args:
            thread_id: Thread to inspect
            max_page_size: Max participants per page
            skip: Number of participants to skip
        """
        return await self._client._request(
            "GET",
            f"{thread_path(thread_id)}/participants",
            query={
                "maxPageSize": positive_or_none(max_page_size),
                "skip": positive_or_none(skip),
            },
            model=ChatParticipantsPage,
        )

    async def iter_all(self, thread_id: str, max_page_size: int | None = None) -> AsyncIterator[ChatParticipant]:
        """Yield every participant, following nextLink across pages."""
        page = await self.list(thread_id, max_page_size=max_page_size)
        while True:
            for participant in page.value:
                yield participant
            if not page.next_link:
                return
            page = await self._client._request(
                "GET",
                f"{thread_path(thread_id)}/participants",
                url=self._client._continuation_url(page.next_link),
                model=ChatParticipantsPage,
            )
