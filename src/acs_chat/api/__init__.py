"""Chat API client module.

Usage:
    from acs_chat.api import ChatClient, ChatUser

    async with await ChatClient.create(host, access_key) as chat:
        # Threads
        result = await chat.threads.create("topic", ChatUser(id=chat.user_id, display_name="Me"))
        thread_id = result.chat_thread.id

        # Messages
        sent = await chat.messages.send(thread_id, "hello")
        page = await chat.messages.list(thread_id, max_page_size=20)

        # Participants
        members = await chat.participants.list(thread_id)
"""

from .client import ChatClient
from .messages import MessagesAPI
from .models import (
    ChatMessage,
    ChatMessageContent,
    ChatMessagesPage,
    ChatMessageType,
    ChatParticipant,
    ChatParticipantsPage,
    ChatThread,
    ChatThreadItem,
    ChatThreadsPage,
    ChatUser,
    CommunicationIdentifier,
    CommunicationUser,
    CreateChatThreadResult,
    InvalidParticipant,
    Page,
    SendChatMessageResult,
)
from .participants import ParticipantsAPI
from .threads import ThreadsAPI

__all__ = [
    "ChatClient",
    "ThreadsAPI",
    "ParticipantsAPI",
    "MessagesAPI",
    "ChatMessage",
    "ChatMessageContent",
    "ChatMessagesPage",
    "ChatMessageType",
    "ChatParticipant",
    "ChatParticipantsPage",
    "ChatThread",
    "ChatThreadItem",
    "ChatThreadsPage",
    "ChatUser",
    "CommunicationIdentifier",
    "CommunicationUser",
    "CreateChatThreadResult",
    "InvalidParticipant",
    "Page",
    "SendChatMessageResult",
]
