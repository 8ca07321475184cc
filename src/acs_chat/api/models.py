"""Chat API models - wire shapes for threads, participants and messages.

All models accept camelCase (wire) or snake_case field names and ignore
fields the service adds that we don't model.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


class ChatModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        # JSON null on an optional field decodes to the field's empty default
        if value is None:
            field = cls.model_fields[info.field_name]
            if not field.is_required():
                return field.get_default(call_default_factory=True)
        return value

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON body, dropping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ChatMessageType(str, Enum):
    TEXT = "text"
    HTML = "html"
    TOPIC_UPDATED = "topicUpdated"
    PARTICIPANT_ADDED = "participantAdded"
    PARTICIPANT_REMOVED = "participantRemoved"


# =============================================================================
# Identifiers & participants
# =============================================================================


class CommunicationUser(ChatModel):
    id: str = ""


class CommunicationIdentifier(ChatModel):
    raw_id: str = ""
    communication_user: Optional[CommunicationUser] = None

    @classmethod
    def from_user_id(cls, user_id: str) -> "CommunicationIdentifier":
        return cls(raw_id=user_id, communication_user=CommunicationUser(id=user_id))

    @property
    def user_id(self) -> str:
        if self.communication_user and self.communication_user.id:
            return self.communication_user.id
        return self.raw_id


class ChatParticipant(ChatModel):
    communication_identifier: CommunicationIdentifier
    display_name: str = ""
    share_history_time: Optional[datetime] = None


class ChatUser(ChatModel):
    """A participant reference supplied by the caller."""

    id: str
    display_name: str = ""

    def to_participant(self) -> ChatParticipant:
        return ChatParticipant(
            communication_identifier=CommunicationIdentifier.from_user_id(self.id),
            display_name=self.display_name,
        )


class InvalidParticipant(ChatModel):
    target: str = ""
    code: str = ""
    message: str = ""


# =============================================================================
# Threads
# =============================================================================


class ChatThread(ChatModel):
    id: str
    topic: str = ""
    created_on: Optional[datetime] = None
    created_by_communication_identifier: Optional[CommunicationIdentifier] = None

    @property
    def created_by(self) -> str | None:
        ident = self.created_by_communication_identifier
        return ident.user_id if ident else None


class ChatThreadItem(ChatModel):
    id: str
    topic: str = ""
    deleted_on: Optional[datetime] = None
    last_message_received_on: Optional[datetime] = None


class CreateChatThreadRequest(ChatModel):
    topic: str
    participants: list[ChatParticipant] = Field(default_factory=list)


class CreateChatThreadResult(ChatModel):
    chat_thread: ChatThread
    invalid_participants: list[InvalidParticipant] = Field(default_factory=list)


# =============================================================================
# Messages
# =============================================================================


class ChatMessageContent(ChatModel):
    message: Optional[str] = None
    topic: Optional[str] = None
    participants: list[ChatParticipant] = Field(default_factory=list)
    initiator_communication_identifier: Optional[CommunicationIdentifier] = None


class ChatMessage(ChatModel):
    id: str
    type: ChatMessageType = ChatMessageType.TEXT
    sequence_id: Optional[str] = None
    version: Optional[str] = None
    content: Optional[ChatMessageContent] = None
    sender_display_name: Optional[str] = None
    sender_communication_identifier: Optional[CommunicationIdentifier] = None
    metadata: dict[str, str] = Field(default_factory=dict)
    created_on: Optional[datetime] = None
    edited_on: Optional[datetime] = None
    deleted_on: Optional[datetime] = None

    @property
    def sender_id(self) -> str | None:
        ident = self.sender_communication_identifier
        return ident.user_id if ident else None


class SendChatMessageRequest(ChatModel):
    content: str
    type: ChatMessageType = ChatMessageType.TEXT
    sender_display_name: Optional[str] = None
    metadata: Optional[dict[str, str]] = None


class SendChatMessageResult(ChatModel):
    id: str


class UpdateChatMessageRequest(ChatModel):
    # merge-patch: only fields that are set are sent
    content: Optional[str] = None
    metadata: Optional[dict[str, str]] = None


# =============================================================================
# Paged collections
# =============================================================================

T = TypeVar("T")


class Page(ChatModel, Generic[T]):
    value: list[T] = Field(default_factory=list)
    next_link: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return bool(self.next_link)


class ChatThreadsPage(Page[ChatThreadItem]):
    pass


class ChatMessagesPage(Page[ChatMessage]):
    pass


class ChatParticipantsPage(Page[ChatParticipant]):
    pass
