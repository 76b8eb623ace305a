"""Wire records exchanged with the chat server."""
from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ReactionRecord(BaseModel):
    emoji: str
    user_id: str = Field(validation_alias=AliasChoices("user_id", "userId"))


class MessageRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    conversation_id: str = Field(
        validation_alias=AliasChoices("conversation_id", "conversationId"),
    )
    sender_id: str = Field(validation_alias=AliasChoices("sender_id", "senderId"))
    body: str = ""
    seq: int = 0  # sent as a decimal string
    created_at: datetime = Field(validation_alias=AliasChoices("createdAt", "created_at"))
    updated_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("updatedAt", "updated_at"),
    )
    edited: bool = Field(
        default=False,
        validation_alias=AliasChoices("edited", "editedFlag", "isEdited"),
    )
    deleted: bool = Field(
        default=False,
        validation_alias=AliasChoices("deleted", "isDeleted"),
    )
    reactions: list[ReactionRecord] = []


class ConversationRecord(BaseModel):
    """Conversation summary as returned by GET /conversation and conversation:new."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(validation_alias=AliasChoices("id", "conversationId"))
    type: str = "direct"
    name: str | None = None
    participant_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("participantIds", "participant_ids", "participantUserIds"),
    )
    last_message: str | None = Field(
        default=None,
        validation_alias=AliasChoices("lastMessage", "last_message"),
    )
    last_message_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("lastMessageAt", "last_message_at"),
    )
    last_seq: int = Field(default=0, validation_alias=AliasChoices("lastSeq", "last_seq"))


class CreatedConversationAck(ConversationRecord):
    """Acknowledgment of conversation:create; identity arrives as conversationId."""


class UserRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(validation_alias=AliasChoices("id", "user_id", "userId"))
    display_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("displayName", "display_name", "name"),
    )
    email: str | None = None
