"""Outbound actions, serialized with wire aliases."""
from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from chat_sync.domain.value_objects.enums import ConversationType


class Action(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    event: ClassVar[str]

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class JoinConversation(Action):
    event: ClassVar[str] = "conversation:join"

    conversation_id: str


class CreateConversation(Action):
    event: ClassVar[str] = "conversation:create"

    type: ConversationType = ConversationType.DIRECT
    name: str = ""
    participant_ids: list[str] = Field(serialization_alias="participantUserIds")

    @field_serializer("type")
    def serialize_type(self, value: ConversationType) -> str:
        # the server names one-to-one chats "private"
        return "private" if value is ConversationType.DIRECT else value.value


class SendMessage(Action):
    event: ClassVar[str] = "conversation:send"

    conversation_id: str
    body: str


class EditMessage(Action):
    event: ClassVar[str] = "message:edit"

    message_id: str = Field(serialization_alias="messageId")
    body: str
    conversation_id: str


class DeleteMessage(Action):
    event: ClassVar[str] = "message:delete"

    message_id: str = Field(serialization_alias="messageId")
    conversation_id: str


class AddReaction(Action):
    event: ClassVar[str] = "reaction:add"

    message_id: str = Field(serialization_alias="messageId")
    emoji: str
    conversation_id: str


class RemoveReaction(AddReaction):
    event: ClassVar[str] = "reaction:remove"


class TypingStart(Action):
    event: ClassVar[str] = "typing:start"

    conversation_id: str


class TypingStop(TypingStart):
    event: ClassVar[str] = "typing:stop"
