"""Inbound push events.

Every event name the server pushes has one model here. ``InboundEvent`` is
the discriminated union over the ``kind`` field, so a parsed event can be
dispatched on its class instead of on a raw string.
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union, get_args

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter

from chat_sync.application.dto.records import ConversationRecord, MessageRecord
from chat_sync.application.exceptions import UnknownEventError


class _Event(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class Connected(_Event):
    kind: Literal["connect"] = "connect"


class Disconnected(_Event):
    kind: Literal["disconnect"] = "disconnect"
    reason: str | None = None


class MessageNew(_Event):
    kind: Literal["message:new"] = "message:new"
    message: MessageRecord


class MessageEdited(_Event):
    kind: Literal["message:edit"] = "message:edit"
    id: str = Field(validation_alias=AliasChoices("id", "messageId", "message_id"))
    conversation_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("conversationId", "conversation_id"),
    )
    body: str
    edited: bool = Field(
        default=True,
        validation_alias=AliasChoices("editedFlag", "edited", "isEdited"),
    )
    updated_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("updatedAt", "updated_at"),
    )


class MessageDeleted(_Event):
    kind: Literal["message:delete"] = "message:delete"
    id: str = Field(validation_alias=AliasChoices("id", "messageId", "message_id"))
    conversation_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("conversationId", "conversation_id"),
    )


class _ReactionEvent(_Event):
    message_id: str = Field(validation_alias=AliasChoices("messageId", "message_id"))
    emoji: str
    user_id: str = Field(validation_alias=AliasChoices("userId", "user_id"))


class ReactionAdded(_ReactionEvent):
    kind: Literal["reaction:added"] = "reaction:added"


class ReactionRemoved(_ReactionEvent):
    kind: Literal["reaction:removed"] = "reaction:removed"


class TypingUpdate(_Event):
    kind: Literal["typing:update"] = "typing:update"
    conversation_id: str = Field(
        validation_alias=AliasChoices("conversationId", "conversation_id"),
    )
    user_id: str = Field(validation_alias=AliasChoices("userId", "user_id"))
    is_typing: bool = Field(validation_alias=AliasChoices("isTyping", "is_typing"))


class ConversationNew(_Event):
    kind: Literal["conversation:new"] = "conversation:new"
    conversation: ConversationRecord


class OnlineList(_Event):
    kind: Literal["user:online-list"] = "user:online-list"
    user_ids: list[str] = Field(validation_alias=AliasChoices("userIds", "user_ids"))


class UserOnline(_Event):
    kind: Literal["user:online"] = "user:online"
    user_id: str = Field(validation_alias=AliasChoices("userId", "user_id"))
    is_online: bool = Field(validation_alias=AliasChoices("isOnline", "is_online"))


InboundEvent = Annotated[
    Union[
        Connected,
        Disconnected,
        MessageNew,
        MessageEdited,
        MessageDeleted,
        ReactionAdded,
        ReactionRemoved,
        TypingUpdate,
        ConversationNew,
        OnlineList,
        UserOnline,
    ],
    Field(discriminator="kind"),
]

EVENT_TYPES: tuple[type[_Event], ...] = get_args(get_args(InboundEvent)[0])

EVENT_NAMES: frozenset[str] = frozenset(
    get_args(cls.model_fields["kind"].annotation)[0] for cls in EVENT_TYPES
)

_adapter: TypeAdapter[InboundEvent] = TypeAdapter(InboundEvent)


def parse_event(name: str, payload: Any = None) -> InboundEvent:
    """Validate a raw ``(event name, payload)`` pair into its event model.

    Raises UnknownEventError for names outside the vocabulary and
    pydantic.ValidationError for malformed payloads.
    """
    if name not in EVENT_NAMES:
        raise UnknownEventError(name)

    data: dict[str, Any]
    if name == "message:new":
        data = {"message": payload}
    elif name == "conversation:new":
        data = {"conversation": payload}
    elif name == "user:online-list" and not isinstance(payload, dict):
        data = {"user_ids": payload}
    elif isinstance(payload, dict):
        data = dict(payload)
    elif name == "disconnect" and isinstance(payload, str):
        data = {"reason": payload}
    else:
        data = {}
    data["kind"] = name
    return _adapter.validate_python(data)
