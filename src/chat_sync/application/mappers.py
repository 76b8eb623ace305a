from __future__ import annotations

from chat_sync.application.dto.records import ConversationRecord, MessageRecord
from chat_sync.domain.entities.conversation import Conversation
from chat_sync.domain.entities.message import Message, Reaction
from chat_sync.domain.value_objects.enums import ConversationType


def record_to_message(record: MessageRecord) -> Message:
    return Message(
        id=record.id,
        conversation_id=record.conversation_id,
        sender_id=record.sender_id,
        body=record.body,
        seq=record.seq,
        created_at=record.created_at,
        updated_at=record.updated_at or record.created_at,
        edited=record.edited,
        deleted=record.deleted,
        reactions=frozenset(Reaction(r.emoji, r.user_id) for r in record.reactions),
    )


def record_to_conversation(record: ConversationRecord) -> Conversation:
    try:
        conv_type = ConversationType(record.type)
    except ValueError:
        conv_type = ConversationType.GROUP
    return Conversation(
        id=record.id,
        type=conv_type,
        name=record.name or "",
        participant_ids=tuple(record.participant_ids),
        last_message=record.last_message,
        last_message_at=record.last_message_at,
        last_seq=record.last_seq,
    )
