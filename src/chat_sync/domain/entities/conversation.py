from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from chat_sync.domain.value_objects.enums import ConversationType


@dataclass(frozen=True, slots=True)
class Conversation:
    id: str
    type: ConversationType
    name: str
    participant_ids: tuple[str, ...] = ()
    last_message: str | None = None
    last_message_at: datetime | None = None
    last_seq: int = 0
    last_message_id: str | None = None
