from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable

from chat_sync.application.state.observable import Observable
from chat_sync.domain.entities.conversation import Conversation

logger = logging.getLogger(__name__)


class ConversationDirectory(Observable):
    """Conversation summaries in insertion order, at most one per id."""

    def __init__(self) -> None:
        super().__init__()
        self._items: dict[str, Conversation] = {}

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def get(self, conversation_id: str) -> Conversation | None:
        return self._items.get(conversation_id)

    def list(self) -> list[Conversation]:
        return list(self._items.values())

    def replace_all(self, conversations: Iterable[Conversation]) -> None:
        items: dict[str, Conversation] = {}
        for conv in conversations:
            items.setdefault(conv.id, conv)
        self._items = items
        self._notify("replaced")

    def upsert_summary(self, conversation: Conversation) -> bool:
        """Insert if new. An existing summary is never overwritten here."""
        if conversation.id in self._items:
            return False
        self._items[conversation.id] = conversation
        self._notify("inserted", conversation.id)
        return True

    def record_activity(
        self,
        conversation_id: str,
        preview: str,
        at: datetime,
        *,
        seq: int | None = None,
        message_id: str | None = None,
    ) -> bool:
        """Last write wins by arrival order; timestamps are not compared."""
        current = self._items.get(conversation_id)
        if current is None:
            logger.debug("Activity for unknown conversation %s ignored", conversation_id)
            return False
        self._items[conversation_id] = replace(
            current,
            last_message=preview,
            last_message_at=at,
            last_seq=max(current.last_seq, seq) if seq is not None else current.last_seq,
            last_message_id=message_id,
        )
        self._notify("activity", conversation_id)
        return True

    def record_edit(self, conversation_id: str, message_id: str, body: str) -> bool:
        """Refresh the preview if it was taken from ``message_id``."""
        current = self._items.get(conversation_id)
        if current is None or current.last_message_id != message_id:
            return False
        self._items[conversation_id] = replace(current, last_message=body)
        self._notify("activity", conversation_id)
        return True
