"""Per-conversation message ledger."""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable

from chat_sync.application.state.observable import Observable
from chat_sync.domain.entities.message import Message, Reaction

logger = logging.getLogger(__name__)


class MessageLedger(Observable):
    """Ordered, deduplicated messages keyed by conversation.

    Iteration order is arrival order: a snapshot ``replace`` sets the
    order of a conversation in one step, later ``insert`` calls append.
    Nothing is ever re-sorted by ``seq`` or timestamp, and messages are
    never removed, only tombstoned (``deleted=True``, body retained).
    """

    def __init__(self) -> None:
        super().__init__()
        self._by_id: dict[str, Message] = {}
        self._order: dict[str, list[str]] = {}

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, message_id: str) -> Message | None:
        return self._by_id.get(message_id)

    def messages(self, conversation_id: str) -> list[Message]:
        return [self._by_id[mid] for mid in self._order.get(conversation_id, [])]

    def conversation_ids(self) -> list[str]:
        return list(self._order)

    def insert(self, message: Message) -> bool:
        """Add ``message`` unless its id was already seen. Returns True if added."""
        if message.id in self._by_id:
            logger.debug("Duplicate message %s ignored", message.id)
            return False
        self._by_id[message.id] = message
        self._order.setdefault(message.conversation_id, []).append(message.id)
        self._notify("inserted", message.conversation_id)
        return True

    def replace(self, conversation_id: str, messages: Iterable[Message]) -> None:
        """Load a snapshot as the ordered view of one conversation.

        Snapshot order comes first. Messages observed earlier but missing
        from the snapshot stay, appended in their previous order, and a
        local tombstone wins over a live copy in the snapshot.
        """
        previous = self._order.get(conversation_id, [])
        order: list[str] = []
        seen: set[str] = set()
        for message in messages:
            if message.conversation_id != conversation_id:
                logger.warning(
                    "Snapshot for %s carried message %s of %s, skipped",
                    conversation_id, message.id, message.conversation_id,
                )
                continue
            if message.id in seen:
                continue
            seen.add(message.id)
            current = self._by_id.get(message.id)
            if current is not None and current.deleted:
                message = current
            self._by_id[message.id] = message
            order.append(message.id)
        order.extend(mid for mid in previous if mid not in seen)
        self._order[conversation_id] = order
        self._notify("replaced", conversation_id)

    def apply_edit(
        self,
        message_id: str,
        body: str,
        edited: bool = True,
        updated_at: datetime | None = None,
    ) -> bool:
        current = self._by_id.get(message_id)
        if current is None:
            logger.debug("Edit for unknown message %s ignored", message_id)
            return False
        if current.deleted:
            logger.debug("Edit for deleted message %s ignored", message_id)
            return False
        self._by_id[message_id] = replace(
            current,
            body=body,
            edited=edited,
            updated_at=updated_at or current.updated_at,
        )
        self._notify("edited", current.conversation_id)
        return True

    def apply_delete(self, message_id: str) -> bool:
        current = self._by_id.get(message_id)
        if current is None or current.deleted:
            return False
        self._by_id[message_id] = replace(current, deleted=True)
        self._notify("deleted", current.conversation_id)
        return True

    def add_reaction(self, message_id: str, emoji: str, user_id: str) -> bool:
        current = self._by_id.get(message_id)
        reaction = Reaction(emoji=emoji, user_id=user_id)
        if current is None or current.deleted or reaction in current.reactions:
            return False
        self._by_id[message_id] = replace(current, reactions=current.reactions | {reaction})
        self._notify("reacted", current.conversation_id)
        return True

    def remove_reaction(self, message_id: str, emoji: str, user_id: str) -> bool:
        current = self._by_id.get(message_id)
        reaction = Reaction(emoji=emoji, user_id=user_id)
        if current is None or current.deleted or reaction not in current.reactions:
            return False
        self._by_id[message_id] = replace(current, reactions=current.reactions - {reaction})
        self._notify("reacted", current.conversation_id)
        return True
