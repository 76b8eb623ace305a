from __future__ import annotations

from typing import Protocol

from chat_sync.application.dto.records import UserRecord
from chat_sync.domain.entities.conversation import Conversation


class ConversationApi(Protocol):
    async def list_conversations(self) -> list[Conversation]: ...

    async def search_users(self, query: str) -> list[UserRecord]: ...
