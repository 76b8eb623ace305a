from __future__ import annotations

from chat_sync.application.state.observable import Observable


class TypingTracker(Observable):
    """Who else is composing, per conversation.

    Entries live until the peer sends a stop signal; there is no local
    expiry, so a peer that drops off mid-composition stays listed.
    """

    def __init__(self) -> None:
        super().__init__()
        self._typing: dict[str, set[str]] = {}

    def start(self, conversation_id: str, user_id: str) -> bool:
        users = self._typing.setdefault(conversation_id, set())
        if user_id in users:
            return False
        users.add(user_id)
        self._notify("typing", conversation_id)
        return True

    def stop(self, conversation_id: str, user_id: str) -> bool:
        users = self._typing.get(conversation_id)
        if not users or user_id not in users:
            return False
        users.discard(user_id)
        if not users:
            del self._typing[conversation_id]
        self._notify("typing", conversation_id)
        return True

    def apply(self, conversation_id: str, user_id: str, is_typing: bool) -> bool:
        if is_typing:
            return self.start(conversation_id, user_id)
        return self.stop(conversation_id, user_id)

    def users_typing(self, conversation_id: str) -> frozenset[str]:
        return frozenset(self._typing.get(conversation_id, ()))
