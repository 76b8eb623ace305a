from __future__ import annotations

from typing import Iterable

from chat_sync.application.state.observable import Observable


class PresenceTracker(Observable):
    """Online users. Absent users are offline."""

    def __init__(self) -> None:
        super().__init__()
        self._online: set[str] = set()

    def replace_all(self, online_user_ids: Iterable[str]) -> None:
        self._online = set(online_user_ids)
        self._notify("replaced")

    def set_online(self, user_id: str, is_online: bool) -> None:
        if is_online == (user_id in self._online):
            return
        if is_online:
            self._online.add(user_id)
        else:
            self._online.discard(user_id)
        self._notify("online" if is_online else "offline", user_id)

    def is_online(self, user_id: str) -> bool:
        return user_id in self._online

    def online_users(self) -> frozenset[str]:
        return frozenset(self._online)
