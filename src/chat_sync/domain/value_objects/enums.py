from __future__ import annotations

from enum import StrEnum


class ConversationType(StrEnum):
    DIRECT = "direct"
    GROUP = "group"

    @classmethod
    def _missing_(cls, value: object) -> ConversationType | None:
        # the server calls one-to-one chats "private"
        if value == "private":
            return cls.DIRECT
        return None


class MembershipState(StrEnum):
    NOT_JOINED = "not_joined"
    JOINING = "joining"
    JOINED = "joined"
