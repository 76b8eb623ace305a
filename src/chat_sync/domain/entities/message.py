from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Reaction:
    emoji: str
    user_id: str


@dataclass(frozen=True, slots=True)
class Message:
    id: str
    conversation_id: str
    sender_id: str
    body: str
    seq: int
    created_at: datetime
    updated_at: datetime
    edited: bool = False
    deleted: bool = False
    reactions: frozenset[Reaction] = field(default_factory=frozenset)
