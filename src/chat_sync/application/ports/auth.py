from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class SessionCredentials:
    token: str
    user_id: str


class TokenProvider(Protocol):
    async def get_credentials(self) -> SessionCredentials: ...
