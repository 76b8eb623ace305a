from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol

OnRawEvent = Callable[[str, Any], Awaitable[None]]


class RealtimeTransport(Protocol):
    """A bidirectional event channel (socket.io or an in-memory fake)."""

    @property
    def connected(self) -> bool: ...

    def set_handler(self, handler: OnRawEvent) -> None:
        """Route every inbound event, including connect/disconnect, to ``handler``."""
        ...

    async def connect(self, url: str, auth: dict[str, Any]) -> None: ...

    async def disconnect(self) -> None: ...

    async def emit(self, event: str, data: dict[str, Any]) -> None: ...

    async def call(self, event: str, data: dict[str, Any], timeout: float) -> Any:
        """Emit and wait for the server's acknowledgment payload."""
        ...
