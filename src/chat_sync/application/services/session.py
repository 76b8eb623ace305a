"""Realtime connection session: one channel per authenticated user."""
from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Any, Awaitable, Callable

from chat_sync.application.exceptions import AckTimeoutError, NotConnectedError
from chat_sync.application.ports.auth import SessionCredentials, TokenProvider
from chat_sync.application.ports.transport import RealtimeTransport

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, Any], Awaitable[None]]


class ConnectionSession:
    """Owns the realtime channel for one identity.

    Created and torn down explicitly (``connect``/``disconnect`` or
    ``async with``) and handed to whatever needs to send or listen.
    """

    def __init__(
        self,
        transport: RealtimeTransport,
        token_provider: TokenProvider,
        url: str,
        *,
        ack_timeout: float = 10.0,
    ) -> None:
        self._transport = transport
        self._token_provider = token_provider
        self._url = url
        self._ack_timeout = ack_timeout
        self._handlers: list[EventHandler] = []
        self._pending: set[asyncio.Task[None]] = set()
        self._credentials: SessionCredentials | None = None
        self._transport.set_handler(self._on_event)

    @property
    def connected(self) -> bool:
        return self._transport.connected

    @property
    def credentials(self) -> SessionCredentials | None:
        return self._credentials

    @property
    def user_id(self) -> str | None:
        return self._credentials.user_id if self._credentials else None

    async def connect(self) -> None:
        if self._transport.connected:
            logger.debug("Session already connected to %s", self._url)
            return
        self._credentials = await self._token_provider.get_credentials()
        await self._transport.connect(self._url, auth={"token": self._credentials.token})
        logger.info("Session connected to %s as %s", self._url, self._credentials.user_id)

    async def disconnect(self) -> None:
        await self.drain()
        if self._transport.connected:
            await self._transport.disconnect()
            logger.info("Session disconnected from %s", self._url)

    async def __aenter__(self) -> ConnectionSession:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.disconnect()

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def _unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return _unsubscribe

    def send(self, event: str, data: dict[str, Any]) -> None:
        """Fire-and-forget emit. Failures are logged, never raised."""
        if not self._transport.connected:
            logger.warning("Dropping %s: session not connected", event)
            return
        task = asyncio.get_running_loop().create_task(self._emit(event, data), name=f"emit-{event}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def request(self, event: str, data: dict[str, Any]) -> Any:
        """Emit and wait for the acknowledgment payload."""
        if not self._transport.connected:
            raise NotConnectedError(f"cannot send {event}: session not connected")
        try:
            return await self._transport.call(event, data, timeout=self._ack_timeout)
        except (asyncio.TimeoutError, TimeoutError) as exc:
            raise AckTimeoutError(f"no acknowledgment for {event}") from exc

    async def drain(self) -> None:
        """Wait for all fire-and-forget sends issued so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _emit(self, event: str, data: dict[str, Any]) -> None:
        try:
            await self._transport.emit(event, data)
        except Exception:
            logger.exception("Failed to emit %s", event)

    async def _on_event(self, event: str, payload: Any) -> None:
        for handler in list(self._handlers):
            try:
                await handler(event, payload)
            except Exception:
                logger.exception("Error handling %s event", event)
