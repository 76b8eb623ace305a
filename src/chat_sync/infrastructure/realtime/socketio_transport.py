"""python-socketio client adapter for the realtime transport port."""
from __future__ import annotations

import logging
from typing import Any, Sequence

import socketio
from socketio import exceptions as sio_exceptions

from chat_sync.application.exceptions import NotConnectedError
from chat_sync.application.ports.transport import OnRawEvent

logger = logging.getLogger(__name__)


class SocketIOTransport:
    """Implements application.ports.transport.RealtimeTransport."""

    def __init__(
        self,
        *,
        path: str = "socket.io",
        transports: Sequence[str] = ("websocket",),
        reconnection_attempts: int = 0,
        reconnection_delay: float = 1.0,
        reconnection_delay_max: float = 5.0,
        wait_timeout: float = 10.0,
    ) -> None:
        self._path = path
        self._transports = list(transports)
        self._wait_timeout = wait_timeout
        self._handler: OnRawEvent | None = None
        self._client = socketio.AsyncClient(
            reconnection=True,
            reconnection_attempts=reconnection_attempts,
            reconnection_delay=reconnection_delay,
            reconnection_delay_max=reconnection_delay_max,
            logger=False,
            engineio_logger=False,
        )
        self._client.on("connect", self._on_connect)
        self._client.on("disconnect", self._on_disconnect)
        self._client.on("connect_error", self._on_connect_error)
        self._client.on("*", self._on_any)

    @property
    def connected(self) -> bool:
        return self._client.connected

    def set_handler(self, handler: OnRawEvent) -> None:
        self._handler = handler

    async def connect(self, url: str, auth: dict[str, Any]) -> None:
        try:
            await self._client.connect(
                url,
                auth=auth,
                transports=self._transports,
                socketio_path=self._path,
                wait_timeout=self._wait_timeout,
            )
        except sio_exceptions.ConnectionError as exc:
            raise NotConnectedError(f"could not connect to {url}: {exc}") from exc

    async def disconnect(self) -> None:
        await self._client.disconnect()

    async def emit(self, event: str, data: dict[str, Any]) -> None:
        await self._client.emit(event, data)

    async def call(self, event: str, data: dict[str, Any], timeout: float) -> Any:
        try:
            return await self._client.call(event, data, timeout=timeout)
        except sio_exceptions.TimeoutError as exc:
            raise TimeoutError(f"{event} not acknowledged within {timeout}s") from exc

    async def _dispatch(self, event: str, payload: Any) -> None:
        if self._handler is None:
            logger.debug("No handler for %s", event)
            return
        await self._handler(event, payload)

    async def _on_connect(self) -> None:
        logger.info("Socket.IO connected (sid=%s)", self._client.sid)
        await self._dispatch("connect", None)

    async def _on_disconnect(self, *args: Any) -> None:
        reason = str(args[0]) if args else None
        logger.info("Socket.IO disconnected (%s)", reason)
        await self._dispatch("disconnect", reason)

    async def _on_connect_error(self, data: Any) -> None:
        logger.error("Socket.IO connect error: %s", data)

    async def _on_any(self, event: str, *args: Any) -> None:
        await self._dispatch(event, args[0] if args else None)
