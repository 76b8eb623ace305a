"""Entrypoint: python -m chat_sync

Connects with AUTH_TOKEN, mirrors the server state and logs every change.
"""
from __future__ import annotations

import asyncio
import logging

from chat_sync.application.services.session import ConnectionSession
from chat_sync.application.services.synchronizer import ChatSynchronizer
from chat_sync.application.state.observable import StoreChange
from chat_sync.config import settings
from chat_sync.infrastructure.auth.static_token import StaticTokenProvider
from chat_sync.infrastructure.http.conversation_api import HttpConversationApi
from chat_sync.infrastructure.realtime.socketio_transport import SocketIOTransport

logger = logging.getLogger("chat_sync")


def _log_change(store: str):
    def _observer(change: StoreChange) -> None:
        logger.info("%s: %s %s", store, change.kind, change.key or "")
    return _observer


async def run_client() -> None:
    if not settings.AUTH_TOKEN:
        raise SystemExit("AUTH_TOKEN is not set")

    tokens = StaticTokenProvider(settings.AUTH_TOKEN, settings.USER_ID)
    transport = SocketIOTransport(
        path=settings.SOCKET_PATH,
        transports=settings.SOCKET_TRANSPORTS,
        reconnection_attempts=settings.RECONNECTION_ATTEMPTS,
        reconnection_delay=settings.RECONNECTION_DELAY,
        reconnection_delay_max=settings.RECONNECTION_DELAY_MAX,
    )
    session = ConnectionSession(
        transport, tokens, settings.SOCKET_URL, ack_timeout=settings.ACK_TIMEOUT_SECONDS,
    )
    api = HttpConversationApi(
        settings.API_BASE_URL, tokens, timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
    sync = ChatSynchronizer(
        session,
        api,
        typing_idle_seconds=settings.TYPING_IDLE_SECONDS,
        user_search_min_chars=settings.USER_SEARCH_MIN_CHARS,
        user_search_debounce_seconds=settings.USER_SEARCH_DEBOUNCE_SECONDS,
    )

    sync.subscribe(_log_change("sync"))
    sync.ledger.subscribe(_log_change("messages"))
    sync.directory.subscribe(_log_change("conversations"))
    sync.presence.subscribe(_log_change("presence"))
    sync.typing.subscribe(_log_change("typing"))
    sync.users.subscribe(_log_change("users"))

    try:
        await sync.start()
        for conv in sync.directory.list():
            logger.info("conversation %s %r: %s", conv.id, conv.name, conv.last_message or "")
        await asyncio.Event().wait()
    finally:
        await sync.stop()
        await api.aclose()


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(run_client())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
