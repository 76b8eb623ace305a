"""Shared test fixtures."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from chat_sync.application.dto.records import UserRecord
from chat_sync.application.ports.transport import OnRawEvent
from chat_sync.application.services.session import ConnectionSession
from chat_sync.application.services.synchronizer import ChatSynchronizer
from chat_sync.domain.entities.conversation import Conversation
from chat_sync.domain.entities.message import Message
from chat_sync.domain.value_objects.enums import ConversationType
from chat_sync.infrastructure.auth.static_token import StaticTokenProvider

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_message(
    *,
    message_id: str = "m1",
    conversation_id: str = "c1",
    sender_id: str = "bob",
    body: str = "hello",
    seq: int = 1,
) -> Message:
    created = BASE_TIME + timedelta(seconds=seq)
    return Message(
        id=message_id,
        conversation_id=conversation_id,
        sender_id=sender_id,
        body=body,
        seq=seq,
        created_at=created,
        updated_at=created,
    )


def message_payload(
    *,
    message_id: str = "m1",
    conversation_id: str = "c1",
    sender_id: str = "bob",
    body: str = "hello",
    seq: int = 1,
) -> dict[str, Any]:
    """A message record shaped the way the server pushes it."""
    created = (BASE_TIME + timedelta(seconds=seq)).isoformat()
    return {
        "id": message_id,
        "conversation_id": conversation_id,
        "sender_id": sender_id,
        "body": body,
        "seq": str(seq),
        "createdAt": created,
        "updatedAt": created,
    }


def make_conversation(
    *,
    conversation_id: str = "c1",
    name: str = "General",
    conversation_type: ConversationType = ConversationType.GROUP,
    participant_ids: tuple[str, ...] = ("alice", "bob"),
) -> Conversation:
    return Conversation(
        id=conversation_id,
        type=conversation_type,
        name=name,
        participant_ids=participant_ids,
    )


@dataclass
class PendingCall:
    event: str
    data: dict[str, Any]
    future: asyncio.Future[Any]


@dataclass
class FakeTransport:
    """In-memory realtime transport; tests play the server side."""

    connected: bool = False
    url: str | None = None
    auth: dict[str, Any] | None = None
    emitted: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    calls: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    replies: dict[str, Any] = field(default_factory=dict)
    deferred: set[str] = field(default_factory=set)
    waiting: list[PendingCall] = field(default_factory=list)
    _handler: OnRawEvent | None = None

    def set_handler(self, handler: OnRawEvent) -> None:
        self._handler = handler

    async def connect(self, url: str, auth: dict[str, Any]) -> None:
        self.url = url
        self.auth = auth
        await self.server_connect()

    async def disconnect(self) -> None:
        await self.server_disconnect("io client disconnect")

    async def emit(self, event: str, data: dict[str, Any]) -> None:
        self.emitted.append((event, data))

    async def call(self, event: str, data: dict[str, Any], timeout: float) -> Any:
        self.calls.append((event, data))
        if event in self.deferred:
            pending = PendingCall(event, data, asyncio.get_running_loop().create_future())
            self.waiting.append(pending)
            return await pending.future
        reply = self.replies.get(event)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def push(self, event: str, payload: Any = None) -> None:
        assert self._handler is not None
        await self._handler(event, payload)

    async def server_connect(self) -> None:
        self.connected = True
        await self.push("connect")

    async def server_disconnect(self, reason: str = "transport close") -> None:
        self.connected = False
        await self.push("disconnect", reason)

    def emitted_events(self) -> list[str]:
        return [event for event, _ in self.emitted]


@dataclass
class ManualTimer:
    when: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler:
    """Scheduler driven by ``advance`` instead of wall-clock time."""

    now: float = 0.0
    timers: list[ManualTimer] = field(default_factory=list)

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.timers if not t.cancelled and t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self.timers.remove(timer)
            self.now = timer.when
            timer.callback()
        self.now = target

    @property
    def pending(self) -> int:
        return sum(1 for t in self.timers if not t.cancelled)


@dataclass
class FakeConversationApi:
    conversations: list[Conversation] = field(default_factory=list)
    users: list[UserRecord] = field(default_factory=list)
    searches: list[str] = field(default_factory=list)

    async def list_conversations(self) -> list[Conversation]:
        return list(self.conversations)

    async def search_users(self, query: str) -> list[UserRecord]:
        self.searches.append(query)
        return [u for u in self.users if query.lower() in (u.display_name or u.id).lower()]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def api() -> FakeConversationApi:
    return FakeConversationApi(conversations=[make_conversation()])


@pytest.fixture
def session(transport: FakeTransport) -> ConnectionSession:
    return ConnectionSession(
        transport,
        StaticTokenProvider("token-alice", user_id="alice"),
        "http://chat.test",
        ack_timeout=1.0,
    )


@pytest.fixture
def sync(session, api, scheduler) -> ChatSynchronizer:
    return ChatSynchronizer(session, api, scheduler=scheduler, typing_idle_seconds=1.0)
