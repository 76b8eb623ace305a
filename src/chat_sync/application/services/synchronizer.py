"""Wires push events and local actions into the client-side stores."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any

import pydantic
from pydantic import TypeAdapter

from chat_sync.application.dto.actions import (
    Action,
    AddReaction,
    CreateConversation,
    DeleteMessage,
    EditMessage,
    JoinConversation,
    RemoveReaction,
    SendMessage,
    TypingStart,
    TypingStop,
)
from chat_sync.application.dto.events import (
    EVENT_TYPES,
    Connected,
    ConversationNew,
    Disconnected,
    InboundEvent,
    MessageDeleted,
    MessageEdited,
    MessageNew,
    OnlineList,
    ReactionAdded,
    ReactionRemoved,
    TypingUpdate,
    UserOnline,
    parse_event,
)
from chat_sync.application.dto.records import CreatedConversationAck, MessageRecord
from chat_sync.application.exceptions import (
    AppError,
    ForbiddenError,
    NotConnectedError,
    NotFoundError,
    UnknownEventError,
    ValidationError,
)
from chat_sync.application.mappers import record_to_conversation, record_to_message
from chat_sync.application.ports.api import ConversationApi
from chat_sync.application.ports.scheduler import AsyncioScheduler, Scheduler
from chat_sync.application.services.session import ConnectionSession
from chat_sync.application.services.typing_emitter import TYPING_START, TypingEmitter
from chat_sync.application.services.user_lookup import UserLookup
from chat_sync.application.state.directory import ConversationDirectory
from chat_sync.application.state.ledger import MessageLedger
from chat_sync.application.state.observable import Observable
from chat_sync.application.state.presence import PresenceTracker
from chat_sync.application.state.typing_tracker import TypingTracker
from chat_sync.domain.entities.conversation import Conversation
from chat_sync.domain.entities.message import Message
from chat_sync.domain.value_objects.enums import ConversationType, MembershipState

logger = logging.getLogger(__name__)

_message_list: TypeAdapter[list[MessageRecord]] = TypeAdapter(list[MessageRecord])

# event model -> handler method; checked against the event union below
_HANDLERS: dict[type, str] = {
    Connected: "_on_connected",
    Disconnected: "_on_disconnected",
    MessageNew: "_on_message_new",
    MessageEdited: "_on_message_edited",
    MessageDeleted: "_on_message_deleted",
    ReactionAdded: "_on_reaction_added",
    ReactionRemoved: "_on_reaction_removed",
    TypingUpdate: "_on_typing_update",
    ConversationNew: "_on_conversation_new",
    OnlineList: "_on_online_list",
    UserOnline: "_on_user_online",
}

_unhandled = [cls.__name__ for cls in EVENT_TYPES if cls not in _HANDLERS]
if _unhandled:
    raise RuntimeError(f"No handler registered for events: {', '.join(_unhandled)}")


class ChatSynchronizer(Observable):
    """Client-side replica of conversations, messages, presence and typing.

    Remote events are applied in arrival order, one store mutation each.
    Local actions are validated, then emitted through the session without
    touching the ledger: a sent message shows up when its ``message:new``
    push arrives.

    Joining a conversation moves it ``not_joined -> joining -> joined``.
    Selecting another conversation while a join is outstanding abandons
    it; the late acknowledgment is dropped.
    """

    def __init__(
        self,
        session: ConnectionSession,
        api: ConversationApi,
        *,
        scheduler: Scheduler | None = None,
        typing_idle_seconds: float = 1.0,
        user_search_min_chars: int = 2,
        user_search_debounce_seconds: float = 0.3,
    ) -> None:
        super().__init__()
        self._session = session
        self._api = api
        self.ledger = MessageLedger()
        self.directory = ConversationDirectory()
        self.presence = PresenceTracker()
        self.typing = TypingTracker()
        scheduler = scheduler or AsyncioScheduler()
        self.users = UserLookup(
            api,
            scheduler,
            min_chars=user_search_min_chars,
            debounce_seconds=user_search_debounce_seconds,
        )
        self._typing_emitter = TypingEmitter(self._emit_typing, scheduler, typing_idle_seconds)
        self._membership: dict[str, MembershipState] = {}
        self._active_id: str | None = None
        self._join_token = 0
        self._connected = False
        self._ever_connected = False
        self._draft = ""
        self._background: set[asyncio.Task[None]] = set()
        self._unsubscribe = session.subscribe(self.handle_event)

    # -- state ---------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def active_conversation_id(self) -> str | None:
        return self._active_id

    @property
    def draft(self) -> str:
        return self._draft

    @property
    def user_id(self) -> str | None:
        return self._session.user_id

    def membership(self, conversation_id: str) -> MembershipState:
        return self._membership.get(conversation_id, MembershipState.NOT_JOINED)

    def active_messages(self) -> list[Message]:
        if self._active_id is None:
            return []
        return self.ledger.messages(self._active_id)

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        await self._session.connect()
        await self.refresh_conversations()

    async def stop(self) -> None:
        self._typing_emitter.cancel_all()
        self.users.close()
        for task in list(self._background):
            task.cancel()
        await asyncio.gather(*self._background, return_exceptions=True)
        await self._session.disconnect()

    async def refresh_conversations(self) -> None:
        """Replace the directory with the REST conversation list."""
        conversations = await self._api.list_conversations()
        self.directory.replace_all(conversations)
        logger.info("Loaded %d conversations", len(conversations))

    # -- remote events -------------------------------------------------------

    async def handle_event(self, name: str, payload: Any = None) -> None:
        try:
            event = parse_event(name, payload)
        except UnknownEventError:
            logger.debug("Ignoring unknown event %s", name)
            return
        except pydantic.ValidationError as exc:
            logger.warning("Ignoring malformed %s event: %s", name, exc.errors(include_url=False))
            return
        self.apply(event)

    def apply(self, event: InboundEvent) -> None:
        getattr(self, _HANDLERS[type(event)])(event)

    def _on_connected(self, event: Connected) -> None:
        reconnect = self._ever_connected
        self._connected = True
        self._ever_connected = True
        self._notify("connectivity")
        if not reconnect:
            return
        for conversation_id, state in list(self._membership.items()):
            if state is not MembershipState.NOT_JOINED:
                self._set_membership(conversation_id, MembershipState.NOT_JOINED)
        if self._active_id is not None:
            logger.info("Reconnected, rejoining %s", self._active_id)
            self._spawn(self._rejoin(self._active_id))

    def _on_disconnected(self, event: Disconnected) -> None:
        self._connected = False
        self._typing_emitter.cancel_all()
        logger.warning("Realtime channel lost (%s)", event.reason or "no reason")
        self._notify("connectivity")

    def _on_message_new(self, event: MessageNew) -> None:
        message = record_to_message(event.message)
        if self.ledger.insert(message):
            self.directory.record_activity(
                message.conversation_id,
                message.body,
                message.created_at,
                seq=message.seq,
                message_id=message.id,
            )

    def _on_message_edited(self, event: MessageEdited) -> None:
        if not self.ledger.apply_edit(event.id, event.body, event.edited, event.updated_at):
            return
        message = self.ledger.get(event.id)
        if message is not None:
            self.directory.record_edit(message.conversation_id, message.id, message.body)

    def _on_message_deleted(self, event: MessageDeleted) -> None:
        self.ledger.apply_delete(event.id)

    def _on_reaction_added(self, event: ReactionAdded) -> None:
        self.ledger.add_reaction(event.message_id, event.emoji, event.user_id)

    def _on_reaction_removed(self, event: ReactionRemoved) -> None:
        self.ledger.remove_reaction(event.message_id, event.emoji, event.user_id)

    def _on_typing_update(self, event: TypingUpdate) -> None:
        self.typing.apply(event.conversation_id, event.user_id, event.is_typing)

    def _on_conversation_new(self, event: ConversationNew) -> None:
        self.directory.upsert_summary(record_to_conversation(event.conversation))

    def _on_online_list(self, event: OnlineList) -> None:
        self.presence.replace_all(event.user_ids)

    def _on_user_online(self, event: UserOnline) -> None:
        self.presence.set_online(event.user_id, event.is_online)

    # -- joining -------------------------------------------------------------

    async def select_conversation(self, conversation_id: str) -> bool:
        """Make ``conversation_id`` active and load its history.

        Returns False when the reply arrived after another conversation was
        selected and was therefore dropped.
        """
        self._require_connected()
        previous = self._active_id
        if previous is not None and previous != conversation_id:
            if self.membership(previous) is MembershipState.JOINING:
                self._membership[previous] = MembershipState.NOT_JOINED
        self._active_id = conversation_id
        self._notify("active", conversation_id)
        return await self._join(conversation_id)

    async def _join(self, conversation_id: str) -> bool:
        self._join_token += 1
        token = self._join_token
        self._set_membership(conversation_id, MembershipState.JOINING)

        try:
            reply = await self._request(JoinConversation(conversation_id=conversation_id))
        except AppError:
            if token == self._join_token:
                self._set_membership(conversation_id, MembershipState.NOT_JOINED)
                raise
            logger.info("Abandoned join of %s failed", conversation_id)
            return False

        if token != self._join_token or self._active_id != conversation_id:
            logger.info("Dropping stale join reply for %s", conversation_id)
            return False

        try:
            records = _message_list.validate_python(reply or [])
        except pydantic.ValidationError as exc:
            logger.warning("Malformed join reply for %s: %s", conversation_id, exc.errors(include_url=False))
            self._set_membership(conversation_id, MembershipState.NOT_JOINED)
            return False

        foreign = {r.conversation_id for r in records if r.conversation_id != conversation_id}
        if foreign:
            logger.warning(
                "Dropping stale join reply for %s: carries messages of %s",
                conversation_id, ", ".join(sorted(foreign)),
            )
            self._set_membership(conversation_id, MembershipState.NOT_JOINED)
            return False

        self.ledger.replace(conversation_id, [record_to_message(r) for r in records])
        self._set_membership(conversation_id, MembershipState.JOINED)
        logger.debug("Joined %s with %d messages", conversation_id, len(records))
        return True

    async def _rejoin(self, conversation_id: str) -> None:
        try:
            await self._join(conversation_id)
        except AppError as exc:
            logger.warning("Rejoin of %s failed: %s", conversation_id, exc.detail)

    # -- local actions -------------------------------------------------------

    def update_draft(self, text: str) -> None:
        """Store compose-box text; non-empty input counts as a keystroke."""
        self._draft = text
        if text and self._active_id is not None:
            self._typing_emitter.keystroke(self._active_id)

    def send_message(self, body: str | None = None) -> None:
        """Send ``body`` (or the current draft) to the active conversation."""
        self._require_connected()
        conversation_id = self._require_active()
        text = self._draft if body is None else body
        if not text.strip():
            raise ValidationError("message body is empty")

        self._send(SendMessage(conversation_id=conversation_id, body=text))
        self._draft = ""
        self._typing_emitter.message_sent(conversation_id)

    def edit_message(self, message_id: str, body: str) -> None:
        self._require_connected()
        message = self._require_own_message(message_id)
        if not body.strip():
            raise ValidationError("message body is empty")
        self._send(EditMessage(
            message_id=message_id, body=body, conversation_id=message.conversation_id,
        ))

    def delete_message(self, message_id: str) -> None:
        self._require_connected()
        message = self._require_own_message(message_id)
        self._send(DeleteMessage(message_id=message_id, conversation_id=message.conversation_id))

    def add_reaction(self, message_id: str, emoji: str) -> None:
        self._require_connected()
        message = self._require_live_message(message_id)
        if not emoji:
            raise ValidationError("emoji is required")
        self._send(AddReaction(
            message_id=message_id, emoji=emoji, conversation_id=message.conversation_id,
        ))

    def remove_reaction(self, message_id: str, emoji: str) -> None:
        self._require_connected()
        message = self._require_live_message(message_id)
        self._send(RemoveReaction(
            message_id=message_id, emoji=emoji, conversation_id=message.conversation_id,
        ))

    async def create_conversation(
        self,
        name: str,
        participant_ids: list[str],
        conversation_type: ConversationType = ConversationType.DIRECT,
    ) -> Conversation:
        """Create a conversation, add it to the directory and make it active."""
        self._require_connected()
        participants = [p.strip() for p in participant_ids if p.strip()]
        if not participants:
            raise ValidationError("at least one participant is required")

        reply = await self._request(CreateConversation(
            type=conversation_type, name=name.strip(), participant_ids=participants,
        ))
        try:
            ack = CreatedConversationAck.model_validate(reply)
        except pydantic.ValidationError as exc:
            raise ValidationError(f"malformed conversation:create reply: {exc}") from exc

        conversation = record_to_conversation(ack)
        if not conversation.participant_ids:
            own = [self.user_id] if self.user_id else []
            conversation = replace(conversation, participant_ids=tuple(own + participants))
        self.directory.upsert_summary(conversation)
        logger.info("Created conversation %s", conversation.id)
        await self.select_conversation(conversation.id)
        return self.directory.get(conversation.id) or conversation

    # -- helpers -------------------------------------------------------------

    def _require_connected(self) -> None:
        if not self._session.connected:
            raise NotConnectedError("realtime channel is not connected")

    def _require_active(self) -> str:
        if self._active_id is None:
            raise ValidationError("no active conversation")
        return self._active_id

    def _require_live_message(self, message_id: str) -> Message:
        message = self.ledger.get(message_id)
        if message is None:
            raise NotFoundError(f"message {message_id} not found")
        if message.deleted:
            raise ValidationError(f"message {message_id} is deleted")
        return message

    def _require_own_message(self, message_id: str) -> Message:
        message = self._require_live_message(message_id)
        if self.user_id is not None and message.sender_id != self.user_id:
            raise ForbiddenError(f"message {message_id} belongs to another user")
        return message

    def _set_membership(self, conversation_id: str, state: MembershipState) -> None:
        self._membership[conversation_id] = state
        self._notify("membership", conversation_id)

    def _send(self, action: Action) -> None:
        self._session.send(action.event, action.to_wire())

    async def _request(self, action: Action) -> Any:
        return await self._session.request(action.event, action.to_wire())

    def _emit_typing(self, event: str, conversation_id: str) -> None:
        action_cls = TypingStart if event == TYPING_START else TypingStop
        self._send(action_cls(conversation_id=conversation_id))

    def _spawn(self, coro: Any) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
