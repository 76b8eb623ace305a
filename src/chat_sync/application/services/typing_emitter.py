"""Local typing indicator: debounced start/stop signals."""
from __future__ import annotations

import logging
from typing import Callable

from chat_sync.application.ports.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

TYPING_START = "typing:start"
TYPING_STOP = "typing:stop"

# (event name, conversation id)
TypingSink = Callable[[str, str], None]


class TypingEmitter:
    """Emits ``typing:start`` on the first keystroke and ``typing:stop``
    after ``idle_seconds`` without one.

    Each keystroke rearms a single timer per conversation, cancelling the
    previous one. Sending a message stops immediately and drops the timer.
    """

    def __init__(self, sink: TypingSink, scheduler: Scheduler, idle_seconds: float = 1.0) -> None:
        self._sink = sink
        self._scheduler = scheduler
        self._idle_seconds = idle_seconds
        self._timers: dict[str, TimerHandle] = {}

    def is_typing(self, conversation_id: str) -> bool:
        return conversation_id in self._timers

    def keystroke(self, conversation_id: str) -> None:
        timer = self._timers.pop(conversation_id, None)
        if timer is None:
            self._sink(TYPING_START, conversation_id)
        else:
            timer.cancel()
        self._timers[conversation_id] = self._scheduler.call_later(
            self._idle_seconds, lambda: self._on_idle(conversation_id),
        )

    def message_sent(self, conversation_id: str) -> None:
        timer = self._timers.pop(conversation_id, None)
        if timer is None:
            return
        timer.cancel()
        self._sink(TYPING_STOP, conversation_id)

    def cancel_all(self) -> None:
        """Drop every pending timer without emitting."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

    def _on_idle(self, conversation_id: str) -> None:
        if self._timers.pop(conversation_id, None) is None:
            return
        logger.debug("Typing idle in %s", conversation_id)
        self._sink(TYPING_STOP, conversation_id)
