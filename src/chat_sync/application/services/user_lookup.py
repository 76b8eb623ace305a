"""Debounced user search backing the new-conversation form."""
from __future__ import annotations

import asyncio
import logging

from chat_sync.application.dto.records import UserRecord
from chat_sync.application.exceptions import AppError
from chat_sync.application.ports.api import ConversationApi
from chat_sync.application.ports.scheduler import Scheduler, TimerHandle
from chat_sync.application.state.observable import Observable

logger = logging.getLogger(__name__)


class UserLookup(Observable):
    def __init__(
        self,
        api: ConversationApi,
        scheduler: Scheduler,
        *,
        min_chars: int = 2,
        debounce_seconds: float = 0.3,
    ) -> None:
        super().__init__()
        self._api = api
        self._scheduler = scheduler
        self._min_chars = min_chars
        self._debounce_seconds = debounce_seconds
        self._query = ""
        self._timer: TimerHandle | None = None
        self._task: asyncio.Task[None] | None = None
        self.results: list[UserRecord] = []

    @property
    def query(self) -> str:
        return self._query

    def update(self, query: str) -> None:
        """Set the search text; the request goes out once input settles."""
        self._query = query.strip()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        if len(self._query) < self._min_chars:
            if self.results:
                self.results = []
                self._notify("results")
            return

        self._timer = self._scheduler.call_later(self._debounce_seconds, self._fire)

    async def wait(self) -> None:
        """Wait for the request in flight, if any."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    def close(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._task is not None:
            self._task.cancel()

    def _fire(self) -> None:
        self._timer = None
        self._task = asyncio.get_running_loop().create_task(
            self._search(self._query), name="user-lookup",
        )

    async def _search(self, query: str) -> None:
        try:
            users = await self._api.search_users(query)
        except AppError as exc:
            logger.warning("User search for %r failed: %s", query, exc.detail)
            return
        if query != self._query:
            logger.debug("Dropping results for stale query %r", query)
            return
        self.results = users
        self._notify("results", query)
