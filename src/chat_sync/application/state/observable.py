"""Change notification shared by the client-side stores."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StoreChange:
    kind: str  # e.g. "inserted" | "edited" | "deleted" | "replaced"
    key: str | None = None


Observer = Callable[[StoreChange], None]


class Observable:
    def __init__(self) -> None:
        self._observers: list[Observer] = []

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register ``observer``; returns a callable that unregisters it."""
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def _notify(self, kind: str, key: str | None = None) -> None:
        change = StoreChange(kind=kind, key=key)
        for observer in list(self._observers):
            try:
                observer(change)
            except Exception:
                logger.exception("Observer failed for %s change", kind)
