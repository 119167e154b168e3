"""
Keyed notification list.

Notifications sharing a correlation id replace each other in place
(pending -> found/not found/error) instead of stacking.
"""
from __future__ import annotations

import itertools
import logging
from collections import OrderedDict
from typing import Callable, List, Optional

from domain.models import Notification, Severity

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    Severity.INFO: logging.DEBUG,
    Severity.SUCCESS: logging.DEBUG,
    Severity.WARNING: logging.INFO,
    Severity.ERROR: logging.WARNING,
}


class NotificationCenter:
    def __init__(self, max_items: int = 20, listener: Optional[Callable[[Notification], None]] = None):
        self.max_items = max_items
        self.listener = listener
        self._items: "OrderedDict[str, Notification]" = OrderedDict()
        self._counter = itertools.count(1)

    def notify(
        self,
        severity: Severity,
        message: str,
        correlation_id: Optional[str] = None,
    ) -> Notification:
        """Upsert a notification. Without a correlation id a fresh one is generated."""
        key = correlation_id or f"notice-{next(self._counter)}"
        note = Notification(correlation_id=key, severity=Severity(severity), message=message)
        # Replaced entries keep their slot in the list.
        self._items[key] = note
        while len(self._items) > self.max_items:
            self._items.popitem(last=False)
        logger.log(_LOG_LEVELS[note.severity], "[%s] %s: %s", key, note.severity.value, message)
        if self.listener:
            self.listener(note)
        return note

    def get(self, correlation_id: str) -> Optional[Notification]:
        return self._items.get(correlation_id)

    def dismiss(self, correlation_id: str) -> bool:
        return self._items.pop(correlation_id, None) is not None

    def list(self) -> List[Notification]:
        return list(self._items.values())

    def clear(self) -> None:
        self._items.clear()
