"""UI message history for user-facing notifications.

Processors report problems to the user by adding structured history items
to a sink. The history records every item with its ordering token and
forwards it to registered listeners (for example, a Rich console printer).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class MessageType(StrEnum):
    """Kinds of history items shown to the user."""

    INFO = "info"
    ERROR = "error"
    WARNING = "warning"
    USER = "user"


class HistoryItem(BaseModel):
    """A single message destined for the UI."""

    type: MessageType = Field(description="Message kind")
    text: str = Field(description="Message text shown to the user")


# Type alias for history listener callbacks
HistoryListener = Callable[[HistoryItem, int], object]


class UIMessageHistory:
    """Collects history items in arrival order.

    Listeners are plain callables invoked with ``(item, timestamp)``.
    Listener exceptions are logged but never propagate to the caller that
    added the item.
    """

    def __init__(self) -> None:
        self._items: list[tuple[int, HistoryItem]] = []
        self._listeners: list[HistoryListener] = []

    @property
    def items(self) -> list[tuple[int, HistoryItem]]:
        """All ``(timestamp, item)`` pairs added so far."""
        return list(self._items)

    @property
    def errors(self) -> list[HistoryItem]:
        return [item for _, item in self._items if item.type == MessageType.ERROR]

    def add_listener(self, listener: HistoryListener) -> None:
        """Register a listener to receive every new item."""
        self._listeners.append(listener)

    def remove_listener(self, listener: HistoryListener) -> None:
        """Remove a previously registered listener."""
        self._listeners = [ln for ln in self._listeners if ln is not listener]

    def add_item(self, item: HistoryItem, timestamp: int) -> None:
        """Record an item and dispatch it to all listeners."""
        self._items.append((timestamp, item))

        for listener in self._listeners:
            try:
                listener(item, timestamp)
            except Exception:
                logger.exception("History listener error for %s item", item.type)

    def clear(self) -> None:
        self._items.clear()
