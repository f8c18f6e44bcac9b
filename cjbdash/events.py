"""
Store notifications (typed observer)
====================================

The store tells its consumers (charts, tables, KPI panels, the console) that
something changed. Each notification is an `Event` with a fixed `EventKind`
instead of a free-form string name.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    DATA_LOADED = "data_loaded"
    FILTERS_CHANGED = "filters_changed"
    FILTERS_CLEARED = "filters_cleared"
    DATA_RESET = "data_reset"


@dataclass(frozen=True)
class Event:
    kind: EventKind
    payload: Any = None


Subscriber = Callable[[Event], None]


class EventBus:
    """Explicit subscriber registry, one list per event kind."""

    def __init__(self) -> None:
        self._subscribers: Dict[EventKind, List[Subscriber]] = {k: [] for k in EventKind}

    def subscribe(self, kind: EventKind, callback: Subscriber) -> Subscriber:
        self._subscribers[kind].append(callback)
        return callback

    def subscribe_all(self, callback: Subscriber) -> Subscriber:
        for kind in EventKind:
            self.subscribe(kind, callback)
        return callback

    def unsubscribe(self, kind: Optional[EventKind], callback: Subscriber) -> None:
        """Remove a callback from one kind, or from every kind when `kind` is None."""
        kinds = list(EventKind) if kind is None else [kind]
        for k in kinds:
            self._subscribers[k] = [cb for cb in self._subscribers[k] if cb is not callback]

    def emit(self, kind: EventKind, payload: Any = None) -> Event:
        """Deliver an event to every subscriber of `kind`, in registration order.

        A failing subscriber is logged and skipped; the others still run.
        """
        event = Event(kind=kind, payload=payload)
        for cb in list(self._subscribers[kind]):
            try:
                cb(event)
            except Exception:
                logger.exception("Subscriber %r failed on %s", cb, kind.value)
        return event

    def count(self, kind: EventKind) -> int:
        return len(self._subscribers[kind])
