"""Session change notifications.

UI layers either poll the session's view-model getters or subscribe here to be
told when something changed:

    emitter.subscribe(SessionEvent.QUEST_COMPLETED, on_quest_completed)
    emitter.emit(SessionEvent.QUEST_COMPLETED, quest_id="main_hollow_hart")
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable


class SessionEvent(str, Enum):
    FLAG_CHANGED = "flag_changed"
    QUEST_STARTED = "quest_started"
    QUEST_COMPLETED = "quest_completed"
    QUEST_FAILED = "quest_failed"
    OBJECTIVE_PROGRESSED = "objective_progressed"
    INVENTORY_CHANGED = "inventory_changed"
    STATS_CHANGED = "stats_changed"
    REGION_UNLOCKED = "region_unlocked"
    LOG = "log"


@dataclass
class Event:
    type: SessionEvent
    data: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


EventHandler = Callable[[Event], None]


class EventEmitter:
    """Synchronous observer list keyed by event type.

    Handlers run in subscription order, on the caller's stack, before
    ``emit`` returns.
    """

    def __init__(self) -> None:
        self._handlers: dict[SessionEvent, list[EventHandler]] = {}

    def subscribe(self, event_type: SessionEvent, handler: EventHandler) -> None:
        handlers = self._handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event_type: SessionEvent, handler: EventHandler) -> bool:
        """Remove a handler. Returns False if it was not subscribed."""
        handlers = self._handlers.get(event_type, [])
        if handler not in handlers:
            return False
        handlers.remove(handler)
        return True

    def emit(self, event_type: SessionEvent, **data: Any) -> Event:
        event = Event(type=event_type, data=data)
        # Copy so handlers may unsubscribe themselves while being called.
        for handler in list(self._handlers.get(event_type, [])):
            handler(event)
        return event

    def handler_count(self, event_type: SessionEvent) -> int:
        return len(self._handlers.get(event_type, []))

    def clear(self) -> None:
        self._handlers.clear()
