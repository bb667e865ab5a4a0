"""
Events emitted by the engine on state transitions.

A presentation layer subscribes to these (confetti on mastery, a chime on
session completion) instead of the engine calling out to it directly.
"""

import logging
from collections import defaultdict
from typing import Callable

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Event(BaseModel):
    kind: str


class NodeMastered(Event):
    kind: str = "node_mastered"
    node_id: str
    title: str


class SessionCompleted(Event):
    kind: str = "session_completed"
    node_id: str | None
    total_sessions: int
    duration: int


class BreakFinished(Event):
    kind: str = "break_finished"


Handler = Callable[[Event], None]


class EventBus:
    def __init__(self):
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def emit(self, event: Event) -> None:
        logger.debug(f"Emitting {event.kind}")
        for handler in list(self._handlers[type(event)]):
            handler(event)
