"""Change notification for sessions and attendance records."""

import json
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from smart_attendance.services.clock import utc_now

_logger = logging.getLogger(__name__)


class EventType(Enum):
    """Kinds of change published by the core."""

    SESSION_CREATED = "session_created"
    SESSION_ENDED = "session_ended"
    SESSION_EXPIRED = "session_expired"
    ATTENDANCE_MARKED = "attendance_marked"


@dataclass(frozen=True)
class ChangeEvent:
    """A single change to session or attendance state."""

    type: EventType
    group_id: str
    data: dict[str, object]
    occurred_at: datetime = field(default_factory=utc_now)

    def to_payload(self) -> dict[str, object]:
        return {
            "type": self.type.value,
            "group_id": self.group_id,
            "data": self.data,
            "timestamp": self.occurred_at.isoformat(),
        }


Subscriber = Callable[[ChangeEvent], None]


class EventBus:
    """Fan-out of change events to in-process subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback and return a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to every subscriber; subscriber errors are logged."""
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                _logger.exception(
                    "Event subscriber failed", extra={"event_type": event.type.value}
                )


def to_sse_message(event: ChangeEvent) -> str:
    """Format an event as a server-sent events message."""
    return f"event: {event.type.value}\ndata: {json.dumps(event.to_payload())}\n\n"
