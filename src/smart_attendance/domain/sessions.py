"""Domain models for attendance sessions."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class SessionStatus(Enum):
    """Lifecycle state of an attendance session."""

    ACTIVE = "active"
    ENDED = "ended"


class SessionMode(Enum):
    """How the session was started."""

    DEMO = "demo"
    LIVE = "live"


@dataclass(frozen=True)
class SessionRecord:
    """Represents a persisted attendance session."""

    id: UUID
    group_id: str
    subject_id: str
    owner_id: str
    mode: SessionMode
    status: SessionStatus
    start_time: datetime
    expires_at: datetime
    join_code: str
    ended_at: datetime | None = None

    def is_active_at(self, now: datetime) -> bool:
        """Return true when the session accepts attendance at the given time."""
        return self.status is SessionStatus.ACTIVE and self.expires_at > now

    def is_overdue_at(self, now: datetime) -> bool:
        """Return true when the session is still stored active but has expired."""
        return self.status is SessionStatus.ACTIVE and self.expires_at <= now
