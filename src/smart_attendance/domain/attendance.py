"""Domain models for attendance records."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class AttendanceRecord:
    """Presence of one identity in one session."""

    id: UUID
    identity_id: str
    session_id: UUID
    group_id: str
    subject_id: str
    timestamp: datetime
    present: bool
    source: str
