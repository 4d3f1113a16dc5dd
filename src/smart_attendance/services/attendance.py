"""Idempotent attendance ledger."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol
from uuid import UUID

from smart_attendance.domain.attendance import AttendanceRecord
from smart_attendance.domain.sessions import SessionRecord
from smart_attendance.errors import SessionInactiveError
from smart_attendance.services.audit import AuditService
from smart_attendance.services.clock import utc_now
from smart_attendance.services.descriptors import DescriptorService
from smart_attendance.services.events import ChangeEvent, EventBus, EventType
from smart_attendance.services.sessions import SessionService

_logger = logging.getLogger(__name__)


class AttendanceRepository(Protocol):
    """Persistence interface for attendance records."""

    def get_record(self, identity_id: str, session_id: UUID) -> AttendanceRecord | None:
        """Return the record for an identity in a session, if present."""

    def create_record_if_absent(  # noqa: PLR0913
        self,
        identity_id: str,
        session_id: UUID,
        group_id: str,
        subject_id: str,
        timestamp: datetime,
        source: str,
    ) -> tuple[AttendanceRecord, bool]:
        """Atomically insert a present record unless the pair already exists.

        Returns the stored record and whether this call created it.
        """

    def list_for_identity(self, identity_id: str) -> list[AttendanceRecord]:
        """Return all records of an identity."""

    def list_for_session(self, session_id: UUID) -> list[AttendanceRecord]:
        """Return all records of a session."""


@dataclass
class AttendanceService:
    """Records presence facts, at most one per (identity, session)."""

    repository: AttendanceRepository
    session_service: SessionService
    descriptor_service: DescriptorService
    audit_service: AuditService
    events: EventBus = field(default_factory=EventBus)
    clock: Callable[[], datetime] = utc_now

    def mark(self, session_id: UUID, identity_id: str, source: str) -> AttendanceRecord:
        """Mark an identity present; repeated calls return the same record."""
        session = self.session_service.get(session_id)
        now = self.clock()
        if not session.is_active_at(now):
            raise SessionInactiveError(f"Session {session_id} is not active")
        self.descriptor_service.get_identity(identity_id)

        existing = self.repository.get_record(identity_id, session_id)
        if existing is not None:
            return existing

        record, created = self.repository.create_record_if_absent(
            identity_id=identity_id,
            session_id=session_id,
            group_id=session.group_id,
            subject_id=session.subject_id,
            timestamp=now,
            source=source,
        )
        if not created:
            return record

        _logger.info(
            "Marked %s present in session %s (source=%s)",
            identity_id,
            session_id,
            source,
        )
        self._audit(session, record)
        self.events.publish(
            ChangeEvent(
                type=EventType.ATTENDANCE_MARKED,
                group_id=session.group_id,
                data=serialize_record(record),
            )
        )
        return record

    def list_for_identity(self, identity_id: str) -> list[AttendanceRecord]:
        """Return every attendance record of an identity, in no set order."""
        return self.repository.list_for_identity(identity_id)

    def list_for_session(self, session_id: UUID) -> list[AttendanceRecord]:
        """Return every attendance record of a session."""
        return self.repository.list_for_session(session_id)

    def _audit(self, session: SessionRecord, record: AttendanceRecord) -> None:
        try:
            self.audit_service.submit_event(
                actor_id=session.owner_id,
                action="mark_attendance",
                target=record.identity_id,
                details={
                    "session_id": str(session.id),
                    "group_id": session.group_id,
                    "subject_id": session.subject_id,
                    "source": record.source,
                    "present": record.present,
                },
            )
        except RuntimeError:
            _logger.exception(
                "Failed to schedule audit event",
                extra={"session_id": str(session.id), "identity_id": record.identity_id},
            )


def serialize_record(record: AttendanceRecord) -> dict[str, object]:
    """Return a JSON-friendly view of an attendance record."""
    return {
        "id": str(record.id),
        "identity_id": record.identity_id,
        "session_id": str(record.session_id),
        "group_id": record.group_id,
        "subject_id": record.subject_id,
        "timestamp": record.timestamp.isoformat(),
        "present": record.present,
        "source": record.source,
    }
