"""Attendance session lifecycle: one active session per group."""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol
from uuid import UUID

from smart_attendance.domain.sessions import SessionMode, SessionRecord, SessionStatus
from smart_attendance.errors import (
    SessionConflictError,
    SessionNotFoundError,
    ValidationError,
)
from smart_attendance.services.clock import utc_now
from smart_attendance.services.events import ChangeEvent, EventBus, EventType

_logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """Persistence interface for attendance sessions."""

    def create_session(  # noqa: PLR0913
        self,
        group_id: str,
        subject_id: str,
        owner_id: str,
        mode: SessionMode,
        start_time: datetime,
        expires_at: datetime,
        join_code: str,
    ) -> SessionRecord:
        """Insert an active session.

        Must be a conditional write: raise ``SessionConflictError`` when the
        group already has an active session.
        """

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        """Return a session by id, if present."""

    def get_active_session(self, group_id: str) -> SessionRecord | None:
        """Return the session stored as active for a group, if present."""

    def end_session(self, session_id: UUID, ended_at: datetime) -> SessionRecord | None:
        """Move an active session to ended.

        Returns the updated session, or ``None`` when it was no longer active.
        """

    def list_sessions_for_owner(self, owner_id: str) -> list[SessionRecord]:
        """Return sessions started by an owner, newest first."""


@dataclass
class SessionService:
    """State machine for attendance sessions.

    ``active -> ended`` happens either through :meth:`end` or lazily, when a
    lookup finds a session whose ``expires_at`` has passed. ``ended`` is
    terminal.
    """

    repository: SessionRepository
    events: EventBus = field(default_factory=EventBus)
    clock: Callable[[], datetime] = utc_now

    def create(  # noqa: PLR0913
        self,
        group_id: str,
        subject_id: str,
        owner_id: str,
        mode: SessionMode | str,
        duration_minutes: int,
    ) -> SessionRecord:
        """Start a session for a group that has no active session."""
        if duration_minutes <= 0:
            raise ValidationError("Session duration must be a positive number")
        session_mode = _parse_mode(mode)

        # Retire an overdue session so it does not block the new one.
        if self.get_active(group_id) is not None:
            raise SessionConflictError(group_id)

        now = self.clock()
        session = self.repository.create_session(
            group_id=group_id,
            subject_id=subject_id,
            owner_id=owner_id,
            mode=session_mode,
            start_time=now,
            expires_at=now + timedelta(minutes=duration_minutes),
            join_code=_generate_join_code(),
        )
        _logger.info(
            "Started session %s for group %s (subject=%s, until=%s)",
            session.id,
            group_id,
            subject_id,
            session.expires_at.isoformat(),
        )
        self._publish(EventType.SESSION_CREATED, session)
        return session

    def end(self, session_id: UUID) -> SessionRecord:
        """End a session now; ending an ended session changes nothing.

        A session already past ``expires_at`` is closed as expired, at its
        expiry time.
        """
        session = self.get(session_id)
        if session.status is SessionStatus.ENDED:
            return session

        now = self.clock()
        overdue = session.is_overdue_at(now)
        updated = self.repository.end_session(
            session_id, ended_at=session.expires_at if overdue else now
        )
        if updated is None:
            # Someone else ended or expired it first.
            return self.get(session_id)
        if overdue:
            _logger.info("Session %s for group %s expired", session_id, updated.group_id)
            self._publish(EventType.SESSION_EXPIRED, updated)
        else:
            _logger.info("Ended session %s for group %s", session_id, updated.group_id)
            self._publish(EventType.SESSION_ENDED, updated)
        return updated

    def get_active(self, group_id: str) -> SessionRecord | None:
        """Return the active session of a group, expiring it if overdue."""
        session = self.repository.get_active_session(group_id)
        if session is None:
            return None
        if session.is_overdue_at(self.clock()):
            expired = self.repository.end_session(
                session.id, ended_at=session.expires_at
            )
            if expired is not None:
                _logger.info(
                    "Session %s for group %s expired", session.id, session.group_id
                )
                self._publish(EventType.SESSION_EXPIRED, expired)
            return None
        return session

    def get(self, session_id: UUID) -> SessionRecord:
        """Return a session or raise when it does not exist."""
        session = self.repository.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    def list_for_owner(self, owner_id: str) -> list[SessionRecord]:
        """Return an owner's sessions, newest first."""
        return self.repository.list_sessions_for_owner(owner_id)

    def find_by_join_code(self, group_id: str, join_code: str) -> SessionRecord | None:
        """Return the group's active session when the join code matches."""
        session = self.get_active(group_id)
        if session is None or not secrets.compare_digest(
            session.join_code, join_code.strip()
        ):
            return None
        return session

    def _publish(self, event_type: EventType, session: SessionRecord) -> None:
        self.events.publish(
            ChangeEvent(
                type=event_type,
                group_id=session.group_id,
                data=serialize_session(session),
            )
        )


def serialize_session(session: SessionRecord) -> dict[str, object]:
    """Return a JSON-friendly view of a session."""
    return {
        "id": str(session.id),
        "group_id": session.group_id,
        "subject_id": session.subject_id,
        "owner_id": session.owner_id,
        "mode": session.mode.value,
        "status": session.status.value,
        "start_time": session.start_time.isoformat(),
        "expires_at": session.expires_at.isoformat(),
        "ended_at": session.ended_at.isoformat() if session.ended_at else None,
        "join_code": session.join_code,
    }


def _parse_mode(mode: SessionMode | str) -> SessionMode:
    if isinstance(mode, SessionMode):
        return mode
    try:
        return SessionMode(mode)
    except ValueError as exc:
        raise ValidationError(f"Unknown session mode: {mode}") from exc


def _generate_join_code() -> str:
    """Return a four-digit numeric join code."""
    return str(1000 + secrets.randbelow(9000))
