"""Supabase-backed session repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from smart_attendance.domain.sessions import SessionMode, SessionRecord, SessionStatus
from smart_attendance.errors import SessionConflictError
from smart_attendance.services.sessions import SessionRepository

_COLUMNS = (
    "id, group_id, subject_id, owner_id, mode, status, "
    "start_time, expires_at, ended_at, join_code"
)
_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for attendance sessions.

    Exclusivity relies on the partial unique index
    ``attendance_sessions (group_id) where status = 'active'``.
    """

    client: Client

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
        """Insert an active session row and return it."""
        try:
            response = (
                self.client.table("attendance_sessions")
                .insert(
                    {
                        "group_id": group_id,
                        "subject_id": subject_id,
                        "owner_id": owner_id,
                        "mode": mode.value,
                        "status": SessionStatus.ACTIVE.value,
                        "start_time": start_time.isoformat(),
                        "expires_at": expires_at.isoformat(),
                        "join_code": join_code,
                    }
                )
                .execute()
            )
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise SessionConflictError(group_id) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create session")
        return _parse_session(response.data[0])

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        """Return a session by id, if present."""
        response = (
            self.client.table("attendance_sessions")
            .select(_COLUMNS)
            .eq("id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def get_active_session(self, group_id: str) -> SessionRecord | None:
        """Return the active session row of a group."""
        response = (
            self.client.table("attendance_sessions")
            .select(_COLUMNS)
            .eq("group_id", group_id)
            .eq("status", SessionStatus.ACTIVE.value)
            .order("start_time", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def end_session(self, session_id: UUID, ended_at: datetime) -> SessionRecord | None:
        """End the session only if it is still active."""
        response = (
            self.client.table("attendance_sessions")
            .update(
                {
                    "status": SessionStatus.ENDED.value,
                    "ended_at": ended_at.isoformat(),
                }
            )
            .eq("id", str(session_id))
            .eq("status", SessionStatus.ACTIVE.value)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def list_sessions_for_owner(self, owner_id: str) -> list[SessionRecord]:
        """Return sessions of an owner, newest first."""
        response = (
            self.client.table("attendance_sessions")
            .select(_COLUMNS)
            .eq("owner_id", owner_id)
            .order("start_time", desc=True)
            .execute()
        )
        return [_parse_session(row) for row in response.data or []]


def _parse_session(row: dict[str, object]) -> SessionRecord:
    ended_raw = row.get("ended_at")
    return SessionRecord(
        id=UUID(row["id"]),
        group_id=str(row["group_id"]),
        subject_id=str(row["subject_id"]),
        owner_id=str(row["owner_id"]),
        mode=SessionMode(row.get("mode", SessionMode.LIVE.value)),
        status=SessionStatus(row["status"]),
        start_time=datetime.fromisoformat(row["start_time"]),
        expires_at=datetime.fromisoformat(row["expires_at"]),
        ended_at=datetime.fromisoformat(ended_raw)
        if isinstance(ended_raw, str) and ended_raw
        else None,
        join_code=str(row.get("join_code", "")),
    )
