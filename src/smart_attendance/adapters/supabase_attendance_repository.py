"""Supabase-backed attendance record repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from smart_attendance.domain.attendance import AttendanceRecord
from smart_attendance.services.attendance import AttendanceRepository

_COLUMNS = "id, identity_id, session_id, group_id, subject_id, timestamp, present, source"


@dataclass
class SupabaseAttendanceRepository(AttendanceRepository):
    """Supabase implementation for attendance records.

    Relies on the unique constraint ``attendance_records (identity_id,
    session_id)``.
    """

    client: Client

    def get_record(self, identity_id: str, session_id: UUID) -> AttendanceRecord | None:
        """Return the record for the pair, if present."""
        response = (
            self.client.table("attendance_records")
            .select(_COLUMNS)
            .eq("identity_id", identity_id)
            .eq("session_id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_record(response.data[0])

    def create_record_if_absent(  # noqa: PLR0913
        self,
        identity_id: str,
        session_id: UUID,
        group_id: str,
        subject_id: str,
        timestamp: datetime,
        source: str,
    ) -> tuple[AttendanceRecord, bool]:
        """Insert the record, ignoring the write when the pair already exists."""
        response = (
            self.client.table("attendance_records")
            .upsert(
                {
                    "identity_id": identity_id,
                    "session_id": str(session_id),
                    "group_id": group_id,
                    "subject_id": subject_id,
                    "timestamp": timestamp.isoformat(),
                    "present": True,
                    "source": source,
                },
                on_conflict="identity_id,session_id",
                ignore_duplicates=True,
            )
            .execute()
        )
        if response.data:
            return _parse_record(response.data[0]), True
        existing = self.get_record(identity_id, session_id)
        if existing is None:
            raise RuntimeError("Failed to create attendance record")
        return existing, False

    def list_for_identity(self, identity_id: str) -> list[AttendanceRecord]:
        """Return all records of an identity."""
        response = (
            self.client.table("attendance_records")
            .select(_COLUMNS)
            .eq("identity_id", identity_id)
            .execute()
        )
        return [_parse_record(row) for row in response.data or []]

    def list_for_session(self, session_id: UUID) -> list[AttendanceRecord]:
        """Return all records of a session."""
        response = (
            self.client.table("attendance_records")
            .select(_COLUMNS)
            .eq("session_id", str(session_id))
            .execute()
        )
        return [_parse_record(row) for row in response.data or []]


def _parse_record(row: dict[str, object]) -> AttendanceRecord:
    return AttendanceRecord(
        id=UUID(row["id"]),
        identity_id=str(row["identity_id"]),
        session_id=UUID(row["session_id"]),
        group_id=str(row.get("group_id", "")),
        subject_id=str(row.get("subject_id", "")),
        timestamp=datetime.fromisoformat(row["timestamp"]),
        present=bool(row.get("present", True)),
        source=str(row.get("source", "")),
    )
