"""Entry points exposed to callers such as the HTTP API and admin tooling."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from uuid import UUID

from smart_attendance.domain.attendance import AttendanceRecord
from smart_attendance.domain.identities import IdentityRecord
from smart_attendance.domain.matching import MatchResult
from smart_attendance.domain.sessions import SessionMode, SessionRecord
from smart_attendance.services.attendance import AttendanceService
from smart_attendance.services.descriptors import DescriptorService
from smart_attendance.services.matching import Matcher
from smart_attendance.services.registration import RegistrationService
from smart_attendance.services.sessions import SessionService


@dataclass
class AttendanceSystem:
    """Facade over the registry, matcher, session coordinator and ledger."""

    descriptor_service: DescriptorService
    matcher: Matcher
    session_service: SessionService
    attendance_service: AttendanceService
    registration_service: RegistrationService

    async def register_identity(
        self,
        identity_id: str,
        group_id: str,
        raw_frames: Iterable[bytes],
        sample_count: int | None = None,
    ) -> IdentityRecord:
        return await self.registration_service.capture(
            identity_id, group_id, raw_frames, sample_count
        )

    def create_session(  # noqa: PLR0913
        self,
        group_id: str,
        subject_id: str,
        owner_id: str,
        mode: SessionMode | str,
        duration_minutes: int,
    ) -> SessionRecord:
        return self.session_service.create(
            group_id, subject_id, owner_id, mode, duration_minutes
        )

    def end_session(self, session_id: UUID) -> None:
        self.session_service.end(session_id)

    def get_active_session(self, group_id: str) -> SessionRecord | None:
        return self.session_service.get_active(group_id)

    def identify(self, probe_vector: Sequence[float], group_id: str) -> MatchResult:
        """Match a probe against the identities registered in a group."""
        snapshot = self.descriptor_service.for_group(group_id)
        return self.matcher.classify(probe_vector, snapshot)

    def mark_attendance(
        self, session_id: UUID, identity_id: str, source: str
    ) -> AttendanceRecord:
        return self.attendance_service.mark(session_id, identity_id, source)

    def list_attendance(self, identity_id: str) -> list[AttendanceRecord]:
        return self.attendance_service.list_for_identity(identity_id)
