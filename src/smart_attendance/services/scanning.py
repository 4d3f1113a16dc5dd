"""Runtime scanning loop: frame in, attendance marks out."""

import logging
from dataclasses import dataclass
from functools import partial
from uuid import UUID

from smart_attendance.domain.attendance import AttendanceRecord
from smart_attendance.domain.extraction import ScanResult
from smart_attendance.errors import IdentityNotFoundError, SessionInactiveError
from smart_attendance.services.attendance import AttendanceService
from smart_attendance.services.descriptors import DescriptorService
from smart_attendance.services.extraction import ExtractorClient
from smart_attendance.services.matching import Matcher
from smart_attendance.services.retry import call_with_retry
from smart_attendance.services.sessions import SessionService

_logger = logging.getLogger(__name__)


@dataclass
class ScanService:
    """Identifies every face in a frame and marks matched identities present."""

    extractor: ExtractorClient
    matcher: Matcher
    session_service: SessionService
    descriptor_service: DescriptorService
    attendance_service: AttendanceService
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def process_frame(
        self, session_id: UUID, frame: bytes, source: str
    ) -> list[ScanResult]:
        """Return one result per detected face, in detection order."""
        session = self.session_service.get(session_id)
        if not session.is_active_at(self.session_service.clock()):
            raise SessionInactiveError(f"Session {session_id} is not active")

        snapshot = self.descriptor_service.for_group(session.group_id)
        detections = await call_with_retry(
            partial(self.extractor.extract, frame),
            action="extract",
            attempts=self.retry_attempts,
            delay_seconds=self.retry_delay_seconds,
        )

        results: list[ScanResult] = []
        for detection in detections:
            match = self.matcher.classify(detection.vector, snapshot)
            record = None
            if match.identity_id is not None:
                record = self._mark(session_id, match.identity_id, source)
            results.append(ScanResult(match=match, box=detection.box, record=record))
        _logger.debug(
            "Scanned frame for session %s: %s faces, %s recognized",
            session_id,
            len(results),
            sum(1 for result in results if result.record is not None),
        )
        return results

    def _mark(
        self, session_id: UUID, identity_id: str, source: str
    ) -> AttendanceRecord | None:
        try:
            return self.attendance_service.mark(session_id, identity_id, source)
        except (IdentityNotFoundError, SessionInactiveError) as exc:
            _logger.warning(
                "Could not mark %s in session %s: %s", identity_id, session_id, exc
            )
            return None
