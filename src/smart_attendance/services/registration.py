"""Multi-sample capture feeding the descriptor registry."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from functools import partial

from smart_attendance.domain.identities import IdentityRecord
from smart_attendance.domain.vectors import FeatureVector
from smart_attendance.errors import ValidationError
from smart_attendance.services.descriptors import DescriptorService
from smart_attendance.services.extraction import ExtractorClient, ImageArchive
from smart_attendance.services.retry import call_with_retry

_logger = logging.getLogger(__name__)


@dataclass
class RegistrationService:
    """Collects feature vectors from frames and registers them."""

    extractor: ExtractorClient
    descriptor_service: DescriptorService
    archive: ImageArchive | None = None
    sample_count: int = 5
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def capture(
        self,
        identity_id: str,
        group_id: str,
        frames: Iterable[bytes],
        sample_count: int | None = None,
    ) -> IdentityRecord:
        """Extract one vector per usable frame and register the identity.

        Frames where no face is found are skipped and do not count. Nothing is
        written unless ``sample_count`` vectors were collected.
        """
        target = sample_count if sample_count is not None else self.sample_count
        if target <= 0:
            raise ValidationError("Sample count must be a positive number")

        vectors: list[FeatureVector] = []
        skipped = 0
        for frame in frames:
            if len(vectors) >= target:
                break
            detections = await call_with_retry(
                partial(self.extractor.extract, frame),
                action="extract",
                attempts=self.retry_attempts,
                delay_seconds=self.retry_delay_seconds,
            )
            if not detections:
                skipped += 1
                continue
            vectors.append(detections[0].vector)
            await self._archive(identity_id, len(vectors) - 1, frame)

        if len(vectors) < target:
            raise ValidationError(
                f"Captured {len(vectors)} of {target} face samples "
                f"({skipped} frames without a face)"
            )
        _logger.info(
            "Captured %s samples for identity %s (%s frames skipped)",
            len(vectors),
            identity_id,
            skipped,
        )
        return self.descriptor_service.register(identity_id, group_id, vectors)

    async def _archive(self, identity_id: str, index: int, frame: bytes) -> None:
        if self.archive is None:
            return
        try:
            await call_with_retry(
                partial(asyncio.to_thread, self.archive.store, identity_id, index, frame),
                action="archive",
                attempts=self.retry_attempts,
                delay_seconds=self.retry_delay_seconds,
            )
        except Exception:
            _logger.warning(
                "Failed to archive reference frame %s for identity %s",
                index,
                identity_id,
                exc_info=True,
            )
