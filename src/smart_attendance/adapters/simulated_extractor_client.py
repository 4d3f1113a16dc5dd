"""Stand-in extractor for demos and tests without an extraction service."""

import hashlib
from dataclasses import dataclass

import numpy as np

from smart_attendance.domain.extraction import Detection
from smart_attendance.domain.vectors import as_feature_vector
from smart_attendance.services.extraction import ExtractorClient


@dataclass
class SimulatedExtractorClient(ExtractorClient):
    """Derives a pseudo-random unit-scale vector from each frame's bytes.

    The same frame always yields the same vector; an empty frame yields no
    face.
    """

    dimension: int = 128

    async def extract(self, frame: bytes) -> list[Detection]:
        """Return a single synthetic face for non-empty frames."""
        if not frame:
            return []
        digest = hashlib.sha256(frame).digest()
        rng = np.random.default_rng(int.from_bytes(digest[:8], "big"))
        values = rng.normal(0.0, 1.0 / np.sqrt(self.dimension), size=self.dimension)
        return [Detection(vector=as_feature_vector(values))]

    async def close(self) -> None:
        return None
