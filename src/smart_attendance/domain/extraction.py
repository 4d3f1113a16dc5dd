"""Models for feature extraction and frame scanning."""

from dataclasses import dataclass

from smart_attendance.domain.attendance import AttendanceRecord
from smart_attendance.domain.matching import MatchResult
from smart_attendance.domain.vectors import FeatureVector


@dataclass(frozen=True)
class BoundingBox:
    """Position of a detected face within its frame."""

    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class Detection:
    """One face found by the extractor."""

    vector: FeatureVector
    box: BoundingBox | None = None


@dataclass(frozen=True)
class ScanResult:
    """Outcome for a single face in a scanned frame."""

    match: MatchResult
    box: BoundingBox | None
    record: AttendanceRecord | None
