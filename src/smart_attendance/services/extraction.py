"""Feature extraction boundary."""

from typing import Protocol

from smart_attendance.domain.extraction import Detection


class ExtractorClient(Protocol):
    """Interface for turning a raw frame into face feature vectors."""

    async def extract(self, frame: bytes) -> list[Detection]:
        """Return every face found in the frame; an empty list means none."""

    async def close(self) -> None:
        """Release any underlying connections."""


class ImageArchive(Protocol):
    """Interface for archiving raw reference frames."""

    def store(self, identity_id: str, index: int, frame: bytes) -> str:
        """Store a frame and return its location."""
