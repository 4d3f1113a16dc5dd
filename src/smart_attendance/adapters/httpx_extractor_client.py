"""HTTP client for an external face feature extraction service."""

from dataclasses import dataclass

import httpx

from smart_attendance.domain.extraction import BoundingBox, Detection
from smart_attendance.domain.vectors import as_feature_vector
from smart_attendance.services.extraction import ExtractorClient


@dataclass
class HttpxExtractorClient(ExtractorClient):
    """Posts raw frames to ``<base_url>/extract`` and parses the faces."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 10.0

    @classmethod
    def create(cls, base_url: str, timeout_seconds: float = 10.0) -> "HttpxExtractorClient":
        """Create an extractor client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def extract(self, frame: bytes) -> list[Detection]:
        """Return faces found in the frame."""
        response = await self.http_client.post(
            f"{self.base_url}/extract",
            content=frame,
            headers={"Content-Type": "application/octet-stream"},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        payload = response.json()
        return [_parse_face(face) for face in payload.get("faces", [])]

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _parse_face(face: dict[str, object]) -> Detection:
    box = face.get("box")
    return Detection(
        vector=as_feature_vector(face["descriptor"]),
        box=BoundingBox(
            x=float(box["x"]),
            y=float(box["y"]),
            width=float(box["width"]),
            height=float(box["height"]),
        )
        if isinstance(box, dict)
        else None,
    )
