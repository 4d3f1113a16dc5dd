"""Supabase Storage archive for raw reference frames."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from smart_attendance.services.extraction import ImageArchive


@dataclass
class SupabaseImageArchive(ImageArchive):
    """Stores reference frames under ``<identity>/image_<n>_<ms>.jpg``."""

    client: Client
    bucket: str = "face-images"

    def store(self, identity_id: str, index: int, frame: bytes) -> str:
        """Upload a frame and return its public URL."""
        stamp = int(datetime.now(tz=UTC).timestamp() * 1000)
        path = f"{identity_id}/image_{index}_{stamp}.jpg"
        storage = self.client.storage.from_(self.bucket)
        storage.upload(path, frame, {"content-type": "image/jpeg"})
        return storage.get_public_url(path)
