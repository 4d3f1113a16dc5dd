"""Supabase-backed identity and descriptor repository."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from smart_attendance.domain.identities import IdentityRecord, IdentityStatus
from smart_attendance.domain.vectors import FeatureVector, as_feature_vector
from smart_attendance.services.descriptors import DescriptorRepository

_COLUMNS = "id, group_id, status, descriptors"


@dataclass
class SupabaseIdentityRepository(DescriptorRepository):
    """Supabase implementation for identities.

    The whole descriptor set lives in one ``jsonb`` column, so a
    re-registration replaces it in a single row write and readers see either
    the old set or the new one.
    """

    client: Client

    def get_identity(self, identity_id: str) -> IdentityRecord | None:
        """Return an identity by id, if present."""
        response = (
            self.client.table("identities")
            .select(_COLUMNS)
            .eq("id", identity_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_identity(response.data[0])

    def save_descriptors(
        self,
        identity_id: str,
        group_id: str,
        descriptors: tuple[FeatureVector, ...],
    ) -> IdentityRecord:
        """Upsert the identity row with a new descriptor set."""
        response = (
            self.client.table("identities")
            .upsert(
                {
                    "id": identity_id,
                    "group_id": group_id,
                    "status": IdentityStatus.REGISTERED.value,
                    "descriptors": [vector.tolist() for vector in descriptors],
                    "descriptor_count": len(descriptors),
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="id",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save identity descriptors")
        return _parse_identity(response.data[0])

    def clear_descriptors(self, identity_id: str) -> None:
        """Remove descriptors and mark the identity unregistered."""
        self.client.table("identities").update(
            {
                "status": IdentityStatus.UNREGISTERED.value,
                "descriptors": [],
                "descriptor_count": 0,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).eq("id", identity_id).execute()

    def list_registered(self, group_id: str) -> list[IdentityRecord]:
        """Return registered identities of a group."""
        response = (
            self.client.table("identities")
            .select(_COLUMNS)
            .eq("group_id", group_id)
            .eq("status", IdentityStatus.REGISTERED.value)
            .execute()
        )
        return [_parse_identity(row) for row in response.data or []]


def _parse_identity(row: dict[str, object]) -> IdentityRecord:
    raw_descriptors = row.get("descriptors") or []
    descriptors = tuple(
        as_feature_vector(values)
        for values in raw_descriptors
        if isinstance(values, list) and values
    )
    return IdentityRecord(
        id=str(row["id"]),
        group_id=str(row["group_id"]),
        status=IdentityStatus(row.get("status", IdentityStatus.UNREGISTERED.value)),
        descriptors=descriptors,
    )
