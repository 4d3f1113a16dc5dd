"""Domain models for registered identities."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from smart_attendance.domain.vectors import FeatureVector


class IdentityStatus(Enum):
    """Registration state of an identity."""

    UNREGISTERED = "unregistered"
    REGISTERED = "registered"


@dataclass(frozen=True)
class IdentityRecord:
    """Represents a person that can be matched within a group."""

    id: str
    group_id: str
    status: IdentityStatus
    descriptors: tuple[FeatureVector, ...] = ()

    @property
    def is_registered(self) -> bool:
        return self.status is IdentityStatus.REGISTERED and bool(self.descriptors)


@dataclass(frozen=True)
class DescriptorSnapshot:
    """Point-in-time, read-only view of the descriptors registered in a group."""

    group_id: str
    descriptors: Mapping[str, tuple[FeatureVector, ...]] = field(
        default_factory=dict
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "descriptors", MappingProxyType(dict(self.descriptors))
        )

    def __len__(self) -> int:
        return len(self.descriptors)

    @property
    def identity_ids(self) -> list[str]:
        return sorted(self.descriptors)

    @property
    def descriptor_count(self) -> int:
        return sum(len(vectors) for vectors in self.descriptors.values())

    @classmethod
    def from_identities(
        cls, group_id: str, identities: list[IdentityRecord]
    ) -> "DescriptorSnapshot":
        """Build a snapshot from registered identities of one group."""
        return cls(
            group_id=group_id,
            descriptors={
                identity.id: identity.descriptors
                for identity in identities
                if identity.group_id == group_id and identity.is_registered
            },
        )
