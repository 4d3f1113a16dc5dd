"""Registry of per-identity descriptor sets, scoped by group."""

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from smart_attendance.domain.identities import DescriptorSnapshot, IdentityRecord
from smart_attendance.domain.vectors import (
    FeatureVector,
    as_feature_vector,
    ensure_dimension,
)
from smart_attendance.errors import IdentityNotFoundError, ValidationError
from smart_attendance.services.cache import Cache

_logger = logging.getLogger(__name__)


class DescriptorRepository(Protocol):
    """Persistence interface for identities and their descriptors."""

    def get_identity(self, identity_id: str) -> IdentityRecord | None:
        """Return an identity by id, if present."""

    def save_descriptors(
        self,
        identity_id: str,
        group_id: str,
        descriptors: tuple[FeatureVector, ...],
    ) -> IdentityRecord:
        """Replace the identity's descriptor set in one write and return it."""

    def clear_descriptors(self, identity_id: str) -> None:
        """Drop the identity's descriptors and mark it unregistered."""

    def list_registered(self, group_id: str) -> list[IdentityRecord]:
        """Return registered identities of a group."""


@dataclass
class DescriptorService:
    """Validates descriptor writes and serves immutable group snapshots."""

    repository: DescriptorRepository
    cache: Cache
    dimension: int = 128
    snapshot_ttl_seconds: int = 30
    _generations: dict[str, int] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def register(
        self,
        identity_id: str,
        group_id: str,
        vectors: Sequence[Sequence[float] | FeatureVector],
    ) -> IdentityRecord:
        """Replace the descriptor set of an identity and mark it registered."""
        if not vectors:
            raise ValidationError("At least one feature vector is required")
        descriptors = tuple(as_feature_vector(vector) for vector in vectors)
        for descriptor in descriptors:
            ensure_dimension(descriptor, self.dimension)

        previous = self.repository.get_identity(identity_id)
        identity = self.repository.save_descriptors(
            identity_id=identity_id,
            group_id=group_id,
            descriptors=descriptors,
        )
        self._invalidate(group_id)
        if previous is not None and previous.group_id != group_id:
            self._invalidate(previous.group_id)
        _logger.info(
            "Registered %s descriptors for identity %s in group %s",
            len(descriptors),
            identity_id,
            group_id,
        )
        return identity

    def for_group(self, group_id: str) -> DescriptorSnapshot:
        """Return a point-in-time snapshot of descriptors registered in a group."""
        cache_key = _snapshot_key(group_id)
        cached = self.cache.get(cache_key)
        if isinstance(cached, DescriptorSnapshot):
            return cached

        with self._lock:
            generation = self._generations.get(group_id, 0)
        snapshot = DescriptorSnapshot.from_identities(
            group_id, self.repository.list_registered(group_id)
        )
        if self.snapshot_ttl_seconds > 0:
            with self._lock:
                # skip caching when a write landed during the read
                if self._generations.get(group_id, 0) == generation:
                    self.cache.set(
                        cache_key, snapshot, ttl_seconds=self.snapshot_ttl_seconds
                    )
        return snapshot

    def get_identity(self, identity_id: str) -> IdentityRecord:
        """Return an identity or raise when it does not exist."""
        identity = self.repository.get_identity(identity_id)
        if identity is None:
            raise IdentityNotFoundError(f"Identity {identity_id} not found")
        return identity

    def clear(self, identity_id: str) -> None:
        """Remove all descriptors of an identity."""
        identity = self.get_identity(identity_id)
        self.repository.clear_descriptors(identity_id)
        self._invalidate(identity.group_id)

    def _invalidate(self, group_id: str) -> None:
        with self._lock:
            self._generations[group_id] = self._generations.get(group_id, 0) + 1
            self.cache.delete(_snapshot_key(group_id))


def _snapshot_key(group_id: str) -> str:
    return f"descriptors:{group_id}"
