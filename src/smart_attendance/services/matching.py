"""Nearest-neighbour identity matching over registered descriptors.

Confidence for a probe against one stored descriptor is
``max(0, 1 - euclidean_distance)``. The best confidence across the candidate
set decides the identity; anything below the threshold is reported as
unmatched together with the best confidence seen.

Two scan strategies are available:

* ``EXACT`` scans every stored vector and picks the global maximum. Ties are
  broken by the lowest identity id, so results are deterministic.
* ``EARLY_EXIT`` stops as soon as a confidence above the high-confidence
  cutoff is found. It is faster on large groups, but when two identities are
  close the winner depends on candidate iteration order.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

import numpy as np

from smart_attendance.domain.identities import DescriptorSnapshot
from smart_attendance.domain.matching import MatchResult
from smart_attendance.domain.vectors import (
    FeatureVector,
    as_feature_vector,
    ensure_dimension,
)
from smart_attendance.errors import NoCandidatesError

Candidates = DescriptorSnapshot | Mapping[str, Sequence[FeatureVector]]


class MatchStrategy(Enum):
    """How the candidate set is scanned."""

    EXACT = "exact"
    EARLY_EXIT = "early_exit"


def classify(  # noqa: PLR0913
    probe: Sequence[float] | FeatureVector,
    candidates: Candidates,
    threshold: float,
    *,
    dimension: int,
    strategy: MatchStrategy = MatchStrategy.EXACT,
    high_confidence_cutoff: float = 0.8,
) -> MatchResult:
    """Return the best-matching identity for a probe vector."""
    vector = as_feature_vector(probe)
    ensure_dimension(vector, dimension)
    descriptors = (
        candidates.descriptors
        if isinstance(candidates, DescriptorSnapshot)
        else candidates
    )
    if not any(len(vectors) > 0 for vectors in descriptors.values()):
        raise NoCandidatesError("No registered descriptors to match against")

    if strategy is MatchStrategy.EARLY_EXIT:
        best_id, best = _scan_early_exit(vector, descriptors, high_confidence_cutoff)
    else:
        best_id, best = _scan_exact(vector, descriptors)

    if best < threshold:
        return MatchResult(identity_id=None, confidence=best)
    return MatchResult(identity_id=best_id, confidence=best)


def confidence_for(probe: FeatureVector, stored: FeatureVector) -> float:
    """Convert the distance between two vectors into a 0..1 confidence."""
    distance = float(np.linalg.norm(probe - stored))
    return max(0.0, 1.0 - distance)


def _scan_exact(
    vector: FeatureVector, descriptors: Mapping[str, Sequence[FeatureVector]]
) -> tuple[str | None, float]:
    best_id: str | None = None
    best = 0.0
    for identity_id in sorted(descriptors):
        vectors = descriptors[identity_id]
        if len(vectors) == 0:
            continue
        distances = np.linalg.norm(np.vstack(vectors) - vector, axis=1)
        confidence = max(0.0, 1.0 - float(distances.min()))
        # strict comparison keeps the lowest id on ties
        if best_id is None or confidence > best:
            best_id, best = identity_id, confidence
    return best_id, best


def _scan_early_exit(
    vector: FeatureVector,
    descriptors: Mapping[str, Sequence[FeatureVector]],
    cutoff: float,
) -> tuple[str | None, float]:
    best_id: str | None = None
    best = 0.0
    for identity_id, vectors in descriptors.items():
        for stored in vectors:
            confidence = confidence_for(vector, stored)
            if best_id is None or confidence > best:
                best_id, best = identity_id, confidence
            if confidence > cutoff:
                break
        if best > cutoff:
            break
    return best_id, best


@dataclass(frozen=True)
class Matcher:
    """Matching policy configured for one deployment."""

    dimension: int
    threshold: float = 0.4
    high_confidence_cutoff: float = 0.8
    strategy: MatchStrategy = MatchStrategy.EXACT

    def classify(
        self, probe: Sequence[float] | FeatureVector, candidates: Candidates
    ) -> MatchResult:
        """Classify a probe against the candidates with this policy."""
        return classify(
            probe,
            candidates,
            self.threshold,
            dimension=self.dimension,
            strategy=self.strategy,
            high_confidence_cutoff=self.high_confidence_cutoff,
        )
