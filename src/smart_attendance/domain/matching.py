"""Models for identity matching results."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MatchResult:
    """Best identity for a probe vector, or an unmatched result."""

    identity_id: str | None
    confidence: float

    @property
    def matched(self) -> bool:
        return self.identity_id is not None
