"""Error taxonomy surfaced by the attendance core."""


class AttendanceError(Exception):
    """Base class for request-scoped attendance failures."""


class ValidationError(AttendanceError):
    """Raised when input data is invalid or violates domain rules."""


class DimensionMismatchError(ValidationError):
    """Raised when a vector's length differs from the deployment dimension."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Expected a {expected}-dimensional vector, got {actual}")
        self.expected = expected
        self.actual = actual


class NoCandidatesError(AttendanceError):
    """Raised when matching is attempted against an empty candidate set."""


class SessionConflictError(AttendanceError):
    """Raised when a group already has an active session."""

    def __init__(self, group_id: str) -> None:
        super().__init__(f"A session is already active for group {group_id}")
        self.group_id = group_id


class SessionNotFoundError(AttendanceError):
    """Raised when a session id does not resolve to a stored session."""


class SessionInactiveError(AttendanceError):
    """Raised when attendance is marked against an ended or expired session."""


class IdentityNotFoundError(AttendanceError):
    """Raised when an identity id does not resolve to a stored identity."""
