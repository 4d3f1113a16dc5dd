"""Feature vector helpers."""

from collections.abc import Sequence

import numpy as np

from smart_attendance.errors import DimensionMismatchError, ValidationError

FeatureVector = np.ndarray


def as_feature_vector(values: Sequence[float] | np.ndarray) -> FeatureVector:
    """Copy values into an immutable one-dimensional float vector."""
    try:
        vector = np.array(values, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Feature vector must contain only numbers") from exc
    if vector.ndim != 1 or vector.size == 0:
        raise ValidationError("Feature vector must be a non-empty flat sequence")
    if not np.all(np.isfinite(vector)):
        raise ValidationError("Feature vector must contain only finite values")
    vector.setflags(write=False)
    return vector


def ensure_dimension(vector: FeatureVector, dimension: int) -> None:
    """Raise when the vector does not have the deployment dimension."""
    if vector.shape[0] != dimension:
        raise DimensionMismatchError(expected=dimension, actual=vector.shape[0])
