"""
Distance metrics between two points on the terrain plane.

Every metric takes the coordinates of two points and returns a float.
Besides the classic metrics this module provides two falloff shapes,
blob and square bump, which are 1 at the source point and decay towards 0.
"""

import math
from enum import IntEnum


class DistanceType(IntEnum):
    """Available distance metrics."""

    EUCLIDEAN_SQUARED = 0
    EUCLIDEAN = 1
    DIAGONAL = 2
    MANHATTAN = 3
    HYPERBOLOID = 4
    BLOB = 5
    SQUARE_BUMP = 6


def euclidean_squared(x1: float, y1: float, x2: float, y2: float) -> float:
    """Squared Euclidean distance."""
    dx = x2 - x1
    dy = y2 - y1
    return dx * dx + dy * dy


def euclidean(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance."""
    return math.sqrt(euclidean_squared(x1, y1, x2, y2))


def diagonal(x1: float, y1: float, x2: float, y2: float) -> float:
    """Diagonal (Chebyshev) distance."""
    return max(abs(x2 - x1), abs(y2 - y1))


def manhattan(x1: float, y1: float, x2: float, y2: float) -> float:
    """Manhattan distance."""
    return abs(x2 - x1) + abs(y2 - y1)


def hyperboloid(x1: float, y1: float, x2: float, y2: float) -> float:
    """
    Softened Euclidean distance.

    Behaves like the Euclidean distance far from the source but has a
    bounded slope near zero.
    """
    return math.sqrt(euclidean_squared(x1, y1, x2, y2) + 1) - 1


def blob(x1: float, y1: float, x2: float, y2: float) -> float:
    """Gaussian bump: 1 at the source point, decaying towards 0."""
    return math.exp(-euclidean_squared(x1, y1, x2, y2))


def square_bump(x1: float, y1: float, x2: float, y2: float) -> float:
    """
    Compactly supported bump.

    Returns ``1 - d²`` inside the unit circle and exactly 0 outside it.
    """
    d = euclidean(x1, y1, x2, y2)
    return 1 - d * d if d < 1 else 0.0


_METRICS = {
    DistanceType.EUCLIDEAN_SQUARED: euclidean_squared,
    DistanceType.EUCLIDEAN: euclidean,
    DistanceType.DIAGONAL: diagonal,
    DistanceType.MANHATTAN: manhattan,
    DistanceType.HYPERBOLOID: hyperboloid,
    DistanceType.BLOB: blob,
    DistanceType.SQUARE_BUMP: square_bump,
}


def calculate_distance(
    x1: float, y1: float, x2: float, y2: float, distance_type: DistanceType
) -> float:
    """
    Calculate the distance between two points with the selected metric.

    Args:
        x1, y1: First point
        x2, y2: Second point
        distance_type: Metric to use

    Returns:
        Distance value under the selected metric

    Raises:
        ValueError: If the metric is unknown
    """
    try:
        metric = _METRICS[DistanceType(distance_type)]
    except (KeyError, ValueError):
        raise ValueError(f"Unknown distance type: {distance_type}") from None
    return metric(x1, y1, x2, y2)
