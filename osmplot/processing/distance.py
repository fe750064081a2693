"""
Coordinate distance strategies.

Every strategy takes ``(lon1, lat1, lon2, lat2)`` as scalars or broadcastable
``numpy`` arrays and returns distances of the same shape. One strategy is
used for a whole highway connection run so that junction, bridge and stitch
decisions are reproducible.
"""

from typing import Callable, Sequence, Union

import numpy as np

from osmplot.processing.errors import InvalidInputError

# Mean Earth radius (IUGG), metres
EARTH_RADIUS_M = 6371008.8

DistanceFunction = Callable[..., np.ndarray]


def haversine_distance(lon1, lat1, lon2, lat2):
    """Great-circle distance in metres."""
    lon1, lat1, lon2, lat2 = (np.radians(np.asarray(v, dtype=float))
                              for v in (lon1, lat1, lon2, lat2))
    dlon = lon2 - lon1
    dlat = lat2 - lat1
    a = np.sin(dlat / 2.0) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2.0) ** 2
    return 2.0 * EARTH_RADIUS_M * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def planar_distance(lon1, lat1, lon2, lat2):
    """Euclidean distance in coordinate units."""
    return np.hypot(np.asarray(lon2, dtype=float) - np.asarray(lon1, dtype=float),
                    np.asarray(lat2, dtype=float) - np.asarray(lat1, dtype=float))


DISTANCE_FUNCTIONS = {
    'haversine': haversine_distance,
    'planar': planar_distance,
}


def get_distance_function(metric: Union[str, DistanceFunction]) -> DistanceFunction:
    """
    Resolve a distance strategy by name, or pass a callable through.

    Args:
        metric: ``'haversine'``, ``'planar'`` or a callable.

    Returns:
        The distance function.
    """
    if callable(metric):
        return metric
    try:
        return DISTANCE_FUNCTIONS[str(metric).lower()]
    except KeyError:
        raise InvalidInputError(
            f"Unknown distance metric '{metric}'. "
            f"Expected one of: {', '.join(sorted(DISTANCE_FUNCTIONS))}"
        ) from None


def pairwise_distances(first: Sequence, second: Sequence,
                       distance: DistanceFunction) -> np.ndarray:
    """
    Distance matrix between two sequences of points.

    Args:
        first: Points (anything with ``lon`` and ``lat``), length M.
        second: Points, length K.
        distance: Distance strategy.

    Returns:
        np.ndarray: M x K matrix.
    """
    a = np.array([(p.lon, p.lat) for p in first], dtype=float).reshape(-1, 2)
    b = np.array([(p.lon, p.lat) for p in second], dtype=float).reshape(-1, 2)
    return np.asarray(distance(a[:, None, 0], a[:, None, 1], b[None, :, 0], b[None, :, 1]),
                      dtype=float).reshape(len(a), len(b))
