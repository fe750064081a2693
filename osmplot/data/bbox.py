"""
Bounding box parsing and validation.
"""

import logging

import numpy as np

from osmplot.processing.errors import InvalidInputError

logger = logging.getLogger(__name__)


def get_bbox(latlon) -> np.ndarray:
    """
    Convert a bounding box to a validated 2x2 matrix.

    Args:
        latlon: ``(xmin, ymin, xmax, ymax)`` as numbers, a comma separated
            string, or an existing ``[[xmin, xmax], [ymin, ymax]]`` matrix.

    Returns:
        np.ndarray: ``[[xmin, xmax], [ymin, ymax]]`` (rows are longitude and
            latitude, columns are min and max).

    Raises:
        InvalidInputError: if the box is missing, malformed or out of range.
    """
    if latlon is None:
        raise InvalidInputError("bbox must be supplied")

    if isinstance(latlon, str):
        try:
            latlon = [float(part) for part in latlon.split(',')]
        except ValueError:
            raise InvalidInputError(f"bbox is not numeric: {latlon}") from None

    values = np.asarray(latlon)
    if values.dtype == bool or not np.issubdtype(values.dtype, np.number):
        raise InvalidInputError("bbox is not numeric")

    if values.shape == (2, 2):
        values = np.array([values[0, 0], values[1, 0], values[0, 1], values[1, 1]])
    values = values.astype(float).ravel()

    if len(values) < 4:
        raise InvalidInputError("bbox must have length = 4")
    if len(values) > 4:
        logger.warning("bbox has length > 4; only first 4 elements will be used")
        values = values[:4]

    if not np.all(np.isfinite(values)):
        raise InvalidInputError("bbox values must be finite")

    xmin, ymin, xmax, ymax = values
    if not (-180 <= xmin <= 180 and -180 <= xmax <= 180):
        raise InvalidInputError(f"Longitudes must lie within [-180, 180], got {xmin}, {xmax}")
    if not (-90 <= ymin <= 90 and -90 <= ymax <= 90):
        raise InvalidInputError(f"Latitudes must lie within [-90, 90], got {ymin}, {ymax}")
    if xmin >= xmax or ymin >= ymax:
        raise InvalidInputError(
            f"bbox minima must be smaller than maxima, got {values.tolist()}")

    return np.array([[xmin, xmax], [ymin, ymax]])
