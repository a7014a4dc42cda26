"""Structural validation of landmark service output.

Landmark services hand back loosely shaped data. Everything is checked
here before it reaches the geometry layer: exactly 468 points with
finite numeric coordinates, exactly one face. Anything else is "no face".
"""

import logging
import math
from numbers import Real
from typing import Any, Optional, Sequence

import numpy as np

from facecapture.types import EXPECTED_KEYPOINTS, KeypointSet

logger = logging.getLogger(__name__)


def _coord(point: Any, name: str) -> Optional[float]:
    if isinstance(point, dict):
        value = point.get(name)
    else:
        value = getattr(point, name, None)
    if value is None or isinstance(value, bool) or not isinstance(value, Real):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def _from_array(arr: np.ndarray) -> Optional[KeypointSet]:
    if arr.ndim != 2 or arr.shape[0] != EXPECTED_KEYPOINTS or arr.shape[1] not in (2, 3):
        logger.debug("rejected keypoint array with shape %s", arr.shape)
        return None
    if not np.issubdtype(arr.dtype, np.number) or not np.all(np.isfinite(arr)):
        logger.debug("rejected keypoint array with non-finite values")
        return None

    has_depth = arr.shape[1] == 3
    points = np.zeros((EXPECTED_KEYPOINTS, 3), dtype=np.float64)
    points[:, :arr.shape[1]] = arr
    return KeypointSet(points, has_depth=has_depth)


def parse_keypoints(payload: Any) -> Optional[KeypointSet]:
    """Validate one face's keypoints.

    Accepts a sequence of ``{"x", "y", "z"?}`` mappings, a sequence of
    objects with ``x``/``y``/``z`` attributes (e.g. MediaPipe
    ``NormalizedLandmark``), or an ``(N, 2|3)`` numeric array.

    Returns:
        KeypointSet, or None when the payload fails any check.
    """
    if payload is None:
        return None
    if isinstance(payload, KeypointSet):
        return payload
    if isinstance(payload, np.ndarray):
        return _from_array(payload)

    try:
        count = len(payload)
    except TypeError:
        logger.debug("rejected keypoints of type %s", type(payload).__name__)
        return None
    if count != EXPECTED_KEYPOINTS:
        logger.debug("rejected %d keypoints (expected %d)", count, EXPECTED_KEYPOINTS)
        return None

    points = np.zeros((EXPECTED_KEYPOINTS, 3), dtype=np.float64)
    depth_count = 0
    for i, point in enumerate(payload):
        x = _coord(point, "x")
        y = _coord(point, "y")
        if x is None or y is None:
            logger.debug("rejected keypoints: point %d has no numeric x/y", i)
            return None
        points[i, 0] = x
        points[i, 1] = y

        has_z = (point.get("z") if isinstance(point, dict) else getattr(point, "z", None)) is not None
        if has_z:
            z = _coord(point, "z")
            if z is None:
                logger.debug("rejected keypoints: point %d has a non-numeric z", i)
                return None
            points[i, 2] = z
            depth_count += 1

    # Depth is used only when every point carries it
    return KeypointSet(points, has_depth=depth_count == EXPECTED_KEYPOINTS)


def parse_detection(faces: Optional[Sequence[Any]]) -> Optional[KeypointSet]:
    """Reduce a landmark service result to the single usable face.

    None, no faces, or more than one face all mean "no usable face".
    """
    if faces is None:
        return None
    if len(faces) != 1:
        if len(faces) > 1:
            logger.debug("rejected frame with %d faces", len(faces))
        return None
    return parse_keypoints(faces[0])


__all__ = ["parse_keypoints", "parse_detection"]
