"""Bounding-box corner distortion.

Each corner of a shape's axis-aligned bounding box gets a displacement
vector. Every point of the shape is normalized into the box (u, v in
[0, 1]) and moved by the bilinear blend of the four corner vectors:

    tl: (1-u)(1-v)   tr: u(1-v)   br: u*v   bl: (1-u)v

A point sitting exactly on a corner therefore moves by that corner's full
vector, and unspecified corners (zero vectors) pull nothing. A zero-width
or zero-height box normalizes that axis to 0.
"""

from collections.abc import Mapping

import numpy as np

from .geometry import PathGeom, RectGeom, RoundRectGeom, Vec2, coerce_point, point_list


CORNER_KEYS = ("tl", "tr", "br", "bl")


def coerce_corners(corners: Mapping) -> dict[str, Vec2]:
    """Validate corner keys and fill missing corners with (0, 0)."""
    unknown = set(corners) - set(CORNER_KEYS)
    if unknown:
        raise ValueError(
            f"Unknown distort corner(s): {sorted(unknown)}. Valid: {list(CORNER_KEYS)}"
        )
    return {
        key: coerce_point(corners[key]) if key in corners else Vec2(0.0, 0.0)
        for key in CORNER_KEYS
    }


def _normalize(values: np.ndarray) -> np.ndarray:
    lo, hi = values.min(), values.max()
    span = hi - lo
    if span == 0:
        return np.zeros_like(values)
    return (values - lo) / span


def distort_points(points, corners: Mapping) -> list[Vec2]:
    """Move each point by the bilinear blend of the corner displacements.

    Args:
        points: Sequence of (x, y) points.
        corners: Mapping with any of tl/tr/br/bl -> (dx, dy).

    Returns:
        New list of Vec2, same length and order as `points`.
    """
    if len(points) == 0:
        return []
    c = coerce_corners(corners)
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    u = _normalize(pts[:, 0])[:, None]
    v = _normalize(pts[:, 1])[:, None]

    disp = (
        (1 - u) * (1 - v) * np.asarray(c["tl"], dtype=np.float64)
        + u * (1 - v) * np.asarray(c["tr"], dtype=np.float64)
        + u * v * np.asarray(c["br"], dtype=np.float64)
        + (1 - u) * v * np.asarray(c["bl"], dtype=np.float64)
    )
    moved = pts + disp
    return [Vec2(float(x), float(y)) for x, y in moved]


def distort_geom(geom, corners: Mapping) -> PathGeom | None:
    """Distort a pointwise geometry into a path.

    Rects and rounded rects lose their structure and come back as a closed
    four-point path; paths keep their closedness. Returns None for kinds
    that have no point list.
    """
    points = point_list(geom)
    if points is None:
        return None
    closed = True if isinstance(geom, (RectGeom, RoundRectGeom)) else geom.closed
    return PathGeom(points=tuple(distort_points(points, corners)), closed=closed)
