# backend/utils/polygon_geometry.py
"""
Polygon helpers for flat ROI coordinate lists ``[x0, y0, x1, y1, ...]``.
Polygons may arrive closed (first point repeated last) or open; both work.
"""

import logging
from typing import Dict, List, Sequence, Tuple

logger = logging.getLogger(__name__)

MIN_POLYGON_NUMBERS = 6  # 3 个点 | 3 points


def coords_to_points(coords: Sequence[float]) -> List[Tuple[float, float]]:
    """Pair up a flat list; a trailing odd number is dropped."""
    return [(coords[i], coords[i + 1]) for i in range(0, len(coords) - 1, 2)]


def is_drawable(coords: Sequence[float]) -> bool:
    """At least 3 points."""
    return len(coords) >= MIN_POLYGON_NUMBERS


def close_polygon(coords: Sequence[float]) -> List[float]:
    """Copy of ``coords`` with the first point appended."""
    closed = list(coords)
    if len(closed) >= 2:
        closed.extend(closed[:2])
    return closed


def is_point_in_polygon(x: float, y: float, coords: Sequence[float]) -> bool:
    """
    射线法（奇偶规则）判断点是否在多边形内
    Even-odd ray casting. The last point always connects back to the first,
    so explicitly closed polygons only add a zero-length edge.

    Points exactly on an edge may land on either side, consistently.
    """
    points = coords_to_points(coords)
    inside = False
    j = len(points) - 1
    for i in range(len(points)):
        xi, yi = points[i]
        xj, yj = points[j]
        # short-circuit: horizontal edges never reach the division
        if ((yi > y) != (yj > y)) and (x < (xj - xi) * (y - yi) / (yj - yi) + xi):
            inside = not inside
        j = i
    return inside


def find_rois_at(x: float, y: float, rois: Dict[str, Sequence[float]]) -> List[str]:
    """
    Every roi_id whose polygon contains (x, y), in collection order.
    Overlapping polygons all match; there is no topmost pick.
    """
    hits = [roi_id for roi_id, coords in rois.items() if is_point_in_polygon(x, y, coords)]
    logger.debug(f"Hit test ({x}, {y}): {hits}")
    return hits
