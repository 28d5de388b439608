"""
Pure-Python distance primitives for the design rule checker.

All coordinates in board units (mm).  Points are ``(x, y)`` tuples.
"""

from __future__ import annotations
import math

Point = tuple[float, float]


# ── core primitives ─────────────────────────────────────────────────


def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two points."""
    return math.hypot(a[0] - b[0], a[1] - b[1])


def point_to_segment_distance(p: Point, a: Point, b: Point) -> float:
    """Minimum distance from point *p* to segment a→b.

    The projection parameter is clamped to [0, 1].  A zero-length
    segment degenerates to the point distance |p - a|.
    """
    abx = b[0] - a[0]
    aby = b[1] - a[1]
    len2 = abx * abx + aby * aby
    if len2 == 0:
        return distance(p, a)

    t = ((p[0] - a[0]) * abx + (p[1] - a[1]) * aby) / len2
    t = max(0.0, min(1.0, t))
    return distance(p, (a[0] + t * abx, a[1] + t * aby))


def segment_to_segment_distance(a1: Point, a2: Point, b1: Point, b2: Point) -> float:
    """Minimum of the four endpoint-to-segment distances.

    Exact for segments that do not cross.  Two segments crossing away
    from their endpoints (an "X") report the endpoint distance, not 0;
    use :func:`segment_to_segment_distance_exact` when that matters.
    """
    return min(
        point_to_segment_distance(a1, b1, b2),
        point_to_segment_distance(a2, b1, b2),
        point_to_segment_distance(b1, a1, a2),
        point_to_segment_distance(b2, a1, a2),
    )


# ── segment intersection ───────────────────────────────────────────


def _cross(o: Point, a: Point, b: Point) -> float:
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def _on_segment(p: Point, q: Point, r: Point) -> bool:
    return (min(p[0], r[0]) <= q[0] <= max(p[0], r[0]) and
            min(p[1], r[1]) <= q[1] <= max(p[1], r[1]))


def segments_intersect(a1: Point, a2: Point, b1: Point, b2: Point) -> bool:
    """Check if segments (a1-a2) and (b1-b2) intersect or touch."""
    d1 = _cross(b1, b2, a1)
    d2 = _cross(b1, b2, a2)
    d3 = _cross(a1, a2, b1)
    d4 = _cross(a1, a2, b2)
    if ((d1 > 0 and d2 < 0) or (d1 < 0 and d2 > 0)) and \
       ((d3 > 0 and d4 < 0) or (d3 < 0 and d4 > 0)):
        return True
    if d1 == 0 and _on_segment(b1, a1, b2):
        return True
    if d2 == 0 and _on_segment(b1, a2, b2):
        return True
    if d3 == 0 and _on_segment(a1, b1, a2):
        return True
    if d4 == 0 and _on_segment(a1, b2, a2):
        return True
    return False


def segment_to_segment_distance_exact(a1: Point, a2: Point, b1: Point, b2: Point) -> float:
    """Like :func:`segment_to_segment_distance`, but 0 for crossing segments."""
    if segments_intersect(a1, a2, b1, b2):
        return 0.0
    return segment_to_segment_distance(a1, a2, b1, b2)


def midpoint(a: Point, b: Point) -> Point:
    return ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)


def rotate_point(p: Point, rotation_deg: float) -> Point:
    """Rotate *p* about the origin by *rotation_deg* (counter-clockwise)."""
    rad = math.radians(rotation_deg)
    cos_r = math.cos(rad)
    sin_r = math.sin(rad)
    return (
        p[0] * cos_r - p[1] * sin_r,
        p[0] * sin_r + p[1] * cos_r,
    )
