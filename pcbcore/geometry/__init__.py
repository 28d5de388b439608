from .distance import (
    Point,
    distance,
    point_to_segment_distance,
    segment_to_segment_distance,
    segment_to_segment_distance_exact,
    segments_intersect,
    midpoint,
    rotate_point,
)
