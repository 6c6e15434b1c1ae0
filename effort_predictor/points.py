"""Points of accumulation curves and the windowing applied to them"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class Point:
    """One point of a cumulative curve: x is effort, y is the cumulative count"""
    x: float
    y: float


@dataclass(frozen=True)
class PointSliceSpec:
    """Selects the window of points used for a fit

    Args:
        min_point_count: Slices with fewer remaining points are discarded
        max_point_count: Keep at most this many of the most recent points
        recent_points_to_ignore: Number of most recent points to drop first
    """
    min_point_count: int = 0
    max_point_count: float = math.inf
    recent_points_to_ignore: int = 0


def pairs_to_points(pairs: Sequence[Sequence[float]]) -> List[Point]:
    """Convert [[x1, y1], [x2, y2], ...] pairs into points"""
    return [Point(float(pair[0]), float(pair[1])) for pair in pairs]


def points_to_pairs(points: Sequence[Point]) -> List[List[float]]:
    return [[point.x, point.y] for point in points]


def slice_point_set(data_points: Sequence[Point], spec: PointSliceSpec) -> Optional[List[Point]]:
    """Return the window of data_points selected by spec, or None if too few remain"""
    last_point_index_plus_one = len(data_points) - spec.recent_points_to_ignore
    if last_point_index_plus_one <= 0:
        return None

    max_point_count = spec.max_point_count
    if max_point_count is None or max_point_count == math.inf:
        first_point_index = 0
    else:
        first_point_index = max(0, last_point_index_plus_one - int(max_point_count))

    if last_point_index_plus_one - first_point_index < spec.min_point_count:
        return None
    return list(data_points[first_point_index:last_point_index_plus_one])
