import math

from effort_predictor.points import Point, PointSliceSpec, pairs_to_points, points_to_pairs, slice_point_set

POINTS = pairs_to_points([[1, 1], [2, 3], [3, 4], [4, 6], [5, 7]])


class TestPairsToPoints:
    """Test conversion between pairs and points."""

    def test_pairs_to_points(self):
        assert pairs_to_points([[1, 2], [3, 4]]) == [Point(1.0, 2.0), Point(3.0, 4.0)]

    def test_points_to_pairs(self):
        assert points_to_pairs(POINTS[:2]) == [[1.0, 1.0], [2.0, 3.0]]


class TestSlicePointSet:
    """Test windowing of point series."""

    def test_default_spec_keeps_all_points(self):
        assert slice_point_set(POINTS, PointSliceSpec()) == POINTS

    def test_ignores_recent_points(self):
        sliced = slice_point_set(POINTS, PointSliceSpec(recent_points_to_ignore=2))
        assert sliced == POINTS[:3]

    def test_keeps_most_recent_points_up_to_max(self):
        sliced = slice_point_set(POINTS, PointSliceSpec(max_point_count=2, recent_points_to_ignore=1))
        assert sliced == POINTS[2:4]

    def test_max_larger_than_remaining(self):
        sliced = slice_point_set(POINTS, PointSliceSpec(max_point_count=10, recent_points_to_ignore=3))
        assert sliced == POINTS[:2]

    def test_infinite_max_is_unbounded(self):
        assert slice_point_set(POINTS, PointSliceSpec(max_point_count=math.inf)) == POINTS

    def test_nothing_left_after_ignoring(self):
        assert slice_point_set(POINTS, PointSliceSpec(recent_points_to_ignore=5)) is None
        assert slice_point_set(POINTS, PointSliceSpec(recent_points_to_ignore=7)) is None

    def test_below_min_point_count(self):
        spec = PointSliceSpec(min_point_count=3, recent_points_to_ignore=3)
        assert slice_point_set(POINTS, spec) is None

    def test_exactly_min_point_count(self):
        spec = PointSliceSpec(min_point_count=3, recent_points_to_ignore=2)
        assert slice_point_set(POINTS, spec) == POINTS[:3]
