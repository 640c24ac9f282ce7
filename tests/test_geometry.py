"""Tests for loop and polyline geometry."""

import pytest

from py_worldmap.core.geometry import (
    chaikin_smooth,
    grid_to_world,
    jitter_subdivide,
    point_to_segment_distance_sq,
    polygon_area,
    remove_collinear,
    simplify_rdp,
)
from py_worldmap.core.mulberry_prng import Mulberry32


SQUARE_PERIMETER = [
    (0, 0), (1, 0), (2, 0), (3, 0), (4, 0),
    (4, 1), (4, 2), (4, 3), (4, 4),
    (3, 4), (2, 4), (1, 4), (0, 4),
    (0, 3), (0, 2), (0, 1),
]


class TestBasics:
    """Test area, collinearity and coordinate mapping."""

    def test_polygon_area(self):
        """Test shoelace area regardless of orientation."""
        square = [(0, 0), (2, 0), (2, 3), (0, 3)]
        assert polygon_area(square) == pytest.approx(6)
        assert polygon_area(list(reversed(square))) == pytest.approx(6)

    def test_remove_collinear(self):
        """Test that straight-run vertices are dropped."""
        loop = [(0, 0), (1, 0), (2, 0), (2, 2), (0, 2)]
        assert remove_collinear(loop) == [(0, 0), (2, 0), (2, 2), (0, 2)]

    def test_remove_collinear_keeps_short_loops(self):
        triangle = [(0, 0), (1, 0), (0, 1)]
        assert remove_collinear(triangle) == triangle

    def test_grid_to_world(self):
        """Test scaling from grid cells to canvas pixels."""
        assert grid_to_world([(160, 80)], 1280, 640, 320, 160) == [(640.0, 320.0)]

    def test_point_to_segment_distance(self):
        """Test projections onto the segment and its end points."""
        assert point_to_segment_distance_sq((1, 1), (0, 0), (2, 0)) == pytest.approx(1)
        assert point_to_segment_distance_sq((-1, 0), (0, 0), (2, 0)) == pytest.approx(1)
        assert point_to_segment_distance_sq((4, 0), (0, 0), (2, 0)) == pytest.approx(4)


class TestSimplify:
    """Test Ramer-Douglas-Peucker simplification."""

    def test_closed_loop_keeps_corners(self):
        """Test that a traced square reduces to its corners and end points."""
        result = simplify_rdp(SQUARE_PERIMETER, 0.5)
        assert result == [(0, 0), (4, 0), (4, 4), (0, 4), (0, 1)]

    def test_short_closed_loop_unchanged(self):
        loop = SQUARE_PERIMETER[:6]
        assert simplify_rdp(loop, 10.0) == loop

    def test_closed_loop_falls_back_when_too_few_survive(self):
        """Test that a collapsed loop returns the original points."""
        line = [(float(i), 0.0) for i in range(10)]
        assert simplify_rdp(line, 1.0, closed=True) == line

    def test_open_polyline_collapses_to_end_points(self):
        line = [(float(i), 0.0) for i in range(10)]
        assert simplify_rdp(line, 1.0, closed=False) == [(0.0, 0.0), (9.0, 0.0)]


class TestChaikin:
    """Test Chaikin corner cutting."""

    def test_closed_doubles_points(self):
        square = [(0, 0), (4, 0), (4, 4), (0, 4)]
        assert len(chaikin_smooth(square, 1)) == 8

    def test_open_keeps_end_points(self):
        """Test that open polylines keep their first and last points."""
        line = [(0, 0), (1, 0), (2, 1), (3, 1)]
        out = chaikin_smooth(line, 1, closed=False)
        assert out[0] == (0, 0)
        assert out[-1] == (3, 1)
        assert len(out) == 8

    def test_stops_below_four_points(self):
        triangle = [(0, 0), (1, 0), (0, 1)]
        assert chaikin_smooth(triangle, 3) == triangle


class TestJitter:
    """Test fractal midpoint jitter."""

    def test_inserts_midpoints_within_canvas(self):
        """Test that every long edge gains a clamped midpoint."""
        square = [(0.0, 0.0), (100.0, 0.0), (100.0, 100.0), (0.0, 100.0)]
        out = jitter_subdivide(square, Mulberry32(1), 100, 100, amplitude=10,
                               iterations=1, decay=0.5, min_length=1)
        assert len(out) == 8
        for x, y in out:
            assert 0 <= x <= 100
            assert 0 <= y <= 100

    def test_short_edges_are_not_split(self):
        square = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
        prng = Mulberry32(1)
        out = jitter_subdivide(square, prng, 10, 10, amplitude=1,
                               iterations=3, decay=0.5, min_length=5)
        assert out == square
        assert prng.call_count == 0

    def test_deterministic(self):
        square = [(10.0, 10.0), (90.0, 10.0), (90.0, 90.0), (10.0, 90.0)]
        a = jitter_subdivide(square, Mulberry32(5), 100, 100, 6, 3, 0.6, 2)
        b = jitter_subdivide(square, Mulberry32(5), 100, 100, 6, 3, 0.6, 2)
        assert a == b
