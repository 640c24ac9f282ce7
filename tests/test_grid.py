"""Tests for grid sizing and wraparound helpers."""

import math

import numpy as np
import pytest

from py_worldmap.core.grid import (
    NEIGHBOR_OFFSETS,
    check_grid,
    clamp,
    create_grid_size,
    index_of,
    js_round,
    neighbor_view,
    shift_x,
    smoothstep,
    wrap_delta_x,
    wrap_x,
)


class TestGridSize:
    """Test logical grid derivation."""

    def test_default_canvas(self):
        """Test the 2:1 default canvas."""
        assert create_grid_size(1280, 640) == (320, 160)

    def test_tall_canvas_clamps_height(self):
        """Test that extreme aspect ratios clamp to the maximum height."""
        size = create_grid_size(512, 1400)
        assert size.gw == 320
        assert size.gh == 220

    def test_wide_canvas_clamps_height(self):
        """Test that very wide canvases clamp to the minimum height."""
        assert create_grid_size(2400, 256).gh == 120


class TestScalarHelpers:
    """Test clamp, smoothstep and rounding."""

    def test_clamp(self):
        assert clamp(5, 0, 3) == 3
        assert clamp(-1, 0, 3) == 0
        assert clamp(2, 0, 3) == 2

    def test_smoothstep(self):
        """Test the Hermite curve at its edges and centre."""
        assert smoothstep(0, 1, -1) == 0
        assert smoothstep(0, 1, 2) == 1
        assert smoothstep(0, 1, 0.5) == pytest.approx(0.5)

    def test_smoothstep_zero_width(self):
        """Test that zero-width edges behave as width 1."""
        assert smoothstep(1, 1, 1.5) == pytest.approx(0.5)

    def test_js_round_half_up(self):
        """Test half-up rounding, including negatives."""
        assert js_round(2.5) == 3
        assert js_round(-2.5) == -2
        assert js_round(-2.6) == -3


class TestWraparound:
    """Test x wraparound."""

    def test_wrap_x(self):
        assert wrap_x(-1, 320) == 319
        assert wrap_x(320, 320) == 0
        assert wrap_x(10.5, 320) == pytest.approx(10.5)
        assert wrap_x(-0.5, 320) == pytest.approx(319.5)

    def test_wrap_delta_x(self):
        """Test shortest signed offsets across the seam."""
        assert wrap_delta_x(300, 320) == -20
        assert wrap_delta_x(-300, 320) == 20
        assert wrap_delta_x(10, 320) == 10

    def test_index_of(self):
        assert index_of(3, 2, 10) == 23

    def test_shift_x_wraps(self):
        """Test that shifting reads the wrapped neighbour."""
        field = np.arange(12).reshape(3, 4)
        shifted = shift_x(field, 1)
        assert shifted[0, 3] == field[0, 0]
        assert shifted[1, 0] == field[1, 1]

    def test_neighbor_view_fills_outside_rows(self):
        """Test that rows beyond the grid use the fill value."""
        field = np.arange(12).reshape(3, 4)
        below = neighbor_view(field, 0, 1, -1)
        assert below[0, 0] == field[1, 0]
        assert np.all(below[2] == -1)
        above_left = neighbor_view(field, -1, -1, -1)
        assert above_left[1, 0] == field[0, 3]
        assert np.all(above_left[0] == -1)


class TestNeighbors:
    """Test the neighbour offset table."""

    def test_orthogonal_first(self):
        """Test that the first four offsets are orthogonal with cost 1."""
        for off in NEIGHBOR_OFFSETS[:4]:
            assert abs(off.x) + abs(off.y) == 1
            assert off.cost == 1.0
        for off in NEIGHBOR_OFFSETS[4:]:
            assert abs(off.x) == 1 and abs(off.y) == 1
            assert off.cost == pytest.approx(math.sqrt(2))

    def test_check_grid_rejects_wrong_shape(self):
        """Test that mismatched fields are treated as defects."""
        check_grid(np.zeros(12), 4, 3)
        with pytest.raises(AssertionError):
            check_grid(np.zeros(11), 4, 3)
