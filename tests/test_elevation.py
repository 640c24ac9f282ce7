"""Tests for coast distance and elevation synthesis."""

import numpy as np
import pytest

from py_worldmap.core.elevation import (
    ElevationStrategy,
    build_elevation_field,
    build_tectonic_boundaries,
    compute_coast_distance,
)
from py_worldmap.core.mulberry_prng import Mulberry32


GW, GH = 96, 48


@pytest.fixture
def ellipse_mask():
    ys, xs = np.divmod(np.arange(GW * GH), GW)
    inside = ((xs - 48) / 34.0) ** 2 + ((ys - 24) / 17.0) ** 2 <= 1.0
    return inside.astype(np.uint8)


class TestCoastDistance:
    """Test the multi-source BFS from the sea."""

    def test_wraps_across_seam(self):
        """Test that distance is measured around the seam."""
        gw, gh = 8, 3
        mask = np.ones(gw * gh, dtype=np.uint8)
        mask[[0, 8, 16]] = 0
        dist = compute_coast_distance(mask, gw, gh).reshape(gh, gw)
        assert dist[1, 0] == 0
        assert dist[1, 1] == pytest.approx(0.25)
        assert dist[1, 7] == pytest.approx(0.25)
        assert dist[1, 4] == pytest.approx(1.0)

    def test_all_land_is_flat(self):
        dist = compute_coast_distance(np.ones(12, dtype=np.uint8), 4, 3)
        np.testing.assert_array_equal(dist, np.zeros(12))

    def test_range(self, ellipse_mask):
        dist = compute_coast_distance(ellipse_mask, GW, GH)
        assert dist.dtype == np.float32
        assert dist.max() == pytest.approx(1.0)
        assert np.all(dist[ellipse_mask == 0] == 0)
        assert np.all(dist[ellipse_mask == 1] > 0)


class TestElevationField:
    """Test elevation synthesis on a single landmass."""

    @pytest.mark.parametrize("strategy", [ElevationStrategy.TECTONIC, ElevationStrategy.REGIONS])
    def test_normalised_over_land(self, ellipse_mask, strategy):
        """Test that land spans [0, 1] and sea stays at 0."""
        result = build_elevation_field(Mulberry32(42), GW, GH, ellipse_mask, strategy)
        elev = result.elevation
        land = ellipse_mask == 1
        assert elev.dtype == np.float32
        assert elev.shape == (GW * GH,)
        assert elev[land].min() == pytest.approx(0.0, abs=1e-6)
        assert elev[land].max() == pytest.approx(1.0, abs=1e-6)
        assert np.all(elev[~land] == 0)

    def test_deterministic(self, ellipse_mask):
        a = build_elevation_field(Mulberry32(5), GW, GH, ellipse_mask)
        b = build_elevation_field(Mulberry32(5), GW, GH, ellipse_mask)
        np.testing.assert_array_equal(a.elevation, b.elevation)

    def test_seed_changes_relief(self, ellipse_mask):
        a = build_elevation_field(Mulberry32(5), GW, GH, ellipse_mask)
        b = build_elevation_field(Mulberry32(6), GW, GH, ellipse_mask)
        assert not np.array_equal(a.elevation, b.elevation)

    def test_no_land(self):
        """Test that an ocean world yields a flat field."""
        mask = np.zeros(GW * GH, dtype=np.uint8)
        result = build_elevation_field(Mulberry32(1), GW, GH, mask)
        assert not result.elevation.any()
        assert not result.coast_distance.any()


class TestTectonicBoundaries:
    """Test boundary seeding."""

    def test_count_and_path_length(self, ellipse_mask):
        dist = compute_coast_distance(ellipse_mask, GW, GH)
        for seed in range(10):
            boundaries = build_tectonic_boundaries(Mulberry32(seed), GW, GH, ellipse_mask, dist)
            assert 2 <= len(boundaries) <= 4
            for boundary in boundaries:
                assert 5 <= len(boundary.points) <= 8
                assert boundary.width > 0
                for x, y in boundary.points:
                    assert 0 <= x < GW
                    assert 1 <= y <= GH - 2
