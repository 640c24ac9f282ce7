"""Tests for political border assignment."""

import numpy as np
import pytest

from py_worldmap.core.borders import (
    BorderAssignor,
    BorderOptions,
    Capital,
    build_borders,
    dominant_neighbor,
    step_cost,
)
from py_worldmap.core.elevation import build_elevation_field
from py_worldmap.core.mulberry_prng import Mulberry32


GW, GH = 120, 60
WIDTH, HEIGHT = 1200, 600


@pytest.fixture(scope="module")
def terrain():
    """Elliptical continent with synthesised elevation."""
    ys, xs = np.divmod(np.arange(GW * GH), GW)
    land = (((xs - 60) / 44.0) ** 2 + ((ys - 30) / 24.0) ** 2 <= 1.0).astype(np.uint8)
    elevation = build_elevation_field(Mulberry32(77), GW, GH, land)
    return land, elevation.elevation, elevation.coast_distance


def run_borders(terrain, count, seed=1):
    land, elevation, coast = terrain
    return build_borders(GW, GH, land, elevation, coast, Mulberry32(seed), count, WIDTH, HEIGHT)


class TestHelpers:
    """Test cost and tie-breaking helpers."""

    def test_flat_step(self):
        """Test that flat inland steps cost about the base cost."""
        cost = step_cost(0.5, 0.5, 0.5, 0.5, 1.0)
        assert 0.8 <= cost <= 1.2

    def test_steep_step_costs_more(self):
        flat = step_cost(0.4, 0.4, 0.5, 0.5, 1.0)
        steep = step_cost(0.1, 0.6, 0.5, 0.5, 1.0)
        assert steep > flat * 2

    def test_diagonal_base_cost(self):
        assert step_cost(0.4, 0.4, 0.5, 0.5, 2 ** 0.5) > step_cost(0.4, 0.4, 0.5, 0.5, 1.0)

    def test_dominant_neighbor_ties_to_lower_id(self):
        assert dominant_neighbor({3: 2, 1: 2, 5: 1}) == 1
        assert dominant_neighbor({3: 4, 1: 2}) == 3
        assert dominant_neighbor({}) == -1


class TestPartition:
    """Test that land is fully partitioned."""

    def test_every_land_cell_owned(self, terrain):
        land = terrain[0]
        result = run_borders(terrain, 12)
        assert result.owner.shape == (GW * GH,)
        assert np.all(result.owner[land == 1] >= 0)
        assert np.all(result.owner[land == 0] == -1)
        assert np.all(result.owner < 12)

    def test_countries(self, terrain):
        """Test country summaries against the owner field."""
        land = terrain[0]
        result = run_borders(terrain, 12)
        assert len(result.countries) == 12
        assert [c.id for c in result.countries] == list(range(12))
        assert sum(c.area for c in result.countries) == int(land.sum())

        assert all(c.area > 0 for c in result.countries)
        owners = set(np.unique(result.owner[land == 1]).tolist())
        assert owners == set(range(12))

        names = [c.name for c in result.countries]
        assert len(set(names)) == len(names)
        for country in result.countries:
            assert land[country.capital_index] == 1
            assert result.owner[country.capital_index] == country.id
            assert country.capital == (country.capital_index % GW, country.capital_index // GW)

    def test_border_paths(self, terrain):
        result = run_borders(terrain, 12)
        assert result.border_paths
        for path in result.border_paths:
            assert len(path) >= 3
            for x, y in path:
                assert -1e-6 <= x <= WIDTH + 1e-6
                assert -1e-6 <= y <= HEIGHT + 1e-6

    def test_deterministic(self, terrain):
        a = run_borders(terrain, 12, seed=4)
        b = run_borders(terrain, 12, seed=4)
        np.testing.assert_array_equal(a.owner, b.owner)
        assert [c.name for c in a.countries] == [c.name for c in b.countries]
        assert a.border_paths == b.border_paths


class TestCapitals:
    """Test that capitals stay inside their countries."""

    def test_capital_moves_to_best_owned_cell(self):
        """Test that a capital on foreign land moves to its country's best cell."""
        gw, gh = 10, 4
        land = np.ones(gw * gh, dtype=np.uint8)
        flat = np.zeros(gw * gh, dtype=np.float32)
        assignor = BorderAssignor(gw, gh, land, flat, flat, Mulberry32(1), BorderOptions(country_count=2))
        xs = np.arange(gw * gh) % gw
        assignor.owner = np.where(xs < 5, 0, 1).astype(np.int16)
        assignor.capitals = [Capital(7, 1, 17), Capital(8, 2, 28)]

        assignor.reseat_capitals(np.arange(gw * gh, dtype=np.float64))
        assert assignor.capitals[0] == Capital(4, 3, 34)
        assert assignor.capitals[1] == Capital(8, 2, 28)

    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
    def test_many_countries_keep_capitals(self, terrain, seed):
        """Test that repairs never leave a capital on foreign land."""
        result = run_borders(terrain, 60, seed=seed)
        for country in result.countries:
            assert result.owner[country.capital_index] == country.id


class TestEdgeCases:
    """Test degenerate inputs."""

    def test_single_country(self, terrain):
        """Test that one country owns all land and draws no borders."""
        land = terrain[0]
        result = run_borders(terrain, 1)
        assert np.all(result.owner[land == 1] == 0)
        assert result.border_paths == []
        assert len(result.countries) == 1
        assert "Dynasty" in result.countries[0].name

    def test_no_land(self):
        zeros = np.zeros(GW * GH, dtype=np.float32)
        land = np.zeros(GW * GH, dtype=np.uint8)
        result = build_borders(GW, GH, land, zeros, zeros, Mulberry32(1), 10)
        assert np.all(result.owner == -1)
        assert result.countries == []
        assert result.border_paths == []

    def test_more_countries_than_land(self):
        """Test that requests beyond the land supply shrink gracefully."""
        land = np.zeros(GW * GH, dtype=np.uint8)
        land[30 * GW + 10: 30 * GW + 15] = 1
        elevation = land.astype(np.float32) * 0.5
        coast = land.astype(np.float32)
        assignor = BorderAssignor(GW, GH, land, elevation, coast, Mulberry32(2),
                                  BorderOptions(country_count=10))
        result = assignor.generate()
        assert 1 <= len(result.countries) <= 5
        assert np.all(result.owner[land == 1] >= 0)

    def test_country_count_validated(self):
        with pytest.raises(ValueError):
            BorderOptions(country_count=0)
