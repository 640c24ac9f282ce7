"""End-to-end tests for the world generation pipeline."""

import numpy as np
import pytest

from py_worldmap import WorldOptions, WorldPipeline, generate_world
from py_worldmap.config import settings
from py_worldmap.core.climate import ClimateZone


def has_diagonal_touch(mask, gw, gh):
    grid = mask.reshape(gh, gw).astype(bool)
    right = np.roll(grid, -1, axis=1)
    a, b = grid[:-1], right[:-1]
    c, d = grid[1:], right[1:]
    return bool(np.any((a & d & ~b & ~c) | (b & c & ~a & ~d)))


@pytest.fixture(scope="module")
def default_world():
    return generate_world("day010", 1280, 640)


@pytest.fixture(scope="module")
def full_world():
    return generate_world(
        "day010", 1280, 640, climate_enabled=True, wind_enabled=True, border_enabled=True, country_count=40
    )


class TestWorldOptions:
    """Test option normalisation."""

    def test_clamping(self):
        opts = WorldOptions(width=100, height=5000, contour_count=50, country_count=0)
        assert opts.width == 512
        assert opts.height == 1400
        assert opts.contour_count == 12
        assert opts.country_count == 1

    def test_rounding_and_garbage(self):
        """Test that values are rounded and unparseable input uses defaults."""
        opts = WorldOptions(width=1000.6, height="abc", contour_count=float("nan"))
        assert opts.width == 1001
        assert opts.height == 640
        assert opts.contour_count == 6

    def test_bounds_and_defaults_follow_settings(self, monkeypatch):
        """Test that configured bounds and defaults drive normalisation."""
        monkeypatch.setattr(settings, "min_width", 600)
        monkeypatch.setattr(settings, "max_height", 900)
        monkeypatch.setattr(settings, "default_seed", "harbor")
        monkeypatch.setattr(settings, "default_country_count", 12)
        opts = WorldOptions(width=100, height=5000)
        assert opts.width == 600
        assert opts.height == 900
        assert opts.seed_text == "harbor"
        assert opts.country_count == 12
        assert WorldOptions(seed_text="  ").seed_text == "harbor"

    def test_blank_seed(self):
        assert WorldOptions(seed_text="").seed_text == "day010"
        assert WorldOptions(seed_text="   ").seed_text == "day010"

    def test_layer_dependencies(self):
        assert WorldOptions(contour_enabled=False).needs_elevation is False
        assert WorldOptions(contour_enabled=False, border_enabled=True).needs_elevation is True
        assert WorldOptions(wind_enabled=True).needs_climate is True


class TestDefaultWorld:
    """Test the default seed at the default canvas size."""

    def test_grid(self, default_world):
        assert (default_world.gw, default_world.gh) == (320, 160)
        assert default_world.land_mask.shape == (320 * 160,)

    def test_land_ratios(self, default_world):
        """Test that continents and islands hit their area targets."""
        assert abs(default_world.continent_ratio - 0.24) <= 0.05
        assert 0.24 <= default_world.land_ratio <= 0.36
        assert default_world.land_ratio == pytest.approx(default_world.land_mask.mean())

    def test_mask_has_no_corner_touches(self, default_world):
        assert not has_diagonal_touch(default_world.land_mask, 320, 160)

    def test_coast_loops(self, default_world):
        assert len(default_world.coast_loops) >= 1
        for loop in default_world.coast_loops:
            assert loop.ndim == 2 and loop.shape[1] == 2
            assert len(loop) >= 4
            assert loop[:, 0].min() >= 0 and loop[:, 0].max() <= 1280
            assert loop[:, 1].min() >= 0 and loop[:, 1].max() <= 640

    def test_contours(self, default_world):
        assert len(default_world.contour_sets) >= 1
        levels = [s.level for s in default_world.contour_sets]
        assert levels == sorted(levels)

    def test_disabled_layers(self, default_world):
        """Test that layers left off produce nothing."""
        assert default_world.climate is None
        assert default_world.owner_field is None
        assert default_world.countries == []
        assert default_world.border_paths == []

    def test_reproducible(self, default_world):
        again = generate_world("day010", 1280, 640)
        np.testing.assert_array_equal(default_world.land_mask, again.land_mask)
        assert len(default_world.coast_loops) == len(again.coast_loops)
        for a, b in zip(default_world.coast_loops, again.coast_loops):
            np.testing.assert_array_equal(a, b)

    def test_seed_sensitivity(self, default_world):
        other = generate_world("day011", 1280, 640)
        assert not np.array_equal(default_world.land_mask, other.land_mask)

    def test_summary(self, default_world):
        summary = default_world.summary()
        for key in ("seed", "grid", "canvas", "continent_ratio", "land_ratio",
                    "coast_loops", "contour_levels", "countries", "border_paths"):
            assert key in summary
        assert "zones" not in summary


class TestFullWorld:
    """Test a world with every layer enabled."""

    def test_climate(self, full_world):
        land = full_world.land_mask == 1
        zone = full_world.climate.zone
        assert np.all(zone[~land] == ClimateZone.SEA)
        assert np.all(zone[land] >= ClimateZone.TROPICAL)
        assert full_world.wind_enabled
        assert "zones" in full_world.summary()

    def test_borders(self, full_world):
        land = full_world.land_mask == 1
        owner = full_world.owner_field
        assert np.all(owner[land] >= 0)
        assert np.all(owner[~land] == -1)
        assert len(full_world.countries) == 40
        assert sum(c.area for c in full_world.countries) == int(land.sum())
        assert len({c.name for c in full_world.countries}) == 40
        for country in full_world.countries:
            assert owner[country.capital_index] == country.id

    def test_reproducible(self, full_world):
        again = generate_world(
            "day010", 1280, 640, climate_enabled=True, wind_enabled=True, border_enabled=True, country_count=40
        )
        np.testing.assert_array_equal(full_world.owner_field, again.owner_field)
        np.testing.assert_array_equal(full_world.climate.zone, again.climate.zone)
        np.testing.assert_array_equal(full_world.elevation, again.elevation)
        assert full_world.border_paths == again.border_paths

    @pytest.mark.parametrize("seed", ["day010", "b", "zz"])
    def test_dense_countries_keep_capitals(self, seed):
        """Test that every country is non-empty and holds its own capital."""
        world = generate_world(seed, 1280, 640, contour_enabled=False, border_enabled=True, country_count=200)
        land = world.land_mask == 1
        assert len(world.countries) == 200
        assert len(np.unique(world.owner_field[land])) == 200
        for country in world.countries:
            assert country.area > 0
            assert world.owner_field[country.capital_index] == country.id

    def test_single_country(self):
        world = generate_world("day010", 1280, 640, contour_enabled=False, border_enabled=True, country_count=1)
        land = world.land_mask == 1
        assert np.all(world.owner_field[land] == 0)
        assert world.border_paths == []


class TestPipeline:
    """Test staged generation."""

    def test_lazy_stage_matches_run(self):
        """Test that calling a late stage first runs its prerequisites in order."""
        options = WorldOptions(seed_text="lazy", width=800, height=500)
        lazy = WorldPipeline(options)
        contours = lazy.build_contours()

        full = WorldPipeline(options).run()
        assert [s.level for s in contours] == [s.level for s in full.contour_sets]
        assert [s.loops for s in contours] == [s.loops for s in full.contour_sets]

    def test_tall_canvas(self):
        world = generate_world("tall", 512, 1400, contour_enabled=False)
        assert (world.gw, world.gh) == (320, 220)
        assert world.coast_loops
        assert world.elevation is None
