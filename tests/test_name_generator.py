"""Tests for the country name generator."""

from py_worldmap.core.mulberry_prng import Mulberry32
from py_worldmap.core.name_generator import (
    BASE_NAMES,
    CountryNameGenerator,
    PolityTier,
    polity_tier,
)


class TestPolityTier:
    """Test size classification."""

    def test_large_by_share_of_max(self):
        assert polity_tier(70, 100, 100) == PolityTier.LARGE

    def test_large_by_average(self):
        assert polity_tier(160, 100, 1000) == PolityTier.LARGE

    def test_small(self):
        assert polity_tier(50, 100, 1000) == PolityTier.SMALL

    def test_medium(self):
        assert polity_tier(100, 100, 1000) == PolityTier.MEDIUM


class TestCountryNameGenerator:
    """Test name assignment."""

    def test_empty(self):
        assert CountryNameGenerator(Mulberry32(1)).generate([]) == []

    def test_unique_with_single_dynasty(self):
        """Test that names never repeat and one country is a dynasty."""
        areas = [(i * 37) % 211 + 1 for i in range(150)]
        names = CountryNameGenerator(Mulberry32(3)).generate(areas)
        assert len(names) == 150
        assert len(set(names)) == 150
        assert sum("Dynasty" in name for name in names) == 1

    def test_duplicates_get_serials(self):
        """Test that wrapped base names are numbered."""
        areas = [10] * (8 * len(BASE_NAMES) + 8)
        names = CountryNameGenerator(Mulberry32(3)).generate(areas)
        assert len(set(names)) == len(names)
        assert any(name.endswith(" 2") for name in names)

    def test_dynasty_is_dominant_country(self):
        generator = CountryNameGenerator(Mulberry32(8))
        assert generator.pick_dynasty_id([100, 5, 5, 5, 5, 5, 5, 5, 5, 5]) == 0

    def test_deterministic(self):
        areas = [30, 10, 50, 20, 5]
        a = CountryNameGenerator(Mulberry32(5)).generate(areas)
        b = CountryNameGenerator(Mulberry32(5)).generate(areas)
        assert a == b
