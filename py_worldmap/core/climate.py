"""
Climate classification from latitude, elevation and coast distance.

This module implements:
- Inverse Mercator latitude per row
- Sea-level temperature bands and altitude lapse
- Banded precipitation with coast moisture
- Prevailing winds, monsoon winds and rain shadows
- Subtropical, interior, rain-shadow and cold-coast deserts
- Zone classification (tropical, arid, temperate, cold, polar)

Everything is computed on whole-grid NumPy arrays. Climate draws no random
numbers.
"""

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Tuple

import numpy as np
import structlog

from .grid import check_grid, shift_x

logger = structlog.get_logger()


class ClimateZone(IntEnum):
    SEA = 0
    TROPICAL = 1
    ARID = 2
    TEMPERATE = 3
    COLD = 4
    POLAR = 5


CLIMATE_COLORS: Dict[ClimateZone, str] = {
    ClimateZone.TROPICAL: "#49a86e",
    ClimateZone.ARID: "#d8b46f",
    ClimateZone.TEMPERATE: "#88b965",
    ClimateZone.COLD: "#72a9d3",
    ClimateZone.POLAR: "#e6eef4",
}

CLIMATE_LABELS: Dict[ClimateZone, str] = {
    ClimateZone.TROPICAL: "Tropical",
    ClimateZone.ARID: "Arid",
    ClimateZone.TEMPERATE: "Temperate",
    ClimateZone.COLD: "Cold",
    ClimateZone.POLAR: "Polar",
}


@dataclass
class ClimateOptions:
    """Tuned climate constants."""

    # Temperature
    equator_temperature: float = 27.0  # °C at sea level on the equator
    latitude_cooling: float = 0.42  # °C lost per degree of latitude
    lapse_rate: float = 5.8  # °C per km
    elevation_scale_m: float = 3200.0  # metres at elevation 1.0

    # Precipitation (mm/year)
    base_precipitation: float = 760.0
    equatorial_wet: float = 1500.0
    mid_latitude_wet: float = 520.0
    subtropical_dry: float = 640.0
    polar_dry: float = 480.0
    coast_moisture: float = 720.0
    min_precipitation: float = 40.0
    max_precipitation: float = 3500.0

    # Sea exposure sampling
    exposure_scan: int = 4

    # Rain shadow
    shadow_steps: int = 6
    shadow_step_length: float = 2.4
    shadow_scale: float = 1160.0
    monsoon_shadow_scale: float = 980.0

    # Monsoon
    monsoon_min_lat: float = 5.0
    monsoon_max_lat: float = 35.0
    monsoon_wind_threshold: float = 0.01
    monsoon_shadow_threshold: float = 0.04
    monsoon_max_mix: float = 0.78
    monsoon_wind_y: float = 0.22

    # Deserts: (precipitation penalty, dry threshold bonus)
    subtropical_desert: Tuple[float, float] = (180.0, 45.0)
    interior_desert: Tuple[float, float] = (620.0, 180.0)
    rain_shadow_desert: Tuple[float, float] = (760.0, 220.0)
    cold_coastal_desert: Tuple[float, float] = (650.0, 180.0)
    rain_shadow_desert_full: float = 560.0  # penalty mm at full strength

    # Zones
    arid_max_lat: float = 72.0
    polar_lat: float = 78.0


@dataclass
class ClimateResult:
    """Per-cell climate fields; everything but latitude and wind is 0 on sea."""

    zone: np.ndarray
    latitude: np.ndarray
    temperature: np.ndarray
    precipitation: np.ndarray
    aridity: np.ndarray
    wind_ux: np.ndarray
    wind_uy: np.ndarray

    def zone_counts(self) -> Dict[str, int]:
        counts = np.bincount(self.zone, minlength=len(ClimateZone))
        return {zone.name.lower(): int(counts[zone]) for zone in ClimateZone}


def latitude_of_row(y, gh: int):
    """Latitude in degrees at a row centre (inverse Mercator)."""
    y_norm = (np.asarray(y, dtype=np.float64) + 0.5) / gh
    merc_y = math.pi * (1 - 2 * y_norm)
    return np.degrees(np.arctan(np.sinh(merc_y)))


def gaussian(x, center: float, sigma: float):
    d = x - center
    return np.exp(-(d * d) / (2 * sigma * sigma))


def prevailing_wind(lat) -> Tuple[np.ndarray, np.ndarray]:
    """Trade winds, westerlies and polar easterlies by latitude band."""
    lat = np.asarray(lat, dtype=np.float64)
    abs_lat = np.abs(lat)
    north = lat >= 0
    wx = np.where(abs_lat < 30, -1.0, np.where(abs_lat < 60, 1.0, -0.85))
    wy = np.where(
        abs_lat < 30,
        np.where(north, -0.25, 0.25),
        np.where(abs_lat < 60, np.where(north, 0.2, -0.2), np.where(north, -0.15, 0.15)),
    )
    return wx, wy


def classify_thermal_zone(temperature: np.ndarray, abs_lat: np.ndarray) -> np.ndarray:
    """Thermal zone from the seasonal range implied by latitude."""
    amp = 3 + 15 * np.power(abs_lat / 90, 1.2)
    warm = temperature + amp
    cold = temperature - amp
    return np.select(
        [
            abs_lat >= 78,
            (warm < 10) | ((abs_lat >= 68) & (warm < 12)),
            cold <= -8,
            cold < 18,
        ],
        [ClimateZone.POLAR, ClimateZone.POLAR, ClimateZone.COLD, ClimateZone.TEMPERATE],
        default=ClimateZone.TROPICAL,
    ).astype(np.uint8)


class Climate:
    """Builds the climate fields for one land mask and elevation field."""

    def __init__(
        self,
        gw: int,
        gh: int,
        land_mask: np.ndarray,
        elevation: np.ndarray,
        coast_distance: np.ndarray,
        options: ClimateOptions = None,
    ):
        check_grid(land_mask, gw, gh)
        check_grid(elevation, gw, gh)
        check_grid(coast_distance, gw, gh)
        self.gw = gw
        self.gh = gh
        self.options = options or ClimateOptions()
        self.land = land_mask.reshape(gh, gw) == 1
        self.elevation = elevation.reshape(gh, gw).astype(np.float64)
        self.coast_distance = np.clip(coast_distance.reshape(gh, gw).astype(np.float64), 0, 1)

        rows = np.arange(gh)
        self.latitude = np.repeat(latitude_of_row(rows, gh)[:, None], gw, axis=1)
        self.abs_lat = np.abs(self.latitude)
        self.ys = np.repeat(rows[:, None].astype(np.float64), gw, axis=1)
        self.xs = np.repeat(np.arange(gw)[None, :].astype(np.float64), gh, axis=0)

    def sea_exposure(self, dir_x: int) -> np.ndarray:
        """Share of sea among the cells 1..scan columns away in ``dir_x``, rows y-1..y+1."""
        sea = (~self.land).astype(np.float64)
        total = np.zeros_like(sea)
        samples = 0
        rows = np.arange(self.gh)
        for oy in (-1, 0, 1):
            band = sea[np.clip(rows + oy, 0, self.gh - 1)]
            for dx in range(1, self.options.exposure_scan + 1):
                total += shift_x(band, dir_x * dx)
                samples += 1
        return total / samples

    def shadow_penalty(self, wind_x: np.ndarray, wind_y: np.ndarray, scale: float) -> np.ndarray:
        """Highest upwind barrier above each cell, times ``scale``."""
        opts = self.options
        upwind_max = np.zeros_like(self.elevation)
        for s in range(1, opts.shadow_steps + 1):
            reach = s * opts.shadow_step_length
            sx = np.floor(self.xs - wind_x * reach + 0.5).astype(np.int64) % self.gw
            sy = np.clip(np.floor(self.ys - wind_y * reach + 0.5).astype(np.int64), 0, self.gh - 1)
            upwind_max = np.maximum(upwind_max, self.elevation[sy, sx])
        return np.maximum(0.0, upwind_max - self.elevation) * scale

    def monsoon_signal(self, sea_temp: np.ndarray, west: np.ndarray, east: np.ndarray) -> np.ndarray:
        opts = self.options
        abs_lat = self.abs_lat
        band = gaussian(abs_lat, 18, 10)
        warm_season = np.clip((sea_temp - 16) / 10, 0, 1)
        coastal = np.clip((0.45 - self.coast_distance) / 0.45, 0, 1)
        contrast = np.abs(west - east)
        signal = band * warm_season * coastal * (0.45 + contrast * 0.55)
        in_band = (abs_lat >= opts.monsoon_min_lat) & (abs_lat <= opts.monsoon_max_lat)
        return np.where(in_band, signal, 0.0)

    def cold_coast_signal(self, sea_temp: np.ndarray, west: np.ndarray) -> np.ndarray:
        """Cold current deserts on west-facing subtropical coasts."""
        abs_lat = self.abs_lat
        cd = self.coast_distance
        band = 1 - np.minimum(1, np.abs(abs_lat - 25) / 13)
        cold_sea = np.clip((21 - sea_temp) / 9, 0, 1)
        coastal = np.clip((0.16 - cd) / 0.16, 0, 1)
        signal = band * cold_sea * coastal * west
        active = (abs_lat >= 15) & (abs_lat <= 38) & (cd <= 0.16)
        return np.where(active, signal, 0.0)

    def build(self) -> ClimateResult:
        opts = self.options
        abs_lat = self.abs_lat
        cd = self.coast_distance
        north = self.latitude >= 0

        sea_temp = opts.equator_temperature - opts.latitude_cooling * abs_lat
        base_precip = (
            opts.base_precipitation
            + gaussian(abs_lat, 6, 13) * opts.equatorial_wet
            + gaussian(abs_lat, 50, 13) * opts.mid_latitude_wet
            - gaussian(abs_lat, 27, 9.5) * opts.subtropical_dry
            - np.clip((abs_lat - 55) / 30, 0, 1) * opts.polar_dry
        )
        dry_adjust = np.where(abs_lat < 23.5, 180.0, np.where(abs_lat < 50, 90.0, 0.0))

        base_wx, base_wy = prevailing_wind(self.latitude)
        west = self.sea_exposure(-1)
        east = self.sea_exposure(1)
        monsoon = self.monsoon_signal(sea_temp, west, east)

        onshore_x = np.where(west >= east, 1.0, -1.0)
        monsoon_wy = np.where(north, -opts.monsoon_wind_y, opts.monsoon_wind_y)
        mix = np.where(monsoon > opts.monsoon_wind_threshold,
                       np.clip(monsoon * 0.85, 0, opts.monsoon_max_mix), 0.0)
        wind_ux = base_wx * (1 - mix) + onshore_x * mix
        wind_uy = base_wy * (1 - mix) + monsoon_wy * mix
        # Sea cells keep the prevailing wind.
        wind_ux = np.where(self.land, wind_ux, base_wx)
        wind_uy = np.where(self.land, wind_uy, base_wy)

        elevation_m = self.elevation * opts.elevation_scale_m
        temperature = sea_temp - opts.lapse_rate * (elevation_m / 1000)

        coast_moisture = np.power(1 - cd, 1.2) * opts.coast_moisture
        monsoon_boost = np.where(monsoon > 0, monsoon * (260 + 380 * np.power(1 - cd, 1.1)), 0.0)
        shadow = self.shadow_penalty(base_wx, base_wy, opts.shadow_scale)
        monsoon_shadow = np.where(
            monsoon > opts.monsoon_shadow_threshold,
            self.shadow_penalty(onshore_x, monsoon_wy, opts.monsoon_shadow_scale) * (0.55 + monsoon * 0.85),
            0.0,
        )
        total_shadow = shadow + monsoon_shadow

        subtropical = gaussian(abs_lat, 26.5, 7.5)
        interior = np.power(cd, 1.3)
        shadow_desert = np.clip(total_shadow / opts.rain_shadow_desert_full, 0, 1)
        cold_coast = self.cold_coast_signal(sea_temp, west)

        desert_penalty = (
            subtropical * opts.subtropical_desert[0]
            + interior * opts.interior_desert[0]
            + shadow_desert * opts.rain_shadow_desert[0]
            + cold_coast * opts.cold_coastal_desert[0]
        )
        precipitation = np.clip(
            base_precip + coast_moisture + monsoon_boost - total_shadow - desert_penalty,
            opts.min_precipitation,
            opts.max_precipitation,
        )

        dry_threshold = (
            np.maximum(0, 20 * temperature + dry_adjust)
            + subtropical * opts.subtropical_desert[1]
            + interior * opts.interior_desert[1]
            + shadow_desert * opts.rain_shadow_desert[1]
            + cold_coast * opts.cold_coastal_desert[1]
        )
        aridity = precipitation / np.maximum(1, dry_threshold)

        thermal = classify_thermal_zone(temperature, abs_lat)
        arid = (precipitation < dry_threshold) & (abs_lat < opts.arid_max_lat)
        zone = np.where(arid, np.uint8(ClimateZone.ARID), thermal)
        zone = np.where(self.land, zone, np.uint8(ClimateZone.SEA)).astype(np.uint8)

        def land_only(values: np.ndarray) -> np.ndarray:
            return np.where(self.land, values, 0.0).astype(np.float32).reshape(-1)

        result = ClimateResult(
            zone=zone.reshape(-1),
            latitude=self.latitude.astype(np.float32).reshape(-1),
            temperature=land_only(temperature),
            precipitation=land_only(precipitation),
            aridity=land_only(aridity),
            wind_ux=wind_ux.astype(np.float32).reshape(-1),
            wind_uy=wind_uy.astype(np.float32).reshape(-1),
        )
        logger.info("Built climate field", **result.zone_counts())
        return result


def build_climate_field(
    gw: int,
    gh: int,
    land_mask: np.ndarray,
    elevation: np.ndarray,
    coast_distance: np.ndarray,
    options: ClimateOptions = None,
) -> ClimateResult:
    """Classify every cell into a climate zone and derive its wind vector."""
    return Climate(gw, gh, land_mask, elevation, coast_distance, options).build()
