"""
World generation pipeline.

Stages run in a fixed order against one PRNG per run:

1. Coastline: continents, continent scale, islands, mask repair, loops
2. Elevation: coast distance and ridge synthesis
3. Climate: zones and winds (draws nothing)
4. Contours
5. Borders

The draw order is part of the output: the same seed, size and options
always produce the same world.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config.config import settings
from ..utils.random import create_prng, normalize_seed_text
from .borders import BorderAssignor, BorderOptions, BorderResult, Country
from .climate import ClimateResult, build_climate_field
from .coastline import (
    CoastlineParams,
    build_continent_shapes,
    build_island_blobs,
    find_blob_scale_for_target,
    find_shape_scale_for_target,
    fractalize_loop,
)
from .contours import ContourSet, build_contour_loops
from .elevation import ElevationResult, ElevationStrategy, build_elevation_field
from .geometry import Point, grid_to_world, polygon_area, remove_collinear
from .grid import clamp, create_grid_size
from .mask import bridge_coastlines, combine_masks, extract_boundary_loops, resolve_diagonal_connections

logger = structlog.get_logger()

CONTOUR_COUNT_RANGE = (2, 12)
COUNTRY_COUNT_RANGE = (1, 200)


def width_range() -> Tuple[int, int]:
    return settings.min_width, settings.max_width


def height_range() -> Tuple[int, int]:
    return settings.min_height, settings.max_height


def _clamp_int(value: Any, bounds, default: int) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = float(default)
    if math.isnan(number):
        number = float(default)
    return int(round(clamp(number, bounds[0], bounds[1])))


class WorldOptions(BaseModel):
    """Inputs of one generation run. Out-of-range values are clamped, never rejected."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    seed_text: str = Field(
        default_factory=lambda: settings.default_seed, validate_default=True, description="Seed string"
    )
    width: int = Field(
        default_factory=lambda: settings.default_width, validate_default=True, description="Canvas width in pixels"
    )
    height: int = Field(
        default_factory=lambda: settings.default_height, validate_default=True, description="Canvas height in pixels"
    )
    contour_enabled: bool = Field(default=True, description="Trace elevation contours")
    contour_count: int = Field(default=6, description="Number of contour levels")
    climate_enabled: bool = Field(default=False, description="Build the climate field")
    wind_enabled: bool = Field(default=False, description="Build the wind field")
    border_enabled: bool = Field(default=False, description="Assign political borders")
    country_count: int = Field(
        default_factory=lambda: settings.default_country_count,
        validate_default=True,
        description="Requested number of countries",
    )
    elevation_strategy: ElevationStrategy = Field(
        default=ElevationStrategy.TECTONIC, description="Ridge layout strategy"
    )

    @field_validator("seed_text", mode="before")
    @classmethod
    def _default_seed(cls, value):
        return normalize_seed_text(value if isinstance(value, str) else None)

    @field_validator("width", mode="before")
    @classmethod
    def _clamp_width(cls, value):
        return _clamp_int(value, width_range(), settings.default_width)

    @field_validator("height", mode="before")
    @classmethod
    def _clamp_height(cls, value):
        return _clamp_int(value, height_range(), settings.default_height)

    @field_validator("contour_count", mode="before")
    @classmethod
    def _clamp_contours(cls, value):
        return _clamp_int(value, CONTOUR_COUNT_RANGE, 6)

    @field_validator("country_count", mode="before")
    @classmethod
    def _clamp_countries(cls, value):
        return _clamp_int(value, COUNTRY_COUNT_RANGE, settings.default_country_count)

    @property
    def needs_elevation(self) -> bool:
        return self.contour_enabled or self.climate_enabled or self.wind_enabled or self.border_enabled

    @property
    def needs_climate(self) -> bool:
        return self.climate_enabled or self.wind_enabled


@dataclass
class WorldResult:
    """Everything a renderer needs; optional layers are None or empty when disabled."""

    gw: int
    gh: int
    width: int
    height: int
    seed_text: str
    land_mask: np.ndarray
    continent_ratio: float
    land_ratio: float
    coast_loops: List[np.ndarray] = field(default_factory=list)
    contour_sets: List[ContourSet] = field(default_factory=list)
    elevation: Optional[np.ndarray] = None
    coast_distance: Optional[np.ndarray] = None
    climate: Optional[ClimateResult] = None
    wind_enabled: bool = False
    owner_field: Optional[np.ndarray] = None
    border_paths: List[List[Point]] = field(default_factory=list)
    countries: List[Country] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        summary = {
            "seed": self.seed_text,
            "grid": f"{self.gw}x{self.gh}",
            "canvas": f"{self.width}x{self.height}",
            "continent_ratio": round(self.continent_ratio, 4),
            "land_ratio": round(self.land_ratio, 4),
            "coast_loops": len(self.coast_loops),
            "contour_levels": len(self.contour_sets),
            "countries": len(self.countries),
            "border_paths": len(self.border_paths),
        }
        if self.climate is not None:
            summary["zones"] = self.climate.zone_counts()
        return summary


class WorldPipeline:
    """
    Staged world generation.

    Each ``build_*`` method consumes the outputs of earlier stages and the
    run's PRNG. Calling a stage whose inputs are missing runs the missing
    stages first, so the draw order never changes.
    """

    def __init__(self, options: Optional[WorldOptions] = None, params: Optional[CoastlineParams] = None):
        self.options = options or WorldOptions()
        self.params = params or CoastlineParams()
        self.prng = create_prng(self.options.seed_text)
        self.gw, self.gh = create_grid_size(self.options.width, self.options.height)

        self.land_mask: Optional[np.ndarray] = None
        self.continent_ratio = 0.0
        self.coast_loops: Optional[List[np.ndarray]] = None
        self.elevation: Optional[ElevationResult] = None
        self.climate: Optional[ClimateResult] = None
        self.contour_sets: Optional[List[ContourSet]] = None
        self.borders: Optional[BorderResult] = None

    def _log_stage(self, stage: str, started: float, **context) -> None:
        logger.info("Stage complete", stage=stage, elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
                    **context)

    def build_coastline(self) -> List[np.ndarray]:
        """Build the land mask and the detailed coastline loops in canvas space."""
        started = time.perf_counter()
        p = self.params
        gw, gh = self.gw, self.gh
        width, height = self.options.width, self.options.height

        shapes = build_continent_shapes(self.prng, gw, gh, p.continents)
        continents = find_shape_scale_for_target(shapes, gw, gh, p.continent_target_ratio,
                                                 None, p.scale_search)
        self.continent_ratio = continents.ratio

        blobs = build_island_blobs(self.prng, gw, gh, continents.mask)
        island_target = clamp(p.total_target_ratio - continents.ratio, p.island_ratio_min, p.island_ratio_max)
        islands = find_blob_scale_for_target(blobs, gw, gh, island_target, continents.mask, p.scale_search)

        merged = combine_masks(continents.mask, islands.mask)
        connected = resolve_diagonal_connections(merged, gw, gh)
        bridged = bridge_coastlines(connected, gw, gh, p.bridge_passes)
        # Bridging can reintroduce corner-only touches.
        self.land_mask = resolve_diagonal_connections(bridged, gw, gh)

        min_area = width * height * p.min_loop_area_fraction
        loops = []
        for raw_loop in extract_boundary_loops(self.land_mask, gw, gh):
            world = grid_to_world(remove_collinear(raw_loop), width, height, gw, gh)
            if polygon_area(world) < min_area:
                continue
            detailed = fractalize_loop(world, self.prng, width, height, p.roughness)
            loops.append(np.asarray(detailed, dtype=np.float64))
        self.coast_loops = loops

        self._log_stage(
            "coastline",
            started,
            continent_ratio=round(self.continent_ratio, 4),
            land_ratio=round(self.land_ratio, 4),
            loops=len(loops),
        )
        return loops

    @property
    def land_ratio(self) -> float:
        if self.land_mask is None:
            return 0.0
        return float(self.land_mask.mean())

    def build_elevation(self) -> ElevationResult:
        if self.land_mask is None:
            self.build_coastline()
        started = time.perf_counter()
        self.elevation = build_elevation_field(
            self.prng, self.gw, self.gh, self.land_mask, self.options.elevation_strategy
        )
        self._log_stage("elevation", started)
        return self.elevation

    def build_climate(self) -> ClimateResult:
        if self.elevation is None:
            self.build_elevation()
        started = time.perf_counter()
        self.climate = build_climate_field(
            self.gw, self.gh, self.land_mask, self.elevation.elevation, self.elevation.coast_distance
        )
        self._log_stage("climate", started)
        return self.climate

    def build_contours(self) -> List[ContourSet]:
        if self.elevation is None:
            self.build_elevation()
        started = time.perf_counter()
        self.contour_sets = build_contour_loops(
            self.land_mask,
            self.elevation.elevation,
            self.elevation.coast_distance,
            self.prng,
            self.gw,
            self.gh,
            self.options.width,
            self.options.height,
            self.options.contour_count,
        )
        self._log_stage("contours", started, levels=len(self.contour_sets))
        return self.contour_sets

    def build_borders(self) -> BorderResult:
        if self.elevation is None:
            self.build_elevation()
        started = time.perf_counter()
        assignor = BorderAssignor(
            self.gw,
            self.gh,
            self.land_mask,
            self.elevation.elevation,
            self.elevation.coast_distance,
            self.prng,
            BorderOptions(country_count=self.options.country_count),
            self.options.width,
            self.options.height,
        )
        self.borders = assignor.generate()
        self._log_stage("borders", started, countries=len(self.borders.countries))
        return self.borders

    def run(self) -> WorldResult:
        """Run every enabled stage and bundle the outputs."""
        opts = self.options
        logger.info(
            "Starting world generation",
            seed=opts.seed_text,
            width=opts.width,
            height=opts.height,
            grid=f"{self.gw}x{self.gh}",
        )

        self.build_coastline()
        if opts.needs_elevation:
            self.build_elevation()
        if opts.needs_climate:
            self.build_climate()
        if opts.contour_enabled:
            self.build_contours()
        if opts.border_enabled:
            self.build_borders()

        result = WorldResult(
            gw=self.gw,
            gh=self.gh,
            width=opts.width,
            height=opts.height,
            seed_text=opts.seed_text,
            land_mask=self.land_mask,
            continent_ratio=self.continent_ratio,
            land_ratio=self.land_ratio,
            coast_loops=self.coast_loops,
            contour_sets=self.contour_sets or [],
            elevation=self.elevation.elevation if self.elevation else None,
            coast_distance=self.elevation.coast_distance if self.elevation else None,
            climate=self.climate,
            wind_enabled=opts.wind_enabled,
            owner_field=self.borders.owner if self.borders else None,
            border_paths=self.borders.border_paths if self.borders else [],
            countries=self.borders.countries if self.borders else [],
        )
        logger.info("World generation completed", draws=self.prng.call_count, **result.summary())
        return result


def generate_world(seed_text: Optional[str] = None, width: Optional[int] = None, height: Optional[int] = None,
                   **options) -> WorldResult:
    """
    Generate a complete world.

    Args:
        seed_text: Seed string; blank or None uses the configured seed
        width: Canvas width in pixels; None uses the configured width
        height: Canvas height in pixels; None uses the configured height
        **options: Remaining WorldOptions fields

    Returns:
        WorldResult
    """
    world_options = WorldOptions(seed_text=seed_text, width=width, height=height, **options)
    return WorldPipeline(world_options).run()
