"""Elevation contour loops traced from thresholded land masks."""

from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import structlog

from .geometry import (
    Point,
    chaikin_smooth,
    grid_to_world,
    jitter_subdivide,
    polygon_area,
    remove_collinear,
    simplify_rdp,
)
from .mask import extract_boundary_loops
from .mulberry_prng import Mulberry32

logger = structlog.get_logger()


@dataclass
class ContourParams:
    min_level: float = 0.12
    base_level: float = 0.09
    level_exponent: float = 1.35
    min_area_fraction: float = 0.000028
    coastal_offset: float = 0.038
    smooth_iterations: int = 1
    fractal_strength: float = 0.42


@dataclass
class ContourSet:
    """All loops at one elevation level, in canvas coordinates."""

    level: float
    loops: List[List[Point]]


def contour_level_at(index: int, contour_count: int, params: Optional[ContourParams] = None) -> float:
    p = params or ContourParams()
    t = index / (contour_count + 1)
    return p.base_level + (1 - p.base_level) * t ** p.level_exponent


def build_threshold_mask(land_mask: np.ndarray, elevation: np.ndarray, coast_distance: np.ndarray,
                         level: float, coastal_offset: float) -> np.ndarray:
    """Land cells away from the coast whose elevation reaches ``level``."""
    return ((land_mask == 1) & (coast_distance >= coastal_offset) & (elevation >= level)).astype(np.uint8)


def process_contour_loop(raw_loop, prng: Mulberry32, gw: int, gh: int, width: float, height: float,
                         level: float, params: ContourParams) -> Optional[List[Point]]:
    """Clean, simplify, smooth and roughen one traced loop; None if too small."""
    world = grid_to_world(remove_collinear(raw_loop), width, height, gw, gh)
    if polygon_area(world) < width * height * params.min_area_fraction:
        return None

    short_side = min(width, height)
    simplified = simplify_rdp(world, max(0.8, short_side / 820))
    smoothed = chaikin_smooth(simplified, params.smooth_iterations)
    detailed = jitter_subdivide(
        smoothed,
        prng,
        width,
        height,
        amplitude=(short_side / 760) * (0.5 + level * 0.62) * params.fractal_strength,
        iterations=3 if level > 0.55 else 2,
        decay=0.6,
        min_length=3.5,
    )
    return simplify_rdp(detailed, max(0.45, short_side / 1500))


def build_contour_loops(
    land_mask: np.ndarray,
    elevation: np.ndarray,
    coast_distance: np.ndarray,
    prng: Mulberry32,
    gw: int,
    gh: int,
    width: float,
    height: float,
    contour_count: int,
    params: Optional[ContourParams] = None,
) -> List[ContourSet]:
    """
    Trace nested contour loops for ``contour_count`` evenly spread levels.

    Levels at or below ``min_level`` are skipped and levels without any
    surviving loop are left out of the result.
    """
    p = params or ContourParams()
    contour_sets = []

    for i in range(1, contour_count + 1):
        level = contour_level_at(i, contour_count, p)
        if level <= p.min_level:
            continue

        level_mask = build_threshold_mask(land_mask, elevation, coast_distance, level, p.coastal_offset)
        loops = []
        for raw_loop in extract_boundary_loops(level_mask, gw, gh):
            processed = process_contour_loop(raw_loop, prng, gw, gh, width, height, level, p)
            if processed:
                loops.append(processed)

        if loops:
            contour_sets.append(ContourSet(level=level, loops=loops))

    logger.info(
        "Built contour loops",
        levels=len(contour_sets),
        loops=sum(len(s.loops) for s in contour_sets),
    )
    return contour_sets
