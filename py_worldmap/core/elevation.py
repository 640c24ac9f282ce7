"""
Elevation field synthesis.

Height is a weighted blend of:
- distance from the coast (the base signal)
- ridges along seeded tectonic boundaries, or along the borders of
  nearest-seed macro regions
- low-frequency sinusoidal noise, damped near the coast
- optional inland basins and peaks

The result is normalised to [0, 1] over land cells.
"""

import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np
import structlog

from .grid import check_grid, clamp, neighbor_view, smoothstep_array, wrap_x
from .mulberry_prng import Mulberry32

logger = structlog.get_logger()


class ElevationStrategy(str, Enum):
    """How ridge structure is laid out."""

    TECTONIC = "tectonic"
    REGIONS = "regions"


@dataclass
class ElevationParams:
    """Tunable ranges for elevation synthesis."""

    coastal_convergent_chance: float = 0.74
    extra_coastal_chance: float = 0.4
    basin_chance: float = 0.62
    peak_chance: float = 0.35
    noise_strength: float = 0.2
    coastal_smoothness: float = 0.2
    max_basin_drop: float = 0.33


@dataclass
class TectonicBoundary:
    """Ridge-forming polyline, used only while synthesising elevation."""

    points: List[Tuple[float, float]]
    width: float
    strength: float
    coastal: bool


@dataclass
class Bump:
    """Gaussian inland perturbation; sign -1 digs a basin, +1 raises a peak."""

    x: float
    y: float
    rx: float
    ry: float
    amp: float
    phase: float
    sign: int = -1


@dataclass
class ElevationResult:
    """Normalised elevation and coast distance, both float32 over the grid."""

    elevation: np.ndarray
    coast_distance: np.ndarray
    boundaries: List[TectonicBoundary] = field(default_factory=list)


def compute_coast_distance(land_mask: np.ndarray, gw: int, gh: int) -> np.ndarray:
    """
    Normalised distance from the nearest sea cell.

    Multi-source BFS from every sea cell over the 8-neighbourhood with x
    wrapping. Land values are divided by the largest land distance; sea
    cells are 0.
    """
    check_grid(land_mask, gw, gh)
    n = gw * gh
    land = land_mask.tolist()
    distance = [-1] * n
    queue = deque()

    for idx in range(n):
        if land[idx] == 0:
            distance[idx] = 0
            queue.append(idx)

    while queue:
        idx = queue.popleft()
        x = idx % gw
        y = idx // gw
        next_dist = distance[idx] + 1
        for oy in (-1, 0, 1):
            ny = y + oy
            if ny < 0 or ny >= gh:
                continue
            row = ny * gw
            for ox in (-1, 0, 1):
                if ox == 0 and oy == 0:
                    continue
                n_idx = row + (x + ox) % gw
                if distance[n_idx] != -1:
                    continue
                distance[n_idx] = next_dist
                queue.append(n_idx)

    dist = np.array(distance, dtype=np.float64)
    # An all-land grid has no sources; treat it as flat.
    dist[dist < 0] = 0
    is_land = land_mask != 0
    max_land = float(dist[is_land].max()) if is_land.any() else 0.0
    if max_land > 0:
        dist[is_land] /= max_land
    return dist.astype(np.float32)


def random_land_cell(prng: Mulberry32, gw: int, gh: int, land_mask: np.ndarray, attempts: int) -> Tuple[int, int]:
    """Random land cell: sampled attempts, then a scan from a random start."""
    for _ in range(attempts):
        x = prng.randint(gw)
        y = prng.randint(gh)
        if land_mask[y * gw + x] == 1:
            return x, y

    start = prng.randint(gw * gh)
    land = np.flatnonzero(land_mask == 1)
    if len(land):
        after = land[land >= start]
        pos = int(after[0]) if len(after) else int(land[0])
        return pos % gw, pos // gw

    return gw // 2, gh // 2


def random_inland_cell(prng: Mulberry32, gw: int, gh: int, land_mask: np.ndarray,
                       coast_distance: np.ndarray, min_coast_distance: float,
                       attempts: int) -> Tuple[int, int]:
    for _ in range(attempts):
        x = prng.randint(gw)
        y = prng.randint(gh)
        idx = y * gw + x
        if land_mask[idx] == 1 and coast_distance[idx] >= min_coast_distance:
            return x, y
    return random_land_cell(prng, gw, gh, land_mask, 100)


def random_coastal_band_cell(prng: Mulberry32, gw: int, gh: int, land_mask: np.ndarray,
                             coast_distance: np.ndarray, min_band: float, max_band: float,
                             attempts: int) -> Tuple[int, int]:
    for _ in range(attempts):
        x = prng.randint(gw)
        y = prng.randint(gh)
        idx = y * gw + x
        d = coast_distance[idx]
        if land_mask[idx] == 1 and min_band <= d <= max_band:
            return x, y
    return random_inland_cell(prng, gw, gh, land_mask, coast_distance, 0.08, 120)


def build_boundary_path(prng: Mulberry32, gw: int, gh: int, start_x: float, start_y: float,
                        heading: float, steps: int, step_len: float,
                        turn_scale: float) -> List[Tuple[float, float]]:
    """Meandering random walk; x wraps, y stays off the first and last rows."""
    points = [(float(start_x), float(start_y))]
    x = float(start_x)
    y = float(start_y)
    direction = heading

    for _ in range(steps):
        direction += prng.signed() * turn_scale
        local_step = step_len * prng.uniform(0.78, 0.46)
        x = wrap_x(x + math.cos(direction) * local_step, gw)
        y = clamp(y + math.sin(direction) * local_step, 1, gh - 2)
        points.append((x, y))

    return points


def build_tectonic_boundaries(prng: Mulberry32, gw: int, gh: int, land_mask: np.ndarray,
                              coast_distance: np.ndarray,
                              params: Optional[ElevationParams] = None) -> List[TectonicBoundary]:
    """
    Seed 2-4 convergent boundaries.

    With probability ``coastal_convergent_chance`` the first boundary hugs the
    coast and later ones follow it with probability ``extra_coastal_chance``.
    Coastal boundaries are weaker than inland ones.
    """
    p = params or ElevationParams()
    boundaries = []
    count = 2 + prng.randint(3)
    force_coastal = prng.random() < p.coastal_convergent_chance
    coastal_placed = False

    for i in range(count):
        should_coastal = force_coastal and (
            not coastal_placed or (i > 0 and prng.random() < p.extra_coastal_chance)
        )
        if should_coastal:
            start = random_coastal_band_cell(prng, gw, gh, land_mask, coast_distance, 0.03, 0.22, 160)
        else:
            start = random_inland_cell(prng, gw, gh, land_mask, coast_distance, 0.14, 160)

        heading = prng.random() * math.pi * 2
        steps = 4 + prng.randint(4)
        step_len = gw * prng.uniform(0.07, 0.05)
        points = build_boundary_path(prng, gw, gh, start[0], start[1], heading, steps, step_len, 0.35)

        width = gw * prng.uniform(0.035, 0.055)
        if should_coastal:
            strength = prng.uniform(0.72, 0.42)
        else:
            strength = prng.uniform(0.88, 0.56)
        boundaries.append(TectonicBoundary(points=points, width=width, strength=strength, coastal=should_coastal))

        if should_coastal:
            coastal_placed = True

    logger.debug("Built tectonic boundaries", count=count, coastal=sum(b.coastal for b in boundaries))
    return boundaries


def _wrapped_segment_distance_sq(px: np.ndarray, py: np.ndarray, a: Tuple[float, float],
                                 b: Tuple[float, float], gw: int) -> np.ndarray:
    """Squared distance from many points to segment a-b on the cylinder."""
    dx = b[0] - a[0]
    if dx > gw * 0.5:
        dx -= gw
    elif dx < -gw * 0.5:
        dx += gw
    ax, ay = a
    bx = ax + dx
    by = b[1]
    vx = bx - ax
    vy = by - ay
    c2 = vx * vx + vy * vy

    best = np.full(px.shape, np.inf)
    for shift in (-1, 0, 1):
        wx = px + shift * gw - ax
        wy = py - ay
        c1 = vx * wx + vy * wy
        t = np.clip(c1 / (c2 or 1), 0.0, 1.0) if c2 > 0 else np.zeros_like(c1)
        ex = wx - vx * t
        ey = wy - vy * t
        best = np.minimum(best, ex * ex + ey * ey)
    return best


def boundary_influence(px: np.ndarray, py: np.ndarray, boundary: TectonicBoundary, gw: int) -> np.ndarray:
    """Gaussian falloff from the nearest point on the boundary, times strength."""
    min_dist_sq = np.full(px.shape, np.inf)
    for a, b in zip(boundary.points[:-1], boundary.points[1:]):
        min_dist_sq = np.minimum(min_dist_sq, _wrapped_segment_distance_sq(px, py, a, b, gw))
    width = boundary.width
    return np.exp(-min_dist_sq / (2 * width * width)) * boundary.strength


def _region_boundary_distance(gw: int, gh: int, land_mask: np.ndarray, region: np.ndarray) -> np.ndarray:
    """BFS distance over land (8-neighbourhood, x wraps) from inter-region border cells."""
    land2d = land_mask.reshape(gh, gw) == 1
    region2d = region.reshape(gh, gw)
    border = np.zeros((gh, gw), dtype=bool)
    for ox, oy in ((1, 0), (-1, 0), (0, 1), (0, -1)):
        n_land = neighbor_view(land2d, ox, oy, False)
        n_region = neighbor_view(region2d, ox, oy, -1)
        border |= land2d & n_land & (n_region != region2d)

    distance = np.full(gw * gh, -1, dtype=np.int64)
    sources = np.flatnonzero(border.reshape(-1))
    if len(sources) == 0:
        return np.full(gw * gh, np.inf)

    dist = distance.tolist()
    land = land_mask.tolist()
    queue = deque(sources.tolist())
    for idx in queue:
        dist[idx] = 0
    while queue:
        idx = queue.popleft()
        x = idx % gw
        y = idx // gw
        for oy in (-1, 0, 1):
            ny = y + oy
            if ny < 0 or ny >= gh:
                continue
            for ox in (-1, 0, 1):
                if ox == 0 and oy == 0:
                    continue
                n_idx = ny * gw + (x + ox) % gw
                if land[n_idx] != 1 or dist[n_idx] != -1:
                    continue
                dist[n_idx] = dist[idx] + 1
                queue.append(n_idx)

    out = np.array(dist, dtype=np.float64)
    out[out < 0] = np.inf
    return out


def build_region_ridges(prng: Mulberry32, gw: int, gh: int, land_mask: np.ndarray,
                        coast_distance: np.ndarray) -> np.ndarray:
    """
    Ridge term from macro-region borders.

    Land is split among 2-4 inland seeds by nearest wrapped distance; the
    ridge is a Gaussian of the BFS distance to where two regions meet.
    """
    count = 2 + prng.randint(3)
    seeds = [random_inland_cell(prng, gw, gh, land_mask, coast_distance, 0.14, 160) for _ in range(count)]
    width = gw * prng.uniform(0.035, 0.055)
    strength = prng.uniform(0.88, 0.56)

    ys, xs = np.divmod(np.arange(gw * gh), gw)
    best = np.full(gw * gh, np.inf)
    region = np.zeros(gw * gh, dtype=np.int16)
    for rid, (sx, sy) in enumerate(seeds):
        dx = np.abs(xs - sx)
        dx = np.minimum(dx, gw - dx)
        d2 = dx * dx + (ys - sy) ** 2
        closer = d2 < best
        best[closer] = d2[closer]
        region[closer] = rid

    distance = _region_boundary_distance(gw, gh, land_mask, region)
    logger.debug("Built macro regions", count=count)
    return np.exp(-(distance * distance) / (2 * width * width)) * strength


def _build_bumps(prng: Mulberry32, gw: int, gh: int, land_mask: np.ndarray, coast_distance: np.ndarray,
                 count: int, scale: float, sign: int) -> List[Bump]:
    bumps = []
    for _ in range(count):
        cx, cy = random_inland_cell(prng, gw, gh, land_mask, coast_distance, 0.28, 180)
        bumps.append(Bump(
            x=cx + prng.signed() * gw * 0.02,
            y=cy + prng.signed() * gh * 0.02,
            rx=gw * scale * prng.uniform(0.7, 0.9),
            ry=gh * (scale * 0.62) * prng.uniform(0.7, 0.9),
            amp=prng.uniform(0.5, 0.7),
            phase=prng.random() * math.pi * 2,
            sign=sign,
        ))
    return bumps


def _bump_term(bumps: List[Bump], xs: np.ndarray, ys: np.ndarray, nx: np.ndarray, ny: np.ndarray, gw: int) -> np.ndarray:
    term = np.zeros(xs.shape)
    for bump in bumps:
        dx = xs - bump.x
        dx = np.where(dx > gw * 0.5, dx - gw, np.where(dx < -gw * 0.5, dx + gw, dx))
        dy = ys - bump.y
        ex = (dx * dx) / ((bump.rx * bump.rx) or 1)
        ey = (dy * dy) / ((bump.ry * bump.ry) or 1)
        shape = np.exp(-(ex + ey) * 0.5)
        waviness = 0.72 + 0.28 * np.sin((nx * 8.4 + ny * 7.1) + bump.phase)
        term += shape * waviness * bump.amp
    return term


def build_elevation_field(
    prng: Mulberry32,
    gw: int,
    gh: int,
    land_mask: np.ndarray,
    strategy: ElevationStrategy = ElevationStrategy.TECTONIC,
    params: Optional[ElevationParams] = None,
) -> ElevationResult:
    """
    Synthesise the elevation field for a land mask.

    Args:
        prng: Run PRNG
        gw: Grid width
        gh: Grid height
        land_mask: Final land mask
        strategy: Ridge layout strategy
        params: Tunables

    Returns:
        ElevationResult with land elevation in [0, 1] and coast distance
    """
    p = params or ElevationParams()
    check_grid(land_mask, gw, gh)
    logger.info("Building elevation field", strategy=strategy.value)

    coast_distance = compute_coast_distance(land_mask, gw, gh)
    is_land = land_mask == 1
    if not is_land.any():
        logger.warning("No land cells; elevation is flat")
        return ElevationResult(np.zeros(gw * gh, dtype=np.float32), coast_distance)

    boundaries: List[TectonicBoundary] = []
    region_ridge = None
    if strategy == ElevationStrategy.TECTONIC:
        boundaries = build_tectonic_boundaries(prng, gw, gh, land_mask, coast_distance, p)
    else:
        region_ridge = build_region_ridges(prng, gw, gh, land_mask, coast_distance)

    basin_enabled = prng.random() < p.basin_chance
    basin_scale = prng.uniform(0.13, 0.15)
    basin_strength = prng.uniform(0.16, 0.18) if basin_enabled else 0.0
    basins = []
    if basin_enabled:
        basins = _build_bumps(prng, gw, gh, land_mask, coast_distance, 1 + prng.randint(3), basin_scale, -1)

    peaks = []
    if prng.random() < p.peak_chance:
        peaks = _build_bumps(prng, gw, gh, land_mask, coast_distance, 1 + prng.randint(2), basin_scale * 0.6, 1)

    coast_base_weight = prng.uniform(0.3, 0.14)
    ridge_weight = prng.uniform(0.58, 0.22)
    ridge_blend = prng.uniform(0.8, 0.25)

    f1x = prng.uniform(2.1, 1.3)
    f1y = prng.uniform(1.4, 1.3)
    f2x = prng.uniform(4.2, 2.2)
    f2y = prng.uniform(3.4, 2.0)
    p1 = prng.random() * math.pi * 2
    p2 = prng.random() * math.pi * 2

    cells = np.flatnonzero(is_land)
    ys, xs = np.divmod(cells, gw)
    xs = xs.astype(np.float64)
    ys = ys.astype(np.float64)
    nx = xs / gw
    ny = ys / gh
    base = coast_distance[cells].astype(np.float64)
    coastal_factor = smoothstep_array(0.02, p.coastal_smoothness, base)

    detail = (
        np.sin((nx * f1x + ny * f1y) * math.pi * 2 + p1) * 0.6
        + np.cos((nx * f2x - ny * f2y) * math.pi * 2 + p2) * 0.3
        + np.sin((nx + ny) * math.pi * 6.8 + p1 * 0.73) * 0.1
    )

    inland_ridge_factor = 0.72 + 0.28 * smoothstep_array(0.12, 0.7, base)
    ridge = np.zeros(len(cells))
    for boundary in boundaries:
        influence = boundary_influence(xs, ys, boundary, gw)
        if boundary.coastal:
            ridge += influence * (0.86 + 0.14 * coastal_factor)
        else:
            ridge += influence * inland_ridge_factor
    if region_ridge is not None:
        ridge += region_ridge[cells] * inland_ridge_factor

    inland_factor = smoothstep_array(0.18, 0.55, base)
    basin_drop = np.minimum(
        basin_strength * _bump_term(basins, xs, ys, nx, ny, gw) * inland_factor,
        p.max_basin_drop * inland_factor,
    )
    peak_lift = 0.18 * _bump_term(peaks, xs, ys, nx, ny, gw) * inland_factor

    raw = (
        coast_base_weight * base
        + p.noise_strength * detail * coastal_factor
        + ridge_weight * ridge * ridge_blend
        - basin_drop
        + peak_lift
    )

    low = raw.min()
    high = raw.max()
    field_values = np.zeros(gw * gh, dtype=np.float64)
    if high > low:
        field_values[cells] = (raw - low) / (high - low)

    logger.info(
        "Built elevation field",
        land_cells=len(cells),
        boundaries=len(boundaries),
        basins=len(basins),
        peaks=len(peaks),
    )
    return ElevationResult(
        elevation=field_values.astype(np.float32),
        coast_distance=coast_distance,
        boundaries=boundaries,
    )
