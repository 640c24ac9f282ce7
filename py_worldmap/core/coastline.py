"""
Landmass synthesis and rasterization.

This module implements:
- Fractal continent outlines (jittered ellipses roughened by midpoint displacement)
- Island blobs grouped into archipelagos, chains and solitary islands
- Wraparound rasterization of both onto the land grid
- A bounded scale search that hits a target land ratio
- World-space coastline detailing
"""

import math
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
import structlog

from .geometry import Point, jitter_subdivide
from .mulberry_prng import Mulberry32

logger = structlog.get_logger()


@dataclass
class ContinentParams:
    """Continent outline parameters."""

    # Continent count: min_count .. min_count + count_range - 1
    min_count: int = 3
    count_range: int = 3
    # Size tiers: first is the major continent, second medium, rest minor
    major_min: float = 1.5
    major_range: float = 0.5
    medium_min: float = 1.1
    medium_range: float = 0.35
    minor_min: float = 0.65
    minor_range: float = 0.7
    # Placement and base radii (fractions of the grid)
    center_jitter_x: float = 0.08
    center_y_min: float = 0.28
    center_y_range: float = 0.44
    base_rx_min: float = 0.06
    base_rx_range: float = 0.06
    base_ry_min: float = 0.12
    base_ry_range: float = 0.12
    base_point_min: int = 12
    base_point_range: int = 6
    macro_jitter: float = 0.32
    roughen_amp_scale: float = 0.76
    roughen_iterations: int = 4
    roughen_decay: float = 0.62


@dataclass
class ScaleSearchParams:
    """Binary search bounds for the target-ratio scale search."""

    low: float = 0.35
    high: float = 2.8
    steps: int = 10
    shape_sample_step: int = 2
    blob_sample_step: int = 2


@dataclass
class CoastlineParams:
    """All coastline tunables."""

    continents: ContinentParams = field(default_factory=ContinentParams)
    scale_search: ScaleSearchParams = field(default_factory=ScaleSearchParams)
    continent_target_ratio: float = 0.24
    total_target_ratio: float = 0.3
    island_ratio_min: float = 0.02
    island_ratio_max: float = 0.12
    bridge_passes: int = 2
    roughness: float = 0.45
    min_loop_area_fraction: float = 0.0001


@dataclass
class Shape:
    """Continent seed outline in grid space."""

    cx: float
    cy: float
    points: np.ndarray  # (n, 2) float64


@dataclass(frozen=True)
class Blob:
    """Elliptical island in grid space."""

    cx: float
    cy: float
    rx: float
    ry: float


@dataclass
class RasterResult:
    mask: np.ndarray
    ratio: float


def _create_initial_loop(prng: Mulberry32, cx: float, cy: float, rx: float, ry: float,
                         count: int, macro_jitter: float) -> List[Point]:
    points = []
    for i in range(count):
        t = (math.pi * 2 * i) / count
        macro = 1 + prng.signed() * macro_jitter
        points.append((cx + math.cos(t) * rx * macro, cy + math.sin(t) * ry * macro))
    return points


def _roughen_loop(points: List[Point], prng: Mulberry32, amplitude: float,
                  iterations: int, decay: float) -> List[Point]:
    """Midpoint displacement along edge normals with decaying amplitude."""
    working = points
    amp = amplitude

    for _ in range(iterations):
        nxt = []
        n = len(working)
        for i in range(n):
            ax, ay = working[i]
            bx, by = working[(i + 1) % n]
            nxt.append((ax, ay))

            mx = (ax + bx) * 0.5
            my = (ay + by) * 0.5
            dx = bx - ax
            dy = by - ay
            length = math.hypot(dx, dy) or 1
            nx = -dy / length
            ny = dx / length
            offset = prng.signed() * amp
            nxt.append((mx + nx * offset, my + ny * offset))
        working = nxt
        amp *= decay

    return working


def build_continent_shapes(prng: Mulberry32, gw: int, gh: int,
                           params: Optional[ContinentParams] = None) -> List[Shape]:
    """
    Build fractal continent outlines.

    Args:
        prng: Run PRNG
        gw: Grid width
        gh: Grid height
        params: Continent parameters

    Returns:
        List of shapes, spread left to right across the grid
    """
    p = params or ContinentParams()
    continent_count = p.min_count + prng.randint(p.count_range)

    size_factors = []
    for i in range(continent_count):
        if i == 0:
            size_factors.append(prng.uniform(p.major_min, p.major_range))
        elif i == 1:
            size_factors.append(prng.uniform(p.medium_min, p.medium_range))
        else:
            size_factors.append(prng.uniform(p.minor_min, p.minor_range))

    # Fisher-Yates so the major continent can land anywhere
    for i in range(len(size_factors) - 1, 0, -1):
        j = prng.randint(i + 1)
        size_factors[i], size_factors[j] = size_factors[j], size_factors[i]

    shapes = []
    for i in range(continent_count):
        factor = size_factors[i]
        cx = ((i + 1) / (continent_count + 1)) * gw + prng.signed() * gw * p.center_jitter_x
        cy = gh * prng.uniform(p.center_y_min, p.center_y_range)
        base_rx = gw * prng.uniform(p.base_rx_min, p.base_rx_range) * factor
        base_ry = gh * prng.uniform(p.base_ry_min, p.base_ry_range) * factor
        point_count = p.base_point_min + prng.randint(p.base_point_range)
        base = _create_initial_loop(prng, cx, cy, base_rx, base_ry, point_count, p.macro_jitter)
        fractal = _roughen_loop(
            base,
            prng,
            min(base_rx, base_ry) * p.roughen_amp_scale,
            p.roughen_iterations,
            p.roughen_decay,
        )
        shapes.append(Shape(cx=cx, cy=cy, points=np.array(fractal, dtype=np.float64)))

    logger.info("Built continent shapes", count=continent_count)
    return shapes


def scale_shape_points(shape: Shape, scale: float) -> np.ndarray:
    """Scale a shape's outline about its own centre."""
    center = np.array([shape.cx, shape.cy])
    return center + (shape.points - center) * scale


def point_in_polygon(px: float, py: float, polygon: Sequence[Point]) -> bool:
    """Even-odd ray casting test."""
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > py) != (yj > py):
            if px < ((xj - xi) * (py - yi)) / ((yj - yi) or 0.0000001) + xi:
                inside = not inside
        j = i
    return inside


def point_in_wrapped_polygon(px: float, py: float, polygon: Sequence[Point], gw: int) -> bool:
    """Point-in-polygon on the cylinder: tests x, x - gw and x + gw."""
    return (
        point_in_polygon(px, py, polygon)
        or point_in_polygon(px - gw, py, polygon)
        or point_in_polygon(px + gw, py, polygon)
    )


def _points_in_polygon(px: np.ndarray, py: np.ndarray, polygon: np.ndarray) -> np.ndarray:
    """Vectorised even-odd test of many points against one polygon."""
    inside = np.zeros(px.shape, dtype=bool)
    xs = polygon[:, 0]
    ys = polygon[:, 1]
    n = len(polygon)
    for i in range(n):
        j = i - 1 if i > 0 else n - 1
        xi, yi, xj, yj = xs[i], ys[i], xs[j], ys[j]
        crosses = (yi > py) != (yj > py)
        denom = (yj - yi) or 0.0000001
        inside ^= crosses & (px < ((xj - xi) * (py - yi)) / denom + xi)
    return inside


def _paint_polygon_mask(mask: np.ndarray, gw: int, gh: int, polygon: np.ndarray,
                        bounds: Tuple[float, float, float, float],
                        exclusion_mask: Optional[np.ndarray], sample_step: int) -> int:
    min_x, max_x, min_y, max_y = bounds
    x_min = max(0, math.floor(min_x))
    x_max = min(gw - 1, math.ceil(max_x))
    y_min = max(0, math.floor(min_y))
    y_max = min(gh - 1, math.ceil(max_y))
    if x_min > x_max or y_min > y_max:
        return 0

    xs = np.arange(x_min, x_max + 1, sample_step)
    ys = np.arange(y_min, y_max + 1, sample_step)
    grid_x, grid_y = np.meshgrid(xs, ys)
    idx = (grid_y * gw + grid_x).ravel()

    candidates = mask[idx] == 0
    if exclusion_mask is not None:
        candidates &= exclusion_mask[idx] != 1
    if not candidates.any():
        return 0

    idx = idx[candidates]
    px = grid_x.ravel()[candidates] + 0.5
    py = grid_y.ravel()[candidates] + 0.5
    inside = _points_in_polygon(px, py, polygon)
    mask[idx[inside]] = 1
    return int(inside.sum())


def _paint_shapes(mask: np.ndarray, shapes: Sequence[Shape], scale: float, gw: int, gh: int,
                  exclusion_mask: Optional[np.ndarray], sample_step: int) -> int:
    filled = 0
    for shape in shapes:
        base = scale_shape_points(shape, scale)
        min_x, min_y = base.min(axis=0)
        max_x, max_y = base.max(axis=0)

        for dx in (0, -gw, gw):
            if max_x + dx < 0 or min_x + dx >= gw:
                continue
            if max_y < 0 or min_y >= gh:
                continue
            shifted = base if dx == 0 else base + np.array([dx, 0.0])
            filled += _paint_polygon_mask(
                mask, gw, gh, shifted, (min_x + dx, max_x + dx, min_y, max_y),
                exclusion_mask, sample_step,
            )
    return filled


def rasterize_shapes(shapes: Sequence[Shape], scale: float, gw: int, gh: int,
                     exclusion_mask: Optional[np.ndarray] = None) -> RasterResult:
    """Full-resolution rasterization of scaled shapes with x wraparound."""
    mask = np.zeros(gw * gh, dtype=np.uint8)
    filled = _paint_shapes(mask, shapes, scale, gw, gh, exclusion_mask, 1)
    return RasterResult(mask=mask, ratio=filled / (gw * gh))


def rasterize_shapes_ratio(shapes: Sequence[Shape], scale: float, gw: int, gh: int,
                           exclusion_mask: Optional[np.ndarray], sample_step: int) -> float:
    """Approximate fill ratio sampling every ``sample_step`` cells."""
    mask = np.zeros(gw * gh, dtype=np.uint8)
    samples = math.ceil(gh / sample_step) * math.ceil(gw / sample_step)
    filled = _paint_shapes(mask, shapes, scale, gw, gh, exclusion_mask, sample_step)
    return filled / samples if samples > 0 else 0.0


def _paint_ellipse_blob(mask: np.ndarray, gw: int, gh: int, blob: Blob, scale: float,
                        exclusion_mask: Optional[np.ndarray]) -> int:
    rx = max(0.001, blob.rx * scale)
    ry = max(0.001, blob.ry * scale)
    y_min = max(0, math.floor(blob.cy - ry - 1))
    y_max = min(gh - 1, math.ceil(blob.cy + ry + 1))
    painted = 0

    for y in range(y_min, y_max + 1):
        dy_norm = (y + 0.5 - blob.cy) / ry
        remain = 1 - dy_norm * dy_norm
        if remain <= 0:
            continue
        span = rx * math.sqrt(remain)
        x_min = math.floor(blob.cx - span - 1)
        x_max = math.ceil(blob.cx + span + 1)

        idx = np.unique(y * gw + np.mod(np.arange(x_min, x_max + 1), gw))
        fresh = mask[idx] == 0
        if exclusion_mask is not None:
            fresh &= exclusion_mask[idx] != 1
        mask[idx[fresh]] = 1
        painted += int(fresh.sum())

    return painted


def rasterize_blobs(blobs: Sequence[Blob], scale: float, gw: int, gh: int,
                    exclusion_mask: Optional[np.ndarray] = None) -> RasterResult:
    """Full-resolution rasterization of scaled island blobs."""
    mask = np.zeros(gw * gh, dtype=np.uint8)
    filled = 0
    for blob in blobs:
        filled += _paint_ellipse_blob(mask, gw, gh, blob, scale, exclusion_mask)
    return RasterResult(mask=mask, ratio=filled / (gw * gh))


def downsample_mask(mask: Optional[np.ndarray], gw: int, gh: int, sample_step: int) -> Optional[np.ndarray]:
    """Nearest-sample downscale of a mask (None passes through)."""
    if mask is None:
        return None
    sw = math.ceil(gw / sample_step)
    sh = math.ceil(gh / sample_step)
    ys = np.minimum(gh - 1, np.arange(sh) * sample_step)
    xs = np.minimum(gw - 1, np.arange(sw) * sample_step)
    return mask.reshape(gh, gw)[np.ix_(ys, xs)].reshape(-1).copy()


def rasterize_blobs_ratio(blobs: Sequence[Blob], scale: float, gw: int, gh: int,
                          exclusion_mask: Optional[np.ndarray], sample_step: int) -> float:
    """Approximate blob fill ratio on a coarse grid."""
    sw = math.ceil(gw / sample_step)
    sh = math.ceil(gh / sample_step)
    coarse_mask = np.zeros(sw * sh, dtype=np.uint8)
    coarse_exclusion = downsample_mask(exclusion_mask, gw, gh, sample_step)
    filled = 0
    for blob in blobs:
        coarse = Blob(
            cx=blob.cx / sample_step,
            cy=blob.cy / sample_step,
            rx=blob.rx / sample_step,
            ry=blob.ry / sample_step,
        )
        filled += _paint_ellipse_blob(coarse_mask, sw, sh, coarse, scale, coarse_exclusion)
    return filled / (sw * sh) if sw * sh > 0 else 0.0


def find_mask_for_target_ratio(
    target_ratio: float,
    evaluate_ratio: Callable[[float], float],
    rasterize: Callable[[float], RasterResult],
    params: Optional[ScaleSearchParams] = None,
) -> RasterResult:
    """
    Binary-search a uniform scale so the fill ratio approaches the target.

    Trials use the cheap ``evaluate_ratio``; the scale with the closest trial
    ratio is rasterized once at full resolution.
    """
    p = params or ScaleSearchParams()
    low = p.low
    high = p.high
    best_scale = (low + high) * 0.5
    best_diff = math.inf

    for step in range(p.steps):
        mid = (low + high) * 0.5
        ratio = evaluate_ratio(mid)
        diff = abs(target_ratio - ratio)
        logger.debug("Scale search step", step=step, scale=mid, ratio=ratio)

        if diff < best_diff:
            best_diff = diff
            best_scale = mid

        if ratio < target_ratio:
            low = mid
        else:
            high = mid

    return rasterize(best_scale)


def find_shape_scale_for_target(shapes: Sequence[Shape], gw: int, gh: int, target_ratio: float,
                                exclusion_mask: Optional[np.ndarray] = None,
                                params: Optional[ScaleSearchParams] = None) -> RasterResult:
    """Continent mask whose land ratio is closest to ``target_ratio``."""
    p = params or ScaleSearchParams()
    return find_mask_for_target_ratio(
        target_ratio,
        lambda s: rasterize_shapes_ratio(shapes, s, gw, gh, exclusion_mask, p.shape_sample_step),
        lambda s: rasterize_shapes(shapes, s, gw, gh, exclusion_mask),
        p,
    )


def find_blob_scale_for_target(blobs: Sequence[Blob], gw: int, gh: int, target_ratio: float,
                               exclusion_mask: Optional[np.ndarray] = None,
                               params: Optional[ScaleSearchParams] = None) -> RasterResult:
    """Island mask whose land ratio is closest to ``target_ratio``."""
    p = params or ScaleSearchParams()
    return find_mask_for_target_ratio(
        target_ratio,
        lambda s: rasterize_blobs_ratio(blobs, s, gw, gh, exclusion_mask, p.blob_sample_step),
        lambda s: rasterize_blobs(blobs, s, gw, gh, exclusion_mask),
        p,
    )


def random_sea_cell(prng: Mulberry32, gw: int, gh: int, mask: np.ndarray, attempts: int) -> Tuple[int, int]:
    """Random sea cell: sampled attempts, then a scan from a random start."""
    for _ in range(attempts):
        x = prng.randint(gw)
        y = prng.randint(gh)
        if mask[y * gw + x] == 0:
            return x, y

    total = gw * gh
    start = prng.randint(total)
    sea = np.flatnonzero(mask == 0)
    if len(sea):
        after = sea[sea >= start]
        pos = int(after[0]) if len(after) else int(sea[0])
        return pos % gw, pos // gw

    return prng.randint(gw), prng.randint(gh)


def build_island_blobs(prng: Mulberry32, gw: int, gh: int, sea_mask: np.ndarray) -> List[Blob]:
    """
    Scatter island blobs on the sea.

    Builds 3-5 archipelagos (clustered ellipses plus 2-4 island chains each)
    and 2-6 solitary islands, all centred on cells that are sea in
    ``sea_mask``.
    """
    blobs: List[Blob] = []
    archipelago_count = 3 + prng.randint(3)

    for _ in range(archipelago_count):
        cx0, cy0 = random_sea_cell(prng, gw, gh, sea_mask, 80)
        spread = gw * prng.uniform(0.028, 0.045)
        island_count = 14 + prng.randint(14)

        for _ in range(island_count):
            angle = prng.random() * math.pi * 2
            radial = (prng.random() ** 3.1) * spread
            cx = cx0 + math.cos(angle) * radial
            cy = cy0 + math.sin(angle) * radial
            blobs.append(Blob(
                cx=cx,
                cy=cy,
                rx=gw * prng.uniform(0.006, 0.016),
                ry=gh * prng.uniform(0.008, 0.02),
            ))

        chain_count = 2 + prng.randint(3)
        for _ in range(chain_count):
            heading = prng.random() * math.pi * 2
            chain_step = gw * prng.uniform(0.012, 0.02)
            chain_len = 4 + prng.randint(5)
            anchor_x = cx0 + math.cos(heading) * spread * prng.uniform(0.45, 0.55)
            anchor_y = cy0 + math.sin(heading) * spread * prng.uniform(0.45, 0.55)

            for k in range(chain_len):
                jitter_x = prng.signed() * chain_step * 0.45
                jitter_y = prng.signed() * chain_step * 0.45
                blobs.append(Blob(
                    cx=anchor_x + math.cos(heading) * chain_step * k + jitter_x,
                    cy=anchor_y + math.sin(heading) * chain_step * k + jitter_y,
                    rx=gw * prng.uniform(0.004, 0.011),
                    ry=gh * prng.uniform(0.005, 0.012),
                ))

    solitary_count = 2 + prng.randint(5)
    for _ in range(solitary_count):
        x, y = random_sea_cell(prng, gw, gh, sea_mask, 50)
        blobs.append(Blob(
            cx=x,
            cy=y,
            rx=gw * prng.uniform(0.005, 0.012),
            ry=gh * prng.uniform(0.006, 0.014),
        ))

    logger.info("Built island blobs", archipelagos=archipelago_count, blobs=len(blobs))
    return blobs


def fractalize_loop(points: Sequence[Point], prng: Mulberry32, width: float, height: float,
                    roughness: float) -> List[Point]:
    """World-space coastline detailing: 3 rounds of normal-offset midpoints."""
    amplitude = (min(width, height) / 270) * (0.62 + roughness * 1.15)
    return jitter_subdivide(points, prng, width, height, amplitude,
                            iterations=3, decay=0.58, min_length=1.8)
