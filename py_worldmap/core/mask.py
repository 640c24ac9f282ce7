"""
Land mask topology repair and boundary tracing.

Masks are flat ``uint8`` arrays of length ``gw * gh`` (1 = land).
"""

from typing import Dict, List, Tuple

import numpy as np
import structlog

from .grid import check_grid, neighbor_view

logger = structlog.get_logger()

# Loop traversal guard.
MAX_LOOP_STEPS = 200000

# Directed unit edges per exposed side (N, E, S, W), clockwise around land:
# start offset and end offset relative to the cell's top-left corner.
_EDGE_START_X = np.array([0, 1, 1, 0])
_EDGE_START_Y = np.array([0, 0, 1, 1])
_EDGE_END_X = np.array([1, 1, 0, 0])
_EDGE_END_Y = np.array([0, 1, 1, 0])

GridLoop = List[Tuple[int, int]]


def combine_masks(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Boolean OR of two masks."""
    return ((a != 0) | (b != 0)).astype(np.uint8)


def resolve_diagonal_connections(mask: np.ndarray, gw: int, gh: int) -> np.ndarray:
    """
    Remove land cells that touch only at a corner.

    Every 2x2 block (x wrapping) is visited in row-major order over the mask
    being repaired, so earlier fixes are seen by later blocks. A NW+SE pair
    fills NE; a NE+SW pair fills NW. Sweeps repeat until one makes no fix.
    """
    check_grid(mask, gw, gh)
    out = mask.astype(np.uint8).tolist()
    fixed = 0
    sweeps = 0

    while True:
        sweep_fixed = _resolve_sweep(out, gw, gh)
        fixed += sweep_fixed
        sweeps += 1
        if sweep_fixed == 0:
            break

    logger.debug("Resolved diagonal connections", fixed=fixed, sweeps=sweeps)
    return np.array(out, dtype=np.uint8)


def _resolve_sweep(out: List[int], gw: int, gh: int) -> int:
    fixed = 0
    for y in range(gh - 1):
        row = y * gw
        below = row + gw
        for x in range(gw):
            x1 = x + 1 if x + 1 < gw else 0
            a_idx = row + x
            b_idx = row + x1
            c_idx = below + x
            d_idx = below + x1

            a = out[a_idx]
            b = out[b_idx]
            c = out[c_idx]
            d = out[d_idx]

            if a == 1 and d == 1 and b == 0 and c == 0:
                out[b_idx] = 1
                fixed += 1
                continue
            if b == 1 and c == 1 and a == 0 and d == 0:
                out[a_idx] = 1
                fixed += 1
    return fixed


def bridge_coastlines(mask: np.ndarray, gw: int, gh: int, passes: int) -> np.ndarray:
    """
    Close narrow straits.

    Each pass turns a sea cell into land when at least 6 of its 8 neighbours
    are land. Only rows 1..gh-2 are considered; x wraps.
    """
    check_grid(mask, gw, gh)
    current = mask.astype(np.uint8).reshape(gh, gw)

    for _ in range(passes):
        neighbors = np.zeros((gh, gw), dtype=np.int32)
        for oy in (-1, 0, 1):
            for ox in (-1, 0, 1):
                if ox == 0 and oy == 0:
                    continue
                neighbors += neighbor_view(current, ox, oy, 0)

        flip = (current == 0) & (neighbors >= 6)
        flip[0, :] = False
        flip[gh - 1, :] = False
        nxt = current.copy()
        nxt[flip] = 1
        current = nxt

    return current.reshape(-1)


def _segment_key(x: int, y: int, gw: int) -> int:
    return y * (gw + 1) + x


def _exposed_edges(mask: np.ndarray, gw: int, gh: int):
    """Directed boundary segments in row-major cell order, N/E/S/W per cell."""
    land = mask.reshape(gh, gw) != 0

    north = np.zeros_like(land)
    north[1:] = land[:-1]
    east = np.zeros_like(land)
    east[:, :-1] = land[:, 1:]
    south = np.zeros_like(land)
    south[:-1] = land[1:]
    west = np.zeros_like(land)
    west[:, 1:] = land[:, :-1]

    exposed = np.stack([~north, ~east, ~south, ~west], axis=-1) & land[..., None]
    ys, xs, sides = np.nonzero(exposed)

    return (
        (xs + _EDGE_START_X[sides]).tolist(),
        (ys + _EDGE_START_Y[sides]).tolist(),
        (xs + _EDGE_END_X[sides]).tolist(),
        (ys + _EDGE_END_Y[sides]).tolist(),
    )


def extract_boundary_loops(mask: np.ndarray, gw: int, gh: int) -> List[GridLoop]:
    """
    Trace closed land boundaries as loops of grid-corner points.

    Every exposed cell edge becomes a directed unit segment; segments are
    stitched by matching end points to start points. Loops that fail to
    close and loops with fewer than 4 points are discarded. The x seam is
    treated as a map edge here.

    Args:
        mask: Land mask
        gw: Grid width
        gh: Grid height

    Returns:
        List of loops, each a list of integer (x, y) corners
    """
    check_grid(mask, gw, gh)
    sx, sy, ex, ey = _exposed_edges(mask, gw, gh)
    count = len(sx)

    starts: Dict[int, List[int]] = {}
    for i in range(count):
        starts.setdefault(_segment_key(sx[i], sy[i], gw), []).append(i)

    used = [False] * count
    loops: List[GridLoop] = []
    dropped = 0

    for i in range(count):
        if used[i]:
            continue

        used[i] = True
        start_x = sx[i]
        start_y = sy[i]
        loop = [(start_x, start_y)]
        cur_x = ex[i]
        cur_y = ey[i]
        guard = 0
        closed = True

        while not (cur_x == start_x and cur_y == start_y):
            if guard >= MAX_LOOP_STEPS:
                closed = False
                break
            loop.append((cur_x, cur_y))
            next_index = -1
            for candidate in starts.get(_segment_key(cur_x, cur_y, gw), ()):
                if not used[candidate]:
                    next_index = candidate
                    break

            if next_index == -1:
                closed = False
                break

            used[next_index] = True
            cur_x = ex[next_index]
            cur_y = ey[next_index]
            guard += 1

        if closed and len(loop) >= 4:
            loops.append(loop)
        else:
            dropped += 1

    if dropped:
        logger.debug("Discarded boundary fragments", dropped=dropped)
    return loops
