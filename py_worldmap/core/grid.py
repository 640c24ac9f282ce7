"""Grid sizing, index mapping and wraparound helpers.

The grid is a cylinder: x wraps around, y does not. Cells are stored
row-major, index ``y * gw + x``.
"""

import math
from typing import NamedTuple, Tuple

import numpy as np

GRID_WIDTH = 320
MIN_GRID_HEIGHT = 120
MAX_GRID_HEIGHT = 220


class GridSize(NamedTuple):
    """Logical grid dimensions."""
    gw: int
    gh: int


class NeighborOffset(NamedTuple):
    x: int
    y: int
    cost: float


# Orthogonal neighbours first, diagonals after; several passes only look at
# the first four.
NEIGHBOR_OFFSETS: Tuple[NeighborOffset, ...] = (
    NeighborOffset(1, 0, 1.0),
    NeighborOffset(-1, 0, 1.0),
    NeighborOffset(0, 1, 1.0),
    NeighborOffset(0, -1, 1.0),
    NeighborOffset(1, 1, math.sqrt(2)),
    NeighborOffset(-1, -1, math.sqrt(2)),
    NeighborOffset(1, -1, math.sqrt(2)),
    NeighborOffset(-1, 1, math.sqrt(2)),
)


def clamp(value: float, min_val: float, max_val: float) -> float:
    return max(min_val, min(max_val, value))


def smoothstep(edge0: float, edge1: float, x: float) -> float:
    """Hermite interpolation between two edges (zero-width edges act as width 1)."""
    t = clamp((x - edge0) / ((edge1 - edge0) or 1), 0.0, 1.0)
    return t * t * (3 - 2 * t)


def smoothstep_array(edge0: float, edge1: float, x: np.ndarray) -> np.ndarray:
    """Vectorised smoothstep."""
    t = np.clip((x - edge0) / ((edge1 - edge0) or 1), 0.0, 1.0)
    return t * t * (3 - 2 * t)


def js_round(value: float) -> int:
    """Round half up, as grid sampling expects (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def index_of(x: int, y: int, gw: int) -> int:
    return y * gw + x


def wrap_x(x, gw: int):
    """Wrap an x coordinate (int or float) into [0, gw)."""
    return x % gw


def wrap_delta_x(dx: float, gw: int) -> float:
    """Shortest signed x offset on the cylinder."""
    if dx > gw * 0.5:
        return dx - gw
    if dx < -gw * 0.5:
        return dx + gw
    return dx


def create_grid_size(width: float, height: float) -> GridSize:
    """
    Derive the logical grid from the canvas aspect ratio.

    Width is fixed at 320 cells; height follows the aspect and is clamped
    to [120, 220].
    """
    gw = GRID_WIDTH
    gh = int(clamp(js_round((gw * height) / width), MIN_GRID_HEIGHT, MAX_GRID_HEIGHT))
    return GridSize(gw, gh)


def check_grid(field: np.ndarray, gw: int, gh: int) -> None:
    """Assert that a flat field matches the grid."""
    assert field.shape == (gw * gh,), f"field shape {field.shape} does not match {gw}x{gh} grid"


def shift_x(field2d: np.ndarray, dx: int) -> np.ndarray:
    """Return a view-like copy where out[y, x] == field2d[y, wrap(x + dx)]."""
    return np.roll(field2d, -dx, axis=1)


def shift_y(field2d: np.ndarray, dy: int, fill) -> np.ndarray:
    """Return out[y, x] == field2d[y + dy, x], with ``fill`` outside the grid."""
    out = np.full_like(field2d, fill)
    gh = field2d.shape[0]
    if dy > 0:
        out[: gh - dy] = field2d[dy:]
    elif dy < 0:
        out[-dy:] = field2d[: gh + dy]
    else:
        out[:] = field2d
    return out


def neighbor_view(field2d: np.ndarray, dx: int, dy: int, fill) -> np.ndarray:
    """Neighbour at (x + dx, y + dy) for every cell, x wrapping, y filled."""
    return shift_y(shift_x(field2d, dx), dy, fill)
