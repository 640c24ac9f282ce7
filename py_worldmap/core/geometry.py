"""
Loop and polyline geometry shared by coastlines, contours and borders.

Points are ``(x, y)`` tuples. Loops are implicitly closed; polylines are
open. All helpers return new lists and never mutate their input.
"""

import math
from typing import List, Sequence, Tuple

from .grid import clamp

Point = Tuple[float, float]


def remove_collinear(points: Sequence[Point]) -> List[Point]:
    """Drop vertices lying on the straight line through their neighbours."""
    if len(points) < 4:
        return list(points)

    out = []
    n = len(points)
    for i in range(n):
        px, py = points[(i - 1) % n]
        cx, cy = points[i]
        nx, ny = points[(i + 1) % n]
        cross = (cx - px) * (ny - cy) - (cy - py) * (nx - cx)
        if abs(cross) > 0.000001:
            out.append(points[i])

    return out if len(out) >= 3 else list(points)


def polygon_area(points: Sequence[Point]) -> float:
    """Absolute shoelace area of a closed loop."""
    total = 0.0
    n = len(points)
    for i in range(n):
        ax, ay = points[i]
        bx, by = points[(i + 1) % n]
        total += ax * by - bx * ay
    return abs(total * 0.5)


def grid_to_world(points: Sequence[Point], width: float, height: float, gw: int, gh: int) -> List[Point]:
    """Map grid-space points to canvas pixels."""
    return [((x / gw) * width, (y / gh) * height) for x, y in points]


def point_to_segment_distance_sq(p: Point, a: Point, b: Point) -> float:
    """Squared distance from a point to a segment."""
    vx = b[0] - a[0]
    vy = b[1] - a[1]
    wx = p[0] - a[0]
    wy = p[1] - a[1]
    c1 = vx * wx + vy * wy
    if c1 <= 0:
        return wx * wx + wy * wy
    c2 = vx * vx + vy * vy
    if c2 <= c1:
        dx = p[0] - b[0]
        dy = p[1] - b[1]
        return dx * dx + dy * dy
    t = c1 / (c2 or 1)
    dx = p[0] - (a[0] + vx * t)
    dy = p[1] - (a[1] + vy * t)
    return dx * dx + dy * dy


def simplify_rdp(points: Sequence[Point], epsilon: float, closed: bool = True) -> List[Point]:
    """
    Ramer-Douglas-Peucker simplification with an explicit stack.

    Closed loops are simplified between their first and last stored vertex;
    the result falls back to the input when too few points survive.

    Args:
        points: Input vertices
        epsilon: Maximum allowed deviation
        closed: Whether points describe a loop (keeps at least 4 vertices)
            or an open polyline (keeps at least 2)

    Returns:
        Simplified vertex list
    """
    short_limit, min_keep = (6, 4) if closed else (4, 2)
    if len(points) <= short_limit:
        return list(points)

    eps_sq = epsilon * epsilon
    keep = [False] * len(points)
    keep[0] = True
    keep[-1] = True

    stack = [(0, len(points) - 1)]
    while stack:
        start, end = stack.pop()
        max_dist_sq = -1.0
        split = -1
        for i in range(start + 1, end):
            dist_sq = point_to_segment_distance_sq(points[i], points[start], points[end])
            if dist_sq > max_dist_sq:
                max_dist_sq = dist_sq
                split = i

        if max_dist_sq > eps_sq and split != -1:
            keep[split] = True
            stack.append((start, split))
            stack.append((split, end))

    out = [p for p, k in zip(points, keep) if k]
    return out if len(out) >= min_keep else list(points)


def chaikin_smooth(points: Sequence[Point], iterations: int, closed: bool = True) -> List[Point]:
    """Chaikin corner cutting; open polylines keep their end points."""
    working = list(points)
    for _ in range(iterations):
        if len(working) < 4:
            break
        n = len(working)
        nxt = [] if closed else [working[0]]
        last = n if closed else n - 1
        for i in range(last):
            ax, ay = working[i]
            bx, by = working[(i + 1) % n]
            nxt.append((ax * 0.75 + bx * 0.25, ay * 0.75 + by * 0.25))
            nxt.append((ax * 0.25 + bx * 0.75, ay * 0.25 + by * 0.75))
        if not closed:
            nxt.append(working[-1])
        working = nxt
    return working


def jitter_subdivide(
    points: Sequence[Point],
    prng,
    width: float,
    height: float,
    amplitude: float,
    iterations: int,
    decay: float,
    min_length: float,
) -> List[Point]:
    """
    Fractal detailing of a closed loop.

    Each round inserts the midpoint of every edge at least ``min_length`` long,
    pushed along the edge normal by a random offset within ``amplitude``.
    The amplitude shrinks by ``decay`` each round and new points are clamped
    to the canvas.
    """
    working = list(points)
    amp = amplitude
    for _ in range(iterations):
        nxt = []
        n = len(working)
        for i in range(n):
            a = working[i]
            b = working[(i + 1) % n]
            nxt.append(a)

            dx = b[0] - a[0]
            dy = b[1] - a[1]
            length = math.hypot(dx, dy)
            if length < min_length:
                continue

            nx = -dy / (length or 1)
            ny = dx / (length or 1)
            mx = (a[0] + b[0]) * 0.5
            my = (a[1] + b[1]) * 0.5
            jitter = prng.signed() * amp
            nxt.append((clamp(mx + nx * jitter, 0, width), clamp(my + ny * jitter, 0, height)))
        working = nxt
        amp *= decay
    return working
