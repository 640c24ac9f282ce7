"""
Political border assignment.

Land is partitioned among countries grown from weighted capitals by a
multi-source Dijkstra whose edge costs rise with slope, altitude and coast
proximity. The raw partition is then repaired:

1. Tiny countries get their capital moved onto an existing border and the
   growth is rerun (at most ``relocation_iterations`` times)
2. Exclaves are merged into the neighbour they share the most edges with
3. Small enclosed countries are absorbed by their only neighbour
4. Exclaves are removed again
5. Countries left without land are carved out of the largest country
6. Capitals left outside their country move to its best-scoring cell

Finally, owner changes between land cells are traced into smoothed border
polylines and every country gets a name.
"""

from __future__ import annotations

import heapq
import math
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Tuple

import numpy as np
import structlog
from pydantic import BaseModel, ConfigDict, Field

from .geometry import Point, chaikin_smooth, simplify_rdp
from .grid import NEIGHBOR_OFFSETS, check_grid, neighbor_view, smoothstep
from .mulberry_prng import Mulberry32
from .name_generator import CountryNameGenerator

logger = structlog.get_logger()

ORTHOGONAL = NEIGHBOR_OFFSETS[:4]
MAX_PATH_STEPS = 200000


class BorderOptions(BaseModel):
    """Border assignment options."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    country_count: int = Field(default=90, ge=1, description="Requested number of countries")
    weight_shape: float = Field(default=0.55, description="Shape of the heavy-tailed weight draw")
    min_weight_factor: float = Field(default=0.15, description="Lower weight clip, divided by count")
    max_weight_factor: float = Field(default=5.5, description="Upper weight clip, divided by count")
    growth_exponent: float = Field(default=0.72, description="Weight exponent applied to path cost")
    capital_spacing: float = Field(
        default=0.04, description="Initial capital separation as a share of the short grid side"
    )
    capital_attempt_factor: int = Field(
        default=7, description="Capital sampling attempts per land cell and radius"
    )
    tiny_area_fraction: float = Field(default=0.0012, description="Tiny country threshold as a share of land")
    tiny_area_min: int = Field(default=8, description="Lower bound of the tiny country threshold")
    relocation_iterations: int = Field(default=2, description="Capital relocation rounds")
    enclave_area_factor: float = Field(
        default=0.22, description="Largest absorbable country as a share of the average area"
    )
    enclave_skip_chance: float = Field(default=0.2, description="Chance of keeping an absorbable country")
    revive_area_factor: float = Field(
        default=0.18, description="Area carved for an empty country as a share of the average"
    )
    min_path_points: int = Field(default=4, description="Minimum traced border path length")


class Country(BaseModel):
    """One country of the political map."""

    id: int = Field(description="Country identifier, also its owner value")
    name: str = Field(description="Display name")
    weight: float = Field(description="Relative growth weight")
    area: int = Field(description="Owned land cells")
    capital: Tuple[int, int] = Field(description="Capital cell (x, y)")
    capital_index: int = Field(description="Capital cell index")


class Capital(NamedTuple):
    x: int
    y: int
    idx: int


@dataclass
class BorderResult:
    """Owner per cell (-1 for sea), countries and border polylines in canvas space."""

    owner: np.ndarray
    countries: List[Country] = field(default_factory=list)
    border_paths: List[List[Point]] = field(default_factory=list)


def step_cost(elev_a: float, elev_b: float, coast_a: float, coast_b: float, base_cost: float) -> float:
    """Cost of one grid step between two land cells."""
    slope_delta = abs(elev_a - elev_b)
    high = max(elev_a, elev_b)
    slope_penalty = 1 + 2.9 * slope_delta
    ridge_penalty = 1 + 2.4 * smoothstep(0.08, 0.34, slope_delta)
    high_penalty = 1 + 1.85 * smoothstep(0.5, 0.92, high)
    coastal_penalty = 1 + 0.35 * smoothstep(0.0, 0.08, 0.08 - min(coast_a, coast_b))
    plain_ease = 1 - 0.16 * smoothstep(0.0, 0.34, 0.34 - high)
    return base_cost * slope_penalty * ridge_penalty * high_penalty * coastal_penalty * max(0.82, plain_ease)


def dominant_neighbor(counts: Dict[int, int]) -> int:
    """Neighbour id with the most shared edges; ties go to the lower id."""
    if not counts:
        return -1
    return min(counts.items(), key=lambda item: (-item[1], item[0]))[0]


class BorderAssignor:
    """Partitions land into countries and traces their borders."""

    def __init__(
        self,
        gw: int,
        gh: int,
        land_mask: np.ndarray,
        elevation: np.ndarray,
        coast_distance: np.ndarray,
        prng: Mulberry32,
        options: Optional[BorderOptions] = None,
        width: float = 1280,
        height: float = 640,
    ):
        """
        Initialize border assignor.

        Args:
            gw: Grid width
            gh: Grid height
            land_mask: Final land mask
            elevation: Normalised elevation field
            coast_distance: Normalised coast distance field
            prng: Run PRNG, shared with the other stages
            options: Border options
            width: Canvas width for border paths
            height: Canvas height for border paths
        """
        check_grid(land_mask, gw, gh)
        check_grid(elevation, gw, gh)
        check_grid(coast_distance, gw, gh)
        self.gw = gw
        self.gh = gh
        self.land_mask = land_mask.astype(np.uint8)
        self.elevation = elevation
        self.coast_distance = coast_distance
        self.prng = prng
        self.options = options or BorderOptions()
        self.width = width
        self.height = height

        self.land2d = self.land_mask.reshape(gh, gw) == 1
        self._land = self.land_mask.tolist()
        self._elev = elevation.astype(np.float64).tolist()
        self._coast = coast_distance.astype(np.float64).tolist()

        self.country_count = self.options.country_count
        self.weights: List[float] = []
        self.capitals: List[Capital] = []
        self.owner = np.full(gw * gh, -1, dtype=np.int16)

    def generate(self) -> BorderResult:
        """
        Run the full assignment.

        Returns:
            BorderResult with the owner field, countries and border paths
        """
        opts = self.options
        land_cells = int(self.land_mask.sum())
        logger.info("Assigning borders", countries=self.country_count, land_cells=land_cells)
        if land_cells == 0:
            logger.warning("No land cells; skipping border assignment")
            return BorderResult(owner=self.owner.copy())

        self.weights = self.build_country_weights(self.country_count)
        slope = self.build_slope_field()
        score = self.build_capital_score(slope)
        self.capitals = self.choose_capitals(score, self.country_count)

        if len(self.capitals) < self.country_count:
            logger.warning(
                "Fewer capitals than requested",
                requested=self.country_count,
                placed=len(self.capitals),
            )
            self.country_count = len(self.capitals)
            kept = self.weights[: self.country_count]
            total = sum(kept) or 1
            self.weights = [w / total for w in kept]

        self.owner = self.assign_countries(self.capitals)

        for iteration in range(opts.relocation_iterations):
            areas = self.measure_countries()
            relocated = self.relocate_tiny_countries(areas)
            if all(a.idx == b.idx for a, b in zip(relocated, self.capitals)):
                break
            logger.debug("Relocated tiny capitals", iteration=iteration)
            self.capitals = relocated
            self.owner = self.assign_countries(self.capitals)

        self.remove_exclaves()
        self.absorb_enclosed_small_countries()
        self.remove_exclaves()
        self.revive_missing_countries()
        self.reseat_capitals(score)

        areas = self.measure_countries()
        border_paths = self.extract_border_paths()
        countries = self.summarize_countries(areas)

        logger.info(
            "Assigned borders",
            countries=len(countries),
            empty=int((areas == 0).sum()),
            border_paths=len(border_paths),
        )
        return BorderResult(owner=self.owner, countries=countries, border_paths=border_paths)

    def build_country_weights(self, count: int) -> List[float]:
        """Heavy-tailed growth weights, normalised and clipped."""
        opts = self.options
        raw = []
        for _ in range(count):
            u = max(1e-8, self.prng.random())
            raw.append((-math.log(u)) ** (1 / opts.weight_shape))

        total = sum(raw) or 1
        low = opts.min_weight_factor / count
        high = opts.max_weight_factor / count
        clipped = [min(high, max(low, v / total)) for v in raw]
        clipped_total = sum(clipped) or 1
        return [v / clipped_total for v in clipped]

    def build_slope_field(self) -> np.ndarray:
        """Largest elevation step to any land neighbour, normalised over land."""
        elev2d = self.elevation.reshape(self.gh, self.gw).astype(np.float64)
        slope = np.zeros_like(elev2d)
        for off in NEIGHBOR_OFFSETS:
            n_elev = neighbor_view(elev2d, off.x, off.y, 0.0)
            n_land = neighbor_view(self.land2d, off.x, off.y, False)
            delta = np.where(self.land2d & n_land, np.abs(elev2d - n_elev), 0.0)
            slope = np.maximum(slope, delta)

        max_slope = slope.max()
        if max_slope > 0:
            slope = slope / max_slope
        return slope.reshape(-1)

    def build_capital_score(self, slope: np.ndarray) -> np.ndarray:
        """Capitals prefer inland, flat cells."""
        score = 0.65 * self.coast_distance.astype(np.float64) + 0.35 * (1 - slope)
        return np.where(self.land_mask == 1, score, 0.0)

    def choose_capitals(self, score: np.ndarray, count: int) -> List[Capital]:
        """
        Weighted capital sampling with a shrinking separation radius.

        The radius starts at ``capital_spacing`` of the short grid side and
        drops by one cell whenever a round of attempts runs out. Missing
        capitals are topped up by striding through the land cells.
        """
        gw = self.gw
        land_indices = np.flatnonzero(self.land_mask == 1)
        if len(land_indices) == 0:
            return []

        cumulative = np.cumsum(np.maximum(0.0001, score[land_indices]))
        total = float(cumulative[-1])
        last = len(land_indices) - 1

        capitals: List[Capital] = []
        taken = set()
        min_dist = max(3, int(min(gw, self.gh) * self.options.capital_spacing))
        max_attempts = len(land_indices) * self.options.capital_attempt_factor

        while len(capitals) < count and min_dist >= 1:
            attempts = 0
            min_dist_sq = min_dist * min_dist
            while len(capitals) < count and attempts < max_attempts:
                attempts += 1
                pos = min(int(np.searchsorted(cumulative, self.prng.random() * total)), last)
                idx = int(land_indices[pos])
                x = idx % gw
                y = idx // gw

                ok = True
                for c in capitals:
                    dx = abs(x - c.x)
                    dx = min(dx, gw - dx)
                    dy = y - c.y
                    if dx * dx + dy * dy < min_dist_sq:
                        ok = False
                        break
                if ok:
                    capitals.append(Capital(x, y, idx))
                    taken.add(idx)
            min_dist -= 1

        stride = max(1, len(land_indices) // count)
        cursor = 0
        while len(capitals) < count and cursor < len(land_indices):
            idx = int(land_indices[cursor])
            if idx not in taken:
                capitals.append(Capital(idx % gw, idx // gw, idx))
                taken.add(idx)
            cursor += stride

        return capitals[:count]

    def assign_countries(self, capitals: List[Capital]) -> np.ndarray:
        """Multi-source Dijkstra over land; cost is scaled down for heavy countries."""
        gw, gh = self.gw, self.gh
        land = self._land
        elev = self._elev
        coast = self._coast
        exponent = self.options.growth_exponent
        powers = [(w ** exponent) or 1e-6 for w in self.weights]

        owner = [-1] * (gw * gh)
        best_cost = [math.inf] * (gw * gh)
        heap = []
        for cid, capital in enumerate(capitals):
            owner[capital.idx] = cid
            best_cost[capital.idx] = 0.0
            heapq.heappush(heap, (0.0, capital.idx, cid, 0.0))

        while heap:
            _, idx, cid, raw_cost = heapq.heappop(heap)
            if raw_cost > best_cost[idx] + 1e-9 or owner[idx] != cid:
                continue

            x = idx % gw
            y = idx // gw
            power = powers[cid]
            for off in NEIGHBOR_OFFSETS:
                ny = y + off.y
                if ny < 0 or ny >= gh:
                    continue
                n_idx = ny * gw + (x + off.x) % gw
                if land[n_idx] != 1:
                    continue

                n_raw = raw_cost + step_cost(elev[idx], elev[n_idx], coast[idx], coast[n_idx], off.cost)
                n_effective = n_raw / power
                current_owner = owner[n_idx]
                if current_owner == -1:
                    current_effective = math.inf
                else:
                    current_effective = best_cost[n_idx] / powers[current_owner]

                if n_effective < current_effective - 1e-9 or (
                    abs(n_effective - current_effective) <= 1e-9
                    and (current_owner == -1 or cid < current_owner)
                ):
                    best_cost[n_idx] = n_raw
                    owner[n_idx] = cid
                    heapq.heappush(heap, (n_effective, n_idx, cid, n_raw))

        result = np.array(owner, dtype=np.int16)
        self._fill_unreachable(result)
        return result

    def _fill_unreachable(self, owner: np.ndarray) -> None:
        """Give land no capital could reach to the nearest owned cell's country."""
        orphans = (self.land_mask == 1) & (owner < 0)
        if not orphans.any() or (owner >= 0).sum() == 0:
            return

        gw, gh = self.gw, self.gh
        label = owner.tolist()
        queue = deque(np.flatnonzero(owner >= 0).tolist())
        while queue:
            idx = queue.popleft()
            x = idx % gw
            y = idx // gw
            for off in NEIGHBOR_OFFSETS:
                ny = y + off.y
                if ny < 0 or ny >= gh:
                    continue
                n_idx = ny * gw + (x + off.x) % gw
                if label[n_idx] != -1:
                    continue
                label[n_idx] = label[idx]
                queue.append(n_idx)

        labels = np.array(label, dtype=np.int16)
        owner[orphans] = labels[orphans]
        logger.debug("Filled unreachable land", cells=int(orphans.sum()))

    def measure_countries(self) -> np.ndarray:
        owned = self.owner[self.owner >= 0]
        return np.bincount(owned, minlength=self.country_count)[: self.country_count]

    def _boundary_cells(self) -> np.ndarray:
        """Land cells with a land 8-neighbour of another owner, row-major."""
        owner2d = self.owner.reshape(self.gh, self.gw)
        boundary = np.zeros_like(self.land2d)
        for off in NEIGHBOR_OFFSETS:
            n_land = neighbor_view(self.land2d, off.x, off.y, False)
            n_owner = neighbor_view(owner2d, off.x, off.y, -1)
            boundary |= n_land & (n_owner != owner2d)
        return np.flatnonzero((boundary & self.land2d).reshape(-1))

    def relocate_tiny_countries(self, areas: np.ndarray) -> List[Capital]:
        """Move capitals of tiny countries to random border cells."""
        land_cells = int(areas.sum())
        tiny_threshold = max(self.options.tiny_area_min, int(land_cells * self.options.tiny_area_fraction))
        tiny_ids = [cid for cid in range(self.country_count) if areas[cid] < tiny_threshold]
        if not tiny_ids:
            return self.capitals

        candidates = self._boundary_cells()
        out = list(self.capitals)
        if len(candidates) == 0:
            return out

        for cid in tiny_ids:
            idx = int(candidates[self.prng.randint(len(candidates))])
            out[cid] = Capital(idx % self.gw, idx // self.gw, idx)
        return out

    def _component_neighbor_counts(self, own: List[int], cells: List[int], self_id: int) -> Dict[int, int]:
        gw, gh = self.gw, self.gh
        land = self._land
        in_component = set(cells)
        counts: Dict[int, int] = {}
        for idx in cells:
            x = idx % gw
            y = idx // gw
            for off in ORTHOGONAL:
                ny = y + off.y
                if ny < 0 or ny >= gh:
                    continue
                n_idx = ny * gw + (x + off.x) % gw
                if land[n_idx] != 1 or n_idx in in_component:
                    continue
                nid = own[n_idx]
                if nid < 0 or nid == self_id:
                    continue
                counts[nid] = counts.get(nid, 0) + 1
        return counts

    def remove_exclaves(self) -> None:
        """Hand every non-largest component of a country to its dominant neighbour."""
        gw, gh = self.gw, self.gh
        own = self.owner.tolist()
        visited = [False] * (gw * gh)
        merged = 0

        for cid in range(self.country_count):
            components = []
            for start in np.flatnonzero(self.owner == cid).tolist():
                if visited[start]:
                    continue
                visited[start] = True
                stack = [start]
                cells = []
                while stack:
                    idx = stack.pop()
                    cells.append(idx)
                    x = idx % gw
                    y = idx // gw
                    for off in ORTHOGONAL:
                        ny = y + off.y
                        if ny < 0 or ny >= gh:
                            continue
                        n_idx = ny * gw + (x + off.x) % gw
                        if own[n_idx] != cid or visited[n_idx]:
                            continue
                        visited[n_idx] = True
                        stack.append(n_idx)
                components.append(cells)

            if len(components) <= 1:
                continue

            components.sort(key=len, reverse=True)
            for cells in components[1:]:
                recipient = dominant_neighbor(self._component_neighbor_counts(own, cells, cid))
                if recipient < 0:
                    continue
                for idx in cells:
                    own[idx] = recipient
                self.owner[cells] = recipient
                merged += 1

        if merged:
            logger.debug("Removed exclaves", merged=merged)

    def absorb_enclosed_small_countries(self) -> None:
        """Small landlocked countries with a single neighbour join that neighbour."""
        gw, gh = self.gw, self.gh
        owner2d = self.owner.reshape(gh, gw)
        owned = owner2d >= 0
        sea = ~self.land2d

        touches_sea_cell = np.zeros_like(owned)
        for off in ORTHOGONAL:
            touches_sea_cell |= neighbor_view(sea, off.x, off.y, False)
        touches_sea = np.zeros(self.country_count, dtype=bool)
        touches_sea[np.unique(owner2d[owned & touches_sea_cell])] = True

        area = self.measure_countries()
        land_cells = int(area.sum())
        avg_area = land_cells / max(1, self.country_count)
        max_area = max(10, int(avg_area * self.options.enclave_area_factor))

        own = self.owner.tolist()
        land = self._land
        absorbed = 0
        for cid in range(self.country_count):
            if area[cid] == 0 or area[cid] > max_area or touches_sea[cid]:
                continue

            cells = np.flatnonzero(self.owner == cid).tolist()
            counts: Dict[int, int] = {}
            for idx in cells:
                x = idx % gw
                y = idx // gw
                for off in ORTHOGONAL:
                    ny = y + off.y
                    if ny < 0 or ny >= gh:
                        continue
                    n_idx = ny * gw + (x + off.x) % gw
                    if land[n_idx] != 1:
                        continue
                    nid = own[n_idx]
                    if nid >= 0 and nid != cid:
                        counts[nid] = counts.get(nid, 0) + 1

            if len(counts) != 1:
                continue
            recipient = dominant_neighbor(counts)
            if self.prng.random() < self.options.enclave_skip_chance:
                continue
            for idx in cells:
                own[idx] = recipient
            self.owner[cells] = recipient
            absorbed += 1

        if absorbed:
            logger.debug("Absorbed enclosed countries", absorbed=absorbed)

    def _donor_boundary_cells(self, donor_id: int) -> np.ndarray:
        owner2d = self.owner.reshape(self.gh, self.gw)
        mine = owner2d == donor_id
        boundary = np.zeros_like(mine)
        for off in ORTHOGONAL:
            boundary |= neighbor_view(owner2d, off.x, off.y, donor_id) != donor_id
        return np.flatnonzero((mine & boundary).reshape(-1))

    def carve_country(self, donor_id: int, new_id: int, target_area: int) -> int:
        """Breadth-first carve of ``target_area`` donor cells from a random donor border cell."""
        gw, gh = self.gw, self.gh
        boundary = self._donor_boundary_cells(donor_id)
        if len(boundary):
            seed = int(boundary[self.prng.randint(len(boundary))])
        else:
            donor_cells = np.flatnonzero(self.owner == donor_id)
            if len(donor_cells) == 0:
                return 0
            seed = int(donor_cells[0])

        own = self.owner.tolist()
        seen = {seed}
        queue = deque([seed])
        carved = []
        while queue and len(carved) < target_area:
            idx = queue.popleft()
            if own[idx] != donor_id:
                continue
            own[idx] = new_id
            carved.append(idx)

            x = idx % gw
            y = idx // gw
            for off in ORTHOGONAL:
                ny = y + off.y
                if ny < 0 or ny >= gh:
                    continue
                n_idx = ny * gw + (x + off.x) % gw
                if n_idx in seen or own[n_idx] != donor_id:
                    continue
                seen.add(n_idx)
                queue.append(n_idx)

        if carved:
            self.owner[carved] = new_id
            self.capitals[new_id] = Capital(seed % gw, seed // gw, seed)
        return len(carved)

    def revive_missing_countries(self) -> None:
        """Give every empty country a chunk of the current largest country."""
        area = self.measure_countries().astype(np.int64)
        missing = [cid for cid in range(self.country_count) if area[cid] == 0]
        if not missing:
            return

        avg_area = int(area.sum()) / max(1, self.country_count)
        target_area = max(6, int(avg_area * self.options.revive_area_factor))

        revived = 0
        for new_id in missing:
            donor_id = int(np.argmax(area))
            donor_area = int(area[donor_id])
            if donor_area <= 1:
                break

            carved = self.carve_country(donor_id, new_id, min(target_area, max(1, donor_area - 1)))
            if carved > 0:
                area[new_id] += carved
                area[donor_id] -= carved
                revived += 1

        logger.debug("Revived empty countries", missing=len(missing), revived=revived)

    def _largest_component(self, cid: int) -> List[int]:
        """Cells of the biggest 4-connected piece of a country."""
        gw, gh = self.gw, self.gh
        own = self.owner.tolist()
        seen = set()
        best: List[int] = []
        for start in np.flatnonzero(self.owner == cid).tolist():
            if start in seen:
                continue
            seen.add(start)
            stack = [start]
            cells = []
            while stack:
                idx = stack.pop()
                cells.append(idx)
                x = idx % gw
                y = idx // gw
                for off in ORTHOGONAL:
                    ny = y + off.y
                    if ny < 0 or ny >= gh:
                        continue
                    n_idx = ny * gw + (x + off.x) % gw
                    if own[n_idx] != cid or n_idx in seen:
                        continue
                    seen.add(n_idx)
                    stack.append(n_idx)
            if len(cells) > len(best):
                best = cells
        return best

    def reseat_capitals(self, score: np.ndarray) -> None:
        """
        Move capitals that ended up on another country's land.

        Exclave merges, absorption and carving can hand a capital cell to a
        neighbour. The capital moves to the highest-scoring cell of its
        country's largest component; ties go to the lower index.
        """
        moved = 0
        for cid in range(self.country_count):
            if self.owner[self.capitals[cid].idx] == cid:
                continue
            cells = self._largest_component(cid)
            if not cells:
                continue
            cells = np.array(sorted(cells))
            idx = int(cells[int(np.argmax(score[cells]))])
            self.capitals[cid] = Capital(idx % self.gw, idx // self.gw, idx)
            moved += 1

        if moved:
            logger.debug("Reseated capitals", moved=moved)

    def extract_border_paths(self) -> List[List[Point]]:
        """
        Trace owner changes between land cells into smoothed polylines.

        East and south cell edges are collected in row-major order and
        chained end to start. The x seam is not crossed.
        """
        gw, gh = self.gw, self.gh
        owner2d = self.owner.reshape(gh, gw)
        land2d = self.land2d

        east = np.zeros_like(land2d)
        east[:, :-1] = land2d[:, :-1] & land2d[:, 1:] & (owner2d[:, :-1] != owner2d[:, 1:])
        south = np.zeros_like(land2d)
        south[:-1] = land2d[:-1] & land2d[1:] & (owner2d[:-1] != owner2d[1:])

        ys, xs, sides = np.nonzero(np.stack([east, south], axis=-1))
        # east edge: (x+1, y) -> (x+1, y+1); south edge: (x, y+1) -> (x+1, y+1)
        ax = (xs + 1 - sides).tolist()
        ay = (ys + sides).tolist()
        bx = (xs + 1).tolist()
        by = (ys + 1).tolist()

        starts: Dict[int, List[int]] = {}
        for i in range(len(ax)):
            starts.setdefault(ay[i] * (gw + 1) + ax[i], []).append(i)

        cell_w = self.width / gw
        cell_h = self.height / gh
        short_side = min(self.width, self.height)
        used = [False] * len(ax)
        paths = []

        for i in range(len(ax)):
            if used[i]:
                continue
            used[i] = True
            path = [(ax[i], ay[i]), (bx[i], by[i])]
            cur_x = bx[i]
            cur_y = by[i]

            for _ in range(MAX_PATH_STEPS):
                next_index = -1
                for candidate in starts.get(cur_y * (gw + 1) + cur_x, ()):
                    if not used[candidate]:
                        next_index = candidate
                        break
                if next_index == -1:
                    break
                used[next_index] = True
                cur_x = bx[next_index]
                cur_y = by[next_index]
                path.append((cur_x, cur_y))

            if len(path) < self.options.min_path_points:
                continue

            world = [(x * cell_w, y * cell_h) for x, y in path]
            simplified = simplify_rdp(world, max(0.8, short_side / 1500), closed=False)
            smoothed = chaikin_smooth(simplified, 1, closed=False)
            final = simplify_rdp(smoothed, max(0.5, short_side / 2000), closed=False)
            if len(final) >= 3:
                paths.append(final)

        return paths

    def summarize_countries(self, areas: np.ndarray) -> List[Country]:
        names = CountryNameGenerator(self.prng).generate([int(a) for a in areas])
        return [
            Country(
                id=cid,
                name=names[cid],
                weight=self.weights[cid],
                area=int(areas[cid]),
                capital=(self.capitals[cid].x, self.capitals[cid].y),
                capital_index=self.capitals[cid].idx,
            )
            for cid in range(self.country_count)
        ]


def build_borders(
    gw: int,
    gh: int,
    land_mask: np.ndarray,
    elevation: np.ndarray,
    coast_distance: np.ndarray,
    prng: Mulberry32,
    country_count: int = 90,
    width: float = 1280,
    height: float = 640,
) -> BorderResult:
    """Convenience wrapper around :class:`BorderAssignor`."""
    options = BorderOptions(country_count=country_count)
    return BorderAssignor(gw, gh, land_mask, elevation, coast_distance, prng, options, width, height).generate()
