from __future__ import annotations

import logging
import math
import random
import time
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple

from planners.config import RRTParams
from planners.gridmap import GridMap, Terrain
from planners.tree import SearchTree
from shared.types import Cell, Edge, Path2D

logger = logging.getLogger(__name__)


class PlannerState(Enum):
    IDLE = "idle"
    GROWING = "growing"
    REACHED = "reached"


def is_valid_tile(grid: GridMap, position: Cell, reference: Terrain) -> bool:
    """Can a branch grown from ``reference`` terrain enter ``position``?

    OUT_OF_BOUNDS/TREE references mean plain land travel: anything except
    OUT_OF_BOUNDS and TREE. WATER stays on water. Everything else
    (TERRAIN, SWAMP) stays on TERRAIN or SWAMP.
    """
    kind = grid.tile(position[0], position[1])
    if reference in (Terrain.OUT_OF_BOUNDS, Terrain.TREE):
        return kind is not Terrain.OUT_OF_BOUNDS and kind is not Terrain.TREE
    if reference is Terrain.WATER:
        return kind is Terrain.WATER
    return kind is Terrain.TERRAIN or kind is Terrain.SWAMP


def _manhattan(a: Cell, b: Cell) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def _as_cell(p: Sequence[int]) -> Cell:
    return int(p[0]), int(p[1])


class RRTPlanner:
    """Grows an RRT over a GridMap one branch per ``generate_branch()`` call.

    Each cell holds at most one tree node; the occupancy list maps a cell
    index to the id of the node sitting there (or None). The session is
    finished once both the start and end cells are occupied: the tree is
    connected, so a path between them always exists through the root.
    """

    def __init__(self, sample_step: float = 0.25, max_branch_length: float = 15.0) -> None:
        if not sample_step > 0.0:
            raise ValueError(f"sample_step must be > 0, got {sample_step}")
        if not max_branch_length >= 1.0:
            raise ValueError(f"max_branch_length must be >= 1, got {max_branch_length}")
        self.sample_step = float(sample_step)
        self.max_branch_length = float(max_branch_length)
        self.rng = random.Random()
        self.seed: int | None = None
        self._grid: GridMap | None = None
        self._tree: SearchTree[Cell] | None = None
        self._occupancy: List[Optional[int]] = []
        self._start: Cell = (0, 0)
        self._end: Cell = (0, 0)

    @classmethod
    def from_params(cls, params: RRTParams) -> "RRTPlanner":
        return cls(sample_step=params.sample_step, max_branch_length=params.max_branch_length)

    # -- read-only surface ----------------------------------------------
    @property
    def grid(self) -> GridMap | None:
        return self._grid

    @property
    def tree(self) -> SearchTree[Cell] | None:
        return self._tree

    @property
    def start(self) -> Cell:
        return self._start

    @property
    def end(self) -> Cell:
        return self._end

    @property
    def state(self) -> PlannerState:
        if self._grid is None:
            return PlannerState.IDLE
        return PlannerState.REACHED if self.has_finished() else PlannerState.GROWING

    def node_at(self, cell: Cell) -> int | None:
        grid, _ = self._session()
        return self._occupancy[grid.index_of(cell[0], cell[1])]

    def edges(self) -> Iterator[Edge]:
        """(parent cell, child cell) for every tree edge, depth-first."""
        if self._tree is None:
            return
        tree = self._tree
        for parent, child in tree.edges():
            yield tree.data(parent), tree.data(child)

    def is_valid_tile(self, position: Cell, reference: Terrain) -> bool:
        return is_valid_tile(self._session()[0], position, reference)

    # -- session --------------------------------------------------------
    def _session(self) -> Tuple[GridMap, SearchTree[Cell]]:
        if self._grid is None or self._tree is None:
            raise RuntimeError("prepare_tree() must be called before using the planner")
        return self._grid, self._tree

    def prepare_tree(
        self,
        grid: GridMap,
        start: Sequence[int],
        end: Sequence[int],
        seed: int | None = None,
    ) -> None:
        """Start a new session rooted at ``start``.

        ``seed=None`` reseeds from the wall clock in whole seconds, so two
        sessions prepared within the same second sample identically.
        """
        start, end = _as_cell(start), _as_cell(end)
        start_index = grid.index_of(*start)
        grid.index_of(*end)

        self._grid = grid
        self._occupancy = [None] * grid.cell_count
        self._tree = SearchTree(start)
        self._occupancy[start_index] = self._tree.root
        self._start = start
        self._end = end

        self.seed = int(time.time()) if seed is None else seed
        self.rng.seed(self.seed)
        logger.debug(
            "prepared RRT session on %s: start=%s end=%s seed=%s",
            grid.source,
            start,
            end,
            self.seed,
        )

    def has_finished(self) -> bool:
        if self._grid is None:
            return False
        w = self._grid.width
        s = self._occupancy[self._start[0] + self._start[1] * w]
        e = self._occupancy[self._end[0] + self._end[1] * w]
        return s is not None and e is not None

    # -- growth ---------------------------------------------------------
    def _nearest(self, tree: SearchTree[Cell], q: Cell) -> int:
        """First occupied node with the smallest Manhattan distance to ``q``."""
        best = tree.root
        best_d = None
        for nid in self._occupancy:
            if nid is None:
                continue
            d = _manhattan(tree.data(nid), q)
            if best_d is None or d < best_d:
                best, best_d = nid, d
        return best

    def _extend(self, origin: Cell, target: Cell) -> Cell | None:
        """Walk from origin toward target in sample_step increments.

        Returns the last cell that passed the terrain check before the first
        failing one, or None when no increment produced a valid cell.
        """
        grid, _ = self._session()
        reference = grid.tile(origin[0], origin[1])
        dx = target[0] - origin[0]
        dy = target[1] - origin[1]
        magnitude = math.hypot(dx, dy)
        reach = min(magnitude, self.max_branch_length)

        candidate: Cell | None = None
        current = 0.0
        while current < reach:
            current = min(current + self.sample_step, reach)
            t = current / magnitude
            inc = (int(origin[0] + dx * t), int(origin[1] + dy * t))
            if inc == origin:
                continue
            if not is_valid_tile(grid, inc, reference):
                break
            candidate = inc
        return candidate

    def generate_branch(self) -> int | None:
        """One growth step. Returns the new node id, or None if nothing was added."""
        grid, tree = self._session()
        if self.has_finished() or self._start == self._end:
            return None

        w = grid.width
        q_rand = (self.rng.randrange(w), self.rng.randrange(grid.height))
        if self._occupancy[q_rand[0] + q_rand[1] * w] is not None:
            return None

        near = self._nearest(tree, q_rand)
        cell = self._extend(tree.data(near), q_rand)
        if cell is None:
            return None

        idx = cell[0] + cell[1] * w
        if self._occupancy[idx] is not None:
            return None
        nid = tree.add_child(near, cell)
        self._occupancy[idx] = nid
        return nid

    def run(self, max_steps: int) -> int:
        """Call generate_branch() until finished or max_steps are spent; returns steps used."""
        self._session()
        steps = 0
        while steps < max_steps and not self.has_finished():
            self.generate_branch()
            steps += 1
        return steps

    def path(self) -> Path2D | None:
        """Cells from start to end along tree edges, once the goal is reached."""
        if not self.has_finished():
            return None
        grid, tree = self._session()
        end_node = self._occupancy[grid.index_of(*self._end)]
        assert end_node is not None
        cells = [tree.data(n) for n in tree.ancestors(end_node)]
        cells.reverse()
        return cells


def plan_on_map_rrt(
    grid: GridMap,
    start: Cell,
    goal: Cell,
    *,
    sample_step: float = 0.25,
    max_branch_length: float = 15.0,
    max_iters: int = 20000,
    seed: int | None = None,
) -> Path2D:
    """Grow an RRT from start until goal is occupied and return the tree path."""
    if not (grid.in_bounds(*start) and grid.in_bounds(*goal)):
        raise ValueError("start/goal out of bounds")
    if not (
        is_valid_tile(grid, start, Terrain.OUT_OF_BOUNDS)
        and is_valid_tile(grid, goal, Terrain.OUT_OF_BOUNDS)
    ):
        raise ValueError("start/goal on obstacle")

    planner = RRTPlanner(sample_step=sample_step, max_branch_length=max_branch_length)
    planner.prepare_tree(grid, start, goal, seed=seed)
    steps = planner.run(max_iters)
    path = planner.path()
    if path is None:
        raise ValueError("no path found (RRT ran out of iterations)")
    logger.debug("RRT reached goal after %d steps with %d nodes", steps, len(planner.tree))
    return path
