from __future__ import annotations

import argparse
import csv
import logging
import os
import sys

from planners.config import load_rrt_params
from planners.gridmap import FormatError, Terrain, load_map
from planners.rrt import RRTPlanner


def parse_cell(text: str) -> tuple[int, int]:
    x, y = (int(s) for s in text.split(","))
    return x, y


def write_edges(path: str, edges) -> int:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    n = 0
    with open(path, "w", newline="") as f:
        w = csv.writer(f)
        w.writerow(["px", "py", "cx", "cy"])
        for (px, py), (cx, cy) in edges:
            w.writerow([px, py, cx, cy])
            n += 1
    return n


def write_path(path: str, cells) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", newline="") as f:
        w = csv.writer(f)
        w.writerow(["x", "y"])
        w.writerows(cells)


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Grow an RRT across a terrain map and dump the tree.")
    ap.add_argument("--map", default="maps/demo.map", help="map file (octile header + tile grid)")
    ap.add_argument("--start", default="2,2", help="start cell x,y")
    ap.add_argument("--goal", default="21,9", help="goal cell x,y")
    ap.add_argument("--config", default="configs/rrt.yaml")
    ap.add_argument("--seed", type=int, default=None, help="overrides config seed")
    ap.add_argument("--max-steps", type=int, default=None, help="overrides config max_steps")
    ap.add_argument("--sample-step", type=float, default=None)
    ap.add_argument("--max-branch", type=float, default=None)
    ap.add_argument("--edges-out", default="artifacts/rrt_tree_edges.csv")
    ap.add_argument("--path-out", default="artifacts/rrt_path.csv")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        grid = load_map(args.map)
    except (FormatError, OSError) as e:
        print(f"[rrt] could not load map {args.map}: {e}", file=sys.stderr)
        return 1

    params = load_rrt_params(args.config)
    if args.seed is not None:
        params.seed = args.seed
    if args.max_steps is not None:
        params.max_steps = args.max_steps
    if args.sample_step is not None:
        params.sample_step = args.sample_step
    if args.max_branch is not None:
        params.max_branch_length = args.max_branch

    start, goal = parse_cell(args.start), parse_cell(args.goal)
    for name, cell in (("start", start), ("goal", goal)):
        if not grid.in_bounds(*cell):
            print(f"[rrt] {name} {cell} is outside the {grid.width}x{grid.height} map", file=sys.stderr)
            return 2

    planner = RRTPlanner.from_params(params)
    planner.prepare_tree(grid, start, goal, seed=params.seed)
    for name, cell in (("start", start), ("goal", goal)):
        if not planner.is_valid_tile(cell, Terrain.OUT_OF_BOUNDS):
            print(f"[rrt] {name} {cell} is not passable ({grid.tile(*cell).value})", file=sys.stderr)
            return 2

    steps = planner.run(params.max_steps)
    n_edges = write_edges(args.edges_out, planner.edges())
    print(f"[rrt] map={grid.source} {grid.width}x{grid.height} seed={planner.seed}")
    print(f"[rrt] steps={steps} nodes={len(planner.tree)} state={planner.state.value}")
    print(f"Wrote: {args.edges_out} ({n_edges} edges)")

    path = planner.path()
    if path is None:
        print(f"[rrt] goal not reached within {params.max_steps} steps", file=sys.stderr)
        # drop a path left by an earlier run so it is not plotted over this tree
        try:
            os.remove(args.path_out)
        except FileNotFoundError:
            pass
        return 3
    write_path(args.path_out, path)
    print(f"Wrote: {args.path_out} ({len(path)} cells)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
