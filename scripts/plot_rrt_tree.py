#!/usr/bin/env python3
from __future__ import annotations

import argparse
import os
import sys
from typing import Iterable

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from planners.gridmap import FormatError, GridMap, Terrain, load_map

TERRAIN_RGB = {
    Terrain.TERRAIN: (1, 142, 14),  # green
    Terrain.TREE: (95, 80, 29),  # brown
    Terrain.SWAMP: (130, 148, 71),  # moss
    Terrain.WATER: (43, 71, 62),  # blue
    Terrain.OUT_OF_BOUNDS: (40, 40, 40),  # grey
}


def terrain_image(grid: GridMap) -> np.ndarray:
    """(height, width, 3) uint8 image, one pixel per tile."""
    img = np.zeros((grid.height, grid.width, 3), dtype=np.uint8)
    for y, row in enumerate(grid.rows()):
        img[y] = [TERRAIN_RGB[t] for t in row]
    return img


def load_csv(path: str, required: Iterable[str]) -> pd.DataFrame:
    df = pd.read_csv(path)
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise SystemExit(f"CSV {path} missing required columns: {missing}")
    return df


def plot_tree(grid: GridMap, edges: pd.DataFrame, path: pd.DataFrame | None) -> None:
    plt.figure()
    # pixel centres sit on integer coordinates
    plt.imshow(terrain_image(grid), interpolation="nearest")
    for px, py, cx, cy in edges[["px", "py", "cx", "cy"]].itertuples(index=False):
        plt.plot([px, cx], [py, cy], color="white", linewidth=0.6)
    if path is not None and len(path):
        plt.plot(path["x"], path["y"], color="red", linewidth=1.5, label="path")
        plt.scatter(path["x"].iloc[[0, -1]], path["y"].iloc[[0, -1]], color="red", marker="x")
        plt.legend()
    plt.title(f"RRT on {os.path.basename(grid.source)} ({len(edges)} edges)")
    plt.axis("off")


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Render a terrain map and an RRT edge CSV to PNG.")
    ap.add_argument("--map", default="maps/demo.map")
    ap.add_argument("--edges", default="artifacts/rrt_tree_edges.csv")
    ap.add_argument("--path", default="artifacts/rrt_path.csv", help="optional path CSV (x,y)")
    ap.add_argument("--out", default="artifacts/rrt_tree.png")
    ap.add_argument("--show", action="store_true", help="Show the window after saving the PNG.")
    args = ap.parse_args(argv)

    try:
        grid = load_map(args.map)
    except (FormatError, OSError) as e:
        print(f"[plot] could not load map {args.map}: {e}", file=sys.stderr)
        return 1

    edges = load_csv(args.edges, ("px", "py", "cx", "cy"))
    path = load_csv(args.path, ("x", "y")) if os.path.exists(args.path) else None

    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
    plot_tree(grid, edges, path)
    plt.savefig(args.out, dpi=150, bbox_inches="tight")
    if args.show:
        plt.show()

    print(f"Wrote: {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
