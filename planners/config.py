from __future__ import annotations

import os
from dataclasses import dataclass

import yaml


@dataclass
class RRTParams:
    sample_step: float = 0.25  # cells between collision samples along a branch
    max_branch_length: float = 15.0  # cells, upper bound on one extension
    max_steps: int = 20000  # growth-step budget for batch runs
    seed: int | None = None  # None -> wall-clock seed


def load_rrt_params(path: str | None) -> RRTParams:
    """Read planner tunables from YAML; a missing file yields the defaults."""
    if not path or not os.path.exists(path):
        return RRTParams()
    with open(path, "r") as f:
        cfg = yaml.safe_load(f) or {}
    rrt = cfg.get("rrt", cfg)
    defaults = RRTParams()
    seed = rrt.get("seed", defaults.seed)
    return RRTParams(
        sample_step=float(rrt.get("sample_step", defaults.sample_step)),
        max_branch_length=float(rrt.get("max_branch_length", defaults.max_branch_length)),
        max_steps=int(rrt.get("max_steps", defaults.max_steps)),
        seed=None if seed is None else int(seed),
    )
