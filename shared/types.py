from __future__ import annotations

from typing import List, Tuple

# Grid frame: x grows right (columns), y grows down (rows), origin top-left.
# Cell index is row-major: index = x + y * width.

Cell = Tuple[int, int]  # grid cell (x, y)
Edge = Tuple[Cell, Cell]  # (parent cell, child cell)
Path2D = List[Cell]

# Dimensions must stay strictly below the max signed 32-bit int.
MAX_DIMENSION = 2**31 - 1
