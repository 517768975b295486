from __future__ import annotations

import logging
import os
import re
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from shared.types import MAX_DIMENSION, Cell

logger = logging.getLogger(__name__)


class Terrain(Enum):
    TERRAIN = "terrain"  # normal passable ground
    OUT_OF_BOUNDS = "out_of_bounds"  # impassable
    TREE = "tree"  # impassable
    SWAMP = "swamp"  # passable ground
    WATER = "water"  # only traversable by sea or air


TILE_CHARS: Dict[str, Terrain] = {
    ".": Terrain.TERRAIN,
    "G": Terrain.TERRAIN,
    "@": Terrain.OUT_OF_BOUNDS,
    "O": Terrain.OUT_OF_BOUNDS,
    "T": Terrain.TREE,
    "S": Terrain.SWAMP,
    "W": Terrain.WATER,
}

_UINT = re.compile(r"[0-9]+")


class FormatError(ValueError):
    """Map source is malformed (bad header, bad tile, wrong tile count)."""


class BoundsError(IndexError):
    """A cell or index outside the grid was queried."""


class _Cursor:
    """Line/token reader over the map text, mirroring stream extraction."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def line(self) -> Optional[str]:
        # Fails only when nothing is left to extract.
        if self.pos >= len(self.text):
            return None
        end = self.text.find("\n", self.pos)
        if end == -1:
            end = len(self.text)
        out = self.text[self.pos : end]
        self.pos = end + 1
        return out

    def token(self) -> Optional[str]:
        n = len(self.text)
        i = self.pos
        while i < n and self.text[i].isspace():
            i += 1
        if i >= n:
            self.pos = n
            return None
        j = i
        while j < n and not self.text[j].isspace():
            j += 1
        self.pos = j
        return self.text[i:j]

    def rest(self) -> str:
        return self.text[self.pos :] if self.pos < len(self.text) else ""


def _read_dimension(cur: _Cursor, name: str) -> int:
    label = cur.token()
    value = cur.token()
    if label is None or value is None:
        raise FormatError(f"map header is missing the {name} field")
    if not _UINT.fullmatch(value):
        raise FormatError(f"map header {name} is not a non-negative integer: {value!r}")
    dim = int(value)
    if dim == 0 or dim >= MAX_DIMENSION:
        raise FormatError(f"map header {name}={dim} is out of range (1..{MAX_DIMENSION - 1})")
    return dim


def _read_header(cur: _Cursor) -> Tuple[int, int]:
    """Header layout: ignored line, "height H", "width W", rest of line, ignored line."""
    if cur.line() is None:
        raise FormatError("map source is empty")
    height = _read_dimension(cur, "height")
    width = _read_dimension(cur, "width")
    # Drop whatever trails the width value, then the "map" marker line.
    if cur.line() is None or cur.line() is None:
        raise FormatError("map header is truncated before the tile grid")
    return width, height


def _read_tiles(body: str, width: int, height: int) -> Tuple[Terrain, ...]:
    expected = width * height
    tiles: List[Terrain] = []
    for ch in body:
        if ch.isspace():
            continue
        kind = TILE_CHARS.get(ch)
        if kind is None:
            raise FormatError(f"invalid tile character {ch!r} at tile #{len(tiles)}")
        tiles.append(kind)
    if len(tiles) != expected:
        raise FormatError(
            f"map declares {width}x{height}={expected} tiles but contains {len(tiles)}"
        )
    return tuple(tiles)


class GridMap:
    """Immutable terrain grid; tiles are stored row-major."""

    def __init__(
        self, width: int, height: int, tiles: Sequence[Terrain], source: str = "<memory>"
    ) -> None:
        if width <= 0 or height <= 0 or width >= MAX_DIMENSION or height >= MAX_DIMENSION:
            raise ValueError(f"invalid grid dimensions {width}x{height}")
        if len(tiles) != width * height:
            raise ValueError(f"expected {width * height} tiles, got {len(tiles)}")
        self._width = width
        self._height = height
        self._tiles = tuple(tiles)
        self._source = source

    @classmethod
    def from_text(cls, text: str, source: str = "<string>") -> "GridMap":
        cur = _Cursor(text)
        width, height = _read_header(cur)
        tiles = _read_tiles(cur.rest(), width, height)
        logger.debug("parsed map %s: %dx%d", source, width, height)
        return cls(width, height, tiles, source)

    @classmethod
    def from_file(cls, path: str | os.PathLike) -> "GridMap":
        with open(path, "r") as f:
            text = f.read()
        grid = cls.from_text(text, source=os.fspath(path))
        logger.info("loaded map %s (%dx%d)", grid.source, grid.width, grid.height)
        return grid

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def cell_count(self) -> int:
        return len(self._tiles)

    @property
    def source(self) -> str:
        return self._source

    @property
    def tiles(self) -> Tuple[Terrain, ...]:
        return self._tiles

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    def index_of(self, x: int, y: int) -> int:
        if not self.in_bounds(x, y):
            raise BoundsError(f"cell ({x}, {y}) outside {self._width}x{self._height} grid")
        return x + y * self._width

    def cell_of(self, index: int) -> Cell:
        if not 0 <= index < len(self._tiles):
            raise BoundsError(f"tile index {index} outside 0..{len(self._tiles) - 1}")
        return index % self._width, index // self._width

    def tile(self, x: int, y: int) -> Terrain:
        return self._tiles[self.index_of(x, y)]

    def tile_index(self, index: int) -> Terrain:
        if not 0 <= index < len(self._tiles):
            raise BoundsError(f"tile index {index} outside 0..{len(self._tiles) - 1}")
        return self._tiles[index]

    def rows(self) -> Iterator[Tuple[Terrain, ...]]:
        w = self._width
        for y in range(self._height):
            yield self._tiles[y * w : (y + 1) * w]

    def count(self, kind: Terrain) -> int:
        return sum(1 for t in self._tiles if t is kind)

    def __repr__(self) -> str:
        return f"GridMap({self._width}x{self._height}, source={self._source!r})"


def load_map(path: str | os.PathLike) -> GridMap:
    return GridMap.from_file(path)
