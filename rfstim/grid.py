"""Subdivide a region into a uniform grid of square tiles.

Tiles are generated column by column (outer loop over the column index ``ix``,
inner loop over the row index ``iy``) so the tile with grid coordinates
``(ix, iy)`` lives at linear index ``ix * ny + iy``.  Presentation order and the
saved results use row-major positions instead; :func:`row_to_column_major`
builds the permutation between the two orderings.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from .calibration import Rect
from .config import ConfigurationError


@dataclass(frozen=True)
class TileGrid:
    """Tiles, padding strips and outer masks for one region."""

    screen_width: int
    screen_height: int
    tile_size: int
    region: Rect
    nx: int
    ny: int
    tiles: Tuple[Rect, ...]
    internal_edges: Tuple[Rect, ...]
    external_masks: Tuple[Rect, ...]

    @property
    def n_tiles(self) -> int:
        return self.nx * self.ny

    def require_tiles(self) -> None:
        """Raise :class:`ConfigurationError` when no tile fits in the region."""

        if self.nx == 0 or self.ny == 0:
            raise ConfigurationError(
                f"No {self.tile_size} px tile fits in region {self.region.as_tuple()} "
                f"({self.region.width}x{self.region.height} px)."
            )

    def column_major_index(self, ix: int, iy: int) -> int:
        return ix * self.ny + iy

    def position_to_row_column(self, position: int) -> Tuple[int, int]:
        """Map a 1-based row-major position to 1-based ``(row, column)``."""

        if not 1 <= position <= self.n_tiles:
            raise IndexError(f"Position {position} outside 1..{self.n_tiles}")
        return (position - 1) // self.nx + 1, (position - 1) % self.nx + 1

    def tile_at(self, row: int, column: int) -> Rect:
        """Return the tile in 1-based ``row`` (top = 1) and ``column`` (left = 1)."""

        if not (1 <= row <= self.ny and 1 <= column <= self.nx):
            raise IndexError(f"Tile ({row}, {column}) outside a {self.ny}x{self.nx} grid")
        return self.tiles[self.column_major_index(column - 1, row - 1)]


def tile_region(screen_width: int, screen_height: int, tile_size: int, region: Rect) -> TileGrid:
    """Lay a grid of ``tile_size`` squares over ``region``.

    Leftover pixels that do not fit a whole tile are split between both sides of
    each axis; when the remainder is odd the extra pixel goes to the strip on the
    ``x2``/``y2`` side.  Every non-empty padding strip is returned in
    ``internal_edges`` and spans the full region in the other axis.  The parts of
    the screen outside the region are returned as ``external_masks``: the left
    and right masks run the full screen height, the masks above and below only
    the region width, so together with the region they cover the screen exactly
    once.

    An empty tile list is returned when the region is smaller than one tile.
    """

    region_w = region.x2 - region.x1
    region_h = region.y2 - region.y1
    nx = region_w // tile_size
    ny = region_h // tile_size

    rem_w = region_w - nx * tile_size
    rem_h = region_h - ny * tile_size
    x_pad = rem_w // 2
    y_pad = rem_h // 2

    tiles: List[Rect] = []
    for ix in range(nx):
        for iy in range(ny):
            x0 = region.x1 + x_pad + ix * tile_size
            y0 = region.y1 + y_pad + iy * tile_size
            tiles.append(Rect(x0, y0, x0 + tile_size, y0 + tile_size))

    internal_edges: List[Rect] = []
    if x_pad > 0:
        internal_edges.append(Rect(region.x1, region.y1, region.x1 + x_pad, region.y2))
    if rem_w - x_pad > 0:
        internal_edges.append(Rect(region.x2 - (rem_w - x_pad), region.y1, region.x2, region.y2))
    if y_pad > 0:
        internal_edges.append(Rect(region.x1, region.y1, region.x2, region.y1 + y_pad))
    if rem_h - y_pad > 0:
        internal_edges.append(Rect(region.x1, region.y2 - (rem_h - y_pad), region.x2, region.y2))

    external_masks: List[Rect] = []
    if region.x1 > 0:
        external_masks.append(Rect(0, 0, region.x1, screen_height))
    if region.x2 < screen_width:
        external_masks.append(Rect(region.x2, 0, screen_width, screen_height))
    if region.y1 > 0:
        external_masks.append(Rect(region.x1, 0, region.x2, region.y1))
    if region.y2 < screen_height:
        external_masks.append(Rect(region.x1, region.y2, region.x2, screen_height))

    return TileGrid(
        screen_width=screen_width,
        screen_height=screen_height,
        tile_size=tile_size,
        region=region,
        nx=nx,
        ny=ny,
        tiles=tuple(tiles),
        internal_edges=tuple(internal_edges),
        external_masks=tuple(external_masks),
    )


def row_to_column_major(nx: int, ny: int) -> np.ndarray:
    """Return ``row2col`` with ``row2col[row_major] == column_major`` (both 0-based).

    The column-major indices form an ``nx x ny`` array indexed ``[ix, iy]``;
    transposing it to ``[iy, ix]`` and reading it in C order walks the tiles
    left to right within each row, top row first.
    """

    return np.arange(nx * ny).reshape(nx, ny).T.ravel()


__all__ = ["TileGrid", "tile_region", "row_to_column_major"]
