"""Combine tile sizing, region resolution and tiling for a given screen."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict

from .calibration import Rect, check_tile_fits, deg_to_px
from .config import ExperimentConfig
from .grid import TileGrid, tile_region
from .region import resolve_region

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StimulusLayout:
    """Everything about the screen geometry that a run needs."""

    screen_width: int
    screen_height: int
    display_width_mm: float
    tile_px: int
    region: Rect
    grid: TileGrid

    def summary(self) -> Dict[str, object]:
        """Return a JSON-friendly description stored next to the results."""

        return {
            "screen_px": [self.screen_width, self.screen_height],
            "display_width_mm": self.display_width_mm,
            "tile_px": self.tile_px,
            "region_px": list(self.region.as_tuple()),
            "grid_columns": self.grid.nx,
            "grid_rows": self.grid.ny,
            "n_tiles": self.grid.n_tiles,
            "internal_edges_px": [list(r.as_tuple()) for r in self.grid.internal_edges],
            "external_masks_px": [list(r.as_tuple()) for r in self.grid.external_masks],
        }


def plan_layout(
    config: ExperimentConfig,
    screen_width: int,
    screen_height: int,
    display_width_mm: float,
) -> StimulusLayout:
    """Size the tiles and lay them out, failing before anything is drawn.

    Raises
    ------
    ConfigurationError
        If a tile is larger than the screen or no tile fits in the region.
    """

    tile_px = deg_to_px(
        config.tile_deg, config.viewing_distance_cm, screen_width, display_width_mm
    )
    check_tile_fits(tile_px, screen_width, screen_height)
    region = resolve_region(config.region, tile_px, screen_width, screen_height)
    grid = tile_region(screen_width, screen_height, tile_px, region)
    grid.require_tiles()
    _logger.info(
        "Tile %d px; region %s holds %d x %d tiles (%d padding strips, %d outer masks).",
        tile_px,
        region.as_tuple(),
        grid.nx,
        grid.ny,
        len(grid.internal_edges),
        len(grid.external_masks),
    )
    return StimulusLayout(
        screen_width=screen_width,
        screen_height=screen_height,
        display_width_mm=float(display_width_mm),
        tile_px=tile_px,
        region=region,
        grid=grid,
    )


__all__ = ["StimulusLayout", "plan_layout"]
