"""Randomized, repeat-free presentation schedule over the tiles of a grid.

Every cycle presents each tile exactly once in a fresh random order.  Orders are
drawn in row-major positions (1 = top-left tile, counting left to right) and
mapped through ``row2col`` to address the column-major tile list produced by
:func:`rfstim.grid.tile_region`.  The scheduler is driven synchronously by the
caller's frame callbacks and polls for cancellation once per frame.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Tuple

import numpy as np

from .calibration import Rect
from .config import ConfigurationError
from .grid import TileGrid, row_to_column_major

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Trial:
    """One tile presentation and the rectangles to blank while it is shown."""

    cycle: int
    n_cycles: int
    index: int
    n_tiles: int
    number: int
    position: int
    tile_index: int
    tile: Rect
    masks: Tuple[Rect, ...]

    @property
    def n_trials(self) -> int:
        return self.n_cycles * self.n_tiles


@dataclass(frozen=True)
class TrialRecord:
    """Saved row describing one presented tile."""

    position: int
    row: int
    column: int
    x: float
    y: float

    def as_row(self) -> Dict[str, object]:
        return {
            "Position": self.position,
            "Row": self.row,
            "Column": self.column,
            "X": self.x,
            "Y": self.y,
        }


@dataclass(frozen=True)
class ScheduleResult:
    """Outcome of :meth:`TrialScheduler.run`.

    ``records`` is ``None`` whenever the run was cancelled; a partial sequence
    is never returned.
    """

    completed: bool
    records: Optional[Tuple[TrialRecord, ...]]
    trials_shown: int

    @classmethod
    def incomplete(cls, trials_shown: int) -> "ScheduleResult":
        return cls(completed=False, records=None, trials_shown=trials_shown)


class TrialScheduler:
    """Generate and record the randomized tile order for one run."""

    def __init__(self, grid: TileGrid, n_cycles: int, rng: np.random.Generator):
        grid.require_tiles()
        if n_cycles < 1:
            raise ConfigurationError(f"n_cycles must be >= 1 (got {n_cycles})")
        self.grid = grid
        self.n_cycles = int(n_cycles)
        self.n_tiles = grid.n_tiles
        self._rng = rng
        self.row2col = row_to_column_major(grid.nx, grid.ny)
        all_indices = np.arange(self.n_tiles)
        self.complements: Tuple[Tuple[int, ...], ...] = tuple(
            tuple(int(j) for j in all_indices[all_indices != i]) for i in range(self.n_tiles)
        )
        self._sequence: List[int] = []

    # ------------------------------------------------------------------
    # Order generation
    # ------------------------------------------------------------------
    def draw_cycle(self) -> Tuple[np.ndarray, np.ndarray]:
        """Draw one cycle.

        Returns the 1-based row-major permutation and the matching column-major
        tile indices.  The random generator is consumed exactly once.
        """

        rm = self._rng.permutation(self.n_tiles) + 1
        order = self.row2col[rm - 1]
        return rm, order

    def mask_set(self, tile_index: int) -> Tuple[Rect, ...]:
        """All rectangles to blank while ``tile_index`` is revealed."""

        tiles = self.grid.tiles
        return (
            self.grid.external_masks
            + tuple(tiles[j] for j in self.complements[tile_index])
            + self.grid.internal_edges
        )

    def trials(self) -> Iterator[Trial]:
        """Yield every trial of the run, cycle by cycle."""

        number = 0
        for cycle in range(1, self.n_cycles + 1):
            rm, order = self.draw_cycle()
            for k in range(self.n_tiles):
                number += 1
                tile_index = int(order[k])
                yield Trial(
                    cycle=cycle,
                    n_cycles=self.n_cycles,
                    index=k + 1,
                    n_tiles=self.n_tiles,
                    number=number,
                    position=int(rm[k]),
                    tile_index=tile_index,
                    tile=self.grid.tiles[tile_index],
                    masks=self.mask_set(tile_index),
                )

    # ------------------------------------------------------------------
    # Sequence bookkeeping
    # ------------------------------------------------------------------
    @property
    def positions(self) -> Tuple[int, ...]:
        return tuple(self._sequence)

    def record(self, trial: Trial) -> None:
        self._sequence.append(trial.position)

    def discard(self) -> None:
        self._sequence.clear()

    def record_for(self, position: int) -> TrialRecord:
        """Build the saved row for a 1-based row-major ``position``."""

        row, column = self.grid.position_to_row_column(position)
        tile = self.grid.tiles[self.row2col[position - 1]]
        cx, cy = tile.center
        return TrialRecord(
            position=position,
            row=row,
            column=column,
            x=cx / self.grid.screen_width,
            y=cy / self.grid.screen_height,
        )

    def finalize(self) -> Tuple[TrialRecord, ...]:
        expected = self.n_cycles * self.n_tiles
        if len(self._sequence) != expected:
            raise RuntimeError(
                f"Schedule incomplete: {len(self._sequence)} of {expected} trials recorded."
            )
        return tuple(self.record_for(position) for position in self._sequence)

    # ------------------------------------------------------------------
    # Driving loop
    # ------------------------------------------------------------------
    def run(
        self,
        show_frame: Callable[[Trial, int], None],
        n_frames: int,
        should_abort: Callable[[], bool],
        between_trials: Callable[[Trial], None] | None = None,
    ) -> ScheduleResult:
        """Present every trial and return the realized sequence.

        ``should_abort`` is polled before each of the ``n_frames`` frames of a
        trial.  When it returns ``True`` the accumulated sequence is dropped and
        an incomplete result is returned straight away.
        """

        if n_frames < 1:
            raise ValueError(f"Each trial needs at least one frame (got {n_frames})")
        self.discard()
        shown = 0
        for trial in self.trials():
            _logger.info(
                "Cycle %d/%d -- Tile %d/%d -- Position %d -- Trial %d/%d",
                trial.cycle,
                trial.n_cycles,
                trial.index,
                trial.n_tiles,
                trial.position,
                trial.number,
                trial.n_trials,
                extra={"cycle": trial.cycle},
            )
            for frame in range(n_frames):
                if should_abort():
                    _logger.info(
                        "Run cancelled in trial %d (frame %d); sequence discarded.",
                        trial.number,
                        frame + 1,
                        extra={"cycle": trial.cycle},
                    )
                    self.discard()
                    return ScheduleResult.incomplete(shown)
                show_frame(trial, frame)
            if between_trials is not None:
                between_trials(trial)
            self.record(trial)
            shown += 1
        return ScheduleResult(completed=True, records=self.finalize(), trials_shown=shown)


__all__ = ["Trial", "TrialRecord", "ScheduleResult", "TrialScheduler"]
