"""Tests for the randomized trial scheduler."""
from __future__ import annotations

from collections import Counter
from typing import List

import numpy as np
import pytest

from rfstim.calibration import Rect
from rfstim.config import ConfigurationError
from rfstim.grid import tile_region
from rfstim.region import resolve_region
from rfstim.schedule import ScheduleResult, Trial, TrialScheduler


# ────────────────────────────────────────────────────────────────────────────
# Fakes / helpers
# ────────────────────────────────────────────────────────────────────────────


def _grid(region: str = "tl", tile: int = 200, width: int = 1920, height: int = 1080):
    return tile_region(width, height, tile, resolve_region(region, tile, width, height))


def _scheduler(n_cycles: int = 1, seed: int = 7, **grid_kwargs) -> TrialScheduler:
    return TrialScheduler(_grid(**grid_kwargs), n_cycles, np.random.default_rng(seed))


class FakeDisplay:
    """Records every frame and inter-trial blank the scheduler requests."""

    def __init__(self) -> None:
        self.frames: List[tuple] = []
        self.blanks: List[int] = []

    def show_frame(self, trial: Trial, frame: int) -> None:
        self.frames.append((trial.number, frame, trial.tile))

    def between_trials(self, trial: Trial) -> None:
        self.blanks.append(trial.number)


class AbortAfter:
    """Quit-key poll that reports a press on the ``n``-th call."""

    def __init__(self, n: int) -> None:
        self.n = n
        self.calls = 0

    def __call__(self) -> bool:
        self.calls += 1
        return self.calls >= self.n


def _never() -> bool:
    return False


# ────────────────────────────────────────────────────────────────────────────
# Order generation
# ────────────────────────────────────────────────────────────────────────────


class TestPermutations:
    def test_each_cycle_is_a_permutation(self) -> None:
        scheduler = _scheduler(n_cycles=4)
        trials = list(scheduler.trials())
        assert len(trials) == 4 * scheduler.n_tiles
        for cycle in range(1, 5):
            positions = [t.position for t in trials if t.cycle == cycle]
            assert sorted(positions) == list(range(1, scheduler.n_tiles + 1))

    def test_every_tile_appears_once_per_cycle(self) -> None:
        scheduler = _scheduler(n_cycles=3, region="full", tile=150)
        counts = Counter(t.tile_index for t in scheduler.trials())
        assert set(counts) == set(range(scheduler.n_tiles))
        assert set(counts.values()) == {3}

    def test_draw_cycle_consumes_rng_once(self) -> None:
        scheduler = _scheduler(seed=11)
        rm, order = scheduler.draw_cycle()
        expected = np.random.default_rng(11).permutation(scheduler.n_tiles) + 1
        assert rm.tolist() == expected.tolist()
        assert order.tolist() == scheduler.row2col[rm - 1].tolist()

    def test_trial_fields_are_consistent(self) -> None:
        scheduler = _scheduler(n_cycles=2)
        for number, trial in enumerate(scheduler.trials(), start=1):
            assert trial.number == number
            assert trial.tile_index == scheduler.row2col[trial.position - 1]
            assert trial.tile == scheduler.grid.tiles[trial.tile_index]
            assert trial.n_trials == 2 * scheduler.n_tiles

    def test_cycles_are_drawn_independently(self) -> None:
        scheduler = _scheduler(n_cycles=20, region="full", tile=150)
        trials = list(scheduler.trials())
        cycles = {
            tuple(t.position for t in trials if t.cycle == c) for c in range(1, 21)
        }
        assert len(cycles) > 1


class TestMaskSets:
    def test_complement_excludes_only_self(self) -> None:
        scheduler = _scheduler()
        for i, complement in enumerate(scheduler.complements):
            assert i not in complement
            assert len(complement) == scheduler.n_tiles - 1
            assert sorted(complement + (i,)) == list(range(scheduler.n_tiles))

    def test_masks_hide_everything_but_the_revealed_tile(self) -> None:
        scheduler = _scheduler()
        grid = scheduler.grid
        for trial in scheduler.trials():
            masks = set(trial.masks)
            assert trial.tile not in masks
            assert set(grid.external_masks) <= masks
            assert set(grid.internal_edges) <= masks
            others = set(grid.tiles) - {trial.tile}
            assert others <= masks
            assert len(trial.masks) == (
                len(grid.external_masks) + len(grid.internal_edges) + grid.n_tiles - 1
            )

    def test_masks_and_tile_cover_the_screen(self) -> None:
        scheduler = _scheduler(width=97, height=61, tile=10, region="center")
        trial = next(scheduler.trials())
        canvas = np.zeros((61, 97), dtype=int)
        for rect in trial.masks + (trial.tile,):
            canvas[rect.y1 : rect.y2, rect.x1 : rect.x2] += 1
        assert np.all(canvas > 0)


# ────────────────────────────────────────────────────────────────────────────
# Running and recording
# ────────────────────────────────────────────────────────────────────────────


class TestRun:
    def test_completed_run_returns_all_records(self) -> None:
        scheduler = _scheduler(n_cycles=2)
        display = FakeDisplay()
        result = scheduler.run(display.show_frame, 3, _never, display.between_trials)

        n_trials = 2 * scheduler.n_tiles
        assert result.completed
        assert result.trials_shown == n_trials
        assert len(result.records) == n_trials
        assert len(display.frames) == 3 * n_trials
        assert display.blanks == list(range(1, n_trials + 1))
        assert [r.position for r in result.records] == list(scheduler.positions)

    def test_between_trials_is_optional(self) -> None:
        scheduler = _scheduler()
        display = FakeDisplay()
        result = scheduler.run(display.show_frame, 1, _never)
        assert result.completed

    def test_records_recover_rendered_tile(self) -> None:
        scheduler = _scheduler(n_cycles=2, region="sw+center", tile=97, width=1200, height=900)
        grid = scheduler.grid
        display = FakeDisplay()
        result = scheduler.run(display.show_frame, 1, _never)

        shown_tiles = [tile for _, _, tile in display.frames]
        for record, tile in zip(result.records, shown_tiles):
            assert record.row == (record.position - 1) // grid.nx + 1
            assert record.column == (record.position - 1) % grid.nx + 1
            assert grid.tile_at(record.row, record.column) == tile
            cx, cy = tile.center
            assert record.x == pytest.approx(cx / 1200)
            assert record.y == pytest.approx(cy / 900)
            assert 0.0 <= record.x <= 1.0 and 0.0 <= record.y <= 1.0

    def test_first_position_record_values(self) -> None:
        scheduler = _scheduler()
        record = scheduler.record_for(1)
        assert (record.row, record.column) == (1, 1)
        assert record.x == pytest.approx(180 / 1920)
        assert record.y == pytest.approx(170 / 1080)
        assert record.as_row() == {
            "Position": 1,
            "Row": 1,
            "Column": 1,
            "X": record.x,
            "Y": record.y,
        }

    def test_same_seed_same_sequence(self) -> None:
        results = []
        for _ in range(2):
            scheduler = _scheduler(n_cycles=3, seed=1234)
            display = FakeDisplay()
            results.append(scheduler.run(display.show_frame, 1, _never))
        assert results[0].records == results[1].records

    def test_different_seed_different_sequence(self) -> None:
        a = _scheduler(n_cycles=3, seed=1, region="full", tile=150)
        b = _scheduler(n_cycles=3, seed=2, region="full", tile=150)
        assert [t.position for t in a.trials()] != [t.position for t in b.trials()]

    def test_needs_at_least_one_frame(self) -> None:
        with pytest.raises(ValueError):
            _scheduler().run(FakeDisplay().show_frame, 0, _never)


class TestAbort:
    def test_abort_mid_trial_stops_between_frames(self) -> None:
        scheduler = _scheduler()
        display = FakeDisplay()
        result = scheduler.run(display.show_frame, 5, AbortAfter(3), display.between_trials)

        assert result == ScheduleResult(completed=False, records=None, trials_shown=0)
        assert len(display.frames) == 2
        assert display.blanks == []
        assert scheduler.positions == ()

    def test_abort_in_later_cycle_discards_everything(self) -> None:
        scheduler = _scheduler(n_cycles=3)
        display = FakeDisplay()
        # first frame of the first trial in cycle 2
        polls = scheduler.n_tiles * 2 + 1
        result = scheduler.run(display.show_frame, 2, AbortAfter(polls), display.between_trials)

        assert not result.completed
        assert result.records is None
        assert result.trials_shown == scheduler.n_tiles
        assert scheduler.positions == ()

    def test_abort_on_last_frame_of_run(self) -> None:
        scheduler = _scheduler()
        display = FakeDisplay()
        polls = scheduler.n_tiles * 2
        result = scheduler.run(display.show_frame, 2, AbortAfter(polls))
        assert not result.completed
        assert result.records is None

    def test_finalize_refuses_partial_sequence(self) -> None:
        scheduler = _scheduler()
        scheduler.record(next(scheduler.trials()))
        with pytest.raises(RuntimeError):
            scheduler.finalize()


class TestConstruction:
    def test_zero_tiles_is_a_configuration_error(self) -> None:
        grid = tile_region(100, 100, 60, Rect(0, 0, 50, 100))
        with pytest.raises(ConfigurationError):
            TrialScheduler(grid, 1, np.random.default_rng(0))

    def test_needs_one_cycle(self) -> None:
        with pytest.raises(ConfigurationError):
            TrialScheduler(_grid(), 0, np.random.default_rng(0))

    def test_single_tile_grid(self) -> None:
        grid = tile_region(1920, 1080, 200, resolve_region("fullscreen", 200, 1920, 1080))
        scheduler = TrialScheduler(grid, 2, np.random.default_rng(0))
        result = scheduler.run(FakeDisplay().show_frame, 1, _never)
        assert [r.position for r in result.records] == [1, 1]
        assert scheduler.complements == ((),)
        assert result.records[0].x == pytest.approx(0.5)
        assert result.records[0].y == pytest.approx(0.5)
