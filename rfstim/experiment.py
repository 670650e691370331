"""High-level orchestration of a receptive-field mapping run."""
from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

import numpy as np
import pyglet
from psychopy import core, visual
from psychopy.hardware import keyboard

from .config import ConfigurationError, ExperimentConfig, RunContext
from .layout import StimulusLayout, plan_layout
from .schedule import ScheduleResult, TrialRecord, TrialScheduler
from .stimuli import load_movie
from .template import BaseExperiment, intensity_to_rgb
from .trial import TrialDisplay, inter_stimulus_gray, quit_key_checker, show_gray

if TYPE_CHECKING:
    from psychopy.visual.window import Window
else:  # pragma: no cover - used only for static analysis fallbacks
    Window = Any

_logger = logging.getLogger(__name__)


def available_screens() -> List[int]:
    """Return the indices of the displays attached to this machine."""

    display = pyglet.canvas.get_display()
    return list(range(len(display.get_screens())))


class RFMappingExperiment(BaseExperiment):
    """Present a movie tile by tile and save the realized tile order."""

    def __init__(self, config: ExperimentConfig | None = None):
        self.config = config or ExperimentConfig()
        super().__init__(
            experiment_name=self.config.experiment_name,
            data_fields=self.config.data_fields,
            output_directory=self.config.results_directory,
        )

    # ------------------------------------------------------------------
    # Window creation
    # ------------------------------------------------------------------
    def create_window(self) -> Window:
        """Open the stimulus window in pixel units on the configured screen."""

        return visual.Window(
            size=list(self.config.window_size),
            fullscr=self.config.full_screen,
            screen=self._screen_index(),
            monitor=self.config.monitor_name,
            units="pix",
            color=intensity_to_rgb(self.config.background_level),
            colorSpace="rgb",
            allowGUI=not self.config.full_screen,
            waitBlanking=True,
        )

    def _screen_index(self) -> int:
        screens = available_screens()
        if self.config.screen_index is None:
            return max(screens)
        if self.config.screen_index not in screens:
            raise ConfigurationError(
                f"screen_index must be one of {screens} (got {self.config.screen_index})"
            )
        return self.config.screen_index

    def _display_width_mm(self, win: Window) -> float:
        """Physical display width from the config or the PsychoPy monitor profile."""

        if self.config.display_width_mm is not None:
            return float(self.config.display_width_mm)
        monitor = getattr(win, "monitor", None)
        width_cm = monitor.getWidth() if monitor is not None else None
        if not width_cm:
            raise ConfigurationError(
                f"Display width unknown: set the width of monitor "
                f"'{self.config.monitor_name}' or pass --display-width-mm."
            )
        return float(width_cm) * 10.0

    @staticmethod
    def _apply_gamma(win: Window, table: Optional[np.ndarray]) -> Optional[np.ndarray]:
        """Load ``table`` into the gamma ramp and return the ramp it replaced."""

        if table is None:
            return None
        original = win.gammaRamp
        if original is not None:
            original = np.array(original, copy=True)
        win.gammaRamp = np.asarray(table).T
        return original

    # ------------------------------------------------------------------
    # Data persistence
    # ------------------------------------------------------------------
    def save_results(
        self,
        records: Sequence[TrialRecord],
        *,
        layout: StimulusLayout,
        context: RunContext,
        n_frames: int,
    ) -> Path:
        """Save the tile order as CSV plus a JSON sidecar describing the run."""

        output_dir = Path(self.config.results_directory)
        output_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M")
        filename = output_dir / f"stim_{stamp}.csv"

        self.open_csv_data_file(data_filename=str(filename))
        self.update_experiment_data(record.as_row() for record in records)
        self.save_data_to_csv()

        self.experiment_info.update(
            {
                "config": dataclasses.asdict(self.config),
                "seed": context.seed,
                "movie_frames": n_frames,
                "layout": layout.summary(),
                "saved": datetime.now().isoformat(timespec="seconds"),
            }
        )
        self.save_experiment_info(str(filename.with_name(f"{filename.stem}_info.json")))
        _logger.info("Saved %s", filename)
        return filename

    # ------------------------------------------------------------------
    # Experiment entry point
    # ------------------------------------------------------------------
    def run(self) -> ScheduleResult:
        """Execute the full presentation pipeline."""

        _logger.info(self.config.description_text())
        frames = load_movie(self.config.movie_path)
        context = RunContext.from_config(self.config)

        win = self.create_window()
        original_ramp = None
        try:
            original_ramp = self._apply_gamma(win, context.gamma_table)
            screen_w, screen_h = (int(v) for v in win.size)
            layout = plan_layout(self.config, screen_w, screen_h, self._display_width_mm(win))
            scheduler = TrialScheduler(layout.grid, self.config.n_cycles, context.rng)
            display = TrialDisplay(
                win,
                layout.grid,
                frames,
                background_level=self.config.background_level,
                photodiode_size_px=self.config.photodiode_size_px,
                photodiode_level=self.config.photodiode_level,
            )
            kb = keyboard.Keyboard()
            kb.clearEvents()
            should_abort = quit_key_checker(kb, context.quit_keys)

            core.rush(True)
            try:
                if show_gray(win, self.config.init_gray_s, should_abort):
                    result = ScheduleResult.incomplete(0)
                else:
                    result = scheduler.run(
                        display.show_frame,
                        display.n_frames,
                        should_abort,
                        between_trials=inter_stimulus_gray(win, self.config.isi_s),
                    )
            finally:
                core.rush(False)
        finally:
            if original_ramp is not None:
                win.gammaRamp = original_ramp
            win.close()

        if not result.completed:
            _logger.info("Run stopped early (quit key pressed); no CSV saved.")
            return result

        self.save_results(result.records, layout=layout, context=context, n_frames=display.n_frames)
        return result


__all__ = ["RFMappingExperiment", "available_screens"]
