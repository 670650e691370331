"""PsychoPy drawing helpers for a single mapping trial.

The scheduler decides *what* to show; the helpers here turn a
:class:`~rfstim.schedule.Trial` into draw calls: one movie frame across the
whole window, background-coloured rectangles over everything except the revealed
tile, and a photodiode patch in the corner.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Sequence

import numpy as np
from psychopy import core, visual
from psychopy.hardware import keyboard

from .calibration import Rect, photodiode_rect, rect_to_pix
from .grid import TileGrid
from .schedule import Trial
from .template import intensity_to_rgb

_logger = logging.getLogger(__name__)


def _make_rect_stim(
    win: visual.Window,
    rect: Rect,
    screen_size: Sequence[int],
    color: List[float],
) -> visual.Rect:
    pos, size = rect_to_pix(rect, screen_size[0], screen_size[1])
    return visual.Rect(
        win,
        width=size[0],
        height=size[1],
        pos=pos,
        units="pix",
        fillColor=color,
        lineColor=color,
        lineWidth=0,
        colorSpace="rgb",
        autoLog=False,
    )


def _make_movie_stims(
    win: visual.Window, frames: np.ndarray, screen_size: Sequence[int]
) -> List[visual.ImageStim]:
    """Upload every frame once so the trial loop only draws textures."""

    stims = []
    for index in range(frames.shape[2]):
        stims.append(
            visual.ImageStim(
                win,
                image=frames[:, :, index] * 2.0 - 1.0,
                size=tuple(screen_size),
                units="pix",
                # numpy rows run top to bottom, PsychoPy textures bottom to top
                flipVert=True,
                autoLog=False,
            )
        )
    return stims


class TrialDisplay:
    """Pre-built PsychoPy stimuli for every trial of one run."""

    def __init__(
        self,
        win: visual.Window,
        grid: TileGrid,
        frames: np.ndarray,
        *,
        background_level: float,
        photodiode_size_px: int,
        photodiode_level: float,
    ):
        self.win = win
        screen_size = (grid.screen_width, grid.screen_height)
        background = intensity_to_rgb(background_level)
        self.movie = _make_movie_stims(win, frames, screen_size)
        self._mask_stims: Dict[Rect, visual.Rect] = {
            rect: _make_rect_stim(win, rect, screen_size, background)
            for rect in grid.tiles + grid.internal_edges + grid.external_masks
        }
        self._photodiode = None
        if photodiode_size_px > 0:
            self._photodiode = _make_rect_stim(
                win,
                photodiode_rect(grid.screen_width, grid.screen_height, photodiode_size_px),
                screen_size,
                intensity_to_rgb(photodiode_level),
            )

    @property
    def n_frames(self) -> int:
        return len(self.movie)

    def draw_masks(self, masks: Iterable[Rect]) -> None:
        for rect in masks:
            self._mask_stims[rect].draw()

    def show_frame(self, trial: Trial, frame: int) -> None:
        """Draw movie frame ``frame`` with only ``trial.tile`` left visible."""

        self.movie[frame].draw()
        self.draw_masks(trial.masks)
        if self._photodiode is not None:
            self._photodiode.draw()
        self.win.flip()


def quit_key_checker(kb: keyboard.Keyboard, quit_keys: Sequence[str]) -> Callable[[], bool]:
    """Return a poll function that is ``True`` once a quit key is down."""

    keys = list(quit_keys)

    def _pressed() -> bool:
        for key in kb.getKeys(keys, waitRelease=False):
            if key.name in keys:
                _logger.info("Quit key '%s' pressed", key.name)
                return True
        return False

    return _pressed


def show_gray(win: visual.Window, duration: float, should_abort: Callable[[], bool]) -> bool:
    """Show the background for ``duration`` seconds; return ``True`` if aborted."""

    win.flip()
    clock = core.Clock()
    while clock.getTime() < duration:
        if should_abort():
            return True
        core.wait(0.01)
    return False


def inter_stimulus_gray(win: visual.Window, isi: float) -> Callable[[Trial], None]:
    """Return the between-trial callback: blank to background, then wait ``isi``."""

    def _blank(trial: Trial) -> None:
        win.flip()
        core.wait(isi)

    return _blank


__all__ = [
    "TrialDisplay",
    "quit_key_checker",
    "show_gray",
    "inter_stimulus_gray",
]
