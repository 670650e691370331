"""Receptive-field tile mapping for PsychoPy.

The package splits a screen into a named region, tiles that region into equal
squares and reveals a movie through one tile at a time in a randomized,
repeat-free order.  The geometry and scheduling modules do not import PsychoPy;
the window handling lives in :mod:`rfstim.experiment` and :mod:`rfstim.trial`
and is only loaded when a run is started.
"""

from .calibration import Rect, check_tile_fits, deg_to_px, rect_to_pix
from .config import ConfigurationError, ExperimentConfig, RunContext
from .grid import TileGrid, row_to_column_major, tile_region
from .layout import StimulusLayout, plan_layout
from .region import resolve_region
from .schedule import ScheduleResult, Trial, TrialRecord, TrialScheduler
from .stimuli import load_gamma_table, load_movie
from .cli import main as run_experiment

__all__ = [
    "Rect",
    "deg_to_px",
    "check_tile_fits",
    "rect_to_pix",
    "ConfigurationError",
    "ExperimentConfig",
    "RunContext",
    "resolve_region",
    "TileGrid",
    "tile_region",
    "row_to_column_major",
    "StimulusLayout",
    "plan_layout",
    "Trial",
    "TrialRecord",
    "ScheduleResult",
    "TrialScheduler",
    "load_movie",
    "load_gamma_table",
    "run_experiment",
]
