"""Configuration helpers for the receptive-field mapping stimulus.

The :class:`ExperimentConfig` dataclass stores the user-editable parameters for
a mapping run.  Every optional field carries a documented default and the whole
record is validated as soon as it is built, so a bad value is reported before a
window is opened.  :class:`RunContext` bundles the per-run state that is derived
from the configuration once (random generator, seed, gamma table) and is then
handed to the code that needs it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from numbers import Integral, Real
from typing import List, Optional, Tuple

import numpy as np

from .stimuli import find_default_gamma_table, load_gamma_table

_logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when the requested layout or parameters cannot be run."""


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigurationError(message)


def _is_number(value: object) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


@dataclass
class ExperimentConfig:
    """Container for stimulus parameters and runtime options.

    Attributes
    ----------
    movie_path:
        ``.npy`` file holding the grayscale movie, shaped ``(height, width, frames)``.
    tile_deg:
        Tile side length in visual degrees.
    init_gray_s:
        Gray screen shown before the first trial, in seconds.
    n_cycles:
        Number of randomized passes over all tiles.
    isi_s:
        Gray inter-stimulus interval after every trial, in seconds.
    region:
        Region specifier such as ``"full"``, ``"tl"`` or ``"sw+w+s+center"``.
    screen_index:
        Display to open the window on.  ``None`` picks the highest numbered screen.
    gamma_table_path:
        ``N x 3`` gamma table to load.  ``None`` falls back to the first
        ``*NormGamTab*.npy`` file found in ``gamma_directory``.
    display_width_mm:
        Physical display width.  ``None`` reads it from the PsychoPy monitor
        profile called ``monitor_name``.
    seed:
        Seed for the presentation order.  ``None`` draws fresh entropy; the
        value actually used is written next to the results.
    """

    experiment_name: str = "rf_mapping"
    data_fields: List[str] = field(
        default_factory=lambda: ["Position", "Row", "Column", "X", "Y"]
    )
    movie_path: str = "rf_movie.npy"
    tile_deg: float = 20.0
    init_gray_s: float = 1.0
    n_cycles: int = 1
    isi_s: float = 4.0
    region: str = "full"
    viewing_distance_cm: float = 20.0
    screen_index: Optional[int] = None
    gamma_table_path: Optional[str] = None
    gamma_directory: str = "."
    display_width_mm: Optional[float] = None
    monitor_name: str = "testMonitor"
    background_level: float = 0.5
    photodiode_size_px: int = 200
    photodiode_level: float = 0.0
    quit_keys: Tuple[str, ...] = ("escape",)
    results_directory: str = "data"
    seed: Optional[int] = None
    full_screen: bool = True
    window_size: Tuple[int, int] = (1920, 1080)
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        _require(
            _is_number(self.tile_deg) and self.tile_deg > 0,
            f"tile_deg must be a positive number (got {self.tile_deg!r})",
        )
        _require(
            _is_number(self.init_gray_s) and self.init_gray_s >= 0,
            f"init_gray_s must be a non-negative number (got {self.init_gray_s!r})",
        )
        _require(
            isinstance(self.n_cycles, Integral)
            and not isinstance(self.n_cycles, bool)
            and self.n_cycles >= 1,
            f"n_cycles must be an integer >= 1 (got {self.n_cycles!r})",
        )
        _require(
            _is_number(self.isi_s) and self.isi_s >= 0,
            f"isi_s must be a non-negative number (got {self.isi_s!r})",
        )
        _require(
            isinstance(self.region, str),
            f"region must be a string (got {self.region!r})",
        )
        _require(
            _is_number(self.viewing_distance_cm) and self.viewing_distance_cm > 0,
            f"viewing_distance_cm must be positive (got {self.viewing_distance_cm!r})",
        )
        if self.screen_index is not None:
            _require(
                isinstance(self.screen_index, Integral) and self.screen_index >= 0,
                f"screen_index must be a non-negative integer (got {self.screen_index!r})",
            )
        if self.display_width_mm is not None:
            _require(
                _is_number(self.display_width_mm) and self.display_width_mm > 0,
                f"display_width_mm must be positive (got {self.display_width_mm!r})",
            )
        for name in ("background_level", "photodiode_level"):
            value = getattr(self, name)
            _require(
                _is_number(value) and 0.0 <= value <= 1.0,
                f"{name} must lie in [0, 1] (got {value!r})",
            )
        _require(
            isinstance(self.photodiode_size_px, Integral) and self.photodiode_size_px >= 0,
            f"photodiode_size_px must be a non-negative integer (got {self.photodiode_size_px!r})",
        )
        _require(len(self.window_size) == 2, "window_size must be (width, height)")
        _require(
            all(isinstance(v, Integral) and v > 0 for v in self.window_size),
            f"window_size must hold two positive integers (got {self.window_size!r})",
        )
        self.window_size = (int(self.window_size[0]), int(self.window_size[1]))
        self.quit_keys = tuple(self.quit_keys)
        _require(bool(self.quit_keys), "At least one quit key is required")
        _require(
            isinstance(getattr(logging, str(self.log_level).upper(), None), int),
            f"Invalid log level: {self.log_level}",
        )

    def description_text(self) -> str:
        """Return a short summary printed before the run starts."""

        return (
            "Receptive-field tile mapping\n\n"
            f"Region '{self.region}', tiles of {self.tile_deg:g} deg at "
            f"{self.viewing_distance_cm:g} cm, {self.n_cycles} cycle(s), "
            f"ISI {self.isi_s:g} s.\n"
            f"Press {'/'.join(k.upper() for k in self.quit_keys)} at any time to "
            "abort (no CSV is saved)."
        )


@dataclass
class RunContext:
    """Per-run state derived once from an :class:`ExperimentConfig`.

    The context replaces any process-wide caching: the caller builds it once and
    passes it to the presentation code, which never reloads the gamma table or
    reseeds the generator on its own.
    """

    seed: int
    rng: np.random.Generator
    gamma_table: Optional[np.ndarray] = None
    quit_keys: Tuple[str, ...] = ("escape",)

    @classmethod
    def from_config(cls, config: ExperimentConfig, *, load_gamma: bool = True) -> "RunContext":
        seed = config.seed
        if seed is None:
            seed = int(np.random.SeedSequence().entropy)
        _logger.info("Presentation order seed: %d", seed)
        gamma_table = None
        if load_gamma:
            gamma_table = resolve_gamma_table(config.gamma_table_path, config.gamma_directory)
        return cls(
            seed=seed,
            rng=np.random.default_rng(seed),
            gamma_table=gamma_table,
            quit_keys=config.quit_keys,
        )


def resolve_gamma_table(path: Optional[str], default_directory: str) -> np.ndarray:
    """Load ``path`` if given, otherwise the default table in ``default_directory``."""

    if path is not None:
        _logger.info("Loading gamma table from %s", path)
        return load_gamma_table(path)
    default_path = find_default_gamma_table(default_directory)
    _logger.info("No gamma table supplied; using default %s", default_path)
    return load_gamma_table(default_path)


__all__ = [
    "ConfigurationError",
    "ExperimentConfig",
    "RunContext",
    "resolve_gamma_table",
]
