"""Stimulus loading utilities for the receptive-field mapping task.

The movie shown inside each tile is stored as a NumPy ``.npy`` array of
grayscale frames shaped ``(height, width, n_frames)`` with intensities between
0 and 1.  Gamma lookup tables are ``N x 3`` arrays (one column per gun).  When no
table is named explicitly the loader looks for a file whose name contains
``NormGamTab`` next to the experiment.
"""
from __future__ import annotations

import os
from pathlib import Path

import numpy as np

DEFAULT_GAMMA_PATTERN = "*NormGamTab*.npy"


def load_movie(path: str | os.PathLike[str]) -> np.ndarray:
    """Load the grayscale movie stored in ``path``.

    Parameters
    ----------
    path:
        ``.npy`` file with a 3-D array ``(height, width, n_frames)``.

    Returns
    -------
    numpy.ndarray
        The frames as ``float64`` with values in ``[0, 1]``.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(
            f"Movie file '{path}' does not exist. Save the frames with numpy.save() first."
        )
    frames = np.load(path, allow_pickle=False)
    if frames.ndim != 3:
        raise ValueError(f"Expected movie shape (height, width, frames). Got {frames.shape}.")
    if frames.size == 0:
        raise ValueError(f"Movie '{path.name}' contains no frames.")
    frames = frames.astype(np.float64)
    if frames.min() < 0.0 or frames.max() > 1.0:
        raise ValueError(f"Movie '{path.name}' must hold intensities between 0 and 1.")
    return frames


def load_gamma_table(path: str | os.PathLike[str]) -> np.ndarray:
    """Load an ``N x 3`` normalized gamma table."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Gamma table '{path}' does not exist.")
    table = np.load(path, allow_pickle=False)
    if table.ndim != 2 or table.shape[1] != 3:
        raise ValueError(f"Gamma table must be shaped (N, 3). Got {table.shape}.")
    return table.astype(np.float64)


def find_default_gamma_table(directory: str | os.PathLike[str]) -> Path:
    """Return the first ``*NormGamTab*.npy`` file in ``directory``."""

    candidates = sorted(Path(directory).glob(DEFAULT_GAMMA_PATTERN))
    if not candidates:
        raise FileNotFoundError("No default gamma file found.")
    return candidates[0]


__all__ = [
    "DEFAULT_GAMMA_PATTERN",
    "load_movie",
    "load_gamma_table",
    "find_default_gamma_table",
]
