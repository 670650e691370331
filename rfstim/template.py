"""Reusable experiment template utilities.

The :class:`BaseExperiment` class provides lightweight helpers for saving the
run information and trial data.  New stimulus programs can extend this class and
focus on presentation-specific logic.
"""
from __future__ import annotations

import csv
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List


def intensity_to_rgb(level: float) -> List[float]:
    """Convert a 0-1 gray level to PsychoPy's -1 to 1 colour range."""

    value = (float(level) * 2.0) - 1.0
    return [value, value, value]


@dataclass
class BaseExperiment:
    """Core functionality for saving experiment data."""

    experiment_name: str
    data_fields: List[str]
    output_directory: str = "."

    def __post_init__(self) -> None:
        self.experiment_data: List[Dict[str, object]] = []
        self.experiment_data_filename: str | None = None
        self.data_lines_written: int = 0
        self.experiment_info: Dict[str, object] = {}

    # ------------------------------------------------------------------
    # File naming helpers
    # ------------------------------------------------------------------
    def _default_filename(self, suffix: str) -> str:
        directory = Path(self.output_directory)
        directory.mkdir(parents=True, exist_ok=True)
        return str(directory / f"{self.experiment_name}{suffix}")

    # ------------------------------------------------------------------
    # Info saving
    # ------------------------------------------------------------------
    def save_experiment_info(self, filename: str | None = None) -> str:
        """Write the run information to disk as JSON."""

        output_filename = filename or self._default_filename("_info.json")
        with open(output_filename, "w", encoding="utf-8") as info_file:
            json.dump(self.experiment_info, info_file, indent=2)
        return output_filename

    # ------------------------------------------------------------------
    # CSV handling
    # ------------------------------------------------------------------
    def open_csv_data_file(self, data_filename: str | None = None) -> None:
        """Prepare an empty CSV file with the header row."""

        filename = data_filename or self._default_filename(".csv")
        self.experiment_data_filename = filename
        with open(filename, "w", newline="", encoding="utf-8") as csv_file:
            writer = csv.writer(csv_file)
            writer.writerow(self.data_fields)
        self.data_lines_written = 0

    def update_experiment_data(self, rows: Iterable[Dict[str, object]]) -> None:
        """Append new trial rows to the in-memory store."""

        self.experiment_data.extend(rows)

    def save_data_to_csv(self) -> None:
        """Append all accumulated data rows to the CSV file."""

        if not self.experiment_data_filename:
            self.open_csv_data_file()
        assert self.experiment_data_filename is not None
        with open(self.experiment_data_filename, "a", newline="", encoding="utf-8") as csv_file:
            writer = csv.DictWriter(csv_file, fieldnames=self.data_fields)
            for row in self.experiment_data[self.data_lines_written :]:
                writer.writerow(row)
                self.data_lines_written += 1


__all__ = ["BaseExperiment", "intensity_to_rgb"]
