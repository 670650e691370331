"""Logging configuration for rfstim.

This module provides the formatter and the one-call setup used by the command
line entry point.
"""

import logging


class CycleFormatter(logging.Formatter):
    """Formatter that handles the optional ``cycle`` attribute.

    Records logged outside of the trial loop carry no cycle and display '-'.
    """

    def format(self, record):
        if not hasattr(record, "cycle"):
            record.cycle = "-"
        return super().format(record)


def setup_logging(log_level: str = "INFO") -> None:
    """Set up logging with a formatter that includes the current cycle.

    Parameters
    ----------
    log_level : str
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).

    Raises
    ------
    ValueError
        If log_level is not a valid logging level.
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    handler = logging.StreamHandler()
    handler.setFormatter(
        CycleFormatter(
            "%(asctime)s - [cycle:%(cycle)s] - %(name)s - %(levelname)s - %(message)s"
        )
    )
    logging.basicConfig(
        level=numeric_level,
        handlers=[handler],
        force=True,
    )
