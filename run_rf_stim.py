"""Entry point script for the receptive-field mapping stimulus.

This small wrapper simply dispatches to :mod:`rfstim.cli`.  Keeping the actual
logic in the package makes it possible to launch the stimulus via
``python -m rfstim``, the ``rfstim`` console script *or* by executing this file
directly from the repository root.
"""
from __future__ import annotations

from rfstim.cli import main


if __name__ == "__main__":
    main()
