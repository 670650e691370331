"""Command line helpers for running the receptive-field mapping stimulus."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from ._logging import setup_logging
from .config import ConfigurationError, ExperimentConfig, RunContext
from .layout import plan_layout
from .schedule import TrialScheduler


def _default(name: str):
    return ExperimentConfig.__dataclass_fields__[name].default


def build_arg_parser() -> argparse.ArgumentParser:
    """Create an argument parser exposing the runtime options."""

    parser = argparse.ArgumentParser(
        description=(
            "Map receptive fields by revealing a movie one tile at a time. "
            "Tiles are shown in a fresh random order every cycle and the realized "
            "order is saved as CSV."
        )
    )
    parser.add_argument(
        "--movie",
        type=Path,
        default=Path(_default("movie_path")),
        help="NumPy .npy file with frames shaped (height, width, n_frames) (default: %(default)s).",
    )
    parser.add_argument(
        "--tile-deg",
        type=float,
        default=_default("tile_deg"),
        help="Tile side length in visual degrees (default: %(default)s).",
    )
    parser.add_argument(
        "--init-gray",
        type=float,
        default=_default("init_gray_s"),
        help="Gray screen before the first trial, in seconds (default: %(default)s).",
    )
    parser.add_argument(
        "--cycles",
        type=int,
        default=_default("n_cycles"),
        help="Number of randomized passes over all tiles (default: %(default)s).",
    )
    parser.add_argument(
        "--isi",
        type=float,
        default=_default("isi_s"),
        help="Gray interval after every trial, in seconds (default: %(default)s).",
    )
    parser.add_argument(
        "--region",
        type=str,
        default=_default("region"),
        help=(
            "Screen region to tile: full, left, right, top, bottom, tl/tr/bl/br (or 1-4), "
            "nw, n, ne, w, center, e, sw, s, se, combinations such as 'se+e' or "
            "'left,top', or 'fullscreen' for one centred tile (default: %(default)s)."
        ),
    )
    parser.add_argument(
        "--viewing-distance-cm",
        type=float,
        default=_default("viewing_distance_cm"),
        help="Viewing distance used for the deg->px conversion (default: %(default)s).",
    )
    parser.add_argument(
        "--display-width-mm",
        type=float,
        default=_default("display_width_mm"),
        help="Physical display width; read from the PsychoPy monitor profile when omitted.",
    )
    parser.add_argument(
        "--monitor",
        type=str,
        default=_default("monitor_name"),
        help="PsychoPy monitor profile name (default: %(default)s).",
    )
    parser.add_argument(
        "--screen",
        type=int,
        default=_default("screen_index"),
        help="Screen index for the stimulus window (default: highest numbered screen).",
    )
    parser.add_argument(
        "--gamma-table",
        type=str,
        default=_default("gamma_table_path"),
        help="N x 3 .npy gamma table; defaults to the first *NormGamTab*.npy in --gamma-dir.",
    )
    parser.add_argument(
        "--gamma-dir",
        type=str,
        default=_default("gamma_directory"),
        help="Folder searched for the default gamma table (default: %(default)s).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=_default("seed"),
        help="Seed for the tile order; a fresh one is drawn and saved when omitted.",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path(_default("results_directory")),
        help="Folder where CSV/JSON outputs will be saved (default: %(default)s).",
    )
    parser.add_argument(
        "--windowed",
        action="store_true",
        help="Open a normal window of --window-size instead of going full screen.",
    )
    parser.add_argument(
        "--window-size",
        type=int,
        nargs=2,
        metavar=("WIDTH", "HEIGHT"),
        default=list(_default("window_size")),
        help="Window size in pixels for --windowed and --dry-run (default: %(default)s).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=_default("log_level"),
        help="Logging level (default: %(default)s).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help=(
            "Resolve the region and tile grid for --window-size, print them together "
            "with one sample cycle, and exit without opening a window."
        ),
    )
    return parser


def config_from_args(args: argparse.Namespace) -> ExperimentConfig:
    return ExperimentConfig(
        movie_path=str(args.movie),
        tile_deg=args.tile_deg,
        init_gray_s=args.init_gray,
        n_cycles=args.cycles,
        isi_s=args.isi,
        region=args.region,
        viewing_distance_cm=args.viewing_distance_cm,
        display_width_mm=args.display_width_mm,
        monitor_name=args.monitor,
        screen_index=args.screen,
        gamma_table_path=args.gamma_table,
        gamma_directory=args.gamma_dir,
        seed=args.seed,
        results_directory=str(args.data_dir),
        full_screen=not args.windowed,
        window_size=tuple(args.window_size),
        log_level=args.log_level,
    )


def main(argv: list[str] | None = None) -> None:
    """Parse command line options and execute the run."""

    parser = build_arg_parser()
    args = parser.parse_args(argv)
    try:
        config = config_from_args(args)
    except ConfigurationError as exc:
        parser.error(str(exc))
    setup_logging(config.log_level)

    try:
        if args.dry_run:
            perform_dry_run(config)
            return

        from .experiment import RFMappingExperiment

        experiment = RFMappingExperiment(config)
        experiment.run()
    except ConfigurationError as exc:
        raise SystemExit(f"Configuration error: {exc}") from exc


def perform_dry_run(config: ExperimentConfig) -> None:
    """Print the layout and a sample cycle for ``config.window_size`` and exit."""

    if config.display_width_mm is None:
        raise ConfigurationError("--dry-run needs --display-width-mm to size the tiles.")
    width, height = config.window_size
    layout = plan_layout(config, width, height, config.display_width_mm)
    grid = layout.grid
    context = RunContext.from_config(config, load_gamma=False)
    scheduler = TrialScheduler(grid, config.n_cycles, context.rng)

    print(f"Dry-run: screen {width}x{height} px, region '{config.region}'.")
    print(f"  tile          : {layout.tile_px} px ({config.tile_deg:g} deg)")
    print(f"  region        : {layout.region.as_tuple()}")
    print(f"  grid          : {grid.nx} columns x {grid.ny} rows = {grid.n_tiles} tiles")
    print(f"  padding strips: {[r.as_tuple() for r in grid.internal_edges]}")
    print(f"  outer masks   : {[r.as_tuple() for r in grid.external_masks]}")
    print(f"  seed          : {context.seed}")
    rm, _ = scheduler.draw_cycle()
    print("  sample cycle  :")
    for position in rm:
        record = scheduler.record_for(int(position))
        print(
            f"      pos {record.position:>3} | row {record.row:>2} col {record.column:>2}"
            f" | x={record.x:.4f} y={record.y:.4f}"
        )
    print("Dry-run complete.")


if __name__ == "__main__":  # pragma: no cover - module level CLI hook
    main(sys.argv[1:])
