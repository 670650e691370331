"""Tests for the command line front end (dry-run path only, no window)."""
from __future__ import annotations

import pytest

from rfstim import cli


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch) -> None:
    monkeypatch.setattr(cli, "setup_logging", lambda level: None)


DRY_RUN = [
    "--dry-run",
    "--tile-deg", "90",
    "--viewing-distance-cm", "10",
    "--display-width-mm", "1920",
    "--window-size", "1920", "1080",
    "--region", "tl",
    "--seed", "3",
]


def test_config_from_args_maps_every_flag() -> None:
    args = cli.build_arg_parser().parse_args(
        ["--cycles", "4", "--isi", "0.5", "--windowed", "--screen", "1", "--gamma-table", "g.npy"]
    )
    config = cli.config_from_args(args)
    assert config.n_cycles == 4
    assert config.isi_s == 0.5
    assert config.full_screen is False
    assert config.screen_index == 1
    assert config.gamma_table_path == "g.npy"
    assert config.window_size == (1920, 1080)


def test_dry_run_prints_layout(capsys) -> None:
    cli.main(DRY_RUN)
    out = capsys.readouterr().out
    assert "tile          : 200 px" in out
    assert "(0, 0, 960, 540)" in out
    assert "4 columns x 2 rows = 8 tiles" in out
    assert out.count("pos ") == 8
    assert "Dry-run complete." in out


def test_dry_run_is_reproducible(capsys) -> None:
    cli.main(DRY_RUN)
    first = capsys.readouterr().out
    cli.main(DRY_RUN)
    assert capsys.readouterr().out == first


def test_dry_run_needs_display_width() -> None:
    with pytest.raises(SystemExit, match="display-width-mm"):
        cli.main(["--dry-run"])


def test_configuration_error_exits() -> None:
    argv = [a if a != "tl" else "nw" for a in DRY_RUN]
    argv[argv.index("10")] = "20"
    with pytest.raises(SystemExit, match="Configuration error"):
        cli.main(argv)


def test_invalid_flag_value_is_a_usage_error(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--cycles", "0"])
    assert excinfo.value.code == 2
    assert "n_cycles" in capsys.readouterr().err
