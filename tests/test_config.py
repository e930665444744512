"""Tests for config loading and the CLI commands built on it."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from sqlnb.cli import app
from sqlnb.config import SqlnbConfig, StorageConfig, files_dir, load_config, save_config
from sqlnb.document.codec import SQLNB_HEADER, export_as_json, export_as_yaml

from .conftest import make_notebook

runner = CliRunner()


@pytest.fixture
def home(tmp_path: Path) -> Generator[Path]:
    """Point the config directory at a temp dir."""
    with patch("sqlnb.config._config_dir", return_value=tmp_path):
        yield tmp_path


def test_load_config_defaults(home: Path) -> None:
    config = load_config()
    assert config.storage.backend == "file"
    assert config.storage.prefix == "sqlnb_"
    assert config.autosave.delay_seconds == 2.0
    assert config.autosave.save_timeout_seconds == 10.0


def test_save_and_load_config(home: Path) -> None:
    config = SqlnbConfig(storage=StorageConfig(backend="memory", prefix=""))
    config.autosave.delay_seconds = 0.5
    save_config(config)
    assert (home / "config.json").exists()

    loaded = load_config()
    assert loaded.storage.backend == "memory"
    assert loaded.storage.prefix == ""
    assert loaded.autosave.delay_seconds == 0.5


def test_files_dir(home: Path, tmp_path: Path) -> None:
    assert files_dir() == home / "files"
    custom = SqlnbConfig(storage=StorageConfig(directory=str(tmp_path / "nb")))
    assert files_dir(custom) == tmp_path / "nb"


def test_cli_validate(tmp_path: Path) -> None:
    good = tmp_path / "good.sqlnb"
    good.write_text(export_as_yaml(make_notebook()))
    result = runner.invoke(app, ["validate", str(good)])
    assert result.exit_code == 0
    assert "is valid" in result.output

    bad = tmp_path / "bad.sqlnb"
    bad.write_text(SQLNB_HEADER + "id: x\n")
    result = runner.invoke(app, ["validate", str(bad)])
    assert result.exit_code == 1
    assert "Missing required field: title" in result.output


def test_cli_import_show_export_delete(home: Path, tmp_path: Path) -> None:
    source = tmp_path / "weekly.json"
    source.write_text(export_as_json(make_notebook()))

    result = runner.invoke(app, ["import", str(source), "weekly.sqlnb"])
    assert result.exit_code == 0, result.output
    assert "Imported 4 cells" in result.output
    assert (home / "files" / "sqlnb_weekly.sqlnb").exists()

    result = runner.invoke(app, ["list"])
    assert "weekly.sqlnb" in result.output

    result = runner.invoke(app, ["show", "weekly.sqlnb"])
    assert result.exit_code == 0
    assert "Weekly Analysis" in result.output

    target = tmp_path / "out.yaml"
    result = runner.invoke(app, ["export", "weekly.sqlnb", "--format", "yaml", "-o", str(target)])
    assert result.exit_code == 0
    assert target.read_text().startswith(SQLNB_HEADER)

    result = runner.invoke(app, ["delete", "weekly.sqlnb"])
    assert result.exit_code == 0
    result = runner.invoke(app, ["show", "weekly.sqlnb"])
    assert result.exit_code == 1


def test_cli_import_rejects_bad_json(home: Path, tmp_path: Path) -> None:
    source = tmp_path / "bad.json"
    source.write_text("{nope")
    result = runner.invoke(app, ["import", str(source), "x.sqlnb"])
    assert result.exit_code == 1


def test_cli_import_rejects_foreign_format(home: Path, tmp_path: Path) -> None:
    source = tmp_path / "other.json"
    source.write_text(export_as_json(make_notebook()).replace("notebook-v1", "other-v7"))
    result = runner.invoke(app, ["import", str(source), "other.sqlnb"])
    assert result.exit_code == 1
    assert not (home / "files" / "sqlnb_other.sqlnb").exists()


def test_cli_example() -> None:
    result = runner.invoke(app, ["example"])
    assert result.exit_code == 0
    assert "notebook-v1" in result.output
    assert "Weekly User Analysis" in result.output
