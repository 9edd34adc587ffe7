"""Tests for CLI interface."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from diskscope.cli import app
from diskscope.display import console

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setattr(console, "width", 200)
    with patch("diskscope.config.CONFIG_FILE", tmp_path / "config.json"):
        yield


@pytest.fixture
def folder(tmp_path):
    root = tmp_path / "data"
    (root / "a").mkdir(parents=True)
    (root / "b").mkdir()
    (root / "a" / "one").write_bytes(b"x" * 10)
    (root / "a" / "two").write_bytes(b"x" * 20)
    (root / "a" / "three").write_bytes(b"x" * 30)
    (root / "b" / "four").write_bytes(b"x" * 5)
    return root


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "diskscope version" in result.stdout

    def test_version_short_flag(self):
        result = runner.invoke(app, ["-v"])
        assert result.exit_code == 0
        assert "diskscope version" in result.stdout


class TestHelp:
    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "scan" in result.stdout
        assert "trash" in result.stdout

    def test_scan_help(self):
        result = runner.invoke(app, ["scan", "--help"])
        assert result.exit_code == 0
        assert "--parallel" in result.stdout


class TestScan:
    def test_scan_folder(self, folder):
        result = runner.invoke(app, ["scan", str(folder), "--apparent-size"])
        assert result.exit_code == 0
        assert "60.0 B" in result.stdout
        assert "65.0 B" in result.stdout
        assert "four" in result.stdout

    def test_scan_parallel(self, folder):
        result = runner.invoke(app, ["scan", str(folder), "--apparent-size", "--parallel"])
        assert result.exit_code == 0
        assert "Total: 65.0 B" in result.stdout

    def test_scan_sorted_ascending(self, folder):
        result = runner.invoke(
            app, ["scan", str(folder), "--apparent-size", "--sort", "size-asc", "--depth", "1"]
        )
        assert result.exit_code == 0
        assert result.stdout.index("📁 b ") < result.stdout.index("📁 a ")
        assert "four" not in result.stdout

    def test_scan_missing_folder(self, tmp_path):
        result = runner.invoke(app, ["scan", str(tmp_path / "missing")])
        assert result.exit_code == 1
        assert "Not a directory" in result.stdout


class TestTrash:
    def test_trash_with_yes(self, folder):
        with patch("diskscope.trash.send2trash") as send:
            result = runner.invoke(
                app, ["trash", str(folder / "a" / "three"), "--yes", "--apparent-size"]
            )

        assert result.exit_code == 0
        send.assert_called_once_with(str(folder / "a" / "three"))
        assert "Moved" in result.stdout
        assert "30.0 B" in result.stdout

    def test_trash_failure(self, folder):
        with patch("diskscope.trash.send2trash", side_effect=PermissionError("nope")):
            result = runner.invoke(
                app, ["trash", str(folder / "a" / "three"), "--yes", "--apparent-size"]
            )

        assert result.exit_code == 1
        assert "Could not move" in result.stdout

    def test_trash_missing(self, tmp_path):
        result = runner.invoke(app, ["trash", str(tmp_path / "missing"), "--yes"])
        assert result.exit_code == 1
        assert "No such file" in result.stdout

    def test_trash_declined(self, folder):
        with patch("diskscope.trash.send2trash") as send:
            result = runner.invoke(
                app, ["trash", str(folder / "a" / "three"), "--apparent-size"], input="n\n"
            )

        assert result.exit_code == 0
        assert "Cancelled" in result.stdout
        send.assert_not_called()

    def test_trash_outside_root(self, folder, tmp_path):
        outside = tmp_path / "precious"
        outside.write_bytes(b"x" * 3)
        with patch("diskscope.trash.send2trash") as send:
            result = runner.invoke(
                app, ["trash", str(outside), "--root", str(folder), "--yes"]
            )

        assert result.exit_code == 1
        assert "not part of the scan" in result.stdout
        send.assert_not_called()


class TestConfig:
    def test_config_command(self):
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "size_mode" in result.stdout
