# SPDX-License-Identifier: MIT
"""Tests for mheader CLI."""

from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import pytest

from mheader.cli import main, setup_logging


@pytest.fixture(autouse=True)
def clean_environ(monkeypatch):
    for name in [
        "MALTERLIB_HIDEPREFIXES",
        "MALTERLIB_REPLACEPREFIXES",
        "MALTERLIB_TRANSIENT_DIR",
        "MALTERLIB_SINGLE_COMMAND",
    ]:
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv("CMAKE_" + name, raising=False)


def write_graph(tmp_path: Path) -> Path:
    """Write a small two-target graph and return its path."""
    graph = {
        "name": "demo",
        "source_dir": "src",
        "binary_dir": "build",
        "list_files": ["src/CMakeLists.txt"],
        "targets": [
            {
                "name": "app",
                "sources": [{"path": "main.c", "language": "C"}],
                "dependencies": [{"target": "gen", "link": False}],
            },
            {
                "name": "gen",
                "type": "utility",
                "sources": [
                    {
                        "path": "gen.rule",
                        "custom_command": {
                            "command_lines": [["echo", "one"], ["echo", "two"]],
                            "outputs": [(tmp_path / "build" / "gen.h").as_posix()],
                        },
                    }
                ],
            },
        ],
    }
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(graph))
    return path


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_normal(self) -> None:
        """Test normal logging setup."""
        # Just ensure it doesn't crash
        setup_logging(verbose=False, debug=False)

    def test_setup_logging_verbose(self) -> None:
        """Test verbose logging setup."""
        setup_logging(verbose=True, debug=False)

    def test_setup_logging_debug(self) -> None:
        """Test debug logging setup."""
        setup_logging(verbose=False, debug=True)


class TestGenerate:
    """Tests for the generate command."""

    def test_generate_to_build_dir(self, tmp_path: Path) -> None:
        """Test generating headers into an explicit output directory."""
        graph = write_graph(tmp_path)
        out = tmp_path / "out"

        assert main(["generate", str(graph), "-B", str(out)]) == 0

        header = (out / "demo.MHeader").read_text()
        assert '%Target "Exe_app"' in header
        assert '%Target "Tool_gen"' in header
        assert (out / "demo.MHeader.dependencies").exists()
        assert (out / "demo.MHeader.outputs").read_text() == (
            f"{(tmp_path / 'build' / 'gen.h').as_posix()}\n"
        )
        assert (out / "Malterlib.TrackedOutputs").exists()
        assert (out / "Malterlib.ProtectedFiles").exists()

    def test_generate_is_default_command(self, tmp_path: Path) -> None:
        """Test that a bare graph argument runs generate."""
        graph = write_graph(tmp_path)

        assert main([str(graph), "--no-placeholders"]) == 0

        assert (tmp_path / "build" / "demo.MHeader").exists()
        assert not (tmp_path / "src" / "gen.rule").exists()

    def test_placeholder_created(self, tmp_path: Path) -> None:
        """Test that missing custom step sources are created."""
        graph = write_graph(tmp_path)

        assert main([str(graph), "-B", str(tmp_path / "out")]) == 0

        rule = tmp_path / "src" / "gen.rule"
        assert rule.exists()
        assert (tmp_path / "out" / "Malterlib.ProtectedFiles").read_text() == (
            f"{rule.as_posix()}\n"
        )

    def test_hide_prefix(self, tmp_path: Path) -> None:
        """Test that --hide-prefix shortens file groups."""
        graph = write_graph(tmp_path)
        out = tmp_path / "out"
        src = (tmp_path / "src").as_posix()

        assert main([str(graph), "-B", str(out), "--hide-prefix", src]) == 0

        header = (out / "demo.MHeader").read_text()
        assert "%Group" not in header

    def test_single_command_fails(self, tmp_path: Path) -> None:
        """Test that --single-command rejects steps with several commands."""
        graph = write_graph(tmp_path)

        result = main([str(graph), "-B", str(tmp_path / "out"), "--single-command"])

        assert result == 1

    def test_single_command_from_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that MALTERLIB_SINGLE_COMMAND is honored."""
        graph = write_graph(tmp_path)
        monkeypatch.setenv("MALTERLIB_SINGLE_COMMAND", "1")

        assert main([str(graph), "-B", str(tmp_path / "out")]) == 1

    def test_config_file(self, tmp_path: Path) -> None:
        """Test that --config settings are applied."""
        graph = write_graph(tmp_path)
        config = tmp_path / "mheader.json"
        config.write_text(json.dumps({"header_suffix": ".Header"}))

        args = [str(graph), "-B", str(tmp_path / "out"), "--config", str(config)]
        assert main(args) == 0

        assert (tmp_path / "out" / "demo.Header").exists()

    def test_invalid_config_file(self, tmp_path: Path) -> None:
        """Test that an invalid configuration fails cleanly."""
        graph = write_graph(tmp_path)
        config = tmp_path / "mheader.json"
        config.write_text(json.dumps({"bogus": True}))

        assert main([str(graph), "--config", str(config)]) == 1

    def test_invalid_replace_prefix(self, tmp_path: Path) -> None:
        """Test that a malformed --replace-prefix fails cleanly."""
        graph = write_graph(tmp_path)

        assert main([str(graph), "--replace-prefix", "novalue"]) == 1

    def test_duplicate_target_names(self, tmp_path: Path) -> None:
        """Test that a graph with duplicate target names fails cleanly."""
        graph = tmp_path / "graph.json"
        graph.write_text(
            json.dumps({"name": "demo", "targets": [{"name": "a"}, {"name": "a"}]})
        )

        assert main([str(graph), "--no-placeholders"]) == 1

    def test_missing_graph(self, tmp_path: Path) -> None:
        """Test generating from a graph that does not exist."""
        assert main([str(tmp_path / "missing.json")]) == 1


class TestInfo:
    """Tests for the info command."""

    def test_info(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test listing projects and targets."""
        graph = write_graph(tmp_path)

        assert main(["info", str(graph)]) == 0

        out = capsys.readouterr().out
        assert "Project: demo" in out
        assert "Exe_app: program, 1 sources" in out
        assert "Tool_gen: utility, 1 sources" in out

    def test_info_missing_graph(self, tmp_path: Path) -> None:
        """Test info on a graph that does not exist."""
        assert main(["info", str(tmp_path / "missing.json")]) == 1


class TestCLICommands:
    """Tests for running the CLI as a program."""

    def test_no_arguments(self) -> None:
        """Test that no arguments prints help and fails."""
        assert main([]) == 1

    def test_mheader_help(self) -> None:
        """Test mheader --help."""
        result = subprocess.run(
            [sys.executable, "-m", "mheader.cli", "--help"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "mheader" in result.stdout
        assert "generate" in result.stdout
        assert "info" in result.stdout

    def test_mheader_version(self) -> None:
        """Test mheader --version."""
        result = subprocess.run(
            [sys.executable, "-m", "mheader.cli", "--version"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "0.1.0" in result.stdout
