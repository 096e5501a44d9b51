"""
Tests for the nora command line: argument parsing, dispatch and exit codes.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from nora import cli
from nora.errors import BuildError, ProcessError, StageError


@pytest.mark.evergreen
class TestParser:
    def test_defaults_to_build(self):
        args = cli.create_parser().parse_args([])
        assert args.command == "build"
        assert args.project_dir is None
        assert args.verbose is False

    def test_run_command(self):
        args = cli.create_parser().parse_args(["run", "--project-dir", "x", "-v"])
        assert args.command == "run"
        assert args.project_dir == Path("x")
        assert args.verbose is True

    def test_rejects_unknown_command(self):
        with pytest.raises(SystemExit):
            cli.create_parser().parse_args(["deploy"])


@pytest.mark.evergreen
class TestMain:
    def test_build_dispatch(self, project: Path, monkeypatch):
        seen = []
        monkeypatch.setattr(cli, "cmd_build", lambda config: seen.append(("build", config)) or 0)
        monkeypatch.setattr(cli, "cmd_dev", lambda config: seen.append(("run", config)) or 0)

        assert cli.main(["--project-dir", str(project), "--no-color"]) == 0

        assert [name for name, _ in seen] == ["build"]
        assert seen[0][1].project_root == project.resolve()

    def test_run_dispatch_passes_verbose(self, project: Path, monkeypatch):
        seen = []
        monkeypatch.setattr(cli, "cmd_dev", lambda config: seen.append(config) or 0)

        assert cli.main(["run", "--project-dir", str(project), "-v", "--no-color"]) == 0
        assert seen[0].verbose is True

    def test_config_error_exits_1(self, project: Path, capsys):
        (project / "nora.json").write_text(json.dumps({"bogus": 1}))

        assert cli.main(["--project-dir", str(project), "--no-color"]) == 1
        assert "Configuration error" in capsys.readouterr().out

    def test_build_error_exits_1(self, project: Path, monkeypatch, capsys):
        def failing(config):
            raise BuildError.from_stage_errors([StageError(Path("a.ts"), "boom")])

        monkeypatch.setattr(cli, "cmd_build", failing)

        assert cli.main(["--project-dir", str(project), "--no-color"]) == 1
        assert "Build failed with 1 stage error" in capsys.readouterr().out

    def test_host_crash_exits_1(self, project: Path, monkeypatch):
        def crashed(config):
            raise ProcessError("Host process terminated unexpectedly")

        monkeypatch.setattr(cli, "cmd_dev", crashed)
        assert cli.main(["run", "--project-dir", str(project), "--no-color"]) == 1

    def test_interrupt_exits_130(self, project: Path, monkeypatch):
        def interrupted(config):
            raise KeyboardInterrupt

        monkeypatch.setattr(cli, "cmd_dev", interrupted)
        assert cli.main(["run", "--project-dir", str(project), "--no-color"]) == 130
