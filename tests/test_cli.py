"""
Tests for CLI commands: probe, the profile commands, and global options.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from dotsetup.core.engine.report import RunState
from dotsetup.core.errors import LockError
from dotsetup.core.models.host import HostCapabilities, PackageManager, Selections
from dotsetup.core.models.step import StepOutcome, StepResult
from dotsetup.core.services.provision.orchestration.orchestrator import ProvisionRun
from dotsetup.main import cli

_PROVISION = "dotsetup.core.services.provision.orchestration.orchestrator.provision"
_PROBE = "dotsetup.core.services.provision.detection.host_probe.probe"


@pytest.fixture
def config(tmp_path: Path) -> Path:
    path = tmp_path / "dotsetup.yml"
    path.write_text("min_disk_gb: 2\n")
    return path


def _run(user_paths, *outcomes: StepOutcome) -> ProvisionRun:
    results = [StepResult(step_name=f"step-{i}", outcome=o, detail="d") for i, o in enumerate(outcomes)]
    fatal = any(o == StepOutcome.FAILED_FATAL for o in outcomes)
    return ProvisionRun(
        profiles=("zsh",),
        paths=user_paths,
        capabilities=HostCapabilities(package_manager=PackageManager.APT),
        selections=Selections(fetch_tool="neofetch"),
        results=results,
        state=RunState.HALTED if fatal else RunState.COMPLETED,
    )


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "provision zsh and LazyVim" in result.output
        for cmd in ("probe", "zsh", "nvim", "all"):
            assert cmd in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_bad_config(self, tmp_path: Path):
        bad = tmp_path / "dotsetup.yml"
        bad.write_text("min_disk: 3\n")
        runner = CliRunner()
        with patch(_PROVISION) as mock_provision:
            result = runner.invoke(cli, ["--config", str(bad), "zsh", "--yes"])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        mock_provision.assert_not_called()

    def test_missing_config(self, tmp_path: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["--config", str(tmp_path / "nope.yml"), "probe"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestProbeCommand:

    def test_human_output(self, config):
        caps = HostCapabilities(package_manager=PackageManager.PACMAN, available_disk_gb=12)
        runner = CliRunner()
        with patch(_PROBE, return_value=caps):
            result = runner.invoke(cli, ["--config", str(config), "probe"])
        assert result.exit_code == 0
        assert "pacman" in result.output
        assert "12 GB" in result.output
        assert "fastfetch" in result.output

    def test_json_output(self, config):
        caps = HostCapabilities(package_manager=PackageManager.DNF, available_disk_gb=None)
        runner = CliRunner()
        with patch(_PROBE, return_value=caps):
            result = runner.invoke(cli, ["--config", str(config), "probe", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["capabilities"]["package_manager"] == "dnf"
        assert data["capabilities"]["available_disk_gb"] is None
        assert data["selections"]["fetch_tool"] == "neofetch"
        assert "home" in data["paths"]


class TestProfileCommands:

    def test_success(self, config, user_paths):
        run = _run(user_paths, StepOutcome.SUCCEEDED, StepOutcome.FAILED_OPTIONAL)
        runner = CliRunner()
        with patch(_PROVISION, return_value=run) as mock_provision:
            result = runner.invoke(cli, ["--config", str(config), "zsh", "--yes"])
        assert result.exit_code == 0, result.output
        assert mock_provision.call_args[0][0] == ("zsh",)
        assert "[OK" in result.output
        assert "[WARN" in result.output
        assert "Done" in result.output

    def test_fatal_exits_1(self, config, user_paths):
        run = _run(user_paths, StepOutcome.SUCCEEDED, StepOutcome.FAILED_FATAL)
        runner = CliRunner()
        with patch(_PROVISION, return_value=run):
            result = runner.invoke(cli, ["--config", str(config), "nvim", "--yes"])
        assert result.exit_code == 1
        assert "[FAIL" in result.output
        assert "stopped on a required step" in result.output

    def test_all_runs_both_profiles(self, config, user_paths):
        runner = CliRunner()
        with patch(_PROVISION, return_value=_run(user_paths)) as mock_provision:
            result = runner.invoke(cli, ["--config", str(config), "all", "-y"])
        assert result.exit_code == 0
        assert mock_provision.call_args[0][0] == ("zsh", "nvim")

    def test_json(self, config, user_paths):
        run = _run(user_paths, StepOutcome.SKIPPED, StepOutcome.FAILED_FATAL)
        runner = CliRunner()
        with patch(_PROVISION, return_value=run):
            result = runner.invoke(cli, ["--config", str(config), "zsh", "--json"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["exit_status"] == 1
        assert data["state"] == "reported"
        assert [r["outcome"] for r in data["results"]] == ["skipped", "failed_fatal"]

    def test_lock_held(self, config):
        runner = CliRunner()
        with patch(_PROVISION, side_effect=LockError("Another dotsetup run is in progress")):
            result = runner.invoke(cli, ["--config", str(config), "zsh", "--yes"])
        assert result.exit_code == 1
        assert "in progress" in result.output

    def test_root_prompt_declined(self, config):
        runner = CliRunner()
        with patch("dotsetup.ui.cli.provision.os.geteuid", return_value=0), \
             patch(_PROVISION) as mock_provision:
            result = runner.invoke(cli, ["--config", str(config), "zsh"], input="n\n")
        assert result.exit_code == 1
        assert "Running as root" in result.output
        mock_provision.assert_not_called()

    def test_root_prompt_skipped_with_yes(self, config, user_paths):
        runner = CliRunner()
        with patch("dotsetup.ui.cli.provision.os.geteuid", return_value=0), \
             patch(_PROVISION, return_value=_run(user_paths)):
            result = runner.invoke(cli, ["--config", str(config), "zsh", "--yes"])
        assert result.exit_code == 0
        assert "Running as root" not in result.output
