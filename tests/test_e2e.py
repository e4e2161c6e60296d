"""
End-to-end tests: probe → plan → execute → report through ``provision()``.

The probe and every command that would change the system are patched;
the run itself (lock, plans, executor, deployer, report) is real.
"""

import shutil
from pathlib import Path
from unittest.mock import patch

import pytest

from dotsetup.core.engine.executor import run_steps
from dotsetup.core.engine.report import ExitStatus, RunState, summarize
from dotsetup.core.errors import LockError, ProbeError
from dotsetup.core.models.host import HostCapabilities, PackageManager, Selections
from dotsetup.core.models.settings import Settings
from dotsetup.core.models.step import StepOutcome
from dotsetup.core.services.provision.execution.deploy import payload_path
from dotsetup.core.services.provision.execution.lock import run_lock
from dotsetup.core.services.provision.orchestration.orchestrator import build_steps, provision

_ORCH = "dotsetup.core.services.provision.orchestration.orchestrator"
_FOUND = patch(
    "dotsetup.core.services.provision.orchestration.common.command_exists",
    side_effect=lambda name, *a: f"/usr/bin/{name}",
)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(lock_file=tmp_path / "run.lock")


class TestArchLowDisk:
    """pacman host with 1 GB free: the run stops at the disk check."""

    def test_steps_halt_at_disk_space(self, user_paths, pacman_caps):
        caps = pacman_caps.model_copy(update={"available_disk_gb": 1})
        steps = build_steps(("zsh",), user_paths, Settings(), caps, Selections(fetch_tool="fastfetch"))

        with _FOUND, patch("dotsetup.core.services.provision.execution.packages.run_command") as pm:
            results = run_steps(steps, caps)

        assert [r.step_name for r in results] == ["prerequisites", "directories", "disk-space"]
        assert [r.outcome for r in results] == [
            StepOutcome.SUCCEEDED, StepOutcome.SUCCEEDED, StepOutcome.FAILED_FATAL,
        ]
        assert "1GB available, 2GB required" in results[-1].detail
        assert summarize(results) == ExitStatus.FAILURE
        pm.assert_not_called()
        assert user_paths.cache_home.is_dir()

    def test_provision_reports_halt(self, user_paths, env, pacman_caps, settings):
        caps = pacman_caps.model_copy(update={"available_disk_gb": 1})

        with _FOUND, patch(f"{_ORCH}.probe", return_value=caps):
            run = provision(["zsh"], settings, environ=env)

        assert run.state == RunState.HALTED
        assert run.exit_status == ExitStatus.FAILURE
        assert run.selections.fetch_tool == "fastfetch"
        assert run.results[-1].step_name == "disk-space"

        lines = run.report()
        assert run.state == RunState.REPORTED
        assert any(ln.startswith("[FAIL") and "disk-space" in ln for ln in lines)

        data = run.to_dict()
        assert data["state"] == "reported"
        assert data["exit_status"] == 1
        assert data["capabilities"]["package_manager"] == "pacman"


class TestProbeFailure:

    def test_probe_error_is_fatal_result(self, env, settings):
        with patch(f"{_ORCH}.probe", side_effect=ProbeError("cannot determine architecture: s390x")):
            run = provision(["nvim"], settings, environ=env)

        assert run.state == RunState.HALTED
        assert run.capabilities is None
        [result] = run.results
        assert result.step_name == "probe"
        assert result.outcome == StepOutcome.FAILED_FATAL
        assert "s390x" in result.detail


class TestRunLock:

    def test_concurrent_run_rejected(self, env, settings, apt_caps):
        with run_lock(settings.lock_file):
            with patch(f"{_ORCH}.probe", return_value=apt_caps) as mock_probe:
                with pytest.raises(LockError):
                    provision(["zsh"], settings, environ=env)
        mock_probe.assert_not_called()

    def test_unknown_profile(self, env, settings):
        with pytest.raises(ValueError):
            provision(["emacs"], settings, environ=env)


class TestAlreadyProvisioned:
    """Second run on a provisioned host: nothing left to do."""

    def _provisioned_home(self, user_paths):
        for d in (user_paths.cache_home, user_paths.data_home):
            d.mkdir(parents=True)

        nvim = user_paths.home / ".local" / "nvim-linux-x86_64" / "bin" / "nvim"
        nvim.parent.mkdir(parents=True)
        nvim.write_text("#!/bin/sh\necho 'NVIM v0.11.4'\n")
        nvim.chmod(0o755)
        link = user_paths.local_bin / "nvim"
        link.parent.mkdir(parents=True)
        link.symlink_to(nvim)

        config = user_paths.nvim_config / "lua" / "config"
        config.mkdir(parents=True)
        (user_paths.nvim_config / "init.lua").write_text('require("config.lazy")\n')
        (config / "lazy.lua").write_text("-- lazy\n")
        shutil.copyfile(payload_path("nvim/lua/config/keymaps.lua"), config / "keymaps.lua")

    def test_nvim_rerun_skips_everything(self, user_paths, env, settings, monkeypatch):
        self._provisioned_home(user_paths)
        monkeypatch.setenv("PATH", f"{user_paths.local_bin}:/usr/bin:/bin")
        caps = HostCapabilities(package_manager=PackageManager.NONE, available_disk_gb=20)

        with _FOUND, patch(f"{_ORCH}.probe", return_value=caps):
            run = provision(["nvim"], settings, environ=env)

        assert run.state == RunState.COMPLETED
        assert run.exit_status == ExitStatus.SUCCESS
        outcomes = {r.step_name: r.outcome for r in run.results}
        assert outcomes.pop("prerequisites") == StepOutcome.SUCCEEDED
        assert set(outcomes.values()) == {StepOutcome.SKIPPED}
        assert len(outcomes) == 6
