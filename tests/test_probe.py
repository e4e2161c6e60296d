"""
Tests for the host capability probe and the read-only detectors.
"""

import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from dotsetup.core.errors import ProbeError
from dotsetup.core.models.host import Architecture, PackageManager
from dotsetup.core.services.provision.detection.host_probe import (
    available_disk_gb,
    command_exists,
    detect_architecture,
    detect_package_manager,
    parse_df_available_kb,
    probe,
    resolve_user_paths,
)
from dotsetup.core.services.provision.detection.tool_version import (
    get_tool_version,
    meets_minimum,
)


def _fake_bin(directory: Path, name: str, script: str = "exit 0") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    exe = directory / name
    exe.write_text(f"#!/bin/sh\n{script}\n")
    exe.chmod(0o755)
    return exe


class TestDetectPackageManager:

    def test_single_manager(self, tmp_path: Path):
        _fake_bin(tmp_path, "zypper")
        assert detect_package_manager(path=str(tmp_path)) == PackageManager.ZYPPER

    def test_priority_first_match_wins(self, tmp_path: Path):
        for name in ("pacman", "apt", "dnf"):
            _fake_bin(tmp_path, name)
        assert detect_package_manager(path=str(tmp_path)) == PackageManager.APT

    def test_dnf_before_yum(self, tmp_path: Path):
        _fake_bin(tmp_path, "yum")
        _fake_bin(tmp_path, "dnf")
        assert detect_package_manager(path=str(tmp_path)) == PackageManager.DNF

    def test_none_found(self, tmp_path: Path):
        assert detect_package_manager(path=str(tmp_path)) == PackageManager.NONE


class TestDetectArchitecture:

    @pytest.mark.parametrize("raw, expected", [
        ("x86_64", Architecture.X86_64),
        ("amd64", Architecture.X86_64),
        ("aarch64", Architecture.ARM64),
        ("arm64", Architecture.ARM64),
    ])
    def test_known(self, raw, expected):
        assert detect_architecture(raw) == expected

    def test_unknown_defaults_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert detect_architecture("riscv64") == Architecture.X86_64
        assert "riscv64" in caplog.text


class TestDiskSpace:

    def test_parse_df_posix_output(self):
        out = (
            "Filesystem     1024-blocks      Used Available Capacity Mounted on\n"
            "/dev/sda1        102400000  50000000  52400000      49% /\n"
        )
        assert parse_df_available_kb(out) == 52400000

    def test_parse_garbage(self):
        assert parse_df_available_kb("") is None
        assert parse_df_available_kb("header only\n") is None
        assert parse_df_available_kb("h\n/dev/x 1 2 n/a 0% /\n") is None

    def test_floor_division(self, tmp_path: Path):
        # 2047 MB free → 1 GB, not 2
        kb = 2047 * 1024
        _fake_bin(tmp_path, "df", (
            'echo "Filesystem 1024-blocks Used Available Capacity Mounted on"\n'
            f'echo "/dev/sda1 9999999 1 {kb} 1% /"'
        ))
        assert available_disk_gb("/", path=str(tmp_path)) == 1

    def test_missing_df_skips(self, tmp_path: Path, caplog):
        with caplog.at_level(logging.WARNING):
            assert available_disk_gb("/", path=str(tmp_path)) is None
        assert "df command not found" in caplog.text

    def test_unparsable_df_skips(self, tmp_path: Path):
        _fake_bin(tmp_path, "df", 'echo "nonsense"')
        assert available_disk_gb("/", path=str(tmp_path)) is None


class TestProbe:

    def test_snapshot(self, tmp_path: Path):
        _fake_bin(tmp_path, "pacman")
        with patch(
            "dotsetup.core.services.provision.detection.host_probe.available_disk_gb",
            return_value=7,
        ):
            caps = probe(path=str(tmp_path))
        assert caps.package_manager == PackageManager.PACMAN
        assert caps.available_disk_gb == 7
        assert caps.is_root == (os.geteuid() == 0)

    def test_snapshot_is_immutable(self, tmp_path: Path):
        caps = probe(path=str(tmp_path))
        with pytest.raises(Exception):
            caps.is_root = not caps.is_root

    def test_unqueryable_root_raises(self, tmp_path: Path):
        with pytest.raises(ProbeError):
            probe(root=str(tmp_path / "does-not-exist"))


class TestUserPaths:

    def test_defaults(self):
        paths = resolve_user_paths({"HOME": "/home/u"})
        assert paths.cache_home == Path("/home/u/.cache")
        assert paths.data_home == Path("/home/u/.local/share")
        assert paths.config_home == Path("/home/u/.config")
        assert paths.local_bin == Path("/home/u/.local/bin")
        assert paths.nvim_config == Path("/home/u/.config/nvim")
        assert paths.font_dir == Path("/home/u/.local/share/fonts")

    def test_xdg_overrides(self):
        paths = resolve_user_paths({
            "HOME": "/home/u",
            "XDG_CONFIG_HOME": "/cfg",
            "XDG_DATA_HOME": "/data",
            "XDG_CACHE_HOME": "/cache",
        })
        assert paths.config_home == Path("/cfg")
        assert paths.data_home == Path("/data")
        assert paths.cache_home == Path("/cache")

    def test_empty_xdg_value_ignored(self):
        paths = resolve_user_paths({"HOME": "/home/u", "XDG_CONFIG_HOME": ""})
        assert paths.config_home == Path("/home/u/.config")


class TestCommandExists:

    def test_absolute_executable(self, tmp_path: Path):
        exe = _fake_bin(tmp_path, "tool")
        assert command_exists(str(exe)) == str(exe)

    def test_absolute_not_executable(self, tmp_path: Path):
        f = tmp_path / "plain"
        f.write_text("x")
        assert command_exists(str(f)) is None

    def test_extra_dirs(self, tmp_path: Path):
        _fake_bin(tmp_path / "extra", "zoxide-test-bin")
        found = command_exists("zoxide-test-bin", [tmp_path / "extra"])
        assert found == str(tmp_path / "extra" / "zoxide-test-bin")


class TestToolVersion:

    def test_version_from_banner(self, tmp_path: Path):
        exe = _fake_bin(tmp_path, "nvim", 'echo "NVIM v0.11.3"; echo "Build type: Release"')
        assert get_tool_version(str(exe)) == "0.11.3"
        assert meets_minimum(str(exe), "0.11.2")

    def test_banner_on_stderr(self, tmp_path: Path):
        exe = _fake_bin(tmp_path, "nvim", 'echo "NVIM v0.9.5" >&2')
        assert get_tool_version(str(exe)) == "0.9.5"
        assert not meets_minimum(str(exe), "0.11.2")

    def test_missing(self, tmp_path: Path):
        assert get_tool_version(str(tmp_path / "nvim")) is None
        assert not meets_minimum(str(tmp_path / "nvim"), "0.1.0")

    def test_unparsable(self, tmp_path: Path):
        exe = _fake_bin(tmp_path, "nvim", 'echo "dev build"')
        assert get_tool_version(str(exe)) is None
