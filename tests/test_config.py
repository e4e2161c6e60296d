"""
Tests for config loading — dotsetup.yml → Settings.
"""

import textwrap
from pathlib import Path

import pytest

from dotsetup.core.config.loader import (
    CONFIG_ENV_VAR,
    ConfigError,
    find_config_file,
    load_settings,
)
from dotsetup.core.models.settings import MIB, Settings


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content))
    return path


class TestDefaults:

    def test_no_file_means_defaults(self):
        settings = load_settings(search=False)
        assert settings == Settings()
        assert settings.min_disk_gb == 2
        assert settings.neovim.min_version == "0.11.2"
        assert settings.neovim.min_tarball_bytes == MIB
        assert settings.fetch_tool is None
        assert settings.zoxide.script_sha256 is None

    def test_empty_file_means_defaults(self, tmp_path: Path):
        cfg = _write(tmp_path / "dotsetup.yml", "")
        assert load_settings(cfg) == Settings()


class TestLoadSettings:

    def test_values(self, tmp_path: Path):
        cfg = _write(tmp_path / "dotsetup.yml", """\
            min_disk_gb: 5
            fetch_tool: hyfetch
            neovim:
              min_version: "0.12.0"
            repos:
              fzf: https://example.com/fzf.git
        """)
        settings = load_settings(cfg)
        assert settings.min_disk_gb == 5
        assert settings.fetch_tool == "hyfetch"
        assert settings.neovim.min_version == "0.12.0"
        assert settings.neovim.repo == "neovim/neovim"
        assert settings.repos.fzf == "https://example.com/fzf.git"

    def test_wrapped_document(self, tmp_path: Path):
        cfg = _write(tmp_path / "dotsetup.yml", """\
            dotsetup:
              min_disk_gb: 3
        """)
        assert load_settings(cfg).min_disk_gb == 3

    def test_relative_payload_dir(self, tmp_path: Path):
        cfg = _write(tmp_path / "conf" / "dotsetup.yml", "payload_dir: payloads\n")
        assert load_settings(cfg).payload_dir == (tmp_path / "conf" / "payloads").resolve()

    def test_missing_explicit_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        cfg = _write(tmp_path / "dotsetup.yml", "min_disk_gb: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(cfg)

    def test_not_a_mapping(self, tmp_path: Path):
        cfg = _write(tmp_path / "dotsetup.yml", "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(cfg)

    def test_unknown_key(self, tmp_path: Path):
        cfg = _write(tmp_path / "dotsetup.yml", "min_disk: 3\n")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_settings(cfg)

    def test_negative_threshold(self, tmp_path: Path):
        cfg = _write(tmp_path / "dotsetup.yml", "min_disk_gb: -1\n")
        with pytest.raises(ConfigError):
            load_settings(cfg)


class TestFindConfigFile:

    def test_env_var(self, tmp_path: Path):
        target = tmp_path / "custom.yml"
        assert find_config_file(tmp_path, {CONFIG_ENV_VAR: str(target)}) == target

    def test_walks_up(self, tmp_path: Path):
        cfg = _write(tmp_path / "dotsetup.yml", "min_disk_gb: 1\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested, {"HOME": str(tmp_path / "home")}) == cfg

    def test_xdg_config_home(self, tmp_path: Path):
        cfg = _write(tmp_path / "xdg" / "dotsetup" / "dotsetup.yml", "min_disk_gb: 1\n")
        start = tmp_path / "work"
        start.mkdir()
        found = find_config_file(start, {"XDG_CONFIG_HOME": str(tmp_path / "xdg")})
        assert found == cfg

    def test_nothing_found(self, tmp_path: Path):
        start = tmp_path / "work"
        start.mkdir()
        assert find_config_file(start, {"HOME": str(tmp_path / "home")}) is None

    def test_load_uses_search(self, tmp_path: Path, monkeypatch):
        _write(tmp_path / "dotsetup.yml", "min_disk_gb: 9\n")
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert load_settings().min_disk_gb == 9
