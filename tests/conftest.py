"""
Shared test fixtures and configuration.
"""

import io
import logging
import tarfile
from pathlib import Path

import pytest

from dotsetup.core.models.host import (
    Architecture,
    HostCapabilities,
    PackageManager,
    UserPaths,
)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def user_paths(tmp_path: Path) -> UserPaths:
    """A HOME with XDG directories under tmp_path (not created)."""
    home = tmp_path / "home"
    return UserPaths(
        home=home,
        cache_home=home / ".cache",
        data_home=home / ".local" / "share",
        config_home=home / ".config",
        local_bin=home / ".local" / "bin",
    )


@pytest.fixture
def env(tmp_path: Path) -> dict[str, str]:
    """Environment mapping matching ``user_paths``."""
    return {"HOME": str(tmp_path / "home")}


@pytest.fixture
def apt_caps() -> HostCapabilities:
    return HostCapabilities(
        package_manager=PackageManager.APT,
        is_root=False,
        architecture=Architecture.X86_64,
        available_disk_gb=50,
    )


@pytest.fixture
def pacman_caps() -> HostCapabilities:
    return HostCapabilities(
        package_manager=PackageManager.PACMAN,
        is_root=False,
        architecture=Architecture.X86_64,
        available_disk_gb=50,
    )


def make_tarball(path: Path, files: dict[str, bytes], *, mode: int = 0o755) -> Path:
    """Write a .tar.gz at ``path`` containing ``files`` (archive name → bytes)."""
    with tarfile.open(path, "w:gz") as tf:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = mode
            tf.addfile(info, io.BytesIO(data))
    return path


@pytest.fixture
def tarball():
    """Factory: ``tarball(path, {name: bytes})`` writes a .tar.gz."""
    return make_tarball


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """CLI invocations reconfigure the root logger; put it back."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)
