"""
Tests for the pure domain helpers — versions, selections, sizes.
"""

import pytest

from dotsetup.core.models.host import HostCapabilities, PackageManager
from dotsetup.core.services.provision.domain.selection import make_selections, select_fetch_tool
from dotsetup.core.services.provision.domain.sizes import (
    fmt_size,
    has_gzip_magic,
    is_gzip_content_type,
    kb_to_gb,
)
from dotsetup.core.services.provision.domain.version import (
    extract_version,
    parse_version,
    version_at_least,
)


class TestVersion:

    def test_extract(self):
        assert extract_version("NVIM v0.11.2") == "0.11.2"
        assert extract_version("zoxide 0.9.4") == "0.9.4"
        assert extract_version("no digits") is None

    def test_parse(self):
        assert parse_version("v1.2.3") == (1, 2, 3)
        with pytest.raises(ValueError):
            parse_version("1.2")

    @pytest.mark.parametrize("installed, minimum, ok", [
        ("0.11.2", "0.11.2", True),
        ("0.11.3", "0.11.2", True),
        ("0.12.0", "0.11.2", True),
        ("1.0.0", "0.11.2", True),
        ("0.11.1", "0.11.2", False),
        ("0.10.9", "0.11.2", False),
        ("0.9.10", "0.11.2", False),
        (None, "0.11.2", False),
        ("garbage", "0.11.2", False),
    ])
    def test_at_least(self, installed, minimum, ok):
        assert version_at_least(installed, minimum) is ok


class TestSelections:

    @pytest.mark.parametrize("pm, tool", [
        (PackageManager.PACMAN, "fastfetch"),
        (PackageManager.APT, "neofetch"),
        (PackageManager.DNF, "neofetch"),
        (PackageManager.YUM, "neofetch"),
        (PackageManager.ZYPPER, "neofetch"),
        (PackageManager.NONE, "neofetch"),
    ])
    def test_fetch_tool_by_manager(self, pm, tool):
        assert select_fetch_tool(HostCapabilities(package_manager=pm)) == tool

    def test_override_wins(self):
        caps = HostCapabilities(package_manager=PackageManager.PACMAN)
        assert make_selections(caps, fetch_tool="hyfetch").fetch_tool == "hyfetch"


class TestSizes:

    def test_kb_to_gb_floors(self):
        assert kb_to_gb(2047 * 1024) == 1
        assert kb_to_gb(2048 * 1024) == 2
        assert kb_to_gb(0) == 0

    def test_fmt_size(self):
        assert fmt_size(512) == "512.0 B"
        assert fmt_size(1024 * 1024) == "1.0 MB"

    def test_gzip_magic(self):
        assert has_gzip_magic(b"\x1f\x8b\x08")
        assert not has_gzip_magic(b"<!DOCTYPE html>")
        assert not has_gzip_magic(b"")

    def test_gzip_content_type(self):
        assert is_gzip_content_type("application/gzip")
        assert is_gzip_content_type("application/x-gzip; charset=binary")
        assert is_gzip_content_type("application/octet-stream", "gzip")
        assert not is_gzip_content_type("text/html; charset=utf-8")
        assert not is_gzip_content_type(None)
