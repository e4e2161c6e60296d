"""
L4 Execution — Download, validate, extract and install artifacts.

``fetch`` is the one path by which a remote binary reaches the
install root:

    download → size check → gzip check → extract → swap into place → link

Everything happens inside a scoped temporary directory created next
to the destination (same filesystem, so the final renames are
atomic).  The directory is removed on every exit path, and a failure
at any stage leaves the destination and its link exactly as they were.
"""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
import subprocess
import tarfile
import tempfile
import urllib.error
import urllib.request
import zlib
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from dotsetup.core.errors import DownloadError, ExtractError, InstallError
from dotsetup.core.models.artifact import ArchiveFormat, RemoteArtifact
from dotsetup.core.services.provision.data.constants import USER_AGENT
from dotsetup.core.services.provision.domain.sizes import (
    fmt_size,
    has_gzip_magic,
    is_gzip_content_type,
)

logger = logging.getLogger(__name__)

_CHUNK = 64 * 1024


# ── Transport ───────────────────────────────────────────────────


def _open(url: str, *, timeout: int, headers: dict[str, str] | None = None) -> Any:
    """Open ``url`` with our User-Agent.  Separate for test patching."""
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT, **(headers or {})})
    return urllib.request.urlopen(req, timeout=timeout)


def download_file(url: str, dest: Path, *, timeout: int = 120) -> dict[str, Any]:
    """Stream ``url`` into ``dest``.

    Returns:
        ``{"size_bytes": N, "content_type": ..., "content_encoding": ...}``

    Raises:
        DownloadError: On any HTTP or network failure.
    """
    logger.info("Downloading %s", url)
    try:
        with _open(url, timeout=timeout) as resp, open(dest, "wb") as f:
            headers = resp.headers
            size = 0
            while True:
                chunk = resp.read(_CHUNK)
                if not chunk:
                    break
                f.write(chunk)
                size += len(chunk)
    except urllib.error.HTTPError as e:
        raise DownloadError(
            f"Download failed: HTTP {e.code} for {url}",
            remedy="Check the URL and your internet connection, then retry.",
        ) from e
    except (urllib.error.URLError, OSError, ValueError) as e:
        raise DownloadError(
            f"Download failed for {url}: {e}",
            remedy="Check your internet connection and try again.",
        ) from e

    logger.debug("Downloaded %s to %s", fmt_size(size), dest)
    return {
        "size_bytes": size,
        "content_type": headers.get("Content-Type") if headers else None,
        "content_encoding": headers.get("Content-Encoding") if headers else None,
    }


def resolve_release_url(
    repo: str,
    asset: str,
    *,
    api_timeout: int = 15,
) -> tuple[str, str | None]:
    """Resolve the download URL of ``asset`` in the latest release of ``repo``.

    Asks the GitHub API for the latest tag.  If the API call fails (network,
    rate limit, unexpected payload) falls back to the conventional
    ``releases/latest/download/<asset>`` redirect.

    A ``GITHUB_TOKEN`` env var, if set, is sent to lift the rate limit.

    Returns:
        ``(url, tag)``; ``tag`` is None when the fallback was used.
    """
    api_url = f"https://api.github.com/repos/{repo}/releases/latest"
    headers = {"Accept": "application/vnd.github+json"}
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        headers["Authorization"] = f"Bearer {token}"

    tag: str | None = None
    try:
        with _open(api_url, timeout=api_timeout, headers=headers) as resp:
            data = json.loads(resp.read())
        tag = data.get("tag_name") or None if isinstance(data, dict) else None
    except (urllib.error.URLError, OSError, ValueError) as e:
        logger.warning("Could not query latest %s release (%s), using the latest/ redirect", repo, e)

    if tag:
        logger.info("Latest %s release: %s", repo, tag)
        return f"https://github.com/{repo}/releases/download/{tag}/{asset}", tag
    return f"https://github.com/{repo}/releases/latest/download/{asset}", None


# ── Fetch + install ─────────────────────────────────────────────


def fetch(
    artifact: RemoteArtifact,
    destination: Path,
    *,
    link: Path | None = None,
    timeout: int = 120,
) -> Path:
    """Download ``artifact`` and install it at ``destination``.

    Args:
        artifact: What to download and how to validate it.
        destination: Final location of the payload (a directory for
            archives, a file otherwise).  A previous install there is
            replaced.
        link: Optional canonical command path; created (or replaced) as a
            symlink to ``destination / artifact.binary``.
        timeout: Network timeout in seconds.

    Returns:
        ``link`` if given, else the installed binary (or payload) path.

    Raises:
        DownloadError: Transport failure, undersized payload, not gzip.
        ExtractError: Archive cannot be unpacked or lacks ``member``.
        InstallError: Move or symlink failed.  Destination is restored.
    """
    destination = Path(destination)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise InstallError(
            f"Cannot create install root {destination.parent}: {e}",
            remedy="Check permissions on the install directory.",
        ) from e

    with tempfile.TemporaryDirectory(prefix=".dotsetup-", dir=destination.parent) as tmp:
        scratch = Path(tmp)
        name = Path(urlparse(artifact.url).path).name or "download"
        downloaded = scratch / name

        meta = download_file(artifact.url, downloaded, timeout=timeout)
        _check_size(downloaded, artifact)

        if artifact.archive_format == ArchiveFormat.GZIP:
            _check_gzip(downloaded, meta)
            payload = _extract(downloaded, scratch / "extract", artifact.member)
        else:
            payload = downloaded
            payload.chmod(0o755)

        binary = destination / artifact.binary if artifact.binary else destination
        _install(payload, destination, scratch, binary=binary, link=link)

    logger.info("Installed %s", link or binary)
    return link or binary


def _check_size(path: Path, artifact: RemoteArtifact) -> None:
    size = path.stat().st_size
    if size < artifact.expected_min_bytes:
        logger.warning("Undersized download starts with: %r", _preview(path))
        raise DownloadError(
            f"Downloaded file is too small ({size} bytes, expected at least "
            f"{artifact.expected_min_bytes}); it may be an error page",
            remedy=f"Download {artifact.url} manually to inspect it.",
        )


def _check_gzip(path: Path, meta: dict[str, Any]) -> None:
    """Accept the file if it starts with the gzip magic, else probe its type."""
    with open(path, "rb") as f:
        head = f.read(2)
    if has_gzip_magic(head):
        return

    file_cmd = shutil.which("file")
    if file_cmd:
        try:
            r = subprocess.run(
                [file_cmd, "-b", str(path)],
                capture_output=True, text=True, timeout=10,
            )
            described = r.stdout.strip()
        except (OSError, subprocess.TimeoutExpired):
            described = ""
        if re.search(r"gzip|compressed", described, re.IGNORECASE):
            return
        detail = f"file type: {described or 'unknown'}"
    elif is_gzip_content_type(meta.get("content_type"), meta.get("content_encoding")):
        logger.warning("Magic bytes do not match gzip; trusting Content-Type %s", meta.get("content_type"))
        return
    else:
        detail = f"content type: {meta.get('content_type') or 'unknown'}"

    logger.warning("Non-gzip download starts with: %r", _preview(path))
    raise DownloadError(
        f"Downloaded file is not a valid gzip archive ({detail})",
        remedy="The release asset may have moved; install it manually.",
    )


def _extract(archive: Path, target: Path, member: str) -> Path:
    """Unpack a .tar.gz into ``target``; return the payload directory."""
    target.mkdir()
    try:
        with tarfile.open(archive, "r:gz") as tf:
            tf.extractall(target, filter="data")
    except (tarfile.TarError, OSError, EOFError, zlib.error) as e:
        raise ExtractError(
            f"Failed to extract {archive.name}: {e}",
            remedy="Retry the download; the archive may be truncated.",
        ) from e

    payload = target / member if member else target
    if not payload.is_dir():
        found = sorted(p.name for p in target.iterdir())
        raise ExtractError(
            f"Extracted directory not found: {member} (archive contains: {', '.join(found) or 'nothing'})",
        )
    return payload


def _install(payload: Path, destination: Path, scratch: Path, *, binary: Path, link: Path | None) -> None:
    """Swap ``payload`` into ``destination`` and point ``link`` at ``binary``.

    The previous install is parked inside ``scratch`` until the link is
    in place, and put back if anything fails.
    """
    parked: Path | None = None
    if destination.exists() or destination.is_symlink():
        parked = scratch / "previous"
        try:
            os.rename(destination, parked)
        except OSError as e:
            raise InstallError(
                f"Cannot move existing install at {destination} aside: {e}",
                remedy="Check permissions and remove it manually.",
            ) from e

    try:
        os.rename(payload, destination)
    except OSError as e:
        _restore(destination, parked)
        raise InstallError(
            f"Failed to move payload to {destination}: {e}",
            remedy="Check permissions and disk space.",
        ) from e

    if link is None:
        return

    try:
        if not binary.is_file():
            raise FileNotFoundError(f"binary not found in payload: {binary}")
        _replace_symlink(binary, link)
    except OSError as e:
        _restore(destination, parked, discard_current=True)
        raise InstallError(
            f"Failed to create symlink at {link}: {e}",
            remedy=f"Link {binary} to {link} manually.",
        ) from e


def _replace_symlink(target: Path, link: Path) -> None:
    """Atomically create or replace ``link`` → ``target``."""
    link.parent.mkdir(parents=True, exist_ok=True)
    staging = link.parent / f".{link.name}.dotsetup-new"
    if staging.is_symlink() or staging.exists():
        staging.unlink()
    os.symlink(target, staging)
    try:
        os.replace(staging, link)
    except OSError:
        staging.unlink(missing_ok=True)
        raise


def _restore(destination: Path, parked: Path | None, *, discard_current: bool = False) -> None:
    """Put a parked install back.  Best effort; logs what it cannot undo."""
    try:
        if discard_current and (destination.exists() or destination.is_symlink()):
            if destination.is_dir() and not destination.is_symlink():
                shutil.rmtree(destination)
            else:
                destination.unlink()
        if parked is not None:
            os.rename(parked, destination)
    except OSError as e:
        logger.error("Could not restore previous install at %s: %s", destination, e)


def _preview(path: Path, n: int = 200) -> str:
    try:
        with open(path, "rb") as f:
            return f.read(n).decode("utf-8", errors="replace")
    except OSError:
        return ""
