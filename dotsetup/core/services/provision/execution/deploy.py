"""
L4 Execution — Static configuration deployment.

Copies a shipped payload (``.zshrc``, ``.p10k.zsh``, ``keymaps.lua``)
to its destination, optionally replacing literal tokens first.  The
write is atomic: a temp file in the destination directory, then
``os.replace``.  The source payload is never modified.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from importlib import resources
from pathlib import Path
from typing import Mapping

from dotsetup.core.errors import DeployError

logger = logging.getLogger(__name__)


def payload_path(name: str, payload_dir: Path | None = None) -> Path:
    """Location of payload ``name`` (may include subdirectories).

    ``payload_dir`` (from settings) overrides the payloads shipped
    inside the package.
    """
    if payload_dir is not None:
        return Path(payload_dir) / name
    return Path(str(resources.files("dotsetup").joinpath("payloads", name)))


def render(payload: Path, substitutions: Mapping[str, str] | None = None) -> bytes:
    """Payload bytes with every token replaced, in mapping order.

    Raises:
        DeployError: If the payload does not exist or cannot be read.
    """
    payload = Path(payload)
    if not payload.is_file():
        raise DeployError(
            f"Payload not found: {payload}",
            remedy="Reinstall dotsetup or point payload_dir at a complete payload directory.",
        )
    try:
        if not substitutions:
            return payload.read_bytes()
        text = payload.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DeployError(f"Cannot read payload {payload}: {e}") from e

    for token, replacement in substitutions.items():
        text = text.replace(token, replacement)
    return text.encode("utf-8")


def is_deployed(
    payload: Path,
    destination: Path,
    substitutions: Mapping[str, str] | None = None,
) -> bool:
    """True if ``destination`` already holds the rendered payload."""
    destination = Path(destination)
    if not destination.is_file():
        return False
    try:
        return destination.read_bytes() == render(payload, substitutions)
    except (OSError, DeployError):
        return False


def deploy(
    payload: Path,
    destination: Path,
    substitutions: Mapping[str, str] | None = None,
) -> Path:
    """Write ``payload`` (rendered) to ``destination``, replacing any file there.

    Raises:
        DeployError: Missing payload, or the copy itself failed (the
            OS error is chained).
    """
    payload = Path(payload)
    destination = Path(destination)

    content = render(payload, substitutions) if substitutions else None
    if content is None and not payload.is_file():
        raise DeployError(
            f"Payload not found: {payload}",
            remedy="Reinstall dotsetup or point payload_dir at a complete payload directory.",
        )

    tmp_name: str | None = None
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent,
        )
        if content is None:
            os.close(fd)
            shutil.copyfile(payload, tmp_name)
        else:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, destination)
        tmp_name = None
    except OSError as e:
        raise DeployError(
            f"Failed to write {destination}: {e}",
            remedy=f"Copy {payload} to {destination} manually.",
        ) from e
    finally:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)

    logger.info("Deployed %s → %s", payload.name, destination)
    return destination
