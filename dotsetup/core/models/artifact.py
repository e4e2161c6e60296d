"""
RemoteArtifact — a downloadable payload and how to validate it.

Used transiently by the download helper; never persisted.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ArchiveFormat(str, Enum):
    GZIP = "gzip"
    NONE = "none"


class RemoteArtifact(BaseModel):
    """A release asset or script to fetch."""

    model_config = ConfigDict(frozen=True)

    url: str
    expected_min_bytes: int = Field(default=0, ge=0)
    archive_format: ArchiveFormat = ArchiveFormat.NONE
    member: str = ""    # top-level dir inside the archive to install ("" = everything)
    binary: str = ""    # executable path relative to the installed payload
