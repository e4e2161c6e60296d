"""
Configuration loader — reads dotsetup.yml into the Settings model.

The file is optional: with nothing found, the defaults in
``Settings`` describe a complete run.  When a file is found it is
read as YAML and validated against the pydantic schema.

Search order:
    1. explicit path (``--config``)
    2. ``DOTSETUP_CONFIG`` env var
    3. ``dotsetup.yml`` in the cwd or any parent
    4. ``$XDG_CONFIG_HOME/dotsetup/dotsetup.yml``
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from dotsetup.core.models.settings import Settings

logger = logging.getLogger(__name__)

CONFIG_FILE = "dotsetup.yml"
CONFIG_ENV_VAR = "DOTSETUP_CONFIG"


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


def find_config_file(
    start_dir: Path | None = None,
    environ: dict[str, str] | None = None,
) -> Path | None:
    """Locate dotsetup.yml without reading it.

    Args:
        start_dir: Directory to start the upward search from (default: cwd).
        environ: Environment mapping (default: ``os.environ``).

    Returns:
        Path to the config file, or None if there is none.
    """
    env = os.environ if environ is None else environ

    explicit = env.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit).expanduser()

    current = (start_dir or Path.cwd()).resolve()
    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    config_home = env.get("XDG_CONFIG_HOME") or str(Path(env.get("HOME", "~")) / ".config")
    user_file = Path(config_home).expanduser() / "dotsetup" / CONFIG_FILE
    if user_file.is_file():
        return user_file

    return None


def load_settings(path: Path | None = None, *, search: bool = True) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit path to a config file.  It must exist.
        search: When no path is given, look for one with
            ``find_config_file``.  If nothing is found, defaults apply.

    Returns:
        Validated Settings model.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    if path is None and search:
        path = find_config_file()

    if path is None:
        logger.debug("No %s found, using defaults", CONFIG_FILE)
        return Settings()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return Settings()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # Allow the whole document to sit under a top-level "dotsetup:" key
    if set(data) == {"dotsetup"} and isinstance(data["dotsetup"], dict):
        data = data["dotsetup"]

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    if settings.payload_dir is not None and not settings.payload_dir.is_absolute():
        # Relative payload dirs are relative to the config file
        settings = settings.model_copy(
            update={"payload_dir": (path.parent / settings.payload_dir).resolve()},
        )

    logger.info("Loaded settings from %s", path)
    return settings
