"""
Configuration loader — reads devhelpers.yml into the Settings model.

The file is optional.  When present it is found by walking up from the
current directory (so commands work from any subdirectory of a repo),
or passed explicitly with ``--config``.  Environment variables override
individual executables and the git remote.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from devhelpers.core.models.settings import Settings

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "devhelpers.yml"

# env var -> (section, field)
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "DEVHELPERS_GIT": ("git", "executable"),
    "DEVHELPERS_REMOTE": ("git", "remote"),
    "DEVHELPERS_PIP": ("pip", "executable"),
    "DEVHELPERS_PYTHON": ("python", "executable"),
}


class ConfigError(Exception):
    """Raised when the configuration file is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for devhelpers.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to devhelpers.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_settings(
    path: Path | None = None,
    *,
    environ: dict[str, str] | None = None,
) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit path to devhelpers.yml. If None, searches upward;
            a missing file means defaults.
        environ: Environment mapping for overrides (default: ``os.environ``).

    Returns:
        Validated Settings model.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    data: dict = {}

    if path is None:
        path = find_config_file()
    elif not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    if path is not None:
        logger.debug("Loading settings from %s", path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e

        try:
            loaded = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Expected a YAML mapping in {path}, got {type(loaded).__name__}")
        data = loaded

    env = os.environ if environ is None else environ
    for var, (section, key) in _ENV_OVERRIDES.items():
        value = (env.get(var) or "").strip()
        if value:
            section_data = data.setdefault(section, {})
            if not isinstance(section_data, dict):
                raise ConfigError(f"Section '{section}' must be a mapping")
            section_data[key] = value
            logger.debug("Override %s.%s from %s", section, key, var)

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        where = f" in {path}" if path else ""
        raise ConfigError(f"Invalid configuration{where}: {e}") from e
