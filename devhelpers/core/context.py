"""
Process context — the effective settings for this invocation.

Set ONCE at startup by the CLI entrypoint (main.py) after the config
file is loaded.  Services read it when the caller does not pass
settings explicitly; tests pass settings directly or reset it.

Module-level singleton, not a class.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from devhelpers.core.models.settings import Settings

_settings: Optional[Settings] = None
_config_path: Optional[Path] = None


def set_settings(settings: Settings, config_path: Path | None = None) -> None:
    """Register the settings for the current process."""
    global _settings, _config_path
    _settings = settings
    _config_path = config_path


def get_settings() -> Settings:
    """Return the registered settings, or defaults if none were set."""
    return _settings if _settings is not None else Settings()


def get_config_path() -> Optional[Path]:
    """Return the file the settings came from, or None for defaults."""
    return _config_path


def reset() -> None:
    """Forget the registered settings."""
    global _settings, _config_path
    _settings = None
    _config_path = None
