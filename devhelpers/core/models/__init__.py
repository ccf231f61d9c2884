"""
Domain models for devhelpers.

Re-exports the public models for convenient imports::

    from devhelpers.core.models import Settings, OutdatedPackage
"""

from devhelpers.core.models.package import InstalledPackage, OutdatedPackage
from devhelpers.core.models.settings import (
    GitSettings,
    PipSettings,
    PythonSettings,
    Settings,
)

__all__ = [
    "GitSettings",
    "InstalledPackage",
    "OutdatedPackage",
    "PipSettings",
    "PythonSettings",
    "Settings",
]
