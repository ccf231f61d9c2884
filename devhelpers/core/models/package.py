"""
Package records — transient views over pip's JSON listings.

pip emits ``{"name", "version", "latest_version", ...}`` objects from
``pip list --format json``; these models keep only the fields the
helpers print or write, copied verbatim.
"""

from __future__ import annotations

from pydantic import BaseModel


class InstalledPackage(BaseModel):
    """One row of ``pip list --format json``."""

    name: str
    version: str = ""

    @classmethod
    def from_pip(cls, record: dict) -> "InstalledPackage":
        return cls(name=record.get("name", ""), version=record.get("version", ""))

    def requirement_line(self, *, include_version: bool) -> str:
        """Render as a requirements.txt line (``name`` or ``name==version``)."""
        if include_version:
            return f"{self.name}=={self.version}"
        return self.name


class OutdatedPackage(BaseModel):
    """One row of ``pip list --outdated --format json``."""

    name: str
    current_version: str = ""
    latest_version: str = ""

    @classmethod
    def from_pip(cls, record: dict) -> "OutdatedPackage":
        return cls(
            name=record.get("name", ""),
            current_version=record.get("version", ""),
            latest_version=record.get("latest_version", ""),
        )
