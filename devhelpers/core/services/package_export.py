"""
Requirements export — write installed packages to a requirements file.

One line per package from ``pip list --format json``: the bare name,
or ``name==version`` when versions are requested.
"""

from __future__ import annotations

import logging
from pathlib import Path

from devhelpers.core.context import get_settings
from devhelpers.core.models.package import InstalledPackage
from devhelpers.core.models.settings import Settings
from devhelpers.core.services.package_ops import pip_records
from devhelpers.core.services.tooling import (
    ParseError,
    PreconditionError,
    ToolError,
    require_tool,
)

logger = logging.getLogger(__name__)


def list_installed(settings: Settings) -> list[InstalledPackage]:
    """Installed packages, in pip's order."""
    return [InstalledPackage.from_pip(rec) for rec in pip_records("list", settings=settings)]


def requirement_lines(packages: list[InstalledPackage], *, include_versions: bool) -> list[str]:
    return [p.requirement_line(include_version=include_versions) for p in packages]


def package_export(
    output: Path | None = None,
    *,
    include_versions: bool = False,
    settings: Settings | None = None,
) -> dict:
    """Export installed packages to a requirements file.

    Returns:
        {"ok": True, "path": str, "count": int, "include_versions": bool}
        or {"error": "..."}.  ``count`` equals the number of lines written.
    """
    settings = settings or get_settings()
    path = output or Path(settings.pip.requirements_file)

    try:
        require_tool(settings.pip.executable)
        packages = list_installed(settings)
    except (PreconditionError, ToolError, ParseError) as e:
        return {"error": str(e)}

    lines = requirement_lines(packages, include_versions=include_versions)
    try:
        path.write_text("".join(f"{ln}\n" for ln in lines), encoding="utf-8")
    except OSError as e:
        return {"error": f"Writing {path} failed: {e}"}

    logger.info("Wrote %d requirement(s) to %s", len(lines), path)
    result: dict = {
        "ok": True,
        "path": str(path),
        "count": len(lines),
        "include_versions": include_versions,
    }
    if not lines:
        result["note"] = "No installed packages reported by pip"
    return result
