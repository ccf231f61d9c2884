"""
Version-qualified interpreter links.

Windows Python installs ship ``python.exe`` but no ``python3.12.exe``.
This creates the missing name as a hardlink beside the interpreter so
tools that look for a version-qualified executable find one.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from devhelpers.core.context import get_settings
from devhelpers.core.models.settings import Settings
from devhelpers.core.services.tooling import (
    ParseError,
    PreconditionError,
    ToolError,
    require_tool,
    run_tool,
)

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"Python\s+(\d+)\.(\d+)")


def parse_python_version(text: str) -> tuple[int, int]:
    """Extract ``(major, minor)`` from ``python --version`` output."""
    m = _VERSION_RE.search(text or "")
    if not m:
        raise ParseError(f"Unrecognised interpreter version: {text.strip()!r}")
    return int(m.group(1)), int(m.group(2))


def link_name(major: int, minor: int) -> str:
    return f"python{major}.{minor}.exe"


def python_version_link(
    *,
    interpreter: str | None = None,
    dry_run: bool = False,
    settings: Settings | None = None,
) -> dict:
    """Create ``python<major>.<minor>.exe`` as a hardlink to the interpreter.

    Returns:
        {"ok": True, "interpreter": str, "link": str, "created": bool}
        or {"error": "..."}
    """
    settings = settings or get_settings()
    exe = interpreter or settings.python.executable

    try:
        resolved = Path(require_tool(exe))
        # Python 2 prints its version on stderr
        r = run_tool([str(resolved), "--version"], step=f"{exe} --version", timeout=30)
        major, minor = parse_python_version(f"{r.stdout}\n{r.stderr}")
    except (PreconditionError, ToolError, ParseError) as e:
        return {"error": str(e)}

    link = resolved.parent / link_name(major, minor)
    base = {"interpreter": str(resolved), "version": f"{major}.{minor}", "link": str(link)}

    if link.exists():
        return {"ok": True, **base, "created": False, "note": f"{link.name} already exists"}
    if dry_run:
        return {"ok": True, **base, "created": False, "dry_run": True}

    try:
        os.link(resolved, link)
    except OSError as e:
        return {"error": f"Creating hardlink {link} failed: {e}"}

    logger.info("Linked %s → %s", link, resolved)
    return {"ok": True, **base, "created": True}
