"""
Package management operations — channel-independent service.

Outdated-package checking, bulk upgrade, requirements install and
dependency consistency checks, all through the pip CLI.

pip is asked for JSON (``--format json``) wherever its output is
interpreted; stderr is only ever logged.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path

from devhelpers.core.context import get_settings
from devhelpers.core.models.package import OutdatedPackage
from devhelpers.core.models.settings import Settings
from devhelpers.core.services.tooling import (
    ParseError,
    PreconditionError,
    ToolError,
    parse_json_output,
    require_tool,
    run_tool,
)

logger = logging.getLogger(__name__)


def run_pip(
    *args: str,
    settings: Settings,
    cwd: Path | None = None,
    step: str | None = None,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run a pip command and return the result."""
    pip = settings.pip
    return run_tool(
        [pip.executable, *args],
        step=step or f"pip {' '.join(args)}",
        cwd=cwd,
        timeout=pip.timeout,
        check=check,
    )


def pip_records(*args: str, settings: Settings) -> list[dict]:
    """Run a pip listing with ``--format json`` and return its records."""
    step = f"pip {' '.join(args)}"
    r = run_pip(*args, "--format", "json", settings=settings, step=step)
    records = parse_json_output(r.stdout, step=step)
    for rec in records:
        if not isinstance(rec, dict) or "name" not in rec:
            raise ParseError(f"{step}: unexpected record {rec!r}")
    return records


def list_outdated(settings: Settings) -> list[OutdatedPackage]:
    """Outdated packages, in pip's order."""
    records = pip_records("list", "--outdated", settings=settings)
    return [OutdatedPackage.from_pip(rec) for rec in records]


# ═══════════════════════════════════════════════════════════════════
#  Observe — outdated
# ═══════════════════════════════════════════════════════════════════


def package_outdated(
    *,
    output: Path | None = None,
    settings: Settings | None = None,
) -> dict:
    """Check for outdated packages.

    Args:
        output: Optional file to write the records to, as a JSON array.

    Returns:
        {"ok": True, "outdated": [...], "count": int} or {"error": "..."}
    """
    settings = settings or get_settings()
    try:
        require_tool(settings.pip.executable)
        packages = list_outdated(settings)
    except (PreconditionError, ToolError, ParseError) as e:
        return {"error": str(e)}

    outdated = [p.model_dump() for p in packages]
    result: dict = {"ok": True, "outdated": outdated, "count": len(outdated)}
    if not outdated:
        result["note"] = "All packages are up to date"

    if output is not None:
        try:
            output.write_text(json.dumps(outdated, indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            return {"error": f"Writing {output} failed: {e}"}
        result["output"] = str(output)

    return result


# ═══════════════════════════════════════════════════════════════════
#  Act — upgrade, install
# ═══════════════════════════════════════════════════════════════════


def package_update(
    *,
    dry_run: bool = False,
    settings: Settings | None = None,
) -> dict:
    """Upgrade every outdated package, one ``pip install --upgrade`` each.

    A failed upgrade is recorded and the remaining packages still run.
    ``pip check`` is run at the end to report broken requirements.
    """
    settings = settings or get_settings()
    try:
        require_tool(settings.pip.executable)
        packages = list_outdated(settings)
    except (PreconditionError, ToolError, ParseError) as e:
        return {"error": str(e)}

    planned = [p.model_dump() for p in packages]
    if not packages:
        return {"ok": True, "planned": [], "upgraded": [], "failed": [],
                "note": "All packages are up to date"}
    if dry_run:
        return {"ok": True, "dry_run": True, "planned": planned}

    upgraded: list[str] = []
    failed: list[dict] = []
    for pkg in packages:
        try:
            run_pip("install", "--upgrade", pkg.name, settings=settings)
        except ToolError as e:
            logger.warning("Upgrade of %s failed: %s", pkg.name, e)
            failed.append({"name": pkg.name, "error": str(e)})
            continue
        logger.info("Upgraded %s %s → %s", pkg.name, pkg.current_version, pkg.latest_version)
        upgraded.append(pkg.name)

    consistency = package_check(settings=settings)

    result: dict = {
        "ok": not failed,
        "planned": planned,
        "upgraded": upgraded,
        "failed": failed,
        "consistent": "error" not in consistency,
        "problems": consistency.get("problems", []),
    }
    if failed:
        result["error"] = f"{len(failed)} of {len(packages)} upgrade(s) failed"
    return result


def package_install_requirements(
    requirements: Path | None = None,
    *,
    settings: Settings | None = None,
) -> dict:
    """Install from a requirements file with ``pip install -r``.

    pip runs inside the file's directory so relative ``-r`` / ``-e``
    entries in the file resolve against it.
    """
    settings = settings or get_settings()
    path = (requirements or Path(settings.pip.requirements_file)).resolve()

    try:
        require_tool(settings.pip.executable)
        if not path.is_file():
            raise PreconditionError(f"Requirements file not found: {path}")
        r = run_pip("install", "-r", path.name, settings=settings, cwd=path.parent)
    except (PreconditionError, ToolError) as e:
        return {"error": str(e)}

    lines = [ln for ln in r.stdout.splitlines() if ln.strip()]
    return {"ok": True, "path": str(path), "summary": lines[-1] if lines else ""}


# ═══════════════════════════════════════════════════════════════════
#  Observe — consistency
# ═══════════════════════════════════════════════════════════════════


def package_check(*, settings: Settings | None = None) -> dict:
    """Verify installed packages have compatible dependencies (``pip check``)."""
    settings = settings or get_settings()
    try:
        require_tool(settings.pip.executable)
        r = run_pip("check", settings=settings, check=False)
    except (PreconditionError, ToolError) as e:
        return {"error": str(e)}

    lines = [ln.strip() for ln in r.stdout.splitlines() if ln.strip()]
    if r.returncode == 0:
        return {"ok": True, "problems": [], "output": "\n".join(lines)}

    return {
        "error": f"pip check found {len(lines)} problem(s)",
        "problems": lines,
    }
