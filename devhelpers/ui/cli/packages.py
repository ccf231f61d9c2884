"""
CLI commands for the pip helpers.

Thin wrappers over ``devhelpers.core.services.package_ops``,
``package_export`` and ``python_links``.
"""

from __future__ import annotations

from pathlib import Path

import click

from devhelpers.ui.cli._aliases import AliasedGroup
from devhelpers.ui.cli._common import (
    emit_json,
    fail_if_error,
    json_option,
    show_note,
    stopped_at_gate,
)


@click.group(cls=AliasedGroup)
def packages() -> None:
    """Package helpers — outdated, upgrade, export, install, check."""


# ── Observe ─────────────────────────────────────────────────────


@packages.command("Get-PipOutdated", aliases=("check_updates", "outdated"))
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Also write the records to this file (JSON).")
@json_option
def outdated(output: Path | None, as_json: bool) -> None:
    """List installed packages with a newer release available."""
    from devhelpers.core.services.package_ops import package_outdated

    result = package_outdated(output=output)

    if as_json:
        emit_json(result)
        return
    fail_if_error(result)

    pkgs = result.get("outdated", [])
    if not pkgs:
        click.secho("✅ All packages up to date", fg="green")
    else:
        click.secho(f"📦 Outdated ({result['count']}):", fg="yellow", bold=True)
        for p in pkgs:
            click.echo(f"   {p['name']:<30} {p['current_version']:<12} → {p['latest_version']}")
    if result.get("output"):
        click.echo(f"   Written to {result['output']}")
    click.echo()


@packages.command("Test-PipDependencies", aliases=("check_dependencies", "pip_check"))
@json_option
def check(as_json: bool) -> None:
    """Check installed packages for broken requirements."""
    from devhelpers.core.services.package_ops import package_check

    result = package_check()

    if as_json:
        emit_json(result)
        return
    fail_if_error(result)

    click.secho("✅ No broken requirements", fg="green")


# ── Act ─────────────────────────────────────────────────────────


@packages.command("Update-PipPackages", aliases=("update_packages", "upgrade_all"))
@click.option("--dry-run", "--what-if", "-n", "dry_run", is_flag=True,
              help="List what would be upgraded.")
def update(dry_run: bool) -> None:
    """Upgrade every outdated package."""
    from devhelpers.core.services.package_ops import package_update

    if not dry_run:
        click.secho("📦 Upgrading outdated packages...", fg="cyan")
    result = package_update(dry_run=dry_run)

    if stopped_at_gate(result, lambda r: [
        f"{p['name']}: {p['current_version']} → {p['latest_version']}" for p in r["planned"]
    ]):
        return
    show_note(result)

    for name in result.get("upgraded", []):
        click.secho(f"   ✓ {name}", fg="green")
    for item in result.get("failed", []):
        click.secho(f"   ✗ {item['name']}: {item['error']}", fg="red")
    if result.get("problems"):
        click.secho("⚠️  pip check reports broken requirements:", fg="yellow")
        for line in result["problems"]:
            click.echo(f"   • {line}")
    fail_if_error(result)

    if result.get("upgraded"):
        click.secho(f"✅ Upgraded {len(result['upgraded'])} package(s)", fg="green", bold=True)


@packages.command("Install-PipRequirements", aliases=("install_requirements",))
@click.argument("requirements", required=False,
                type=click.Path(dir_okay=False, path_type=Path))
def install(requirements: Path | None) -> None:
    """Install packages from REQUIREMENTS (default: requirements.txt)."""
    from devhelpers.core.services.package_ops import package_install_requirements

    result = package_install_requirements(requirements)
    fail_if_error(result)

    click.secho(f"✅ Installed from {result['path']}", fg="green", bold=True)
    if result.get("summary"):
        click.echo(f"   {result['summary']}")


@packages.command("Export-PipRequirements", aliases=("export_requirements", "freeze"))
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="File to write (default: requirements.txt).")
@click.option("--include-versions", "-V", is_flag=True, help="Pin as name==version.")
@json_option
def export(output: Path | None, include_versions: bool, as_json: bool) -> None:
    """Write installed packages to a requirements file."""
    from devhelpers.core.services.package_export import package_export

    result = package_export(output, include_versions=include_versions)

    if as_json:
        emit_json(result)
        return
    fail_if_error(result)

    pinned = " (pinned)" if result["include_versions"] else ""
    click.secho(f"✅ Exported {result['count']} package(s){pinned} to {result['path']}",
                fg="green", bold=True)
    show_note(result)


@packages.command("New-PythonVersionLinks", aliases=("link_python",))
@click.option("--interpreter", "-i", default=None,
              help="Interpreter to link (default: configured python).")
@click.option("--dry-run", "--what-if", "-n", "dry_run", is_flag=True,
              help="Show the link without creating it.")
def link_python(interpreter: str | None, dry_run: bool) -> None:
    """Create python<major>.<minor>.exe beside the interpreter."""
    from devhelpers.core.services.python_links import python_version_link

    result = python_version_link(interpreter=interpreter, dry_run=dry_run)
    fail_if_error(result)

    if stopped_at_gate(result, lambda r: [f"Would link {r['link']} → {r['interpreter']}"]):
        return
    if not result["created"]:
        show_note(result)
        return

    click.secho(f"✅ Linked {result['link']}", fg="green")
    click.echo(f"   → {result['interpreter']} (Python {result['version']})")
