"""
Shared CLI plumbing — option decorators and result rendering.

Services return dicts; these helpers turn them into coloured output
and exit codes the same way for every command.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Callable

import click


def repo_option(f: Callable) -> Callable:
    return click.option(
        "--path", "-C", "path",
        type=click.Path(file_okay=False, path_type=Path),
        default=None,
        help="Repository root (default: current directory).",
    )(f)


def json_option(f: Callable) -> Callable:
    return click.option(
        "--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.",
    )(f)


def destructive_options(f: Callable) -> Callable:
    """``--force`` skips the prompt; ``--dry-run`` only shows the plan."""
    f = click.option(
        "--dry-run", "--what-if", "-n", "dry_run", is_flag=True,
        help="Show what would happen without changing anything.",
    )(f)
    f = click.option(
        "--force", "-f", is_flag=True, help="Do not ask for confirmation.",
    )(f)
    return f


def resolve_repo(path: Path | None) -> Path:
    return (path or Path.cwd()).resolve()


def confirm_prompt(prompt: str) -> bool:
    """Interactive yes/no; Ctrl-C or EOF counts as no."""
    try:
        return click.confirm(prompt, default=False)
    except click.Abort:
        click.echo()
        return False


def emit_json(result: dict) -> None:
    click.echo(json.dumps(result, indent=2))
    if "error" in result:
        sys.exit(1)


def fail_if_error(result: dict) -> None:
    """Print the error and exit 1 when the service reported one."""
    if "error" in result:
        click.secho(f"❌ {result['error']}", fg="red")
        for problem in result.get("problems", [])[:20]:
            click.echo(f"   • {problem}")
        sys.exit(1)


def stopped_at_gate(result: dict, describe: Callable[[dict], list[str]] | None = None) -> bool:
    """Render a dry-run or cancelled result; True when nothing ran."""
    if result.get("cancelled"):
        click.secho("⊘ Cancelled — nothing changed.", fg="yellow")
        return True
    if result.get("dry_run"):
        click.secho("🔍 Dry run — nothing changed.", fg="cyan", bold=True)
        for line in (describe(result) if describe else []):
            click.echo(f"   {line}")
        return True
    return False


def show_note(result: dict) -> None:
    if result.get("note"):
        click.secho(f"ℹ️  {result['note']}", fg="yellow")


def show_output(result: dict, limit: int = 2000) -> None:
    text = result.get("output") or ""
    if text:
        click.echo(text[:limit])
