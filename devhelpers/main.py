"""
devhelpers — CLI entrypoint.

Usage:
    devhelpers --help
    devhelpers git remove_tags v1.0 --remote
    devhelpers packages Get-PipOutdated
    python -m devhelpers.main config show
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from devhelpers import __version__
from devhelpers.core.observability.logging_config import setup_cli_logging
from devhelpers.ui.cli._aliases import AliasedGroup


@click.group(cls=AliasedGroup)
@click.version_option(version=__version__, prog_name="devhelpers")
@click.option("--verbose", "-v", is_flag=True, help="Show tool diagnostics (INFO).")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to devhelpers.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """devhelpers — git and pip shortcuts with safety prompts."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    setup_cli_logging(debug=debug, verbose=verbose, quiet=quiet)

    # ── Settings (devhelpers.yml + env overrides) ───────────────
    from devhelpers.core.config.loader import ConfigError, find_config_file, load_settings
    from devhelpers.core.context import set_settings

    path = Path(config_path) if config_path else find_config_file()
    try:
        settings = load_settings(path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    set_settings(settings, path)


@cli.group(cls=AliasedGroup)
def config() -> None:
    """Configuration commands."""


@config.command("show")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def config_show(as_json: bool) -> None:
    """Print the effective settings."""
    from devhelpers.core.context import get_config_path, get_settings

    settings = get_settings()
    source = get_config_path()

    if as_json:
        click.echo(json.dumps({
            "config_path": str(source) if source else None,
            "settings": settings.model_dump(),
        }, indent=2))
        return

    click.secho(f"⚙️  {source or 'defaults (no devhelpers.yml found)'}", fg="cyan", bold=True)
    for section, values in settings.model_dump().items():
        click.secho(f"   {section}:", bold=True)
        for key, val in values.items():
            click.echo(f"     {key}: {val}")


# ── Register sub-command groups from devhelpers/ui/cli/ ─────────

from devhelpers.ui.cli.git import git  # noqa: E402
from devhelpers.ui.cli.packages import packages  # noqa: E402

cli.add_command(git)
cli.add_command(packages)
cli.add_alias("pip", "packages")


if __name__ == "__main__":
    cli()
