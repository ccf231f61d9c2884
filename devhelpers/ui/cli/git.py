"""
CLI commands for the git helpers.

Thin wrappers over ``devhelpers.core.services.git_ops`` and
``devhelpers.core.services.git_refs``.
"""

from __future__ import annotations

from pathlib import Path

import click

from devhelpers.ui.cli._aliases import AliasedGroup
from devhelpers.ui.cli._common import (
    confirm_prompt,
    destructive_options,
    emit_json,
    fail_if_error,
    json_option,
    repo_option,
    resolve_repo,
    show_note,
    show_output,
    stopped_at_gate,
)


@click.group(cls=AliasedGroup)
def git() -> None:
    """Git helpers — submodules, resets, tag and branch cleanup."""


# ── Submodules ──────────────────────────────────────────────────


@git.command("Initialize-GitSubmodules", aliases=("init_submodules",))
@repo_option
def init_submodules(path: Path | None) -> None:
    """Register and check out all submodules."""
    from devhelpers.core.services.git_ops import git_init_submodules

    result = git_init_submodules(resolve_repo(path))
    fail_if_error(result)

    click.secho("✅ Submodules initialized", fg="green")
    show_output(result)


@git.command("Update-GitSubmodules", aliases=("update_submodules", "gsu"))
@repo_option
@click.option("--remote", "-r", is_flag=True, help="Track each submodule's remote branch.")
def update_submodules(path: Path | None, remote: bool) -> None:
    """Update submodules recursively (initializing new ones)."""
    from devhelpers.core.services.git_ops import git_update_submodules

    result = git_update_submodules(resolve_repo(path), remote=remote)
    fail_if_error(result)

    label = " to remote heads" if remote else ""
    click.secho(f"✅ Submodules updated{label}", fg="green")
    show_output(result)


@git.command(
    "Invoke-GitSubmoduleCommand",
    aliases=("submodule_foreach",),
    context_settings={"ignore_unknown_options": True},
)
@repo_option
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
def submodule_foreach(path: Path | None, command: tuple[str, ...]) -> None:
    """Run COMMAND in every submodule, recursively.

    Example:

        devhelpers git submodule_foreach -- git status --short
    """
    from devhelpers.core.services.git_ops import git_submodule_foreach

    result = git_submodule_foreach(resolve_repo(path), list(command))
    fail_if_error(result)
    show_output(result, limit=20000)


@git.command("Reset-GitSubmodules", aliases=("reset_submodules",))
@repo_option
@destructive_options
def reset_submodules(path: Path | None, force: bool, dry_run: bool) -> None:
    """Discard all changes and untracked files in every submodule."""
    from devhelpers.core.services.git_ops import git_reset_submodules

    result = git_reset_submodules(
        resolve_repo(path), force=force, dry_run=dry_run, confirm=confirm_prompt,
    )
    fail_if_error(result)
    if stopped_at_gate(result, lambda r: ["Would run: git submodule foreach --recursive "
                                          "git reset --hard && git clean -fdx"]):
        return

    click.secho("✅ Submodules reset", fg="green")


@git.command("Remove-GitSubmodule", aliases=("remove_submodule",))
@repo_option
@click.argument("submodule")
@destructive_options
def remove_submodule(path: Path | None, submodule: str, force: bool, dry_run: bool) -> None:
    """Deinitialize SUBMODULE and remove its cached repository."""
    from devhelpers.core.services.git_ops import git_remove_submodule

    result = git_remove_submodule(
        resolve_repo(path), submodule, force=force, dry_run=dry_run, confirm=confirm_prompt,
    )
    fail_if_error(result)
    if stopped_at_gate(result, lambda r: [f"Would deinit: {r['path']}"]):
        return

    click.secho(f"✅ Removed submodule {result['path']}", fg="green")
    if result.get("removed_cache"):
        click.echo(f"   Deleted .git/modules/{result['path']}")


# ── History & working tree ──────────────────────────────────────


@git.command("Reset-GitHead", aliases=("undo_commits", "reset_head"))
@repo_option
@click.option("--count", "-c", default=1, type=click.IntRange(min=1),
              help="Number of commits to drop.")
@destructive_options
def reset_head(path: Path | None, count: int, force: bool, dry_run: bool) -> None:
    """Hard-reset the current branch back COUNT commits."""
    from devhelpers.core.services.git_ops import git_reset_head

    result = git_reset_head(
        resolve_repo(path), count=count, force=force, dry_run=dry_run, confirm=confirm_prompt,
    )
    fail_if_error(result)
    if stopped_at_gate(result, lambda r: [f"Would run: git reset --hard {r['target']}"]):
        return

    click.secho(f"✅ Reset to {result['target']}", fg="green")
    show_output(result)


@git.command("Clear-GitWorkingTree", aliases=("discard_changes",))
@repo_option
@click.option("--ignored", "-x", "include_ignored", is_flag=True,
              help="Also delete ignored files.")
@destructive_options
def discard_changes(path: Path | None, include_ignored: bool, force: bool, dry_run: bool) -> None:
    """Discard uncommitted changes and delete untracked files."""
    from devhelpers.core.services.git_ops import git_discard_changes

    result = git_discard_changes(
        resolve_repo(path),
        include_ignored=include_ignored,
        force=force,
        dry_run=dry_run,
        confirm=confirm_prompt,
    )
    fail_if_error(result)

    def describe(r: dict) -> list[str]:
        lines = ["Would run: git reset --hard HEAD"]
        lines += [f"Would remove {p}" for p in r.get("would_remove", [])]
        return lines

    if stopped_at_gate(result, describe):
        return

    removed = result.get("removed", [])
    click.secho(f"✅ Working tree clean ({len(removed)} untracked removed)", fg="green")
    for p in removed[:50]:
        click.echo(f"   - {p}")


# ── Branches & tags ─────────────────────────────────────────────


@git.command("Get-GitDefaultBranch", aliases=("default_branch",))
@repo_option
@json_option
def default_branch(path: Path | None, as_json: bool) -> None:
    """Print the remote's default branch."""
    from devhelpers.core.services.git_ops import git_default_branch

    result = git_default_branch(resolve_repo(path))
    if as_json:
        emit_json(result)
        return
    fail_if_error(result)

    click.echo(result["branch"])
    if result["source"] == "config":
        click.secho(
            f"   ({result['remote']}/HEAD not set — configured default)", fg="yellow", err=True,
        )


@git.command("Sync-GitBranch", aliases=("rebase_default",))
@repo_option
def sync_branch(path: Path | None) -> None:
    """Fetch and rebase the current branch onto the default branch."""
    from devhelpers.core.services.git_ops import git_sync_branch

    result = git_sync_branch(resolve_repo(path))
    fail_if_error(result)

    click.secho(f"✅ Rebased onto {result['onto']}", fg="green")
    show_output(result)


@git.command("Remove-GitDerivedTags", aliases=("remove_tags",))
@repo_option
@click.argument("base_tag")
@click.option("--remote", "-r", is_flag=True, help="Also delete the tags on the remote.")
@destructive_options
@json_option
def remove_tags(
    path: Path | None,
    base_tag: str,
    remote: bool,
    force: bool,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Delete tags derived from BASE_TAG (BASE_TAG itself is kept)."""
    from devhelpers.core.services.git_refs import git_remove_derived_tags

    result = git_remove_derived_tags(
        resolve_repo(path),
        base_tag,
        remote=remote,
        force=force,
        dry_run=dry_run,
        confirm=None if as_json else confirm_prompt,
    )
    if as_json:
        emit_json(result)
        return

    if stopped_at_gate(result, lambda r: [f"Would delete tag {t}" for t in r["tags"]]):
        return
    show_note(result)

    for tag in result.get("deleted", []):
        where = f" (and on {result['remote']})" if result.get("remote") else ""
        click.secho(f"   ✓ {tag}{where}", fg="green")
    for item in result.get("failed", []):
        click.secho(f"   ✗ {item['tag']}: {item['error']}", fg="red")
    fail_if_error(result)

    if result.get("deleted"):
        click.secho(f"✅ Deleted {len(result['deleted'])} tag(s)", fg="green", bold=True)


@git.command("Remove-GitStaleBranches", aliases=("clean_branches", "prune_branches"))
@repo_option
@destructive_options
@json_option
def clean_branches(path: Path | None, force: bool, dry_run: bool, as_json: bool) -> None:
    """Delete local branches that no longer exist on the remote."""
    from devhelpers.core.services.git_refs import git_clean_branches

    result = git_clean_branches(
        resolve_repo(path),
        force=force,
        dry_run=dry_run,
        confirm=None if as_json else confirm_prompt,
    )
    if as_json:
        emit_json(result)
        return

    def describe(r: dict) -> list[str]:
        lines = [f"Would delete branch {b}" for b in r["candidates"]]
        if r["current_branch"] in r["candidates"]:
            lines.insert(0, f"Would switch to {r['default_branch']} first")
        return lines

    if stopped_at_gate(result, describe):
        return
    show_note(result)

    for b in result.get("deleted", []):
        click.secho(f"   ✓ {b}", fg="green")
    for item in result.get("skipped", []):
        click.secho(f"   ⊘ {item['branch']} (kept: {item['reason']})", fg="yellow")
    for item in result.get("failed", []):
        click.secho(f"   ✗ {item['branch']}: {item['error']}", fg="red")
    fail_if_error(result)

    if result.get("deleted"):
        click.secho(f"✅ Deleted {len(result['deleted'])} branch(es)", fg="green", bold=True)
