"""
Git operations — channel-independent service.

Submodule maintenance, hard resets, working-tree cleanup, default
branch detection and rebase-onto-default, all as thin wrappers over
the git CLI.  Tag and branch cleanup live in ``git_refs``.

Every function returns ``{"ok": True, ...}`` on success or
``{"error": ...}`` on failure, and never raises.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

from devhelpers.core.context import get_settings
from devhelpers.core.models.settings import Settings
from devhelpers.core.services.confirm import ConfirmFn, gate, not_proceeding
from devhelpers.core.services.tooling import (
    PreconditionError,
    ToolError,
    require_tool,
    run_tool,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Low-level runners
# ═══════════════════════════════════════════════════════════════════


def run_git(
    *args: str,
    cwd: Path,
    settings: Settings,
    step: str | None = None,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run a git command and return the result."""
    git = settings.git
    return run_tool(
        [git.executable, *args],
        step=step or f"git {' '.join(args)}",
        cwd=cwd,
        timeout=git.timeout,
        check=check,
    )


def require_repo(repo: Path, settings: Settings) -> None:
    """Fail fast unless git is installed and ``repo`` is a repository root.

    ``.git`` may be a directory or, for worktrees and submodules, a file.
    """
    require_tool(settings.git.executable)
    if not repo.is_dir():
        raise PreconditionError(f"Path does not exist: {repo}")
    if not (repo / ".git").exists():
        raise PreconditionError(f"Not a git repository root: {repo}")


def output_lines(text: str) -> list[str]:
    """Non-empty, stripped lines of a command's stdout."""
    return [ln.strip() for ln in (text or "").splitlines() if ln.strip()]


def resolve_default_branch(repo: Path, settings: Settings) -> tuple[str, str]:
    """Return ``(branch, source)`` for the remote's default branch.

    ``source`` is ``"remote"`` when read from ``refs/remotes/<remote>/HEAD``
    and ``"config"`` when falling back to the configured default.
    """
    remote = settings.git.remote
    r = run_git(
        "symbolic-ref", "--short", f"refs/remotes/{remote}/HEAD",
        cwd=repo, settings=settings, check=False,
    )
    ref = r.stdout.strip() if r.returncode == 0 else ""
    if ref:
        return ref.removeprefix(f"{remote}/"), "remote"

    logger.info(
        "%s/HEAD is not set, using configured default branch '%s'",
        remote, settings.git.default_branch,
    )
    return settings.git.default_branch, "config"


# ═══════════════════════════════════════════════════════════════════
#  Submodules
# ═══════════════════════════════════════════════════════════════════


def git_init_submodules(repo: Path, *, settings: Settings | None = None) -> dict:
    """Register and check out all submodules.

    Two steps: ``submodule init`` then ``submodule update --recursive``.
    A failed update does not undo the init.
    """
    settings = settings or get_settings()
    try:
        require_repo(repo, settings)
        run_git("submodule", "init", cwd=repo, settings=settings)
        r = run_git("submodule", "update", "--recursive", cwd=repo, settings=settings)
    except (PreconditionError, ToolError) as e:
        return {"error": str(e)}

    return {"ok": True, "output": r.stdout.strip()}


def git_update_submodules(
    repo: Path,
    *,
    remote: bool = False,
    settings: Settings | None = None,
) -> dict:
    """Bring submodules to their recorded (or, with ``remote``, latest) revision."""
    settings = settings or get_settings()
    args = ["submodule", "update", "--init", "--recursive"]
    if remote:
        args.append("--remote")

    try:
        require_repo(repo, settings)
        r = run_git(*args, cwd=repo, settings=settings)
    except (PreconditionError, ToolError) as e:
        return {"error": str(e)}

    return {"ok": True, "remote": remote, "output": r.stdout.strip()}


def git_submodule_foreach(
    repo: Path,
    command: list[str],
    *,
    settings: Settings | None = None,
) -> dict:
    """Run a shell command in every submodule, recursively."""
    settings = settings or get_settings()
    if not command:
        return {"error": "A command to run is required"}

    try:
        require_repo(repo, settings)
        r = run_git(
            "submodule", "foreach", "--recursive", *command,
            cwd=repo, settings=settings,
        )
    except (PreconditionError, ToolError) as e:
        return {"error": str(e)}

    return {"ok": True, "output": r.stdout.strip()}


def git_reset_submodules(
    repo: Path,
    *,
    force: bool = False,
    dry_run: bool = False,
    confirm: ConfirmFn | None = None,
    settings: Settings | None = None,
) -> dict:
    """Discard all changes inside every submodule (reset + clean)."""
    settings = settings or get_settings()
    try:
        require_repo(repo, settings)
        decision = gate(
            f"Discard ALL local changes and untracked files in every submodule of {repo}?",
            force=force, dry_run=dry_run, confirm=confirm,
        )
        skipped = not_proceeding(decision)
        if skipped:
            return skipped

        run_git(
            "submodule", "foreach", "--recursive", "git", "reset", "--hard",
            cwd=repo, settings=settings,
        )
        r = run_git(
            "submodule", "foreach", "--recursive", "git", "clean", "-fdx",
            cwd=repo, settings=settings,
        )
    except (PreconditionError, ToolError) as e:
        return {"error": str(e)}

    return {"ok": True, "output": r.stdout.strip()}


def git_remove_submodule(
    repo: Path,
    path: str,
    *,
    force: bool = False,
    dry_run: bool = False,
    confirm: ConfirmFn | None = None,
    settings: Settings | None = None,
) -> dict:
    """Deinitialize a submodule and drop its cached repository.

    Runs ``git submodule deinit -f -- <path>`` and removes
    ``.git/modules/<path>`` when present.
    """
    settings = settings or get_settings()
    rel = path.strip().strip("/")
    if not rel:
        return {"error": "Submodule path is required"}

    try:
        require_repo(repo, settings)
        if not (repo / rel).exists():
            raise PreconditionError(f"Path does not exist: {repo / rel}")

        decision = gate(
            f"Deinitialize submodule '{rel}' and delete its working copy?",
            force=force, dry_run=dry_run, confirm=confirm,
        )
        skipped = not_proceeding(decision, path=rel)
        if skipped:
            return skipped

        run_git("submodule", "deinit", "-f", "--", rel, cwd=repo, settings=settings)
    except (PreconditionError, ToolError) as e:
        return {"error": str(e)}

    modules_dir = repo / ".git" / "modules" / rel
    removed_cache = False
    if modules_dir.is_dir():
        try:
            shutil.rmtree(modules_dir)
        except OSError as e:
            return {"error": f"Removing {modules_dir} failed: {e}"}
        removed_cache = True

    return {"ok": True, "path": rel, "removed_cache": removed_cache}


# ═══════════════════════════════════════════════════════════════════
#  History & working tree
# ═══════════════════════════════════════════════════════════════════


def git_reset_head(
    repo: Path,
    *,
    count: int = 1,
    force: bool = False,
    dry_run: bool = False,
    confirm: ConfirmFn | None = None,
    settings: Settings | None = None,
) -> dict:
    """Throw away the last ``count`` commits with ``git reset --hard HEAD~<n>``."""
    settings = settings or get_settings()
    if count < 1:
        return {"error": "Commit count must be at least 1"}
    target = f"HEAD~{count}"

    try:
        require_repo(repo, settings)
        decision = gate(
            f"Hard-reset to {target}? {count} commit(s) and all uncommitted "
            "changes will be lost.",
            force=force, dry_run=dry_run, confirm=confirm,
        )
        skipped = not_proceeding(decision, target=target)
        if skipped:
            return skipped

        r = run_git("reset", "--hard", target, cwd=repo, settings=settings)
    except (PreconditionError, ToolError) as e:
        return {"error": str(e)}

    return {"ok": True, "target": target, "output": r.stdout.strip()}


def git_discard_changes(
    repo: Path,
    *,
    include_ignored: bool = False,
    force: bool = False,
    dry_run: bool = False,
    confirm: ConfirmFn | None = None,
    settings: Settings | None = None,
) -> dict:
    """Reset tracked files to HEAD and delete untracked files.

    In dry-run mode ``git clean -n`` lists what would be removed.
    """
    settings = settings or get_settings()
    clean_flags = "-fdx" if include_ignored else "-fd"

    try:
        require_repo(repo, settings)
        decision = gate(
            f"Discard all uncommitted changes in {repo} and delete untracked files?",
            force=force, dry_run=dry_run, confirm=confirm,
        )
        preview: list[str] = []
        if dry_run:
            preview_flags = "-ndx" if include_ignored else "-nd"
            r = run_git("clean", preview_flags, cwd=repo, settings=settings)
            preview = [
                ln.removeprefix("Would remove ").strip()
                for ln in output_lines(r.stdout)
            ]
        skipped = not_proceeding(decision, would_remove=preview)
        if skipped:
            return skipped

        run_git("reset", "--hard", "HEAD", cwd=repo, settings=settings)
        r = run_git("clean", clean_flags, cwd=repo, settings=settings)
    except (PreconditionError, ToolError) as e:
        return {"error": str(e)}

    removed = [ln.removeprefix("Removing ").strip() for ln in output_lines(r.stdout)]
    return {"ok": True, "removed": removed}


# ═══════════════════════════════════════════════════════════════════
#  Default branch
# ═══════════════════════════════════════════════════════════════════


def git_default_branch(repo: Path, *, settings: Settings | None = None) -> dict:
    """Detect the remote's default branch."""
    settings = settings or get_settings()
    try:
        require_repo(repo, settings)
        branch, source = resolve_default_branch(repo, settings)
    except (PreconditionError, ToolError) as e:
        return {"error": str(e)}

    return {"ok": True, "branch": branch, "source": source, "remote": settings.git.remote}


def git_sync_branch(repo: Path, *, settings: Settings | None = None) -> dict:
    """Fetch the remote and rebase the current branch onto its default branch.

    A failed fetch stops before the rebase; a failed rebase is left for
    the user to resolve (``git rebase --abort`` or continue).
    """
    settings = settings or get_settings()
    remote = settings.git.remote

    try:
        require_repo(repo, settings)
        branch, _source = resolve_default_branch(repo, settings)
        run_git("fetch", remote, cwd=repo, settings=settings)
        upstream = f"{remote}/{branch}"
        r = run_git("rebase", upstream, cwd=repo, settings=settings)
    except (PreconditionError, ToolError) as e:
        return {"error": str(e)}

    return {"ok": True, "onto": upstream, "output": r.stdout.strip()}
