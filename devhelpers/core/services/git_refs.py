"""
Git ref cleanup — derived tags and stale local branches.

Both operations are destructive and go through the confirmation gate.
Selection is done by pure functions (``derived_tags``,
``stale_branches``) so the rules are testable without git.
"""

from __future__ import annotations

import logging
from pathlib import Path

from devhelpers.core.context import get_settings
from devhelpers.core.models.settings import Settings
from devhelpers.core.services.confirm import ConfirmFn, gate, not_proceeding
from devhelpers.core.services.git_ops import (
    output_lines,
    require_repo,
    resolve_default_branch,
    run_git,
)
from devhelpers.core.services.tooling import PreconditionError, ToolError

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Selection rules
# ═══════════════════════════════════════════════════════════════════


def derived_tags(tags: list[str], base: str) -> list[str]:
    """Tags that have ``base`` as a strict prefix (never ``base`` itself)."""
    return [t for t in tags if t != base and t.startswith(base)]


def remote_branch_names(lines: list[str], remote: str) -> list[str]:
    """Strip ``<remote>/`` from ``git branch -r`` output.

    The symbolic ``<remote>/HEAD`` entry (shown as ``<remote>`` by newer
    git) and other remotes' branches are dropped.
    """
    prefix = f"{remote}/"
    names = []
    for line in lines:
        if " -> " in line:
            line = line.split(" -> ", 1)[0]
        if not line.startswith(prefix):
            continue
        name = line[len(prefix):]
        if name and name != "HEAD":
            names.append(name)
    return names


def stale_branches(local: list[str], remote: list[str], default: str) -> list[str]:
    """Local branches that are neither the default nor present on the remote."""
    on_remote = set(remote)
    return [b for b in local if b != default and b not in on_remote]


# ═══════════════════════════════════════════════════════════════════
#  Tags
# ═══════════════════════════════════════════════════════════════════


def git_remove_derived_tags(
    repo: Path,
    base: str,
    *,
    remote: bool = False,
    force: bool = False,
    dry_run: bool = False,
    confirm: ConfirmFn | None = None,
    settings: Settings | None = None,
) -> dict:
    """Delete every tag derived from ``base`` (e.g. ``v1.0-rc1`` for ``v1.0``).

    With ``remote``, each tag is also deleted on the configured remote
    with ``git push --delete <remote> <tag>``.

    Returns:
        {"ok": True, "tags": [...], "deleted": [...], "failed": [...]}
        — plus "error" when any deletion failed.
    """
    settings = settings or get_settings()
    base = base.strip()
    if not base:
        return {"error": "Base tag is required"}
    remote_name = settings.git.remote

    try:
        require_repo(repo, settings)
        r = run_git("tag", "--list", f"{base}*", cwd=repo, settings=settings)
    except (PreconditionError, ToolError) as e:
        return {"error": str(e)}

    tags = derived_tags(output_lines(r.stdout), base)
    if not tags:
        return {"ok": True, "tags": [], "deleted": [], "failed": [],
                "note": f"No tags derived from '{base}'"}

    where = f"locally and on '{remote_name}'" if remote else "locally"
    decision = gate(
        f"Delete {len(tags)} tag(s) derived from '{base}' {where}?",
        force=force, dry_run=dry_run, confirm=confirm,
    )
    skipped = not_proceeding(decision, tags=tags)
    if skipped:
        return skipped

    deleted: list[str] = []
    failed: list[dict] = []
    for tag in tags:
        try:
            run_git("tag", "-d", tag, cwd=repo, settings=settings)
            if remote:
                run_git("push", "--delete", remote_name, tag, cwd=repo, settings=settings)
        except ToolError as e:
            logger.warning("Could not delete tag %s: %s", tag, e)
            failed.append({"tag": tag, "error": str(e)})
            continue
        deleted.append(tag)

    result: dict = {
        "ok": not failed,
        "tags": tags,
        "deleted": deleted,
        "failed": failed,
        "remote": remote_name if remote else None,
    }
    if failed:
        result["error"] = f"{len(failed)} of {len(tags)} tag(s) could not be deleted"
    return result


# ═══════════════════════════════════════════════════════════════════
#  Branches
# ═══════════════════════════════════════════════════════════════════


def _remote_branches(repo: Path, remote: str, settings: Settings) -> list[str]:
    r = run_git("branch", "-r", "--format=%(refname:short)", cwd=repo, settings=settings)
    return remote_branch_names(output_lines(r.stdout), remote)


def git_clean_branches(
    repo: Path,
    *,
    force: bool = False,
    dry_run: bool = False,
    confirm: ConfirmFn | None = None,
    settings: Settings | None = None,
) -> dict:
    """Delete local branches that no longer exist on the remote.

    The default branch is always kept.  If the checked-out branch is
    about to go, the default branch is checked out first; when that
    checkout fails the current branch is skipped, not deleted.

    ``git fetch --prune`` only runs once deletion is certain: with
    ``force`` it runs before planning; after a confirmed prompt it runs
    before deleting, and branches the refreshed remote still has are
    kept.  Dry runs and declined prompts plan from the current refs.
    """
    settings = settings or get_settings()
    remote = settings.git.remote
    fetch_first = force and not dry_run

    try:
        require_repo(repo, settings)
        if fetch_first:
            run_git("fetch", "--prune", remote, cwd=repo, settings=settings)

        r_local = run_git("branch", "--format=%(refname:short)", cwd=repo, settings=settings)
        local = [b for b in output_lines(r_local.stdout) if not b.startswith("(")]
        on_remote = _remote_branches(repo, remote, settings)

        default, _source = resolve_default_branch(repo, settings)
        r_head = run_git("rev-parse", "--abbrev-ref", "HEAD", cwd=repo, settings=settings)
        current = r_head.stdout.strip()
    except (PreconditionError, ToolError) as e:
        return {"error": str(e)}

    candidates = stale_branches(local, on_remote, default)
    base = {"default_branch": default, "current_branch": current, "candidates": candidates}
    if not candidates:
        return {"ok": True, **base, "deleted": [], "skipped": [], "failed": [],
                "note": "No stale local branches"}

    decision = gate(
        f"Delete {len(candidates)} local branch(es) not on '{remote}': "
        f"{', '.join(candidates)}?",
        force=force, dry_run=dry_run, confirm=confirm,
    )
    not_run = not_proceeding(decision, **base)
    if not_run:
        return not_run

    to_delete = list(candidates)
    skipped: list[dict] = []
    if not fetch_first:
        try:
            run_git("fetch", "--prune", remote, cwd=repo, settings=settings)
            refreshed = set(_remote_branches(repo, remote, settings))
        except ToolError as e:
            return {"error": str(e), **base}
        for branch in [b for b in to_delete if b in refreshed]:
            skipped.append({"branch": branch, "reason": f"still on '{remote}'"})
            to_delete.remove(branch)

    if current in to_delete:
        try:
            run_git("checkout", default, cwd=repo, settings=settings)
        except ToolError as e:
            logger.warning("Keeping current branch %s: %s", current, e)
            skipped.append({"branch": current, "reason": str(e)})
            to_delete.remove(current)

    deleted: list[str] = []
    failed: list[dict] = []
    for branch in to_delete:
        try:
            run_git("branch", "-D", branch, cwd=repo, settings=settings)
        except ToolError as e:
            logger.warning("Could not delete branch %s: %s", branch, e)
            failed.append({"branch": branch, "error": str(e)})
            continue
        deleted.append(branch)

    result: dict = {
        "ok": not failed,
        **base,
        "deleted": deleted,
        "skipped": skipped,
        "failed": failed,
    }
    if failed:
        result["error"] = f"{len(failed)} branch(es) could not be deleted"
    return result
