"""
Tests for git_refs — derived-tag removal and stale-branch cleanup.
"""

from pathlib import Path

from devhelpers.core.models.settings import GitSettings, Settings
from devhelpers.core.services.git_refs import (
    derived_tags,
    git_clean_branches,
    git_remove_derived_tags,
    remote_branch_names,
    stale_branches,
)
from tests.conftest import no, yes


# ═══════════════════════════════════════════════════════════════════
#  Selection rules
# ═══════════════════════════════════════════════════════════════════


class TestDerivedTags:
    def test_base_itself_never_selected(self):
        tags = ["v1.0", "v1.0-rc1", "v1.0-rc2", "v1.0.1"]
        assert derived_tags(tags, "v1.0") == ["v1.0-rc1", "v1.0-rc2", "v1.0.1"]

    def test_only_strict_prefix(self):
        assert derived_tags(["v1.1", "xv1.0-rc1", "v1"], "v1.0") == []

    def test_keeps_order(self):
        assert derived_tags(["b-2", "b-1", "b-3"], "b") == ["b-2", "b-1", "b-3"]


class TestRemoteBranchNames:
    def test_strips_remote_prefix(self):
        lines = ["origin/main", "origin/feature/login", "origin"]
        assert remote_branch_names(lines, "origin") == ["main", "feature/login"]

    def test_drops_head_pointer(self):
        lines = ["origin/HEAD -> origin/main", "origin/HEAD", "origin/main"]
        assert remote_branch_names(lines, "origin") == ["main"]

    def test_ignores_other_remotes(self):
        assert remote_branch_names(["fork/topic", "origin/main"], "origin") == ["main"]


class TestStaleBranches:
    def test_excludes_default_and_remote(self):
        local = ["main", "feature/a", "feature/b", "old"]
        assert stale_branches(local, ["main", "feature/a"], "main") == ["feature/b", "old"]

    def test_default_kept_even_when_missing_on_remote(self):
        assert stale_branches(["main", "x"], [], "main") == ["x"]

    def test_nothing_stale(self):
        assert stale_branches(["main", "dev"], ["main", "dev"], "main") == []


# ═══════════════════════════════════════════════════════════════════
#  Remove-GitDerivedTags
# ═══════════════════════════════════════════════════════════════════


class TestRemoveDerivedTags:
    def _tags(self, fake_tools, *names):
        fake_tools.on("git", "tag", "--list", stdout="".join(f"{n}\n" for n in names))

    def test_lists_with_glob(self, fake_tools, repo: Path):
        self._tags(fake_tools)
        git_remove_derived_tags(repo, "v1.0", force=True)
        assert fake_tools.calls[0] == ["git", "tag", "--list", "v1.0*"]

    def test_deletes_derived_locally(self, fake_tools, repo: Path):
        self._tags(fake_tools, "v1.0", "v1.0-rc1", "v1.0-rc2")
        result = git_remove_derived_tags(repo, "v1.0", confirm=yes)

        assert result["ok"] is True
        assert result["deleted"] == ["v1.0-rc1", "v1.0-rc2"]
        assert result["remote"] is None
        assert fake_tools.calls[1:] == [
            ["git", "tag", "-d", "v1.0-rc1"],
            ["git", "tag", "-d", "v1.0-rc2"],
        ]
        assert not fake_tools.ran("git", "tag", "-d", "v1.0")
        assert not fake_tools.ran("git", "push")

    def test_remote_deletion(self, fake_tools, repo: Path):
        self._tags(fake_tools, "v2", "v2-beta")
        result = git_remove_derived_tags(repo, "v2", remote=True, force=True)
        assert result["remote"] == "origin"
        assert fake_tools.calls[1:] == [
            ["git", "tag", "-d", "v2-beta"],
            ["git", "push", "--delete", "origin", "v2-beta"],
        ]

    def test_remote_name_from_settings(self, fake_tools, repo: Path):
        self._tags(fake_tools, "v2-beta")
        settings = Settings(git=GitSettings(remote="upstream"))
        git_remove_derived_tags(repo, "v2", remote=True, force=True, settings=settings)
        assert ["git", "push", "--delete", "upstream", "v2-beta"] in fake_tools.calls

    def test_declined_deletes_nothing(self, fake_tools, repo: Path):
        self._tags(fake_tools, "v1.0-rc1")
        result = git_remove_derived_tags(repo, "v1.0", remote=True, confirm=no)
        assert result["cancelled"] is True
        assert not fake_tools.ran("git", "tag", "-d")
        assert not fake_tools.ran("git", "push")

    def test_dry_run_lists_tags(self, fake_tools, repo: Path):
        self._tags(fake_tools, "v1.0", "v1.0-rc1")
        result = git_remove_derived_tags(repo, "v1.0", dry_run=True, force=True)
        assert result == {"ok": True, "dry_run": True, "tags": ["v1.0-rc1"]}
        assert fake_tools.calls == [["git", "tag", "--list", "v1.0*"]]

    def test_only_base_exists(self, fake_tools, repo: Path):
        self._tags(fake_tools, "v1.0")
        prompts = []
        result = git_remove_derived_tags(repo, "v1.0", confirm=prompts.append)
        assert result["tags"] == []
        assert "No tags derived" in result["note"]
        assert prompts == []

    def test_partial_failure(self, fake_tools, repo: Path):
        self._tags(fake_tools, "v1-a", "v1-b")
        fake_tools.on("git", "tag", "-d", "v1-a", stderr="error: tag 'v1-a' not found.", returncode=1)
        result = git_remove_derived_tags(repo, "v1", remote=True, force=True)

        assert result["ok"] is False
        assert result["deleted"] == ["v1-b"]
        assert result["failed"][0]["tag"] == "v1-a"
        assert "1 of 2" in result["error"]
        assert not fake_tools.ran("git", "push", "--delete", "origin", "v1-a")

    def test_blank_base(self, fake_tools, repo: Path):
        assert "required" in git_remove_derived_tags(repo, "  ", force=True)["error"]
        assert fake_tools.calls == []

    def test_git_missing(self, fake_tools, repo: Path):
        fake_tools.missing.add("git")
        assert "not found" in git_remove_derived_tags(repo, "v1", force=True)["error"]
        assert fake_tools.calls == []


# ═══════════════════════════════════════════════════════════════════
#  Remove-GitStaleBranches
# ═══════════════════════════════════════════════════════════════════


class TestCleanBranches:
    def _setup(self, fake_tools, *, local, remote, current="main", default="origin/main"):
        fake_tools.on("git", "branch", "--format=%(refname:short)",
                      stdout="".join(f"{b}\n" for b in local))
        fake_tools.on("git", "branch", "-r", "--format=%(refname:short)",
                      stdout="".join(f"origin/{b}\n" for b in remote) + "origin\n")
        fake_tools.on("git", "symbolic-ref", stdout=f"{default}\n" if default else "",
                      returncode=0 if default else 128)
        fake_tools.on("git", "rev-parse", "--abbrev-ref", "HEAD", stdout=f"{current}\n")

    def test_discovery_commands(self, fake_tools, repo: Path):
        self._setup(fake_tools, local=["main"], remote=["main"])
        git_clean_branches(repo, force=True)
        assert fake_tools.calls == [
            ["git", "fetch", "--prune", "origin"],
            ["git", "branch", "--format=%(refname:short)"],
            ["git", "branch", "-r", "--format=%(refname:short)"],
            ["git", "symbolic-ref", "--short", "refs/remotes/origin/HEAD"],
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
        ]

    def test_deletes_only_stale(self, fake_tools, repo: Path):
        self._setup(fake_tools, local=["main", "feature", "gone", "old"], remote=["main", "feature"])
        result = git_clean_branches(repo, confirm=yes)

        assert result["candidates"] == ["gone", "old"]
        assert result["deleted"] == ["gone", "old"]
        assert fake_tools.ran("git", "branch", "-D", "gone")
        assert fake_tools.ran("git", "branch", "-D", "old")
        assert not fake_tools.ran("git", "branch", "-D", "main")
        assert not fake_tools.ran("git", "branch", "-D", "feature")
        assert not fake_tools.ran("git", "checkout")

    def test_default_never_deleted(self, fake_tools, repo: Path):
        """Default branch is kept even when the remote no longer lists it."""
        self._setup(fake_tools, local=["develop", "x"], remote=[], default="origin/develop",
                    current="x")
        result = git_clean_branches(repo, force=True)
        assert result["default_branch"] == "develop"
        assert result["candidates"] == ["x"]
        assert not fake_tools.ran("git", "branch", "-D", "develop")

    def test_switches_off_current_branch(self, fake_tools, repo: Path):
        self._setup(fake_tools, local=["main", "wip"], remote=["main"], current="wip")
        result = git_clean_branches(repo, force=True)

        assert result["deleted"] == ["wip"]
        checkout = fake_tools.calls.index(["git", "checkout", "main"])
        delete = fake_tools.calls.index(["git", "branch", "-D", "wip"])
        assert checkout < delete

    def test_checkout_failure_skips_current(self, fake_tools, repo: Path):
        self._setup(fake_tools, local=["main", "wip", "old"], remote=["main"], current="wip")
        fake_tools.on("git", "checkout", stderr="error: local changes would be overwritten",
                      returncode=1)
        result = git_clean_branches(repo, force=True)

        assert result["ok"] is True
        assert result["deleted"] == ["old"]
        assert result["skipped"][0]["branch"] == "wip"
        assert not fake_tools.ran("git", "branch", "-D", "wip")

    def test_declined(self, fake_tools, repo: Path):
        self._setup(fake_tools, local=["main", "wip"], remote=["main"], current="wip")
        result = git_clean_branches(repo, confirm=no)
        assert result["cancelled"] is True
        assert not fake_tools.ran("git", "checkout")
        assert not fake_tools.ran("git", "branch", "-D")
        assert not fake_tools.ran("git", "fetch")

    def test_dry_run(self, fake_tools, repo: Path):
        self._setup(fake_tools, local=["main", "wip"], remote=["main"], current="wip")
        result = git_clean_branches(repo, dry_run=True)
        assert result["dry_run"] is True
        assert result["candidates"] == ["wip"]
        assert result["current_branch"] == "wip"
        assert not fake_tools.ran("git", "checkout")
        assert not fake_tools.ran("git", "branch", "-D")
        assert not fake_tools.ran("git", "fetch")

    def test_nothing_to_do(self, fake_tools, repo: Path):
        self._setup(fake_tools, local=["main"], remote=["main"])
        result = git_clean_branches(repo, confirm=no)
        assert result["candidates"] == []
        assert "note" in result

    def test_default_from_config_when_remote_head_unset(self, fake_tools, repo: Path):
        self._setup(fake_tools, local=["trunk", "x"], remote=[], default=None, current="trunk")
        settings = Settings(git=GitSettings(default_branch="trunk"))
        result = git_clean_branches(repo, force=True, settings=settings)
        assert result["default_branch"] == "trunk"
        assert result["deleted"] == ["x"]

    def test_fetch_failure_aborts(self, fake_tools, repo: Path):
        self._setup(fake_tools, local=["main", "x"], remote=["main"])
        fake_tools.on("git", "fetch", stderr="fatal: could not read from remote", returncode=128)
        result = git_clean_branches(repo, force=True)
        assert "git fetch --prune origin failed" in result["error"]
        assert not fake_tools.ran("git", "branch", "-D")

    def test_detached_head_entry_ignored(self, fake_tools, repo: Path):
        self._setup(fake_tools, local=["(HEAD detached at 1a2b3c)", "main"], remote=["main"],
                    current="HEAD")
        result = git_clean_branches(repo, force=True)
        assert result["candidates"] == []

    def test_delete_failure_reported(self, fake_tools, repo: Path):
        self._setup(fake_tools, local=["main", "a", "b"], remote=["main"])
        fake_tools.on("git", "branch", "-D", "a", stderr="error: branch 'a' not found.", returncode=1)
        result = git_clean_branches(repo, force=True)
        assert result["deleted"] == ["b"]
        assert result["failed"][0]["branch"] == "a"
        assert "error" in result

    def test_json_mode_without_prompt_does_not_fetch(self, fake_tools, repo: Path):
        self._setup(fake_tools, local=["main", "wip"], remote=["main"])
        result = git_clean_branches(repo, confirm=None)
        assert result["cancelled"] is True
        assert not fake_tools.ran("git", "fetch")

    def test_confirmed_fetches_after_prompt(self, fake_tools, repo: Path):
        self._setup(fake_tools, local=["main", "old"], remote=["main"])
        seen = []

        def answer(prompt):
            seen.append(fake_tools.ran("git", "fetch"))
            return True

        result = git_clean_branches(repo, confirm=answer)
        assert seen == [False]
        assert result["deleted"] == ["old"]
        fetch = fake_tools.calls.index(["git", "fetch", "--prune", "origin"])
        delete = fake_tools.calls.index(["git", "branch", "-D", "old"])
        assert fetch < delete

    def test_branch_back_on_remote_after_fetch_is_kept(self, fake_tools, repo: Path):
        self._setup(fake_tools, local=["main", "old", "pushed"], remote=["main"])

        def answer(prompt):
            fake_tools.on("git", "branch", "-r", "--format=%(refname:short)",
                          stdout="origin/main\norigin/pushed\n")
            return True

        result = git_clean_branches(repo, confirm=answer)
        assert result["deleted"] == ["old"]
        assert result["skipped"] == [{"branch": "pushed", "reason": "still on 'origin'"}]
        assert not fake_tools.ran("git", "branch", "-D", "pushed")

    def test_fetch_failure_after_prompt_deletes_nothing(self, fake_tools, repo: Path):
        self._setup(fake_tools, local=["main", "x"], remote=["main"])
        fake_tools.on("git", "fetch", stderr="fatal: could not read from remote", returncode=128)
        result = git_clean_branches(repo, confirm=yes)
        assert "git fetch --prune origin failed" in result["error"]
        assert not fake_tools.ran("git", "branch", "-D")

    def test_git_missing(self, fake_tools, repo: Path):
        fake_tools.missing.add("git")
        assert git_clean_branches(repo, force=True)["error"] == "git not found in PATH"
        assert fake_tools.calls == []
