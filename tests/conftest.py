"""
Shared test fixtures and configuration.

``fake_tools`` replaces ``subprocess.run`` and ``shutil.which`` for the
whole tool runner, records every argv, and answers with canned results
registered per argv prefix.  No test ever spawns git or pip.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

import pytest

from devhelpers.core import context
from devhelpers.core.models.settings import Settings
from devhelpers.core.services import tooling


@dataclass
class _Reply:
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0
    raises: BaseException | None = None


class FakeTools:
    """Recording stand-in for external executables."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.missing: set[str] = set()
        self.paths: dict[str, str] = {}
        self._replies: list[tuple[tuple[str, ...], _Reply]] = []

    def on(
        self,
        *prefix: str,
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
        raises: BaseException | None = None,
    ) -> None:
        """Answer any argv starting with ``prefix`` (longest prefix wins)."""
        self._replies.append((prefix, _Reply(stdout, stderr, returncode, raises)))

    def which(self, name: str, *args, **kwargs) -> str | None:
        if name in self.missing:
            return None
        return self.paths.get(name, f"/usr/bin/{name}")

    def run(self, argv, **kwargs) -> subprocess.CompletedProcess:
        argv = list(argv)
        self.calls.append(argv)
        best: tuple[tuple[str, ...], _Reply] | None = None
        for prefix, reply in self._replies:
            if tuple(argv[: len(prefix)]) == prefix:
                if best is None or len(prefix) >= len(best[0]):
                    best = (prefix, reply)
        if best is None:
            return subprocess.CompletedProcess(argv, 0, "", "")
        reply = best[1]
        if reply.raises is not None:
            raise reply.raises
        return subprocess.CompletedProcess(argv, reply.returncode, reply.stdout, reply.stderr)

    def ran(self, *prefix: str) -> bool:
        return any(tuple(c[: len(prefix)]) == prefix for c in self.calls)

    def count(self, *prefix: str) -> int:
        return sum(1 for c in self.calls if tuple(c[: len(prefix)]) == prefix)


@pytest.fixture
def fake_tools(monkeypatch) -> FakeTools:
    """Stub git/pip/python for every call made through the tool runner."""
    fake = FakeTools()
    monkeypatch.setattr(tooling.subprocess, "run", fake.run)
    monkeypatch.setattr(tooling.shutil, "which", fake.which)
    return fake


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """A directory that looks like a repository root."""
    root = tmp_path / "repo"
    (root / ".git").mkdir(parents=True)
    return root


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture(autouse=True)
def _reset_context():
    """The CLI registers settings process-wide; forget them after each test."""
    yield
    context.reset()


def yes(prompt: str) -> bool:
    return True


def no(prompt: str) -> bool:
    return False
