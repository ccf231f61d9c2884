"""
External tool runner — the single place devhelpers spawns processes.

Every helper goes through ``run_tool`` so that:

- the executable is checked with ``shutil.which`` before any spawn,
- argv is logged at DEBUG,
- ``OSError`` / ``subprocess.SubprocessError`` become ``ToolError``
  carrying the name of the step that failed,
- stderr is routed to the log (the verbose channel) rather than parsed.

Services catch these exceptions at their boundary and turn them into
``{"error": ...}`` dicts for the CLI.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

# stdout lines pip mixes into otherwise machine-readable output
_NOISE_PREFIXES = ("[notice]", "WARNING:", "DEPRECATION:")


class PreconditionError(Exception):
    """A command cannot start: nothing external has been invoked yet."""


class ToolNotFoundError(PreconditionError):
    """The external executable is not on the search path."""

    def __init__(self, executable: str):
        self.executable = executable
        super().__init__(f"{executable} not found in PATH")


class ToolError(Exception):
    """An external invocation failed (non-zero exit or spawn failure)."""

    def __init__(self, step: str, message: str, returncode: int | None = None):
        self.step = step
        self.message = message
        self.returncode = returncode
        super().__init__(f"{step} failed: {message}")


class ParseError(Exception):
    """Machine-readable tool output could not be parsed."""


def require_tool(executable: str) -> str:
    """Resolve ``executable`` on PATH or raise ToolNotFoundError."""
    resolved = shutil.which(executable)
    if resolved is None:
        raise ToolNotFoundError(executable)
    return resolved


def run_tool(
    argv: list[str],
    *,
    step: str,
    cwd: Path | None = None,
    timeout: int = 120,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run one external command and return the completed process.

    Args:
        argv: Full command line, executable first.
        step: Human-readable name of this step, used in error messages.
        cwd: Working directory for the child process.
        timeout: Seconds before the child is killed.
        check: Raise ToolError on a non-zero exit status.

    Raises:
        ToolError: The process could not be spawned, timed out, or
            (with ``check``) exited non-zero.
    """
    logger.debug("run [%s]: %s (cwd=%s)", step, " ".join(argv), cwd or ".")
    try:
        result = subprocess.run(
            argv,
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise ToolError(step, f"timed out after {e.timeout}s") from e
    except (OSError, subprocess.SubprocessError) as e:
        raise ToolError(step, str(e)) from e

    log_diagnostics(result.stderr, step=step)

    if check and result.returncode != 0:
        raise ToolError(step, failure_message(result), result.returncode)
    return result


def failure_message(result: subprocess.CompletedProcess[str]) -> str:
    """Best single-line explanation of a failed invocation."""
    text = (result.stderr or "").strip() or (result.stdout or "").strip()
    if not text:
        return f"exit code {result.returncode}"
    lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
    errors = [ln for ln in lines if ln.lower().startswith(("error", "fatal"))]
    return (errors or lines)[-1]


def log_diagnostics(stderr: str | None, *, step: str) -> None:
    """Route a tool's diagnostic stream to the log.

    Lines flagged as errors go out at WARNING; everything else is
    verbose-only.
    """
    for line in (stderr or "").splitlines():
        line = line.rstrip()
        if not line:
            continue
        if line.lower().startswith(("error", "fatal")):
            logger.warning("[%s] %s", step, line)
        else:
            logger.debug("[%s] %s", step, line)


def parse_json_output(stdout: str, *, step: str) -> list:
    """Parse a JSON array out of tool stdout.

    Notice and warning lines some pip versions print on stdout are
    logged and dropped before parsing.

    Raises:
        ParseError: What remains is not a JSON array.
    """
    kept = []
    for line in (stdout or "").splitlines():
        if line.lstrip().startswith(_NOISE_PREFIXES):
            logger.info("[%s] %s", step, line.strip())
            continue
        kept.append(line)

    text = "\n".join(kept).strip()
    if not text:
        raise ParseError(f"{step}: no JSON output")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"{step}: invalid JSON output ({e})") from e

    if not isinstance(data, list):
        raise ParseError(f"{step}: expected a JSON array, got {type(data).__name__}")
    return data
