"""
Confirmation gate for destructive helpers.

Every command that discards work or deletes refs asks ``gate`` first and
only touches the repository when it answers ``PROCEED``:

    dry_run           → DRY_RUN   (show the plan, change nothing)
    force             → PROCEED   (no prompt)
    confirm(prompt)   → PROCEED / DECLINED
    no confirm given  → DECLINED

The prompt itself is injected by the caller (the CLI passes a
``click.confirm`` wrapper), so services stay channel-independent.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[str], bool]


class Decision(str, Enum):
    PROCEED = "proceed"
    DRY_RUN = "dry_run"
    DECLINED = "declined"


def gate(
    prompt: str,
    *,
    force: bool = False,
    dry_run: bool = False,
    confirm: Optional[ConfirmFn] = None,
) -> Decision:
    """Decide whether a destructive action may run."""
    if dry_run:
        logger.info("dry-run: %s", prompt)
        return Decision.DRY_RUN
    if force:
        logger.debug("forced: %s", prompt)
        return Decision.PROCEED
    if confirm is None:
        logger.debug("no confirmation channel, declining: %s", prompt)
        return Decision.DECLINED
    return Decision.PROCEED if confirm(prompt) else Decision.DECLINED


def not_proceeding(decision: Decision, **extra) -> dict | None:
    """Result dict for a gate that did not pass, or None to go ahead."""
    if decision is Decision.DRY_RUN:
        return {"ok": True, "dry_run": True, **extra}
    if decision is Decision.DECLINED:
        return {"ok": True, "cancelled": True, **extra}
    return None
