"""
Command aliases for the devhelpers CLI.

Every command has a primary Pascal-Case name (``Remove-GitDerivedTags``)
and a few snake_case aliases (``remove_tags``).  ``AliasedGroup`` keeps
a ``{alias -> primary}`` index, resolves names and aliases case-insensitively, and shows aliases next to each command in ``--help``.
"""

from __future__ import annotations

from typing import Any, Callable

import click


class AliasedGroup(click.Group):
    """A click group whose commands can be invoked by alias."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.aliases: dict[str, str] = {}

    def add_alias(self, alias: str, primary: str) -> None:
        if alias == primary or not alias:
            return
        existing = self.aliases.get(alias)
        if existing is not None and existing != primary:
            raise ValueError(f"alias '{alias}' already points at '{existing}'")
        self.aliases[alias] = primary

    def command(self, *args: Any, aliases: tuple[str, ...] = (), **kwargs: Any) -> Callable:
        """Like ``click.Group.command`` with an extra ``aliases`` tuple."""
        decorator = super().command(*args, **kwargs)

        def register(f: Callable) -> click.Command:
            cmd = decorator(f)
            for alias in aliases:
                self.add_alias(alias, cmd.name)
            return cmd

        return register

    def aliases_for(self, primary: str) -> list[str]:
        return [a for a, p in self.aliases.items() if p == primary]

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        cmd = super().get_command(ctx, cmd_name)
        if cmd is not None:
            return cmd

        lowered = cmd_name.lower()
        primary = self.aliases.get(cmd_name) or next(
            (p for a, p in self.aliases.items() if a.lower() == lowered), None,
        )
        if primary is None:
            primary = next((n for n in self.commands if n.lower() == lowered), None)
        if primary is None:
            return None
        return super().get_command(ctx, primary)

    def resolve_command(
        self, ctx: click.Context, args: list[str],
    ) -> tuple[str | None, click.Command | None, list[str]]:
        # Report the primary name, not the alias that was typed
        _name, cmd, rest = super().resolve_command(ctx, args)
        return (cmd.name if cmd else None), cmd, rest

    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        rows = []
        for name in self.list_commands(ctx):
            cmd = self.get_command(ctx, name)
            if cmd is None or cmd.hidden:
                continue
            help_text = cmd.get_short_help_str(limit=60)
            aliases = self.aliases_for(name)
            if aliases:
                help_text = f"{help_text} [{', '.join(aliases)}]"
            rows.append((name, help_text))

        if rows:
            with formatter.section("Commands"):
                formatter.write_dl(rows)
