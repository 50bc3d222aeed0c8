"""Interactive prompts.

Public API (the "studs"):
    Option: A selectable value with an optional hint
    Prompter: Protocol for confirmation and selection prompts
    ClickPrompter: Prompter backed by click's terminal prompts
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import click
from pydantic import BaseModel


class Option(BaseModel):
    """A selectable prompt option with an optional hint."""

    value: str
    hint: str = ""

    def __str__(self) -> str:
        return f"{self.value} ({self.hint})" if self.hint else self.value


@runtime_checkable
class Prompter(Protocol):
    """Protocol defining the prompts the orchestrator may show."""

    def confirm(self, message: str, help_text: str = "") -> bool:
        """Ask a yes/no question."""
        ...

    def select_one(self, message: str, options: list[Option]) -> str:
        """Select a single option, returning its value."""
        ...

    def select_many(self, message: str, options: list[Option]) -> list[str]:
        """Select one or more options, returning their values."""
        ...


def _render_options(message: str, options: list[Option]) -> None:
    click.echo(message)
    for i, option in enumerate(options, start=1):
        click.echo(f"  {i}. {option}")


def _parse_index(raw: str, count: int) -> int:
    try:
        index = int(raw.strip())
    except ValueError:
        raise click.BadParameter(f"{raw.strip()!r} is not a number") from None
    if not 1 <= index <= count:
        raise click.BadParameter(f"{index} is not between 1 and {count}")
    return index - 1


class ClickPrompter:
    """Prompter implementation using click.confirm and click.prompt.

    Selections are made by number; multi-select takes a comma-separated
    list of numbers.
    """

    def confirm(self, message: str, help_text: str = "") -> bool:
        if help_text:
            click.echo(help_text)
        return click.confirm(message, default=False)

    def select_one(self, message: str, options: list[Option]) -> str:
        if not options:
            raise ValueError("no options to select from")
        _render_options(message, options)
        while True:
            raw = click.prompt("Enter a number", type=str)
            try:
                return options[_parse_index(raw, len(options))].value
            except click.BadParameter as e:
                click.echo(f"Error: {e.message}")

    def select_many(self, message: str, options: list[Option]) -> list[str]:
        if not options:
            raise ValueError("no options to select from")
        _render_options(message, options)
        while True:
            raw = click.prompt("Enter one or more numbers separated by commas", type=str)
            try:
                indexes = [_parse_index(part, len(options)) for part in raw.split(",") if part.strip()]
            except click.BadParameter as e:
                click.echo(f"Error: {e.message}")
                continue
            if not indexes:
                click.echo("Error: select at least one option")
                continue
            selected: list[str] = []
            for index in indexes:
                if options[index].value not in selected:
                    selected.append(options[index].value)
            return selected


__all__ = ["Option", "Prompter", "ClickPrompter"]
