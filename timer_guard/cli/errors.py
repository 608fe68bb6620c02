"""Errors that stop a timer-guard command before any report is printed.

Each carries an optional path and a hint, and renders itself for stderr.
All of them exit with status 2 so CI can tell them apart from findings.
"""

from __future__ import annotations

import click


class CLIError(Exception):
    """A failure reported on stderr instead of a findings report."""

    exit_code = 2
    default_hint: str | None = None

    def __init__(self, message: str, path: str | None = None, hint: str | None = None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.hint = hint or self.default_hint

    def render(self, use_color: bool = False) -> str:
        label = click.style("Error:", fg="red", bold=True) if use_color else "Error:"
        lines = [f"{label} {self.message}"]
        if self.path:
            lines.append(f"  path: {self.path}")
        if self.hint:
            lines.append(f"  hint: {self.hint}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()


class ConfigurationError(CLIError):
    """A config file or a rule's parameters could not be used."""

    default_hint = "Check timer-guard.config.json and the rule parameters"


class SourceFileError(CLIError):
    """A source file could not be read."""

    default_hint = "Check the file exists and is UTF-8 encoded"
