"""Report printing for the timer-guard CLI.

Findings and the summary line go to stdout, failures to stderr. Color
follows the NO_COLOR convention (https://no-color.org/) and falls back to
bracketed status words when disabled.
"""

from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TextIO

import click

if TYPE_CHECKING:
    from ..rules.base import Finding

# status -> (glyph, color, plain word)
STATUS_MARKS = {
    "ok": ("✓", "bright_green", "[OK]"),
    "warn": ("⚠", "bright_yellow", "[WARN]"),
    "fail": ("✗", "bright_red", "[FAIL]"),
}

SEVERITY_COLORS = {
    "critical": "red",
    "high": "red",
    "medium": "yellow",
    "low": "blue",
}


def should_use_color(
    explicit_flag: bool | None = None,
    stream: TextIO | None = None,
) -> bool:
    """Decide whether to emit ANSI colors.

    An explicit flag wins, then NO_COLOR (any value, even empty), then
    FORCE_COLOR, then whether the stream is a terminal.
    """
    if explicit_flag is not None:
        return explicit_flag
    if "NO_COLOR" in os.environ:
        return False
    if "FORCE_COLOR" in os.environ:
        return True
    stream = stream or sys.stdout
    return bool(getattr(stream, "isatty", lambda: False)())


@dataclass
class OutputConfig:
    """Where and how the report is printed."""

    use_color: bool = True
    quiet: bool = False
    verbose: bool = False
    stream: TextIO = field(default_factory=lambda: sys.stdout)
    err_stream: TextIO = field(default_factory=lambda: sys.stderr)

    @classmethod
    def from_flags(
        cls,
        verbose: bool = False,
        quiet: bool = False,
        no_color: bool = False,
    ) -> "OutputConfig":
        use_color = should_use_color(explicit_flag=False if no_color else None)
        return cls(use_color=use_color, quiet=quiet, verbose=verbose)


class OutputManager:
    """Prints findings, failures and the run summary.

    Findings, JSON reports and the summary are the command's result and are
    printed in quiet mode too; only debug lines are suppressed.

    Example:
        >>> output = OutputManager(OutputConfig.from_flags(no_color=True))
        >>> output.summary(files=3, findings=0, failed=False)
        [OK] 3 files checked | 0 findings
    """

    def __init__(self, config: OutputConfig | None = None):
        self.config = config or OutputConfig()

    def _style(self, text: str, **styles: Any) -> str:
        return click.style(text, **styles) if self.config.use_color else text

    def _mark(self, status: str) -> str:
        glyph, color, word = STATUS_MARKS[status]
        return click.style(glyph, fg=color) if self.config.use_color else word

    def error(self, message: str) -> None:
        click.echo(f"{self._mark('fail')} {message}", file=self.config.err_stream)

    def debug(self, message: str) -> None:
        if self.config.verbose and not self.config.quiet:
            click.echo(
                f"DEBUG: {self._style(message, dim=True)}", file=self.config.stream
            )

    def finding(self, finding: Finding) -> None:
        """Print ``path:line:col  severity  message  [rule]``."""
        severity = finding.severity.value
        click.echo(
            f"{finding.location}  "
            f"{self._style(severity, fg=SEVERITY_COLORS.get(severity))}  "
            f"{finding.summary}  "
            f"{self._style('[' + finding.rule_id + ']', dim=True)}",
            file=self.config.stream,
        )

    def json(self, payload: dict[str, Any]) -> None:
        click.echo(json.dumps(payload, indent=2), file=self.config.stream)

    def summary(
        self,
        files: int,
        findings: int,
        failed: bool,
        errors: int = 0,
        duration_ms: float | None = None,
    ) -> None:
        """Print the counts line, marked fail, warn or ok."""
        parts = [f"{files} files checked", f"{findings} findings"]
        if errors:
            parts.append(f"{errors} errors")
        if duration_ms is not None:
            parts.append(
                f"{duration_ms:.0f}ms"
                if duration_ms < 1000
                else f"{duration_ms / 1000:.1f}s"
            )

        if failed or errors:
            status = "fail"
        elif findings:
            status = "warn"
        else:
            status = "ok"
        click.echo(f"{self._mark(status)} {' | '.join(parts)}", file=self.config.stream)
