"""Click-based CLI interface for timer-guard."""

import json
import logging
import sys
from pathlib import Path
from typing import Any

import click

from . import __version__
from .analysis.javascript_parser import JavaScriptParser, get_javascript_parser
from .cli.errors import CLIError, ConfigurationError, SourceFileError
from .cli.output import OutputConfig, OutputManager
from .guard_logging import setup_logging
from .rules.base import RuleContext, RuleOptionsError, Severity
from .rules.config import RuleEngineConfigLoader
from .rules.engine import RuleEngine, RuleEngineResult
from .rules.timers.console_time_pairs import ConsoleTimePairsRule, TimerScope

logger = logging.getLogger(__name__)

# Directories never worth descending into
SKIP_DIRS = {"node_modules", "dist", "build", "coverage"}

SEVERITY_CHOICES = [s.value for s in Severity]


def common_options(f: Any) -> Any:
    """Common output options for commands."""
    f = click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")(
        f
    )
    f = click.option(
        "--quiet", "-q", is_flag=True, help="Suppress non-error output"
    )(f)
    f = click.option("--no-color", is_flag=True, help="Disable colored output")(f)
    return f


def config_options(f: Any) -> Any:
    """Project and configuration file options."""
    f = click.option(
        "--project",
        "-p",
        type=click.Path(exists=True, file_okay=False, path_type=Path),
        default=None,
        help="Project root used to locate .timer-guard/ config (default: CWD)",
    )(f)
    f = click.option(
        "--config",
        "config_file",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None,
        help="Configuration file applied on top of the discovered ones",
    )(f)
    return f


def collect_source_files(paths: tuple[Path, ...], parser: JavaScriptParser) -> list[Path]:
    """Expand directories into the supported source files they contain.

    Explicitly named files the parser cannot handle are skipped with a
    warning rather than counted as checked.
    """
    files: list[Path] = []
    seen: set[Path] = set()
    for path in paths:
        if path.is_dir():
            candidates = sorted(
                p
                for p in path.rglob("*")
                if p.is_file()
                and parser.can_parse(p)
                and not any(
                    part in SKIP_DIRS or part.startswith(".")
                    for part in p.relative_to(path).parts[:-1]
                )
            )
        elif parser.can_parse(path):
            candidates = [path]
        else:
            logger.warning(f"Skipping {path}: not a JavaScript or TypeScript file")
            continue
        for candidate in candidates:
            resolved = candidate.resolve()
            if resolved not in seen:
                seen.add(resolved)
                files.append(candidate)
    return files


def build_engine(
    project: Path | None,
    config_file: Path | None,
    object_names: tuple[str, ...],
    scope: str | None,
    fail_on: str | None,
) -> RuleEngine:
    """Load configuration, apply command-line overrides and load rules."""
    loader = RuleEngineConfigLoader(project)
    try:
        config = loader.load(extra_file=config_file)
    except (OSError, ValueError) as e:
        raise ConfigurationError(
            f"Could not load configuration: {e}",
            path=str(config_file) if config_file else None,
        ) from e

    overrides: dict[str, Any] = {}
    if object_names:
        overrides["objectNames"] = list(object_names)
    if scope:
        overrides["scope"] = scope
    if overrides:
        config.set_rule_parameters(ConsoleTimePairsRule().rule_id, **overrides)
    if fail_on:
        config.fail_on_severity = Severity(fail_on)

    engine = RuleEngine(config=config)
    engine.load_rules()
    try:
        engine.validate_rule_options()
    except RuleOptionsError as e:
        raise ConfigurationError(str(e)) from e
    return engine


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """timer-guard - find console.time()/console.timeEnd() calls without a pair."""


@cli.command()
@click.argument(
    "paths",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, path_type=Path),
)
@click.option(
    "--object-name",
    "object_names",
    multiple=True,
    help="Receiver to check for time/timeEnd calls (repeatable, default: console)",
)
@click.option(
    "--scope",
    type=click.Choice([s.value for s in TimerScope]),
    default=None,
    help="How far apart a time/timeEnd pair may be",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Report format",
)
@click.option(
    "--fail-on",
    type=click.Choice(SEVERITY_CHOICES),
    default=None,
    help="Lowest severity that makes the command exit non-zero",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write logs to this file",
)
@click.option(
    "--log-format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Format of the --log-file records",
)
@config_options
@common_options
@click.pass_context
def check(
    ctx: click.Context,
    paths: tuple[Path, ...],
    object_names: tuple[str, ...],
    scope: str | None,
    output_format: str,
    fail_on: str | None,
    log_file: Path | None,
    log_format: str,
    project: Path | None,
    config_file: Path | None,
    verbose: bool,
    quiet: bool,
    no_color: bool,
) -> None:
    """Check JavaScript/TypeScript files for unmatched timer calls."""
    if quiet and verbose:
        raise click.UsageError("--quiet and --verbose are mutually exclusive")

    output = OutputManager(
        OutputConfig.from_flags(verbose=verbose, quiet=quiet, no_color=no_color)
    )

    try:
        setup_logging(
            quiet=quiet, verbose=verbose, log_file=log_file, log_format=log_format
        )
        engine = build_engine(project, config_file, object_names, scope, fail_on)

        parser = get_javascript_parser()
        files = collect_source_files(paths, parser)
        output.debug(f"Checking {len(files)} files")

        result = RuleEngineResult()
        for file_path in files:
            try:
                context = RuleContext.from_file(
                    file_path, config=engine.config, parser=parser
                )
            except (OSError, UnicodeDecodeError) as e:
                raise SourceFileError(
                    f"Could not read {file_path}: {e}", path=str(file_path)
                ) from e
            result.extend(engine.run(context))
    except CLIError as e:
        click.echo(e.render(use_color=output.config.use_color), err=True)
        ctx.exit(e.exit_code)

    failed = result.should_block(engine.config.fail_on_severity) or bool(
        result.errors
    )

    if output_format == "json":
        payload = result.to_dict()
        payload["failed"] = failed
        payload["fail_on_severity"] = engine.config.fail_on_severity.value
        output.json(payload)
    else:
        for finding in result.findings:
            output.finding(finding)
        for error in result.errors:
            output.error(f"{error.rule_id} failed on {error.file_path}: {error.error_message}")
        output.summary(
            files=result.files_checked,
            findings=len(result.findings),
            failed=failed,
            errors=len(result.errors),
            duration_ms=result.execution_time_ms,
        )

    ctx.exit(1 if failed else 0)


@cli.command("rules")
@click.option("--schema", is_flag=True, help="Include each rule's options schema")
@config_options
@click.pass_context
def list_rules(
    ctx: click.Context, schema: bool, project: Path | None, config_file: Path | None
) -> None:
    """List the rules that are enabled for this project."""
    try:
        engine = build_engine(project, config_file, (), None, None)
    except CLIError as e:
        click.echo(e.render(), err=True)
        ctx.exit(e.exit_code)

    for rule in engine.get_all_rules():
        severity = rule.get_severity(engine.config).value
        click.echo(f"{rule.rule_id}  ({rule.name}, {severity})")
        click.echo(f"    {rule.description}")
        if schema and rule.options_schema() is not None:
            click.echo(
                "\n".join(
                    "    " + line
                    for line in json.dumps(rule.options_schema(), indent=2).splitlines()
                )
            )


def main() -> None:
    """Entry point for the timer-guard console script."""
    cli(prog_name="timer-guard")


if __name__ == "__main__":
    sys.exit(main())
