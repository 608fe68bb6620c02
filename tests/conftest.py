"""
Shared fixtures for the timer-guard test suite.

Provides fixtures for:
- Parsing JavaScript/TypeScript snippets with tree-sitter
- Building rule contexts with rule parameters
- Temporary projects with source files and config
"""

import json
import logging
from collections.abc import Callable
from pathlib import Path

import pytest

from timer_guard.analysis.base_parsers import ParsedUnit
from timer_guard.analysis.javascript_parser import get_javascript_parser
from timer_guard.rules.base import RuleContext
from timer_guard.rules.config import RuleEngineConfig


@pytest.fixture()
def parse() -> Callable[..., ParsedUnit]:
    """Parse a source snippet into a ParsedUnit."""

    def _parse(source: str, file_name: str = "test.js") -> ParsedUnit:
        return get_javascript_parser().parse_source(source, Path(file_name))

    return _parse


@pytest.fixture()
def make_context() -> Callable[..., RuleContext]:
    """Build a RuleContext, optionally with console-time-pairs parameters."""

    def _make(
        source: str, file_name: str = "test.js", **parameters
    ) -> RuleContext:
        config = RuleEngineConfig()
        if parameters:
            config.set_rule_parameters("TIMERS.CONSOLE_TIME_PAIRS", **parameters)
        return RuleContext.from_source(source, file_path=file_name, config=config)

    return _make


@pytest.fixture()
def temp_project(tmp_path: Path) -> Path:
    """Create a temporary project with a few source files."""
    project = tmp_path / "project"
    (project / "src").mkdir(parents=True)
    (project / "node_modules" / "dep").mkdir(parents=True)

    (project / "src" / "ok.js").write_text(
        'console.time("load");\nload();\nconsole.timeEnd("load");\n'
    )
    (project / "src" / "broken.js").write_text(
        'function run() {\n  console.time("run");\n  work();\n}\n'
    )
    (project / "src" / "notes.txt").write_text('console.time("ignored");\n')
    (project / "node_modules" / "dep" / "index.js").write_text(
        'console.time("vendored");\n'
    )
    return project


@pytest.fixture()
def write_config() -> Callable[[Path, dict], Path]:
    """Write a project-level timer-guard config file."""

    def _write(project: Path, data: dict, local: bool = False) -> Path:
        name = "timer-guard.config.local.json" if local else "timer-guard.config.json"
        config_path = project / ".timer-guard" / name
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(data))
        return config_path

    return _write


@pytest.fixture(autouse=True)
def isolated_global_config(tmp_path_factory, monkeypatch):
    """Keep the user's ~/.timer-guard config out of every test."""
    from timer_guard.rules.config import RuleEngineConfigLoader

    monkeypatch.setattr(
        RuleEngineConfigLoader,
        "GLOBAL_CONFIG_DIR",
        tmp_path_factory.mktemp("global_config"),
    )


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers installed by setup_logging so caplog sees records."""
    yield
    logger = logging.getLogger("timer_guard")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
