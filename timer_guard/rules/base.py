"""
Core rule types: severities, findings, the per-file context and BaseRule.

A rule receives a RuleContext, reads the lazily parsed syntax tree from it
and returns Findings. Severity resolution and option validation live on
BaseRule so the engine can treat every rule alike.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from functools import total_ordering
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..analysis.base_parsers import ParsedUnit, TreeSitterParser
    from .config import RuleEngineConfig


@total_ordering
class Severity(Enum):
    """Finding severity, ordered from LOW to CRITICAL."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)

    def __lt__(self, other: "Severity") -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank


@dataclass
class Evidence:
    """The source snippet and machine-readable data behind a finding."""

    description: str
    line_number: int | None = None
    code_snippet: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "line_number": self.line_number,
            "code_snippet": self.code_snippet,
            "data": self.data,
        }


@dataclass
class Finding:
    """One reported problem, anchored at a 1-based line and column."""

    rule_id: str
    severity: Severity
    summary: str
    file_path: str
    line_number: int | None = None
    end_line: int | None = None
    column: int | None = None
    evidence: list[Evidence] = field(default_factory=list)
    remediation_hints: list[str] = field(default_factory=list)

    @property
    def location(self) -> str:
        """``path:line:column``, shortened when line or column is unknown."""
        if self.line_number is None:
            return self.file_path
        if self.column is None:
            return f"{self.file_path}:{self.line_number}"
        return f"{self.file_path}:{self.line_number}:{self.column}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "summary": self.summary,
            "file_path": self.file_path,
            "line_number": self.line_number,
            "end_line": self.end_line,
            "column": self.column,
            "evidence": [e.to_dict() for e in self.evidence],
            "remediation_hints": self.remediation_hints,
        }


EXTENSION_LANGUAGES = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "typescript",
}


@dataclass
class RuleContext:
    """One source file as seen by the rules.

    The syntax tree is parsed on first access to ``unit`` and then shared by
    every rule that runs on this context.
    """

    file_path: Path
    content: str
    language: str
    config: "RuleEngineConfig | None" = field(default=None, repr=False)
    _parser: "TreeSitterParser | None" = field(default=None, repr=False)
    _unit: "ParsedUnit | None" = field(default=None, init=False, repr=False)

    @property
    def unit(self) -> "ParsedUnit":
        if self._unit is None:
            if self._parser is None:
                from ..analysis.javascript_parser import get_javascript_parser

                self._parser = get_javascript_parser()
            self._unit = self._parser.parse_source(self.content, self.file_path)
        return self._unit

    def get_rule_parameters(self, rule_id: str) -> dict[str, Any]:
        """A copy of the rule's configured parameters (empty without config)."""
        if self.config is None:
            return {}
        return dict(self.config.get_rule_config(rule_id).parameters)

    @classmethod
    def from_source(
        cls,
        content: str,
        file_path: Path | str = "<source>.js",
        language: str | None = None,
        config: "RuleEngineConfig | None" = None,
        parser: "TreeSitterParser | None" = None,
    ) -> "RuleContext":
        file_path = Path(file_path)
        if language is None:
            language = EXTENSION_LANGUAGES.get(file_path.suffix.lower(), "unknown")
        return cls(file_path, content, language, config=config, _parser=parser)

    @classmethod
    def from_file(
        cls,
        file_path: Path,
        language: str | None = None,
        config: "RuleEngineConfig | None" = None,
        parser: "TreeSitterParser | None" = None,
    ) -> "RuleContext":
        """Read a UTF-8 source file.

        Raises:
            OSError: If the file cannot be read.
            UnicodeDecodeError: If it is not valid UTF-8.
        """
        return cls.from_source(
            file_path.read_text(encoding="utf-8"),
            file_path=file_path,
            language=language,
            config=config,
            parser=parser,
        )


class BaseRule(ABC):
    """A check run by the engine against one RuleContext at a time."""

    @property
    @abstractmethod
    def rule_id(self) -> str:
        """``CATEGORY.RULE_NAME`` in upper snake case."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def category(self) -> str:
        """Name of the package under rules/ that holds the rule."""

    @property
    @abstractmethod
    def default_severity(self) -> Severity: ...

    @property
    def supported_languages(self) -> list[str] | None:
        """Languages the rule runs on; None runs it everywhere."""
        return None

    @property
    def description(self) -> str:
        return f"Rule {self.rule_id}: {self.name}"

    def options_schema(self) -> dict[str, Any] | None:
        """JSON schema of the rule's parameters, or None if it takes none."""
        return None

    def validate_options(self, parameters: dict[str, Any]) -> None:
        """Raise RuleOptionsError for parameters the rule cannot use."""

    @abstractmethod
    def check(self, context: RuleContext) -> list[Finding]:
        """Return the findings for one file."""

    def get_severity(self, config: "RuleEngineConfig | None") -> Severity:
        """Rule override, else category default, else the rule's default."""
        if config is None:
            return self.default_severity
        override = config.get_rule_config(self.rule_id).severity_override
        if override is not None:
            return override
        return config.get_category_severity(self.category) or self.default_severity

    def _create_finding(
        self,
        summary: str,
        file_path: str,
        config: "RuleEngineConfig | None" = None,
        **location: Any,
    ) -> Finding:
        """Build a Finding stamped with this rule's id and resolved severity.

        ``location`` takes the remaining Finding fields (line_number,
        column, evidence, ...).
        """
        return Finding(
            rule_id=self.rule_id,
            severity=self.get_severity(config),
            summary=summary,
            file_path=file_path,
            **location,
        )


class RuleOptionsError(ValueError):
    """A rule's configured parameters failed validation."""

    def __init__(self, rule_id: str, message: str):
        self.rule_id = rule_id
        super().__init__(f"Invalid options for {rule_id}: {message}")
