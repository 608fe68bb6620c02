"""
Unmatched timer call detection rule.

Detects ``console.time(label)`` calls without a matching
``console.timeEnd(label)`` (and the reverse). Calls are collected during a
single walk of the syntax tree and reconciled once the whole unit has been
visited, so a pair matches regardless of which half appears first.
"""

import logging
import re
from collections.abc import Callable, Hashable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from tree_sitter import Node

from ...analysis.base_parsers import ParsedUnit
from ...analysis.traversal import Ancestors, TreeWalker
from ..base import (
    BaseRule,
    Evidence,
    Finding,
    RuleContext,
    RuleOptionsError,
    Severity,
)

logger = logging.getLogger(__name__)

START_METHOD = "time"
END_METHOD = "timeEnd"

FUNCTION_NODE_TYPES = frozenset(
    {"function_declaration", "generator_function_declaration", "arrow_function"}
)

MESSAGES = {
    "missingEnd": (
        "{{objectName}}.time({{labelSourceCode}}) has no matching "
        "{{objectName}}.timeEnd({{labelSourceCode}})"
    ),
    "missingStart": (
        "{{objectName}}.timeEnd({{labelSourceCode}}) has no matching "
        "{{objectName}}.time({{labelSourceCode}})"
    ),
}

_PLACEHOLDER_RE = re.compile(r"\{\{\s*(\w+)\s*\}\}")

# Escape sequences in JavaScript string literals
_ESCAPE_RE = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}"
    r"|[0-3][0-7]{0,2}|[4-7][0-7]?|\r\n|.)",
    re.DOTALL,
)
_SINGLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    # Line continuations
    "\n": "",
    "\r": "",
    "\r\n": "",
    "\u2028": "",
    "\u2029": "",
}


class TimerScope(str, Enum):
    """How far apart two timer calls may be and still pair up."""

    FILE = "File"
    SAME_FUNCTION = "SameFunction"
    SAME_ROOT_FUNCTION = "SameRootFunction"


class TimerEdge(Enum):
    """Which half of a pair a timer call is."""

    START = "start"
    END = "end"


class ConsoleTimePairsOptions(BaseModel):
    """Options accepted by the console-time-pairs rule."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    object_names: list[str] = Field(
        default_factory=lambda: ["console"],
        alias="objectNames",
        description=(
            "Objects to check for calls to time/timeEnd under "
            '(defaults to ["console"])'
        ),
    )
    scope: TimerScope = Field(
        default=TimerScope.FILE,
        description="How far to check for matching pairs",
    )

    @classmethod
    def from_parameters(
        cls, rule_id: str, parameters: dict[str, Any] | None
    ) -> "ConsoleTimePairsOptions":
        """Build options from raw rule parameters.

        Raises:
            RuleOptionsError: If a parameter has the wrong type or value.
        """
        try:
            return cls.model_validate(parameters or {})
        except PydanticValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'options'}: {err['msg']}"
                for err in e.errors()
            )
            raise RuleOptionsError(rule_id, errors) from e


@dataclass(frozen=True)
class TimerCall:
    """A recorded start or end timer call."""

    label: str
    label_source_code: str
    is_static_string: bool
    object_name: str
    edge: TimerEdge
    scope_key: Hashable | None
    node: Node = field(compare=False, repr=False)

    def pairs_with(self, other: "TimerCall") -> bool:
        """Whether other is a counterpart of this call."""
        return (
            self.scope_key == other.scope_key
            and self.edge is not other.edge
            and self.is_static_string == other.is_static_string
            and self.label == other.label
            and self.object_name == other.object_name
        )


@dataclass
class TimerReport:
    """An unmatched call reported against its node."""

    node: Node
    message_id: str
    data: dict[str, str]

    @property
    def template(self) -> str:
        return MESSAGES[self.message_id]

    @property
    def message(self) -> str:
        return format_message(self.template, self.data)


def format_message(template: str, data: dict[str, str]) -> str:
    """Substitute {{name}} placeholders; unknown names are left untouched."""
    return _PLACEHOLDER_RE.sub(
        lambda m: data.get(m.group(1), m.group(0)), template
    )


def _unwrap_parentheses(node: Node) -> Node:
    while node.type == "parenthesized_expression" and node.named_child_count:
        inner = [c for c in node.named_children if c.type != "comment"]
        if len(inner) != 1:
            break
        node = inner[0]
    return node


def _decode_escape(match: re.Match) -> str:
    escape = match.group(1)
    if escape.startswith("u{"):
        return chr(int(escape[2:-1], 16))
    if escape.startswith(("u", "x")) and len(escape) > 1:
        return chr(int(escape[1:], 16))
    if escape[0] in "01234567":
        return chr(int(escape, 8))
    return _SINGLE_ESCAPES.get(escape, escape)


def get_string_literal_value(node: Node, unit: ParsedUnit) -> str | None:
    """Return the compile-time string value of a literal argument.

    Plain string literals give their decoded value. Template literals give
    their raw text only when they contain no substitutions. Anything else
    is not statically known and gives None.
    """
    node = _unwrap_parentheses(node)
    if node.type == "string":
        raw = unit.node_text(node)[1:-1]
        return _ESCAPE_RE.sub(_decode_escape, raw)
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.children):
            return None
        # Template text normalises CRLF and CR line terminators to LF
        raw = unit.node_text(node)[1:-1]
        return raw.replace("\r\n", "\n").replace("\r", "\n")
    return None


def find_ancestral_function_block(
    ancestors: Ancestors, stop_at_first: bool
) -> Node | None:
    """Find the innermost (stop_at_first) or outermost enclosing function."""
    found = None
    for ancestor in reversed(ancestors):
        if ancestor.type in FUNCTION_NODE_TYPES:
            found = ancestor
            if stop_at_first:
                return found
    return found


SCOPE_FINDERS: dict[TimerScope, Callable[[Ancestors], Node | None]] = {
    TimerScope.FILE: lambda ancestors: None,
    TimerScope.SAME_FUNCTION: lambda ancestors: find_ancestral_function_block(
        ancestors, True
    ),
    TimerScope.SAME_ROOT_FUNCTION: lambda ancestors: find_ancestral_function_block(
        ancestors, False
    ),
}


def resolve_scope(ancestors: Ancestors, scope: TimerScope) -> Hashable | None:
    """Key identifying the region a call may pair within (None = whole file)."""
    boundary = SCOPE_FINDERS[scope](ancestors)
    if boundary is None:
        return None
    return boundary.id


def _timer_callee(node: Node) -> Node | None:
    if node.type != "call_expression":
        return None
    arguments = node.child_by_field_name("arguments")
    if arguments is None or arguments.type != "arguments":
        # Tagged templates are not calls with an argument list
        return None
    callee = node.child_by_field_name("function")
    if callee is None or callee.type != "member_expression":
        return None
    return callee


def is_method_call(node: Node, method_name: str) -> bool:
    """Whether node is a call like ``obj.<method_name>(...)``."""
    callee = _timer_callee(node)
    if callee is None:
        return False
    prop = callee.child_by_field_name("property")
    return (
        prop is not None
        and prop.type == "property_identifier"
        and prop.text is not None
        and prop.text.decode("utf-8") == method_name
    )


def call_arguments(node: Node) -> list[Node]:
    arguments = node.child_by_field_name("arguments")
    if arguments is None:
        return []
    return [child for child in arguments.named_children if child.type != "comment"]


def receiver_name(node: Node, unit: ParsedUnit) -> str | None:
    """Identifier the method was called on, or None for other receivers."""
    callee = node.child_by_field_name("function")
    receiver = callee.child_by_field_name("object") if callee else None
    if receiver is None:
        return None
    receiver = _unwrap_parentheses(receiver)
    if receiver.type != "identifier":
        return None
    return unit.node_text(receiver)


@dataclass
class TimerCollector:
    """Records timer calls as the walker reaches them."""

    unit: ParsedUnit
    options: ConsoleTimePairsOptions
    timers: list[TimerCall] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._object_names = frozenset(self.options.object_names)

    def handler(self, edge: TimerEdge) -> Callable[[Node, Ancestors], None]:
        def handle(node: Node, ancestors: Ancestors) -> None:
            self.collect(node, ancestors, edge)

        return handle

    def collect(self, node: Node, ancestors: Ancestors, edge: TimerEdge) -> None:
        arguments = call_arguments(node)
        if not arguments:
            return
        object_name = receiver_name(node, self.unit)
        if object_name is None or object_name not in self._object_names:
            return

        first_argument = _unwrap_parentheses(arguments[0])
        label_source_code = self.unit.node_text(first_argument)
        literal_value = get_string_literal_value(first_argument, self.unit)
        is_static_string = literal_value is not None

        self.timers.append(
            TimerCall(
                label=literal_value if is_static_string else label_source_code,
                label_source_code=label_source_code,
                is_static_string=is_static_string,
                object_name=object_name,
                edge=edge,
                scope_key=resolve_scope(ancestors, self.options.scope),
                node=node,
            )
        )


def reconcile_pairs(timers: list[TimerCall]) -> list[TimerReport]:
    """Report every recorded call that has no counterpart."""
    reports = []
    for timer in timers:
        has_pair = any(
            other is not timer and timer.pairs_with(other) for other in timers
        )
        if has_pair:
            continue
        reports.append(
            TimerReport(
                node=timer.node,
                message_id=(
                    "missingEnd" if timer.edge is TimerEdge.START else "missingStart"
                ),
                data={
                    "labelSourceCode": timer.label_source_code,
                    "objectName": timer.object_name,
                },
            )
        )
    return reports


def analyze_unit(
    unit: ParsedUnit, options: ConsoleTimePairsOptions | None = None
) -> list[TimerReport]:
    """Walk one unit and return reports for its unmatched timer calls."""
    options = options or ConsoleTimePairsOptions()
    collector = TimerCollector(unit=unit, options=options)
    reports: list[TimerReport] = []

    walker = TreeWalker()
    walker.on(
        lambda node: is_method_call(node, START_METHOD),
        collector.handler(TimerEdge.START),
    )
    walker.on(
        lambda node: is_method_call(node, END_METHOD),
        collector.handler(TimerEdge.END),
    )
    walker.on_exit(lambda: reports.extend(reconcile_pairs(collector.timers)))
    walker.walk(unit.root_node)

    logger.debug(
        f"Collected {len(collector.timers)} timer calls, "
        f"{len(reports)} unmatched"
    )
    return reports


class ConsoleTimePairsRule(BaseRule):
    """Detect console.time/console.timeEnd calls without a counterpart."""

    @property
    def rule_id(self) -> str:
        return "TIMERS.CONSOLE_TIME_PAIRS"

    @property
    def name(self) -> str:
        return "console-time-pairs"

    @property
    def category(self) -> str:
        return "timers"

    @property
    def default_severity(self) -> Severity:
        return Severity.MEDIUM

    @property
    def supported_languages(self) -> list[str] | None:
        return ["javascript", "typescript"]

    @property
    def description(self) -> str:
        return (
            "Detects time() calls with no matching timeEnd() and timeEnd() "
            "calls with no matching time() on the configured objects."
        )

    def options_schema(self) -> dict[str, Any] | None:
        return ConsoleTimePairsOptions.model_json_schema(by_alias=True)

    def validate_options(self, parameters: dict[str, Any]) -> None:
        ConsoleTimePairsOptions.from_parameters(self.rule_id, parameters)

    def check(self, context: RuleContext) -> list[Finding]:
        """Check a unit for unmatched timer calls.

        Args:
            context: RuleContext with the parsed unit and configuration

        Returns:
            One finding per unmatched call, in source order
        """
        options = ConsoleTimePairsOptions.from_parameters(
            self.rule_id, context.get_rule_parameters(self.rule_id)
        )
        unit = context.unit
        if unit.has_errors:
            logger.debug(f"Checking {context.file_path} despite syntax errors")

        findings = []
        for report in analyze_unit(unit, options):
            node = report.node
            line_number = node.start_point[0] + 1
            findings.append(
                self._create_finding(
                    summary=report.message,
                    file_path=str(context.file_path),
                    line_number=line_number,
                    end_line=node.end_point[0] + 1,
                    column=unit.column(node),
                    evidence=[
                        Evidence(
                            description=report.message,
                            line_number=line_number,
                            code_snippet=unit.node_text(node),
                            data={"messageId": report.message_id, **report.data},
                        )
                    ],
                    remediation_hints=self._hints(report),
                    config=context.config,
                )
            )
        return findings

    def _hints(self, report: TimerReport) -> list[str]:
        object_name = report.data["objectName"]
        label = report.data["labelSourceCode"]
        if report.message_id == "missingEnd":
            return [
                f"Add {object_name}.timeEnd({label}) where the timed work ends",
                "Remove the timer if it is no longer needed",
            ]
        return [
            f"Add {object_name}.time({label}) where the timed work starts",
            "Check that the label matches the one passed to time()",
        ]
