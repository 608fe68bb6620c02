"""
Rule engine coordinator for executing timer-guard rules.

The engine holds the enabled rules, runs each applicable one against a
unit in turn and folds the findings and failures of many units into one
result. Every check builds its own per-unit state.
"""

import logging
import time
from dataclasses import dataclass, field

from .base import BaseRule, Finding, RuleContext, Severity
from .config import RuleEngineConfig
from .discovery import RuleDiscovery

logger = logging.getLogger(__name__)


@dataclass
class RuleError:
    """A rule that raised while checking a file."""

    rule_id: str
    error_message: str
    exception_type: str | None = None
    file_path: str | None = None

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "error_message": self.error_message,
            "exception_type": self.exception_type,
            "file_path": self.file_path,
        }


@dataclass
class RuleEngineResult:
    """Findings and failures for one or more checked units."""

    findings: list[Finding] = field(default_factory=list)
    errors: list[RuleError] = field(default_factory=list)
    execution_time_ms: float = 0.0
    rules_executed: int = 0
    rules_skipped: int = 0
    files_checked: int = 0

    def should_block(self, severity_threshold: Severity = Severity.HIGH) -> bool:
        """True if any finding meets or exceeds the threshold."""
        return any(f.severity >= severity_threshold for f in self.findings)

    def count_by_severity(self, severity: Severity) -> int:
        return sum(1 for f in self.findings if f.severity == severity)

    def extend(self, other: "RuleEngineResult") -> None:
        """Fold the result for another unit into this one."""
        self.findings.extend(other.findings)
        self.errors.extend(other.errors)
        self.execution_time_ms += other.execution_time_ms
        self.rules_executed += other.rules_executed
        self.rules_skipped += other.rules_skipped
        self.files_checked += other.files_checked

    def to_dict(self) -> dict:
        """Convert to dictionary for the JSON report."""
        return {
            "findings": [f.to_dict() for f in self.findings],
            "errors": [e.to_dict() for e in self.errors],
            "execution_time_ms": self.execution_time_ms,
            "rules_executed": self.rules_executed,
            "rules_skipped": self.rules_skipped,
            "files_checked": self.files_checked,
            "summary": {
                "total_findings": len(self.findings),
                **{
                    severity.value: self.count_by_severity(severity)
                    for severity in Severity
                },
            },
        }


class RuleEngine:
    """Runs registered rules against parsed source units.

    Example usage:
        engine = RuleEngine(config)
        engine.load_rules()

        result = engine.run(RuleContext.from_file(Path("app.js")))
        if result.should_block(engine.config.fail_on_severity):
            print("Unmatched timer calls found")
    """

    def __init__(self, config: RuleEngineConfig | None = None):
        self.config = config if config is not None else RuleEngineConfig()
        self._rules: dict[str, BaseRule] = {}

    def load_rules(self, discovery: RuleDiscovery | None = None) -> int:
        """Register every discovered rule that the config enables.

        Returns:
            Number of rules registered
        """
        discovery = discovery or RuleDiscovery()
        loaded = sum(
            1 for rule_class in discovery.discover_all().values()
            if self.register(rule_class())
        )
        logger.info(f"Loaded {loaded} rules")
        return loaded

    def register(self, rule: BaseRule) -> bool:
        """Register a rule; returns False if the config disables it."""
        if not self.config.is_rule_enabled(rule.rule_id, rule.category):
            logger.debug(f"Rule {rule.rule_id} is disabled in config, skipping")
            return False

        self._rules[rule.rule_id] = rule
        logger.debug(f"Registered rule: {rule.rule_id}")
        return True

    def get_all_rules(self) -> list[BaseRule]:
        return list(self._rules.values())

    def validate_rule_options(self) -> None:
        """Validate configured parameters of every registered rule.

        Raises:
            RuleOptionsError: For the first rule whose parameters are invalid.
        """
        for rule in self._rules.values():
            rule.validate_options(self.config.get_rule_config(rule.rule_id).parameters)

    def run(self, context: RuleContext) -> RuleEngineResult:
        """Run the applicable rules against one unit."""
        start_time = time.time()

        if context.config is None:
            context.config = self.config

        rules = list(self._rules.values())
        applicable = [
            rule for rule in rules
            if rule.supported_languages is None
            or context.language in rule.supported_languages
        ]

        result = RuleEngineResult(
            rules_skipped=len(rules) - len(applicable), files_checked=1
        )
        for rule in applicable:
            result.rules_executed += 1
            error = self._execute_rule(rule, context, result.findings)
            if error is not None:
                result.errors.append(error)
                if not self.config.continue_on_error:
                    break

        result.execution_time_ms = (time.time() - start_time) * 1000
        return result

    def _execute_rule(
        self, rule: BaseRule, context: RuleContext, findings: list[Finding]
    ) -> RuleError | None:
        """Run one rule, appending its findings or returning its failure."""
        start_time = time.time()
        try:
            rule_findings = rule.check(context)
        except Exception as e:
            logger.warning(f"Rule {rule.rule_id} failed on {context.file_path}: {e}")
            return RuleError(
                rule_id=rule.rule_id,
                error_message=str(e),
                exception_type=type(e).__name__,
                file_path=str(context.file_path),
            )

        findings.extend(rule_findings)
        logger.debug(
            f"Rule {rule.rule_id} produced {len(rule_findings)} findings",
            extra={
                "rule_id": rule.rule_id,
                "file_path": str(context.file_path),
                "duration_ms": (time.time() - start_time) * 1000,
                "finding_count": len(rule_findings),
            },
        )
        return None
