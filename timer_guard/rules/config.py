"""
Configuration system for the timer-guard rule engine.

Each config file is validated into pydantic models. A layer only overrides
the keys it actually sets, so a local file can change one rule parameter
without restating the project's settings.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .base import Severity

logger = logging.getLogger(__name__)


def _lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


# Severities are accepted in any case ("HIGH", "high")
SeverityName = Annotated[Severity, BeforeValidator(_lower)]


class _Layer(BaseModel):
    """A config section whose explicitly set keys win when merged."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def _overrides(self, skip: frozenset[str] = frozenset()) -> dict[str, Any]:
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name not in skip
        }


class RuleConfig(_Layer):
    """Configuration for a single rule."""

    enabled: bool = True
    severity_override: SeverityName | None = Field(default=None, alias="severity")
    parameters: dict[str, Any] = Field(default_factory=dict)

    def merge(self, other: "RuleConfig") -> "RuleConfig":
        """Overlay the keys other sets; parameters merge key by key."""
        update = other._overrides(frozenset({"parameters"}))
        update["parameters"] = {**self.parameters, **other.parameters}
        return self.model_copy(update=update)


class CategoryConfig(_Layer):
    """Configuration for a rule category."""

    enabled: bool = True
    default_severity: SeverityName | None = Field(
        default=None, alias="defaultSeverity"
    )

    def merge(self, other: "CategoryConfig") -> "CategoryConfig":
        return self.model_copy(update=other._overrides())


class RuleEngineConfig(_Layer):
    """Configuration for the rule engine."""

    enabled: bool = True
    fail_on_severity: SeverityName = Field(
        default=Severity.MEDIUM, alias="failOnSeverity"
    )
    continue_on_error: bool = Field(default=True, alias="continueOnError")
    categories: dict[str, CategoryConfig] = Field(default_factory=dict)
    rules: dict[str, RuleConfig] = Field(default_factory=dict)

    def is_rule_enabled(self, rule_id: str, category: str | None = None) -> bool:
        """Check if a rule is enabled globally, by category and by rule."""
        if not self.enabled:
            return False

        category_config = self.categories.get(category) if category else None
        if category_config and not category_config.enabled:
            return False

        return self.get_rule_config(rule_id).enabled

    def get_rule_config(self, rule_id: str) -> RuleConfig:
        """Get configuration for a specific rule (default if not configured)."""
        return self.rules.get(rule_id, RuleConfig())

    def set_rule_parameters(self, rule_id: str, **parameters: Any) -> None:
        """Override parameters for a rule, keeping any others already set."""
        override = RuleConfig(parameters=parameters)
        self.rules[rule_id] = self.get_rule_config(rule_id).merge(override)

    def get_category_severity(self, category: str) -> Severity | None:
        """Default severity configured for a category, if any."""
        category_config = self.categories.get(category)
        return category_config.default_severity if category_config else None

    @classmethod
    def from_dict(cls, data: Any) -> "RuleEngineConfig":
        """Validate a decoded config file.

        Raises:
            ValueError: If the document is not an object or holds a value of
                the wrong type (including unknown severities).
        """
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            )
            raise ValueError(problems) from e

    def merge(self, other: "RuleEngineConfig") -> "RuleEngineConfig":
        """Overlay another layer on this one.

        Only keys other actually set are taken; categories and rules are
        merged entry by entry.
        """
        update = other._overrides(frozenset({"categories", "rules"}))
        update["categories"] = _merge_entries(self.categories, other.categories)
        update["rules"] = _merge_entries(self.rules, other.rules)
        return self.model_copy(update=update)


def _merge_entries(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        merged[key] = merged[key].merge(value) if key in merged else value
    return merged


class RuleEngineConfigLoader:
    """Loads rule engine configuration from timer-guard.config.json files."""

    CONFIG_DIRNAME = ".timer-guard"
    CONFIG_FILENAME = "timer-guard.config.json"
    LOCAL_CONFIG_FILENAME = "timer-guard.config.local.json"
    GLOBAL_CONFIG_DIR = Path.home() / ".timer-guard"

    def __init__(self, project_path: Path | None = None):
        self.project_path = project_path or Path.cwd()

    def load(self, extra_file: Path | None = None) -> RuleEngineConfig:
        """Load configuration with hierarchical merging.

        Load order (later overrides earlier):
        1. Built-in defaults
        2. Global config (~/.timer-guard/timer-guard.config.json)
        3. Project config (<project>/.timer-guard/timer-guard.config.json)
        4. Local config (<project>/.timer-guard/timer-guard.config.local.json)
        5. Explicit file passed on the command line

        Broken files in steps 2-4 are skipped with a warning; a broken
        explicit file raises.
        """
        config = get_default_config()

        candidates = [
            self.GLOBAL_CONFIG_DIR / self.CONFIG_FILENAME,
            self.project_path / self.CONFIG_DIRNAME / self.CONFIG_FILENAME,
            self.project_path / self.CONFIG_DIRNAME / self.LOCAL_CONFIG_FILENAME,
        ]
        for config_path in candidates:
            if config_path.exists():
                loaded = self._load_file(config_path)
                if loaded is not None:
                    config = config.merge(loaded)

        if extra_file is not None:
            config = config.merge(self.load_file_strict(extra_file))

        return config

    def load_file_strict(self, path: Path) -> RuleEngineConfig:
        """Load a single config file, propagating any error.

        Raises:
            OSError: If the file cannot be read.
            ValueError: If the file is not valid JSON or holds bad values.
        """
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        try:
            return RuleEngineConfig.from_dict(data)
        except ValueError as e:
            raise ValueError(f"{path}: {e}") from e

    def _load_file(self, path: Path) -> RuleEngineConfig | None:
        try:
            return self.load_file_strict(path)
        except (OSError, ValueError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning(f"Could not load config from {path}: {e}")
            return None


def get_default_config() -> RuleEngineConfig:
    """Get the default rule engine configuration."""
    return RuleEngineConfig(
        enabled=True,
        fail_on_severity=Severity.MEDIUM,
        continue_on_error=True,
        categories={
            "timers": CategoryConfig(enabled=True, default_severity=Severity.MEDIUM),
        },
    )
