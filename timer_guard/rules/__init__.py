"""
Rule engine for timer-guard.

Modules:
    base: Rule base class, findings and the per-unit rule context
    config: Engine configuration and hierarchical config loading
    discovery: Auto-discovery of rules from category packages
    engine: Rule execution and result aggregation
"""

from .base import (
    BaseRule,
    Evidence,
    Finding,
    RuleContext,
    RuleOptionsError,
    Severity,
)
from .config import (
    CategoryConfig,
    RuleConfig,
    RuleEngineConfig,
    RuleEngineConfigLoader,
    get_default_config,
)
from .discovery import RuleDiscovery
from .engine import (
    RuleEngine,
    RuleEngineResult,
    RuleError,
)

__all__ = [
    "BaseRule",
    "Evidence",
    "Finding",
    "RuleContext",
    "RuleOptionsError",
    "Severity",
    "CategoryConfig",
    "RuleConfig",
    "RuleEngineConfig",
    "RuleEngineConfigLoader",
    "get_default_config",
    "RuleDiscovery",
    "RuleEngine",
    "RuleEngineResult",
    "RuleError",
]
