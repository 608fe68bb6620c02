"""Finds rule classes in the category packages under timer_guard.rules."""

import importlib
import inspect
import logging
import pkgutil

from .base import BaseRule

logger = logging.getLogger(__name__)

CATEGORY_PACKAGES = ("timers",)


class RuleDiscovery:
    """Collects the concrete BaseRule subclasses defined in category packages.

    A rule is added by dropping a module into ``rules/<category>/``.
    """

    def __init__(
        self,
        package: str = __package__,
        categories: tuple[str, ...] = CATEGORY_PACKAGES,
    ):
        self.package = package
        self.categories = categories
        self.errors: list[str] = []

    def discover_all(self) -> dict[str, type[BaseRule]]:
        """Map rule id to rule class across all categories."""
        self.errors = []
        rules: dict[str, type[BaseRule]] = {}
        for category in self.categories:
            rules.update(self.discover_category(category))
        return rules

    def discover_category(self, category: str) -> dict[str, type[BaseRule]]:
        try:
            package = importlib.import_module(f"{self.package}.{category}")
        except ModuleNotFoundError:
            logger.debug(f"No rule package for category {category}")
            return {}

        rules: dict[str, type[BaseRule]] = {}
        for module_info in pkgutil.iter_modules(package.__path__):
            if module_info.name.startswith("_"):
                continue
            module_name = f"{package.__name__}.{module_info.name}"
            try:
                module = importlib.import_module(module_name)
            except Exception as e:
                self.errors.append(f"{module_name}: {e}")
                logger.warning(f"Could not load rules from {module_name}: {e}")
                continue
            for rule_class in _rule_classes(module):
                rules[rule_class().rule_id] = rule_class
        return rules


def _rule_classes(module) -> list[type[BaseRule]]:
    return [
        obj
        for _, obj in inspect.getmembers(module, inspect.isclass)
        if issubclass(obj, BaseRule)
        and obj.__module__ == module.__name__
        and not inspect.isabstract(obj)
    ]
