"""Source parsing and tree traversal for timer-guard rules."""

from .base_parsers import ParsedUnit, TreeSitterParser
from .javascript_parser import JavaScriptParser, get_javascript_parser
from .traversal import TreeWalker, walk_with_ancestors

__all__ = [
    "ParsedUnit",
    "TreeSitterParser",
    "JavaScriptParser",
    "get_javascript_parser",
    "TreeWalker",
    "walk_with_ancestors",
]
