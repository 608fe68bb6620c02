from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from tree_sitter import Language, Node, Parser, Tree


@dataclass
class ParsedUnit:
    """A parsed source unit handed to rules."""

    tree: Tree
    source: bytes
    language: str
    file_path: Path | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def root_node(self) -> Node:
        return self.tree.root_node

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def node_text(self, node: Node) -> str:
        """Verbatim source text covered by a node."""
        return self.source[node.start_byte : node.end_byte].decode("utf-8")

    def column(self, node: Node) -> int:
        """1-based character column where node starts.

        tree-sitter points count bytes, so the line prefix is decoded first.
        """
        line_start = node.start_byte - node.start_point[1]
        prefix = self.source[line_start : node.start_byte]
        return len(prefix.decode("utf-8", errors="replace")) + 1


class TreeSitterParser:
    """Base class for tree-sitter based parsers with common functionality."""

    # Child classes must define these
    SUPPORTED_EXTENSIONS: list[str] = []
    LANGUAGE_NAME: str = "unknown"

    def __init__(self, language_module: Any):
        # Grammar packages expose their language as a function
        self.parser = Parser(Language(language_module.language()))

    def can_parse(self, file_path: Path) -> bool:
        """Check if this parser can handle the file."""
        return file_path.suffix.lower() in self.SUPPORTED_EXTENSIONS

    def parse_tree(self, content: str, file_path: Path | None = None) -> Tree:
        """Parse content into tree-sitter AST."""
        return self.parser.parse(bytes(content, "utf8"))

    def parse_source(self, content: str, file_path: Path | None = None) -> ParsedUnit:
        """Parse content and wrap the tree with its source bytes."""
        tree = self.parse_tree(content, file_path)
        unit = ParsedUnit(
            tree=tree,
            source=bytes(content, "utf8"),
            language=self.language_for(file_path),
            file_path=file_path,
        )
        if tree.root_node.has_error:
            name = file_path.name if file_path else "<source>"
            unit.errors.append(f"Syntax errors detected in {name}")
        return unit

    def language_for(self, file_path: Path | None) -> str:
        return self.LANGUAGE_NAME

