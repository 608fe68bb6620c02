import logging
from functools import lru_cache
from pathlib import Path

from tree_sitter import Language, Parser, Tree

from .base_parsers import TreeSitterParser

logger = logging.getLogger(__name__)

TYPESCRIPT_EXTENSIONS = [".ts", ".mts", ".cts"]
TSX_EXTENSIONS = [".tsx"]


class JavaScriptParser(TreeSitterParser):
    """Parse JS/TS files with tree-sitter."""

    SUPPORTED_EXTENSIONS = [
        ".js",
        ".jsx",
        ".mjs",
        ".cjs",
        *TYPESCRIPT_EXTENSIONS,
        *TSX_EXTENSIONS,
    ]
    LANGUAGE_NAME = "javascript"

    def __init__(self) -> None:
        import tree_sitter_javascript as tsjs
        import tree_sitter_typescript as tsts

        super().__init__(tsjs)
        self.ts_parser = Parser(Language(tsts.language_typescript()))
        self.tsx_parser = Parser(Language(tsts.language_tsx()))

    def parse_tree(self, content: str, file_path: Path | None = None) -> Tree:
        """Parse content with the grammar matching the file extension."""
        suffix = file_path.suffix.lower() if file_path else ""
        if suffix in TYPESCRIPT_EXTENSIONS:
            parser = self.ts_parser
        elif suffix in TSX_EXTENSIONS:
            parser = self.tsx_parser
        else:
            parser = self.parser
        tree = parser.parse(bytes(content, "utf8"))
        logger.debug(f"Parsed {file_path or '<source>'} as {suffix or '.js'}")
        return tree

    def language_for(self, file_path: Path | None) -> str:
        if file_path and file_path.suffix.lower() in (
            TYPESCRIPT_EXTENSIONS + TSX_EXTENSIONS
        ):
            return "typescript"
        return "javascript"


@lru_cache(maxsize=1)
def get_javascript_parser() -> JavaScriptParser:
    """Shared parser instance; grammar loading is done once per process."""
    return JavaScriptParser()
