"""Tests for the tree-sitter JavaScript/TypeScript parser."""

from pathlib import Path

import pytest

from timer_guard.analysis.javascript_parser import (
    JavaScriptParser,
    get_javascript_parser,
)


@pytest.fixture
def parser():
    return get_javascript_parser()


class TestJavaScriptParser:
    """Tests for JavaScriptParser."""

    @pytest.mark.parametrize(
        "name", ["a.js", "a.jsx", "a.mjs", "a.cjs", "a.ts", "a.mts", "a.cts", "a.TSX"]
    )
    def test_can_parse_supported(self, parser, name):
        assert parser.can_parse(Path(name))

    @pytest.mark.parametrize("name", ["a.py", "a.json", "README.md", "Makefile"])
    def test_rejects_other_files(self, parser, name):
        assert not parser.can_parse(Path(name))

    def test_shared_instance(self):
        assert get_javascript_parser() is get_javascript_parser()
        assert isinstance(get_javascript_parser(), JavaScriptParser)

    def test_language_for(self, parser):
        assert parser.language_for(Path("a.ts")) == "typescript"
        assert parser.language_for(Path("a.tsx")) == "typescript"
        assert parser.language_for(Path("a.jsx")) == "javascript"
        assert parser.language_for(None) == "javascript"

    def test_parse_typescript_syntax(self, parser):
        unit = parser.parse_source(
            "const n: number = 1;\nconsole.time(`a` as string);\n", Path("a.ts")
        )
        assert unit.language == "typescript"
        assert not unit.has_errors

    def test_parse_tsx(self, parser):
        unit = parser.parse_source(
            "const el = <div>{console.time('x')}</div>;\n", Path("a.tsx")
        )
        assert not unit.has_errors

    def test_type_annotation_is_an_error_in_plain_js(self, parser):
        unit = parser.parse_source("let x: number = 1;", Path("a.js"))
        assert unit.has_errors
        assert "a.js" in unit.errors[0]

    def test_deeply_nested_source(self, parser):
        source = "x = " + "[" * 1500 + "]" * 1500 + ";\nconsole.time('a');\n"
        unit = parser.parse_source(source, Path("deep.js"))
        assert unit.root_node.type == "program"
        assert not unit.has_errors

    def test_column_counts_characters(self, parser):
        source = 'const s = "héllo"; call();'
        unit = parser.parse_source(source, Path("a.js"))
        call = unit.root_node.children[1]
        assert unit.node_text(call) == "call();"
        assert call.start_point[1] == 20
        assert unit.column(call) == 20

    def test_column_on_later_line(self, parser):
        unit = parser.parse_source("a();\n  \"ü\"; b();", Path("a.js"))
        last = unit.root_node.children[-1]
        assert unit.node_text(last) == "b();"
        assert unit.column(last) == 8

    def test_node_text_uses_byte_offsets(self, parser):
        source = "const s = 'ü'; call();"
        unit = parser.parse_source(source, Path("a.js"))
        calls = [
            c for c in unit.root_node.children if c.type == "expression_statement"
        ]
        assert unit.node_text(calls[0]) == "call();"
