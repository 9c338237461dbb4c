"""Tests for matcher compilation."""

import pytest

from codefactory_engine.exceptions import ValidationError
from codefactory_engine.extraction.analyzer import IDENTIFIER, LoopBlock, ParamBlock
from codefactory_engine.extraction.compiler import (
    LoopMatcher,
    ParamMatcher,
    ScalarLoopMatcher,
    compile_block,
    translate,
)


class TestTranslate:
    def test_literals_whitespace_tags_and_expressions(self):
        pattern = translate("a  b {% if x %}c{{ y }}", lambda expr: f"<{expr}>")
        assert pattern == r"a\s+b\s+.*?c<y>"

    def test_regex_metacharacters_escaped(self):
        pattern = translate("f(x) + [1]", lambda expr: "")
        assert pattern == r"f\(x\)\s+\+\s+\[1\]"


class TestParamMatcher:
    def test_identical_blocks_compile_equal(self):
        block = ParamBlock(name="name", line="const {{ name }} = 1;", kind=IDENTIFIER)
        assert compile_block(block) == compile_block(block)

    def test_kind(self):
        block = ParamBlock(name="name", line="const {{ name }} = 1;")
        matcher = compile_block(block)
        assert isinstance(matcher, ParamMatcher)
        assert matcher.extract("const total = 1;") == "total"

    def test_not_found_is_none(self):
        matcher = compile_block(ParamBlock(name="name", line="const {{ name }} = 1;"))
        assert matcher.extract("let total = 1;") is None

    def test_repeated_placeholder_must_agree(self):
        matcher = compile_block(ParamBlock(name="n", line="{{ n }} = {{ n }}"))
        assert "(?P=value)" in matcher.pattern
        assert matcher.extract("foo = foo") == "foo"
        assert matcher.extract("foo = bar") is None

    def test_number_hint(self):
        block = ParamBlock(name="count", line="const x = {{ count }};")
        matcher = compile_block(block, {"count": "number"})
        assert matcher.extract("const x = 42;") == 42
        assert matcher.extract("const x = -1.5;") == -1.5

    def test_boolean_hint(self):
        block = ParamBlock(name="enabled", line="const enabled = {{ enabled }};")
        matcher = compile_block(block, {"enabled": "boolean"})
        assert matcher.extract("const enabled = False;") is False
        assert matcher.extract("const enabled = true;") is True
        assert matcher.extract("const enabled = maybe;") is None

    def test_other_placeholders_become_wildcards(self):
        block = ParamBlock(name="b", line="{{ a }} -> {{ b }}")
        assert compile_block(block).extract("left -> right") == "right"


class TestLoopMatcher:
    def test_records_in_source_order(self):
        block = LoopBlock(
            name="rows",
            body="{{ r.id }}: {{ r.label }}",
            item="r",
            fields=(("id", "string"), ("label", "string")),
        )
        matcher = compile_block(block)
        assert isinstance(matcher, LoopMatcher)
        assert matcher.extract("1: alpha\n2: beta") == [
            {"id": "1", "label": "alpha"},
            {"id": "2", "label": "beta"},
        ]

    def test_numeric_field_hint(self):
        block = LoopBlock(
            name="rows",
            body="{{ r.id }}: {{ r.label }}",
            item="r",
            fields=(("id", "string"), ("label", "string")),
        )
        matcher = compile_block(block, {"rows": {"id": "number"}})
        assert matcher.numeric == ("id",)
        assert matcher.extract("7: seven") == [{"id": 7, "label": "seven"}]

    def test_boolean_field_hint(self):
        block = LoopBlock(
            name="rows",
            body="{{ r.name }}: {{ r.required }}",
            item="r",
            fields=(("name", "string"), ("required", "string")),
        )
        matcher = compile_block(block, {"rows": {"required": "boolean"}})
        assert matcher.boolean == ("required",)
        assert matcher.extract("a: true\nb: False") == [
            {"name": "a", "required": True},
            {"name": "b", "required": False},
        ]

    def test_regex_compiled_once(self):
        block = LoopBlock(name="rows", body="row {{ r.id }};", item="r", fields=(("id", "string"),))
        matcher = compile_block(block)
        assert matcher.regex is matcher.regex

    def test_no_matches_is_empty_list(self):
        block = LoopBlock(name="rows", body="row {{ r.id }};", item="r", fields=(("id", "string"),))
        assert compile_block(block).extract("nothing") == []


class TestScalarLoopMatcher:
    def test_default_container_convention(self):
        block = LoopBlock(name="props", body="{{ p }};", item="p", scalar=True)
        matcher = compile_block(block)
        assert isinstance(matcher, ScalarLoopMatcher)
        source = "type CardProps = {\n  a: string;\n  b?: number;\n};"
        assert matcher.extract(source) == ["a: string", "b?: number"]

    def test_template_container(self):
        block = LoopBlock(
            name="props",
            body="{{ p }};",
            item="p",
            scalar=True,
            container="export interface {{ name }}Props {",
        )
        source = "export interface ButtonProps {\n  label: string;\n}\n"
        assert compile_block(block).extract(source) == ["label: string"]

    def test_missing_container_is_empty_list(self):
        block = LoopBlock(name="props", body="{{ p }};", item="p", scalar=True)
        assert compile_block(block).extract("const x = 1;") == []


class TestCompileErrors:
    def test_unknown_block(self):
        with pytest.raises(ValidationError):
            compile_block("not a block")
