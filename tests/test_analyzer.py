"""Tests for template analysis (block detection)."""

import logging

import pytest

from codefactory_engine.exceptions import UnsupportedPatternError, ValidationError
from codefactory_engine.extraction.analyzer import (
    IDENTIFIER,
    STRING_LITERAL,
    LoopBlock,
    ParamBlock,
    analyze_template,
    template_variables,
)

STORE = (
    "{% for s in signals %}\n"
    "export const {{ s.name }} = signal<{{ s.type }}>({{ s.default }});\n"
    "{% endfor %}\n"
)

PROPS = (
    "export interface {{ name }}Props {\n"
    "{% for p in props %}\n"
    "  {{ p }};\n"
    "{% endfor %}\n"
    "}\n"
)


class TestParamBlocks:
    def test_identifier_kind(self):
        blocks = analyze_template("const {{ name }} = 1;")
        assert blocks == [ParamBlock(name="name", line="const {{ name }} = 1;", kind=IDENTIFIER)]

    def test_quoted_line_is_string_literal(self):
        blocks = analyze_template("export const {{ name }} = '{{ value }}';")
        assert [b.name for b in blocks] == ["name", "value"]
        assert all(b.kind == STRING_LITERAL for b in blocks)

    def test_first_occurrence_wins(self):
        blocks = analyze_template("const {{ a }} = 1;\nlet b = {{ a }};\n")
        assert len(blocks) == 1
        assert blocks[0].line == "const {{ a }} = 1;"

    def test_whitespace_inside_braces_optional(self):
        blocks = analyze_template("x = {{value}}")
        assert blocks[0].name == "value"

    def test_comments_ignored(self):
        blocks = analyze_template("{# {{ hidden }} #}\nx = {{ shown }}")
        assert [b.name for b in blocks] == ["shown"]


class TestLoopBlocks:
    def test_structured_loop_fields_in_order(self):
        blocks = analyze_template(STORE)
        assert len(blocks) == 1
        loop = blocks[0]
        assert isinstance(loop, LoopBlock)
        assert loop.name == "signals"
        assert loop.item == "s"
        assert loop.field_names == ["name", "type", "default"]
        assert not loop.scalar

    def test_scalar_loop_records_container(self):
        blocks = analyze_template(PROPS)
        assert isinstance(blocks[0], ParamBlock)
        loop = blocks[1]
        assert loop.scalar
        assert loop.container == "export interface {{ name }}Props {"

    def test_scalar_loop_outside_closed_container(self):
        template = (
            "interface AProps {\n  x: string;\n}\n"
            "const tags = [\n{% for t in tags %}\n  '{{ t }}',\n{% endfor %}\n];\n"
        )
        loop = analyze_template(template)[0]
        assert loop.scalar
        assert loop.container is None

    def test_scalar_loop_without_container_strict(self):
        with pytest.raises(UnsupportedPatternError):
            analyze_template("{% for t in tags %}\n- {{ t }}\n{% endfor %}\n", strict=True)

    def test_whitespace_control_accepted(self):
        blocks = analyze_template("{%- for r in rows -%}{{ r.id }};{%- endfor -%}")
        assert blocks[0].field_names == ["id"]

    def test_params_around_loop_keep_order(self):
        template = "// {{ title }}\n" + STORE + "export default {{ title }};\n"
        names = [b.name for b in analyze_template(template)]
        assert names == ["title", "signals"]


class TestUnsupported:
    def test_loop_without_item_reference_skipped(self, caplog):
        with caplog.at_level(logging.WARNING):
            blocks = analyze_template("{% for x in items %}hello{% endfor %}")
        assert blocks == []
        assert "items" in caplog.text

    def test_loop_without_item_reference_strict(self):
        with pytest.raises(UnsupportedPatternError) as exc:
            analyze_template("{% for x in items %}hello{% endfor %}", strict=True)
        assert exc.value.name == "items"

    def test_nested_loop_skipped(self):
        template = "{% for a in xs %}{% for b in ys %}{{ b }}{% endfor %}{% endfor %}"
        assert analyze_template(template) == []

    def test_nested_loop_strict(self):
        template = "{% for a in xs %}{% for b in ys %}{{ b }}{% endfor %}{% endfor %}"
        with pytest.raises(UnsupportedPatternError):
            analyze_template(template, strict=True)

    def test_unclosed_loop(self):
        with pytest.raises(ValidationError):
            analyze_template("{% for x in items %}{{ x.a }}")


class TestTemplateVariables:
    def test_excludes_items_and_builtins(self):
        template = "{{ a }} {% for x in items %}{{ x.n }} {{ loop.index }}{% endfor %} {{ a }}"
        assert template_variables(template) == ["a", "items"]

    def test_empty_template(self):
        assert template_variables("plain text") == []
