"""Tests for the extraction engine: render, edit, re-extract."""

import pytest

from codefactory_engine.exceptions import UnsupportedPatternError
from codefactory_engine.extraction.engine import TemplateExtractor, extract_params
from codefactory_engine.generators.definition import define_generator

CONSTANT = "export const {{ name }} = '{{ value }}';"

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

SIGNALS = [
    {"name": "count", "type": "number", "default": "0"},
    {"name": "label", "type": "string", "default": "''"},
    {"name": "items", "type": "string[]", "default": "[]"},
]


class TestScalarParams:
    def test_render_then_edit_then_extract(self):
        gen = define_generator("constant", "Constant", CONSTANT)
        assert gen.render({"name": "x", "value": "1"}) == "export const x = '1';"

        edited = "export const y = '2';"
        assert extract_params(CONSTANT, edited) == {"name": "y", "value": "2"}

    def test_missing_values_omitted(self):
        assert extract_params(CONSTANT, "nothing to see") == {}

    def test_number_hint(self):
        template = "const {{ name }} = {{ size }};"
        result = extract_params(template, "const s = 12;", type_hints={"size": "number"})
        assert result == {"name": "s", "size": 12}

    def test_overlapping_blocks_not_deduplicated(self):
        template = "let {{ a }} = 1;\nlet {{ b }} = 1;"
        assert extract_params(template, "let x = 1;\nlet y = 1;") == {"a": "x", "b": "x"}


class TestLoops:
    def test_appended_declaration_extracted_in_order(self):
        gen = define_generator("store", "Store", STORE)
        rendered = gen.render({"signals": SIGNALS})
        assert rendered.count("export const") == 3

        edited = rendered + "export const done = signal<boolean>(false);\n"
        signals = extract_params(STORE, edited)["signals"]
        assert len(signals) == 4
        assert [s["name"] for s in signals] == ["count", "label", "items", "done"]
        assert signals[3] == {"name": "done", "type": "boolean", "default": "false"}

    def test_loop_round_trip(self):
        gen = define_generator("store", "Store", STORE)
        assert extract_params(STORE, gen.render({"signals": SIGNALS})) == {"signals": SIGNALS}

    def test_empty_loop_is_empty_list(self):
        assert extract_params(STORE, "") == {"signals": []}

    def test_scalar_loop_round_trip(self):
        gen = define_generator("props", "Props", PROPS)
        params = {"name": "Button", "props": ["label: string", "disabled?: boolean"]}
        rendered = gen.render(params)
        assert rendered.startswith("export interface ButtonProps {\n  label: string;\n")
        assert extract_params(PROPS, rendered) == params


class TestTemplateExtractor:
    def test_reusable_across_sources(self):
        extractor = TemplateExtractor(CONSTANT)
        assert extractor.extract("export const a = 'b';") == {"name": "a", "value": "b"}
        assert extractor.extract("export const c = 'd';") == {"name": "c", "value": "d"}

    def test_extraction_is_deterministic(self):
        extractor = TemplateExtractor(STORE)
        source = define_generator("store", "Store", STORE).render({"signals": SIGNALS})
        assert extractor.extract(source) == extractor.extract(source)

    def test_strict_rejects_unsupported(self):
        with pytest.raises(UnsupportedPatternError):
            TemplateExtractor("{% for x in items %}static{% endfor %}", strict=True)

    def test_blocks_and_matchers_align(self):
        extractor = TemplateExtractor(PROPS)
        assert [b.name for b in extractor.blocks] == [m.name for m in extractor.matchers]
