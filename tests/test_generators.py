"""Tests for generator definitions, registry, frontmatter, loader and validator."""

from pathlib import Path

import pytest

from codefactory_engine.exceptions import (
    AlreadyExistsError,
    GeneratorNotFoundError,
    ValidationError,
)
from codefactory_engine.generators.definition import (
    FunctionGenerator,
    ParamSpec,
    define_generator,
)
from codefactory_engine.generators.frontmatter import parse_frontmatter
from codefactory_engine.generators.loader import load_directory, load_template
from codefactory_engine.generators.registry import GeneratorRegistry
from codefactory_engine.generators.validator import is_allowed_type, validate_params

FIXTURES = Path(__file__).parent / "fixtures"


class TestDefinition:
    def test_auto_declares_params(self):
        gen = define_generator(
            "g", "G", "{{ title }}\n{% for r in rows %}{{ r.id }}\n{% endfor %}"
        )
        assert gen.params["title"].type == "string"
        assert gen.params["rows"].type == "array"

    def test_declared_params_kept(self):
        gen = define_generator("g", "G", "{{ size }}", params={"size": {"type": "number", "default": 3}})
        assert gen.params["size"] == ParamSpec(type="number", default=3)
        assert gen.render({}) == "3"
        assert gen.type_hints() == {"size": "number"}

    def test_render_is_deterministic(self):
        gen = define_generator("g", "G", "a={{ a }}")
        assert gen.render({"a": "1"}) == gen.render({"a": "1"})

    def test_output_path_rendered(self):
        gen = define_generator("g", "G", "x", output_path="src/{{ name }}.ts")
        assert gen.render_output_path({"name": "Button"}) == "src/Button.ts"

    def test_function_generator_must_return_str(self):
        gen = FunctionGenerator(name="f", description="F", func=lambda p: 42)
        with pytest.raises(ValidationError):
            gen.render({})

    def test_function_generator_has_no_template(self):
        gen = FunctionGenerator(name="f", description="F", func=lambda p: "x")
        assert gen.raw_template is None
        assert gen.metadata()["syncable"] is False


class TestRegistry:
    def test_fixture_generators_registered(self, registry):
        assert registry.names() == ["constant", "props", "store", "banner"]
        assert "constant" in registry
        assert len(registry) == 4

    def test_resolve_unknown(self, registry):
        with pytest.raises(GeneratorNotFoundError):
            registry.resolve("nope")
        assert registry.get("nope") is None

    def test_duplicate_name(self, registry):
        with pytest.raises(AlreadyExistsError):
            registry.register(define_generator("constant", "Again", "x"))

    def test_rejects_non_generator(self):
        with pytest.raises(ValidationError):
            GeneratorRegistry().register({"name": "dict", "template": "x"})

    def test_rejects_invalid_param_type(self):
        gen = define_generator("g", "G", "{{ a }}", params={"a": {"type": "object"}})
        with pytest.raises(ValidationError, match="not allowed"):
            GeneratorRegistry().register(gen)

    def test_rejects_template_syntax_error(self):
        with pytest.raises(ValidationError):
            GeneratorRegistry().register(define_generator("g", "G", "{% if %}"))

    def test_rejects_bad_name(self):
        with pytest.raises(ValidationError):
            GeneratorRegistry().register(define_generator("bad name", "G", "x"))

    def test_catalog(self, registry):
        names = [m["name"] for m in registry.catalog()]
        assert names == registry.names()

    def test_separate_instances_do_not_share_state(self, registry):
        assert "constant" not in GeneratorRegistry()


class TestValidator:
    @pytest.mark.parametrize("type_name,ok", [
        ("string", True),
        ("number[]", True),
        ("array", True),
        ("enum:primary|secondary", True),
        ("enum:", False),
        ("object", False),
    ])
    def test_allowed_types(self, type_name, ok):
        assert is_allowed_type(type_name) is ok

    def test_suspicious_names_warn(self):
        result = validate_params({"body": ParamSpec(), "onClickHandler": ParamSpec()})
        assert result.passed
        assert len(result.warnings) == 2

    def test_code_like_list_warns(self):
        result = validate_params({
            "props": ParamSpec(type="string[]"),
            "propNames": ParamSpec(type="string[]"),
        })
        assert len(result.warnings) == 1
        assert "props" in result.warnings[0]

    def test_invalid_field_type(self):
        result = validate_params({"rows": ParamSpec(type="array", fields={"id": "uuid"})})
        assert not result.passed

    def test_summary(self):
        assert validate_params({}).summary() == "All parameters valid."


class TestFrontmatter:
    def test_yaml(self):
        meta, body = parse_frontmatter("---\nname: x\ndescription: y\n---\nbody {{ a }}\n")
        assert meta == {"name": "x", "description": "y"}
        assert body == "body {{ a }}\n"

    def test_json(self):
        meta, body = parse_frontmatter('/*---\n{"name": "x"}\n---*/\nbody\n')
        assert meta == {"name": "x"}
        assert body == "body\n"

    def test_none(self):
        assert parse_frontmatter("just text") == ({}, "just text")

    def test_malformed_yaml(self):
        with pytest.raises(ValidationError):
            parse_frontmatter("---\nname: [unclosed\n---\nbody\n")

    def test_non_mapping(self):
        with pytest.raises(ValidationError):
            parse_frontmatter("---\n- a\n- b\n---\nbody\n")


class TestLoader:
    def test_load_template(self):
        gen = load_template(FIXTURES / "generators" / "props.j2")
        assert gen.name == "props"
        assert gen.output_path == "src/{{ name }}Props.ts"
        assert gen.params["props"].required is False
        assert gen.template.startswith("export interface")

    def test_marker_lines_stripped(self, tmp_path):
        path = tmp_path / "gen.j2"
        path.write_text(
            '{# @codefactory:start factory="meta" #}\n'
            "---\nname: gen\ndescription: Gen\n---\nx = {{ x }}\n"
            "{# @codefactory:end #}\n"
        )
        gen = load_template(path)
        assert gen.template == "x = {{ x }}\n"

    def test_missing_required_field(self, tmp_path):
        path = tmp_path / "gen.j2"
        path.write_text("---\nname: gen\n---\nx\n")
        with pytest.raises(ValidationError, match="description"):
            load_template(path)

    def test_directory_collects_errors(self, tmp_path):
        (tmp_path / "good.j2").write_text("---\nname: good\ndescription: Good\n---\nx\n")
        (tmp_path / "bad.j2").write_text("---\nname: bad\n---\nx\n")
        (tmp_path / "notes.txt").write_text("ignored")
        generators, errors = load_directory(tmp_path)
        assert [g.name for g in generators] == ["good"]
        assert len(errors) == 1
        assert "bad.j2" in errors[0]

    def test_missing_directory(self, tmp_path):
        assert load_directory(tmp_path / "absent") == ([], [])
