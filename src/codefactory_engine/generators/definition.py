"""Generator definitions — the closed set of things a registry can hold.

Two variants exist:

- TemplateGenerator: renders a Jinja template. Its raw template is kept so
  that edited output can be synced back through extraction.
- FunctionGenerator: wraps an opaque Python callable. It renders, but has no
  template and therefore cannot be synced.

Rendering must be referentially transparent: identical parameters always
produce byte-identical text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, ClassVar, Union

import jinja2

from codefactory_engine.exceptions import ValidationError
from codefactory_engine.extraction.analyzer import LOOP_OPEN, template_variables

_ENVIRONMENT = jinja2.Environment(
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    autoescape=False,
)


@lru_cache(maxsize=256)
def compile_template(source: str) -> jinja2.Template:
    """Compile (and cache) a Jinja template.

    Raises:
        ValidationError: If the template has a syntax error.
    """
    try:
        return _ENVIRONMENT.from_string(source)
    except jinja2.TemplateSyntaxError as e:
        raise ValidationError(f"Template syntax error (line {e.lineno}): {e.message}") from e


@dataclass(frozen=True)
class ParamSpec:
    """Declared parameter of a generator."""

    type: str = "string"
    description: str = ""
    required: bool = True
    default: Any = None
    fields: dict[str, str] = field(default_factory=dict)
    pattern: str | None = None
    max_length: int | None = None

    @classmethod
    def from_dict(cls, name: str, data: Any) -> ParamSpec:
        """Build a spec from a frontmatter mapping (or a bare type string)."""
        if isinstance(data, str):
            return cls(type=data)
        if not isinstance(data, dict):
            raise ValidationError(f"Parameter '{name}' must be a mapping, got {type(data).__name__}")
        fields = data.get("fields") or {}
        if not isinstance(fields, dict):
            raise ValidationError(f"Parameter '{name}': 'fields' must be a mapping")
        return cls(
            type=str(data.get("type", "string")),
            description=str(data.get("description", "")),
            required=bool(data.get("required", True)),
            default=data.get("default"),
            fields={str(k): str(v) for k, v in fields.items()},
            pattern=data.get("pattern"),
            max_length=data.get("maxLength", data.get("max_length")),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "type": self.type,
            "description": self.description,
            "required": self.required,
        }
        if self.default is not None:
            d["default"] = self.default
        if self.fields:
            d["fields"] = dict(self.fields)
        if self.pattern:
            d["pattern"] = self.pattern
        if self.max_length is not None:
            d["maxLength"] = self.max_length
        return d


def _type_hints(params: dict[str, ParamSpec]) -> dict[str, Any]:
    hints: dict[str, Any] = {}
    for name, spec in params.items():
        if spec.type in ("number", "boolean"):
            hints[name] = spec.type
        elif spec.fields:
            hints[name] = dict(spec.fields)
    return hints


def _with_defaults(params: dict[str, ParamSpec], values: dict[str, Any]) -> dict[str, Any]:
    merged = {name: spec.default for name, spec in params.items() if spec.default is not None}
    merged.update(values)
    return merged


@dataclass(frozen=True)
class TemplateGenerator:
    """Generator backed by a Jinja template."""

    name: str
    description: str
    template: str
    params: dict[str, ParamSpec] = field(default_factory=dict)
    examples: list[dict[str, Any]] = field(default_factory=list)
    output_path: str | None = None
    source: str | None = None

    kind: ClassVar[str] = "template"

    @property
    def raw_template(self) -> str:
        return self.template

    def render(self, params: dict[str, Any]) -> str:
        return compile_template(self.template).render(_with_defaults(self.params, params))

    def render_output_path(self, params: dict[str, Any]) -> str | None:
        if not self.output_path:
            return None
        return compile_template(self.output_path).render(_with_defaults(self.params, params))

    def type_hints(self) -> dict[str, Any]:
        return _type_hints(self.params)

    def metadata(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "kind": self.kind,
            "params": {k: v.to_dict() for k, v in self.params.items()},
            "examples": list(self.examples),
            "output_path": self.output_path,
            "syncable": True,
        }


@dataclass(frozen=True)
class FunctionGenerator:
    """Generator backed by a Python callable taking the parameter dict."""

    name: str
    description: str
    func: Callable[[dict[str, Any]], str]
    params: dict[str, ParamSpec] = field(default_factory=dict)
    examples: list[dict[str, Any]] = field(default_factory=list)

    kind: ClassVar[str] = "function"

    @property
    def raw_template(self) -> None:
        return None

    def render(self, params: dict[str, Any]) -> str:
        result = self.func(_with_defaults(self.params, params))
        if not isinstance(result, str):
            raise ValidationError(
                f"Generator '{self.name}' returned {type(result).__name__}, expected str"
            )
        return result

    def type_hints(self) -> dict[str, Any]:
        return _type_hints(self.params)

    def metadata(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "kind": self.kind,
            "params": {k: v.to_dict() for k, v in self.params.items()},
            "examples": list(self.examples),
            "output_path": None,
            "syncable": False,
        }


GeneratorDefinition = Union[TemplateGenerator, FunctionGenerator]
GENERATOR_TYPES = (TemplateGenerator, FunctionGenerator)


def define_generator(
    name: str,
    description: str,
    template: str,
    params: dict[str, Any] | None = None,
    examples: list[dict[str, Any]] | None = None,
    output_path: str | None = None,
    source: str | None = None,
) -> TemplateGenerator:
    """Create a TemplateGenerator, declaring any undeclared template variable.

    Variables found in the template without a declaration become required
    ``string`` parameters; loop collections become ``array`` parameters.
    """
    declared = {k: ParamSpec.from_dict(k, v) for k, v in (params or {}).items()}
    collections = {m.group(2) for m in LOOP_OPEN.finditer(template)}

    specs: dict[str, ParamSpec] = {}
    for var in template_variables(template):
        if var in declared:
            specs[var] = declared.pop(var)
        elif var in collections:
            specs[var] = ParamSpec(type="array", description=f"Items for {var}")
        else:
            specs[var] = ParamSpec(type="string", description=f"Value for {var}")
    specs.update(declared)

    return TemplateGenerator(
        name=name,
        description=description,
        template=template,
        params=specs,
        examples=list(examples or []),
        output_path=output_path,
        source=source,
    )
