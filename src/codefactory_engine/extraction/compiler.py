"""Compile template blocks into matchers.

A matcher is a regex derived deterministically from one block, able to pull
the substituted value(s) back out of rendered or hand-edited text. Matchers
hold the pattern source rather than a compiled object so that identical
blocks compile to equal matchers. Compiled patterns are cached per
(pattern, flags).

Capture classes:
    identifier       [A-Za-z_$][A-Za-z0-9_$]*
    string-literal   run of characters without quotes
    number           signed integer or decimal
    boolean          true / false
    (fallback)       run of non-whitespace
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable

from codefactory_engine.exceptions import ValidationError
from codefactory_engine.extraction.analyzer import Block, LoopBlock, ParamBlock

KIND_PATTERNS = {
    "identifier": r"[A-Za-z_$][A-Za-z0-9_$]*",
    "string-literal": r"[^'\"\n]+",
    "number": r"-?\d+(?:\.\d+)?",
    "boolean": r"true|false|True|False",
}
FALLBACK_PATTERN = r"\S+"
WILDCARD = r".*?"

LOOP_FIELD_PATTERN = r"[^;,)\s]+"
LOOP_NUMBER_PATTERN = r"-?\d+"
LOOP_BOOLEAN_PATTERN = KIND_PATTERNS["boolean"]

# Fixed naming convention for scalar-loop containers: interface FooProps { ... }
DEFAULT_CONTAINER = r"(?:interface|type|class|struct)\s+\w*Props\s*=?\s*\{"
CONTAINER_BODY = r"(?P<body>[^{}]*)\}"

_TOKEN = re.compile(
    r"(?P<expr>\{\{-?\s*(?P<inner>.*?)\s*-?\}\})|(?P<tag>\{%.*?%\})|(?P<space>\s+)"
)


@dataclass(frozen=True)
class Matcher:
    """Base matcher: a named pattern applied to a whole source text."""

    name: str
    pattern: str
    flags: int = 0

    @property
    def regex(self) -> re.Pattern:
        return _compiled(self.pattern, self.flags)

    def extract(self, source: str) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class ParamMatcher(Matcher):
    """Recovers one scalar value; ``None`` when the line is not found."""

    kind: str = "identifier"

    def extract(self, source: str) -> str | int | float | bool | None:
        m = self.regex.search(source)
        if m is None:
            return None
        value = m.group("value").strip()
        if self.kind == "number":
            return _to_number(value)
        if self.kind == "boolean":
            return _to_bool(value)
        return value


@dataclass(frozen=True)
class LoopMatcher(Matcher):
    """Recovers one record per repetition of a loop body, in source order."""

    fields: tuple[str, ...] = ()
    numeric: tuple[str, ...] = ()
    boolean: tuple[str, ...] = ()

    def extract(self, source: str) -> list[dict[str, Any]]:
        items = []
        for m in self.regex.finditer(source):
            item: dict[str, Any] = {}
            for f in self.fields:
                value = m.group(f).strip()
                if f in self.numeric:
                    item[f] = _to_number(value)
                elif f in self.boolean:
                    item[f] = _to_bool(value)
                else:
                    item[f] = value
            items.append(item)
        return items


@dataclass(frozen=True)
class ScalarLoopMatcher(Matcher):
    """Recovers a flat list from the body of a delimited ``...Props`` block."""

    def extract(self, source: str) -> list[str]:
        m = self.regex.search(source)
        if m is None:
            return []
        values = []
        for line in m.group("body").split("\n"):
            line = line.strip()
            if not line or "{" in line or "}" in line:
                continue
            values.append(line.rstrip(";,").rstrip())
        return [v for v in values if v]


def compile_block(block: Block, type_hints: dict[str, Any] | None = None) -> Matcher:
    """Compile one block into its matcher.

    Args:
        block: ParamBlock or LoopBlock from analyze_template().
        type_hints: Optional overrides. ``{param: kind}`` for parameters and
            ``{collection: {field: kind}}`` for loop fields.

    Raises:
        ValidationError: If the block is not a known variant or the derived
            pattern does not compile.
    """
    hints = type_hints or {}
    if isinstance(block, ParamBlock):
        matcher: Matcher = _compile_param(block, hints.get(block.name))
    elif isinstance(block, LoopBlock) and block.scalar:
        matcher = _compile_scalar_loop(block)
    elif isinstance(block, LoopBlock):
        field_hints = hints.get(block.name)
        matcher = _compile_loop(block, field_hints if isinstance(field_hints, dict) else {})
    else:
        raise ValidationError(f"Cannot compile block of type {type(block).__name__}")

    try:
        re.compile(matcher.pattern, matcher.flags)
    except re.error as e:
        raise ValidationError(f"Invalid pattern for '{block.name}': {e}") from e
    return matcher


def translate(text: str, on_placeholder: Callable[[str], str]) -> str:
    """Turn template text into a regex source.

    Literal characters are escaped, whitespace runs become ``\\s+``,
    statement tags become a wildcard, and each ``{{ ... }}`` expression is
    replaced by whatever ``on_placeholder`` returns for its inner text.
    """
    parts = []
    pos = 0
    for m in _TOKEN.finditer(text):
        parts.append(re.escape(text[pos:m.start()]))
        if m.group("expr"):
            parts.append(on_placeholder(m.group("inner").strip()))
        elif m.group("tag"):
            parts.append(WILDCARD)
        else:
            parts.append(r"\s+")
        pos = m.end()
    parts.append(re.escape(text[pos:]))
    return "".join(parts)


def _compile_param(block: ParamBlock, hint: Any) -> ParamMatcher:
    kind = hint if isinstance(hint, str) and hint in KIND_PATTERNS else block.kind
    capture = KIND_PATTERNS.get(kind, FALLBACK_PATTERN)
    captured = False

    def placeholder(expr: str) -> str:
        nonlocal captured
        if expr != block.name:
            return WILDCARD
        if captured:
            return "(?P=value)"
        captured = True
        return f"(?P<value>{capture})"

    return ParamMatcher(name=block.name, pattern=translate(block.line, placeholder), kind=kind)


def _compile_loop(block: LoopBlock, field_hints: dict[str, str]) -> LoopMatcher:
    kinds = dict(block.fields)
    kinds.update({f: k for f, k in field_hints.items() if f in kinds})
    item_field = re.compile(r"^" + re.escape(block.item) + r"\.(\w+)$")
    captured: set[str] = set()

    def placeholder(expr: str) -> str:
        m = item_field.match(expr)
        if m is None:
            return WILDCARD
        name = m.group(1)
        if name in captured:
            return f"(?P={name})"
        captured.add(name)
        if kinds.get(name) == "number":
            capture = LOOP_NUMBER_PATTERN
        elif kinds.get(name) == "boolean":
            capture = LOOP_BOOLEAN_PATTERN
        else:
            capture = LOOP_FIELD_PATTERN
        return f"(?P<{name}>{capture})"

    return LoopMatcher(
        name=block.name,
        pattern=translate(block.body, placeholder),
        flags=re.MULTILINE,
        fields=tuple(block.field_names),
        numeric=tuple(f for f in block.field_names if kinds.get(f) == "number"),
        boolean=tuple(f for f in block.field_names if kinds.get(f) == "boolean"),
    )


def _compile_scalar_loop(block: LoopBlock) -> ScalarLoopMatcher:
    if block.container:
        header = translate(block.container, lambda expr: r"\w*")
    else:
        header = DEFAULT_CONTAINER
    return ScalarLoopMatcher(name=block.name, pattern=header + CONTAINER_BODY)


@lru_cache(maxsize=None)
def _compiled(pattern: str, flags: int) -> re.Pattern:
    return re.compile(pattern, flags)


def _to_bool(value: str) -> bool:
    return value.lower() == "true"


def _to_number(value: str) -> int | float | str:
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value
