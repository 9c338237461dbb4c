"""Template analysis — split a Jinja template into Param and Loop blocks.

A block describes one place where a value is substituted into the rendered
text. Blocks are returned in template order and are the only input the
extractor compiler needs.

Recognised constructs:
    {{ name }}                              scalar parameter
    {% for item in collection %} ... {% endfor %}
        {{ item.field }}                    structured loop field
        {{ item }}                          scalar loop item

Nested loops are not supported.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Union

from codefactory_engine.exceptions import UnsupportedPatternError, ValidationError

logger = logging.getLogger(__name__)

IDENTIFIER = "identifier"
STRING_LITERAL = "string-literal"
STRING = "string"

LOOP_OPEN = re.compile(r"\{%-?\s*for\s+(\w+)\s+in\s+(\w+)\s*-?%\}")
LOOP_CLOSE = re.compile(r"\{%-?\s*endfor\s*-?%\}")
PLACEHOLDER = re.compile(r"\{\{-?\s*(\w+)\s*-?\}\}")
COMMENT = re.compile(r"\{#.*?#\}", re.DOTALL)
EXPRESSION = re.compile(r"\{\{.*?\}\}|\{%.*?%\}", re.DOTALL)

_VARIABLE = re.compile(r"\{%-?\s*for\s+\w+\s+in\s+(?P<coll>\w+)|\{\{-?\s*(?P<var>\w+)")
_CONTAINER_KEYWORD = re.compile(r"\b(?:interface|type|class|struct)\b")
_JINJA_NAMES = {"loop", "range", "super", "self", "true", "false", "none", "True", "False", "None"}


@dataclass(frozen=True)
class ParamBlock:
    """A scalar placeholder outside any loop."""

    name: str
    line: str
    kind: str = IDENTIFIER


@dataclass(frozen=True)
class LoopBlock:
    """A loop over a named collection.

    ``fields`` holds ``(field, kind)`` pairs in first-appearance order.
    ``container`` is the template line opening the nearest enclosing
    ``...Props {`` block; only scalar loops use it.
    """

    name: str
    body: str
    item: str
    fields: tuple[tuple[str, str], ...] = ()
    scalar: bool = False
    container: str | None = None

    @property
    def field_names(self) -> list[str]:
        return [f for f, _ in self.fields]


Block = Union[ParamBlock, LoopBlock]


@dataclass(frozen=True)
class _LoopSpan:
    start: int
    end: int
    item: str
    collection: str
    body: str
    nested: bool


def analyze_template(template: str, *, strict: bool = False) -> list[Block]:
    """Analyze a template and return its blocks in order of appearance.

    Args:
        template: Jinja template source.
        strict: Raise UnsupportedPatternError for constructs that cannot be
            extracted instead of skipping them with a warning.

    Returns:
        Ordered list of ParamBlock / LoopBlock. A parameter that occurs on
        several lines yields one block (first occurrence wins).

    Raises:
        ValidationError: If a loop is never closed.
    """
    text = COMMENT.sub("", template)
    blocks: list[Block] = []
    seen: set[str] = set()

    pos = 0
    for span in _loop_spans(text):
        _collect_params(text[pos:span.start], blocks, seen)
        loop = _build_loop(span, text[:span.start], strict)
        if loop is not None:
            blocks.append(loop)
        pos = span.end
    _collect_params(text[pos:], blocks, seen)

    return blocks


def template_variables(template: str) -> list[str]:
    """List top-level variable names in first-appearance order.

    Loop collections are included; loop item names and Jinja builtins are not.
    """
    text = COMMENT.sub("", template)
    items = {m.group(1) for m in LOOP_OPEN.finditer(text)}
    names: list[str] = []
    for m in _VARIABLE.finditer(text):
        name = m.group("coll") or m.group("var")
        if name in items or name in _JINJA_NAMES or name in names:
            continue
        names.append(name)
    return names


def _loop_spans(text: str):
    pos = 0
    while True:
        open_m = LOOP_OPEN.search(text, pos)
        if open_m is None:
            return

        depth = 1
        cursor = open_m.end()
        nested = False
        close_m = None
        while depth:
            next_open = LOOP_OPEN.search(text, cursor)
            next_close = LOOP_CLOSE.search(text, cursor)
            if next_close is None:
                raise ValidationError(
                    f"Loop over '{open_m.group(2)}' is never closed with {{% endfor %}}"
                )
            if next_open is not None and next_open.start() < next_close.start():
                depth += 1
                nested = True
                cursor = next_open.end()
            else:
                depth -= 1
                cursor = next_close.end()
                close_m = next_close

        yield _LoopSpan(
            start=open_m.start(),
            end=close_m.end(),
            item=open_m.group(1),
            collection=open_m.group(2),
            body=text[open_m.end():close_m.start()].strip(),
            nested=nested,
        )
        pos = close_m.end()


def _collect_params(chunk: str, blocks: list[Block], seen: set[str]) -> None:
    for raw_line in chunk.split("\n"):
        names = PLACEHOLDER.findall(raw_line)
        if not names:
            continue
        line = raw_line.strip()
        kind = STRING_LITERAL if ("'" in line or '"' in line) else IDENTIFIER
        for name in names:
            if name in seen:
                continue
            seen.add(name)
            blocks.append(ParamBlock(name=name, line=line, kind=kind))


def _build_loop(span: _LoopSpan, preceding: str, strict: bool) -> LoopBlock | None:
    if span.nested:
        return _unsupported(span.collection, "nested loops are not supported", strict)

    item = re.escape(span.item)
    field_re = re.compile(r"\{\{-?\s*" + item + r"\.(\w+)\s*-?\}\}")
    bare_re = re.compile(r"\{\{-?\s*" + item + r"\s*-?\}\}")

    fields: list[str] = []
    for name in field_re.findall(span.body):
        if name not in fields:
            fields.append(name)

    if fields:
        return LoopBlock(
            name=span.collection,
            body=span.body,
            item=span.item,
            fields=tuple((f, STRING) for f in fields),
        )

    if bare_re.search(span.body):
        container = _enclosing_container(preceding)
        if container is None and strict:
            return _unsupported(
                span.collection, "scalar loop has no enclosing ...Props block", strict
            )
        return LoopBlock(
            name=span.collection,
            body=span.body,
            item=span.item,
            scalar=True,
            container=container,
        )

    return _unsupported(
        span.collection, "loop body references neither item fields nor the item", strict
    )


def _enclosing_container(preceding: str) -> str | None:
    """Return the nearest still-open ``... Props {`` line before a loop."""
    lines = preceding.split("\n")
    for index in range(len(lines) - 1, -1, -1):
        line = lines[index].strip()
        if not (line.endswith("{") and "Props" in line and _CONTAINER_KEYWORD.search(line)):
            continue
        between = "\n".join(lines[index + 1:])
        between = EXPRESSION.sub("", between)
        if between.count("}") > between.count("{"):
            return None
        return line
    return None


def _unsupported(name: str, reason: str, strict: bool) -> None:
    if strict:
        raise UnsupportedPatternError(name, reason)
    logger.warning("Skipping '%s': %s", name, reason)
    return None
