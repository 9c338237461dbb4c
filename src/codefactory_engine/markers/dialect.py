"""Sentinel dialects and marker parsing.

A generation unit is demarcated by a start and an end sentinel, written as a
comment in the host file's own syntax:

    // @codefactory:start factory="component" id="button"
    ...generated text...
    // @codefactory:end

The comment form is chosen purely by file extension. Units must be paired
and must not overlap; anything else is a StructuralError.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from codefactory_engine.exceptions import LegacyMarkerError, StructuralError
from codefactory_engine.markers import END_TAG, START_TAG

_ATTR = re.compile(r'(\w+)="([^"]*)"')


@dataclass(frozen=True)
class Dialect:
    """One comment syntax for sentinels."""

    name: str
    prefix: str
    suffix: str = ""

    def start(self, generator: str, unit_id: str | None = None) -> str:
        attrs = f'factory="{generator}"'
        if unit_id and unit_id != generator:
            attrs += f' id="{unit_id}"'
        return self._comment(f"{START_TAG} {attrs}")

    def end(self) -> str:
        return self._comment(END_TAG)

    def _comment(self, text: str) -> str:
        if self.suffix:
            return f"{self.prefix} {text} {self.suffix}"
        return f"{self.prefix} {text}"

    @property
    def start_pattern(self) -> re.Pattern:
        tail = r"[ \t]*" + re.escape(self.suffix) if self.suffix else ""
        lazy = "?" if self.suffix else ""
        return re.compile(
            re.escape(self.prefix)
            + r"[ \t]*"
            + re.escape(START_TAG)
            + r"\b(?P<attrs>[^\r\n]*"
            + lazy
            + r")"
            + tail
        )

    @property
    def end_pattern(self) -> re.Pattern:
        tail = r"[ \t]*" + re.escape(self.suffix) if self.suffix else ""
        return re.compile(re.escape(self.prefix) + r"[ \t]*" + re.escape(END_TAG) + r"\b" + tail)


SLASH = Dialect("slash", "//")
HASH = Dialect("hash", "#")
HTML = Dialect("html", "<!--", "-->")
TEMPLATE = Dialect("template", "{#", "#}")

DIALECTS_BY_EXTENSION: dict[str, Dialect] = {}
for _ext in (
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".go", ".rs", ".java", ".cs",
    ".cpp", ".c", ".h", ".hpp", ".swift", ".kt", ".scala", ".dart", ".php",
):
    DIALECTS_BY_EXTENSION[_ext] = SLASH
for _ext in (".py", ".rb", ".sh", ".bash", ".yaml", ".yml", ".toml", ".r"):
    DIALECTS_BY_EXTENSION[_ext] = HASH
for _ext in (".md", ".html", ".htm", ".xml", ".vue", ".svelte"):
    DIALECTS_BY_EXTENSION[_ext] = HTML
for _ext in (".j2", ".jinja", ".jinja2", ".template", ".hbs"):
    DIALECTS_BY_EXTENSION[_ext] = TEMPLATE

SOURCE_EXTENSIONS = frozenset(DIALECTS_BY_EXTENSION)


def dialect_for(path: Path | str) -> Dialect:
    """Sentinel dialect for a file, by extension. Unknown extensions use ``//``."""
    return DIALECTS_BY_EXTENSION.get(Path(path).suffix.lower(), SLASH)


@dataclass(frozen=True)
class MarkerSpan:
    """One generation unit located in a text.

    ``start``/``end`` bound the whole unit including both sentinels;
    ``body_start``/``body_end`` bound the generated text between them.
    """

    generator: str
    unit_id: str | None
    start: int
    end: int
    body_start: int
    body_end: int

    @property
    def identity(self) -> str:
        return self.unit_id or self.generator

    def body(self, text: str) -> str:
        return text[self.body_start:self.body_end].rstrip()


def wrap(body: str, generator: str, dialect: Dialect, unit_id: str | None = None) -> str:
    """Wrap generated text in start/end sentinels."""
    return f"{dialect.start(generator, unit_id)}\n{body.rstrip(chr(10))}\n{dialect.end()}"


def has_start_marker(text: str) -> bool:
    return START_TAG in text


def find_markers(text: str, dialect: Dialect, path: str | None = None) -> list[MarkerSpan]:
    """Locate every generation unit in ``text``, in order.

    Raises:
        LegacyMarkerError: A start sentinel carries id="..." but no factory.
        StructuralError: Unpaired, nested or attribute-less sentinels.
    """
    events = [(m.start(), "start", m) for m in dialect.start_pattern.finditer(text)]
    events += [(m.start(), "end", m) for m in dialect.end_pattern.finditer(text)]
    events.sort(key=lambda e: e[0])

    spans: list[MarkerSpan] = []
    open_match = None
    for offset, kind, m in events:
        if kind == "start":
            if open_match is not None:
                raise StructuralError(
                    f"start marker at offset {offset} opens inside the unit started "
                    f"at offset {open_match.start()}",
                    path,
                )
            open_match = m
            continue

        if open_match is None:
            raise StructuralError(f"end marker at offset {offset} has no start marker", path)
        spans.append(_span(text, open_match, m, path))
        open_match = None

    if open_match is not None:
        raise StructuralError(
            f"start marker at offset {open_match.start()} has no end marker", path
        )
    return spans


def _span(text: str, start_m: re.Match, end_m: re.Match, path: str | None) -> MarkerSpan:
    attrs = dict(_ATTR.findall(start_m.group("attrs")))
    generator = attrs.get("factory")
    if not generator:
        if "id" in attrs:
            raise LegacyMarkerError(attrs["id"], path)
        raise StructuralError(
            f'start marker at offset {start_m.start()} has no factory="..." attribute', path
        )

    newline = text.find("\n", start_m.end(), end_m.start())
    body_start = newline + 1 if newline != -1 else start_m.end()
    return MarkerSpan(
        generator=generator,
        unit_id=attrs.get("id"),
        start=start_m.start(),
        end=end_m.end(),
        body_start=body_start,
        body_end=end_m.start(),
    )
