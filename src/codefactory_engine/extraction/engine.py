"""Extraction engine — recover a parameter map from rendered or edited text.

The template is analyzed once, every block is compiled into a matcher, and
the matchers are applied independently to the whole source in block order.
Matchers share no parse state, so the span captured by one block may also be
matched by a later one; results are not deduplicated across blocks.
"""

from __future__ import annotations

import logging
from typing import Any

from codefactory_engine.extraction.analyzer import Block, analyze_template
from codefactory_engine.extraction.compiler import Matcher, compile_block

logger = logging.getLogger(__name__)


class TemplateExtractor:
    """Compiled extractor for one template, reusable across sources."""

    def __init__(
        self,
        template: str,
        type_hints: dict[str, Any] | None = None,
        strict: bool = False,
    ) -> None:
        self.template = template
        self.blocks: list[Block] = analyze_template(template, strict=strict)
        self.matchers: list[Matcher] = [compile_block(b, type_hints) for b in self.blocks]

    def extract(self, source: str) -> dict[str, Any]:
        """Apply every matcher to ``source``.

        A parameter that is not found is omitted; a loop with no matches
        yields an empty list. The first block that claims a name wins.
        """
        result: dict[str, Any] = {}
        claimed: set[str] = set()
        for matcher in self.matchers:
            if matcher.name in claimed:
                continue
            claimed.add(matcher.name)
            value = matcher.extract(source)
            if value is None:
                logger.debug("No match for '%s'", matcher.name)
                continue
            result[matcher.name] = value
        return result


def extract_params(
    template: str,
    source: str,
    *,
    type_hints: dict[str, Any] | None = None,
    strict: bool = False,
) -> dict[str, Any]:
    """Extract all parameters of ``template`` from ``source``.

    Example:
        >>> extract_params("export const {{ name }} = '{{ value }}';",
        ...                "export const y = '2';")
        {'name': 'y', 'value': '2'}
    """
    return TemplateExtractor(template, type_hints=type_hints, strict=strict).extract(source)
