"""Extraction module — template analysis, matcher compilation, parameter recovery."""

from codefactory_engine.extraction.analyzer import (
    LoopBlock,
    ParamBlock,
    analyze_template,
    template_variables,
)
from codefactory_engine.extraction.compiler import Matcher, compile_block
from codefactory_engine.extraction.engine import TemplateExtractor, extract_params

__all__ = [
    "LoopBlock",
    "ParamBlock",
    "analyze_template",
    "template_variables",
    "Matcher",
    "compile_block",
    "TemplateExtractor",
    "extract_params",
]
