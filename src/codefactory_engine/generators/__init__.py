"""Generators module — definitions, registry, template loading, param validation."""

from codefactory_engine.generators.definition import (
    FunctionGenerator,
    GeneratorDefinition,
    ParamSpec,
    TemplateGenerator,
    define_generator,
)
from codefactory_engine.generators.loader import load_directory, load_template
from codefactory_engine.generators.registry import GeneratorRegistry

__all__ = [
    "FunctionGenerator",
    "GeneratorDefinition",
    "ParamSpec",
    "TemplateGenerator",
    "define_generator",
    "load_directory",
    "load_template",
    "GeneratorRegistry",
]
