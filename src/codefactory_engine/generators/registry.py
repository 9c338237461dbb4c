"""Generator registry — maps a name to a generator definition.

The registry is a plain object passed by reference to the producer and CLI;
there is no process-wide default instance.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Iterable, Iterator

from codefactory_engine.exceptions import AlreadyExistsError, GeneratorNotFoundError, ValidationError
from codefactory_engine.extraction.analyzer import analyze_template
from codefactory_engine.generators.definition import (
    GENERATOR_TYPES,
    GeneratorDefinition,
    TemplateGenerator,
    compile_template,
)
from codefactory_engine.generators.loader import load_directory
from codefactory_engine.generators.validator import validate_params

logger = logging.getLogger(__name__)

_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_.-]*$")


class GeneratorRegistry:
    """Registered generators, in registration order."""

    def __init__(self, definitions: Iterable[GeneratorDefinition] = ()) -> None:
        self._generators: dict[str, GeneratorDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: GeneratorDefinition) -> None:
        """Validate and register a generator.

        Raises:
            ValidationError: Not a TemplateGenerator/FunctionGenerator, bad
                name, invalid parameter declarations, or a template that
                does not compile.
            AlreadyExistsError: If the name is taken.
        """
        if not isinstance(definition, GENERATOR_TYPES):
            raise ValidationError(
                f"Cannot register {type(definition).__name__}: "
                "expected TemplateGenerator or FunctionGenerator"
            )
        if not _NAME.match(definition.name or ""):
            raise ValidationError(f"Invalid generator name {definition.name!r}")
        if definition.name in self._generators:
            raise AlreadyExistsError(f"generator '{definition.name}'", "Generator is already registered")

        result = validate_params(definition.params)
        if not result.passed:
            raise ValidationError(
                f"Generator '{definition.name}' has invalid parameters:\n{result.summary()}"
            )
        for warning in result.warnings:
            logger.warning("%s: %s", definition.name, warning)

        if isinstance(definition, TemplateGenerator):
            compile_template(definition.template)
            analyze_template(definition.template)

        self._generators[definition.name] = definition
        logger.debug("Registered %s generator '%s'", definition.kind, definition.name)

    def register_directory(self, directory: Path | str, recursive: bool = False) -> list[str]:
        """Register every template generator found in a directory.

        Returns:
            Error strings for files that failed to load or register.
        """
        generators, errors = load_directory(directory, recursive=recursive)
        for definition in generators:
            try:
                self.register(definition)
            except (ValidationError, AlreadyExistsError) as e:
                logger.warning("Skipping %s: %s", definition.source, e)
                errors.append(f"{definition.source}: {e}")
        return errors

    def resolve(self, name: str) -> GeneratorDefinition:
        """Return the generator registered under ``name``.

        Raises:
            GeneratorNotFoundError: If no such generator is registered.
        """
        try:
            return self._generators[name]
        except KeyError:
            raise GeneratorNotFoundError(name) from None

    def get(self, name: str) -> GeneratorDefinition | None:
        return self._generators.get(name)

    def names(self) -> list[str]:
        return list(self._generators)

    def catalog(self) -> list[dict[str, Any]]:
        """Metadata of every generator, for listings and tooling."""
        return [g.metadata() for g in self._generators.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._generators

    def __len__(self) -> int:
        return len(self._generators)

    def __iter__(self) -> Iterator[GeneratorDefinition]:
        return iter(self._generators.values())
