"""Validate generator parameter declarations.

Parameters are meant to be data points (names, flags, enum choices), not code
abstractions. Invalid types are errors; names that look like code slots are
warnings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from codefactory_engine.generators.definition import ParamSpec

ALLOWED_TYPES = {
    "string",
    "number",
    "boolean",
    "string[]",
    "number[]",
    "boolean[]",
    "array",
}

FIELD_TYPES = {"string", "number", "boolean"}

SUSPICIOUS_NAMES = [
    "body",
    "content",
    "code",
    "implementation",
    "logic",
    "function",
    "method",
    "callback",
    "handler",
    "template",
    "jsx",
    "html",
    "render",
    "component",
]

# string[] params with these names usually carry code like "label: string"
CODE_LIST_NAMES = [
    "props",
    "properties",
    "params",
    "parameters",
    "arguments",
    "args",
    "fields",
    "members",
    "attributes",
    "signals",
    "methods",
    "functions",
]
DATA_SUFFIXES = ("Names", "Types", "Values", "Defaults")

MAX_REASONABLE_LENGTH = 200


@dataclass
class ParamValidationResult:
    """Result of validating a generator's parameter declarations."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        lines = []
        if self.errors:
            lines.append(f"ERRORS ({len(self.errors)}):")
            for e in self.errors:
                lines.append(f"  {e}")
        if self.warnings:
            lines.append(f"WARNINGS ({len(self.warnings)}):")
            for w in self.warnings:
                lines.append(f"  {w}")
        if not lines:
            lines.append("All parameters valid.")
        return "\n".join(lines)


def is_allowed_type(type_name: str) -> bool:
    """Check a declared type: a primitive, a list of primitives, array, or enum:a|b."""
    if type_name in ALLOWED_TYPES:
        return True
    if type_name.startswith("enum:"):
        return len(type_name) > len("enum:")
    return False


def is_suspicious_name(name: str) -> bool:
    lower = name.lower()
    return any(lower == s or lower.endswith(s) for s in SUSPICIOUS_NAMES)


def validate_params(params: dict[str, ParamSpec]) -> ParamValidationResult:
    """Validate all parameter declarations of one generator."""
    result = ParamValidationResult()

    for name, spec in params.items():
        if not is_allowed_type(spec.type):
            result.errors.append(
                f"Parameter '{name}': type '{spec.type}' not allowed "
                f"(valid: {', '.join(sorted(ALLOWED_TYPES))}, enum:a|b)"
            )

        for field_name, field_type in spec.fields.items():
            if field_type not in FIELD_TYPES:
                result.errors.append(
                    f"Parameter '{name}': field '{field_name}' has invalid type '{field_type}'"
                )

        if spec.pattern:
            try:
                re.compile(spec.pattern)
            except re.error:
                result.errors.append(f"Parameter '{name}': invalid regex pattern {spec.pattern!r}")

        if is_suspicious_name(name):
            result.warnings.append(
                f"Parameter '{name}' might be a code abstraction; "
                "prefer boolean flags or enums"
            )

        if spec.type == "string[]":
            lower = name.lower()
            if any(lower == n or lower.endswith(n) for n in CODE_LIST_NAMES) and not name.endswith(
                DATA_SUFFIXES
            ):
                result.warnings.append(
                    f"Parameter '{name}' (string[]) likely contains code syntax; "
                    f"split it into {name}Names / {name}Types"
                )

        if spec.max_length is not None and spec.max_length > MAX_REASONABLE_LENGTH:
            result.warnings.append(
                f"Parameter '{name}' maxLength={spec.max_length} is suspiciously large"
            )

    return result
