"""Error taxonomy for codefactory-engine.

Every error carries the identifier (generator name, call id, path) that the
caller needs to act on it. Nothing here is retried internally.
"""

from __future__ import annotations


class CodefactoryError(Exception):
    """Base exception for all codefactory errors."""

    pass


# ── Validation ────────────────────────────────────────────────────


class ValidationError(CodefactoryError):
    """Malformed block, invalid pattern, invalid definition or reference."""

    pass


class UnsupportedPatternError(ValidationError):
    """Raised in strict analysis when a template construct cannot be extracted."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Unsupported pattern for '{name}': {reason}")


class NoTemplateError(ValidationError):
    """Raised when syncing a unit whose generator has no raw template."""

    def __init__(self, generator: str):
        self.generator = generator
        super().__init__(
            f"Generator '{generator}' has no template. "
            "Cannot extract parameters for sync."
        )


class DependentsExistError(ValidationError):
    """Raised when removing a call that other calls still depend on."""

    def __init__(self, call_id: str, dependents: list[str]):
        self.call_id = call_id
        self.dependents = dependents
        super().__init__(
            f"Cannot remove '{call_id}': other calls depend on it: {', '.join(dependents)}"
        )


# ── Not found ─────────────────────────────────────────────────────


class NotFoundError(CodefactoryError):
    """Base for lookups that came back empty."""

    pass


class GeneratorNotFoundError(NotFoundError):
    """Raised when a generator name is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Generator '{name}' not found in registry")


class DependencyNotFoundError(NotFoundError):
    """Raised when a call depends on an id that does not exist."""

    def __init__(self, dependency_id: str, call_id: str | None = None):
        self.dependency_id = dependency_id
        self.call_id = call_id
        where = f" for '{call_id}'" if call_id else ""
        super().__init__(f"Dependency '{dependency_id}' not found{where}")


class CallNotFoundError(NotFoundError):
    """Raised when a manifest call id does not exist."""

    def __init__(self, call_id: str):
        self.call_id = call_id
        super().__init__(f"Call '{call_id}' not found in manifest")


class NoMarkerFoundError(NotFoundError):
    """Raised when a file holds no codefactory start sentinel."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No @codefactory marker found in {path}")


# ── Collisions, cycles, structure ─────────────────────────────────


class AlreadyExistsError(CodefactoryError):
    """Raised on a file, unit id, call id or generator name collision."""

    def __init__(self, subject: str, detail: str = ""):
        self.subject = subject
        message = f"Already exists: {subject}"
        if detail:
            message += f". {detail}"
        super().__init__(message)


class CycleError(CodefactoryError):
    """Raised when the dependency relation between calls is circular."""

    def __init__(self, call_id: str, cycle: list[str] | None = None):
        self.call_id = call_id
        self.cycle = cycle or [call_id]
        super().__init__(
            f"Circular dependency detected involving '{call_id}': "
            f"{' -> '.join(self.cycle)}"
        )


class StructuralError(CodefactoryError):
    """Raised for unpaired, overlapping or otherwise malformed sentinels."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


class LegacyMarkerError(StructuralError):
    """Raised for the pre-factory sentinel dialect (id only, no generator name)."""

    def __init__(self, unit_id: str, path: str | None = None):
        self.unit_id = unit_id
        super().__init__(
            f'Legacy marker format detected (id="{unit_id}"). '
            'Update the start marker to the form factory="<generator_name>", '
            "or delete the file and recreate it with 'codefactory create'.",
            path,
        )
