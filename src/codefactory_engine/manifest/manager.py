"""Load, edit and save the build manifest (codefactory.manifest.json)."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from codefactory_engine.exceptions import (
    AlreadyExistsError,
    CallNotFoundError,
    DependencyNotFoundError,
    DependentsExistError,
    ValidationError,
)
from codefactory_engine.manifest.model import Call, utc_now
from codefactory_engine.manifest.resolver import resolve_order

logger = logging.getLogger(__name__)

MANIFEST_VERSION = "1.0.0"


class Manifest:
    """Ordered set of calls plus format version and last-build timestamp."""

    def __init__(
        self,
        path: Path | str,
        calls: list[Call] | None = None,
        version: str = MANIFEST_VERSION,
        generated: str | None = None,
    ) -> None:
        self.path = Path(path)
        self.version = version
        self.generated = generated or utc_now()
        self._calls: list[Call] = list(calls or [])

    # ── persistence ───────────────────────────────────────────────

    @classmethod
    def load(cls, path: Path | str, validate: bool = True) -> Manifest:
        """Load a manifest from disk; a missing file yields an empty manifest.

        With ``validate`` the call graph is resolved once on load, so a
        circular or dangling manifest is rejected up front.

        Raises:
            ValidationError: If the file is not a valid manifest.
            CycleError / DependencyNotFoundError: If the call graph is invalid.
        """
        manifest_path = Path(path)
        if not manifest_path.exists():
            logger.debug("No manifest at %s, starting empty", manifest_path)
            return cls(manifest_path)

        try:
            with open(manifest_path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"{manifest_path}: invalid JSON ({e})") from e

        if (
            not isinstance(data, dict)
            or not data.get("version")
            or not data.get("generated")
            or not isinstance(data.get("calls"), list)
        ):
            raise ValidationError(f"{manifest_path}: invalid manifest format")

        calls = [Call.from_dict(entry) for entry in data["calls"]]
        if validate:
            resolve_order(calls)
        return cls(manifest_path, calls, version=data["version"], generated=data["generated"])

    def save(self) -> None:
        """Write the manifest as indented JSON with a trailing newline."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
            f.write("\n")

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "generated": self.generated,
            "calls": [c.to_dict() for c in self._calls],
        }

    # ── editing ───────────────────────────────────────────────────

    def add(
        self,
        call_id: str,
        generator: str,
        params: dict[str, Any] | None = None,
        output_path: str = "",
        depends_on: list[str] | None = None,
        generator_version: str | None = None,
    ) -> Call:
        """Append a call.

        Raises:
            AlreadyExistsError: If the id is taken.
            ValidationError: If the call depends on itself.
            DependencyNotFoundError: If a dependency is not in the manifest.
        """
        if self.get(call_id) is not None:
            raise AlreadyExistsError(f"call '{call_id}'", "Call ids must be unique")

        call = Call(
            id=call_id,
            generator=generator,
            params=dict(params or {}),
            output_path=output_path,
            depends_on=list(depends_on or []),
            generator_version=generator_version,
        )
        self._check_dependencies(call)
        self._calls.append(call)
        return call

    def update(self, call_id: str, **changes: Any) -> Call:
        """Change fields of an existing call.

        Accepted keywords: generator, params, output_path, depends_on,
        generator_version. Nothing is mutated unless the result is valid.

        Raises:
            CallNotFoundError: If no call has this id.
            ValidationError: Unknown field or self-dependency.
            DependencyNotFoundError: If a new dependency is unknown.
            CycleError: If the change would make the graph circular.
        """
        current = self.get(call_id)
        if current is None:
            raise CallNotFoundError(call_id)

        allowed = {"generator", "params", "output_path", "depends_on", "generator_version"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(f"Cannot update call field(s): {', '.join(sorted(unknown))}")

        values = {
            "id": current.id,
            "generator": current.generator,
            "params": current.params,
            "output_path": current.output_path,
            "depends_on": current.depends_on,
            "created_at": current.created_at,
            "generator_version": current.generator_version,
        }
        values.update(changes)
        candidate = Call(**values)
        self._check_dependencies(candidate)

        tentative = [candidate if c.id == call_id else c for c in self._calls]
        resolve_order(tentative)

        self._calls = tentative
        return candidate

    def remove(self, call_id: str) -> Call:
        """Remove a call no other call depends on.

        Raises:
            CallNotFoundError: If no call has this id.
            DependentsExistError: If other calls depend on it.
        """
        call = self.get(call_id)
        if call is None:
            raise CallNotFoundError(call_id)
        dependents = [c.id for c in self._calls if call_id in c.depends_on]
        if dependents:
            raise DependentsExistError(call_id, dependents)
        self._calls.remove(call)
        return call

    def _check_dependencies(self, call: Call) -> None:
        for dep_id in call.depends_on:
            if dep_id == call.id:
                raise ValidationError(f"Call '{call.id}' cannot depend on itself")
            if self.get(dep_id) is None:
                raise DependencyNotFoundError(dep_id, call.id)

    # ── queries ───────────────────────────────────────────────────

    def get(self, call_id: str) -> Call | None:
        for call in self._calls:
            if call.id == call_id:
                return call
        return None

    def calls(self) -> list[Call]:
        return list(self._calls)

    def execution_order(self) -> list[Call]:
        """Calls in dependency order (see resolve_order)."""
        return resolve_order(self._calls)

    def touch(self) -> None:
        """Stamp the manifest with the current build time."""
        self.generated = utc_now()

    def __len__(self) -> int:
        return len(self._calls)
