"""Call — one recorded generator invocation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from codefactory_engine.exceptions import ValidationError


def utc_now() -> str:
    """ISO-8601 UTC timestamp with a trailing Z."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def _dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


@dataclass
class Call:
    """A generator invocation recorded in the manifest.

    ``depends_on`` lists the ids of calls that must be produced first; it is
    kept in the given order with duplicates removed.
    """

    id: str
    generator: str
    params: dict[str, Any] = field(default_factory=dict)
    output_path: str = ""
    depends_on: list[str] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now)
    generator_version: str | None = None

    def __post_init__(self) -> None:
        self.depends_on = _dedupe(list(self.depends_on))

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "generator": self.generator,
            "params": self.params,
            "outputPath": self.output_path,
            "createdAt": self.created_at,
        }
        if self.generator_version:
            d["generatorVersion"] = self.generator_version
        if self.depends_on:
            d["dependsOn"] = list(self.depends_on)
        return d

    @classmethod
    def from_dict(cls, data: Any) -> Call:
        """Build a Call from its stored JSON form.

        Raises:
            ValidationError: If required keys are missing or mistyped.
        """
        if not isinstance(data, dict):
            raise ValidationError(f"Call entry must be an object, got {type(data).__name__}")
        missing = [k for k in ("id", "generator", "outputPath") if not data.get(k)]
        if missing:
            raise ValidationError(f"Call entry {data.get('id', '?')!r} missing: {', '.join(missing)}")

        params = data.get("params") or {}
        depends_on = data.get("dependsOn") or []
        if not isinstance(params, dict):
            raise ValidationError(f"Call '{data['id']}': params must be an object")
        if not isinstance(depends_on, list):
            raise ValidationError(f"Call '{data['id']}': dependsOn must be a list")

        return cls(
            id=str(data["id"]),
            generator=str(data["generator"]),
            params=params,
            output_path=str(data["outputPath"]),
            depends_on=[str(d) for d in depends_on],
            created_at=str(data.get("createdAt") or utc_now()),
            generator_version=data.get("generatorVersion"),
        )
