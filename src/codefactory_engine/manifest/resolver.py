"""Dependency resolution — execution order and graph validation for calls."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable

from codefactory_engine.exceptions import CycleError, DependencyNotFoundError, ValidationError
from codefactory_engine.manifest.model import Call


def resolve_order(calls: Iterable[Call]) -> list[Call]:
    """Order calls so that every call follows all of its dependencies.

    Depth-first: roots are visited in insertion order and each call's
    dependencies in their declared order, so the result is deterministic.
    Does not mutate its input.

    Raises:
        ValidationError: If two calls share an id.
        CycleError: If the dependency relation is circular.
        DependencyNotFoundError: If a call depends on an unknown id.
    """
    calls = list(calls)
    by_id: dict[str, Call] = {}
    for call in calls:
        if call.id in by_id:
            raise ValidationError(f"Duplicate call id '{call.id}'")
        by_id[call.id] = call

    ordered: list[Call] = []
    done: set[str] = set()

    for root in calls:
        if root.id in done:
            continue
        # Explicit stack of (call, remaining deps); visiting mirrors it by id
        visiting: list[str] = [root.id]
        stack = [(root, iter(root.depends_on))]
        while stack:
            call, deps = stack[-1]
            dep_id = next(deps, None)
            if dep_id is None:
                stack.pop()
                visiting.pop()
                done.add(call.id)
                ordered.append(call)
                continue

            dep = by_id.get(dep_id)
            if dep is None:
                raise DependencyNotFoundError(dep_id, call.id)
            if dep_id in done:
                continue
            if dep_id in visiting:
                cycle = visiting[visiting.index(dep_id):] + [dep_id]
                raise CycleError(dep_id, cycle)
            visiting.append(dep_id)
            stack.append((dep, iter(dep.depends_on)))
    return ordered


@dataclass
class GraphResult:
    """Result of call graph validation."""

    total_edges: int = 0
    duplicate_ids: list[str] = field(default_factory=list)
    missing_targets: list[tuple[str, str]] = field(default_factory=list)
    self_deps: list[str] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return (
            len(self.duplicate_ids) == 0
            and len(self.missing_targets) == 0
            and len(self.self_deps) == 0
            and len(self.cycles) == 0
        )

    @property
    def violations(self) -> list[str]:
        v = []
        for d in self.duplicate_ids:
            v.append(f"Duplicate id: {d}")
        for f, t in self.missing_targets:
            v.append(f"Missing target: {f} -> {t}")
        for s in self.self_deps:
            v.append(f"Self-dep: {s}")
        for c in self.cycles:
            v.append(f"Cycle: {' -> '.join(c)}")
        return v

    def summary(self) -> str:
        lines = [
            "Call Graph Validation",
            "─" * 40,
            f"  Total edges: {self.total_edges}",
            f"  Duplicate ids: {len(self.duplicate_ids)}",
            f"  Missing targets: {len(self.missing_targets)}",
            f"  Self-dependencies: {len(self.self_deps)}",
            f"  Cycles: {len(self.cycles)}",
        ]
        if self.violations:
            lines.append("\n  Violations:")
            lines.extend(f"    {v}" for v in self.violations)
        lines.append(f"\n  Result: {'PASS' if self.passed else 'FAIL'}")
        return "\n".join(lines)


def validate_graph(calls: Iterable[Call]) -> GraphResult:
    """Report every problem in a call graph instead of stopping at the first.

    Checks:
    1. Call ids are unique
    2. All dependency targets exist
    3. No self-dependencies
    4. No circular dependencies
    """
    result = GraphResult()
    calls = list(calls)

    ids: list[str] = []
    seen: set[str] = set()
    for call in calls:
        if call.id in seen and call.id not in result.duplicate_ids:
            result.duplicate_ids.append(call.id)
        seen.add(call.id)
        ids.append(call.id)

    edges: list[tuple[str, str]] = []
    for call in calls:
        for dep in call.depends_on:
            edges.append((call.id, dep))
            result.total_edges += 1

    for from_id, to_id in edges:
        if to_id not in seen:
            result.missing_targets.append((from_id, to_id))
        if from_id == to_id:
            result.self_deps.append(from_id)

    # Cycle detection (DFS with coloring); self-deps are reported above
    adj: dict[str, list[str]] = defaultdict(list)
    for from_id, to_id in edges:
        if from_id != to_id and to_id in seen:
            adj[from_id].append(to_id)

    WHITE, GRAY, BLACK = 0, 1, 2
    color: dict[str, int] = defaultdict(lambda: WHITE)

    for start in ids:
        if color[start] != WHITE:
            continue
        color[start] = GRAY
        path = [start]
        stack = [iter(adj[start])]
        while stack:
            neighbor = next(stack[-1], None)
            if neighbor is None:
                stack.pop()
                color[path.pop()] = BLACK
            elif color[neighbor] == GRAY:
                cycle_start = path.index(neighbor)
                result.cycles.append(path[cycle_start:] + [neighbor])
            elif color[neighbor] == WHITE:
                color[neighbor] = GRAY
                path.append(neighbor)
                stack.append(iter(adj[neighbor]))

    return result
