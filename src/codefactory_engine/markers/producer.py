"""Producer — create generation units and sync edited ones.

The sync process for one file:
1. Read the file and locate every generation unit (start/end sentinels)
2. For each unit, resolve its generator and extract parameters from the
   text between the sentinels using the generator's template
3. Re-render with the recovered parameters and re-wrap in fresh sentinels
4. Write the file once, atomically

All bytes outside the units are copied through unchanged. A file that fails
at any step is left exactly as it was.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from codefactory_engine.exceptions import (
    AlreadyExistsError,
    NoMarkerFoundError,
    NoTemplateError,
)
from codefactory_engine.extraction.engine import TemplateExtractor
from codefactory_engine.markers.dialect import (
    SOURCE_EXTENSIONS,
    Dialect,
    MarkerSpan,
    dialect_for,
    find_markers,
    has_start_marker,
    wrap,
)

if TYPE_CHECKING:
    from codefactory_engine.generators.registry import GeneratorRegistry
    from codefactory_engine.manifest.manager import Manifest

logger = logging.getLogger(__name__)

# Directories never scanned by sync_all
SKIP_DIRS = frozenset({
    ".git",
    "node_modules",
    ".vscode",
    ".idea",
    "dist",
    "build",
    "coverage",
    ".github",
    "__pycache__",
    ".venv",
    "venv",
    ".tox",
    ".mypy_cache",
    ".pytest_cache",
})


@dataclass
class SyncReport:
    """Result of a directory-wide sync run."""

    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    errors: list[dict[str, str]] = field(default_factory=list)
    dry_run: bool = False

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    @property
    def synced(self) -> list[str]:
        return self.updated + self.unchanged

    def summary(self) -> str:
        lines = [
            f"Sync: {len(self.synced)} files synced "
            f"({len(self.updated)} updated, {len(self.unchanged)} unchanged)"
        ]
        if self.errors:
            lines.append(f"ERRORS ({len(self.errors)}):")
            for e in self.errors:
                lines.append(f"  {e['path']}: {e['error']}")
        if self.dry_run:
            lines.append("[DRY RUN] No files were modified.")
        return "\n".join(lines)


@dataclass
class BuildResult:
    """Result of running every manifest call in dependency order."""

    generated: list[str] = field(default_factory=list)
    actions: dict[str, str] = field(default_factory=dict)
    errors: list[dict[str, str]] = field(default_factory=list)
    duration: float = 0.0
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        lines = [f"Build: {len(self.generated)} calls produced in {self.duration:.2f}s"]
        for call_id, action in self.actions.items():
            lines.append(f"  {action:<9} {call_id}")
        if self.errors:
            lines.append(f"ERRORS ({len(self.errors)}):")
            for e in self.errors:
                lines.append(f"  {e['id']} ({e['path']}): {e['error']}")
        if self.dry_run:
            lines.append("[DRY RUN] No files were modified.")
        return "\n".join(lines)


class Producer:
    """Materializes generator output into files and keeps it in sync."""

    def __init__(self, registry: GeneratorRegistry, project_dir: Path | str | None = None) -> None:
        self.registry = registry
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self._extractors: dict[str, TemplateExtractor] = {}

    # ── create ────────────────────────────────────────────────────

    def create(
        self,
        generator: str,
        params: dict[str, Any],
        path: Path | str,
        *,
        unit_id: str | None = None,
        dry_run: bool = False,
    ) -> str:
        """Render a generator into a new unit at ``path``.

        If the file already holds a unit with the same id (``unit_id`` or,
        by default, the generator name) that unit is replaced in place.

        Returns:
            "created", "updated" or "unchanged".

        Raises:
            GeneratorNotFoundError: Unknown generator.
            AlreadyExistsError: The file holds unmarked content or only units
                with other ids.
            StructuralError: The file's sentinels are malformed.
        """
        definition = self.registry.resolve(generator)
        target = self.resolve_path(path)
        dialect = dialect_for(target)
        identity = unit_id or generator
        unit = wrap(definition.render(params), generator, dialect, unit_id)

        if not target.exists() or not read_source(target).strip():
            if not dry_run:
                target.parent.mkdir(parents=True, exist_ok=True)
                write_atomic(target, unit + "\n")
            logger.info("Created %s (%s)", target, identity)
            return "created"

        content = read_source(target)
        spans = find_markers(content, dialect, str(target))
        if not spans:
            raise AlreadyExistsError(
                str(target), "File holds unmarked content. Use sync to update marked files."
            )
        matching = [s for s in spans if s.identity == identity]
        if not matching:
            others = ", ".join(s.identity for s in spans)
            raise AlreadyExistsError(str(target), f"File holds generation units for: {others}")

        span = matching[0]
        new_content = content[:span.start] + unit + content[span.end:]
        return self._commit(target, content, new_content, dry_run)

    # ── sync ──────────────────────────────────────────────────────

    def sync(self, path: Path | str, *, dry_run: bool = False) -> str:
        """Re-extract, re-render and replace every unit in a file.

        Returns:
            "updated" or "unchanged".

        Raises:
            NoMarkerFoundError: The file holds no unit.
            GeneratorNotFoundError: A unit names an unregistered generator.
            NoTemplateError: A unit's generator has no template.
            StructuralError: The file's sentinels are malformed or legacy.
        """
        target = self.resolve_path(path)
        content = read_source(target)
        dialect = dialect_for(target)
        spans = find_markers(content, dialect, str(target))
        if not spans:
            raise NoMarkerFoundError(str(target))

        pieces = []
        cursor = 0
        for span in spans:
            pieces.append(content[cursor:span.start])
            pieces.append(self._regenerate(content, span, dialect))
            cursor = span.end
        pieces.append(content[cursor:])

        return self._commit(target, content, "".join(pieces), dry_run)

    def sync_all(self, directory: Path | str | None = None, *, dry_run: bool = False) -> SyncReport:
        """Sync every marked source file under ``directory``.

        Failures are collected per file and never stop the batch.
        """
        report = SyncReport(dry_run=dry_run)
        root = self.resolve_path(directory) if directory else self.project_dir

        for file_path in scan_marked_files(root):
            try:
                action = self.sync(file_path, dry_run=dry_run)
            except Exception as e:
                logger.warning("Sync failed for %s: %s", file_path, e)
                report.errors.append({"path": str(file_path), "error": str(e)})
                continue
            if action == "updated":
                report.updated.append(str(file_path))
            else:
                report.unchanged.append(str(file_path))

        return report

    def inspect(self, path: Path | str) -> list[dict[str, Any]]:
        """Describe the units in a file and the parameters extracted from each."""
        target = self.resolve_path(path)
        content = read_source(target)
        spans = find_markers(content, dialect_for(target), str(target))
        if not spans:
            raise NoMarkerFoundError(str(target))

        units = []
        for span in spans:
            definition = self.registry.resolve(span.generator)
            params = None
            if definition.raw_template is not None:
                params = self._extractor(definition).extract(span.body(content))
            units.append({
                "generator": span.generator,
                "id": span.unit_id,
                "syncable": definition.raw_template is not None,
                "params": params,
            })
        return units

    # ── build ─────────────────────────────────────────────────────

    def build(self, manifest: Manifest, *, dry_run: bool = False) -> BuildResult:
        """Produce every manifest call in dependency order.

        A call whose dependency failed is reported as an error and skipped.

        Raises:
            CycleError / DependencyNotFoundError: If the call graph is invalid.
        """
        started = time.monotonic()
        result = BuildResult(dry_run=dry_run)
        failed: set[str] = set()

        for call in manifest.execution_order():
            blocked = [d for d in call.depends_on if d in failed]
            if blocked:
                failed.add(call.id)
                result.errors.append({
                    "id": call.id,
                    "path": call.output_path,
                    "error": f"Skipped: dependency failed ({', '.join(blocked)})",
                })
                continue
            try:
                action = self.create(
                    call.generator,
                    call.params,
                    call.output_path,
                    unit_id=call.id,
                    dry_run=dry_run,
                )
            except Exception as e:
                logger.warning("Build failed for call %s: %s", call.id, e)
                failed.add(call.id)
                result.errors.append({"id": call.id, "path": call.output_path, "error": str(e)})
                continue
            result.generated.append(call.output_path)
            result.actions[call.id] = action

        result.duration = time.monotonic() - started
        return result

    # ── helpers ───────────────────────────────────────────────────

    def resolve_path(self, path: Path | str) -> Path:
        p = Path(path)
        return p if p.is_absolute() else self.project_dir / p

    def _regenerate(self, content: str, span: MarkerSpan, dialect: Dialect) -> str:
        definition = self.registry.resolve(span.generator)
        if definition.raw_template is None:
            raise NoTemplateError(span.generator)
        params = self._extractor(definition).extract(span.body(content))
        logger.debug("Extracted %s for %s", sorted(params), span.identity)
        return wrap(definition.render(params), span.generator, dialect, span.unit_id)

    def _extractor(self, definition) -> TemplateExtractor:
        extractor = self._extractors.get(definition.name)
        if extractor is None or extractor.template != definition.raw_template:
            extractor = TemplateExtractor(definition.raw_template, type_hints=definition.type_hints())
            self._extractors[definition.name] = extractor
        return extractor

    def _commit(self, target: Path, old: str, new: str, dry_run: bool) -> str:
        if new == old:
            return "unchanged"
        if not dry_run:
            write_atomic(target, new)
        logger.info("Updated %s", target)
        return "updated"


def scan_marked_files(directory: Path | str) -> list[Path]:
    """Find source files containing a start marker, skipping non-source dirs."""
    root = Path(directory)
    found: list[Path] = []
    for path in sorted(root.rglob("*")):
        rel_parts = path.relative_to(root).parts
        if any(part in SKIP_DIRS for part in rel_parts[:-1]):
            continue
        if not path.is_file() or path.suffix.lower() not in SOURCE_EXTENSIONS:
            continue
        try:
            content = read_source(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Skipping unreadable %s: %s", path, e)
            continue
        if has_start_marker(content):
            found.append(path)
    return found


def read_source(path: Path) -> str:
    """Read a file without newline translation."""
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def write_atomic(path: Path, content: str) -> None:
    """Write a whole file via a temp file in the same directory and a rename.

    A symlinked target is written through to its real path, and an existing
    file keeps its permission bits. New files get the umask default.
    """
    path = Path(os.path.realpath(path))
    tmp = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        newline="",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    )
    try:
        with tmp:
            tmp.write(content)
        if path.exists():
            shutil.copymode(path, tmp.name)
        else:
            os.chmod(tmp.name, 0o666 & ~_current_umask())
        os.replace(tmp.name, path)
    except BaseException:
        Path(tmp.name).unlink(missing_ok=True)
        raise
