"""Load template generators from files with frontmatter."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from codefactory_engine.exceptions import CodefactoryError, ValidationError
from codefactory_engine.generators.definition import TemplateGenerator, define_generator
from codefactory_engine.generators.frontmatter import parse_frontmatter

logger = logging.getLogger(__name__)

TEMPLATE_EXTENSIONS = (".j2", ".jinja", ".jinja2", ".template")

_MARKER_LINE = re.compile(r"^.*@codefactory:(?:start|end).*(?:\r?\n)?", re.MULTILINE)


def load_template(path: Path | str) -> TemplateGenerator:
    """Load one template file into a TemplateGenerator.

    Marker lines left over from generating the template file itself are
    stripped before the frontmatter is parsed.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValidationError: If frontmatter is malformed or lacks name/description.
    """
    template_path = Path(path)
    content = template_path.read_text(encoding="utf-8")
    content = _MARKER_LINE.sub("", content).lstrip()

    meta, body = parse_frontmatter(content)
    for required in ("name", "description"):
        if not meta.get(required):
            raise ValidationError(f"Template at {template_path} missing required field: {required}")

    return define_generator(
        name=str(meta["name"]),
        description=str(meta["description"]),
        template=body,
        params=meta.get("params") or {},
        examples=meta.get("examples") or [],
        output_path=meta.get("outputPath") or meta.get("output_path"),
        source=str(template_path),
    )


def load_directory(
    directory: Path | str,
    recursive: bool = False,
) -> tuple[list[TemplateGenerator], list[str]]:
    """Load every template file in a directory.

    Args:
        directory: Directory to scan.
        recursive: Descend into subdirectories.

    Returns:
        (generators, errors). A file that fails to load is reported in
        errors and does not stop the rest. A missing directory yields
        nothing.
    """
    root = Path(directory)
    if not root.is_dir():
        return [], []

    candidates = root.rglob("*") if recursive else root.iterdir()
    generators: list[TemplateGenerator] = []
    errors: list[str] = []
    for path in sorted(candidates):
        if not path.is_file() or not path.name.endswith(TEMPLATE_EXTENSIONS):
            continue
        try:
            generators.append(load_template(path))
        except (CodefactoryError, OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to load template %s: %s", path, e)
            errors.append(f"{path}: {e}")

    return generators, errors
