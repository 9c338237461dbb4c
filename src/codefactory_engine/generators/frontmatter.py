"""Parse frontmatter from generator template files.

Two forms are accepted at the very start of a file:

YAML:
    ---
    name: my_generator
    description: My generator
    ---
    template body

JSON:
    /*---
    {"name": "my_generator", "description": "My generator"}
    ---*/
    template body
"""

from __future__ import annotations

import json
import re
from typing import Any

import yaml

from codefactory_engine.exceptions import ValidationError

_YAML_BLOCK = re.compile(r"^---\r?\n(.*?)\r?\n---\r?\n(.*)$", re.DOTALL)
_JSON_BLOCK = re.compile(r"^/\*---\r?\n(.*?)\r?\n---\*/\r?\n(.*)$", re.DOTALL)


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Split content into (frontmatter dict, body).

    Content without frontmatter yields an empty dict and the content unchanged.

    Raises:
        ValidationError: If the frontmatter is malformed or not a mapping.
    """
    m = _YAML_BLOCK.match(content)
    if m:
        try:
            data = yaml.safe_load(m.group(1))
        except yaml.YAMLError as e:
            raise ValidationError(f"Failed to parse YAML frontmatter: {e}") from e
        return _as_mapping(data, "YAML"), m.group(2).lstrip()

    m = _JSON_BLOCK.match(content)
    if m:
        try:
            data = json.loads(m.group(1))
        except json.JSONDecodeError as e:
            raise ValidationError(f"Failed to parse JSON frontmatter: {e}") from e
        return _as_mapping(data, "JSON"), m.group(2).lstrip()

    return {}, content


def _as_mapping(data: Any, fmt: str) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(f"{fmt} frontmatter is not a mapping")
    return data
