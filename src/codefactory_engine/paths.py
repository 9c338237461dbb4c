"""Project path resolution.

Resolves the project root, the generators directory and the manifest file.
Uses environment variables when available, then an optional
``codefactory.yaml`` at the project root, then conventional defaults.

Environment variables:
    CODEFACTORY_PROJECT_DIR — project root (default: current directory)
    CODEFACTORY_GENERATORS_DIR — template generators (default: <project>/generators)
    CODEFACTORY_MANIFEST — build manifest (default: <project>/codefactory.manifest.json)
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from codefactory_engine.exceptions import ValidationError

CONFIG_FILENAME = "codefactory.yaml"
_DEFAULT_GENERATORS_SUBPATH = "generators"
_DEFAULT_MANIFEST_NAME = "codefactory.manifest.json"


def project_dir() -> Path:
    """Return the project root directory."""
    return Path(os.environ.get("CODEFACTORY_PROJECT_DIR", str(Path.cwd())))


def load_project_config(root: Path | str | None = None) -> dict:
    """Read codefactory.yaml from the project root, or {} if absent.

    Raises:
        ValidationError: If the file is not a YAML mapping.
    """
    config_path = Path(root or project_dir()) / CONFIG_FILENAME
    if not config_path.is_file():
        return {}
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValidationError(f"{config_path}: invalid YAML ({e})") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(f"{config_path}: expected a mapping")
    return data


def _configured(root: Path, env_var: str, key: str, default: str) -> Path:
    env = os.environ.get(env_var)
    if env:
        return Path(env)
    value = load_project_config(root).get(key)
    if value:
        path = Path(str(value)).expanduser()
        return path if path.is_absolute() else root / path
    return root / default


def generators_dir(root: Path | str | None = None) -> Path:
    """Return the directory template generators are loaded from."""
    base = Path(root) if root else project_dir()
    return _configured(base, "CODEFACTORY_GENERATORS_DIR", "generators_dir", _DEFAULT_GENERATORS_SUBPATH)


def manifest_path(root: Path | str | None = None) -> Path:
    """Return the path to codefactory.manifest.json."""
    base = Path(root) if root else project_dir()
    return _configured(base, "CODEFACTORY_MANIFEST", "manifest", _DEFAULT_MANIFEST_NAME)
