"""Shared argument handling for CLI commands."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any

import yaml

from codefactory_engine import paths
from codefactory_engine.exceptions import ValidationError
from codefactory_engine.generators.registry import GeneratorRegistry
from codefactory_engine.manifest.manager import Manifest
from codefactory_engine.markers.producer import Producer

logger = logging.getLogger(__name__)


def resolve_project(args: argparse.Namespace) -> Path:
    """Resolve the project root from args or environment."""
    raw = getattr(args, "project", None)
    if raw:
        return Path(raw).expanduser().resolve()
    return paths.project_dir().expanduser().resolve()


def load_registry(args: argparse.Namespace) -> GeneratorRegistry:
    """Registry holding every template generator in the generators directory."""
    root = resolve_project(args)
    directory = Path(args.generators) if getattr(args, "generators", None) else paths.generators_dir(root)
    registry = GeneratorRegistry()
    errors = registry.register_directory(directory, recursive=True)
    for error in errors:
        print(f"WARNING: {error}")
    logger.debug("Loaded %d generator(s) from %s", len(registry), directory)
    return registry


def make_producer(args: argparse.Namespace) -> Producer:
    return Producer(load_registry(args), resolve_project(args))


def load_manifest(args: argparse.Namespace, validate: bool = True) -> Manifest:
    root = resolve_project(args)
    path = Path(args.manifest) if getattr(args, "manifest", None) else paths.manifest_path(root)
    return Manifest.load(path, validate=validate)


def parse_params(args: argparse.Namespace) -> dict[str, Any]:
    """Collect generator parameters from --params and repeated --param key=value.

    ``--params`` takes a YAML/JSON file path or an inline YAML/JSON mapping;
    ``--param`` values are taken as plain strings and win over ``--params``.

    Raises:
        ValidationError: Malformed parameter input.
    """
    params: dict[str, Any] = {}

    raw = getattr(args, "params", None)
    if raw:
        text = raw
        if not raw.lstrip().startswith(("{", "[")) and Path(raw).is_file():
            text = Path(raw).read_text(encoding="utf-8")
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValidationError(f"--params: invalid YAML/JSON ({e})") from e
        if not isinstance(data, dict):
            raise ValidationError("--params must be a mapping of parameter names to values")
        params.update(data)

    for item in getattr(args, "param", None) or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ValidationError(f"--param expects key=value, got {item!r}")
        params[key.strip()] = value

    return params
