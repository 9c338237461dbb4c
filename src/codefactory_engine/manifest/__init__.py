"""Manifest module — recorded calls, persistence and dependency ordering."""

from codefactory_engine.manifest.manager import Manifest
from codefactory_engine.manifest.model import Call
from codefactory_engine.manifest.resolver import GraphResult, resolve_order, validate_graph

__all__ = ["Call", "GraphResult", "Manifest", "resolve_order", "validate_graph"]
