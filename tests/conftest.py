"""Shared test fixtures for codefactory-engine."""

from pathlib import Path

import pytest

from codefactory_engine.generators.definition import FunctionGenerator
from codefactory_engine.generators.registry import GeneratorRegistry
from codefactory_engine.markers.producer import Producer

FIXTURES = Path(__file__).parent / "fixtures"
GENERATORS_DIR = FIXTURES / "generators"


def _banner(params: dict) -> str:
    return f"/* {params.get('title', 'untitled')} */"


@pytest.fixture
def registry():
    reg = GeneratorRegistry()
    errors = reg.register_directory(GENERATORS_DIR)
    assert errors == []
    reg.register(FunctionGenerator(name="banner", description="Comment banner", func=_banner))
    return reg


@pytest.fixture
def producer(registry, tmp_path):
    return Producer(registry, tmp_path)
