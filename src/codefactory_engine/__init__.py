"""codefactory-engine: template-driven code generation with round-trip sync."""

__version__ = "0.1.0"
