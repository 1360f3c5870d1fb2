"""Registry of generated type identifiers."""

from .type_registry import TypeRegistry, build_type_registry

__all__ = ["TypeRegistry", "build_type_registry"]
