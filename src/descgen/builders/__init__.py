"""Field classification and validating builder synthesis."""

from .classification import FieldClassification, FieldClassifier, MapOf, Repeated, Singular
from .methods import BuilderSpec, MethodSpec, synthesize_builder
from .selection import SelectedMessage, select_messages, with_field_types

__all__ = [
    "BuilderSpec",
    "FieldClassification",
    "FieldClassifier",
    "MapOf",
    "MethodSpec",
    "Repeated",
    "SelectedMessage",
    "Singular",
    "select_messages",
    "synthesize_builder",
    "with_field_types",
]
