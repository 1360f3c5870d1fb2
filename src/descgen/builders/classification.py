"""Classification of message fields into the shapes that drive builder synthesis."""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from descgen import log
from descgen.errors import MapEntryNotFoundError
from descgen.registry import TypeRegistry
from descgen.schema.models import FieldKind, FieldSchema, MessageSchema
from descgen.schema.naming import map_entry_name, refers_to_map_entry

STRING_TYPE = "java.lang.String"
LIST_TYPE = "java.util.List"
MAP_TYPE = "java.util.Map"

# Boxed Java types of the scalar field kinds.
SCALAR_TYPES: dict[FieldKind, str] = {
    FieldKind.DOUBLE: "java.lang.Double",
    FieldKind.FLOAT: "java.lang.Float",
    FieldKind.INT64: "java.lang.Long",
    FieldKind.UINT64: "java.lang.Long",
    FieldKind.FIXED64: "java.lang.Long",
    FieldKind.SFIXED64: "java.lang.Long",
    FieldKind.SINT64: "java.lang.Long",
    FieldKind.INT32: "java.lang.Integer",
    FieldKind.UINT32: "java.lang.Integer",
    FieldKind.FIXED32: "java.lang.Integer",
    FieldKind.SFIXED32: "java.lang.Integer",
    FieldKind.SINT32: "java.lang.Integer",
    FieldKind.BOOL: "java.lang.Boolean",
    FieldKind.STRING: STRING_TYPE,
    FieldKind.BYTES: "com.google.protobuf.ByteString",
}


class Singular(BaseModel):
    """A field holding at most one value."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["singular"] = "singular"
    target_type: str

    @property
    def combining_verb(self) -> str:
        return "set"

    @property
    def collection_type(self) -> str:
        return self.target_type

    @property
    def is_textual(self) -> bool:
        return self.target_type == STRING_TYPE


class Repeated(BaseModel):
    """A repeated field that is not a map."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["repeated"] = "repeated"
    element_type: str

    @property
    def combining_verb(self) -> str:
        return "addAll"

    @property
    def collection_type(self) -> str:
        return f"{LIST_TYPE}<{self.element_type}>"

    @property
    def is_textual(self) -> bool:
        return self.element_type == STRING_TYPE


class MapOf(BaseModel):
    """A map field, stored by protoc as a repeated synthetic entry message."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["map"] = "map"
    key: Singular
    value: Singular

    @property
    def combining_verb(self) -> str:
        return "putAll"

    @property
    def collection_type(self) -> str:
        return f"{MAP_TYPE}<{self.key.target_type}, {self.value.target_type}>"


FieldClassification = Annotated[Singular | Repeated | MapOf, Field(discriminator="kind")]


class FieldClassifier:
    """
    Classifies fields as Singular, Repeated or Map.

    Referenced message and enum types are resolved through the type registry of
    the current generation pass.
    """

    def __init__(self, registry: TypeRegistry) -> None:
        self.registry = registry

    def classify(self, field: FieldSchema, message: MessageSchema) -> Singular | Repeated | MapOf:
        """
        Classify a field of a message.

        A field is a map when it is repeated and its type name ends with the entry
        name derived from its JSON name. The entry must be nested in the enclosing
        message and have exactly two fields: the key first and the value second.

        Args:
            field: The field to classify
            message: The message declaring the field

        Returns:
            The classification of the field

        Raises:
            MapEntryNotFoundError: If the field looks like a map but its entry type is missing
            UnresolvedTypeReferenceError: If a referenced type is not registered
        """
        if self.is_map_field(field):
            return self._classify_map(field, message)

        element_type = self.resolve_element_type(field, message)
        if field.is_repeated:
            return Repeated(element_type=element_type)
        return Singular(target_type=element_type)

    def classify_all(self, message: MessageSchema) -> list[Singular | Repeated | MapOf]:
        return [self.classify(field, message) for field in message.fields]

    @staticmethod
    def is_map_field(field: FieldSchema) -> bool:
        return (
            field.is_repeated
            and field.kind == FieldKind.MESSAGE
            and refers_to_map_entry(field.type_name, field.json_name)
        )

    def resolve_element_type(self, field: FieldSchema, message: MessageSchema) -> str:
        """Return the Java type of a single value of the field."""
        if not field.kind.is_reference:
            return SCALAR_TYPES[field.kind]
        return self.registry.resolve(field.type_name, field.name, message.full_name)

    def _classify_map(self, field: FieldSchema, message: MessageSchema) -> MapOf:
        entry_name = map_entry_name(field.json_name)
        entry = message.nested_message(entry_name)
        if entry is None or len(entry.fields) != 2:
            raise MapEntryNotFoundError(entry_name, field.name, message.full_name)

        key_field, value_field = entry.fields
        log.debug(f"Field {message.full_name}.{field.name} is a map with entry {entry.full_name}")
        return MapOf(
            key=Singular(target_type=self.resolve_element_type(key_field, entry)),
            value=Singular(target_type=self.resolve_element_type(value_field, entry)),
        )
