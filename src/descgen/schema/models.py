"""Pydantic models for the schema elements read from a descriptor set."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from descgen.schema.naming import to_outer_class_name
from descgen.schema.options import OptionTable


class FieldLabel(str, Enum):
    OPTIONAL = "optional"
    REQUIRED = "required"
    REPEATED = "repeated"


class FieldKind(str, Enum):
    """Declared kind of a field, named after ``FieldDescriptorProto.Type``."""

    DOUBLE = "double"
    FLOAT = "float"
    INT64 = "int64"
    UINT64 = "uint64"
    INT32 = "int32"
    FIXED64 = "fixed64"
    FIXED32 = "fixed32"
    BOOL = "bool"
    STRING = "string"
    GROUP = "group"
    MESSAGE = "message"
    BYTES = "bytes"
    UINT32 = "uint32"
    ENUM = "enum"
    SFIXED32 = "sfixed32"
    SFIXED64 = "sfixed64"
    SINT32 = "sint32"
    SINT64 = "sint64"

    @property
    def is_reference(self) -> bool:
        """Whether the field refers to another schema type instead of a scalar."""
        return self in (FieldKind.MESSAGE, FieldKind.ENUM, FieldKind.GROUP)


class FieldSchema(BaseModel):
    """A field of a message, in declaration order within its message."""

    model_config = ConfigDict(frozen=True)

    name: str
    number: int = Field(ge=1)
    label: FieldLabel = FieldLabel.OPTIONAL
    kind: FieldKind
    type_name: str = ""
    json_name: str = ""
    options: OptionTable = Field(default_factory=dict)

    @property
    def is_repeated(self) -> bool:
        return self.label == FieldLabel.REPEATED


class EnumSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    full_name: str


class MessageSchema(BaseModel):
    """A message type with its nested types."""

    model_config = ConfigDict(frozen=True)

    name: str
    full_name: str
    fields: list[FieldSchema] = Field(default_factory=list)
    nested_messages: list["MessageSchema"] = Field(default_factory=list)
    nested_enums: list[EnumSchema] = Field(default_factory=list)
    options: OptionTable = Field(default_factory=dict)

    def nested_message(self, name: str) -> "MessageSchema | None":
        """Return the directly nested message with the given simple name."""
        for nested in self.nested_messages:
            if nested.name == name:
                return nested
        return None


class FileSchema(BaseModel):
    """One ``.proto`` file of a descriptor set."""

    model_config = ConfigDict(frozen=True)

    name: str
    package: str = ""
    java_package: str = ""
    java_outer_classname: str = ""
    java_multiple_files: bool = False
    messages: list[MessageSchema] = Field(default_factory=list)
    enums: list[EnumSchema] = Field(default_factory=list)
    options: OptionTable = Field(default_factory=dict)

    @property
    def outer_class_name(self) -> str:
        """The explicit outer class name option, or the one derived from the file name."""
        if self.java_outer_classname:
            return self.java_outer_classname
        return to_outer_class_name(self.name)

    def all_messages(self) -> list[MessageSchema]:
        """All messages of the file, nested ones included, in depth-first declaration order."""

        def walk(message: MessageSchema) -> list[MessageSchema]:
            result = [message]
            for nested in message.nested_messages:
                result.extend(walk(nested))
            return result

        return [found for message in self.messages for found in walk(message)]
