"""Synthesis of the mutation API of validating builders.

The result is a description of every method a validating builder exposes, not
source code: an emitter turns each ``MethodSpec`` into the body implied by its
operation and failure modes.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field

from descgen import log
from descgen.builders.classification import (
    STRING_TYPE,
    FieldClassification,
    FieldClassifier,
    MapOf,
    Repeated,
    Singular,
)
from descgen.registry import TypeRegistry
from descgen.schema.models import FieldSchema, FileSchema, MessageSchema
from descgen.schema.naming import accessor_part, java_field_name, qualify

DEFAULT_BUILDER_SUFFIX = "Validator"
INDEX_TYPE = "int"
VOID_TYPE = "void"
RAW_SUFFIX = "Raw"


class Operation(str, Enum):
    """What the body of a synthesized method does with the backing field."""

    INITIALIZE = "initialize"
    ASSIGN = "assign"
    ADD = "add"
    ADD_AT = "add_at"
    ADD_ALL = "add_all"
    PUT = "put"
    PUT_ALL = "put_all"
    REMOVE = "remove"
    REMOVE_AT = "remove_at"
    CLEAR = "clear"
    NEW_BUILDER = "new_builder"
    BUILD = "build"


class FailureMode(str, Enum):
    CONVERSION = "conversion"
    VALIDATION = "validation"


VALIDATED = [FailureMode.VALIDATION]
CONVERTED_AND_VALIDATED = [FailureMode.CONVERSION, FailureMode.VALIDATION]


class Parameter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str


class BuildStatement(BaseModel):
    """Copies one backing field into the message builder with the field's combining verb."""

    model_config = ConfigDict(frozen=True)

    field_name: str
    verb: str


class MethodSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    parameters: list[Parameter] = Field(default_factory=list)
    returns_self: bool = True
    return_type: str
    failure_modes: list[FailureMode] = Field(default_factory=list)
    operation: Operation
    raw: bool = False
    private: bool = False
    static: bool = False
    field_name: str | None = None
    field_index: int | None = None
    statements: list[BuildStatement] = Field(default_factory=list)


class BackingField(BaseModel):
    """A private field of the builder holding the value of one message field."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str


class ClassifiedField(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    index: int
    classification: FieldClassification


class BuilderSpec(BaseModel):
    """Everything an emitter needs to write the validating builder of one message."""

    message_name: str
    message_type: str
    class_name: str
    package: str = ""
    fields: list[ClassifiedField] = Field(default_factory=list)
    backing_fields: list[BackingField] = Field(default_factory=list)
    methods: list[MethodSpec] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def builder_type(self) -> str:
        return qualify(self.package, self.class_name)

    def method_names(self) -> list[str]:
        return [method.name for method in self.methods]


class _FieldMethods:
    """Creates the methods of one field, sharing the naming and return type of the builder."""

    def __init__(self, field: FieldSchema, index: int, builder_type: str) -> None:
        self.field_name = java_field_name(field.name)
        self.part = accessor_part(field.name)
        self.index = index
        self.builder_type = builder_type

    def method(
        self,
        name: str,
        operation: Operation,
        parameters: list[Parameter] | None = None,
        failure_modes: list[FailureMode] | None = None,
        raw: bool = False,
    ) -> MethodSpec:
        return MethodSpec(
            name=name,
            parameters=parameters or [],
            return_type=self.builder_type,
            failure_modes=failure_modes or [],
            operation=operation,
            raw=raw,
            field_name=self.field_name,
            field_index=self.index,
        )

    def initializer(self) -> MethodSpec:
        return MethodSpec(
            name=f"create{self.part}IfNeeded",
            returns_self=False,
            return_type=VOID_TYPE,
            operation=Operation.INITIALIZE,
            private=True,
            field_name=self.field_name,
            field_index=self.index,
        )


def singular_methods(methods: _FieldMethods, shape: Singular) -> list[MethodSpec]:
    """``set<F>`` and, for non-textual types, ``set<F>Raw``."""
    setter = f"set{methods.part}"
    result = [
        methods.method(setter, Operation.ASSIGN, [Parameter(name="value", type=shape.target_type)], VALIDATED),
    ]
    if not shape.is_textual:
        result.append(
            methods.method(
                setter + RAW_SUFFIX,
                Operation.ASSIGN,
                [Parameter(name="value", type=STRING_TYPE)],
                CONVERTED_AND_VALIDATED,
                raw=True,
            )
        )
    return result


def repeated_methods(methods: _FieldMethods, shape: Repeated) -> list[MethodSpec]:
    """The list mutators of a repeated field, with raw counterparts for non-textual elements."""
    part = methods.part
    value = Parameter(name="value", type=shape.element_type)
    index = Parameter(name="index", type=INDEX_TYPE)
    raw_value = Parameter(name="value", type=STRING_TYPE)

    result = [
        methods.initializer(),
        methods.method(f"clear{part}", Operation.CLEAR),
        methods.method(f"add{part}", Operation.ADD, [value], VALIDATED),
        methods.method(f"add{part}", Operation.ADD_AT, [index, value], VALIDATED),
        methods.method(f"remove{part}", Operation.REMOVE, [value]),
        methods.method(f"remove{part}", Operation.REMOVE_AT, [index]),
        methods.method(
            f"addAll{part}", Operation.ADD_ALL, [Parameter(name="value", type=shape.collection_type)], VALIDATED
        ),
    ]
    if not shape.is_textual:
        result += [
            methods.method(f"addRaw{part}", Operation.ADD, [raw_value], CONVERTED_AND_VALIDATED, raw=True),
            methods.method(f"addRaw{part}", Operation.ADD_AT, [index, raw_value], CONVERTED_AND_VALIDATED, raw=True),
            methods.method(f"addAllRaw{part}", Operation.ADD_ALL, [raw_value], CONVERTED_AND_VALIDATED, raw=True),
        ]
    return result


def map_methods(methods: _FieldMethods, shape: MapOf) -> list[MethodSpec]:
    """The map mutators of a map field. Raw puts are always present, even for textual keys and values."""
    part = methods.part
    key = Parameter(name="key", type=shape.key.target_type)
    value = Parameter(name="value", type=shape.value.target_type)

    return [
        methods.initializer(),
        methods.method(f"put{part}", Operation.PUT, [key, value], VALIDATED),
        methods.method(
            f"putRaw{part}",
            Operation.PUT,
            [Parameter(name="key", type=STRING_TYPE), Parameter(name="value", type=STRING_TYPE)],
            CONVERTED_AND_VALIDATED,
            raw=True,
        ),
        methods.method(
            f"putAll{part}", Operation.PUT_ALL, [Parameter(name="map", type=shape.collection_type)], VALIDATED
        ),
        methods.method(
            f"putAllRaw{part}",
            Operation.PUT_ALL,
            [Parameter(name="map", type=STRING_TYPE)],
            CONVERTED_AND_VALIDATED,
            raw=True,
        ),
        methods.method(f"clear{part}", Operation.CLEAR),
        methods.method(f"remove{part}", Operation.REMOVE, [key]),
    ]


def field_methods(
    field: FieldSchema, index: int, shape: Singular | Repeated | MapOf, builder_type: str
) -> list[MethodSpec]:
    """Synthesize the methods of one field according to its classification."""
    methods = _FieldMethods(field, index, builder_type)
    if isinstance(shape, MapOf):
        return map_methods(methods, shape)
    if isinstance(shape, Repeated):
        return repeated_methods(methods, shape)
    return singular_methods(methods, shape)


def builder_class_name(message: MessageSchema, suffix: str = DEFAULT_BUILDER_SUFFIX) -> str:
    return f"{message.name}{suffix}"


def synthesize_builder(
    message: MessageSchema,
    file: FileSchema,
    registry: TypeRegistry,
    suffix: str = DEFAULT_BUILDER_SUFFIX,
) -> BuilderSpec:
    """
    Synthesize the validating builder of a message.

    Fields are processed in declaration order and every method of a field carries
    the field index, which generated code uses to look up the field descriptor.
    The builder starts with the static ``newBuilder`` factory and ends with ``build``.

    Args:
        message: The message to build
        file: The file declaring the message
        registry: Type registry of the current generation pass
        suffix: Suffix appended to the message name to form the builder class name

    Returns:
        The builder specification

    Raises:
        UnresolvedTypeReferenceError: If a field references an unregistered type
        MapEntryNotFoundError: If a map field has no matching entry type
    """
    message_type = registry.resolve(message.full_name)
    spec = BuilderSpec(
        message_name=message.full_name,
        message_type=message_type,
        class_name=builder_class_name(message, suffix),
        package=file.java_package,
    )
    builder_type = spec.builder_type
    classifier = FieldClassifier(registry)

    methods = [
        MethodSpec(
            name="newBuilder",
            return_type=builder_type,
            operation=Operation.NEW_BUILDER,
            static=True,
        )
    ]
    statements = []
    for index, field in enumerate(message.fields):
        shape = classifier.classify(field, message)
        log.debug(f"Field {message.full_name}.{field.name} [{index}] is {shape.kind}")

        spec.fields.append(ClassifiedField(name=field.name, index=index, classification=shape))
        spec.backing_fields.append(BackingField(name=java_field_name(field.name), type=shape.collection_type))
        methods.extend(field_methods(field, index, shape, builder_type))
        statements.append(BuildStatement(field_name=java_field_name(field.name), verb=shape.combining_verb))

    methods.append(
        MethodSpec(
            name="build",
            returns_self=False,
            return_type=message_type,
            operation=Operation.BUILD,
            statements=statements,
        )
    )
    spec.methods = methods
    log.debug(f"Synthesized {len(methods)} methods for {spec.builder_type}")
    return spec
