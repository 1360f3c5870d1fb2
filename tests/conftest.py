from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import pytest
from faker import Faker
from google.protobuf import descriptor_pb2
from hypothesis import strategies as st
from hypothesis.strategies import composite

from descgen.config import OPTION_NUMBER_BY, OPTION_NUMBER_ENRICHMENT, OPTION_NUMBER_ENRICHMENT_FOR
from descgen.schema.loader import to_file_schema
from descgen.schema.models import FileSchema

FieldProto = descriptor_pb2.FieldDescriptorProto

WIRETYPE_VARINT = 0
WIRETYPE_LENGTH_DELIMITED = 2


def encode_varint(value: int) -> bytes:
    result = bytearray()
    while True:
        bits = value & 0x7F
        value >>= 7
        if value:
            result.append(bits | 0x80)
        else:
            result.append(bits)
            return bytes(result)


def string_option(number: int, value: str) -> bytes:
    """Encode a string option the way protoc stores an extension unknown to the reader."""
    data = value.encode("utf-8")
    return encode_varint((number << 3) | WIRETYPE_LENGTH_DELIMITED) + encode_varint(len(data)) + data


def varint_option(number: int, value: int) -> bytes:
    return encode_varint((number << 3) | WIRETYPE_VARINT) + encode_varint(value)


def enrichment_for(value: str) -> bytes:
    return string_option(OPTION_NUMBER_ENRICHMENT_FOR, value)


def enrichment(value: str) -> bytes:
    return string_option(OPTION_NUMBER_ENRICHMENT, value)


def by(value: str) -> bytes:
    return string_option(OPTION_NUMBER_BY, value)


def field(
    name: str,
    number: int,
    kind: int = FieldProto.TYPE_STRING,
    label: int = FieldProto.LABEL_OPTIONAL,
    type_name: str = "",
    options: Iterable[bytes] = (),
) -> descriptor_pb2.FieldDescriptorProto:
    result = FieldProto(name=name, number=number, type=kind, label=label)
    if type_name:
        result.type_name = type_name
    raw_options = b"".join(options)
    if raw_options:
        result.options.MergeFromString(raw_options)
    return result


def message_field(
    name: str, number: int, type_name: str, repeated: bool = False, options: Iterable[bytes] = ()
) -> descriptor_pb2.FieldDescriptorProto:
    label = FieldProto.LABEL_REPEATED if repeated else FieldProto.LABEL_OPTIONAL
    return field(name, number, FieldProto.TYPE_MESSAGE, label, type_name, options)


def map_field(name: str, number: int, type_name: str) -> descriptor_pb2.FieldDescriptorProto:
    return message_field(name, number, type_name, repeated=True)


def enum(name: str) -> descriptor_pb2.EnumDescriptorProto:
    result = descriptor_pb2.EnumDescriptorProto(name=name)
    result.value.add(name=f"{name.upper()}_UNDEFINED", number=0)
    return result


def message(
    name: str,
    fields: Iterable[descriptor_pb2.FieldDescriptorProto] = (),
    nested: Iterable[descriptor_pb2.DescriptorProto] = (),
    enums: Iterable[descriptor_pb2.EnumDescriptorProto] = (),
    options: Iterable[bytes] = (),
) -> descriptor_pb2.DescriptorProto:
    result = descriptor_pb2.DescriptorProto(name=name)
    result.field.extend(fields)
    result.nested_type.extend(nested)
    result.enum_type.extend(enums)
    raw_options = b"".join(options)
    if raw_options:
        result.options.MergeFromString(raw_options)
    return result


def map_entry(
    name: str, key: descriptor_pb2.FieldDescriptorProto, value: descriptor_pb2.FieldDescriptorProto
) -> descriptor_pb2.DescriptorProto:
    entry = message(name, [key, value])
    entry.options.map_entry = True
    return entry


def proto_file(
    name: str,
    package: str = "demo",
    messages: Iterable[descriptor_pb2.DescriptorProto] = (),
    enums: Iterable[descriptor_pb2.EnumDescriptorProto] = (),
    java_package: str = "",
    java_outer_classname: str = "",
    java_multiple_files: bool = False,
) -> descriptor_pb2.FileDescriptorProto:
    result = descriptor_pb2.FileDescriptorProto(name=name, package=package, syntax="proto3")
    result.message_type.extend(messages)
    result.enum_type.extend(enums)
    if java_package:
        result.options.java_package = java_package
    if java_outer_classname:
        result.options.java_outer_classname = java_outer_classname
    if java_multiple_files:
        result.options.java_multiple_files = True
    return result


def file_schema(*args: Any, **kwargs: Any) -> FileSchema:
    """Build a file descriptor with ``proto_file`` and load it as a file schema."""
    return to_file_schema(proto_file(*args, **kwargs))


def descriptor_set(*files: descriptor_pb2.FileDescriptorProto) -> descriptor_pb2.FileDescriptorSet:
    result = descriptor_pb2.FileDescriptorSet()
    result.file.extend(files)
    return result


@pytest.fixture
def write_descriptor_set(tmp_path: Path) -> Callable[..., Path]:
    """Write the given file descriptors as a binary descriptor set and return its path."""

    def write(*files: descriptor_pb2.FileDescriptorProto, name: str = "main.desc") -> Path:
        path = tmp_path / name
        path.write_bytes(descriptor_set(*files).SerializeToString())
        return path

    return write


def sample_types_file() -> descriptor_pb2.FileDescriptorProto:
    """``sample_types.proto`` with ``Msg1`` containing ``Msg2`` containing ``Enum2``."""
    msg2 = message("Msg2", [field("name", 1)], enums=[enum("Enum2")])
    msg1 = message("Msg1", [message_field("inner", 1, ".demo.Msg1.Msg2")], nested=[msg2])
    return proto_file("sample_types.proto", messages=[msg1])


def commands_file() -> descriptor_pb2.FileDescriptorProto:
    """A commands file exercising every field shape, with the types it references."""
    item = message("Item", [field("sku", 1), field("count", 2, FieldProto.TYPE_INT32)])
    entry = map_entry(
        "WordDictionaryEntry",
        field("key", 1),
        message_field("value", 2, ".org.example.Item"),
    )
    create_order = message(
        "CreateOrder",
        [
            field("order_id", 1),
            field("quantity", 2, FieldProto.TYPE_INT64),
            field("tags", 3, label=FieldProto.LABEL_REPEATED),
            message_field("items", 4, ".org.example.Item", repeated=True),
            map_field("word_dictionary", 5, ".org.example.CreateOrder.WordDictionaryEntry"),
        ],
        nested=[entry],
    )
    return proto_file(
        "org/example/order_commands.proto",
        package="org.example",
        messages=[create_order, item],
        java_package="org.example.commands",
    )


def failures_file() -> descriptor_pb2.FileDescriptorProto:
    cannot_create = message(
        "CannotCreateOrder",
        [field("order_id", 1), field("reasons", 2, label=FieldProto.LABEL_REPEATED)],
    )
    return proto_file(
        "org/example/order_failures.proto",
        package="org.example",
        messages=[cannot_create],
        java_package="org.example.failures",
    )


def foundational_file() -> descriptor_pb2.FileDescriptorProto:
    return proto_file("google/protobuf/any.proto", package="google.protobuf", messages=[message("Any")])


@composite
def package_names(draw: Callable[[st.SearchStrategy[Any]], Any], marker: str | None = None) -> str:
    """Generate a dotted package name, optionally containing the marker as one of its parts."""
    faker = Faker()
    faker.seed_instance(draw(st.integers(min_value=0, max_value=10_000)))
    parts = [faker.word().lower() for _ in range(draw(st.integers(min_value=1, max_value=3)))]
    if marker is not None:
        parts.insert(draw(st.integers(min_value=0, max_value=len(parts))), marker)
    return ".".join(parts)


def enrichments_file() -> descriptor_pb2.FileDescriptorProto:
    enrich = message("OrderNameEnrichment", options=[enrichment_for("OrderCreated")])
    return proto_file("org/example/enrichments.proto", package="org.example", messages=[enrich])
