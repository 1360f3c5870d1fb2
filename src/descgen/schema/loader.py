"""Loading of binary descriptor sets produced by ``protoc --descriptor_set_out``."""

from collections.abc import Callable
from pathlib import Path

from google.protobuf import descriptor_pb2
from google.protobuf.message import DecodeError

from descgen import log
from descgen.config import DEFAULT_FOUNDATIONAL_MARKER
from descgen.errors import DescriptorSetAbsent, MalformedDescriptorError
from descgen.schema.models import EnumSchema, FieldKind, FieldLabel, FieldSchema, FileSchema, MessageSchema
from descgen.schema.naming import java_field_name, qualify
from descgen.schema.options import options_of

FileFilter = Callable[[descriptor_pb2.FileDescriptorProto], bool]

ENABLE_DESCRIPTOR_SET_HINT = (
    "Please enable descriptor set generation, e.g. run protoc with "
    "'--include_imports --descriptor_set_out=<path>' before generating."
)

_LABELS = {
    descriptor_pb2.FieldDescriptorProto.LABEL_OPTIONAL: FieldLabel.OPTIONAL,
    descriptor_pb2.FieldDescriptorProto.LABEL_REQUIRED: FieldLabel.REQUIRED,
    descriptor_pb2.FieldDescriptorProto.LABEL_REPEATED: FieldLabel.REPEATED,
}

_KINDS = {
    descriptor_pb2.FieldDescriptorProto.TYPE_DOUBLE: FieldKind.DOUBLE,
    descriptor_pb2.FieldDescriptorProto.TYPE_FLOAT: FieldKind.FLOAT,
    descriptor_pb2.FieldDescriptorProto.TYPE_INT64: FieldKind.INT64,
    descriptor_pb2.FieldDescriptorProto.TYPE_UINT64: FieldKind.UINT64,
    descriptor_pb2.FieldDescriptorProto.TYPE_INT32: FieldKind.INT32,
    descriptor_pb2.FieldDescriptorProto.TYPE_FIXED64: FieldKind.FIXED64,
    descriptor_pb2.FieldDescriptorProto.TYPE_FIXED32: FieldKind.FIXED32,
    descriptor_pb2.FieldDescriptorProto.TYPE_BOOL: FieldKind.BOOL,
    descriptor_pb2.FieldDescriptorProto.TYPE_STRING: FieldKind.STRING,
    descriptor_pb2.FieldDescriptorProto.TYPE_GROUP: FieldKind.GROUP,
    descriptor_pb2.FieldDescriptorProto.TYPE_MESSAGE: FieldKind.MESSAGE,
    descriptor_pb2.FieldDescriptorProto.TYPE_BYTES: FieldKind.BYTES,
    descriptor_pb2.FieldDescriptorProto.TYPE_UINT32: FieldKind.UINT32,
    descriptor_pb2.FieldDescriptorProto.TYPE_ENUM: FieldKind.ENUM,
    descriptor_pb2.FieldDescriptorProto.TYPE_SFIXED32: FieldKind.SFIXED32,
    descriptor_pb2.FieldDescriptorProto.TYPE_SFIXED64: FieldKind.SFIXED64,
    descriptor_pb2.FieldDescriptorProto.TYPE_SINT32: FieldKind.SINT32,
    descriptor_pb2.FieldDescriptorProto.TYPE_SINT64: FieldKind.SINT64,
}


def is_not_foundational(marker: str = DEFAULT_FOUNDATIONAL_MARKER) -> FileFilter:
    """Create a filter rejecting files whose package contains the foundational marker.

    Such files describe well-known runtime types that are never regenerated.
    """

    def accept(file: descriptor_pb2.FileDescriptorProto) -> bool:
        return marker not in file.package

    return accept


def accept_all(file: descriptor_pb2.FileDescriptorProto) -> bool:
    return True


def read_descriptor_set(path: Path) -> descriptor_pb2.FileDescriptorSet:
    """
    Read and parse a binary descriptor set.

    Args:
        path: Path to the descriptor set file

    Returns:
        The parsed descriptor set

    Raises:
        DescriptorSetAbsent: If the file does not exist
        MalformedDescriptorError: If the file cannot be read or parsed
    """
    if not path.exists():
        raise DescriptorSetAbsent(path)

    descriptor_set = descriptor_pb2.FileDescriptorSet()
    try:
        descriptor_set.ParseFromString(path.read_bytes())
    except DecodeError as e:
        raise MalformedDescriptorError(path, str(e)) from e
    except OSError as e:
        raise MalformedDescriptorError(path, f"cannot read file: {e}") from e
    return descriptor_set


def load_file_descriptors(
    path: Path, file_filter: FileFilter | None = None
) -> list[descriptor_pb2.FileDescriptorProto]:
    """
    Return the file descriptors of a descriptor set accepted by the filter.

    A missing descriptor set is not an error: it means schema compilation has not
    run yet, so a warning is logged and an empty list is returned.

    Args:
        path: Path to the descriptor set file
        file_filter: Predicate choosing the files to keep (default: non-foundational files)

    Returns:
        The accepted file descriptors in descriptor set order

    Raises:
        MalformedDescriptorError: If the file exists but cannot be parsed
    """
    accept = file_filter or is_not_foundational()
    try:
        descriptor_set = read_descriptor_set(path)
    except DescriptorSetAbsent as e:
        log.warning(str(e))
        log.hint(ENABLE_DESCRIPTOR_SET_HINT)
        return []

    files = [file for file in descriptor_set.file if accept(file)]
    log.debug(f"Accepted {len(files)} of {len(descriptor_set.file)} files from {path}")
    return files


def load_file_schemas(path: Path, file_filter: FileFilter | None = None) -> list[FileSchema]:
    """
    Load a descriptor set as a list of file schemas.

    Args:
        path: Path to the descriptor set file
        file_filter: Predicate choosing the files to keep (default: non-foundational files)

    Returns:
        The file schemas in descriptor set order, empty if the file is absent

    Raises:
        MalformedDescriptorError: If the file exists but cannot be parsed
    """
    return [to_file_schema(file) for file in load_file_descriptors(path, file_filter)]


def to_file_schema(file: descriptor_pb2.FileDescriptorProto) -> FileSchema:
    """Convert a file descriptor into a file schema, decoding every options block once."""
    return FileSchema(
        name=file.name,
        package=file.package,
        java_package=file.options.java_package,
        java_outer_classname=file.options.java_outer_classname,
        java_multiple_files=file.options.java_multiple_files,
        messages=[_to_message_schema(message, file.package) for message in file.message_type],
        enums=[_to_enum_schema(enum, file.package) for enum in file.enum_type],
        options=options_of(file.options),
    )


def _to_message_schema(message: descriptor_pb2.DescriptorProto, parent: str) -> MessageSchema:
    full_name = qualify(parent, message.name)
    return MessageSchema(
        name=message.name,
        full_name=full_name,
        fields=[_to_field_schema(field) for field in message.field],
        nested_messages=[_to_message_schema(nested, full_name) for nested in message.nested_type],
        nested_enums=[_to_enum_schema(enum, full_name) for enum in message.enum_type],
        options=options_of(message.options),
    )


def _to_enum_schema(enum: descriptor_pb2.EnumDescriptorProto, parent: str) -> EnumSchema:
    return EnumSchema(name=enum.name, full_name=qualify(parent, enum.name))


def _to_field_schema(field: descriptor_pb2.FieldDescriptorProto) -> FieldSchema:
    return FieldSchema(
        name=field.name,
        number=field.number,
        label=_LABELS.get(field.label, FieldLabel.OPTIONAL),
        kind=_KINDS[field.type],
        type_name=field.type_name,
        json_name=field.json_name or java_field_name(field.name),
        options=options_of(field.options),
    )
