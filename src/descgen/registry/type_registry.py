from collections.abc import Iterable, Iterator

from descgen import log
from descgen.errors import UnresolvedTypeReferenceError
from descgen.schema.models import EnumSchema, FileSchema, MessageSchema
from descgen.schema.naming import TYPE_SEPARATOR, strip_leading_dot


class TypeRegistry:
    """
    Mapping from fully-qualified schema type names to generated Java type identifiers.

    A registry is built for a single generation pass and then only read. Keys are
    schema names without the leading dot (``demo.Msg1.Msg2``); values are the
    identifiers of the generated classes (``org.demo.SampleTypes.Msg1.Msg2``).
    """

    def __init__(self) -> None:
        self._types: dict[str, str] = {}

    def __contains__(self, type_name: object) -> bool:
        return isinstance(type_name, str) and strip_leading_dot(type_name) in self._types

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def register(self, file: FileSchema) -> None:
        """
        Register every message and enum declared in a file, nested ones included.

        When the file does not set ``java_multiple_files``, top-level types live in
        the outer class of the file. Nested types append their simple name to the
        identifier of their parent.

        Args:
            file: The file schema to register
        """
        prefix = f"{file.java_package}{TYPE_SEPARATOR}" if file.java_package else ""
        if not file.java_multiple_files:
            prefix = f"{prefix}{file.outer_class_name}{TYPE_SEPARATOR}"

        for enum in file.enums:
            self._register_enum(enum, prefix + enum.name)
        for message in file.messages:
            self._register_message(message, prefix + message.name)

        log.debug(f"Registered types of {file.name}, registry size is {len(self._types)}")

    def register_all(self, files: Iterable[FileSchema]) -> None:
        for file in files:
            self.register(file)

    def resolve(self, type_name: str, field_name: str | None = None, message_name: str | None = None) -> str:
        """
        Return the generated type identifier of a schema type.

        Args:
            type_name: Qualified schema type name, with or without the leading dot
            field_name: Name of the referencing field, used in the error message
            message_name: Name of the referencing message, used in the error message

        Returns:
            The generated type identifier

        Raises:
            UnresolvedTypeReferenceError: If the type is not registered
        """
        key = strip_leading_dot(type_name)
        try:
            return self._types[key]
        except KeyError:
            raise UnresolvedTypeReferenceError(key, field_name, message_name) from None

    def as_properties(self) -> dict[str, str]:
        """Return the registry content as a flat mapping sorted by type name."""
        return dict(sorted(self._types.items()))

    def _register_message(self, message: MessageSchema, identifier: str) -> None:
        self._put(message.full_name, identifier)
        for enum in message.nested_enums:
            self._register_enum(enum, f"{identifier}{TYPE_SEPARATOR}{enum.name}")
        for nested in message.nested_messages:
            self._register_message(nested, f"{identifier}{TYPE_SEPARATOR}{nested.name}")

    def _register_enum(self, enum: EnumSchema, identifier: str) -> None:
        self._put(enum.full_name, identifier)

    def _put(self, type_name: str, identifier: str) -> None:
        existing = self._types.get(type_name)
        if existing is None:
            self._types[type_name] = identifier
        elif existing != identifier:
            log.warning(
                f"Type '{type_name}' is already registered as '{existing}', ignoring '{identifier}'",
            )


def build_type_registry(files: Iterable[FileSchema]) -> TypeRegistry:
    """Create a registry holding the types of all given files."""
    registry = TypeRegistry()
    registry.register_all(files)
    return registry
