"""Error taxonomy of the generation pipeline.

Only ``DescriptorSetAbsent`` is soft: it means the upstream schema compilation
has not produced a descriptor set yet, so the pass completes without output.
Every other error aborts the current pass and names the offending
file, message or field.
"""

from pathlib import Path


class ErrorMessages:
    """Standard error message prefixes for consistent messaging and testability."""

    DESCRIPTOR_SET_ABSENT = "Descriptor set file not found"
    MALFORMED_DESCRIPTOR = "Cannot parse descriptor set"
    UNRESOLVED_TYPE = "Cannot resolve type reference"
    INVALID_OPTION_VALUE = "Invalid option value"
    INVALID_BY_USAGE = "Wildcard 'by' target cannot be combined with other alternatives"
    MAP_ENTRY_NOT_FOUND = "Map entry type not found"


class GenerationError(Exception):
    """Base class for all errors raised while generating from a descriptor set."""


class DescriptorSetAbsent(GenerationError, FileNotFoundError):
    """Raised by the reader when the descriptor set file does not exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"{ErrorMessages.DESCRIPTOR_SET_ABSENT}: '{path}'")


class MalformedDescriptorError(GenerationError, ValueError):
    """Raised when an existing descriptor set file cannot be parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"{ErrorMessages.MALFORMED_DESCRIPTOR}: '{path}' ({reason})")


class UnresolvedTypeReferenceError(GenerationError, KeyError):
    """Raised when a field references a type that is not in the type registry."""

    def __init__(self, type_name: str, field_name: str | None = None, message_name: str | None = None) -> None:
        self.type_name = type_name
        self.field_name = field_name
        self.message_name = message_name
        location = ""
        if field_name or message_name:
            location = f" referenced by field '{field_name or '?'}' of message '{message_name or '?'}'"
        super().__init__(f"{ErrorMessages.UNRESOLVED_TYPE}: '{type_name}'{location}")

    def __str__(self) -> str:
        # KeyError quotes its argument, keep the message readable.
        return str(self.args[0])


class InvalidOptionValueError(GenerationError, ValueError):
    """Raised when an enrichment annotation is empty or malformed."""

    def __init__(self, option: str, value: str, message_name: str, file_name: str, reason: str) -> None:
        self.option = option
        self.value = value
        self.message_name = message_name
        self.file_name = file_name
        super().__init__(
            f"{ErrorMessages.INVALID_OPTION_VALUE}: option '{option}' = '{value}' "
            f"on '{message_name}' in '{file_name}': {reason}"
        )


class InvalidByOptionUsage(GenerationError, ValueError):
    """Raised when the wildcard `by` target is combined with concrete alternatives."""

    def __init__(self, value: str, field_name: str, message_name: str, file_name: str) -> None:
        self.value = value
        self.field_name = field_name
        self.message_name = message_name
        self.file_name = file_name
        super().__init__(
            f"{ErrorMessages.INVALID_BY_USAGE}: '{value}' on field '{field_name}' "
            f"of '{message_name}' in '{file_name}'"
        )


class MapEntryNotFoundError(GenerationError, LookupError):
    """Raised when a field looks like a map but its synthetic entry type is missing."""

    def __init__(self, entry_name: str, field_name: str, message_name: str) -> None:
        self.entry_name = entry_name
        self.field_name = field_name
        self.message_name = message_name
        super().__init__(
            f"{ErrorMessages.MAP_ENTRY_NOT_FOUND}: expected nested type '{entry_name}' with key and value "
            f"fields for field '{field_name}' of message '{message_name}'"
        )
