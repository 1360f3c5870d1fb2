"""Selection of the messages that receive generated builders or failure types."""

from collections.abc import Callable, Iterable

from pydantic import BaseModel, ConfigDict

from descgen import log
from descgen.builders.classification import FieldClassifier
from descgen.schema.models import FieldKind, FieldSchema, FileSchema, MessageSchema
from descgen.schema.naming import map_entry_name, strip_leading_dot

MessageSelector = Callable[[FileSchema, MessageSchema], bool]


class SelectedMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    file: FileSchema
    message: MessageSchema

    @property
    def full_name(self) -> str:
        return self.message.full_name


def file_name_ends_with(suffix: str) -> MessageSelector:
    """Select every message declared in files whose name ends with the suffix."""

    def select(file: FileSchema, message: MessageSchema) -> bool:
        return file.name.endswith(suffix)

    return select


def select_messages(files: Iterable[FileSchema], selector: MessageSelector) -> list[SelectedMessage]:
    """
    Return the top-level messages accepted by the selector, ordered by full name.

    Args:
        files: Loaded file schemas
        selector: Predicate over a file and one of its top-level messages

    Returns:
        The selected messages
    """
    selected = [
        SelectedMessage(file=file, message=message)
        for file in files
        for message in file.messages
        if selector(file, message)
    ]
    return sorted(selected, key=lambda item: item.full_name)


def with_field_types(selected: Iterable[SelectedMessage], files: Iterable[FileSchema]) -> list[SelectedMessage]:
    """
    Extend a selection with the message types its fields reference, transitively.

    Map fields contribute the types of their keys and values, never the
    synthetic entry type. Types declared outside the loaded files are ignored.

    Args:
        selected: The initial selection
        files: Loaded file schemas, used to look up referenced messages

    Returns:
        The extended selection, ordered by full name
    """
    index = {
        message.full_name: SelectedMessage(file=file, message=message)
        for file in files
        for message in file.all_messages()
    }

    result = {item.full_name: item for item in selected}
    pending = list(result.values())
    while pending:
        message = pending.pop().message
        for type_name in _referenced_message_types(message):
            if type_name in result or type_name not in index:
                continue
            log.debug(f"Selecting {type_name}, referenced by {message.full_name}")
            result[type_name] = index[type_name]
            pending.append(index[type_name])

    return sorted(result.values(), key=lambda item: item.full_name)


def _referenced_message_types(message: MessageSchema) -> list[str]:
    referenced = []
    for field in message.fields:
        if FieldClassifier.is_map_field(field):
            entry = message.nested_message(map_entry_name(field.json_name))
            entry_fields: list[FieldSchema] = entry.fields if entry else []
            referenced += [strip_leading_dot(f.type_name) for f in entry_fields if _refers_to_message(f)]
        elif _refers_to_message(field):
            referenced.append(strip_leading_dot(field.type_name))
    return referenced


def _refers_to_message(field: FieldSchema) -> bool:
    return field.kind in (FieldKind.MESSAGE, FieldKind.GROUP)
