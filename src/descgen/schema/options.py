"""Reading of custom options whose defining extensions are not linked in.

The options of a descriptor are extensions of the ``*Options`` messages. When
their schema is not known to the reader, protobuf keeps them as unknown fields.
They are rendered to a line-oriented ``<fieldNumber>: <value>`` dump and parsed
back into an option table. Parsing is textual on purpose: the generator must not
depend on the schema package that declares the options, as that package is
itself built with the generator.
"""

from google.protobuf import text_encoding
from google.protobuf.message import Message
from google.protobuf.unknown_fields import UnknownFieldSet

from descgen import log

OptionTable = dict[int, str]

_QUOTE = '"'

# Wire types, see https://protobuf.dev/programming-guides/encoding/#structure
_WIRETYPE_LENGTH_DELIMITED = 2
_WIRETYPE_START_GROUP = 3
_WIRETYPE_END_GROUP = 4


def render_unknown_fields(options: Message) -> str:
    """
    Render the unknown fields of an options message as ``<number>: <value>`` lines.

    Length-delimited values are written as quoted, C-escaped strings; numeric values
    as decimal numbers. Groups carry no option value and are skipped.

    Args:
        options: A ``FileOptions``, ``MessageOptions`` or ``FieldOptions`` message

    Returns:
        The rendered dump, one field per line
    """
    lines = []
    for field in UnknownFieldSet(options):
        if field.wire_type in (_WIRETYPE_START_GROUP, _WIRETYPE_END_GROUP):
            log.debug(f"Skipping unknown group field {field.field_number}")
            continue
        if field.wire_type == _WIRETYPE_LENGTH_DELIMITED:
            text = bytes(field.data).decode("utf-8", errors="replace")
            lines.append(f'{field.field_number}: "{text_encoding.CEscape(text, True)}"')
        else:
            lines.append(f"{field.field_number}: {field.data}")
    return "\n".join(lines)


def parse_options_dump(dump: str) -> OptionTable:
    """
    Parse a ``<number>: <value>`` dump into an option table.

    Each line is split on its first colon only, since values may contain colons.
    Both parts are trimmed and one pair of surrounding double quotes is removed
    from the value. When a field number repeats, the first value is kept.

    Values are not unescaped: the C escapes of the rendering remain, so a double
    quote in a value comes back as ``\\"`` and a backslash comes back doubled.

    Args:
        dump: The rendered unknown fields

    Returns:
        Mapping from option field number to its raw string value

    Raises:
        ValueError: If a non-empty line has no colon or no numeric field number
    """
    if not dump.strip():
        return {}

    table: OptionTable = {}
    for line in dump.strip().splitlines():
        if not line.strip():
            continue
        number_str, separator, value = line.partition(":")
        if not separator:
            raise ValueError(f"Malformed option line, expected '<number>: <value>': '{line}'")
        number = int(number_str.strip())
        value = value.strip()
        if len(value) >= 2 and value.startswith(_QUOTE) and value.endswith(_QUOTE):
            value = value[1:-1]
        if number not in table:
            table[number] = value
    return table


def options_of(options: Message) -> OptionTable:
    """
    Return the option table of an options block.

    Args:
        options: A ``FileOptions``, ``MessageOptions`` or ``FieldOptions`` message

    Returns:
        Mapping from option field number to its raw string value
    """
    return parse_options_dump(render_unknown_fields(options))


def option_value(table: OptionTable, number: int) -> str | None:
    """Return the raw value of the option with the given field number, if present."""
    return table.get(number)


def has_option(table: OptionTable, number: int) -> bool:
    return number in table
