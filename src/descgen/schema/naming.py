from pathlib import PurePosixPath

from caseconverter import camelcase, pascalcase

TYPE_SEPARATOR = "."
PROTO_EXTENSION = ".proto"
MAP_ENTRY_SUFFIX = "Entry"


def strip_leading_dot(type_name: str) -> str:
    """Remove the single leading dot carried by type references in descriptors."""
    if type_name.startswith(TYPE_SEPARATOR):
        return type_name[1:]
    return type_name


def to_outer_class_name(file_name: str) -> str:
    """Derive the outer class name from a ``.proto`` file name.

    The directory and extension are dropped, the base name is split on
    underscores, and every non-empty segment gets its first letter uppercased
    and the remainder lowercased before the segments are concatenated::

        "sample_types.proto"         -> "SampleTypes"
        "org/demo/MY_file_v2.proto"  -> "MyFileV2"
    """
    base_name = PurePosixPath(file_name).name
    if base_name.endswith(PROTO_EXTENSION):
        base_name = base_name[: -len(PROTO_EXTENSION)]
    return "".join(word[0].upper() + word[1:].lower() for word in base_name.split("_") if word)


def map_entry_name(json_name: str) -> str:
    """Name of the synthetic nested type protoc generates for a map field.

    Only the first character of the JSON name is capitalized, e.g.
    ``wordDictionary`` becomes ``WordDictionaryEntry``.
    """
    if not json_name:
        return MAP_ENTRY_SUFFIX
    return json_name[0].upper() + json_name[1:] + MAP_ENTRY_SUFFIX


def refers_to_map_entry(type_name: str, json_name: str) -> bool:
    """Check whether a field type reference points at the map entry derived from ``json_name``."""
    return bool(json_name) and type_name.endswith(TYPE_SEPARATOR + map_entry_name(json_name))


def qualify(parent: str, name: str) -> str:
    """Join a parent qualified name (possibly empty) and a simple name."""
    if not parent:
        return name
    return f"{parent}{TYPE_SEPARATOR}{name}"


def java_field_name(proto_field_name: str) -> str:
    """Java field name of a proto field, e.g. ``word_dictionary`` -> ``wordDictionary``."""
    return str(camelcase(proto_field_name))


def accessor_part(proto_field_name: str) -> str:
    """Capitalized field name used inside accessor names, e.g. ``setWordDictionary``."""
    return str(pascalcase(proto_field_name))
