"""Writing of flat ``key=value`` mappings as Java ``.properties`` files.

The files are read by other build steps and by the runtime, so keys and values
are escaped the way ``java.util.Properties`` expects them. That class reads
ISO-8859-1, so every character outside printable ASCII is written as a ``\\uXXXX``
escape, with UTF-16 surrogate pairs for characters beyond the BMP.
"""

from collections.abc import Mapping
from itertools import islice
from pathlib import Path

from jinja2 import Environment, PackageLoader

from descgen import log

KNOWN_TYPES_FILE = "known_types.properties"
ENRICHMENTS_FILE = "enrichments.properties"
PROPERTIES_ENCODING = "latin-1"

_COMMENT_MARKERS = ("#", "!")
_KEY_SEPARATORS = ("=", ":")
_KEY_SPECIAL_CHARS = " :=#!"
_CONTROL_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _unicode_escape(char: str) -> str:
    data = char.encode("utf-16-be", "surrogatepass")
    return "".join(f"\\u{int.from_bytes(data[i : i + 2], 'big'):04X}" for i in range(0, len(data), 2))


def escape_unicode(text: str) -> str:
    """Replace every character outside printable ASCII with its ``\\uXXXX`` escape."""
    return "".join(char if " " <= char <= "~" else _unicode_escape(char) for char in text)


def escape_key(key: str) -> str:
    escaped = key.replace("\\", "\\\\")
    for char in _KEY_SPECIAL_CHARS:
        escaped = escaped.replace(char, f"\\{char}")
    return escape_unicode(escaped)


def escape_value(value: str) -> str:
    escaped = value.replace("\\", "\\\\")
    if escaped.startswith(" "):
        escaped = "\\" + escaped
    return escape_unicode(escaped)


def _unescape(text: str) -> str:
    """
    Undo the escaping of a key or value.

    Raises:
        ValueError: If a ``\\u`` escape is not followed by four hex digits
    """
    result = []
    chars = iter(text)
    for char in chars:
        if char == "\\":
            char = next(chars, "")
            if char == "u":
                digits = "".join(islice(chars, 4))
                if len(digits) != 4:
                    raise ValueError(f"Malformed \\uXXXX escape in '{text}'")
                char = chr(int(digits, 16))
            else:
                char = _CONTROL_ESCAPES.get(char, char)
        result.append(char)
    # Recombine surrogate pairs written for characters beyond the BMP
    return "".join(result).encode("utf-16", "surrogatepass").decode("utf-16", "surrogatepass")


def _split_entry(line: str) -> tuple[str, str]:
    """Split a property line on its first unescaped separator."""
    escaped = False
    for position, char in enumerate(line):
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char in _KEY_SEPARATORS:
            return line[:position], line[position + 1 :]
    return line, ""


def read_properties(path: Path) -> dict[str, str]:
    """
    Read a ``.properties`` file written by this module or by ``java.util.Properties``.

    Line continuations are not supported, the writer never produces them.

    Args:
        path: The file to read

    Returns:
        The entries of the file; the first occurrence of a key wins

    Raises:
        ValueError: If an entry holds a malformed ``\\uXXXX`` escape
    """
    entries: dict[str, str] = {}
    for raw_line in path.read_text(encoding=PROPERTIES_ENCODING).splitlines():
        line = raw_line.strip()
        if not line or line.startswith(_COMMENT_MARKERS):
            continue
        key, value = _split_entry(line)
        key = _unescape(key.strip())
        if key not in entries:
            entries[key] = _unescape(value.strip())
    return entries


class PropertiesWriter:
    """
    Writes a mapping to a ``.properties`` file, merging it with the existing content.

    Existing entries always win: a new value for an existing key is reported and
    dropped, so types registered by an earlier step are never redefined.
    """

    def __init__(self, path: Path, title: str, source: str = "a descriptor set") -> None:
        self.path = path
        self.title = title
        self.source = source

        self.env = Environment(
            loader=PackageLoader("descgen.exporters", "templates"),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters["escape_key"] = escape_key
        self.env.filters["escape_value"] = escape_value
        self.env.filters["escape_unicode"] = escape_unicode

    def merge(self, entries: Mapping[str, str]) -> dict[str, str]:
        """Return the existing entries of the file extended with the new ones, sorted by key."""
        merged = read_properties(self.path) if self.path.exists() else {}
        for key, value in entries.items():
            existing = merged.get(key)
            if existing is None:
                merged[key] = value
            elif existing != value:
                log.warning(
                    f"Entry '{key}' already exists in {self.path.name} with value '{existing}', ignoring '{value}'"
                )
        return dict(sorted(merged.items()))

    def render(self, entries: Mapping[str, str]) -> str:
        template = self.env.get_template("mapping.properties.j2")
        return template.render(title=self.title, source=self.source, entries=entries)

    def write(self, entries: Mapping[str, str]) -> bool:
        """
        Merge the entries into the file and write it.

        Args:
            entries: The entries to write

        Returns:
            True if the file was written, False if there was nothing to write
        """
        if not entries:
            log.debug(f"Nothing to write to {self.path}")
            return False

        merged = self.merge(entries)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.render(merged), encoding=PROPERTIES_ENCODING)
        log.info(f"Wrote {len(merged)} entries to {self.path}")
        return True
