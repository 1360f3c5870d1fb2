"""Discovery of enrichment relations declared through custom message and field options.

An enrichment is a message that augments one or more event messages. The
relation can be declared from either side:

- ``(enrichment_for) = "EventA,EventB"`` on the enrichment itself;
- ``(enrichment) = "SomeEnrichment"`` on the event;
- ``(by) = "demo.EventFoo.some_field"`` on the fields of an enrichment, which
  names the event field the value is taken from.
"""

from collections.abc import Iterable, Iterator

from descgen import log
from descgen.config import OptionNumbersConfig
from descgen.errors import InvalidByOptionUsage, InvalidOptionValueError
from descgen.schema.models import FieldSchema, FileSchema, MessageSchema
from descgen.schema.naming import TYPE_SEPARATOR, qualify
from descgen.schema.options import has_option, option_value

TARGET_SEPARATOR = ","
ALTERNATIVE_SEPARATOR = "|"
WILDCARD = "*"


class EnrichmentRelation:
    """
    Enrichment type name to the set of event type names it enriches.

    Relations are merged across messages and files; finalizing drops empty names
    and empty sets and joins every target set in lexicographic order.
    """

    def __init__(self) -> None:
        self._targets: dict[str, set[str]] = {}

    def __contains__(self, enrichment: object) -> bool:
        return enrichment in self._targets

    def __iter__(self) -> Iterator[str]:
        return iter(self._targets)

    def __len__(self) -> int:
        return len(self._targets)

    def add(self, enrichment: str, targets: Iterable[str] = ()) -> None:
        """Record the key and merge the given targets into its set."""
        self._targets.setdefault(enrichment, set()).update(targets)

    def merge(self, other: "EnrichmentRelation") -> None:
        for enrichment, targets in other._targets.items():
            self.add(enrichment, targets)

    def targets_of(self, enrichment: str) -> set[str]:
        return set(self._targets.get(enrichment, set()))

    def finalize(self) -> dict[str, str]:
        """
        Flatten the relation into the exported mapping.

        Returns:
            Enrichment type name to the sorted, comma-joined event type names,
            sorted by enrichment type name
        """
        result: dict[str, str] = {}
        for enrichment in sorted(self._targets):
            targets = sorted(target for target in self._targets[enrichment] if target)
            if not enrichment or not targets:
                continue
            result[enrichment] = TARGET_SEPARATOR.join(targets)
        return result


class EnrichmentResolver:
    """
    Finds the enrichment relations declared in a file.

    For every top-level message the detections below run in order and the first
    successful one skips the rest for that message:

    1. ``enrichment_for`` on the message
    2. ``enrichment`` on the message
    3. ``by`` on the fields of a directly nested message
    4. ``by`` on the fields of the message itself
    """

    def __init__(self, options: OptionNumbersConfig | None = None) -> None:
        self.options = options or OptionNumbersConfig()

    def resolve_file(self, file: FileSchema) -> EnrichmentRelation:
        relation = EnrichmentRelation()
        for message in file.messages:
            self._resolve_message(file, message, relation)
        log.debug(f"Found {len(relation)} enrichment(s) in {file.name}")
        return relation

    def resolve_files(self, files: Iterable[FileSchema]) -> EnrichmentRelation:
        relation = EnrichmentRelation()
        for file in files:
            relation.merge(self.resolve_file(file))
        return relation

    def _resolve_message(self, file: FileSchema, message: MessageSchema, relation: EnrichmentRelation) -> None:
        detections = (
            self._enrichment_for,
            self._enrichment_of_event,
            self._nested_back_references,
            self._own_back_references,
        )
        for detect in detections:
            if detect(file, message, relation):
                log.debug(f"Message {message.full_name} resolved by {detect.__name__.strip('_')}")
                return

    def _enrichment_for(self, file: FileSchema, message: MessageSchema, relation: EnrichmentRelation) -> bool:
        value = option_value(message.options, self.options.enrichment_for)
        if value is None:
            return False
        targets = self._normalize_type_names("enrichment_for", value, file, message)
        relation.add(message.full_name, targets)
        return True

    def _enrichment_of_event(self, file: FileSchema, message: MessageSchema, relation: EnrichmentRelation) -> bool:
        value = option_value(message.options, self.options.enrichment)
        if value is None:
            return False
        for enrichment in self._normalize_type_names("enrichment", value, file, message):
            relation.add(enrichment, [message.full_name])
        return True

    def _nested_back_references(self, file: FileSchema, message: MessageSchema, relation: EnrichmentRelation) -> bool:
        found = False
        for nested in message.nested_messages:
            fields = [field for field in nested.fields if has_option(field.options, self.options.by)]
            if not fields:
                continue
            found = True
            key = f"{message.full_name}{TYPE_SEPARATOR}{nested.name}"
            for field in fields:
                relation.add(key, self._by_targets(field, nested, file))
        return found

    def _own_back_references(self, file: FileSchema, message: MessageSchema, relation: EnrichmentRelation) -> bool:
        fields = [field for field in message.fields if has_option(field.options, self.options.by)]
        for field in fields:
            relation.add(message.full_name, self._by_targets(field, message, file))
        return bool(fields)

    def _normalize_type_names(self, option: str, value: str, file: FileSchema, message: MessageSchema) -> list[str]:
        """Split a comma-separated type list and qualify the simple names with the file package."""
        names = [name.strip() for name in value.split(TARGET_SEPARATOR)]
        names = [name for name in names if name]
        if not names:
            raise InvalidOptionValueError(option, value, message.full_name, file.name, "no type names given")
        return [name if TYPE_SEPARATOR in name else qualify(file.package, name) for name in names]

    def _by_targets(self, field: FieldSchema, message: MessageSchema, file: FileSchema) -> list[str]:
        """
        Return the event types referenced by the ``by`` option of a field.

        A reference whose event type is ``*`` (``*.field``, or a bare ``*``) is a wildcard.

        Raises:
            InvalidByOptionUsage: If a wildcard is combined with other alternatives
            InvalidOptionValueError: If a reference is not a qualified field reference
        """
        value = option_value(field.options, self.options.by) or ""
        alternatives = [part.strip() for part in value.split(ALTERNATIVE_SEPARATOR)]
        alternatives = [part for part in alternatives if part]

        if any(_is_wildcard(reference) for reference in alternatives):
            if len(alternatives) > 1:
                raise InvalidByOptionUsage(value, field.name, message.full_name, file.name)
            log.debug(f"Skipping wildcard 'by' on {message.full_name}.{field.name}")
            return []

        targets = []
        for reference in alternatives:
            event_type, separator, _ = reference.rpartition(TYPE_SEPARATOR)
            if not separator or not event_type:
                raise InvalidOptionValueError(
                    "by",
                    value,
                    message.full_name,
                    file.name,
                    f"field '{field.name}' must reference an event field as '<eventType>.<fieldName>'",
                )
            targets.append(event_type)
        return targets


def _is_wildcard(reference: str) -> bool:
    return reference == WILDCARD or reference.rpartition(TYPE_SEPARATOR)[0].strip() == WILDCARD


def find_enrichments(file: FileSchema, options: OptionNumbersConfig | None = None) -> dict[str, str]:
    """
    Find the enrichments declared in a single file.

    Args:
        file: The file schema to scan
        options: Field numbers of the enrichment options (default: core framework numbers)

    Returns:
        Enrichment type name to the sorted, comma-joined event type names
    """
    return EnrichmentResolver(options).resolve_file(file).finalize()
