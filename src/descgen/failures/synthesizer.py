from collections.abc import Iterable

from pydantic import BaseModel, Field, computed_field

from descgen import log
from descgen.builders.classification import FieldClassifier
from descgen.builders.methods import BuildStatement, Parameter
from descgen.config import NamingConfig
from descgen.registry import TypeRegistry
from descgen.schema.models import FileSchema, MessageSchema
from descgen.schema.naming import java_field_name, qualify

COMMAND_MESSAGE_TYPE = "com.google.protobuf.GeneratedMessageV3"
COMMAND_MESSAGE_PARAMETER = "commandMessage"
COMMAND_CONTEXT_PARAMETER = "ctx"


class FailureSpec(BaseModel):
    """
    Shape of the throwable generated for one failure message.

    The constructor takes the rejected command and its context, followed by one
    parameter per message field, and builds the failure message from them.
    """

    class_name: str
    package: str = ""
    outer_class: str
    message_name: str
    message_type: str
    parameters: list[Parameter] = Field(default_factory=list)
    statements: list[BuildStatement] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failure_type(self) -> str:
        return qualify(self.package, self.class_name)


def is_valid_failures_file(file: FileSchema, outer_class_suffix: str = "Failures") -> bool:
    """
    Check that a failures file follows the single outer class convention.

    All failures of a file are generated into one outer class, so the file must not
    set ``java_multiple_files`` and an explicit outer class name must end with
    the suffix.
    """
    if file.java_multiple_files:
        return False
    return not file.java_outer_classname or file.java_outer_classname.endswith(outer_class_suffix)


def synthesize_failure(
    message: MessageSchema,
    file: FileSchema,
    registry: TypeRegistry,
    naming: NamingConfig | None = None,
) -> FailureSpec:
    """
    Synthesize the failure type of a top-level message of a failures file.

    Raises:
        UnresolvedTypeReferenceError: If a field references an unregistered type
        MapEntryNotFoundError: If a map field has no matching entry type
    """
    naming = naming or NamingConfig()
    classifier = FieldClassifier(registry)

    parameters = [
        Parameter(name=COMMAND_MESSAGE_PARAMETER, type=COMMAND_MESSAGE_TYPE),
        Parameter(name=COMMAND_CONTEXT_PARAMETER, type=naming.command_context_type),
    ]
    statements = []
    for field in message.fields:
        shape = classifier.classify(field, message)
        parameters.append(Parameter(name=java_field_name(field.name), type=shape.collection_type))
        statements.append(BuildStatement(field_name=java_field_name(field.name), verb=shape.combining_verb))

    return FailureSpec(
        class_name=message.name,
        package=file.java_package,
        outer_class=file.outer_class_name,
        message_name=message.full_name,
        message_type=registry.resolve(message.full_name),
        parameters=parameters,
        statements=statements,
    )


def synthesize_failures(
    files: Iterable[FileSchema],
    registry: TypeRegistry,
    naming: NamingConfig | None = None,
) -> list[FailureSpec]:
    """
    Synthesize the failure types of all top-level messages of valid failures files.

    Invalid files are logged and skipped.

    Args:
        files: The failures files selected for the pass
        registry: Type registry of the current generation pass
        naming: Naming settings (default: core framework conventions)

    Returns:
        The failure specifications, ordered by message full name
    """
    naming = naming or NamingConfig()
    specs = []
    for file in files:
        if not is_valid_failures_file(file, naming.failure_outer_class_suffix):
            log.error(
                f"Invalid failures file: {file.name}. Failures files must not use java_multiple_files "
                f"and their outer class name must end with '{naming.failure_outer_class_suffix}'"
            )
            continue
        log.info(f"Found failures file: {file.name}")
        specs += [synthesize_failure(message, file, registry, naming) for message in file.messages]
    return sorted(specs, key=lambda spec: spec.message_name)
