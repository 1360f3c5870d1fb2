"""One generation pass over a descriptor set.

A pass is run per source scope (``main``, ``test``). Every pass builds its own
type registry and enrichment relation, nothing is shared between passes.
"""

import json
from pathlib import Path

from pydantic import BaseModel, Field

from descgen import log
from descgen.builders.methods import BuilderSpec, synthesize_builder
from descgen.builders.selection import file_name_ends_with, select_messages, with_field_types
from descgen.config import GeneratorConfig
from descgen.enrichments import EnrichmentResolver
from descgen.exporters.properties import ENRICHMENTS_FILE, KNOWN_TYPES_FILE, PropertiesWriter
from descgen.failures import FailureSpec, synthesize_failures
from descgen.registry import TypeRegistry, build_type_registry
from descgen.schema.loader import is_not_foundational, load_file_schemas
from descgen.schema.models import FileSchema

BUILDERS_FILE = "builders.json"
FAILURES_FILE = "failures.json"
DEFAULT_SCOPE = "main"


class GenerationResult(BaseModel):
    """Everything computed by one pass, together with the files written for it."""

    scope: str = DEFAULT_SCOPE
    files: list[str] = Field(default_factory=list)
    known_types: dict[str, str] = Field(default_factory=dict)
    enrichments: dict[str, str] = Field(default_factory=dict)
    builders: list[BuilderSpec] = Field(default_factory=list)
    failures: list[FailureSpec] = Field(default_factory=list)
    written: list[Path] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.files


def load_files(descriptor_set: Path, config: GeneratorConfig) -> list[FileSchema]:
    return load_file_schemas(descriptor_set, is_not_foundational(config.foundational_marker))


def collect_enrichments(files: list[FileSchema], config: GeneratorConfig) -> dict[str, str]:
    return EnrichmentResolver(config.options).resolve_files(files).finalize()


def collect_builders(files: list[FileSchema], registry: TypeRegistry, config: GeneratorConfig) -> list[BuilderSpec]:
    """Synthesize the builders of command messages and, optionally, of the messages their fields reference."""
    selected = select_messages(files, file_name_ends_with(config.selection.commands_suffix))
    if config.selection.include_field_types:
        selected = with_field_types(selected, files)
    log.debug(f"Selected {len(selected)} message(s) for builders")
    return [
        synthesize_builder(item.message, item.file, registry, config.naming.builder_suffix) for item in selected
    ]


def collect_failures(files: list[FileSchema], registry: TypeRegistry, config: GeneratorConfig) -> list[FailureSpec]:
    failures_files = [file for file in files if file.name.endswith(config.selection.failures_suffix)]
    return synthesize_failures(failures_files, registry, config.naming)


def generate(
    files: list[FileSchema], config: GeneratorConfig | None = None, scope: str = DEFAULT_SCOPE
) -> GenerationResult:
    """
    Compute the outputs of a pass from already loaded files, without writing anything.

    Raises:
        GenerationError: If any stage meets a fatal error
    """
    config = config or GeneratorConfig()
    registry = build_type_registry(files)
    return GenerationResult(
        scope=scope,
        files=[file.name for file in files],
        known_types=registry.as_properties(),
        enrichments=collect_enrichments(files, config),
        builders=collect_builders(files, registry, config),
        failures=collect_failures(files, registry, config),
    )


def write_json(path: Path, specs: list[BuilderSpec] | list[FailureSpec]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps([spec.model_dump(mode="json") for spec in specs], indent=2), encoding="utf-8")
    log.info(f"Wrote {len(specs)} specification(s) to {path}")


def write_result(result: GenerationResult, output_dir: Path, source: str = "a descriptor set") -> list[Path]:
    """
    Write the outputs of a pass into a directory.

    The ``.properties`` files are merged with existing ones and skipped when empty.

    Returns:
        The paths of the written files
    """
    written = []
    properties = [
        (KNOWN_TYPES_FILE, "Known types", result.known_types),
        (ENRICHMENTS_FILE, "Enrichments", result.enrichments),
    ]
    for file_name, title, entries in properties:
        path = output_dir / file_name
        if PropertiesWriter(path, title, source).write(entries):
            written.append(path)

    for file_name, specs in ((BUILDERS_FILE, result.builders), (FAILURES_FILE, result.failures)):
        path = output_dir / file_name
        write_json(path, specs)
        written.append(path)
    return written


def run_pass(
    descriptor_set: Path,
    output_dir: Path,
    config: GeneratorConfig | None = None,
    scope: str = DEFAULT_SCOPE,
) -> GenerationResult:
    """
    Run a full generation pass: load, register, resolve, synthesize and write.

    An absent descriptor set is reported by the loader and yields an empty result
    without writing anything.

    Args:
        descriptor_set: Path to the binary descriptor set
        output_dir: Directory receiving the generated files
        config: Generator settings (default: core framework conventions)
        scope: Name of the source scope, used in log messages

    Returns:
        The result of the pass

    Raises:
        GenerationError: If any stage meets a fatal error
    """
    config = config or GeneratorConfig()
    log.info(f"Generating the '{scope}' scope from {descriptor_set}")

    files = load_files(descriptor_set, config)
    if not files:
        log.warning(f"Nothing to generate for the '{scope}' scope")
        return GenerationResult(scope=scope)

    result = generate(files, config, scope)
    result.written = write_result(result, output_dir, str(descriptor_set))
    return result
