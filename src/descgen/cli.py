import logging
import sys
from pathlib import Path

import rich_click as click
import yaml
from pydantic import ValidationError
from rich.traceback import install

from descgen import __version__, log
from descgen.config import GeneratorConfig, load_generator_config
from descgen.errors import GenerationError
from descgen.exporters.properties import PropertiesWriter
from descgen.pipeline import (
    DEFAULT_SCOPE,
    collect_builders,
    collect_enrichments,
    collect_failures,
    load_files,
    run_pass,
    write_json,
)
from descgen.registry import build_type_registry
from descgen.schema.models import FileSchema

descriptor_set_option = click.option(
    "--descriptor-set",
    "-d",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="Binary descriptor set produced by 'protoc --descriptor_set_out'",
)


output_option = click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    required=True,
    help="Output file",
)


config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML file containing the generator configuration",
)


def load_config_or_exit(config_path: Path | None) -> GeneratorConfig:
    try:
        return load_generator_config(config_path)
    except (OSError, yaml.YAMLError, TypeError, ValidationError) as e:
        log.error(f"Invalid generator config {config_path}: {e}")
        sys.exit(1)


def load_files_or_exit(descriptor_set: Path, config: GeneratorConfig) -> list[FileSchema]:
    """Load the descriptor set, exiting with status 0 when there is nothing to generate."""
    try:
        files = load_files(descriptor_set, config)
    except GenerationError as e:
        log.error(str(e))
        sys.exit(1)

    if not files:
        log.warning(f"No files to process in {descriptor_set}, nothing was written")
        sys.exit(0)
    return files


@click.group(context_settings={"auto_envvar_prefix": "descgen"})
@click.option(
    "-l",
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default="INFO",
    help="Log level",
    show_default=True,
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Log file",
)
@click.version_option(__version__)
def cli(log_level: str, log_file: Path | None) -> None:
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w")
        file_handler.setFormatter(logging.Formatter("%(asctime)s:%(levelname)s:%(message)s"))
        log.addHandler(file_handler)

    log.setLevel(log_level.upper())
    if log_level.upper() == "DEBUG":
        _ = install(show_locals=True)


@click.group()
def export() -> None:
    """Export a single output of a generation pass."""
    pass


# Generate
# ----------
@click.command()
@descriptor_set_option
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    required=True,
    help="Output directory",
)
@click.option(
    "--scope",
    type=str,
    default=DEFAULT_SCOPE,
    show_default=True,
    help="Name of the source scope, e.g. 'main' or 'test'",
)
@config_option
def generate(descriptor_set: Path, output: Path, scope: str, config_path: Path | None) -> None:
    """Run a full generation pass over a descriptor set."""
    config = load_config_or_exit(config_path)
    try:
        result = run_pass(descriptor_set, output, config, scope)
    except GenerationError as e:
        log.error(f"Generation of the '{scope}' scope failed: {e}")
        sys.exit(1)

    if result.is_empty:
        return

    log.rule(f"Generated '{scope}' scope")
    log.key_value("Files", len(result.files))
    log.key_value("Known types", len(result.known_types))
    log.key_value("Enrichments", len(result.enrichments))
    log.key_value("Builders", len(result.builders))
    log.key_value("Failures", len(result.failures))
    for path in result.written:
        log.success(f"Wrote {path}")


# Export -> known types
# ----------
@export.command(name="known-types")
@descriptor_set_option
@output_option
@config_option
def known_types(descriptor_set: Path, output: Path, config_path: Path | None) -> None:
    """Export the mapping of schema type names to generated Java types."""
    config = load_config_or_exit(config_path)
    files = load_files_or_exit(descriptor_set, config)

    registry = build_type_registry(files)
    if PropertiesWriter(output, "Known types", str(descriptor_set)).write(registry.as_properties()):
        log.success(f"Exported {len(registry)} known types to {output}")


# Export -> enrichments
# ----------
@export.command
@descriptor_set_option
@output_option
@config_option
def enrichments(descriptor_set: Path, output: Path, config_path: Path | None) -> None:
    """Export the enrichments declared through custom options."""
    config = load_config_or_exit(config_path)
    files = load_files_or_exit(descriptor_set, config)

    try:
        relation = collect_enrichments(files, config)
    except GenerationError as e:
        log.error(str(e))
        sys.exit(1)

    if PropertiesWriter(output, "Enrichments", str(descriptor_set)).write(relation):
        log.success(f"Exported {len(relation)} enrichments to {output}")
    else:
        log.hint("No enrichments found")


# Export -> builders
# ----------
@export.command
@descriptor_set_option
@output_option
@config_option
def builders(descriptor_set: Path, output: Path, config_path: Path | None) -> None:
    """Export the validating builder specifications of command messages."""
    config = load_config_or_exit(config_path)
    files = load_files_or_exit(descriptor_set, config)

    try:
        specs = collect_builders(files, build_type_registry(files), config)
    except GenerationError as e:
        log.error(str(e))
        sys.exit(1)

    write_json(output, specs)
    log.success(f"Exported {len(specs)} builders to {output}")


# Export -> failures
# ----------
@export.command
@descriptor_set_option
@output_option
@config_option
def failures(descriptor_set: Path, output: Path, config_path: Path | None) -> None:
    """Export the failure specifications of failures files."""
    config = load_config_or_exit(config_path)
    files = load_files_or_exit(descriptor_set, config)

    try:
        specs = collect_failures(files, build_type_registry(files), config)
    except GenerationError as e:
        log.error(str(e))
        sys.exit(1)

    write_json(output, specs)
    log.success(f"Exported {len(specs)} failures to {output}")


cli.add_command(export)
cli.add_command(generate)

if __name__ == "__main__":
    cli()
