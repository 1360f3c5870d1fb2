from pathlib import Path
from typing import Any, cast

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from descgen import log

# Field numbers of the custom options declared by the core framework schema.
OPTION_NUMBER_ENRICHMENT_FOR = 57124
OPTION_NUMBER_BY = 57125
OPTION_NUMBER_ENRICHMENT = 57126

DEFAULT_FOUNDATIONAL_MARKER = "google"


class OptionNumbersConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enrichment_for: int = Field(OPTION_NUMBER_ENRICHMENT_FOR, ge=1)
    by: int = Field(OPTION_NUMBER_BY, ge=1)
    enrichment: int = Field(OPTION_NUMBER_ENRICHMENT, ge=1)

    @model_validator(mode="after")
    def validate_distinct_numbers(self) -> "OptionNumbersConfig":
        numbers = [self.enrichment_for, self.by, self.enrichment]
        if len(numbers) != len(set(numbers)):
            raise ValueError("Option numbers must be distinct")
        return self


class SelectionConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    commands_suffix: str = "commands.proto"
    failures_suffix: str = "failures.proto"
    include_field_types: bool = True


class NamingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    builder_suffix: str = "Validator"
    command_context_type: str = "org.spine3.base.CommandContext"
    failure_outer_class_suffix: str = "Failures"


class GeneratorConfig(BaseModel):
    """Settings of a generation pass.

    Every section has defaults matching the core framework conventions, so an
    empty configuration file is valid.
    """

    model_config = ConfigDict(extra="forbid")

    options: OptionNumbersConfig = Field(default_factory=OptionNumbersConfig)
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    naming: NamingConfig = Field(default_factory=NamingConfig)
    foundational_marker: str = Field(DEFAULT_FOUNDATIONAL_MARKER, min_length=1)


def load_generator_config(config_path: Path | None) -> GeneratorConfig:
    """
    Load and validate a generator configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file, or None for defaults.

    Returns:
        A validated GeneratorConfig.

    Raises:
        OSError: If the file cannot be read.
        yaml.YAMLError: If the file is not valid YAML.
        TypeError: If the YAML root is not a mapping.
        ValidationError: If validation against GeneratorConfig fails.
    """
    if config_path is None:
        log.debug("No generator config provided, using defaults")
        return GeneratorConfig()

    raw: Any
    with config_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    log.debug("Loaded generator config from %s", config_path)

    if raw is None or raw == {}:
        return GeneratorConfig()

    if not isinstance(raw, dict):
        raise TypeError(f"Generator config root must be a mapping (YAML object), got {type(raw).__name__}")

    return GeneratorConfig.model_validate(cast(dict[str, Any], raw))
