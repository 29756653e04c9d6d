"""Generator configuration."""

from __future__ import annotations

import json
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class SettingsError(RuntimeError):
    """Raised when a settings file cannot be loaded."""


class GeneratorSettings(BaseModel):
    """Options controlling one generation run.

    Attributes:
        response_status_prefixes: Status code prefixes whose responses produce
            response classes. ``("2",)`` keeps only 2xx responses.
        output_filename: Name of the generated module inside the output directory.
        format_output: Whether the written module is formatted with ruff.
        shared_enum_names: Property name (lowercase) to enum name mapping used for
            inline enumerations that should share one declaration everywhere.
        class_suffixes: Collision suffixes for schema and nested class names.
        response_suffixes: Collision suffixes for operation response class names.
        enum_suffixes: Collision suffixes for enum names.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    response_status_prefixes: tuple[str, ...] = ("2",)
    output_filename: str = "generated_models.py"
    format_output: bool = True
    shared_enum_names: dict[str, str] = Field(default_factory=lambda: {"currency": "Currency"})
    class_suffixes: tuple[str, ...] = ("Model", "Type", "Entity", "Object", "Data")
    response_suffixes: tuple[str, ...] = ("Detail", "Extended", "Full", "Complete", "Info")
    enum_suffixes: tuple[str, ...] = ("Type", "Enum", "Values", "Options", "List")

    @field_validator("output_filename")
    @classmethod
    def _check_output_filename(cls, value: str) -> str:
        if not value.endswith(".py") or "/" in value or "\\" in value:
            raise ValueError(f"output_filename must be a plain .py file name, got {value!r}")
        return value

    @field_validator("shared_enum_names")
    @classmethod
    def _lowercase_shared_enum_keys(cls, value: dict[str, str]) -> dict[str, str]:
        return {key.lower(): name for key, name in value.items()}

    def includes_status(self, status_code: str) -> bool:
        """Return whether responses with ``status_code`` produce classes."""
        return any(status_code.startswith(prefix) for prefix in self.response_status_prefixes)


def load_settings(path: Path) -> GeneratorSettings:
    """Load generator settings from a YAML or JSON file.

    Args:
        path (Path): Settings file. ``.json`` files are parsed as JSON, anything
            else as YAML.

    Returns:
        GeneratorSettings: Validated settings.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SettingsError(f"Failed to read settings file {path}: {exc}") from exc

    try:
        if path.suffix.lower() == ".json":
            payload = json.loads(text)
        else:
            payload = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise SettingsError(f"Failed to parse settings file {path}: {exc}") from exc

    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise SettingsError(f"Settings file {path} must contain a mapping, got {type(payload)!r}")

    try:
        return GeneratorSettings.model_validate(payload)
    except ValidationError as exc:
        raise SettingsError(f"Invalid settings in {path}: {exc}") from exc
