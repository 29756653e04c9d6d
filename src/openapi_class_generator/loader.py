"""Schema document loading from JSON or YAML files."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import yaml

from .json_types import JSONObject, JSONValue

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = (".yaml", ".yml")


class SchemaLoadError(RuntimeError):
    """Raised when a source schema document cannot be loaded."""


def load_schema_document(path: Path) -> JSONObject:
    """Load an OpenAPI document from YAML or JSON.

    The format is chosen from the file extension: ``.yaml`` and ``.yml`` are
    read as YAML, everything else as JSON.

    Args:
        path (Path): Path to the document.

    Returns:
        JSONObject: The parsed document.
    """
    try:
        with path.open("r", encoding="utf-8") as handle:
            text = handle.read()
    except OSError as exc:
        raise SchemaLoadError(f"Failed to read schema document {path}: {exc}") from exc

    is_yaml = path.suffix.lower() in _YAML_SUFFIXES
    logger.debug("Parsing %s as %s", path, "YAML" if is_yaml else "JSON")
    try:
        payload = yaml.safe_load(text) if is_yaml else json.loads(text)
    except yaml.YAMLError as exc:
        raise SchemaLoadError(f"Failed to parse YAML in {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise SchemaLoadError(f"Failed to parse JSON in {path}: {exc}") from exc

    return ensure_document(payload, source=str(path))


def ensure_document(payload: JSONValue, *, source: str = "<document>") -> JSONObject:
    """Check the top-level shape of a parsed document.

    Only the containers the generator walks are checked; the document is not
    validated against the OpenAPI meta-schema.
    """
    if not isinstance(payload, dict):
        raise SchemaLoadError(f"Schema document {source} must be a mapping, got {type(payload)!r}")

    paths = payload.get("paths", {})
    if not isinstance(paths, dict):
        raise SchemaLoadError(f"Schema document {source} has a non-mapping 'paths' entry")

    components = payload.get("components", {})
    if components is not None and not isinstance(components, dict):
        raise SchemaLoadError(f"Schema document {source} has a non-mapping 'components' entry")
    if isinstance(components, dict):
        schemas = components.get("schemas", {})
        if schemas is not None and not isinstance(schemas, dict):
            raise SchemaLoadError(
                f"Schema document {source} has a non-mapping 'components.schemas' entry"
            )
    return payload
