"""Reference resolution against ``components.schemas``."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Optional

from .json_types import JSONObject, SchemaNode

logger = logging.getLogger(__name__)

SCHEMA_REF_PREFIX = "#/components/schemas/"

_PRIMITIVE_TYPES = frozenset({"string", "number", "integer", "boolean"})
_ENUM_TYPES = frozenset({"string", "number", "integer"})


@dataclass(frozen=True)
class ResolvedReference:
    """A resolved schema together with the name it is declared under."""

    name: str
    schema: SchemaNode

    @property
    def is_enum(self) -> bool:
        return is_enum_schema(self.schema)

    @property
    def is_primitive(self) -> bool:
        return self.schema.get("type") in _PRIMITIVE_TYPES


def schema_name_from_ref(ref: str) -> Optional[str]:
    """Return the schema name a local component reference points to."""
    if not ref.startswith(SCHEMA_REF_PREFIX):
        return None
    token = ref[len(SCHEMA_REF_PREFIX) :]
    if not token or "/" in token:
        return None
    return token.replace("~1", "/").replace("~0", "~")


def is_enum_schema(schema: SchemaNode) -> bool:
    """Return whether a schema declares a primitive enumeration."""
    enum = schema.get("enum")
    if not isinstance(enum, list):
        return False
    if not any(isinstance(value, (str, int, float, bool)) for value in enum):
        return False
    schema_type = schema.get("type")
    return schema_type is None or schema_type in _ENUM_TYPES


def get_component_schemas(document: JSONObject) -> Mapping[str, SchemaNode]:
    """Return the named schemas of a document, or an empty mapping."""
    components = document.get("components")
    if not isinstance(components, Mapping):
        return {}
    schemas = components.get("schemas")
    if not isinstance(schemas, Mapping):
        return {}
    return {
        name: schema
        for name, schema in schemas.items()
        if isinstance(name, str) and isinstance(schema, Mapping)
    }


class ReferenceResolver:
    """Resolve local schema references without modifying the document."""

    def __init__(self, document: JSONObject) -> None:
        self._schemas = get_component_schemas(document)

    def get(self, name: str) -> Optional[SchemaNode]:
        """Return a named schema by its declared name."""
        return self._schemas.get(name)

    def items(self) -> Iterator[tuple[str, SchemaNode]]:
        yield from self._schemas.items()

    def resolve(self, ref: str) -> Optional[ResolvedReference]:
        """Resolve ``ref`` to the schema it names.

        Args:
            ref (str): A reference string such as ``#/components/schemas/Pet``.

        Returns:
            Optional[ResolvedReference]: The schema and its declared name, or
            ``None`` when the reference has another shape or names a schema the
            document does not declare.
        """
        name = schema_name_from_ref(ref)
        if name is None:
            logger.debug("Unsupported reference shape: %s", ref)
            return None
        schema = self._schemas.get(name)
        if schema is None:
            logger.debug("Reference target not declared: %s", ref)
            return None
        return ResolvedReference(name=name, schema=schema)

    def resolve_node(self, node: SchemaNode) -> Optional[ResolvedReference]:
        """Resolve the ``$ref`` of a schema node, if it has one."""
        ref = node.get("$ref")
        if not isinstance(ref, str):
            return None
        return self.resolve(ref)
