"""Schema shape helpers and ``allOf`` flattening."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Optional

from .json_types import SchemaNode
from .resolver import ReferenceResolver

logger = logging.getLogger(__name__)


def is_object_schema(schema: SchemaNode) -> bool:
    """Return whether a schema behaves as an object schema."""
    return schema.get("type") == "object" or isinstance(schema.get("properties"), Mapping)


def get_properties(schema: SchemaNode) -> dict[str, SchemaNode]:
    """Return the declared properties of a schema, skipping malformed entries."""
    properties = schema.get("properties")
    if not isinstance(properties, Mapping):
        return {}
    return {
        name: prop
        for name, prop in properties.items()
        if isinstance(name, str) and isinstance(prop, Mapping)
    }


def get_required(schema: SchemaNode) -> list[str]:
    """Return the required property names declared by a schema."""
    required = schema.get("required")
    if not isinstance(required, list):
        return []
    return [name for name in required if isinstance(name, str)]


def string_or_none(value: object) -> Optional[str]:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped:
            return stripped
    return None


@dataclass(frozen=True)
class FlattenedSchema:
    """Effective fields of a schema after merging its composed parents.

    Attributes:
        properties: Effective properties. Parents come first, in ``allOf`` order;
            the schema's own declarations overlay last.
        required: Effective required names, de-duplicated in first-seen order.
        own_properties: Names the schema declares itself, directly or through
            inline ``allOf`` members.
        parents: Named parents with at least one field, each followed by its own
            ancestors, without repeats.
    """

    properties: dict[str, SchemaNode]
    required: tuple[str, ...]
    own_properties: frozenset[str] = frozenset()
    parents: tuple[str, ...] = ()
    description: Optional[str] = None

    @property
    def primary_parent(self) -> Optional[str]:
        return self.parents[0] if self.parents else None

    def is_required(self, name: str) -> bool:
        return name in self.required


@dataclass(frozen=True)
class AuxiliaryPlan:
    """Fields of one additional parent that the primary parent does not provide."""

    parent: str
    properties: dict[str, SchemaNode]
    required: tuple[str, ...]


@dataclass(frozen=True)
class InheritancePlan:
    """How a flattened schema maps onto single inheritance."""

    parent: Optional[str] = None
    inherited: frozenset[str] = frozenset()
    auxiliaries: tuple[AuxiliaryPlan, ...] = field(default_factory=tuple)


def flatten_schema(schema: SchemaNode, resolver: ReferenceResolver) -> FlattenedSchema:
    """Flatten one schema against the named schemas of ``resolver`` without caching."""
    return SchemaFlattener(resolver).flatten(schema)


class SchemaFlattener:
    """Merge ``allOf`` chains into effective field sets.

    Results for named schemas are cached; a schema reached again while it is
    being flattened contributes nothing, so cyclic ``allOf`` chains terminate.
    """

    def __init__(self, resolver: ReferenceResolver) -> None:
        self._resolver = resolver
        self._named_cache: dict[str, FlattenedSchema] = {}

    def flatten_named(self, name: str) -> Optional[FlattenedSchema]:
        """Flatten a named schema, or return ``None`` if it is not declared."""
        cached = self._named_cache.get(name)
        if cached is not None:
            return cached
        schema = self._resolver.get(name)
        if schema is None:
            return None
        flattened = self._flatten(schema, visiting=(name,))
        self._named_cache[name] = flattened
        return flattened

    def flatten(self, schema: SchemaNode, *, name: Optional[str] = None) -> FlattenedSchema:
        """Flatten ``schema``; ``name`` is its declared name when it has one."""
        if name is not None:
            flattened = self.flatten_named(name)
            if flattened is not None:
                return flattened
        return self._flatten(schema, visiting=())

    def _flatten(self, schema: SchemaNode, *, visiting: tuple[str, ...]) -> FlattenedSchema:
        properties: dict[str, SchemaNode] = {}
        required: list[str] = []
        own: set[str] = set()
        parents: list[str] = []

        members: list[SchemaNode] = []
        all_of = schema.get("allOf")
        if isinstance(all_of, list):
            members.extend(member for member in all_of if isinstance(member, Mapping))
        elif isinstance(schema.get("$ref"), str):
            members.append({"$ref": schema["$ref"]})

        for member in members:
            ref = member.get("$ref")
            if isinstance(ref, str):
                resolved = self._resolver.resolve(ref)
                if resolved is None:
                    logger.debug("Skipping unresolvable allOf member %s", ref)
                    continue
                if resolved.name in visiting:
                    logger.debug("Cyclic allOf chain through %s", resolved.name)
                    continue
                parent = self._flatten(resolved.schema, visiting=(*visiting, resolved.name))
                properties.update(parent.properties)
                required.extend(parent.required)
                if parent.properties:
                    parents.append(resolved.name)
                    parents.extend(parent.parents)
                continue

            inline = self._flatten(member, visiting=visiting)
            properties.update(inline.properties)
            required.extend(inline.required)
            own.update(inline.own_properties)
            parents.extend(inline.parents)

        declared = get_properties(schema)
        properties.update(declared)
        own.update(declared)
        required.extend(get_required(schema))

        return FlattenedSchema(
            properties=properties,
            required=tuple(dict.fromkeys(required)),
            own_properties=frozenset(own),
            parents=tuple(dict.fromkeys(parents)),
            description=string_or_none(schema.get("description")),
        )

    def plan_inheritance(
        self,
        flattened: FlattenedSchema,
        *,
        name: Optional[str] = None,
    ) -> InheritancePlan:
        """Split a flattened schema into a primary parent and auxiliary field sets.

        Args:
            flattened (FlattenedSchema): The schema to plan for.
            name (Optional[str]): Declared name of the schema, used to refuse an
                inheritance chain that leads back to the schema itself.

        Returns:
            InheritancePlan: Direct parent, the fields inherited from it unchanged,
            and one auxiliary plan per additional parent with unique fields.
        """
        primary = flattened.primary_parent
        if primary is None:
            return InheritancePlan()
        primary_flat = self.flatten_named(primary)
        if primary_flat is None or (name is not None and name in primary_flat.parents):
            logger.debug("Not inheriting %s from %s", name, primary)
            return InheritancePlan()

        inherited = frozenset(
            field_name
            for field_name, prop in flattened.properties.items()
            if field_name not in flattened.own_properties
            and primary_flat.properties.get(field_name) == prop
            and flattened.is_required(field_name) == primary_flat.is_required(field_name)
        )

        seen = set(primary_flat.properties)
        auxiliaries: list[AuxiliaryPlan] = []
        for extra in flattened.parents[1:]:
            if extra in primary_flat.parents:
                continue
            extra_flat = self.flatten_named(extra)
            if extra_flat is None:
                continue
            unique = {
                field_name: prop
                for field_name, prop in extra_flat.properties.items()
                if field_name not in seen
            }
            seen.update(unique)
            if unique:
                auxiliaries.append(
                    AuxiliaryPlan(
                        parent=extra,
                        properties=unique,
                        required=tuple(req for req in extra_flat.required if req in unique),
                    )
                )
        return InheritancePlan(parent=primary, inherited=inherited, auxiliaries=tuple(auxiliaries))
