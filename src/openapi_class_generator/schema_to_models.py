"""Convert named schemas and operation responses into class declarations."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Optional

from .enums import EnumRegistry, enum_values
from .json_types import JSONObject, SchemaNode
from .model_types import (
    AuxiliaryOrigin,
    ClassRole,
    GeneratedClass,
    GeneratedProperty,
    OperationSpec,
    ParentLink,
    TypeKind,
    TypeRef,
    Validation,
    ValidationKind,
)
from .naming import NameAllocator, PropertyNameScope, pascal_case
from .resolver import ReferenceResolver
from .schema_utils import FlattenedSchema, SchemaFlattener, is_object_schema, string_or_none
from .settings import GeneratorSettings
from .validations import field_validations

logger = logging.getLogger(__name__)

_PRIMITIVE_KINDS: dict[str, TypeKind] = {
    "string": TypeKind.STRING,
    "integer": TypeKind.INTEGER,
    "number": TypeKind.NUMBER,
    "boolean": TypeKind.BOOLEAN,
}
_EACH_ITEM_VALIDATIONS: dict[TypeKind, ValidationKind] = {
    TypeKind.STRING: ValidationKind.STRING,
    TypeKind.INTEGER: ValidationKind.NUMBER,
    TypeKind.NUMBER: ValidationKind.NUMBER,
    TypeKind.BOOLEAN: ValidationKind.BOOLEAN,
}


@dataclass
class GenerationContext:
    """Mutable state shared by everything one generation run emits.

    Class and enum names are drawn from one namespace so that no emitted
    declaration shadows another. Field identifiers stay out of that namespace,
    and names synthesized later never reuse an emitted field identifier.
    """

    resolver: ReferenceResolver
    flattener: SchemaFlattener
    settings: GeneratorSettings
    class_names: NameAllocator
    enum_registry: EnumRegistry
    namespace: set[str] = field(default_factory=set)
    field_names: set[str] = field(default_factory=set)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def create(cls, document: JSONObject, settings: GeneratorSettings) -> GenerationContext:
        resolver = ReferenceResolver(document)
        namespace: set[str] = set()
        field_names: set[str] = set()
        class_names = NameAllocator(
            suffixes=settings.class_suffixes,
            namespace=namespace,
            blocked=field_names,
            label="class name",
        )
        enum_names = NameAllocator(
            suffixes=settings.enum_suffixes,
            namespace=namespace,
            blocked=field_names,
            label="enum name",
        )
        return cls(
            resolver=resolver,
            flattener=SchemaFlattener(resolver),
            settings=settings,
            class_names=class_names,
            enum_registry=EnumRegistry(enum_names, shared_names=settings.shared_enum_names),
            namespace=namespace,
            field_names=field_names,
        )

    def warn(self, message: str) -> None:
        if message not in self.warnings:
            logger.warning(message)
            self.warnings.append(message)


@dataclass(frozen=True)
class _ResolvedType:
    type_ref: TypeRef
    validations: tuple[Validation, ...] = ()
    nullable: bool = False


_ANY = _ResolvedType(TypeRef.of(TypeKind.ANY))


class SchemaConverter:
    """Create class declarations from named schemas and response schemas.

    Every call returns the classes it produced in emission order: classes a
    declaration depends on structurally (nested and auxiliary classes) come
    before it.
    """

    def __init__(self, context: GenerationContext) -> None:
        self._context = context

    def class_name_for_schema(self, schema_name: str) -> str:
        """Return the output name of a named schema, allocating it on first use."""
        return self._context.class_names.allocate(
            ("schema", schema_name),
            preferred=schema_name,
            alternate=pascal_case(schema_name),
        )

    def is_class_schema(self, schema_name: str) -> bool:
        """Return whether a named schema is emitted as a class."""
        return self._class_fields(schema_name) is not None

    def reserve_schema_class_names(self, schema_names: Iterable[str]) -> None:
        """Allocate the class names of named schemas before any field is named."""
        for schema_name in schema_names:
            if self.is_class_schema(schema_name):
                self.class_name_for_schema(schema_name)

    def build_schema_classes(self, schema_name: str) -> list[GeneratedClass]:
        """Build the class for a named schema plus its nested and auxiliary classes.

        Schemas whose effective field set is empty produce nothing.
        """
        flattened = self._class_fields(schema_name)
        if flattened is None:
            logger.debug("Schema %s has no fields; not emitted as a class", schema_name)
            return []
        return self._build_composed_class(
            class_name=self.class_name_for_schema(schema_name),
            role=ClassRole.SCHEMA,
            flattened=flattened,
            schema_name=schema_name,
            context_name=schema_name,
            source_name=schema_name,
        )

    def build_response_classes(self, operation: OperationSpec) -> list[GeneratedClass]:
        """Build one class per selected response status and content type of an operation.

        Args:
            operation (OperationSpec): The operation whose responses are converted.

        Returns:
            list[GeneratedClass]: Response classes preceded by their nested and
            auxiliary classes. Responses without an object-like schema are skipped.
        """
        responses = operation.operation.get("responses")
        if not isinstance(responses, Mapping):
            return []

        classes: list[GeneratedClass] = []
        for raw_status, response in responses.items():
            status = str(raw_status)
            if not self._context.settings.includes_status(status):
                continue
            if not isinstance(response, Mapping):
                continue
            content = response.get("content")
            if not isinstance(content, Mapping):
                continue

            for content_type, media in content.items():
                if not isinstance(media, Mapping) or not isinstance(media.get("schema"), Mapping):
                    continue
                schema: SchemaNode = media["schema"]
                flattened = self._context.flattener.flatten(schema)
                if not flattened.properties:
                    logger.debug(
                        "Response %s %s of %s has no fields", status, content_type, operation.name
                    )
                    continue

                status_token = "".join(char for char in status if char.isalnum())
                preferred = f"{pascal_case(operation.name)}{status_token}Response"
                class_name = self._context.class_names.allocate(
                    ("response", operation.method, operation.path, status, str(content_type)),
                    preferred=preferred,
                    alternate=preferred,
                    suffixes=self._context.settings.response_suffixes,
                )
                classes.extend(
                    self._build_composed_class(
                        class_name=class_name,
                        role=ClassRole.RESPONSE,
                        flattened=flattened,
                        schema_name=None,
                        context_name=operation.name,
                        source_name=(
                            f"{operation.method.upper()} {operation.path} {status} {content_type}"
                        ),
                    )
                )
        return classes

    def _class_fields(self, schema_name: str) -> Optional[FlattenedSchema]:
        schema = self._context.resolver.get(schema_name)
        if schema is None or enum_values(schema.get("enum")):
            return None
        flattened = self._context.flattener.flatten_named(schema_name)
        if flattened is None or not flattened.properties:
            return None
        return flattened

    def _build_composed_class(
        self,
        *,
        class_name: str,
        role: ClassRole,
        flattened: FlattenedSchema,
        schema_name: Optional[str],
        context_name: str,
        source_name: str,
    ) -> list[GeneratedClass]:
        plan = self._context.flattener.plan_inheritance(flattened, name=schema_name)
        classes: list[GeneratedClass] = []

        auxiliary_names: list[str] = []
        for auxiliary in plan.auxiliaries:
            parent_class = self.class_name_for_schema(auxiliary.parent)
            auxiliary_name = self._context.class_names.allocate(
                ("auxiliary", class_name, auxiliary.parent),
                preferred=f"{class_name}With{parent_class}",
            )
            properties = self._build_properties(
                auxiliary.properties,
                required=auxiliary.required,
                owner=auxiliary_name,
                context_name=auxiliary.parent,
                nested=classes,
            )
            classes.append(
                GeneratedClass(
                    name=auxiliary_name,
                    role=ClassRole.AUXILIARY,
                    properties=properties,
                    auxiliary_origin=AuxiliaryOrigin(owner=class_name, parent=parent_class),
                    source_name=auxiliary.parent,
                )
            )
            auxiliary_names.append(auxiliary_name)

        own_fields = {
            name: prop
            for name, prop in flattened.properties.items()
            if name not in plan.inherited
        }
        properties = self._build_properties(
            own_fields,
            required=flattened.required,
            owner=class_name,
            context_name=context_name,
            nested=classes,
        )

        inheritance = None
        if plan.parent is not None:
            inheritance = ParentLink(
                parent=self.class_name_for_schema(plan.parent),
                auxiliaries=tuple(auxiliary_names),
            )
        classes.append(
            GeneratedClass(
                name=class_name,
                role=role,
                properties=properties,
                inheritance=inheritance,
                description=flattened.description,
                source_name=source_name,
            )
        )
        return classes

    def _build_properties(
        self,
        properties: Mapping[str, SchemaNode],
        *,
        required: tuple[str, ...],
        owner: str,
        context_name: str,
        nested: list[GeneratedClass],
    ) -> tuple[GeneratedProperty, ...]:
        scope = PropertyNameScope(self._context.namespace)
        built = tuple(
            self._build_property(
                source_name,
                schema,
                required=source_name in required,
                scope=scope,
                owner=owner,
                context_name=context_name,
                nested=nested,
            )
            for source_name, schema in properties.items()
        )
        self._context.field_names.update(prop.name for prop in built)
        return built

    def _build_property(
        self,
        source_name: str,
        schema: SchemaNode,
        *,
        required: bool,
        scope: PropertyNameScope,
        owner: str,
        context_name: str,
        nested: list[GeneratedClass],
    ) -> GeneratedProperty:
        schema, nullable = _split_null_type(schema)
        validations = field_validations(
            self._validation_schema(schema),
            property_name=source_name,
            required=required,
        )
        resolved = self._resolve_type(
            schema,
            property_name=source_name,
            owner=owner,
            context_name=context_name,
            nested=nested,
            seen_refs=(),
        )
        validations.extend(resolved.validations)
        return GeneratedProperty(
            name=scope.allocate(source_name),
            source_name=source_name,
            required=required,
            type_ref=resolved.type_ref,
            validations=tuple(validations),
            nullable=nullable or resolved.nullable or schema.get("nullable") is True,
            description=string_or_none(schema.get("description")),
        )

    def _validation_schema(self, schema: SchemaNode) -> SchemaNode:
        """Follow references to schemas that are emitted structurally."""
        current = schema
        seen: set[str] = set()
        while True:
            resolved = self._context.resolver.resolve_node(current)
            if (
                resolved is None
                or resolved.name in seen
                or resolved.is_enum
                or self.is_class_schema(resolved.name)
            ):
                return current
            seen.add(resolved.name)
            current, _ = _split_null_type(resolved.schema)

    def _resolve_type(
        self,
        schema: SchemaNode,
        *,
        property_name: str,
        owner: str,
        context_name: str,
        nested: list[GeneratedClass],
        seen_refs: tuple[str, ...],
        object_suffix: str = "Object",
    ) -> _ResolvedType:
        if isinstance(schema.get("$ref"), str):
            return self._resolve_ref(
                schema,
                property_name=property_name,
                owner=owner,
                context_name=context_name,
                nested=nested,
                seen_refs=seen_refs,
                object_suffix=object_suffix,
            )

        all_of = schema.get("allOf")
        if isinstance(all_of, list) and all_of:
            members = [member for member in all_of if isinstance(member, Mapping)]
            if len(members) == 1 and isinstance(members[0].get("$ref"), str):
                return self._resolve_type(
                    members[0],
                    property_name=property_name,
                    owner=owner,
                    context_name=context_name,
                    nested=nested,
                    seen_refs=seen_refs,
                    object_suffix=object_suffix,
                )
            return self._resolve_object(
                schema,
                property_name=property_name,
                suffix=object_suffix,
                owner=owner,
                context_name=context_name,
                nested=nested,
            )

        for composite in ("oneOf", "anyOf"):
            options = schema.get(composite)
            if isinstance(options, list) and options:
                return self._resolve_union(
                    [option for option in options if isinstance(option, Mapping)],
                    property_name=property_name,
                    owner=owner,
                    context_name=context_name,
                    nested=nested,
                    seen_refs=seen_refs,
                )

        schema_type = schema.get("type")
        if schema_type == "string":
            values = enum_values(schema.get("enum"))
            if values:
                enum_name = self._context.enum_registry.register_inline(
                    property_name=property_name,
                    values=values,
                    context=context_name,
                )
                return _ResolvedType(
                    TypeRef.named(TypeKind.ENUM, enum_name),
                    (Validation(ValidationKind.ENUM, enum_name),),
                    nullable=_enum_allows_null(schema),
                )
            if schema.get("format") == "date":
                return _ResolvedType(TypeRef.of(TypeKind.DATE))
            if schema.get("format") == "date-time":
                return _ResolvedType(TypeRef.of(TypeKind.DATETIME))
            return _ResolvedType(TypeRef.of(TypeKind.STRING))

        if isinstance(schema_type, str) and schema_type in _PRIMITIVE_KINDS:
            return _ResolvedType(TypeRef.of(_PRIMITIVE_KINDS[schema_type]))

        if schema_type == "array":
            return self._resolve_array(
                schema,
                property_name=property_name,
                owner=owner,
                context_name=context_name,
                nested=nested,
                seen_refs=seen_refs,
            )

        if is_object_schema(schema):
            return self._resolve_object(
                schema,
                property_name=property_name,
                suffix=object_suffix,
                owner=owner,
                context_name=context_name,
                nested=nested,
            )

        return _ANY

    def _resolve_ref(
        self,
        schema: SchemaNode,
        *,
        property_name: str,
        owner: str,
        context_name: str,
        nested: list[GeneratedClass],
        seen_refs: tuple[str, ...],
        object_suffix: str,
    ) -> _ResolvedType:
        resolved = self._context.resolver.resolve_node(schema)
        if resolved is None:
            self._context.warn(
                f"Unresolvable reference {schema.get('$ref')} in {owner}.{property_name}; "
                "typed as Any"
            )
            return _ANY

        if resolved.is_enum:
            enum_name = self.class_name_for_schema(resolved.name)
            return _ResolvedType(
                TypeRef.named(TypeKind.ENUM, enum_name),
                (Validation(ValidationKind.ENUM, enum_name),),
                nullable=_enum_allows_null(resolved.schema),
            )

        if self.is_class_schema(resolved.name):
            return _ResolvedType(
                TypeRef.named(TypeKind.CLASS, self.class_name_for_schema(resolved.name)),
                (Validation(ValidationKind.NESTED),),
            )

        if resolved.name in seen_refs:
            logger.debug("Reference cycle through %s; typed as Any", resolved.name)
            return _ANY
        target, nullable = _split_null_type(resolved.schema)
        structural = self._resolve_type(
            target,
            property_name=property_name,
            owner=owner,
            context_name=context_name,
            nested=nested,
            seen_refs=(*seen_refs, resolved.name),
            object_suffix=object_suffix,
        )
        if nullable:
            return _ResolvedType(structural.type_ref, structural.validations, nullable=True)
        return structural

    def _resolve_union(
        self,
        options: list[SchemaNode],
        *,
        property_name: str,
        owner: str,
        context_name: str,
        nested: list[GeneratedClass],
        seen_refs: tuple[str, ...],
    ) -> _ResolvedType:
        members: list[TypeRef] = []
        nullable = False
        for index, option in enumerate(options):
            if option.get("type") == "null":
                nullable = True
                continue
            resolved = self._resolve_type(
                option,
                property_name=f"{property_name}_option{index + 1}",
                owner=owner,
                context_name=context_name,
                nested=nested,
                seen_refs=seen_refs,
            )
            members.append(resolved.type_ref)
            nullable = nullable or resolved.nullable
        if not members:
            return _ResolvedType(_ANY.type_ref, nullable=nullable)
        return _ResolvedType(TypeRef.union_of(tuple(members)), nullable=nullable)

    def _resolve_array(
        self,
        schema: SchemaNode,
        *,
        property_name: str,
        owner: str,
        context_name: str,
        nested: list[GeneratedClass],
        seen_refs: tuple[str, ...],
    ) -> _ResolvedType:
        items = schema.get("items")
        if not isinstance(items, Mapping):
            return _ResolvedType(TypeRef.array_of(TypeRef.of(TypeKind.ANY)))

        item = self._resolve_type(
            items,
            property_name=property_name,
            owner=owner,
            context_name=context_name,
            nested=nested,
            seen_refs=seen_refs,
            object_suffix="Item",
        )
        item_type = item.type_ref
        if item_type.kind is TypeKind.ARRAY:
            # Per-element annotations only apply one level deep.
            return _ResolvedType(TypeRef.array_of(item_type))

        validations = tuple(
            Validation(validation.kind, validation.argument, each=True)
            for validation in item.validations
        )
        if not validations and item_type.kind in _EACH_ITEM_VALIDATIONS:
            validations = (Validation(_EACH_ITEM_VALIDATIONS[item_type.kind], each=True),)
        return _ResolvedType(TypeRef.array_of(item_type), validations)

    def _resolve_object(
        self,
        schema: SchemaNode,
        *,
        property_name: str,
        suffix: str,
        owner: str,
        context_name: str,
        nested: list[GeneratedClass],
    ) -> _ResolvedType:
        flattened = self._context.flattener.flatten(schema)
        if not flattened.properties:
            return _ResolvedType(TypeRef.of(TypeKind.MAP))

        base = f"{pascal_case(property_name)}{suffix}"
        class_name = self._context.class_names.allocate(
            ("nested", owner, property_name, suffix),
            preferred=base,
            alternate=f"{owner}{base}",
        )
        properties = self._build_properties(
            flattened.properties,
            required=flattened.required,
            owner=class_name,
            context_name=context_name,
            nested=nested,
        )
        nested.append(
            GeneratedClass(
                name=class_name,
                role=ClassRole.NESTED,
                properties=properties,
                description=flattened.description,
                source_name=f"{owner}.{property_name}",
            )
        )
        return _ResolvedType(
            TypeRef.named(TypeKind.CLASS, class_name),
            (Validation(ValidationKind.NESTED),),
        )


def _split_null_type(schema: SchemaNode) -> tuple[SchemaNode, bool]:
    """Reduce ``type: [T, "null"]`` to ``T`` and report whether null was allowed."""
    schema_type = schema.get("type")
    if not isinstance(schema_type, list):
        return schema, False
    concrete = [member for member in schema_type if member != "null"]
    nullable = len(concrete) != len(schema_type)
    if len(concrete) == 1:
        return {**schema, "type": concrete[0]}, nullable
    reduced = {key: value for key, value in schema.items() if key != "type"}
    if concrete:
        reduced["anyOf"] = [{"type": member} for member in concrete]
    return reduced, nullable


def _enum_allows_null(schema: SchemaNode) -> bool:
    raw = schema.get("enum")
    return isinstance(raw, list) and None in raw
