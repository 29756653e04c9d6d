"""Internal datatypes describing generated declarations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, TypeAlias, Union

from .json_types import EnumValue, JSONObject

ValidationArgument: TypeAlias = Union[str, int, float, None]


class TypeKind(str, Enum):
    """Output type categories a generated property can have."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    CLASS = "class"
    ENUM = "enum"
    ARRAY = "array"
    UNION = "union"
    MAP = "map"
    ANY = "any"


@dataclass(frozen=True)
class TypeRef:
    """Reference to the output type of a property.

    ``name`` is set for ``CLASS`` and ``ENUM`` kinds. ``members`` holds the single
    element type of an ``ARRAY`` and the alternatives of a ``UNION``.
    """

    kind: TypeKind
    name: Optional[str] = None
    members: tuple[TypeRef, ...] = ()

    @classmethod
    def of(cls, kind: TypeKind) -> TypeRef:
        return cls(kind=kind)

    @classmethod
    def named(cls, kind: TypeKind, name: str) -> TypeRef:
        return cls(kind=kind, name=name)

    @classmethod
    def array_of(cls, item: TypeRef) -> TypeRef:
        return cls(kind=TypeKind.ARRAY, members=(item,))

    @classmethod
    def union_of(cls, members: tuple[TypeRef, ...]) -> TypeRef:
        deduped: list[TypeRef] = []
        for member in members:
            if member not in deduped:
                deduped.append(member)
        if len(deduped) == 1:
            return deduped[0]
        return cls(kind=TypeKind.UNION, members=tuple(deduped))

    @property
    def item(self) -> TypeRef:
        if self.kind is not TypeKind.ARRAY:
            raise ValueError(f"{self.kind.value} type has no item type")
        return self.members[0] if self.members else TypeRef.of(TypeKind.ANY)


class ValidationKind(str, Enum):
    """Per-field validation annotations."""

    OPTIONAL = "optional"
    STRING = "string"
    INT = "int"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ARRAY = "array"
    OBJECT = "object"
    NESTED = "nested"
    ENUM = "enum"
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    MIN = "min"
    MAX = "max"
    POSITIVE = "positive"
    NEGATIVE = "negative"
    PATTERN = "pattern"
    EMAIL = "email"
    URL = "url"
    UUID = "uuid"
    IP = "ip"
    LATITUDE = "latitude"
    LONGITUDE = "longitude"
    CREDIT_CARD = "credit_card"
    PHONE_NUMBER = "phone_number"
    POSTAL_CODE = "postal_code"
    MONGO_ID = "mongo_id"


@dataclass(frozen=True)
class Validation:
    """One validation annotation, optionally applied to each array element."""

    kind: ValidationKind
    argument: ValidationArgument = None
    each: bool = False


@dataclass(frozen=True)
class GeneratedProperty:
    """A field of a generated class."""

    name: str
    source_name: str
    required: bool
    type_ref: TypeRef
    validations: tuple[Validation, ...]
    nullable: bool = False
    description: Optional[str] = None


class ClassRole(str, Enum):
    """Where a generated class comes from."""

    SCHEMA = "schema"
    RESPONSE = "response"
    NESTED = "nested"
    AUXILIARY = "auxiliary"


@dataclass(frozen=True)
class ParentLink:
    """Inheritance of a generated class.

    With no ``auxiliaries`` this is plain single inheritance. Otherwise the schema
    was composed from several named parents: ``parent`` is the real base class and
    each auxiliary class only surfaces the fields of one additional parent. The
    auxiliaries are not base classes of the generated class.
    """

    parent: str
    auxiliaries: tuple[str, ...] = ()

    @property
    def is_approximated(self) -> bool:
        return bool(self.auxiliaries)


@dataclass(frozen=True)
class AuxiliaryOrigin:
    """Records which class and which additional parent an auxiliary class stands for."""

    owner: str
    parent: str


@dataclass(frozen=True)
class GeneratedClass:
    """A generated model class."""

    name: str
    role: ClassRole
    properties: tuple[GeneratedProperty, ...]
    inheritance: Optional[ParentLink] = None
    description: Optional[str] = None
    auxiliary_origin: Optional[AuxiliaryOrigin] = None
    source_name: Optional[str] = None

    @property
    def parent(self) -> Optional[str]:
        return self.inheritance.parent if self.inheritance is not None else None

    @property
    def is_derived(self) -> bool:
        return self.inheritance is not None

    def property_named(self, source_name: str) -> Optional[GeneratedProperty]:
        for prop in self.properties:
            if prop.source_name == source_name:
                return prop
        return None


@dataclass(frozen=True)
class EnumMember:
    """One member of a generated enumeration."""

    key: str
    value: EnumValue


@dataclass(frozen=True)
class GeneratedEnum:
    """A generated enumeration, declared once per unique value set."""

    name: str
    members: tuple[EnumMember, ...]
    source_name: Optional[str] = None

    @property
    def values(self) -> tuple[EnumValue, ...]:
        return tuple(member.value for member in self.members)


@dataclass(frozen=True)
class OperationSpec:
    """Normalized operation metadata extracted from OpenAPI paths."""

    path: str
    method: str
    name: str
    operation: JSONObject


@dataclass(frozen=True)
class GenerationResult:
    """Ordered emission units of one generation run."""

    enums: tuple[GeneratedEnum, ...]
    base_classes: tuple[GeneratedClass, ...]
    derived_classes: tuple[GeneratedClass, ...]
    emission_order: tuple[str, ...]
    warnings: tuple[str, ...]

    @property
    def classes(self) -> tuple[GeneratedClass, ...]:
        return (*self.base_classes, *self.derived_classes)

    def find_class(self, name: str) -> Optional[GeneratedClass]:
        for generated in self.classes:
            if generated.name == name:
                return generated
        return None

    def find_enum(self, name: str) -> Optional[GeneratedEnum]:
        for generated in self.enums:
            if generated.name == name:
                return generated
        return None
