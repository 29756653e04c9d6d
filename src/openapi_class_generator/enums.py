"""Enumeration collection and structural de-duplication."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping, Sequence
from typing import Optional

from .json_types import EnumValue, JSONValue
from .model_types import EnumMember, GeneratedEnum
from .naming import NameAllocator, pascal_case

logger = logging.getLogger(__name__)

_MEMBER_KEY_RE = re.compile(r"[^a-zA-Z0-9_]")


def enum_values(raw: JSONValue) -> tuple[EnumValue, ...]:
    """Return the literal values of an ``enum`` list, without ``null`` and containers."""
    if not isinstance(raw, list):
        return ()
    return tuple(value for value in raw if isinstance(value, (str, int, float, bool)))


def canonical_enum_key(values: Sequence[EnumValue]) -> str:
    """Serialize a value set independently of declaration order."""
    return json.dumps(sorted(json.dumps(value) for value in values))


def enum_member_key(value: EnumValue, index: int) -> str:
    """Derive the symbolic member name for one enum value."""
    if not isinstance(value, str):
        return f"VALUE_{index}"
    key = _MEMBER_KEY_RE.sub("_", value).upper()
    if not key:
        return f"VALUE_{index}"
    if not key[0].isalpha():
        return f"VALUE_{key}"
    return key


def build_enum_members(values: Sequence[EnumValue]) -> tuple[EnumMember, ...]:
    """Build enum members in declaration order with unique keys."""
    members: list[EnumMember] = []
    used: set[str] = set()
    for index, value in enumerate(values):
        key = enum_member_key(value, index)
        unique = key
        counter = 2
        while unique in used:
            unique = f"{key}_{counter}"
            counter += 1
        used.add(unique)
        members.append(EnumMember(key=unique, value=value))
    return tuple(members)


class EnumRegistry:
    """Collect generated enumerations, one declaration per unique value set."""

    def __init__(
        self,
        allocator: NameAllocator,
        *,
        shared_names: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._allocator = allocator
        self._shared_names = dict(shared_names or {})
        self._declarations: dict[str, GeneratedEnum] = {}
        self._names_by_key: dict[str, str] = {}

    @property
    def enums(self) -> tuple[GeneratedEnum, ...]:
        return tuple(self._declarations.values())

    def lookup(self, values: Sequence[EnumValue]) -> Optional[str]:
        """Return the enum already declared for an equal value set."""
        return self._names_by_key.get(canonical_enum_key(values))

    def register_named(
        self,
        name: str,
        values: Sequence[EnumValue],
        *,
        source_name: Optional[str] = None,
    ) -> GeneratedEnum:
        """Declare a top-level enumeration under an already allocated name.

        Later inline enumerations with the same value set reuse this name.
        """
        declaration = GeneratedEnum(
            name=name,
            members=build_enum_members(values),
            source_name=source_name,
        )
        self._declarations[name] = declaration
        self._names_by_key.setdefault(canonical_enum_key(values), name)
        return declaration

    def register_inline(
        self,
        *,
        property_name: str,
        values: Sequence[EnumValue],
        context: str,
    ) -> str:
        """Return the enum name for an inline enumeration, declaring it on first sight.

        Args:
            property_name (str): Property carrying the enumeration.
            values (Sequence[EnumValue]): Allowed literal values.
            context (str): Owning schema or operation name.

        Returns:
            str: Name of the new or reused enumeration.
        """
        key = canonical_enum_key(values)
        existing = self._names_by_key.get(key)
        if existing is not None:
            logger.debug("Reusing enum %s for %s.%s", existing, context, property_name)
            return existing

        base_name = self._preferred_name(property_name=property_name, context=context)
        name = self._allocator.allocate(("enum", key), preferred=base_name, alternate=base_name)
        self._declarations[name] = GeneratedEnum(
            name=name,
            members=build_enum_members(values),
            source_name=f"{context}.{property_name}",
        )
        self._names_by_key[key] = name
        return name

    def _preferred_name(self, *, property_name: str, context: str) -> str:
        lowered = property_name.lower()
        shared = self._shared_names.get(lowered)
        if shared is not None:
            return shared
        if lowered == "status":
            return f"{pascal_case(context)}Status"
        return f"{pascal_case(context)}{pascal_case(property_name)}"
