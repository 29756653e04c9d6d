"""Unit tests for enumeration collection and de-duplication."""

from __future__ import annotations

from openapi_class_generator.enums import (
    EnumRegistry,
    build_enum_members,
    canonical_enum_key,
    enum_member_key,
    enum_values,
)
from openapi_class_generator.naming import NameAllocator


def _registry(**kwargs: object) -> EnumRegistry:
    allocator = NameAllocator(suffixes=("Type", "Enum"), label="enum name")
    return EnumRegistry(allocator, **kwargs)  # type: ignore[arg-type]


def test_canonical_key_ignores_declaration_order() -> None:
    """Permutations of one value set share a key."""
    assert canonical_enum_key(["A", "B"]) == canonical_enum_key(["B", "A"])
    assert canonical_enum_key(["A", "B"]) != canonical_enum_key(["A", "B", "C"])
    assert canonical_enum_key([1, 2]) != canonical_enum_key(["1", "2"])


def test_enum_values_drop_null_and_containers() -> None:
    """Only literal values take part in an enumeration."""
    assert enum_values(["S", None, "M", {"x": 1}, 3]) == ("S", "M", 3)
    assert enum_values("not-a-list") == ()


def test_member_keys() -> None:
    """Member keys are upper-cased identifiers; non-strings are positional."""
    assert enum_member_key("in-progress", 0) == "IN_PROGRESS"
    assert enum_member_key("1st", 0) == "VALUE_1ST"
    assert enum_member_key(3, 2) == "VALUE_2"
    assert [member.key for member in build_enum_members(["a b", "a-b", "A_B"])] == [
        "A_B",
        "A_B_2",
        "A_B_3",
    ]


def test_inline_enums_with_equal_value_sets_share_one_declaration() -> None:
    """The second inline enumeration reuses the first declaration."""
    registry = _registry()

    first = registry.register_inline(property_name="kind", values=["A", "B"], context="Order")
    second = registry.register_inline(property_name="flavor", values=["B", "A"], context="Refund")

    assert first == second == "OrderKind"
    assert len(registry.enums) == 1
    assert registry.enums[0].values == ("A", "B")


def test_inline_enum_reuses_named_declaration() -> None:
    """A top-level enumeration claims its value set for later inline uses."""
    registry = _registry()
    registry.register_named("PetStatus", ["available", "sold"], source_name="PetStatus")

    name = registry.register_inline(
        property_name="status",
        values=["sold", "available"],
        context="getPet",
    )

    assert name == "PetStatus"
    assert registry.lookup(["available", "sold"]) == "PetStatus"
    assert [declaration.name for declaration in registry.enums] == ["PetStatus"]


def test_inline_enum_preferred_names() -> None:
    """Status fields and configured shared names get their own naming rules."""
    registry = _registry(shared_names={"currency": "Currency"})

    assert (
        registry.register_inline(property_name="status", values=["on", "off"], context="getPet")
        == "GetPetStatus"
    )
    assert (
        registry.register_inline(property_name="Currency", values=["EUR"], context="Invoice")
        == "Currency"
    )
    assert (
        registry.register_inline(property_name="size", values=["S", "M"], context="Item")
        == "ItemSize"
    )


def test_colliding_inline_enum_names_get_suffixes() -> None:
    """Different value sets wanting the same name fall back to suffixes."""
    registry = _registry()

    first = registry.register_inline(property_name="size", values=["S"], context="Item")
    second = registry.register_inline(property_name="size", values=["XL"], context="Item")

    assert (first, second) == ("ItemSize", "ItemSizeType")
