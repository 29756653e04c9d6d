"""Unit tests for identifier helpers and name allocation."""

from __future__ import annotations

from openapi_class_generator.naming import (
    NameAllocator,
    PropertyNameScope,
    collect_operations,
    field_identifier,
    pascal_case,
    path_to_endpoint_name,
)


def test_pascal_case_handles_common_spellings() -> None:
    """Snake, kebab and camel case all normalize to PascalCase."""
    assert pascal_case("listPets") == "ListPets"
    assert pascal_case("get-item") == "GetItem"
    assert pascal_case("order_line") == "OrderLine"
    assert pascal_case("2fa") == "X2Fa"
    assert pascal_case("???") == "Model"


def test_allocator_walks_the_fallback_ladder() -> None:
    """Preferred, then alternate, then suffixes, then a counter."""
    allocator = NameAllocator(suffixes=("Model",))

    assert allocator.allocate("a", preferred="pet") == "pet"
    assert allocator.allocate("b", preferred="pet") == "Pet"
    assert allocator.allocate("c", preferred="pet") == "PetModel"
    assert allocator.allocate("d", preferred="pet") == "Pet2"
    assert allocator.allocate("e", preferred="pet") == "Pet3"


def test_allocator_returns_cached_name_per_key() -> None:
    """The same semantic key always maps to the same name."""
    allocator = NameAllocator(suffixes=("Model",))

    first = allocator.allocate(("schema", "Pet"), preferred="Pet")
    second = allocator.allocate(("schema", "Pet"), preferred="Something else")

    assert first == second == "Pet"
    assert allocator.lookup(("schema", "Pet")) == "Pet"
    assert ("schema", "Pet") in allocator
    assert len(allocator) == 1


def test_allocator_skips_reserved_and_invalid_names() -> None:
    """Names that would shadow generated imports or builtins are never handed out."""
    allocator = NameAllocator(suffixes=("Model",))

    assert allocator.allocate("field", preferred="Field") == "FieldModel"
    assert allocator.allocate("str", preferred="str") == "Str"
    assert allocator.allocate("class", preferred="class") == "Class"


def test_allocators_sharing_a_namespace_never_collide() -> None:
    """Class and enum allocators drawing from one namespace hand out distinct names."""
    namespace: set[str] = set()
    classes = NameAllocator(suffixes=("Model",), namespace=namespace)
    enums = NameAllocator(suffixes=("Enum",), namespace=namespace)

    assert classes.allocate("status", preferred="Status") == "Status"
    assert enums.allocate("status", preferred="Status") == "StatusEnum"
    assert enums.is_taken("Status")


def test_field_identifier_avoids_reserved_members() -> None:
    """Field names never shadow BaseModel members, builtins or generated imports."""
    assert field_identifier("model_dump") == "model_dump_field"
    assert field_identifier("type") == "type_field"
    assert field_identifier("date") == "date_field"
    assert field_identifier("class") == "class_"
    assert field_identifier("photoUrls") == "photoUrls"
    assert field_identifier("x-rate-limit") == "x_rate_limit"


def test_property_scope_deduplicates_with_numbers() -> None:
    """Distinct source names that sanitize alike get numbered identifiers."""
    scope = PropertyNameScope()

    assert scope.allocate("a-b") == "a_b"
    assert scope.allocate("a_b") == "a_b1"
    assert scope.allocate("a.b") == "a_b2"
    assert scope.allocate("a-b") == "a_b"


def test_property_scope_renames_fields_named_like_declarations() -> None:
    """A field named like a generated class or enum gets a distinct identifier."""
    scope = PropertyNameScope({"Address", "Currency"})

    assert scope.allocate("Address") == "Address_field"
    assert scope.allocate("Currency") == "Currency_field"
    assert scope.allocate("address") == "address"


def test_allocator_never_reuses_blocked_names() -> None:
    """Names in the blocked set count as taken without being claimed."""
    blocked = {"StatusObject"}
    allocator = NameAllocator(suffixes=("Model",), blocked=blocked)

    assert allocator.allocate("a", preferred="StatusObject") == "StatusObjectModel"
    assert not allocator.is_taken("StatusObject")


def test_path_to_endpoint_name() -> None:
    """Path parameters become ``by_`` segments."""
    assert path_to_endpoint_name("/users/{user_id}/posts") == "users__by_user_id__posts"
    assert path_to_endpoint_name("/") == "root"


def test_collect_operations_names_and_warns_on_duplicates() -> None:
    """Operations are named by operationId or by method and path."""
    paths = {
        "/pets": {
            "get": {"operationId": "listPets"},
            "post": {"operationId": "listPets"},
            "parameters": [],
        },
        "/pets/{petId}": {"delete": {}},
    }

    operations, warnings = collect_operations(paths)

    assert [(op.method, op.name) for op in operations] == [
        ("get", "listPets"),
        ("post", "listPets"),
        ("delete", "delete_pets__by_petid"),
    ]
    assert len(warnings) == 1
    assert "listPets" in warnings[0]
