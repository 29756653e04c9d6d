"""Naming helpers: identifiers, collision-resistant allocation and operation names."""

from __future__ import annotations

import keyword
import logging
import re
from collections import Counter
from collections.abc import Hashable, Iterable, Mapping, Sequence, Set as AbstractSet
from typing import Optional

from pydantic import BaseModel

from .json_types import JSONObject
from .model_types import OperationSpec

logger = logging.getLogger(__name__)

HTTP_METHODS: tuple[str, ...] = (
    "get",
    "put",
    "post",
    "delete",
    "patch",
    "head",
    "options",
    "trace",
)

# Names the rendered module imports; a class or field with one of these names
# would shadow the import inside the generated code.
RENDER_RESERVED_NAMES: frozenset[str] = frozenset(
    {
        "Any",
        "AnyUrl",
        "BaseModel",
        "ConfigDict",
        "EmailStr",
        "Enum",
        "Field",
        "IPvAnyAddress",
        "Optional",
        "UUID",
        "Union",
        "annotations",
        "date",
        "datetime",
    }
)

_IDENTIFIER_SANITIZE_RE = re.compile(r"[^0-9a-zA-Z_]+")
_MULTIPLE_UNDERSCORES_RE = re.compile(r"_+")
_PATH_PARAM_RE = re.compile(r"^\{(?P<name>[^{}]+)\}$")
_WORD_RE = re.compile(r"[a-z]+|[A-Z][a-z]*|[0-9]+")

_BASEMODEL_RESERVED = frozenset(dir(BaseModel))
_BUILTIN_IDENTIFIER_RESERVED = frozenset(
    {
        "bool",
        "bytes",
        "complex",
        "dict",
        "float",
        "frozenset",
        "int",
        "list",
        "set",
        "str",
        "tuple",
        "type",
    }
)


def sanitize_identifier(raw: str, *, lowercase: bool = True) -> str:
    """Convert arbitrary text into a valid Python identifier."""
    text = raw.lower() if lowercase else raw
    text = _IDENTIFIER_SANITIZE_RE.sub("_", text)
    text = _MULTIPLE_UNDERSCORES_RE.sub("_", text).strip("_")
    if not text:
        text = "root"
    if text[0].isdigit():
        text = f"x_{text}"
    if keyword.iskeyword(text):
        text = f"{text}_"
    return text


def pascal_case(raw: str) -> str:
    """Convert snake, kebab or camel case text to a PascalCase identifier."""
    words = _WORD_RE.findall(raw.replace("_", " ").replace("-", " "))
    text = "".join(word[0].upper() + word[1:] for word in words)
    if not text:
        return "Model"
    if text[0].isdigit():
        text = f"X{text}"
    return text


def is_valid_identifier(name: str) -> bool:
    """Return whether ``name`` can be used as a class or field name."""
    return name.isidentifier() and not keyword.iskeyword(name)


def field_identifier(source_name: str) -> str:
    """Return the preferred Python field name for a schema property name."""
    candidate = sanitize_identifier(source_name, lowercase=False)
    if (
        candidate in _BASEMODEL_RESERVED
        or candidate in _BUILTIN_IDENTIFIER_RESERVED
        or candidate in RENDER_RESERVED_NAMES
    ):
        candidate = f"{candidate}_field"
    return candidate


class NameAllocator:
    """Assign unique names to semantic keys with a fixed fallback ladder.

    The ladder tries the preferred name, then the alternate form, then the
    preferred base with each descriptive suffix, and finally the base with an
    increasing counter (``2``, ``3``, ...). Names already handed out, any name
    present in the shared ``namespace`` and any name in ``blocked`` count as
    taken. A key that was allocated before always gets its cached name back.
    """

    def __init__(
        self,
        *,
        suffixes: Sequence[str],
        namespace: Optional[set[str]] = None,
        blocked: Optional[AbstractSet[str]] = None,
        label: str = "name",
    ) -> None:
        self._suffixes = tuple(suffixes)
        self._namespace: set[str] = namespace if namespace is not None else set()
        self._blocked: AbstractSet[str] = blocked if blocked is not None else frozenset()
        self._names: dict[Hashable, str] = {}
        self._label = label

    def __contains__(self, key: Hashable) -> bool:
        return key in self._names

    def __len__(self) -> int:
        return len(self._names)

    def lookup(self, key: Hashable) -> Optional[str]:
        """Return the name allocated to ``key``, if any."""
        return self._names.get(key)

    def is_taken(self, name: str) -> bool:
        return name in self._namespace

    def allocate(
        self,
        key: Hashable,
        *,
        preferred: str,
        alternate: Optional[str] = None,
        suffixes: Optional[Sequence[str]] = None,
    ) -> str:
        """Allocate a name for ``key``.

        Args:
            key (Hashable): Semantic key, e.g. a schema name.
            preferred (str): First choice.
            alternate (Optional[str]): Normalized second choice. When omitted the
                PascalCase form of ``preferred`` is used.
            suffixes (Optional[Sequence[str]]): Overrides the allocator's
                descriptive suffixes for this request.

        Returns:
            str: The allocated name.
        """
        cached = self._names.get(key)
        if cached is not None:
            return cached

        normalized = alternate if alternate is not None else pascal_case(preferred)
        for candidate in (preferred, normalized):
            if self._is_free(candidate):
                return self._claim(key, candidate)

        base = normalized if is_valid_identifier(normalized) else pascal_case(normalized)
        for suffix in self._suffixes if suffixes is None else suffixes:
            candidate = f"{base}{suffix}"
            if self._is_free(candidate):
                logger.debug("%s %r taken; using %r", self._label, preferred, candidate)
                return self._claim(key, candidate)

        counter = 2
        while not self._is_free(f"{base}{counter}"):
            counter += 1
        candidate = f"{base}{counter}"
        logger.debug("%s %r exhausted suffixes; using %r", self._label, preferred, candidate)
        return self._claim(key, candidate)

    def _is_free(self, name: str) -> bool:
        return (
            is_valid_identifier(name)
            and name not in self._namespace
            and name not in self._blocked
            and name not in RENDER_RESERVED_NAMES
            and name not in _BUILTIN_IDENTIFIER_RESERVED
        )

    def _claim(self, key: Hashable, name: str) -> str:
        self._namespace.add(name)
        self._names[key] = name
        return name


class PropertyNameScope:
    """De-duplicate field identifiers within one generated class.

    Identifiers found in ``reserved`` (the class and enum names of the module)
    get a ``_field`` suffix: a field named like a class would shadow that class
    inside the class body.
    """

    def __init__(self, reserved: Optional[AbstractSet[str]] = None) -> None:
        self._reserved: AbstractSet[str] = reserved if reserved is not None else frozenset()
        self._names: dict[str, str] = {}
        self._used: set[str] = set()

    def allocate(self, source_name: str) -> str:
        """Return the field identifier for a property, appending 1, 2, ... on collision."""
        cached = self._names.get(source_name)
        if cached is not None:
            return cached
        candidate = field_identifier(source_name)
        if candidate in self._reserved:
            candidate = f"{candidate}_field"
        unique = candidate
        counter = 1
        while unique in self._used:
            unique = f"{candidate}{counter}"
            counter += 1
        self._used.add(unique)
        self._names[source_name] = unique
        return unique


def path_to_endpoint_name(path: str) -> str:
    """Create an endpoint name from a URL path pattern."""
    segments = [segment for segment in path.split("/") if segment]
    normalized_segments: list[str] = []
    for segment in segments:
        match = _PATH_PARAM_RE.match(segment)
        if match:
            param_name = sanitize_identifier(match.group("name"))
            normalized_segments.append(f"by_{param_name}")
            continue
        normalized_segments.append(sanitize_identifier(segment))

    endpoint_name = "__".join(segment for segment in normalized_segments if segment)
    return endpoint_name or "root"


def _operation_name(path: str, method: str, operation: JSONObject) -> str:
    operation_id = operation.get("operationId")
    if isinstance(operation_id, str) and operation_id.strip():
        return operation_id.strip()
    return f"{method}_{path_to_endpoint_name(path)}"


def collect_operations(
    raw_paths: Mapping[str, object],
) -> tuple[list[OperationSpec], list[str]]:
    """Extract operations in path order and HTTP method order.

    Operations without an ``operationId`` are named from their method and path.

    Returns:
        tuple[list[OperationSpec], list[str]]: Operations and naming warnings.
    """
    operations: list[OperationSpec] = []
    for path, path_item in raw_paths.items():
        if not isinstance(path, str) or not isinstance(path_item, Mapping):
            continue
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, Mapping):
                continue
            operations.append(
                OperationSpec(
                    path=path,
                    method=method,
                    name=_operation_name(path, method, operation),
                    operation=operation,
                )
            )

    warnings: list[str] = []
    duplicates = _duplicated_names(operation.name for operation in operations)
    if duplicates:
        warnings.append(
            "Duplicate operation names detected; response classes fall back to suffixed names: "
            f"{', '.join(sorted(duplicates))}"
        )
    return operations, warnings


def _duplicated_names(names: Iterable[str]) -> set[str]:
    counts = Counter(names)
    return {name for name, count in counts.items() if count > 1}
