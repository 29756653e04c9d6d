"""Schema dependency graph and cycle-tolerant emission ordering.

Every named schema depends on the schemas it references, whether the reference
expresses composition (``allOf``) or containment (properties, array items).
``sort_by_dependency`` linearizes that graph so dependencies come first. Schemas
that take part in a reference cycle have no consistent order; they are still
emitted exactly once.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from enum import Enum
from typing import TypeAlias

from .json_types import JSONObject, JSONValue
from .resolver import get_component_schemas, schema_name_from_ref

logger = logging.getLogger(__name__)

DependencyGraph: TypeAlias = Mapping[str, tuple[str, ...]]


def build_dependency_graph(document: JSONObject) -> dict[str, tuple[str, ...]]:
    """Build the "depends on" graph of a document's named schemas.

    Args:
        document (JSONObject): Parsed schema document.

    Returns:
        dict[str, tuple[str, ...]]: One entry per declared schema, in declaration
        order, listing the declared schemas it references in discovery order.
    """
    schemas = get_component_schemas(document)
    graph: dict[str, tuple[str, ...]] = {}
    for name, schema in schemas.items():
        dependencies: dict[str, None] = {}
        for ref_name in _iter_schema_refs(schema):
            if ref_name in schemas:
                dependencies.setdefault(ref_name, None)
        graph[name] = tuple(dependencies)
    return graph


def _iter_schema_refs(node: JSONValue) -> Iterator[str]:
    if not isinstance(node, Mapping):
        return
    ref = node.get("$ref")
    if isinstance(ref, str):
        name = schema_name_from_ref(ref)
        if name is not None:
            yield name

    all_of = node.get("allOf")
    if isinstance(all_of, list):
        for member in all_of:
            yield from _iter_schema_refs(member)

    properties = node.get("properties")
    if isinstance(properties, Mapping):
        for prop_schema in properties.values():
            yield from _iter_schema_refs(prop_schema)

    yield from _iter_schema_refs(node.get("items"))


class _VisitState(Enum):
    IN_PROGRESS = 1
    DONE = 2


def find_cycle_participants(graph: DependencyGraph) -> tuple[list[str], set[str]]:
    """Run the first sorting pass.

    Returns:
        tuple[list[str], set[str]]: Nodes in post-order (each node after its
        dependencies, cycle edges ignored) and the nodes marked as cycle
        participants. Closing a cycle marks every node on the current
        traversal path.
    """
    states: dict[str, _VisitState] = {}
    post_order: list[str] = []
    cycles: set[str] = set()

    def visit(node: str, path: list[str]) -> None:
        state = states.get(node)
        if state is _VisitState.DONE:
            return
        if state is _VisitState.IN_PROGRESS:
            cycles.update(path)
            return

        states[node] = _VisitState.IN_PROGRESS
        path.append(node)
        for dependency in graph.get(node, ()):
            if states.get(dependency) is not _VisitState.DONE:
                visit(dependency, path)
        path.pop()
        states[node] = _VisitState.DONE
        post_order.append(node)

    for node in graph:
        if node not in states:
            visit(node, [])

    if cycles:
        logger.debug("Schemas participating in reference cycles: %s", ", ".join(sorted(cycles)))
    return post_order, cycles


def sort_by_dependency(graph: DependencyGraph) -> list[str]:
    """Order schema names so that dependencies precede their dependents.

    Every node of ``graph`` appears exactly once. For an edge ``A -> B`` whose
    target ``B`` is not a cycle participant, ``B`` precedes ``A``. Members of a
    cycle all appear, in a stable but otherwise unspecified order.

    Args:
        graph (DependencyGraph): Output of ``build_dependency_graph``.

    Returns:
        list[str]: Emission order.
    """
    first_pass, cycles = find_cycle_participants(graph)

    ordered: list[str] = []
    processed: set[str] = set()
    placing: set[str] = set()

    def place(node: str) -> None:
        if node in processed or node in placing:
            return
        placing.add(node)
        dependencies = graph.get(node, ())
        for dependency in dependencies:
            if dependency not in cycles:
                place(dependency)
        for dependency in dependencies:
            if dependency in cycles:
                place(dependency)
        placing.discard(node)
        processed.add(node)
        ordered.append(node)

    for node in first_pass:
        place(node)
    return ordered
