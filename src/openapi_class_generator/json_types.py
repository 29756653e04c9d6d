"""JSON-compatible typing aliases for parsed OpenAPI documents."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TypeAlias, Union

JSONPrimitive: TypeAlias = Union[str, int, float, bool, None]
JSONValue: TypeAlias = Union[JSONPrimitive, list["JSONValue"], Mapping[str, "JSONValue"]]
JSONObject: TypeAlias = Mapping[str, JSONValue]

# A schema node as found under ``components.schemas`` or inline in a property.
SchemaNode: TypeAlias = Mapping[str, JSONValue]

# A literal allowed in an ``enum`` list once ``null`` has been set aside.
EnumValue: TypeAlias = Union[str, int, float, bool]
