"""Validation annotation policy for generated fields.

Field-name heuristics win over the declared type: a field called ``email`` is
validated as an e-mail address whatever its schema says, and no type-based
annotations are added for it.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Optional

from .json_types import SchemaNode
from .model_types import Validation, ValidationKind
from .schema_utils import is_object_schema

_DATE_FORMATS = frozenset({"date", "date-time"})

_FORMAT_VALIDATIONS: dict[str, ValidationKind] = {
    "email": ValidationKind.EMAIL,
    "uri": ValidationKind.URL,
    "url": ValidationKind.URL,
    "uuid": ValidationKind.UUID,
    "ipv4": ValidationKind.IP,
    "ipv6": ValidationKind.IP,
}

# Checked in order; the first match decides.
_NAME_HEURISTICS: tuple[tuple[Callable[[str], bool], ValidationKind], ...] = (
    (lambda name: name == "latitude", ValidationKind.LATITUDE),
    (lambda name: name == "longitude", ValidationKind.LONGITUDE),
    (lambda name: "email" in name, ValidationKind.EMAIL),
    (
        lambda name: name == "creditcard" or "credit_card" in name or "creditcard" in name,
        ValidationKind.CREDIT_CARD,
    ),
    (lambda name: "phone" in name, ValidationKind.PHONE_NUMBER),
    (
        lambda name: name == "postalcode" or "postal_code" in name or "zip" in name,
        ValidationKind.POSTAL_CODE,
    ),
    (lambda name: "uuid" in name, ValidationKind.UUID),
    (lambda name: "url" in name, ValidationKind.URL),
    (lambda name: name == "ip" or "ip_address" in name, ValidationKind.IP),
    (
        lambda name: name in ("mongodb", "objectid") or "mongo_id" in name,
        ValidationKind.MONGO_ID,
    ),
)


def is_date_schema(schema: SchemaNode) -> bool:
    return schema.get("type") == "string" and schema.get("format") in _DATE_FORMATS


def name_validation(property_name: str) -> Optional[Validation]:
    """Return the validation implied by a well-known field name, if any."""
    lowered = property_name.lower()
    for matches, kind in _NAME_HEURISTICS:
        if matches(lowered):
            return Validation(kind)
    return None


def type_validations(schema: SchemaNode) -> list[Validation]:
    """Return the validations implied by a schema's declared type and constraints."""
    schema_type = schema.get("type")
    if schema_type == "string":
        return _string_validations(schema)
    if schema_type in ("integer", "number"):
        return _numeric_validations(schema)
    if schema_type == "boolean":
        return [Validation(ValidationKind.BOOLEAN)]
    if schema_type == "array" and isinstance(schema.get("items"), Mapping):
        return [Validation(ValidationKind.ARRAY)]
    if is_object_schema(schema):
        return [Validation(ValidationKind.OBJECT)]
    return []


def field_validations(
    schema: SchemaNode,
    *,
    property_name: str,
    required: bool,
) -> list[Validation]:
    """Build the leading validations for a field.

    Args:
        schema (SchemaNode): The field's schema.
        property_name (str): The field's name as declared in the schema.
        required (bool): Whether the field is in the effective required set.

    Returns:
        list[Validation]: ``OPTIONAL`` first for optional fields, then either the
        name-based validation or the type-based ones.
    """
    validations: list[Validation] = []
    if not required:
        validations.append(Validation(ValidationKind.OPTIONAL))
    by_name = name_validation(property_name)
    if by_name is not None:
        validations.append(by_name)
        return validations
    validations.extend(type_validations(schema))
    return validations


def _string_validations(schema: SchemaNode) -> list[Validation]:
    if is_date_schema(schema):
        return [Validation(ValidationKind.DATE)]

    validations = [Validation(ValidationKind.STRING)]
    min_length = schema.get("minLength")
    if _is_number(min_length):
        validations.append(Validation(ValidationKind.MIN_LENGTH, min_length))
    max_length = schema.get("maxLength")
    if _is_number(max_length):
        validations.append(Validation(ValidationKind.MAX_LENGTH, max_length))
    pattern = schema.get("pattern")
    if isinstance(pattern, str) and pattern:
        validations.append(Validation(ValidationKind.PATTERN, pattern))
    string_format = schema.get("format")
    if isinstance(string_format, str) and string_format in _FORMAT_VALIDATIONS:
        validations.append(Validation(_FORMAT_VALIDATIONS[string_format]))
    return validations


def _numeric_validations(schema: SchemaNode) -> list[Validation]:
    kind = ValidationKind.INT if schema.get("type") == "integer" else ValidationKind.NUMBER
    validations = [Validation(kind)]

    minimum = schema.get("minimum")
    if _is_number(minimum):
        if minimum == 0:
            validations.append(Validation(ValidationKind.POSITIVE))
        else:
            validations.append(Validation(ValidationKind.MIN, minimum))

    maximum = schema.get("maximum")
    if _is_number(maximum):
        if maximum == 0:
            validations.append(Validation(ValidationKind.NEGATIVE))
        else:
            validations.append(Validation(ValidationKind.MAX, maximum))
    return validations


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
