"""AST-based Python code generation for pydantic models."""

from __future__ import annotations

import ast
from collections.abc import Iterable
from typing import Optional

from .json_types import JSONValue
from .model_types import (
    GeneratedClass,
    GeneratedEnum,
    GeneratedProperty,
    GenerationResult,
    TypeKind,
    TypeRef,
    ValidationKind,
)

MODULE_DOCSTRING = "Models generated from an OpenAPI document. Do not edit by hand."

# Import source of every name a rendered module may use, in import order.
_IMPORT_SOURCES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("datetime", ("date", "datetime")),
    ("enum", ("Enum",)),
    ("typing", ("Any", "Optional", "Union")),
    ("uuid", ("UUID",)),
    ("pydantic", ("AnyUrl", "BaseModel", "ConfigDict", "EmailStr", "Field", "IPvAnyAddress")),
)

_PRIMITIVE_ANNOTATIONS: dict[TypeKind, str] = {
    TypeKind.STRING: "str",
    TypeKind.INTEGER: "int",
    TypeKind.NUMBER: "float",
    TypeKind.BOOLEAN: "bool",
    TypeKind.DATE: "date",
    TypeKind.DATETIME: "datetime",
    TypeKind.MAP: "dict[str, Any]",
    TypeKind.ANY: "Any",
}

# String annotations that replace ``str`` for format-like validations.
_STRING_TYPE_OVERRIDES: dict[ValidationKind, str] = {
    ValidationKind.EMAIL: "EmailStr",
    ValidationKind.URL: "AnyUrl",
    ValidationKind.UUID: "UUID",
    ValidationKind.IP: "IPvAnyAddress",
}

_STRING_PATTERNS: dict[ValidationKind, str] = {
    ValidationKind.PHONE_NUMBER: r"^\+?[0-9][0-9 ().\-]{5,19}$",
    ValidationKind.POSTAL_CODE: r"^[A-Za-z0-9][A-Za-z0-9 \-]{1,9}$",
    ValidationKind.CREDIT_CARD: r"^[0-9](?:[0-9 \-]?[0-9]){11,18}$",
    ValidationKind.MONGO_ID: r"^[0-9a-fA-F]{24}$",
    ValidationKind.LATITUDE: r"^-?(?:90(?:\.0+)?|[1-8]?[0-9](?:\.[0-9]+)?)$",
    ValidationKind.LONGITUDE: r"^-?(?:180(?:\.0+)?|(?:1[0-7][0-9]|[1-9]?[0-9])(?:\.[0-9]+)?)$",
}

_COORDINATE_BOUNDS: dict[ValidationKind, tuple[int, int]] = {
    ValidationKind.LATITUDE: (-90, 90),
    ValidationKind.LONGITUDE: (-180, 180),
}

_NUMERIC_KINDS = frozenset({TypeKind.INTEGER, TypeKind.NUMBER})

# Schema patterns are ECMA-262 regexes and may use lookaround, which the
# default rust-regex engine rejects.
_PATTERN_CONFIG = 'ConfigDict(regex_engine="python-re")'


def render_models_module(result: GenerationResult) -> str:
    """Render a generation result as one Python module using AST.

    Enumerations come first, then classes without a parent, then derived
    classes. Every class is rebuilt at the end of the module so that forward
    references between classes resolve.

    Args:
        result (GenerationResult): Declarations to render.

    Returns:
        str: Generated Python source code.
    """
    declarations: list[ast.stmt] = []
    for generated_enum in result.enums:
        declarations.append(_enum_to_ast(generated_enum))
    for generated_class in result.classes:
        declarations.append(_class_to_ast(generated_class))

    rebuilds: list[ast.stmt] = [
        ast.Expr(
            value=ast.Call(
                func=ast.Attribute(
                    value=ast.Name(id=generated_class.name, ctx=ast.Load()),
                    attr="model_rebuild",
                    ctx=ast.Load(),
                ),
                args=[],
                keywords=[],
            )
        )
        for generated_class in result.classes
    ]

    body: list[ast.stmt] = [
        ast.Expr(value=ast.Constant(value=MODULE_DOCSTRING)),
        ast.ImportFrom(module="__future__", names=[ast.alias(name="annotations")], level=0),
    ]
    body.extend(_build_imports(declarations))
    body.extend(declarations)
    body.extend(rebuilds)

    module = ast.Module(body=body, type_ignores=[])
    ast.fix_missing_locations(module)
    return ast.unparse(module) + "\n"


def annotation_for(prop: GeneratedProperty) -> str:
    """Return the annotation source for a property, ``Optional`` included."""
    annotation = _type_annotation(prop.type_ref, prop)
    if annotation != "Any" and (not prop.required or prop.nullable):
        return f"Optional[{annotation}]"
    return annotation


def field_keywords(prop: GeneratedProperty) -> dict[str, JSONValue]:
    """Return the ``Field`` keyword arguments rendered for a property."""
    keywords: dict[str, JSONValue] = {}
    if prop.source_name != prop.name:
        keywords["alias"] = prop.source_name
    if prop.description:
        keywords["description"] = prop.description

    base = _type_annotation(prop.type_ref, prop)
    for validation in prop.validations:
        if validation.each:
            continue
        kind = validation.kind
        if base == "str":
            if kind is ValidationKind.MIN_LENGTH:
                keywords.setdefault("min_length", validation.argument)
            elif kind is ValidationKind.MAX_LENGTH:
                keywords.setdefault("max_length", validation.argument)
            elif kind is ValidationKind.PATTERN:
                keywords.setdefault("pattern", validation.argument)
            elif kind in _STRING_PATTERNS:
                keywords.setdefault("pattern", _STRING_PATTERNS[kind])
        elif prop.type_ref.kind in _NUMERIC_KINDS:
            if kind is ValidationKind.MIN:
                keywords.setdefault("ge", validation.argument)
            elif kind is ValidationKind.MAX:
                keywords.setdefault("le", validation.argument)
            elif kind is ValidationKind.POSITIVE:
                keywords.setdefault("ge", 0)
            elif kind is ValidationKind.NEGATIVE:
                keywords.setdefault("le", 0)
            elif kind in _COORDINATE_BOUNDS:
                lower, upper = _COORDINATE_BOUNDS[kind]
                keywords.setdefault("ge", lower)
                keywords.setdefault("le", upper)
    return keywords


def _type_annotation(type_ref: TypeRef, prop: Optional[GeneratedProperty] = None) -> str:
    kind = type_ref.kind
    if kind is TypeKind.STRING and prop is not None:
        for validation in prop.validations:
            if not validation.each and validation.kind in _STRING_TYPE_OVERRIDES:
                return _STRING_TYPE_OVERRIDES[validation.kind]
    if kind in _PRIMITIVE_ANNOTATIONS:
        return _PRIMITIVE_ANNOTATIONS[kind]
    if kind in (TypeKind.CLASS, TypeKind.ENUM):
        if type_ref.name is None:
            raise ValueError(f"{kind.value} type without a name")
        return type_ref.name
    if kind is TypeKind.ARRAY:
        return f"list[{_type_annotation(type_ref.item)}]"
    if kind is TypeKind.UNION:
        members = ", ".join(_type_annotation(member) for member in type_ref.members)
        return f"Union[{members}]"
    raise ValueError(f"Unsupported type kind: {kind.value}")


def _enum_to_ast(generated_enum: GeneratedEnum) -> ast.ClassDef:
    bases: list[ast.expr] = []
    if all(isinstance(value, str) for value in generated_enum.values):
        bases.append(ast.Name(id="str", ctx=ast.Load()))
    bases.append(ast.Name(id="Enum", ctx=ast.Load()))

    body: list[ast.stmt] = [
        ast.Assign(
            targets=[ast.Name(id=member.key, ctx=ast.Store())],
            value=_value_expr(member.value),
        )
        for member in generated_enum.members
    ]
    return ast.ClassDef(
        name=generated_enum.name,
        bases=bases,
        keywords=[],
        body=body or [ast.Pass()],
        decorator_list=[],
        type_params=[],
    )


def _class_to_ast(generated_class: GeneratedClass) -> ast.ClassDef:
    base = generated_class.parent or "BaseModel"
    class_body: list[ast.stmt] = []

    docstring = _class_docstring(generated_class)
    if docstring:
        class_body.append(ast.Expr(value=ast.Constant(value=docstring)))
    if any("pattern" in field_keywords(prop) for prop in generated_class.properties):
        class_body.append(
            ast.Assign(
                targets=[ast.Name(id="model_config", ctx=ast.Store())],
                value=_expr(_PATTERN_CONFIG),
            )
        )
    for prop in generated_class.properties:
        class_body.append(_field_to_ast(prop))
    if not class_body:
        class_body.append(ast.Pass())

    return ast.ClassDef(
        name=generated_class.name,
        bases=[ast.Name(id=base, ctx=ast.Load())],
        keywords=[],
        body=class_body,
        decorator_list=[],
        type_params=[],
    )


def _class_docstring(generated_class: GeneratedClass) -> Optional[str]:
    lines: list[str] = []
    if generated_class.description:
        lines.append(generated_class.description)
    origin = generated_class.auxiliary_origin
    if origin is not None:
        lines.append(
            f"Fields {origin.owner} takes from {origin.parent}. "
            f"{origin.owner} does not inherit from this class."
        )
    inheritance = generated_class.inheritance
    if inheritance is not None and inheritance.is_approximated:
        lines.append(
            f"Inherits from {inheritance.parent} only; fields of the other composed "
            f"schemas are declared here (see {', '.join(inheritance.auxiliaries)})."
        )
    return "\n\n".join(lines) if lines else None


def _field_to_ast(prop: GeneratedProperty) -> ast.AnnAssign:
    default_value: ast.expr
    if prop.required:
        default_value = ast.Constant(value=Ellipsis)
    else:
        default_value = ast.Constant(value=None)

    call = ast.Call(
        func=ast.Name(id="Field", ctx=ast.Load()),
        args=[default_value],
        keywords=[
            ast.keyword(arg=key, value=_value_expr(value))
            for key, value in field_keywords(prop).items()
        ],
    )
    return ast.AnnAssign(
        target=ast.Name(id=prop.name, ctx=ast.Store()),
        annotation=_expr(annotation_for(prop)),
        value=call,
        simple=1,
    )


def _expr(code: str) -> ast.expr:
    parsed = ast.parse(code, mode="eval")
    return parsed.body


def _value_expr(value: Optional[JSONValue]) -> ast.expr:
    parsed = ast.parse(repr(value), mode="eval")
    return parsed.body


def _build_imports(declarations: list[ast.stmt]) -> list[ast.stmt]:
    used_names = _collect_loaded_names(declarations)
    imports: list[ast.stmt] = []
    for module_name, names in _IMPORT_SOURCES:
        requested = [name for name in names if name in used_names]
        if requested:
            imports.append(
                ast.ImportFrom(
                    module=module_name,
                    names=[ast.alias(name=name) for name in requested],
                    level=0,
                )
            )
    return imports


def _collect_loaded_names(nodes: Iterable[ast.AST]) -> set[str]:
    loaded_names: set[str] = set()
    for root in nodes:
        for node in ast.walk(root):
            if isinstance(node, ast.Name) and isinstance(node.ctx, ast.Load):
                loaded_names.add(node.id)
    return loaded_names
