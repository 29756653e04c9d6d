"""Verification of a written models module against its generation result."""

from __future__ import annotations

import importlib.util
import itertools
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import ModuleType
from typing import Any

from pydantic import BaseModel

from .model_types import GeneratedClass, GeneratedEnum, GenerationResult


class VerificationError(RuntimeError):
    """Raised when the generated module cannot be imported for verification."""


@dataclass(frozen=True)
class VerificationMismatch:
    """One verification mismatch."""

    declaration: str
    path: str
    expected: Any
    actual: Any


@dataclass(frozen=True)
class VerificationReport:
    """Result of the verification phase."""

    verified_count: int
    mismatch_count: int
    mismatches: tuple[VerificationMismatch, ...]


def verify_generated_module(*, module_path: Path, result: GenerationResult) -> VerificationReport:
    """Import the generated module and check every declaration it should contain.

    Enumerations must carry the generated values in order. Classes must be
    pydantic models with the generated parent and, for every declared field,
    the right alias and required flag.
    """
    module = _import_generated_module(module_path)
    try:
        mismatches: list[VerificationMismatch] = []
        for generated_enum in result.enums:
            mismatches.extend(_check_enum(module, generated_enum))
        for generated_class in result.classes:
            mismatches.extend(_check_class(module, generated_class))
    finally:
        sys.modules.pop(module.__name__, None)

    return VerificationReport(
        verified_count=len(result.enums) + len(result.classes),
        mismatch_count=len(mismatches),
        mismatches=tuple(mismatches),
    )


def format_report(report: VerificationReport) -> str:
    """Render report as CLI output text."""
    lines = [
        f"Verified declarations: {report.verified_count}",
        f"Mismatches: {report.mismatch_count}",
    ]
    for mismatch in report.mismatches:
        lines.extend(
            [
                f"- {mismatch.declaration}",
                f"  path: {mismatch.path}",
                f"  expected: {short_repr(mismatch.expected)}",
                f"  actual: {short_repr(mismatch.actual)}",
            ]
        )
    return "\n".join(lines)


def short_repr(value: Any, *, limit: int = 160) -> str:
    """A short representation for mismatch diagnostics."""
    text = repr(value)
    return text if len(text) <= limit else f"{text[: limit - 3]}..."


def _import_generated_module(module_path: Path) -> ModuleType:
    if not module_path.exists():
        raise VerificationError(f"Generated module not found: {module_path}")
    module_name = f"generated_models_{next(_COUNTER)}"
    spec = importlib.util.spec_from_file_location(module_name, module_path)
    if spec is None or spec.loader is None:
        raise VerificationError(f"Unable to import generated module: {module_path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        raise VerificationError(f"Unable to import generated module {module_path}: {exc}") from exc
    _rebuild_module_models(module=module)
    return module


def _check_enum(module: ModuleType, generated_enum: GeneratedEnum) -> list[VerificationMismatch]:
    value = getattr(module, generated_enum.name, None)
    if not isinstance(value, type) or not issubclass(value, Enum):
        return [
            VerificationMismatch(
                declaration=generated_enum.name,
                path="<type>",
                expected="Enum subclass",
                actual=value,
            )
        ]
    actual_values = [member.value for member in value]
    if actual_values != list(generated_enum.values):
        return [
            VerificationMismatch(
                declaration=generated_enum.name,
                path="<values>",
                expected=list(generated_enum.values),
                actual=actual_values,
            )
        ]
    return []


def _check_class(module: ModuleType, generated_class: GeneratedClass) -> list[VerificationMismatch]:
    name = generated_class.name
    value = getattr(module, name, None)
    if not isinstance(value, type) or not issubclass(value, BaseModel):
        return [
            VerificationMismatch(
                declaration=name,
                path="<type>",
                expected="BaseModel subclass",
                actual=value,
            )
        ]

    mismatches: list[VerificationMismatch] = []
    if generated_class.parent is not None:
        parent = getattr(module, generated_class.parent, None)
        if not isinstance(parent, type) or not issubclass(value, parent):
            mismatches.append(
                VerificationMismatch(
                    declaration=name,
                    path="<parent>",
                    expected=generated_class.parent,
                    actual=[base.__name__ for base in value.__bases__],
                )
            )

    for prop in generated_class.properties:
        field_info = value.model_fields.get(prop.name)
        if field_info is None:
            mismatches.append(
                VerificationMismatch(declaration=name, path=prop.name, expected="field", actual=None)
            )
            continue
        actual_alias = field_info.alias or prop.name
        if actual_alias != prop.source_name:
            mismatches.append(
                VerificationMismatch(
                    declaration=name,
                    path=f"{prop.name}.alias",
                    expected=prop.source_name,
                    actual=actual_alias,
                )
            )
        if field_info.is_required() != prop.required:
            mismatches.append(
                VerificationMismatch(
                    declaration=name,
                    path=f"{prop.name}.required",
                    expected=prop.required,
                    actual=field_info.is_required(),
                )
            )
    return mismatches


def _rebuild_module_models(*, module: ModuleType) -> None:
    model_types: list[type[BaseModel]] = []
    for value in module.__dict__.values():
        if not isinstance(value, type):
            continue
        if not issubclass(value, BaseModel):
            continue
        if value is BaseModel:
            continue
        if value.__module__ != module.__name__:
            continue
        model_types.append(value)

    for model_type in model_types:
        model_type.model_rebuild(_types_namespace=module.__dict__)


_COUNTER = itertools.count(1)
