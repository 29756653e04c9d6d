"""High-level generator orchestration."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .codegen_ast import render_models_module
from .enums import enum_values
from .graph import build_dependency_graph, sort_by_dependency
from .json_types import JSONObject
from .loader import SchemaLoadError, ensure_document, load_schema_document
from .model_types import GeneratedClass, GenerationResult
from .naming import collect_operations
from .resolver import is_enum_schema
from .schema_to_models import GenerationContext, SchemaConverter
from .settings import GeneratorSettings, SettingsError
from .verify import VerificationReport, verify_generated_module
from .writer import WriteError, format_generated_module, write_models_module

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationRun:
    """Generation result with the written module and optional verification report."""

    result: GenerationResult
    output_path: Path
    verification_report: Optional[VerificationReport]


def generate_models(
    document: JSONObject,
    settings: Optional[GeneratorSettings] = None,
) -> GenerationResult:
    """Convert a parsed OpenAPI document into ordered declarations.

    Every call starts from fresh naming and de-duplication state, so running it
    twice on the same document gives identical results.

    Args:
        document (JSONObject): Parsed OpenAPI document.
        settings (Optional[GeneratorSettings]): Generation options; defaults apply
            when omitted.

    Returns:
        GenerationResult: Enumerations, classes without a parent, and derived
        classes with parents ahead of their children.
    """
    document = ensure_document(document)
    settings = settings or GeneratorSettings()
    context = GenerationContext.create(document, settings)
    converter = SchemaConverter(context)

    _register_schema_enums(context=context, converter=converter)

    emission_order = sort_by_dependency(build_dependency_graph(document))
    logger.debug("Schema emission order: %s", ", ".join(emission_order))
    converter.reserve_schema_class_names(emission_order)
    classes: list[GeneratedClass] = []
    for schema_name in emission_order:
        classes.extend(converter.build_schema_classes(schema_name))

    raw_paths = document.get("paths")
    operations, naming_warnings = collect_operations(
        raw_paths if isinstance(raw_paths, Mapping) else {}
    )
    for warning in naming_warnings:
        context.warn(warning)
    for operation in operations:
        classes.extend(converter.build_response_classes(operation))

    base_classes = [generated for generated in classes if not generated.is_derived]
    derived_classes = _parents_first(
        [generated for generated in classes if generated.is_derived]
    )
    logger.info(
        "Generated %d enums, %d base classes and %d derived classes",
        len(context.enum_registry.enums),
        len(base_classes),
        len(derived_classes),
    )
    return GenerationResult(
        enums=context.enum_registry.enums,
        base_classes=tuple(base_classes),
        derived_classes=tuple(derived_classes),
        emission_order=tuple(emission_order),
        warnings=tuple(context.warnings),
    )


def generate_source(
    document: JSONObject,
    settings: Optional[GeneratorSettings] = None,
) -> str:
    """Generate the unformatted source of the models module for a document."""
    return render_models_module(generate_models(document, settings))


def run_generation(
    *,
    input_path: Path,
    output_dir: Path,
    settings: Optional[GeneratorSettings] = None,
    overwrite: bool = False,
    verify: bool = False,
) -> GenerationRun:
    """Generate a pydantic models module from an OpenAPI document file.

    Args:
        input_path (Path): Path to the input OpenAPI document (YAML or JSON).
        output_dir (Path): Directory where the generated module is written.
        settings (Optional[GeneratorSettings]): Generation options.
        overwrite (bool): Whether an existing generated module may be replaced.
        verify (bool): Whether to import the written module and check it against
            the generation result.

    Returns:
        GenerationRun: Generation result, written path and optional verification report.
    """
    settings = settings or GeneratorSettings()
    document = load_schema_document(input_path)
    result = generate_models(document, settings)
    output_path = write_models_module(
        output_dir=output_dir,
        filename=settings.output_filename,
        source=render_models_module(result),
        overwrite=overwrite,
    )
    if settings.format_output:
        format_generated_module(module_path=output_path)
    logger.info("Wrote %s", output_path)

    if not verify:
        return GenerationRun(result=result, output_path=output_path, verification_report=None)

    report = verify_generated_module(module_path=output_path, result=result)
    return GenerationRun(result=result, output_path=output_path, verification_report=report)


def _register_schema_enums(*, context: GenerationContext, converter: SchemaConverter) -> None:
    for schema_name, schema in context.resolver.items():
        if not is_enum_schema(schema):
            continue
        enum_name = converter.class_name_for_schema(schema_name)
        context.enum_registry.register_named(
            enum_name,
            enum_values(schema.get("enum")),
            source_name=schema_name,
        )


def _parents_first(classes: Iterable[GeneratedClass]) -> list[GeneratedClass]:
    """Order derived classes so each parent that is itself derived comes first."""
    ordered_input = list(classes)
    by_name = {generated.name: generated for generated in ordered_input}
    ordered: list[GeneratedClass] = []
    placed: set[str] = set()
    placing: set[str] = set()

    def place(generated: GeneratedClass) -> None:
        if generated.name in placed or generated.name in placing:
            return
        placing.add(generated.name)
        parent = by_name.get(generated.parent or "")
        if parent is not None:
            place(parent)
        placing.discard(generated.name)
        placed.add(generated.name)
        ordered.append(generated)

    for generated in ordered_input:
        place(generated)
    return ordered


__all__ = [
    "GenerationRun",
    "SchemaLoadError",
    "SettingsError",
    "WriteError",
    "generate_models",
    "generate_source",
    "run_generation",
]
