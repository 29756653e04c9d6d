"""Integration tests for generator behavior."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import Any

import pytest

from openapi_class_generator.cli import main
from openapi_class_generator.generator import (
    WriteError,
    generate_models,
    generate_source,
    run_generation,
)
from openapi_class_generator.loader import load_schema_document
from openapi_class_generator.model_types import TypeKind
from openapi_class_generator.settings import GeneratorSettings
from .fixture_helpers import fixture_path, import_generated_source, parametrize_fixtures

_GENERATED_RUFF_IGNORE = "E501,E741"


def _document(schemas: dict[str, Any], paths: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "openapi": "3.1.0",
        "info": {"title": "Inline Test API", "version": "1.0.0"},
        "paths": paths or {},
        "components": {"schemas": schemas},
    }


def _json_response(schema: dict[str, Any]) -> dict[str, Any]:
    return {"description": "ok", "content": {"application/json": {"schema": schema}}}


_PET_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["name"],
    "properties": {"id": {"type": "integer"}, "name": {"type": "string"}},
}


def test_single_schema_yields_one_class() -> None:
    """One object schema without operations becomes exactly one class and no enums."""
    result = generate_models(_document({"Pet": _PET_SCHEMA}))

    assert [generated.name for generated in result.classes] == ["Pet"]
    assert result.enums == ()
    pet = result.classes[0]
    assert [(prop.name, prop.required) for prop in pet.properties] == [
        ("id", False),
        ("name", True),
    ]


def test_composed_schema_inherits_parent_fields() -> None:
    """A schema composed from a reference plus own fields extends the referenced class."""
    dog_schema = {
        "allOf": [
            {"$ref": "#/components/schemas/Pet"},
            {"type": "object", "properties": {"breed": {"type": "string"}}},
        ]
    }
    result = generate_models(_document({"Dog": dog_schema, "Pet": _PET_SCHEMA}))

    assert [generated.name for generated in result.base_classes] == ["Pet"]
    assert [generated.name for generated in result.derived_classes] == ["Dog"]
    dog = result.derived_classes[0]
    assert dog.parent == "Pet"
    assert [prop.name for prop in dog.properties] == ["breed"]


def test_equal_inline_enums_across_responses_share_one_declaration() -> None:
    """Two responses with the same inline enumeration reference one enum."""
    paths = {
        "/pets/{petId}": {
            "get": {
                "operationId": "getPet",
                "responses": {
                    "200": _json_response(
                        {
                            "type": "object",
                            "properties": {
                                "status": {"type": "string", "enum": ["available", "sold"]}
                            },
                        }
                    ),
                    "404": _json_response(
                        {
                            "type": "object",
                            "properties": {
                                "state": {"type": "string", "enum": ["available", "sold"]}
                            },
                        }
                    ),
                },
            }
        }
    }
    settings = GeneratorSettings(response_status_prefixes=("2", "4"))

    result = generate_models(_document({}, paths), settings)

    assert [generated.name for generated in result.enums] == ["GetPetStatus"]
    ok = result.find_class("GetPet200Response")
    not_found = result.find_class("GetPet404Response")
    assert ok is not None and not_found is not None
    for generated, field in ((ok, "status"), (not_found, "state")):
        prop = generated.property_named(field)
        assert prop is not None
        assert prop.type_ref.kind is TypeKind.ENUM
        assert prop.type_ref.name == "GetPetStatus"


def test_default_settings_skip_non_success_responses() -> None:
    """Only 2xx responses produce classes unless configured otherwise."""
    result = generate_models(_document_from_fixture("petstore.yaml"))

    names = {generated.name for generated in result.classes}
    assert "GetPet200Response" in names
    assert "GetPet404Response" not in names
    assert not any(name.startswith("CreatePetDefault") for name in names)


def test_response_naming_and_reference_responses() -> None:
    """Responses are named from the operation; a bare reference becomes a subclass."""
    result = generate_models(_document_from_fixture("petstore.yaml"))

    created = result.find_class("CreatePet201Response")
    assert created is not None
    assert created.parent == "Pet"
    assert created.properties == ()
    assert result.find_class("GetOwnersByOwneridPets200Response") is not None
    assert [generated.name for generated in result.derived_classes] == [
        "Pet",
        "Dog",
        "CreatePet201Response",
    ]


def test_inline_enum_matching_named_enum_reuses_it() -> None:
    """An inline enumeration equal to a named one does not add a declaration."""
    result = generate_models(_document_from_fixture("petstore.yaml"))

    assert [generated.name for generated in result.enums] == ["PetStatus", "Currency"]
    response = result.find_class("GetPet200Response")
    assert response is not None
    status = response.property_named("status")
    assert status is not None and status.type_ref.name == "PetStatus"


def test_each_content_type_gets_its_own_class() -> None:
    """Several content types of one response produce distinct, suffixed classes."""
    result = generate_models(_document_from_fixture("catalog.json"))

    assert result.find_class("GetItem200Response") is not None
    detail = result.find_class("GetItem200ResponseDetail")
    assert detail is not None
    assert [prop.name for prop in detail.properties] == ["raw"]


def test_duplicate_operation_names_warn_and_stay_unique() -> None:
    """Duplicate operation identifiers produce a warning and suffixed class names."""
    schema = {"type": "object", "properties": {"id": {"type": "string"}}}
    paths = {
        "/a": {"get": {"operationId": "fetch", "responses": {"200": _json_response(schema)}}},
        "/b": {"get": {"operationId": "fetch", "responses": {"200": _json_response(schema)}}},
    }

    result = generate_models(_document({}, paths))

    assert [generated.name for generated in result.classes] == [
        "Fetch200Response",
        "Fetch200ResponseDetail",
    ]
    assert any("fetch" in warning for warning in result.warnings)


def test_unresolvable_reference_is_typed_any_with_warning(tmp_path: Path) -> None:
    """A dangling reference does not abort generation."""
    schemas = {
        "Order": {
            "type": "object",
            "properties": {"customer": {"$ref": "#/components/schemas/Customer"}},
        }
    }
    document = _document(schemas)

    result = generate_models(document)
    module = import_generated_source(generate_source(document), tmp_path)

    order = result.find_class("Order")
    assert order is not None
    customer = order.property_named("customer")
    assert customer is not None and customer.type_ref.kind is TypeKind.ANY
    assert any("Customer" in warning for warning in result.warnings)
    assert module.Order.model_validate({"customer": {"anything": 1}}).customer == {"anything": 1}


def test_generation_is_deterministic() -> None:
    """The same document always renders the same module."""
    document = _document_from_fixture("petstore.yaml")

    assert generate_source(document) == generate_source(document)


@parametrize_fixtures()
def test_generation_with_verification(fixture_path: Path, tmp_path: Path) -> None:
    """Each fixture generates, formats and verifies without mismatches."""
    output_dir = tmp_path / fixture_path.stem
    run = run_generation(
        input_path=fixture_path,
        output_dir=output_dir,
        verify=True,
    )

    assert run.output_path == output_dir / "generated_models.py"
    assert run.output_path.is_file()
    report = run.verification_report
    assert report is not None
    assert report.verified_count == len(run.result.enums) + len(run.result.classes)
    if report.mismatch_count > 0:
        preview = "\n".join(
            f"{m.declaration}.{m.path} | expected={m.expected!r} actual={m.actual!r}"
            for m in report.mismatches[:8]
        )
        pytest.fail(f"Verification mismatches for {fixture_path.name}:\n{preview}")


def test_existing_output_file_is_not_replaced(tmp_path: Path) -> None:
    """Generation refuses to overwrite an existing module unless asked to."""
    output_dir = tmp_path / "existing"
    output_dir.mkdir()
    target = output_dir / "generated_models.py"
    target.write_text("# keep me\n", encoding="utf-8")
    settings = GeneratorSettings(format_output=False)

    with pytest.raises(WriteError):
        run_generation(
            input_path=fixture_path("petstore.yaml"),
            output_dir=output_dir,
            settings=settings,
        )
    assert target.read_text(encoding="utf-8") == "# keep me\n"

    run_generation(
        input_path=fixture_path("petstore.yaml"),
        output_dir=output_dir,
        settings=settings,
        overwrite=True,
    )
    assert "class Pet(NewPet):" in target.read_text(encoding="utf-8")


def test_generation_invokes_ruff_formatting(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Generation should run ruff formatting on the emitted module."""
    output_dir = tmp_path / "formatted"
    captured: dict[str, Path] = {}

    def _fake_format(*, module_path: Path) -> None:
        captured["module_path"] = module_path

    monkeypatch.setattr(
        "openapi_class_generator.generator.format_generated_module",
        _fake_format,
    )

    run_generation(
        input_path=fixture_path("petstore.yaml"),
        output_dir=output_dir,
    )
    assert "module_path" in captured, f"ruff formatting hook was not called: {captured!r}"
    assert captured["module_path"] == output_dir / "generated_models.py"


def test_generated_module_passes_ruff_check(tmp_path: Path) -> None:
    """The formatted module should pass ruff checks."""
    output_dir = tmp_path / "linted"
    run = run_generation(
        input_path=fixture_path("petstore.yaml"),
        output_dir=output_dir,
    )

    lint = subprocess.run(
        [
            sys.executable,
            "-m",
            "ruff",
            "check",
            "--ignore",
            _GENERATED_RUFF_IGNORE,
            str(run.output_path),
        ],
        check=False,
        capture_output=True,
        text=True,
    )
    details = f"{lint.stdout}\n{lint.stderr}".strip()
    assert lint.returncode == 0, details


def test_cli_help_screen() -> None:
    """Running the CLI help should succeed and print usage information."""
    result = subprocess.run(
        [sys.executable, "-m", "openapi_class_generator", "--help"],
        check=False,
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0
    assert "usage:" in result.stdout.lower()


def test_cli_generates_and_verifies(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """The CLI writes the module and reports a clean verification."""
    config = tmp_path / "settings.yaml"
    config.write_text("output_filename: models.py\n", encoding="utf-8")
    output_dir = tmp_path / "cli"

    exit_code = main(
        [
            "--input",
            str(fixture_path("composition.yaml")),
            "--output",
            str(output_dir),
            "--config",
            str(config),
            "--no-format",
            "--verify",
        ]
    )

    assert exit_code == 0
    assert (output_dir / "models.py").is_file()
    out = capsys.readouterr().out
    assert "Mismatches: 0" in out


def test_cli_reports_errors_with_exit_code_two(tmp_path: Path) -> None:
    """Load errors surface as argparse errors."""
    with pytest.raises(SystemExit) as excinfo:
        main(["--input", str(tmp_path / "missing.yaml"), "--output", str(tmp_path / "out")])

    assert excinfo.value.code == 2


def _document_from_fixture(name: str) -> dict[str, Any]:
    return dict(load_schema_document(fixture_path(name)))
