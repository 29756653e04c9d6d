"""Shared helpers for fixture-driven tests."""

from __future__ import annotations

import importlib.util
import itertools
import sys
from collections.abc import Callable
from pathlib import Path
from types import ModuleType
from typing import ParamSpec, TypeVar

import pytest
from pydantic import BaseModel

_FIXTURE_DIR = Path(__file__).resolve().parent / "fixtures" / "openapi_specs"
_FIXTURE_SUFFIXES = (".yaml", ".yml", ".json")
_P = ParamSpec("_P")
_R = TypeVar("_R")
_COUNTER = itertools.count(1)


def fixture_dir() -> Path:
    """Return the OpenAPI fixtures directory."""
    return _FIXTURE_DIR


def fixture_path(name: str) -> Path:
    """Return the path of one named fixture."""
    return _FIXTURE_DIR / name


def iter_fixture_paths() -> list[Path]:
    """Return all YAML and JSON fixture paths sorted by name."""
    paths = sorted(path for path in _FIXTURE_DIR.iterdir() if path.suffix in _FIXTURE_SUFFIXES)
    return [path for path in paths if path.is_file()]


def parametrize_fixtures() -> Callable[[Callable[_P, _R]], Callable[_P, _R]]:
    """Parametrize a test over all fixture paths."""

    def _decorator(func: Callable[_P, _R]) -> Callable[_P, _R]:
        decorator: Callable[[Callable[_P, _R]], Callable[_P, _R]]
        decorator = pytest.mark.parametrize(
            "fixture_path",
            iter_fixture_paths(),
            ids=lambda path: path.name,
        )
        return decorator(func)

    return _decorator


def import_generated_source(source: str, directory: Path) -> ModuleType:
    """Write generated source to ``directory`` and import it with models rebuilt."""
    module_name = f"generated_test_{next(_COUNTER)}"
    module_path = directory / f"{module_name}.py"
    module_path.write_text(source, encoding="utf-8")
    spec = importlib.util.spec_from_file_location(module_name, module_path)
    if spec is None or spec.loader is None:
        raise RuntimeError(f"Unable to import generated test module from {module_path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    for value in list(module.__dict__.values()):
        if isinstance(value, type) and issubclass(value, BaseModel) and value is not BaseModel:
            value.model_rebuild(_types_namespace=module.__dict__)
    return module
