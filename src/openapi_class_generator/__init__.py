"""OpenAPI to pydantic class generator package."""

from __future__ import annotations

from .cli import main
from .generator import GenerationRun, generate_models, generate_source, run_generation
from .settings import GeneratorSettings, load_settings

__all__ = [
    "GenerationRun",
    "GeneratorSettings",
    "generate_models",
    "generate_source",
    "load_settings",
    "main",
    "run_generation",
]
