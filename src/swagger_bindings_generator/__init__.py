"""Swagger 2.0 to typed Python client-binding generator package."""

from __future__ import annotations

from .cli import main
from .generator import GenerationRun, GeneratorOptions, run_generation

__all__ = ["GenerationRun", "GeneratorOptions", "main", "run_generation"]
