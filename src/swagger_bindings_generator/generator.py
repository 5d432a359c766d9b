"""High-level generator orchestration."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Optional, TextIO

from .bindings import BindingBuilder
from .codegen_ast import load_runtime_prelude, render_bindings_module
from .loader import load_swagger_document
from .model_types import BindingModule, GenerationResult, SchemaModel
from .schema_model import build_schema_model
from .writer import format_source, write_output

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratorOptions:
    """Settings for one generation run."""

    input_path: Path
    output_path: Optional[Path] = None
    sub_namespace: Optional[str] = None
    operation_prefix: Optional[str] = None
    format_output: bool = True


@dataclass(frozen=True)
class GenerationRun:
    """Generation result with the schema model it was built from."""

    result: GenerationResult
    model: SchemaModel


def run_generation(options: GeneratorOptions, *, stream: Optional[TextIO] = None) -> GenerationRun:
    """Generate a bindings module from a Swagger document.

    Nothing is written unless the whole document was turned into source.

    Args:
        options (GeneratorOptions): Input, output and emission settings.
        stream (Optional[TextIO]): Stream used when no output path is set.

    Returns:
        GenerationRun: Generation metadata and the schema model.
    """
    # Fail on a broken prelude before touching the input.
    load_runtime_prelude()

    document = load_swagger_document(options.input_path)
    model, warnings = build_schema_model(document, sub_namespace=options.sub_namespace)
    bindings = BindingBuilder(model, operation_prefix=options.operation_prefix).build()
    warnings.extend(bindings.warnings)

    source = generate_source(bindings, format_output=options.format_output)
    write_output(source, options.output_path, stream=stream)

    result = GenerationResult(
        output_path=str(options.output_path) if options.output_path is not None else None,
        source=source,
        struct_count=len(bindings.structs),
        builder_count=len(bindings.builders),
        warnings=tuple(warnings),
    )
    logger.info(
        "Generated %d structures and %d request builders",
        result.struct_count,
        result.builder_count,
    )
    return GenerationRun(result=result, model=model)


def generate_source(bindings: BindingModule, *, format_output: bool = True) -> str:
    """Render binding definitions, optionally through the Ruff formatter.

    Args:
        bindings (BindingModule): Structures and builders to emit.
        format_output (bool): Whether to run ``ruff format`` on the result.

    Returns:
        str: Generated Python source.
    """
    source = render_bindings_module(bindings)
    if format_output:
        source = format_source(source)
    return source
