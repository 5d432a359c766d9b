"""API description loading."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from .document import SwaggerDocument, parse_document
from .errors import SchemaLoadError


def load_swagger_document(path: Path) -> SwaggerDocument:
    """Read, decode and type-check an API description file (JSON or YAML)."""
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise SchemaLoadError(f"Failed to read API description {path}: {exc}") from exc
    return load_swagger_bytes(raw, source=str(path))


def load_swagger_bytes(raw: bytes, *, source: str) -> SwaggerDocument:
    """Decode raw API description bytes supplied by the caller."""
    payload = _decode(raw, source=source)
    return parse_document(payload, source=source)


def _decode(raw: bytes, *, source: str) -> dict[str, Any]:
    payload: Any
    if raw.lstrip().startswith(b"{"):
        try:
            payload = json.loads(raw)
        except ValueError as exc:
            raise SchemaLoadError(f"Failed to parse JSON in {source}: {exc}") from exc
    else:
        try:
            payload = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise SchemaLoadError(f"Failed to parse YAML in {source}: {exc}") from exc

    if not isinstance(payload, dict):
        raise SchemaLoadError(
            f"API description must decode to a mapping, got {type(payload)!r}", source
        )
    return payload
