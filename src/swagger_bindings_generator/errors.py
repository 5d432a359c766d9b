"""Exceptions raised while generating bindings."""

from __future__ import annotations

from typing import Optional


class GenerationError(RuntimeError):
    """Base class for every fatal generation failure."""

    def __init__(self, message: str, location: Optional[str] = None) -> None:
        self.location = location
        full_message = message if not location else f"[{location}] {message}"
        super().__init__(full_message)


class EmissionTemplateError(GenerationError):
    """Raised when the runtime prelude emitted into every module is malformed."""


class SchemaInputError(GenerationError):
    """Raised when the API description cannot be turned into bindings."""


class SchemaLoadError(SchemaInputError):
    """Raised when a source document cannot be read or decoded."""


class UnresolvedReferenceError(SchemaInputError):
    """Raised when a reference names a definition that is not declared."""

    def __init__(self, reference: str, location: Optional[str] = None) -> None:
        self.reference = reference
        super().__init__(f"Unresolved reference '{reference}'", location)


class UnsupportedTypeError(SchemaInputError):
    """Raised when a type descriptor has no mapping to a target type."""

    def __init__(self, type_name: str, context: str, location: Optional[str] = None) -> None:
        self.type_name = type_name
        super().__init__(f"No type mapping for '{type_name}' ({context})", location)


class InvalidIdentifierError(SchemaInputError):
    """Raised when a normalized name is not a valid Python identifier."""

    def __init__(self, identifier: str, source_name: str, location: Optional[str] = None) -> None:
        self.identifier = identifier
        self.source_name = source_name
        super().__init__(
            f"'{source_name}' normalizes to '{identifier}', which is not a valid identifier",
            location,
        )


class IdentifierCollisionError(SchemaInputError):
    """Raised when distinct source names normalize to the same identifier."""

    def __init__(
        self,
        identifier: str,
        source_names: tuple[str, ...],
        location: Optional[str] = None,
    ) -> None:
        self.identifier = identifier
        self.source_names = source_names
        joined = ", ".join(repr(name) for name in source_names)
        super().__init__(f"Names {joined} all normalize to '{identifier}'", location)
