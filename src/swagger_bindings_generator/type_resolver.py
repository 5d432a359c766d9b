"""Map schema type descriptors to Python annotations and zero values."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from .errors import UnresolvedReferenceError, UnsupportedTypeError
from .model_types import (
    ARRAY_KIND,
    BOOLEAN_KIND,
    INTEGER_KIND,
    NUMBER_KIND,
    OBJECT_KIND,
    REFERENCE_KIND,
    STRING_KIND,
    Definition,
    TypeDescriptor,
    ZeroValue,
)
from .naming import (
    class_name_from_reference,
    definition_name_from_reference,
    python_identifier,
)

# Integers and numbers are 32-bit on the wire; Python's int and float hold both.
_PRIMITIVE_TYPES: dict[str, tuple[str, ZeroValue]] = {
    INTEGER_KIND: ("int", 0),
    NUMBER_KIND: ("float", 0.0),
    BOOLEAN_KIND: ("bool", False),
    STRING_KIND: ("str", ""),
}


@dataclass(frozen=True)
class ResolvedType:
    """Target annotation for one descriptor.

    Required types carry their zero value either as a constant ``default`` or
    as a ``default_factory`` expression. Optional types default to nothing.
    """

    annotation: str
    descriptor: TypeDescriptor
    optional: bool
    default: Optional[ZeroValue] = None
    default_factory: Optional[str] = None

    @property
    def is_sequence(self) -> bool:
        """Whether values are lists."""
        return self.descriptor.kind == ARRAY_KIND

    @property
    def is_structure(self) -> bool:
        """Whether values are generated structures."""
        return self.descriptor.kind == REFERENCE_KIND

    @property
    def is_string(self) -> bool:
        """Whether values are plain strings."""
        return self.descriptor.kind == STRING_KIND


class TypeResolver:
    """Resolve descriptors against the definitions of one schema model."""

    def __init__(self, definitions: Iterable[Definition]) -> None:
        self._definitions = {definition.name: definition for definition in definitions}

    def resolve(
        self,
        descriptor: TypeDescriptor,
        *,
        required: bool,
        location: str,
    ) -> ResolvedType:
        """Resolve a descriptor, wrapping it in ``Optional`` when not required.

        Args:
            descriptor (TypeDescriptor): Declared type.
            required (bool): Whether a value is always present.
            location (str): Owning definition/operation, for error messages.

        Returns:
            ResolvedType: Annotation plus zero value.
        """
        annotation, default, default_factory = self._resolve_required(descriptor, location)
        if not required:
            return ResolvedType(
                annotation=f"Optional[{annotation}]",
                descriptor=descriptor,
                optional=True,
            )
        return ResolvedType(
            annotation=annotation,
            descriptor=descriptor,
            optional=False,
            default=default,
            default_factory=default_factory,
        )

    def structure_name(self, reference: str, location: str) -> str:
        """Return the class name for a reference, checking that it resolves."""
        target = definition_name_from_reference(reference)
        if target is None or target not in self._definitions:
            raise UnresolvedReferenceError(reference, location)
        return python_identifier(
            class_name_from_reference(reference), source_name=target, location=location
        )

    def check_reference_cycles(self) -> None:
        """Reject structures that contain themselves through direct references.

        Such a structure has no finite zero value. Cycles through lists or maps
        are fine since those default to empty.
        """
        edges: dict[str, list[str]] = {}
        for name, definition in self._definitions.items():
            targets: list[str] = []
            for prop in definition.properties:
                if prop.descriptor.kind != REFERENCE_KIND or prop.descriptor.reference is None:
                    continue
                target = definition_name_from_reference(prop.descriptor.reference)
                if target is not None and target in self._definitions:
                    targets.append(target)
            edges[name] = targets

        finished: set[str] = set()

        def visit(name: str, trail: tuple[str, ...]) -> None:
            if name in trail:
                cycle = " -> ".join((*trail[trail.index(name) :], name))
                raise UnsupportedTypeError(
                    cycle,
                    "structure contains itself without a list or map in between",
                    f"definition '{name}'",
                )
            if name in finished:
                return
            for target in edges[name]:
                visit(target, (*trail, name))
            finished.add(name)

        for name in sorted(edges):
            visit(name, ())

    def _resolve_required(
        self,
        descriptor: TypeDescriptor,
        location: str,
    ) -> tuple[str, Optional[ZeroValue], Optional[str]]:
        kind = descriptor.kind
        if kind in _PRIMITIVE_TYPES:
            annotation, zero = _PRIMITIVE_TYPES[kind]
            return annotation, zero, None

        if kind == REFERENCE_KIND and descriptor.reference is not None:
            name = self.structure_name(descriptor.reference, location)
            return name, None, f"lambda: {name}()"

        if kind == ARRAY_KIND:
            item = self._element_annotation(descriptor, allow_structure=True, location=location)
            return f"list[{item}]", None, "list"

        if kind == OBJECT_KIND:
            value = self._element_annotation(descriptor, allow_structure=False, location=location)
            return f"dict[str, {value}]", None, "dict"

        raise UnsupportedTypeError(describe(descriptor), "unknown schema type", location)

    def _element_annotation(
        self,
        descriptor: TypeDescriptor,
        *,
        allow_structure: bool,
        location: str,
    ) -> str:
        element = descriptor.element
        if element is None:
            reason = (
                "array without items"
                if descriptor.kind == ARRAY_KIND
                else "object without additionalProperties"
            )
            raise UnsupportedTypeError(describe(descriptor), reason, location)

        if element.kind in _PRIMITIVE_TYPES:
            return _PRIMITIVE_TYPES[element.kind][0]
        if allow_structure and element.kind == REFERENCE_KIND and element.reference is not None:
            return self.structure_name(element.reference, location)
        raise UnsupportedTypeError(
            describe(descriptor), "unsupported element type in collection", location
        )


def describe(descriptor: TypeDescriptor) -> str:
    """Render a descriptor for error messages, e.g. ``map of array of string``."""
    if descriptor.kind == REFERENCE_KIND:
        return descriptor.reference or REFERENCE_KIND
    if descriptor.kind in (ARRAY_KIND, OBJECT_KIND):
        noun = "array" if descriptor.kind == ARRAY_KIND else "map"
        if descriptor.element is None:
            return noun
        return f"{noun} of {describe(descriptor.element)}"
    return descriptor.kind or "untyped"
