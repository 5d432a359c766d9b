"""Tests for the schema type to Python annotation mapping."""

from __future__ import annotations

import pytest

from swagger_bindings_generator.errors import UnresolvedReferenceError, UnsupportedTypeError
from swagger_bindings_generator.model_types import Definition, Property, TypeDescriptor
from swagger_bindings_generator.type_resolver import TypeResolver, describe

_LOCATION = "definition 'Test'"


def _ref(name: str) -> TypeDescriptor:
    return TypeDescriptor(kind="reference", reference=f"#/definitions/{name}")


def _array(element: TypeDescriptor) -> TypeDescriptor:
    return TypeDescriptor(kind="array", element=element)


def _map(element: TypeDescriptor) -> TypeDescriptor:
    return TypeDescriptor(kind="object", element=element)


def _definition(name: str, **properties: TypeDescriptor) -> Definition:
    return Definition(
        name=name,
        description="",
        properties=tuple(
            Property(name=prop_name, descriptor=descriptor, description="")
            for prop_name, descriptor in sorted(properties.items())
        ),
    )


@pytest.fixture
def resolver() -> TypeResolver:
    return TypeResolver([_definition("apiUser"), _definition("Account")])


@pytest.mark.parametrize(
    ("descriptor", "annotation", "default", "default_factory"),
    [
        (TypeDescriptor(kind="integer"), "int", 0, None),
        (TypeDescriptor(kind="number"), "float", 0.0, None),
        (TypeDescriptor(kind="boolean"), "bool", False, None),
        (TypeDescriptor(kind="string"), "str", "", None),
        (_array(TypeDescriptor(kind="string")), "list[str]", None, "list"),
        (_array(TypeDescriptor(kind="integer")), "list[int]", None, "list"),
        (_array(_ref("apiUser")), "list[ApiUser]", None, "list"),
        (_map(TypeDescriptor(kind="string")), "dict[str, str]", None, "dict"),
        (_map(TypeDescriptor(kind="boolean")), "dict[str, bool]", None, "dict"),
        (_ref("apiUser"), "ApiUser", None, "lambda: ApiUser()"),
    ],
)
def test_supported_types_map_to_annotations_and_zero_values(
    resolver: TypeResolver,
    descriptor: TypeDescriptor,
    annotation: str,
    default: object,
    default_factory: object,
) -> None:
    """Every supported descriptor has an annotation and a zero value."""
    resolved = resolver.resolve(descriptor, required=True, location=_LOCATION)
    assert resolved.annotation == annotation
    assert resolved.default == default
    assert resolved.default_factory == default_factory
    assert not resolved.optional


def test_optional_types_are_wrapped(resolver: TypeResolver) -> None:
    """Not-required values are wrapped and carry no default."""
    resolved = resolver.resolve(_array(_ref("Account")), required=False, location=_LOCATION)
    assert resolved.annotation == "Optional[list[Account]]"
    assert resolved.optional
    assert resolved.default is None
    assert resolved.default_factory is None
    assert resolved.is_sequence


@pytest.mark.parametrize(
    ("descriptor", "type_name"),
    [
        (_map(_map(TypeDescriptor(kind="string"))), "map of map of string"),
        (_array(_array(TypeDescriptor(kind="string"))), "array of array of string"),
        (_map(_ref("Account")), "map of #/definitions/Account"),
        (TypeDescriptor(kind="object"), "map"),
        (TypeDescriptor(kind="array"), "array"),
        (TypeDescriptor(kind="file"), "file"),
        (TypeDescriptor(kind=""), "untyped"),
    ],
)
def test_unsupported_types_raise(
    resolver: TypeResolver, descriptor: TypeDescriptor, type_name: str
) -> None:
    """Unmapped shapes are fatal and name their location."""
    with pytest.raises(UnsupportedTypeError) as excinfo:
        resolver.resolve(descriptor, required=True, location=_LOCATION)
    assert excinfo.value.type_name == type_name
    assert excinfo.value.location == _LOCATION


def test_unknown_reference_raises(resolver: TypeResolver) -> None:
    """References to undeclared definitions cannot be resolved."""
    with pytest.raises(UnresolvedReferenceError, match="#/definitions/Missing"):
        resolver.resolve(_ref("Missing"), required=True, location=_LOCATION)


def test_describe() -> None:
    """Descriptors render as readable type names."""
    assert describe(_array(TypeDescriptor(kind="integer"))) == "array of integer"
    assert describe(_ref("Account")) == "#/definitions/Account"


def test_reference_cycle_through_fields_is_rejected() -> None:
    """A structure reaching itself through direct references has no zero value."""
    resolver = TypeResolver(
        [
            _definition("Node", next=_ref("Link")),
            _definition("Link", node=_ref("Node")),
        ]
    )
    with pytest.raises(UnsupportedTypeError, match="Link -> Node -> Link"):
        resolver.check_reference_cycles()


def test_reference_cycle_through_list_is_allowed() -> None:
    """Lists default to empty, so recursive trees are fine."""
    resolver = TypeResolver(
        [
            _definition("Tree", children=_array(_ref("Tree")), label=TypeDescriptor(kind="string")),
        ]
    )
    resolver.check_reference_cycles()
