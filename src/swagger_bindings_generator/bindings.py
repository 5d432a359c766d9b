"""Turn the schema model into structure and request-builder definitions."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel

from .codegen_ast import BUILDER_LOCALS, SERIALIZER_METHOD, prelude_names, runtime_builtins
from .errors import UnsupportedTypeError
from .model_types import (
    PRIMITIVE_KINDS,
    ArgumentDef,
    BindingModule,
    BodyDef,
    BodyEncoding,
    BuilderDef,
    Definition,
    FieldDef,
    Operation,
    Parameter,
    ParameterLocation,
    SchemaModel,
    SecurityScheme,
    StructDef,
)
from .naming import (
    DEFINITIONS_PREFIX,
    ensure_unique,
    python_identifier,
    strip_newlines,
    strip_operation_prefix,
    to_pascal_case,
    to_snake_case,
)
from .type_resolver import ResolvedType, TypeResolver, describe

logger = logging.getLogger(__name__)

AUTHENTICATION_ARGUMENTS: dict[SecurityScheme, tuple[str, ...]] = {
    SecurityScheme.BASIC_AUTH: ("basic_auth_username", "basic_auth_password"),
    SecurityScheme.BEARER_TOKEN: ("bearer_token",),
}
DEFAULT_SECURITY_SCHEME = SecurityScheme.BEARER_TOKEN

_BUILTIN_IDENTIFIER_RESERVED = {
    "bool",
    "bytes",
    "complex",
    "dict",
    "float",
    "frozenset",
    "int",
    "list",
    "set",
    "str",
    "tuple",
    "type",
}
_FIELD_RESERVED: frozenset[str] = frozenset(
    {*dir(BaseModel), *_BUILTIN_IDENTIFIER_RESERVED, SERIALIZER_METHOD}
)
_GENERATED_SOURCE = "<generated runtime>"
_BUILTINS_SOURCE = "<builtins>"


class BindingBuilder:
    """Build the binding definitions for one schema model.

    Names are normalized and checked here; nothing is rendered yet.
    """

    def __init__(self, model: SchemaModel, *, operation_prefix: Optional[str] = None) -> None:
        self._model = model
        self._operation_prefix = operation_prefix
        self._resolver = TypeResolver(model.definitions)

    def build(self) -> BindingModule:
        """Build every structure and request builder in emission order."""
        self._resolver.check_reference_cycles()

        structs = tuple(self._build_struct(definition) for definition in self._model.definitions)
        warnings: list[str] = []
        builders = tuple(
            self._build_builder(operation, warnings) for operation in self._model.operations
        )

        ensure_unique(
            [
                *((name, _GENERATED_SOURCE) for name in sorted(prelude_names())),
                *((name, _BUILTINS_SOURCE) for name in sorted(runtime_builtins())),
                *((struct.name, struct.source_name) for struct in structs),
                *((builder.name, builder.source_name) for builder in builders),
            ],
            location="module",
        )
        return BindingModule(structs=structs, builders=builders, warnings=tuple(warnings))

    def _build_struct(self, definition: Definition) -> StructDef:
        location = f"definition '{definition.name}'"
        name = self._resolver.structure_name(DEFINITIONS_PREFIX + definition.name, location)

        fields: list[FieldDef] = []
        for prop in definition.properties:
            prop_location = f"{location} property '{prop.name}'"
            field_name = python_identifier(
                to_snake_case(prop.name),
                source_name=prop.name,
                reserved=_FIELD_RESERVED,
                location=prop_location,
            )
            resolved = self._resolver.resolve(prop.descriptor, required=True, location=prop_location)
            fields.append(
                FieldDef(
                    name=field_name,
                    source_name=prop.name,
                    annotation=resolved.annotation,
                    default=resolved.default,
                    default_factory=resolved.default_factory,
                )
            )
        ensure_unique(((field.name, field.source_name) for field in fields), location=location)

        logger.debug("Structure %s: %d fields", name, len(fields))
        return StructDef(
            name=name,
            source_name=definition.name,
            docstring=strip_newlines(definition.description) or None,
            fields=tuple(fields),
        )

    def _build_builder(self, operation: Operation, warnings: list[str]) -> BuilderDef:
        location = operation.location
        function_name = python_identifier(
            to_snake_case(strip_operation_prefix(operation.operation_id, self._operation_prefix)),
            source_name=operation.operation_id,
            location=location,
        )

        scheme = operation.security or DEFAULT_SECURITY_SCHEME
        arguments: list[ArgumentDef] = [
            ArgumentDef(
                name=auth_name,
                source_name=auth_name,
                annotation="str",
                location=None,
                optional=False,
            )
            for auth_name in AUTHENTICATION_ARGUMENTS[scheme]
        ]

        body: Optional[BodyDef] = None
        for parameter in operation.parameters:
            parameter_location = f"{location} parameter '{parameter.name}'"
            argument_name = python_identifier(
                to_snake_case(parameter.name),
                source_name=parameter.name,
                location=parameter_location,
            )
            resolved = self._resolver.resolve(
                parameter.descriptor,
                required=parameter.required,
                location=parameter_location,
            )
            _check_parameter_shape(parameter, resolved, parameter_location)
            warnings.extend(_parameter_warnings(operation, parameter, parameter_location))

            arguments.append(
                ArgumentDef(
                    name=argument_name,
                    source_name=parameter.name,
                    annotation=resolved.annotation,
                    location=parameter.location,
                    optional=resolved.optional,
                    is_sequence=resolved.is_sequence,
                )
            )
            if parameter.location is ParameterLocation.BODY:
                body = BodyDef(
                    argument=argument_name,
                    encoding=_body_encoding(resolved),
                    optional=resolved.optional,
                )

        ensure_unique(
            [
                *((local, _GENERATED_SOURCE) for local in sorted(BUILDER_LOCALS)),
                *((argument.name, argument.source_name) for argument in arguments),
            ],
            location=location,
        )

        response = "None"
        if operation.response_reference is not None:
            response = self._resolver.structure_name(operation.response_reference, location)

        logger.debug("Request builder %s for %s", function_name, location)
        return BuilderDef(
            name=function_name,
            source_name=operation.operation_id,
            docstring=strip_newlines(operation.summary) or None,
            path=operation.path,
            method_member=to_pascal_case(operation.method.value),
            authentication=scheme,
            arguments=tuple(arguments),
            body=body,
            response_annotation=f"RestRequest[{response}]",
        )


def _check_parameter_shape(parameter: Parameter, resolved: ResolvedType, location: str) -> None:
    descriptor = parameter.descriptor
    if parameter.location is ParameterLocation.PATH:
        if descriptor.kind not in PRIMITIVE_KINDS:
            raise UnsupportedTypeError(
                describe(descriptor), "path parameters must be primitive", location
            )
    elif parameter.location is ParameterLocation.QUERY:
        if resolved.is_sequence:
            element = descriptor.element
            if element is None or element.kind not in PRIMITIVE_KINDS:
                raise UnsupportedTypeError(
                    describe(descriptor), "query arrays must hold primitives", location
                )
        elif descriptor.kind not in PRIMITIVE_KINDS:
            raise UnsupportedTypeError(
                describe(descriptor), "query parameters must be primitives or arrays", location
            )


def _parameter_warnings(operation: Operation, parameter: Parameter, location: str) -> list[str]:
    if parameter.location is not ParameterLocation.PATH:
        return []
    warnings: list[str] = []
    if not parameter.required:
        warnings.append(
            f"{location}: optional path parameter is substituted unconditionally"
        )
    if f"{{{parameter.name}}}" not in operation.path:
        warnings.append(f"{location}: path template has no '{{{parameter.name}}}' placeholder")
    return warnings


def _body_encoding(resolved: ResolvedType) -> BodyEncoding:
    if resolved.is_structure:
        return BodyEncoding.STRUCTURE
    if resolved.is_string:
        return BodyEncoding.TEXT
    return BodyEncoding.VALUE
