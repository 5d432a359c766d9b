"""Build the read-only schema model from a decoded Swagger document."""

from __future__ import annotations

import logging
from typing import Optional

from .document import OperationNode, ParameterNode, PathItemNode, SchemaNode, SwaggerDocument
from .errors import SchemaInputError, UnresolvedReferenceError
from .model_types import (
    ARRAY_KIND,
    OBJECT_KIND,
    REFERENCE_KIND,
    Definition,
    HttpMethod,
    Operation,
    Parameter,
    ParameterLocation,
    Property,
    SchemaModel,
    SecurityScheme,
    TypeDescriptor,
)
from .naming import definition_name_from_reference

logger = logging.getLogger(__name__)

_SUCCESS_STATUS = "200"
_SKIPPED_METHODS: tuple[str, ...] = ("patch", "head", "options")

# Scheme names recognised directly; HttpKeyAuth is the historical bearer name.
_SECURITY_SCHEME_NAMES: dict[str, SecurityScheme] = {
    "BasicAuth": SecurityScheme.BASIC_AUTH,
    "BearerToken": SecurityScheme.BEARER_TOKEN,
    "HttpKeyAuth": SecurityScheme.BEARER_TOKEN,
}
_SECURITY_DEFINITION_TYPES: dict[str, SecurityScheme] = {
    "basic": SecurityScheme.BASIC_AUTH,
    "apiKey": SecurityScheme.BEARER_TOKEN,
}


def build_schema_model(
    document: SwaggerDocument,
    *,
    sub_namespace: Optional[str] = None,
) -> tuple[SchemaModel, list[str]]:
    """Build the schema model and collect non-fatal warnings.

    Args:
        document (SwaggerDocument): Typed source document.
        sub_namespace (Optional[str]): Opaque tag carried on the model.

    Returns:
        tuple[SchemaModel, list[str]]: The model and warnings about skipped input.
    """
    definition_names = frozenset(document.definitions)
    definitions = tuple(
        _build_definition(name, document, definition_names)
        for name in sorted(document.definitions)
    )

    warnings: list[str] = []
    operations: list[Operation] = []
    for path in sorted(document.paths):
        path_item = document.paths[path]
        warnings.extend(_skipped_method_warnings(path, path_item))
        for method in sorted(HttpMethod, key=lambda item: item.value):
            operation_node = getattr(path_item, method.value)
            if operation_node is None:
                continue
            operations.append(
                _build_operation(
                    path=path,
                    method=method,
                    path_item=path_item,
                    node=operation_node,
                    document=document,
                    definition_names=definition_names,
                )
            )

    logger.info(
        "Loaded %d definitions and %d operations", len(definitions), len(operations)
    )
    model = SchemaModel(
        definitions=definitions,
        operations=tuple(operations),
        sub_namespace=sub_namespace,
    )
    return model, warnings


def _build_definition(
    name: str,
    document: SwaggerDocument,
    definition_names: frozenset[str],
) -> Definition:
    node = document.definitions[name]
    location = f"definition '{name}'"
    properties = tuple(
        Property(
            name=property_name,
            descriptor=_descriptor(
                node.properties[property_name],
                definition_names=definition_names,
                location=f"{location} property '{property_name}'",
            ),
            description=node.properties[property_name].description,
        )
        for property_name in sorted(node.properties)
    )
    return Definition(name=name, description=node.description, properties=properties)


def _build_operation(
    *,
    path: str,
    method: HttpMethod,
    path_item: PathItemNode,
    node: OperationNode,
    document: SwaggerDocument,
    definition_names: frozenset[str],
) -> Operation:
    location = f"{method.value.upper()} {path}"
    operation_id = (node.operation_id or "").strip()
    if not operation_id:
        raise SchemaInputError("Operation has no operationId", location)

    parameters = tuple(
        _build_parameter(parameter, definition_names=definition_names, location=location)
        for parameter in _merge_parameters(path_item.parameters, node.parameters)
    )
    body_parameters = [p.name for p in parameters if p.location is ParameterLocation.BODY]
    if len(body_parameters) > 1:
        raise SchemaInputError(
            f"Operation declares more than one body parameter: {', '.join(body_parameters)}",
            location,
        )

    return Operation(
        path=path,
        method=method,
        operation_id=operation_id,
        summary=node.summary or node.description,
        parameters=parameters,
        response_reference=_response_reference(
            node, definition_names=definition_names, location=location
        ),
        security=_security_scheme(node, document=document, location=location),
    )


def _merge_parameters(
    path_parameters: list[ParameterNode],
    operation_parameters: list[ParameterNode],
) -> list[ParameterNode]:
    # Operation-level parameters override path-level ones with the same name and location.
    overridden = {(parameter.name, parameter.location) for parameter in operation_parameters}
    inherited = [
        parameter
        for parameter in path_parameters
        if (parameter.name, parameter.location) not in overridden
    ]
    return [*inherited, *operation_parameters]


def _build_parameter(
    node: ParameterNode,
    *,
    definition_names: frozenset[str],
    location: str,
) -> Parameter:
    parameter_location = f"{location} parameter '{node.name}'"
    try:
        kind = ParameterLocation(node.location)
    except ValueError as exc:
        raise SchemaInputError(
            f"Unsupported parameter location '{node.location}'", parameter_location
        ) from exc

    if kind is ParameterLocation.BODY:
        if node.schema_node is None:
            raise SchemaInputError("Body parameter has no schema", parameter_location)
        schema = node.schema_node
    else:
        schema = SchemaNode(
            type=node.type,
            items=node.items,
            additional_properties=node.additional_properties,
            format=node.format,
        )

    return Parameter(
        name=node.name,
        location=kind,
        required=node.required,
        descriptor=_descriptor(
            schema, definition_names=definition_names, location=parameter_location
        ),
        description=node.description,
    )


def _descriptor(
    node: SchemaNode,
    *,
    definition_names: frozenset[str],
    location: str,
) -> TypeDescriptor:
    if node.ref is not None:
        target = definition_name_from_reference(node.ref)
        if target is None or target not in definition_names:
            raise UnresolvedReferenceError(node.ref, location)
        return TypeDescriptor(kind=REFERENCE_KIND, reference=node.ref)

    kind = node.type or ""
    element: Optional[TypeDescriptor] = None
    if kind == ARRAY_KIND and node.items is not None:
        element = _descriptor(node.items, definition_names=definition_names, location=location)
    elif kind == OBJECT_KIND and isinstance(node.additional_properties, SchemaNode):
        element = _descriptor(
            node.additional_properties, definition_names=definition_names, location=location
        )
    return TypeDescriptor(kind=kind, element=element)


def _response_reference(
    node: OperationNode,
    *,
    definition_names: frozenset[str],
    location: str,
) -> Optional[str]:
    response = node.responses.get(_SUCCESS_STATUS)
    if response is None or response.schema_node is None:
        return None
    ref = response.schema_node.ref
    if ref is None:
        return None
    target = definition_name_from_reference(ref)
    if target is None or target not in definition_names:
        raise UnresolvedReferenceError(ref, f"{location} response {_SUCCESS_STATUS}")
    return ref


def _security_scheme(
    node: OperationNode,
    *,
    document: SwaggerDocument,
    location: str,
) -> Optional[SecurityScheme]:
    if not node.security:
        return None
    requirement = node.security[0]
    if not requirement:
        return None
    if len(requirement) > 1:
        joined = ", ".join(sorted(requirement))
        raise SchemaInputError(
            f"Security requirement combines several schemes ({joined}); select one",
            location,
        )

    (scheme_name,) = requirement
    scheme = _SECURITY_SCHEME_NAMES.get(scheme_name)
    if scheme is not None:
        return scheme
    declared = document.security_definitions.get(scheme_name)
    if declared is not None and declared.type in _SECURITY_DEFINITION_TYPES:
        return _SECURITY_DEFINITION_TYPES[declared.type]
    raise SchemaInputError(f"Unsupported security scheme '{scheme_name}'", location)


def _skipped_method_warnings(path: str, path_item: PathItemNode) -> list[str]:
    extra = path_item.model_extra or {}
    return [
        f"Skipping {method.upper()} {path}: no request builder is generated for this method"
        for method in _SKIPPED_METHODS
        if method in extra
    ]
