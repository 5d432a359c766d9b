"""Typed view of the decoded Swagger document."""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import SchemaLoadError


class _DocumentNode(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class SchemaNode(_DocumentNode):
    """A property, item or body schema."""

    type: Optional[str] = None
    ref: Optional[str] = Field(None, alias="$ref")
    items: Optional[SchemaNode] = None
    additional_properties: Union[SchemaNode, bool, None] = Field(
        None, alias="additionalProperties"
    )
    properties: Optional[dict[str, Any]] = None
    format: Optional[str] = None
    description: str = ""


class ParameterNode(_DocumentNode):
    """An entry of an operation's ``parameters`` list."""

    name: str
    location: str = Field(alias="in")
    required: bool = False
    type: Optional[str] = None
    items: Optional[SchemaNode] = None
    additional_properties: Union[SchemaNode, bool, None] = Field(
        None, alias="additionalProperties"
    )
    schema_node: Optional[SchemaNode] = Field(None, alias="schema")
    format: Optional[str] = None
    description: str = ""


class ResponseNode(_DocumentNode):
    """One entry of an operation's ``responses`` object."""

    description: str = ""
    schema_node: Optional[SchemaNode] = Field(None, alias="schema")


class OperationNode(_DocumentNode):
    """One operation under a path item."""

    summary: str = ""
    description: str = ""
    operation_id: Optional[str] = Field(None, alias="operationId")
    parameters: list[ParameterNode] = Field(default_factory=list)
    responses: dict[str, ResponseNode] = Field(default_factory=dict)
    security: Optional[list[dict[str, list[str]]]] = None

    @field_validator("responses", mode="before")
    @classmethod
    def _status_codes_as_strings(cls, value: Any) -> Any:
        # YAML decodes unquoted status codes as integers.
        if isinstance(value, dict):
            return {str(status): response for status, response in value.items()}
        return value


class PathItemNode(BaseModel):
    """Operations bound to one path template.

    Methods without a request builder end up in ``model_extra``.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    parameters: list[ParameterNode] = Field(default_factory=list)
    get: Optional[OperationNode] = None
    post: Optional[OperationNode] = None
    put: Optional[OperationNode] = None
    delete: Optional[OperationNode] = None


class DefinitionNode(_DocumentNode):
    """One entry of the ``definitions`` object."""

    type: Optional[str] = None
    description: str = ""
    properties: dict[str, SchemaNode] = Field(default_factory=dict)


class SecurityDefinitionNode(_DocumentNode):
    """One entry of the ``securityDefinitions`` object."""

    type: str
    name: Optional[str] = None
    location: Optional[str] = Field(None, alias="in")


class SwaggerDocument(_DocumentNode):
    """The parts of a Swagger document that bindings are generated from."""

    swagger: Optional[str] = None
    definitions: dict[str, DefinitionNode] = Field(default_factory=dict)
    paths: dict[str, PathItemNode] = Field(default_factory=dict)
    security_definitions: dict[str, SecurityDefinitionNode] = Field(
        default_factory=dict, alias="securityDefinitions"
    )


def parse_document(payload: dict[str, Any], *, source: str) -> SwaggerDocument:
    """Validate the decoded payload against the shapes the generator reads.

    Args:
        payload (dict[str, Any]): Decoded JSON/YAML mapping.
        source (str): Where the payload came from, for error messages.

    Returns:
        SwaggerDocument: Typed document.
    """
    try:
        return SwaggerDocument.model_validate(payload)
    except ValidationError as exc:
        raise SchemaLoadError(f"Malformed API description: {exc}", source) from exc
