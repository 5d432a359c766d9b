"""Internal datatypes for the schema model and the bindings emitted from it."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, TypeAlias, Union

ZeroValue: TypeAlias = Union[int, float, bool, str]

INTEGER_KIND = "integer"
NUMBER_KIND = "number"
BOOLEAN_KIND = "boolean"
STRING_KIND = "string"
ARRAY_KIND = "array"
OBJECT_KIND = "object"
REFERENCE_KIND = "reference"

PRIMITIVE_KINDS: frozenset[str] = frozenset({INTEGER_KIND, NUMBER_KIND, BOOLEAN_KIND, STRING_KIND})


class ParameterLocation(str, Enum):
    """Where an operation parameter travels in the request."""

    PATH = "path"
    QUERY = "query"
    BODY = "body"


class HttpMethod(str, Enum):
    """HTTP methods that get a request builder, keyed as in the ``paths`` object."""

    GET = "get"
    POST = "post"
    PUT = "put"
    DELETE = "delete"


class SecurityScheme(str, Enum):
    """Selects the authentication arguments a request builder accepts."""

    BASIC_AUTH = "BasicAuth"
    BEARER_TOKEN = "BearerToken"


class BodyEncoding(str, Enum):
    """How a body argument becomes request body text."""

    STRUCTURE = "structure"
    TEXT = "text"
    VALUE = "value"


@dataclass(frozen=True)
class TypeDescriptor:
    """Type of a property or parameter as declared in the source document.

    ``kind`` is the declared type name, or ``"reference"``. Arrays carry their
    item descriptor and maps their value descriptor in ``element``.
    """

    kind: str
    reference: Optional[str] = None
    element: Optional[TypeDescriptor] = None


@dataclass(frozen=True)
class Property:
    """One property of a definition."""

    name: str
    descriptor: TypeDescriptor
    description: str


@dataclass(frozen=True)
class Definition:
    """A named schema definition; properties are sorted by name."""

    name: str
    description: str
    properties: tuple[Property, ...]


@dataclass(frozen=True)
class Parameter:
    """One operation parameter, in declaration order."""

    name: str
    location: ParameterLocation
    required: bool
    descriptor: TypeDescriptor
    description: str


@dataclass(frozen=True)
class Operation:
    """One HTTP method bound to one path template."""

    path: str
    method: HttpMethod
    operation_id: str
    summary: str
    parameters: tuple[Parameter, ...]
    response_reference: Optional[str]
    security: Optional[SecurityScheme]

    @property
    def location(self) -> str:
        """Human readable position of the operation in the source document."""
        return f"{self.method.value.upper()} {self.path}"


@dataclass(frozen=True)
class SchemaModel:
    """Read-only view of the whole API description.

    Definitions are sorted by name, operations by path then method.
    """

    definitions: tuple[Definition, ...]
    operations: tuple[Operation, ...]
    sub_namespace: Optional[str] = None


@dataclass(frozen=True)
class FieldDef:
    """Represents a single field of a generated structure."""

    name: str
    source_name: str
    annotation: str
    default: Optional[ZeroValue]
    default_factory: Optional[str]


@dataclass(frozen=True)
class StructDef:
    """Represents a generated structure with its serializer."""

    name: str
    source_name: str
    docstring: Optional[str]
    fields: tuple[FieldDef, ...]


@dataclass(frozen=True)
class ArgumentDef:
    """One argument of a generated request builder.

    Authentication arguments have no location.
    """

    name: str
    source_name: str
    annotation: str
    location: Optional[ParameterLocation]
    optional: bool
    is_sequence: bool = False


@dataclass(frozen=True)
class BodyDef:
    """Request body source for a builder."""

    argument: str
    encoding: BodyEncoding
    optional: bool


@dataclass(frozen=True)
class BuilderDef:
    """Represents a generated request-builder function."""

    name: str
    source_name: str
    docstring: Optional[str]
    path: str
    method_member: str
    authentication: SecurityScheme
    arguments: tuple[ArgumentDef, ...]
    body: Optional[BodyDef]
    response_annotation: str

    @property
    def path_arguments(self) -> tuple[ArgumentDef, ...]:
        """Arguments substituted into the path template."""
        return tuple(arg for arg in self.arguments if arg.location is ParameterLocation.PATH)

    @property
    def query_arguments(self) -> tuple[ArgumentDef, ...]:
        """Arguments appended to the query string, in declaration order."""
        return tuple(arg for arg in self.arguments if arg.location is ParameterLocation.QUERY)


@dataclass(frozen=True)
class BindingModule:
    """Everything that goes into one generated module, in emission order."""

    structs: tuple[StructDef, ...]
    builders: tuple[BuilderDef, ...]
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class GenerationResult:
    """Generation output metadata."""

    output_path: Optional[str]
    source: str
    struct_count: int
    builder_count: int
    warnings: tuple[str, ...]
