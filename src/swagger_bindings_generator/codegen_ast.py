"""AST-based Python code generation for client bindings."""

from __future__ import annotations

import ast
import builtins
from collections.abc import Iterable
from typing import Optional

from .errors import EmissionTemplateError
from .model_types import (
    ArgumentDef,
    BindingModule,
    BodyDef,
    BodyEncoding,
    BuilderDef,
    FieldDef,
    SecurityScheme,
    StructDef,
)

GENERATED_BANNER = "Code generated by swagger-bindings-generator. DO NOT EDIT."
SERIALIZER_METHOD = "to_rest_string"

# Locals assigned inside every request builder.
BUILDER_LOCALS: frozenset[str] = frozenset(
    {"urlpath", "query_params", "authentication", "body_json", "elem"}
)

# Builtins named by resolver annotations, which pydantic evaluates at import time.
_ANNOTATION_BUILTINS: tuple[str, ...] = ("bool", "dict", "float", "int", "list", "str")

# Standard library imports first, then third-party ones, one blank line apart.
_IMPORT_GROUPS: tuple[tuple[tuple[str, tuple[str, ...]], ...], ...] = (
    (
        ("dataclasses", ("dataclass",)),
        ("enum", ("Enum",)),
        ("typing", ("Generic", "Optional", "TypeVar", "Union")),
    ),
    (("pydantic", ("BaseModel", "ConfigDict", "Field")),),
)

_RUNTIME_PRELUDE = '''
ResponseT = TypeVar("ResponseT")


class Method(str, Enum):
    """HTTP method of a request."""

    Get = "GET"
    Post = "POST"
    Put = "PUT"
    Delete = "DELETE"


@dataclass(frozen=True)
class BasicAuthentication:
    """HTTP basic credentials."""

    username: str
    password: str


@dataclass(frozen=True)
class BearerAuthentication:
    """Bearer token credentials."""

    token: str


Authentication = Union[BasicAuthentication, BearerAuthentication]


@dataclass(frozen=True)
class RestRequest(Generic[ResponseT]):
    """Inert description of one request; ``ResponseT`` is the expected response."""

    authentication: Authentication
    urlpath: str
    query_params: str
    body: str
    method: Method


class RestModel(BaseModel):
    """Base class of every generated structure."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    def to_rest_string(self) -> str:
        raise NotImplementedError


def _rest_value(value: object) -> str:
    if isinstance(value, RestModel):
        return value.to_rest_string()
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, str):
        return '"' + value + '"'
    if isinstance(value, list):
        return "[" + ", ".join(_rest_value(item) for item in value) + "]"
    if isinstance(value, dict):
        if not value:
            return "{}"
        pairs = ", ".join('"' + str(key) + '": ' + _rest_value(item) for key, item in value.items())
        return "{ " + pairs + " }"
    return str(value)


def _query_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
'''


def load_runtime_prelude(source: str = _RUNTIME_PRELUDE) -> list[ast.stmt]:
    """Parse the runtime prelude that opens every generated module.

    Args:
        source (str): Prelude source text.

    Returns:
        list[ast.stmt]: Top-level prelude statements.
    """
    try:
        parsed = ast.parse(source)
    except SyntaxError as exc:
        raise EmissionTemplateError(f"Runtime prelude does not parse: {exc}") from exc
    return parsed.body


def prelude_names() -> frozenset[str]:
    """Return every module-level name a generated module binds before its structures."""
    names: set[str] = {"annotations"}
    for group in _IMPORT_GROUPS:
        for _, imported in group:
            names.update(imported)
    for statement in load_runtime_prelude():
        if isinstance(statement, (ast.ClassDef, ast.FunctionDef)):
            names.add(statement.name)
        elif isinstance(statement, ast.Assign):
            names.update(
                target.id for target in statement.targets if isinstance(target, ast.Name)
            )
    return frozenset(names)


def runtime_builtins() -> frozenset[str]:
    """Return the builtins a generated module looks up while it runs."""
    loaded = _extract_loaded_names(load_runtime_prelude())
    return frozenset(
        {*(name for name in loaded if hasattr(builtins, name)), *_ANNOTATION_BUILTINS}
    )


def render_bindings_module(module: BindingModule) -> str:
    """Render structures and request builders as one Python module.

    Args:
        module (BindingModule): Binding definitions in emission order.

    Returns:
        str: Generated Python source code.
    """
    prelude = load_runtime_prelude()
    structs = [_struct_to_ast(struct) for struct in module.structs]
    builders = [_builder_to_ast(builder) for builder in module.builders]

    definitions: list[ast.stmt] = [*prelude, *structs, *builders]

    sections = [
        [ast.Expr(value=ast.Constant(value=GENERATED_BANNER))],
        [ast.ImportFrom(module="__future__", names=[ast.alias(name="annotations")], level=0)],
        *_build_import_groups(definitions),
        definitions,
    ]
    return "\n\n".join(_unparse(section) for section in sections) + "\n"


def _struct_to_ast(struct: StructDef) -> ast.ClassDef:
    class_body: list[ast.stmt] = []
    if struct.docstring:
        class_body.append(ast.Expr(value=ast.Constant(value=struct.docstring)))
    for field in struct.fields:
        class_body.append(_field_to_ast(field))
    class_body.append(_serializer_to_ast(struct))

    return ast.ClassDef(
        name=struct.name,
        bases=[ast.Name(id="RestModel", ctx=ast.Load())],
        keywords=[],
        body=class_body,
        decorator_list=[],
        type_params=[],
    )


def _field_to_ast(field: FieldDef) -> ast.AnnAssign:
    args: list[ast.expr] = []
    keywords: list[ast.keyword] = []
    if field.default_factory is not None:
        keywords.append(ast.keyword(arg="default_factory", value=_expr(field.default_factory)))
    else:
        args.append(ast.Constant(value=field.default))
    if field.source_name != field.name:
        keywords.append(ast.keyword(arg="alias", value=ast.Constant(value=field.source_name)))

    return ast.AnnAssign(
        target=ast.Name(id=field.name, ctx=ast.Store()),
        annotation=_expr(field.annotation),
        value=ast.Call(func=ast.Name(id="Field", ctx=ast.Load()), args=args, keywords=keywords),
        simple=1,
    )


def _serializer_to_ast(struct: StructDef) -> ast.FunctionDef:
    lines = ["output = '{'"]
    for index, field in enumerate(struct.fields):
        if index:
            lines.append("output += ','")
        key = f'"{field.source_name}": '
        lines.append(f"output += {key!r} + _rest_value(self.{field.name})")
    lines.append("output += '}'")
    lines.append("return output")

    return ast.FunctionDef(
        name=SERIALIZER_METHOD,
        args=_arguments([ast.arg(arg="self")]),
        body=_stmts("\n".join(lines)),
        decorator_list=[],
        returns=ast.Name(id="str", ctx=ast.Load()),
        type_params=[],
    )


def _builder_to_ast(builder: BuilderDef) -> ast.FunctionDef:
    body: list[ast.stmt] = []
    if builder.docstring:
        body.append(ast.Expr(value=ast.Constant(value=builder.docstring)))

    lines = [f"urlpath = {builder.path!r}"]
    for argument in builder.path_arguments:
        placeholder = "{" + argument.source_name + "}"
        lines.append(
            f"urlpath = urlpath.replace({placeholder!r}, _query_value({argument.name}))"
        )

    lines.append("query_params = ''")
    for argument in builder.query_arguments:
        lines.extend(_query_lines(argument))

    lines.append(f"authentication = {_authentication_expr(builder)}")
    lines.append(f"body_json = {_body_expr(builder.body)}")
    lines.append(
        "return RestRequest("
        "authentication=authentication, urlpath=urlpath, query_params=query_params, "
        f"body=body_json, method=Method.{builder.method_member})"
    )
    body.extend(_stmts("\n".join(lines)))

    return ast.FunctionDef(
        name=builder.name,
        args=_arguments(
            [
                ast.arg(arg=argument.name, annotation=_expr(argument.annotation))
                for argument in builder.arguments
            ]
        ),
        body=body,
        decorator_list=[],
        returns=_expr(builder.response_annotation),
        type_params=[],
    )


def _query_lines(argument: ArgumentDef) -> list[str]:
    prefix = f"{argument.source_name}="
    if argument.is_sequence:
        lines = [
            f"for elem in {argument.name}:",
            f"    query_params += {prefix!r} + _query_value(elem) + '&'",
        ]
    else:
        lines = [f"query_params += {prefix!r} + _query_value({argument.name}) + '&'"]
    if not argument.optional:
        return lines
    return [f"if {argument.name} is not None:", *(f"    {line}" for line in lines)]


def _authentication_expr(builder: BuilderDef) -> str:
    if builder.authentication is SecurityScheme.BASIC_AUTH:
        return (
            "BasicAuthentication(username=basic_auth_username, password=basic_auth_password)"
        )
    return "BearerAuthentication(token=bearer_token)"


def _body_expr(body: Optional[BodyDef]) -> str:
    if body is None:
        return "''"
    if body.encoding is BodyEncoding.STRUCTURE:
        encoded = f"{body.argument}.{SERIALIZER_METHOD}()"
    elif body.encoding is BodyEncoding.TEXT:
        encoded = body.argument
    else:
        encoded = f"_rest_value({body.argument})"
    if body.optional:
        return f"'' if {body.argument} is None else {encoded}"
    return encoded


def _arguments(args: list[ast.arg]) -> ast.arguments:
    return ast.arguments(
        posonlyargs=[],
        args=args,
        vararg=None,
        kwonlyargs=[],
        kw_defaults=[],
        kwarg=None,
        defaults=[],
    )


def _expr(code: str) -> ast.expr:
    parsed = ast.parse(code, mode="eval")
    return parsed.body


def _stmts(code: str) -> list[ast.stmt]:
    return ast.parse(code).body


def _unparse(statements: list[ast.stmt]) -> str:
    tree = ast.Module(body=statements, type_ignores=[])
    ast.fix_missing_locations(tree)
    return ast.unparse(tree)


def _build_import_groups(statements: list[ast.stmt]) -> list[list[ast.stmt]]:
    used_names = _extract_loaded_names(statements)
    groups: list[list[ast.stmt]] = []
    for group in _IMPORT_GROUPS:
        imports: list[ast.stmt] = []
        for module_name, candidates in group:
            names = [name for name in candidates if name in used_names]
            if names:
                imports.append(
                    ast.ImportFrom(
                        module=module_name,
                        names=[ast.alias(name=name) for name in names],
                        level=0,
                    )
                )
        if imports:
            groups.append(imports)
    return groups


def _extract_loaded_names(statements: Iterable[ast.stmt]) -> set[str]:
    loaded_names: set[str] = set()
    for statement in statements:
        for node in ast.walk(statement):
            if isinstance(node, ast.Name) and isinstance(node.ctx, ast.Load):
                loaded_names.add(node.id)
    return loaded_names
