"""Runtime behavior of generated binding modules."""

from __future__ import annotations

import ast
from types import ModuleType
from typing import Optional

import pytest

from swagger_bindings_generator.bindings import BindingBuilder
from swagger_bindings_generator.codegen_ast import (
    GENERATED_BANNER,
    load_runtime_prelude,
    render_bindings_module,
)
from swagger_bindings_generator.errors import EmissionTemplateError
from swagger_bindings_generator.generator import generate_source
from swagger_bindings_generator.loader import load_swagger_document
from swagger_bindings_generator.model_types import BindingModule
from swagger_bindings_generator.schema_model import build_schema_model
from .fixture_helpers import load_generated_module, spec_path


def _bindings(name: str, prefix: Optional[str] = None) -> BindingModule:
    model, _ = build_schema_model(load_swagger_document(spec_path(name)))
    return BindingBuilder(model, operation_prefix=prefix).build()


@pytest.fixture(scope="module")
def game(tmp_path_factory: pytest.TempPathFactory) -> ModuleType:
    source = generate_source(_bindings("game_service.yaml", prefix="Nakama_"))
    return load_generated_module(
        source=source,
        module_name="generated_game_service",
        directory=tmp_path_factory.mktemp("game"),
    )


@pytest.fixture(scope="module")
def reserved(tmp_path_factory: pytest.TempPathFactory) -> ModuleType:
    source = generate_source(_bindings("reserved_names.json"), format_output=False)
    return load_generated_module(
        source=source,
        module_name="generated_reserved_names",
        directory=tmp_path_factory.mktemp("reserved"),
    )


def test_structure_fields_default_to_zero_values(game: ModuleType) -> None:
    """A structure built without arguments holds zero values."""
    account = game.Account()
    assert account.display_name == ""
    assert account.wins == 0

    friend = game.ApiFriend()
    assert isinstance(friend.user, game.ApiUser)
    assert game.ApiFriendList().friends == []
    assert game.ApiFriendList().friends is not game.ApiFriendList().friends


def test_account_serializer_output(game: ModuleType) -> None:
    """Serialized structures list every property as a quoted key and rendered value."""
    account = game.Account(display_name="Alice", wins=7)
    assert account.to_rest_string() == '{"display_name": "Alice","wins": 7}'


def test_serializer_uses_wire_names_and_nested_structures(game: ModuleType) -> None:
    """Aliased fields keep their wire names; nested structures serialize themselves."""
    user = game.ApiUser.model_validate({"displayName": "n", "tags": ["a", "b"]})
    assert user.display_name == "n"
    user_json = (
        '{"displayName": "n","edgeCount": 0,"id": "","online": false,'
        '"rating": 0.0,"tags": ["a", "b"]}'
    )
    assert user.to_rest_string() == user_json

    friends = game.ApiFriendList(friends=[game.ApiFriend(state=2, user=user)])
    assert friends.to_rest_string() == (
        '{"cursor": "","friends": [{"state": 2,"updateTime": "","user": ' + user_json + "}]}"
    )


def test_map_serialization(game: ModuleType) -> None:
    """Maps render as braces with quoted keys; an empty map is ``{}``."""
    email = game.ApiAccountEmail(email="e@example.com", password="pw", vars={"a": "1", "b": "2"})
    assert email.to_rest_string() == (
        '{"email": "e@example.com","password": "pw","vars": { "a": "1", "b": "2" }}'
    )
    assert game.ApiAccountEmail().to_rest_string() == '{"email": "","password": "","vars": {}}'


def test_get_account_builds_path(game: ModuleType) -> None:
    """Path placeholders are substituted and the bearer token is passed through."""
    request = game.get_account("token", "abc")
    assert request == game.RestRequest(
        authentication=game.BearerAuthentication(token="token"),
        urlpath="/v2/account/abc",
        query_params="",
        body="",
        method=game.Method.Get,
    )


def test_list_friends_skips_absent_query_parameters(game: ModuleType) -> None:
    """Optional query parameters are appended only when set."""
    assert game.list_friends("token", 10, None).query_params == "limit=10&"
    assert game.list_friends("token", None, "c1").query_params == "cursor=c1&"
    assert game.list_friends("token", 5, "c1").query_params == "limit=5&cursor=c1&"
    assert game.list_friends("token", None, None).query_params == ""


def test_array_query_parameters_repeat(game: ModuleType) -> None:
    """Each array element becomes its own pair, in order."""
    request = game.add_friends("token", ["a", "b"], None)
    assert request.query_params == "ids=a&ids=b&"
    assert request.method is game.Method.Post
    assert game.add_friends("token", [], ["x"]).query_params == "usernames=x&"
    assert game.delete_friends("token", ["z"]).method is game.Method.Delete


def test_basic_auth_and_structure_body(game: ModuleType) -> None:
    """Basic auth carries both credentials and a structure body is serialized."""
    account = game.ApiAccountEmail(email="e", password="p")
    request = game.authenticate_email("user", "secret", account, True, None)
    assert request.authentication == game.BasicAuthentication(username="user", password="secret")
    assert request.query_params == "create=true&"
    assert request.body == '{"email": "e","password": "p","vars": {}}'
    assert request.urlpath == "/v2/account/authenticate/email"


def test_string_body_is_sent_verbatim(game: ModuleType) -> None:
    """String bodies are not quoted again."""
    request = game.rpc_func("token", "reward", '{"coins": 3}', "key")
    assert request.urlpath == "/v2/rpc/reward"
    assert request.body == '{"coins": 3}'
    assert request.query_params == "http_key=key&"


def test_optional_value_body(game: ModuleType) -> None:
    """Optional non-structure bodies are rendered, or empty when absent."""
    request = game.update_wallet("token", "u1", {"coins": 5}, False)
    assert request.urlpath == "/v2/user/u1/wallet"
    assert request.body == '{ "coins": 5 }'
    assert request.query_params == "dryRun=false&"
    assert request.method is game.Method.Put
    assert game.update_wallet("token", "u1", None, True).body == ""


def test_reserved_names_round_trip(reserved: ModuleType) -> None:
    """Escaped field names still serialize and validate under their wire names."""
    item = reserved.Item.model_validate({"class": "c", "model_config": "m", "str": 1.5})
    assert item.class_ == "c"
    assert item.model_config_field == "m"
    assert item.str_field == 1.5
    assert item.to_rest_string() == (
        '{"class": "c","json": false,"model_config": "m","scores": {},"str": 1.5}'
    )


def test_optional_path_parameter_is_substituted_unconditionally(reserved: ModuleType) -> None:
    """A missing optional path parameter is rendered like any other value."""
    assert reserved.get_item("token", 1, 7, None).urlpath == "/v1/items/7"
    assert reserved.get_item("token", 1, None, None).urlpath == "/v1/items/None"
    assert reserved.get_item("token", 1, 7, "big").query_params == "from=1&type=big&"


def test_module_starts_with_banner() -> None:
    """Generated modules announce that they are generated."""
    source = render_bindings_module(_bindings("game_service.yaml"))
    assert ast.get_docstring(ast.parse(source)) == GENERATED_BANNER


def test_imports_are_limited_to_used_names() -> None:
    """Helpers only appear in the import list when emitted code uses them."""
    source = render_bindings_module(BindingModule(structs=(), builders=()))
    assert "from typing import Generic, TypeVar, Union\n" in source
    assert "from pydantic import BaseModel, ConfigDict\n" in source

    source = render_bindings_module(_bindings("game_service.yaml"))
    assert "from typing import Generic, Optional, TypeVar, Union\n" in source
    assert "from pydantic import BaseModel, ConfigDict, Field\n" in source


def test_import_sections_are_separated() -> None:
    """Future, standard library and pydantic imports form separate blocks."""
    source = render_bindings_module(_bindings("game_service.yaml"))
    assert (
        '"""Code generated by swagger-bindings-generator. DO NOT EDIT."""\n'
        "\n"
        "from __future__ import annotations\n"
        "\n"
        "from dataclasses import dataclass\n"
        "from enum import Enum\n"
        "from typing import Generic, Optional, TypeVar, Union\n"
        "\n"
        "from pydantic import BaseModel, ConfigDict, Field\n"
        "\n"
        "ResponseT = TypeVar('ResponseT')\n"
    ) in source


def test_rendering_is_deterministic() -> None:
    """The same document always produces byte-identical source."""
    first = render_bindings_module(_bindings("game_service.yaml", prefix="Nakama_"))
    second = render_bindings_module(_bindings("game_service.yaml", prefix="Nakama_"))
    assert first == second


def test_emission_order() -> None:
    """Structures follow definition order, builders follow path then method order."""
    source = render_bindings_module(_bindings("game_service.yaml", prefix="Nakama_"))
    tree = ast.parse(source)
    classes = [node.name for node in tree.body if isinstance(node, ast.ClassDef)]
    functions = [node.name for node in tree.body if isinstance(node, ast.FunctionDef)]
    assert classes[-7:] == [
        "Account",
        "ApiAccountEmail",
        "ApiFriend",
        "ApiFriendList",
        "ApiRpc",
        "ApiSession",
        "ApiUser",
    ]
    assert functions[-7:] == [
        "authenticate_email",
        "get_account",
        "delete_friends",
        "list_friends",
        "add_friends",
        "rpc_func",
        "update_wallet",
    ]


def test_broken_prelude_raises_template_error() -> None:
    """A prelude that does not parse is reported as a template error."""
    with pytest.raises(EmissionTemplateError, match="does not parse"):
        load_runtime_prelude("def broken(:\n    pass\n")
