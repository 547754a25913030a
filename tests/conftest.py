"""Shared pytest fixtures and configuration for pytest."""

import json
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from pydantic import BaseModel

from schemarpc.core.errors import CommandError
from schemarpc.rpc.dispatcher import RequestDispatcher
from schemarpc.rpc.processor import RequestProcessor
from schemarpc.rpc.protocol import INVALID_PARAMS
from schemarpc.rpc.registry import CommandRegistry, RegistryBuilder
from schemarpc.rpc.types import ErrorResponse, SuccessResponse
from schemarpc.schema.cache import MemoryCache, SchemaCache
from schemarpc.schema.store import FileSchemaStore

USER_GET_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {"id": {"type": "integer", "minimum": 1}},
    "required": ["id"],
    "additionalProperties": False,
}

USER_CREATE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "email": {"type": "string"},
        "role": {"enum": ["admin", "member"]},
    },
    "required": ["name", "email"],
}

PING_SCHEMA: dict[str, Any] = {"type": "object", "additionalProperties": False}

USERS = {1: {"id": 1, "name": "Ada"}}


class UserGet(BaseModel):
    id: int


class UserCreate(BaseModel):
    name: str
    email: str
    role: str = "member"


async def user_get(dto: UserGet) -> SuccessResponse | ErrorResponse:
    user = USERS.get(dto.id)
    if user is None:
        return ErrorResponse(code=INVALID_PARAMS, message="User not found", data={"id": dto.id})
    return SuccessResponse(result=user)


async def user_create(dto: UserCreate) -> dict[str, Any]:
    return {"name": dto.name, "email": dto.email, "role": dto.role}


async def ping(params: dict[str, Any]) -> str:
    return "pong"


async def explode(params: dict[str, Any]) -> None:
    raise RuntimeError("secret internals at /srv/app/db.py")


async def reject(params: dict[str, Any]) -> None:
    raise CommandError(-32001, "Quota exceeded", {"limit": 10})


def write_schema(root: Path, method: str, schema: Any) -> Path:
    path = root / f"{method}.json"
    path.write_text(json.dumps(schema), encoding="utf-8")
    return path


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: test talks to a real socket")


@pytest.fixture
def schema_root(tmp_path: Path) -> Path:
    """Schema directory with documents for every command in `registry`."""
    root = tmp_path / "schemas"
    root.mkdir()
    write_schema(root, "user.get", USER_GET_SCHEMA)
    write_schema(root, "user.create", USER_CREATE_SCHEMA)
    write_schema(root, "system.ping", PING_SCHEMA)
    write_schema(root, "system.explode", PING_SCHEMA)
    write_schema(root, "system.reject", PING_SCHEMA)
    return root


@pytest.fixture
def registry() -> CommandRegistry:
    builder = RegistryBuilder()
    builder.register("user.get", user_get, dto=UserGet, description="Fetch a user")
    builder.register("user.create", user_create, dto=UserCreate)
    builder.register("system.ping", ping)
    builder.register("system.explode", explode)
    builder.register("system.reject", reject)
    return builder.build()


@pytest.fixture
def schema_cache(schema_root: Path) -> SchemaCache:
    return SchemaCache(FileSchemaStore(schema_root), MemoryCache(), project="test")


@pytest.fixture
def dispatcher(registry: CommandRegistry, schema_cache: SchemaCache) -> RequestDispatcher:
    return RequestDispatcher(registry, schema_cache)


@pytest.fixture
def processor(dispatcher: RequestDispatcher) -> RequestProcessor:
    return RequestProcessor(dispatcher)


REGISTRY_MODULE_SOURCE = '''
from schemarpc.rpc.registry import RegistryBuilder

builder = RegistryBuilder()


@builder.command("system.ping", description="Liveness check")
async def ping(params):
    return "pong"


registry = builder.build()


def make_registry():
    return registry


not_a_registry = 42
'''


@pytest.fixture
def registry_module(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    """Importable module exposing a registry as "module:registry"."""
    name = "schemarpc_test_commands"
    package_dir = tmp_path / "modules"
    package_dir.mkdir()
    (package_dir / f"{name}.py").write_text(REGISTRY_MODULE_SOURCE, encoding="utf-8")
    monkeypatch.syspath_prepend(str(package_dir))
    monkeypatch.delitem(sys.modules, name, raising=False)
    yield name
    sys.modules.pop(name, None)
