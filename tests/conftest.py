"""Shared fixtures: OpenAPI specs as plain dicts and a throwaway Go module."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Callable

import pytest
import yaml

from duhgen.classifier import classify
from duhgen.context_builder import build_context
from duhgen.extractor import extract_operations
from duhgen.models import Config, RenderModel

MODULE_PATH = "github.com/test/example"

FIXED_TIMESTAMP = "2026-01-02 03:04:05 UTC"


def _ref(name: str) -> dict[str, str]:
    return {"$ref": f"#/components/schemas/{name}"}


def _post(
    request: dict[str, Any] | None,
    response: dict[str, Any] | None,
    summary: str | None = None,
) -> dict[str, Any]:
    """A DUH-RPC compliant POST operation."""
    operation: dict[str, Any] = {}
    if summary:
        operation["summary"] = summary
    if request is not None:
        operation["requestBody"] = {
            "required": True,
            "content": {"application/json": {"schema": request}},
        }
    responses: dict[str, Any] = {}
    if response is not None:
        responses["200"] = {
            "description": "Success",
            "content": {"application/json": {"schema": response}},
        }
    responses["400"] = {
        "description": "Bad request",
        "content": {"application/json": {"schema": _ref("Error")}},
    }
    operation["responses"] = responses
    return operation


_USERS_SPEC: dict[str, Any] = {
    "openapi": "3.0.3",
    "info": {"title": "Users API", "version": "1.0.0"},
    "paths": {
        "/v1/users.create": {
            "post": _post(_ref("CreateUserRequest"), _ref("CreateUserResponse"), "Create a new user"),
        },
        "/v1/users.get": {
            "post": _post(_ref("GetUserRequest"), _ref("UserResponse"), "Get a user by id"),
        },
        "/v1/users.list": {
            "post": _post(_ref("ListUsersRequest"), _ref("ListUsersResponse"), "List users"),
        },
        "/v1/users.update": {
            "post": _post(_ref("UpdateUserRequest"), _ref("UserResponse"), "Update a user"),
        },
    },
    "components": {
        "schemas": {
            "Error": {
                "type": "object",
                "required": ["code", "message"],
                "properties": {
                    "code": {"type": "integer"},
                    "message": {"type": "string"},
                },
            },
            "CreateUserRequest": {
                "type": "object",
                "properties": {"name": {"type": "string"}, "email": {"type": "string"}},
            },
            "CreateUserResponse": {
                "type": "object",
                "properties": {"id": {"type": "string"}},
            },
            "GetUserRequest": {
                "type": "object",
                "properties": {"id": {"type": "string"}},
            },
            "UserResponse": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "name": {"type": "string"},
                    "email": {"type": "string"},
                },
            },
            "ListUsersRequest": {
                "type": "object",
                "properties": {
                    "offset": {"type": "integer"},
                    "limit": {"type": "integer"},
                },
            },
            "ListUsersResponse": {
                "type": "object",
                "properties": {
                    "total": {"type": "integer"},
                    "users": {"type": "array", "items": _ref("UserResponse")},
                },
            },
            "UpdateUserRequest": {
                "type": "object",
                "properties": {"id": {"type": "string"}, "name": {"type": "string"}},
            },
        }
    },
}

_PRODUCTS_SPEC: dict[str, Any] = {
    "openapi": "3.0.3",
    "info": {"title": "Custom API", "version": "1.0.0"},
    "paths": {
        "/v1/products.create": {
            "post": _post(_ref("CreateProductRequest"), _ref("CreateProductResponse")),
        },
    },
    "components": {
        "schemas": {
            "Error": {"type": "object", "properties": {"message": {"type": "string"}}},
            "CreateProductRequest": {
                "type": "object",
                "properties": {"name": {"type": "string"}},
            },
            "CreateProductResponse": {
                "type": "object",
                "properties": {"id": {"type": "string"}},
            },
        }
    },
}


@pytest.fixture
def users_spec() -> dict[str, Any]:
    """Users API with create/get/list/update; users.list is paginated."""
    return copy.deepcopy(_USERS_SPEC)


@pytest.fixture
def products_spec() -> dict[str, Any]:
    """Single-operation API with no list operations."""
    return copy.deepcopy(_PRODUCTS_SPEC)


@pytest.fixture
def go_module(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A temporary Go module root, made the current directory."""
    (tmp_path / "go.mod").write_text(f"module {MODULE_PATH}\n\ngo 1.24\n")
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _write_spec(directory: Path, spec: dict[str, Any], name: str = "openapi.yaml") -> Path:
    path = directory / name
    path.write_text(yaml.safe_dump(spec, sort_keys=False))
    return path


def _make_config(**overrides: Any) -> Config:
    """A resolved Config for MODULE_PATH without touching the filesystem."""
    values: dict[str, Any] = dict(
        package_name="api",
        output_dir=".",
        proto_path="proto/v1/api.proto",
        proto_import=f"{MODULE_PATH}/proto/v1",
        proto_package="pkg.api.v1",
        module_path=MODULE_PATH,
        module_root="/tmp/example",
        spec_path="/tmp/example/openapi.yaml",
        package_import=MODULE_PATH,
    )
    values.update(overrides)
    return Config(**values)


def _build_model(spec: dict[str, Any], init_template: bool = False, **overrides: Any) -> RenderModel:
    operations = extract_operations(spec)
    return build_context(
        _make_config(**overrides), operations, classify(spec, operations),
        timestamp=FIXED_TIMESTAMP, init_template=init_template,
    )


# ---------------------------------------------------------------------------
# Builders, handed to tests as fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def module_path() -> str:
    """Module path declared by the go_module fixture's go.mod."""
    return MODULE_PATH


@pytest.fixture
def fixed_timestamp() -> str:
    """Timestamp used by build_model and by tests that pin regeneration."""
    return FIXED_TIMESTAMP


@pytest.fixture
def ref() -> Callable[[str], dict[str, str]]:
    """Return a builder for `#/components/schemas/<name>` references."""
    return _ref


@pytest.fixture
def post() -> Callable[..., dict[str, Any]]:
    """Return a builder for compliant POST operations: post(request, response, summary=None)."""
    return _post


@pytest.fixture
def write_spec() -> Callable[..., Path]:
    """Return a writer: write_spec(directory, spec, name="openapi.yaml") -> path."""
    return _write_spec


@pytest.fixture
def make_config() -> Callable[..., Config]:
    """Return a Config factory; keyword arguments override fields."""
    return _make_config


@pytest.fixture
def build_model() -> Callable[..., RenderModel]:
    """Return build_model(spec, **config_overrides) -> RenderModel at the fixed timestamp."""
    return _build_model
