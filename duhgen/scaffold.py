"""Author OpenAPI specs: `duhgen init` and `duhgen add`.

init writes the example users API; add appends one endpoint and its
Request/Response schemas to an existing spec. The generator recognises the
users API (see is_init_template_spec) and scaffolds a working in-memory
service for it instead of NotImplemented stubs.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import jinja2
import yaml

from .codegen import create_environment
from .errors import InvalidConfig, InvalidPathFormat, SpecEditError, WriteFailure
from .loader import get_paths, load_spec
from .writer import write_file

logger = logging.getLogger(__name__)

INIT_TEMPLATE = "openapi.yaml.j2"

# All four must be present; extra paths don't affect the match.
INIT_TEMPLATE_PATHS = (
    "/v1/users.create",
    "/v1/users.get",
    "/v1/users.list",
    "/v1/users.update",
)

_ENDPOINT_PATH = re.compile(r"^/v(0|[1-9][0-9]*)/[a-z][a-z0-9_-]{0,49}\.[a-z][a-z0-9_-]{0,49}$")
_SCHEMA_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


def is_init_template_spec(spec: dict[str, Any] | None) -> bool:
    if not spec:
        return False
    paths = get_paths(spec)
    return all(path in paths for path in INIT_TEMPLATE_PATHS)


def render_init_spec(env: jinja2.Environment | None = None) -> str:
    return (env or create_environment()).get_template(INIT_TEMPLATE).render()


def init_spec(output_path: Path | str) -> Path:
    """Write the example spec to `output_path`; refuses to overwrite."""
    path = Path(output_path)
    if path.exists():
        raise WriteFailure(str(path), "file already exists")
    write_file(path, render_init_spec())
    logger.info("wrote %s", path)
    return path


def _placeholder_properties() -> dict[str, Any]:
    return {
        "id": {"type": "string", "example": "123"},
        "name": {"type": "string", "example": "Example Name"},
    }


def request_schema() -> dict[str, Any]:
    return {"type": "object", "properties": _placeholder_properties()}


def response_schema() -> dict[str, Any]:
    properties = _placeholder_properties()
    properties["success"] = {"type": "boolean", "example": True}
    return {"type": "object", "properties": properties}


def error_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "required": ["code", "message"],
        "properties": {
            "code": {"type": "integer", "format": "int32"},
            "message": {"type": "string"},
        },
    }


def _schema_ref(name: str) -> dict[str, str]:
    return {"$ref": f"#/components/schemas/{name}"}


def _json_response(description: str, schema_name: str) -> dict[str, Any]:
    return {
        "description": description,
        "content": {"application/json": {"schema": _schema_ref(schema_name)}},
    }


def path_item(name: str) -> dict[str, Any]:
    """A POST operation wired to {name}Request and {name}Response."""
    return {
        "post": {
            "summary": f"{name} operation",
            "operationId": name[:1].lower() + name[1:],
            "requestBody": {
                "required": True,
                "content": {"application/json": {"schema": _schema_ref(f"{name}Request")}},
            },
            "responses": {
                "200": _json_response("Successful response", f"{name}Response"),
                "400": _json_response("Bad request", "Error"),
                "404": _json_response("Not found", "Error"),
                "500": _json_response("Internal server error", "Error"),
            },
        }
    }


def add_endpoint(spec: dict[str, Any], path: str, name: str) -> dict[str, Any]:
    """Append `path` and its schemas to `spec` in place and return it."""
    if not _ENDPOINT_PATH.match(path):
        raise InvalidPathFormat(path, "must follow /v{N}/{subject}.{method}")
    if not _SCHEMA_NAME.match(name):
        raise InvalidConfig(f"invalid endpoint name: {name}")

    if spec.get("paths") is None:
        spec["paths"] = {}
    paths = spec["paths"]
    components = spec.setdefault("components", {})
    if not isinstance(paths, dict) or not isinstance(components, dict):
        raise SpecEditError("invalid OpenAPI document structure")
    if components.get("schemas") is None:
        components["schemas"] = {}
    schemas = components["schemas"]

    if path in paths:
        raise SpecEditError(f"path already exists: {path}")
    for schema_name in (f"{name}Request", f"{name}Response"):
        if schema_name in schemas:
            raise SpecEditError(f"schema already exists: {schema_name}")

    schemas[f"{name}Request"] = request_schema()
    schemas[f"{name}Response"] = response_schema()
    schemas.setdefault("Error", error_schema())
    paths[path] = path_item(name)
    return spec


def add_endpoint_to_file(file_path: Path | str, path: str, name: str) -> Path:
    """Load, extend and rewrite the spec file. Key order is kept; comments are not."""
    spec_file = Path(file_path)
    spec = add_endpoint(load_spec(spec_file), path, name)
    write_file(spec_file, yaml.safe_dump(spec, sort_keys=False, allow_unicode=True))
    logger.info("added %s to %s", path, spec_file)
    return spec_file
