"""Load and navigate an OpenAPI spec.

Reads openapi.yaml (or JSON, which YAML accepts) and exposes paths,
component schemas and $ref resolution over the plain mapping.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .errors import SpecLoadError

DEFAULT_SPEC_PATH = Path("openapi.yaml")

_SCHEMA_REF_PREFIX = "#/components/schemas/"


def load_spec(path: Path | str | None = None) -> dict[str, Any]:
    """Load the OpenAPI spec from disk.

    Mapping order is preserved, so path and property iteration follows the
    order they are declared in the document.
    """
    spec_file = Path(path) if path is not None else DEFAULT_SPEC_PATH
    try:
        with open(spec_file, encoding="utf-8") as f:
            doc = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise SpecLoadError(f"failed to read file: {spec_file}") from e
    except OSError as e:
        raise SpecLoadError(f"failed to read file {spec_file}: {e}") from e
    except yaml.YAMLError as e:
        raise SpecLoadError(f"failed to parse {spec_file}: {e}") from e

    if not isinstance(doc, dict):
        raise SpecLoadError(f"{spec_file} is not an OpenAPI document")
    if "openapi" not in doc:
        raise SpecLoadError(f"{spec_file} is missing the 'openapi' version field")
    return doc


def get_paths(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract paths from the spec."""
    return spec.get("paths") or {}


def get_schemas(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract component schemas from the spec."""
    return (spec.get("components") or {}).get("schemas") or {}


def is_ref(schema: Any) -> bool:
    return isinstance(schema, dict) and isinstance(schema.get("$ref"), str)


def ref_name(ref: str) -> str:
    """Return the last segment of a $ref pointer (the schema name)."""
    return ref.rsplit("/", 1)[-1]


def resolve_ref(spec: dict[str, Any], ref: str) -> dict[str, Any]:
    """Resolve a local $ref pointer in the spec."""
    if not ref.startswith("#/"):
        raise SpecLoadError(f"only local references are supported: {ref}")
    node: Any = spec
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        if not isinstance(node, dict) or part not in node:
            raise SpecLoadError(f"unresolved reference: {ref}")
        node = node[part]
    return node


def lookup_schema(spec: dict[str, Any], name: str) -> dict[str, Any] | None:
    """Return the component schema called `name`, following a top-level $ref."""
    schema = get_schemas(spec).get(name)
    seen = {name}
    while is_ref(schema):
        ref = schema["$ref"]
        if not ref.startswith(_SCHEMA_REF_PREFIX):
            return resolve_ref(spec, ref)
        target = ref_name(ref)
        if target in seen:
            return None
        seen.add(target)
        schema = get_schemas(spec).get(target)
    return schema if isinstance(schema, dict) else None


def deref(spec: dict[str, Any], node: Any) -> Any:
    """Follow `node` through local $ref pointers until it is a plain object.

    Request bodies and responses may live under components/requestBodies and
    components/responses; this returns the object they point at.
    """
    seen: set[str] = set()
    while is_ref(node):
        ref = node["$ref"]
        if ref in seen:
            raise SpecLoadError(f"circular reference: {ref}")
        seen.add(ref)
        node = resolve_ref(spec, ref)
    return node
