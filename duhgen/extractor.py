"""Extract DUH-RPC operations from a parsed OpenAPI spec.

Only POST operations are considered. Request and response bodies must
reference named component schemas; an inline schema aborts the whole run
because generated types need a stable name. Paths that don't follow the
/v{N}/subject.method grammar are skipped (the linter reports those).
Bodies and responses declared under components are followed through $ref.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

from .errors import InvalidPathFormat, UnsupportedInlineSchema
from .loader import deref, get_paths, is_ref, ref_name
from .models import Operation
from .naming import generate_const_name, generate_operation_name

logger = logging.getLogger(__name__)


def is_success_code(code: Any) -> bool:
    """2XX status codes, including the '2XX' range wildcard."""
    text = str(code).upper()
    return len(text) == 3 and text[0] == "2" and (text[1:].isdigit() or text[1:] == "XX")


def first_content_schema(body: dict[str, Any] | None) -> dict[str, Any] | None:
    """Schema of the first declared media type that carries one."""
    if not body:
        return None
    for media in (body.get("content") or {}).values():
        if media and media.get("schema") is not None:
            return media["schema"]
    return None


def iter_success_schemas(spec: dict[str, Any], operation: dict[str, Any]) -> Iterator[tuple[str, dict[str, Any]]]:
    """Yield (code, schema) for success responses in declared order."""
    for code, response in (operation.get("responses") or {}).items():
        if not is_success_code(code) or not isinstance(response, dict):
            continue
        schema = first_content_schema(deref(spec, response))
        if schema is not None:
            yield str(code), schema


def request_schema_name(spec: dict[str, Any], path: str, operation: dict[str, Any]) -> str | None:
    schema = first_content_schema(deref(spec, operation.get("requestBody")))
    if schema is None:
        return None
    if not is_ref(schema):
        raise UnsupportedInlineSchema(path, "request body")
    return ref_name(schema["$ref"])


def response_schema_name(spec: dict[str, Any], path: str, operation: dict[str, Any]) -> str | None:
    for code, schema in iter_success_schemas(spec, operation):
        if not is_ref(schema):
            raise UnsupportedInlineSchema(path, f"response body ({code})")
        return ref_name(schema["$ref"])
    return None


def _summary(operation: dict[str, Any]) -> str:
    return operation.get("summary") or operation.get("description") or ""


def extract_operations(spec: dict[str, Any]) -> list[Operation]:
    """Return one Operation per qualifying path, in declaration order."""
    operations: list[Operation] = []

    for path, path_item in get_paths(spec).items():
        if not isinstance(path_item, dict) or "post" not in path_item:
            continue
        operation = path_item["post"] or {}

        try:
            method_name = generate_operation_name(path)
        except InvalidPathFormat as e:
            logger.debug("skipping %s: %s", path, e)
            continue

        request_type = request_schema_name(spec, path, operation)
        if request_type is None:
            logger.debug("skipping %s: no request schema", path)
            continue

        response_type = response_schema_name(spec, path, operation)
        if response_type is None:
            logger.debug("skipping %s: no success response schema", path)
            continue

        operations.append(Operation(
            method_name=method_name,
            path=path,
            const_name=generate_const_name(method_name),
            summary=_summary(operation),
            request_type=request_type,
            response_type=response_type,
        ))

    return operations
