"""Detect paginated "list" operations.

An operation is a list operation when all three hold:
  - the method segment of its path contains "list" (any case)
  - its request schema declares an `offset` property (any case)
  - its response schema has an array property whose items are a $ref

When several array properties qualify, the first in declared order wins.
"""

from __future__ import annotations

from typing import Any

from .errors import InvalidPathFormat
from .loader import is_ref, lookup_schema, ref_name
from .models import ListOperation, Operation
from .naming import parse_subject_method

ITERATOR_SUFFIX = "Iter"
FETCHER_SUFFIX = "PageFetcher"
_RESPONSE_SUFFIX = "Response"


def method_mentions_list(path: str) -> bool:
    try:
        _, method = parse_subject_method(path)
    except InvalidPathFormat:
        return False
    return "list" in method.lower()


def _properties(schema: dict[str, Any] | None) -> dict[str, Any]:
    if not isinstance(schema, dict):
        return {}
    return schema.get("properties") or {}


def has_offset_property(schema: dict[str, Any] | None) -> bool:
    return any(str(name).lower() == "offset" for name in _properties(schema))


def _is_array(schema: Any) -> bool:
    if not isinstance(schema, dict):
        return False
    schema_type = schema.get("type")
    # OpenAPI 3.1 allows a list of types; the first one is authoritative.
    if isinstance(schema_type, list):
        schema_type = schema_type[0] if schema_type else None
    return schema_type == "array"


def first_array_field(schema: dict[str, Any] | None) -> tuple[str, str] | None:
    """Return (property name, item schema name) of the first array-of-$ref."""
    for name, prop in _properties(schema).items():
        if _is_array(prop) and is_ref(prop.get("items")):
            return str(name), ref_name(prop["items"]["$ref"])
    return None


def fetcher_name(item_type: str) -> str:
    if item_type.endswith(_RESPONSE_SUFFIX):
        item_type = item_type[: -len(_RESPONSE_SUFFIX)]
    return item_type + FETCHER_SUFFIX


def capitalize_first(name: str) -> str:
    return name[:1].upper() + name[1:]


def classify_operation(spec: dict[str, Any], op: Operation) -> ListOperation | None:
    """Return a ListOperation for `op`, or None if it is an ordinary call."""
    if not method_mentions_list(op.path):
        return None
    if not has_offset_property(lookup_schema(spec, op.request_type)):
        return None
    found = first_array_field(lookup_schema(spec, op.response_type))
    if found is None:
        return None

    field, item_type = found
    return ListOperation(
        **op.model_dump(),
        iterator_name=op.method_name + ITERATOR_SUFFIX,
        fetcher_name=fetcher_name(item_type),
        item_type=item_type,
        response_field=capitalize_first(field),
    )


def classify(spec: dict[str, Any], operations: list[Operation]) -> list[ListOperation]:
    """List operations among `operations`, in the same order."""
    list_ops = []
    for op in operations:
        list_op = classify_operation(spec, op)
        if list_op is not None:
            list_ops.append(list_op)
    return list_ops
