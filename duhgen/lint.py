"""Check an OpenAPI spec against the DUH-RPC conventions.

Each rule is a function taking the spec and returning violations. The
generator refuses to run on a spec with any violation.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterator

from pydantic import BaseModel, ConfigDict

from .errors import SpecLoadError
from .loader import deref, get_paths

_PATH_FORMAT = re.compile(r"^/v(0|[1-9][0-9]*)/[a-z][a-z0-9_-]{0,49}\.[a-z][a-z0-9_-]{0,49}$")
_PATH_PARAM = re.compile(r"\{[^}]+\}")
_VERSION = re.compile(r"^v(0|[1-9][0-9]*)$")
_SEGMENT = re.compile(r"^[a-z][a-z0-9_-]{0,49}$")

ALLOWED_STATUS_CODES = ("200", "400", "401", "403", "404", "429", "452", "453", "454", "455", "500")
ALLOWED_CONTENT_TYPES = ("application/json", "application/protobuf", "application/octet-stream")
_DISALLOWED_METHODS = ("get", "put", "delete", "patch", "head", "options", "trace")


class Violation(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule_name: str
    location: str
    message: str
    suggestion: str = ""

    def __str__(self) -> str:
        return f"[{self.rule_name}] {self.location}\n  {self.message}\n  {self.suggestion}"


class ValidationResult(BaseModel):
    violations: list[Violation] = []
    file_path: str = ""

    @property
    def valid(self) -> bool:
        return not self.violations


Rule = Callable[[dict[str, Any]], list[Violation]]


def _iter_posts(spec: dict[str, Any]) -> Iterator[tuple[str, dict[str, Any]]]:
    for path, path_item in get_paths(spec).items():
        if isinstance(path_item, dict) and isinstance(path_item.get("post"), dict):
            yield path, path_item["post"]


def _deref(spec: dict[str, Any], node: Any) -> Any:
    """Resolve a $ref'd body or response; None when the pointer is dangling."""
    try:
        return deref(spec, node)
    except SpecLoadError:
        return None


def _unresolved(node: Any, resolved: Any) -> bool:
    return node is not None and resolved is None


def _path_format_message(path: str) -> str:
    if not path.startswith("/v"):
        return "Path must start with version prefix (e.g., /v1/)"
    parts = path.lstrip("/").split("/")
    if len(parts) != 2:
        return "Path must have format /v{N}/subject.method"
    if not _VERSION.match(parts[0]):
        return "Version must be /v{N}/ where N is a non-negative integer (e.g., /v1/, /v2/)"
    segments = parts[1].split(".")
    if len(segments) != 2:
        return "Path must have exactly one dot separating subject and method"
    for label, segment in zip(("Subject", "Method"), segments):
        if not _SEGMENT.match(segment):
            if len(segment) > 50:
                return f"{label} segment exceeds 50 characters"
            if segment and not segment[0].islower():
                return f"{label} must start with a lowercase letter"
            return f"{label} must contain only lowercase letters, numbers, hyphens, and underscores"
    return "Path does not match DUH-RPC format: /v{N}/subject.method"


def check_path_format(spec: dict[str, Any]) -> list[Violation]:
    violations = []
    for path, path_item in get_paths(spec).items():
        if _PATH_PARAM.search(path):
            violations.append(Violation(
                rule_name="path-format",
                location=path,
                message="Path contains path parameters, which are not allowed in DUH-RPC",
                suggestion="Remove path parameters and use request body fields instead",
            ))
            continue
        for param in (path_item or {}).get("parameters") or []:
            if isinstance(param, dict) and param.get("in") == "path":
                violations.append(Violation(
                    rule_name="path-format",
                    location=path,
                    message=f"Path parameter '{param.get('name')}' is not allowed in DUH-RPC",
                    suggestion="Move path parameters to request body fields",
                ))
        if not _PATH_FORMAT.match(path):
            violations.append(Violation(
                rule_name="path-format",
                location=path,
                message=_path_format_message(path),
                suggestion="Use format /v1/subject.method (e.g., /v1/users.create)",
            ))
    return violations


def check_http_method(spec: dict[str, Any]) -> list[Violation]:
    violations = []
    for path, path_item in get_paths(spec).items():
        for method in _DISALLOWED_METHODS:
            if method in (path_item or {}):
                violations.append(Violation(
                    rule_name="http-method",
                    location=f"{method.upper()} {path}",
                    message=f"HTTP method {method.upper()} is not allowed in DUH-RPC",
                    suggestion="Use POST method for all DUH-RPC operations",
                ))
    return violations


def check_query_params(spec: dict[str, Any]) -> list[Violation]:
    violations = []
    for path, op in _iter_posts(spec):
        for param in op.get("parameters") or []:
            if isinstance(param, dict) and param.get("in") == "query":
                violations.append(Violation(
                    rule_name="query-params",
                    location=f"POST {path}",
                    message=f"Query parameter '{param.get('name')}' is not allowed in DUH-RPC",
                    suggestion="Move query parameters to request body fields",
                ))
    return violations


def check_request_body(spec: dict[str, Any]) -> list[Violation]:
    violations = []
    for path, op in _iter_posts(spec):
        declared = op.get("requestBody")
        body = _deref(spec, declared)
        if _unresolved(declared, body):
            violations.append(Violation(
                rule_name="request-body",
                location=f"POST {path}",
                message=f"Request body reference cannot be resolved: {declared.get('$ref')}",
                suggestion="Point requestBody.$ref at an entry under components/requestBodies",
            ))
        elif not body:
            violations.append(Violation(
                rule_name="request-body",
                location=f"POST {path}",
                message="Operation is missing a request body",
                suggestion="Add a required request body to this operation",
            ))
        elif body.get("required") is not True:
            violations.append(Violation(
                rule_name="request-body",
                location=f"POST {path}",
                message="Request body must be marked as required",
                suggestion="Set requestBody.required to true",
            ))
    return violations


def check_success_response(spec: dict[str, Any]) -> list[Violation]:
    violations = []
    for path, op in _iter_posts(spec):
        responses = {str(code): resp for code, resp in (op.get("responses") or {}).items()}
        location = f"POST {path}"
        declared = responses.get("200")
        if declared is None:
            violations.append(Violation(
                rule_name="success-response",
                location=location,
                message="Operation is missing a 200 (success) response",
                suggestion="Add a 200 response with content to this operation",
            ))
            continue
        ok = _deref(spec, declared)
        if _unresolved(declared, ok):
            violations.append(Violation(
                rule_name="success-response",
                location=location,
                message=f"200 response reference cannot be resolved: {declared.get('$ref')}",
                suggestion="Point the 200 response $ref at an entry under components/responses",
            ))
            continue
        content = (ok.get("content") or {}) if isinstance(ok, dict) else {}
        if not content:
            violations.append(Violation(
                rule_name="success-response",
                location=location,
                message="200 response is missing content",
                suggestion="Add content with a schema to the 200 response",
            ))
        elif not any(media and media.get("schema") is not None for media in content.values()):
            violations.append(Violation(
                rule_name="success-response",
                location=location,
                message="200 response content is missing a schema",
                suggestion="Add a schema to at least one media type in the 200 response",
            ))
    return violations


def check_status_code(spec: dict[str, Any]) -> list[Violation]:
    violations = []
    for path, op in _iter_posts(spec):
        for code in op.get("responses") or {}:
            if str(code) not in ALLOWED_STATUS_CODES:
                violations.append(Violation(
                    rule_name="status-code",
                    location=f"POST {path}",
                    message=f"Status code {code} is not allowed",
                    suggestion=f"Use one of the allowed status codes: {', '.join(ALLOWED_STATUS_CODES)}",
                ))
    return violations


def _content_type_violation(content_type: str, location: str) -> Violation | None:
    base = content_type.split(";", 1)[0].strip().lower()
    if base in ALLOWED_CONTENT_TYPES:
        return None
    return Violation(
        rule_name="content-type",
        location=location,
        message=f"Content type '{content_type}' is not allowed",
        suggestion=f"Use one of: {', '.join(ALLOWED_CONTENT_TYPES)}",
    )


def check_content_type(spec: dict[str, Any]) -> list[Violation]:
    violations = []
    for path, op in _iter_posts(spec):
        location = f"POST {path}"
        body_content = (_deref(spec, op.get("requestBody")) or {}).get("content") or {}
        if body_content and "application/json" not in {ct.lower() for ct in body_content}:
            violations.append(Violation(
                rule_name="content-type",
                location=location,
                message="Request body must include application/json content type",
                suggestion="Add application/json to request body content types",
            ))
        for content_type in body_content:
            v = _content_type_violation(content_type, f"{location} request body")
            if v:
                violations.append(v)
        for code, response in (op.get("responses") or {}).items():
            for content_type in (_deref(spec, response) or {}).get("content") or {}:
                v = _content_type_violation(content_type, f"{location} response {code}")
                if v:
                    violations.append(v)
    return violations


RULES: tuple[Rule, ...] = (
    check_path_format,
    check_http_method,
    check_query_params,
    check_request_body,
    check_success_response,
    check_status_code,
    check_content_type,
)


def validate(spec: dict[str, Any], file_path: str = "", rules: tuple[Rule, ...] = RULES) -> ValidationResult:
    """Run every rule and collect violations in rule order."""
    violations: list[Violation] = []
    for rule in rules:
        violations.extend(rule(spec))
    return ValidationResult(violations=violations, file_path=file_path)


def format_report(result: ValidationResult) -> str:
    if result.valid:
        return f"✓ {result.file_path} is DUH-RPC compliant"
    lines = [f"Validating {result.file_path}...", ""]
    for violation in result.violations:
        lines.append(str(violation))
        lines.append("")
    lines.append(f"Summary: {len(result.violations)} violations found in {result.file_path}")
    return "\n".join(lines)
