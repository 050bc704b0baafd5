"""Convert DUH-RPC paths to Go identifiers.

Pattern: /v{N}/{subject}.{method}
  - subject and method are split on '-' and '_'
  - each token gets its first character upper-cased
  - method name = Subject + Method
  - const name  = "RPC" + method name

Examples:
  /v1/users.create         -> UsersCreate,        RPCUsersCreate
  /v1/users.list           -> UsersList,          RPCUsersList
  /v2/user-groups.add_item -> UserGroupsAddItem,  RPCUserGroupsAddItem
"""

from __future__ import annotations

import re

from .errors import InvalidPathFormat

_VERSIONED_PATH = re.compile(r"^/v\d+/(.+)$")

_TOKEN_SEPARATORS = re.compile(r"[-_]")

CONST_PREFIX = "RPC"


def parse_subject_method(path: str) -> tuple[str, str]:
    """Split a path into its (subject, method) pair."""
    match = _VERSIONED_PATH.match(path)
    if not match:
        raise InvalidPathFormat(path, "missing /v{N}/ version prefix")

    parts = match.group(1).split(".")
    if len(parts) != 2:
        raise InvalidPathFormat(path, "must contain subject.method")
    return parts[0], parts[1]


def to_camel_case(segment: str) -> str:
    """Upper-case the first character of each '-'/'_' token and join them.

    Only the first character changes: 'getHTTP' stays 'GetHTTP'.
    """
    tokens = [t for t in _TOKEN_SEPARATORS.split(segment) if t]
    return "".join(t[:1].upper() + t[1:] for t in tokens)


def generate_operation_name(path: str) -> str:
    """Build the method identifier, e.g. 'UsersCreate'."""
    subject, method = parse_subject_method(path)
    return to_camel_case(subject) + to_camel_case(method)


def generate_const_name(operation_name: str) -> str:
    return CONST_PREFIX + operation_name
