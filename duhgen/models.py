"""Immutable data models shared by the pipeline stages.

Config is produced by the config resolver, Operation and ListOperation by
the extractor and classifier, RenderModel by the context builder.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ConfigDefaults(_Frozen):
    """Fallbacks applied to every omitted flag."""

    package_name: str = "api"
    output_dir: str = "."
    proto_path: str = "proto/v1/api.proto"
    spec_path: str = "openapi.yaml"
    namespace_vendor: str = "pkg"


class Config(_Frozen):
    """Fully-resolved configuration for one invocation."""

    package_name: str
    output_dir: str
    proto_path: str
    proto_import: str
    proto_package: str
    module_path: str
    module_root: str
    package_import: str
    spec_path: str = "openapi.yaml"
    full: bool = False


class Operation(_Frozen):
    """A POST operation whose bodies resolve to named schemas."""

    method_name: str  # UsersCreate
    path: str  # /v1/users.create
    const_name: str  # RPCUsersCreate
    summary: str = ""
    request_type: str  # CreateUserRequest
    response_type: str  # CreateUserResponse


class ListOperation(Operation):
    """An Operation that passed the pagination heuristic."""

    iterator_name: str  # UsersListIter
    fetcher_name: str  # UserPageFetcher
    item_type: str  # UserResponse
    response_field: str  # Users


class RenderModel(_Frozen):
    """Everything a template may read. Built once, never mutated."""

    package: str
    module_path: str
    package_import: str
    proto_import: str
    proto_package: str
    proto_module_dir: str = "proto"
    spec_file: str = "openapi.yaml"  # relative to the module root
    generate_command: str = "duhgen generate openapi.yaml"
    operations: tuple[Operation, ...] = ()
    list_ops: tuple[ListOperation, ...] = ()
    messages: tuple[str, ...] = ()
    timestamp: str
    is_full: bool = False
    is_init_template: bool = False

    @property
    def has_list_ops(self) -> bool:
        return len(self.list_ops) > 0
