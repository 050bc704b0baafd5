"""Build the render model from config and extracted operations.

The model is the only input templates see. Its timestamp is taken once so
every artifact of a run carries the same header.
"""

from __future__ import annotations

import os
import shlex
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from .config import DEFAULTS, construct_proto_import, derive_proto_package
from .models import Config, ListOperation, Operation, RenderModel

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


def generate_timestamp(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime(TIMESTAMP_FORMAT)


def proto_module_dir(proto_path: str) -> str:
    """Top directory buf treats as the proto module root."""
    parts = proto_path.replace("\\", "/").strip("/").split("/")
    return parts[0] if len(parts) > 1 else "."


def root_relative(path: str, module_root: str) -> str:
    """`path` (relative to the working directory) as seen from the module root."""
    try:
        rel = os.path.relpath(os.path.abspath(path), module_root)
    except ValueError:
        return path
    return Path(rel).as_posix()


def generate_command(config: Config) -> str:
    """The `duhgen generate` invocation that reproduces this run from the module root.

    Flags equal to their defaults, and overrides equal to the derived value,
    are left out.
    """
    args = ["duhgen", "generate", root_relative(config.spec_path, config.module_root)]
    if config.package_name != DEFAULTS.package_name:
        args += ["-p", config.package_name]
    output_dir = root_relative(config.output_dir, config.module_root)
    if output_dir != ".":
        args += ["--output-dir", output_dir]
    if config.proto_path != DEFAULTS.proto_path:
        args += ["--proto-path", config.proto_path]
    if config.proto_import != construct_proto_import(config.module_path, config.proto_path):
        args += ["--proto-import", config.proto_import]
    if config.proto_package != derive_proto_package(config.proto_path):
        args += ["--proto-package", config.proto_package]
    if config.full:
        args.append("--full")
    return " ".join(shlex.quote(arg) for arg in args)


def collect_messages(
    operations: Iterable[Operation],
    list_ops: Iterable[ListOperation] = (),
) -> tuple[str, ...]:
    """Distinct schema names referenced by operations, in first-sight order.

    For each operation: request type, response type, then the list item type
    when the operation is paginated.
    """
    item_types = {op.path: op.item_type for op in list_ops}
    seen: dict[str, None] = {}
    for op in operations:
        for name in (op.request_type, op.response_type, item_types.get(op.path)):
            if name:
                seen.setdefault(name, None)
    return tuple(seen)


def build_context(
    config: Config,
    operations: list[Operation],
    list_ops: list[ListOperation],
    timestamp: str | None = None,
    init_template: bool = False,
) -> RenderModel:
    """Assemble the immutable RenderModel for one invocation.

    `init_template` selects the example service scaffold for specs that
    carry the `duhgen init` users API.
    """
    return RenderModel(
        package=config.package_name,
        module_path=config.module_path,
        package_import=config.package_import,
        proto_import=config.proto_import,
        proto_package=config.proto_package,
        proto_module_dir=proto_module_dir(config.proto_path),
        spec_file=root_relative(config.spec_path, config.module_root),
        generate_command=generate_command(config),
        operations=tuple(operations),
        list_ops=tuple(list_ops),
        messages=collect_messages(operations, list_ops),
        timestamp=timestamp or generate_timestamp(),
        is_full=config.full,
        is_init_template=init_template,
    )
