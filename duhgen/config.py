"""Resolve CLI flags and go.mod into a Config.

All fallbacks come from ConfigDefaults so the resolver is the only place
that decides what an omitted flag means.
"""

from __future__ import annotations

import logging
import os
import posixpath
import re
from pathlib import Path

from .errors import InvalidConfig, ModuleNotFound
from .models import Config, ConfigDefaults

logger = logging.getLogger(__name__)

DEFAULTS = ConfigDefaults()

MANIFEST_NAME = "go.mod"

# Go's program entry package; a generated library package may not use it.
RESERVED_PACKAGE = "main"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_MODULE_LINE = re.compile(r"^module\s+(.+)$")
_VERSION_SEGMENT = re.compile(r"^v\d+$")

_GO_KEYWORDS = frozenset({
    "break", "case", "chan", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
    "map", "package", "range", "return", "select", "struct", "switch", "type",
    "var",
})


def validate_package_name(name: str) -> None:
    if not _IDENTIFIER.match(name) or name in _GO_KEYWORDS:
        raise InvalidConfig(f"invalid package name: {name}")
    if name == RESERVED_PACKAGE:
        raise InvalidConfig(f"package name cannot be '{RESERVED_PACKAGE}'")


def validate_output_dir(output_dir: str) -> None:
    if not os.path.isdir(output_dir):
        raise InvalidConfig(f"output directory does not exist: {output_dir}")


def find_module_root(start_dir: Path | str | None = None) -> Path:
    """Return the nearest directory at or above `start_dir` holding go.mod."""
    current = Path(start_dir or os.getcwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / MANIFEST_NAME).is_file():
            return candidate
    raise ModuleNotFound(f"failed to read {MANIFEST_NAME}: not found in {current} or any parent")


def detect_module_path(module_root: Path | str) -> str:
    """Read the `module <path>` declaration from go.mod."""
    manifest = Path(module_root) / MANIFEST_NAME
    try:
        text = manifest.read_text(encoding="utf-8")
    except OSError as e:
        raise ModuleNotFound(f"failed to read {manifest}: {e}") from e

    for line in text.splitlines():
        match = _MODULE_LINE.match(line.strip())
        if not match:
            continue
        module_path = match.group(1).split("//", 1)[0].strip().strip('"')
        if "/" not in module_path:
            raise ModuleNotFound(f"invalid module path: must contain '/': {module_path}")
        return module_path

    raise ModuleNotFound(f"module declaration not found in {manifest}")


def construct_proto_import(module_path: str, proto_path: str, override: str | None = None) -> str:
    if override:
        return override
    directory = posixpath.dirname(_as_posix(proto_path))
    if not directory:
        return module_path
    return posixpath.join(module_path, directory)


def derive_proto_package(
    proto_path: str,
    override: str | None = None,
    vendor: str = DEFAULTS.namespace_vendor,
) -> str:
    """Turn the last v<digits> directory of the proto path into a namespace."""
    if override:
        return override
    segments = posixpath.dirname(_as_posix(proto_path)).split("/")
    for segment in reversed(segments):
        if _VERSION_SEGMENT.match(segment):
            return f"{vendor}.api.{segment}"
    return f"{vendor}.api.v1"


def construct_package_import(module_path: str, module_root: Path, output_dir: str) -> str:
    """Import path of the generated Go package inside the module."""
    out = Path(output_dir).resolve()
    try:
        rel = out.relative_to(module_root)
    except ValueError:
        return module_path
    rel_posix = rel.as_posix()
    if rel_posix in ("", "."):
        return module_path
    return posixpath.join(module_path, rel_posix)


def resolve_config(
    package_name: str | None = None,
    output_dir: str | None = None,
    proto_path: str | None = None,
    proto_import: str | None = None,
    proto_package: str | None = None,
    full: bool = False,
    start_dir: Path | str | None = None,
    spec_path: Path | str | None = None,
    defaults: ConfigDefaults = DEFAULTS,
) -> Config:
    """Apply defaults, validate, and discover the Go module."""
    package_name = package_name or defaults.package_name
    output_dir = output_dir or defaults.output_dir
    proto_path = proto_path or defaults.proto_path
    spec_path = str(spec_path or defaults.spec_path)

    validate_package_name(package_name)
    validate_output_dir(output_dir)

    module_root = find_module_root(start_dir)
    module_path = detect_module_path(module_root)
    logger.debug("module %s at %s", module_path, module_root)

    return Config(
        package_name=package_name,
        output_dir=output_dir,
        proto_path=proto_path,
        proto_import=construct_proto_import(module_path, proto_path, proto_import),
        proto_package=derive_proto_package(proto_path, proto_package, defaults.namespace_vendor),
        module_path=module_path,
        module_root=str(module_root),
        package_import=construct_package_import(module_path, module_root, output_dir),
        spec_path=spec_path,
        full=full,
    )


def _as_posix(path: str) -> str:
    return path.replace("\\", "/")
