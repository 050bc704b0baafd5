"""Error taxonomy for the generation pipeline.

Every failure the pipeline reports derives from DuhGenError so callers
(the CLI in particular) can map the whole family to one exit code.
"""

from __future__ import annotations

from typing import Any


class DuhGenError(Exception):
    """Base class for all generation errors."""


class SpecLoadError(DuhGenError):
    """The specification file is missing or cannot be parsed."""


class ValidationFailed(DuhGenError):
    """The specification violates one or more DUH-RPC rules."""

    def __init__(self, result: Any) -> None:
        self.result = result
        super().__init__("OpenAPI validation failed")


class InvalidConfig(DuhGenError):
    """A configuration flag has an unusable value."""


class ModuleNotFound(DuhGenError):
    """No usable `module` declaration was found in go.mod."""


class InvalidPathFormat(DuhGenError):
    """A path does not follow /v{N}/subject.method."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        message = f"invalid path format: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class UnsupportedInlineSchema(DuhGenError):
    """A request or response body declares an anonymous schema."""

    def __init__(self, path: str, location: str) -> None:
        self.path = path
        self.location = location
        super().__init__(f"inline schema not supported for {location} in path {path}")


class RenderFailure(DuhGenError):
    """A template failed to render or its output failed formatting."""

    def __init__(self, artifact: str, reason: str) -> None:
        self.artifact = artifact
        super().__init__(f"failed to render {artifact}: {reason}")


class WriteFailure(DuhGenError):
    """An artifact could not be written to disk."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"failed to write {path}: {reason}")


class SpecEditError(DuhGenError):
    """`duhgen add` cannot apply the requested change to the spec."""
