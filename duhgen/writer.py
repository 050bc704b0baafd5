"""Decide where each artifact goes and whether it may be written.

The artifact table below is the whole write policy: which templates run,
in what order, which files are regenerated on every run, which are left
alone once they exist, and which directory each lands in.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from .errors import WriteFailure
from .models import Config, RenderModel

logger = logging.getLogger(__name__)


class Policy(str, enum.Enum):
    ALWAYS = "always"  # overwritten on every run
    SKIP_IF_EXISTS = "skip-if-exists"  # first write wins


class Destination(str, enum.Enum):
    OUTPUT = "output"  # configured output directory
    ROOT = "root"  # directory holding go.mod
    PROTO = "proto"  # proto path, relative to the module root


class ArtifactSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    template: str
    policy: Policy = Policy.ALWAYS
    destination: Destination = Destination.OUTPUT
    editable: bool = False  # header says YOU CAN EDIT instead of DO NOT EDIT
    comment: str = "//"
    full_only: bool = False
    needs_list_ops: bool = False
    example_template: str | None = None  # used instead of `template` for the init users API
    kind: str = "go"  # formatter selection: go, proto, text


ARTIFACTS: tuple[ArtifactSpec, ...] = (
    ArtifactSpec(name="server.go", template="server.go.j2"),
    ArtifactSpec(name="client.go", template="client.go.j2"),
    ArtifactSpec(name="iterator.go", template="iterator.go.j2", needs_list_ops=True),
    ArtifactSpec(
        name="api.proto", template="api.proto.j2",
        destination=Destination.PROTO, kind="proto",
    ),
    ArtifactSpec(
        name="buf.yaml", template="buf.yaml.j2",
        policy=Policy.SKIP_IF_EXISTS, destination=Destination.ROOT,
        editable=True, comment="#", kind="text",
    ),
    ArtifactSpec(
        name="buf.gen.yaml", template="buf.gen.yaml.j2",
        policy=Policy.SKIP_IF_EXISTS, destination=Destination.ROOT,
        editable=True, comment="#", kind="text",
    ),
    ArtifactSpec(name="daemon.go", template="daemon.go.j2", editable=True, full_only=True),
    ArtifactSpec(
        name="service.go", template="service.go.j2",
        example_template="service_example.go.j2", editable=True, full_only=True,
    ),
    ArtifactSpec(
        name="api_test.go", template="api_test.go.j2",
        example_template="api_test_example.go.j2", editable=True, full_only=True,
    ),
    # Build tooling runs from the project root, wherever the Go files go.
    ArtifactSpec(
        name="Makefile", template="Makefile.j2",
        destination=Destination.ROOT, editable=True, full_only=True,
        comment="#", kind="text",
    ),
)


def select_artifacts(
    model: RenderModel,
    artifacts: tuple[ArtifactSpec, ...] = ARTIFACTS,
) -> list[ArtifactSpec]:
    """Artifacts that apply to this run, in table order."""
    selected = []
    for artifact in artifacts:
        if artifact.full_only and not model.is_full:
            continue
        if artifact.needs_list_ops and not model.has_list_ops:
            continue
        selected.append(artifact)
    return selected


def destination_path(artifact: ArtifactSpec, config: Config) -> Path:
    if artifact.destination is Destination.ROOT:
        return Path(config.module_root) / artifact.name
    if artifact.destination is Destination.PROTO:
        return Path(config.module_root) / config.proto_path
    return Path(config.output_dir) / artifact.name


@dataclass
class WriteReport:
    written: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)


def write_file(path: Path, content: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
    except OSError as e:
        raise WriteFailure(str(path), e.strerror or str(e)) from e


def write_artifacts(
    rendered: list[tuple[ArtifactSpec, str]],
    config: Config,
) -> WriteReport:
    """Write rendered artifacts in order, honoring each one's policy.

    Not atomic: a WriteFailure leaves earlier files of the run in place.
    """
    report = WriteReport()
    for artifact, content in rendered:
        path = destination_path(artifact, config)
        if artifact.policy is Policy.SKIP_IF_EXISTS and path.exists():
            logger.info("keeping existing %s", path)
            report.skipped.append(path)
            continue
        write_file(path, content)
        logger.info("wrote %s", path)
        report.written.append(path)
    return report
