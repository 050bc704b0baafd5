"""Run the whole generation pass.

Resolve -> Validate -> Extract -> Classify -> Build -> Render -> Write.
Nothing is written until every artifact has rendered, so a failure in any
stage before Write leaves the disk untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from .classifier import classify
from .codegen import Renderer
from .config import resolve_config
from .context_builder import build_context
from .errors import ValidationFailed
from .extractor import extract_operations
from .lint import ValidationResult, validate
from .loader import load_spec
from .models import Config, RenderModel
from .scaffold import is_init_template_spec
from .writer import WriteReport, write_artifacts

logger = logging.getLogger(__name__)

Validator = Callable[[dict[str, Any], str], ValidationResult]


@dataclass
class GenerationResult:
    config: Config
    model: RenderModel
    report: WriteReport


def generate(
    spec: dict[str, Any],
    config: Config,
    renderer: Renderer | None = None,
    timestamp: str | None = None,
) -> GenerationResult:
    """Generate artifacts for an already-loaded, already-validated spec."""
    operations = extract_operations(spec)
    list_ops = classify(spec, operations)
    logger.debug("%d operations, %d list operations", len(operations), len(list_ops))

    model = build_context(
        config, operations, list_ops,
        timestamp=timestamp,
        init_template=is_init_template_spec(spec),
    )
    rendered = (renderer or Renderer()).render_all(model)
    report = write_artifacts(rendered, config)
    return GenerationResult(config=config, model=model, report=report)


def run(
    spec_path: Path | str = "openapi.yaml",
    package_name: str | None = None,
    output_dir: str | None = None,
    proto_path: str | None = None,
    proto_import: str | None = None,
    proto_package: str | None = None,
    full: bool = False,
    validator: Validator = validate,
    renderer: Renderer | None = None,
    timestamp: str | None = None,
    start_dir: Path | str | None = None,
) -> GenerationResult:
    """Load, validate and generate; raises a DuhGenError on any failure."""
    spec = load_spec(spec_path)

    result = validator(spec, str(spec_path))
    if not result.valid:
        raise ValidationFailed(result)

    config = resolve_config(
        package_name=package_name,
        output_dir=output_dir,
        proto_path=proto_path,
        proto_import=proto_import,
        proto_package=proto_package,
        full=full,
        start_dir=start_dir,
        spec_path=spec_path,
    )
    return generate(spec, config, renderer=renderer, timestamp=timestamp)
