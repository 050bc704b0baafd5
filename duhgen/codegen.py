"""Render templates into artifact source text.

Takes the RenderModel from context_builder and produces the text of each
artifact selected by the writer's table. Rendering is strict: a template
that reads a name the model lacks is a RenderFailure, as is output the
formatter rejects.
"""

from __future__ import annotations

import re
import shlex
from pathlib import Path
from typing import Any, Callable

import jinja2

from .errors import RenderFailure
from .models import RenderModel
from .writer import ArtifactSpec, select_artifacts

TEMPLATE_DIR = Path(__file__).parent / "templates"

GENERATOR_NAME = "duh generate"

DO_NOT_EDIT = "DO NOT EDIT."
YOU_CAN_EDIT = "YOU CAN EDIT; regeneration replaces this file."

Formatter = Callable[[str, str], str]

_BLANK_RUN = re.compile(r"\n{3,}")
_PAIRS = {")": "(", "]": "[", "}": "{"}


def header_line(timestamp: str, editable: bool, comment: str = "//") -> str:
    marker = YOU_CAN_EDIT if editable else DO_NOT_EDIT
    return f"{comment} Code generated by '{GENERATOR_NAME}' on {timestamp}. {marker}"


def _check_balanced(source: str) -> None:
    """Reject unbalanced (), [] and {} outside strings and comments."""
    stack: list[str] = []
    i, n = 0, len(source)
    while i < n:
        ch = source[i]
        nxt = source[i + 1] if i + 1 < n else ""
        if ch == "/" and nxt == "/":
            end = source.find("\n", i)
            i = n if end == -1 else end
            continue
        if ch == "/" and nxt == "*":
            end = source.find("*/", i + 2)
            if end == -1:
                raise ValueError("unterminated block comment")
            i = end + 2
            continue
        if ch in "\"'`":
            j = i + 1
            while j < n and source[j] != ch:
                if source[j] == "\\" and ch != "`":
                    j += 1
                elif source[j] == "\n" and ch != "`":
                    raise ValueError(f"unterminated string at offset {i}")
                j += 1
            if j >= n:
                raise ValueError(f"unterminated string at offset {i}")
            i = j + 1
            continue
        if ch in "([{":
            stack.append(ch)
        elif ch in ")]}":
            if not stack or stack.pop() != _PAIRS[ch]:
                raise ValueError(f"unbalanced '{ch}' at offset {i}")
        i += 1
    if stack:
        raise ValueError(f"unclosed '{stack[-1]}'")


def format_source(source: str, kind: str) -> str:
    """Normalize whitespace; for Go and proto also check bracket balance."""
    lines = [line.rstrip() for line in source.splitlines()]
    text = "\n".join(lines).strip("\n")
    text = _BLANK_RUN.sub("\n\n", text) + "\n"
    if kind in ("go", "proto"):
        _check_balanced(text)
    return text


def create_environment(template_dir: Path = TEMPLATE_DIR) -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(template_dir)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
        autoescape=False,
    )
    env.filters["lower_first"] = lambda s: s[:1].lower() + s[1:]
    env.filters["one_line"] = lambda s: " ".join(str(s).split())
    env.filters["shell_quote"] = shlex.quote
    return env


class Renderer:
    """Runs templates against a RenderModel, one artifact at a time."""

    def __init__(
        self,
        env: jinja2.Environment | None = None,
        formatter: Formatter = format_source,
    ) -> None:
        self.env = env or create_environment()
        self.formatter = formatter

    def _context(self, artifact: ArtifactSpec, model: RenderModel) -> dict[str, Any]:
        context = dict(model)
        context["has_list_ops"] = model.has_list_ops
        context["header"] = header_line(model.timestamp, artifact.editable, artifact.comment)
        return context

    def template_name(self, artifact: ArtifactSpec, model: RenderModel) -> str:
        if model.is_init_template and artifact.example_template:
            return artifact.example_template
        return artifact.template

    def render(self, artifact: ArtifactSpec, model: RenderModel) -> str:
        try:
            template = self.env.get_template(self.template_name(artifact, model))
            output = template.render(**self._context(artifact, model))
        except jinja2.TemplateError as e:
            raise RenderFailure(artifact.name, str(e)) from e

        try:
            return self.formatter(output, artifact.kind)
        except ValueError as e:
            raise RenderFailure(artifact.name, f"formatting failed: {e}") from e

    def render_all(self, model: RenderModel) -> list[tuple[ArtifactSpec, str]]:
        """Render every selected artifact, in table order."""
        return [(artifact, self.render(artifact, model)) for artifact in select_artifacts(model)]
