"""Template rendering module.

Renders template files made of a YAML frontmatter block followed by a
Jinja2 body. The frontmatter carries file operation attributes:

    ---
    to: src/components/{{ name | pascal_case }}.py
    unless_exists: true
    ---
    class {{ name | pascal_case }}:
        ...

String attributes are rendered with the same context as the body, so
destinations and injection anchors may use variables too.

Conditions (recipe `when:` and frontmatter `skip_if:`) are Jinja2
expressions evaluated against the same context.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jinja2 import ChainableUndefined, Environment, StrictUndefined, TemplateError

from hypergen.inflections import INFLECTION_FILTERS

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"


class TemplateRenderError(Exception):
    """Raised when a template or condition cannot be rendered."""

    pass


@dataclass
class RenderedFile:
    """A template rendered against a context, ready for file operations."""

    template_path: Path | None
    attributes: dict[str, Any] = field(default_factory=dict)
    body: str = ""

    @property
    def to(self) -> str | None:
        """Destination path from frontmatter, None when absent or blank."""
        value = self.attributes.get("to")
        if value is None:
            return None
        value = str(value).strip()
        if not value or value.lower() in ("null", "none", "false"):
            return None
        return value


def parse_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Split a document into its YAML frontmatter and body.

    Args:
        text: Full document text

    Returns:
        Tuple of (attributes, body). Documents without a leading
        frontmatter block return ({}, text).

    Raises:
        TemplateRenderError: If the frontmatter is not a YAML mapping
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        return {}, text

    for index in range(1, len(lines)):
        if lines[index].strip() == FRONTMATTER_DELIMITER:
            header = "".join(lines[1:index])
            body = "".join(lines[index + 1 :])
            break
    else:
        return {}, text

    try:
        attributes = yaml.safe_load(header) if header.strip() else {}
    except yaml.YAMLError as e:
        raise TemplateRenderError(f"Invalid frontmatter YAML: {e}") from e

    if attributes is None:
        attributes = {}
    if not isinstance(attributes, dict):
        raise TemplateRenderError("Frontmatter must be a YAML mapping")

    return attributes, body


class TemplateEngine:
    """Jinja2 environment configured with hypergen filters and helpers."""

    def __init__(self, strict: bool = False, helpers: Mapping[str, Callable] | None = None):
        self.strict = strict
        self.env = Environment(
            keep_trailing_newline=True,
            autoescape=False,
            undefined=StrictUndefined if strict else ChainableUndefined,
        )
        self.env.filters.update(INFLECTION_FILTERS)
        self.env.globals.update(INFLECTION_FILTERS)
        if helpers:
            self.register_helpers(helpers)

    def register_helpers(self, helpers: Mapping[str, Callable]) -> None:
        """Expose helper callables as both Jinja2 globals and filters."""
        for name, helper in helpers.items():
            if not callable(helper):
                logger.debug(f"Ignoring non-callable helper: {name}")
                continue
            self.env.globals[name] = helper
            self.env.filters[name] = helper
            logger.debug(f"Registered template helper: {name}")

    def render_string(self, source: str, context: Mapping[str, Any], name: str = "<string>") -> str:
        """Render a template string.

        Raises:
            TemplateRenderError: If the template fails to parse or render
        """
        try:
            return self.env.from_string(source).render(**context)
        except TemplateError as e:
            raise TemplateRenderError(f"Failed to render {name}: {e}") from e

    def evaluate_condition(self, expression: Any, context: Mapping[str, Any]) -> bool:
        """Evaluate a condition expression against a context.

        Booleans are returned as-is, empty expressions are true. A
        `{{ ... }}` wrapper around the expression is tolerated.
        """
        if expression is None:
            return True
        if isinstance(expression, bool):
            return expression
        if isinstance(expression, (int, float)):
            return bool(expression)

        source = str(expression).strip()
        if source.startswith("{{") and source.endswith("}}"):
            source = source[2:-2].strip()
        if not source:
            return True

        try:
            compiled = self.env.compile_expression(source, undefined_to_none=True)
            return bool(compiled(**context))
        except TemplateError as e:
            raise TemplateRenderError(f"Invalid condition '{source}': {e}") from e

    def render_attributes(
        self, attributes: Mapping[str, Any], context: Mapping[str, Any], name: str
    ) -> dict[str, Any]:
        rendered: dict[str, Any] = {}
        for key, value in attributes.items():
            if isinstance(value, str):
                rendered[key] = self.render_string(value, context, f"{name} [{key}]")
            else:
                rendered[key] = value
        return rendered

    def render_text(
        self, text: str, context: Mapping[str, Any], template_path: Path | None = None
    ) -> RenderedFile:
        """Render a frontmatter document held in memory."""
        name = str(template_path) if template_path else "<template>"
        raw_attributes, body = parse_frontmatter(text)
        attributes = self.render_attributes(raw_attributes, context, name)
        body_context = {**context, "attributes": attributes}
        rendered_body = self.render_string(body, body_context, name)
        return RenderedFile(template_path=template_path, attributes=attributes, body=rendered_body)

    def render_file(self, path: Path, context: Mapping[str, Any]) -> RenderedFile:
        """Render a template file from disk.

        Raises:
            TemplateRenderError: If the file cannot be read or rendered
        """
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise TemplateRenderError(f"Failed to read template {path}: {e}") from e

        try:
            return self.render_text(text, context, template_path=path)
        except TemplateRenderError as e:
            if str(path) in str(e):
                raise
            raise TemplateRenderError(f"{path}: {e}") from e


__all__ = [
    "RenderedFile",
    "TemplateEngine",
    "TemplateRenderError",
    "parse_frontmatter",
]
