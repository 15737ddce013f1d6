"""Query tool: read a data file and export values to recipe variables.

Example step:

    - name: detect-orm
      tool: query
      file: package.json
      checks:
        - path: dependencies.drizzle-orm
          export_exists: has_drizzle
        - path: name
          export: package_name
"""

import json
import logging
from pathlib import Path
from typing import Any

import tomli
import yaml
from jinja2 import TemplateError

from hypergen.recipe_engine.models import ToolResult
from hypergen.recipe_engine.tools.base import StepContext, Tool, ToolError
from hypergen.recipe_parser import RecipeStep, normalize_keys

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("json", "yaml", "toml", "env")

FORMAT_BY_SUFFIX = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".env": "env",
}

_MISSING = object()


def detect_format(file_path: str) -> str | None:
    path = Path(file_path)
    if path.name == ".env" or path.name.startswith(".env."):
        return "env"
    return FORMAT_BY_SUFFIX.get(path.suffix.lower())


def parse_env(content: str) -> dict[str, str]:
    """Parse KEY=value lines, ignoring comments and blank lines."""
    values = {}
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        values[key.strip()] = value
    return values


def parse_data(content: str, fmt: str) -> Any:
    if fmt == "json":
        return json.loads(content)
    if fmt == "yaml":
        return yaml.safe_load(content)
    if fmt == "toml":
        return tomli.loads(content)
    if fmt == "env":
        return parse_env(content)
    raise ToolError(f"Unsupported format: {fmt}")


def lookup(data: Any, dot_path: str) -> Any:
    """Value at a dot-separated path, or _MISSING."""
    current = data
    for segment in dot_path.split("."):
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return _MISSING
    return current


class QueryTool(Tool):
    """Evaluate dot-path checks or an expression against a data file.

    Step options:
        file: JSON, YAML, TOML or .env file (rendered, relative to the project root)
        format: explicit format when the extension is not enough
        checks: list of {path, export, export_exists}
        expression: Jinja2 expression evaluated with `data` bound to the file
        export: variable receiving the expression value
    """

    name = "query"
    required_fields = ("file",)

    def validate(self, step: RecipeStep, context: StepContext) -> list[str]:
        errors = super().validate(step, context)
        checks = step.get("checks")
        if checks is None and not step.get("expression"):
            errors.append('Either "checks" or "expression" must be specified')
        if checks is not None:
            if not isinstance(checks, list):
                errors.append("checks must be a list")
            else:
                for index, check in enumerate(checks):
                    if not isinstance(check, dict) or not check.get("path"):
                        errors.append(f'Check at index {index} must have a "path"')
        fmt = step.get("format")
        if fmt and fmt not in SUPPORTED_FORMATS:
            errors.append(f"Unsupported format: {fmt}. Must be one of: {', '.join(SUPPORTED_FORMATS)}")
        return errors

    def execute(self, step: RecipeStep, context: StepContext) -> ToolResult:
        file_name = str(context.render(step.get("file"), step))
        fmt = step.get("format") or detect_format(file_name)
        if not fmt:
            raise ToolError(f'Cannot detect format for "{file_name}". Specify "format" explicitly.')

        path = context.resolve_path(file_name, context.project_root)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ToolError(f"File not found: {file_name}") from e
        except OSError as e:
            raise ToolError(f"Failed to read {file_name}: {e}") from e

        try:
            data = parse_data(content, fmt)
        except (ValueError, yaml.YAMLError) as e:
            raise ToolError(f"Failed to parse {file_name} as {fmt}: {e}") from e

        result = ToolResult(output={"file": file_name, "format": fmt})

        if step.get("checks") is not None:
            checks = []
            for raw in step.get("checks"):
                check = normalize_keys(raw)
                value = lookup(data, str(check["path"]))
                exists = value is not _MISSING
                value = None if value is _MISSING else value
                checks.append({"path": check["path"], "exists": exists, "value": value})
                if check.get("export"):
                    result.variables[check["export"]] = value
                if check.get("export_exists"):
                    result.variables[check["export_exists"]] = exists and value not in (None, False)
            result.output["checks"] = checks

        expression = step.get("expression")
        if expression:
            try:
                compiled = context.template_engine.env.compile_expression(str(expression))
                value = compiled(**{**context.template_context(step), "data": data})
            except TemplateError as e:
                raise ToolError(f"Expression evaluation failed: {e}") from e
            result.output["expression"] = expression
            result.output["value"] = value
            if step.get("export"):
                result.variables[step.get("export")] = value

        if result.variables:
            logger.debug(f"  exported: {', '.join(sorted(result.variables))}")
        return result


__all__ = ["QueryTool", "detect_format", "lookup", "parse_env"]
