"""Patch tool: deep-merge data into JSON, YAML or TOML files.

Mappings merge recursively; lists and scalars in the patch replace the
existing value.
"""

import json
import logging
from pathlib import Path
from typing import Any

import tomli
import tomli_w
import yaml

from hypergen.recipe_engine.models import ToolResult
from hypergen.recipe_engine.tools.base import StepContext, Tool, ToolError
from hypergen.recipe_parser import RecipeStep

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("json", "yaml", "toml")

FORMAT_BY_SUFFIX = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
}


def detect_format(file_path: str) -> str | None:
    return FORMAT_BY_SUFFIX.get(Path(file_path).suffix.lower())


def deep_merge(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Merge `source` into `target` in place and return it."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            deep_merge(target[key], value)
        else:
            target[key] = value
    return target


def parse_content(content: str, fmt: str) -> dict[str, Any]:
    if not content.strip():
        return {}
    if fmt == "json":
        data = json.loads(content)
    elif fmt == "yaml":
        data = yaml.safe_load(content)
    elif fmt == "toml":
        data = tomli.loads(content)
    else:
        raise ToolError(f"Unsupported format: {fmt}")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ToolError(f"Cannot patch a {fmt} document whose root is not a mapping")
    return data


def serialize_content(data: dict[str, Any], fmt: str, indent: int = 2) -> str:
    if fmt == "json":
        return json.dumps(data, indent=indent) + "\n"
    if fmt == "yaml":
        return yaml.dump(data, default_flow_style=False, sort_keys=False, indent=indent)
    if fmt == "toml":
        try:
            return tomli_w.dumps(data)
        except TypeError as e:
            raise ToolError(f"Cannot write TOML: {e}") from e
    raise ToolError(f"Unsupported format: {fmt}")


class PatchTool(Tool):
    """Merge `merge` into `file`.

    Step options:
        file: target file (rendered, relative to the project)
        merge: mapping to deep-merge
        format: json, yaml or toml (detected from the extension by default)
        indent: indentation for json/yaml output (default 2)
        create_if_missing: create the file when absent (default true)
    """

    name = "patch"
    required_fields = ("file", "merge")

    def validate(self, step: RecipeStep, context: StepContext) -> list[str]:
        errors = super().validate(step, context)
        merge = step.get("merge")
        if merge is not None and not isinstance(merge, dict):
            errors.append("merge must be an object")
        file_path = step.get("file")
        fmt = step.get("format") or (detect_format(str(file_path)) if file_path else None)
        if file_path and not fmt:
            errors.append(f'Cannot detect format for "{file_path}". Specify "format" explicitly.')
        if fmt and fmt not in SUPPORTED_FORMATS:
            errors.append(f"Unsupported format: {fmt}. Must be one of: {', '.join(SUPPORTED_FORMATS)}")
        return errors

    def execute(self, step: RecipeStep, context: StepContext) -> ToolResult:
        file_name = str(context.render(step.get("file"), step))
        target = context.resolve_path(file_name)
        fmt = step.get("format") or detect_format(file_name)
        indent = int(step.get("indent", 2))
        create_if_missing = step.get("create_if_missing", True)
        patch = context.render(step.get("merge"), step)

        exists = target.exists()
        if exists:
            try:
                existing = parse_content(target.read_text(encoding="utf-8"), fmt)
            except (OSError, ValueError, yaml.YAMLError) as e:
                raise ToolError(f"Failed to parse {target}: {e}") from e
        elif create_if_missing:
            existing = {}
        else:
            raise ToolError(f"File not found: {target}")

        merged = deep_merge(existing, patch)
        content = serialize_content(merged, fmt, indent)

        if not context.dry_run:
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(content, encoding="utf-8")
            except OSError as e:
                raise ToolError(f"Failed to write {target}: {e}") from e

        logger.info(f"  {'patched' if exists else 'added':>9}  {target}")
        if exists:
            return ToolResult(files_modified=[str(target)], output={"format": fmt})
        return ToolResult(files_created=[str(target)], output={"format": fmt})


__all__ = ["PatchTool", "deep_merge", "detect_format"]
