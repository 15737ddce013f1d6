"""Recipe variable definitions, validation and resolution.

Variables are declared in recipe.yml / kit.yml:

    variables:
      name:
        type: string
        required: true
        pattern: ^[a-z][a-z0-9-]*$
        position: 0
      style:
        type: enum
        values: [css, scss]
        default: css

Resolution order for each variable: provided value, default, prompt.
"""

import json
import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import click

logger = logging.getLogger(__name__)

VALID_VARIABLE_TYPES = (
    "string",
    "number",
    "boolean",
    "enum",
    "array",
    "object",
    "file",
    "directory",
)

_MISSING = object()


class VariableError(Exception):
    """Raised when variables are missing or invalid."""

    pass


@dataclass
class VariableDefinition:
    """A typed variable declaration."""

    type: str = "string"
    required: bool = False
    default: Any = None
    description: str | None = None
    prompt: str | None = None
    pattern: str | None = None
    values: list[str] = field(default_factory=list)
    min: float | None = None
    max: float | None = None
    multiple: bool = False
    position: int | None = None
    suggestion: Any = None
    internal: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type}
        for key in (
            "required",
            "default",
            "description",
            "prompt",
            "pattern",
            "min",
            "max",
            "multiple",
            "position",
            "suggestion",
            "internal",
        ):
            value = getattr(self, key)
            if value not in (None, False):
                data[key] = value
        if self.values:
            data["values"] = list(self.values)
        return data


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_variable(
    name: str, raw: Any, errors: list[str], warnings: list[str]
) -> VariableDefinition | None:
    """Parse one variable declaration, collecting problems.

    Returns:
        The definition, or None when the declaration is unusable.
    """
    if isinstance(raw, str):
        # shorthand: `name: string`
        raw = {"type": raw}
    if not isinstance(raw, dict):
        errors.append(f"Variable '{name}' must be an object")
        return None

    var_type = raw.get("type")
    if not var_type:
        errors.append(f"Variable '{name}' must have a type")
        return None
    if var_type not in VALID_VARIABLE_TYPES:
        errors.append(f"Variable '{name}' has invalid type: {var_type}")
        return None

    variable = VariableDefinition(type=var_type)

    if "required" in raw:
        if isinstance(raw["required"], bool):
            variable.required = raw["required"]
        else:
            warnings.append(f"Variable '{name}' required field should be boolean")

    if raw.get("default") is not None:
        if variable.required:
            warnings.append(f"Variable '{name}' cannot have default value when required")
        else:
            variable.default = raw["default"]

    description = raw.get("description")
    if description:
        if isinstance(description, str):
            variable.description = description
        else:
            warnings.append(f"Variable '{name}' description should be a string")

    if isinstance(raw.get("prompt"), str):
        variable.prompt = raw["prompt"]

    pattern = raw.get("pattern")
    if pattern:
        if variable.type != "string":
            warnings.append(f"Variable '{name}' pattern only applies to string types")
        elif not isinstance(pattern, str):
            warnings.append(f"Variable '{name}' pattern should be a string")
        else:
            try:
                re.compile(pattern)
                variable.pattern = pattern
            except re.error:
                errors.append(f"Variable '{name}' has invalid regex pattern: {pattern}")

    values = raw.get("values")
    if values:
        if variable.type != "enum":
            warnings.append(f"Variable '{name}' values only apply to enum types")
        elif not isinstance(values, list):
            errors.append(f"Variable '{name}' values must be an array")
        else:
            variable.values = [str(v) for v in values if isinstance(v, (str, int, float))]
    if variable.type == "enum" and not variable.values:
        errors.append(f"Variable '{name}' enum must have at least one value")

    for bound in ("min", "max"):
        if raw.get(bound) is None:
            continue
        if variable.type != "number":
            warnings.append(f"Variable '{name}' {bound} only applies to number types")
        elif not _is_number(raw[bound]):
            warnings.append(f"Variable '{name}' {bound} should be a number")
        else:
            setattr(variable, bound, raw[bound])

    variable.multiple = bool(raw.get("multiple", False))
    variable.internal = bool(raw.get("internal", False))
    variable.suggestion = raw.get("suggestion")

    position = raw.get("position")
    if position is not None:
        if isinstance(position, int) and not isinstance(position, bool) and position >= 0:
            variable.position = position
        else:
            warnings.append(f"Variable '{name}' position should be a non-negative integer")

    return variable


def parse_variables(
    raw: Any, errors: list[str], warnings: list[str]
) -> dict[str, VariableDefinition]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        errors.append("variables must be an object")
        return {}

    variables = {}
    for name, config in raw.items():
        variable = parse_variable(str(name), config, errors, warnings)
        if variable:
            variables[str(name)] = variable
    return variables


def validate_value(name: str, value: Any, variable: VariableDefinition) -> str | None:
    """Validate a value against its definition.

    Returns:
        An error message, or None when the value is acceptable.
    """
    if variable.required and (value is None or value == ""):
        return f"Variable '{name}' is required"
    if value is None:
        return None

    if variable.type in ("string", "file", "directory"):
        if not isinstance(value, str):
            return f"Variable '{name}' must be a string"
        if variable.pattern and not re.search(variable.pattern, value):
            return f"Variable '{name}' does not match pattern: {variable.pattern}"

    elif variable.type == "number":
        if not _is_number(value):
            return f"Variable '{name}' must be a number"
        if variable.min is not None and value < variable.min:
            return f"Variable '{name}' must be >= {variable.min}"
        if variable.max is not None and value > variable.max:
            return f"Variable '{name}' must be <= {variable.max}"

    elif variable.type == "boolean":
        if not isinstance(value, bool):
            return f"Variable '{name}' must be a boolean"

    elif variable.type == "enum":
        allowed = ", ".join(variable.values)
        if variable.multiple and isinstance(value, list):
            for item in value:
                if item not in variable.values:
                    return f"Value '{item}' for variable '{name}' must be one of: {allowed}"
        elif value not in variable.values:
            return f"Variable '{name}' must be one of: {allowed}"

    elif variable.type == "array":
        if not isinstance(value, list):
            return f"Variable '{name}' must be an array"

    elif variable.type == "object":
        if not isinstance(value, dict):
            return f"Variable '{name}' must be an object"

    return None


def coerce_cli_value(value: Any, variable: VariableDefinition | None) -> Any:
    """Convert a command line string to the variable's declared type.

    Values that cannot be converted are returned unchanged so validation
    reports them.
    """
    if variable is None or not isinstance(value, str):
        return value

    if variable.type == "number":
        try:
            return int(value)
        except ValueError:
            try:
                return float(value)
            except ValueError:
                return value

    if variable.type == "boolean":
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "y", "1", "on"):
            return True
        if lowered in ("false", "no", "n", "0", "off"):
            return False
        return value

    if variable.type == "array" or (variable.type == "enum" and variable.multiple):
        return [item.strip() for item in value.split(",") if item.strip()]

    if variable.type == "object":
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return value
        return parsed

    return value


def map_positional(
    definitions: Mapping[str, VariableDefinition], positionals: list[str]
) -> dict[str, Any]:
    """Map positional arguments onto variables declaring a `position`.

    Variables are taken in `position` order; extra positionals are ignored.
    """
    ordered = sorted(
        (variable.position, name)
        for name, variable in definitions.items()
        if variable.position is not None
    )
    return {name: value for (_, name), value in zip(ordered, positionals)}


def click_prompter(name: str, variable: VariableDefinition) -> Any:
    """Prompt interactively for a variable value with click."""
    message = variable.prompt or variable.description or name

    if variable.type == "boolean":
        return click.confirm(message, default=bool(variable.suggestion))

    if variable.type == "enum" and not variable.multiple:
        return click.prompt(
            message,
            type=click.Choice(variable.values),
            default=variable.suggestion if variable.suggestion in variable.values else None,
        )

    if variable.type == "number":
        return click.prompt(message, type=float if variable.min is not None else int)

    raw = click.prompt(message, default=variable.suggestion)
    return coerce_cli_value(raw, variable)


def resolve_variables(
    definitions: Mapping[str, VariableDefinition],
    provided: Mapping[str, Any],
    prompter: Callable[[str, VariableDefinition], Any] | None = None,
    no_defaults: bool = False,
) -> dict[str, Any]:
    """Resolve final variable values.

    Args:
        definitions: Declared variables
        provided: Values supplied by the caller (CLI, parent recipe)
        prompter: Called for required variables with no value; when None
            missing required variables are reported together
        no_defaults: Ignore declared defaults (forces prompting)

    Returns:
        Resolved values, including provided keys with no declaration

    Raises:
        VariableError: If required values are missing or values are invalid
    """
    resolved: dict[str, Any] = dict(provided)
    missing: list[str] = []

    for name, variable in definitions.items():
        value = provided.get(name, _MISSING)

        if value is _MISSING or value is None:
            if variable.has_default and not no_defaults:
                value = variable.default
            elif prompter is not None and (variable.required or variable.has_default):
                value = prompter(name, variable)
            elif variable.required:
                missing.append(name)
                continue
            else:
                value = None

        value = coerce_cli_value(value, variable)
        error = validate_value(name, value, variable)
        if error:
            raise VariableError(error)
        resolved[name] = value

    if missing:
        raise VariableError(f"Missing required variables: {', '.join(missing)}")

    logger.debug(f"Resolved {len(resolved)} variables")
    return resolved


__all__ = [
    "VALID_VARIABLE_TYPES",
    "VariableDefinition",
    "VariableError",
    "click_prompter",
    "coerce_cli_value",
    "map_positional",
    "parse_variable",
    "parse_variables",
    "resolve_variables",
    "validate_value",
]
