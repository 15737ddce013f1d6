"""Recipe file parsing and validation.

Parses recipe.yml (and legacy template.yml) files into RecipeConfig
objects. Parsing never raises for content problems: errors and warnings
are collected on the ParsedRecipe so `hypergen recipe validate` can report
all of them at once. Use load_recipe() to get a config or an exception.

Recipe structure:
    name: component
    description: Generate a component
    version: 1.0.0
    variables: {...}
    steps:
      - name: render
        tool: template
        template: templates/component
      - name: format
        tool: shell
        command: ruff format {{ name }}.py
        depends_on: [render]
    settings:
      max_parallel_steps: 2
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from hypergen.variables import VariableDefinition, parse_variables

logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS = ("1.0.0",)

VALID_TOOLS = (
    "template",
    "action",
    "shell",
    "ensure-dirs",
    "patch",
    "install",
    "recipe",
    "sequence",
    "parallel",
    "query",
    "prompt",
)

# Fields every step tool requires.
REQUIRED_TOOL_FIELDS = {
    "template": ("template",),
    "action": ("action",),
    "shell": ("command",),
    "ensure-dirs": ("paths",),
    "patch": ("file", "merge"),
    "install": ("packages",),
    "recipe": ("recipe",),
    "sequence": ("steps",),
    "parallel": ("steps",),
    "query": ("file",),
    "prompt": ("variable",),
}

COMMON_STEP_FIELDS = (
    "name",
    "tool",
    "description",
    "when",
    "depends_on",
    "parallel",
    "continue_on_error",
    "timeout",
    "retries",
    "tags",
    "variables",
    "environment",
)

RECIPE_FILENAMES = ("recipe.yml", "recipe.yaml")
LEGACY_FILENAMES = ("template.yml", "template.yaml")


class RecipeParseError(Exception):
    """Raised when a recipe file cannot be loaded."""

    pass


def normalize_key(key: str) -> str:
    """Convert camelCase and kebab-case keys to snake_case.

    >>> normalize_key("continueOnError")
    'continue_on_error'
    """
    key = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", str(key))
    return key.replace("-", "_").lower()


def normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    return {normalize_key(k): v for k, v in data.items()}


@dataclass
class RecipeIssue:
    """A validation problem found while parsing a recipe."""

    code: str
    message: str
    field: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass
class RecipeStep:
    """One step of a recipe."""

    name: str
    tool: str
    description: str | None = None
    when: Any = None
    depends_on: list[str] = field(default_factory=list)
    parallel: bool | None = None
    continue_on_error: bool = False
    timeout: int | None = None
    retries: int | None = None
    tags: list[str] = field(default_factory=list)
    variables: dict[str, Any] = field(default_factory=dict)
    environment: dict[str, str] = field(default_factory=dict)
    options: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Read a tool-specific option."""
        return self.options.get(key, default)

    @property
    def nested_steps(self) -> list["RecipeStep"]:
        return self.options.get("steps", []) if self.tool in ("sequence", "parallel") else []

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "tool": self.tool}
        for key in COMMON_STEP_FIELDS[2:]:
            value = getattr(self, key)
            if value not in (None, [], {}, False):
                data[key] = value
        for key, value in self.options.items():
            if key == "steps" and self.nested_steps:
                data[key] = [step.to_dict() for step in self.nested_steps]
            else:
                data[key] = value
        return data


@dataclass
class RecipeSettings:
    """Execution settings declared by a recipe."""

    timeout: int | None = None
    retries: int | None = None
    continue_on_error: bool = False
    max_parallel_steps: int | None = None
    working_dir: str | None = None


@dataclass
class RecipeConfig:
    """A parsed recipe."""

    name: str
    description: str | None = None
    version: str | None = None
    author: str | None = None
    category: str | None = None
    tags: list[str] = field(default_factory=list)
    variables: dict[str, VariableDefinition] = field(default_factory=dict)
    steps: list[RecipeStep] = field(default_factory=list)
    examples: list[dict[str, Any]] = field(default_factory=list)
    outputs: list[str] = field(default_factory=list)
    settings: RecipeSettings = field(default_factory=RecipeSettings)
    hooks: dict[str, list[str]] = field(default_factory=dict)
    on_success: str | None = None
    path: Path | None = None

    @property
    def directory(self) -> Path | None:
        return self.path.parent if self.path else None


@dataclass
class ParsedRecipe:
    """Result of parsing a recipe file."""

    config: RecipeConfig | None
    path: Path | None
    errors: list[RecipeIssue] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors and self.config is not None

    @property
    def error_messages(self) -> list[str]:
        return [issue.message for issue in self.errors]


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _parse_step(
    raw: Any,
    index: int,
    names: set[str],
    errors: list[RecipeIssue],
    warnings: list[str],
    prefix: str = "steps",
) -> RecipeStep | None:
    field_path = f"{prefix}[{index}]"
    if not isinstance(raw, dict):
        errors.append(RecipeIssue("INVALID_STEP", f"Step {index + 1} must be an object", field_path))
        return None

    data = normalize_keys(raw)
    name = data.get("name")
    if not name:
        name = f"step-{index + 1}"
        warnings.append(f"Step {index + 1} has no name, using '{name}'")
    name = str(name)
    if name in names:
        errors.append(
            RecipeIssue("DUPLICATE_STEP_NAME", f"Duplicate step name: {name}", f"{field_path}.name")
        )
    names.add(name)

    tool = data.get("tool")
    if not tool:
        errors.append(
            RecipeIssue("MISSING_TOOL", f"Step {name} must specify a tool", f"{field_path}.tool")
        )
        return None
    if tool not in VALID_TOOLS:
        errors.append(
            RecipeIssue("INVALID_TOOL", f"Step {name} has invalid tool: {tool}", f"{field_path}.tool")
        )
        return None

    for required in REQUIRED_TOOL_FIELDS[tool]:
        if data.get(required) in (None, "", [], {}):
            errors.append(
                RecipeIssue(
                    "MISSING_TOOL_FIELD",
                    f"Step {name} ({tool}) requires '{required}'",
                    f"{field_path}.{required}",
                )
            )

    options = {k: v for k, v in data.items() if k not in COMMON_STEP_FIELDS}

    if tool in ("sequence", "parallel") and isinstance(data.get("steps"), list):
        nested_names: set[str] = set()
        nested = []
        for nested_index, nested_raw in enumerate(data["steps"]):
            step = _parse_step(
                nested_raw, nested_index, nested_names, errors, warnings, f"{field_path}.steps"
            )
            if step:
                nested.append(step)
        options["steps"] = nested

    for number_field in ("timeout", "retries"):
        value = data.get(number_field)
        if value is not None and (not isinstance(value, int) or isinstance(value, bool) or value < 0):
            errors.append(
                RecipeIssue(
                    "INVALID_STEP_FIELD",
                    f"Step {name} {number_field} must be a non-negative integer",
                    f"{field_path}.{number_field}",
                )
            )
            data[number_field] = None

    environment = data.get("environment") or {}
    if not isinstance(environment, dict):
        warnings.append(f"Step {name} environment should be an object")
        environment = {}

    variables = data.get("variables") or {}
    if not isinstance(variables, dict):
        warnings.append(f"Step {name} variables should be an object")
        variables = {}

    return RecipeStep(
        name=name,
        tool=tool,
        description=data.get("description"),
        when=data.get("when"),
        depends_on=[str(d) for d in _as_list(data.get("depends_on"))],
        parallel=data.get("parallel"),
        continue_on_error=bool(data.get("continue_on_error", False)),
        timeout=data.get("timeout"),
        retries=data.get("retries"),
        tags=[str(t) for t in _as_list(data.get("tags"))],
        variables=variables,
        environment={str(k): str(v) for k, v in environment.items()},
        options=options,
    )


def _parse_settings(raw: Any, errors: list[RecipeIssue]) -> RecipeSettings:
    if raw is None:
        return RecipeSettings()
    if not isinstance(raw, dict):
        errors.append(RecipeIssue("INVALID_SETTINGS", "settings must be an object", "settings"))
        return RecipeSettings()

    data = normalize_keys(raw)
    settings = RecipeSettings(
        continue_on_error=bool(data.get("continue_on_error", False)),
        working_dir=data.get("working_dir"),
    )
    for key in ("timeout", "retries", "max_parallel_steps"):
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
            errors.append(
                RecipeIssue(
                    "INVALID_SETTINGS",
                    f"settings.{key} must be a non-negative number",
                    f"settings.{key}",
                )
            )
            continue
        setattr(settings, key, int(value))
    return settings


def _parse_hooks(raw: Any, warnings: list[str]) -> dict[str, list[str]]:
    if not raw:
        return {}
    if not isinstance(raw, dict):
        warnings.append("hooks must be an object")
        return {}
    hooks = {}
    for key, value in normalize_keys(raw).items():
        if key not in ("before_recipe", "after_recipe", "on_error"):
            warnings.append(f"Unknown hook: {key}")
            continue
        hooks[key] = [str(command) for command in _as_list(value)]
    return hooks


def _parse_examples(
    raw: Any, variables: dict[str, VariableDefinition], warnings: list[str]
) -> list[dict[str, Any]]:
    examples = []
    for index, example in enumerate(_as_list(raw)):
        if not isinstance(example, dict):
            warnings.append(f"Example {index + 1} must be an object")
            continue
        if not isinstance(example.get("title"), str):
            warnings.append(f"Example {index + 1} must have a title")
            continue
        if not isinstance(example.get("variables"), dict):
            warnings.append(f"Example {index + 1} must have variables")
            continue
        for var_name in example["variables"]:
            if var_name not in variables:
                warnings.append(f"Example {index + 1} references undefined variable: {var_name}")
        examples.append(example)
    return examples


def _legacy_steps() -> list[dict[str, Any]]:
    return [{"name": "render", "tool": "template", "template": "."}]


def parse_recipe_data(data: Any, path: Path | None = None, legacy: bool = False) -> ParsedRecipe:
    """Parse an already loaded recipe document."""
    errors: list[RecipeIssue] = []
    warnings: list[str] = []

    if not isinstance(data, dict):
        errors.append(RecipeIssue("INVALID_RECIPE", "Recipe must be a YAML object"))
        return ParsedRecipe(None, path, errors, warnings)

    data = normalize_keys(data)

    name = data.get("name")
    if not name or not isinstance(name, str):
        errors.append(
            RecipeIssue("MISSING_NAME", "Recipe name is required and must be a string", "name")
        )
        name = path.parent.name if path else "unnamed"

    if "variables" not in data:
        if legacy:
            data["variables"] = {}
        else:
            errors.append(
                RecipeIssue("MISSING_VARIABLES", "Recipe variables section is required", "variables")
            )

    variable_errors: list[str] = []
    variables = parse_variables(data.get("variables"), variable_errors, warnings)
    errors.extend(RecipeIssue("INVALID_VARIABLE", message, "variables") for message in variable_errors)

    raw_steps = data.get("steps")
    if raw_steps is None and legacy:
        raw_steps = _legacy_steps()
    if not isinstance(raw_steps, list) or not raw_steps:
        errors.append(RecipeIssue("MISSING_STEPS", "Recipe must have at least one step", "steps"))
        raw_steps = []

    names: set[str] = set()
    steps = []
    for index, raw_step in enumerate(raw_steps):
        step = _parse_step(raw_step, index, names, errors, warnings)
        if step:
            steps.append(step)

    for step in steps:
        for dependency in step.depends_on:
            if dependency not in names:
                errors.append(
                    RecipeIssue(
                        "UNKNOWN_DEPENDENCY",
                        f"Step {step.name} depends on unknown step: {dependency}",
                        "depends_on",
                    )
                )

    version = data.get("version")
    if version is not None:
        version = str(version)
        if version not in SUPPORTED_VERSIONS:
            warnings.append(
                f"Recipe version {version} may not be supported "
                f"(supported: {', '.join(SUPPORTED_VERSIONS)})"
            )

    config = RecipeConfig(
        name=str(name),
        description=data.get("description"),
        version=version,
        author=data.get("author"),
        category=data.get("category"),
        tags=[str(t) for t in _as_list(data.get("tags"))],
        variables=variables,
        steps=steps,
        examples=_parse_examples(data.get("examples"), variables, warnings),
        outputs=[str(o) for o in _as_list(data.get("outputs"))],
        settings=_parse_settings(data.get("settings"), errors),
        hooks=_parse_hooks(data.get("hooks"), warnings),
        on_success=data.get("on_success"),
        path=path,
    )

    if not errors:
        _check_cycles(config, errors)

    return ParsedRecipe(config, path, errors, warnings)


def _check_cycles(config: RecipeConfig, errors: list[RecipeIssue]) -> None:
    # Imported lazily: the engine package imports this module.
    from hypergen.recipe_engine.dependency_resolver import (
        CircularDependencyError,
        DependencyResolver,
    )

    try:
        DependencyResolver().build_graph(config.steps)
    except CircularDependencyError as e:
        errors.append(RecipeIssue("CIRCULAR_DEPENDENCY", str(e), "depends_on"))


def parse_recipe_file(path: Path) -> ParsedRecipe:
    """Parse a recipe.yml or legacy template.yml file."""
    path = Path(path)
    legacy = path.name in LEGACY_FILENAMES

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return ParsedRecipe(
            None, path, [RecipeIssue("NOT_FOUND", f"Recipe file not found: {path}")]
        )
    except (OSError, yaml.YAMLError) as e:
        return ParsedRecipe(
            None, path, [RecipeIssue("INVALID_YAML", f"Failed to parse {path}: {e}")]
        )

    parsed = parse_recipe_data(data, path=path.resolve(), legacy=legacy)
    logger.debug(
        f"Parsed {path}: {len(parsed.errors)} errors, {len(parsed.warnings)} warnings"
    )
    return parsed


def find_recipe_file(directory: Path) -> Path | None:
    """Return the recipe (or legacy template) file inside a directory."""
    for filename in RECIPE_FILENAMES + LEGACY_FILENAMES:
        candidate = Path(directory) / filename
        if candidate.is_file():
            return candidate
    return None


def load_recipe(path: Path) -> RecipeConfig:
    """Load a recipe, raising when it is invalid.

    Args:
        path: Recipe file, or a directory holding one

    Raises:
        RecipeParseError: If the file is missing or invalid
    """
    path = Path(path)
    if path.is_dir():
        recipe_file = find_recipe_file(path)
        if recipe_file is None:
            raise RecipeParseError(f"No recipe.yml found in {path}")
        path = recipe_file

    parsed = parse_recipe_file(path)
    for warning in parsed.warnings:
        logger.warning(f"{path}: {warning}")
    if not parsed.is_valid:
        details = "\n".join(f"  - {message}" for message in parsed.error_messages)
        raise RecipeParseError(f"Invalid recipe {path}:\n{details}")
    return parsed.config


__all__ = [
    "LEGACY_FILENAMES",
    "RECIPE_FILENAMES",
    "VALID_TOOLS",
    "ParsedRecipe",
    "RecipeConfig",
    "RecipeIssue",
    "RecipeParseError",
    "RecipeSettings",
    "RecipeStep",
    "find_recipe_file",
    "load_recipe",
    "normalize_key",
    "parse_recipe_data",
    "parse_recipe_file",
]
