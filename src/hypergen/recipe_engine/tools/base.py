"""Base class and execution context for recipe tools."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from hypergen.recipe_engine.models import ToolResult
from hypergen.recipe_parser import RecipeConfig, RecipeStep
from hypergen.template_engine import TemplateEngine

if TYPE_CHECKING:
    from hypergen.recipe_engine.engine import RecipeEngine

logger = logging.getLogger(__name__)


class ToolError(Exception):
    """Raised when a tool fails to validate or execute a step."""

    pass


@dataclass
class StepContext:
    """Everything a tool needs to execute one step."""

    recipe: RecipeConfig
    variables: dict[str, Any]
    project_root: Path
    working_dir: Path
    template_engine: TemplateEngine
    engine: "RecipeEngine"
    dry_run: bool = False
    force: bool = False
    conflict_strategy: str = "fail"
    create_directories: bool = True
    step_outputs: dict[str, Any] = field(default_factory=dict)
    prompter: Callable | None = None
    depth: int = 0

    @property
    def recipe_dir(self) -> Path:
        return self.recipe.directory or self.working_dir

    def template_context(self, step: RecipeStep | None = None) -> dict[str, Any]:
        """Variables visible to templates and conditions for a step."""
        context = dict(self.variables)
        if step is not None:
            context.update(step.variables)
        context["steps"] = {name: {"output": output} for name, output in self.step_outputs.items()}
        context["recipe"] = {"name": self.recipe.name, "version": self.recipe.version}
        context["project_root"] = str(self.project_root)
        context["dry_run"] = self.dry_run
        return context

    def render(self, value: Any, step: RecipeStep | None = None) -> Any:
        """Render strings (recursively through lists and dicts) as templates."""
        context = self.template_context(step)
        return self._render_value(value, context)

    def _render_value(self, value: Any, context: dict[str, Any]) -> Any:
        if isinstance(value, str):
            if "{{" not in value and "{%" not in value:
                return value
            return self.template_engine.render_string(value, context)
        if isinstance(value, list):
            return [self._render_value(item, context) for item in value]
        if isinstance(value, dict):
            return {key: self._render_value(item, context) for key, item in value.items()}
        return value

    def resolve_path(self, value: str, base: Path | None = None) -> Path:
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = (base or self.working_dir) / path
        return path

    def child(self, **overrides: Any) -> "StepContext":
        """Copy of this context with some fields replaced."""
        values = {name: getattr(self, name) for name in self.__dataclass_fields__}
        values.update(overrides)
        return StepContext(**values)


class Tool:
    """A step executor.

    Subclasses set `name`, may extend `validate` and must implement
    `execute`.
    """

    name: str = ""
    required_fields: tuple[str, ...] = ()

    def validate(self, step: RecipeStep, context: StepContext) -> list[str]:
        """Return a list of problems that prevent running the step."""
        errors = []
        for required in self.required_fields:
            if step.get(required) in (None, "", [], {}):
                errors.append(f"Step '{step.name}' requires '{required}'")
        return errors

    def execute(self, step: RecipeStep, context: StepContext) -> ToolResult:
        raise NotImplementedError


__all__ = ["StepContext", "Tool", "ToolError"]
