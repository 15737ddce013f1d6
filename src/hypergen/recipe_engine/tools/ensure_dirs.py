"""ensure-dirs tool: create directories."""

import logging

from hypergen.recipe_engine.models import ToolResult
from hypergen.recipe_engine.tools.base import StepContext, Tool, ToolError
from hypergen.recipe_parser import RecipeStep

logger = logging.getLogger(__name__)


class EnsureDirsTool(Tool):
    name = "ensure-dirs"
    required_fields = ("paths",)

    def validate(self, step: RecipeStep, context: StepContext) -> list[str]:
        errors = super().validate(step, context)
        paths = step.get("paths")
        if paths is not None and not isinstance(paths, (list, str)):
            errors.append("paths must be a list of strings")
        return errors

    def execute(self, step: RecipeStep, context: StepContext) -> ToolResult:
        paths = step.get("paths")
        if isinstance(paths, str):
            paths = [paths]

        created, existing = [], []
        for raw in context.render(paths, step):
            directory = context.resolve_path(str(raw))
            if directory.is_dir():
                existing.append(str(directory))
                continue
            if not context.dry_run:
                try:
                    directory.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    raise ToolError(f"Failed to create directory {directory}: {e}") from e
            created.append(str(directory))
            logger.info(f"  {'mkdir':>9}  {directory}")

        return ToolResult(files_created=created, output={"created": created, "existing": existing})


__all__ = ["EnsureDirsTool"]
