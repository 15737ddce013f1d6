"""Recipe tool: run another recipe as a step."""

import logging

from hypergen.recipe_engine.models import ToolResult
from hypergen.recipe_engine.tools.base import StepContext, Tool, ToolError
from hypergen.recipe_parser import RecipeParseError, RecipeStep, find_recipe_file
from hypergen.variables import VariableError

logger = logging.getLogger(__name__)

MAX_RECIPE_DEPTH = 10


class RecipeTool(Tool):
    """Execute a sub-recipe.

    Step options:
        recipe: path to a recipe file or directory, relative to this recipe
        inherit_variables: pass the parent's variables down (default true)
        variable_overrides: values forced on the sub-recipe
    """

    name = "recipe"
    required_fields = ("recipe",)

    def validate(self, step: RecipeStep, context: StepContext) -> list[str]:
        errors = super().validate(step, context)
        overrides = step.get("variable_overrides")
        if overrides is not None and not isinstance(overrides, dict):
            errors.append("variable_overrides must be an object")
        if context.depth >= MAX_RECIPE_DEPTH:
            errors.append(f"Sub-recipe nesting exceeds {MAX_RECIPE_DEPTH} levels")
        return errors

    def execute(self, step: RecipeStep, context: StepContext) -> ToolResult:
        target = context.resolve_path(str(context.render(step.get("recipe"), step)), context.recipe_dir)
        if target.is_dir():
            recipe_file = find_recipe_file(target)
            if recipe_file is None:
                raise ToolError(f"No recipe.yml found in {target}")
            target = recipe_file
        if not target.exists():
            raise ToolError(f"Sub-recipe not found: {target}")

        variables = {}
        if step.get("inherit_variables", True):
            variables.update(context.variables)
        variables.update(context.render(step.get("variable_overrides") or {}, step))

        logger.info(f"  sub-recipe: {target}")
        try:
            result = context.engine.execute_recipe(
                target,
                variables,
                working_dir=context.working_dir,
                dry_run=context.dry_run,
                force=context.force,
                prompter=context.prompter,
                depth=context.depth + 1,
                record_history=False,
            )
        except (RecipeParseError, VariableError) as e:
            raise ToolError(f"Sub-recipe {target.parent.name} could not start: {e}") from e

        if not result.success:
            raise ToolError(f"Sub-recipe '{result.recipe_name}' failed: {'; '.join(result.errors)}")

        return ToolResult(
            files_created=result.files_created,
            files_modified=result.files_modified,
            output={
                "recipe": result.recipe_name,
                "completed_steps": result.completed_steps,
                "skipped_steps": result.skipped_steps,
            },
        )


__all__ = ["RecipeTool"]
