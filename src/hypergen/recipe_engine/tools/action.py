"""Action tool: run a registered Python action."""

import logging

from hypergen.actions import ActionContext, ActionError, ActionRegistry
from hypergen.recipe_engine.models import ToolResult
from hypergen.recipe_engine.tools.base import StepContext, Tool, ToolError
from hypergen.recipe_parser import RecipeStep

logger = logging.getLogger(__name__)


class ActionTool(Tool):
    name = "action"
    required_fields = ("action",)

    def validate(self, step: RecipeStep, context: StepContext) -> list[str]:
        errors = super().validate(step, context)
        if step.get("action") and not ActionRegistry.has(step.get("action")):
            errors.append(f"Action not found: {step.get('action')}")
        parameters = step.get("parameters")
        if parameters is not None and not isinstance(parameters, dict):
            errors.append("parameters must be an object")
        return errors

    def execute(self, step: RecipeStep, context: StepContext) -> ToolResult:
        try:
            definition = ActionRegistry.get(step.get("action"))
            params = context.render(step.get("parameters") or {}, step)
            action_context = ActionContext(
                variables=context.template_context(step),
                project_root=context.working_dir,
                dry_run=context.dry_run,
                force=context.force,
            )
            result = definition.run(action_context, params)
        except ActionError as e:
            raise ToolError(str(e)) from e

        if result.message:
            logger.info(f"  {result.message}")
        return ToolResult(
            files_created=list(result.files_created),
            files_modified=list(result.files_modified),
            output={"action": definition.name, "message": result.message},
        )


__all__ = ["ActionTool"]
