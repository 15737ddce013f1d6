"""Prompt tool: ask for a variable value while a recipe runs."""

import logging
import re
from typing import Any

import click

from hypergen.recipe_engine.models import ToolResult
from hypergen.recipe_engine.tools.base import StepContext, Tool, ToolError
from hypergen.recipe_parser import RecipeStep

logger = logging.getLogger(__name__)

PROMPT_TYPES = ("input", "select", "multiselect", "confirm")


def _choices(options: list[Any]) -> list[str]:
    return [str(o.get("value") if isinstance(o, dict) else o) for o in options]


class PromptTool(Tool):
    """Ask for `variable` and export the answer.

    Without an interactive prompter (`--yes`) or in dry runs the value
    already provided, or else the declared default, is used.

    Step options:
        variable: variable receiving the answer
        message: question text
        prompt_type: input, select, multiselect or confirm
        options: choices for select/multiselect (strings or {label, value})
        default: default answer
        validate: `/regex/` the answer must match
    """

    name = "prompt"
    required_fields = ("variable",)

    def validate(self, step: RecipeStep, context: StepContext) -> list[str]:
        errors = super().validate(step, context)
        prompt_type = step.get("prompt_type", "input")
        if prompt_type not in PROMPT_TYPES:
            errors.append(f"Invalid prompt type: {prompt_type}")
        if prompt_type in ("select", "multiselect") and not step.get("options"):
            errors.append(f"Options are required for {prompt_type} prompt")
        pattern = step.get("validate")
        if pattern and not (str(pattern).startswith("/") and str(pattern).endswith("/")):
            errors.append("validate must be a /regex/ pattern")
        return errors

    def execute(self, step: RecipeStep, context: StepContext) -> ToolResult:
        variable = str(step.get("variable"))
        default = context.render(step.get("default"), step)

        if variable in context.variables and context.variables[variable] is not None:
            value = context.variables[variable]
        elif context.prompter is None or context.dry_run:
            value = default
        else:
            value = self.ask(step, variable, default, context)

        return ToolResult(output={"variable": variable, "value": value}, variables={variable: value})

    def ask(self, step: RecipeStep, variable: str, default: Any, context: StepContext) -> Any:
        message = str(context.render(step.get("message") or f"Enter value for {variable}", step))
        prompt_type = step.get("prompt_type", "input")

        if prompt_type == "confirm":
            return click.confirm(message, default=bool(default))

        if prompt_type == "select":
            choices = _choices(step.get("options"))
            return click.prompt(message, type=click.Choice(choices), default=default)

        if prompt_type == "multiselect":
            choices = _choices(step.get("options"))

            def parse_selection(raw: Any) -> list[str]:
                if isinstance(raw, list):
                    return raw
                selected = [item.strip() for item in str(raw).split(",") if item.strip()]
                invalid = [item for item in selected if item not in choices]
                if invalid:
                    raise click.BadParameter(f"Invalid choice: {', '.join(invalid)}")
                return selected

            hint = f"{message} ({', '.join(choices)}, comma-separated)"
            return click.prompt(hint, default=default, value_proc=parse_selection)

        pattern = step.get("validate")
        if not pattern:
            return click.prompt(message, default=default)
        try:
            regex = re.compile(str(pattern)[1:-1])
        except re.error as e:
            raise ToolError(f"Invalid validate pattern {pattern}: {e}") from e

        def check(raw: Any) -> str:
            if not regex.search(str(raw)):
                raise click.BadParameter("Invalid format")
            return str(raw)

        return click.prompt(message, default=default, value_proc=check)


__all__ = ["PromptTool"]
