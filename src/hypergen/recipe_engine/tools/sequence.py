"""Sequence and parallel tools: run nested steps as one step.

Nested steps run on a copy of the step context. Their outputs and exported
variables come back through the combined ToolResult, and the engine merges
them on its own thread once the step has finished.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

from hypergen.recipe_engine.models import StepResult, StepStatus, ToolResult
from hypergen.recipe_engine.tools.base import StepContext, Tool, ToolError
from hypergen.recipe_parser import RecipeStep

logger = logging.getLogger(__name__)


def _collect(results: list[StepResult], step: RecipeStep) -> ToolResult:
    failures = [r for r in results if r.status == StepStatus.FAILED]
    if failures and not step.continue_on_error:
        details = "; ".join(f"{r.step_name}: {r.error}" for r in failures)
        raise ToolError(f"{len(failures)} nested step(s) failed: {details}")

    combined = ToolResult(output={r.step_name: r.output for r in results})
    for result in results:
        combined.files_created.extend(result.files_created)
        combined.files_modified.extend(result.files_modified)
        combined.files_deleted.extend(result.files_deleted)
        combined.variables.update(result.variables)
    return combined


def _nested_context(context: StepContext) -> StepContext:
    return context.child(
        variables=dict(context.variables), step_outputs=dict(context.step_outputs)
    )


class SequenceTool(Tool):
    """Run nested `steps` one after another, stopping at the first failure."""

    name = "sequence"
    required_fields = ("steps",)

    def execute(self, step: RecipeStep, context: StepContext) -> ToolResult:
        runner = context.engine.step_runner
        nested_context = _nested_context(context)
        results = []
        for nested in step.nested_steps:
            result = runner.run(nested, nested_context)
            results.append(result)
            nested_context.step_outputs[nested.name] = result.output
            nested_context.variables.update(result.variables)
            if result.status == StepStatus.FAILED and not (
                step.continue_on_error or nested.continue_on_error
            ):
                break
        return _collect(results, step)


class ParallelTool(Tool):
    """Run nested `steps` concurrently.

    Nested steps see the outputs available when the parallel step started,
    not each other's.

    Step options:
        limit: maximum concurrent nested steps (default: all of them)
    """

    name = "parallel"
    required_fields = ("steps",)

    def validate(self, step: RecipeStep, context: StepContext) -> list[str]:
        errors = super().validate(step, context)
        limit = step.get("limit")
        if limit is not None and (not isinstance(limit, int) or limit < 1):
            errors.append("limit must be a positive integer")
        return errors

    def execute(self, step: RecipeStep, context: StepContext) -> ToolResult:
        runner = context.engine.step_runner
        nested_steps = step.nested_steps
        nested_context = _nested_context(context)
        max_workers = step.get("limit") or len(nested_steps) or 1

        results = []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(runner.run, nested, nested_context) for nested in nested_steps]
            for future in as_completed(futures):
                results.append(future.result())

        order = {nested.name: index for index, nested in enumerate(nested_steps)}
        results.sort(key=lambda r: order.get(r.step_name, 0))
        return _collect(results, step)


__all__ = ["ParallelTool", "SequenceTool"]
