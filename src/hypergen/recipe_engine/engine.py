"""Recipe execution engine.

Loads a recipe, resolves its variables, plans its steps into phases and
runs them. Phases whose steps are independent run on a thread pool.

Failure semantics:
- A failed step stops the recipe unless the step, the recipe settings or
  the caller allow continuing; steps that did not run are CANCELLED.
- A step whose dependency failed or was cancelled is CANCELLED.
- A skipped dependency counts as satisfied.
"""

import logging
import subprocess
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from hypergen.config_manager import HypergenConfig
from hypergen.history import HistoryError, RunHistory
from hypergen.recipe_engine.dependency_resolver import DependencyResolver
from hypergen.recipe_engine.models import (
    RecipeExecutionResult,
    StepResult,
    StepStatus,
)
from hypergen.recipe_engine.step_runner import StepRunner
from hypergen.recipe_engine.tools import StepContext, ToolRegistry
from hypergen.recipe_parser import RecipeConfig, RecipeStep, load_recipe
from hypergen.template_engine import TemplateEngine, TemplateRenderError
from hypergen.variables import VariableDefinition, resolve_variables

logger = logging.getLogger(__name__)

FAILED_STATES = (StepStatus.FAILED, StepStatus.CANCELLED)


class RecipeEngine:
    """Execute recipes against a project."""

    def __init__(
        self,
        project_root: Path,
        config: HypergenConfig | None = None,
        tools: ToolRegistry | None = None,
        history: RunHistory | None = None,
        template_engine: TemplateEngine | None = None,
        sleep: Callable[[float], None] | None = None,
    ):
        self.project_root = Path(project_root).resolve()
        self.config = config or HypergenConfig()
        self.tools = tools or ToolRegistry()
        self.history = history
        self.template_engine = template_engine or TemplateEngine()
        runner_kwargs = {"sleep": sleep} if sleep else {}
        self.step_runner = StepRunner(
            self.tools, default_retries=self.config.engine.default_retries, **runner_kwargs
        )

    def execute_recipe(
        self,
        source: Path | RecipeConfig,
        variables: Mapping[str, Any] | None = None,
        working_dir: Path | None = None,
        dry_run: bool = False,
        force: bool = False,
        prompter: Callable[[str, VariableDefinition], Any] | None = None,
        no_defaults: bool = False,
        continue_on_error: bool = False,
        skip_steps: list[str] | None = None,
        extra_variables: Mapping[str, VariableDefinition] | None = None,
        depth: int = 0,
        record_history: bool = True,
    ) -> RecipeExecutionResult:
        """Run a recipe.

        Args:
            source: Recipe file/directory or an already parsed config
            variables: Provided variable values
            working_dir: Base directory for generated files (default: project root)
            dry_run: Report what would happen without touching files
            force: Overwrite existing files
            prompter: Prompt callable for missing required variables
            no_defaults: Ignore declared defaults
            continue_on_error: Keep going after failed steps
            skip_steps: Step names to skip
            extra_variables: Kit/cookbook-level definitions merged under the
                recipe's own
            depth: Sub-recipe nesting level
            record_history: Append the run to the run history store

        Returns:
            RecipeExecutionResult

        Raises:
            RecipeParseError: If the recipe cannot be loaded
            VariableError: If variables are missing or invalid
        """
        recipe = source if isinstance(source, RecipeConfig) else load_recipe(Path(source))
        result = RecipeExecutionResult(recipe_name=recipe.name, dry_run=dry_run)

        definitions = {**(extra_variables or {}), **recipe.variables}
        resolved = resolve_variables(
            definitions, dict(variables or {}), prompter=prompter, no_defaults=no_defaults
        )
        result.variables = resolved

        base_dir = Path(working_dir).resolve() if working_dir else self.project_root
        if recipe.settings.working_dir:
            base_dir = (base_dir / recipe.settings.working_dir).resolve()

        context = StepContext(
            recipe=recipe,
            variables=resolved,
            project_root=self.project_root,
            working_dir=base_dir,
            template_engine=self.template_engine,
            engine=self,
            dry_run=dry_run,
            force=force,
            conflict_strategy=self.config.output.conflict_strategy,
            create_directories=self.config.output.create_directories,
            prompter=prompter,
            depth=depth,
        )

        logger.info(f"Running recipe: {recipe.name}{' (dry run)' if dry_run else ''}")

        try:
            self._run_hooks(recipe, "before_recipe", context)
            self._execute_steps(recipe, context, result, continue_on_error, set(skip_steps or []))
        except _HookError as e:
            result.errors.append(str(e))

        result.success = not result.errors
        if result.success:
            try:
                self._run_hooks(recipe, "after_recipe", context)
            except _HookError as e:
                result.errors.append(str(e))
                result.success = False
        else:
            try:
                self._run_hooks(recipe, "on_error", context)
            except _HookError as e:
                logger.warning(str(e))

        if result.success and recipe.on_success:
            try:
                message = self.template_engine.render_string(
                    recipe.on_success, context.template_context()
                )
                logger.info(message.strip())
            except TemplateRenderError as e:
                result.warnings.append(f"on_success message failed to render: {e}")

        result.finished_at = datetime.now(UTC)

        if record_history and self.history is not None:
            try:
                self.history.record(result)
            except HistoryError as e:
                logger.warning(str(e))

        return result

    def plan(self, recipe: RecipeConfig):
        """Execution plan for a recipe (phases of step names)."""
        max_parallel = recipe.settings.max_parallel_steps
        allow_parallel = max_parallel is None or max_parallel > 1
        return DependencyResolver(allow_parallel=allow_parallel).create_plan(recipe.steps)

    def _execute_steps(
        self,
        recipe: RecipeConfig,
        context: StepContext,
        result: RecipeExecutionResult,
        continue_on_error: bool,
        skip_steps: set[str],
    ) -> None:
        plan = self.plan(recipe)
        steps_by_name = {step.name: step for step in recipe.steps}
        results: dict[str, StepResult] = {}
        stopped = False

        max_workers = recipe.settings.max_parallel_steps or self.config.engine.max_parallel_steps

        for phase in plan.phases:
            runnable: list[RecipeStep] = []
            for name in phase.steps:
                step = steps_by_name[name]
                blocked = [
                    dep for dep in step.depends_on if results[dep].status in FAILED_STATES
                ]
                if stopped or blocked:
                    cancelled = StepResult(step_name=name, tool=step.tool)
                    reason = "recipe stopped" if stopped else f"dependency failed: {', '.join(blocked)}"
                    cancelled.finish(StepStatus.CANCELLED, reason)
                    results[name] = cancelled
                elif name in skip_steps:
                    skipped = StepResult(step_name=name, tool=step.tool)
                    skipped.finish(StepStatus.SKIPPED)
                    results[name] = skipped
                    logger.info(f"- {name} (skipped)")
                else:
                    runnable.append(step)

            concurrent = phase.parallel and len(runnable) > 1
            if concurrent:
                with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
                    futures = {
                        executor.submit(self.step_runner.run, step, context): step
                        for step in runnable
                    }
                    for future in as_completed(futures):
                        step_result = future.result()
                        results[step_result.step_name] = step_result
            else:
                for step in runnable:
                    results[step.name] = self.step_runner.run(step, context)
                    self._publish(context, results[step.name])
                    if self._is_fatal(results[step.name], step, recipe, continue_on_error):
                        break

            for step in runnable:
                step_result = results.get(step.name)
                if step_result is None:
                    # Sequential phase stopped before reaching this step.
                    step_result = StepResult(step_name=step.name, tool=step.tool)
                    step_result.finish(StepStatus.CANCELLED, "recipe stopped")
                    results[step.name] = step_result
                if concurrent:
                    self._publish(context, step_result)

                if step_result.status == StepStatus.FAILED:
                    message = f"{step.name}: {step_result.error}"
                    if self._is_fatal(step_result, step, recipe, continue_on_error):
                        result.errors.append(message)
                        stopped = True
                    else:
                        result.warnings.append(message)

        result.step_results = [results[step.name] for step in recipe.steps]

    @staticmethod
    def _publish(context: StepContext, step_result: StepResult) -> None:
        context.step_outputs[step_result.step_name] = step_result.output
        context.variables.update(step_result.variables)

    @staticmethod
    def _is_fatal(
        step_result: StepResult, step: RecipeStep, recipe: RecipeConfig, continue_on_error: bool
    ) -> bool:
        if step_result.status != StepStatus.FAILED:
            return False
        return not (step.continue_on_error or recipe.settings.continue_on_error or continue_on_error)

    def _run_hooks(self, recipe: RecipeConfig, hook: str, context: StepContext) -> None:
        for command in recipe.hooks.get(hook, []):
            try:
                rendered = self.template_engine.render_string(command, context.template_context())
            except TemplateRenderError as e:
                raise _HookError(f"{hook} hook failed to render: {e}") from e
            if context.dry_run:
                logger.info(f"[dry run] {hook} hook: {rendered}")
                continue
            logger.debug(f"Running {hook} hook: {rendered}")
            completed = subprocess.run(
                rendered, shell=True, cwd=context.working_dir, capture_output=True, text=True
            )
            if completed.returncode != 0:
                raise _HookError(
                    f"{hook} hook failed ({rendered}): {completed.stderr.strip()}"
                )


class _HookError(Exception):
    pass


__all__ = ["RecipeEngine"]
