"""Run a single recipe step: condition, validation, retries.

Retry delays follow exponential backoff with jitter:

    delay = min(initial * 2^(attempt-1), max) +/- 25%, never below 0.1s
"""

import logging
import random
import time
from collections.abc import Callable

from hypergen.recipe_engine.models import StepResult, StepStatus
from hypergen.recipe_engine.tools import StepContext, ToolError, ToolRegistry
from hypergen.recipe_parser import RecipeStep
from hypergen.template_engine import TemplateRenderError

logger = logging.getLogger(__name__)

INITIAL_RETRY_DELAY = 1.0
MAX_RETRY_DELAY = 30.0
MIN_RETRY_DELAY = 0.1


def compute_retry_delay(
    attempt: int,
    initial_delay: float = INITIAL_RETRY_DELAY,
    max_delay: float = MAX_RETRY_DELAY,
    jitter: bool = True,
) -> float:
    """Delay in seconds before retry number `attempt` (1-based)."""
    delay = min(initial_delay * (2 ** (attempt - 1)), max_delay)
    if jitter:
        jitter_amount = delay * 0.25
        delay += random.uniform(-jitter_amount, jitter_amount)
    return max(delay, MIN_RETRY_DELAY)


class StepRunner:
    """Execute steps through the tool registry."""

    def __init__(
        self,
        tools: ToolRegistry,
        default_retries: int = 0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.tools = tools
        self.default_retries = default_retries
        self.sleep = sleep

    def _retries_for(self, step: RecipeStep, context: StepContext) -> int:
        if step.retries is not None:
            return step.retries
        if context.recipe.settings.retries is not None:
            return context.recipe.settings.retries
        return self.default_retries

    def run(self, step: RecipeStep, context: StepContext) -> StepResult:
        """Run one step and report its outcome.

        Never raises for step failures: they are reported as FAILED results.
        """
        result = StepResult(step_name=step.name, tool=step.tool)
        result.start()

        try:
            condition = context.template_engine.evaluate_condition(
                step.when, context.template_context(step)
            )
        except TemplateRenderError as e:
            result.finish(StepStatus.FAILED, f"Condition evaluation failed: {e}")
            logger.error(f"✗ {step.name}: {result.error}")
            return result

        result.condition_result = condition
        if not condition:
            result.finish(StepStatus.SKIPPED)
            logger.info(f"- {step.name} (skipped: condition not met)")
            return result

        try:
            tool = self.tools.get(step.tool)
        except ToolError as e:
            result.finish(StepStatus.FAILED, str(e))
            return result

        try:
            errors = tool.validate(step, context)
        except Exception as e:
            errors = [str(e)]
        if errors:
            result.finish(StepStatus.FAILED, "; ".join(errors))
            logger.error(f"✗ {step.name}: {result.error}")
            return result

        max_retries = self._retries_for(step, context)
        logger.info(f"▸ {step.name} ({step.tool})")

        attempt = 0
        while True:
            try:
                tool_result = tool.execute(step, context)
            except Exception as e:
                if attempt >= max_retries:
                    message = str(e) or type(e).__name__
                    if max_retries:
                        message = f"Step '{step.name}' failed after {max_retries} retries: {message}"
                    result.finish(StepStatus.FAILED, message)
                    logger.error(f"✗ {step.name}: {message}")
                    return result

                attempt += 1
                delay = compute_retry_delay(attempt)
                result.retry_count = attempt
                logger.warning(
                    f"{step.name} failed on attempt {attempt}/{max_retries + 1}, "
                    f"retrying in {delay:.2f}s: {e}"
                )
                self.sleep(delay)
                continue

            result.apply_tool_result(tool_result)
            result.finish(StepStatus.COMPLETED)
            logger.debug(f"✓ {step.name} in {result.duration:.2f}s")
            return result


__all__ = ["StepRunner", "compute_retry_delay"]
