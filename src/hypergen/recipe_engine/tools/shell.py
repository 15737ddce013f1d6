"""Shell tool: run a rendered command in the project."""

import logging
import os
import subprocess

from hypergen.recipe_engine.models import ToolResult
from hypergen.recipe_engine.tools.base import StepContext, Tool, ToolError
from hypergen.recipe_parser import RecipeStep

logger = logging.getLogger(__name__)


class ShellTool(Tool):
    """Run `command` through the shell.

    Step options:
        command: command line (rendered)
        cwd: working directory (rendered, relative to the project)
        env: extra environment variables
    """

    name = "shell"
    required_fields = ("command",)

    def validate(self, step: RecipeStep, context: StepContext) -> list[str]:
        errors = super().validate(step, context)
        if step.get("cwd") is not None and not isinstance(step.get("cwd"), str):
            errors.append("Working directory (cwd) must be a string")
        if step.get("env") is not None and not isinstance(step.get("env"), dict):
            errors.append("env must be an object")
        return errors

    def execute(self, step: RecipeStep, context: StepContext) -> ToolResult:
        command = str(context.render(step.get("command"), step))
        cwd = context.working_dir
        if step.get("cwd"):
            cwd = context.resolve_path(str(context.render(step.get("cwd"), step)))

        if context.dry_run:
            logger.info(f"  [dry run] would run: {command}")
            return ToolResult(output={"command": command, "cwd": str(cwd), "dry_run": True})

        env = os.environ.copy()
        env.update(step.environment)
        env.update({str(k): str(v) for k, v in (context.render(step.get("env") or {}, step)).items()})

        timeout = step.timeout / 1000 if step.timeout else None

        logger.info(f"  running: {command}")
        try:
            completed = subprocess.run(
                command,
                shell=True,
                cwd=cwd,
                env=env,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ToolError(f"Command timed out after {e.timeout}s: {command}") from e
        except OSError as e:
            raise ToolError(f"Failed to run command '{command}': {e}") from e

        if completed.returncode != 0:
            detail = completed.stderr.strip() or completed.stdout.strip()
            raise ToolError(
                f"Command failed with exit code {completed.returncode}: {command}"
                + (f"\n{detail}" if detail else "")
            )

        if completed.stdout.strip():
            logger.debug(completed.stdout.strip())

        return ToolResult(
            output={
                "command": command,
                "exit_code": completed.returncode,
                "stdout": completed.stdout,
                "stderr": completed.stderr,
            }
        )


__all__ = ["ShellTool"]
