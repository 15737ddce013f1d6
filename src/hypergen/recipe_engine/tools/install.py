"""Install tool: add packages with the project's package manager."""

import logging
import subprocess
from pathlib import Path

from hypergen.recipe_engine.models import ToolResult
from hypergen.recipe_engine.tools.base import StepContext, Tool, ToolError
from hypergen.recipe_parser import RecipeStep

logger = logging.getLogger(__name__)

# Checked in order; the first lockfile found wins.
LOCKFILES = (
    ("bun.lockb", "bun"),
    ("bun.lock", "bun"),
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("package-lock.json", "npm"),
    ("uv.lock", "uv"),
    ("poetry.lock", "poetry"),
)

PACKAGE_MANAGERS = ("bun", "pnpm", "yarn", "npm", "uv", "poetry")


def detect_package_manager(project_dir: Path) -> str:
    for lockfile, manager in LOCKFILES:
        if (project_dir / lockfile).exists():
            return manager
    return "npm"


def build_install_command(manager: str, packages: list[str], dev: bool) -> str:
    package_list = " ".join(packages)
    if manager == "bun":
        return f"bun add {'--dev ' if dev else ''}{package_list}"
    if manager == "pnpm":
        return f"pnpm add {'--save-dev ' if dev else ''}{package_list}"
    if manager == "yarn":
        return f"yarn add {'--dev ' if dev else ''}{package_list}"
    if manager == "uv":
        return f"uv add {'--dev ' if dev else ''}{package_list}"
    if manager == "poetry":
        return f"poetry add {'--group dev ' if dev else ''}{package_list}"
    return f"npm install {'--save-dev ' if dev else ''}{package_list}"


class InstallTool(Tool):
    """Install `packages` (optionally as dev dependencies).

    Step options:
        packages: list of package specifiers
        dev: install as development dependencies
        package_manager: override lockfile detection
    """

    name = "install"
    required_fields = ("packages",)

    def validate(self, step: RecipeStep, context: StepContext) -> list[str]:
        errors = super().validate(step, context)
        manager = step.get("package_manager")
        if manager and manager not in PACKAGE_MANAGERS:
            errors.append(
                f"Unsupported package manager: {manager}. "
                f"Must be one of: {', '.join(PACKAGE_MANAGERS)}"
            )
        return errors

    def execute(self, step: RecipeStep, context: StepContext) -> ToolResult:
        packages = context.render(step.get("packages"), step)
        if isinstance(packages, str):
            packages = packages.split()
        dev = bool(step.get("dev", False))
        manager = step.get("package_manager") or detect_package_manager(context.working_dir)
        command = build_install_command(manager, [str(p) for p in packages], dev)

        output = {"package_manager": manager, "packages": packages, "dev": dev, "command": command}
        if context.dry_run:
            logger.info(f"  [dry run] would run: {command}")
            return ToolResult(output=output)

        logger.info(f"  installing: {command}")
        try:
            completed = subprocess.run(
                command,
                shell=True,
                cwd=context.working_dir,
                capture_output=True,
                text=True,
                timeout=step.timeout / 1000 if step.timeout else None,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            raise ToolError(f"Install failed ({command}): {e}") from e

        if completed.returncode != 0:
            raise ToolError(f"Install failed ({command}): {completed.stderr.strip()}")

        return ToolResult(output=output)


__all__ = ["InstallTool", "build_install_command", "detect_package_manager"]
