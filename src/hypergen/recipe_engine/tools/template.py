"""Template tool: render template files and write them into the project."""

import fnmatch
import logging
from pathlib import Path

from hypergen.file_ops import FileOperationError, FileWriter
from hypergen.recipe_engine.models import ToolResult
from hypergen.recipe_engine.tools.base import StepContext, Tool, ToolError
from hypergen.recipe_parser import RecipeStep
from hypergen.template_engine import TemplateRenderError

logger = logging.getLogger(__name__)

# Metadata living next to templates; never rendered.
IGNORED_SUFFIXES = {".yml", ".yaml"}
IGNORED_FILENAMES = {"actions.py"}
IGNORED_DIRECTORIES = {"__pycache__", ".git", "node_modules"}


class TemplateTool(Tool):
    """Render one template file or every template in a directory.

    Step options:
        template: file or directory, relative to the recipe directory
        output_dir: base directory for `to:` destinations
        overwrite: overwrite existing files without failing
        exclude: glob patterns (relative to the template directory) to skip
    """

    name = "template"
    required_fields = ("template",)

    def validate(self, step: RecipeStep, context: StepContext) -> list[str]:
        errors = super().validate(step, context)
        exclude = step.get("exclude", [])
        if not isinstance(exclude, list) or not all(isinstance(p, str) for p in exclude):
            errors.append("Exclude patterns must be strings")
        if step.get("template") and not errors:
            try:
                self.resolve_template(step, context)
            except ToolError as e:
                errors.append(str(e))
        return errors

    def resolve_template(self, step: RecipeStep, context: StepContext) -> Path:
        template = str(context.render(step.get("template"), step))
        candidates = [Path(template).expanduser()]
        if not candidates[0].is_absolute():
            candidates = [
                context.recipe_dir / template,
                context.recipe_dir / "templates" / template,
            ]
        for candidate in candidates:
            if candidate.exists():
                return candidate
        raise ToolError(f"Template file not found: {template}")

    def collect_files(self, template_path: Path, exclude: list[str]) -> list[Path]:
        if template_path.is_file():
            return [template_path]

        files = []
        for path in sorted(template_path.rglob("*")):
            if not path.is_file() or path.name in IGNORED_FILENAMES:
                continue
            if path.suffix.lower() in IGNORED_SUFFIXES:
                continue
            relative = path.relative_to(template_path)
            if any(part in IGNORED_DIRECTORIES for part in relative.parts):
                continue
            if any(fnmatch.fnmatch(relative.as_posix(), pattern) for pattern in exclude):
                logger.debug(f"Excluded template: {relative}")
                continue
            files.append(path)
        return files

    def execute(self, step: RecipeStep, context: StepContext) -> ToolResult:
        template_path = self.resolve_template(step, context)
        files = self.collect_files(template_path, step.get("exclude", []))

        output_dir = step.get("output_dir")
        base_dir = context.working_dir
        if output_dir:
            base_dir = context.resolve_path(str(context.render(output_dir, step)))

        writer = FileWriter(
            base_dir=base_dir,
            conflict_strategy=context.conflict_strategy,
            force=context.force or bool(step.get("overwrite", False)),
            dry_run=context.dry_run,
            create_directories=context.create_directories,
        )

        render_context = context.template_context(step)
        result = ToolResult()
        skipped = []
        for path in files:
            try:
                rendered = context.template_engine.render_file(path, render_context)
                operation = writer.apply(rendered)
            except (TemplateRenderError, FileOperationError) as e:
                raise ToolError(str(e)) from e

            if operation.created:
                result.files_created.append(str(operation.path))
            elif operation.modified:
                result.files_modified.append(str(operation.path))
            else:
                skipped.append({"template": str(path), "status": operation.status})

            logger.info(f"  {operation.status:>9}  {operation.path or path.name}")

        result.output = {
            "template": str(template_path),
            "total_files": len(files),
            "skipped": skipped,
        }
        return result


__all__ = ["TemplateTool"]
