"""Generation service behind `hypergen run` and `hypergen <generator> ...`.

Turns command line segments and --key=value arguments into a resolved
recipe (or recipe group), prepares template helpers and actions, and runs
it through the RecipeEngine.

Example:
    hypergen nextjs crud create Post --fields=title,body --dry
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from hypergen.actions import ActionError, load_actions_from_file
from hypergen.config_manager import HypergenConfig
from hypergen.discovery import GeneratorDiscovery
from hypergen.history import RunHistory
from hypergen.kits import KitError, discover_cookbooks, load_helpers
from hypergen.path_resolver import ResolvedPath
from hypergen.recipe_engine import RecipeEngine, RecipeExecutionResult, execute_group
from hypergen.recipe_parser import load_recipe
from hypergen.template_engine import TemplateEngine
from hypergen.variables import VariableDefinition, map_positional

logger = logging.getLogger(__name__)

ACTIONS_FILENAME = "actions.py"
HELPERS_FILENAME = "helpers.py"


class GenerationError(Exception):
    """Raised when segments cannot be resolved or prepared for a run."""

    pass


def parse_cli_variables(args: list[str]) -> tuple[list[str], dict[str, Any]]:
    """Split raw arguments into path segments and recipe variables.

    `--key=value` and `--key value` become variables with the key kept
    verbatim; a trailing `--flag` (or one followed by another option) is
    True. Other dash options are ignored; everything after `--` is
    treated as segments.

    Returns:
        (segments, variables)
    """
    segments: list[str] = []
    variables: dict[str, Any] = {}
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--":
            segments.extend(args[i + 1 :])
            break
        if arg.startswith("--") and len(arg) > 2:
            key, sep, value = arg[2:].partition("=")
            if sep:
                variables[key] = value
            elif i + 1 < len(args) and not args[i + 1].startswith("--"):
                variables[key] = args[i + 1]
                i += 1
            else:
                variables[key] = True
        elif arg.startswith("-") and len(arg) > 1:
            logger.warning(f"Ignoring unknown option: {arg}")
        else:
            segments.append(arg)
        i += 1
    return segments, variables


@dataclass
class GenerationRequest:
    segments: list[str]
    variables: dict[str, Any] = field(default_factory=dict)
    dry_run: bool = False
    force: bool = False
    interactive: bool = True
    no_defaults: bool = False
    continue_on_error: bool = False


@dataclass
class GenerationOutcome:
    resolved: ResolvedPath
    results: list[RecipeExecutionResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return bool(self.results) and all(result.success for result in self.results)


class GenerationService:
    """Resolve and run recipes for a project."""

    def __init__(
        self,
        config: HypergenConfig,
        start_dir: Path,
        prompter: Callable[[str, VariableDefinition], Any] | None = None,
    ):
        self.config = config
        self.start_dir = Path(start_dir).resolve()
        self.discovery = GeneratorDiscovery(config, self.start_dir)
        self.project_root = self.discovery.project.root
        self.prompter = prompter

    def resolve(self, segments: list[str]) -> ResolvedPath:
        """Resolve segments to a recipe or group.

        Raises:
            GenerationError: If nothing matches
        """
        resolved = self.discovery.build_resolver().resolve(segments)
        if resolved is None:
            raise GenerationError(
                f"No generator or recipe found for: {' '.join(segments)}\n"
                "Run 'hypergen list' to see available generators."
            )
        logger.debug(f"Resolved {segments} -> {resolved.type} {resolved.path}")
        return resolved

    def _kit_definitions(self, resolved: ResolvedPath) -> dict[str, VariableDefinition]:
        """Kit- and cookbook-level variables shared by the recipe."""
        if not resolved.kit:
            return {}
        kit = self.discovery.kits().get(resolved.kit)
        if kit is None or kit.config is None:
            return {}

        definitions = dict(kit.config.variables)
        if resolved.cookbook:
            cookbook = discover_cookbooks(kit.directory, kit.config.cookbooks).get(resolved.cookbook)
            if cookbook is not None and cookbook.config is not None:
                definitions.update(cookbook.config.variables)
        return definitions

    def _helper_paths(self, resolved: ResolvedPath) -> list[Path]:
        base = self.config.config_dir or self.discovery.project.workspace_root
        paths = [(base / entry).resolve() for entry in self.config.helpers]

        if resolved.kit:
            kit = self.discovery.kits().get(resolved.kit)
            if kit is not None and kit.config is not None:
                if kit.config.helpers:
                    paths.append((kit.directory / kit.config.helpers).resolve())
                elif (kit.directory / HELPERS_FILENAME).is_file():
                    paths.append(kit.directory / HELPERS_FILENAME)
        return paths

    def build_template_engine(self, resolved: ResolvedPath) -> TemplateEngine:
        """Template engine with project and kit helpers registered.

        Raises:
            GenerationError: If a helper module fails to load
        """
        engine = TemplateEngine(strict=self.config.validation.strict)
        for path in self._helper_paths(resolved):
            try:
                engine.register_helpers(load_helpers(path))
            except KitError as e:
                raise GenerationError(str(e)) from e
        return engine

    def load_actions(self, resolved: ResolvedPath) -> list[str]:
        """Import actions.py files between the recipe and its kit/search root."""
        directory = resolved.path if resolved.path.is_dir() else resolved.path.parent
        stop = self.discovery.project.workspace_root
        if resolved.kit:
            kit = self.discovery.kits().get(resolved.kit)
            if kit is not None:
                stop = kit.directory

        names: list[str] = []
        current = directory
        while True:
            actions_file = current / ACTIONS_FILENAME
            if actions_file.is_file():
                try:
                    names.extend(load_actions_from_file(actions_file))
                except ActionError as e:
                    raise GenerationError(str(e)) from e
            if current == stop or current.parent == current or not current.is_relative_to(stop):
                break
            current = current.parent
        return names

    def build_engine(self, resolved: ResolvedPath) -> RecipeEngine:
        history = RunHistory(self.project_root, limit=self.config.engine.history_limit)
        return RecipeEngine(
            self.project_root,
            config=self.config,
            history=history,
            template_engine=self.build_template_engine(resolved),
        )

    def run(self, request: GenerationRequest) -> GenerationOutcome:
        """Resolve and execute.

        Raises:
            GenerationError: If the segments do not resolve
            RecipeParseError: If a recipe is invalid
            VariableError: If variables are missing or invalid
        """
        resolved = self.resolve(request.segments)
        self.load_actions(resolved)
        engine = self.build_engine(resolved)
        extra = self._kit_definitions(resolved)

        options = {
            "working_dir": self.start_dir,
            "dry_run": request.dry_run,
            "force": request.force,
            "prompter": self.prompter if request.interactive else None,
            "no_defaults": request.no_defaults,
            "continue_on_error": request.continue_on_error,
            "extra_variables": extra,
        }

        outcome = GenerationOutcome(resolved=resolved)
        if resolved.is_group:
            outcome.results = execute_group(engine, resolved.path, dict(request.variables), **options)
            return outcome

        recipe = load_recipe(resolved.path)
        positional = map_positional({**extra, **recipe.variables}, resolved.remaining)
        if resolved.remaining and not positional:
            logger.warning(f"Ignoring extra arguments: {' '.join(resolved.remaining)}")
        variables = {**positional, **request.variables}
        outcome.results = [engine.execute_recipe(recipe, variables, **options)]
        return outcome


__all__ = [
    "GenerationError",
    "GenerationOutcome",
    "GenerationRequest",
    "GenerationService",
    "parse_cli_variables",
]
