"""Resolve command line segments to a recipe or a recipe group.

    hypergen nextjs crud create Post
             ^kit   ^cookbook ^recipe ^remaining (positional args)

Resolution order:
1. Direct paths (./x, ../x, /x, *.yml, *.yaml)
2. Kit -> cookbook -> recipe, falling back to kit/cookbook defaults
3. Greedy longest-prefix match of segments as directories inside the
   search directories
4. A single "a/b" segment is split and resolved again
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from hypergen.kits import ParsedCookbook, ParsedKit, discover_cookbooks, discover_recipes
from hypergen.recipe_parser import find_recipe_file

logger = logging.getLogger(__name__)


@dataclass
class ResolvedPath:
    type: str  # "recipe" or "group"
    path: Path
    kit: str | None = None
    cookbook: str | None = None
    recipe: str | None = None
    consumed: list[str] = field(default_factory=list)
    remaining: list[str] = field(default_factory=list)

    @property
    def is_group(self) -> bool:
        return self.type == "group"


def _looks_like_path(segment: str) -> bool:
    return segment.startswith(("./", "../", "/")) or segment.endswith((".yml", ".yaml"))


def dir_contains_recipes(directory: Path) -> bool:
    try:
        return any(child.is_dir() and find_recipe_file(child) for child in directory.iterdir())
    except OSError:
        return False


class PathResolver:
    """Map segments onto kits, cookbooks, recipes and search directories."""

    def __init__(self, kits: dict[str, ParsedKit], search_dirs: list[Path], cwd: Path):
        self.kits = kits
        self.search_dirs = [Path(d) for d in search_dirs]
        self.cwd = Path(cwd)

    def resolve(self, segments: list[str]) -> ResolvedPath | None:
        if not segments:
            return None

        logger.debug(f"Resolving path segments: {segments}")
        first = segments[0]

        if _looks_like_path(first):
            return self._resolve_direct(first, segments[1:])

        result = self._resolve_via_kit(segments) or self._resolve_via_search_dirs(segments)
        if result:
            return result

        if len(segments) == 1 and "/" in first:
            return self.resolve([part for part in first.split("/") if part])

        logger.debug(f"No resolution found for segments: {segments}")
        return None

    def _resolve_direct(self, first: str, remaining: list[str]) -> ResolvedPath | None:
        target = (self.cwd / first).resolve()
        if not target.exists():
            return None
        if target.is_dir():
            recipe_file = find_recipe_file(target)
            if recipe_file:
                return ResolvedPath("recipe", recipe_file, consumed=[first], remaining=remaining)
            if dir_contains_recipes(target):
                return ResolvedPath("group", target, consumed=[first], remaining=remaining)
            return None
        return ResolvedPath("recipe", target, consumed=[first], remaining=remaining)

    def _resolve_via_kit(self, segments: list[str]) -> ResolvedPath | None:
        kit_name = segments[0]
        kit = self.kits.get(kit_name)
        if kit is None:
            return None

        logger.debug(f"Matched kit: {kit_name}")
        remaining = segments[1:]
        cookbooks = discover_cookbooks(kit.directory, kit.config.cookbooks)

        if not remaining:
            default = kit.config.defaults.cookbook
            if default and default in cookbooks:
                return self._resolve_cookbook_default(cookbooks[default], kit_name, default)
            logger.debug(f"Kit has no usable default cookbook: {kit_name}")
            return None

        cookbook_name = remaining[0]
        cookbook = cookbooks.get(cookbook_name)
        if cookbook is None:
            return self._greedy_resolve(kit.directory, remaining, [kit_name], kit_name)

        after = remaining[1:]
        if not after:
            return self._resolve_cookbook_default(cookbook, kit_name, cookbook_name)

        recipes = discover_recipes(cookbook.directory, cookbook.config.recipes)
        recipe_name = after[0]
        if recipe_name in recipes:
            return ResolvedPath(
                "recipe",
                recipes[recipe_name],
                kit=kit_name,
                cookbook=cookbook_name,
                recipe=recipe_name,
                consumed=[kit_name, cookbook_name, recipe_name],
                remaining=after[1:],
            )

        default_recipe = cookbook.config.defaults.recipe
        if default_recipe and default_recipe in recipes:
            return ResolvedPath(
                "recipe",
                recipes[default_recipe],
                kit=kit_name,
                cookbook=cookbook_name,
                recipe=default_recipe,
                consumed=[kit_name, cookbook_name],
                remaining=after,
            )

        return ResolvedPath(
            "group",
            cookbook.directory,
            kit=kit_name,
            cookbook=cookbook_name,
            consumed=[kit_name, cookbook_name],
            remaining=after,
        )

    def _resolve_cookbook_default(
        self, cookbook: ParsedCookbook, kit_name: str, cookbook_name: str
    ) -> ResolvedPath:
        default_recipe = cookbook.config.defaults.recipe
        if default_recipe:
            recipes = discover_recipes(cookbook.directory, cookbook.config.recipes)
            if default_recipe in recipes:
                return ResolvedPath(
                    "recipe",
                    recipes[default_recipe],
                    kit=kit_name,
                    cookbook=cookbook_name,
                    recipe=default_recipe,
                    consumed=[kit_name, cookbook_name],
                )
        return ResolvedPath(
            "group",
            cookbook.directory,
            kit=kit_name,
            cookbook=cookbook_name,
            consumed=[kit_name, cookbook_name],
        )

    def _resolve_via_search_dirs(self, segments: list[str]) -> ResolvedPath | None:
        for search_dir in self.search_dirs:
            if not search_dir.is_dir():
                continue
            result = self._greedy_resolve(search_dir, segments, [], None)
            if result:
                return result
        return None

    def _greedy_resolve(
        self, base_dir: Path, segments: list[str], prefix: list[str], kit_name: str | None
    ) -> ResolvedPath | None:
        for length in range(len(segments), 0, -1):
            candidate = segments[:length]
            directory = base_dir.joinpath(*candidate)
            if not directory.is_dir():
                continue

            recipe_file = find_recipe_file(directory)
            if recipe_file:
                return ResolvedPath(
                    "recipe",
                    recipe_file,
                    kit=kit_name,
                    cookbook=candidate[0],
                    recipe=candidate[-1] if length > 1 else None,
                    consumed=prefix + candidate,
                    remaining=segments[length:],
                )

            if length == len(segments) and dir_contains_recipes(directory):
                return ResolvedPath(
                    "group",
                    directory,
                    kit=kit_name,
                    cookbook=candidate[0],
                    consumed=prefix + candidate,
                    remaining=[],
                )
        return None


__all__ = ["PathResolver", "ResolvedPath", "dir_contains_recipes"]
