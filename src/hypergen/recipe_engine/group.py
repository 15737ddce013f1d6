"""Run every recipe in a directory (a recipe group)."""

import logging
from pathlib import Path

from hypergen.recipe_engine.models import RecipeExecutionResult
from hypergen.recipe_parser import find_recipe_file

logger = logging.getLogger(__name__)


def find_group_recipes(directory: Path) -> list[Path]:
    """Recipe files in the immediate sub-directories of `directory`, by name."""
    recipes = []
    for child in sorted(Path(directory).iterdir()):
        if child.is_dir():
            recipe_file = find_recipe_file(child)
            if recipe_file is not None:
                recipes.append(recipe_file)
    return recipes


def execute_group(engine, directory: Path, variables: dict, **options) -> list[RecipeExecutionResult]:
    """Execute each recipe of a group in name order.

    Stops at the first failed recipe unless `continue_on_error` is set.
    Accepts the same keyword options as RecipeEngine.execute_recipe.
    """
    results = []
    recipes = find_group_recipes(directory)
    logger.info(f"Running {len(recipes)} recipes from {directory}")

    for recipe_file in recipes:
        result = engine.execute_recipe(recipe_file, variables, **options)
        results.append(result)
        if not result.success and not options.get("continue_on_error"):
            logger.error(f"Stopping group: {result.recipe_name} failed")
            break
    return results


__all__ = ["execute_group", "find_group_recipes"]
