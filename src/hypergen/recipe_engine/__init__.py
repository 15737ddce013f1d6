"""Recipe engine: plan and execute recipe steps."""

from hypergen.recipe_engine.models import (
    CircularDependencyError,
    ExecutionPhase,
    ExecutionPlan,
    RecipeExecutionResult,
    StepExecutionError,
    StepResult,
    StepStatus,
    ToolResult,
)
from hypergen.recipe_engine.dependency_resolver import DependencyResolver
from hypergen.recipe_engine.step_runner import StepRunner
from hypergen.recipe_engine.engine import RecipeEngine
from hypergen.recipe_engine.group import execute_group, find_group_recipes

__all__ = [
    "CircularDependencyError",
    "DependencyResolver",
    "ExecutionPhase",
    "ExecutionPlan",
    "RecipeEngine",
    "RecipeExecutionResult",
    "StepExecutionError",
    "StepResult",
    "StepRunner",
    "StepStatus",
    "ToolResult",
    "execute_group",
    "find_group_recipes",
]
