"""Python actions for recipes.

Actions are plain functions registered with the @action decorator, usually
in an `actions.py` file inside a generator directory:

    from hypergen.actions import action

    @action(name="add-route", description="Register a route", category="web")
    def add_route(context, path, handler="index"):
        ...
        return {"files_modified": ["app/routes.py"]}

An action receives an ActionContext followed by its parameters as keyword
arguments and returns an ActionResult, a dict with the same keys, or None.
"""

import importlib.util
import inspect
import logging
import sys
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from hypergen.variables import VariableDefinition, parse_variables, validate_value

logger = logging.getLogger(__name__)


class ActionError(Exception):
    """Raised when an action is missing, invalid, or fails."""

    pass


@dataclass
class ActionContext:
    """Runtime information handed to actions."""

    variables: dict[str, Any]
    project_root: Path
    dry_run: bool = False
    force: bool = False
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("hypergen.actions"))


@dataclass
class ActionResult:
    success: bool = True
    message: str | None = None
    files_created: list[str] = field(default_factory=list)
    files_modified: list[str] = field(default_factory=list)

    @classmethod
    def from_value(cls, value: Any) -> "ActionResult":
        if value is None:
            return cls()
        if isinstance(value, ActionResult):
            return value
        if isinstance(value, dict):
            return cls(
                success=bool(value.get("success", True)),
                message=value.get("message"),
                files_created=list(value.get("files_created", [])),
                files_modified=list(value.get("files_modified", [])),
            )
        return cls(message=str(value))


@dataclass
class ActionDefinition:
    name: str
    func: Callable
    description: str = ""
    category: str = "general"
    parameters: dict[str, VariableDefinition] = field(default_factory=dict)
    source: Path | None = None

    def validate_parameters(self, params: dict[str, Any]) -> list[str]:
        errors = []
        for name, definition in self.parameters.items():
            value = params.get(name, definition.default)
            error = validate_value(name, value, definition)
            if error:
                errors.append(error)
        return errors

    def run(self, context: ActionContext, params: dict[str, Any]) -> ActionResult:
        """Invoke the action.

        Raises:
            ActionError: On invalid parameters or when the action raises
        """
        errors = self.validate_parameters(params)
        if errors:
            raise ActionError(f"Invalid parameters for action '{self.name}': {'; '.join(errors)}")

        call_params = {
            name: definition.default
            for name, definition in self.parameters.items()
            if definition.default is not None
        }
        call_params.update(params)

        try:
            value = self.func(context, **call_params)
        except ActionError:
            raise
        except Exception as e:
            raise ActionError(f"Action '{self.name}' failed: {e}") from e

        result = ActionResult.from_value(value)
        if not result.success:
            raise ActionError(result.message or f"Action '{self.name}' reported failure")
        return result


class ActionRegistry:
    """Process-wide registry of named actions."""

    _actions: dict[str, ActionDefinition] = {}
    _lock = threading.Lock()

    @classmethod
    def register(cls, definition: ActionDefinition) -> None:
        with cls._lock:
            if definition.name in cls._actions:
                logger.debug(f"Replacing action: {definition.name}")
            cls._actions[definition.name] = definition

    @classmethod
    def get(cls, name: str) -> ActionDefinition:
        """Look up an action.

        Raises:
            ActionError: If no action has that name
        """
        try:
            return cls._actions[name]
        except KeyError:
            available = ", ".join(sorted(cls._actions)) or "none"
            raise ActionError(f"Action not found: {name} (available: {available})") from None

    @classmethod
    def has(cls, name: str) -> bool:
        return name in cls._actions

    @classmethod
    def names(cls) -> list[str]:
        return sorted(cls._actions)

    @classmethod
    def by_category(cls, category: str) -> list[ActionDefinition]:
        return [a for a in cls._actions.values() if a.category == category]

    @classmethod
    def categories(cls) -> list[str]:
        return sorted({a.category for a in cls._actions.values()})

    @classmethod
    def clear(cls) -> None:
        with cls._lock:
            cls._actions.clear()


def action(
    name: str | None = None,
    description: str = "",
    category: str = "general",
    parameters: dict[str, Any] | None = None,
) -> Callable[[Callable], Callable]:
    """Register a function as a recipe action.

    Args:
        name: Action name (defaults to the function name with dashes)
        description: Human readable description
        category: Grouping used by `hypergen info`
        parameters: Variable-style declarations for the parameters
    """

    def decorator(func: Callable) -> Callable:
        errors: list[str] = []
        warnings: list[str] = []
        definitions = parse_variables(parameters or {}, errors, warnings)
        if errors:
            raise ActionError(f"Invalid parameters declared for {func.__name__}: {'; '.join(errors)}")

        source = inspect.getsourcefile(func)
        definition = ActionDefinition(
            name=name or func.__name__.replace("_", "-"),
            func=func,
            description=description or (inspect.getdoc(func) or "").split("\n")[0],
            category=category,
            parameters=definitions,
            source=Path(source) if source else None,
        )
        ActionRegistry.register(definition)
        func.hypergen_action = definition
        return func

    return decorator


def load_actions_from_file(path: Path) -> list[str]:
    """Import a Python file so its @action functions register.

    Returns:
        Names of the actions the file registered

    Raises:
        ActionError: If the module cannot be imported
    """
    path = Path(path).resolve()
    module_name = f"hypergen_actions_{abs(hash(str(path)))}"

    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ActionError(f"Cannot load actions from {path}")

    before = set(ActionRegistry.names())
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise ActionError(f"Failed to import actions from {path}: {e}") from e

    registered = [
        obj.hypergen_action.name
        for obj in vars(module).values()
        if callable(obj) and hasattr(obj, "hypergen_action")
    ]
    new = sorted(set(ActionRegistry.names()) - before)
    logger.debug(f"Loaded {len(registered)} actions from {path} ({len(new)} new)")
    return registered


__all__ = [
    "ActionContext",
    "ActionDefinition",
    "ActionError",
    "ActionRegistry",
    "ActionResult",
    "action",
    "load_actions_from_file",
]
