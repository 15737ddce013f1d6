"""Command groups for hypergen CLI."""

from hypergen.commands.config import config_group
from hypergen.commands.cookbook import cookbook_group
from hypergen.commands.discovery import discover_command, info_command, list_command
from hypergen.commands.docs import docs_group
from hypergen.commands.history import dash_command, history_command
from hypergen.commands.kit import kit_group
from hypergen.commands.recipe import recipe_group
from hypergen.commands.run import run_command

__all__ = [
    "config_group",
    "cookbook_group",
    "dash_command",
    "discover_command",
    "docs_group",
    "history_command",
    "info_command",
    "kit_group",
    "list_command",
    "recipe_group",
    "run_command",
]
