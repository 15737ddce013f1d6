"""Tool registry for recipe steps."""

from hypergen.recipe_engine.tools.action import ActionTool
from hypergen.recipe_engine.tools.base import StepContext, Tool, ToolError
from hypergen.recipe_engine.tools.ensure_dirs import EnsureDirsTool
from hypergen.recipe_engine.tools.install import InstallTool
from hypergen.recipe_engine.tools.patch import PatchTool
from hypergen.recipe_engine.tools.prompt import PromptTool
from hypergen.recipe_engine.tools.query import QueryTool
from hypergen.recipe_engine.tools.recipe import RecipeTool
from hypergen.recipe_engine.tools.sequence import ParallelTool, SequenceTool
from hypergen.recipe_engine.tools.shell import ShellTool
from hypergen.recipe_engine.tools.template import TemplateTool


class ToolRegistry:
    """Map tool names to tool instances."""

    DEFAULT_TOOLS = (
        TemplateTool,
        ActionTool,
        ShellTool,
        EnsureDirsTool,
        PatchTool,
        InstallTool,
        RecipeTool,
        SequenceTool,
        ParallelTool,
        QueryTool,
        PromptTool,
    )

    def __init__(self):
        self._tools: dict[str, Tool] = {}
        for tool_class in self.DEFAULT_TOOLS:
            self.register(tool_class())

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool:
        """Return the tool for a step type.

        Raises:
            ToolError: If no tool is registered under that name
        """
        try:
            return self._tools[name]
        except KeyError:
            raise ToolError(f"Unknown tool: {name}") from None

    def names(self) -> list[str]:
        return sorted(self._tools)


__all__ = ["StepContext", "Tool", "ToolError", "ToolRegistry"]
