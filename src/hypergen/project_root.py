"""Project and workspace root detection."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = (
    "hypergen.yml",
    "hypergen.yaml",
    "hypergen.config.yml",
    "hypergen.config.yaml",
    ".hypergenrc",
    "hypergen.toml",
)

PROJECT_MARKERS = CONFIG_FILENAMES + ("package.json", "pyproject.toml", ".git")

WORKSPACE_MARKERS = ("pnpm-workspace.yaml", "lerna.json", "turbo.json")


@dataclass
class ProjectInfo:
    root: Path
    workspace_root: Path
    is_monorepo: bool = False


def _has_workspaces(package_json: Path) -> bool:
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return False
    return isinstance(data, dict) and bool(data.get("workspaces"))


def _is_workspace_root(directory: Path) -> bool:
    if any((directory / marker).exists() for marker in WORKSPACE_MARKERS):
        return True
    package_json = directory / "package.json"
    return package_json.is_file() and _has_workspaces(package_json)


def find_project_root(start: Path | None = None) -> ProjectInfo:
    """Locate the nearest project root above `start` and its workspace root."""
    start = Path(start or Path.cwd()).resolve()

    root = None
    for directory in (start, *start.parents):
        if any((directory / marker).exists() for marker in PROJECT_MARKERS):
            root = directory
            break

    if root is None:
        logger.debug(f"No project marker above {start}")
        return ProjectInfo(root=start, workspace_root=start)

    for directory in (root, *root.parents):
        if _is_workspace_root(directory):
            logger.debug(f"Workspace root: {directory}")
            return ProjectInfo(root=root, workspace_root=directory, is_monorepo=True)

    return ProjectInfo(root=root, workspace_root=root)


__all__ = ["CONFIG_FILENAMES", "ProjectInfo", "find_project_root"]
