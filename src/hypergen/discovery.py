"""Generator discovery.

Finds generators from three sources:

- local: configured template/discovery directories under the workspace
  root. Directories holding a kit.yml are kits; other recipe.yml /
  template.yml files are grouped into generators by their first path
  component.
- workspace: monorepo generator folders (packages/*/generators/*,
  apps/*/generators/*, tools/generators/*).
- installed: Python packages exposing a `hypergen.kits` entry point that
  resolves to a kit directory.

Recipes sitting directly in a search directory (outside any generator)
are collected into a virtual "workspace" generator.
"""

import json
import logging
from dataclasses import dataclass, field
from importlib.metadata import entry_points
from pathlib import Path
from typing import Any

import tomli

from hypergen.actions import ActionError, load_actions_from_file
from hypergen.config_manager import ConfigManager, HypergenConfig
from hypergen.kits import (
    KIT_FILENAME,
    ParsedKit,
    discover_cookbooks,
    discover_kits,
    discover_recipes,
    parse_kit_file,
)
from hypergen.path_resolver import PathResolver
from hypergen.project_root import find_project_root
from hypergen.recipe_parser import LEGACY_FILENAMES, RECIPE_FILENAMES

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "hypergen.kits"

WORKSPACE_PATTERNS = ("packages/*/generators/*", "apps/*/generators/*", "tools/generators/*")

RECIPE_FILES = RECIPE_FILENAMES + LEGACY_FILENAMES

WORKSPACE_GENERATOR = "workspace"


class DiscoveryError(Exception):
    """Raised when discovery cannot run."""

    pass


@dataclass
class DiscoveredGenerator:
    """A generator found on disk or in an installed package."""

    name: str
    source: str
    path: Path
    recipes: list[str] = field(default_factory=list)
    cookbooks: list[str] = field(default_factory=list)
    actions: list[str] = field(default_factory=list)
    helpers: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    kit: ParsedKit | None = None

    @property
    def is_kit(self) -> bool:
        return self.kit is not None

    @property
    def description(self) -> str:
        return self.metadata.get("description") or ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "source": self.source,
            "path": str(self.path),
            "kit": self.is_kit,
            "recipes": list(self.recipes),
            "cookbooks": list(self.cookbooks),
            "actions": list(self.actions),
            "metadata": dict(self.metadata),
        }


def _read_package_metadata(directory: Path) -> dict[str, Any]:
    """Metadata from package.json or pyproject.toml next to a generator."""
    package_json = directory / "package.json"
    if package_json.is_file():
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.debug(f"Failed to read {package_json}: {e}")
        else:
            author = data.get("author")
            if isinstance(author, dict):
                author = author.get("name")
            return {
                "description": data.get("description"),
                "version": data.get("version"),
                "author": author,
                "license": data.get("license"),
                "keywords": data.get("keywords") or [],
            }

    pyproject = directory / "pyproject.toml"
    if pyproject.is_file():
        try:
            with open(pyproject, "rb") as f:
                project = tomli.load(f).get("project", {})
        except (OSError, tomli.TOMLDecodeError) as e:
            logger.debug(f"Failed to read {pyproject}: {e}")
        else:
            authors = project.get("authors") or []
            return {
                "description": project.get("description"),
                "version": project.get("version"),
                "author": authors[0].get("name") if authors and isinstance(authors[0], dict) else None,
                "license": project.get("license") if isinstance(project.get("license"), str) else None,
                "keywords": project.get("keywords") or [],
            }
    return {}


def _merge_metadata(primary: dict[str, Any], fallback: dict[str, Any]) -> dict[str, Any]:
    merged = dict(primary)
    for key, value in fallback.items():
        if not merged.get(key) and value:
            merged[key] = value
    return {k: v for k, v in merged.items() if v not in (None, [], "")}


class GeneratorDiscovery:
    """Discover generators for a project."""

    def __init__(self, config: HypergenConfig | None = None, start_dir: Path | None = None):
        self.config = config or HypergenConfig()
        self.start_dir = Path(start_dir or Path.cwd()).resolve()
        self.project = find_project_root(self.start_dir)
        self._cache: list[DiscoveredGenerator] | None = None

    @property
    def search_dirs(self) -> list[Path]:
        return ConfigManager.resolve_directories(self.config, self.project.workspace_root)

    def _is_excluded(self, path: Path, base: Path) -> bool:
        try:
            parts = path.relative_to(base).parts
        except ValueError:
            parts = path.parts
        return any(part in self.config.discovery.exclude for part in parts)

    def _find_recipe_files(self, directory: Path) -> list[Path]:
        files = []
        for name in RECIPE_FILES:
            for path in directory.rglob(name):
                if not self._is_excluded(path, directory):
                    files.append(path)
        return sorted(files)

    def _workspace_relative(self, directory: Path) -> str:
        try:
            return directory.relative_to(self.project.workspace_root).as_posix() or "."
        except ValueError:
            return str(directory)

    def _load_actions(self, directory: Path) -> list[str]:
        names: list[str] = []
        for actions_file in sorted(directory.rglob("actions.py")):
            if self._is_excluded(actions_file, directory):
                continue
            try:
                names.extend(load_actions_from_file(actions_file))
            except ActionError as e:
                logger.warning(str(e))
        return sorted(set(names))

    def _generator_from_kit(self, kit: ParsedKit, source: str) -> DiscoveredGenerator:
        config = kit.config
        cookbooks = discover_cookbooks(kit.directory, config.cookbooks)

        recipes = []
        for cookbook_name, cookbook in cookbooks.items():
            for recipe_name in discover_recipes(cookbook.directory, cookbook.config.recipes):
                recipes.append(f"{cookbook_name}/{recipe_name}")
        if config.recipes:
            for recipe_name in discover_recipes(kit.directory, config.recipes):
                recipes.append(recipe_name)

        metadata = {
            "description": config.description,
            "version": config.version,
            "author": config.author,
            "license": config.license,
            "keywords": config.keywords,
            "tags": config.tags,
        }
        return DiscoveredGenerator(
            name=kit.short_name,
            source=source,
            path=kit.directory,
            recipes=sorted(recipes),
            cookbooks=sorted(cookbooks),
            actions=self._load_actions(kit.directory),
            helpers=config.helpers,
            metadata=_merge_metadata(metadata, _read_package_metadata(kit.directory)),
            kit=kit,
        )

    def _generator_from_directory(self, name: str, directory: Path, source: str) -> DiscoveredGenerator:
        recipes = [
            path.parent.relative_to(directory).as_posix() or "."
            for path in self._find_recipe_files(directory)
        ]
        return DiscoveredGenerator(
            name=name,
            source=source,
            path=directory,
            recipes=sorted(set(recipes)),
            actions=self._load_actions(directory),
            metadata=_merge_metadata({}, _read_package_metadata(directory)),
        )

    def discover_local(self) -> list[DiscoveredGenerator]:
        """Generators in the configured directories."""
        generators: list[DiscoveredGenerator] = []
        standalone: list[str] = []

        for search_dir in self.search_dirs:
            if not search_dir.is_dir():
                continue
            logger.debug(f"Scanning directory: {search_dir}")

            kits = discover_kits([search_dir])
            kit_dirs = [kit.directory for kit in kits.values()]
            for kit in kits.values():
                generators.append(self._generator_from_kit(kit, "local"))

            groups: dict[str, list[Path]] = {}
            for recipe_file in self._find_recipe_files(search_dir):
                if any(recipe_file.is_relative_to(kit_dir) for kit_dir in kit_dirs):
                    continue
                relative = recipe_file.relative_to(search_dir)
                if len(relative.parts) <= 2:
                    # search_dir/recipe.yml or search_dir/<name>/recipe.yml
                    standalone.append(self._workspace_relative(recipe_file.parent))
                    continue
                groups.setdefault(relative.parts[0], []).append(recipe_file)

            for name in sorted(groups):
                generators.append(
                    self._generator_from_directory(name, search_dir / name, "local")
                )

        if standalone:
            generators.append(
                DiscoveredGenerator(
                    name=WORKSPACE_GENERATOR,
                    source="local",
                    path=self.project.workspace_root,
                    recipes=sorted(set(standalone)),
                    metadata={"description": "Standalone recipes not belonging to any kit"},
                )
            )

        logger.debug(f"Found {len(generators)} local generators")
        return generators

    def discover_workspace(self) -> list[DiscoveredGenerator]:
        """Generators inside monorepo packages."""
        root = self.project.workspace_root
        generators = []
        for pattern in WORKSPACE_PATTERNS:
            for directory in sorted(root.glob(pattern)):
                if not directory.is_dir() or self._is_excluded(directory, root):
                    continue
                if (directory / KIT_FILENAME).is_file():
                    kit = parse_kit_file(directory / KIT_FILENAME)
                    if kit.is_valid:
                        generators.append(self._generator_from_kit(kit, "workspace"))
                    continue
                if self._find_recipe_files(directory):
                    generator = self._generator_from_directory(directory.name, directory, "workspace")
                    package_dir = directory.parent.parent
                    generator.metadata = _merge_metadata(
                        generator.metadata, _read_package_metadata(package_dir)
                    )
                    generators.append(generator)
        logger.debug(f"Found {len(generators)} workspace generators")
        return generators

    def discover_installed(self) -> list[DiscoveredGenerator]:
        """Kits shipped by installed Python packages."""
        generators = []
        for entry_point in entry_points(group=ENTRY_POINT_GROUP):
            try:
                target = entry_point.load()
            except Exception as e:
                logger.warning(f"Failed to load kit entry point {entry_point.name}: {e}")
                continue

            if callable(target):
                target = target()
            if hasattr(target, "__file__"):
                target = Path(target.__file__).parent
            directory = Path(target)

            if (directory / KIT_FILENAME).is_file():
                kit = parse_kit_file(directory / KIT_FILENAME)
                if kit.is_valid:
                    generators.append(self._generator_from_kit(kit, "installed"))
                    continue
            if directory.is_dir():
                generators.append(
                    self._generator_from_directory(entry_point.name, directory, "installed")
                )
        logger.debug(f"Found {len(generators)} installed generators")
        return generators

    def discover_all(self, sources: list[str] | None = None) -> list[DiscoveredGenerator]:
        """Run every enabled source; the first generator with a name wins."""
        if sources is None and self._cache is not None:
            return self._cache

        enabled = sources or self.config.discovery.sources
        discovered: list[DiscoveredGenerator] = []
        for source in enabled:
            if source == "local":
                discovered.extend(self.discover_local())
            elif source == "workspace":
                discovered.extend(self.discover_workspace())
            elif source == "installed":
                discovered.extend(self.discover_installed())
            else:
                raise DiscoveryError(f"Unknown discovery source: {source}")

        unique: dict[str, DiscoveredGenerator] = {}
        for generator in discovered:
            if generator.name in unique:
                logger.debug(f"Ignoring duplicate generator {generator.name} from {generator.source}")
                continue
            unique[generator.name] = generator

        result = sorted(unique.values(), key=lambda g: g.name)
        if sources is None:
            self._cache = result
        return result

    def get(self, name: str) -> DiscoveredGenerator | None:
        for generator in self.discover_all():
            if generator.name == name:
                return generator
        return None

    def kits(self) -> dict[str, ParsedKit]:
        return {g.name: g.kit for g in self.discover_all() if g.kit is not None}

    def build_resolver(self) -> PathResolver:
        """PathResolver over discovered kits and all generator directories."""
        search_dirs = list(self.search_dirs)
        for generator in self.discover_all():
            if generator.kit is None and generator.source != "local":
                search_dirs.append(generator.path.parent)
        search_dirs.append(self.project.root / ".hypergen" / "cookbooks")
        return PathResolver(self.kits(), search_dirs, self.start_dir)


__all__ = [
    "DiscoveredGenerator",
    "DiscoveryError",
    "GeneratorDiscovery",
]
