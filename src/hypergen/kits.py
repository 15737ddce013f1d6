"""Kit and cookbook parsing.

A kit is a directory with a kit.yml that groups cookbooks:

    my-kit/
      kit.yml
      helpers.py            # optional template helpers
      cookbooks/
        crud/
          cookbook.yml
          create/recipe.yml
          list/recipe.yml

kit.yml:
    name: "@acme/my-kit"
    description: ...
    defaults:
      cookbook: crud
      recipe: create
    cookbooks: ["./cookbooks/*/cookbook.yml"]
    variables: {...}        # shared by every recipe in the kit
    helpers: ./helpers.py
"""

import importlib.util
import inspect
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from hypergen.variables import VariableDefinition, parse_variables

logger = logging.getLogger(__name__)

KIT_FILENAME = "kit.yml"
COOKBOOK_FILENAME = "cookbook.yml"
DEFAULT_COOKBOOK_GLOBS = ["./cookbooks/*/cookbook.yml"]
DEFAULT_RECIPE_GLOBS = ["./*/recipe.yml"]


class KitError(Exception):
    """Raised when a kit or cookbook cannot be loaded."""

    pass


@dataclass
class KitDefaults:
    cookbook: str | None = None
    recipe: str | None = None


@dataclass
class KitConfig:
    name: str
    description: str | None = None
    version: str | None = None
    author: str | None = None
    license: str | None = None
    keywords: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    defaults: KitDefaults = field(default_factory=KitDefaults)
    cookbooks: list[str] = field(default_factory=lambda: list(DEFAULT_COOKBOOK_GLOBS))
    recipes: list[str] = field(default_factory=list)
    variables: dict[str, VariableDefinition] = field(default_factory=dict)
    helpers: str | None = None


@dataclass
class CookbookConfig:
    name: str
    description: str | None = None
    version: str | None = None
    defaults: KitDefaults = field(default_factory=KitDefaults)
    recipes: list[str] = field(default_factory=lambda: list(DEFAULT_RECIPE_GLOBS))
    variables: dict[str, VariableDefinition] = field(default_factory=dict)
    helpers: str | None = None


@dataclass
class ParsedKit:
    config: KitConfig | None
    path: Path
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.errors

    @property
    def directory(self) -> Path:
        return self.path.parent

    @property
    def short_name(self) -> str:
        return derive_short_name(self.config.name if self.config else self.directory.name)


@dataclass
class ParsedCookbook:
    config: CookbookConfig | None
    path: Path
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.errors

    @property
    def directory(self) -> Path:
        return self.path.parent


def derive_short_name(name: str) -> str:
    """Strip an npm-style scope: "@hyper-kits/nextjs" -> "nextjs"."""
    return name.rsplit("/", 1)[-1] if name.startswith("@") else name


def _string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str)]
    return []


def _parse_defaults(value: Any) -> KitDefaults:
    if not isinstance(value, dict):
        return KitDefaults()
    return KitDefaults(
        cookbook=value.get("cookbook") if isinstance(value.get("cookbook"), str) else None,
        recipe=value.get("recipe") if isinstance(value.get("recipe"), str) else None,
    )


def _load_yaml(path: Path, kind: str, errors: list[str]) -> dict[str, Any] | None:
    if not path.is_file():
        errors.append(f"{kind} file not found: {path}")
        return None
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        errors.append(f"Failed to parse {kind.lower()} file: {e}")
        return None
    if not isinstance(data, dict):
        errors.append("Invalid YAML format or empty file")
        return None
    return data


def parse_kit_file(path: Path) -> ParsedKit:
    """Parse kit.yml, collecting errors and warnings."""
    path = Path(path).resolve()
    errors: list[str] = []
    warnings: list[str] = []

    data = _load_yaml(path, "Kit", errors)
    if data is None:
        return ParsedKit(None, path, errors, warnings)

    name = data.get("name")
    if not isinstance(name, str) or not name:
        errors.append("Kit name is required and must be a string")
        name = path.parent.name

    variables = parse_variables(data.get("variables"), errors, warnings)

    helpers = data.get("helpers")
    if helpers is not None and not isinstance(helpers, str):
        warnings.append("helpers should be a path string")
        helpers = None

    config = KitConfig(
        name=name,
        description=data.get("description"),
        version=str(data["version"]) if data.get("version") is not None else None,
        author=data.get("author"),
        license=data.get("license"),
        keywords=_string_list(data.get("keywords")),
        tags=_string_list(data.get("tags")),
        categories=_string_list(data.get("categories")),
        defaults=_parse_defaults(data.get("defaults")),
        cookbooks=_string_list(data.get("cookbooks")) or list(DEFAULT_COOKBOOK_GLOBS),
        recipes=_string_list(data.get("recipes")),
        variables=variables,
        helpers=helpers,
    )
    return ParsedKit(config, path, errors, warnings)


def parse_cookbook_file(path: Path) -> ParsedCookbook:
    """Parse cookbook.yml, collecting errors and warnings."""
    path = Path(path).resolve()
    errors: list[str] = []
    warnings: list[str] = []

    data = _load_yaml(path, "Cookbook", errors)
    if data is None:
        return ParsedCookbook(None, path, errors, warnings)

    name = data.get("name")
    if not isinstance(name, str) or not name:
        errors.append("Cookbook name is required and must be a string")
        name = path.parent.name

    config = CookbookConfig(
        name=name,
        description=data.get("description"),
        version=str(data["version"]) if data.get("version") is not None else None,
        defaults=_parse_defaults(data.get("defaults")),
        recipes=_string_list(data.get("recipes")) or list(DEFAULT_RECIPE_GLOBS),
        variables=parse_variables(data.get("variables"), errors, warnings),
        helpers=data.get("helpers") if isinstance(data.get("helpers"), str) else None,
    )
    return ParsedCookbook(config, path, errors, warnings)


def _glob(base: Path, patterns: list[str]) -> list[Path]:
    matches: list[Path] = []
    for pattern in patterns:
        pattern = pattern[2:] if pattern.startswith("./") else pattern
        for match in sorted(base.glob(pattern)):
            if match.is_file() and match not in matches:
                matches.append(match)
    return matches


def discover_kits(search_dirs: list[Path]) -> dict[str, ParsedKit]:
    """Find kits in (or directly under) each search directory.

    Returns:
        Valid kits keyed by short name; the first kit with a name wins
    """
    kits: dict[str, ParsedKit] = {}
    for search_dir in search_dirs:
        search_dir = Path(search_dir)
        if not search_dir.is_dir():
            continue

        candidates = [
            child / KIT_FILENAME
            for child in sorted(search_dir.iterdir())
            if child.is_dir() and (child / KIT_FILENAME).is_file()
        ]
        if (search_dir / KIT_FILENAME).is_file():
            candidates.append(search_dir / KIT_FILENAME)

        for kit_file in candidates:
            parsed = parse_kit_file(kit_file)
            if not parsed.is_valid:
                logger.warning(f"Skipping invalid kit {kit_file}: {'; '.join(parsed.errors)}")
                continue
            kits.setdefault(parsed.short_name, parsed)
    return kits


def discover_cookbooks(kit_dir: Path, patterns: list[str] | None = None) -> dict[str, ParsedCookbook]:
    """Cookbooks of a kit keyed by directory name."""
    cookbooks: dict[str, ParsedCookbook] = {}
    for cookbook_file in _glob(Path(kit_dir), patterns or DEFAULT_COOKBOOK_GLOBS):
        parsed = parse_cookbook_file(cookbook_file)
        if not parsed.is_valid:
            logger.warning(f"Skipping invalid cookbook {cookbook_file}: {'; '.join(parsed.errors)}")
            continue
        cookbooks.setdefault(cookbook_file.parent.name, parsed)
    return cookbooks


def discover_recipes(cookbook_dir: Path, patterns: list[str] | None = None) -> dict[str, Path]:
    """Recipe files of a cookbook keyed by directory name."""
    return {
        recipe_file.parent.name: recipe_file
        for recipe_file in _glob(Path(cookbook_dir), patterns or DEFAULT_RECIPE_GLOBS)
    }


def _import_module(path: Path):
    module_name = f"hypergen_helpers_{abs(hash(str(path)))}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise KitError(f"Cannot load helpers from {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise KitError(f"Failed to import helpers from {path}: {e}") from e
    return module


def load_helpers(path: Path) -> dict[str, Callable]:
    """Load template helpers from a Python file or a directory of them.

    Public functions defined in the module become helpers.

    Raises:
        KitError: If a helper module fails to import
    """
    path = Path(path)
    if path.is_dir():
        files = sorted(p for p in path.glob("*.py") if not p.name.startswith("_"))
    elif path.is_file():
        files = [path]
    else:
        raise KitError(f"Helpers not found: {path}")

    helpers: dict[str, Callable] = {}
    for file in files:
        module = _import_module(file.resolve())
        for name, obj in vars(module).items():
            if name.startswith("_") or not inspect.isfunction(obj):
                continue
            if obj.__module__ != module.__name__:
                continue
            helpers[name] = obj
    logger.debug(f"Loaded {len(helpers)} helpers from {path}")
    return helpers


__all__ = [
    "COOKBOOK_FILENAME",
    "KIT_FILENAME",
    "CookbookConfig",
    "KitConfig",
    "KitError",
    "ParsedCookbook",
    "ParsedKit",
    "derive_short_name",
    "discover_cookbooks",
    "discover_kits",
    "discover_recipes",
    "load_helpers",
    "parse_cookbook_file",
    "parse_kit_file",
]
