"""Configuration management module.

Loads project configuration from the nearest hypergen config file found
by walking up from the working directory:

    hypergen.yml, hypergen.yaml, hypergen.config.yml, hypergen.config.yaml,
    .hypergenrc (YAML), hypergen.toml

User values are deep-merged over defaults (the `templates` list is
replaced, not merged), then the active environment section from
`environments:` is merged on top. The environment comes from --env, then
HYPERGEN_ENV, then "development".

Relative template and discovery directories resolve against the directory
holding the config file.
"""

import copy
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

try:
    import yaml
except ImportError as e:
    raise ImportError("PyYAML not available. Install with: pip install pyyaml") from e

try:
    import tomli
except ImportError as e:
    raise ImportError("tomli library not available. Install with: pip install tomli") from e

try:
    import tomlkit
except ImportError as e:
    raise ImportError("tomlkit library not available. Install with: pip install tomlkit") from e

from hypergen.file_ops import CONFLICT_STRATEGIES
from hypergen.project_root import CONFIG_FILENAMES
from hypergen.recipe_parser import normalize_key

logger = logging.getLogger(__name__)

VALID_DISCOVERY_SOURCES = ("local", "workspace", "installed")

DEFAULT_ENVIRONMENT = "development"
ENVIRONMENT_VARIABLE = "HYPERGEN_ENV"


class ConfigError(Exception):
    """Raised when configuration operations fail."""

    pass


@dataclass
class DiscoveryConfig:
    sources: list[str] = field(default_factory=lambda: list(VALID_DISCOVERY_SOURCES))
    directories: list[str] = field(
        default_factory=lambda: ["_templates", "recipes", "cookbooks", "kits", ".hyper/kits"]
    )
    exclude: list[str] = field(
        default_factory=lambda: ["node_modules", ".git", "dist", "build", "__pycache__", ".venv"]
    )


@dataclass
class OutputConfig:
    conflict_strategy: str = "fail"
    create_directories: bool = True


@dataclass
class ValidationConfig:
    strict: bool = True
    validate_templates: bool = True
    validate_variables: bool = True


@dataclass
class EngineConfig:
    max_parallel_steps: int = 4
    default_retries: int = 0
    history_limit: int = 100


@dataclass
class HypergenConfig:
    """Effective hypergen configuration."""

    templates: list[str] = field(default_factory=lambda: ["_templates"])
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    helpers: list[str] = field(default_factory=list)
    environments: dict[str, dict[str, Any]] = field(default_factory=dict)
    environment: str = DEFAULT_ENVIRONMENT
    config_path: Path | None = None
    config_dir: Path | None = None

    @property
    def source(self) -> str:
        """Where the configuration came from."""
        return str(self.config_path) if self.config_path else "defaults"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding runtime-only fields."""
        data = asdict(self)
        for key in ("environment", "config_path", "config_dir"):
            data.pop(key)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HypergenConfig":
        """Create from a (merged) configuration dictionary."""
        discovery = data.get("discovery") or {}
        output = data.get("output") or {}
        validation = data.get("validation") or {}
        engine = data.get("engine") or {}
        defaults = cls()

        helpers = data.get("helpers") or []
        if isinstance(helpers, str):
            helpers = [helpers]

        return cls(
            templates=list(data.get("templates", defaults.templates)),
            discovery=DiscoveryConfig(
                sources=list(discovery.get("sources", defaults.discovery.sources)),
                directories=list(discovery.get("directories", defaults.discovery.directories)),
                exclude=list(discovery.get("exclude", defaults.discovery.exclude)),
            ),
            output=OutputConfig(
                conflict_strategy=output.get("conflict_strategy", "fail"),
                create_directories=output.get("create_directories", True),
            ),
            validation=ValidationConfig(
                strict=validation.get("strict", True),
                validate_templates=validation.get("validate_templates", True),
                validate_variables=validation.get("validate_variables", True),
            ),
            engine=EngineConfig(
                max_parallel_steps=engine.get("max_parallel_steps", 4),
                default_retries=engine.get("default_retries", 0),
                history_limit=engine.get("history_limit", 100),
            ),
            helpers=list(helpers),
            environments=dict(data.get("environments") or {}),
        )


def merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge `override` into a copy of `base`.

    Mappings merge key by key; lists and scalars replace.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ConfigManager:
    """Locate, load, validate and create hypergen configuration files."""

    DEFAULT_CONFIG_FILE = "hypergen.yml"

    @classmethod
    def find_config_file(cls, start_dir: Path | None = None) -> Path | None:
        """Find the nearest config file at or above `start_dir`."""
        start = Path(start_dir or Path.cwd()).resolve()
        for directory in (start, *start.parents):
            for filename in CONFIG_FILENAMES:
                candidate = directory / filename
                if candidate.is_file():
                    logger.debug(f"Found config file: {candidate}")
                    return candidate
        return None

    @classmethod
    def get_config_path(
        cls, custom_path: str | None = None, start_dir: Path | None = None
    ) -> Path | None:
        """Get configuration file path.

        Raises:
            ConfigError: If a custom path was given and does not exist
        """
        if custom_path:
            path = Path(custom_path).expanduser().resolve()
            if not path.exists():
                raise ConfigError(f"Config file not found: {path}")
            return path
        return cls.find_config_file(start_dir)

    @classmethod
    def read_config_file(cls, path: Path) -> dict[str, Any]:
        """Parse a YAML or TOML config file into a dictionary.

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        try:
            if path.suffix == ".toml":
                with open(path, "rb") as f:
                    data = tomli.load(f)
            else:
                with open(path, encoding="utf-8") as f:
                    data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError, tomli.TOMLDecodeError) as e:
            raise ConfigError(f"Invalid configuration file syntax: {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration must be a mapping: {path}")
        return _normalize(data)

    @classmethod
    def validate_config(cls, data: dict[str, Any]) -> list[str]:
        """Validate a raw configuration dictionary.

        Returns:
            List of error messages (empty when valid)
        """
        errors = []

        templates = data.get("templates")
        if templates is not None and (
            not isinstance(templates, list) or not all(isinstance(t, str) for t in templates)
        ):
            errors.append("templates must be an array of strings")

        discovery = data.get("discovery") or {}
        sources = discovery.get("sources")
        if sources is not None:
            invalid = [s for s in sources if s not in VALID_DISCOVERY_SOURCES]
            if invalid:
                errors.append(f"Invalid discovery sources: {', '.join(map(str, invalid))}")

        output = data.get("output") or {}
        strategy = output.get("conflict_strategy")
        if strategy is not None and strategy not in CONFLICT_STRATEGIES:
            errors.append(f"Invalid conflict strategy: {strategy}")

        engine = data.get("engine") or {}
        for key in ("max_parallel_steps", "default_retries", "history_limit"):
            value = engine.get(key)
            if value is not None and (not isinstance(value, int) or isinstance(value, bool) or value < 0):
                errors.append(f"engine.{key} must be a non-negative integer")

        environments = data.get("environments")
        if environments is not None and not isinstance(environments, dict):
            errors.append("environments must be an object")

        return errors

    @classmethod
    def load_config(
        cls,
        custom_path: str | None = None,
        start_dir: Path | None = None,
        environment: str | None = None,
    ) -> HypergenConfig:
        """Load the effective configuration.

        Args:
            custom_path: Explicit config file (optional)
            start_dir: Directory to search upward from (default: cwd)
            environment: Environment override name (optional)

        Returns:
            HypergenConfig with defaults, file values and environment merged

        Raises:
            ConfigError: If the file is missing (custom path), invalid, or
                fails validation
        """
        config_path = cls.get_config_path(custom_path, start_dir)
        environment = environment or os.environ.get(ENVIRONMENT_VARIABLE) or DEFAULT_ENVIRONMENT

        defaults = HypergenConfig().to_dict()
        if config_path is None:
            logger.debug("No config file found, using defaults")
            config = HypergenConfig.from_dict(defaults)
            config.environment = environment
            return config

        user = cls.read_config_file(config_path)
        merged = merge_config(defaults, user)

        env_overrides = (merged.get("environments") or {}).get(environment)
        if env_overrides:
            logger.debug(f"Applying '{environment}' environment overrides")
            merged = merge_config(merged, _normalize(env_overrides))

        errors = cls.validate_config(merged)
        if errors:
            raise ConfigError(
                f"Invalid configuration in {config_path}:\n"
                + "\n".join(f"  - {error}" for error in errors)
            )

        config = HypergenConfig.from_dict(merged)
        config.environment = environment
        config.config_path = config_path
        config.config_dir = config_path.parent
        logger.debug(f"Loaded config from: {config_path}")
        return config

    @classmethod
    def resolve_directories(cls, config: HypergenConfig, base_dir: Path) -> list[Path]:
        """Template and discovery directories as absolute paths, deduplicated."""
        root = config.config_dir or base_dir
        resolved: list[Path] = []
        for entry in config.templates + config.discovery.directories:
            path = Path(entry).expanduser()
            if not path.is_absolute():
                path = root / path
            path = path.resolve()
            if path not in resolved:
                resolved.append(path)
        return resolved

    @classmethod
    def init_config(cls, directory: Path, fmt: str = "yml", force: bool = False) -> Path:
        """Write a starter configuration file.

        Args:
            directory: Where to create the file
            fmt: "yml" or "toml"
            force: Overwrite an existing file

        Raises:
            ConfigError: If the file exists (without force) or cannot be written
        """
        if fmt not in ("yml", "toml"):
            raise ConfigError(f"Unsupported config format: {fmt}")

        path = Path(directory) / ("hypergen.toml" if fmt == "toml" else cls.DEFAULT_CONFIG_FILE)
        if path.exists() and not force:
            raise ConfigError(f"Configuration file already exists: {path}")

        data = HypergenConfig().to_dict()
        data.pop("environments")

        try:
            if fmt == "toml":
                doc = tomlkit.document()
                doc.add(tomlkit.comment("hypergen configuration"))
                # top-level values must precede tables
                for key, value in sorted(data.items(), key=lambda item: isinstance(item[1], dict)):
                    doc[key] = value
                content = tomlkit.dumps(doc)
            else:
                content = "# hypergen configuration\n" + yaml.dump(
                    data, default_flow_style=False, sort_keys=False
                )
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Failed to write config: {e}") from e

        logger.info(f"Created configuration file: {path}")
        return path

    @classmethod
    def get_config_info(cls, config: HypergenConfig) -> dict[str, Any]:
        """Summary used by `hypergen config show` and the dashboard."""
        return {
            "source": config.source,
            "environment": config.environment,
            "templates": list(config.templates),
            "directories": list(config.discovery.directories),
            "sources": list(config.discovery.sources),
            "conflict_strategy": config.output.conflict_strategy,
            "helper_count": len(config.helpers),
            "environment_count": len(config.environments),
        }


def _normalize(data: dict[str, Any]) -> dict[str, Any]:
    """Accept camelCase section keys (conflictStrategy) as snake_case."""
    normalized = {}
    for key, value in data.items():
        if key == "environments" and isinstance(value, dict):
            normalized[key] = value
        elif isinstance(value, dict):
            normalized[normalize_key(key)] = _normalize(value)
        else:
            normalized[normalize_key(key)] = value
    return normalized


__all__ = [
    "VALID_DISCOVERY_SOURCES",
    "ConfigError",
    "ConfigManager",
    "HypergenConfig",
    "merge_config",
]
