"""Interactive terminal dashboard.

Shows the project, discovered generators, recipes, recent runs and the
effective configuration in six tabs:

    1 Overview   2 Kits   3 Recipes   4 Runs   5 Config   6 Help

Keys: 1-6 select a tab, Tab / Shift-Tab cycle, r refreshes, q quits.

Usage:
    from hypergen.dashboard import Dashboard

    Dashboard(config, start_dir).run()
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import click
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from hypergen.config_manager import ConfigManager, HypergenConfig
from hypergen.discovery import DiscoveredGenerator, DiscoveryError, GeneratorDiscovery
from hypergen.history import RunHistory, RunRecord
from hypergen.kits import discover_cookbooks, discover_recipes
from hypergen.recipe_parser import find_recipe_file, parse_recipe_file

logger = logging.getLogger(__name__)

TABS = ("Overview", "Kits", "Recipes", "Runs", "Config", "Help")

KEY_TAB = "\t"
KEY_SHIFT_TAB = "\x1b[Z"
KEY_CTRL_C = "\x03"

KEY_BINDINGS = (
    ("1-6", "Select tab"),
    ("Tab", "Next tab"),
    ("Shift-Tab", "Previous tab"),
    ("r", "Refresh data"),
    ("q / Ctrl-C", "Quit"),
)


@dataclass
class DashboardState:
    """Key handling for the dashboard, independent of the terminal."""

    active: int = 0
    running: bool = True
    refresh_requested: bool = False

    @property
    def tab(self) -> str:
        return TABS[self.active]

    def handle_key(self, key: str) -> bool:
        """Apply a key press.

        Returns:
            False once the dashboard should exit
        """
        if key in ("q", "Q", KEY_CTRL_C):
            self.running = False
        elif len(key) == 1 and key in "123456":
            self.active = int(key) - 1
        elif key == KEY_TAB:
            self.active = (self.active + 1) % len(TABS)
        elif key == KEY_SHIFT_TAB:
            self.active = (self.active - 1) % len(TABS)
        elif key in ("r", "R"):
            self.refresh_requested = True
        return self.running


@dataclass
class RecipeRow:
    generator: str
    name: str
    path: Path
    description: str = ""
    variable_count: int = 0
    step_count: int = 0
    valid: bool = True


@dataclass
class DashboardData:
    project_root: Path
    config: HypergenConfig
    generators: list[DiscoveredGenerator] = field(default_factory=list)
    recipes: list[RecipeRow] = field(default_factory=list)
    runs: list[RunRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def _recipe_files(generator: DiscoveredGenerator) -> dict[str, Path]:
    files: dict[str, Path] = {}
    if generator.kit is not None and generator.kit.config is not None:
        kit_config = generator.kit.config
        for cookbook_name, cookbook in discover_cookbooks(generator.path, kit_config.cookbooks).items():
            for recipe_name, path in discover_recipes(cookbook.directory, cookbook.config.recipes).items():
                files[f"{cookbook_name}/{recipe_name}"] = path
        if kit_config.recipes:
            files.update(discover_recipes(generator.path, kit_config.recipes))
        return files

    for name in generator.recipes:
        path = find_recipe_file(generator.path / name)
        if path:
            files[name] = path
    return files


def collect_recipe_rows(generators: list[DiscoveredGenerator]) -> list[RecipeRow]:
    rows = []
    for generator in generators:
        for name, path in sorted(_recipe_files(generator).items()):
            parsed = parse_recipe_file(path)
            row = RecipeRow(generator=generator.name, name=name, path=path, valid=parsed.is_valid)
            if parsed.config is not None:
                row.description = parsed.config.description or ""
                row.variable_count = len(parsed.config.variables)
                row.step_count = len(parsed.config.steps)
            rows.append(row)
    return rows


def collect_dashboard_data(config: HypergenConfig, start_dir: Path) -> DashboardData:
    """Gather everything the tabs display; failures become error lines."""
    discovery = GeneratorDiscovery(config, start_dir)
    data = DashboardData(project_root=discovery.project.root, config=config)

    try:
        data.generators = discovery.discover_all()
        data.recipes = collect_recipe_rows(data.generators)
    except (DiscoveryError, OSError, ValueError) as e:
        logger.debug(f"Dashboard discovery failed: {e}")
        data.errors.append(f"Discovery failed: {e}")

    history = RunHistory(data.project_root, limit=config.engine.history_limit)
    data.runs = history.list_runs(limit=20)
    return data


class Dashboard:
    """rich Live dashboard driven by single key presses."""

    def __init__(
        self,
        config: HypergenConfig,
        start_dir: Path,
        console: Console | None = None,
        loader: Callable[[HypergenConfig, Path], DashboardData] = collect_dashboard_data,
    ):
        self.config = config
        self.start_dir = Path(start_dir)
        self.console = console or Console()
        self.loader = loader
        self.state = DashboardState()
        self.data = loader(config, self.start_dir)

    def refresh(self) -> None:
        self.data = self.loader(self.config, self.start_dir)
        self.state.refresh_requested = False

    def _tab_bar(self) -> Text:
        bar = Text()
        for index, name in enumerate(TABS):
            label = f" {index + 1} {name} "
            style = "bold black on cyan" if index == self.state.active else "dim"
            bar.append(label, style=style)
            bar.append(" ")
        return bar

    def _overview(self) -> Table:
        data = self.data
        table = Table(show_header=False, box=None)
        table.add_column("Key", style="cyan", no_wrap=True)
        table.add_column("Value")
        table.add_row("Project root", str(data.project_root))
        table.add_row("Config", data.config.source)
        table.add_row("Environment", data.config.environment)
        table.add_row("Generators", str(len(data.generators)))
        table.add_row("Kits", str(sum(1 for g in data.generators if g.is_kit)))
        table.add_row("Recipes", str(len(data.recipes)))
        table.add_row("Recorded runs", str(len(data.runs)))
        for error in data.errors:
            table.add_row("[red]Error[/red]", f"[red]{error}[/red]")
        return table

    def _kits(self) -> Table:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Source", style="magenta")
        table.add_column("Type")
        table.add_column("Recipes", justify="right")
        table.add_column("Actions", justify="right")
        table.add_column("Description")
        for generator in self.data.generators:
            table.add_row(
                generator.name,
                generator.source,
                "kit" if generator.is_kit else "generator",
                str(len(generator.recipes)),
                str(len(generator.actions)),
                generator.description or "-",
            )
        return table

    def _recipes(self) -> Table:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Generator", style="cyan", no_wrap=True)
        table.add_column("Recipe", style="green")
        table.add_column("Variables", justify="right")
        table.add_column("Steps", justify="right")
        table.add_column("Description")
        for row in self.data.recipes:
            name = row.name if row.valid else f"[red]{row.name} (invalid)[/red]"
            table.add_row(
                row.generator, name, str(row.variable_count), str(row.step_count), row.description or "-"
            )
        return table

    def _runs(self) -> Table:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Started", style="dim", no_wrap=True)
        table.add_column("Recipe", style="cyan")
        table.add_column("Status")
        table.add_column("Steps", justify="right")
        table.add_column("Files", justify="right")
        table.add_column("Duration", justify="right")
        for run in self.data.runs:
            started = run.started
            status = "[green]success[/green]" if run.success else "[red]failed[/red]"
            if run.dry_run:
                status += " [yellow](dry)[/yellow]"
            table.add_row(
                started.strftime("%Y-%m-%d %H:%M:%S") if started else run.started_at,
                run.recipe,
                status,
                f"{run.completed}/{run.completed + run.failed + run.skipped}",
                str(len(run.files_created) + len(run.files_modified)),
                f"{run.duration:.2f}s",
            )
        return table

    def _config(self) -> Table:
        table = Table(show_header=False, box=None)
        table.add_column("Key", style="cyan", no_wrap=True)
        table.add_column("Value")
        for key, value in ConfigManager.get_config_info(self.data.config).items():
            if isinstance(value, list):
                value = ", ".join(str(v) for v in value) or "-"
            table.add_row(key, str(value))
        engine = self.data.config.engine
        table.add_row("max_parallel_steps", str(engine.max_parallel_steps))
        table.add_row("default_retries", str(engine.default_retries))
        return table

    def _help(self) -> Table:
        table = Table(show_header=False, box=None)
        table.add_column("Key", style="cyan", no_wrap=True)
        table.add_column("Action")
        for key, action in KEY_BINDINGS:
            table.add_row(key, action)
        return table

    def render(self) -> Group:
        views: dict[str, Callable[[], Any]] = {
            "Overview": self._overview,
            "Kits": self._kits,
            "Recipes": self._recipes,
            "Runs": self._runs,
            "Config": self._config,
            "Help": self._help,
        }
        body = views[self.state.tab]()
        return Group(
            self._tab_bar(),
            Panel(body, title=f"hypergen - {self.state.tab}", border_style="blue"),
            Text("1-6 tabs  Tab/Shift-Tab cycle  r refresh  q quit", style="dim"),
        )

    def run(self, getchar: Callable[[], str] = click.getchar) -> None:
        """Run until the user quits.

        Args:
            getchar: Key reader (click.getchar by default)
        """
        try:
            with Live(self.render(), console=self.console, auto_refresh=False) as live:
                while True:
                    key = getchar()
                    if not self.state.handle_key(key):
                        break
                    if self.state.refresh_requested:
                        self.refresh()
                    live.update(self.render(), refresh=True)
        except (KeyboardInterrupt, EOFError):
            self.state.running = False
        self.console.print("[yellow]Dashboard closed.[/yellow]")


__all__ = [
    "TABS",
    "Dashboard",
    "DashboardData",
    "DashboardState",
    "RecipeRow",
    "collect_dashboard_data",
    "collect_recipe_rows",
]
