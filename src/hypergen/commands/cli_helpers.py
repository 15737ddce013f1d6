"""Shared helpers for CLI commands."""

import logging
import sys
from dataclasses import dataclass
from pathlib import Path

import click
from rich.console import Console

from hypergen.config_manager import ConfigError, ConfigManager, HypergenConfig

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Global options shared by every command (stored on ctx.obj)."""

    cwd: Path
    config_path: str | None = None
    environment: str | None = None
    verbose: bool = False
    quiet: bool = False

    def load_config(self) -> HypergenConfig:
        """Load the effective config, exiting with a message on errors."""
        try:
            return ConfigManager.load_config(
                self.config_path, start_dir=self.cwd, environment=self.environment
            )
        except ConfigError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)


def get_app_context(ctx: click.Context) -> AppContext:
    """AppContext from the root command, defaulting to the current directory."""
    obj = ctx.find_object(AppContext)
    if obj is None:
        obj = AppContext(cwd=Path.cwd())
        ctx.obj = obj
    return obj


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format="%(message)s")
    logging.getLogger().setLevel(level)


def make_console() -> Console:
    return Console()


def print_list(console: Console, title: str, items: list[str], style: str = "") -> None:
    if not items:
        return
    console.print(f"\n[bold]{title}:[/bold]")
    for item in items:
        console.print(f"  - {item}", style=style or None)


__all__ = ["AppContext", "configure_logging", "get_app_context", "make_console", "print_list"]
