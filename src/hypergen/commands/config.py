"""Config command group: show, init and validate project configuration."""

import json
import logging
import sys
from pathlib import Path

import click
from rich.table import Table

from hypergen.commands.cli_helpers import get_app_context, make_console
from hypergen.config_manager import ConfigError, ConfigManager

logger = logging.getLogger(__name__)


@click.group(name="config")
def config_group():
    """Manage hypergen configuration.

    \b
    SUBCOMMANDS:
        show       Show the effective configuration
        init       Create a starter hypergen.yml (or hypergen.toml)
        validate   Validate a configuration file

    \b
    EXAMPLES:
        hypergen config init
        hypergen config init --format toml --force
        hypergen --env production config show
    """
    pass


@config_group.command(name="show")
@click.option("--json", "as_json", is_flag=True, help="Output the full configuration as JSON")
@click.pass_context
def config_show(ctx: click.Context, as_json: bool):
    """Show the effective configuration."""
    app = get_app_context(ctx)
    config = app.load_config()

    if as_json:
        data = config.to_dict()
        data["source"] = config.source
        data["environment"] = config.environment
        click.echo(json.dumps(data, indent=2))
        return

    console = make_console()
    table = Table(title="hypergen configuration", show_header=False)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value")
    for key, value in ConfigManager.get_config_info(config).items():
        if isinstance(value, list):
            value = ", ".join(value) or "-"
        table.add_row(key, str(value))
    console.print(table)

    console.print("\n[bold]Search directories:[/bold]")
    base = config.config_dir or app.cwd
    for directory in ConfigManager.resolve_directories(config, base):
        marker = "[green]✓[/green]" if directory.is_dir() else "[dim]-[/dim]"
        console.print(f"  {marker} {directory}")


@config_group.command(name="init")
@click.option(
    "--format", "fmt", type=click.Choice(["yml", "toml"]), default="yml", show_default=True
)
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file")
@click.pass_context
def config_init(ctx: click.Context, fmt: str, force: bool):
    """Create a starter configuration file in the current directory."""
    app = get_app_context(ctx)
    try:
        path = ConfigManager.init_config(app.cwd, fmt=fmt, force=force)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error in config init command")
        sys.exit(1)
    click.echo(f"Created configuration file: {path}")


@config_group.command(name="validate")
@click.argument("path", required=False)
@click.pass_context
def config_validate(ctx: click.Context, path: str | None):
    """Validate PATH (default: the nearest configuration file)."""
    app = get_app_context(ctx)
    if path:
        config_path = Path(path)
        if not config_path.is_absolute():
            config_path = app.cwd / config_path
    else:
        config_path = ConfigManager.find_config_file(app.cwd)
        if config_path is None:
            click.echo("Error: No configuration file found", err=True)
            sys.exit(1)

    if not config_path.is_file():
        click.echo(f"Error: Config file not found: {config_path}", err=True)
        sys.exit(1)

    try:
        data = ConfigManager.read_config_file(config_path)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    errors = ConfigManager.validate_config(data)
    if errors:
        click.echo(f"✗ {config_path} is invalid:", err=True)
        for error in errors:
            click.echo(f"  - {error}", err=True)
        sys.exit(1)
    click.echo(f"✓ {config_path} is valid")


__all__ = ["config_group"]
