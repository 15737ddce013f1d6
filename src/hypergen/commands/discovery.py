"""Generator discovery commands: discover, list, info."""

import json
import logging
import sys

import click
from rich.table import Table

from hypergen.commands.cli_helpers import get_app_context, make_console
from hypergen.config_manager import VALID_DISCOVERY_SOURCES
from hypergen.discovery import DiscoveryError, GeneratorDiscovery

logger = logging.getLogger(__name__)


def _discovery(ctx: click.Context) -> GeneratorDiscovery:
    app = get_app_context(ctx)
    return GeneratorDiscovery(app.load_config(), app.cwd)


@click.command(name="discover")
@click.option(
    "--source",
    "sources",
    multiple=True,
    type=click.Choice(VALID_DISCOVERY_SOURCES),
    help="Only search this source (repeatable)",
)
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
@click.pass_context
def discover_command(ctx: click.Context, sources: tuple[str, ...], as_json: bool):
    """Discover generators from local, workspace and installed sources.

    \b
    Examples:
        hypergen discover
        hypergen discover --source local --json
    """
    discovery = _discovery(ctx)
    try:
        generators = discovery.discover_all(list(sources) or None)
    except DiscoveryError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error in discover command")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps([g.to_dict() for g in generators], indent=2))
        return

    console = make_console()
    if not generators:
        console.print("[yellow]No generators found.[/yellow]")
        console.print(f"Searched: {', '.join(str(d) for d in discovery.search_dirs)}")
        return

    table = Table(title=f"Discovered Generators ({len(generators)})", show_header=True)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Source", style="magenta")
    table.add_column("Type")
    table.add_column("Recipes", justify="right")
    table.add_column("Path", style="dim")
    for generator in generators:
        table.add_row(
            generator.name,
            generator.source,
            "kit" if generator.is_kit else "generator",
            str(len(generator.recipes)),
            str(generator.path),
        )
    console.print(table)


@click.command(name="list")
@click.argument("generator", required=False)
@click.pass_context
def list_command(ctx: click.Context, generator: str | None):
    """List generators and their recipes.

    \b
    Examples:
        hypergen list
        hypergen list nextjs
    """
    discovery = _discovery(ctx)
    try:
        generators = discovery.discover_all()
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error in list command")
        sys.exit(1)
    if generator:
        generators = [g for g in generators if g.name == generator]
        if not generators:
            click.echo(f"Error: Generator not found: {generator}", err=True)
            sys.exit(1)

    console = make_console()
    if not generators:
        console.print("[yellow]No generators found.[/yellow]")
        console.print("\nCreate one with a recipe.yml under _templates/ or recipes/.")
        return

    for item in generators:
        kind = "kit" if item.is_kit else "generator"
        description = f" - {item.description}" if item.description else ""
        console.print(f"\n[bold cyan]{item.name}[/bold cyan] [dim]({kind}, {item.source})[/dim]{description}")
        if item.cookbooks:
            console.print(f"  Cookbooks: {', '.join(item.cookbooks)}")
        for recipe in item.recipes:
            console.print(f"  - {recipe}")
        if item.actions:
            console.print(f"  Actions: {', '.join(item.actions)}")


@click.command(name="info")
@click.argument("generator")
@click.pass_context
def info_command(ctx: click.Context, generator: str):
    """Show details for a generator.

    \b
    Examples:
        hypergen info nextjs
    """
    try:
        found = _discovery(ctx).get(generator)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error in info command")
        sys.exit(1)
    if found is None:
        click.echo(f"Error: Generator not found: {generator}", err=True)
        sys.exit(1)

    console = make_console()
    console.print(f"\n[bold]{found.name}[/bold]")
    console.print(f"  Source:  {found.source}")
    console.print(f"  Path:    {found.path}")
    console.print(f"  Type:    {'kit' if found.is_kit else 'generator'}")
    for key in ("description", "version", "author", "license"):
        if found.metadata.get(key):
            console.print(f"  {key.capitalize() + ':':<9}{found.metadata[key]}")
    keywords = found.metadata.get("keywords") or []
    if keywords:
        console.print(f"  Keywords: {', '.join(keywords)}")
    if found.helpers:
        console.print(f"  Helpers: {found.helpers}")

    if found.cookbooks:
        console.print(f"\n[bold]Cookbooks ({len(found.cookbooks)}):[/bold]")
        for name in found.cookbooks:
            console.print(f"  - {name}")
    console.print(f"\n[bold]Recipes ({len(found.recipes)}):[/bold]")
    for name in found.recipes:
        console.print(f"  - {name}")
    if found.actions:
        console.print(f"\n[bold]Actions ({len(found.actions)}):[/bold]")
        for name in found.actions:
            console.print(f"  - {name}")


__all__ = ["discover_command", "info_command", "list_command"]
