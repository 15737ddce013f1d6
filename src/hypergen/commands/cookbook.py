"""Cookbook command group.

Commands for browsing the cookbooks of discovered kits:
- list: Cookbooks per kit
- info: Cookbook details and its recipes
"""

import json
import logging
import sys

import click
from rich.table import Table

from hypergen.commands.cli_helpers import get_app_context, make_console
from hypergen.discovery import DiscoveryError, GeneratorDiscovery
from hypergen.kits import ParsedCookbook, discover_cookbooks, discover_recipes
from hypergen.recipe_parser import parse_recipe_file

logger = logging.getLogger(__name__)


def _kit_cookbooks(ctx: click.Context) -> list[tuple[str, str, ParsedCookbook]]:
    """(kit name, cookbook name, cookbook) for every discovered kit."""
    app = get_app_context(ctx)
    discovery = GeneratorDiscovery(app.load_config(), app.cwd)
    found = []
    for kit_name, kit in discovery.kits().items():
        for name, cookbook in discover_cookbooks(kit.directory, kit.config.cookbooks).items():
            found.append((kit_name, name, cookbook))
    return found


def _recipes(cookbook: ParsedCookbook) -> list[dict]:
    recipes = []
    for name, path in discover_recipes(cookbook.directory, cookbook.config.recipes).items():
        parsed = parse_recipe_file(path)
        if not parsed.is_valid:
            logger.warning(f"Failed to load recipe at {path}: {'; '.join(parsed.error_messages)}")
            continue
        recipes.append(
            {
                "name": name,
                "title": parsed.config.name,
                "description": parsed.config.description,
                "variables": list(parsed.config.variables),
                "steps": len(parsed.config.steps),
                "path": str(path),
            }
        )
    return sorted(recipes, key=lambda r: r["name"])


@click.group(name="cookbook")
def cookbook_group():
    """Browse the cookbooks of installed kits.

    \b
    SUBCOMMANDS:
        list   List cookbooks
        info   Show cookbook details

    \b
    EXAMPLES:
        hypergen cookbook list
        hypergen cookbook info demo/crud --json
    """
    pass


@cookbook_group.command(name="list")
@click.argument("kit", required=False)
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
@click.pass_context
def cookbook_list(ctx: click.Context, kit: str | None, as_json: bool):
    """List cookbooks, optionally only those of KIT."""
    try:
        cookbooks = _kit_cookbooks(ctx)
    except DiscoveryError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error in cookbook list command")
        sys.exit(1)

    if kit:
        cookbooks = [item for item in cookbooks if item[0] == kit]

    if as_json:
        data = [
            {
                "kit": kit_name,
                "name": name,
                "description": cookbook.config.description,
                "default_recipe": cookbook.config.defaults.recipe,
                "path": str(cookbook.directory),
            }
            for kit_name, name, cookbook in cookbooks
        ]
        click.echo(json.dumps(data, indent=2))
        return

    console = make_console()
    if not cookbooks:
        console.print("[yellow]No cookbooks found.[/yellow]")
        return

    table = Table(title=f"Cookbooks ({len(cookbooks)})", show_header=True)
    table.add_column("Kit", style="magenta")
    table.add_column("Cookbook", style="cyan", no_wrap=True)
    table.add_column("Recipes", justify="right")
    table.add_column("Default")
    table.add_column("Description")
    for kit_name, name, cookbook in cookbooks:
        table.add_row(
            kit_name,
            name,
            str(len(discover_recipes(cookbook.directory, cookbook.config.recipes))),
            cookbook.config.defaults.recipe or "",
            cookbook.config.description or "",
        )
    console.print(table)


@cookbook_group.command(name="info")
@click.argument("cookbook")
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
@click.pass_context
def cookbook_info(ctx: click.Context, cookbook: str, as_json: bool):
    """Show details for COOKBOOK (a name or kit/name).

    \b
    Examples:
        hypergen cookbook info crud
        hypergen cookbook info demo/crud
    """
    try:
        cookbooks = _kit_cookbooks(ctx)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error in cookbook info command")
        sys.exit(1)

    kit_name, _, name = cookbook.rpartition("/")
    matches = [item for item in cookbooks if item[1] == name and (not kit_name or item[0] == kit_name)]
    if not matches:
        click.echo(f"Error: Cookbook not found: {cookbook}", err=True)
        if cookbooks:
            available = ", ".join(f"{k}/{n}" for k, n, _ in cookbooks)
            click.echo(f"Available cookbooks: {available}", err=True)
        sys.exit(1)

    found_kit, found_name, found = matches[0]
    recipes = _recipes(found)

    if as_json:
        data = {
            "name": found_name,
            "kit": found_kit,
            "location": str(found.directory),
            "description": found.config.description,
            "default_recipe": found.config.defaults.recipe,
            "recipes": recipes,
        }
        click.echo(json.dumps(data, indent=2))
        return

    console = make_console()
    console.print(f"\n[bold]{found_name}[/bold]" + (f" v{found.config.version}" if found.config.version else ""))
    console.print(f"  Kit:      {found_kit}")
    console.print(f"  Location: {found.directory}")
    if found.config.description:
        console.print(f"  {found.config.description}")
    if found.config.defaults.recipe:
        console.print(f"  Default recipe: {found.config.defaults.recipe}")

    console.print(f"\n[bold]Recipes ({len(recipes)}):[/bold]")
    for recipe in recipes:
        description = f" - {recipe['description']}" if recipe["description"] else ""
        console.print(f"  - [cyan]{recipe['name']}[/cyan]{description}")
    if recipes:
        console.print(f"\nRun one with: hypergen {found_kit} {found_name} {recipes[0]['name']}")


__all__ = ["cookbook_group"]
