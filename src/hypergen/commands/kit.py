"""Kit commands."""

import json
import logging
import sys

import click

from hypergen.commands.cli_helpers import get_app_context, make_console
from hypergen.discovery import DiscoveredGenerator, DiscoveryError, GeneratorDiscovery

logger = logging.getLogger(__name__)

SOURCE_HEADERS = {
    "local": "Local",
    "workspace": "Workspace",
    "installed": "Installed packages",
}

PREVIEW_LIMIT = 5


def _preview(names: list[str], verbose: bool) -> str:
    if verbose or len(names) <= PREVIEW_LIMIT:
        return ", ".join(names)
    return ", ".join(names[:PREVIEW_LIMIT]) + f", +{len(names) - PREVIEW_LIMIT} more"


@click.group(name="kit")
def kit_group():
    """Inspect installed kits.

    \b
    EXAMPLES:
        hypergen kit list
        hypergen kit list --verbose
    """
    pass


@kit_group.command(name="list")
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
@click.option("--verbose", "-v", is_flag=True, help="Show paths, helpers and every recipe")
@click.pass_context
def kit_list(ctx: click.Context, as_json: bool, verbose: bool):
    """List kits grouped by where they were found."""
    app = get_app_context(ctx)
    try:
        kits = [g for g in GeneratorDiscovery(app.load_config(), app.cwd).discover_all() if g.is_kit]
    except DiscoveryError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error in kit list command")
        sys.exit(1)

    if as_json:
        data = []
        for kit in kits:
            item = kit.to_dict()
            item.pop("actions", None)
            data.append(item)
        click.echo(json.dumps(data, indent=2))
        return

    console = make_console()
    if not kits:
        console.print("[yellow]No kits installed.[/yellow]")
        console.print("\nAdd a kit.yml under kits/<name>/ or install a package providing hypergen.kits.")
        return

    grouped: dict[str, list[DiscoveredGenerator]] = {}
    for kit in kits:
        grouped.setdefault(kit.source, []).append(kit)

    for source, source_kits in grouped.items():
        console.print(f"\n[bold]{SOURCE_HEADERS.get(source, source)}[/bold]")
        for kit in source_kits:
            version = kit.metadata.get("version")
            console.print(f"\n  [cyan]{kit.name}[/cyan]" + (f" [dim]v{version}[/dim]" if version else ""))
            if kit.description:
                console.print(f"    Description: {kit.description}")
            if verbose:
                console.print(f"    Location:    {kit.path}")
            if kit.cookbooks:
                console.print(f"    Cookbooks:   {_preview(kit.cookbooks, verbose)}")
            if kit.recipes:
                console.print(f"    Recipes:     {_preview(kit.recipes, verbose)}")
            if verbose and kit.helpers:
                console.print(f"    Helpers:     {kit.helpers}")


__all__ = ["kit_group"]
