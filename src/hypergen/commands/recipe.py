"""Recipe command group.

Commands for inspecting recipes without running them:
- validate: Parse and validate a recipe
- info: Show variables, steps and examples
- list: List recipes under a directory
- steps: Show the execution plan
"""

import logging
import sys
from pathlib import Path

import click
from rich.table import Table

from hypergen.commands.cli_helpers import get_app_context, make_console, print_list
from hypergen.recipe_engine import DependencyResolver, StepExecutionError
from hypergen.recipe_parser import (
    LEGACY_FILENAMES,
    RECIPE_FILENAMES,
    ParsedRecipe,
    find_recipe_file,
    parse_recipe_file,
)

logger = logging.getLogger(__name__)


def _resolve_recipe_path(ctx: click.Context, path: str) -> Path:
    target = Path(path)
    if not target.is_absolute():
        target = get_app_context(ctx).cwd / target
    if target.is_dir():
        recipe_file = find_recipe_file(target)
        if recipe_file is None:
            click.echo(f"Error: No recipe.yml found in {target}", err=True)
            sys.exit(1)
        return recipe_file
    return target


def _load_valid(ctx: click.Context, path: str) -> ParsedRecipe:
    parsed = parse_recipe_file(_resolve_recipe_path(ctx, path))
    if not parsed.is_valid:
        click.echo(f"Error: Invalid recipe {parsed.path}", err=True)
        for message in parsed.error_messages:
            click.echo(f"  - {message}", err=True)
        sys.exit(1)
    return parsed


@click.group(name="recipe")
def recipe_group():
    """Inspect and validate recipes.

    \b
    SUBCOMMANDS:
        validate   Validate a recipe file
        info       Show recipe details
        list       List recipes in a directory
        steps      Show the execution plan

    \b
    EXAMPLES:
        hypergen recipe validate recipes/component
        hypergen recipe steps recipes/component/recipe.yml
    """
    pass


@recipe_group.command(name="validate")
@click.argument("path")
@click.pass_context
def recipe_validate(ctx: click.Context, path: str):
    """Validate a recipe file (or a directory holding one)."""
    parsed = parse_recipe_file(_resolve_recipe_path(ctx, path))
    console = make_console()

    if parsed.is_valid:
        console.print(f"[green]✓[/green] {parsed.path} is valid")
    else:
        console.print(f"[red]✗[/red] {parsed.path} has {len(parsed.errors)} error(s)")
    print_list(console, "Errors", [f"[{e.code}] {e.message}" for e in parsed.errors], style="red")
    print_list(console, "Warnings", parsed.warnings, style="yellow")

    if not parsed.is_valid:
        sys.exit(1)


@recipe_group.command(name="info")
@click.argument("path")
@click.pass_context
def recipe_info(ctx: click.Context, path: str):
    """Show recipe details."""
    recipe = _load_valid(ctx, path).config
    console = make_console()

    console.print(f"\n[bold]{recipe.name}[/bold]" + (f" v{recipe.version}" if recipe.version else ""))
    if recipe.description:
        console.print(f"  {recipe.description}")
    if recipe.author:
        console.print(f"  Author:   {recipe.author}")
    if recipe.category:
        console.print(f"  Category: {recipe.category}")
    if recipe.tags:
        console.print(f"  Tags:     {', '.join(recipe.tags)}")

    if recipe.variables:
        table = Table(title="Variables", show_header=True)
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Type", style="magenta")
        table.add_column("Required")
        table.add_column("Default")
        table.add_column("Description")
        for name, variable in recipe.variables.items():
            table.add_row(
                name,
                variable.type,
                "yes" if variable.required else "no",
                "" if variable.default is None else str(variable.default),
                variable.description or "",
            )
        console.print(table)

    console.print(f"\n[bold]Steps ({len(recipe.steps)}):[/bold]")
    for step in recipe.steps:
        depends = f" [dim](after {', '.join(step.depends_on)})[/dim]" if step.depends_on else ""
        console.print(f"  - {step.name} [magenta]{step.tool}[/magenta]{depends}")

    for example in recipe.examples:
        values = " ".join(f"--{key}={value}" for key, value in example["variables"].items())
        console.print(f"\n[bold]{example['title']}:[/bold] {values}")


@recipe_group.command(name="list")
@click.argument("directory", required=False)
@click.pass_context
def recipe_list(ctx: click.Context, directory: str | None):
    """List recipes under DIRECTORY (default: current directory)."""
    cwd = get_app_context(ctx).cwd
    base = cwd / directory if directory else cwd
    if not base.is_dir():
        click.echo(f"Error: Directory not found: {base}", err=True)
        sys.exit(1)

    files = sorted(
        path
        for name in RECIPE_FILENAMES + LEGACY_FILENAMES
        for path in base.rglob(name)
        if "node_modules" not in path.parts and ".git" not in path.parts
    )
    console = make_console()
    if not files:
        console.print(f"[yellow]No recipes found in {base}[/yellow]")
        return

    table = Table(title=f"Recipes ({len(files)})", show_header=True)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Path", style="dim")
    table.add_column("Steps", justify="right")
    table.add_column("Status")
    for path in files:
        try:
            parsed = parse_recipe_file(path)
        except Exception as e:
            click.echo(f"Unexpected error: {e}", err=True)
            logger.exception(f"Unexpected error reading {path}")
            sys.exit(1)
        name = parsed.config.name if parsed.config else path.parent.name
        steps = str(len(parsed.config.steps)) if parsed.config else "-"
        status = "[green]valid[/green]" if parsed.is_valid else "[red]invalid[/red]"
        table.add_row(name, str(path.relative_to(base)), steps, status)
    console.print(table)


@recipe_group.command(name="steps")
@click.argument("path")
@click.option("--sequential", is_flag=True, help="Plan without parallel phases")
@click.pass_context
def recipe_steps(ctx: click.Context, path: str, sequential: bool):
    """Show the execution plan (phases) of a recipe."""
    recipe = _load_valid(ctx, path).config
    try:
        plan = DependencyResolver(allow_parallel=not sequential).create_plan(recipe.steps)
    except StepExecutionError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    console = make_console()
    console.print(
        f"\n[bold]{recipe.name}[/bold]: {plan.step_count} steps in {len(plan.phases)} phases "
        f"(estimated {plan.estimated_duration / 1000:.1f}s)"
    )
    tools = {step.name: step.tool for step in recipe.steps}
    for phase in plan.phases:
        mode = "parallel" if phase.parallel else "sequential"
        console.print(f"\n  Phase {phase.index + 1} [dim]({mode})[/dim]")
        for name in phase.steps:
            console.print(f"    - {name} [magenta]{tools[name]}[/magenta]")


__all__ = ["recipe_group"]
