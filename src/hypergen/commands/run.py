"""Run command: resolve segments to a recipe and execute it.

Also reached implicitly: `hypergen nextjs crud create Post` is routed here
by HypergenGroup when `nextjs` is not a command name.
"""

import logging
import sys

import click
from rich.console import Console

from hypergen.commands.cli_helpers import get_app_context, make_console, print_list
from hypergen.generate import (
    GenerationError,
    GenerationOutcome,
    GenerationRequest,
    GenerationService,
    parse_cli_variables,
)
from hypergen.recipe_engine import RecipeExecutionResult
from hypergen.recipe_parser import RecipeParseError
from hypergen.variables import VariableError, click_prompter

logger = logging.getLogger(__name__)


def print_result(console: Console, result: RecipeExecutionResult) -> None:
    status = "[green]✓[/green]" if result.success else "[red]✗[/red]"
    mode = " [yellow](dry run)[/yellow]" if result.dry_run else ""
    console.print(
        f"{status} {result.recipe_name}: {result.completed_steps} steps completed, "
        f"{result.skipped_steps} skipped, {result.failed_steps} failed "
        f"({result.duration:.2f}s){mode}"
    )
    print_list(console, "Files created", result.files_created, style="green")
    print_list(console, "Files modified", result.files_modified, style="yellow")
    print_list(console, "Warnings", result.warnings, style="yellow")
    print_list(console, "Errors", result.errors, style="red")


def print_outcome(console: Console, outcome: GenerationOutcome) -> None:
    if outcome.resolved.is_group:
        console.print(
            f"\n[bold]Recipe group:[/bold] {outcome.resolved.path} "
            f"({len(outcome.results)} recipes executed)"
        )
    for result in outcome.results:
        print_result(console, result)


@click.command(
    name="run",
    context_settings={"ignore_unknown_options": True, "allow_extra_args": True},
)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.option("--dry", is_flag=True, help="Show what would be generated without writing files")
@click.option("--force", "-f", is_flag=True, help="Overwrite existing files")
@click.option("--yes", "-y", is_flag=True, help="Never prompt; fail on missing variables")
@click.option("--no-defaults", is_flag=True, help="Ignore declared defaults and ask for every variable")
@click.option("--continue-on-error", is_flag=True, help="Keep going after failed steps")
@click.pass_context
def run_command(
    ctx: click.Context,
    args: tuple[str, ...],
    dry: bool,
    force: bool,
    yes: bool,
    no_defaults: bool,
    continue_on_error: bool,
):
    """Run a recipe or recipe group.

    SEGMENTS select a kit, cookbook and recipe (or a path); remaining
    segments fill positional variables. Any --key=value or --key value
    pair becomes a recipe variable.

    \b
    Examples:
        hypergen run nextjs crud create Post
        hypergen run ./recipes/component --name=Button --dry
        hypergen nextjs crud update Organization --force
    """
    app = get_app_context(ctx)
    segments, variables = parse_cli_variables(list(args))
    if not segments:
        click.echo("Error: No recipe specified", err=True)
        click.echo("\nUsage: hypergen run SEGMENTS... [--key=value ...]", err=True)
        sys.exit(1)

    config = app.load_config()
    service = GenerationService(config, app.cwd, prompter=click_prompter)
    request = GenerationRequest(
        segments=segments,
        variables=variables,
        dry_run=dry,
        force=force,
        interactive=not yes,
        no_defaults=no_defaults,
        continue_on_error=continue_on_error,
    )

    console = make_console()
    try:
        outcome = service.run(request)
    except (GenerationError, RecipeParseError, VariableError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nCancelled by user.")
        sys.exit(130)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error in run command")
        sys.exit(1)

    print_outcome(console, outcome)
    if not outcome.success:
        sys.exit(1)


__all__ = ["print_outcome", "print_result", "run_command"]
