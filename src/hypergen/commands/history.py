"""History and dashboard commands."""

import logging
import sys

import click
from rich.table import Table

from hypergen.commands.cli_helpers import get_app_context, make_console
from hypergen.dashboard import Dashboard
from hypergen.history import HistoryError, RunHistory
from hypergen.project_root import find_project_root

logger = logging.getLogger(__name__)


@click.command(name="history")
@click.option("--limit", "-n", type=int, default=20, show_default=True, help="Number of runs to show")
@click.option("--clear", is_flag=True, help="Delete the run history")
@click.pass_context
def history_command(ctx: click.Context, limit: int, clear: bool):
    """Show recent recipe runs.

    \b
    Examples:
        hypergen history
        hypergen history --limit 5
        hypergen history --clear
    """
    app = get_app_context(ctx)
    root = find_project_root(app.cwd).root
    history = RunHistory(root)

    try:
        if clear:
            history.clear()
            click.echo("Run history cleared.")
            return
        runs = history.list_runs(limit=limit)
    except (HistoryError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error in history command")
        sys.exit(1)

    console = make_console()
    if not runs:
        console.print("No runs recorded yet.")
        return

    table = Table(title=f"Recent Runs ({len(runs)})", show_header=True)
    table.add_column("Started", style="dim", no_wrap=True)
    table.add_column("Recipe", style="cyan")
    table.add_column("Status")
    table.add_column("Completed", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Files", justify="right")
    table.add_column("Duration", justify="right")
    for run in runs:
        started = run.started
        status = "[green]success[/green]" if run.success else "[red]failed[/red]"
        if run.dry_run:
            status += " [yellow](dry)[/yellow]"
        table.add_row(
            started.strftime("%Y-%m-%d %H:%M:%S") if started else run.started_at,
            run.recipe,
            status,
            str(run.completed),
            str(run.failed),
            str(len(run.files_created) + len(run.files_modified)),
            f"{run.duration:.2f}s",
        )
    console.print(table)


@click.command(name="dash")
@click.pass_context
def dash_command(ctx: click.Context):
    """Open the interactive dashboard.

    Keys: 1-6 switch tabs, Tab/Shift-Tab cycle, r refreshes, q quits.
    """
    app = get_app_context(ctx)
    try:
        Dashboard(app.load_config(), app.cwd).run()
    except KeyboardInterrupt:
        pass
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error in dash command")
        sys.exit(1)


__all__ = ["dash_command", "history_command"]
