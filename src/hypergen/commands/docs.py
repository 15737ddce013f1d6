"""Docs command group: frontmatter standardization and docs.json navigation."""

import logging
import sys
from pathlib import Path

import click

from hypergen.commands.cli_helpers import get_app_context, make_console, print_list
from hypergen.docs import DocsError, DocsJsonUpdater, FrontmatterProcessor

logger = logging.getLogger(__name__)


def _path(ctx: click.Context, value: str) -> Path:
    path = Path(value)
    return path if path.is_absolute() else get_app_context(ctx).cwd / path


@click.group(name="docs")
def docs_group():
    """Maintain MDX documentation.

    \b
    SUBCOMMANDS:
        frontmatter   Fill in missing title/description/icon frontmatter
        nav           Rebuild docs.json navigation for generated pages

    \b
    EXAMPLES:
        hypergen docs frontmatter docs --dry-run
        hypergen docs frontmatter docs --check
        hypergen docs nav docs/api --docs-json docs/docs.json
    """
    pass


@docs_group.command(name="frontmatter")
@click.argument("docs_dir")
@click.option("--dry-run", is_flag=True, help="Report changes without writing files")
@click.option("--backup", is_flag=True, help="Back up every page before writing")
@click.option("--check", is_flag=True, help="Validate only; exit 1 on missing title/description")
@click.option("--product", default="hypergen", show_default=True, help="Product name used in descriptions")
@click.pass_context
def docs_frontmatter(ctx: click.Context, docs_dir: str, dry_run: bool, backup: bool, check: bool, product: str):
    """Standardize frontmatter of every .mdx file under DOCS_DIR."""
    processor = FrontmatterProcessor(_path(ctx, docs_dir), product=product)
    console = make_console()

    try:
        report = processor.validate() if check else processor.process(dry_run=dry_run, backup=backup)
    except DocsError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error in docs frontmatter command")
        sys.exit(1)

    if report.backup_path:
        console.print(f"Backup created at: {report.backup_path}")
    if dry_run and not check:
        console.print("[yellow]Dry run: no files were written[/yellow]")
    for path, fields in report.changes.items():
        console.print(f"  [green]fixed[/green] {path} ({', '.join(fields)})")

    console.print(
        f"\nProcessed: {report.processed}  Fixed: {report.fixed}  "
        f"Skipped: {report.skipped}  Errors: {len(report.errors)}"
    )
    print_list(console, "Warnings", report.warnings, style="yellow")
    print_list(console, "Errors", report.errors, style="red")

    if report.errors:
        sys.exit(1)


@docs_group.command(name="nav")
@click.argument("output_dir")
@click.option("--docs-json", "docs_json", required=True, help="Path to docs.json")
@click.option("--tab", "tab_name", default="SDK Reference", show_default=True, help="Navigation tab")
@click.option("--project", "project_name", default="hypergen", show_default=True, help="Project group name")
@click.option(
    "--strategy",
    default="folder,file",
    show_default=True,
    help="Comma-separated grouping strategies (folder, file, kind)",
)
@click.option(
    "--sidebar-icons",
    default="all",
    show_default=True,
    help="all, none, or a comma list of folder, file, kind",
)
@click.pass_context
def docs_nav(
    ctx: click.Context,
    output_dir: str,
    docs_json: str,
    tab_name: str,
    project_name: str,
    strategy: str,
    sidebar_icons: str,
):
    """Rebuild the docs.json navigation for pages in OUTPUT_DIR."""
    try:
        updater = DocsJsonUpdater(
            docs_json_path=_path(ctx, docs_json),
            output_dir=_path(ctx, output_dir),
            project_name=project_name,
            tab_name=tab_name,
            strategies=strategy,
            sidebar_icons=sidebar_icons,
        )
        navigation = updater.update()
    except (DocsError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error in docs nav command")
        sys.exit(1)

    click.echo(f"Updated {updater.docs_json_path} ({len(navigation)} top-level entries)")


__all__ = ["docs_group"]
