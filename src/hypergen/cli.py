"""hypergen command line interface.

Entry point for the `hypergen` console script. Subcommands live in
hypergen.commands; any unknown command name is treated as the first
segment of `hypergen run`.
"""

import logging
from pathlib import Path

import click

from hypergen import __version__
from hypergen.click_group import HypergenGroup
from hypergen.commands import (
    config_group,
    cookbook_group,
    dash_command,
    discover_command,
    docs_group,
    history_command,
    info_command,
    kit_group,
    list_command,
    recipe_group,
    run_command,
)
from hypergen.commands.cli_helpers import AppContext, configure_logging

logger = logging.getLogger(__name__)


@click.group(
    cls=HypergenGroup,
    default_command="run",
    invoke_without_command=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)
@click.option(
    "--cwd",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Run as if started in this directory",
)
@click.option("--config", "config_path", type=click.Path(), help="Explicit configuration file")
@click.option("--env", "environment", help="Configuration environment (default: $HYPERGEN_ENV or development)")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Only show warnings and errors")
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: click.Context,
    cwd: Path | None,
    config_path: str | None,
    environment: str | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """hypergen - recipe-driven code generation.

    Runs recipes (YAML files declaring variables and steps) found in kits,
    cookbooks and template directories of your project.

    \b
    GENERATION:
        <generator> [segments...]   Run a recipe by kit/cookbook/recipe name
        run SEGMENTS...             Same, explicitly

    \b
    DISCOVERY:
        discover      Find generators (local, workspace, installed)
        list          List generators and their recipes
        info          Show generator details
        kit list      List installed kits
        cookbook list|info

    \b
    RECIPES:
        recipe validate|info|list|steps

    \b
    PROJECT:
        config show|init|validate
        history       Show recent runs
        dash          Interactive dashboard
        docs frontmatter|nav

    \b
    EXAMPLES:
        $ hypergen nextjs crud create Post --fields=title,body
        $ hypergen run ./recipes/component --name=Button --dry
        $ hypergen list
        $ hypergen recipe steps recipes/component

    For help on any command: hypergen <command> --help
    """
    configure_logging(verbose=verbose, quiet=quiet)

    ctx.obj = AppContext(
        cwd=(cwd or Path.cwd()).resolve(),
        config_path=config_path,
        environment=environment,
        verbose=verbose,
        quiet=quiet,
    )

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)


main.add_command(run_command)
main.add_command(discover_command)
main.add_command(list_command)
main.add_command(info_command)
main.add_command(kit_group)
main.add_command(cookbook_group)
main.add_command(recipe_group)
main.add_command(config_group)
main.add_command(docs_group)
main.add_command(history_command)
main.add_command(dash_command)


if __name__ == "__main__":
    main()


__all__ = ["main"]
