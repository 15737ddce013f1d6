"""Custom Click group for the hypergen CLI.

Adds two behaviors on top of click.Group:
- Unknown command names are routed to a default command, so
  `hypergen nextjs crud create` runs `hypergen run nextjs crud create`.
- Usage errors print the message followed by the relevant help text.
"""

import sys
from typing import Any

import click


class HypergenGroup(click.Group):
    """Click group with a default command and auto-help on usage errors."""

    def __init__(self, *args: Any, default_command: str | None = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.default_command = default_command

    def main(self, *args: Any, **kwargs: Any) -> Any:
        try:
            return super().main(*args, **kwargs)
        except (
            click.exceptions.UsageError,
            click.exceptions.BadParameter,
            click.exceptions.MissingParameter,
        ) as e:
            click.echo(f"Error: {e.format_message()}", err=True)
            ctx = e.ctx if hasattr(e, "ctx") and e.ctx else None
            if ctx:
                click.echo("")
                click.echo(ctx.get_help())
                ctx.exit(e.exit_code if hasattr(e, "exit_code") else 1)
                return None
            sys.exit(e.exit_code if hasattr(e, "exit_code") else 1)
            return None

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except (
            click.exceptions.UsageError,
            click.exceptions.BadParameter,
            click.exceptions.MissingParameter,
        ) as e:
            click.echo(f"Error: {e.format_message()}", err=True)
            error_ctx = e.ctx if hasattr(e, "ctx") and e.ctx else ctx
            click.echo("")
            click.echo(error_ctx.get_help())
            error_ctx.exit(e.exit_code if hasattr(e, "exit_code") else 1)
            return None

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        """Fall back to the default command for unknown names."""
        if args and self.default_command and not args[0].startswith("-"):
            if self.get_command(ctx, args[0]) is None:
                default = self.get_command(ctx, self.default_command)
                if default is not None:
                    return default.name, default, list(args)

        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            if isinstance(e, click.exceptions.MissingParameter | click.exceptions.BadParameter):
                raise
            click.echo(f"Error: {e.format_message()}", err=True)
            click.echo("")
            click.echo(ctx.get_help())
            ctx.exit(1)
            return None, None, []


__all__ = ["HypergenGroup"]
