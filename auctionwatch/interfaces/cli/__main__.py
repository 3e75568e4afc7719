"""Entry point for running the Auctionwatch CLI.

This module defines a top-level Click group that aggregates all subcommands
defined in the ``auctionwatch.interfaces.cli`` package. Executing
``python -m auctionwatch.interfaces.cli`` will invoke this group.
"""

import logging

import click

from auctionwatch.infrastructure.observability import configure_logging

from .context import build_cli_context
from .delete_event import delete_event
from .events import events
from .import_lots import import_lots
from .watch import watch


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Path to a JSON config file.")
@click.option("--api-url", default=None, help="Override the lot data service URL.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, api_url: str | None, verbose: bool) -> None:
    """Auctionwatch command-line interface."""
    configure_logging(level=logging.DEBUG if verbose else logging.WARNING)
    if ctx.obj is None:
        ctx.obj = build_cli_context(config_path, api_url)


cli.add_command(events)
cli.add_command(watch)
cli.add_command(import_lots)
cli.add_command(delete_event)


if __name__ == "__main__":
    cli()
