"""CLI command to delete every lot of an auction event."""

from __future__ import annotations

import asyncio

import click
from rich.console import Console

from auctionwatch.domain.selection import EventNotFoundError
from auctionwatch.interfaces.cli.context import CLIContext, auction_event_service
from auctionwatch.services.lot_management import BulkDeleteResult

console = Console()


async def _delete_event(
    cli_context: CLIContext, key: str, confirm: bool
) -> BulkDeleteResult | None:
    async with auction_event_service(cli_context) as (service, management):
        event = service.get_event(key)
        if confirm and not click.confirm(
            f"Delete all {event.lot_count} lot(s) in {event.name}?", default=False
        ):
            return None
        return await management.delete_event(service, key)


@click.command(name="delete-event")
@click.argument("key")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def delete_event(ctx: click.Context, key: str, assume_yes: bool) -> None:
    """Delete all lots of the auction event KEY."""

    cli_context: CLIContext = ctx.obj
    try:
        result = asyncio.run(_delete_event(cli_context, key, confirm=not assume_yes))
    except EventNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        ctx.exit(1)

    if result is None:
        console.print("Aborted.")
        return

    console.print(f"[green]Deleted {len(result.deleted)} lot(s) from {key}.[/green]")
    for lot_id, error in result.failed.items():
        console.print(f"[red]Failed to delete lot {lot_id}: {error}[/red]")
    if not result.complete:
        ctx.exit(1)
