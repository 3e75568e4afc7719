"""Live view of auction events that follows feed updates."""

from __future__ import annotations

import asyncio

import click
from rich.console import Console

from auctionwatch.domain.selection import EventNotFoundError
from auctionwatch.infrastructure.feeds import SubscriptionError
from auctionwatch.interfaces.cli.context import CLIContext, auction_event_service
from auctionwatch.interfaces.cli.events import events_table, lots_table
from auctionwatch.services.auction_events import AuctionEventService
from auctionwatch.services.dto import EventPayload

console = Console()


async def _watch(
    cli_context: CLIContext, select_key: str | None, max_snapshots: int | None
) -> None:
    done = asyncio.Event()
    holder: dict[str, AuctionEventService] = {}
    live_updates = 0

    async def on_event(payload: EventPayload) -> None:
        nonlocal live_updates
        if payload.get("type") == "selection_changed" and payload.get("reason") == "event_removed":
            console.print(f"[yellow]Event {payload.get('previous_key')} disappeared.[/yellow]")
        # The bulk read at startup is drawn once below; only feed pushes count.
        if payload.get("type") != "auction_events_updated":
            return
        if payload.get("source") != "subscription":
            return
        live_updates += 1
        service = holder.get("service")
        if service is not None:
            console.print(events_table(service.events, selected_key=service.selected_key))
            if service.selected_event is not None:
                console.print(lots_table(service.selected_event))
        if max_snapshots is not None and live_updates >= max_snapshots:
            done.set()

    async with auction_event_service(
        cli_context, event_publisher=on_event, live=True
    ) as (service, _):
        holder["service"] = service
        console.print(events_table(service.events))
        if select_key:
            event = await service.select(select_key)
            console.print(lots_table(event))
        await done.wait()


@click.command()
@click.option("--select", "select_key", default=None, help="Event key to keep open.")
@click.option(
    "--max-snapshots",
    type=int,
    default=None,
    help="Stop after this many live updates (default: run until interrupted).",
)
@click.pass_context
def watch(ctx: click.Context, select_key: str | None, max_snapshots: int | None) -> None:
    """Follow lot updates and redraw the auction events."""

    cli_context: CLIContext = ctx.obj
    try:
        asyncio.run(_watch(cli_context, select_key, max_snapshots))
    except (EventNotFoundError, SubscriptionError) as exc:
        console.print(f"[red]{exc}[/red]")
        ctx.exit(1)
    except KeyboardInterrupt:
        console.print("Stopped watching.")
