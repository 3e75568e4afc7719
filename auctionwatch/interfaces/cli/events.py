"""Text viewer for auction events built from the lot feed."""

from __future__ import annotations

import asyncio
import json

import click
from rich.console import Console
from rich.table import Table

from auctionwatch.domain.models import AuctionEvent
from auctionwatch.interfaces.cli.context import CLIContext, auction_event_service
from auctionwatch.services.dto import AuctionEventView

console = Console()


def format_price(amount: float | None, currency: str = "USD") -> str:
    if not amount:
        return "-"
    return f"{currency} {amount:,.0f}"


def events_table(events: list[AuctionEvent], *, selected_key: str | None = None) -> Table:
    table = Table(title=f"{len(events)} auction event(s)")
    table.add_column("Date")
    table.add_column("Event")
    table.add_column("House")
    table.add_column("Location")
    table.add_column("Lots", justify="right")
    table.add_column("Key", style="dim")
    for event in events:
        marker = "▶ " if event.key == selected_key else ""
        table.add_row(
            event.date or "Date TBA",
            f"{marker}{event.name}",
            event.auction_house,
            event.location,
            str(event.lot_count),
            event.key,
        )
    return table


def lots_table(event: AuctionEvent) -> Table:
    table = Table(title=f"{event.name} ({event.lot_count} lots)")
    table.add_column("Lot", justify="right")
    table.add_column("Title")
    table.add_column("Estimate")
    table.add_column("Bid / Sold")
    table.add_column("Status")
    for resolved in event.lots:
        lot = resolved.lot
        estimate = format_price(lot.estimate_low, lot.currency)
        if lot.estimate_high:
            estimate = f"{estimate} - {format_price(lot.estimate_high, lot.currency)}"
        table.add_row(
            lot.lot_number or "-",
            lot.title,
            estimate,
            format_price(lot.sold_price or lot.current_bid, lot.currency),
            lot.status.value,
        )
    return table


async def _load_events(cli_context: CLIContext) -> list[AuctionEvent]:
    async with auction_event_service(cli_context) as (service, _):
        return service.events


@click.command()
@click.option("--lots", "show_lots", is_flag=True, help="Also list the lots of every event.")
@click.option("--json-output", is_flag=True, help="Output the events as JSON.")
@click.pass_obj
def events(cli_context: CLIContext, show_lots: bool, json_output: bool) -> None:
    """Show auction events grouped from the current lots."""

    auction_events = asyncio.run(_load_events(cli_context))

    if json_output:
        payload = [
            AuctionEventView.from_domain(event, include_lots=show_lots).model_dump(mode="json")
            for event in auction_events
        ]
        click.echo(json.dumps(payload, indent=2))
        return

    if not auction_events:
        console.print("[yellow]No auction events found.[/yellow]")
        return

    console.print(events_table(auction_events))
    if show_lots:
        for event in auction_events:
            console.print(lots_table(event))
