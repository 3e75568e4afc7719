"""CLI command to import lots exported by the browser extension."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import click
from rich.console import Console

from auctionwatch.interfaces.cli.context import CLIContext
from auctionwatch.services.importer import PayloadFormatError
from auctionwatch.services.lot_management import ImportResult, LotManagementService

console = Console()


async def _import(cli_context: CLIContext, payload: Any) -> ImportResult:
    async with cli_context.feed_factory(cli_context.settings) as feed:
        return await LotManagementService(feed).import_payload(payload)


@click.command(name="import")
@click.argument("json_file", type=click.File("r", encoding="utf-8"))
@click.pass_context
def import_lots(ctx: click.Context, json_file) -> None:
    """Import lots from an extension JSON export (use - for stdin)."""

    cli_context: CLIContext = ctx.obj
    try:
        payload = json.load(json_file)
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid JSON: {exc}[/red]")
        ctx.exit(1)

    try:
        result = asyncio.run(_import(cli_context, payload))
    except PayloadFormatError as exc:
        console.print(f"[red]{exc}[/red]")
        ctx.exit(1)

    if result.failed:
        console.print(
            f"[yellow]Imported {result.imported_count} lot(s), {result.failed} failed.[/yellow]"
        )
    else:
        console.print(f"[green]Imported {result.imported_count} auction lot(s).[/green]")
