from __future__ import annotations

import asyncio
import json
from contextlib import nullcontext
from pathlib import Path

from click.testing import CliRunner

from auctionwatch.app.config import Settings
from auctionwatch.infrastructure.feeds import InMemoryLotFeed, SubscriptionError
from auctionwatch.interfaces.cli import cli
from auctionwatch.interfaces.cli.context import CLIContext, build_cli_context


class _EchoResolver:
    async def resolve(self, ref):
        return ref


class _LiveFeed(InMemoryLotFeed):
    """Feed that receives one more lot as soon as someone subscribes."""

    def __init__(self, records, arriving):
        super().__init__(records)
        self.arriving = arriving
        self._arrival = None

    async def subscribe(self, on_snapshot):
        unsubscribe = await super().subscribe(on_snapshot)
        self._arrival = asyncio.create_task(self.put_lot(self.arriving))
        return unsubscribe


class _OfflineFeed(InMemoryLotFeed):
    async def subscribe(self, on_snapshot):
        raise SubscriptionError("Could not subscribe to lot updates: offline")


def _records():
    return [
        {
            "id": "1",
            "auctionHouse": "RM",
            "title": "Ferrari 250 GT",
            "auctionName": "Arizona",
            "auctionDate": "2025-01-18",
            "estimateLow": 8000000,
        },
        {"id": "2", "auctionHouse": "RM", "title": "Porsche 959", "auctionName": "Arizona"},
        {
            "id": "3",
            "auctionHouse": "Bonhams",
            "title": "Jaguar E-Type",
            "auctionLocation": "Scottsdale",
            "auctionDate": "2025-01-16",
        },
    ]


def _context(feed: InMemoryLotFeed) -> CLIContext:
    return CLIContext(
        settings=Settings(),
        feed_factory=lambda settings: nullcontext(feed),
        resolver_factory=lambda settings: nullcontext(_EchoResolver()),
    )


def test_events_json_output() -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli, ["events", "--json-output"], obj=_context(InMemoryLotFeed(_records()))
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [event["key"] for event in payload] == ["Bonhams-Scottsdale", "RM-Arizona"]
    assert payload[1]["lot_count"] == 2
    assert payload[1]["lots"] == []


def test_events_json_output_with_lots() -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli, ["events", "--json-output", "--lots"], obj=_context(InMemoryLotFeed(_records()))
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [lot["id"] for lot in payload[1]["lots"]] == ["1", "2"]


def test_events_text_output() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["events"], obj=_context(InMemoryLotFeed(_records())))

    assert result.exit_code == 0, result.output
    assert "2 auction event(s)" in result.output
    assert "Scottsdale" in result.output


def test_events_without_lots() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["events"], obj=_context(InMemoryLotFeed()))

    assert result.exit_code == 0
    assert "No auction events found." in result.output


def test_watch_stops_after_max_snapshots() -> None:
    arriving = {"id": "4", "auctionHouse": "RM", "title": "Shelby Cobra", "auctionName": "Arizona"}
    feed = _LiveFeed(_records(), arriving)
    runner = CliRunner()
    result = runner.invoke(
        cli, ["watch", "--select", "RM-Arizona", "--max-snapshots", "1"], obj=_context(feed)
    )

    assert result.exit_code == 0, result.output
    # The startup read draws the first table; the live push draws the second.
    assert "Arizona (2 lots)" in result.output
    assert "Arizona (3 lots)" in result.output
    assert feed.subscriber_count == 0


def test_watch_reports_subscription_failure() -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli, ["watch", "--max-snapshots", "1"], obj=_context(_OfflineFeed(_records()))
    )

    assert result.exit_code == 1
    assert "offline" in result.output


def test_watch_unknown_selection() -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["watch", "--select", "Nobody-Nowhere", "--max-snapshots", "1"],
        obj=_context(InMemoryLotFeed(_records())),
    )

    assert result.exit_code == 1
    assert "not found" in result.output


def test_import_command(tmp_path: Path) -> None:
    export = tmp_path / "export.json"
    export.write_text(
        json.dumps({"auctionName": "Monterey", "lots": [{"title": "Ford GT40"}, {"title": "Cobra"}]}),
        encoding="utf-8",
    )
    feed = InMemoryLotFeed()
    runner = CliRunner()

    result = runner.invoke(cli, ["import", str(export)], obj=_context(feed))

    assert result.exit_code == 0, result.output
    assert "Imported 2 auction lot(s)" in result.output
    assert [lot.title for lot in feed.snapshot()] == ["Ford GT40", "Cobra"]


def test_import_command_rejects_bad_payload(tmp_path: Path) -> None:
    export = tmp_path / "export.json"
    export.write_text(json.dumps({"lotsByAuctionId": {}}), encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(cli, ["import", str(export)], obj=_context(InMemoryLotFeed()))

    assert result.exit_code == 1
    assert "No auctions found" in result.output


def test_delete_event_command() -> None:
    feed = InMemoryLotFeed(_records())
    runner = CliRunner()

    result = runner.invoke(cli, ["delete-event", "RM-Arizona", "--yes"], obj=_context(feed))

    assert result.exit_code == 0, result.output
    assert "Deleted 2 lot(s)" in result.output
    assert [lot.id for lot in feed.snapshot()] == ["3"]


def test_delete_event_can_be_aborted() -> None:
    feed = InMemoryLotFeed(_records())
    runner = CliRunner()

    result = runner.invoke(cli, ["delete-event", "RM-Arizona"], obj=_context(feed), input="n\n")

    assert result.exit_code == 0, result.output
    assert "Aborted." in result.output
    assert len(feed.snapshot()) == 3


def test_build_cli_context_api_url_override(monkeypatch) -> None:
    monkeypatch.delenv("AUCTIONWATCH_CONFIG", raising=False)
    monkeypatch.delenv("AUCTIONWATCH_API_URL", raising=False)

    context = build_cli_context(api_url="http://data.test/")

    assert context.settings.api_url == "http://data.test"


def test_delete_unknown_event() -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli, ["delete-event", "Nobody-Nowhere", "--yes"], obj=_context(InMemoryLotFeed(_records()))
    )

    assert result.exit_code == 1
    assert "Auction event 'Nobody-Nowhere' not found" in result.output
