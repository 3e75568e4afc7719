"""Tests for concurrent, all-settled image resolution."""

import asyncio

from auctionwatch.domain.models import Lot
from auctionwatch.infrastructure.observability import IMAGE_RESOLUTIONS, get_registry
from auctionwatch.services.images import resolve_lot_images


class _MappingResolver:
    def __init__(self, urls):
        self.urls = urls
        self.calls = []

    async def resolve(self, ref):
        self.calls.append(ref)
        value = self.urls[ref]
        if isinstance(value, Exception):
            raise value
        return value


class _GatedResolver:
    """Only answers once every expected lookup is in flight."""

    def __init__(self, expected):
        self.expected = expected
        self.started = 0
        self.gate = asyncio.Event()

    async def resolve(self, ref):
        self.started += 1
        if self.started == self.expected:
            self.gate.set()
        await self.gate.wait()
        return f"https://cdn.example/{ref}"


def _lot(lot_id, image_ref=None):
    return Lot(id=lot_id, auction_house="RM", title=lot_id, image_ref=image_ref)


def test_failures_keep_original_reference_and_order():
    resolver = _MappingResolver(
        {
            "car-photos/a.jpg": "https://signed/a",
            "car-photos/b.jpg": RuntimeError("storage down"),
            "car-photos/c.jpg": None,
        }
    )
    lots = [
        _lot("1", "car-photos/a.jpg"),
        _lot("2", "car-photos/b.jpg"),
        _lot("3"),
        _lot("4", "car-photos/c.jpg"),
    ]

    resolved = asyncio.run(resolve_lot_images(lots, resolver))

    assert [item.id for item in resolved] == ["1", "2", "3", "4"]
    assert [item.image_url for item in resolved] == [
        "https://signed/a",
        "car-photos/b.jpg",
        None,
        "car-photos/c.jpg",
    ]
    assert "car-photos/c.jpg" in resolver.calls
    assert len(resolver.calls) == 3


def test_lookups_run_concurrently():
    lots = [_lot(str(index), f"car-photos/{index}.jpg") for index in range(5)]
    resolver = _GatedResolver(expected=len(lots))

    async def run():
        return await asyncio.wait_for(resolve_lot_images(lots, resolver), timeout=2)

    resolved = asyncio.run(run())

    assert [item.image_url for item in resolved] == [
        f"https://cdn.example/car-photos/{index}.jpg" for index in range(5)
    ]


def test_empty_snapshot():
    assert asyncio.run(resolve_lot_images([], _MappingResolver({}))) == []


def test_outcomes_are_counted():
    get_registry().clear()
    resolver = _MappingResolver({"a": "https://a", "b": ValueError("bad")})

    asyncio.run(resolve_lot_images([_lot("1", "a"), _lot("2", "b"), _lot("3")], resolver))

    counter = get_registry().counter(IMAGE_RESOLUTIONS)
    assert counter.get({"status": "resolved"}) == 1
    assert counter.get({"status": "failed"}) == 1
    assert counter.get({"status": "passthrough"}) == 1
