"""Tests for the Lot domain model."""

from datetime import datetime, timezone

import pytest

from auctionwatch.domain.models import (
    Lot,
    LotStatus,
    ReserveStatus,
    ResolvedLot,
    parse_timestamp,
)


class TestLotStatus:
    """Tests for LotStatus enum."""

    @pytest.mark.parametrize(
        "input_value,expected",
        [
            ("upcoming", LotStatus.UPCOMING),
            ("Live", LotStatus.LIVE),
            ("live now", LotStatus.LIVE),
            ("sold", LotStatus.SOLD),
            ("SOLD AFTER AUCTION", LotStatus.SOLD),
            ("not_sold", LotStatus.NOT_SOLD),
            ("Not Sold", LotStatus.NOT_SOLD),
            ("unsold", LotStatus.NOT_SOLD),
            ("passed", LotStatus.NOT_SOLD),
            ("withdrawn", LotStatus.WITHDRAWN),
            ("something else", LotStatus.UPCOMING),
            ("", LotStatus.UPCOMING),
            (None, LotStatus.UPCOMING),
        ],
    )
    def test_from_string(self, input_value, expected):
        assert LotStatus.from_string(input_value) == expected


class TestReserveStatus:
    @pytest.mark.parametrize(
        "input_value,expected",
        [
            ("reserve", ReserveStatus.RESERVE),
            ("no_reserve", ReserveStatus.NO_RESERVE),
            ("No Reserve", ReserveStatus.NO_RESERVE),
            ("Offered With Reserve", ReserveStatus.RESERVE),
            ("", ReserveStatus.UNKNOWN),
            (None, ReserveStatus.UNKNOWN),
            ("n/a", ReserveStatus.UNKNOWN),
        ],
    )
    def test_from_string(self, input_value, expected):
        assert ReserveStatus.from_string(input_value) == expected


class TestParseTimestamp:
    def test_zulu_suffix(self):
        assert parse_timestamp("2025-01-18T10:00:00Z") == datetime(
            2025, 1, 18, 10, 0, tzinfo=timezone.utc
        )

    def test_naive_values_are_utc(self):
        parsed = parse_timestamp("2025-01-18")
        assert parsed is not None
        assert parsed.tzinfo == timezone.utc

    @pytest.mark.parametrize("value", [None, "", "   ", "next tuesday", 12345])
    def test_unparseable_values(self, value):
        assert parse_timestamp(value) is None


class TestLot:
    """Tests for Lot domain model."""

    def test_from_dict_reads_camel_case_records(self):
        lot = Lot.from_dict(
            {
                "id": "lot-1",
                "auctionHouse": "RM Sotheby's",
                "title": "1961 Ferrari 250 GT SWB",
                "lotNumber": "112",
                "imageUrl": "car-photos/ferrari.jpg",
                "estimateLow": 8000000,
                "estimateHigh": "10000000",
                "currentBid": None,
                "reserveStatus": "no_reserve",
                "status": "live",
                "auctionDate": "2025-01-18T10:00:00Z",
                "auctionLocation": "Phoenix, AZ",
                "auctionName": "Arizona",
            }
        )

        assert lot.id == "lot-1"
        assert lot.auction_house == "RM Sotheby's"
        assert lot.image_ref == "car-photos/ferrari.jpg"
        assert lot.estimate_low == 8000000
        assert lot.estimate_high == 10000000.0
        assert lot.current_bid is None
        assert lot.reserve_status == ReserveStatus.NO_RESERVE
        assert lot.status == LotStatus.LIVE
        assert lot.auction_name == "Arizona"
        assert lot.currency == "USD"

    def test_from_dict_reads_snake_case_records(self):
        lot = Lot.from_dict(
            {"id": 7, "auction_house": "Bonhams", "title": "Jaguar", "auction_location": "Paris"}
        )
        assert lot.id == "7"
        assert lot.auction_house == "Bonhams"
        assert lot.auction_location == "Paris"
        assert lot.auction_name is None

    def test_from_dict_ignores_malformed_numbers(self):
        lot = Lot.from_dict({"id": "x", "estimateLow": "a lot", "currentBid": True})
        assert lot.estimate_low is None
        assert lot.current_bid is None

    def test_is_open(self):
        assert Lot(id="1", auction_house="H", title="T").is_open
        assert Lot(id="1", auction_house="H", title="T", status=LotStatus.LIVE).is_open
        assert not Lot(id="1", auction_house="H", title="T", status=LotStatus.SOLD).is_open

    def test_headline_price_prefers_sold_price(self):
        lot = Lot(
            id="1",
            auction_house="H",
            title="T",
            estimate_low=100.0,
            current_bid=150.0,
            sold_price=200.0,
        )
        assert lot.headline_price == 200.0
        assert Lot(id="1", auction_house="H", title="T", estimate_low=100.0).headline_price == 100.0
        assert Lot(id="1", auction_house="H", title="T").headline_price is None

    def test_auction_datetime_handles_malformed_dates(self):
        lot = Lot(id="1", auction_house="H", title="T", auction_date="soon")
        assert lot.auction_datetime is None


class TestResolvedLot:
    def test_unresolved_keeps_original_reference(self):
        lot = Lot(id="1", auction_house="H", title="T", image_ref="car-photos/a.jpg")
        resolved = ResolvedLot.unresolved(lot)
        assert resolved.image_url == "car-photos/a.jpg"
        assert resolved.id == "1"
        assert resolved.has_image

    def test_without_image(self):
        resolved = ResolvedLot.unresolved(Lot(id="1", auction_house="H", title="T"))
        assert resolved.image_url is None
        assert not resolved.has_image
