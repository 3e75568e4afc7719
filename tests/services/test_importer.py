"""Tests for normalising browser-extension lot exports."""

import pytest

from auctionwatch.services.importer import (
    PayloadFormatError,
    detect_auction_house_from_url,
    flatten_payload,
    normalize_lot_number,
    normalize_payload,
    parse_estimate_range,
    parse_money_value,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("$1,250,000", 1250000.0),
        ("USD 95,000", 95000.0),
        ("", None),
        (None, None),
        ("TBA", None),
    ],
)
def test_parse_money_value(value, expected):
    assert parse_money_value(value) == expected


def test_parse_estimate_range():
    assert parse_estimate_range("$100,000 - $150,000") == (100000.0, 150000.0)
    assert parse_estimate_range("$80,000") == (80000.0, None)
    assert parse_estimate_range("Estimate on request") == (None, None)
    assert parse_estimate_range(None) == (None, None)


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://www.broadarrowauctions.com/vehicles/az25", "Broad Arrow"),
        ("https://cars.bonhams.com/auction/30000/", "Bonhams"),
        ("https://rmsothebys.com/en/auctions/az25/lots", "RM Sotheby's"),
        ("https://example.com", "Unknown"),
        (None, "Unknown"),
    ],
)
def test_detect_auction_house_from_url(url, expected):
    assert detect_auction_house_from_url(url) == expected


def test_normalize_lot_number():
    assert normalize_lot_number("112", None, 0) == "112"
    assert normalize_lot_number("Lot 007", None, 0) == "7"
    assert normalize_lot_number("Sold", "https://rmsothebys.com/lots/r0045-1961-ferrari/", 3) == "45"
    assert normalize_lot_number(None, "https://example.com/lots/not-a-slug", 3) == "4"


def test_bare_list_payload():
    lots = flatten_payload(
        [
            {
                "lotNumber": "12",
                "lotTitle": "1955 Mercedes-Benz 300 SL Gullwing",
                "estimate": "$1,300,000 - $1,600,000",
                "statusLabel": "Sold",
                "currentBid": "$1,450,000",
                "lotUrl": "https://rmsothebys.com/en/auctions/az25/lots/r0012-gullwing/",
                "reserveStatus": "No Reserve",
            },
            "not a lot",
        ]
    )

    assert len(lots) == 1
    lot = lots[0]
    assert lot.auction_house == "RM Sotheby's"
    assert lot.title == "1955 Mercedes-Benz 300 SL Gullwing"
    assert (lot.estimate_low, lot.estimate_high) == (1300000.0, 1600000.0)
    assert lot.status == "sold"
    assert lot.sold_price == 1450000.0
    assert lot.reserve_status == "no_reserve"
    assert lot.auction_name == "Upcoming Auction"


def test_lots_with_auction_metadata():
    lots = flatten_payload(
        {
            "auctionName": "Scottsdale 2025",
            "location": "Scottsdale, AZ",
            "auctionDate": "2025-01-16",
            "auctionUrl": "https://cars.bonhams.com/auction/30000/",
            "lots": [{"title": "Jaguar E-Type"}, {"title": "Porsche 356"}],
        }
    )

    assert [lot.title for lot in lots] == ["Jaguar E-Type", "Porsche 356"]
    assert all(lot.auction_house == "Bonhams" for lot in lots)
    assert all(lot.auction_name == "Scottsdale 2025" for lot in lots)
    assert all(lot.auction_location == "Scottsdale, AZ" for lot in lots)
    assert [lot.lot_number for lot in lots] == ["1", "2"]


def test_lots_by_auction_id_payload():
    lots = flatten_payload(
        {
            "auctions": [
                {
                    "auctionId": "az25",
                    "title": "Arizona",
                    "location": "Phoenix, AZ",
                    "biddingStartDateTime": {"iso": "2025-01-23T17:00:00Z"},
                }
            ],
            "lotsByAuctionId": {
                "az25": [{"lotTitle": "Ferrari 275 GTB", "auctionHouse": "RM Sotheby's"}],
                "mo25": [{"lotTitle": "Ford GT40"}],
            },
        }
    )

    assert len(lots) == 2
    arizona, monterey = lots
    assert arizona.auction_name == "Arizona"
    assert arizona.auction_date == "2025-01-23T17:00:00Z"
    assert arizona.auction_location == "Phoenix, AZ"
    assert monterey.auction_name == "mo25"
    assert monterey.auction_house == "Unknown"


def test_to_record_uses_data_service_keys():
    record = flatten_payload([{"title": "Lancia Stratos", "auctionHouse": "Bonhams"}])[0].to_record()
    assert record["auctionHouse"] == "Bonhams"
    assert record["title"] == "Lancia Stratos"
    assert record["lotNumber"] == "1"
    assert "auction_house" not in record


@pytest.mark.parametrize(
    "payload,message",
    [
        (None, "No data found in JSON."),
        ([1, 2], "No lot objects found in the array."),
        ({"lotsByAuctionId": {}}, "No auctions found in lotsByAuctionId."),
        ({"something": "else"}, "Expected an array of lots"),
    ],
)
def test_normalize_payload_rejects_empty_payloads(payload, message):
    with pytest.raises(PayloadFormatError, match=message):
        normalize_payload(payload)
