"""Tests for the tfs / tfu deep-link encoder."""

from __future__ import annotations

from datetime import date
from urllib.parse import parse_qs, urlsplit

import pytest

from clovis_crawler.google.tfs_builder import (
    TFS_ALL_ONES,
    FlightData,
    TFSData,
    b64url,
    b64url_decode,
    booking_url,
    build_tfs_round_trip_selected,
    build_tfs_search,
    build_tfu,
    one_way_search_url,
    parse_tfs,
    parse_tfu,
    pick_airline_and_flight_number,
    round_trip_search_url,
    selected_round_trip_booking_url,
    selected_search_url,
)

OUTBOUND = FlightData(
    date="2026-02-10",
    from_airport="PBI",
    to_airport="LAS",
    airline_code="NK",
    flight_number="1525",
)
INBOUND = FlightData(
    date="2026-02-17",
    from_airport="LAS",
    to_airport="PBI",
    airline_code="NK",
    flight_number="1526",
)

# One unselected PBI->LAS leg on 2026-02-10.
ONE_WAY_SEARCH_BYTES = (
    b"\x08\x1c\x10\x02"
    b"\x1a\x1e\x12\x0a2026-02-10"
    b"\x6a\x07\x08\x01\x12\x03PBI"
    b"\x72\x07\x08\x01\x12\x03LAS"
    b"\x40\x01\x48\x01\x70\x01"
    b"\x82\x01\x0b\x08" + b"\xff" * 9 + b"\x01"
    b"\x98\x01\x02"
)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def test_b64url_has_no_padding():
    assert b64url(b"\xfb\xff") == "-_8"
    assert b64url_decode("-_8") == b"\xfb\xff"


def test_one_way_search_bytes():
    bare = FlightData(date="2026-02-10", from_airport="PBI", to_airport="LAS")
    assert TFSData(flight_data=[bare]).to_bytes() == ONE_WAY_SEARCH_BYTES


def test_tfu_bytes():
    assert b64url_decode(build_tfu("T")) == b"\x0a\x01T\x12\x02\x08\x00\x22\x00"


def test_tfs_rejects_three_legs():
    with pytest.raises(ValueError):
        TFSData(flight_data=[OUTBOUND, INBOUND, OUTBOUND])


# ---------------------------------------------------------------------------
# tfs
# ---------------------------------------------------------------------------


def test_round_trip_selected_envelope():
    tfs = parse_tfs(build_tfs_round_trip_selected(OUTBOUND, INBOUND))

    assert tfs.header == 28
    assert tfs.version == 2
    assert len(tfs.legs) == 2
    assert tfs.flag_8 == tfs.flag_9 == tfs.flag_14 == 1
    assert tfs.mask.value == TFS_ALL_ONES
    assert tfs.trip == 1


def test_selected_leg_layout():
    tfs = parse_tfs(build_tfs_round_trip_selected(OUTBOUND, INBOUND))
    out_leg, in_leg = tfs.legs

    assert out_leg.date == "2026-02-10"
    selection = out_leg.selection
    assert (
        selection.origin,
        selection.date,
        selection.destination,
        selection.airline,
        selection.flight_number,
    ) == ("PBI", "2026-02-10", "LAS", "NK", "1525")
    assert (out_leg.origin.kind, out_leg.origin.code) == (1, "PBI")
    assert (out_leg.destination.kind, out_leg.destination.code) == (1, "LAS")
    assert in_leg.selection.flight_number == "1526"


def test_round_trip_selected_requires_flight():
    bare = FlightData(date="2026-02-17", from_airport="LAS", to_airport="PBI")
    with pytest.raises(ValueError):
        build_tfs_round_trip_selected(OUTBOUND, bare)


def test_search_tfs_has_no_selection():
    tfs = parse_tfs(build_tfs_search([OUTBOUND]))

    assert tfs.trip == 2
    (leg,) = tfs.legs
    assert not leg.HasField("selection")
    assert leg.HasField("origin")


def test_search_tfs_two_legs_is_round_trip():
    tfs = parse_tfs(build_tfs_search([OUTBOUND, INBOUND]))
    assert tfs.trip == 1
    assert [leg.origin.code for leg in tfs.legs] == ["PBI", "LAS"]


def test_tfu_layout():
    tfu = parse_tfu(build_tfu("CjRIbm9u=c3RvcA=="))
    assert tfu.token == "CjRIbm9u=c3RvcA=="
    assert tfu.HasField("state")
    assert tfu.state.value == 0
    assert tfu.HasField("extra")


# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------


def _query(url: str) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(urlsplit(url).query).items()}


def test_booking_url(crawler_settings):
    url = booking_url("abc", config=crawler_settings)
    assert url.startswith("https://www.google.com/travel/flights/booking?")
    assert _query(url) == {"tfs": "abc", "hl": "en-US", "gl": "US", "curr": "USD"}


def test_round_trip_search_url(crawler_settings):
    url = round_trip_search_url(
        "PBI", "LAS", date(2026, 2, 10), date(2026, 2, 17), config=crawler_settings
    )
    assert urlsplit(url).path == "/travel/flights/search"
    query = _query(url)
    assert query["q"] == "Flights from PBI to LAS on 2026-02-10 returning 2026-02-17"
    assert query["curr"] == "USD"


def test_one_way_and_selected_search_urls(crawler_settings):
    day = date(2026, 2, 10)
    plain = _query(one_way_search_url("PBI", "LAS", day, config=crawler_settings))
    selected = _query(
        selected_search_url("PBI", "LAS", day, "TOKEN=X", config=crawler_settings)
    )

    assert "tfu" not in plain
    assert selected["tfs"] == plain["tfs"]
    assert parse_tfu(selected["tfu"]).token == "TOKEN=X"


# ---------------------------------------------------------------------------
# Flight selection
# ---------------------------------------------------------------------------


def test_pick_airline_and_flight_number(make_itinerary):
    itinerary = make_itinerary(airline_code=" nk ", flight_number="NK1525")
    assert pick_airline_and_flight_number(itinerary) == ("NK", "1525")


def test_pick_falls_back_to_flight_numbers(make_itinerary):
    itinerary = make_itinerary(flight_number="UA 412", with_segment=False)
    assert pick_airline_and_flight_number(itinerary) == ("NK", "412")


def test_selected_booking_url_needs_both_flights(make_itinerary, crawler_settings):
    outbound = make_itinerary()
    inbound = make_itinerary(origin="LAS", destination="PBI", flight_number="NK1526")
    missing = make_itinerary(flight_number="", with_segment=False)

    url = selected_round_trip_booking_url(
        outbound, inbound, "PBI", "LAS", date(2026, 2, 10), date(2026, 2, 17),
        config=crawler_settings,
    )
    assert url is not None
    tfs = _query(url)["tfs"]
    assert tfs == build_tfs_round_trip_selected(OUTBOUND, INBOUND)

    assert (
        selected_round_trip_booking_url(
            outbound, missing, "PBI", "LAS", date(2026, 2, 10), date(2026, 2, 17),
            config=crawler_settings,
        )
        is None
    )
