"""Tests for the shopping response decoder."""

from __future__ import annotations

import json
from datetime import datetime, time

import pytest

from clovis_crawler.google.rpc_parser import (
    LOOKAHEAD_CHARS,
    parse_flight_response,
    strip_xssi_prefix,
)

SINGLE_ITINERARY = (
    '[null,null,null,"PBI","Palm Beach International Airport",'
    '"Harry Reid International Airport","LAS",null,[9,30],null,[12,45],195,'
    '[],1,"Airbus A320",["NK","1525",null,"Spirit"]]],'
    '"PBI",[2026,2,10],[9,30],"LAS",[2026,2,10],[12,45],195,[],null],'
    '[[null,182],"TOKEN\\u003dX"]'
)

NAMED_AIRLINE_ONLY = (
    '[["UA",["United"]],[],'
    '"EWR",[2026,3,1],[7,5],"SFO",[2026,3,1],[10,40],395,[],null],'
    '[[null,299],"Q0FGRQ"]'
)

CODE_PAIR_AIRLINE_ONLY = (
    '["B6","JetBlue"],[],'
    '"JFK",[2026,3,2],[6,15],"BOS",[2026,3,2],[7,40],85,[],null],'
    '[[null,89],"QjZKRkI\\u003d"]'
)

CONNECTION = (
    '[null,null,null,"PBI","Palm Beach International Airport",'
    '"Dallas/Fort Worth International Airport","DFW",null,[6],null,[8,20],200,'
    '[],1,"Airbus A321",["AA","2315",null,"American"]],'
    '[null,null,null,"DFW","Dallas/Fort Worth International Airport",'
    '"Harry Reid International Airport","LAS",null,[9,55],null,[11,5],190,'
    '[],1,"Boeing 737",["AA","1130",null,"American"]]],'
    '[[95,"DFW","DFW",null,"Dallas/Fort Worth International Airport"]],'
    '"PBI",[2026,2,10],[6],"LAS",[2026,2,10],[11,5],485,[],null],'
    '[[null,241],"CjRIdHdvc2VnAA\\u003d\\u003d"]'
)


def _escape(text: str) -> str:
    """Push a payload one string-layer deeper, as the RPC stream does."""
    return json.dumps(text)[1:-1]


# ---------------------------------------------------------------------------
# XSSI prefix
# ---------------------------------------------------------------------------


def test_strip_xssi_prefix_removes_prefix_and_whitespace():
    assert strip_xssi_prefix(")]}'\n\n123\n[1]") == "123\n[1]"


def test_strip_xssi_prefix_leaves_plain_text_alone():
    assert strip_xssi_prefix("[1,2]") == "[1,2]"
    assert strip_xssi_prefix("x)]}'") == "x)]}'"


# ---------------------------------------------------------------------------
# Single anchor
# ---------------------------------------------------------------------------


def test_single_itinerary_decodes_every_field():
    flights = parse_flight_response(")]}'\n" + SINGLE_ITINERARY)

    assert len(flights) == 1
    f = flights[0]
    assert f.price == 182
    assert f.booking_token == "TOKEN=X"
    assert f.duration == "3h 15m"
    assert f.origin == "PBI"
    assert f.destination == "LAS"
    assert f.departure == datetime(2026, 2, 10, 9, 30)
    assert f.arrival == datetime(2026, 2, 10, 12, 45)
    assert f.airline == "Spirit"
    assert f.airline_code == "NK"
    assert f.flight_numbers == ["NK1525"]
    assert f.stops == 0

    (seg,) = f.segments
    assert seg.origin_name == "Palm Beach International Airport"
    assert seg.destination_name == "Harry Reid International Airport"
    assert seg.departure_time == time(9, 30)
    assert seg.flight_number == "NK1525"


@pytest.mark.parametrize(
    "payload",
    [
        SINGLE_ITINERARY,
        NAMED_AIRLINE_ONLY,
        CODE_PAIR_AIRLINE_ONLY,
        CONNECTION,
        SINGLE_ITINERARY.replace("TOKEN\\u003dX", "AB\\u003dCD\\u003d\\u003d"),
    ],
    ids=["segment", "named-airline", "code-pair-airline", "connection", "padded-token"],
)
def test_escaped_and_unescaped_payloads_decode_identically(payload):
    plain = parse_flight_response(payload)
    escaped = parse_flight_response(_escape(payload))
    assert plain
    assert plain == escaped


def test_missing_minute_means_on_the_hour():
    text = SINGLE_ITINERARY.replace('[2026,2,10],[9,30],"LAS"', '[2026,2,10],[9],"LAS"')
    (f,) = parse_flight_response(text)
    assert f.departure == datetime(2026, 2, 10, 9, 0)


def test_price_beyond_lookahead_is_zero_with_empty_token():
    anchor = '"PBI",[2026,2,10],[9,30],"LAS",[2026,2,10],[12,45],195,'
    text = anchor + "0," * LOOKAHEAD_CHARS + '[[null,182],"TOKEN"]'
    (f,) = parse_flight_response(text)
    assert f.price == 0
    assert f.booking_token == ""


def test_token_with_equals_in_the_middle():
    text = SINGLE_ITINERARY.replace("TOKEN\\u003dX", "AB\\u003dCD\\u003d\\u003d")
    (f,) = parse_flight_response(text)
    assert f.booking_token == "AB=CD=="


def test_airline_fallback_when_no_flight_tuple():
    (f,) = parse_flight_response(NAMED_AIRLINE_ONLY)
    assert f.airline_code == "UA"
    assert f.airline == "United"
    assert f.segments == []
    assert f.flight_numbers == []


def test_airline_fallback_from_code_pair():
    (f,) = parse_flight_response(CODE_PAIR_AIRLINE_ONLY)
    assert (f.airline_code, f.airline) == ("B6", "JetBlue")
    assert f.booking_token == "QjZKRkI="


def test_connection_recovers_segments_and_layover():
    (f,) = parse_flight_response(CONNECTION)
    assert f.flight_numbers == ["AA2315", "AA1130"]
    assert f.stops == 1
    assert [layover.airport for layover in f.layovers] == ["DFW"]


# ---------------------------------------------------------------------------
# Golden multi-itinerary response
# ---------------------------------------------------------------------------


def test_golden_response_sorted_and_deduplicated(shopping_response):
    flights = parse_flight_response(shopping_response)

    assert [f.price for f in flights] == [150, 182, 241]
    assert [f.airline_code for f in flights] == ["DL", "NK", "AA"]


def test_golden_response_tokens_unescaped(shopping_response):
    flights = parse_flight_response(shopping_response)
    tokens = {f.airline_code: f.booking_token for f in flights}
    assert tokens == {
        "DL": "CjRIZGVsdGExNDAy",
        "NK": "CjRIbm9u=c3RvcA==",
        "AA": "CjRIdHdvc2VnAA==",
    }


def test_golden_response_connection(shopping_response):
    flights = parse_flight_response(shopping_response)
    aa = next(f for f in flights if f.airline_code == "AA")

    assert aa.stops == 1
    assert aa.flight_numbers == ["AA2315", "AA1130"]
    assert [s.origin for s in aa.segments] == ["PBI", "DFW"]
    assert [s.destination for s in aa.segments] == ["DFW", "LAS"]
    assert aa.segments[0].departure_time == time(6, 0)
    assert aa.departure == datetime(2026, 2, 10, 6, 0)
    assert aa.duration == "8h 5m"
    (layover,) = aa.layovers
    assert layover.airport == "DFW"
    assert layover.duration == "1h 35m"


def test_golden_stream_matches_unwrapped_payload(inner_payload, shopping_response):
    unwrapped = parse_flight_response(inner_payload)
    assert unwrapped == parse_flight_response(shopping_response)


# ---------------------------------------------------------------------------
# Degenerate input
# ---------------------------------------------------------------------------


def test_empty_and_blocked_payloads_yield_nothing():
    assert parse_flight_response("") == []
    assert parse_flight_response(")]}'\n\n[[\"er\",null,null,null,null,500]]") == []
    blocked = "<html>Our systems have detected unusual traffic</html>"
    assert parse_flight_response(blocked) == []


def test_undecodable_anchor_is_skipped(caplog):
    bad = '"JFK",[2026,13,40],[9,30],"LAX",[2026,13,40],[12,45],300,'
    with caplog.at_level("WARNING"):
        flights = parse_flight_response(bad + SINGLE_ITINERARY)

    assert [f.origin for f in flights] == ["PBI"]
    assert "Skipping undecodable itinerary" in caplog.text


def test_identical_prices_keep_scan_order():
    first = SINGLE_ITINERARY.replace("[9,30],\"LAS\"", "[8,0],\"LAS\"")
    second = SINGLE_ITINERARY.replace(
        '"NK","1525",null,"Spirit"', '"F9","2101",null,"Frontier"'
    )
    flights = parse_flight_response(first + "," + "0," * 500 + second)

    assert [f.airline_code for f in flights] == ["NK", "F9"]
