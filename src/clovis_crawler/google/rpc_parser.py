"""Decode ``GetShoppingResults`` responses into :class:`Itinerary` records.

The response body is not valid JSON once the XSSI prefix is removed: it is a
chunked stream whose payload is JSON text embedded, at varying depths, inside
other JSON strings. The same structural quote therefore shows up both as
``"`` and as ``\\"`` depending on where a record sits. Rather than unwrapping
the layers, the decoder scans the raw text in two passes:

1. find *route anchors* (origin, departure date/time, destination, arrival
   date/time, total minutes), one per itinerary;
2. around each anchor, look back a bounded window for segments, flight
   numbers, layovers and the airline, and look ahead a bounded window for the
   ``[[null, price], "token"]`` tuple.

Every sub-pattern accepts an optional backslash before each quote.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, time

from pydantic import ValidationError

from clovis_core.schemas import Itinerary, Layover, Segment

logger = logging.getLogger(__name__)

LOOKBEHIND_CHARS = 800
LOOKAHEAD_CHARS = 1500

_XSSI_PREFIX_RE = re.compile(r"^\)\]\}'\s*")

# Optional escape before a structural quote.
_Q = r'\\?"'

# ---------------------------------------------------------------------------
# Pass 1: anchor grammar
# ---------------------------------------------------------------------------

_ROUTE_RE = re.compile(
    rf"{_Q}([A-Z]{{3}}){_Q},"
    r"\[(\d{4}),(\d{1,2}),(\d{1,2})\],\[(\d{1,2})(?:,(\d{1,2}))?\],"
    rf"{_Q}([A-Z]{{3}}){_Q},"
    r"\[(\d{4}),(\d{1,2}),(\d{1,2})\],\[(\d{1,2})(?:,(\d{1,2}))?\],"
    r"(\d+),"
)

# ---------------------------------------------------------------------------
# Pass 2: satellite patterns
# ---------------------------------------------------------------------------

# [null,null,null,"ORG","Origin name","Dest name","DST",null,[h,m],null,[h,m],min,
#  ...["XX","123",null,"Airline"]]
_SEGMENT_RE = re.compile(
    rf"\[null,null,null,{_Q}([A-Z]{{3}}){_Q},{_Q}([^\"\\]+){_Q},{_Q}([^\"\\]+){_Q},"
    rf"{_Q}([A-Z]{{3}}){_Q},null,"
    r"\[(\d+)(?:,(\d+))?\],null,\[(\d+)(?:,(\d+))?\],(\d+),"
    rf".*?\[{_Q}([A-Z0-9]{{2}}){_Q},{_Q}(\d+){_Q},null,{_Q}([^\"\\]+){_Q}\]"
)

# ["XX","123",null,"Airline"]
_FLIGHT_NUMBER_RE = re.compile(
    rf"\[{_Q}([A-Z0-9]{{2}}){_Q},{_Q}(\d+){_Q},null,{_Q}([^\"\\]+){_Q}\]"
)

# [[minutes,"AAA","AAA",null,"Airport name"
_LAYOVER_RE = re.compile(
    rf"\[\[(\d+),{_Q}([A-Z]{{3}}){_Q},{_Q}[A-Z]{{3}}{_Q},null,{_Q}([^\"\\]+){_Q}"
)

# Airline fallbacks, tightest first; the last match in the window wins.
_AIRLINE_FALLBACK_RES = (
    re.compile(rf"\[\[{_Q}([A-Z0-9]{{2}}){_Q},\[{_Q}([^\"\\]+){_Q}\]"),
    re.compile(rf"\[{_Q}([A-Z0-9]{{2}}){_Q},{_Q}([^\"\\]+){_Q}"),
)

# [[null,PRICE],"TOKEN"] where "=" may arrive as \u003d or \\u003d
_PRICE_TOKEN_RE = re.compile(
    rf"\[\[null,(\d+)\],{_Q}((?:[A-Za-z0-9+/_=-]|\\{{1,2}}u003d)+){_Q}\]"
)
_ESCAPED_EQUALS_RE = re.compile(r"\\{1,2}u003d")


def strip_xssi_prefix(raw: str) -> str:
    """Drop the ``)]}'`` anti-hijacking prefix and the whitespace after it."""
    return _XSSI_PREFIX_RE.sub("", raw, count=1)


def _clock(hour: str | None, minute: str | None) -> time:
    return time(int(hour or 0), int(minute or 0))


def _find_segments(window: str) -> list[Segment]:
    segments: list[Segment] = []
    for m in _SEGMENT_RE.finditer(window):
        segments.append(
            Segment(
                origin=m.group(1),
                origin_name=m.group(2),
                destination_name=m.group(3),
                destination=m.group(4),
                departure_time=_clock(m.group(5), m.group(6)),
                arrival_time=_clock(m.group(7), m.group(8)),
                duration_minutes=int(m.group(9)),
                flight_number=f"{m.group(10)}{m.group(11)}",
                airline=m.group(12),
            )
        )
    return segments


def _find_layovers(window: str) -> list[Layover]:
    return [
        Layover(
            airport=m.group(2),
            airport_name=m.group(3),
            duration_minutes=int(m.group(1)),
        )
        for m in _LAYOVER_RE.finditer(window)
    ]


def _fallback_airline(window: str) -> tuple[str, str]:
    for pattern in _AIRLINE_FALLBACK_RES:
        matches = pattern.findall(window)
        if matches:
            code, name = matches[-1]
            return code, name
    return "", ""


def _find_price_and_token(window: str) -> tuple[int, str]:
    m = _PRICE_TOKEN_RE.search(window)
    if m is None:
        return 0, ""
    return int(m.group(1)), _ESCAPED_EQUALS_RE.sub("=", m.group(2))


def _decode_anchor(text: str, anchor: re.Match[str]) -> Itinerary:
    """Recover one itinerary from the text surrounding a route anchor."""
    start = anchor.start()
    before = text[max(0, start - LOOKBEHIND_CHARS) : start]
    after = text[start : start + LOOKAHEAD_CHARS]

    airline_code = ""
    airline_name = ""

    segments = _find_segments(before)
    for seg in segments:
        if not airline_code:
            airline_code = seg.flight_number[:2]
            airline_name = seg.airline

    flight_numbers: list[str] = []
    for code, number, name in _FLIGHT_NUMBER_RE.findall(before):
        flight_numbers.append(f"{code}{number}")
        if not airline_code:
            airline_code, airline_name = code, name

    layovers = _find_layovers(before)

    if not airline_code:
        airline_code, airline_name = _fallback_airline(before)

    price, token = _find_price_and_token(after)

    (
        origin,
        dep_year,
        dep_month,
        dep_day,
        dep_hour,
        dep_minute,
        destination,
        arr_year,
        arr_month,
        arr_day,
        arr_hour,
        arr_minute,
        duration,
    ) = anchor.groups()

    return Itinerary(
        price=price,
        airline=airline_name,
        airline_code=airline_code,
        flight_numbers=flight_numbers,
        origin=origin,
        destination=destination,
        departure=datetime(
            int(dep_year),
            int(dep_month),
            int(dep_day),
            int(dep_hour),
            int(dep_minute or 0),
        ),
        arrival=datetime(
            int(arr_year),
            int(arr_month),
            int(arr_day),
            int(arr_hour),
            int(arr_minute or 0),
        ),
        duration_minutes=int(duration),
        stops=max(len(layovers), len(segments) - 1 if segments else 0),
        booking_token=token,
        segments=segments,
        layovers=layovers,
    )


def parse_flight_response(raw: str) -> list[Itinerary]:
    """Decode a response body into itineraries sorted by ascending price.

    Accepts the body with or without the XSSI prefix. A blocked or malformed
    payload yields an empty list; a single undecodable anchor is skipped
    without affecting the others.
    """
    text = strip_xssi_prefix(raw)
    seen: set[tuple[str, str, str, int, int, int]] = set()
    itineraries: list[Itinerary] = []

    for anchor in _ROUTE_RE.finditer(text):
        try:
            itinerary = _decode_anchor(text, anchor)
        except (ValueError, ValidationError) as exc:
            logger.warning(
                "Skipping undecodable itinerary at offset %d: %s",
                anchor.start(),
                exc,
            )
            continue

        key = itinerary.identity_key
        if key in seen:
            continue
        seen.add(key)
        itineraries.append(itinerary)

    itineraries.sort(key=lambda it: it.price)
    logger.info("RPC parser decoded %d itineraries", len(itineraries))
    return itineraries
