"""Build the ``f.req`` body and query string for ``GetShoppingResults``.

The inner payload is a positional nested array recovered from captured
browser traffic. Every index is a protocol constant: a field in the wrong
slot does not produce an error, the RPC just answers with no results.
"""

from __future__ import annotations

import json
import random
from datetime import date
from typing import Any

from typing_extensions import TypeAliasType

from clovis_core.schemas import SearchRequest, SessionTokens, TripType
from clovis_crawler.config import CrawlerSettings
from clovis_crawler.config import settings as default_settings

# Reverse-engineered constants (observed in HAR captures, do not "clean up").
TRIP_CODE_ROUND_TRIP = 1
TRIP_CODE_ONE_WAY = 2
ADULTS = 1
PASSENGER_MIX = [1, 0, 0, 0]  # adults, children, infants in seat, infants on lap
CABIN_ANY = 3
TRAILER_ROUND_TRIP = 1
TRAILER_SINGLE_LEG = 2

_SOC_APP = "162"
_SOC_PLATFORM = "1"
_SOC_DEVICE = "1"
_REQID_MIN = 100000
_REQID_MAX = 999999

RPC_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/144.0.0.0 Safari/537.36"
    ),
    "Content-Type": "application/x-www-form-urlencoded;charset=UTF-8",
    "Origin": "https://www.google.com",
    "Referer": "https://www.google.com/travel/flights",
    "x-same-domain": "1",
    "x-goog-ext-259736195-jspb": '["en-US","US","USD",2,null,[300],null,null,7,[]]',
}

JsonArray = TypeAliasType("JsonArray", list[Any])


def _airport(code: str) -> JsonArray:
    return [[[code, 0]]]


def _short_leg(origin: str, destination: str, day: str) -> JsonArray:
    return [_airport(origin), _airport(destination), None, 0, None, None, day]


def _full_leg(origin: str, destination: str, day: str) -> JsonArray:
    # Round-trip legs are padded out to index 14, where the cabin class sits.
    return [*_short_leg(origin, destination, day), *[None] * 7, CABIN_ANY]


def _shopping_block(trip_code: int, legs: list[JsonArray]) -> JsonArray:
    return [
        None,
        None,
        trip_code,
        None,
        [],
        ADULTS,
        list(PASSENGER_MIX),
        None,
        None,
        None,
        None,
        None,
        None,
        legs,
        None,
        None,
        None,
        1,
    ]


def _as_day(value: date | str) -> str:
    return value.isoformat() if isinstance(value, date) else value


def build_round_trip_payload(
    origin: str,
    destination: str,
    depart_date: date | str,
    return_date: date | str,
) -> JsonArray:
    legs = [
        _full_leg(origin, destination, _as_day(depart_date)),
        _full_leg(destination, origin, _as_day(return_date)),
    ]
    block = _shopping_block(TRIP_CODE_ROUND_TRIP, legs)
    return [[], block, 0, 0, 0, TRAILER_ROUND_TRIP]


def build_one_way_payload(
    origin: str,
    destination: str,
    depart_date: date | str,
) -> JsonArray:
    legs = [_short_leg(origin, destination, _as_day(depart_date))]
    return [[], _shopping_block(TRIP_CODE_ONE_WAY, legs), 0, 0, 0, TRAILER_SINGLE_LEG]


def build_return_leg_payload(
    outbound_token: str,
    origin: str,
    destination: str,
    return_date: date | str,
) -> JsonArray:
    """Ask for return options matching an already selected outbound itinerary.

    ``origin`` / ``destination`` describe the return leg itself, i.e. the
    outbound route reversed.
    """
    legs = [_short_leg(origin, destination, _as_day(return_date))]
    return [
        [None, outbound_token],
        _shopping_block(TRIP_CODE_ROUND_TRIP, legs),
        0,
        0,
        0,
        TRAILER_SINGLE_LEG,
    ]


def build_payload(request: SearchRequest) -> JsonArray:
    """Dispatch on :attr:`SearchRequest.trip_type`."""
    if request.trip_type == TripType.ROUND_TRIP:
        assert request.return_date is not None
        return build_round_trip_payload(
            request.origin,
            request.destination,
            request.departure_date,
            request.return_date,
        )
    if request.trip_type == TripType.ONE_WAY:
        return build_one_way_payload(
            request.origin, request.destination, request.departure_date
        )
    assert request.prior_itinerary_token is not None
    return build_return_leg_payload(
        request.prior_itinerary_token,
        request.origin,
        request.destination,
        request.departure_date,
    )


def _compact(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def encode_f_req(inner: JsonArray) -> str:
    """Serialize twice: the inner array travels as a string inside ``[null, ...]``."""
    return _compact([None, _compact(inner)])


def build_form_body(request: SearchRequest) -> dict[str, str]:
    return {"f.req": encode_f_req(build_payload(request))}


def build_query_params(
    tokens: SessionTokens,
    *,
    include_region: bool = False,
    config: CrawlerSettings | None = None,
    rng: random.Random | None = None,
) -> dict[str, str]:
    """Query string for one RPC call; ``_reqid`` is drawn fresh every time."""
    config = config or default_settings
    rand = rng or random
    params = {
        "f.sid": tokens.sid,
        "bl": tokens.bl,
        "hl": config.language,
    }
    if include_region:
        params["gl"] = config.region
    params.update(
        {
            "soc-app": _SOC_APP,
            "soc-platform": _SOC_PLATFORM,
            "soc-device": _SOC_DEVICE,
            "_reqid": str(rand.randint(_REQID_MIN, _REQID_MAX)),
            "rt": "c",
        }
    )
    return params
