"""Build Google Flights ``tfs`` / ``tfu`` deep-link parameters.

Both parameters are protobuf messages (see ``proto/flights.proto``),
base64url-encoded without padding. There is no published schema: field
numbers and the sentinel values below were recovered by diffing URLs the web
UI produces.
"""

from __future__ import annotations

import base64
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any
from urllib.parse import urlencode

from clovis_core.schemas import Itinerary
from clovis_crawler.config import CrawlerSettings
from clovis_crawler.config import settings as default_settings

from .proto import flights as PB  # noqa: N812

logger = logging.getLogger(__name__)

# Reverse-engineered constants: reproduce byte-for-byte, do not derive.
TFS_HEADER = 28
TFS_VERSION = 2
TFS_FLAG_8 = 1
TFS_FLAG_9 = 1
TFS_FLAG_14 = 1
TFS_ALL_ONES = (1 << 64) - 1
TFS_TRIP_ROUND_TRIP = 1
TFS_TRIP_ONE_WAY = 2
TFU_STATE = 0
LOCATION_KIND_AIRPORT = 1


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(value: str) -> bytes:
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


def parse_tfs(value: str) -> Any:
    """Decode a ``tfs`` parameter into a ``Tfs`` message."""
    tfs = PB.Tfs()
    tfs.ParseFromString(b64url_decode(value))
    return tfs


def parse_tfu(value: str) -> Any:
    """Decode a ``tfu`` parameter into a ``Tfu`` message."""
    tfu = PB.Tfu()
    tfu.ParseFromString(b64url_decode(value))
    return tfu


# ---------------------------------------------------------------------------
# Message builders
# ---------------------------------------------------------------------------


def _set_location(location: Any, code: str) -> None:
    location.kind = LOCATION_KIND_AIRPORT
    location.code = code


@dataclass(frozen=True)
class FlightData:
    """A single leg of a deep link, optionally pinned to one flight."""

    date: str
    from_airport: str
    to_airport: str
    airline_code: str | None = None
    flight_number: str | None = None

    @property
    def selected(self) -> bool:
        return bool(self.airline_code and self.flight_number)

    def attach(self, info: Any) -> None:
        leg = info.legs.add()
        leg.date = self.date
        if self.selected:
            leg.selection.origin = self.from_airport
            leg.selection.date = self.date
            leg.selection.destination = self.to_airport
            leg.selection.airline = self.airline_code
            leg.selection.flight_number = self.flight_number
        _set_location(leg.origin, self.from_airport)
        _set_location(leg.destination, self.to_airport)


class TFSData:
    """Builds the ``?tfs=`` parameter for one or two legs."""

    def __init__(self, *, flight_data: list[FlightData]) -> None:
        if not 1 <= len(flight_data) <= 2:
            msg = f"tfs supports one or two legs, got {len(flight_data)}"
            raise ValueError(msg)
        self.flight_data = flight_data

    @property
    def trip(self) -> int:
        return TFS_TRIP_ROUND_TRIP if len(self.flight_data) == 2 else TFS_TRIP_ONE_WAY

    def _build_pb(self) -> Any:
        info = PB.Tfs()
        info.header = TFS_HEADER
        info.version = TFS_VERSION
        for fd in self.flight_data:
            fd.attach(info)
        info.flag_8 = TFS_FLAG_8
        info.flag_9 = TFS_FLAG_9
        info.flag_14 = TFS_FLAG_14
        info.mask.value = TFS_ALL_ONES
        info.trip = self.trip
        return info

    def to_bytes(self) -> bytes:
        return self._build_pb().SerializeToString()

    def as_b64(self) -> str:
        return b64url(self.to_bytes())


def build_tfs_round_trip_selected(outbound: FlightData, inbound: FlightData) -> str:
    """``tfs`` for a round trip with both flights pre-selected (booking page)."""
    for leg in (outbound, inbound):
        if not leg.selected:
            msg = f"leg {leg.from_airport}->{leg.to_airport} has no flight selected"
            raise ValueError(msg)
    return TFSData(flight_data=[outbound, inbound]).as_b64()


def build_tfs_search(legs: list[FlightData]) -> str:
    """``tfs`` for an unselected search page over one or two legs."""
    bare = [
        FlightData(
            date=leg.date, from_airport=leg.from_airport, to_airport=leg.to_airport
        )
        for leg in legs
    ]
    return TFSData(flight_data=bare).as_b64()


def build_tfu(outbound_token: str) -> str:
    """``tfu`` carrying the booking token of a selected outbound itinerary."""
    tfu = PB.Tfu()
    tfu.token = outbound_token
    tfu.state.value = TFU_STATE
    tfu.extra.SetInParent()
    return b64url(tfu.SerializeToString())


# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------


def _locale_params(config: CrawlerSettings) -> dict[str, str]:
    return {"hl": config.language, "gl": config.region, "curr": config.currency}


def _url(path: str, params: dict[str, str], config: CrawlerSettings) -> str:
    return f"{config.deep_link_base_url}/{path}?{urlencode(params)}"


def booking_url(tfs: str, *, config: CrawlerSettings | None = None) -> str:
    config = config or default_settings
    return _url("booking", {"tfs": tfs, **_locale_params(config)}, config)


def round_trip_search_url(
    origin: str,
    destination: str,
    depart_date: date,
    return_date: date,
    *,
    config: CrawlerSettings | None = None,
) -> str:
    """Natural-language search URL; always loads, Google rewrites it to tfs."""
    config = config or default_settings
    q = (
        f"Flights from {origin} to {destination} on {depart_date.isoformat()} "
        f"returning {return_date.isoformat()}"
    )
    return _url("search", {"q": q, **_locale_params(config)}, config)


def _bare_leg(origin: str, destination: str, depart_date: date) -> FlightData:
    return FlightData(
        date=depart_date.isoformat(), from_airport=origin, to_airport=destination
    )


def one_way_search_url(
    origin: str,
    destination: str,
    depart_date: date,
    *,
    config: CrawlerSettings | None = None,
) -> str:
    config = config or default_settings
    tfs = build_tfs_search([_bare_leg(origin, destination, depart_date)])
    return _url("search", {"tfs": tfs, **_locale_params(config)}, config)


def selected_search_url(
    origin: str,
    destination: str,
    depart_date: date,
    outbound_token: str,
    *,
    config: CrawlerSettings | None = None,
) -> str:
    """One-way search URL with the outbound itinerary pre-selected via ``tfu``."""
    config = config or default_settings
    tfs = build_tfs_search([_bare_leg(origin, destination, depart_date)])
    params = {"tfs": tfs, **_locale_params(config), "tfu": build_tfu(outbound_token)}
    return _url("search", params, config)


_NON_DIGITS_RE = re.compile(r"[^0-9]")


def pick_airline_and_flight_number(itinerary: Itinerary) -> tuple[str, str]:
    """Airline code plus the numeric part of the first flight ("UA1525" -> "1525")."""
    airline_code = itinerary.airline_code.upper().strip()
    if itinerary.segments:
        raw = itinerary.segments[0].flight_number
    else:
        raw = ", ".join(itinerary.flight_numbers)
    return airline_code, _NON_DIGITS_RE.sub("", raw)


def selected_round_trip_booking_url(
    outbound: Itinerary,
    inbound: Itinerary,
    origin: str,
    destination: str,
    depart_date: date,
    return_date: date,
    *,
    config: CrawlerSettings | None = None,
) -> str | None:
    """Booking-page URL for an outbound + inbound pair, or None if unidentifiable."""
    out_airline, out_number = pick_airline_and_flight_number(outbound)
    in_airline, in_number = pick_airline_and_flight_number(inbound)
    if not (out_airline and out_number and in_airline and in_number):
        logger.info("Cannot pin flights for booking link; falling back to search URL")
        return None

    tfs = build_tfs_round_trip_selected(
        FlightData(
            date=depart_date.isoformat(),
            from_airport=origin,
            to_airport=destination,
            airline_code=out_airline,
            flight_number=out_number,
        ),
        FlightData(
            date=return_date.isoformat(),
            from_airport=destination,
            to_airport=origin,
            airline_code=in_airline,
            flight_number=in_number,
        ),
    )
    return booking_url(tfs, config=config)
