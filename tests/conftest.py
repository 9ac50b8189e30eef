"""Shared fixtures and helpers for the search core tests."""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
import pytest

from clovis_core.schemas import Itinerary, Segment
from clovis_crawler.config import CrawlerSettings

if TYPE_CHECKING:
    from collections.abc import Callable

    Handler = Callable[[httpx.Request], httpx.Response]

FIXTURES = Path(__file__).parent / "fixtures"

RPC_PATH = (
    "/_/FlightsFrontendUi/data/"
    "travel.frontend.flights.FlightsFrontendService/GetShoppingResults"
)


def read_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


def wrap_rpc_stream(inner: str) -> str:
    """Embed a payload the way the RPC streams it: XSSI prefix, length, envelope."""
    chunk = '[["wrb.fr",null,' + json.dumps(inner) + "]]"
    return f")]}}'\n\n{len(chunk)}\n{chunk}\n"


@pytest.fixture
def inner_payload() -> str:
    """Unescaped shopping payload: NK 182, AA 241 (1 stop), DL 150, NK repeated.

    The fixture is synthetic: hand-built from the record shapes of live
    responses and padded with nulls, not a captured response.
    """
    return read_fixture("shopping_results_inner.txt")


@pytest.fixture
def rpc_stream():
    """Wrap an arbitrary inner payload as an RPC response body."""
    return wrap_rpc_stream


@pytest.fixture
def shopping_response(inner_payload: str) -> str:
    return wrap_rpc_stream(inner_payload)


@pytest.fixture
def landing_html() -> str:
    return read_fixture("landing_page.html")


@pytest.fixture
def consent_html() -> str:
    return read_fixture("consent_page.html")


@pytest.fixture
def crawler_settings() -> CrawlerSettings:
    return CrawlerSettings(_env_file=None)


@pytest.fixture
def mock_http() -> Callable[[Handler], httpx.AsyncClient]:
    """Factory: an ``httpx.AsyncClient`` answering through *handler*."""

    def _make(handler: Handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def google_handler(landing_html: str, shopping_response: str):
    """Factory for a fake upstream that serves the landing page and the RPC.

    ``rpc_bodies`` is consumed in call order; the last body repeats. Every
    request is appended to the returned ``calls`` list.
    """

    def _make(*rpc_bodies: str, rpc_status: int = 200, landing: str | None = None):
        bodies = list(rpc_bodies) or [shopping_response]
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if request.method == "GET":
                page = landing if landing is not None else landing_html
                return httpx.Response(200, text=page)
            if request.url.path != RPC_PATH:
                return httpx.Response(404)
            body = bodies.pop(0) if len(bodies) > 1 else bodies[0]
            return httpx.Response(rpc_status, text=body)

        return handler, calls

    return _make


@pytest.fixture
def make_itinerary():
    """Factory fixture for Itinerary instances."""

    def _make(
        price: int = 182,
        *,
        airline_code: str = "NK",
        flight_number: str = "NK1525",
        origin: str = "PBI",
        destination: str = "LAS",
        departure: datetime | None = None,
        booking_token: str = "TOKEN=X",
        with_segment: bool = True,
    ) -> Itinerary:
        departure = departure or datetime(2026, 2, 10, 9, 30)
        segments = []
        if with_segment:
            segments.append(
                Segment(
                    origin=origin,
                    destination=destination,
                    departure_time=departure.time(),
                    arrival_time=departure.time(),
                    duration_minutes=195,
                    flight_number=flight_number,
                    airline="Spirit",
                )
            )
        return Itinerary(
            price=price,
            airline="Spirit",
            airline_code=airline_code,
            flight_numbers=[flight_number] if flight_number else [],
            origin=origin,
            destination=destination,
            departure=departure,
            arrival=departure + timedelta(minutes=195),
            duration_minutes=195,
            booking_token=booking_token,
            segments=segments,
        )

    return _make
