"""Search service: single searches and cheapest-itinerary assembly.

Every public ``search_*`` / ``cheapest_*`` coroutine returns a
:class:`SearchOutcome` and never raises; the period orchestrator calls the
``cheapest_*`` envelopes and turns an unsuccessful one into a per-candidate
failure. The ``find_*`` coroutines raise :class:`FlightSearchError`
subclasses instead, for callers that want exceptions.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING, TypeVar

import httpx

from clovis_core.schemas import (
    CheapestTrip,
    FlightListing,
    Itinerary,
    OneWayListing,
    ReturnListing,
    SearchOutcome,
    SearchRequest,
    SessionTokens,
    TripType,
)
from clovis_crawler.config import CrawlerSettings
from clovis_crawler.config import settings as default_settings
from clovis_crawler.errors import EmptyDecodeResult, FlightSearchError

from .client import ShoppingRpcClient
from .session import SessionTokenAcquirer
from .tfs_builder import (
    one_way_search_url,
    round_trip_search_url,
    selected_round_trip_booking_url,
    selected_search_url,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable

logger = logging.getLogger(__name__)

T = TypeVar("T")

ONE_WAY_LISTING_LIMIT = 20


class FlightSearchService:
    """Google Flights searches over one shared ``httpx.AsyncClient``.

    Each search acquires its own session tokens, so concurrent searches
    share nothing but the connection pool.
    """

    def __init__(
        self,
        http: httpx.AsyncClient | None = None,
        *,
        config: CrawlerSettings | None = None,
    ) -> None:
        self._config = config or default_settings
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(follow_redirects=True)
        self._tokens = SessionTokenAcquirer(self._http, config=self._config)
        self._rpc = ShoppingRpcClient(self._http, config=self._config)

    @property
    def config(self) -> CrawlerSettings:
        return self._config

    async def close(self) -> None:
        """Shut down the HTTPX client if this service created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> FlightSearchService:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Defaults
    # ------------------------------------------------------------------

    def default_depart_date(self, today: date | None = None) -> date:
        today = today or date.today()
        return today + timedelta(days=self._config.default_depart_offset_days)

    def default_return_date(self, today: date | None = None) -> date:
        today = today or date.today()
        return today + timedelta(days=self._config.default_return_offset_days)

    # ------------------------------------------------------------------
    # Raising primitives
    # ------------------------------------------------------------------

    async def _search(
        self, request: SearchRequest, tokens: SessionTokens | None = None
    ) -> list[Itinerary]:
        tokens = tokens or await self._tokens.acquire()
        flights = await self._rpc.search(request, tokens)
        logger.info(
            "%s %s->%s on %s: %d itineraries",
            request.trip_type,
            request.origin,
            request.destination,
            request.departure_date,
            len(flights),
        )
        return flights

    async def find_round_trip(
        self,
        origin: str,
        destination: str,
        depart_date: date,
        return_date: date,
        *,
        tokens: SessionTokens | None = None,
    ) -> list[Itinerary]:
        return await self._search(
            SearchRequest(
                trip_type=TripType.ROUND_TRIP,
                origin=origin,
                destination=destination,
                departure_date=depart_date,
                return_date=return_date,
            ),
            tokens,
        )

    async def find_one_way(
        self, origin: str, destination: str, depart_date: date
    ) -> list[Itinerary]:
        return await self._search(
            SearchRequest(
                trip_type=TripType.ONE_WAY,
                origin=origin,
                destination=destination,
                departure_date=depart_date,
            )
        )

    async def find_return(
        self,
        outbound_token: str,
        origin: str,
        destination: str,
        return_date: date,
        *,
        tokens: SessionTokens | None = None,
    ) -> list[Itinerary]:
        """Return options for a selected outbound; ``origin`` is the return leg's."""
        return await self._search(
            SearchRequest(
                trip_type=TripType.RETURN_LEG,
                origin=origin,
                destination=destination,
                departure_date=return_date,
                prior_itinerary_token=outbound_token,
            ),
            tokens,
        )

    async def find_cheapest_round_trip(
        self, origin: str, destination: str, depart_date: date, return_date: date
    ) -> CheapestTrip:
        """Cheapest outbound plus the cheapest return offered for it.

        Both RPC calls run on one session. Raises :class:`EmptyDecodeResult`
        when either leg has no results.
        """
        origin, destination = origin.upper(), destination.upper()
        tokens = await self._tokens.acquire()

        outbound_flights = await self.find_round_trip(
            origin, destination, depart_date, return_date, tokens=tokens
        )
        if not outbound_flights:
            raise EmptyDecodeResult("No outbound flights found")

        outbound = outbound_flights[0]
        if not outbound.booking_token:
            raise EmptyDecodeResult(
                "No booking token found for cheapest outbound flight"
            )

        return_flights = await self.find_return(
            outbound.booking_token, destination, origin, return_date, tokens=tokens
        )
        if not return_flights:
            raise EmptyDecodeResult("No return flights found")
        inbound = return_flights[0]

        # The outbound fare already prices the whole round trip.
        return CheapestTrip(
            origin=origin,
            destination=destination,
            depart_date=depart_date,
            return_date=return_date,
            total_price=outbound.price,
            booking_url=selected_round_trip_booking_url(
                outbound,
                inbound,
                origin,
                destination,
                depart_date,
                return_date,
                config=self._config,
            ),
            search_url=round_trip_search_url(
                origin, destination, depart_date, return_date, config=self._config
            ),
            outbound=outbound,
            inbound=inbound,
        )

    async def find_cheapest_one_way(
        self, origin: str, destination: str, depart_date: date
    ) -> CheapestTrip:
        origin, destination = origin.upper(), destination.upper()
        flights = await self.find_one_way(origin, destination, depart_date)
        if not flights:
            raise EmptyDecodeResult("No flights found")

        cheapest = flights[0]
        booking_url = None
        if cheapest.booking_token:
            booking_url = selected_search_url(
                origin,
                destination,
                depart_date,
                cheapest.booking_token,
                config=self._config,
            )
        return CheapestTrip(
            origin=origin,
            destination=destination,
            depart_date=depart_date,
            total_price=cheapest.price,
            booking_url=booking_url,
            search_url=one_way_search_url(
                origin, destination, depart_date, config=self._config
            ),
            outbound=cheapest,
        )

    # ------------------------------------------------------------------
    # Envelope operations
    # ------------------------------------------------------------------

    async def _guard(
        self,
        outcome: type[SearchOutcome[T]],
        action: str,
        work: Awaitable[T],
    ) -> SearchOutcome[T]:
        try:
            return outcome.ok(await work)
        except EmptyDecodeResult as exc:
            logger.info("%s: %s", action, exc)
            return outcome.fail(str(exc))
        except FlightSearchError as exc:
            logger.warning("%s failed: %s", action, exc)
            return outcome.fail(str(exc))
        except ValueError as exc:
            logger.warning("%s rejected: %s", action, exc)
            return outcome.fail(str(exc))
        except Exception as exc:
            logger.exception("%s failed unexpectedly", action)
            return outcome.fail(str(exc) or f"{action} failed")

    async def get_tokens(self) -> SearchOutcome[SessionTokens]:
        return await self._guard(
            SearchOutcome[SessionTokens], "Token request", self._tokens.acquire()
        )

    async def search_round_trip(
        self,
        origin: str,
        destination: str,
        depart_date: date | None = None,
        return_date: date | None = None,
    ) -> SearchOutcome[FlightListing]:
        depart = depart_date or self.default_depart_date()
        ret = return_date or self.default_return_date()

        async def _run() -> FlightListing:
            flights = await self.find_round_trip(origin, destination, depart, ret)
            return FlightListing(
                origin=origin.upper(),
                destination=destination.upper(),
                depart_date=depart,
                return_date=ret,
                flights=flights,
            )

        return await self._guard(
            SearchOutcome[FlightListing], "Round-trip search", _run()
        )

    async def search_one_way(
        self,
        origin: str,
        destination: str,
        depart_date: date | None = None,
    ) -> SearchOutcome[OneWayListing]:
        depart = depart_date or self.default_depart_date()

        async def _run() -> OneWayListing:
            flights = await self.find_one_way(origin, destination, depart)
            if not flights:
                raise EmptyDecodeResult("No flights found")
            return OneWayListing(
                origin=origin.upper(),
                destination=destination.upper(),
                depart_date=depart,
                cheapest=flights[0],
                total_flights=len(flights),
                all_flights=flights[:ONE_WAY_LISTING_LIMIT],
            )

        return await self._guard(SearchOutcome[OneWayListing], "One-way search", _run())

    async def search_return(
        self,
        outbound_token: str,
        origin: str,
        destination: str,
        return_date: date,
    ) -> SearchOutcome[ReturnListing]:
        async def _run() -> ReturnListing:
            flights = await self.find_return(
                outbound_token, origin, destination, return_date
            )
            return ReturnListing(
                origin=origin.upper(),
                destination=destination.upper(),
                return_date=return_date,
                flights=flights,
            )

        return await self._guard(
            SearchOutcome[ReturnListing], "Return flight search", _run()
        )

    async def cheapest_round_trip(
        self,
        origin: str,
        destination: str,
        depart_date: date | None = None,
        return_date: date | None = None,
    ) -> SearchOutcome[CheapestTrip]:
        return await self._guard(
            SearchOutcome[CheapestTrip],
            "Cheapest round-trip search",
            self.find_cheapest_round_trip(
                origin,
                destination,
                depart_date or self.default_depart_date(),
                return_date or self.default_return_date(),
            ),
        )

    async def cheapest_one_way(
        self,
        origin: str,
        destination: str,
        depart_date: date | None = None,
    ) -> SearchOutcome[CheapestTrip]:
        return await self._guard(
            SearchOutcome[CheapestTrip],
            "Cheapest one-way search",
            self.find_cheapest_one_way(
                origin, destination, depart_date or self.default_depart_date()
            ),
        )
