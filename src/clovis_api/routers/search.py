"""Raw flight search router."""

from __future__ import annotations

from fastapi import APIRouter

from clovis_api.dependencies import (
    MISSING_ROUTE_ERROR,
    DepartDateQuery,
    FromQuery,
    ReturnDateQuery,
    SearchServiceDep,
    ToQuery,
)
from clovis_core.schemas import FlightListing, OneWayListing, SearchOutcome

router = APIRouter(prefix="/flights/search", tags=["search"])


@router.get("/roundTrip", response_model=SearchOutcome[FlightListing])
async def search_round_trip(
    service: SearchServiceDep,
    origin: FromQuery = None,
    destination: ToQuery = None,
    depart_date: DepartDateQuery = None,
    return_date: ReturnDateQuery = None,
) -> SearchOutcome[FlightListing]:
    """Every outbound itinerary for a round trip."""
    if not origin or not destination:
        return SearchOutcome[FlightListing].fail(MISSING_ROUTE_ERROR)
    return await service.search_round_trip(
        origin, destination, depart_date, return_date
    )


@router.get("/oneWay", response_model=SearchOutcome[OneWayListing])
async def search_one_way(
    service: SearchServiceDep,
    origin: FromQuery = None,
    destination: ToQuery = None,
    depart_date: DepartDateQuery = None,
) -> SearchOutcome[OneWayListing]:
    """Cheapest one-way itinerary plus the first results."""
    if not origin or not destination:
        return SearchOutcome[OneWayListing].fail(MISSING_ROUTE_ERROR)
    return await service.search_one_way(origin, destination, depart_date)
