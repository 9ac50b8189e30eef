"""Cheapest-itinerary and return-leg router."""

from __future__ import annotations

from datetime import date  # noqa: TC003

from fastapi import APIRouter
from pydantic import Field

from clovis_api.dependencies import (
    MISSING_ROUTE_ERROR,
    DepartDateQuery,
    FromQuery,
    ReturnDateQuery,
    SearchServiceDep,
    ToQuery,
)
from clovis_core.schemas import CheapestTrip, ReturnListing, SearchOutcome
from clovis_core.schemas.base import CoreModel

router = APIRouter(prefix="/flights", tags=["cheapest"])


class ReturnSearchBody(CoreModel):
    """Body of ``POST /flights/return``; origin/destination describe the return leg."""

    token: str = Field(min_length=1)
    origin: str
    destination: str
    return_date: date


@router.get("/cheapest", response_model=SearchOutcome[CheapestTrip])
async def cheapest_round_trip(
    service: SearchServiceDep,
    origin: FromQuery = None,
    destination: ToQuery = None,
    depart_date: DepartDateQuery = None,
    return_date: ReturnDateQuery = None,
) -> SearchOutcome[CheapestTrip]:
    if not origin or not destination:
        return SearchOutcome[CheapestTrip].fail(MISSING_ROUTE_ERROR)
    return await service.cheapest_round_trip(
        origin, destination, depart_date, return_date
    )


@router.get("/cheapest/oneWay", response_model=SearchOutcome[CheapestTrip])
async def cheapest_one_way(
    service: SearchServiceDep,
    origin: FromQuery = None,
    destination: ToQuery = None,
    depart_date: DepartDateQuery = None,
) -> SearchOutcome[CheapestTrip]:
    if not origin or not destination:
        return SearchOutcome[CheapestTrip].fail(MISSING_ROUTE_ERROR)
    return await service.cheapest_one_way(origin, destination, depart_date)


@router.post("/return", response_model=SearchOutcome[ReturnListing])
async def search_return(
    body: ReturnSearchBody,
    service: SearchServiceDep,
) -> SearchOutcome[ReturnListing]:
    """Return options matching an already selected outbound itinerary."""
    return await service.search_return(
        body.token, body.origin, body.destination, body.return_date
    )
