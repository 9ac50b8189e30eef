"""Period search router."""

from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Query

from clovis_api.dependencies import (
    MISSING_ROUTE_ERROR,
    FromQuery,
    OrchestratorDep,
    ToQuery,
)
from clovis_core.schemas import (
    DurationMode,
    PeriodSearchOptions,
    PeriodSearchResult,
    SearchOutcome,
)

router = APIRouter(prefix="/flights/period", tags=["period"])

PeriodStartQuery = Annotated[date, Query(alias="periodStart")]
PeriodEndQuery = Annotated[date, Query(alias="periodEnd")]

PeriodOutcome = SearchOutcome[list[PeriodSearchResult]]


@router.get("/roundTrip", response_model=PeriodOutcome)
async def period_round_trip(
    orchestrator: OrchestratorDep,
    period_start: PeriodStartQuery,
    period_end: PeriodEndQuery,
    trip_days: Annotated[int, Query(alias="tripDays", ge=1)],
    origin: FromQuery = None,
    destination: ToQuery = None,
    duration_mode: Annotated[
        DurationMode, Query(alias="durationMode")
    ] = DurationMode.EXACT,
    duration_variation: Annotated[int, Query(alias="durationVariation", ge=0)] = 0,
    prefer_weekends: Annotated[bool, Query(alias="preferWeekends")] = False,
) -> PeriodOutcome:
    """Cheapest round trip for every candidate date pair, cheapest first."""
    if not origin or not destination:
        return PeriodOutcome.fail(MISSING_ROUTE_ERROR)
    options = PeriodSearchOptions(
        duration_mode=duration_mode,
        duration_variation=duration_variation,
        prefer_weekends=prefer_weekends,
    )
    results = await orchestrator.search_round_trip_period(
        origin, destination, period_start, period_end, trip_days, options
    )
    return PeriodOutcome.ok(results)


@router.get("/oneWay", response_model=PeriodOutcome)
async def period_one_way(
    orchestrator: OrchestratorDep,
    period_start: PeriodStartQuery,
    period_end: PeriodEndQuery,
    origin: FromQuery = None,
    destination: ToQuery = None,
) -> PeriodOutcome:
    """Cheapest one-way flight for every day in the period, cheapest first."""
    if not origin or not destination:
        return PeriodOutcome.fail(MISSING_ROUTE_ERROR)
    results = await orchestrator.search_one_way_period(
        origin, destination, period_start, period_end
    )
    return PeriodOutcome.ok(results)
