"""FastAPI dependency injection providers."""

from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import Depends, Query, Request

from clovis_crawler.google.service import FlightSearchService
from clovis_crawler.period.orchestrator import PeriodSearchOrchestrator


def get_search_service(request: Request) -> FlightSearchService:
    """Return the service created by the application lifespan."""
    return request.app.state.search_service


SearchServiceDep = Annotated[FlightSearchService, Depends(get_search_service)]


def get_orchestrator(service: SearchServiceDep) -> PeriodSearchOrchestrator:
    return PeriodSearchOrchestrator(
        service, max_concurrency=service.config.max_concurrency
    )


OrchestratorDep = Annotated[PeriodSearchOrchestrator, Depends(get_orchestrator)]


# Shared query parameters. ``from`` / ``to`` stay optional so a missing one
# is reported inside the usual envelope instead of as a 422.
FromQuery = Annotated[str | None, Query(alias="from", description="Origin IATA code")]
ToQuery = Annotated[str | None, Query(alias="to", description="Destination IATA code")]
DepartDateQuery = Annotated[date | None, Query(alias="departDate")]
ReturnDateQuery = Annotated[date | None, Query(alias="returnDate")]

MISSING_ROUTE_ERROR = "Missing required parameters: 'from' and 'to' are required"
