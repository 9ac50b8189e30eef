"""Fan a cheapest-trip search out over every candidate date in a period."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import TYPE_CHECKING

from clovis_core.schemas import (
    CheapestTrip,
    PeriodSearchFailure,
    PeriodSearchOptions,
    PeriodSearchResult,
    SearchOutcome,
)

from .dates import candidate_pairs, one_way_dates_in_period

if TYPE_CHECKING:
    from collections.abc import Awaitable
    from datetime import date

    from clovis_crawler.google.service import FlightSearchService

logger = logging.getLogger(__name__)


def _sort_key(result: PeriodSearchResult) -> tuple[bool, float]:
    price = float(result.total_price)
    return (math.isinf(price), price)


def sort_results(results: list[PeriodSearchResult]) -> list[PeriodSearchResult]:
    """Ascending by price, failures last; ties keep their input order."""
    return sorted(results, key=_sort_key)


class PeriodSearchOrchestrator:
    """Run one cheapest search per candidate date concurrently.

    A candidate that fails becomes a :class:`PeriodSearchFailure` in the
    result list; the batch itself never raises.
    """

    def __init__(
        self,
        service: FlightSearchService,
        *,
        max_concurrency: int | None = None,
    ) -> None:
        if max_concurrency is not None and max_concurrency < 1:
            msg = f"max_concurrency must be positive, got {max_concurrency}"
            raise ValueError(msg)
        self._service = service
        self._max_concurrency = max_concurrency

    async def _gather(
        self,
        jobs: list[tuple[date, date | None, Awaitable[SearchOutcome[CheapestTrip]]]],
    ) -> list[PeriodSearchResult]:
        semaphore = (
            asyncio.Semaphore(self._max_concurrency) if self._max_concurrency else None
        )

        async def _bounded(
            work: Awaitable[SearchOutcome[CheapestTrip]],
        ) -> SearchOutcome[CheapestTrip]:
            if semaphore is None:
                return await work
            async with semaphore:
                return await work

        outcomes = await asyncio.gather(
            *(_bounded(work) for _, _, work in jobs),
            return_exceptions=True,
        )

        results: list[PeriodSearchResult] = []
        for (depart, ret, _), outcome in zip(jobs, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.warning("Search for %s/%s raised: %s", depart, ret, outcome)
                error = str(outcome) or type(outcome).__name__
            elif outcome.success and outcome.data is not None:
                results.append(outcome.data)
                continue
            else:
                logger.warning(
                    "Search for %s/%s failed: %s", depart, ret, outcome.error
                )
                error = outcome.error or "Search failed"
            results.append(
                PeriodSearchFailure(depart_date=depart, return_date=ret, error=error)
            )

        ordered = sort_results(results)
        logger.info(
            "Period search: %d candidates, %d failed",
            len(ordered),
            sum(isinstance(r, PeriodSearchFailure) for r in ordered),
        )
        return ordered

    async def search_round_trip_period(
        self,
        origin: str,
        destination: str,
        start: date,
        end: date,
        trip_days: int,
        options: PeriodSearchOptions | None = None,
    ) -> list[PeriodSearchResult]:
        pairs = candidate_pairs(start, end, trip_days, options)
        if not pairs:
            return []
        logger.info(
            "Searching %s->%s over %d date pairs", origin, destination, len(pairs)
        )
        return await self._gather(
            [
                (
                    pair.depart_date,
                    pair.return_date,
                    self._service.cheapest_round_trip(
                        origin, destination, pair.depart_date, pair.return_date
                    ),
                )
                for pair in pairs
            ]
        )

    async def search_one_way_period(
        self,
        origin: str,
        destination: str,
        start: date,
        end: date,
    ) -> list[PeriodSearchResult]:
        dates = one_way_dates_in_period(start, end)
        if not dates:
            return []
        logger.info(
            "Searching %s->%s one-way over %d dates", origin, destination, len(dates)
        )
        return await self._gather(
            [
                (
                    day,
                    None,
                    self._service.cheapest_one_way(origin, destination, day),
                )
                for day in dates
            ]
        )
