"""Result envelopes handed back to the outer surfaces."""

from __future__ import annotations

import math
from datetime import date  # noqa: TC003
from typing import Generic, TypeVar

from pydantic import Field, field_serializer, field_validator
from typing_extensions import TypeAliasType

from .base import CoreModel
from .flight import Itinerary  # noqa: TC001


T = TypeVar("T")


class SearchOutcome(CoreModel, Generic[T]):
    """``{success, data | error}`` envelope; never carries a raw exception."""

    success: bool
    data: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, data: T) -> SearchOutcome[T]:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> SearchOutcome[T]:
        return cls(success=False, error=error)


class FlightListing(CoreModel):
    """Every itinerary decoded for one route and date selection."""

    origin: str = Field(alias="from")
    destination: str = Field(alias="to")
    depart_date: date
    return_date: date | None = None
    flights: list[Itinerary] = Field(default_factory=list)


class ReturnListing(CoreModel):
    """Return-leg options for an already selected outbound itinerary."""

    origin: str
    destination: str
    return_date: date
    flights: list[Itinerary] = Field(default_factory=list)


class OneWayListing(CoreModel):
    """One-way search summary: the cheapest option plus the first results."""

    origin: str = Field(alias="from")
    destination: str = Field(alias="to")
    depart_date: date
    cheapest: Itinerary
    total_flights: int
    all_flights: list[Itinerary] = Field(default_factory=list)


class CheapestTrip(CoreModel):
    """Cheapest outbound (and return) itinerary for one date selection."""

    origin: str = Field(alias="from")
    destination: str = Field(alias="to")
    depart_date: date
    return_date: date | None = None
    total_price: int
    booking_url: str | None = None
    search_url: str
    outbound: Itinerary
    inbound: Itinerary | None = Field(default=None, alias="return")


class PeriodSearchFailure(CoreModel):
    """One date or date pair whose search failed inside a period search."""

    depart_date: date
    return_date: date | None = None
    total_price: float = math.inf
    error: str

    @field_validator("total_price", mode="before")
    @classmethod
    def _parse_price(cls, value: object) -> object:
        return math.inf if value is None else value

    @field_serializer("total_price", when_used="json")
    def _serialize_price(self, value: float) -> float | None:
        return None if math.isinf(value) else value


PeriodSearchResult = TypeAliasType(
    "PeriodSearchResult", CheapestTrip | PeriodSearchFailure
)
