"""Core schemas for Clovis."""

from .enums import DurationMode, TripType
from .flight import Itinerary, Layover, Segment, format_duration
from .results import (
    CheapestTrip,
    FlightListing,
    OneWayListing,
    PeriodSearchFailure,
    PeriodSearchResult,
    ReturnListing,
    SearchOutcome,
)
from .search import DatePair, PeriodSearchOptions, SearchRequest, SessionTokens

__all__ = [
    "CheapestTrip",
    "DatePair",
    "DurationMode",
    "FlightListing",
    "Itinerary",
    "Layover",
    "OneWayListing",
    "PeriodSearchFailure",
    "PeriodSearchOptions",
    "PeriodSearchResult",
    "ReturnListing",
    "SearchOutcome",
    "SearchRequest",
    "Segment",
    "SessionTokens",
    "TripType",
    "format_duration",
]
