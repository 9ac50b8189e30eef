"""Enums shared by the search core and its outer surfaces."""

from enum import StrEnum


class TripType(StrEnum):
    """Shape of a shopping request sent to the remote RPC."""

    ROUND_TRIP = "ROUND_TRIP"
    ONE_WAY = "ONE_WAY"
    RETURN_LEG = "RETURN_LEG"


class DurationMode(StrEnum):
    """How the trip length is interpreted by a period search."""

    EXACT = "exact"
    PLUS_MINUS = "plus-minus"
