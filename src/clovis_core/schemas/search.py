"""Search request, session and date-window schemas."""

from __future__ import annotations

from datetime import date  # noqa: TC003

from pydantic import Field, field_validator, model_validator

from .base import CoreModel
from .enums import DurationMode, TripType


class SessionTokens(CoreModel):
    """Opaque tokens scraped from the landing page that authorize RPC calls."""

    sid: str = Field(description="Signed integer session id (f.sid)")
    bl: str = Field(description="Frontend build label (bl)")


class SearchRequest(CoreModel):
    """One shopping request against the remote RPC."""

    trip_type: TripType = TripType.ROUND_TRIP
    origin: str = Field(pattern=r"^[A-Za-z]{3}$", description="IATA airport code")
    destination: str = Field(pattern=r"^[A-Za-z]{3}$", description="IATA airport code")
    departure_date: date
    return_date: date | None = None
    prior_itinerary_token: str | None = None

    @field_validator("origin", "destination")
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        return value.upper()

    @model_validator(mode="after")
    def _validate_shape(self) -> SearchRequest:
        if self.trip_type == TripType.ROUND_TRIP and self.return_date is None:
            msg = "return_date is required for round-trip"
            raise ValueError(msg)
        if self.trip_type == TripType.RETURN_LEG and not self.prior_itinerary_token:
            msg = "prior_itinerary_token is required for a return-leg search"
            raise ValueError(msg)
        if self.return_date and self.return_date < self.departure_date:
            msg = "return_date must be on or after departure_date"
            raise ValueError(msg)
        return self


class DatePair(CoreModel):
    """Departure and return dates of one round-trip candidate."""

    depart_date: date
    return_date: date


class PeriodSearchOptions(CoreModel):
    """Trip-length policy for a round-trip period search."""

    duration_mode: DurationMode = DurationMode.EXACT
    duration_variation: int = Field(default=0, ge=0)
    prefer_weekends: bool = False
