"""Itinerary, segment and layover records decoded from shopping results."""

from __future__ import annotations

from datetime import datetime, time  # noqa: TC003

from pydantic import ConfigDict, Field, computed_field, field_serializer

from .base import CoreModel


def format_duration(minutes: int) -> str:
    """Render a minute count as ``"<h>h <m>m"``."""
    return f"{minutes // 60}h {minutes % 60}m"


class Segment(CoreModel):
    """One physical flight leg inside a possibly multi-leg itinerary."""

    origin: str = Field(description="IATA airport code")
    origin_name: str = ""
    destination: str = Field(description="IATA airport code")
    destination_name: str = ""
    departure_time: time
    arrival_time: time
    duration_minutes: int = Field(ge=0)
    flight_number: str
    airline: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration(self) -> str:
        return format_duration(self.duration_minutes)

    @field_serializer("departure_time", "arrival_time", when_used="json")
    def _serialize_clock(self, value: time) -> str:
        return value.strftime("%H:%M")


class Layover(CoreModel):
    """Connection gap between two consecutive segments."""

    airport: str
    airport_name: str = ""
    duration_minutes: int = Field(ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration(self) -> str:
        return format_duration(self.duration_minutes)


class Itinerary(CoreModel):
    """One priced, bookable flight option."""

    model_config = ConfigDict(frozen=True)

    price: int = Field(ge=0)
    airline: str = ""
    airline_code: str = ""
    flight_numbers: list[str] = Field(default_factory=list)

    # Route
    origin: str = Field(description="IATA airport code")
    destination: str = Field(description="IATA airport code")

    # Schedule (local times as reported upstream)
    departure: datetime
    arrival: datetime
    duration_minutes: int = Field(ge=0)
    stops: int = Field(default=0, ge=0)

    booking_token: str = ""
    segments: list[Segment] = Field(default_factory=list)
    layovers: list[Layover] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration(self) -> str:
        return format_duration(self.duration_minutes)

    @property
    def identity_key(self) -> tuple[str, str, str, int, int, int]:
        """Key for deduplicating itineraries rediscovered by overlapping scans."""
        return (
            self.airline_code,
            self.origin,
            self.destination,
            self.departure.hour,
            self.departure.minute,
            self.price,
        )

    @field_serializer("departure", "arrival", when_used="json")
    def _serialize_timestamp(self, value: datetime) -> str:
        return value.strftime("%Y-%m-%d %H:%M")
