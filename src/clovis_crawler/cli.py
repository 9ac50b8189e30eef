"""CLI for standalone flight searches."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import date
from typing import TYPE_CHECKING, TypeVar

import click
from google.protobuf import text_format
from google.protobuf.message import DecodeError

from clovis_core.schemas import (
    CheapestTrip,
    DurationMode,
    PeriodSearchFailure,
    PeriodSearchOptions,
)

from .google.tfs_builder import parse_tfs, parse_tfu

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from pydantic import BaseModel

    from clovis_core.schemas import Itinerary, PeriodSearchResult, SearchOutcome

    from .google.service import FlightSearchService

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


class _DateParam(click.ParamType):
    name = "date"

    def convert(self, value, param, ctx):  # type: ignore[no-untyped-def]
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(value)
        except ValueError:
            self.fail(f"{value!r} is not a YYYY-MM-DD date", param, ctx)


DATE = _DateParam()

T = TypeVar("T")


def _run(action: Callable[[FlightSearchService], Awaitable[T]]) -> T:
    from .google.service import FlightSearchService

    async def _main() -> T:
        async with FlightSearchService() as service:
            return await action(service)

    return asyncio.run(_main())


def _dump(model: BaseModel) -> str:
    return json.dumps(model.model_dump(mode="json", by_alias=True), indent=2)


def _print_flights(flights: list[Itinerary]) -> None:
    if not flights:
        click.echo("No flights found.")
        return
    click.echo(f"\nFound {len(flights)} flight(s):\n")
    for i, f in enumerate(flights, 1):
        numbers = ", ".join(f.flight_numbers) or "-"
        click.echo(
            f"  {i}. {f.airline or f.airline_code} {numbers} | "
            f"{f.origin} → {f.destination} | "
            f"{f.departure:%Y-%m-%d %H:%M} - {f.arrival:%H:%M} | "
            f"{f.duration} | {f.stops} stop(s) | ${f.price}"
        )


def _print_trip(trip: CheapestTrip) -> None:
    click.echo(
        f"{trip.origin} → {trip.destination} | depart {trip.depart_date}"
        + (f" | return {trip.return_date}" if trip.return_date else "")
        + f" | total ${trip.total_price}"
    )
    click.echo("Outbound:")
    _print_flights([trip.outbound])
    if trip.inbound is not None:
        click.echo("Return:")
        _print_flights([trip.inbound])
    click.echo(f"\nBooking: {trip.booking_url or '(unavailable)'}")
    click.echo(f"Search:  {trip.search_url}")


def _finish(
    outcome: SearchOutcome,  # type: ignore[type-arg]
    json_output: bool,
    render: Callable,  # type: ignore[type-arg]
) -> None:
    if json_output:
        click.echo(_dump(outcome))
    elif outcome.success:
        render(outcome.data)
    else:
        click.echo(f"Error: {outcome.error}", err=True)
    if not outcome.success:
        raise SystemExit(1)


def _print_period(results: list[PeriodSearchResult]) -> None:
    if not results:
        click.echo("No candidate dates in period.")
        return
    for r in results:
        dates = f"{r.depart_date}" + (f" → {r.return_date}" if r.return_date else "")
        if isinstance(r, PeriodSearchFailure):
            click.echo(f"  {dates} | failed: {r.error}")
        else:
            click.echo(
                f"  {dates} | ${r.total_price} | {r.outbound.airline} | "
                f"{r.booking_url or r.search_url}"
            )


@click.group()
def cli() -> None:
    """Clovis flight search CLI."""


@cli.command("tokens")
@click.option("--json-output", is_flag=True, help="Output as JSON")
def tokens(json_output: bool) -> None:
    """Fetch a fresh pair of session tokens."""
    outcome = _run(lambda s: s.get_tokens())
    _finish(
        outcome,
        json_output,
        lambda t: click.echo(f"sid={t.sid}\nbl={t.bl}"),
    )


@cli.command("search")
@click.argument("origin")
@click.argument("destination")
@click.option("--depart", type=DATE, default=None, help="Departure date (YYYY-MM-DD)")
@click.option("--return", "return_date", type=DATE, default=None, help="Return date")
@click.option("--json-output", is_flag=True, help="Output as JSON")
def search(
    origin: str,
    destination: str,
    depart: date | None,
    return_date: date | None,
    json_output: bool,
) -> None:
    """Round-trip search: every outbound itinerary."""
    outcome = _run(
        lambda s: s.search_round_trip(origin, destination, depart, return_date)
    )
    _finish(outcome, json_output, lambda listing: _print_flights(listing.flights))


@cli.command("one-way")
@click.argument("origin")
@click.argument("destination")
@click.option("--depart", type=DATE, default=None, help="Departure date (YYYY-MM-DD)")
@click.option("--json-output", is_flag=True, help="Output as JSON")
def one_way(
    origin: str, destination: str, depart: date | None, json_output: bool
) -> None:
    """One-way search: cheapest option plus the first results."""
    outcome = _run(lambda s: s.search_one_way(origin, destination, depart))
    _finish(outcome, json_output, lambda listing: _print_flights(listing.all_flights))


@cli.command("cheapest")
@click.argument("origin")
@click.argument("destination")
@click.option("--depart", type=DATE, default=None, help="Departure date (YYYY-MM-DD)")
@click.option("--return", "return_date", type=DATE, default=None, help="Return date")
@click.option("--json-output", is_flag=True, help="Output as JSON")
def cheapest(
    origin: str,
    destination: str,
    depart: date | None,
    return_date: date | None,
    json_output: bool,
) -> None:
    """Cheapest round trip with booking and search links."""
    outcome = _run(
        lambda s: s.cheapest_round_trip(origin, destination, depart, return_date)
    )
    _finish(outcome, json_output, _print_trip)


@cli.command("cheapest-one-way")
@click.argument("origin")
@click.argument("destination")
@click.option("--depart", type=DATE, default=None, help="Departure date (YYYY-MM-DD)")
@click.option("--json-output", is_flag=True, help="Output as JSON")
def cheapest_one_way(
    origin: str, destination: str, depart: date | None, json_output: bool
) -> None:
    """Cheapest one-way flight with a pre-selected search link."""
    outcome = _run(lambda s: s.cheapest_one_way(origin, destination, depart))
    _finish(outcome, json_output, _print_trip)


@cli.command("return")
@click.argument("token")
@click.argument("origin")
@click.argument("destination")
@click.argument("return_date", type=DATE)
@click.option("--json-output", is_flag=True, help="Output as JSON")
def return_leg(
    token: str, origin: str, destination: str, return_date: date, json_output: bool
) -> None:
    """Return options for a selected outbound (ORIGIN is the return leg's)."""
    outcome = _run(lambda s: s.search_return(token, origin, destination, return_date))
    _finish(outcome, json_output, lambda listing: _print_flights(listing.flights))


@cli.command("period")
@click.argument("origin")
@click.argument("destination")
@click.argument("period_start", type=DATE)
@click.argument("period_end", type=DATE)
@click.option("--trip-days", type=click.IntRange(min=1), required=True)
@click.option(
    "--duration-mode",
    type=click.Choice([m.value for m in DurationMode]),
    default=DurationMode.EXACT.value,
    show_default=True,
)
@click.option("--variation", type=click.IntRange(min=0), default=0, show_default=True)
@click.option(
    "--prefer-weekends", is_flag=True, help="Keep weekend-centered trips only"
)
@click.option("--max-concurrency", type=click.IntRange(min=1), default=None)
@click.option("--json-output", is_flag=True, help="Output as JSON")
def period(
    origin: str,
    destination: str,
    period_start: date,
    period_end: date,
    trip_days: int,
    duration_mode: str,
    variation: int,
    prefer_weekends: bool,
    max_concurrency: int | None,
    json_output: bool,
) -> None:
    """Cheapest round trip for every date pair in a period."""
    from .period.orchestrator import PeriodSearchOrchestrator

    options = PeriodSearchOptions(
        duration_mode=DurationMode(duration_mode),
        duration_variation=variation,
        prefer_weekends=prefer_weekends,
    )

    async def _search(service: FlightSearchService) -> list[PeriodSearchResult]:
        orchestrator = PeriodSearchOrchestrator(
            service, max_concurrency=max_concurrency or service.config.max_concurrency
        )
        return await orchestrator.search_round_trip_period(
            origin, destination, period_start, period_end, trip_days, options
        )

    results = _run(_search)
    if json_output:
        click.echo(
            json.dumps(
                [r.model_dump(mode="json", by_alias=True) for r in results], indent=2
            )
        )
    else:
        _print_period(results)


@cli.command("period-one-way")
@click.argument("origin")
@click.argument("destination")
@click.argument("period_start", type=DATE)
@click.argument("period_end", type=DATE)
@click.option("--max-concurrency", type=click.IntRange(min=1), default=None)
@click.option("--json-output", is_flag=True, help="Output as JSON")
def period_one_way(
    origin: str,
    destination: str,
    period_start: date,
    period_end: date,
    max_concurrency: int | None,
    json_output: bool,
) -> None:
    """Cheapest one-way flight for every day in a period."""
    from .period.orchestrator import PeriodSearchOrchestrator

    async def _search(service: FlightSearchService) -> list[PeriodSearchResult]:
        orchestrator = PeriodSearchOrchestrator(
            service, max_concurrency=max_concurrency or service.config.max_concurrency
        )
        return await orchestrator.search_one_way_period(
            origin, destination, period_start, period_end
        )

    results = _run(_search)
    if json_output:
        click.echo(
            json.dumps(
                [r.model_dump(mode="json", by_alias=True) for r in results], indent=2
            )
        )
    else:
        _print_period(results)


_PARSERS = {"tfs": parse_tfs, "tfu": parse_tfu}


@cli.command("inspect-link")
@click.argument("value")
@click.option(
    "--kind",
    type=click.Choice(list(_PARSERS)),
    default="tfs",
    show_default=True,
    help="Message type of a bare VALUE (URLs are read by parameter name)",
)
def inspect_link(value: str, kind: str) -> None:
    """Decode a ``tfs`` / ``tfu`` parameter (or a URL carrying them)."""
    from urllib.parse import parse_qs, urlsplit

    if "://" in value:
        params = parse_qs(urlsplit(value).query)
        encoded = {k: v[0] for k, v in params.items() if k in _PARSERS}
        if not encoded:
            raise click.BadParameter("URL has no tfs or tfu parameter")
    else:
        encoded = {kind: value}

    for name, payload in encoded.items():
        try:
            message = _PARSERS[name](payload)
        except (ValueError, DecodeError) as exc:
            raise click.BadParameter(f"{name} is not a valid message: {exc}") from exc
        click.echo(f"{name} ({message.ByteSize()} bytes):")
        for line in text_format.MessageToString(message).splitlines():
            click.echo(f"  {line}")
