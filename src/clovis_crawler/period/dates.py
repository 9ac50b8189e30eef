"""Candidate dates for period searches."""

from __future__ import annotations

from datetime import date, timedelta

from clovis_core.schemas import DatePair, DurationMode, PeriodSearchOptions

_ONE_DAY = timedelta(days=1)

# date.weekday(): Friday, Saturday, Sunday
_WEEKEND_DAYS = frozenset({4, 5, 6})


def round_trip_pairs_in_period(
    start: date, end: date, trip_days: int
) -> list[DatePair]:
    """Every (depart, return) pair inside ``[start, end]`` lasting *trip_days*.

    A trip of N days returns on day N, i.e. ``depart + (N - 1)``.
    """
    if start > end or trip_days < 1:
        return []

    span = timedelta(days=trip_days - 1)
    pairs: list[DatePair] = []
    cursor = start
    while cursor + span <= end:
        pairs.append(DatePair(depart_date=cursor, return_date=cursor + span))
        cursor += _ONE_DAY
    return pairs


def one_way_dates_in_period(start: date, end: date) -> list[date]:
    if start > end:
        return []
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def is_weekend_centered(depart: date, trip_days: int, prefer_weekends: bool) -> bool:
    """True when the trip's midpoint falls on Friday, Saturday or Sunday.

    Always true when weekends are not preferred or the trip is two days or
    shorter. The midpoint offset rounds half up.
    """
    if not prefer_weekends or trip_days <= 2:
        return True
    span = max(0, trip_days - 1)
    midpoint = depart + timedelta(days=(span + 1) // 2)
    return midpoint.weekday() in _WEEKEND_DAYS


def trip_length_range(trip_days: int, options: PeriodSearchOptions) -> range:
    variation = (
        options.duration_variation
        if options.duration_mode == DurationMode.PLUS_MINUS
        else 0
    )
    min_days = max(1, trip_days - variation)
    max_days = max(min_days, trip_days + variation)
    return range(min_days, max_days + 1)


def candidate_pairs(
    start: date,
    end: date,
    trip_days: int,
    options: PeriodSearchOptions | None = None,
) -> list[DatePair]:
    """Union of pairs over the allowed trip lengths, first occurrence kept."""
    options = options or PeriodSearchOptions()
    seen: set[tuple[date, date]] = set()
    pairs: list[DatePair] = []
    for days in trip_length_range(trip_days, options):
        for pair in round_trip_pairs_in_period(start, end, days):
            if not is_weekend_centered(pair.depart_date, days, options.prefer_weekends):
                continue
            key = (pair.depart_date, pair.return_date)
            if key in seen:
                continue
            seen.add(key)
            pairs.append(pair)
    return pairs
