"""Weekday-filtered date sequences."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import FrozenSet, Iterable, Iterator, Union

MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY = range(7)

WEEKDAY_NAMES = {
    "monday": MONDAY,
    "mon": MONDAY,
    "tuesday": TUESDAY,
    "tue": TUESDAY,
    "tues": TUESDAY,
    "wednesday": WEDNESDAY,
    "wed": WEDNESDAY,
    "thursday": THURSDAY,
    "thu": THURSDAY,
    "thurs": THURSDAY,
    "friday": FRIDAY,
    "fri": FRIDAY,
    "saturday": SATURDAY,
    "sat": SATURDAY,
    "sunday": SUNDAY,
    "sun": SUNDAY,
}

_SPLIT = re.compile(r"[,\s]+")


@dataclass(frozen=True)
class DateSequence:
    """Dates from ``start`` (inclusive) whose weekday is allowed.

    Iteration stops after ``count`` dates or once ``max_lookahead_days`` days
    have been scanned, whichever comes first. Every iteration starts over from
    ``start``.
    """

    start: date
    allowed_weekdays: FrozenSet[int]
    count: int
    max_lookahead_days: int

    def __iter__(self) -> Iterator[date]:
        if not self.allowed_weekdays or self.count <= 0:
            return
        emitted = 0
        for offset in range(self.max_lookahead_days):
            day = self.start + timedelta(days=offset)
            if day.weekday() in self.allowed_weekdays:
                yield day
                emitted += 1
                if emitted >= self.count:
                    return


def generate_dates(
    start: date,
    allowed_weekdays: Iterable[int],
    count: int,
    max_lookahead_days: int,
) -> DateSequence:
    return DateSequence(
        start=start,
        allowed_weekdays=frozenset(allowed_weekdays),
        count=count,
        max_lookahead_days=max_lookahead_days,
    )


def parse_weekdays(value: Union[str, Iterable[str], None]) -> FrozenSet[int]:
    """Turn day names ("Monday", "wed", ...) into weekday numbers.

    Accepts a list of names or a single comma/space separated string. Unknown
    names are ignored.
    """

    if not value:
        return frozenset()
    if isinstance(value, str):
        names = _SPLIT.split(value)
    else:
        names = [str(name) for name in value]
    days = set()
    for name in names:
        key = name.strip().lower()
        if key in WEEKDAY_NAMES:
            days.add(WEEKDAY_NAMES[key])
    return frozenset(days)


__all__ = [
    "DateSequence",
    "FRIDAY",
    "MONDAY",
    "SATURDAY",
    "SUNDAY",
    "THURSDAY",
    "TUESDAY",
    "WEDNESDAY",
    "WEEKDAY_NAMES",
    "generate_dates",
    "parse_weekdays",
]
