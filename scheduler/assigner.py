"""Date assignment for ordered backlogs.

Two operations are offered. ``plan_next_batch`` resumes after the most
recently completed item and hands out the next run of allowed dates starting
today. ``cascade_reschedule`` pins one item to a manually chosen date and
shifts every later item onto the allowed dates that follow it.

Both return the assignments to persist and never touch the upstream source.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, FrozenSet, List, Optional, Sequence

from scheduler.backlog import SchedulableItem
from scheduler.dates import generate_dates
from scheduler.errors import EmptyBacklogError, ItemNotFoundError, NoActiveSeriesError

DEFAULT_BATCH_SIZE = 30
PLAN_LOOKAHEAD_DAYS = 90
CASCADE_LOOKAHEAD_DAYS = 180


@dataclass(frozen=True)
class SeriesConfig:
    start_date: date
    allowed_weekdays: FrozenSet[int]
    title: str = ""
    id: Optional[str] = None


@dataclass(frozen=True)
class Assignment:
    item: SchedulableItem
    date: date


class ScheduleAssigner:
    """Assign calendar dates to an already ordered backlog."""

    def __init__(
        self,
        batch_size: int = DEFAULT_BATCH_SIZE,
        plan_lookahead_days: int = PLAN_LOOKAHEAD_DAYS,
        cascade_lookahead_days: int = CASCADE_LOOKAHEAD_DAYS,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.batch_size = batch_size
        self.plan_lookahead_days = plan_lookahead_days
        self.cascade_lookahead_days = cascade_lookahead_days
        self._today = today

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------
    def plan_next_batch(
        self,
        backlog: Sequence[SchedulableItem],
        series: Optional[SeriesConfig],
        batch_size: Optional[int] = None,
        max_lookahead_days: Optional[int] = None,
        today: Optional[date] = None,
    ) -> List[Assignment]:
        _check_inputs(backlog, series)
        size = self.batch_size if batch_size is None else batch_size
        lookahead = self.plan_lookahead_days if max_lookahead_days is None else max_lookahead_days
        start = today or self._today()

        resume = resume_position(backlog)
        dates = generate_dates(start, series.allowed_weekdays, size, lookahead)
        return [Assignment(item, day) for item, day in zip(backlog[resume:], dates)]

    # ------------------------------------------------------------------
    # Cascade
    # ------------------------------------------------------------------
    def cascade_reschedule(
        self,
        backlog: Sequence[SchedulableItem],
        moved_item_id: str,
        new_date: date,
        series: Optional[SeriesConfig],
        max_lookahead_days: Optional[int] = None,
    ) -> List[Assignment]:
        _check_inputs(backlog, series)
        lookahead = self.cascade_lookahead_days if max_lookahead_days is None else max_lookahead_days

        position = _position_of(backlog, moved_item_id)
        downstream = backlog[position + 1 :]
        # The manual date is taken as given, even on a day the series skips.
        assignments = [Assignment(backlog[position], new_date)]
        dates = generate_dates(
            new_date + timedelta(days=1), series.allowed_weekdays, len(downstream), lookahead
        )
        assignments.extend(Assignment(item, day) for item, day in zip(downstream, dates))
        return assignments


def resume_position(backlog: Sequence[SchedulableItem]) -> int:
    """Index just past the most recently completed item, or 0."""

    latest = None
    for index, item in enumerate(backlog):
        if item.completed_at is None:
            continue
        # Later backlog position wins when completion dates tie.
        if latest is None or item.completed_at >= backlog[latest].completed_at:
            latest = index
    return 0 if latest is None else latest + 1


def _check_inputs(backlog: Sequence[SchedulableItem], series: Optional[SeriesConfig]) -> None:
    if not backlog:
        raise EmptyBacklogError("Nothing to schedule: the backlog is empty")
    if series is None:
        raise NoActiveSeriesError("No active series with a start date and title")


def _position_of(backlog: Sequence[SchedulableItem], item_id: str) -> int:
    for index, item in enumerate(backlog):
        if item.id == item_id:
            return index
    raise ItemNotFoundError(item_id)


__all__ = [
    "Assignment",
    "CASCADE_LOOKAHEAD_DAYS",
    "DEFAULT_BATCH_SIZE",
    "PLAN_LOOKAHEAD_DAYS",
    "ScheduleAssigner",
    "SeriesConfig",
    "resume_position",
]
