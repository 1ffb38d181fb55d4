from __future__ import annotations

from datetime import date

import pytest

from scheduler import (
    EmptyBacklogError,
    ItemNotFoundError,
    NoActiveSeriesError,
    SchedulableItem,
    ScheduleAssigner,
    SeriesConfig,
    resume_position,
)
from scheduler.dates import FRIDAY, MONDAY, SUNDAY, THURSDAY, TUESDAY, WEDNESDAY

TODAY = date(2024, 1, 1)
WEEKDAYS = frozenset({MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY})
SERIES = SeriesConfig(start_date=date(2023, 12, 1), allowed_weekdays=WEEKDAYS, title="Family Foundations")


def _backlog(count: int = 5, completed: dict = None) -> list:
    completed = completed or {}
    return [
        SchedulableItem(id=f"i{index}", order_hint=index, completed_at=completed.get(index))
        for index in range(count)
    ]


def _pairs(assignments) -> list:
    return [(a.item.id, a.date) for a in assignments]


@pytest.fixture
def assigner() -> ScheduleAssigner:
    return ScheduleAssigner(today=lambda: TODAY)


def test_plan_resumes_after_completed_item(assigner: ScheduleAssigner) -> None:
    backlog = _backlog(completed={1: date(2023, 12, 29)})
    assignments = assigner.plan_next_batch(backlog, SERIES, batch_size=3)
    assert _pairs(assignments) == [
        ("i2", date(2024, 1, 1)),
        ("i3", date(2024, 1, 2)),
        ("i4", date(2024, 1, 3)),
    ]


def test_plan_starts_at_beginning_without_completions(assigner: ScheduleAssigner) -> None:
    assignments = assigner.plan_next_batch(_backlog(count=2), SERIES)
    assert _pairs(assignments) == [("i0", date(2024, 1, 1)), ("i1", date(2024, 1, 2))]


def test_plan_uses_most_recent_completion_not_last_position(assigner: ScheduleAssigner) -> None:
    backlog = _backlog(completed={3: date(2023, 11, 1), 1: date(2023, 12, 20)})
    assert resume_position(backlog) == 2
    assignments = assigner.plan_next_batch(backlog, SERIES, batch_size=1)
    assert _pairs(assignments) == [("i2", date(2024, 1, 1))]


def test_plan_stops_when_dates_run_out(assigner: ScheduleAssigner) -> None:
    sundays = SeriesConfig(start_date=TODAY, allowed_weekdays=frozenset({SUNDAY}), title="Sundays")
    assignments = assigner.plan_next_batch(_backlog(count=5), sundays, batch_size=30, max_lookahead_days=14)
    assert _pairs(assignments) == [("i0", date(2024, 1, 7)), ("i1", date(2024, 1, 14))]


def test_plan_is_idempotent(assigner: ScheduleAssigner) -> None:
    backlog = _backlog(completed={0: date(2023, 12, 31)})
    first = assigner.plan_next_batch(backlog, SERIES)
    second = assigner.plan_next_batch(backlog, SERIES)
    assert _pairs(first) == _pairs(second)


def test_plan_dates_never_decrease(assigner: ScheduleAssigner) -> None:
    assignments = assigner.plan_next_batch(_backlog(count=20), SERIES)
    dates = [a.date for a in assignments]
    assert dates == sorted(dates)


def test_plan_with_zero_batch_is_empty(assigner: ScheduleAssigner) -> None:
    assert assigner.plan_next_batch(_backlog(), SERIES, batch_size=0) == []


def test_plan_requires_backlog_and_series(assigner: ScheduleAssigner) -> None:
    with pytest.raises(EmptyBacklogError):
        assigner.plan_next_batch([], SERIES)
    with pytest.raises(NoActiveSeriesError):
        assigner.plan_next_batch(_backlog(), None)


def test_cascade_shifts_items_after_the_moved_one(assigner: ScheduleAssigner) -> None:
    backlog = _backlog()
    assignments = assigner.cascade_reschedule(backlog, "i2", date(2024, 1, 10), SERIES)
    assert _pairs(assignments) == [
        ("i2", date(2024, 1, 10)),
        ("i3", date(2024, 1, 11)),
        ("i4", date(2024, 1, 12)),
    ]
    assert all(a.item.id not in {"i0", "i1"} for a in assignments)


def test_cascade_accepts_a_day_outside_the_series(assigner: ScheduleAssigner) -> None:
    saturday = date(2024, 1, 6)
    assignments = assigner.cascade_reschedule(_backlog(count=3), "i1", saturday, SERIES)
    assert _pairs(assignments) == [("i1", saturday), ("i2", date(2024, 1, 8))]


def test_cascade_of_last_item_only_moves_it(assigner: ScheduleAssigner) -> None:
    assignments = assigner.cascade_reschedule(_backlog(), "i4", date(2024, 2, 1), SERIES)
    assert _pairs(assignments) == [("i4", date(2024, 2, 1))]


def test_cascade_bounded_by_lookahead(assigner: ScheduleAssigner) -> None:
    thursdays = SeriesConfig(start_date=TODAY, allowed_weekdays=frozenset({THURSDAY}), title="Thursdays")
    assignments = assigner.cascade_reschedule(
        _backlog(), "i0", date(2024, 1, 1), thursdays, max_lookahead_days=8
    )
    assert _pairs(assignments) == [("i0", date(2024, 1, 1)), ("i1", date(2024, 1, 4))]


def test_cascade_unknown_item(assigner: ScheduleAssigner) -> None:
    with pytest.raises(ItemNotFoundError) as excinfo:
        assigner.cascade_reschedule(_backlog(), "missing", TODAY, SERIES)
    assert excinfo.value.item_id == "missing"
