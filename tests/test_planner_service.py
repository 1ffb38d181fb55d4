from __future__ import annotations

from datetime import date

import pytest

from api.services.planner import PlannerService
from core.domains import DOMAINS, DomainName
from gateway import UpstreamUnavailableError
from scheduler import EmptyBacklogError, NoActiveSeriesError

DEVOTIONS = DOMAINS[DomainName.DEVOTIONS]
ENGLISH = DOMAINS[DomainName.ENGLISH]


class InlineSpawn:
    """Collects background work so tests decide when it runs."""

    def __init__(self) -> None:
        self.pending = []

    def __call__(self, fn, *args) -> None:
        self.pending.append((fn, args))

    def run(self) -> None:
        while self.pending:
            fn, args = self.pending.pop(0)
            fn(*args)


@pytest.fixture
def planner(gateway, cache, assigner) -> PlannerService:
    return PlannerService(gateway=gateway, cache=cache, assigner=assigner)


def _gets(craft) -> int:
    return craft.count("GET", "/col-lessons/items")


def test_items_are_flattened_and_cached(planner: PlannerService, craft) -> None:
    items = planner.list_items(DEVOTIONS)
    first = items[0]
    assert first["id"] == "l3"
    assert first["week_lesson"] == "Week 1"
    assert first["properties"]["day"] == "Day 3"
    planner.list_items(DEVOTIONS)
    assert _gets(craft) == 1


def test_stale_read_serves_old_data_and_refreshes_once(planner: PlannerService, craft, clock) -> None:
    planner.list_items(DEVOTIONS)
    craft.item("col-lessons", "l3")["title"] = "Renamed"
    clock.advance(301)

    spawn = InlineSpawn()
    stale = planner.list_items(DEVOTIONS, spawn=spawn)
    again = planner.list_items(DEVOTIONS, spawn=spawn)
    assert stale[0]["title"] == "Week 1 Day 3"
    assert again[0]["title"] == "Week 1 Day 3"
    assert len(spawn.pending) == 1

    spawn.run()
    assert _gets(craft) == 2
    lookup = planner.cache.get(DEVOTIONS.items_cache_key)
    assert lookup.fresh and lookup.data[0]["title"] == "Renamed"


def test_failed_background_refresh_keeps_stale_data(planner: PlannerService, craft, clock, caplog) -> None:
    planner.list_items(DEVOTIONS)
    clock.advance(301)
    craft.fail_reads = True

    spawn = InlineSpawn()
    planner.list_items(DEVOTIONS, spawn=spawn)
    spawn.run()

    entry = planner.cache.entry(DEVOTIONS.items_cache_key)
    assert not entry.refreshing
    assert entry.data[0]["id"] == "l3"
    assert "Background refresh failed" in caplog.text


def test_foreground_failure_falls_back_to_last_value(planner: PlannerService, craft, clock) -> None:
    planner.list_items(DEVOTIONS)
    clock.advance(601)
    craft.fail_reads = True
    items = planner.list_items(DEVOTIONS)
    assert items[0]["id"] == "l3"


def test_foreground_failure_without_cache_propagates(planner: PlannerService, craft) -> None:
    craft.fail_reads = True
    with pytest.raises(UpstreamUnavailableError):
        planner.list_items(DEVOTIONS)


def test_active_series_skips_untitled(planner: PlannerService) -> None:
    series = planner.active_series(DEVOTIONS)
    assert series.title == "Family Foundations"
    assert series.allowed_weekdays == {0, 2, 4}


def test_active_series_defaults_weekdays(planner: PlannerService, craft) -> None:
    craft.items["col-english-series"] = [
        {"id": "e1", "title": "Conversation", "properties": {"start_date": "2024-01-02"}}
    ]
    series = planner.active_series(ENGLISH)
    assert series.allowed_weekdays == ENGLISH.default_weekdays


def test_plan_month_writes_and_invalidates(planner: PlannerService, craft) -> None:
    planner.list_items(DEVOTIONS)
    outcome = planner.plan_month(DEVOTIONS)
    assert [(a.item.id, a.date) for a in outcome.assignments] == [
        ("l3", date(2024, 1, 1)),
        ("l4", date(2024, 1, 3)),
        ("l5", date(2024, 1, 5)),
    ]
    assert outcome.write.succeeded == 3
    assert craft.item("col-lessons", "l4")["properties"]["scheduled_date"] == "2024-01-03"
    assert planner.cache.get(DEVOTIONS.items_cache_key) is None


def test_plan_month_partial_failure(planner: PlannerService, craft) -> None:
    craft.fail_writes_for = {"l5"}
    planner.list_items(DEVOTIONS)
    outcome = planner.plan_month(DEVOTIONS)
    assert outcome.write.succeeded == 2
    assert [f.id for f in outcome.write.failures] == ["l5"]
    assert planner.cache.get(DEVOTIONS.items_cache_key) is None


def test_plan_month_without_series(planner: PlannerService, craft) -> None:
    craft.items["col-english"] = [{"id": "c1", "title": "Greetings", "properties": {}}]
    with pytest.raises(NoActiveSeriesError):
        planner.plan_month(ENGLISH)


def test_plan_month_with_empty_backlog(planner: PlannerService) -> None:
    with pytest.raises(EmptyBacklogError):
        planner.plan_month(ENGLISH)


def test_cascade_reschedule(planner: PlannerService, craft) -> None:
    outcome = planner.cascade_reschedule(DEVOTIONS, "l2", date(2024, 1, 9))
    assert [(a.item.id, a.date) for a in outcome.assignments] == [
        ("l2", date(2024, 1, 9)),
        ("l3", date(2024, 1, 10)),
        ("l4", date(2024, 1, 12)),
        ("l5", date(2024, 1, 15)),
    ]
    assert "scheduled_date" not in craft.item("col-lessons", "l1")["properties"]


def test_refresh_from_before_a_write_does_not_overwrite_newer_data(
    planner: PlannerService, craft, clock
) -> None:
    planner.list_items(DEVOTIONS)
    clock.advance(301)
    before_write = InlineSpawn()
    planner.list_items(DEVOTIONS, spawn=before_write)

    planner.update_item(DEVOTIONS, "l3", {}, title="Moved")
    planner.list_items(DEVOTIONS)
    clock.advance(301)
    after_write = InlineSpawn()
    planner.list_items(DEVOTIONS, spawn=after_write)

    craft.item("col-lessons", "l3")["title"] = "Renamed again"
    before_write.run()
    entry = planner.cache.entry(DEVOTIONS.items_cache_key)
    assert entry.refreshing and entry.data[0]["title"] == "Moved"

    after_write.run()
    assert planner.cache.get(DEVOTIONS.items_cache_key).data[0]["title"] == "Renamed again"
