"""Per-domain field mapping for sermons, devotions and English classes.

All three domains share one scheduling core. What differs is which upstream
collection holds their items and series, and which property names carry the
ordering, completion and date information. ``DomainConfig`` captures those
differences and converts raw upstream items into core types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple

from scheduler import SchedulableItem, SeriesConfig, parse_weekdays
from scheduler.dates import FRIDAY, MONDAY, SUNDAY, THURSDAY, TUESDAY, WEDNESDAY


class DomainName(str, Enum):
    SERMONS = "sermons"
    DEVOTIONS = "devotions"
    ENGLISH = "english"


@dataclass(frozen=True)
class CollectionMatcher:
    """Case-insensitive collection name filter."""

    all_of: Tuple[str, ...] = ()
    any_of: Tuple[str, ...] = ()
    none_of: Tuple[str, ...] = ()

    def matches(self, name: str) -> bool:
        lowered = name.lower()
        if any(word in lowered for word in self.none_of):
            return False
        if not all(word in lowered for word in self.all_of):
            return False
        if self.any_of and not any(word in lowered for word in self.any_of):
            return False
        return bool(self.all_of or self.any_of)


@dataclass(frozen=True)
class DomainConfig:
    name: DomainName
    items_collection: CollectionMatcher
    series_collection: CollectionMatcher
    date_field: str
    completed_field: str
    default_weekdays: FrozenSet[int]
    order_field: Optional[str] = None
    week_field: Optional[str] = None
    day_field: Optional[str] = None
    title_fields: Tuple[str, ...] = ("title",)
    series_start_field: str = "start_date"
    series_days_field: str = "what_days_of_the_week"

    @property
    def items_cache_key(self) -> str:
        return f"{self.name.value}:items"

    @property
    def series_cache_key(self) -> str:
        return f"{self.name.value}:series"

    # ------------------------------------------------------------------
    # Raw item conversion
    # ------------------------------------------------------------------
    def title_of(self, raw: Dict[str, Any]) -> str:
        props = raw.get("properties") or {}
        for name in self.title_fields:
            value = raw.get(name) or props.get(name)
            if value:
                return str(value)
        return ""

    def flatten(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        """Lift properties to the top level, keeping the original alongside."""

        props = dict(raw.get("properties") or {})
        flat: Dict[str, Any] = dict(props)
        flat["id"] = raw.get("id")
        flat["title"] = self.title_of(raw)
        flat["properties"] = props
        return flat

    def to_item(self, raw: Dict[str, Any]) -> SchedulableItem:
        props = raw.get("properties") or {}
        return SchedulableItem(
            id=str(raw.get("id")),
            title=self.title_of(raw),
            order_hint=_parse_int(props.get(self.order_field)) if self.order_field else None,
            week_label=_label(props.get(self.week_field)) if self.week_field else None,
            day_label=_label(props.get(self.day_field)) if self.day_field else None,
            completed_at=parse_date(props.get(self.completed_field)),
            assigned_date=parse_date(props.get(self.date_field)),
        )

    def to_series(self, raw: Dict[str, Any]) -> Optional[SeriesConfig]:
        """Series config for a raw series item, or None if it cannot be active."""

        props = raw.get("properties") or {}
        title = raw.get("title") or props.get("title")
        start = parse_date(props.get(self.series_start_field) or raw.get(self.series_start_field))
        if not title or start is None:
            return None
        weekdays = parse_weekdays(props.get(self.series_days_field)) or self.default_weekdays
        return SeriesConfig(
            start_date=start,
            allowed_weekdays=weekdays,
            title=str(title),
            id=str(raw["id"]) if raw.get("id") is not None else None,
        )

    def date_properties(self, day: date) -> Dict[str, str]:
        return {self.date_field: day.isoformat()}


def parse_date(value: Any) -> Optional[date]:
    """Accept ``date``/``datetime`` values or ISO strings; anything else is None."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    return None


def _parse_int(value: Any) -> Optional[int]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _label(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


DOMAINS: Dict[DomainName, DomainConfig] = {
    DomainName.SERMONS: DomainConfig(
        name=DomainName.SERMONS,
        items_collection=CollectionMatcher(
            any_of=("schedule", "overview", "teaching"),
            none_of=("devotion", "english", "series"),
        ),
        series_collection=CollectionMatcher(all_of=("series",), none_of=("devotion", "english")),
        date_field="sermon_date",
        completed_field="last_preached",
        order_field="sermon_order",
        default_weekdays=frozenset({SUNDAY}),
        title_fields=("sermon_name", "title"),
    ),
    DomainName.DEVOTIONS: DomainConfig(
        name=DomainName.DEVOTIONS,
        items_collection=CollectionMatcher(
            all_of=("devotion",), any_of=("lesson",), none_of=("series",)
        ),
        series_collection=CollectionMatcher(all_of=("devotion", "series")),
        date_field="scheduled_date",
        completed_field="last_taught",
        order_field="lesson_order",
        week_field="week_lesson",
        day_field="day",
        default_weekdays=frozenset({MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY}),
    ),
    DomainName.ENGLISH: DomainConfig(
        name=DomainName.ENGLISH,
        items_collection=CollectionMatcher(
            all_of=("english",), any_of=("class",), none_of=("series",)
        ),
        series_collection=CollectionMatcher(all_of=("english", "series")),
        date_field="class_date",
        completed_field="last_taught",
        order_field="class_order",
        week_field="week_lesson",
        day_field="day",
        default_weekdays=frozenset({TUESDAY, THURSDAY}),
    ),
}


def get_domain(name: DomainName) -> DomainConfig:
    return DOMAINS[DomainName(name)]


__all__ = [
    "CollectionMatcher",
    "DOMAINS",
    "DomainConfig",
    "DomainName",
    "get_domain",
    "parse_date",
]
