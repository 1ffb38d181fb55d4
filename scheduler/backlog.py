"""Backlog items and their ordering."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from functools import cmp_to_key
from typing import Iterable, List, Optional, Union

LABEL_SENTINEL = 999

_WEEK = re.compile(r"week\s*(\d+)", re.IGNORECASE)
_DAY = re.compile(r"day\s*(\d+)", re.IGNORECASE)
_BARE_NUMBER = re.compile(r"^\s*(\d+)\s*$")


@dataclass(frozen=True)
class SchedulableItem:
    """A unit of content that can be given a calendar date."""

    id: str
    title: str = ""
    order_hint: Optional[int] = None
    week_label: Optional[str] = None
    day_label: Optional[str] = None
    completed_at: Optional[date] = None
    assigned_date: Optional[date] = None


def extract_week_number(label: Union[str, int, None]) -> int:
    """Week number from labels like "Week 3"; unparseable labels sort last."""

    return _extract(label, _WEEK)


def extract_day_number(label: Union[str, int, None]) -> int:
    """Day number from "Day 2" (or a bare "2"); unparseable labels sort last."""

    if isinstance(label, str):
        bare = _BARE_NUMBER.match(label)
        if bare:
            return int(bare.group(1))
    return _extract(label, _DAY)


def _extract(label: Union[str, int, None], pattern: "re.Pattern[str]") -> int:
    if label is None or isinstance(label, bool):
        return LABEL_SENTINEL
    if isinstance(label, int):
        return label
    match = pattern.search(label)
    if not match:
        return LABEL_SENTINEL
    return int(match.group(1))


def compare_items(a: SchedulableItem, b: SchedulableItem) -> int:
    if a.order_hint is not None and b.order_hint is not None:
        return _sign(a.order_hint - b.order_hint)
    week = _sign(extract_week_number(a.week_label) - extract_week_number(b.week_label))
    if week:
        return week
    return _sign(extract_day_number(a.day_label) - extract_day_number(b.day_label))


def order_backlog(items: Iterable[SchedulableItem]) -> List[SchedulableItem]:
    """Return items in teaching order; equal items keep their input order."""

    return sorted(items, key=cmp_to_key(compare_items))


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


__all__ = [
    "LABEL_SENTINEL",
    "SchedulableItem",
    "compare_items",
    "extract_day_number",
    "extract_week_number",
    "order_backlog",
]
