"""Recurring date scheduling for content backlogs."""

from .assigner import Assignment, ScheduleAssigner, SeriesConfig, resume_position
from .backlog import LABEL_SENTINEL, SchedulableItem, compare_items, order_backlog
from .dates import DateSequence, generate_dates, parse_weekdays
from .errors import EmptyBacklogError, ItemNotFoundError, NoActiveSeriesError, SchedulingError

__all__ = [
    "Assignment",
    "DateSequence",
    "EmptyBacklogError",
    "ItemNotFoundError",
    "LABEL_SENTINEL",
    "NoActiveSeriesError",
    "SchedulableItem",
    "ScheduleAssigner",
    "SchedulingError",
    "SeriesConfig",
    "compare_items",
    "generate_dates",
    "order_backlog",
    "parse_weekdays",
    "resume_position",
]
