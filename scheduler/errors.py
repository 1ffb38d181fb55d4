"""Conditions raised by the scheduling core."""

from __future__ import annotations


class SchedulingError(Exception):
    """Base class for scheduling outcomes the caller must handle."""


class NoActiveSeriesError(SchedulingError):
    """No series with both a start date and a title exists for the domain."""


class EmptyBacklogError(SchedulingError):
    """The backlog has no items to schedule."""


class ItemNotFoundError(SchedulingError):
    """The item being moved is not part of the backlog."""

    def __init__(self, item_id: str) -> None:
        super().__init__(f"Item {item_id!r} is not in the backlog")
        self.item_id = item_id


__all__ = [
    "EmptyBacklogError",
    "ItemNotFoundError",
    "NoActiveSeriesError",
    "SchedulingError",
]
