"""Request-level orchestration for the three planning domains.

The routes call into ``PlannerService``. Reads go through the shared
``CacheStore`` using stale-while-revalidate; writes go to the upstream
collection API and then invalidate the domain's cached items so the next read
sees the change.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from api.services.cache_store import CacheStore
from core.domains import DomainConfig
from gateway import CollectionGateway, UpstreamUnavailableError, WriteResult
from scheduler import Assignment, SchedulableItem, ScheduleAssigner, SeriesConfig, order_backlog

logger = logging.getLogger(__name__)

Spawn = Callable[..., Any]
"""Runs ``fn(*args)`` after the response, e.g. ``BackgroundTasks.add_task``."""


@dataclass
class ScheduleOutcome:
    series: SeriesConfig
    assignments: List[Assignment]
    write: WriteResult = field(default_factory=WriteResult)


def _spawn_thread(fn: Callable[..., Any], *args: Any) -> None:
    threading.Thread(target=fn, args=args, daemon=True).start()


class PlannerService:
    """Cached reads plus plan, cascade and pass-through writes per domain."""

    def __init__(
        self,
        gateway: CollectionGateway,
        cache: CacheStore,
        assigner: Optional[ScheduleAssigner] = None,
    ) -> None:
        self.gateway = gateway
        self.cache = cache
        self.assigner = assigner or ScheduleAssigner()

    # ------------------------------------------------------------------
    # Cached reads
    # ------------------------------------------------------------------
    def list_items(self, domain: DomainConfig, spawn: Optional[Spawn] = None) -> List[Dict[str, Any]]:
        def fetch() -> List[Dict[str, Any]]:
            return [domain.flatten(raw) for raw in self.gateway.fetch_items(domain)]

        return self._read_through(domain.items_cache_key, fetch, spawn)

    def list_series(self, domain: DomainConfig, spawn: Optional[Spawn] = None) -> List[Dict[str, Any]]:
        def fetch() -> List[Dict[str, Any]]:
            return [domain.flatten(raw) for raw in self.gateway.fetch_series(domain)]

        return self._read_through(domain.series_cache_key, fetch, spawn)

    def _read_through(self, key: str, fetch: Callable[[], Any], spawn: Optional[Spawn]) -> Any:
        lookup = self.cache.get(key)
        if lookup is not None:
            claim = None if lookup.fresh else self.cache.claim_refresh(key)
            if claim is not None:
                logger.debug("Serving stale %s; refresh scheduled", key)
                (spawn or _spawn_thread)(self._refresh, key, fetch, claim)
            return lookup.data

        logger.debug("Cache miss for %s", key)
        try:
            data = fetch()
        except UpstreamUnavailableError:
            fallback = self.cache.peek(key)
            if fallback is None:
                raise
            logger.warning("Upstream failed for %s; serving last known data", key)
            return fallback
        self.cache.set(key, data)
        return data

    def _refresh(self, key: str, fetch: Callable[[], Any], claim: Optional[int] = None) -> None:
        try:
            data = fetch()
        except Exception:
            # The caller already has the stale response; keep serving it.
            self.cache.fail_refresh(key, claim)
            logger.exception("Background refresh failed for %s", key)
            return
        if not self.cache.complete_refresh(key, data, claim):
            logger.debug("Discarded superseded refresh for %s", key)

    # ------------------------------------------------------------------
    # Series
    # ------------------------------------------------------------------
    def active_series(self, domain: DomainConfig) -> Optional[SeriesConfig]:
        """First series, in upstream order, with both a start date and a title."""

        for raw in self.gateway.fetch_series(domain):
            series = domain.to_series(raw)
            if series is not None:
                return series
        return None

    def add_series(self, domain: DomainConfig, title: str, properties: Dict[str, Any]) -> Any:
        result = self.gateway.add_series(domain, title, properties)
        self.cache.invalidate(domain.series_cache_key)
        return result

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def plan_month(self, domain: DomainConfig) -> ScheduleOutcome:
        series = self.active_series(domain)
        backlog = self._backlog(domain)
        assignments = self.assigner.plan_next_batch(backlog, series)
        logger.info(
            "Planned %d %s items from %s", len(assignments), domain.name.value, _first_date(assignments)
        )
        return self._persist(domain, series, assignments)

    def cascade_reschedule(self, domain: DomainConfig, item_id: str, new_date: date) -> ScheduleOutcome:
        series = self.active_series(domain)
        backlog = self._backlog(domain)
        assignments = self.assigner.cascade_reschedule(backlog, item_id, new_date, series)
        logger.info(
            "Cascaded %d %s items from %s on %s",
            len(assignments),
            domain.name.value,
            item_id,
            new_date.isoformat(),
        )
        return self._persist(domain, series, assignments)

    def _backlog(self, domain: DomainConfig) -> List[SchedulableItem]:
        return order_backlog(domain.to_item(raw) for raw in self.gateway.fetch_items(domain))

    def _persist(
        self, domain: DomainConfig, series: SeriesConfig, assignments: List[Assignment]
    ) -> ScheduleOutcome:
        write = self.write_dates(domain, [(a.item.id, a.date) for a in assignments])
        return ScheduleOutcome(series=series, assignments=assignments, write=write)

    # ------------------------------------------------------------------
    # Pass-through writes
    # ------------------------------------------------------------------
    def write_dates(self, domain: DomainConfig, updates: Sequence[Tuple[str, date]]) -> WriteResult:
        result = self.gateway.write_assignments(domain, updates)
        if result.failures:
            logger.warning(
                "%d of %d %s date writes failed",
                result.failed,
                len(updates),
                domain.name.value,
            )
        if result.succeeded:
            self.cache.invalidate(domain.items_cache_key)
        return result

    def update_item(
        self, domain: DomainConfig, item_id: str, properties: Dict[str, Any], title: Optional[str] = None
    ) -> Any:
        result = self.gateway.update_item(domain, item_id, properties, title=title)
        self.cache.invalidate(domain.items_cache_key)
        return result

    def add_item(self, domain: DomainConfig, title: str, properties: Dict[str, Any]) -> Any:
        result = self.gateway.add_item(domain, title, properties)
        self.cache.invalidate(domain.items_cache_key)
        return result

    def delete_item(self, domain: DomainConfig, item_id: str) -> Any:
        result = self.gateway.delete_item(domain, item_id)
        self.cache.invalidate(domain.items_cache_key)
        return result


def _first_date(assignments: List[Assignment]) -> str:
    return assignments[0].date.isoformat() if assignments else "nothing"


__all__ = ["PlannerService", "ScheduleOutcome"]
