"""Stale-while-revalidate response cache.

Entries are served fresh for ``fresh_ttl`` seconds, then served stale (while
the caller kicks off one background refresh) until ``stale_ttl``, after which
they count as missing. The store is process-local and owned by the
application; nothing is persisted.
"""

from __future__ import annotations

import itertools
import threading
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional

FRESH_TTL = 300.0
STALE_TTL = 600.0


@dataclass
class CacheEntry:
    key: str
    data: Optional[Any] = None
    timestamp: float = 0.0
    refreshing: bool = False
    claim: int = 0

    @property
    def populated(self) -> bool:
        return self.data is not None


@dataclass(frozen=True)
class CacheLookup:
    data: Any
    fresh: bool


class CacheStore:
    """Per-key cache with freshness classification and single-flight refresh."""

    def __init__(
        self,
        fresh_ttl: float = FRESH_TTL,
        stale_ttl: float = STALE_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if stale_ttl < fresh_ttl:
            raise ValueError("stale_ttl must be at least fresh_ttl")
        self.fresh_ttl = fresh_ttl
        self.stale_ttl = stale_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._claims = itertools.count(1)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get(self, key: str) -> Optional[CacheLookup]:
        """Fresh or stale data for ``key``; None once older than ``stale_ttl``."""

        with self._lock:
            entry = self._entries.get(key)
            if entry is None or not entry.populated:
                return None
            age = self._clock() - entry.timestamp
            if age < self.fresh_ttl:
                return CacheLookup(entry.data, fresh=True)
            if age < self.stale_ttl:
                return CacheLookup(entry.data, fresh=False)
            return None

    def peek(self, key: str) -> Optional[Any]:
        """Last stored data regardless of age."""

        with self._lock:
            entry = self._entries.get(key)
            return entry.data if entry is not None else None

    def entry(self, key: str) -> CacheEntry:
        """Snapshot of the entry for ``key``."""

        with self._lock:
            return replace(self._entry(key))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def set(self, key: str, data: Any) -> None:
        with self._lock:
            entry = self._entry(key)
            entry.data = data
            entry.timestamp = self._clock()
            entry.refreshing = False

    def invalidate(self, key: Optional[str] = None) -> None:
        """Reset one entry, or every entry when ``key`` is None."""

        with self._lock:
            keys = [key] if key is not None else list(self._entries)
            for name in keys:
                self._entries[name] = CacheEntry(key=name)

    # ------------------------------------------------------------------
    # Background refresh coordination
    # ------------------------------------------------------------------
    def begin_refresh(self, key: str) -> bool:
        """Claim the refresh for ``key``; False if another refresh holds it."""

        return self.claim_refresh(key) is not None

    def claim_refresh(self, key: str) -> Optional[int]:
        """Like ``begin_refresh`` but returns a token identifying the claim."""

        with self._lock:
            entry = self._entry(key)
            if entry.refreshing:
                return None
            entry.refreshing = True
            entry.claim = next(self._claims)
            return entry.claim

    def complete_refresh(self, key: str, data: Any, claim: Optional[int] = None) -> bool:
        """Store refreshed data unless the entry was invalidated meanwhile.

        With ``claim`` given, the data is also dropped when a newer refresh has
        claimed the key since.
        """

        with self._lock:
            entry = self._entry(key)
            if not self._holds(entry, claim):
                return False
            entry.data = data
            entry.timestamp = self._clock()
            entry.refreshing = False
            return True

    def fail_refresh(self, key: str, claim: Optional[int] = None) -> None:
        """Release the refresh claim and keep serving the stale data."""

        with self._lock:
            entry = self._entry(key)
            if self._holds(entry, claim):
                entry.refreshing = False

    @staticmethod
    def _holds(entry: CacheEntry, claim: Optional[int]) -> bool:
        return entry.refreshing and (claim is None or entry.claim == claim)

    def _entry(self, key: str) -> CacheEntry:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = CacheEntry(key=key)
        return entry


__all__ = ["CacheEntry", "CacheLookup", "CacheStore", "FRESH_TTL", "STALE_TTL"]
