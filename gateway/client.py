"""HTTP client for the upstream Craft collection API."""

from __future__ import annotations

import json
import logging
import threading
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

from core.domains import DOMAINS, DomainConfig, DomainName
from core.settings import Settings, get_settings

logger = logging.getLogger(__name__)

ITEMS = "items"
SERIES = "series"


class UpstreamUnavailableError(RuntimeError):
    """The upstream collection API could not be reached or refused the call."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class CollectionMissingError(UpstreamUnavailableError):
    """No upstream collection matched a domain during discovery."""


@dataclass
class WriteFailure:
    id: str
    error: str


@dataclass
class WriteResult:
    succeeded: int = 0
    failures: List[WriteFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def partial(self) -> bool:
        return bool(self.failures) and self.succeeded > 0


class CollectionGateway:
    """Thin wrapper around the collection endpoints used by the planner."""

    def __init__(self, settings: Optional[Settings] = None, opener=None) -> None:
        self.settings = settings or get_settings()
        self._http_opener = opener or urllib.request.build_opener()
        self._collections: Dict[Tuple[DomainName, str], str] = {}
        self._discovered = False
        self._discovery_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------
    def list_collections(self) -> List[Dict[str, Any]]:
        return _unwrap(self._request("GET", "/collections"))

    def collection_id(self, domain: DomainConfig, kind: str) -> str:
        with self._discovery_lock:
            discovered_now = not self._discovered
            if discovered_now:
                self._discover()
            collection = self._collections.get((domain.name, kind))
            if collection is None and not discovered_now:
                # The collection may have been created upstream since startup.
                logger.info("No %s %s collection mapped; rediscovering", domain.name.value, kind)
                self._collections.clear()
                self._discover()
                collection = self._collections.get((domain.name, kind))
        if collection is None:
            raise CollectionMissingError(
                f"{domain.name.value} {kind} collection not found. Check API connection."
            )
        return collection

    def _discover(self) -> None:
        collections = self.list_collections()
        logger.info("Discovered %d upstream collections", len(collections))
        for config in DOMAINS.values():
            for collection in collections:
                name = str(collection.get("name") or collection.get("title") or "")
                if config.items_collection.matches(name):
                    self._collections.setdefault((config.name, ITEMS), str(collection["id"]))
                elif config.series_collection.matches(name):
                    self._collections.setdefault((config.name, SERIES), str(collection["id"]))
        for (name, kind), collection in sorted(self._collections.items()):
            logger.info("Mapped %s %s -> %s", name.value, kind, collection)
        self._discovered = True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def fetch_items(self, domain: DomainConfig) -> List[Dict[str, Any]]:
        collection = self.collection_id(domain, ITEMS)
        return _unwrap(self._request("GET", f"/collections/{collection}/items"))

    def fetch_series(self, domain: DomainConfig) -> List[Dict[str, Any]]:
        collection = self.collection_id(domain, SERIES)
        return _unwrap(self._request("GET", f"/collections/{collection}/items"))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def write_assignments(
        self, domain: DomainConfig, assignments: Iterable[Tuple[str, date]]
    ) -> WriteResult:
        """Write each date on its own so one bad item does not sink the batch."""

        collection = self.collection_id(domain, ITEMS)
        result = WriteResult()
        for item_id, day in assignments:
            update = {"id": item_id, "properties": domain.date_properties(day)}
            try:
                self._request(
                    "PUT", f"/collections/{collection}/items", {"itemsToUpdate": [update]}
                )
            except UpstreamUnavailableError as exc:
                logger.warning("Failed to write %s for %s: %s", domain.date_field, item_id, exc)
                result.failures.append(WriteFailure(id=item_id, error=str(exc)))
            else:
                result.succeeded += 1
        return result

    def update_item(
        self,
        domain: DomainConfig,
        item_id: str,
        properties: Dict[str, Any],
        title: Optional[str] = None,
    ) -> Any:
        collection = self.collection_id(domain, ITEMS)
        update: Dict[str, Any] = {"id": item_id, "properties": properties}
        if title is not None:
            update["title"] = title
        return self._request("PUT", f"/collections/{collection}/items", {"itemsToUpdate": [update]})

    def add_item(self, domain: DomainConfig, title: str, properties: Dict[str, Any]) -> Any:
        return self._create(self.collection_id(domain, ITEMS), title, properties)

    def add_series(self, domain: DomainConfig, title: str, properties: Dict[str, Any]) -> Any:
        return self._create(self.collection_id(domain, SERIES), title, properties)

    def delete_item(self, domain: DomainConfig, item_id: str) -> Any:
        collection = self.collection_id(domain, ITEMS)
        return self._request("DELETE", f"/collections/{collection}/items", {"idsToDelete": [item_id]})

    def _create(self, collection: str, title: str, properties: Dict[str, Any]) -> Any:
        # Upstream rejects explicit nulls.
        clean = {key: value for key, value in properties.items() if value is not None}
        return self._request(
            "POST", f"/collections/{collection}/items", {"items": [{"title": title, "properties": clean}]}
        )

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------
    def _request(self, method: str, endpoint: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.settings.craft_api_url}{endpoint}"
        headers = {
            "Authorization": f"Bearer {self.settings.craft_api_key}",
            "Content-Type": "application/json",
        }
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        request = urllib.request.Request(url, data=data, headers=headers, method=method)
        try:
            with self._http_opener.open(request, timeout=self.settings.upstream_timeout) as response:
                raw = response.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            message = exc.read().decode("utf-8", errors="replace") if exc.fp else exc.reason
            raise UpstreamUnavailableError(
                f"Craft API error ({exc.code}): {message}", status=exc.code
            ) from exc
        except (urllib.error.URLError, OSError) as exc:
            raise UpstreamUnavailableError(f"Craft API unreachable: {exc}") from exc
        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise UpstreamUnavailableError(f"Craft API returned invalid JSON: {exc}") from exc


def _unwrap(result: Any) -> List[Dict[str, Any]]:
    if isinstance(result, dict):
        return list(result.get("items") or [])
    return list(result or [])


__all__ = [
    "CollectionGateway",
    "CollectionMissingError",
    "UpstreamUnavailableError",
    "WriteFailure",
    "WriteResult",
]
