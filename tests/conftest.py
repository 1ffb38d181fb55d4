from __future__ import annotations

import io
import json
import urllib.error
from datetime import date
from typing import Any, Dict, List, Optional

import pytest

from api.services.cache_store import CacheStore
from core.settings import Settings
from gateway import CollectionGateway
from scheduler import ScheduleAssigner

BASE_URL = "https://craft.example.invalid/api/v1"
TODAY = date(2024, 1, 1)  # a Monday


class FakeResponse:
    def __init__(self, body: Any) -> None:
        self._raw = json.dumps(body).encode("utf-8")

    def read(self) -> bytes:
        return self._raw

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc: Any) -> None:
        return None


class FakeCraft:
    """In-memory stand-in for the Craft collection API, used as a urllib opener."""

    def __init__(self) -> None:
        self.collections: List[Dict[str, str]] = []
        self.items: Dict[str, List[Dict[str, Any]]] = {}
        self.requests: List[tuple] = []
        self.fail_reads = False
        self.fail_writes_for: set = set()

    def add_collection(self, collection_id: str, name: str, items: Optional[List[Dict[str, Any]]] = None) -> None:
        self.collections.append({"id": collection_id, "name": name})
        self.items[collection_id] = list(items or [])

    def item(self, collection_id: str, item_id: str) -> Dict[str, Any]:
        return next(i for i in self.items[collection_id] if i["id"] == item_id)

    def count(self, method: str, suffix: str = "") -> int:
        return sum(1 for m, path, _ in self.requests if m == method and path.endswith(suffix))

    def open(self, request, timeout=None):
        method = request.get_method()
        path = request.full_url[len(BASE_URL):]
        payload = json.loads(request.data.decode("utf-8")) if request.data else None
        self.requests.append((method, path, payload))
        if method == "GET" and self.fail_reads:
            raise urllib.error.URLError("connection refused")
        if path == "/collections":
            return FakeResponse({"items": self.collections})
        collection = path.split("/")[2]
        items = self.items[collection]
        if method == "GET":
            return FakeResponse({"items": items})
        if method == "PUT":
            for update in payload["itemsToUpdate"]:
                if update["id"] in self.fail_writes_for:
                    raise urllib.error.HTTPError(
                        request.full_url, 500, "boom", {}, io.BytesIO(b"write rejected")
                    )
                target = next(i for i in items if i["id"] == update["id"])
                target.setdefault("properties", {}).update(update.get("properties") or {})
                if "title" in update:
                    target["title"] = update["title"]
            return FakeResponse({"items": payload["itemsToUpdate"]})
        if method == "POST":
            created = []
            for index, item in enumerate(payload["items"]):
                new = {"id": f"new-{len(items) + index + 1}", **item}
                items.append(new)
                created.append(new)
            return FakeResponse({"items": created})
        if method == "DELETE":
            ids = set(payload["idsToDelete"])
            self.items[collection] = [i for i in items if i["id"] not in ids]
            return FakeResponse({"deleted": sorted(ids)})
        raise AssertionError(f"unexpected {method} {path}")


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def lesson(item_id: str, week: str, day: str, **props: Any) -> Dict[str, Any]:
    return {"id": item_id, "title": f"{week} {day}", "properties": {"week_lesson": week, "day": day, **props}}


@pytest.fixture
def settings() -> Settings:
    return Settings(craft_api_url=BASE_URL, craft_api_key="test-key", llm_mode="stub")


@pytest.fixture
def craft() -> FakeCraft:
    fake = FakeCraft()
    fake.add_collection("col-overview", "Bible Teaching Overview")
    fake.add_collection("col-sermon-series", "Sermon Series")
    fake.add_collection(
        "col-lessons",
        "Devotion Lessons",
        [
            lesson("l3", "Week 1", "Day 3"),
            lesson("l1", "Week 1", "Day 1", last_taught="2023-12-20"),
            lesson("l2", "Week 1", "Day 2", last_taught="2023-12-21"),
            lesson("l4", "Week 2", "Day 1"),
            lesson("l5", "Week 2", "Day 2"),
        ],
    )
    fake.add_collection(
        "col-devotion-series",
        "Devotion Series",
        [
            {"id": "s0", "title": "", "properties": {"start_date": "2023-09-01"}},
            {
                "id": "s1",
                "title": "Family Foundations",
                "properties": {"start_date": "2023-12-01", "what_days_of_the_week": ["Monday", "Wednesday", "Friday"]},
            },
        ],
    )
    fake.add_collection("col-english", "English Classes", [])
    fake.add_collection("col-english-series", "English Class Series", [])
    return fake


@pytest.fixture
def gateway(settings: Settings, craft: FakeCraft) -> CollectionGateway:
    return CollectionGateway(settings, opener=craft)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> CacheStore:
    return CacheStore(fresh_ttl=300, stale_ttl=600, clock=clock)


@pytest.fixture
def assigner() -> ScheduleAssigner:
    return ScheduleAssigner(today=lambda: TODAY)
