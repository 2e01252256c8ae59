"""Shared fixtures: fake Gemini and Supabase clients, temp stores, sample data."""

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

# Ensure the `prospector` package is importable when running pytest from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from prospector.models import AIInsight, BusinessData, Location, Prospect, SearchResult
from prospector.services.prospect_store import LocalProspectStore


class FakeModels:
    """Stands in for `genai.Client().models`; replays queued responses in order."""

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def generate_content(self, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if not self.responses:
            raise RuntimeError("no more fake responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return SimpleNamespace(text=response)


class FakeGeminiClient:
    def __init__(self, *responses):
        self.models = FakeModels(list(responses))


class FakeQuery:
    """Minimal supabase-py query builder over an in-memory table."""

    def __init__(self, table: "FakeTable"):
        self.table = table
        self.action: Optional[str] = None
        self.payload: Any = None
        self.filters: List[tuple] = []
        self.order_by: Optional[tuple] = None

    def upsert(self, record, on_conflict=None):
        self.action, self.payload = "upsert", record
        self.on_conflict = on_conflict
        return self

    def select(self, columns="*"):
        self.action = "select"
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def delete(self):
        self.action = "delete"
        return self

    def update(self, data):
        self.action, self.payload = "update", data
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def _matches(self, row):
        return all(row.get(col) == val for col, val in self.filters)

    def execute(self):
        table = self.table
        table.executed.append((self.action, self.payload, list(self.filters)))
        if table.fail:
            raise ConnectionError("supabase unreachable")

        if self.action == "upsert":
            table.rows[self.payload["id"]] = dict(self.payload)
            return SimpleNamespace(data=[self.payload])
        if self.action == "select":
            rows = [dict(r) for r in table.rows.values() if self._matches(r)]
            if self.order_by:
                column, desc = self.order_by
                rows.sort(key=lambda r: r[column], reverse=desc)
            return SimpleNamespace(data=rows)
        if self.action == "delete":
            for key in [k for k, r in table.rows.items() if self._matches(r)]:
                del table.rows[key]
            return SimpleNamespace(data=[])
        if self.action == "update":
            for row in table.rows.values():
                if self._matches(row):
                    row.update(self.payload)
            return SimpleNamespace(data=[])
        raise AssertionError(f"unexpected action {self.action}")


class FakeTable:
    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.executed: List[tuple] = []
        self.fail = False


class FakeSupabaseClient:
    def __init__(self):
        self.tables: Dict[str, FakeTable] = {}

    def table(self, name):
        return FakeQuery(self.tables.setdefault(name, FakeTable()))

    def prospects(self) -> FakeTable:
        return self.tables.setdefault("prospects", FakeTable())


class FakeWatcher:
    """Records lifecycle calls; tests trigger changes with fire()."""

    def __init__(self, on_change):
        self.on_change = on_change
        self.started = False
        self.stopped = False

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True

    def fire(self):
        self.on_change()


def make_business(name="Austin Family Dental", **overrides) -> BusinessData:
    data = {
        "name": name,
        "address": "100 Congress Ave, Austin, TX",
        "rating": 3.9,
        "user_rating_count": 42,
        "phone": "512-555-0100",
        "website": "",
    }
    data.update(overrides)
    return BusinessData(**data)


def make_result(result_id="search-1-0", name="Austin Family Dental", **overrides) -> SearchResult:
    return SearchResult(
        id=result_id,
        business_data=make_business(name, **overrides),
        location=Location(lat=30.2672, lng=-97.7431),
    )


def make_prospect(prospect_id="search-1-0", timestamp=1_700_000_000_000, score=82, **overrides) -> Prospect:
    return Prospect(
        id=prospect_id,
        business_data=make_business(**overrides),
        location=Location(lat=30.2672, lng=-97.7431),
        ai_insight=AIInsight(
            score=score,
            analysis_summary="No website and middling reviews.",
            suggested_offer="Offer a booking site."
        ),
        timestamp=timestamp,
    )


@pytest.fixture
def local_store(tmp_path) -> LocalProspectStore:
    return LocalProspectStore(tmp_path / "store")


@pytest.fixture
def supabase_client() -> FakeSupabaseClient:
    return FakeSupabaseClient()
