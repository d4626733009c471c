"""
Shared fixtures: an in-memory stand-in for the Supabase client and stub generators.
"""

import copy
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from memory_processing.core.config import GenerationConfig
from memory_processing.worker.database import MemoryDatabase


class FakeResult:
    def __init__(self, data: List[Dict[str, Any]], count: Optional[int] = None):
        self.data = data
        self.count = count


class FakeQuery:
    """Chainable query mimicking the postgrest builder used by the service."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.operation = "select"
        self.payload: Optional[Dict[str, Any]] = None
        self.on_conflict: Optional[str] = None
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self.order_by: Optional[Tuple[str, bool]] = None
        self.row_limit: Optional[int] = None

    def select(self, *columns, **kwargs):
        self.operation = "select"
        return self

    def update(self, data: Dict[str, Any]):
        self.operation = "update"
        self.payload = data
        return self

    def upsert(self, data: Dict[str, Any], on_conflict: Optional[str] = None):
        self.operation = "upsert"
        self.payload = data
        self.on_conflict = on_conflict
        return self

    def insert(self, data: Dict[str, Any]):
        self.operation = "insert"
        self.payload = data
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def lt(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) < value)
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) <= value)
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    def execute(self) -> FakeResult:
        self.db.calls.append((self.table_name, self.operation))
        failure = self.db.failures.get((self.table_name, self.operation))
        if failure is not None:
            raise failure

        rows = self.db.tables.setdefault(self.table_name, [])

        if self.operation == "insert":
            rows.append(dict(self.payload))
            return FakeResult([dict(self.payload)])

        if self.operation == "upsert":
            key = self.on_conflict
            for row in rows:
                if row.get(key) == self.payload.get(key):
                    row.update(self.payload)
                    return FakeResult([dict(row)])
            rows.append(dict(self.payload))
            return FakeResult([dict(self.payload)])

        matched = [row for row in rows if all(f(row) for f in self.filters)]

        if self.operation == "update":
            for row in matched:
                row.update(self.payload)
            return FakeResult([dict(row) for row in matched])

        if self.order_by:
            column, desc = self.order_by
            matched = sorted(matched, key=lambda row: row.get(column), reverse=desc)
        if self.row_limit is not None:
            matched = matched[:self.row_limit]
        return FakeResult(copy.deepcopy(matched), count=len(matched))


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self.storage = storage
        self.name = name

    def remove(self, paths: List[str]):
        removed = []
        for path in paths:
            self.storage.remove_calls.append((self.name, path))
            error = self.storage.errors.get(path)
            if error is not None:
                raise error
            if (self.name, path) in self.storage.objects:
                self.storage.objects.discard((self.name, path))
                removed.append({"name": path, "bucket_id": self.name})
        return removed


class FakeStorage:
    def __init__(self):
        self.objects = set()
        self.errors: Dict[str, Exception] = {}
        self.remove_calls: List[Tuple[str, str]] = []

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self, bucket)


class FakeAuth:
    def __init__(self):
        self.tokens: Dict[str, str] = {}

    def get_user(self, token: str):
        if token not in self.tokens:
            raise ValueError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id=self.tokens[token]))


class FakeSupabase:
    """In-memory substitute for supabase.Client."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.failures: Dict[Tuple[str, str], Exception] = {}
        self.calls: List[Tuple[str, str]] = []
        self.storage = FakeStorage()
        self.auth = FakeAuth()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, name: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(name, [])


class StubGenerator:
    """Generation client stand-in that answers from a handler and records calls."""

    def __init__(self, handler: Callable[[str, int, Optional[str]], Optional[str]]):
        self.handler = handler
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, prompt: str, max_tokens: int, system_prompt: Optional[str] = None) -> Optional[str]:
        self.calls.append({"prompt": prompt, "max_tokens": max_tokens, "system_prompt": system_prompt})
        return self.handler(prompt, max_tokens, system_prompt)

    async def close(self):
        pass


OWNER_ID = "user-1"


@pytest.fixture
def supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def memory_db(supabase) -> MemoryDatabase:
    return MemoryDatabase(supabase)


@pytest.fixture
def unconfigured_generation() -> GenerationConfig:
    return GenerationConfig(api_url="https://llm.test/v1/chat/completions", api_key=None, model="test-model")


def add_memory(supabase: FakeSupabase, memory_id: str, memory_type: str, input_text: str, user_id: str = OWNER_ID):
    supabase.rows("memories").append({
        "id": memory_id,
        "user_id": user_id,
        "memory_type": memory_type,
        "input_text": input_text,
        "processed_text": None,
        "title": None,
        "title_generated_at": None,
    })


def status_row(supabase: FakeSupabase, memory_id: str) -> Optional[Dict[str, Any]]:
    for row in supabase.rows("memory_processing_status"):
        if row["memory_id"] == memory_id:
            return row
    return None
