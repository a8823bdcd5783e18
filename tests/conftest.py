"""Shared fixtures: an in-memory stand-in for the async Supabase client.

FakeSupabase supports the query builder calls the data layer makes
(select/insert/update/delete, eq/neq/gte/lte/lt/is_/not_, order, range, limit)
against plain lists of dicts, so services run end to end without a network.
"""
from __future__ import annotations

import os
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import pytest
from postgrest.exceptions import APIError

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")


class FakeQuery:
    def __init__(self, backend: "FakeSupabase", table: str):
        self.backend = backend
        self.table = table
        self.operation = "select"
        self.payload: Any = None
        self.filters: List[Callable[[Dict], bool]] = []
        self.ordering: Optional[tuple] = None
        self.bounds: Optional[tuple] = None
        self.max_rows: Optional[int] = None
        self._negate = False

    # operations
    def select(self, columns: str = "*"):
        self.operation = "select"
        return self

    def insert(self, rows):
        self.operation = "insert"
        self.payload = rows if isinstance(rows, list) else [rows]
        return self

    def update(self, patch):
        self.operation = "update"
        self.payload = patch
        return self

    def delete(self):
        self.operation = "delete"
        return self

    # filters
    def _add(self, predicate: Callable[[Dict], bool]):
        if self._negate:
            self._negate = False
            self.filters.append(lambda row: not predicate(row))
        else:
            self.filters.append(predicate)
        return self

    @property
    def not_(self):
        self._negate = True
        return self

    def eq(self, column, value):
        return self._add(lambda row: row.get(column) == value)

    def neq(self, column, value):
        return self._add(lambda row: row.get(column) != value)

    def gte(self, column, value):
        return self._add(lambda row: row.get(column) is not None and row.get(column) >= value)

    def lte(self, column, value):
        return self._add(lambda row: row.get(column) is not None and row.get(column) <= value)

    def lt(self, column, value):
        return self._add(lambda row: row.get(column) is not None and row.get(column) < value)

    def is_(self, column, value):
        assert value == "null"
        return self._add(lambda row: row.get(column) is None)

    # modifiers
    def order(self, column, desc=False):
        self.ordering = (column, desc)
        return self

    def range(self, start, end):
        self.bounds = (start, end)
        return self

    def limit(self, count):
        self.max_rows = count
        return self

    def _matching(self) -> List[Dict]:
        rows = self.backend.tables.setdefault(self.table, [])
        return [row for row in rows if all(f(row) for f in self.filters)]

    async def execute(self):
        self.backend.calls.append((self.table, self.operation))
        error = self.backend.should_fail(self)
        if error:
            raise error

        if self.operation == "insert":
            inserted = []
            for row in self.payload:
                row = dict(row)
                row.setdefault("id", self.backend.next_id(self.table))
                self.backend.tables.setdefault(self.table, []).append(row)
                inserted.append(dict(row))
            return SimpleNamespace(data=inserted)

        if self.operation == "update":
            updated = []
            for row in self._matching():
                row.update(self.payload)
                updated.append(dict(row))
            return SimpleNamespace(data=updated)

        if self.operation == "delete":
            doomed = self._matching()
            self.backend.tables[self.table] = [r for r in self.backend.tables[self.table] if r not in doomed]
            return SimpleNamespace(data=doomed)

        rows = self._matching()
        if self.ordering:
            column, desc = self.ordering
            present = sorted((r for r in rows if r.get(column) is not None), key=lambda r: r[column], reverse=desc)
            missing = [r for r in rows if r.get(column) is None]
            rows = missing + present if desc else present + missing
        if self.bounds:
            start, end = self.bounds
            rows = rows[start:end + 1]
        if self.max_rows is not None:
            rows = rows[:self.max_rows]
        return SimpleNamespace(data=[dict(r) for r in rows])


class FakeAuth:
    def __init__(self):
        self.tokens: Dict[str, str] = {}
        self.passwords: Dict[str, str] = {}
        self.signed_out: List[str] = []
        self.admin = SimpleNamespace(sign_out=self._sign_out)

    async def _sign_out(self, token):
        self.signed_out.append(token)
        self.tokens.pop(token, None)

    async def get_user(self, token):
        email = self.tokens.get(token)
        return SimpleNamespace(user=SimpleNamespace(email=email) if email else None)

    async def sign_in_with_password(self, credentials):
        email = credentials["email"]
        assert self.passwords.get(email) == credentials["password"]
        token = f"token-{email}"
        self.tokens[token] = email
        return SimpleNamespace(
            user=SimpleNamespace(email=email),
            session=SimpleNamespace(access_token=token, refresh_token="refresh"),
        )


class FakeSupabase:
    def __init__(self, tables: Optional[Dict[str, List[Dict]]] = None):
        self.tables: Dict[str, List[Dict]] = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.calls: List[tuple] = []
        self.failures: List[Callable[[FakeQuery], Optional[APIError]]] = []
        self.auth = FakeAuth()
        self._ids: Dict[str, int] = {}

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def next_id(self, table: str) -> int:
        existing = [r.get("id") or 0 for r in self.tables.get(table, [])]
        self._ids[table] = max([self._ids.get(table, 0), *existing]) + 1
        return self._ids[table]

    def fail_when(self, predicate: Callable[[FakeQuery], bool], message="boom", code="XX000"):
        self.failures.append(lambda q: api_error(message, code) if predicate(q) else None)

    def should_fail(self, query: FakeQuery) -> Optional[APIError]:
        for check in self.failures:
            error = check(query)
            if error:
                return error
        return None


def api_error(message: str, code: str = "XX000") -> APIError:
    return APIError({"message": message, "code": code, "details": None, "hint": None})


def make_job(**fields) -> Dict[str, Any]:
    job = {
        "invoice_number": None,
        "customer_name": "Acme",
        "technician": "T1",
        "total_amount": 0,
        "parts_cost": 0,
        "parts_sold": 0,
        "is_oem_client": False,
        "paycode": 1,
        "city": None,
        "state": None,
        "zip_code_for_job": None,
        "date_recorded": "2024-01-15",
    }
    job.update(fields)
    return job


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def db(fake_supabase):
    from app.services.database import DashboardDatabase
    return DashboardDatabase(fake_supabase, page_size=1000)
