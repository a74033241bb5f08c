# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - An in-memory Supabase stand-in that answers the query-builder calls the
#   services make and records every write
# - A TestClient with the service-role header for internal endpoints
# =============================================================================

import os
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock
from uuid import UUID

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length-1234")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("TWILIO_ACCOUNT_SID", "AC-test")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "test-twilio-token")
os.environ.setdefault("TWILIO_PHONE_NUMBER", "+15550000000")
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "test-telegram-token")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import pytest

from lib.supabase_client import SupabaseClient


SERVICE_HEADERS = {"Authorization": "Bearer test-service-key"}
USER_ID = "550e8400-e29b-41d4-a716-446655440000"
TEAM_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"


# =============================================================================
# In-memory Supabase
# =============================================================================

class _Negation:
    """Target of `query.not_`; only `.is_()` is used by the services."""

    def __init__(self, query: "FakeQuery"):
        self._query = query

    def is_(self, column: str, value: str) -> "FakeQuery":
        self._query.filters.append(("not_is", column, value))
        return self._query


class FakeQuery:
    """Records one chained PostgREST query and runs it against FakeSupabase."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.columns = "*"
        self.payload: Any = None
        self.options: dict[str, Any] = {}
        self.filters: list[tuple[str, str, Any]] = []
        self.ordering: list[tuple[str, bool]] = []
        self.row_limit: int | None = None
        self.single = False

    # Operations
    def select(self, columns: str = "*", **kwargs) -> "FakeQuery":
        self.columns = columns
        return self

    def insert(self, data, **kwargs) -> "FakeQuery":
        self.op, self.payload = "insert", data
        return self

    def update(self, data, **kwargs) -> "FakeQuery":
        self.op, self.payload = "update", data
        return self

    def upsert(self, data, **kwargs) -> "FakeQuery":
        self.op, self.payload, self.options = "upsert", data, kwargs
        return self

    def delete(self, **kwargs) -> "FakeQuery":
        self.op = "delete"
        return self

    # Filters
    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(("eq", column, value))
        return self

    def neq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(("neq", column, value))
        return self

    def gte(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(("gte", column, value))
        return self

    def gt(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(("gt", column, value))
        return self

    def lte(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(("lte", column, value))
        return self

    def in_(self, column: str, values: list[Any]) -> "FakeQuery":
        self.filters.append(("in", column, list(values)))
        return self

    def is_(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(("is", column, value))
        return self

    @property
    def not_(self) -> _Negation:
        return _Negation(self)

    # Modifiers
    def order(self, column: str, desc: bool = False, **kwargs) -> "FakeQuery":
        self.ordering.append((column, desc))
        return self

    def limit(self, count: int, **kwargs) -> "FakeQuery":
        self.row_limit = count
        return self

    def maybe_single(self) -> "FakeQuery":
        self.single = True
        return self

    def execute(self):
        return self.db.run(self)

    def matches(self, row: dict[str, Any]) -> bool:
        for kind, column, value in self.filters:
            current = row.get(column)
            if kind == "eq" and current != value:
                return False
            if kind == "neq" and current == value:
                return False
            if kind == "gte" and (current is None or current < value):
                return False
            if kind == "gt" and (current is None or current <= value):
                return False
            if kind == "lte" and (current is None or current > value):
                return False
            if kind == "in" and current not in value:
                return False
            if kind == "is" and current is not None:
                return False
            if kind == "not_is" and current is None:
                return False
        return True


class FakeSupabase:
    """
    Stand-in for the supabase-py client.

    Tables are plain lists of dicts. Selects filter them, inserts append
    (assigning an id when missing), updates and upserts modify in place.
    Every executed query is kept in `queries` for assertions.
    """

    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None):
        self.tables: dict[str, list[dict[str, Any]]] = {
            name: [dict(row) for row in table_rows]
            for name, table_rows in (tables or {}).items()
        }
        self.queries: list[FakeQuery] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.rpc_results: dict[str, Any] = {}
        self.rpc_calls: list[tuple[str, Any]] = []
        self._next_id = 0

        self.auth = MagicMock()
        self.auth.admin.list_users.return_value = []
        self.auth.admin.get_user_by_id.return_value = SimpleNamespace(
            user=SimpleNamespace(user_metadata={})
        )

    # Test helpers
    def fail(self, table: str, op: str, error: Exception | None = None) -> None:
        """Make every `op` query on `table` raise."""
        self.failures[(table, op)] = error or Exception(f"{op} on {table} failed")

    def writes(self, table: str, op: str) -> list[Any]:
        """Payloads of the executed `op` queries on `table`."""
        return [q.payload for q in self.queries if q.table == table and q.op == op]

    def rows(self, table: str) -> list[dict[str, Any]]:
        return self.tables.setdefault(table, [])

    # Client surface
    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict[str, Any] | None = None):
        def execute():
            self.rpc_calls.append((name, params))
            result = self.rpc_results.get(name)
            if isinstance(result, Exception):
                raise result
            return SimpleNamespace(data=result)

        return SimpleNamespace(execute=execute)

    def run(self, query: FakeQuery):
        self.queries.append(query)
        failure = self.failures.get((query.table, query.op))
        if failure:
            raise failure

        table = self.rows(query.table)

        if query.op == "insert":
            records = query.payload if isinstance(query.payload, list) else [query.payload]
            inserted = [self._store(table, record) for record in records]
            return SimpleNamespace(data=inserted)

        if query.op == "upsert":
            key = query.options.get("on_conflict", "id")
            existing = next((r for r in table if r.get(key) == query.payload.get(key)), None)
            if existing is not None:
                existing.update(query.payload)
                return SimpleNamespace(data=[dict(existing)])
            return SimpleNamespace(data=[self._store(table, query.payload)])

        matched = [row for row in table if query.matches(row)]

        if query.op == "update":
            for row in matched:
                row.update(query.payload)
            return SimpleNamespace(data=[dict(row) for row in matched])

        if query.op == "delete":
            self.tables[query.table] = [row for row in table if row not in matched]
            return SimpleNamespace(data=matched)

        for column, desc in reversed(query.ordering):
            matched.sort(key=lambda r: (r.get(column) is None, r.get(column) or ""), reverse=desc)
        if query.row_limit is not None:
            matched = matched[: query.row_limit]

        if query.single:
            # maybe_single() answers None when nothing matched
            return SimpleNamespace(data=dict(matched[0])) if matched else None
        return SimpleNamespace(data=[dict(row) for row in matched])

    def _store(self, table: list[dict[str, Any]], record: dict[str, Any]) -> dict[str, Any]:
        row = dict(record)
        if "id" not in row:
            self._next_id += 1
            row["id"] = f"row-{self._next_id}"
        table.append(row)
        return dict(row)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_db():
    """Install an empty FakeSupabase as the shared client."""
    db = FakeSupabase()
    SupabaseClient._instance = db
    yield db
    SupabaseClient._instance = None


@pytest.fixture
def user_row():
    return {
        "id": USER_ID,
        "email": "jane@example.com",
        "name": "Jane Doe",
        "team_id": TEAM_ID,
    }


@pytest.fixture
def client(fake_db):
    """TestClient for the API with the database swapped out."""
    from fastapi.testclient import TestClient
    from app.main import app

    # No lifespan: the Redis listener is not started
    return TestClient(app)


@pytest.fixture
def auth_user():
    """Authenticate every request as USER_ID."""
    from app.auth import AuthUser, get_current_user
    from app.main import app

    user = AuthUser(id=UUID(USER_ID), email="jane@example.com")
    app.dependency_overrides[get_current_user] = lambda: user
    yield user
    app.dependency_overrides.pop(get_current_user, None)
