"""
Shared fixtures for the backend tests.

The tests never talk to a real Supabase project: FakeSupabaseClient mimics the
supabase-py query builder (table().select()/insert()/update()/delete() with
.eq()/.limit()/.execute()) over in-memory rows and FakeGoTrue mimics its auth
namespace, so the services and the API run unchanged against them.

How to run (from the repository root):
    pip install -e ".[test]"
    pytest
"""

import os
import uuid
from types import SimpleNamespace
from typing import Any

# Settings are read once at import; give them values before app is imported
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient

from app.core.security import create_access_token
from app.main import app
from app.services.crm_service import CrmService, get_crm_service
from app.services.supabase_service import SupabaseService, get_supabase_service


class FakeQuery:
    """One query chain against a single table. Mutating ops apply on execute()."""

    def __init__(self, db: "FakeSupabaseClient", table: str) -> None:
        self._db = db
        self._table = table
        self._op = "select"
        self._columns = "*"
        self._count: str | None = None
        self._payload: dict[str, Any] | None = None
        self._filters: list[tuple[str, Any]] = []
        self._limit: int | None = None

    def select(self, *columns: str, count: str | None = None) -> "FakeQuery":
        self._op = "select"
        self._columns = ",".join(columns) or "*"
        self._count = count
        return self

    def insert(self, row: dict[str, Any]) -> "FakeQuery":
        self._op = "insert"
        self._payload = dict(row)
        return self

    def update(self, row: dict[str, Any]) -> "FakeQuery":
        self._op = "update"
        self._payload = dict(row)
        return self

    def delete(self) -> "FakeQuery":
        self._op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append((column, value))
        return self

    def limit(self, n: int) -> "FakeQuery":
        self._limit = n
        return self

    def _project(self, row: dict[str, Any]) -> dict[str, Any]:
        if self._columns.strip() == "*":
            return dict(row)
        cols = [c.strip() for c in self._columns.split(",")]
        return {c: row.get(c) for c in cols}

    def execute(self) -> SimpleNamespace:
        self._db.calls.append((self._table, self._op))
        failure = self._db.failures.get((self._table, self._op))
        if failure is not None:
            raise failure

        rows = self._db.tables.setdefault(self._table, {})
        if self._op == "insert":
            new_row = dict(self._payload or {})
            new_row.setdefault("id", str(uuid.uuid4()))
            rows[new_row["id"]] = new_row
            return SimpleNamespace(data=[dict(new_row)], count=None)

        matched = [
            r for r in rows.values()
            if all(r.get(col) == value for col, value in self._filters)
        ]
        if self._op == "select":
            total = len(matched)
            if self._limit is not None:
                matched = matched[: self._limit]
            return SimpleNamespace(
                data=[self._project(r) for r in matched],
                count=total if self._count else None,
            )
        if self._op == "update":
            for r in matched:
                r.update(self._payload or {})
            return SimpleNamespace(data=[dict(r) for r in matched], count=None)
        # delete
        for r in matched:
            del rows[r["id"]]
        return SimpleNamespace(data=[dict(r) for r in matched], count=None)


class FakeSupabaseClient:
    """In-memory stand-in for supabase.Client (table access only)."""

    def __init__(self) -> None:
        self.tables: dict[str, dict[str, dict[str, Any]]] = {}
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], BaseException] = {}

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def fail(self, table: str, op: str, exc: BaseException) -> None:
        """Make every `op` on `table` raise exc."""
        self.failures[(table, op)] = exc

    def put(self, table: str, row: dict[str, Any]) -> str:
        """Store a raw row as written by an older client; returns its id."""
        row = dict(row)
        row.setdefault("id", str(uuid.uuid4()))
        self.tables.setdefault(table, {})[row["id"]] = row
        return row["id"]

    def rows(self, table: str) -> list[dict[str, Any]]:
        return list(self.tables.get(table, {}).values())


class FakeGoTrue:
    """
    In-memory stand-in for the supabase client's `auth` namespace:
    sign_up, sign_in_with_password and admin.sign_out.
    """

    def __init__(self) -> None:
        self.users: dict[str, tuple[str, SimpleNamespace]] = {}
        self.revoked: list[str] = []
        self.require_confirmation = False
        self.withhold_session = False
        self.error: BaseException | None = None
        self.admin = SimpleNamespace(sign_out=self._admin_sign_out)

    def _raise_if_failing(self) -> None:
        if self.error is not None:
            raise self.error

    @staticmethod
    def _session() -> SimpleNamespace:
        return SimpleNamespace(
            access_token="access-token",
            refresh_token="refresh-token",
            expires_in=3600,
            expires_at=1_900_000_000,
        )

    def sign_up(self, credentials: dict[str, Any]) -> SimpleNamespace:
        self._raise_if_failing()
        email = credentials["email"]
        if email in self.users:
            raise RuntimeError("User already registered")
        user = SimpleNamespace(
            id=f"user-{len(self.users) + 1}",
            email=email,
            user_metadata=credentials.get("options", {}).get("data", {}),
            created_at=None,
        )
        self.users[email] = (credentials["password"], user)
        session = None if self.require_confirmation else self._session()
        return SimpleNamespace(user=user, session=session)

    def sign_in_with_password(self, credentials: dict[str, Any]) -> SimpleNamespace:
        self._raise_if_failing()
        entry = self.users.get(credentials["email"])
        if entry is None or entry[0] != credentials["password"]:
            raise RuntimeError("Invalid login credentials")
        session = None if self.withhold_session else self._session()
        return SimpleNamespace(user=entry[1], session=session)

    def _admin_sign_out(self, jwt: str) -> None:
        self._raise_if_failing()
        self.revoked.append(jwt)


class FakeAuthClient:
    """supabase.Client stand-in exposing only `.auth`."""

    def __init__(self, auth: FakeGoTrue) -> None:
        self.auth = auth


USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture
def fake_db() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def crm(fake_db: FakeSupabaseClient) -> CrmService:
    return CrmService(client=fake_db)


@pytest.fixture
def gotrue() -> FakeGoTrue:
    return FakeGoTrue()


@pytest.fixture
def auth_service(gotrue: FakeGoTrue) -> SupabaseService:
    return SupabaseService(client=FakeAuthClient(gotrue), auth_client=FakeAuthClient(gotrue))


@pytest.fixture
def client(crm: CrmService, auth_service: SupabaseService):
    """TestClient with both services running on in-memory fakes."""
    app.dependency_overrides[get_crm_service] = lambda: crm
    app.dependency_overrides[get_supabase_service] = lambda: auth_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def bearer(user_id: str = USER_ID, **claims: Any) -> dict[str, str]:
    token = create_access_token({"sub": user_id, **claims})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return bearer(USER_ID, email="me@example.com")


@pytest.fixture
def other_headers() -> dict[str, str]:
    return bearer(OTHER_USER_ID)


@pytest.fixture
def make_headers():
    """Factory for Authorization headers with arbitrary claims."""
    return bearer
