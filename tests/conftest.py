"""
pytest configuration and fixtures for the User Registry test suite
In-memory doubles for the storage layer and a fake asyncpg pool
"""

import asyncio
import itertools
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio

from user_registry.app import create_app
from user_registry.database.connection import Database, RetryPolicy
from user_registry.services.base_service import ErrorType, ServiceResult


class FakeDatabase:
    """Stands in for Database in API tests"""

    def __init__(self, ready: bool = True, ping_error: Optional[Exception] = None):
        self.ready = ready
        self.ping_error = ping_error
        self.name = "test_db"
        self.started = False
        self.closed = False

    def is_ready(self) -> bool:
        return self.ready

    async def ping(self) -> None:
        if self.ping_error is not None:
            raise self.ping_error

    async def start(self) -> None:
        self.started = True

    async def close(self) -> None:
        self.closed = True


class InMemoryUsersService:
    """Same contract as UsersService, backed by a dict"""

    def __init__(self, database: FakeDatabase):
        self.database = database
        self.rows: Dict[int, Dict[str, Any]] = {}
        self._ids = itertools.count(1)
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.fail_with: Optional[str] = None

    def _guard(self) -> Optional[ServiceResult]:
        if not self.database.is_ready():
            return ServiceResult.failure(ErrorType.NOT_READY, "Database pool not initialized")
        if self.fail_with:
            return ServiceResult.failure(ErrorType.DATABASE_ERROR, self.fail_with)
        return None

    @staticmethod
    def _public(row: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "id": row["id"],
            "nombre": row["nombre"],
            "email": row["email"],
            "telefono": row["telefono"],
            "fecha_creacion": row["fecha_creacion"].isoformat(),
        }

    async def list_users(self) -> ServiceResult:
        failure = self._guard()
        if failure:
            return failure
        rows = sorted(self.rows.values(), key=lambda r: (r["fecha_creacion"], r["id"]), reverse=True)
        return ServiceResult.ok([self._public(r) for r in rows])

    async def get_user(self, user_id: int) -> ServiceResult:
        failure = self._guard()
        if failure:
            return failure
        if user_id not in self.rows:
            return ServiceResult.failure(ErrorType.RESOURCE_NOT_FOUND, "not found")
        return ServiceResult.ok([self._public(self.rows[user_id])])

    async def create_user(self, nombre: str, email: str, telefono: str) -> ServiceResult:
        failure = self._guard()
        if failure:
            return failure
        email = email.strip()
        if any(row["email"] == email for row in self.rows.values()):
            return ServiceResult.failure(ErrorType.CONFLICT, "duplicate")
        self._clock += timedelta(seconds=1)
        user_id = next(self._ids)
        self.rows[user_id] = {
            "id": user_id,
            "nombre": nombre.strip(),
            "email": email,
            "telefono": telefono.strip(),
            "fecha_creacion": self._clock,
        }
        return ServiceResult.ok([self._public(self.rows[user_id])])

    async def delete_user(self, user_id: int) -> ServiceResult:
        failure = self._guard()
        if failure:
            return failure
        row = self.rows.pop(user_id, None)
        if row is None:
            return ServiceResult.failure(ErrorType.RESOURCE_NOT_FOUND, "not found")
        return ServiceResult.ok([{"id": row["id"], "nombre": row["nombre"]}])

    async def count_users(self) -> ServiceResult:
        failure = self._guard()
        if failure:
            return failure
        return ServiceResult(success=True, data=[{"total": len(self.rows)}], count=len(self.rows))

    async def count_recent_users(self, window: timedelta) -> ServiceResult:
        failure = self._guard()
        if failure:
            return failure
        cutoff = self._clock - window
        recent = sum(1 for row in self.rows.values() if row["fecha_creacion"] >= cutoff)
        return ServiceResult(success=True, data=[{"recent": recent}], count=recent)


# === Fake asyncpg pool ===

class FakeConnection:
    """
    Records every query; ``handler`` decides what each call returns.

    handler(method, query, args) -> value, or raises to simulate a driver error.
    """

    def __init__(self, handler: Optional[Callable] = None):
        self.handler = handler or (lambda method, query, args: None)
        self.calls: List[tuple] = []

    def _call(self, method: str, query: str, args: tuple):
        self.calls.append((method, " ".join(query.split()), args))
        return self.handler(method, query, args)

    async def fetch(self, query, *args):
        return self._call("fetch", query, args) or []

    async def fetchrow(self, query, *args):
        return self._call("fetchrow", query, args)

    async def fetchval(self, query, *args):
        return self._call("fetchval", query, args)

    async def execute(self, query, *args):
        return self._call("execute", query, args)

    @asynccontextmanager
    async def transaction(self):
        yield


class StalledConnection(FakeConnection):
    """Never finishes an execute call; ``started`` is set once one begins"""

    def __init__(self):
        super().__init__()
        self.started = asyncio.Event()

    async def execute(self, query, *args):
        self._call("execute", query, args)
        self.started.set()
        await asyncio.Event().wait()


class FakePool:
    def __init__(self, conn: FakeConnection):
        self.conn = conn
        self.acquire_timeouts: List[Optional[float]] = []
        self.closed = False
        self.terminated = False

    @asynccontextmanager
    async def _acquire(self):
        yield self.conn

    def acquire(self, timeout=None):
        self.acquire_timeouts.append(timeout)
        return self._acquire()

    async def close(self):
        self.closed = True

    def terminate(self):
        self.terminated = True


def make_database(pool_factory, retry_policy: Optional[RetryPolicy] = None) -> Database:
    return Database(
        host="db.test",
        port=5432,
        user="tester",
        password="secret",
        database="mi_app_db",
        retry_policy=retry_policy or RetryPolicy(delay=0.01),
        pool_factory=pool_factory,
    )


@pytest.fixture
def database_factory():
    return make_database


@pytest.fixture
def fake_connection():
    return FakeConnection()


@pytest.fixture
def fake_pool(fake_connection):
    return FakePool(fake_connection)


@pytest_asyncio.fixture
async def stalled_pool():
    return FakePool(StalledConnection())


@pytest_asyncio.fixture
async def ready_database(fake_pool):
    """Database whose pool was created by the fake factory"""

    async def factory(**kwargs):
        return fake_pool

    database = make_database(factory)
    assert await database.initialize()
    yield database
    await database.close()


# === API fixtures ===

@pytest.fixture
def fake_database():
    return FakeDatabase()


@pytest.fixture
def users_service(fake_database):
    return InMemoryUsersService(fake_database)


@pytest.fixture
def app(fake_database, users_service):
    return create_app(database=fake_database, users_service=users_service)


@pytest_asyncio.fixture
async def api_client(app):
    """HTTP client talking to the app in-process"""
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
