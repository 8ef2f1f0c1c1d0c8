"""
Full stack against a live PostgreSQL server
Enabled by setting TEST_DB_HOST (and optionally TEST_DB_PORT/USER/PASSWORD/NAME).
"""

import os

import httpx
import pytest
import pytest_asyncio

from user_registry.app import create_app
from user_registry.database.connection import Database, RetryPolicy

pytestmark = pytest.mark.skipif(
    not os.getenv("TEST_DB_HOST"), reason="TEST_DB_HOST not set; live database tests skipped"
)


@pytest_asyncio.fixture
async def live_client():
    database = Database(
        host=os.getenv("TEST_DB_HOST", "localhost"),
        port=int(os.getenv("TEST_DB_PORT", 5432)),
        user=os.getenv("TEST_DB_USER", "postgres"),
        password=os.getenv("TEST_DB_PASSWORD", "postgres"),
        database=os.getenv("TEST_DB_NAME", "mi_app_db_test"),
        retry_policy=RetryPolicy(max_attempts=1),
    )
    await database.start()
    assert database.is_ready(), f"Could not connect: {database.last_error}"

    async with database.acquire() as conn:
        await conn.execute("TRUNCATE usuarios RESTART IDENTITY")

    app = create_app(database=database)
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client

    await database.close()


class TestPostgresRoundTrip:

    @pytest.mark.asyncio
    async def test_create_fetch_delete(self, live_client):
        created = await live_client.post(
            "/api/users", json={"nombre": " Ana ", "email": "ana@test.com", "telefono": "555-1"}
        )
        assert created.status_code == 201
        user_id = created.json()["user"]["id"]

        fetched = await live_client.get(f"/api/users/{user_id}")
        assert fetched.json()["nombre"] == "Ana"

        duplicate = await live_client.post(
            "/api/users", json={"nombre": "Otra", "email": "ana@test.com", "telefono": "1"}
        )
        assert duplicate.status_code == 409

        deleted = await live_client.delete(f"/api/users/{user_id}")
        assert deleted.json()["deletedUser"] == {"id": user_id, "nombre": "Ana"}
        assert (await live_client.get(f"/api/users/{user_id}")).status_code == 404

    @pytest.mark.asyncio
    async def test_list_is_newest_first(self, live_client):
        ids = []
        for i in range(3):
            response = await live_client.post(
                "/api/users", json={"nombre": f"U{i}", "email": f"u{i}@test.com", "telefono": "1"}
            )
            ids.append(response.json()["user"]["id"])

        users = (await live_client.get("/api/users")).json()
        assert [u["id"] for u in users] == list(reversed(ids))

        stats = (await live_client.get("/api/stats")).json()
        assert stats["totalUsers"] == 3
        assert stats["recentUsers"] == 3
