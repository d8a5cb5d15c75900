"""
Shared fixtures

Every test gets its own SQLite file with the schema, the permission
catalogue, an admin (token ADMIN_TOKEN) and a depot viewer that may only read
depots (token VIEWER_TOKEN). Settings are pointed at a scratch directory
before the application is imported.
"""
import asyncio
import os
import tempfile
from pathlib import Path

SCRATCH_DIR = Path(tempfile.mkdtemp(prefix="dcc_sfa_tests_"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{SCRATCH_DIR / 'app.db'}"
os.environ["STORAGE_DIR"] = str(SCRATCH_DIR / "uploads")
os.environ["LOG_DIR"] = str(SCRATCH_DIR / "logs")
os.environ["TOKEN_CLEANUP_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import NullPool

from dcc_sfa.core.deps import get_db
from dcc_sfa.db.base import Base
from dcc_sfa.db.seed import ensure_permissions, ensure_role, ensure_user, issue_token
from dcc_sfa.db.session import build_engine, build_session_factory
from dcc_sfa.main import app

ADMIN_TOKEN = "test-admin-token"
VIEWER_TOKEN = "test-viewer-token"
API = "/api/v1"


async def _prepare_database(engine, session_factory):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with session_factory() as db:
        await ensure_permissions(db)
        admin_role = await ensure_role(db, "Admin", description="Full access")
        admin = await ensure_user(db, "admin@example.com", "Test Admin", admin_role)
        await issue_token(db, admin, ADMIN_TOKEN)

        viewer_role = await ensure_role(db, "Depot Viewer", ["depot_read"])
        viewer = await ensure_user(db, "viewer@example.com", "Test Viewer", viewer_role)
        await issue_token(db, viewer, VIEWER_TOKEN)
        await db.commit()


@pytest.fixture
def session_factory(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    factory = build_session_factory(engine)
    asyncio.run(_prepare_database(engine, factory))
    yield factory
    asyncio.run(engine.dispose())


@pytest.fixture
def run_db(session_factory):
    """Run an async callable taking a session: run_db(lambda db: ...)"""
    def runner(fn):
        async def wrapper():
            async with session_factory() as db:
                return await fn(db)
        return asyncio.run(wrapper())
    return runner


@pytest.fixture
def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def viewer_headers():
    return {"Authorization": f"Bearer {VIEWER_TOKEN}"}


@pytest.fixture
def api(client, admin_headers):
    """Admin-authenticated request helper: api("post", "/depots", json=...)"""
    def call(method, path, **kwargs):
        headers = {**admin_headers, **kwargs.pop("headers", {})}
        return client.request(method.upper(), f"{API}{path}", headers=headers, **kwargs)
    return call


@pytest.fixture
def company(api):
    response = api("post", "/companies", json={"name": "Acme Beverages"})
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def depot(api, company):
    response = api("post", "/depots", json={"parent_id": company["id"], "name": "North Depot"})
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def customer(api):
    response = api("post", "/customers", json={"name": "Corner Shop", "city": "Nairobi"})
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def product(api):
    response = api("post", "/products", json={
        "name": "Cola 500ml", "code": "COLA500", "unit_of_measurement": "btl", "base_price": 1.5,
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def order(api, customer, product):
    response = api("post", "/orders", json={
        "customer_id": customer["id"],
        "items": [{"product_id": product["id"], "quantity": 10, "unit_price": 1.5}],
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]
