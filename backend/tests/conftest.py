# backend/tests/conftest.py
from __future__ import annotations

import os
import tempfile
import uuid

# Settings are read at import time; point them at throwaway storage first.
_TMP = tempfile.mkdtemp(prefix="contractor_hub_tests_")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_TMP, 'test.db')}")
os.environ.setdefault("DOCUMENT_STORAGE_DIR", os.path.join(_TMP, "documents"))
os.environ.setdefault("AUTH_MODE", "dev")
os.environ.setdefault("APP_ENV", "local")

import pytest
from fastapi.testclient import TestClient

from contractor_hub.cli.seed_demo import SeedResult, seed_into
from contractor_hub.db import SessionLocal, init_db
from contractor_hub.main import create_app


@pytest.fixture(scope="session")
def app():
    init_db()
    return create_app()


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


def _seed(password: str = "demo-password") -> SeedResult:
    suffix = uuid.uuid4().hex[:8]
    s = SessionLocal()
    try:
        return seed_into(
            s,
            tenant_slug=f"t-{suffix}",
            company_name=f"Painter {suffix}",
            user_email=f"owner-{suffix}@example.com",
            password=password,
        )
    finally:
        s.close()


@pytest.fixture()
def seeded() -> SeedResult:
    """A fresh tenant with one job per pricing shape."""
    return _seed()


@pytest.fixture()
def other_tenant() -> SeedResult:
    return _seed()


def auth_headers(seed: SeedResult) -> dict[str, str]:
    return {"X-Tenant-Slug": seed.tenant_slug, "X-User-Email": seed.user_email}


@pytest.fixture()
def headers(seeded) -> dict[str, str]:
    return auth_headers(seeded)


@pytest.fixture()
def other_headers(other_tenant) -> dict[str, str]:
    return auth_headers(other_tenant)
