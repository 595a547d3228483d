import pytest
from fastapi.testclient import TestClient

from core.cache import cache_clear_all
from fakes import ALICE, BOB, FakeSupabase


@pytest.fixture(autouse=True)
def clear_caches():
    cache_clear_all()
    yield
    cache_clear_all()


@pytest.fixture
def db(monkeypatch):
    fake = FakeSupabase()
    fake.add_user("alice-token", ALICE, "alice@example.com")
    fake.add_user("bob-token", BOB, "bob@example.com")

    for target in (
        "core.store.get_supabase_admin",
        "core.hub.router.get_supabase_admin",
        "apps.invoicing.router.get_supabase_admin",
    ):
        monkeypatch.setattr(target, lambda: fake)
    monkeypatch.setattr("core.auth.get_supabase", lambda: fake)
    return fake


@pytest.fixture
def api(db):
    from main import app
    return TestClient(app)


@pytest.fixture
def pro_alice(db):
    db.seed("profiles", {"id": ALICE, "plan": "pro"})
    return ALICE
