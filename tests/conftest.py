import pytest
from fastapi.testclient import TestClient

from app.database.supabase_client import get_supabase
from app.main import app
from app.scripts.seed_permissions_roles import seed_permissions, seed_roles
from tests.fakes import FakeSupabase
from tests.helpers import USERS


@pytest.fixture
def db():
    fake = FakeSupabase()
    seed_permissions(fake)
    seed_roles(fake)
    for token, profile in USERS.items():
        fake.auth.add_token(token, profile["user_id"], profile["email"])
        fake.table("profiles").insert(dict(profile)).execute()
    # authenticated, but nobody provisioned a profile
    fake.auth.add_token("orphan-token", "u-orphan", "orphan@ordi.test")
    return fake


@pytest.fixture
def client(db):
    app.dependency_overrides[get_supabase] = lambda: db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
