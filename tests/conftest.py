import os

os.environ["ADMIN_EMAIL"] = "admin@portfolio.dev"
os.environ["ADMIN_PASSWORD"] = "test-password"
os.environ.pop("ADMIN_PASSWORD_HASH", None)
os.environ["JWT_SECRET"] = "test-secret"

import mongomock  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import database  # noqa: E402
import main  # noqa: E402
from security import ADMIN_EMAIL, create_access_token  # noqa: E402


@pytest.fixture
def db():
    test_db = mongomock.MongoClient()["portfolio_test"]
    database.ensure_indexes(test_db)
    return test_db


@pytest.fixture
def client(db):
    main.app.dependency_overrides[database.get_db] = lambda: db
    with TestClient(main.app, raise_server_exceptions=False) as c:
        yield c
    main.app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": ADMIN_EMAIL, "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def cdn(monkeypatch):
    """Replace the Cloudinary upload call; returns the list of uploads made."""
    calls = []

    def fake_upload(file, folder=None, resource_type=None, **kwargs):
        calls.append({"folder": folder, "resource_type": resource_type, "data": file.read()})
        return {"secure_url": f"https://res.cloudinary.com/demo/{folder}/{len(calls)}.png"}

    monkeypatch.setattr("cloudinary.uploader.upload", fake_upload)
    return calls


@pytest.fixture
def remove(client):
    """DELETE with the id in the JSON body."""

    def _remove(url, doc_id, headers=None):
        return client.request("DELETE", url, json={"id": doc_id}, headers=headers)

    return _remove
