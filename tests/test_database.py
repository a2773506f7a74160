import mongomock
import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, PyMongoError

import database
import main
from errors import ValidationError


@pytest.fixture
def fresh_connection(monkeypatch):
    created = []

    def fake_client(url, **kwargs):
        created.append(url)
        return mongomock.MongoClient()

    database.close()
    monkeypatch.setattr(database, "MongoClient", fake_client)
    yield created
    database.close()


def test_connect_is_cached(fresh_connection, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "mongodb://db.example:27017")
    monkeypatch.setenv("DATABASE_NAME", "site")
    first = database.connect()
    second = database.connect()
    assert first is second
    assert first.name == "site"
    assert fresh_connection == ["mongodb://db.example:27017"]


def test_connect_without_url(fresh_connection, monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setattr(database, "DATABASE_URL", None)
    with pytest.raises(RuntimeError):
        database.connect()
    assert fresh_connection == []


def test_to_object_id():
    oid = ObjectId()
    assert database.to_object_id(str(oid)) == oid
    assert database.to_object_id(oid) is oid
    for bad in ["", "xyz", None]:
        with pytest.raises(ValidationError):
            database.to_object_id(bad)


def test_document_helpers():
    db = mongomock.MongoClient()["helpers"]
    doc = database.create_document(db, "faq", {"question": "q"})
    assert doc["createdAt"] == doc["updatedAt"]
    assert "_id" not in doc

    updated = database.update_document(db, "faq", doc["id"], {"question": "q2"})
    assert updated["question"] == "q2"
    assert database.update_document(db, "faq", str(ObjectId()), {"question": "x"}) is None

    assert database.get_documents(db, "faq", {"question": "q2"})[0]["id"] == doc["id"]
    assert database.delete_document(db, "faq", doc["id"]) is True
    assert database.delete_document(db, "faq", doc["id"]) is False


def test_singleton_helpers():
    db = mongomock.MongoClient()["helpers"]
    assert database.get_singleton(db, "about") is None
    first = database.upsert_singleton(db, "about", {"name": "A"})
    second = database.upsert_singleton(db, "about", {"name": "B"})
    assert first["id"] == second["id"]
    assert "key" not in second
    assert db["about"].count_documents({}) == 1


# Error envelope

def test_unknown_route_uses_envelope(client):
    res = client.get("/api/nothing-here")
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Not Found"}


def test_unexpected_errors_become_500(client):
    class Broken:
        def __getitem__(self, name):
            raise RuntimeError("connection reset")

    main.app.dependency_overrides[database.get_db] = lambda: Broken()
    res = client.get("/api/faq")
    assert res.status_code == 500
    assert res.json() == {"success": False, "message": "Server Error"}


def test_database_check_never_raises(client, monkeypatch):
    def down():
        raise RuntimeError("DATABASE_URL is not set")

    monkeypatch.setattr(database, "connect", down)
    res = client.get("/test")
    assert res.status_code == 200
    assert res.json()["backend"] == "running"
    assert res.json()["database"].startswith("error")


class Recorder:
    def __init__(self):
        self.events = []

    def info(self, event, **kw):
        self.events.append(event)

    def error(self, event, **kw):
        self.events.append(event)


def test_connect_failure_is_logged_and_raised(monkeypatch):
    log = Recorder()
    database.close()
    monkeypatch.setattr(database, "logger", log)
    monkeypatch.setenv("DATABASE_URL", "mongodb://")
    with pytest.raises(PyMongoError):
        database.connect()
    assert log.events == ["database_connect_failed"]
    # nothing half-initialised is cached
    assert database._db is None


def test_unreachable_database_returns_envelope(client, monkeypatch):
    database.close()
    main.app.dependency_overrides.pop(database.get_db)
    monkeypatch.setenv("DATABASE_URL", "mongodb://")
    res = client.get("/api/faq")
    assert res.status_code == 500
    assert res.json() == {"success": False, "message": "Server Error"}
    database.close()


def test_slug_index_is_unique():
    db = mongomock.MongoClient()["helpers"]
    database.ensure_indexes(db)
    db["blog"].insert_one({"slug": "same"})
    with pytest.raises(DuplicateKeyError):
        db["blog"].insert_one({"slug": "same"})
