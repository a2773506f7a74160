from bson import ObjectId


def event_body(**fields):
    body = {
        "title": "PyCon Dhaka",
        "startDate": "2030-03-01T10:00:00",
        "location": {"address": "Road 1", "city": "Dhaka", "mapLink": ""},
    }
    body.update(fields)
    return body


def test_create_event_defaults(client, admin_headers):
    res = client.post("/api/events", json=event_body(), headers=admin_headers)
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["slug"] == "pycon-dhaka"
    assert data["status"] == "upcoming"
    assert data["currency"] == "BDT"
    assert data["price"] == 0
    assert data["location"]["city"] == "Dhaka"


def test_location_is_required(client, admin_headers):
    body = event_body()
    del body["location"]
    res = client.post("/api/events", json=body, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["message"].startswith("location")


def test_status_must_be_known(client, admin_headers, db):
    res = client.post("/api/events", json=event_body(status="postponed"), headers=admin_headers)
    assert res.status_code == 400
    assert db["event"].count_documents({}) == 0


def test_end_before_start(client, admin_headers):
    res = client.post(
        "/api/events",
        json=event_body(endDate="2030-02-01T10:00:00"),
        headers=admin_headers,
    )
    assert res.status_code == 400
    assert "endDate" in res.json()["message"]


def test_duplicate_slug(client, admin_headers, db):
    client.post("/api/events", json=event_body(), headers=admin_headers)
    res = client.post("/api/events", json=event_body(), headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "Slug already exists"
    assert db["event"].count_documents({}) == 1


def test_list_sorted_by_start_date_and_filtered(client, admin_headers):
    client.post("/api/events", json=event_body(title="Later", startDate="2030-06-01T10:00:00"), headers=admin_headers)
    client.post("/api/events", json=event_body(title="Sooner", startDate="2030-01-01T10:00:00"), headers=admin_headers)
    client.post(
        "/api/events",
        json=event_body(title="Old", startDate="2020-01-01T10:00:00", status="completed"),
        headers=admin_headers,
    )

    titles = [e["title"] for e in client.get("/api/events").json()["data"]]
    assert titles == ["Old", "Sooner", "Later"]

    upcoming = client.get("/api/events", params={"status": "upcoming"}).json()
    assert upcoming["count"] == 2


def test_update_unknown_event_leaves_collection_unchanged(client, admin_headers, db):
    client.post("/api/events", json=event_body(), headers=admin_headers)
    before = list(db["event"].find())

    res = client.put("/api/events", json={"id": str(ObjectId()), "title": "Changed"}, headers=admin_headers)
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Event not found"}
    assert list(db["event"].find()) == before


def test_update_event(client, admin_headers):
    event = client.post("/api/events", json=event_body(), headers=admin_headers).json()["data"]
    res = client.put(
        "/api/events",
        json={"id": event["id"], "status": "ongoing", "price": 500},
        headers=admin_headers,
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["status"] == "ongoing"
    assert data["price"] == 500
    assert data["title"] == "PyCon Dhaka"


def test_update_end_before_stored_start(client, admin_headers):
    event = client.post("/api/events", json=event_body(), headers=admin_headers).json()["data"]
    res = client.put(
        "/api/events",
        json={"id": event["id"], "endDate": "2029-01-01T00:00:00"},
        headers=admin_headers,
    )
    assert res.status_code == 400


def test_delete_event(client, admin_headers, remove):
    event = client.post("/api/events", json=event_body(), headers=admin_headers).json()["data"]
    assert remove("/api/events", event["id"], admin_headers).status_code == 200
    assert client.get("/api/events").json()["count"] == 0
    assert remove("/api/events", event["id"], admin_headers).status_code == 404


def test_mixed_timezone_dates(client, admin_headers):
    res = client.post(
        "/api/events",
        json=event_body(startDate="2030-03-01T10:00:00Z", endDate="2030-03-02T10:00:00"),
        headers=admin_headers,
    )
    assert res.status_code == 200

    # 12:00+06:00 is 06:00 UTC, before the 10:00 UTC start
    res = client.post(
        "/api/events",
        json=event_body(title="Sprint", startDate="2030-03-01T10:00:00", endDate="2030-03-01T12:00:00+06:00"),
        headers=admin_headers,
    )
    assert res.status_code == 400
    assert "endDate" in res.json()["message"]


def test_concurrent_duplicate_slug(client, admin_headers, db, monkeypatch):
    import content

    # both requests pass the lookup before either has inserted
    monkeypatch.setattr(content, "slug_taken", lambda *args, **kwargs: False)
    client.post("/api/events", json=event_body(), headers=admin_headers)
    res = client.post("/api/events", json=event_body(), headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "Slug already exists"
    assert db["event"].count_documents({}) == 1
