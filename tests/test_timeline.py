"""
Tests for the clinic timeline: ordering, cursors, language and rendering.
"""
from datetime import datetime, timedelta, timezone

from cliniflow.timeline.formatter import format_event
from cliniflow.timeline.models import TimelineEvent
from cliniflow.timeline.service import record_event

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


def add_events(client, headers, count):
    ids = []
    for i in range(count):
        response = client.post("/api/admin/timeline/events", headers=headers, json={
            "type": "note",
            "message": f"Event {i}",
            "details": {"index": i},
        })
        assert response.status_code == 201
        ids.append(response.json()["event"]["id"])
    return ids


def test_events_newest_first(client, admin_headers):
    ids = add_events(client, admin_headers, 3)

    data = client.get("/api/admin/timeline", headers=admin_headers).json()
    assert [e["id"] for e in data["events"]] == list(reversed(ids))
    assert data["events"][0]["type"] == "NOTE"
    assert data["events"][0]["icon"] == "📝"
    assert data["events"][0]["created_by"].startswith("admin:")
    assert data["pagination"]["has_more"] is False
    assert data["pagination"]["next_cursor"] is None


def test_cursor_pages_do_not_overlap(client, admin_headers):
    ids = add_events(client, admin_headers, 5)

    seen = []
    cursor = None
    while True:
        params = {"limit": 2}
        if cursor:
            params["cursor"] = cursor
        data = client.get("/api/admin/timeline", headers=admin_headers, params=params).json()
        seen.extend(e["id"] for e in data["events"])
        cursor = data["pagination"]["next_cursor"]
        if not data["pagination"]["has_more"]:
            break

    assert seen == list(reversed(ids))


def test_cursor_is_stable_when_new_events_arrive(client, admin_headers):
    ids = add_events(client, admin_headers, 4)
    first = client.get("/api/admin/timeline", headers=admin_headers, params={"limit": 2}).json()

    add_events(client, admin_headers, 2)
    second = client.get(
        "/api/admin/timeline",
        headers=admin_headers,
        params={"limit": 2, "cursor": first["pagination"]["next_cursor"]},
    ).json()
    assert [e["id"] for e in second["events"]] == [ids[1], ids[0]]


def test_same_timestamp_ordered_by_id(client, db, clinic, admin_headers):
    for i in range(3):
        db.add(TimelineEvent(clinic_id=clinic.id, type="NOTE", message=f"tie {i}", created_at=NOW))
    db.commit()

    page = client.get("/api/admin/timeline", headers=admin_headers, params={"limit": 1}).json()
    rest = client.get(
        "/api/admin/timeline",
        headers=admin_headers,
        params={"limit": 5, "cursor": page["pagination"]["next_cursor"]},
    ).json()
    assert [e["message"] for e in page["events"] + rest["events"]] == ["tie 2", "tie 1", "tie 0"]


def test_invalid_cursor(client, admin_headers):
    response = client.get("/api/admin/timeline", headers=admin_headers, params={"cursor": "%%%not-base64"})
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_cursor"


def test_limit_is_capped(client, admin_headers):
    data = client.get("/api/admin/timeline", headers=admin_headers, params={"limit": 500}).json()
    assert data["pagination"]["limit"] == 200


def test_offset(client, admin_headers):
    ids = add_events(client, admin_headers, 3)
    data = client.get("/api/admin/timeline", headers=admin_headers, params={"offset": 1}).json()
    assert [e["id"] for e in data["events"]] == [ids[1], ids[0]]


def test_turkish_rendering(client, admin_headers, group):
    event = client.get("/api/admin/timeline", headers=admin_headers, params={"lang": "tr"}).json()["events"][0]
    assert event["title"] == "Tedavi Grubu Oluşturuldu"
    assert event["subtitle"].startswith("Grup: Full mouth restoration | Hasta: Ayse Yilmaz")
    assert event["relative_time"] == "Az önce"


def test_timeline_is_clinic_scoped(client, db, other_clinic, admin_headers):
    db.add(TimelineEvent(clinic_id=other_clinic.id, type="NOTE", message="elsewhere"))
    db.commit()
    assert client.get("/api/admin/timeline", headers=admin_headers).json()["events"] == []


def test_create_event_requires_message(client, admin_headers):
    response = client.post("/api/admin/timeline/events", headers=admin_headers, json={"type": "NOTE"})
    assert response.status_code == 400
    assert response.json()["error"] == "missing_fields"


def test_format_known_event():
    event = TimelineEvent(
        id=7,
        type="DOCTOR_ASSIGNED",
        reference_id="3",
        message="Doctor assigned to treatment group",
        details={"doctor_name": "Dr. Elif Demir"},
        created_at=NOW - timedelta(hours=3),
    )
    row = format_event(event, "en", now=NOW)
    assert row["icon"] == "👨‍⚕️"
    assert row["title"] == "Doctor Assigned"
    assert row["subtitle"] == "Doctor: Dr. Elif Demir | Group: Unknown"
    assert row["relative_time"] == "3 hours ago"
    assert row["created_at"] == "2024-05-10T09:00:00+00:00"


def test_format_unknown_event_falls_back_to_message():
    event = TimelineEvent(id=1, type="CUSTOM", message="Something happened", details={"a": 1}, created_at=NOW - timedelta(days=2))
    row = format_event(event, "tr", now=NOW)
    assert row["icon"] == "📝"
    assert row["title"] == "Something happened"
    assert '"a": 1' in row["subtitle"]
    assert row["relative_time"] == "2 gün önce"


def test_record_event_never_raises(db, clinic, monkeypatch):
    def broken_commit():
        raise RuntimeError("database is gone")

    monkeypatch.setattr(db, "commit", broken_commit)
    assert record_event(db, clinic.id, "NOTE", "lost") is None
