"""
Tests for Web Push subscriptions and delivery.
"""
import json
from types import SimpleNamespace

import pytest
from pywebpush import WebPushException
from requests.exceptions import ConnectionError as PushConnectionError

from cliniflow.config import settings
from cliniflow.notifications import service as push_service
from cliniflow.notifications.models import PushSubscription


def subscription_body(endpoint="https://push.example.test/sub/1"):
    return {"subscription": {"endpoint": endpoint, "keys": {"p256dh": "BNc-key", "auth": "auth-secret"}}}


@pytest.fixture
def vapid(monkeypatch):
    monkeypatch.setattr(settings, "vapid_public_key", "BPublicKey")
    monkeypatch.setattr(settings, "vapid_private_key", "private-key")


@pytest.fixture
def sent(monkeypatch):
    """Replace ``webpush`` with a recorder; endpoints containing ``gone``, ``broken`` or ``offline`` fail."""
    calls = []

    def fake_webpush(subscription_info, data, vapid_private_key, vapid_claims):
        endpoint = subscription_info["endpoint"]
        if "gone" in endpoint:
            raise WebPushException("Push failed", response=SimpleNamespace(status_code=410, text="Gone"))
        if "broken" in endpoint:
            raise WebPushException("Push failed", response=SimpleNamespace(status_code=500, text="Oops"))
        if "offline" in endpoint:
            raise PushConnectionError("push service unreachable")
        calls.append({"info": subscription_info, "data": json.loads(data), "claims": vapid_claims})

    monkeypatch.setattr(push_service, "webpush", fake_webpush)
    return calls


def test_public_key(client, vapid):
    assert client.get("/api/push/public-key").json() == {"ok": True, "publicKey": "BPublicKey"}


def test_public_key_not_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "vapid_public_key", None)
    response = client.get("/api/push/public-key")
    assert response.status_code == 503
    assert response.json() == {"ok": False, "error": "push_not_configured"}


def test_subscribe_is_idempotent_per_endpoint(client, db, patient, patient_headers):
    url = f"/api/patient/{patient.patient_id}/push-subscription"

    response = client.post(url, headers=patient_headers, json=subscription_body())
    assert response.status_code == 201
    first_id = response.json()["subscriptionId"]

    body = subscription_body()
    body["subscription"]["keys"]["auth"] = "rotated"
    response = client.post(url, headers=patient_headers, json=body)
    assert response.json()["subscriptionId"] == first_id

    rows = db.query(PushSubscription).all()
    assert len(rows) == 1
    assert rows[0].auth == "rotated"


def test_subscribe_validation_and_ownership(client, patient, patient_headers, admin_headers):
    url = f"/api/patient/{patient.patient_id}/push-subscription"

    response = client.post(url, headers=patient_headers, json={"subscription": {"endpoint": "https://x"}})
    assert response.status_code == 400
    assert response.json()["error"] == "missing_fields"

    response = client.post(url, headers=admin_headers, json=subscription_body())
    assert response.status_code == 403
    assert response.json()["error"] == "patient_required"

    response = client.post("/api/patient/p_someone_else/push-subscription", headers=patient_headers, json=subscription_body())
    assert response.status_code == 403
    assert response.json()["error"] == "patient_id_mismatch"


def test_unsubscribe(client, db, patient, patient_headers):
    url = f"/api/patient/{patient.patient_id}/push-subscription"
    client.post(url, headers=patient_headers, json=subscription_body("https://push.example.test/a"))
    client.post(url, headers=patient_headers, json=subscription_body("https://push.example.test/b"))

    response = client.request("DELETE", url, headers=patient_headers, json={"endpoint": "https://push.example.test/a"})
    assert response.json() == {"ok": True, "removed": 1}

    response = client.delete(url, headers=patient_headers)
    assert response.json() == {"ok": True, "removed": 1}
    assert db.query(PushSubscription).count() == 0


def test_notify_sends_prunes_and_counts(client, db, vapid, sent, patient, patient_headers, admin_headers):
    url = f"/api/patient/{patient.patient_id}/push-subscription"
    for endpoint in ("https://push.example.test/ok", "https://push.example.test/gone", "https://push.example.test/broken"):
        client.post(url, headers=patient_headers, json=subscription_body(endpoint))

    response = client.post(
        f"/api/admin/patients/{patient.patient_id}/notify",
        headers=admin_headers,
        json={"title": "Appointment", "body": "See you tomorrow at 10:00", "url": "/appointments"},
    )
    assert response.status_code == 200
    assert response.json() == {"ok": True, "sent": 1, "failed": 1, "pruned": 1}

    assert sent[0]["data"] == {
        "title": "Appointment",
        "body": "See you tomorrow at 10:00",
        "data": {"url": "/appointments", "from": "CLINIC"},
    }
    assert sent[0]["claims"] == {"sub": settings.vapid_contact}

    endpoints = {row.endpoint for row in db.query(PushSubscription).all()}
    assert endpoints == {"https://push.example.test/ok", "https://push.example.test/broken"}


def test_notify_without_vapid(client, monkeypatch, patient, admin_headers):
    monkeypatch.setattr(settings, "vapid_private_key", None)
    response = client.post(
        f"/api/admin/patients/{patient.patient_id}/notify",
        headers=admin_headers,
        json={"title": "Hi", "body": "There"},
    )
    assert response.status_code == 503
    assert response.json()["error"] == "push_not_configured"


def test_notify_is_admin_only(client, vapid, patient, doctor_headers):
    response = client.post(
        f"/api/admin/patients/{patient.patient_id}/notify",
        headers=doctor_headers,
        json={"title": "Hi", "body": "There"},
    )
    assert response.status_code == 403
    assert response.json()["error"] == "admin_required"


def test_notify_survives_unreachable_push_service(client, db, vapid, sent, patient, patient_headers, admin_headers):
    url = f"/api/patient/{patient.patient_id}/push-subscription"
    for endpoint in ("https://push.example.test/gone", "https://push.example.test/offline", "https://push.example.test/ok"):
        client.post(url, headers=patient_headers, json=subscription_body(endpoint))

    response = client.post(
        f"/api/admin/patients/{patient.patient_id}/notify",
        headers=admin_headers,
        json={"title": "Reminder", "body": "Check-up next week"},
    )
    assert response.status_code == 200
    assert response.json() == {"ok": True, "sent": 1, "failed": 1, "pruned": 1}

    endpoints = {row.endpoint for row in db.query(PushSubscription).all()}
    assert endpoints == {"https://push.example.test/offline", "https://push.example.test/ok"}
