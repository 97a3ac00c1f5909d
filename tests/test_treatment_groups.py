"""
Tests for treatment group lifecycle and status derivation.
"""
import pytest

from cliniflow.treatment_groups.models import GroupStatus, TreatmentGroup
from cliniflow.treatment_groups.service import derive_group_status
from cliniflow.treatments.models import TreatmentStatus as S


@pytest.mark.parametrize("statuses, expected", [
    ([], GroupStatus.NEW),
    ([S.CANCELLED, S.CANCELLED], GroupStatus.CANCELLED),
    ([S.DONE, S.DONE], GroupStatus.COMPLETED),
    ([S.DONE, S.CANCELLED], GroupStatus.COMPLETED),
    ([S.DONE, S.PLANNED], GroupStatus.IN_PROGRESS),
    ([S.PLANNED, S.DRAFT, S.CANCELLED], GroupStatus.PLANNED),
    ([S.APPROVED], GroupStatus.PLANNED),
])
def test_derive_group_status(statuses, expected):
    assert derive_group_status(statuses) == expected


def test_create_group(client, group, patient, doctor, second_doctor):
    assert group["patient_id"] == patient.patient_id
    assert group["group_name"] == "Full mouth restoration"
    assert group["calculated_status"] == "NEW"
    doctors = {d["id"]: d["is_primary"] for d in group["doctors"]}
    assert doctors == {doctor.id: True, second_doctor.id: False}


def test_create_group_records_timeline_event(client, admin_headers, group):
    events = client.get("/api/admin/timeline", headers=admin_headers).json()["events"]
    assert events[0]["type"] == "TREATMENT_GROUP_CREATED"
    assert events[0]["reference_id"] == str(group["id"])
    assert "Dr. Mehmet Kaya" in events[0]["subtitle"]


def test_primary_must_be_in_list(client, admin_headers, patient, doctor, second_doctor):
    response = client.post("/api/admin/treatment-groups", headers=admin_headers, json={
        "patient_id": patient.patient_id,
        "doctor_ids": [doctor.id],
        "primary_doctor_id": second_doctor.id,
        "name": "Implants",
    })
    assert response.status_code == 400
    assert response.json()["error"] == "primary_doctor_not_in_list"


def test_create_group_missing_fields(client, admin_headers, patient):
    response = client.post("/api/admin/treatment-groups", headers=admin_headers, json={
        "patient_id": patient.patient_id,
        "name": "No doctors",
    })
    assert response.status_code == 400
    assert response.json()["error"] == "missing_fields"


def test_unknown_doctor_stores_nothing(client, db, admin_headers, patient, doctor):
    response = client.post("/api/admin/treatment-groups", headers=admin_headers, json={
        "patient_id": patient.patient_id,
        "doctor_ids": [doctor.id, 999],
        "primary_doctor_id": doctor.id,
        "name": "Broken",
    })
    assert response.status_code == 404
    assert response.json()["error"] == "doctor_not_found"
    assert db.query(TreatmentGroup).count() == 0


def test_list_and_get_groups(client, admin_headers, group):
    groups = client.get("/api/admin/treatment-groups", headers=admin_headers).json()["data"]
    assert [g["id"] for g in groups] == [group["id"]]

    response = client.get(f"/api/admin/treatment-groups/{group['id']}", headers=admin_headers)
    assert response.json()["data"]["group_name"] == group["group_name"]

    missing = client.get("/api/admin/treatment-groups/999", headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["error"] == "treatment_group_not_found"


def test_groups_are_clinic_scoped(client, db, other_clinic, group):
    from cliniflow.clinics.models import Admin
    from cliniflow.core.security import create_admin_token
    from conftest import bearer

    outsider = Admin(clinic_id=other_clinic.id, email="boss@other.example.com", password_hash="x")
    db.add(outsider)
    db.commit()
    headers = bearer(create_admin_token(outsider.id, other_clinic.id, other_clinic.clinic_code))

    assert client.get("/api/admin/treatment-groups", headers=headers).json()["data"] == []
    response = client.get(f"/api/admin/treatment-groups/{group['id']}", headers=headers)
    assert response.status_code == 404


def test_assign_new_primary_demotes_previous(client, db, clinic, admin_headers, group, doctor):
    from conftest import make_doctor

    third = make_doctor(db, clinic, "can@smile.example.com", "Dr. Can Oz")
    url = f"/api/admin/treatment-groups/{group['id']}/assign-doctor"

    response = client.post(url, headers=admin_headers, json={"doctor_id": third.id, "is_primary": True})
    assert response.status_code == 200
    assert response.json()["data"]["is_primary"] is True

    doctors = client.get(f"/api/admin/treatment-groups/{group['id']}", headers=admin_headers).json()["data"]["doctors"]
    primaries = [d["id"] for d in doctors if d["is_primary"]]
    assert primaries == [third.id]
    assert len(doctors) == 3

    # Re-assigning an attached doctor updates it in place
    response = client.post(url, headers=admin_headers, json={"doctor_id": doctor.id, "is_primary": True})
    doctors = client.get(f"/api/admin/treatment-groups/{group['id']}", headers=admin_headers).json()["data"]["doctors"]
    assert len(doctors) == 3
    assert [d["id"] for d in doctors if d["is_primary"]] == [doctor.id]


def test_remove_doctor(client, admin_headers, group, second_doctor):
    url = f"/api/admin/treatment-groups/{group['id']}/remove-doctor"

    response = client.request("DELETE", url, headers=admin_headers, json={"doctor_id": second_doctor.id})
    assert response.status_code == 200

    doctors = client.get(f"/api/admin/treatment-groups/{group['id']}", headers=admin_headers).json()["data"]["doctors"]
    assert second_doctor.id not in [d["id"] for d in doctors]

    response = client.request("DELETE", url, headers=admin_headers, json={"doctor_id": second_doctor.id})
    assert response.status_code == 404
    assert response.json()["error"] == "doctor_not_assigned"

    events = client.get("/api/admin/timeline", headers=admin_headers).json()["events"]
    assert events[0]["type"] == "DOCTOR_REMOVED"


def test_patient_treatment_group(client, admin_headers, patient, group):
    data = client.get(f"/api/admin/patients/{patient.patient_id}/treatment-group", headers=admin_headers).json()
    assert data["group"]["id"] == group["id"]
    assert len(data["groups"]) == 1


def test_patient_without_group(client, admin_headers, patient):
    data = client.get(f"/api/admin/patients/{patient.patient_id}/treatment-group", headers=admin_headers).json()
    assert data == {"ok": True, "group": None, "groups": []}


def test_cancel_empty_group_keeps_new(client, admin_headers, group):
    response = client.post(f"/api/admin/treatment-groups/{group['id']}/cancel", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["calculated_status"] == "NEW"

    events = client.get("/api/admin/timeline", headers=admin_headers).json()["events"]
    assert events[0]["type"] == "TREATMENT_GROUP_CANCELLED"


def test_group_endpoints_are_admin_only(client, doctor_headers):
    response = client.get("/api/admin/treatment-groups", headers=doctor_headers)
    assert response.status_code == 403
    assert response.json()["error"] == "admin_required"
