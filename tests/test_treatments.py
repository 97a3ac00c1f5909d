"""
Tests for encounters, diagnoses, treatment plans and items, and the group
status they drive.
"""
import pytest

from conftest import bearer, make_doctor
from cliniflow.core.fdi import is_valid_fdi_tooth
from cliniflow.core.security import create_doctor_token


def group_status(client, admin_headers, group_id):
    response = client.get(f"/api/admin/treatment-groups/{group_id}", headers=admin_headers)
    return response.json()["data"]["calculated_status"]


@pytest.fixture
def encounter(client, doctor_headers, patient, group):
    response = client.post("/api/doctor/encounters", headers=doctor_headers, json={
        "patientId": patient.patient_id,
        "treatmentGroupId": group["id"],
        "notes": "Pain on upper right",
    })
    assert response.status_code == 201
    return response.json()["encounter"]


@pytest.fixture
def plan(client, doctor_headers, encounter):
    client.post(
        f"/api/doctor/encounters/{encounter['id']}/diagnoses",
        headers=doctor_headers,
        json={"icd10Code": "K02.1", "toothNumber": "16"},
    )
    response = client.post(f"/api/doctor/encounters/{encounter['id']}/treatment-plans", headers=doctor_headers, json={})
    assert response.status_code == 201
    return response.json()["treatment_plan"]


def add_item(client, headers, plan_id, tooth="16", procedure="Composite filling", **extra):
    body = {"toothFdiCode": tooth, "procedureName": procedure, "linkedIcd10Code": "K02.1", **extra}
    return client.post(f"/api/doctor/treatment-plans/{plan_id}/items", headers=headers, json=body)


# ============================================================================
# ENCOUNTERS
# ============================================================================

def test_encounter_defaults_to_doctors_group(client, doctor_headers, patient, group):
    response = client.post("/api/doctor/encounters", headers=doctor_headers, json={"patientId": patient.patient_id})
    assert response.status_code == 201
    encounter = response.json()["encounter"]
    assert encounter["treatment_group_id"] == group["id"]
    assert encounter["status"] == "draft"
    assert encounter["encounter_type"] == "initial"
    assert encounter["created_at"].endswith("+00:00")


def test_encounter_requires_group_membership(client, db, clinic, patient, group):
    outsider = make_doctor(db, clinic, "outsider@smile.example.com", "Dr. Outsider")
    headers = bearer(create_doctor_token(outsider.id, clinic.id, clinic.clinic_code))

    response = client.post("/api/doctor/encounters", headers=headers, json={
        "patientId": patient.patient_id,
        "treatmentGroupId": group["id"],
    })
    assert response.status_code == 403
    assert response.json()["error"] == "not_group_member"

    response = client.post("/api/doctor/encounters", headers=headers, json={"patientId": patient.patient_id})
    assert response.status_code == 403


def test_encounter_visible_to_group_members_only(client, db, clinic, second_doctor_headers, encounter):
    response = client.get(f"/api/doctor/encounters/{encounter['id']}", headers=second_doctor_headers)
    assert response.status_code == 200
    assert response.json()["encounter"]["notes"] == "Pain on upper right"

    outsider = make_doctor(db, clinic, "outsider@smile.example.com", "Dr. Outsider")
    headers = bearer(create_doctor_token(outsider.id, clinic.id, clinic.clinic_code))
    response = client.get(f"/api/doctor/encounters/{encounter['id']}", headers=headers)
    assert response.status_code == 403
    assert response.json()["error"] == "not_group_member"


def test_list_encounters(client, doctor_headers, patient, encounter):
    encounters = client.get(f"/api/doctor/encounters?patientId={patient.patient_id}", headers=doctor_headers).json()["encounters"]
    assert [e["id"] for e in encounters] == [encounter["id"]]


def test_encounter_status_enum(client, doctor_headers, encounter):
    url = f"/api/doctor/encounters/{encounter['id']}/status"

    response = client.patch(url, headers=doctor_headers, json={"status": "active"})
    assert response.status_code == 200
    assert response.json()["encounter"]["status"] == "active"

    response = client.patch(url, headers=doctor_headers, json={"status": "finished"})
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_fields"


@pytest.mark.parametrize("code, valid", [
    ("11", True),
    ("48", True),
    ("55", True),
    ("56", False),
    ("19", False),
    ("91", False),
    ("1", False),
    ("²¹", False),
    ("١١", False),
    (None, False),
])
def test_fdi_tooth_codes(code, valid):
    assert is_valid_fdi_tooth(code) is valid


def test_item_rejects_non_ascii_digits(client, doctor_headers, plan):
    response = add_item(client, doctor_headers, plan["id"], tooth="²¹")
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_tooth_number"


def test_encounter_not_found(client, doctor_headers):
    response = client.get("/api/doctor/encounters/999", headers=doctor_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "encounter_not_found"

# ============================================================================
# DIAGNOSES
# ============================================================================

def test_first_diagnosis_is_primary(client, doctor_headers, encounter):
    url = f"/api/doctor/encounters/{encounter['id']}/diagnoses"

    first = client.post(url, headers=doctor_headers, json={"icd10Code": "K02.1", "toothNumber": "16"}).json()["diagnosis"]
    second = client.post(url, headers=doctor_headers, json={"icd10Code": "K05.3"}).json()["diagnosis"]
    assert first["is_primary"] is True
    assert first["icd10_description"] == "Caries of dentine"
    assert second["is_primary"] is False

    third = client.post(url, headers=doctor_headers, json={"icd10Code": "K04.0", "isPrimary": True}).json()["diagnosis"]
    diagnoses = client.get(url, headers=doctor_headers).json()["diagnoses"]
    assert [d["id"] for d in diagnoses if d["is_primary"]] == [third["id"]]


def test_set_primary_and_delete_promotes_oldest(client, doctor_headers, encounter):
    url = f"/api/doctor/encounters/{encounter['id']}/diagnoses"
    ids = [
        client.post(url, headers=doctor_headers, json={"icd10Code": code}).json()["diagnosis"]["id"]
        for code in ("K02.1", "K05.3", "K04.0")
    ]

    response = client.patch(f"/api/doctor/diagnoses/{ids[2]}/primary", headers=doctor_headers)
    assert response.json()["diagnosis"]["is_primary"] is True

    response = client.delete(f"/api/doctor/diagnoses/{ids[2]}", headers=doctor_headers)
    assert response.status_code == 200

    diagnoses = client.get(url, headers=doctor_headers).json()["diagnoses"]
    assert [(d["id"], d["is_primary"]) for d in diagnoses] == [(ids[0], True), (ids[1], False)]


def test_diagnosis_validation(client, doctor_headers, encounter):
    url = f"/api/doctor/encounters/{encounter['id']}/diagnoses"

    response = client.post(url, headers=doctor_headers, json={"icd10Code": "Q99.9"})
    assert response.json()["error"] == "invalid_icd10_code"

    response = client.post(url, headers=doctor_headers, json={"icd10Code": "K02.1", "toothNumber": "56"})
    assert response.json()["error"] == "invalid_tooth_number"

    response = client.post(url, headers=doctor_headers, json={})
    assert response.status_code == 400
    assert response.json()["error"] == "missing_fields"

# ============================================================================
# PLANS AND ITEMS
# ============================================================================

def test_plan_requires_primary_diagnosis(client, doctor_headers, encounter):
    response = client.post(f"/api/doctor/encounters/{encounter['id']}/treatment-plans", headers=doctor_headers, json={})
    assert response.status_code == 400
    assert response.json()["error"] == "primary_diagnosis_required"


def test_plan_inherits_group(client, doctor, group, plan):
    assert plan["treatment_group_id"] == group["id"]
    assert plan["assigned_doctor_id"] == doctor.id
    assert plan["status"] == "draft"
    assert plan["items"] == []


def test_item_validation(client, doctor_headers, plan):
    response = add_item(client, doctor_headers, plan["id"], tooth="99")
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_tooth_number"

    response = add_item(client, doctor_headers, plan["id"], linkedIcd10Code="X00.0")
    assert response.json()["error"] == "invalid_icd10_code"

    response = add_item(client, doctor_headers, plan["id"], status="finished")
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_fields"


def test_item_requires_icd10_when_configured(client, admin_headers, doctor_headers, plan):
    client.put("/api/icd10/requirements", headers=admin_headers, json={"requireIcd10": True})

    response = add_item(client, doctor_headers, plan["id"], linkedIcd10Code=None)
    assert response.status_code == 400
    assert response.json()["error"] == "icd10_required"

    response = add_item(client, doctor_headers, plan["id"])
    assert response.status_code == 201


def test_group_status_follows_items(client, admin_headers, doctor_headers, group, plan):
    assert group_status(client, admin_headers, group["id"]) == "NEW"

    first = add_item(client, doctor_headers, plan["id"]).json()["item"]
    second = add_item(client, doctor_headers, plan["id"], tooth="26", procedure="Root canal treatment").json()["item"]
    assert first["status"] == "planned"
    assert group_status(client, admin_headers, group["id"]) == "PLANNED"

    client.patch(f"/api/doctor/treatment-items/{first['id']}/status", headers=doctor_headers, json={"status": "done"})
    assert group_status(client, admin_headers, group["id"]) == "IN_PROGRESS"

    client.patch(f"/api/doctor/treatment-items/{second['id']}/status", headers=doctor_headers, json={"status": "cancelled"})
    assert group_status(client, admin_headers, group["id"]) == "COMPLETED"

    client.delete(f"/api/doctor/treatment-items/{first['id']}", headers=doctor_headers)
    assert group_status(client, admin_headers, group["id"]) == "CANCELLED"

    client.delete(f"/api/doctor/treatment-items/{second['id']}", headers=doctor_headers)
    assert group_status(client, admin_headers, group["id"]) == "NEW"


def test_done_item_records_timeline_event(client, admin_headers, doctor_headers, plan):
    item = add_item(client, doctor_headers, plan["id"]).json()["item"]
    client.patch(f"/api/doctor/treatment-items/{item['id']}/status", headers=doctor_headers, json={"status": "done"})

    event = client.get("/api/admin/timeline", headers=admin_headers).json()["events"][0]
    assert event["type"] == "TREATMENT_COMPLETED"
    assert event["icon"] == "✅"
    assert event["subtitle"] == "Patient: Ayse Yilmaz | Treatment: Composite filling"


def test_cancel_plan_cascades_to_items(client, admin_headers, doctor_headers, group, plan):
    add_item(client, doctor_headers, plan["id"])
    add_item(client, doctor_headers, plan["id"], tooth="26")

    response = client.patch(f"/api/doctor/treatment-plans/{plan['id']}/status", headers=doctor_headers, json={"status": "cancelled"})
    assert response.status_code == 200
    cancelled = response.json()["treatment_plan"]
    assert cancelled["status"] == "cancelled"
    assert {item["status"] for item in cancelled["items"]} == {"cancelled"}
    assert group_status(client, admin_headers, group["id"]) == "CANCELLED"


def test_cancel_group_cascades_to_items(client, admin_headers, doctor_headers, group, plan):
    add_item(client, doctor_headers, plan["id"])

    response = client.post(f"/api/admin/treatment-groups/{group['id']}/cancel", headers=admin_headers)
    assert response.json()["data"]["calculated_status"] == "CANCELLED"

    items = client.get(f"/api/doctor/treatment-plans/{plan['id']}/items", headers=doctor_headers).json()["items"]
    assert [item["status"] for item in items] == ["cancelled"]


def test_only_item_owner_can_change_it(client, doctor_headers, second_doctor_headers, plan):
    item = add_item(client, doctor_headers, plan["id"]).json()["item"]

    response = client.patch(
        f"/api/doctor/treatment-items/{item['id']}/status",
        headers=second_doctor_headers,
        json={"status": "done"},
    )
    assert response.status_code == 403
    assert response.json()["error"] == "not_item_owner"

    response = client.delete(f"/api/doctor/treatment-items/{item['id']}", headers=second_doctor_headers)
    assert response.status_code == 403


def test_tooth_map(client, doctor_headers, plan):
    add_item(client, doctor_headers, plan["id"], tooth="16")
    add_item(client, doctor_headers, plan["id"], tooth="16", procedure="Crown", status="proposed")
    add_item(client, doctor_headers, plan["id"], tooth="36", procedure="Extraction")

    data = client.get(f"/api/doctor/treatment-plans/{plan['id']}/tooth-map", headers=doctor_headers).json()
    assert data["plan_id"] == plan["id"]
    assert sorted(data["teeth"]) == ["16", "36"]
    assert [i["procedure_name"] for i in data["teeth"]["16"]] == ["Composite filling", "Crown"]
    assert data["summary"]["planned"] == 2
    assert data["summary"]["proposed"] == 1
    assert data["summary"]["done"] == 0


def test_patient_sees_own_treatments(client, doctor_headers, patient, patient_headers, plan):
    add_item(client, doctor_headers, plan["id"])

    response = client.get(f"/api/patient/{patient.patient_id}/treatments", headers=patient_headers)
    assert response.status_code == 200
    treatments = response.json()["treatments"]
    assert len(treatments) == 1
    assert treatments[0]["items"][0]["tooth_fdi_code"] == "16"


def test_item_not_found(client, doctor_headers):
    response = client.patch("/api/doctor/treatment-items/999/status", headers=doctor_headers, json={"status": "done"})
    assert response.status_code == 404
    assert response.json()["error"] == "treatment_item_not_found"
