"""
Tests for clinic profile, admin notes, permissions, dashboard statistics and approvals.
"""
from cliniflow.doctors.models import DoctorStatus
from cliniflow.patients.models import Patient, PatientStatus, PatientType
from conftest import make_doctor


def test_public_clinic_profile(client, clinic):
    response = client.get("/api/clinic/smile")
    assert response.status_code == 200
    data = response.json()["clinic"]
    assert data["clinic_code"] == "SMILE"
    assert data["name"] == "Smile Dental"
    # Private fields stay out of the public profile
    assert "email" not in data

    missing = client.get("/api/clinic/NOPE")
    assert missing.status_code == 404
    assert missing.json()["error"] == "clinic_not_found"


def test_update_own_clinic(client, admin_headers):
    response = client.put("/api/admin/clinic", headers=admin_headers, json={
        "address": "Bagdat Cad. 1",
        "logoUrl": "https://cdn.test/logo.png",
    })
    assert response.status_code == 200
    clinic = response.json()["clinic"]
    assert clinic["address"] == "Bagdat Cad. 1"
    assert clinic["logo_url"] == "https://cdn.test/logo.png"
    assert clinic["name"] == "Smile Dental"

    response = client.get("/api/admin/clinic", headers=admin_headers)
    assert response.json()["clinic"]["address"] == "Bagdat Cad. 1"


def test_notes_newest_first_and_filtered(client, db, clinic, admin_headers, patient):
    other = Patient(patient_id="p_other00001", clinic_id=clinic.id, first_name="Ali", status=PatientStatus.ACTIVE)
    db.add(other)
    db.commit()

    for patient_id, note in [
        (patient.patient_id, "First visit went well"),
        (other.patient_id, "Prefers mornings"),
        (patient.patient_id, "Allergic to latex"),
    ]:
        response = client.post("/api/admin/notes", headers=admin_headers, json={"patientId": patient_id, "note": note})
        assert response.status_code == 201

    notes = client.get("/api/admin/notes", headers=admin_headers).json()["notes"]
    assert [n["note"] for n in notes] == ["Allergic to latex", "Prefers mornings", "First visit went well"]

    filtered = client.get(f"/api/admin/notes?patientId={patient.patient_id}", headers=admin_headers).json()["notes"]
    assert [n["note"] for n in filtered] == ["Allergic to latex", "First visit went well"]


def test_note_requires_fields(client, admin_headers):
    response = client.post("/api/admin/notes", headers=admin_headers, json={"note": "orphan"})
    assert response.status_code == 400
    assert response.json()["error"] == "missing_fields"


def test_note_for_patient_of_other_clinic(client, db, other_clinic, admin_headers):
    stranger = Patient(patient_id="p_stranger01", clinic_id=other_clinic.id, first_name="Can")
    db.add(stranger)
    db.commit()

    response = client.post("/api/admin/notes", headers=admin_headers, json={"patientId": "p_stranger01", "note": "x"})
    assert response.status_code == 404
    assert response.json()["error"] == "patient_not_found"


def test_permissions_defaults_and_update(client, admin_headers):
    response = client.get("/api/admin/permissions", headers=admin_headers)
    assert response.json()["permissions"] == {
        "enableReferrals": True,
        "enableInternationalPatients": False,
        "requireICD10": False,
        "enableDoctorPatientChat": True,
    }

    response = client.put("/api/admin/permissions", headers=admin_headers, json={"requireICD10": True, "unknown": 1})
    assert response.status_code == 200
    permissions = response.json()["permissions"]
    assert permissions["requireICD10"] is True
    assert permissions["enableReferrals"] is True

    again = client.get("/api/admin/permissions", headers=admin_headers).json()["permissions"]
    assert again == permissions


def test_patient_overview_counts_real_data(client, admin_headers, group):
    overview = client.get("/api/admin/patient-overview", headers=admin_headers).json()["overview"]
    assert overview["totalPatients"] == 1
    # A new group counts as an active treatment
    assert overview["activeTreatments"] == 1
    assert overview["completedTreatments"] == 0
    # Group creation wrote a timeline event
    assert overview["lastActivityDate"] is not None


def test_doctor_applications(client, db, clinic, admin_headers, doctor):
    pending = make_doctor(db, clinic, "pending@smile.example.com", "Dr. Pending", status=DoctorStatus.PENDING)

    response = client.get("/api/admin/doctor-applications", headers=admin_headers)
    assert [d["id"] for d in response.json()["doctors"]] == [pending.id]

    response = client.get("/api/admin/doctor-applications?status=ACTIVE", headers=admin_headers)
    assert [d["id"] for d in response.json()["doctors"]] == [doctor.id]

    response = client.post(
        "/api/admin/approve-doctor",
        headers=admin_headers,
        json={"doctorId": pending.id, "approve": False},
    )
    assert response.json()["doctor"]["status"] == "REJECTED"


def test_approve_doctor_unknown(client, admin_headers):
    response = client.post("/api/admin/approve-doctor", headers=admin_headers, json={"doctorId": 999})
    assert response.status_code == 404
    assert response.json()["error"] == "doctor_not_found"


def test_approve_patient(client, db, clinic, admin_headers):
    pending = Patient(
        patient_id="p_pending001",
        clinic_id=clinic.id,
        first_name="Deniz",
        status=PatientStatus.PENDING,
        patient_type=PatientType.CONNECTED,
    )
    db.add(pending)
    db.commit()

    response = client.post("/api/admin/approve", headers=admin_headers, json={"patientId": "p_pending001"})
    assert response.status_code == 200
    assert response.json()["patient"]["status"] == "ACTIVE"


def test_admin_endpoints_reject_doctors(client, doctor_headers):
    for path in ("/api/admin/notes", "/api/admin/permissions", "/api/admin/patient-overview"):
        response = client.get(path, headers=doctor_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "admin_required"
