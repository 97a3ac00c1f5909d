"""
Tests for registration, login and token handling.
"""
from jose import jwt

from cliniflow.config import settings
from cliniflow.core.security import create_access_token
from conftest import PASSWORD, bearer


def test_register_clinic_returns_admin_token(client):
    response = client.post("/api/admin/register", json={
        "clinicCode": "bright",
        "name": "Bright Smiles",
        "email": "Owner@Bright.example.com",
        "password": "secret123",
    })
    assert response.status_code == 201
    data = response.json()
    assert data["ok"] is True
    assert data["clinic"]["clinic_code"] == "BRIGHT"
    assert data["admin"]["email"] == "owner@bright.example.com"

    claims = jwt.decode(data["token"], settings.secret_key, algorithms=[settings.algorithm])
    assert claims["role"] == "ADMIN"
    assert claims["adminId"] == data["admin"]["id"]
    assert claims["clinicCode"] == "BRIGHT"


def test_register_clinic_code_taken(client, clinic):
    response = client.post("/api/admin/register", json={
        "clinicCode": "smile",
        "name": "Copy",
        "email": "x@copy.example.com",
        "password": "secret123",
    })
    assert response.status_code == 409
    assert response.json() == {"ok": False, "error": "clinic_code_taken"}


def test_register_clinic_missing_fields(client):
    response = client.post("/api/admin/register", json={"clinicCode": "ABC"})
    assert response.status_code == 400
    body = response.json()
    assert body["ok"] is False
    assert body["error"] == "missing_fields"
    assert "details" in body


def test_admin_login(client, admin):
    response = client.post("/api/admin/login", json={
        "email": "ADMIN@smile.example.com",
        "password": PASSWORD,
        "clinicCode": "smile",
    })
    assert response.status_code == 200
    data = response.json()
    assert data["clinicCode"] == "SMILE"
    assert data["admin"]["id"] == admin.id


def test_admin_login_requires_each_field(client, admin):
    cases = [
        ({"password": PASSWORD, "clinicCode": "SMILE"}, "email_required"),
        ({"email": "admin@smile.example.com", "clinicCode": "SMILE"}, "password_required"),
        ({"email": "admin@smile.example.com", "password": PASSWORD}, "clinic_code_required"),
    ]
    for body, error in cases:
        response = client.post("/api/admin/login", json=body)
        assert response.status_code == 400
        assert response.json()["error"] == error


def test_admin_login_wrong_password(client, admin):
    response = client.post("/api/admin/login", json={
        "email": "admin@smile.example.com",
        "password": "wrong-password",
        "clinicCode": "SMILE",
    })
    assert response.status_code == 401
    assert response.json()["error"] == "invalid_admin_credentials"


def test_admin_login_suspended_clinic(client, db, admin, clinic):
    from cliniflow.clinics.models import ClinicStatus

    clinic.status = ClinicStatus.SUSPENDED
    db.commit()

    response = client.post("/api/admin/login", json={
        "email": "admin@smile.example.com",
        "password": PASSWORD,
        "clinicCode": "SMILE",
    })
    assert response.status_code == 403
    assert response.json()["error"] == "clinic_suspended"


def test_doctor_application_needs_approval(client, clinic, admin_headers):
    response = client.post("/api/doctor/register", json={
        "email": "new.doctor@smile.example.com",
        "password": "secret123",
        "fullName": "Dr. New Doctor",
        "licenseNumber": "TR-1234",
        "clinicCode": "SMILE",
        "specialty": "Endodontics",
    })
    assert response.status_code == 201
    doctor = response.json()["doctor"]
    assert doctor["status"] == "PENDING"

    login = {"email": "new.doctor@smile.example.com", "password": "secret123"}
    response = client.post("/api/doctor/login", json=login)
    assert response.status_code == 403
    assert response.json()["error"] == "doctor_approval_required"

    response = client.post("/api/admin/approve-doctor", headers=admin_headers, json={"doctorId": doctor["id"]})
    assert response.status_code == 200
    assert response.json()["doctor"]["status"] == "ACTIVE"

    response = client.post("/api/doctor/login", json=login)
    assert response.status_code == 200
    assert response.json()["token"]


def test_doctor_register_email_taken(client, doctor):
    response = client.post("/api/doctor/register", json={
        "email": doctor.email,
        "password": "secret123",
        "fullName": "Dr. Copy",
        "licenseNumber": "TR-9",
        "clinicCode": "SMILE",
    })
    assert response.status_code == 409
    assert response.json()["error"] == "email_taken"


def test_doctor_register_unknown_clinic(client):
    response = client.post("/api/doctor/register", json={
        "email": "lost@nowhere.example.com",
        "password": "secret123",
        "fullName": "Dr. Lost",
        "licenseNumber": "TR-0",
        "clinicCode": "NOPE",
    })
    assert response.status_code == 404
    assert response.json()["error"] == "clinic_not_found"


def test_doctor_login_invalid_credentials(client, doctor):
    response = client.post("/api/doctor/login", json={"email": doctor.email, "password": "nope-nope"})
    assert response.status_code == 401
    assert response.json()["error"] == "invalid_credentials"


def test_patient_register_and_login(client, clinic):
    response = client.post("/api/register/patient", json={
        "name": "Zeynep Ak",
        "phone": "5551234",
        "clinicCode": "smile",
    })
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "PENDING"
    assert data["patientId"].startswith("p_")
    assert data["patient"]["first_name"] == "Zeynep"
    assert data["patient"]["last_name"] == "Ak"

    duplicate = client.post("/api/register/patient", json={
        "name": "Zeynep Ak",
        "phone": "5551234",
        "clinicCode": "SMILE",
    })
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "phone_already_registered"

    response = client.post("/api/patient/login", json={"phone": "5551234"})
    assert response.status_code == 200
    assert response.json()["patientId"] == data["patientId"]


def test_patient_login_errors(client, clinic):
    assert client.post("/api/patient/login", json={}).json()["error"] == "phone_required"

    response = client.post("/api/patient/login", json={"phone": "000"})
    assert response.status_code == 404
    assert response.json()["error"] == "patient_not_found"


def test_missing_token(client):
    response = client.get("/api/admin/clinic")
    assert response.status_code == 401
    assert response.json() == {"ok": False, "error": "missing_token"}


def test_invalid_token(client):
    response = client.get("/api/admin/clinic", headers=bearer("not-a-jwt"))
    assert response.status_code == 401
    assert response.json()["error"] == "invalid_token"


def test_token_without_identity_claim(client, clinic):
    token = create_access_token({"role": "ADMIN", "clinicId": clinic.id})
    response = client.get("/api/admin/clinic", headers=bearer(token))
    assert response.status_code == 401
    assert response.json()["error"] == "invalid_token"


def test_role_required(client, doctor_headers, patient_headers):
    response = client.get("/api/admin/clinic", headers=doctor_headers)
    assert response.status_code == 403
    assert response.json()["error"] == "admin_required"

    response = client.get("/api/doctor/me", headers=patient_headers)
    assert response.status_code == 403
    assert response.json()["error"] == "doctor_required"

    response = client.get("/api/icd10/requirements", headers=patient_headers)
    assert response.status_code == 403
    assert response.json()["error"] == "admin_or_doctor_required"


def test_patient_token_header(client, patient, patient_headers):
    token = patient_headers["Authorization"].split(" ", 1)[1]
    response = client.get("/api/patient/me", headers={"x-patient-token": token})
    assert response.status_code == 200
    assert response.json()["patient"]["patient_id"] == patient.patient_id
