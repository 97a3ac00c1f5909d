"""
Test configuration for the clinic API.
"""
import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cliniflow.database import Base, get_db
from cliniflow.main import app
from cliniflow.core.bootstrap import seed_icd10_catalog
from cliniflow.core.security import hash_password, create_admin_token, create_doctor_token, create_patient_token
from cliniflow.clinics.models import Clinic, Admin
from cliniflow.doctors.models import Doctor, DoctorStatus
from cliniflow.patients.models import Patient, PatientStatus, PatientType

# Test database URL
TEST_DATABASE_URL = "sqlite://"

# Create test database engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "secret123"


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database with the ICD-10 catalogue for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    seed_icd10_catalog(db)
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """
    Create a test client with a test database session.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    app.dependency_overrides = {}


@pytest.fixture
def clinic(db):
    clinic = Clinic(clinic_code="SMILE", name="Smile Dental", email="info@smile.example.com")
    db.add(clinic)
    db.commit()
    db.refresh(clinic)
    return clinic


@pytest.fixture
def other_clinic(db):
    clinic = Clinic(clinic_code="OTHER", name="Other Dental")
    db.add(clinic)
    db.commit()
    db.refresh(clinic)
    return clinic


@pytest.fixture
def admin(db, clinic):
    admin = Admin(
        clinic_id=clinic.id,
        email="admin@smile.example.com",
        password_hash=hash_password(PASSWORD),
        full_name="Clinic Admin",
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


@pytest.fixture
def admin_headers(admin, clinic):
    return bearer(create_admin_token(admin.id, clinic.id, clinic.clinic_code))


def make_doctor(db, clinic, email, full_name, status=DoctorStatus.ACTIVE):
    doctor = Doctor(
        clinic_id=clinic.id,
        email=email,
        password_hash=hash_password(PASSWORD),
        full_name=full_name,
        license_number=f"LIC-{email.split('@')[0]}",
        status=status,
    )
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    return doctor


@pytest.fixture
def doctor(db, clinic):
    return make_doctor(db, clinic, "mehmet@smile.example.com", "Dr. Mehmet Kaya")


@pytest.fixture
def second_doctor(db, clinic):
    return make_doctor(db, clinic, "elif@smile.example.com", "Dr. Elif Demir")


@pytest.fixture
def doctor_headers(doctor, clinic):
    return bearer(create_doctor_token(doctor.id, clinic.id, clinic.clinic_code))


@pytest.fixture
def second_doctor_headers(second_doctor, clinic):
    return bearer(create_doctor_token(second_doctor.id, clinic.id, clinic.clinic_code))


@pytest.fixture
def patient(db, clinic):
    patient = Patient(
        patient_id="p_ayse000001",
        clinic_id=clinic.id,
        first_name="Ayse",
        last_name="Yilmaz",
        phone="5550001",
        status=PatientStatus.ACTIVE,
        patient_type=PatientType.MANUAL,
    )
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient


@pytest.fixture
def patient_headers(patient, clinic):
    return bearer(create_patient_token(patient.patient_id, clinic.id, clinic.clinic_code, patient.status.value))


@pytest.fixture
def group(client, admin_headers, patient, doctor, second_doctor):
    """Treatment group for ``patient`` with ``doctor`` as primary and ``second_doctor`` attached."""
    response = client.post(
        "/api/admin/treatment-groups",
        headers=admin_headers,
        json={
            "patient_id": patient.patient_id,
            "doctor_ids": [doctor.id, second_doctor.id],
            "primary_doctor_id": doctor.id,
            "name": "Full mouth restoration",
        },
    )
    assert response.status_code == 201
    return response.json()["data"]["group"]
