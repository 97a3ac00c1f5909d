"""
ICD-10 Router - catalogue, patient diagnoses, requirements and suggestions.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import (
    TokenPrincipal,
    require_admin,
    require_doctor,
    require_admin_or_doctor,
    require_any_role,
)
from .schemas import PatientIcd10Create, RequirementUpdate, RequirementResponse
from .service import (
    list_codes,
    list_patient_diagnoses,
    add_patient_diagnosis,
    serialize_patient_diagnosis,
    list_requirements,
    set_requirement,
    is_icd10_required,
    normalize_code,
    suggested_procedures,
)

router = APIRouter()


@router.get("/api/icd10/codes")
def get_icd10_codes(
    category: Optional[str] = Query(None),
    language: str = Query("tr", description="tr, en, ka or ru"),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """
    Search the ICD-10 catalogue

    Public endpoint; titles are returned in the requested language.
    """
    return {"ok": True, "codes": list_codes(db, category, language, search)}


@router.get("/api/patient/{patient_id}/icd10")
def get_patient_icd10(
    patient_id: str,
    language: str = Query("tr"),
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_any_role)
):
    return {"ok": True, "diagnoses": list_patient_diagnoses(db, principal, patient_id, language)}


@router.post("/api/patient/{patient_id}/icd10", status_code=status.HTTP_201_CREATED)
def add_patient_icd10(
    patient_id: str,
    data: PatientIcd10Create,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin_or_doctor)
):
    diagnosis = add_patient_diagnosis(db, principal, patient_id, data)
    return {
        "ok": True,
        "message": "ICD-10 diagnosis added successfully",
        "diagnosis": serialize_patient_diagnosis(diagnosis),
    }


@router.get("/api/icd10/requirements")
def get_requirements(
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin_or_doctor)
):
    """
    Get the ICD-10 requirements of the caller's clinic

    ``effective`` tells whether coding is required for the calling doctor (or
    clinic-wide for admins).
    """
    requirements = list_requirements(db, principal.clinic_id)
    return {
        "ok": True,
        "requirements": [RequirementResponse.model_validate(row) for row in requirements],
        "effective": is_icd10_required(db, principal.clinic_id, principal.doctor_id),
    }


@router.put("/api/icd10/requirements")
def update_requirements(
    data: RequirementUpdate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    requirement = set_requirement(db, principal.clinic_id, data)
    return {
        "ok": True,
        "message": "ICD-10 requirements updated successfully",
        "requirement": RequirementResponse.model_validate(requirement),
    }


@router.get("/api/doctor/diagnosis/{code}/suggested-procedures")
def get_suggested_procedures(
    code: str,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    return {"ok": True, "code": normalize_code(code), "procedures": suggested_procedures(db, code)}
