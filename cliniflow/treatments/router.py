"""
Treatment Router - doctor endpoints for encounters, diagnoses, plans and items,
plus the patient's treatment overview.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import TokenPrincipal, require_doctor, require_any_role
from .schemas import (
    EncounterCreate,
    EncounterStatusUpdate,
    DiagnosisCreate,
    TreatmentPlanCreate,
    TreatmentItemCreate,
    StatusUpdate,
    EncounterResponse,
    DiagnosisResponse,
    TreatmentPlanResponse,
    TreatmentItemResponse,
)
from . import service

router = APIRouter()

# ============================================================================
# ENCOUNTERS
# ============================================================================

@router.post("/api/doctor/encounters", status_code=status.HTTP_201_CREATED)
def create_encounter(
    data: EncounterCreate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    """
    Open an encounter

    The doctor must be assigned to the treatment group the encounter is opened in.
    """
    encounter = service.create_encounter(db, principal, data)
    return {"ok": True, "encounter": EncounterResponse.model_validate(encounter)}


@router.get("/api/doctor/encounters")
def list_encounters(
    patient_id: Optional[str] = Query(None, alias="patientId"),
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    encounters = service.list_encounters(db, principal, patient_id)
    return {"ok": True, "encounters": [EncounterResponse.model_validate(e) for e in encounters]}


@router.get("/api/doctor/encounters/{encounter_id}")
def get_encounter(
    encounter_id: int,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    encounter = service.get_encounter(db, principal, encounter_id)
    return {
        "ok": True,
        "encounter": EncounterResponse.model_validate(encounter),
        "diagnoses": [DiagnosisResponse.model_validate(d) for d in encounter.diagnoses],
        "treatment_plans": [TreatmentPlanResponse.model_validate(p) for p in encounter.plans],
    }


@router.patch("/api/doctor/encounters/{encounter_id}/status")
def update_encounter_status(
    encounter_id: int,
    data: EncounterStatusUpdate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    encounter = service.update_encounter_status(db, principal, encounter_id, data.status)
    return {"ok": True, "encounter": EncounterResponse.model_validate(encounter)}

# ============================================================================
# DIAGNOSES
# ============================================================================

@router.post("/api/doctor/encounters/{encounter_id}/diagnoses", status_code=status.HTTP_201_CREATED)
def add_diagnosis(
    encounter_id: int,
    data: DiagnosisCreate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    diagnosis = service.add_diagnosis(db, principal, encounter_id, data)
    return {"ok": True, "diagnosis": DiagnosisResponse.model_validate(diagnosis)}


@router.get("/api/doctor/encounters/{encounter_id}/diagnoses")
def list_diagnoses(
    encounter_id: int,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    diagnoses = service.list_diagnoses(db, principal, encounter_id)
    return {"ok": True, "diagnoses": [DiagnosisResponse.model_validate(d) for d in diagnoses]}


@router.patch("/api/doctor/diagnoses/{diagnosis_id}/primary")
def set_primary_diagnosis(
    diagnosis_id: int,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    diagnosis = service.set_primary_diagnosis(db, principal, diagnosis_id)
    return {"ok": True, "diagnosis": DiagnosisResponse.model_validate(diagnosis)}


@router.delete("/api/doctor/diagnoses/{diagnosis_id}")
def delete_diagnosis(
    diagnosis_id: int,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    service.delete_diagnosis(db, principal, diagnosis_id)
    return {"ok": True}

# ============================================================================
# TREATMENT PLANS
# ============================================================================

@router.post("/api/doctor/encounters/{encounter_id}/treatment-plans", status_code=status.HTTP_201_CREATED)
def create_treatment_plan(
    encounter_id: int,
    data: TreatmentPlanCreate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    """
    Create a treatment plan

    The encounter needs a primary diagnosis first.
    """
    plan = service.create_plan(db, principal, encounter_id, data)
    return {"ok": True, "treatment_plan": TreatmentPlanResponse.model_validate(plan)}


@router.get("/api/doctor/encounters/{encounter_id}/treatment-plans")
def list_treatment_plans(
    encounter_id: int,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    plans = service.list_plans(db, principal, encounter_id)
    return {"ok": True, "treatment_plans": [TreatmentPlanResponse.model_validate(p) for p in plans]}


@router.patch("/api/doctor/treatment-plans/{plan_id}/status")
def update_treatment_plan_status(
    plan_id: int,
    data: StatusUpdate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    plan = service.update_plan_status(db, principal, plan_id, data.status)
    return {"ok": True, "treatment_plan": TreatmentPlanResponse.model_validate(plan)}


@router.get("/api/doctor/treatment-plans/{plan_id}/tooth-map")
def get_tooth_map(
    plan_id: int,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    return {"ok": True, **service.tooth_map(db, principal, plan_id)}

# ============================================================================
# TREATMENT ITEMS
# ============================================================================

@router.post("/api/doctor/treatment-plans/{plan_id}/items", status_code=status.HTTP_201_CREATED)
def add_treatment_item(
    plan_id: int,
    data: TreatmentItemCreate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    item = service.add_item(db, principal, plan_id, data)
    return {"ok": True, "item": TreatmentItemResponse.model_validate(item)}


@router.get("/api/doctor/treatment-plans/{plan_id}/items")
def list_treatment_items(
    plan_id: int,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    items = service.list_items(db, principal, plan_id)
    return {"ok": True, "items": [TreatmentItemResponse.model_validate(i) for i in items]}


@router.patch("/api/doctor/treatment-items/{item_id}/status")
def update_treatment_item_status(
    item_id: int,
    data: StatusUpdate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    item = service.update_item_status(db, principal, item_id, data.status)
    return {"ok": True, "item": TreatmentItemResponse.model_validate(item)}


@router.delete("/api/doctor/treatment-items/{item_id}")
def delete_treatment_item(
    item_id: int,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    service.delete_item(db, principal, item_id)
    return {"ok": True}

# ============================================================================
# PATIENT VIEW
# ============================================================================

@router.get("/api/patient/{patient_id}/treatments")
def get_patient_treatments(
    patient_id: str,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_any_role)
):
    """
    Get a patient's treatment plans with their items

    Available to staff of the patient's clinic and to the patient itself.
    """
    plans = service.list_patient_treatments(db, principal, patient_id)
    return {"ok": True, "treatments": [TreatmentPlanResponse.model_validate(p) for p in plans]}
