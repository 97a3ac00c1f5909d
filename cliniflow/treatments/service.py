"""
Treatment Service - Business logic for the clinical record chain
Encounter -> Diagnosis -> TreatmentPlan -> TreatmentItem.

Doctors reach an encounter through the treatment group it was opened in
(or because they opened it). Every change to an item recomputes the status of
the treatment group the plan belongs to, within the same commit.
"""
from typing import Any, Dict, List, Optional
from sqlalchemy import or_, select
from sqlalchemy.orm import Session
import logging

from ..auth.dependencies import TokenPrincipal
from ..core.fdi import is_valid_fdi_tooth
from ..exceptions import BadRequestException, ForbiddenException, NotFoundException, OperationFailedException
from ..doctors.service import get_clinic_doctor
from ..icd10.service import get_code, is_icd10_required
from ..patients.models import Patient
from ..patients.service import get_clinic_patient, get_accessible_patient
from ..timeline.formatter import EventType
from ..timeline.service import record_event
from ..treatment_groups.models import TreatmentGroup, TreatmentGroupDoctor
from ..treatment_groups.service import get_group, is_group_member, recalculate_group_status
from .models import Encounter, Diagnosis, TreatmentPlan, TreatmentItem, TreatmentStatus
from .schemas import (
    EncounterCreate,
    DiagnosisCreate,
    TreatmentPlanCreate,
    TreatmentItemCreate,
)

# Set up logging
logger = logging.getLogger(__name__)


def _commit(db: Session, error: str, context: str) -> None:
    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error {context}: {str(e)}")
        raise OperationFailedException(error)


# ============================================================================
# ACCESS
# ============================================================================

def _check_encounter_access(db: Session, principal: TokenPrincipal, encounter: Encounter) -> None:
    if encounter.created_by_doctor_id == principal.doctor_id:
        return
    if encounter.treatment_group_id is not None and is_group_member(db, encounter.treatment_group_id, principal.doctor_id):
        return
    raise ForbiddenException("not_group_member")


def get_encounter(db: Session, principal: TokenPrincipal, encounter_id: int) -> Encounter:
    """
    Get an encounter the doctor may work on.

    Raises:
        NotFoundException: ``encounter_not_found`` (also for other clinics)
        ForbiddenException: ``not_group_member``
    """
    encounter = db.query(Encounter).filter(
        Encounter.id == encounter_id,
        Encounter.clinic_id == principal.clinic_id,
    ).first()
    if not encounter:
        raise NotFoundException("encounter_not_found")
    _check_encounter_access(db, principal, encounter)
    return encounter


def get_plan(db: Session, principal: TokenPrincipal, plan_id: int) -> TreatmentPlan:
    plan = db.query(TreatmentPlan).filter(TreatmentPlan.id == plan_id).first()
    if not plan or plan.encounter.clinic_id != principal.clinic_id:
        raise NotFoundException("treatment_plan_not_found")
    _check_encounter_access(db, principal, plan.encounter)
    return plan


def get_item(db: Session, principal: TokenPrincipal, item_id: int) -> TreatmentItem:
    item = db.query(TreatmentItem).filter(TreatmentItem.id == item_id).first()
    if not item or item.plan.encounter.clinic_id != principal.clinic_id:
        raise NotFoundException("treatment_item_not_found")
    return item


def get_owned_item(db: Session, principal: TokenPrincipal, item_id: int) -> TreatmentItem:
    """Items may only be changed by the doctor who created them (``not_item_owner``)."""
    item = get_item(db, principal, item_id)
    if item.created_by_doctor_id != principal.doctor_id:
        raise ForbiddenException("not_item_owner")
    return item


# ============================================================================
# ENCOUNTERS
# ============================================================================

def _resolve_group(db: Session, principal: TokenPrincipal, patient: Patient, group_id: Optional[int]) -> TreatmentGroup:
    if group_id is not None:
        group = get_group(db, principal.clinic_id, group_id)
        if group.patient_id != patient.id:
            raise BadRequestException("group_patient_mismatch")
        if not is_group_member(db, group.id, principal.doctor_id):
            raise ForbiddenException("not_group_member")
        return group

    group = (
        db.query(TreatmentGroup)
        .join(TreatmentGroupDoctor, TreatmentGroupDoctor.treatment_group_id == TreatmentGroup.id)
        .filter(TreatmentGroup.patient_id == patient.id, TreatmentGroupDoctor.doctor_id == principal.doctor_id)
        .order_by(TreatmentGroup.created_at.desc(), TreatmentGroup.id.desc())
        .first()
    )
    if not group:
        raise ForbiddenException("not_group_member")
    return group


def create_encounter(db: Session, principal: TokenPrincipal, data: EncounterCreate) -> Encounter:
    """
    Open an encounter for a patient within one of the doctor's treatment groups.

    Raises:
        ForbiddenException: ``not_group_member`` when the doctor is not assigned to the group
        BadRequestException: ``group_patient_mismatch`` when the group belongs to another patient
    """
    patient = get_clinic_patient(db, principal.clinic_id, data.patient_id)
    group = _resolve_group(db, principal, patient, data.treatment_group_id)

    encounter = Encounter(
        patient_id=patient.id,
        clinic_id=principal.clinic_id,
        treatment_group_id=group.id,
        created_by_doctor_id=principal.doctor_id,
        encounter_type=data.encounter_type,
        notes=data.notes,
    )
    db.add(encounter)
    _commit(db, "create_failed", f"creating encounter for patient {data.patient_id}")
    db.refresh(encounter)
    logger.info(f"Encounter {encounter.id} opened by doctor {principal.doctor_id} in group {group.id}")
    return encounter


def list_encounters(db: Session, principal: TokenPrincipal, patient_id: Optional[str] = None) -> List[Encounter]:
    """Encounters the doctor opened or that belong to one of its groups, newest first."""
    member_groups = select(TreatmentGroupDoctor.treatment_group_id).where(
        TreatmentGroupDoctor.doctor_id == principal.doctor_id
    )
    query = db.query(Encounter).filter(
        Encounter.clinic_id == principal.clinic_id,
        or_(
            Encounter.created_by_doctor_id == principal.doctor_id,
            Encounter.treatment_group_id.in_(member_groups),
        ),
    )
    if patient_id:
        patient = get_clinic_patient(db, principal.clinic_id, patient_id)
        query = query.filter(Encounter.patient_id == patient.id)
    return query.order_by(Encounter.created_at.desc(), Encounter.id.desc()).all()


def update_encounter_status(db: Session, principal: TokenPrincipal, encounter_id: int, status) -> Encounter:
    encounter = get_encounter(db, principal, encounter_id)
    encounter.status = status
    _commit(db, "update_failed", f"updating encounter {encounter_id}")
    db.refresh(encounter)
    logger.info(f"Encounter {encounter_id} status set to {status.value}")
    return encounter


# ============================================================================
# DIAGNOSES
# ============================================================================

def add_diagnosis(db: Session, principal: TokenPrincipal, encounter_id: int, data: DiagnosisCreate) -> Diagnosis:
    """
    Add an ICD-10 diagnosis to an encounter.

    The first diagnosis of an encounter becomes primary; a new primary demotes
    the previous one.

    Raises:
        BadRequestException: ``invalid_icd10_code`` or ``invalid_tooth_number``
    """
    encounter = get_encounter(db, principal, encounter_id)

    code = get_code(db, data.icd10_code)
    if not code:
        raise BadRequestException("invalid_icd10_code")
    if data.tooth_number and not is_valid_fdi_tooth(data.tooth_number):
        raise BadRequestException("invalid_tooth_number")

    is_primary = data.is_primary or not encounter.diagnoses
    if is_primary:
        for existing in encounter.diagnoses:
            existing.is_primary = False

    diagnosis = Diagnosis(
        encounter_id=encounter.id,
        icd10_code=code.code,
        icd10_description=code.title_en or code.title_tr,
        tooth_number=data.tooth_number or None,
        is_primary=is_primary,
        notes=data.notes,
        created_by_doctor_id=principal.doctor_id,
    )
    db.add(diagnosis)
    _commit(db, "create_failed", f"adding diagnosis to encounter {encounter_id}")
    db.refresh(diagnosis)
    logger.info(f"Diagnosis {code.code} added to encounter {encounter_id} (primary={is_primary})")
    return diagnosis


def list_diagnoses(db: Session, principal: TokenPrincipal, encounter_id: int) -> List[Diagnosis]:
    encounter = get_encounter(db, principal, encounter_id)
    return (
        db.query(Diagnosis)
        .filter(Diagnosis.encounter_id == encounter.id)
        .order_by(Diagnosis.is_primary.desc(), Diagnosis.created_at, Diagnosis.id)
        .all()
    )


def _get_diagnosis(db: Session, principal: TokenPrincipal, diagnosis_id: int) -> Diagnosis:
    diagnosis = db.query(Diagnosis).filter(Diagnosis.id == diagnosis_id).first()
    if not diagnosis or diagnosis.encounter.clinic_id != principal.clinic_id:
        raise NotFoundException("diagnosis_not_found")
    _check_encounter_access(db, principal, diagnosis.encounter)
    return diagnosis


def set_primary_diagnosis(db: Session, principal: TokenPrincipal, diagnosis_id: int) -> Diagnosis:
    diagnosis = _get_diagnosis(db, principal, diagnosis_id)
    for other in diagnosis.encounter.diagnoses:
        other.is_primary = other.id == diagnosis.id
    _commit(db, "update_failed", f"setting primary diagnosis {diagnosis_id}")
    db.refresh(diagnosis)
    return diagnosis


def delete_diagnosis(db: Session, principal: TokenPrincipal, diagnosis_id: int) -> None:
    """
    Delete a diagnosis. When the primary one goes, the oldest remaining
    diagnosis of the encounter becomes primary.
    """
    diagnosis = _get_diagnosis(db, principal, diagnosis_id)
    encounter = diagnosis.encounter
    was_primary = diagnosis.is_primary
    encounter.diagnoses.remove(diagnosis)

    if was_primary and encounter.diagnoses:
        oldest = min(encounter.diagnoses, key=lambda d: (d.created_at, d.id))
        oldest.is_primary = True

    _commit(db, "delete_failed", f"deleting diagnosis {diagnosis_id}")
    logger.info(f"Diagnosis {diagnosis_id} deleted from encounter {encounter.id}")


# ============================================================================
# TREATMENT PLANS
# ============================================================================

def create_plan(db: Session, principal: TokenPrincipal, encounter_id: int, data: TreatmentPlanCreate) -> TreatmentPlan:
    """
    Create a treatment plan for an encounter.

    Raises:
        BadRequestException: ``primary_diagnosis_required`` when the encounter has no primary diagnosis
    """
    encounter = get_encounter(db, principal, encounter_id)
    if not any(diagnosis.is_primary for diagnosis in encounter.diagnoses):
        raise BadRequestException("primary_diagnosis_required")

    assigned_doctor_id = data.assigned_doctor_id or principal.doctor_id
    if data.assigned_doctor_id is not None:
        get_clinic_doctor(db, principal.clinic_id, data.assigned_doctor_id)

    plan = TreatmentPlan(
        encounter_id=encounter.id,
        treatment_group_id=encounter.treatment_group_id,
        created_by_doctor_id=principal.doctor_id,
        assigned_doctor_id=assigned_doctor_id,
        status=data.status,
    )
    db.add(plan)
    _commit(db, "create_failed", f"creating treatment plan for encounter {encounter_id}")
    db.refresh(plan)
    logger.info(f"Treatment plan {plan.id} created for encounter {encounter_id}")
    return plan


def list_plans(db: Session, principal: TokenPrincipal, encounter_id: int) -> List[TreatmentPlan]:
    encounter = get_encounter(db, principal, encounter_id)
    return (
        db.query(TreatmentPlan)
        .filter(TreatmentPlan.encounter_id == encounter.id)
        .order_by(TreatmentPlan.created_at.desc(), TreatmentPlan.id.desc())
        .all()
    )


def update_plan_status(db: Session, principal: TokenPrincipal, plan_id: int, status: TreatmentStatus) -> TreatmentPlan:
    """
    Change a plan status. Cancelling a plan cancels its items.
    """
    plan = get_plan(db, principal, plan_id)
    plan.status = status
    if status == TreatmentStatus.CANCELLED:
        for item in plan.items:
            item.status = TreatmentStatus.CANCELLED

    recalculate_group_status(db, plan.treatment_group_id)
    _commit(db, "update_failed", f"updating treatment plan {plan_id}")
    db.refresh(plan)
    logger.info(f"Treatment plan {plan_id} status set to {status.value}")
    return plan


# ============================================================================
# TREATMENT ITEMS
# ============================================================================

def add_item(db: Session, principal: TokenPrincipal, plan_id: int, data: TreatmentItemCreate) -> TreatmentItem:
    """
    Add a procedure on one tooth to a plan.

    Raises:
        BadRequestException: ``invalid_tooth_number``, ``icd10_required`` or ``invalid_icd10_code``
    """
    plan = get_plan(db, principal, plan_id)

    if not is_valid_fdi_tooth(data.tooth_fdi_code):
        raise BadRequestException("invalid_tooth_number")

    linked_code = None
    if data.linked_icd10_code:
        code = get_code(db, data.linked_icd10_code)
        if not code:
            raise BadRequestException("invalid_icd10_code")
        linked_code = code.code
    elif is_icd10_required(db, principal.clinic_id, principal.doctor_id):
        raise BadRequestException("icd10_required")

    item = TreatmentItem(
        treatment_plan_id=plan.id,
        tooth_fdi_code=data.tooth_fdi_code,
        procedure_code=data.procedure_code,
        procedure_name=data.procedure_name,
        linked_icd10_code=linked_code,
        status=data.status,
        created_by_doctor_id=principal.doctor_id,
    )
    db.add(item)
    recalculate_group_status(db, plan.treatment_group_id)
    _commit(db, "create_failed", f"adding item to treatment plan {plan_id}")
    db.refresh(item)
    logger.info(f"Treatment item {item.id} ({item.procedure_name}, tooth {item.tooth_fdi_code}) added to plan {plan_id}")
    return item


def list_items(db: Session, principal: TokenPrincipal, plan_id: int) -> List[TreatmentItem]:
    return get_plan(db, principal, plan_id).items


def update_item_status(db: Session, principal: TokenPrincipal, item_id: int, status: TreatmentStatus) -> TreatmentItem:
    """
    Change an item status and recompute the group status.

    Moving an item to done records a ``TREATMENT_COMPLETED`` timeline event.
    """
    item = get_owned_item(db, principal, item_id)
    previous = item.status
    item.status = status

    plan = item.plan
    recalculate_group_status(db, plan.treatment_group_id)
    _commit(db, "update_failed", f"updating treatment item {item_id}")
    db.refresh(item)
    logger.info(f"Treatment item {item_id} status {previous.value} -> {status.value}")

    if status == TreatmentStatus.DONE and previous != TreatmentStatus.DONE:
        patient = plan.encounter.patient
        record_event(
            db,
            principal.clinic_id,
            EventType.TREATMENT_COMPLETED,
            "Treatment completed",
            reference_id=item.id,
            details={
                "patient_name": patient.full_name if patient else None,
                "treatment_type": item.procedure_name,
                "tooth": item.tooth_fdi_code,
                "doctor_id": principal.doctor_id,
            },
            created_by=principal.actor,
        )
    return item


def delete_item(db: Session, principal: TokenPrincipal, item_id: int) -> None:
    item = get_owned_item(db, principal, item_id)
    plan = item.plan
    plan.items.remove(item)
    recalculate_group_status(db, plan.treatment_group_id)
    _commit(db, "delete_failed", f"deleting treatment item {item_id}")
    logger.info(f"Treatment item {item_id} deleted from plan {plan.id}")


def tooth_map(db: Session, principal: TokenPrincipal, plan_id: int) -> Dict[str, Any]:
    """
    Items of a plan grouped by FDI tooth number, with a count per status.
    """
    plan = get_plan(db, principal, plan_id)
    teeth: Dict[str, List[Dict[str, Any]]] = {}
    summary = {status.value: 0 for status in TreatmentStatus}

    for item in plan.items:
        teeth.setdefault(item.tooth_fdi_code, []).append({
            "id": item.id,
            "procedure_name": item.procedure_name,
            "procedure_code": item.procedure_code,
            "linked_icd10_code": item.linked_icd10_code,
            "status": item.status.value,
        })
        summary[item.status.value] += 1

    return {"plan_id": plan.id, "teeth": teeth, "summary": summary}


# ============================================================================
# PATIENT VIEW
# ============================================================================

def list_patient_treatments(db: Session, principal: TokenPrincipal, patient_id: str) -> List[TreatmentPlan]:
    """Every plan (with items) of the patient's encounters, newest first."""
    patient = get_accessible_patient(db, principal, patient_id)
    return (
        db.query(TreatmentPlan)
        .join(Encounter, TreatmentPlan.encounter_id == Encounter.id)
        .filter(Encounter.patient_id == patient.id)
        .order_by(TreatmentPlan.created_at.desc(), TreatmentPlan.id.desc())
        .all()
    )
