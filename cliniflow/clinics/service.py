"""
Clinic Service - tenant lookup and clinic profile management.
"""
from typing import Optional
from sqlalchemy.orm import Session
import logging

from ..auth.exceptions import ClinicNotFoundException
from ..exceptions import OperationFailedException
from .models import Clinic
from .schemas import ClinicUpdate

# Set up logging
logger = logging.getLogger(__name__)


def normalize_clinic_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def find_clinic_by_code(db: Session, clinic_code: Optional[str]) -> Optional[Clinic]:
    code = normalize_clinic_code(clinic_code)
    if not code:
        return None
    return db.query(Clinic).filter(Clinic.clinic_code == code).first()


def get_clinic_by_code(db: Session, clinic_code: Optional[str]) -> Clinic:
    """
    Get a clinic by its login code (case-insensitive).

    Raises:
        ClinicNotFoundException: If no clinic uses the code
    """
    clinic = find_clinic_by_code(db, clinic_code)
    if not clinic:
        raise ClinicNotFoundException()
    return clinic


def get_clinic(db: Session, clinic_id: int) -> Clinic:
    clinic = db.query(Clinic).filter(Clinic.id == clinic_id).first()
    if not clinic:
        raise ClinicNotFoundException()
    return clinic


def update_clinic(db: Session, clinic_id: int, update: ClinicUpdate) -> Clinic:
    """
    Update the clinic profile. The clinic code is never changed here.

    Args:
        db: Database session
        clinic_id: ID of the admin's clinic
        update: Fields to change

    Returns:
        Clinic: Updated clinic
    """
    clinic = get_clinic(db, clinic_id)
    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(clinic, field, value)

    try:
        db.commit()
        db.refresh(clinic)
        logger.info(f"Clinic {clinic.clinic_code} profile updated")
        return clinic
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating clinic {clinic_id}: {str(e)}")
        raise OperationFailedException("clinic_update_failed")
