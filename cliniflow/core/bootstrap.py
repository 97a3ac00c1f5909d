"""
Bootstrap utilities run at application start-up.

Seeds the ICD-10 catalogue and, when credentials are present in the
environment, creates a first clinic with its admin.
"""
import logging
from sqlalchemy.orm import Session

from ..config import settings
from ..clinics.models import Clinic, Admin, AdminStatus, ClinicStatus
from ..icd10.catalog import ICD10_CODES, PROCEDURE_SUGGESTIONS
from ..icd10.models import Icd10Code, DiagnosisProcedureSuggestion
from .security import hash_password

logger = logging.getLogger(__name__)


def seed_icd10_catalog(db: Session) -> int:
    """
    Load the built-in ICD-10 codes and procedure suggestions into empty tables.

    Args:
        db: Database session

    Returns:
        int: Number of codes inserted (0 when the catalogue already exists)
    """
    if db.query(Icd10Code).count() > 0:
        logger.info("ICD-10 catalogue already present. Seeding not needed.")
        return 0

    for code, category, title_en, title_tr, is_dental in ICD10_CODES:
        db.add(Icd10Code(
            code=code,
            category=category,
            title_en=title_en,
            title_tr=title_tr,
            is_dental=is_dental,
        ))

    if db.query(DiagnosisProcedureSuggestion).count() == 0:
        for code, name, priority in PROCEDURE_SUGGESTIONS:
            db.add(DiagnosisProcedureSuggestion(icd10_code=code, procedure_name=name, priority=priority))

    try:
        db.commit()
    except Exception as e:
        logger.error(f"❌ Failed to seed ICD-10 catalogue: {str(e)}")
        db.rollback()
        return 0

    logger.info(f"✅ Seeded {len(ICD10_CODES)} ICD-10 codes and {len(PROCEDURE_SUGGESTIONS)} procedure suggestions")
    return len(ICD10_CODES)


def create_bootstrap_clinic(db: Session) -> bool:
    """
    Create the first clinic and its admin from environment variables.

    Args:
        db: Database session

    Returns:
        bool: True if the clinic was created, False otherwise
    """
    if not (settings.bootstrap_clinic_code and settings.bootstrap_admin_email and settings.bootstrap_admin_password):
        logger.warning("Bootstrap clinic credentials not provided in environment variables")
        return False

    clinic_code = settings.bootstrap_clinic_code.strip().upper()
    if db.query(Clinic).filter(Clinic.clinic_code == clinic_code).first():
        logger.warning(f"Bootstrap skipped: clinic {clinic_code} already exists")
        return False

    try:
        clinic = Clinic(
            clinic_code=clinic_code,
            name=settings.bootstrap_clinic_name,
            email=settings.bootstrap_admin_email.lower(),
            status=ClinicStatus.ACTIVE,
        )
        db.add(clinic)
        db.flush()

        db.add(Admin(
            clinic_id=clinic.id,
            email=settings.bootstrap_admin_email.lower(),
            password_hash=hash_password(settings.bootstrap_admin_password),
            full_name="System Administrator",
            status=AdminStatus.ACTIVE,
        ))
        db.commit()
        logger.info(f"✅ Bootstrap clinic created successfully: {clinic_code} (ID: {clinic.id})")
        return True
    except Exception as e:
        logger.error(f"❌ Failed to create bootstrap clinic: {str(e)}")
        db.rollback()
        return False


def bootstrap_if_needed(db: Session) -> None:
    """
    Seed reference data and create the bootstrap clinic when no clinic exists.
    This function should be called during application startup.

    Args:
        db: Database session
    """
    seed_icd10_catalog(db)

    clinic_count = db.query(Clinic).count()
    if clinic_count > 0:
        logger.info(f"✅ Clinics found ({clinic_count} total). Bootstrap not needed.")
        return

    logger.info("🚀 No clinics found. Attempting bootstrap clinic creation...")
    if create_bootstrap_clinic(db):
        logger.info("🎉 Bootstrap clinic creation completed successfully!")
    else:
        logger.info("💡 To create the first clinic, set BOOTSTRAP_CLINIC_CODE, BOOTSTRAP_ADMIN_EMAIL and BOOTSTRAP_ADMIN_PASSWORD in your .env file.")
