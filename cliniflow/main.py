"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .database import Base, engine, SessionLocal
from .config import settings
from .exceptions import register_exception_handlers
from .core.middleware import setup_middlewares
from .core.bootstrap import bootstrap_if_needed

# Import all models here so create_all sees every table
from .clinics import models as clinic_models  # noqa: F401
from .doctors import models as doctor_models  # noqa: F401
from .patients import models as patient_models  # noqa: F401
from .icd10 import models as icd10_models  # noqa: F401
from .treatment_groups import models as treatment_group_models  # noqa: F401
from .treatments import models as treatment_models  # noqa: F401
from .timeline import models as timeline_models  # noqa: F401
from .admin import models as admin_models  # noqa: F401
from .notifications import models as notification_models  # noqa: F401
from .tasks import models as task_models  # noqa: F401

from .auth.router import router as auth_router
from .clinics.router import router as clinics_router
from .admin.router import router as admin_router
from .patients.router import router as patients_router
from .doctors.router import router as doctors_router
from .icd10.router import router as icd10_router
from .treatment_groups.router import router as treatment_groups_router
from .treatments.router import router as treatments_router
from .timeline.router import router as timeline_router
from .notifications.router import router as notifications_router
from .tasks.router import router as tasks_router

API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create database tables if they don't exist
Base.metadata.create_all(bind=engine)

logger.info("🚀 Starting Cliniflow API...")
db = SessionLocal()
try:
    bootstrap_if_needed(db)
except Exception as e:
    logger.error(f"❌ Bootstrap process failed: {str(e)}")
finally:
    db.close()

# Create FastAPI application
app = FastAPI(
    title="Cliniflow API",
    description="Multi-tenant clinic management API: patients, treatments, ICD-10 coding and timeline",
    version=API_VERSION
)

# Register exception handlers
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware
setup_middlewares(app)

# Include routers
app.include_router(auth_router, tags=["Authentication"])
app.include_router(clinics_router, tags=["Clinics"])
app.include_router(admin_router, tags=["Admin"])
app.include_router(patients_router, tags=["Patients"])
app.include_router(doctors_router, tags=["Doctors"])
app.include_router(icd10_router, tags=["ICD-10"])
app.include_router(treatment_groups_router, tags=["Treatment Groups"])
app.include_router(treatments_router, tags=["Treatments"])
app.include_router(timeline_router, tags=["Timeline"])
app.include_router(notifications_router, tags=["Notifications"])
app.include_router(tasks_router, tags=["Tasks"])


# Root endpoint
@app.get("/")
def root():
    """
    Root endpoint for API health check.

    Returns:
        dict: Simple welcome message
    """
    return {"ok": True, "message": "Welcome to Cliniflow API", "version": API_VERSION}


# Health check endpoints
@app.get("/health")
@app.get("/api/health")
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns:
        dict: Health status information
    """
    return {"ok": True, "status": "healthy"}
