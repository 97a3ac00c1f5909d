"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        database_url: PostgreSQL connection string
        secret_key: Secret key used to sign every JWT (admin, doctor and patient)
        algorithm: Algorithm used for JWT encoding (typically HS256)
        staff_token_expire_minutes: Lifetime of admin and doctor tokens
        patient_token_expire_minutes: Lifetime of patient tokens

        # CORS settings
        cors_origins: Origins allowed to call the API from a browser

        # Invite settings
        invite_base_url: Base URL of patient invite links
        invite_expire_hours: Default invite lifetime

        # Web push settings
        vapid_public_key: VAPID application server key (base64url)
        vapid_private_key: VAPID private key used to sign push messages
        vapid_contact: Contact URI sent in the VAPID "sub" claim

        # Bootstrap settings (optional)
        bootstrap_clinic_code: Clinic created on first start
        bootstrap_admin_email: Admin email for the bootstrap clinic
        bootstrap_admin_password: Admin password for the bootstrap clinic
    """
    # Database settings
    database_url: str

    # JWT settings
    secret_key: str
    algorithm: str = "HS256"
    staff_token_expire_minutes: int = 60 * 24 * 7
    patient_token_expire_minutes: int = 60 * 24 * 30

    # CORS settings
    cors_origins: List[str] = ["http://localhost:3000"]

    # Invite settings
    invite_base_url: str = "https://cliniflow.app/invite"
    invite_expire_hours: int = 168

    # Web push settings
    vapid_public_key: Optional[str] = None
    vapid_private_key: Optional[str] = None
    vapid_contact: str = "mailto:support@cliniflow.app"

    # Bootstrap settings (optional - only used for first clinic creation)
    bootstrap_clinic_code: Optional[str] = None
    bootstrap_clinic_name: str = "Cliniflow Clinic"
    bootstrap_admin_email: Optional[str] = None
    bootstrap_admin_password: Optional[str] = None

    # Cloudinary settings
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False

# Create settings instance
settings = Settings()
