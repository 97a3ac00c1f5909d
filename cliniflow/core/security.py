"""
Core security utilities for authentication and password handling.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import jwt, JWTError
from passlib.context import CryptContext
import secrets
import hashlib
import logging

from ..config import settings

# Set up logging
logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        str: Hashed password
    """
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a password against a hash.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password to compare against

    Returns:
        bool: True if password matches hash
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)

def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Claims to encode in the token (``role`` plus the identity claims)
        expires_delta: Token expiration time

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.staff_token_expire_minutes
        )

    to_encode.update({"exp": expire})

    return jwt.encode(
        to_encode, settings.secret_key, algorithm=settings.algorithm
    )

def create_admin_token(admin_id: int, clinic_id: int, clinic_code: str) -> str:
    return create_access_token({
        "role": "ADMIN",
        "adminId": admin_id,
        "clinicId": clinic_id,
        "clinicCode": clinic_code,
    })

def create_doctor_token(doctor_id: int, clinic_id: int, clinic_code: str) -> str:
    return create_access_token({
        "role": "DOCTOR",
        "doctorId": doctor_id,
        "clinicId": clinic_id,
        "clinicCode": clinic_code,
    })

def create_patient_token(patient_id: str, clinic_id: int, clinic_code: str, status: str) -> str:
    return create_access_token(
        {
            "role": "PATIENT",
            "patientId": patient_id,
            "clinicId": clinic_id,
            "clinicCode": clinic_code,
            "status": status,
        },
        expires_delta=timedelta(minutes=settings.patient_token_expire_minutes),
    )

def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify and decode a JWT token.

    Args:
        token: JWT token string

    Returns:
        Dict containing token payload if valid, None if invalid
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        return payload
    except JWTError as e:
        logger.info(f"Token verification failed: {str(e)}")
        return None

def generate_invite_token() -> str:
    """
    Generate a secure token for patient invite links.

    Returns:
        str: Secure random token
    """
    return secrets.token_urlsafe(32)

def hash_token(token: str) -> str:
    """
    Hash a token for secure storage.

    Args:
        token: Token to hash

    Returns:
        str: Hashed token
    """
    return hashlib.sha256(token.encode()).hexdigest()

def generate_public_id(prefix: str) -> str:
    """Short public identifier such as ``p_3f9a1c2b7d4e``."""
    return f"{prefix}_{secrets.token_hex(6)}"
