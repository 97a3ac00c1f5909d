"""
FastAPI dependencies for authentication and authorization.

Every endpoint resolves the caller through ``get_token_principal``; role checks
are layered on top with ``require_roles`` and its role-specific shortcuts.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import enum
import logging

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..core.security import verify_token
from ..exceptions import MissingTokenException, InvalidTokenException, RoleRequiredException

# Set up logging
logger = logging.getLogger(__name__)

# Bearer scheme; missing credentials are reported as ``missing_token`` by us, not by FastAPI
bearer_scheme = HTTPBearer(auto_error=False)

PATIENT_TOKEN_HEADER = "x-patient-token"


class Role(str, enum.Enum):
    """Roles carried in the ``role`` claim"""
    ADMIN = "ADMIN"
    DOCTOR = "DOCTOR"
    PATIENT = "PATIENT"


# Identity claim each role must carry
IDENTITY_CLAIMS = {
    Role.ADMIN: "adminId",
    Role.DOCTOR: "doctorId",
    Role.PATIENT: "patientId",
}


@dataclass
class TokenPrincipal:
    """
    Caller identity decoded from a verified token.

    Attributes:
        role: Role claim
        clinic_id: Clinic the caller belongs to
        clinic_code: Code of that clinic
        admin_id / doctor_id: Numeric account id for staff roles
        patient_id: Public patient id for the patient role
    """
    role: Role
    clinic_id: Optional[int]
    clinic_code: Optional[str]
    admin_id: Optional[int] = None
    doctor_id: Optional[int] = None
    patient_id: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict)

    @property
    def actor(self) -> str:
        """Identifier written to audit fields such as ``created_by``."""
        if self.role == Role.ADMIN:
            return f"admin:{self.admin_id}"
        if self.role == Role.DOCTOR:
            return f"doctor:{self.doctor_id}"
        return f"patient:{self.patient_id}"


def get_token_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenPrincipal:
    """
    Get the caller from ``Authorization: Bearer <token>`` or ``x-patient-token``.

    Raises:
        MissingTokenException: If neither header carries a token
        InvalidTokenException: If the token fails verification or lacks its identity claim
    """
    token = credentials.credentials if credentials else request.headers.get(PATIENT_TOKEN_HEADER)
    if not token:
        raise MissingTokenException()

    payload = verify_token(token)
    if not payload:
        raise InvalidTokenException()

    try:
        role = Role(payload.get("role"))
    except ValueError:
        logger.info(f"Token rejected: unknown role {payload.get('role')!r}")
        raise InvalidTokenException()

    identity = payload.get(IDENTITY_CLAIMS[role])
    if identity is None:
        raise InvalidTokenException()

    return TokenPrincipal(
        role=role,
        clinic_id=payload.get("clinicId"),
        clinic_code=payload.get("clinicCode"),
        admin_id=identity if role == Role.ADMIN else None,
        doctor_id=identity if role == Role.DOCTOR else None,
        patient_id=identity if role == Role.PATIENT else None,
        claims=payload,
    )


def require_roles(allowed_roles: List[Role]):
    """
    Dependency factory to require specific roles.

    Args:
        allowed_roles: List of roles that are allowed access

    Returns:
        Function that checks the token role, raising e.g. ``admin_required``
        or ``admin_or_doctor_required``
    """
    required = "_or_".join(role.value for role in allowed_roles)

    def role_checker(principal: TokenPrincipal = Depends(get_token_principal)) -> TokenPrincipal:
        if principal.role not in allowed_roles:
            raise RoleRequiredException(required)
        return principal
    return role_checker


# Convenience dependencies for specific roles
require_admin = require_roles([Role.ADMIN])
require_doctor = require_roles([Role.DOCTOR])
require_patient = require_roles([Role.PATIENT])

# Dependencies for mixed access
require_admin_or_doctor = require_roles([Role.ADMIN, Role.DOCTOR])
require_admin_or_patient = require_roles([Role.ADMIN, Role.PATIENT])
require_any_role = require_roles([Role.ADMIN, Role.DOCTOR, Role.PATIENT])
