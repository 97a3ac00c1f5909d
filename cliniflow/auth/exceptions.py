"""
Authentication-specific exceptions.
"""
from fastapi import status
from ..exceptions import AppException


class InvalidCredentialsException(AppException):
    """Exception raised when credentials are invalid."""
    def __init__(self, error: str = "invalid_credentials"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, error)


class AccountStatusException(AppException):
    """Exception raised when account status prevents login, e.g. ``admin_inactive``."""
    def __init__(self, error: str):
        super().__init__(status.HTTP_403_FORBIDDEN, error)


class ClinicNotFoundException(AppException):
    def __init__(self):
        super().__init__(status.HTTP_404_NOT_FOUND, "clinic_not_found")
