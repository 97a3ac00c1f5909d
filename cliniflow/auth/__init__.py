"""
Authentication module for the clinic system.

This module provides authentication and authorization functionality including:
- Clinic registration with its first admin
- Doctor applications and patient self registration
- JWT token authentication for admins, doctors and patients
- Role-based access dependencies
"""
