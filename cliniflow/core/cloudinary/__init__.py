"""
Cloudinary file storage for doctor photos and diplomas.
"""
import io
import logging
from typing import Optional

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader

from ...config import settings

logger = logging.getLogger(__name__)

DOCTOR_PROFILE_FOLDER = "doctor-profile"
DOCTOR_DOCUMENTS_FOLDER = "doctor-documents"

_configured = False


def _ensure_configured() -> bool:
    global _configured
    if not settings.cloudinary_cloud_name:
        logger.error("Cloudinary is not configured (CLOUDINARY_CLOUD_NAME missing)")
        return False
    if not _configured:
        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )
        _configured = True
    return True


def upload_file(content: bytes, folder: str, public_id: str, resource_type: str = "auto") -> Optional[str]:
    """
    Store ``content`` under ``folder/public_id`` and return its HTTPS URL,
    or None when storage is unavailable or rejects the file.

    The same ``public_id`` overwrites the earlier upload, so a doctor only
    ever has one photo and one diploma on file.
    """
    if not _ensure_configured():
        return None

    try:
        result = cloudinary.uploader.upload(
            io.BytesIO(content),
            folder=folder,
            public_id=public_id,
            overwrite=True,
            resource_type=resource_type,
        )
    except cloudinary.exceptions.Error as e:
        logger.error(f"Cloudinary rejected {folder}/{public_id}: {str(e)}")
        return None
    except Exception as e:
        logger.error(f"Unexpected storage error for {folder}/{public_id}: {str(e)}")
        return None

    secure_url = result.get("secure_url")
    if not secure_url:
        logger.error(f"Cloudinary returned no secure_url for {folder}/{public_id}")
        return None

    logger.info(f"Stored {folder}/{public_id} ({len(content)} bytes)")
    return secure_url
