"""Business profile service - one profile per user."""
import logging
import os
from typing import Optional

from sqlalchemy.orm import Session

from app.exceptions import BusinessLogicError, NotFoundError
from app.models import BusinessProfile
from app.utils.number_format import clean_str

logger = logging.getLogger(__name__)

# Fallback extensions when the upload has no usable file name
LOGO_EXTENSIONS = {
    'image/jpeg': 'jpg',
    'image/png': 'png',
    'image/gif': 'gif',
    'image/webp': 'webp',
    'image/svg+xml': 'svg',
}


def get_profile(session: Session, user_id: str) -> Optional[BusinessProfile]:
    return session.query(BusinessProfile).filter(BusinessProfile.user_id == user_id).first()


def get_profile_or_404(session: Session, user_id: str) -> BusinessProfile:
    profile = get_profile(session, user_id)
    if not profile:
        raise NotFoundError('Business profile not found')
    return profile


def upsert_profile(session: Session, user_id: str, data: dict, default_currency: str = 'USD') -> BusinessProfile:
    """
    Create the caller's business profile or update the existing one.

    business_name and contact_email are required on creation; on update only
    the fields present in data change.

    Raises:
        BusinessLogicError: If a required field is missing or blank
    """
    try:
        profile = get_profile(session, user_id)
        creating = profile is None
        if creating:
            profile = BusinessProfile(user_id=user_id)

        for field in ('business_name', 'contact_email'):
            if creating or field in data:
                value = clean_str(data.get(field))
                if not value:
                    raise BusinessLogicError(f'{field} is required')
                setattr(profile, field, value)

        for field in ('contact_phone', 'address', 'tax_id'):
            if field in data:
                setattr(profile, field, clean_str(data.get(field)))

        if 'default_currency' in data or creating:
            profile.default_currency = (clean_str(data.get('default_currency')) or default_currency).upper()
        if 'timezone' in data or creating:
            profile.timezone = clean_str(data.get('timezone')) or 'UTC'

        if creating:
            session.add(profile)
        session.commit()

        logger.info(f"[BUSINESS] Profile {profile.id} {'created' if creating else 'updated'} for user {user_id}")
        return profile

    except Exception:
        session.rollback()
        raise


def _logo_extension(filename: Optional[str], content_type: Optional[str]) -> str:
    ext = os.path.splitext(filename or '')[1].lstrip('.').lower()
    if ext:
        return ext
    ext = LOGO_EXTENSIONS.get(content_type or '')
    if not ext:
        raise BusinessLogicError('Cannot determine the logo file extension')
    return ext


def set_logo(session: Session, profile: BusinessProfile, filename: Optional[str], data: bytes,
             content_type: Optional[str], storage) -> str:
    """
    Upload a new logo and point the profile at it.

    The object key is `<user_id>/logo.<ext>`; uploading again replaces it.

    Returns:
        Public URL of the logo
    """
    object_name = f"{profile.user_id}/logo.{_logo_extension(filename, content_type)}"

    try:
        key = storage.upload(object_name, data, content_type=content_type, overwrite=True,
                             allowed_types_key='ALLOWED_LOGO_MIME_TYPES')
    except ValueError as e:
        raise BusinessLogicError(str(e))

    previous_key = profile.logo_url
    try:
        profile.logo_url = key
        session.commit()
    except Exception:
        session.rollback()
        raise

    # A logo with a different extension leaves the old object behind
    if previous_key and previous_key != key and not previous_key.startswith(('http://', 'https://')):
        storage.delete_file(previous_key)

    return storage.get_public_url(key)
