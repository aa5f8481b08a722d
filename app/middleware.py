"""Middleware for API key authentication and business context."""
from datetime import datetime, timezone
from functools import wraps
from flask import g, request, current_app
from app.database import get_session
from app.exceptions import AuthenticationError, BusinessLogicError
from app.models import ApiKey, BusinessProfile, hash_api_key

API_KEY_HEADER = 'X-API-Key'


def load_api_key_and_business():
    """
    Load the calling API key and its business into g (Flask's per-request global).

    Called before each request. Sets g.api_key, g.user_id, g.business and
    g.business_id when the X-API-Key header matches an active key. Requests
    without a valid key keep them as None; protected views reject them.
    """
    g.api_key = None
    g.user_id = None
    g.business = None
    g.business_id = None

    plain_key = (request.headers.get(API_KEY_HEADER) or '').strip()
    if not plain_key:
        return

    db_session = get_session()
    try:
        api_key = db_session.query(ApiKey).filter_by(
            key_hash=hash_api_key(plain_key),
            is_active=True
        ).first()
        if not api_key:
            return

        api_key.last_used_at = datetime.now(timezone.utc)
        db_session.commit()

        g.api_key = api_key
        g.user_id = api_key.user_id

        business = db_session.query(BusinessProfile).filter_by(user_id=api_key.user_id).first()
        if business:
            g.business = business
            g.business_id = business.id
    except Exception as e:
        db_session.rollback()
        current_app.logger.error(f"Error in load_api_key_and_business: {e}")
        raise


def require_api_key(f):
    """
    Decorator: Require a valid API key.

    Raises AuthenticationError (401) when the request carries none.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('api_key') is None:
            raise AuthenticationError()
        return f(*args, **kwargs)
    return decorated_function


def require_business(f):
    """
    Decorator: Require the caller to have a business profile.

    Must be used AFTER require_api_key.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('business_id') is None:
            raise BusinessLogicError('Create a business profile first', status_code=409)
        return f(*args, **kwargs)
    return decorated_function
