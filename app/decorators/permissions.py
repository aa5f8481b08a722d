"""
Permission decorators for API key access control.
Extends require_api_key with per-key permission checks.
"""

from functools import wraps
from flask import g

from app.exceptions import AuthenticationError, UnauthorizedError


# Known permission names; 'all' on a key grants every one of them
PERMISSIONS = (
    'view_invoices',
    'create_invoices',
    'approve_invoices',
    'edit_catalog',
    'edit_profile',
    'view_reports',
    'view_submissions',
)


def require_permission(permission_name):
    """
    Decorator to check for a specific permission on the calling API key.

    Usage:
        @require_permission('approve_invoices')

    Raises:
        AuthenticationError: No valid API key (401)
        UnauthorizedError: Key lacks the permission (403)
    """
    if permission_name not in PERMISSIONS:
        raise ValueError(f'Unknown permission: {permission_name}')

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            api_key = g.get('api_key')
            if api_key is None:
                raise AuthenticationError()

            if not api_key.has_permission(permission_name):
                raise UnauthorizedError(f'API key lacks permission: {permission_name}')

            return f(*args, **kwargs)

        return decorated_function
    return decorator
