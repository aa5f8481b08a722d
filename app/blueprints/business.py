"""Business profile blueprint - the caller's own profile and logo."""
from flask import Blueprint, request, current_app, g
from app.database import get_session
from app.exceptions import BusinessLogicError
from app.middleware import require_api_key
from app.decorators.permissions import require_permission
from app.services.business_service import get_profile_or_404, upsert_profile, set_logo
from app.services.storage_service import get_storage_service
from app.utils.responses import ok, json_body

business_bp = Blueprint('business', __name__)


def _profile_payload(profile):
    logo_public_url = None
    if profile.logo_url:
        logo_public_url = get_storage_service().get_public_url(profile.logo_url)
    return profile.to_dict(logo_public_url=logo_public_url)


@business_bp.route('/business-profile', methods=['GET'])
@require_api_key
def profile_get():
    profile = get_profile_or_404(get_session(), g.user_id)
    return ok(_profile_payload(profile))


@business_bp.route('/business-profile', methods=['POST'])
@require_api_key
@require_permission('edit_profile')
def profile_upsert():
    """Create or update the caller's business profile."""
    profile = upsert_profile(
        get_session(), g.user_id, json_body(),
        default_currency=current_app.config.get('DEFAULT_CURRENCY', 'USD')
    )
    return ok(_profile_payload(profile))


@business_bp.route('/business-profile/logo', methods=['PUT'])
@require_api_key
@require_permission('edit_profile')
def profile_logo():
    """Upload the business logo (multipart field 'logo'), replacing any previous one."""
    db_session = get_session()
    profile = get_profile_or_404(db_session, g.user_id)

    uploaded = request.files.get('logo')
    if uploaded is None or not uploaded.filename:
        raise BusinessLogicError('No logo file was uploaded')

    logo_url = set_logo(
        db_session, profile,
        filename=uploaded.filename,
        data=uploaded.read(),
        content_type=uploaded.mimetype,
        storage=get_storage_service()
    )
    current_app.logger.info(f"[BUSINESS] Logo updated for profile {profile.id}")
    return ok({'logo_url': logo_url})
