"""Customer submissions blueprint - order requests from the public catalog."""
from flask import Blueprint, g
from app.database import get_session
from app.middleware import require_api_key, require_business
from app.decorators.permissions import require_permission
from app.services.submission_service import create_submission, list_submissions
from app.utils.responses import ok, json_body

submissions_bp = Blueprint('submissions', __name__)


@submissions_bp.route('/customer-submissions', methods=['POST'])
def submission_create():
    """
    Public endpoint: a customer requests items from a business catalog.

    Body: {business_id, customer_name, customer_email, customer_phone?,
           customer_address?, notes?, items: [{catalog_item_id?, item_name?, quantity}]}
    """
    submission = create_submission(get_session(), json_body())
    return ok(submission.to_dict(), 201)


@submissions_bp.route('/customer-submissions', methods=['GET'])
@require_api_key
@require_business
@require_permission('view_submissions')
def submission_list():
    submissions = list_submissions(get_session(), g.business_id)
    return ok([submission.to_dict() for submission in submissions])
