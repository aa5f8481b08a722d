"""Invoices blueprint - creation, review and approval (business-scoped)."""
from flask import Blueprint, request, current_app, g
from app.database import get_session
from app.exceptions import BusinessLogicError
from app.middleware import require_api_key, require_business
from app.decorators.permissions import require_permission
from app.services.invoice_service import (
    create_invoice_with_lines, get_invoice, get_invoice_detail, list_invoices, attach_invoice_file
)
from app.services.approval_service import submit_for_approval, record_decision, resolve_validation
from app.services.report_service import invoices_to_csv
from app.services.storage_service import get_storage_service
from app.blueprints.metrics import record_invoice_event
from app.utils.responses import ok, json_body, csv_download, query_date

invoices_bp = Blueprint('invoices', __name__)


def _list_filters():
    return {
        'status': (request.args.get('status') or '').strip().lower() or None,
        'search': (request.args.get('q') or '').strip() or None,
        'start_date': query_date('start'),
        'end_date': query_date('end'),
    }


@invoices_bp.route('/invoices', methods=['POST'])
@require_api_key
@require_business
@require_permission('create_invoices')
def create_invoice():
    """Create a draft invoice with its line items and run validations."""
    db_session = get_session()
    payload = json_body()
    payload['business_id'] = g.business_id

    invoice = create_invoice_with_lines(payload, db_session, default_currency=g.business.default_currency)
    current_app.logger.info(f"[INVOICE] Created invoice {invoice.id} for business {g.business_id}")
    record_invoice_event('created')

    return ok(get_invoice_detail(db_session, g.business_id, invoice.id), 201)


@invoices_bp.route('/invoices', methods=['GET'])
@require_api_key
@require_business
@require_permission('view_invoices')
def invoices_list():
    """List invoices (filters: status, q, start, end)."""
    invoices = list_invoices(get_session(), g.business_id, **_list_filters())
    return ok([invoice.to_dict() for invoice in invoices])


@invoices_bp.route('/invoices/export', methods=['GET'])
@require_api_key
@require_business
@require_permission('view_invoices')
def invoices_export():
    """CSV export of the filtered invoice list."""
    invoices = list_invoices(get_session(), g.business_id, **_list_filters())
    return csv_download(invoices_to_csv(invoices), 'invoices')


@invoices_bp.route('/invoices/<int:invoice_id>', methods=['GET'])
@require_api_key
@require_business
@require_permission('view_invoices')
def invoice_detail(invoice_id):
    return ok(get_invoice_detail(get_session(), g.business_id, invoice_id))


@invoices_bp.route('/invoices/<int:invoice_id>/submit', methods=['POST'])
@require_api_key
@require_business
@require_permission('create_invoices')
def submit_invoice(invoice_id):
    """Move a draft to pending_approval."""
    db_session = get_session()
    invoice = get_invoice(db_session, g.business_id, invoice_id, lock=True)
    submit_for_approval(
        db_session, invoice,
        block_on_errors=current_app.config.get('BLOCK_SUBMIT_WITH_ERRORS', False)
    )
    record_invoice_event('submitted')
    return ok(invoice.to_dict())


@invoices_bp.route('/invoices/<int:invoice_id>/approvals', methods=['POST'])
@require_api_key
@require_business
@require_permission('approve_invoices')
def decide_invoice(invoice_id):
    """
    Approve or reject a pending invoice.

    Body: {"decision": "approved" | "rejected", "approver_email": str, "comments"?: str}
    """
    db_session = get_session()
    payload = json_body()
    invoice = get_invoice(db_session, g.business_id, invoice_id, lock=True)

    approval = record_decision(
        db_session, invoice,
        decision=payload.get('decision') or payload.get('status'),
        approver_email=payload.get('approver_email'),
        comments=payload.get('comments')
    )
    record_invoice_event(approval.status)
    return ok({'approval': approval.to_dict(), 'invoice': invoice.to_dict()}, 201)


@invoices_bp.route('/invoices/<int:invoice_id>/file', methods=['POST'])
@require_api_key
@require_business
@require_permission('create_invoices')
def upload_invoice_file(invoice_id):
    """Attach a PDF or spreadsheet to an invoice (multipart field 'file')."""
    db_session = get_session()
    invoice = get_invoice(db_session, g.business_id, invoice_id)

    uploaded = request.files.get('file')
    if uploaded is None or not uploaded.filename:
        raise BusinessLogicError('No file was uploaded')

    public_url = attach_invoice_file(
        db_session, invoice,
        filename=uploaded.filename,
        data=uploaded.read(),
        content_type=uploaded.mimetype,
        storage=get_storage_service()
    )
    data = invoice.to_dict()
    data['file_url'] = public_url
    return ok(data)


@invoices_bp.route('/validations/<int:validation_id>', methods=['PUT'])
@require_api_key
@require_business
@require_permission('create_invoices')
def update_validation(validation_id):
    """Mark a finding resolved. Body: {"resolved": true} (optional)."""
    payload = json_body()
    if payload.get('resolved', True) is not True:
        raise BusinessLogicError('Findings can only be marked as resolved')

    db_session = get_session()
    validation = resolve_validation(db_session, validation_id, g.business_id)
    record_invoice_event('finding_resolved')
    invoice = validation.invoice
    return ok({
        'validation': validation.to_dict(),
        'invoice': {
            'id': invoice.id,
            'has_validation_issues': invoice.has_validation_issues,
            'is_duplicate': invoice.is_duplicate,
        }
    })
