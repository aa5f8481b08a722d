"""Suppliers blueprint - business-scoped supplier directory."""
from flask import Blueprint, request, g
from app.database import get_session
from app.middleware import require_api_key, require_business
from app.decorators.permissions import require_permission
from app.services.supplier_service import list_suppliers, create_supplier
from app.utils.responses import ok, json_body

suppliers_bp = Blueprint('suppliers', __name__)


@suppliers_bp.route('/suppliers', methods=['GET'])
@require_api_key
@require_business
@require_permission('view_invoices')
def suppliers_list():
    search = (request.args.get('q') or '').strip() or None
    suppliers = list_suppliers(get_session(), g.business_id, search=search)
    return ok([supplier.to_dict() for supplier in suppliers])


@suppliers_bp.route('/suppliers', methods=['POST'])
@require_api_key
@require_business
@require_permission('create_invoices')
def suppliers_create():
    supplier = create_supplier(get_session(), g.business_id, json_body())
    return ok(supplier.to_dict(), 201)
