"""Catalog blueprint - public catalog and owner management."""
from flask import Blueprint, g
from app.database import get_session
from app.middleware import require_api_key, require_business
from app.decorators.permissions import require_permission
from app.services.catalog_service import (
    list_public_catalog, list_catalog, create_catalog_item, update_catalog_item, delete_catalog_item
)
from app.utils.responses import ok, json_body

catalog_bp = Blueprint('catalog', __name__)


@catalog_bp.route('/business/<int:business_id>/catalog', methods=['GET'])
def public_catalog(business_id):
    """Active catalog items of a business (no API key needed)."""
    return ok(list_public_catalog(get_session(), business_id))


@catalog_bp.route('/catalog', methods=['GET'])
@require_api_key
@require_business
@require_permission('edit_catalog')
def catalog_list():
    """Full catalog of the caller's business, inactive items included."""
    items = list_catalog(get_session(), g.business_id)
    return ok([item.to_dict() for item in items])


@catalog_bp.route('/catalog', methods=['POST'])
@require_api_key
@require_business
@require_permission('edit_catalog')
def catalog_create():
    item = create_catalog_item(get_session(), g.business_id, json_body())
    return ok(item.to_dict(), 201)


@catalog_bp.route('/catalog/<int:item_id>', methods=['PUT'])
@require_api_key
@require_business
@require_permission('edit_catalog')
def catalog_update(item_id):
    item = update_catalog_item(get_session(), g.business_id, item_id, json_body())
    return ok(item.to_dict())


@catalog_bp.route('/catalog/<int:item_id>', methods=['DELETE'])
@require_api_key
@require_business
@require_permission('edit_catalog')
def catalog_delete(item_id):
    delete_catalog_item(get_session(), g.business_id, item_id)
    return ok({'id': item_id})
