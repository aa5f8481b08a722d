"""Catalog service - products and services offered by a business."""
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from app.exceptions import BusinessLogicError, NotFoundError
from app.models import CatalogItem, BusinessProfile
from app.services.cache_service import get_cache
from app.utils.number_format import parse_decimal, parse_bool, clean_str

logger = logging.getLogger(__name__)

CACHE_MODULE = 'catalog'


def _apply_fields(item: CatalogItem, data: dict, partial: bool):
    """Copy validated payload fields onto a catalog item."""
    if not partial or 'item_name' in data:
        item_name = clean_str(data.get('item_name'))
        if not item_name:
            raise BusinessLogicError('item_name is required')
        item.item_name = item_name

    if not partial or 'unit_price' in data:
        try:
            unit_price = parse_decimal(data.get('unit_price'), 'unit_price')
        except ValueError as e:
            raise BusinessLogicError(str(e))
        if unit_price is None:
            raise BusinessLogicError('unit_price is required')
        if unit_price < 0:
            raise BusinessLogicError('unit_price cannot be negative')
        item.unit_price = unit_price.quantize(Decimal('0.01'))

    for field in ('description', 'category', 'sku'):
        if not partial or field in data:
            setattr(item, field, clean_str(data.get(field)))

    if 'currency' in data or not item.currency:
        item.currency = (clean_str(data.get('currency')) or 'USD').upper()

    if 'is_active' in data:
        item.is_active = parse_bool(data.get('is_active'), default=True)
    elif item.is_active is None:
        item.is_active = True


def list_public_catalog(session: Session, business_id: int) -> list:
    """
    Active catalog items of a business, grouped order (category, name).

    Served to anonymous customers, so the result is cached.

    Raises:
        NotFoundError: If the business does not exist
    """
    def _load():
        if not session.get(BusinessProfile, business_id):
            raise NotFoundError(f'Business {business_id} not found')
        items = session.query(CatalogItem).filter(
            CatalogItem.business_id == business_id,
            CatalogItem.is_active == True  # noqa: E712
        ).order_by(CatalogItem.category, CatalogItem.item_name).all()
        return [item.to_dict() for item in items]

    return get_cache().memoize(business_id, CACHE_MODULE, 'active', _load)


def list_catalog(session: Session, business_id: int) -> list:
    """All catalog items of a business, including inactive ones."""
    return session.query(CatalogItem).filter(
        CatalogItem.business_id == business_id
    ).order_by(CatalogItem.item_name).all()


def get_catalog_item(session: Session, business_id: int, item_id: int) -> CatalogItem:
    item = session.query(CatalogItem).filter(
        CatalogItem.id == item_id,
        CatalogItem.business_id == business_id
    ).first()
    if not item:
        raise NotFoundError(f'Catalog item {item_id} not found')
    return item


def create_catalog_item(session: Session, business_id: int, data: dict) -> CatalogItem:
    """Create a catalog item (business-scoped)."""
    try:
        item = CatalogItem(business_id=business_id)
        _apply_fields(item, data, partial=False)
        session.add(item)
        session.commit()
    except Exception:
        session.rollback()
        raise

    get_cache().invalidate_module(business_id, CACHE_MODULE)
    logger.info(f"[CATALOG] Item {item.id} created for business {business_id}")
    return item


def update_catalog_item(session: Session, business_id: int, item_id: int, data: dict) -> CatalogItem:
    """Update a catalog item; only fields present in data change."""
    try:
        item = get_catalog_item(session, business_id, item_id)
        _apply_fields(item, data, partial=True)
        session.commit()
    except Exception:
        session.rollback()
        raise

    get_cache().invalidate_module(business_id, CACHE_MODULE)
    return item


def delete_catalog_item(session: Session, business_id: int, item_id: int) -> None:
    """Delete a catalog item (business-scoped)."""
    try:
        item = get_catalog_item(session, business_id, item_id)
        session.delete(item)
        session.commit()
    except Exception:
        session.rollback()
        raise

    get_cache().invalidate_module(business_id, CACHE_MODULE)
    logger.info(f"[CATALOG] Item {item_id} deleted for business {business_id}")

