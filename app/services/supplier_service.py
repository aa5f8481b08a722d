"""Supplier service - business-scoped supplier directory."""
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.exceptions import BusinessLogicError
from app.models import Supplier
from app.utils.number_format import clean_str

logger = logging.getLogger(__name__)


def list_suppliers(session: Session, business_id: int, search: str = None) -> list:
    query = session.query(Supplier).filter(Supplier.business_id == business_id)
    if search:
        query = query.filter(func.lower(Supplier.name).like(f'%{search.lower()}%'))
    return query.order_by(Supplier.name).all()


def create_supplier(session: Session, business_id: int, data: dict) -> Supplier:
    """
    Create a supplier for a business.

    Raises:
        BusinessLogicError: If name is missing or already used in this business
    """
    try:
        name = clean_str(data.get('name'))
        if not name:
            raise BusinessLogicError('Supplier name is required')

        existing = session.query(Supplier).filter(
            Supplier.business_id == business_id,
            func.lower(Supplier.name) == name.lower()
        ).first()
        if existing:
            raise BusinessLogicError(f"A supplier named '{name}' already exists", status_code=409)

        supplier = Supplier(
            business_id=business_id,
            name=name,
            email=clean_str(data.get('email')),
            phone=clean_str(data.get('phone')),
            address=clean_str(data.get('address')),
            tax_id=clean_str(data.get('tax_id'))
        )
        session.add(supplier)
        session.commit()

        logger.info(f"[SUPPLIER] Supplier {supplier.id} created for business {business_id}")
        return supplier

    except Exception:
        session.rollback()
        raise
