"""Customer submission service - order requests from the public catalog."""
import logging
from decimal import Decimal

from sqlalchemy.orm import Session, selectinload

from app.exceptions import BusinessLogicError, NotFoundError
from app.models import BusinessProfile, CatalogItem, CustomerSubmission, CustomerSubmissionItem
from app.services.email_service import send_submission_confirmation, send_submission_notification
from app.utils.number_format import parse_decimal, clean_str

logger = logging.getLogger(__name__)


def _parse_items(session: Session, business_id: int, raw_items) -> list:
    """Validate requested items; returns CustomerSubmissionItem instances."""
    if not isinstance(raw_items, list) or not raw_items:
        raise BusinessLogicError('At least one item is required')

    items = []
    for idx, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise BusinessLogicError(f'Item {idx + 1} must be an object')

        try:
            quantity = parse_decimal(raw.get('quantity'), f'items[{idx}].quantity')
        except ValueError as e:
            raise BusinessLogicError(str(e))
        if quantity is None or quantity <= 0:
            raise BusinessLogicError(f'Item {idx + 1}: quantity must be greater than 0')

        item_name = clean_str(raw.get('item_name'))
        catalog_item_id = raw.get('catalog_item_id') or None

        if catalog_item_id:
            catalog_item = session.query(CatalogItem).filter(
                CatalogItem.id == catalog_item_id,
                CatalogItem.business_id == business_id
            ).first()
            if not catalog_item:
                raise BusinessLogicError(f'Catalog item {catalog_item_id} not found for this business')
            item_name = item_name or catalog_item.item_name

        if not item_name:
            raise BusinessLogicError(f'Item {idx + 1}: item_name or catalog_item_id is required')

        items.append(CustomerSubmissionItem(
            catalog_item_id=catalog_item_id,
            item_name=item_name,
            quantity=quantity,
            notes=clean_str(raw.get('notes'))
        ))

    return items


def create_submission(session: Session, data: dict) -> CustomerSubmission:
    """
    Record a customer order request and confirm it by email.

    Args:
        data: {business_id, customer_name, customer_email, customer_phone?,
               customer_address?, notes?, items: [{catalog_item_id?, item_name?, quantity, notes?}]}

    Raises:
        BusinessLogicError: Missing contact data or items
        NotFoundError: Unknown business
    """
    try:
        business_id = data.get('business_id')
        if not business_id:
            raise BusinessLogicError('business_id is required')

        business = session.get(BusinessProfile, business_id)
        if not business:
            raise NotFoundError(f'Business {business_id} not found')

        customer_name = clean_str(data.get('customer_name'))
        customer_email = clean_str(data.get('customer_email'))
        if not customer_name or not customer_email:
            raise BusinessLogicError('customer_name and customer_email are required')

        submission = CustomerSubmission(
            business_id=business.id,
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=clean_str(data.get('customer_phone')),
            customer_address=clean_str(data.get('customer_address')),
            notes=clean_str(data.get('notes')),
            status='new'
        )
        submission.items = _parse_items(session, business.id, data.get('items'))

        session.add(submission)
        session.commit()

        logger.info(
            f"[SUBMISSION] #{submission.id} for business {business.id} "
            f"({len(submission.items)} item(s), total qty {sum((i.quantity for i in submission.items), Decimal('0'))})"
        )

    except Exception:
        session.rollback()
        raise

    # Best-effort: the request is already stored
    send_submission_confirmation(submission, business)
    send_submission_notification(submission, business)
    return submission


def list_submissions(session: Session, business_id: int) -> list:
    """Submissions of a business, newest first."""
    return session.query(CustomerSubmission).options(
        selectinload(CustomerSubmission.items)
    ).filter(
        CustomerSubmission.business_id == business_id
    ).order_by(CustomerSubmission.created_at.desc(), CustomerSubmission.id.desc()).all()
