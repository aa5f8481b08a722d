"""Invoice service with transactional logic - business-scoped."""
import logging
import os
from decimal import Decimal
from typing import Optional

from sqlalchemy import or_, func
from sqlalchemy.orm import Session, joinedload, selectinload
from werkzeug.utils import secure_filename

from app.exceptions import BusinessLogicError, NotFoundError
from app.models import (
    Invoice, InvoiceLineItem, InvoiceValidation, InvoiceApproval,
    Supplier, PurchaseOrder, InvoiceStatus, InvoiceFileType
)
from app.services.validation_service import run_invoice_validations
from app.utils.number_format import parse_decimal, parse_iso_date, clean_str

logger = logging.getLogger(__name__)


def _parse_line_items(raw_lines) -> list:
    """
    Normalize submitted line items.

    Lines without a description are skipped. line_total is kept exactly as
    submitted; it is only filled in when the client left it out.
    """
    if raw_lines is None:
        return []
    if not isinstance(raw_lines, list):
        raise BusinessLogicError('line_items must be a list')

    lines = []
    for idx, raw in enumerate(raw_lines):
        if not isinstance(raw, dict):
            raise BusinessLogicError(f'Line item {idx + 1} must be an object')

        description = clean_str(raw.get('description'))
        if not description:
            continue

        try:
            quantity = parse_decimal(raw.get('quantity'), f'line_items[{idx}].quantity', Decimal('1'))
            unit_price = parse_decimal(raw.get('unit_price'), f'line_items[{idx}].unit_price', Decimal('0'))
            line_total = parse_decimal(raw.get('line_total'), f'line_items[{idx}].line_total')
            tax_rate = parse_decimal(raw.get('tax_rate'), f'line_items[{idx}].tax_rate')
        except ValueError as e:
            raise BusinessLogicError(str(e))

        if line_total is None:
            line_total = quantity * unit_price

        lines.append({
            'description': description,
            'quantity': quantity,
            'unit_price': unit_price,
            'line_total': line_total,
            'tax_rate': tax_rate
        })

    return lines


def create_invoice_with_lines(payload: dict, session: Session, default_currency: str = 'USD') -> Invoice:
    """
    Create an invoice with its line items, then run the validation engine.

    Steps:
    1. Parse and check the payload (supplier / PO must belong to the business)
    2. Insert invoice (draft) + line items and commit them together
    3. Run validations in a second transaction (best-effort)

    Args:
        payload: Dictionary with:
            - business_id: int (REQUIRED)
            - invoice_number: str (may be blank; recorded as a finding)
            - supplier_id: int | None
            - po_id: int | None
            - invoice_date, due_date: 'YYYY-MM-DD' | None
            - subtotal, tax_amount, total_amount: numbers
            - currency: str
            - notes: str
            - line_items: list of {description, quantity, unit_price, line_total}
        session: SQLAlchemy session
        default_currency: Currency used when the payload omits one

    Returns:
        The created Invoice

    Raises:
        BusinessLogicError: For malformed payloads
    """
    try:
        business_id = payload.get('business_id')
        if not business_id:
            raise BusinessLogicError('business_id is required')

        invoice_number = clean_str(payload.get('invoice_number')) or ''

        supplier_id = payload.get('supplier_id') or None
        if supplier_id:
            supplier = session.query(Supplier).filter(
                Supplier.id == supplier_id,
                Supplier.business_id == business_id
            ).first()
            if not supplier:
                raise BusinessLogicError(f'Supplier {supplier_id} not found for this business')

        po_id = payload.get('po_id') or None
        if po_id:
            purchase_order = session.query(PurchaseOrder).filter(
                PurchaseOrder.id == po_id,
                PurchaseOrder.business_id == business_id
            ).first()
            if not purchase_order:
                raise BusinessLogicError(f'Purchase order {po_id} not found for this business')

        try:
            invoice_date = parse_iso_date(payload.get('invoice_date'), 'invoice_date')
            due_date = parse_iso_date(payload.get('due_date'), 'due_date')
            tax_amount = parse_decimal(payload.get('tax_amount'), 'tax_amount', Decimal('0'))
            subtotal = parse_decimal(payload.get('subtotal'), 'subtotal')
            total_amount = parse_decimal(payload.get('total_amount'), 'total_amount')
        except ValueError as e:
            raise BusinessLogicError(str(e))

        lines = _parse_line_items(payload.get('line_items'))

        if subtotal is None:
            subtotal = sum((line['line_total'] for line in lines), Decimal('0'))
        if total_amount is None:
            total_amount = subtotal + tax_amount

        file_type = InvoiceFileType.UPLOAD if payload.get('file_type') == 'upload' else InvoiceFileType.MANUAL

        invoice = Invoice(
            business_id=business_id,
            invoice_number=invoice_number,
            supplier_id=supplier_id,
            po_id=po_id,
            invoice_date=invoice_date,
            due_date=due_date,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total_amount=total_amount,
            currency=(clean_str(payload.get('currency')) or default_currency).upper(),
            status=InvoiceStatus.DRAFT,
            file_type=file_type,
            has_validation_issues=False,
            is_duplicate=False,
            notes=clean_str(payload.get('notes'))
        )
        session.add(invoice)
        session.flush()  # Get invoice.id

        for line in lines:
            session.add(InvoiceLineItem(invoice_id=invoice.id, **line))

        session.commit()
        logger.info(f"[INVOICE] ✓ Invoice {invoice.id} ('{invoice_number}') created with {len(lines)} line(s)")

    except Exception:
        session.rollback()
        raise

    run_invoice_validations(session, invoice)
    return invoice


def get_invoice(session: Session, business_id: int, invoice_id: int, lock: bool = False) -> Invoice:
    """
    Fetch one invoice of a business.

    Raises:
        NotFoundError: If the invoice does not exist in this business
    """
    query = session.query(Invoice).filter(
        Invoice.id == invoice_id,
        Invoice.business_id == business_id
    )
    if lock:
        query = query.with_for_update()

    invoice = query.first()
    if not invoice:
        raise NotFoundError(f'Invoice {invoice_id} not found')
    return invoice


def get_invoice_detail(session: Session, business_id: int, invoice_id: int) -> dict:
    """
    Invoice with supplier, purchase order, line items, findings and approvals.

    Findings and approvals are ordered newest first.
    """
    invoice = session.query(Invoice).options(
        joinedload(Invoice.supplier),
        joinedload(Invoice.purchase_order),
        selectinload(Invoice.line_items)
    ).filter(
        Invoice.id == invoice_id,
        Invoice.business_id == business_id
    ).first()

    if not invoice:
        raise NotFoundError(f'Invoice {invoice_id} not found')

    validations = session.query(InvoiceValidation).filter(
        InvoiceValidation.invoice_id == invoice.id
    ).order_by(InvoiceValidation.created_at.desc(), InvoiceValidation.id.desc()).all()

    approvals = session.query(InvoiceApproval).filter(
        InvoiceApproval.invoice_id == invoice.id
    ).order_by(InvoiceApproval.created_at.desc(), InvoiceApproval.id.desc()).all()

    data = invoice.to_dict()
    data['supplier'] = invoice.supplier.to_dict() if invoice.supplier else None
    data['purchase_order'] = invoice.purchase_order.to_dict() if invoice.purchase_order else None
    data['line_items'] = [line.to_dict() for line in invoice.line_items]
    data['validations'] = [v.to_dict() for v in validations]
    data['approvals'] = [a.to_dict() for a in approvals]
    return data


def list_invoices(session: Session, business_id: int, status: Optional[str] = None,
                  search: Optional[str] = None, start_date=None, end_date=None) -> list:
    """
    List invoices of a business, newest first.

    Args:
        status: Invoice status value ('draft', 'approved', ...); None or 'all' = any
        search: Case-insensitive match on invoice number or supplier name
        start_date, end_date: Inclusive invoice_date range; invoices without
            a date are kept
    """
    query = session.query(Invoice).outerjoin(Supplier, Invoice.supplier_id == Supplier.id).options(
        joinedload(Invoice.supplier)
    ).filter(Invoice.business_id == business_id)

    if status and status != 'all':
        try:
            query = query.filter(Invoice.status == InvoiceStatus(status))
        except ValueError:
            raise BusinessLogicError(f'Unknown invoice status: {status}')

    if search:
        pattern = f'%{search.lower()}%'
        query = query.filter(or_(
            func.lower(Invoice.invoice_number).like(pattern),
            func.lower(Supplier.name).like(pattern)
        ))

    if start_date:
        query = query.filter(or_(Invoice.invoice_date.is_(None), Invoice.invoice_date >= start_date))
    if end_date:
        query = query.filter(or_(Invoice.invoice_date.is_(None), Invoice.invoice_date <= end_date))

    return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()


def attach_invoice_file(session: Session, invoice: Invoice, filename: str, data: bytes,
                        content_type: Optional[str], storage) -> str:
    """
    Store an uploaded invoice document and link it to the invoice.

    Args:
        invoice: Target invoice
        filename: Original file name
        data: File contents
        content_type: MIME type reported by the client
        storage: StorageService

    Returns:
        Public URL of the stored file
    """
    safe_name = secure_filename(filename or '')
    if not safe_name:
        raise BusinessLogicError('A file name is required')

    object_name = f"invoices/{invoice.business_id}/{invoice.id}/{safe_name}"

    try:
        key = storage.upload(object_name, data, content_type=content_type, overwrite=True,
                             allowed_types_key='ALLOWED_UPLOAD_MIME_TYPES')
    except ValueError as e:
        raise BusinessLogicError(str(e))

    try:
        invoice.file_path = key
        invoice.file_type = InvoiceFileType.UPLOAD
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"[INVOICE] File {os.path.basename(key)} attached to invoice {invoice.id}")
    return storage.get_public_url(key)
