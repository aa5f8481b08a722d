"""
Report service for invoice dashboards and exports.
Provides aggregated invoice metrics per business and CSV renderings.
"""
import csv
import io
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, case
from sqlalchemy.orm import Session, joinedload

from app.models import Invoice, InvoiceStatus
from app.utils.formatters import iso_date, money, money_str, month_label


ZERO = Decimal('0')


def get_dashboard_stats(session: Session, business_id: int) -> dict:
    """
    Headline numbers for a business.

    Returns:
        dict with keys:
            - total_invoices: int
            - by_status: {status_value: count} (every status present, zeros included)
            - with_validation_issues: int
            - duplicates: int
            - approved_amount: float
            - pending_amount: float
            - recent_invoices: five newest invoices (dicts)
    """
    rows = session.query(
        Invoice.status,
        func.count(Invoice.id),
        func.coalesce(func.sum(Invoice.total_amount), 0)
    ).filter(
        Invoice.business_id == business_id
    ).group_by(Invoice.status).all()

    by_status = {status.value: 0 for status in InvoiceStatus}
    amounts = {status.value: ZERO for status in InvoiceStatus}
    for status, count, amount in rows:
        by_status[status.value] = count
        amounts[status.value] = Decimal(str(amount))

    flags = session.query(
        func.coalesce(func.sum(case((Invoice.has_validation_issues == True, 1), else_=0)), 0),  # noqa: E712
        func.coalesce(func.sum(case((Invoice.is_duplicate == True, 1), else_=0)), 0)  # noqa: E712
    ).filter(Invoice.business_id == business_id).first()

    recent = session.query(Invoice).options(joinedload(Invoice.supplier)).filter(
        Invoice.business_id == business_id
    ).order_by(Invoice.created_at.desc(), Invoice.id.desc()).limit(5).all()

    return {
        'total_invoices': sum(by_status.values()),
        'by_status': by_status,
        'with_validation_issues': int(flags[0] or 0),
        'duplicates': int(flags[1] or 0),
        'approved_amount': money(amounts[InvoiceStatus.APPROVED.value]),
        'pending_amount': money(amounts[InvoiceStatus.PENDING_APPROVAL.value]),
        'recent_invoices': [invoice.to_dict() for invoice in recent],
    }


def _invoices_in_range(session: Session, business_id: int,
                       start_date: Optional[date], end_date: Optional[date]) -> list:
    query = session.query(Invoice).options(joinedload(Invoice.supplier)).filter(
        Invoice.business_id == business_id
    )
    if start_date:
        query = query.filter(Invoice.invoice_date >= start_date)
    if end_date:
        query = query.filter(Invoice.invoice_date <= end_date)
    return query.order_by(Invoice.invoice_date, Invoice.id).all()


def _totals(invoices: list) -> dict:
    approved = sum((i.total_amount or ZERO for i in invoices if i.status == InvoiceStatus.APPROVED), ZERO)
    pending = sum((i.total_amount or ZERO for i in invoices if i.status == InvoiceStatus.PENDING_APPROVAL), ZERO)
    grand_total = sum((i.total_amount or ZERO for i in invoices), ZERO)
    average = (grand_total / len(invoices)).quantize(Decimal('0.01')) if invoices else ZERO
    return {
        'invoice_count': len(invoices),
        'approved_amount': money(approved),
        'pending_amount': money(pending),
        'mean_total_amount': money(average),
    }


def get_monthly_report(session: Session, business_id: int,
                       start_date: Optional[date] = None, end_date: Optional[date] = None) -> dict:
    """
    Invoice count and total per invoice month.

    Invoices without a date are grouped under "Unknown" (listed last).
    """
    invoices = _invoices_in_range(session, business_id, start_date, end_date)

    buckets = {}
    for invoice in invoices:
        key = (invoice.invoice_date.year, invoice.invoice_date.month) if invoice.invoice_date else None
        bucket = buckets.setdefault(key, {'count': 0, 'total': ZERO, 'label': month_label(invoice.invoice_date)})
        bucket['count'] += 1
        bucket['total'] += invoice.total_amount or ZERO

    ordered_keys = sorted((k for k in buckets if k is not None)) + ([None] if None in buckets else [])
    rows = [
        {'month': buckets[k]['label'], 'count': buckets[k]['count'], 'total': money(buckets[k]['total'])}
        for k in ordered_keys
    ]

    return {'rows': rows, 'totals': _totals(invoices)}


def get_supplier_report(session: Session, business_id: int,
                        start_date: Optional[date] = None, end_date: Optional[date] = None) -> dict:
    """Invoice count and total per supplier, largest total first."""
    invoices = _invoices_in_range(session, business_id, start_date, end_date)

    buckets = {}
    for invoice in invoices:
        name = invoice.supplier.name if invoice.supplier else 'Unknown Supplier'
        bucket = buckets.setdefault(invoice.supplier_id, {'name': name, 'count': 0, 'total': ZERO})
        bucket['count'] += 1
        bucket['total'] += invoice.total_amount or ZERO

    rows = [
        {'supplier_id': supplier_id, 'supplier_name': data['name'],
         'count': data['count'], 'total': money(data['total'])}
        for supplier_id, data in sorted(buckets.items(), key=lambda kv: kv[1]['total'], reverse=True)
    ]

    return {'rows': rows, 'totals': _totals(invoices)}


def _to_csv(header: list, rows: list) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(header)
    writer.writerows(rows)
    return output.getvalue()


def invoices_to_csv(invoices: list) -> str:
    """CSV of an invoice list: Invoice Number, Supplier, Date, Amount, Status."""
    return _to_csv(
        ['Invoice Number', 'Supplier', 'Date', 'Amount', 'Status'],
        [
            [
                invoice.invoice_number or '',
                invoice.supplier.name if invoice.supplier else '',
                iso_date(invoice.invoice_date) or '',
                money_str(invoice.total_amount),
                invoice.status.value,
            ]
            for invoice in invoices
        ]
    )


def monthly_report_to_csv(report: dict) -> str:
    return _to_csv(
        ['Month', 'Invoice Count', 'Total Amount'],
        [[row['month'], row['count'], f"{row['total']:.2f}"] for row in report['rows']]
    )


def supplier_report_to_csv(report: dict) -> str:
    return _to_csv(
        ['Supplier', 'Invoice Count', 'Total Amount'],
        [[row['supplier_name'], row['count'], f"{row['total']:.2f}"] for row in report['rows']]
    )
