"""
Invoice validation engine.

Inspects a newly created invoice and records findings that a reviewer has to
resolve. Findings are domain data, not errors: an invoice with findings is
still created and can still move through the approval workflow.

Rules (all evaluated, none short-circuits):
1. Missing invoice number          -> missing_data / error
2. Missing supplier                -> missing_data / warning
3. Missing invoice date            -> missing_data / warning
4. Invoice number already used by
   another invoice of the business -> duplicate / error (+ is_duplicate)
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.models import Invoice, InvoiceValidation, ValidationType, Severity

logger = logging.getLogger(__name__)


class Finding:
    """A single validation finding, before it is persisted."""

    def __init__(self, validation_type: ValidationType, severity: Severity, field_name: str, message: str):
        self.validation_type = validation_type
        self.severity = severity
        self.field_name = field_name
        self.message = message

    def to_model(self, invoice_id: int) -> InvoiceValidation:
        return InvoiceValidation(
            invoice_id=invoice_id,
            validation_type=self.validation_type.value,
            severity=self.severity.value,
            field_name=self.field_name,
            message=self.message,
            resolved=False
        )

    def __repr__(self):
        return f"<Finding({self.validation_type.value}, {self.severity.value}, {self.field_name})>"


class ValidationOutcome:
    """Result of evaluating the rules against one invoice."""

    def __init__(self, findings: List[Finding], is_duplicate: bool):
        self.findings = findings
        self.is_duplicate = is_duplicate

    @property
    def has_issues(self) -> bool:
        return len(self.findings) > 0


def evaluate_invoice(invoice: Invoice, duplicate_ids: Optional[List[int]] = None) -> ValidationOutcome:
    """
    Apply the validation rules to an invoice. Pure: touches no database.

    Args:
        invoice: Invoice as submitted
        duplicate_ids: IDs of other invoices sharing its invoice number

    Returns:
        ValidationOutcome with the findings and the duplicate flag
    """
    findings = []

    if not (invoice.invoice_number or '').strip():
        findings.append(Finding(
            ValidationType.MISSING_DATA, Severity.ERROR, 'invoice_number',
            'Invoice number is required'
        ))

    if not invoice.supplier_id:
        findings.append(Finding(
            ValidationType.MISSING_DATA, Severity.WARNING, 'supplier_id',
            'Supplier not specified'
        ))

    if not invoice.invoice_date:
        findings.append(Finding(
            ValidationType.MISSING_DATA, Severity.WARNING, 'invoice_date',
            'Invoice date not specified'
        ))

    is_duplicate = bool(duplicate_ids)
    if is_duplicate:
        findings.append(Finding(
            ValidationType.DUPLICATE, Severity.ERROR, 'invoice_number',
            'Duplicate invoice number detected'
        ))

    return ValidationOutcome(findings, is_duplicate)


def find_duplicate_invoice_ids(session: Session, invoice: Invoice) -> List[int]:
    """
    IDs of other invoices in the same business with the same invoice number.

    A blank invoice number never counts as a duplicate.
    """
    invoice_number = (invoice.invoice_number or '').strip()
    if not invoice_number:
        return []

    rows = session.query(Invoice.id).filter(
        Invoice.business_id == invoice.business_id,
        Invoice.invoice_number == invoice_number,
        Invoice.id != invoice.id
    ).all()
    return [row.id for row in rows]


def run_invoice_validations(session: Session, invoice: Invoice) -> Optional[ValidationOutcome]:
    """
    Evaluate and persist findings for a freshly created invoice.

    Findings and both flags are written in one commit. Failures are logged
    and rolled back; the invoice itself stays created.

    Args:
        session: SQLAlchemy session
        invoice: Persisted invoice

    Returns:
        ValidationOutcome, or None if validation could not be completed
    """
    invoice_id = invoice.id

    try:
        duplicate_ids = find_duplicate_invoice_ids(session, invoice)
        outcome = evaluate_invoice(invoice, duplicate_ids)

        if outcome.is_duplicate:
            invoice.is_duplicate = True
            logger.info(
                f"[VALIDATION] Invoice {invoice_id} duplicates invoice number "
                f"'{invoice.invoice_number}' (other ids: {duplicate_ids})"
            )

        if outcome.has_issues:
            for finding in outcome.findings:
                session.add(finding.to_model(invoice_id))
            invoice.has_validation_issues = True

        session.commit()

        logger.info(f"[VALIDATION] Invoice {invoice_id}: {len(outcome.findings)} finding(s)")
        return outcome

    except Exception as e:
        session.rollback()
        logger.error(f"[VALIDATION] ✗ Validation did not complete for invoice {invoice_id}: {e}")
        return None


def count_unresolved(session: Session, invoice_id: int) -> int:
    """Number of unresolved findings for an invoice."""
    return session.query(InvoiceValidation).filter(
        InvoiceValidation.invoice_id == invoice_id,
        InvoiceValidation.resolved == False  # noqa: E712
    ).count()


def has_unresolved_errors(session: Session, invoice_id: int) -> bool:
    """True when at least one unresolved error-severity finding exists."""
    return session.query(InvoiceValidation.id).filter(
        InvoiceValidation.invoice_id == invoice_id,
        InvoiceValidation.resolved == False,  # noqa: E712
        InvoiceValidation.severity == Severity.ERROR.value
    ).first() is not None


def reconcile_invoice_flags(session: Session, business_id: Optional[int] = None) -> int:
    """
    Recompute has_validation_issues and is_duplicate from the findings table.

    Args:
        session: SQLAlchemy session
        business_id: Restrict to one business (None = all)

    Returns:
        Number of invoices whose flags changed
    """
    query = session.query(Invoice)
    if business_id is not None:
        query = query.filter(Invoice.business_id == business_id)

    repaired = 0
    try:
        for invoice in query.all():
            has_issues = count_unresolved(session, invoice.id) > 0
            is_duplicate = session.query(InvoiceValidation.id).filter(
                InvoiceValidation.invoice_id == invoice.id,
                InvoiceValidation.validation_type == ValidationType.DUPLICATE.value
            ).first() is not None

            if invoice.has_validation_issues != has_issues or invoice.is_duplicate != is_duplicate:
                logger.info(
                    f"[VALIDATION] Repairing flags for invoice {invoice.id}: "
                    f"has_validation_issues {invoice.has_validation_issues}->{has_issues}, "
                    f"is_duplicate {invoice.is_duplicate}->{is_duplicate}"
                )
                invoice.has_validation_issues = has_issues
                invoice.is_duplicate = is_duplicate
                repaired += 1

        session.commit()
        return repaired

    except Exception:
        session.rollback()
        raise
