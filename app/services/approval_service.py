"""
Approval workflow for invoices.

    draft --submit--> pending_approval --decide--> approved | rejected

archived is terminal and has no transition here. There is no reopen path
out of approved/rejected.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.exceptions import BusinessLogicError, InvalidTransitionError, NotFoundError
from app.models import Invoice, InvoiceApproval, InvoiceValidation, InvoiceStatus, ApprovalDecision
from app.services.validation_service import count_unresolved, has_unresolved_errors

logger = logging.getLogger(__name__)


# Allowed (source -> targets) status transitions
TRANSITIONS = {
    InvoiceStatus.DRAFT: {InvoiceStatus.PENDING_APPROVAL},
    InvoiceStatus.PENDING_APPROVAL: {InvoiceStatus.APPROVED, InvoiceStatus.REJECTED},
    InvoiceStatus.APPROVED: set(),
    InvoiceStatus.REJECTED: set(),
    InvoiceStatus.ARCHIVED: set(),
}


def can_transition(current: InvoiceStatus, target: InvoiceStatus) -> bool:
    return target in TRANSITIONS.get(current, set())


def _ensure_transition(invoice: Invoice, target: InvoiceStatus):
    if not can_transition(invoice.status, target):
        raise InvalidTransitionError(invoice.status.value, target.value)


def submit_for_approval(session: Session, invoice: Invoice, block_on_errors: bool = False) -> Invoice:
    """
    Move a draft invoice to pending_approval.

    Args:
        session: SQLAlchemy session
        invoice: Invoice in draft status
        block_on_errors: Refuse when unresolved error findings remain

    Raises:
        InvalidTransitionError: If the invoice is not a draft
        BusinessLogicError: If blocked by unresolved errors
    """
    try:
        _ensure_transition(invoice, InvoiceStatus.PENDING_APPROVAL)

        if block_on_errors and has_unresolved_errors(session, invoice.id):
            raise BusinessLogicError(
                'Resolve all error findings before submitting this invoice for approval',
                status_code=409
            )

        invoice.status = InvoiceStatus.PENDING_APPROVAL
        session.commit()

        logger.info(f"[APPROVAL] Invoice {invoice.id} submitted for approval")
        return invoice

    except Exception:
        session.rollback()
        raise


def record_decision(session: Session, invoice: Invoice, decision: str,
                    approver_email: Optional[str], comments: Optional[str] = None) -> InvoiceApproval:
    """
    Approve or reject a pending invoice.

    The approval record and the invoice status are written in one transaction.

    Args:
        session: SQLAlchemy session
        invoice: Invoice in pending_approval status
        decision: 'approved'/'approve' or 'rejected'/'reject'
        approver_email: Reviewer email (required)
        comments: Optional free text

    Returns:
        The created InvoiceApproval

    Raises:
        BusinessLogicError: Missing email or unknown decision
        InvalidTransitionError: If the invoice is not pending approval
    """
    try:
        normalized = (decision or '').strip().lower()
        aliases = {'approve': 'approved', 'reject': 'rejected'}
        normalized = aliases.get(normalized, normalized)
        try:
            outcome = ApprovalDecision(normalized)
        except ValueError:
            raise BusinessLogicError(f"Unknown decision '{decision}'. Use 'approved' or 'rejected'")

        approver_email = (approver_email or '').strip()
        if not approver_email:
            raise BusinessLogicError('approver_email is required')

        target = InvoiceStatus(outcome.value)
        _ensure_transition(invoice, target)

        approval = InvoiceApproval(
            invoice_id=invoice.id,
            status=outcome.value,
            approver_email=approver_email,
            approved_at=datetime.now(timezone.utc),
            comments=(comments or '').strip() or None
        )
        session.add(approval)
        invoice.status = target

        session.commit()

        logger.info(f"[APPROVAL] Invoice {invoice.id} {outcome.value} by {approver_email}")
        return approval

    except Exception:
        session.rollback()
        raise


def resolve_validation(session: Session, validation_id: int, business_id: int) -> InvoiceValidation:
    """
    Mark a finding resolved and clear the invoice flag when none remain.

    The invoice row is locked while the remaining findings are recounted, so
    concurrent resolutions serialize instead of racing on a stale count.

    Args:
        session: SQLAlchemy session
        validation_id: Finding ID
        business_id: Caller's business (findings of other businesses are not found)

    Returns:
        The updated InvoiceValidation

    Raises:
        NotFoundError: If the finding does not exist in this business
    """
    try:
        validation = session.query(InvoiceValidation).join(Invoice).filter(
            InvoiceValidation.id == validation_id,
            Invoice.business_id == business_id
        ).first()

        if not validation:
            raise NotFoundError(f'Validation {validation_id} not found')

        invoice = session.query(Invoice).filter(
            Invoice.id == validation.invoice_id
        ).with_for_update().first()

        if not validation.resolved:
            validation.resolved = True
            session.flush()

        remaining = count_unresolved(session, invoice.id)
        if remaining == 0 and invoice.has_validation_issues:
            logger.info(f"[APPROVAL] Invoice {invoice.id} has no unresolved findings left")
        invoice.has_validation_issues = remaining > 0

        session.commit()
        return validation

    except Exception:
        session.rollback()
        raise
