"""
Unit tests for the approval workflow.
"""

import pytest
from datetime import date

from app.exceptions import BusinessLogicError, InvalidTransitionError, NotFoundError
from app.models import InvoiceApproval, InvoiceStatus, InvoiceValidation
from app.services.approval_service import (
    can_transition, submit_for_approval, record_decision, resolve_validation
)
from app.services.invoice_service import create_invoice_with_lines


def _create(session, business, **payload):
    data = {'business_id': business.id, 'invoice_number': 'INV-100'}
    data.update(payload)
    return create_invoice_with_lines(data, session)


class TestTransitions:
    """Allowed status transitions."""

    @pytest.mark.parametrize('current,target,allowed', [
        (InvoiceStatus.DRAFT, InvoiceStatus.PENDING_APPROVAL, True),
        (InvoiceStatus.PENDING_APPROVAL, InvoiceStatus.APPROVED, True),
        (InvoiceStatus.PENDING_APPROVAL, InvoiceStatus.REJECTED, True),
        (InvoiceStatus.DRAFT, InvoiceStatus.APPROVED, False),
        (InvoiceStatus.APPROVED, InvoiceStatus.REJECTED, False),
        (InvoiceStatus.REJECTED, InvoiceStatus.PENDING_APPROVAL, False),
        (InvoiceStatus.ARCHIVED, InvoiceStatus.PENDING_APPROVAL, False),
    ])
    def test_can_transition(self, current, target, allowed):
        assert can_transition(current, target) is allowed


class TestSubmit:
    """Draft submission."""

    def test_submit_draft(self, session, business1):
        invoice = _create(session, business1)

        submit_for_approval(session, invoice)

        assert invoice.status == InvoiceStatus.PENDING_APPROVAL

    def test_submit_twice_is_rejected(self, session, business1):
        invoice = _create(session, business1)
        submit_for_approval(session, invoice)

        with pytest.raises(InvalidTransitionError) as exc:
            submit_for_approval(session, invoice)

        assert exc.value.status_code == 409

    def test_errors_allowed_by_default(self, session, business1):
        invoice = _create(session, business1, invoice_number='')

        submit_for_approval(session, invoice)

        assert invoice.status == InvoiceStatus.PENDING_APPROVAL

    def test_errors_block_when_configured(self, session, business1):
        invoice = _create(session, business1, invoice_number='')

        with pytest.raises(BusinessLogicError) as exc:
            submit_for_approval(session, invoice, block_on_errors=True)

        assert exc.value.status_code == 409
        assert invoice.status == InvoiceStatus.DRAFT

    def test_warnings_do_not_block(self, session, business1):
        invoice = _create(session, business1)  # supplier and date missing -> warnings only

        submit_for_approval(session, invoice, block_on_errors=True)

        assert invoice.status == InvoiceStatus.PENDING_APPROVAL


class TestDecision:
    """Approve / reject."""

    def test_approve_pending(self, session, business1):
        invoice = _create(session, business1)
        submit_for_approval(session, invoice)

        approval = record_decision(session, invoice, 'approved', 'a@b.com', comments='  ok ')

        assert invoice.status == InvoiceStatus.APPROVED
        assert approval.status == 'approved'
        assert approval.approver_email == 'a@b.com'
        assert approval.comments == 'ok'
        assert approval.approved_at is not None
        assert session.query(InvoiceApproval).filter_by(invoice_id=invoice.id).count() == 1

    def test_reject_alias(self, session, business1):
        invoice = _create(session, business1)
        submit_for_approval(session, invoice)

        record_decision(session, invoice, 'reject', 'a@b.com')

        assert invoice.status == InvoiceStatus.REJECTED

    def test_approve_draft_writes_nothing(self, session, business1):
        invoice = _create(session, business1)

        with pytest.raises(InvalidTransitionError):
            record_decision(session, invoice, 'approved', 'a@b.com')

        assert invoice.status == InvoiceStatus.DRAFT
        assert session.query(InvoiceApproval).count() == 0

    def test_email_required(self, session, business1):
        invoice = _create(session, business1)
        submit_for_approval(session, invoice)

        with pytest.raises(BusinessLogicError) as exc:
            record_decision(session, invoice, 'approved', '  ')

        assert exc.value.status_code == 400
        assert invoice.status == InvoiceStatus.PENDING_APPROVAL

    def test_unknown_decision(self, session, business1):
        invoice = _create(session, business1)
        submit_for_approval(session, invoice)

        with pytest.raises(BusinessLogicError):
            record_decision(session, invoice, 'maybe', 'a@b.com')


class TestResolveValidation:
    """Resolving findings and the has_validation_issues flag."""

    def test_last_resolution_clears_flag(self, session, business1):
        invoice = _create(session, business1)  # two warnings
        findings = session.query(InvoiceValidation).filter_by(invoice_id=invoice.id).all()
        assert len(findings) == 2

        resolve_validation(session, findings[0].id, business1.id)
        assert invoice.has_validation_issues is True

        resolve_validation(session, findings[1].id, business1.id)
        assert invoice.has_validation_issues is False

    def test_resolving_twice_is_idempotent(self, session, business1):
        invoice = _create(session, business1, supplier_id=None, invoice_date='2024-01-01')
        finding = session.query(InvoiceValidation).filter_by(invoice_id=invoice.id).one()

        resolve_validation(session, finding.id, business1.id)
        resolve_validation(session, finding.id, business1.id)

        assert finding.resolved is True
        assert invoice.has_validation_issues is False
        assert invoice.invoice_date == date(2024, 1, 1)

    def test_other_business_not_found(self, session, business1, business2):
        invoice = _create(session, business1)
        finding = session.query(InvoiceValidation).filter_by(invoice_id=invoice.id).first()

        with pytest.raises(NotFoundError):
            resolve_validation(session, finding.id, business2.id)
