"""
Unit tests for the invoice validation engine.
"""

from datetime import date
from decimal import Decimal

from app.models import Invoice, InvoiceValidation, ValidationType, Severity
from app.services.invoice_service import create_invoice_with_lines
from app.services.validation_service import (
    evaluate_invoice, find_duplicate_invoice_ids, reconcile_invoice_flags, run_invoice_validations
)


def _invoice(**kwargs):
    defaults = {
        'business_id': 1,
        'invoice_number': 'INV-1',
        'supplier_id': 1,
        'invoice_date': date(2024, 1, 15),
        'total_amount': Decimal('100'),
    }
    defaults.update(kwargs)
    return Invoice(**defaults)


class TestEvaluateInvoice:
    """Rule evaluation without a database."""

    def test_complete_invoice_has_no_findings(self):
        outcome = evaluate_invoice(_invoice())

        assert outcome.findings == []
        assert outcome.has_issues is False
        assert outcome.is_duplicate is False

    def test_blank_number_is_single_error(self):
        outcome = evaluate_invoice(_invoice(invoice_number='   '))

        number_findings = [f for f in outcome.findings if f.field_name == 'invoice_number']
        assert len(number_findings) == 1
        assert number_findings[0].validation_type == ValidationType.MISSING_DATA
        assert number_findings[0].severity == Severity.ERROR

    def test_missing_supplier_and_date_are_warnings(self):
        outcome = evaluate_invoice(_invoice(supplier_id=None, invoice_date=None))

        assert [(f.field_name, f.severity) for f in outcome.findings] == [
            ('supplier_id', Severity.WARNING),
            ('invoice_date', Severity.WARNING),
        ]

    def test_duplicate_ids_add_duplicate_error(self):
        outcome = evaluate_invoice(_invoice(), duplicate_ids=[7])

        assert outcome.is_duplicate is True
        assert len(outcome.findings) == 1
        assert outcome.findings[0].validation_type == ValidationType.DUPLICATE
        assert outcome.findings[0].severity == Severity.ERROR
        assert outcome.findings[0].message == 'Duplicate invoice number detected'

    def test_all_rules_apply_together(self):
        outcome = evaluate_invoice(
            _invoice(invoice_number='', supplier_id=None, invoice_date=None),
            duplicate_ids=[]
        )

        assert len(outcome.findings) == 3
        assert outcome.is_duplicate is False


class TestDuplicateLookup:
    """Duplicate detection against stored invoices."""

    def test_same_number_same_business(self, session, business1):
        first = create_invoice_with_lines({'business_id': business1.id, 'invoice_number': 'INV-9'}, session)
        second = create_invoice_with_lines({'business_id': business1.id, 'invoice_number': ' INV-9 '}, session)

        assert find_duplicate_invoice_ids(session, second) == [first.id]

    def test_other_business_is_not_a_duplicate(self, session, business1, business2):
        create_invoice_with_lines({'business_id': business1.id, 'invoice_number': 'INV-9'}, session)
        other = create_invoice_with_lines({'business_id': business2.id, 'invoice_number': 'INV-9'}, session)

        assert find_duplicate_invoice_ids(session, other) == []
        assert other.is_duplicate is False

    def test_blank_numbers_never_duplicate(self, session, business1):
        create_invoice_with_lines({'business_id': business1.id, 'invoice_number': ''}, session)
        second = create_invoice_with_lines({'business_id': business1.id, 'invoice_number': ''}, session)

        assert second.is_duplicate is False
        assert find_duplicate_invoice_ids(session, second) == []


class TestRunValidations:
    """Persisted findings and flags."""

    def test_findings_and_flag_written(self, session, business1):
        invoice = create_invoice_with_lines({'business_id': business1.id, 'invoice_number': ''}, session)

        findings = session.query(InvoiceValidation).filter_by(invoice_id=invoice.id).all()
        assert len(findings) == 3
        assert all(f.resolved is False for f in findings)
        assert invoice.has_validation_issues is True

    def test_failure_keeps_invoice(self, session, business1, monkeypatch):
        invoice = create_invoice_with_lines(
            {'business_id': business1.id, 'invoice_number': 'OK-1', 'invoice_date': '2024-02-01'}, session
        )

        def boom(*args, **kwargs):
            raise RuntimeError('lookup failed')

        monkeypatch.setattr('app.services.validation_service.find_duplicate_invoice_ids', boom)
        assert run_invoice_validations(session, invoice) is None
        assert session.get(Invoice, invoice.id) is not None


class TestReconcile:
    """Repair of denormalized flags."""

    def test_repairs_drifted_flags(self, session, business1):
        invoice = create_invoice_with_lines({'business_id': business1.id, 'invoice_number': ''}, session)
        for finding in session.query(InvoiceValidation).filter_by(invoice_id=invoice.id):
            finding.resolved = True
        session.commit()

        assert invoice.has_validation_issues is True
        assert reconcile_invoice_flags(session, business_id=business1.id) == 1
        assert invoice.has_validation_issues is False
        assert reconcile_invoice_flags(session) == 0

    def test_restores_duplicate_flag(self, session, business1):
        create_invoice_with_lines({'business_id': business1.id, 'invoice_number': 'D-1'}, session)
        dup = create_invoice_with_lines({'business_id': business1.id, 'invoice_number': 'D-1'}, session)
        dup.is_duplicate = False
        session.commit()

        assert reconcile_invoice_flags(session) == 1
        assert dup.is_duplicate is True
