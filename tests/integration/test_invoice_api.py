"""
Integration tests for the invoice endpoints: creation, validation findings
and the approval workflow.
"""

import io
from decimal import Decimal
from unittest.mock import MagicMock, patch

from app.models import Invoice, InvoiceApproval, InvoiceLineItem, InvoiceStatus


def _create(api, headers, **payload):
    response = api.post('/invoices', json=payload, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()['data']


class TestCreateInvoice:

    def test_unique_number_without_supplier_or_date(self, api, headers1):
        data = _create(api, headers1, invoice_number='INV-100', supplier_id=None, invoice_date=None)

        assert data['status'] == 'draft'
        assert data['has_validation_issues'] is True
        assert data['is_duplicate'] is False
        severities = sorted((v['field_name'], v['severity']) for v in data['validations'])
        assert severities == [('invoice_date', 'warning'), ('supplier_id', 'warning')]

    def test_second_invoice_with_same_number_is_duplicate(self, api, headers1, session):
        first = _create(api, headers1, invoice_number='INV-100')
        second = _create(api, headers1, invoice_number='INV-100')

        assert second['is_duplicate'] is True
        duplicate_findings = [v for v in second['validations'] if v['validation_type'] == 'duplicate']
        assert len(duplicate_findings) == 1
        assert duplicate_findings[0]['severity'] == 'error'

        earlier = api.get(f"/invoices/{first['id']}", headers=headers1).get_json()['data']
        assert earlier['is_duplicate'] is False
        assert len(earlier['validations']) == 2

    def test_blank_number_yields_one_error(self, api, headers1, supplier1):
        data = _create(api, headers1, invoice_number='  ', supplier_id=supplier1.id, invoice_date='2024-05-01')

        assert data['has_validation_issues'] is True
        assert len(data['validations']) == 1
        finding = data['validations'][0]
        assert finding['validation_type'] == 'missing_data'
        assert finding['severity'] == 'error'
        assert finding['field_name'] == 'invoice_number'

    def test_complete_invoice_has_no_findings(self, api, headers1, supplier1):
        data = _create(api, headers1, invoice_number='C-1', supplier_id=supplier1.id, invoice_date='2024-05-01')

        assert data['has_validation_issues'] is False
        assert data['validations'] == []
        assert data['supplier']['name'] == 'Acme Supplies'

    def test_line_total_stored_as_submitted(self, api, headers1, session):
        lines = [
            {'description': 'Bolts', 'quantity': 3, 'unit_price': 1.25, 'line_total': 3.75},
            # client-side rounding differs from qty*price; the submitted value wins
            {'description': 'Nuts', 'quantity': 3, 'unit_price': 0.333, 'line_total': 1.00},
            {'description': '', 'quantity': 1, 'unit_price': 5},
        ]
        data = _create(api, headers1, invoice_number='L-1', line_items=lines)

        stored = session.query(InvoiceLineItem).filter_by(invoice_id=data['id']).order_by(InvoiceLineItem.id).all()
        assert [line.line_total for line in stored] == [Decimal('3.75'), Decimal('1.00')]
        assert data['subtotal'] == 4.75
        assert data['total_amount'] == 4.75

    def test_fractional_line_total_not_rounded(self, api, headers1, session):
        lines = [
            {'description': 'Nuts', 'quantity': 3, 'unit_price': 0.333, 'line_total': 0.999},
            {'description': 'Washers', 'quantity': 3, 'unit_price': 0.3333},
        ]
        data = _create(api, headers1, invoice_number='L-2', line_items=lines)

        stored = session.query(InvoiceLineItem).filter_by(invoice_id=data['id']).order_by(InvoiceLineItem.id).all()
        assert [line.line_total for line in stored] == [Decimal('0.999'), Decimal('0.9999')]

    def test_numeric_invoice_number_is_stored_as_text(self, api, headers1):
        data = _create(api, headers1, invoice_number=100)

        assert data['invoice_number'] == '100'

    def test_foreign_supplier_rejected(self, api, headers1, session, business2):
        from app.models import Supplier
        foreign = Supplier(business_id=business2.id, name='Elsewhere')
        session.add(foreign)
        session.commit()

        response = api.post('/invoices', json={'invoice_number': 'X', 'supplier_id': foreign.id}, headers=headers1)

        assert response.status_code == 400
        assert response.get_json()['success'] is False
        assert session.query(Invoice).count() == 0

    def test_invalid_amount(self, api, headers1):
        response = api.post('/invoices', json={'invoice_number': 'X', 'total_amount': 'lots'}, headers=headers1)

        assert response.status_code == 400
        assert 'total_amount' in response.get_json()['error']


class TestApprovalFlow:

    def test_submit_then_approve(self, api, headers1, session):
        invoice = _create(api, headers1, invoice_number='INV-100')

        submitted = api.post(f"/invoices/{invoice['id']}/submit", headers=headers1)
        assert submitted.status_code == 200
        assert submitted.get_json()['data']['status'] == 'pending_approval'

        approved = api.post(
            f"/invoices/{invoice['id']}/approvals",
            json={'decision': 'approved', 'approver_email': 'a@b.com'},
            headers=headers1
        )
        assert approved.status_code == 201
        body = approved.get_json()['data']
        assert body['invoice']['status'] == 'approved'
        assert body['approval']['status'] == 'approved'

        assert session.get(Invoice, invoice['id']).status == InvoiceStatus.APPROVED
        approvals = session.query(InvoiceApproval).filter_by(invoice_id=invoice['id']).all()
        assert len(approvals) == 1
        assert approvals[0].status == 'approved'

    def test_approve_draft_conflict(self, api, headers1, session):
        invoice = _create(api, headers1, invoice_number='INV-101')

        response = api.post(
            f"/invoices/{invoice['id']}/approvals",
            json={'decision': 'approved', 'approver_email': 'a@b.com'},
            headers=headers1
        )

        assert response.status_code == 409
        assert response.get_json()['current_status'] == 'draft'
        assert session.query(InvoiceApproval).count() == 0

    def test_approval_requires_email(self, api, headers1):
        invoice = _create(api, headers1, invoice_number='INV-102')
        api.post(f"/invoices/{invoice['id']}/submit", headers=headers1)

        response = api.post(f"/invoices/{invoice['id']}/approvals", json={'decision': 'rejected'}, headers=headers1)

        assert response.status_code == 400

    def test_submit_non_draft_conflict(self, api, headers1):
        invoice = _create(api, headers1, invoice_number='INV-103')
        api.post(f"/invoices/{invoice['id']}/submit", headers=headers1)

        response = api.post(f"/invoices/{invoice['id']}/submit", headers=headers1)

        assert response.status_code == 409

    def test_detail_lists_approvals(self, api, headers1):
        invoice = _create(api, headers1, invoice_number='INV-104')
        api.post(f"/invoices/{invoice['id']}/submit", headers=headers1)
        api.post(
            f"/invoices/{invoice['id']}/approvals",
            json={'decision': 'rejected', 'approver_email': 'r@b.com', 'comments': 'Wrong amount'},
            headers=headers1
        )

        data = api.get(f"/invoices/{invoice['id']}", headers=headers1).get_json()['data']
        assert data['status'] == 'rejected'
        assert data['approvals'][0]['comments'] == 'Wrong amount'


class TestResolveFindings:

    def test_resolving_last_finding_clears_flag(self, api, headers1):
        invoice = _create(api, headers1, invoice_number='INV-100')
        first, second = invoice['validations']

        response = api.put(f"/validations/{first['id']}", json={'resolved': True}, headers=headers1)
        assert response.status_code == 200
        assert response.get_json()['data']['invoice']['has_validation_issues'] is True

        response = api.put(f"/validations/{second['id']}", json={'resolved': True}, headers=headers1)
        assert response.get_json()['data']['validation']['resolved'] is True
        assert response.get_json()['data']['invoice']['has_validation_issues'] is False

    def test_unresolve_not_supported(self, api, headers1):
        invoice = _create(api, headers1, invoice_number='INV-100')
        finding = invoice['validations'][0]

        response = api.put(f"/validations/{finding['id']}", json={'resolved': False}, headers=headers1)

        assert response.status_code == 400


class TestListAndExport:

    def test_filters(self, api, headers1, supplier1):
        _create(api, headers1, invoice_number='A-1', supplier_id=supplier1.id, invoice_date='2024-01-10')
        second = _create(api, headers1, invoice_number='B-2', invoice_date='2024-03-10')
        api.post(f"/invoices/{second['id']}/submit", headers=headers1)

        all_rows = api.get('/invoices', headers=headers1).get_json()['data']
        assert [row['invoice_number'] for row in all_rows] == ['B-2', 'A-1']

        pending = api.get('/invoices?status=pending_approval', headers=headers1).get_json()['data']
        assert [row['invoice_number'] for row in pending] == ['B-2']

        by_supplier = api.get('/invoices?q=acme', headers=headers1).get_json()['data']
        assert [row['invoice_number'] for row in by_supplier] == ['A-1']

        in_range = api.get('/invoices?start=2024-02-01&end=2024-12-31', headers=headers1).get_json()['data']
        assert [row['invoice_number'] for row in in_range] == ['B-2']

    def test_unknown_status(self, api, headers1):
        response = api.get('/invoices?status=paid', headers=headers1)
        assert response.status_code == 400

    def test_csv_export(self, api, headers1, supplier1):
        _create(api, headers1, invoice_number='A-1', supplier_id=supplier1.id,
                invoice_date='2024-01-10', total_amount=12.5)

        response = api.get('/invoices/export', headers=headers1)

        assert response.status_code == 200
        assert response.mimetype == 'text/csv'
        lines = response.get_data(as_text=True).strip().splitlines()
        assert lines[0] == 'Invoice Number,Supplier,Date,Amount,Status'
        assert lines[1] == 'A-1,Acme Supplies,2024-01-10,12.50,draft'


class TestInvoiceFile:

    def test_upload_pdf(self, api, headers1, business1_id):
        invoice = _create(api, headers1, invoice_number='F-1')
        storage = MagicMock()
        storage.upload.side_effect = lambda key, *args, **kwargs: key
        storage.get_public_url.side_effect = lambda key: f'http://files/{key}'

        with patch('app.blueprints.invoices.get_storage_service', return_value=storage):
            response = api.post(
                f"/invoices/{invoice['id']}/file",
                data={'file': (io.BytesIO(b'%PDF-1.4'), 'bill 01.pdf', 'application/pdf')},
                headers=headers1,
                content_type='multipart/form-data'
            )

        assert response.status_code == 200
        data = response.get_json()['data']
        expected_key = f"invoices/{business1_id}/{invoice['id']}/bill_01.pdf"
        assert data['file_path'] == expected_key
        assert data['file_type'] == 'upload'
        assert data['file_url'] == f'http://files/{expected_key}'
        assert storage.upload.call_args.kwargs['overwrite'] is True

    def test_rejected_type(self, api, headers1):
        invoice = _create(api, headers1, invoice_number='F-2')
        storage = MagicMock()
        storage.upload.side_effect = ValueError('File type not allowed: image/png')

        with patch('app.blueprints.invoices.get_storage_service', return_value=storage):
            response = api.post(
                f"/invoices/{invoice['id']}/file",
                data={'file': (io.BytesIO(b'png'), 'x.png', 'image/png')},
                headers=headers1,
                content_type='multipart/form-data'
            )

        assert response.status_code == 400
        assert 'not allowed' in response.get_json()['error']
