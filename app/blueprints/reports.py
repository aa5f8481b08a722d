"""Reports blueprint - dashboard stats and monthly/supplier reports."""
from flask import Blueprint, request, g
from app.database import get_session
from app.middleware import require_api_key, require_business
from app.decorators.permissions import require_permission
from app.services.report_service import (
    get_dashboard_stats, get_monthly_report, get_supplier_report,
    monthly_report_to_csv, supplier_report_to_csv
)
from app.utils.responses import ok, csv_download, query_date

reports_bp = Blueprint('reports', __name__)


def _wants_csv() -> bool:
    return (request.args.get('format') or '').lower() == 'csv'


@reports_bp.route('/reports/dashboard', methods=['GET'])
@require_api_key
@require_business
@require_permission('view_reports')
def dashboard():
    return ok(get_dashboard_stats(get_session(), g.business_id))


@reports_bp.route('/reports/monthly', methods=['GET'])
@require_api_key
@require_business
@require_permission('view_reports')
def monthly():
    """Invoices per month (?start=&end=, ?format=csv)."""
    report = get_monthly_report(get_session(), g.business_id, query_date('start'), query_date('end'))
    if _wants_csv():
        return csv_download(monthly_report_to_csv(report), 'monthly-report')
    return ok(report)


@reports_bp.route('/reports/suppliers', methods=['GET'])
@require_api_key
@require_business
@require_permission('view_reports')
def suppliers():
    """Invoices per supplier (?start=&end=, ?format=csv)."""
    report = get_supplier_report(get_session(), g.business_id, query_date('start'), query_date('end'))
    if _wants_csv():
        return csv_download(supplier_report_to_csv(report), 'supplier-report')
    return ok(report)
