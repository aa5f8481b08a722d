"""Models package - exports all SQLAlchemy models."""
# Account Models
from app.models.business_profile import BusinessProfile
from app.models.api_key import ApiKey, ALL_PERMISSIONS, hash_api_key

# Reference Data
from app.models.supplier import Supplier
from app.models.purchase_order import PurchaseOrder

# Invoice Workflow
from app.models.invoice import Invoice, InvoiceStatus, InvoiceFileType
from app.models.invoice_line_item import InvoiceLineItem
from app.models.invoice_validation import InvoiceValidation, ValidationType, Severity
from app.models.invoice_approval import InvoiceApproval, ApprovalDecision

# Catalog & Orders
from app.models.catalog_item import CatalogItem
from app.models.customer_submission import CustomerSubmission, CustomerSubmissionItem

__all__ = [
    # Accounts
    'BusinessProfile', 'ApiKey', 'ALL_PERMISSIONS', 'hash_api_key',
    # Reference data
    'Supplier', 'PurchaseOrder',
    # Invoices
    'Invoice', 'InvoiceStatus', 'InvoiceFileType', 'InvoiceLineItem',
    'InvoiceValidation', 'ValidationType', 'Severity',
    'InvoiceApproval', 'ApprovalDecision',
    # Catalog & orders
    'CatalogItem', 'CustomerSubmission', 'CustomerSubmissionItem',
]
