"""Invoice model."""
from sqlalchemy import Column, String, Text, Boolean, Date, Numeric, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, IdType
from app.utils.formatters import iso_date, iso_datetime, money
import enum


class InvoiceStatus(enum.Enum):
    """Invoice status enum."""
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    ARCHIVED = "archived"


class InvoiceFileType(enum.Enum):
    """How the invoice entered the system."""
    MANUAL = "manual"
    UPLOAD = "upload"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Invoice(Base):
    """Supplier invoice tracked through the draft/approval lifecycle."""

    __tablename__ = 'invoice'

    id = Column(IdType, primary_key=True, autoincrement=True)
    business_id = Column(IdType, ForeignKey('business_profile.id'), nullable=False, index=True)
    # Unique per business by convention only; duplicates are flagged, not rejected
    invoice_number = Column(String, nullable=False, default='', index=True)
    supplier_id = Column(IdType, ForeignKey('supplier.id'), nullable=True)
    po_id = Column(IdType, ForeignKey('purchase_order.id'), nullable=True)
    invoice_date = Column(Date, nullable=True)
    due_date = Column(Date, nullable=True)
    subtotal = Column(Numeric(14, 2), nullable=True)
    tax_amount = Column(Numeric(14, 2), nullable=True)
    total_amount = Column(Numeric(14, 2), nullable=False)
    currency = Column(String(3), nullable=False, default='USD')
    status = Column(
        Enum(InvoiceStatus, name='invoice_status', values_callable=_enum_values),
        nullable=False,
        default=InvoiceStatus.DRAFT
    )
    file_path = Column(String(500), nullable=True)
    file_type = Column(
        Enum(InvoiceFileType, name='invoice_file_type', values_callable=_enum_values),
        nullable=False,
        default=InvoiceFileType.MANUAL
    )
    has_validation_issues = Column(Boolean, nullable=False, default=False)
    is_duplicate = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    business = relationship('BusinessProfile', back_populates='invoices')
    supplier = relationship('Supplier', back_populates='invoices')
    purchase_order = relationship('PurchaseOrder')
    line_items = relationship('InvoiceLineItem', back_populates='invoice',
                              cascade='all, delete-orphan', order_by='InvoiceLineItem.id')
    validations = relationship('InvoiceValidation', back_populates='invoice',
                               cascade='all, delete-orphan')
    approvals = relationship('InvoiceApproval', back_populates='invoice',
                             cascade='all, delete-orphan')

    def __repr__(self):
        return f"<Invoice(id={self.id}, invoice_number='{self.invoice_number}', status={self.status.value})>"

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'invoice_number': self.invoice_number,
            'supplier_id': self.supplier_id,
            'supplier_name': self.supplier.name if self.supplier else None,
            'po_id': self.po_id,
            'invoice_date': iso_date(self.invoice_date),
            'due_date': iso_date(self.due_date),
            'subtotal': money(self.subtotal),
            'tax_amount': money(self.tax_amount),
            'total_amount': money(self.total_amount),
            'currency': self.currency,
            'status': self.status.value,
            'file_path': self.file_path,
            'file_type': self.file_type.value if self.file_type else None,
            'has_validation_issues': self.has_validation_issues,
            'is_duplicate': self.is_duplicate,
            'notes': self.notes,
            'created_at': iso_datetime(self.created_at),
            'updated_at': iso_datetime(self.updated_at),
        }
