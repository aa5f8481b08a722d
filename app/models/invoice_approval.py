"""Invoice approval record - append-only audit trail of decisions."""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, IdType
from app.utils.formatters import iso_datetime
import enum


class ApprovalDecision(enum.Enum):
    """Outcome of an approval action."""
    APPROVED = "approved"
    REJECTED = "rejected"


class InvoiceApproval(Base):
    """One approve/reject decision on an invoice."""

    __tablename__ = 'invoice_approval'

    id = Column(IdType, primary_key=True, autoincrement=True)
    invoice_id = Column(IdType, ForeignKey('invoice.id'), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    approver_email = Column(String(255), nullable=False)
    approved_at = Column(DateTime(timezone=True), nullable=False)
    comments = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    invoice = relationship('Invoice', back_populates='approvals')

    def __repr__(self):
        return f"<InvoiceApproval(id={self.id}, invoice_id={self.invoice_id}, status='{self.status}')>"

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'invoice_id': self.invoice_id,
            'status': self.status,
            'approver_email': self.approver_email,
            'approved_at': iso_datetime(self.approved_at),
            'comments': self.comments,
            'created_at': iso_datetime(self.created_at),
        }
