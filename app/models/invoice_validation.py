"""Invoice validation finding model."""
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, IdType
from app.utils.formatters import iso_datetime
import enum


class ValidationType(enum.Enum):
    """Kind of finding."""
    MISSING_DATA = "missing_data"
    DUPLICATE = "duplicate"


class Severity(enum.Enum):
    """Finding severity."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class InvoiceValidation(Base):
    """Validation finding attached to an invoice, resolved by a reviewer."""

    __tablename__ = 'invoice_validation'

    id = Column(IdType, primary_key=True, autoincrement=True)
    invoice_id = Column(IdType, ForeignKey('invoice.id'), nullable=False, index=True)
    validation_type = Column(String(30), nullable=False)
    severity = Column(String(10), nullable=False, default=Severity.WARNING.value)
    message = Column(Text, nullable=True)
    field_name = Column(String(50), nullable=True)
    resolved = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    invoice = relationship('Invoice', back_populates='validations')

    def __repr__(self):
        return f"<InvoiceValidation(id={self.id}, type='{self.validation_type}', severity='{self.severity}')>"

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'invoice_id': self.invoice_id,
            'validation_type': self.validation_type,
            'severity': self.severity,
            'message': self.message,
            'field_name': self.field_name,
            'resolved': self.resolved,
            'created_at': iso_datetime(self.created_at),
        }
