"""Invoice line item model."""
from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, IdType
from app.utils.formatters import money


class InvoiceLineItem(Base):
    """Invoice line. line_total is stored as submitted, never recomputed."""

    __tablename__ = 'invoice_line_item'

    id = Column(IdType, primary_key=True, autoincrement=True)
    invoice_id = Column(IdType, ForeignKey('invoice.id'), nullable=False, index=True)
    description = Column(String, nullable=True)
    quantity = Column(Numeric(12, 3), nullable=True)
    unit_price = Column(Numeric(14, 4), nullable=True)
    line_total = Column(Numeric(18, 7), nullable=True)
    tax_rate = Column(Numeric(6, 3), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    invoice = relationship('Invoice', back_populates='line_items')

    def __repr__(self):
        return f"<InvoiceLineItem(id={self.id}, description='{self.description}', quantity={self.quantity})>"

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'description': self.description,
            'quantity': money(self.quantity),
            'unit_price': money(self.unit_price),
            'line_total': money(self.line_total),
            'tax_rate': money(self.tax_rate),
        }
