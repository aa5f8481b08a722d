"""Purchase order model (reference data for invoices)."""
from sqlalchemy import Column, String, Numeric, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, IdType
from app.utils.formatters import iso_date, money


class PurchaseOrder(Base):
    """Purchase order an invoice may reference."""

    __tablename__ = 'purchase_order'

    id = Column(IdType, primary_key=True, autoincrement=True)
    business_id = Column(IdType, ForeignKey('business_profile.id'), nullable=False, index=True)
    po_number = Column(String, nullable=False)
    supplier_id = Column(IdType, ForeignKey('supplier.id'), nullable=True)
    total_amount = Column(Numeric(14, 2), nullable=True)
    status = Column(String(20), nullable=False, default='open')
    created_date = Column(Date, nullable=False, server_default=func.current_date())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    supplier = relationship('Supplier')

    def __repr__(self):
        return f"<PurchaseOrder(id={self.id}, po_number='{self.po_number}')>"

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'po_number': self.po_number,
            'supplier_id': self.supplier_id,
            'total_amount': money(self.total_amount),
            'status': self.status,
            'created_date': iso_date(self.created_date),
        }
