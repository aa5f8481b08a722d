"""Customer order submission models."""
from sqlalchemy import Column, String, Text, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, IdType
from app.utils.formatters import iso_datetime, money


class CustomerSubmission(Base):
    """Order request sent by a customer through the public catalog form."""

    __tablename__ = 'customer_submission'

    id = Column(IdType, primary_key=True, autoincrement=True)
    business_id = Column(IdType, ForeignKey('business_profile.id'), nullable=False, index=True)
    customer_name = Column(String(200), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=True)
    customer_address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default='new')
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    business = relationship('BusinessProfile')
    items = relationship('CustomerSubmissionItem', back_populates='submission',
                         cascade='all, delete-orphan', order_by='CustomerSubmissionItem.id')

    def __repr__(self):
        return f"<CustomerSubmission(id={self.id}, customer_email='{self.customer_email}')>"

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'business_id': self.business_id,
            'customer_name': self.customer_name,
            'customer_email': self.customer_email,
            'customer_phone': self.customer_phone,
            'customer_address': self.customer_address,
            'notes': self.notes,
            'status': self.status,
            'items': [item.to_dict() for item in self.items],
            'created_at': iso_datetime(self.created_at),
        }


class CustomerSubmissionItem(Base):
    """Requested catalog item inside a submission."""

    __tablename__ = 'customer_submission_item'

    id = Column(IdType, primary_key=True, autoincrement=True)
    submission_id = Column(IdType, ForeignKey('customer_submission.id'), nullable=False, index=True)
    catalog_item_id = Column(IdType, ForeignKey('catalog_item.id', ondelete='SET NULL'), nullable=True)
    item_name = Column(String(200), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False)
    notes = Column(Text, nullable=True)

    # Relationships
    submission = relationship('CustomerSubmission', back_populates='items')
    catalog_item = relationship('CatalogItem')

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'catalog_item_id': self.catalog_item_id,
            'item_name': self.item_name,
            'quantity': money(self.quantity),
            'notes': self.notes,
        }
