"""Catalog item model - products and services a business offers."""
from sqlalchemy import Column, String, Text, Boolean, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, IdType
from app.utils.formatters import iso_datetime, money


class CatalogItem(Base):
    """Sellable product or service."""

    __tablename__ = 'catalog_item'

    id = Column(IdType, primary_key=True, autoincrement=True)
    business_id = Column(IdType, ForeignKey('business_profile.id'), nullable=False, index=True)
    item_name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    unit_price = Column(Numeric(14, 2), nullable=False)
    currency = Column(String(3), nullable=False, default='USD')
    category = Column(String(100), nullable=True)
    sku = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    business = relationship('BusinessProfile', back_populates='catalog_items')

    def __repr__(self):
        return f"<CatalogItem(id={self.id}, item_name='{self.item_name}', sku='{self.sku}')>"

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'business_id': self.business_id,
            'item_name': self.item_name,
            'description': self.description,
            'unit_price': money(self.unit_price),
            'currency': self.currency,
            'category': self.category,
            'sku': self.sku,
            'is_active': self.is_active,
            'created_at': iso_datetime(self.created_at),
            'updated_at': iso_datetime(self.updated_at),
        }
