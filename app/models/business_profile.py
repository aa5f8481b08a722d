"""Business profile model - each business using the platform."""
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, IdType
from app.utils.formatters import iso_datetime


class BusinessProfile(Base):
    """Business profile, owned by a single user."""

    __tablename__ = 'business_profile'

    id = Column(IdType, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False, unique=True)
    business_name = Column(String(200), nullable=False)
    logo_url = Column(String(500), nullable=True)  # object key or legacy absolute URL
    contact_email = Column(String(255), nullable=False)
    contact_phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    tax_id = Column(String(50), nullable=True)
    default_currency = Column(String(3), nullable=False, default='USD')
    timezone = Column(String(64), nullable=False, default='UTC')
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    suppliers = relationship('Supplier', back_populates='business')
    invoices = relationship('Invoice', back_populates='business')
    catalog_items = relationship('CatalogItem', back_populates='business')

    def __repr__(self):
        return f"<BusinessProfile(id={self.id}, business_name='{self.business_name}')>"

    def to_dict(self, logo_public_url=None) -> dict:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'business_name': self.business_name,
            'logo_url': logo_public_url or self.logo_url,
            'contact_email': self.contact_email,
            'contact_phone': self.contact_phone,
            'address': self.address,
            'tax_id': self.tax_id,
            'default_currency': self.default_currency,
            'timezone': self.timezone,
            'created_at': iso_datetime(self.created_at),
            'updated_at': iso_datetime(self.updated_at),
        }
