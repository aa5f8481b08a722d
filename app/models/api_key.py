"""API key model - hashed credentials for the JSON API."""
import hashlib
import secrets
from sqlalchemy import Column, String, Boolean, DateTime, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import validates
from sqlalchemy.sql import func
from app.database import Base, IdType


# Grants every permission
ALL_PERMISSIONS = 'all'


def hash_api_key(plain_key: str) -> str:
    """SHA-256 hex digest of a plain API key."""
    return hashlib.sha256(plain_key.encode('utf-8')).hexdigest()


class ApiKey(Base):
    """API key issued to a user. Only the hash is stored."""

    __tablename__ = 'api_key'

    id = Column(IdType, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    key_hash = Column(String(64), nullable=False, unique=True)
    permissions = Column(JSON().with_variant(JSONB, 'postgresql'), nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    @classmethod
    def generate(cls, user_id: str, name: str, permissions=None):
        """
        Build a new key.

        Returns:
            (ApiKey, plain_key) - the plain key is never stored
        """
        plain_key = secrets.token_urlsafe(32)
        api_key = cls(
            user_id=user_id,
            name=name,
            key_hash=hash_api_key(plain_key),
            is_active=True
        )
        api_key.permissions = permissions or [ALL_PERMISSIONS]
        return api_key, plain_key

    @validates('permissions')
    def _normalize_permissions(self, key, value):
        return sorted(set(value or []))

    def has_permission(self, permission_name: str) -> bool:
        perms = self.permissions or []
        return ALL_PERMISSIONS in perms or permission_name in perms

    def __repr__(self):
        return f"<ApiKey(id={self.id}, user_id='{self.user_id}', name='{self.name}')>"
