"""Revoked session model definitions."""

from sqlalchemy import Column, DateTime, String
from backend.database import Base


class RevokedSession(Base):
    """Represents a bearer token that was signed out before it expired."""
    __tablename__ = "revoked_sessions"

    jti = Column(String, primary_key=True)
    email = Column(String)
    revoked_at = Column(DateTime)
    expires_at = Column(DateTime)
