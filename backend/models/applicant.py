"""Applicant model definitions."""

from sqlalchemy import Column, Integer, DateTime, Boolean, JSON, String, func
from backend.database import Base


class Applicant(Base):
    """Represents a submitted recruitment application."""
    __tablename__ = "applicants"

    id = Column(Integer, primary_key=True)
    name = Column(String)
    email = Column(String)
    contact = Column(String)
    regno = Column(String)
    dep = Column(String, index=True)
    shortlisted = Column(Boolean, nullable=True)  # None means pending
    created_at = Column(DateTime, server_default=func.now())
    formdata = Column(JSON)
