"""Enrollment model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from backend.database import Base

ENROLLMENT_STATUSES = ("pending", "approved", "rejected", "cancelled")


class Enrollment(Base):
    """Represents a student's enrollment in a course."""
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    payment_method = Column(String(50))
    payment_proof_url = Column(String(500))
    amount_paid = Column(Numeric(12, 2, asdecimal=False))
    status = Column(String(20), default="pending", nullable=False)  # see ENROLLMENT_STATUSES
    notes = Column(Text)
    approved_by = Column(Integer, ForeignKey("users.id"))
    approved_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.now)
