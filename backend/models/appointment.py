"""Appointment model definitions."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid
from backend.database import Base


class Appointment(Base):
    """Represents a one-hour counseling appointment."""
    __tablename__ = "appointments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    appointment_time = Column(DateTime, nullable=False)
    counselor_id = Column(Uuid, ForeignKey("counselors.id"), nullable=False)
    student_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    status = Column(String(50), nullable=False)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text)
