"""Thought diary model definitions."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid
from backend.core.timeutils import utcnow
from backend.database import Base


class ThoughtDiary(Base):
    """Represents a student's mood diary entry."""
    __tablename__ = "thought_diaries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    entry_date = Column(DateTime, nullable=False, default=utcnow)
    content = Column(Text, nullable=False)
    mood = Column(String(255))
    title = Column(String(255), nullable=False)
    color = Column(String(255))  # CSS color
