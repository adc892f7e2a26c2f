"""Counselor model definitions."""

import uuid

from sqlalchemy import JSON, Column, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from backend.database import Base


class Counselor(Base):
    """Represents a counselor students can book."""
    __tablename__ = "counselors"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    specialization = Column(String(255))
    location = Column(String(255))
    # Opaque weekly schedule, stored and returned verbatim.
    availability = Column(JSON().with_variant(JSONB(), "postgresql"), default=dict)
