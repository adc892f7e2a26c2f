"""User model definitions."""

import uuid

from sqlalchemy import Column, Integer, String, Uuid
from backend.database import Base


class User(Base):
    """Represents a registered student."""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    contact = Column(String(255), nullable=False)
    course = Column(String(255), nullable=False)
    level = Column(Integer, nullable=False)
    roll_id = Column(String(255), unique=True, nullable=False)
