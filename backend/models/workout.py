"""Workout model definitions."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, Uuid
from backend.core.timeutils import utcnow
from backend.database import Base


class Workout(Base):
    """Represents a catalog workout."""
    __tablename__ = "workouts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    difficulty = Column(String(50))
    duration = Column(Integer)  # minutes
    created_at = Column(DateTime, nullable=False, default=utcnow)


class StudentWorkout(Base):
    """Represents a workout assigned to a student."""
    __tablename__ = "student_workouts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    workout_id = Column(Uuid, ForeignKey("workouts.id"), nullable=False)
    status = Column(String(50))  # pending/completed
    completed_at = Column(DateTime)
    feedback = Column(Text)


class StudentExercise(Base):
    """Represents an exercise inside an assigned workout."""
    __tablename__ = "student_exercises"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    workout_id = Column(Uuid, ForeignKey("student_workouts.id"), nullable=False)
    student_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    repetitions = Column(Integer)
    sets = Column(Integer)
    duration = Column(Integer)  # seconds per set
    rest_period = Column(Integer)  # seconds between sets
