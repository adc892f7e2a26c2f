import os
from datetime import datetime

import pytest

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('BCRYPT_ROUNDS', '4')

from backend.auth import passwords  # noqa: E402
from backend.database import Base, build_engine, build_session_factory  # noqa: E402
from backend.models.appointment import Appointment  # noqa: E402
from backend.models.counselor import Counselor  # noqa: E402
from backend.models.thought_diary import ThoughtDiary  # noqa: E402
from backend.models.user import User  # noqa: E402
from backend.models.workout import StudentExercise, StudentWorkout, Workout  # noqa: E402

FIXED_NOW = datetime(2023, 12, 31, 12, 0)


@pytest.fixture
def engine():
    engine = build_engine('sqlite://')
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(engine):
    session = build_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fixed_now(monkeypatch: pytest.MonkeyPatch) -> datetime:
    monkeypatch.setattr('backend.core.timeutils.utcnow', lambda: FIXED_NOW)
    return FIXED_NOW


@pytest.fixture
def make_user(db):
    created = 0

    def _make_user(email: str | None = None, password: str = 'Secret123!', roll_id: str | None = None) -> User:
        nonlocal created
        created += 1
        user = User(
            email=email or f'student{created}@example.edu',
            password_hash=passwords.hash_password(password),
            first_name='Test',
            last_name=f'Student{created}',
            contact='555-0100',
            course='Psychology',
            level=2,
            roll_id=roll_id or f'R-{created:04d}',
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_counselor(db):
    created = 0

    def _make_counselor(email: str | None = None) -> Counselor:
        nonlocal created
        created += 1
        counselor = Counselor(
            first_name='Casey',
            last_name=f'Counselor{created}',
            email=email or f'counselor{created}@example.edu',
            specialization='Anxiety',
            location='Room 101',
            availability={},
        )
        db.add(counselor)
        db.commit()
        db.refresh(counselor)
        return counselor

    return _make_counselor


@pytest.fixture
def make_appointment(db):
    def _make_appointment(counselor: Counselor, student: User, start: datetime, title: str = 'Check-in') -> Appointment:
        appointment = Appointment(
            appointment_time=start,
            counselor_id=counselor.id,
            student_id=student.id,
            status='booked',
            type='in-person',
            title=title,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return _make_appointment


@pytest.fixture
def make_diary_entry(db):
    def _make_diary_entry(student: User, content: str = 'Felt calmer today.') -> ThoughtDiary:
        entry = ThoughtDiary(student_id=student.id, content=content, mood='calm', title='Evening', color='#88c')
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry

    return _make_diary_entry


@pytest.fixture
def make_workout(db):
    def _make_workout(title: str = 'Morning stretch') -> Workout:
        workout = Workout(title=title, description='Light mobility', difficulty='easy', duration=20)
        db.add(workout)
        db.commit()
        db.refresh(workout)
        return workout

    return _make_workout


@pytest.fixture
def make_student_workout(db):
    def _make_student_workout(student: User, workout: Workout) -> StudentWorkout:
        student_workout = StudentWorkout(student_id=student.id, workout_id=workout.id, status='pending')
        db.add(student_workout)
        db.commit()
        db.refresh(student_workout)
        return student_workout

    return _make_student_workout


@pytest.fixture
def make_exercise(db):
    def _make_exercise(student_workout: StudentWorkout, name: str = 'Squats') -> StudentExercise:
        exercise = StudentExercise(
            workout_id=student_workout.id,
            student_id=student_workout.student_id,
            name=name,
            repetitions=12,
            sets=3,
            duration=45,
            rest_period=30,
        )
        db.add(exercise)
        db.commit()
        db.refresh(exercise)
        return exercise

    return _make_exercise
