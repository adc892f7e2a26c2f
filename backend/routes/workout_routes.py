import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core.errors import get_or_404, integrity_failure, patch_rejected, store_failure
from backend.core.timeutils import to_utc_naive
from backend.database import get_db
from backend.models.user import User
from backend.models.workout import StudentWorkout, Workout
from backend.services.patching import PatchValidationError, collect_assignments, patch_by_id

router = APIRouter(tags=['workouts'])

WORKOUT_NOT_FOUND = 'Workout not found.'
STUDENT_WORKOUT_NOT_FOUND = 'Student workout not found.'


class CreateWorkoutRequest(BaseModel):
    title: str
    description: str | None = None
    difficulty: str | None = None
    duration: int | None = Field(default=None, ge=0)

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Title is required.')
        return normalized


class UpdateWorkoutRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    difficulty: str | None = None
    duration: int | None = Field(default=None, ge=0)

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            raise ValueError('Title is required.')
        return normalized


class WorkoutResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str | None = None
    difficulty: str | None = None
    duration: int | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class AssignWorkoutRequest(BaseModel):
    student_id: uuid.UUID
    workout_id: uuid.UUID
    status: str | None = 'pending'
    feedback: str | None = None


class UpdateStudentWorkoutRequest(BaseModel):
    status: str | None = None
    completed_at: datetime | None = None
    feedback: str | None = None

    @field_validator('completed_at')
    @classmethod
    def normalize_completed_at(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return to_utc_naive(value)


class StudentWorkoutResponse(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    workout_id: uuid.UUID
    status: str | None = None
    completed_at: datetime | None = None
    feedback: str | None = None

    class Config:
        from_attributes = True


@router.post('/workouts', response_model=WorkoutResponse, status_code=status.HTTP_201_CREATED)
def create_workout(data: CreateWorkoutRequest, db: Session = Depends(get_db)):
    try:
        workout = Workout(
            title=data.title,
            description=data.description,
            difficulty=data.difficulty,
            duration=data.duration,
        )
        db.add(workout)
        db.commit()
        db.refresh(workout)

        return workout
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error creating workout.') from exc


@router.get('/workouts', response_model=list[WorkoutResponse])
def list_workouts(db: Session = Depends(get_db)):
    try:
        return db.query(Workout).order_by(Workout.created_at.asc()).all()
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error fetching workouts.') from exc


@router.get('/workouts/{workout_id}', response_model=WorkoutResponse)
def get_workout(workout_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        return get_or_404(db, Workout, workout_id, WORKOUT_NOT_FOUND)
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error retrieving workout.') from exc


@router.patch('/workouts/{workout_id}', response_model=WorkoutResponse)
def update_workout(workout_id: uuid.UUID, data: UpdateWorkoutRequest, db: Session = Depends(get_db)):
    try:
        assignments = collect_assignments(data, Workout)
    except PatchValidationError as exc:
        raise patch_rejected(exc) from exc

    try:
        workout = patch_by_id(db, Workout, workout_id, assignments)
        if workout is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=WORKOUT_NOT_FOUND)

        return workout
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error updating workout.') from exc


@router.delete('/workouts/{workout_id}')
def delete_workout(workout_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        workout = get_or_404(db, Workout, workout_id, WORKOUT_NOT_FOUND)
        deleted = WorkoutResponse.model_validate(workout)

        db.delete(workout)
        db.commit()

        return {'message': 'Workout deleted successfully.', 'deletedWorkout': deleted}
    except IntegrityError as exc:
        raise integrity_failure(db, exc, 'Workout is assigned to students and cannot be deleted.') from exc
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error deleting workout.') from exc


@router.post('/student-workouts', response_model=StudentWorkoutResponse, status_code=status.HTTP_201_CREATED)
def assign_workout(data: AssignWorkoutRequest, db: Session = Depends(get_db)):
    try:
        get_or_404(db, User, data.student_id, 'Student not found.')
        get_or_404(db, Workout, data.workout_id, WORKOUT_NOT_FOUND)

        student_workout = StudentWorkout(
            student_id=data.student_id,
            workout_id=data.workout_id,
            status=data.status,
            feedback=data.feedback,
        )
        db.add(student_workout)
        db.commit()
        db.refresh(student_workout)

        return student_workout
    except IntegrityError as exc:
        raise integrity_failure(db, exc, 'Student or workout does not exist.') from exc
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error assigning workout.') from exc


@router.get('/student-workouts', response_model=list[StudentWorkoutResponse])
def list_student_workouts(
    student_id: uuid.UUID | None = Query(default=None, alias='studentId'),
    db: Session = Depends(get_db),
):
    try:
        query = db.query(StudentWorkout)
        if student_id is not None:
            query = query.filter(StudentWorkout.student_id == student_id)
        return query.all()
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error fetching student workouts.') from exc


@router.get('/student-workouts/{student_workout_id}', response_model=StudentWorkoutResponse)
def get_student_workout(student_workout_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        return get_or_404(db, StudentWorkout, student_workout_id, STUDENT_WORKOUT_NOT_FOUND)
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error retrieving student workout.') from exc


@router.patch('/student-workouts/{student_workout_id}', response_model=StudentWorkoutResponse)
def update_student_workout(
    student_workout_id: uuid.UUID,
    data: UpdateStudentWorkoutRequest,
    db: Session = Depends(get_db),
):
    try:
        assignments = collect_assignments(data, StudentWorkout)
    except PatchValidationError as exc:
        raise patch_rejected(exc) from exc

    try:
        student_workout = patch_by_id(db, StudentWorkout, student_workout_id, assignments)
        if student_workout is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=STUDENT_WORKOUT_NOT_FOUND)

        return student_workout
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error updating student workout.') from exc


@router.delete('/student-workouts/{student_workout_id}')
def delete_student_workout(student_workout_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        student_workout = get_or_404(db, StudentWorkout, student_workout_id, STUDENT_WORKOUT_NOT_FOUND)
        deleted = StudentWorkoutResponse.model_validate(student_workout)

        db.delete(student_workout)
        db.commit()

        return {'message': 'Student workout deleted successfully.', 'deletedStudentWorkout': deleted}
    except IntegrityError as exc:
        raise integrity_failure(db, exc, 'Student workout still has exercises and cannot be deleted.') from exc
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error deleting student workout.') from exc
