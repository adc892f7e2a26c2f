import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core.errors import get_or_404, integrity_failure, patch_rejected, store_failure
from backend.database import get_db
from backend.models.workout import StudentExercise, StudentWorkout
from backend.services.patching import PatchValidationError, collect_assignments, patch_by_id

router = APIRouter(tags=['exercises'])

EXERCISE_NOT_FOUND = 'Exercise not found.'


class CreateExerciseRequest(BaseModel):
    name: str
    description: str | None = None
    repetitions: int | None = Field(default=None, ge=0)
    sets: int | None = Field(default=None, ge=0)
    duration: int | None = Field(default=None, ge=0)
    rest_period: int | None = Field(default=None, ge=0)
    student_id: uuid.UUID | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized


class UpdateExerciseRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    repetitions: int | None = Field(default=None, ge=0)
    sets: int | None = Field(default=None, ge=0)
    duration: int | None = Field(default=None, ge=0)
    rest_period: int | None = Field(default=None, ge=0)

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized


class ExerciseResponse(BaseModel):
    id: uuid.UUID
    workout_id: uuid.UUID
    student_id: uuid.UUID
    name: str
    description: str | None = None
    repetitions: int | None = None
    sets: int | None = None
    duration: int | None = None
    rest_period: int | None = None

    class Config:
        from_attributes = True


@router.post(
    '/student-workouts/{workout_id}/exercises',
    response_model=ExerciseResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_exercise(workout_id: uuid.UUID, data: CreateExerciseRequest, db: Session = Depends(get_db)):
    try:
        student_workout = get_or_404(db, StudentWorkout, workout_id, 'Student workout not found.')

        # Exercises belong to the student the workout was assigned to.
        student_id = data.student_id or student_workout.student_id
        if student_id != student_workout.student_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='Exercise student does not match the assigned workout.',
            )

        exercise = StudentExercise(
            workout_id=workout_id,
            student_id=student_id,
            name=data.name,
            description=data.description,
            repetitions=data.repetitions,
            sets=data.sets,
            duration=data.duration,
            rest_period=data.rest_period,
        )
        db.add(exercise)
        db.commit()
        db.refresh(exercise)

        return exercise
    except IntegrityError as exc:
        raise integrity_failure(db, exc, 'Workout or student does not exist.') from exc
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error creating exercise.') from exc


@router.get('/student-workouts/{workout_id}/exercises', response_model=list[ExerciseResponse])
def list_exercises(workout_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        return db.query(StudentExercise).filter(StudentExercise.workout_id == workout_id).all()
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error fetching exercises.') from exc


@router.patch('/student-exercises/{exercise_id}', response_model=ExerciseResponse)
def update_exercise(exercise_id: uuid.UUID, data: UpdateExerciseRequest, db: Session = Depends(get_db)):
    try:
        assignments = collect_assignments(data, StudentExercise)
    except PatchValidationError as exc:
        raise patch_rejected(exc) from exc

    try:
        exercise = patch_by_id(db, StudentExercise, exercise_id, assignments)
        if exercise is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=EXERCISE_NOT_FOUND)

        return exercise
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error updating exercise.') from exc


@router.delete('/student-exercises/{exercise_id}')
def delete_exercise(exercise_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        exercise = get_or_404(db, StudentExercise, exercise_id, EXERCISE_NOT_FOUND)
        deleted = ExerciseResponse.model_validate(exercise)

        db.delete(exercise)
        db.commit()

        return {'message': 'Exercise deleted successfully.', 'deletedExercise': deleted}
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error deleting exercise.') from exc
