import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core.errors import get_or_404, integrity_failure, patch_rejected, store_failure
from backend.database import get_db
from backend.models.counselor import Counselor
from backend.services.patching import PatchValidationError, collect_assignments, patch_by_id

router = APIRouter(tags=['counselors'])

COUNSELOR_NOT_FOUND = 'Counselor not found.'
DUPLICATE_COUNSELOR_DETAIL = 'A counselor with the given email already exists.'


def _normalize_email(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if not normalized:
        raise ValueError('Email is required.')
    return normalized


def _require_name(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    if not normalized:
        raise ValueError('Name must not be blank.')
    return normalized


class CreateCounselorRequest(BaseModel):
    first_name: str
    last_name: str
    email: str
    specialization: str | None = None
    location: str | None = None
    availability: dict[str, Any] | list[Any] | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _normalize_email(value)

    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_names(cls, value: str) -> str:
        return _require_name(value)


class UpdateCounselorRequest(BaseModel):
    id: uuid.UUID
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    specialization: str | None = None
    location: str | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        return _normalize_email(value)

    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_names(cls, value: str | None) -> str | None:
        return _require_name(value)


class UpdateAvailabilityRequest(BaseModel):
    availability: dict[str, Any] | list[Any]


class CounselorResponse(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    specialization: str | None = None
    location: str | None = None
    availability: Any = None

    class Config:
        from_attributes = True


@router.post('/counselors', response_model=CounselorResponse, status_code=status.HTTP_201_CREATED)
def create_counselor(data: CreateCounselorRequest, db: Session = Depends(get_db)):
    try:
        if db.query(Counselor.id).filter(Counselor.email == data.email).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=DUPLICATE_COUNSELOR_DETAIL,
            )

        counselor = Counselor(
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            specialization=data.specialization,
            location=data.location,
            availability=data.availability if data.availability is not None else {},
        )
        db.add(counselor)
        db.commit()
        db.refresh(counselor)

        return counselor
    except IntegrityError as exc:
        raise integrity_failure(db, exc, DUPLICATE_COUNSELOR_DETAIL) from exc
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Server error while creating counselor.') from exc


@router.get('/counselors', response_model=list[CounselorResponse])
def list_counselors(db: Session = Depends(get_db)):
    try:
        return db.query(Counselor).all()
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error retrieving counselors.') from exc


@router.get('/counselors/{counselor_id}', response_model=CounselorResponse)
def get_counselor(counselor_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        return get_or_404(db, Counselor, counselor_id, COUNSELOR_NOT_FOUND)
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error retrieving counselor.') from exc


@router.patch('/counselors', response_model=CounselorResponse)
def update_counselor(data: UpdateCounselorRequest, db: Session = Depends(get_db)):
    try:
        assignments = collect_assignments(data, Counselor, exclude={'id'})
    except PatchValidationError as exc:
        raise patch_rejected(exc) from exc

    try:
        counselor = patch_by_id(db, Counselor, data.id, assignments)
        if counselor is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=COUNSELOR_NOT_FOUND)

        return counselor
    except IntegrityError as exc:
        raise integrity_failure(db, exc, DUPLICATE_COUNSELOR_DETAIL) from exc
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error updating counselor.') from exc


@router.delete('/counselors/{counselor_id}')
def delete_counselor(counselor_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        counselor = get_or_404(db, Counselor, counselor_id, COUNSELOR_NOT_FOUND)
        deleted = CounselorResponse.model_validate(counselor)

        db.delete(counselor)
        db.commit()

        return {'message': 'Counselor deleted successfully.', 'deletedCounselor': deleted}
    except IntegrityError as exc:
        raise integrity_failure(db, exc, 'Counselor still has appointments and cannot be deleted.') from exc
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error deleting counselor.') from exc


@router.patch('/counselors/{counselor_id}/availability', response_model=CounselorResponse)
def update_counselor_availability(
    counselor_id: uuid.UUID,
    data: UpdateAvailabilityRequest,
    db: Session = Depends(get_db),
):
    try:
        counselor = patch_by_id(db, Counselor, counselor_id, {'availability': data.availability})
        if counselor is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=COUNSELOR_NOT_FOUND)

        return counselor
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Server error while updating counselor availability.') from exc


@router.get('/counselors/{counselor_id}/availability')
def get_counselor_availability(counselor_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        counselor = get_or_404(db, Counselor, counselor_id, COUNSELOR_NOT_FOUND)
        return counselor.availability
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Server error while fetching counselor availability.') from exc
