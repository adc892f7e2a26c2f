import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core.errors import get_or_404, integrity_failure, patch_rejected, store_failure
from backend.core.timeutils import to_utc_naive
from backend.database import get_db
from backend.models.appointment import Appointment
from backend.models.user import User
from backend.services import scheduling
from backend.services.patching import PatchValidationError, apply_patch, collect_assignments

router = APIRouter(tags=['appointments'])

logger = logging.getLogger(__name__)

APPOINTMENT_NOT_FOUND = 'Appointment not found.'
DEFAULT_APPOINTMENT_STATUS = 'booked'


class BookAppointmentRequest(BaseModel):
    appointment_time: datetime = Field(alias='appointmentTime')
    counselor_id: uuid.UUID = Field(alias='counselorId')
    student_id: uuid.UUID = Field(alias='studentId')
    status: str = DEFAULT_APPOINTMENT_STATUS
    type: str
    title: str
    description: str | None = None

    class Config:
        populate_by_name = True

    @field_validator('appointment_time')
    @classmethod
    def normalize_appointment_time(cls, value: datetime) -> datetime:
        return to_utc_naive(value)

    @field_validator('title', 'type', 'status')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Value must not be blank.')
        return normalized


class UpdateAppointmentRequest(BaseModel):
    appointment_id: uuid.UUID = Field(alias='appointmentId')
    appointment_time: datetime | None = Field(default=None, alias='appointmentTime')
    title: str | None = None
    description: str | None = None
    status: str | None = None
    type: str | None = None

    class Config:
        populate_by_name = True

    @field_validator('appointment_time')
    @classmethod
    def normalize_appointment_time(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return to_utc_naive(value)

    @field_validator('title', 'type', 'status')
    @classmethod
    def validate_required_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            raise ValueError('Value must not be blank.')
        return normalized


class AppointmentResponse(BaseModel):
    id: uuid.UUID
    appointment_time: datetime
    counselor_id: uuid.UUID
    student_id: uuid.UUID
    status: str
    type: str
    title: str
    description: str | None = None

    class Config:
        from_attributes = True


@router.post('/book-appointment', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(data: BookAppointmentRequest, db: Session = Depends(get_db)):
    start_time = data.appointment_time

    try:
        counselor = scheduling.lock_counselor(db, data.counselor_id)
        if counselor is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Counselor not found.')

        if db.get(User, data.student_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Student not found.')

        if scheduling.is_in_past(start_time):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='Cannot book appointments for a past date.',
            )

        if scheduling.has_conflict(db, data.counselor_id, start_time):
            logger.info('Rejected booking for counselor %s at %s: overlap', data.counselor_id, start_time)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='This time slot is already booked or overlaps with another appointment.',
            )

        appointment = Appointment(
            appointment_time=start_time,
            counselor_id=data.counselor_id,
            student_id=data.student_id,
            status=data.status,
            type=data.type,
            title=data.title,
            description=data.description,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)

        return appointment
    except HTTPException:
        # Release the counselor lock before responding.
        db.rollback()
        raise
    except IntegrityError as exc:
        raise integrity_failure(db, exc, 'Counselor or student does not exist.') from exc
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error booking appointment.') from exc


@router.get('/list-appointments', response_model=list[AppointmentResponse])
def list_appointments(db: Session = Depends(get_db)):
    try:
        return db.query(Appointment).order_by(Appointment.appointment_time.asc()).all()
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error fetching appointments.') from exc


@router.get('/user-appointments', response_model=list[AppointmentResponse])
def list_user_appointments(
    user_id: uuid.UUID | None = Query(default=None, alias='userId'),
    db: Session = Depends(get_db),
):
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='A user ID must be provided.',
        )

    try:
        appointments = db.query(Appointment).filter(
            or_(Appointment.student_id == user_id, Appointment.counselor_id == user_id),
        ).order_by(Appointment.appointment_time.asc()).all()
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Server error retrieving appointments.') from exc

    if not appointments:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='No appointments found for the given user ID.',
        )

    return appointments


@router.patch('/update-appointment', response_model=AppointmentResponse)
def update_appointment(data: UpdateAppointmentRequest, db: Session = Depends(get_db)):
    try:
        assignments = collect_assignments(data, Appointment, exclude={'appointment_id'})
    except PatchValidationError as exc:
        raise patch_rejected(exc) from exc

    new_start = assignments.get('appointment_time')
    if new_start is not None and scheduling.is_in_past(new_start):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Cannot update an appointment to a past date.',
        )

    try:
        appointment = get_or_404(db, Appointment, data.appointment_id, APPOINTMENT_NOT_FOUND)

        if new_start is not None:
            scheduling.lock_counselor(db, appointment.counselor_id)
            if scheduling.has_conflict(
                db,
                appointment.counselor_id,
                new_start,
                exclude_appointment_id=appointment.id,
            ):
                logger.info('Rejected reschedule of appointment %s to %s: overlap', appointment.id, new_start)
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail='This time slot is already booked.',
                )

        return apply_patch(db, appointment, assignments)
    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error updating appointment.') from exc


@router.delete('/delete-appointments/{appointment_id}')
def delete_appointment(appointment_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        appointment = get_or_404(db, Appointment, appointment_id, APPOINTMENT_NOT_FOUND)
        deleted = AppointmentResponse.model_validate(appointment)

        db.delete(appointment)
        db.commit()

        return {'message': 'Appointment deleted successfully.', 'deletedAppointment': deleted}
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error deleting appointment.') from exc
