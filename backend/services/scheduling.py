"""Appointment conflict detection.

Every appointment lasts exactly one hour and occupies ``[start, start + 1h)``.
Two appointments for the same counselor conflict when those intervals
overlap; an appointment ending exactly when another begins does not.
"""

import uuid
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from backend.core import timeutils
from backend.models.appointment import Appointment
from backend.models.counselor import Counselor

APPOINTMENT_DURATION = timedelta(hours=1)


def appointment_window(start: datetime) -> tuple[datetime, datetime]:
    return start, start + APPOINTMENT_DURATION


def is_in_past(start: datetime, now: datetime | None = None) -> bool:
    return start < (now or timeutils.utcnow())


def lock_counselor(db: Session, counselor_id: uuid.UUID) -> Counselor | None:
    """Load the counselor row with a write lock held until the transaction ends.

    Bookings for one counselor serialize on this lock, so the conflict check
    and the insert that follows cannot interleave with another booking.
    """
    return db.query(Counselor).filter(Counselor.id == counselor_id).with_for_update().first()


def has_conflict(
    db: Session,
    counselor_id: uuid.UUID,
    proposed_start: datetime,
    exclude_appointment_id: uuid.UUID | None = None,
) -> bool:
    window_start, window_end = appointment_window(proposed_start)
    # An existing [s, s+d) overlaps [window_start, window_end) iff s+d > window_start and s < window_end.
    query = db.query(Appointment.id).filter(
        Appointment.counselor_id == counselor_id,
        Appointment.appointment_time > window_start - APPOINTMENT_DURATION,
        Appointment.appointment_time < window_end,
    )
    if exclude_appointment_id is not None:
        query = query.filter(Appointment.id != exclude_appointment_id)

    return query.first() is not None
