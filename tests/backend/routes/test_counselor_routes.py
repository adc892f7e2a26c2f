import uuid
from datetime import datetime

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from backend.models.counselor import Counselor
from backend.routes.counselor_routes import (
    CreateCounselorRequest,
    UpdateAvailabilityRequest,
    UpdateCounselorRequest,
    create_counselor,
    delete_counselor,
    get_counselor,
    get_counselor_availability,
    list_counselors,
    update_counselor,
    update_counselor_availability,
)


def test_create_counselor_defaults_availability_to_empty_object(db) -> None:
    counselor = create_counselor(
        CreateCounselorRequest(first_name='Ada', last_name='Moss', email=' ADA@Example.edu '),
        db=db,
    )

    assert counselor.email == 'ada@example.edu'
    assert counselor.availability == {}
    assert [row.id for row in list_counselors(db=db)] == [counselor.id]


def test_create_counselor_rejects_duplicate_email(db, make_counselor) -> None:
    make_counselor(email='ada@example.edu')

    with pytest.raises(HTTPException) as exception_info:
        create_counselor(
            CreateCounselorRequest(first_name='Ada', last_name='Moss', email='ada@example.edu'),
            db=db,
        )

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'A counselor with the given email already exists.'


def test_get_counselor_returns_not_found(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_counselor(counselor_id=uuid.uuid4(), db=db)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Counselor not found.'


def test_update_counselor_changes_only_sent_fields(db, make_counselor) -> None:
    counselor = make_counselor()

    updated = update_counselor(UpdateCounselorRequest(id=counselor.id, location='Room 202'), db=db)

    assert updated.location == 'Room 202'
    assert updated.specialization == 'Anxiety'


def test_update_counselor_clears_nullable_field(db, make_counselor) -> None:
    counselor = make_counselor()

    updated = update_counselor(UpdateCounselorRequest(id=counselor.id, specialization=None), db=db)

    assert updated.specialization is None


def test_update_counselor_without_fields_is_rejected(db, make_counselor) -> None:
    counselor = make_counselor()

    with pytest.raises(HTTPException) as exception_info:
        update_counselor(UpdateCounselorRequest(id=counselor.id), db=db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'No valid fields provided for update.'


def test_update_counselor_rejects_null_email(db, make_counselor) -> None:
    counselor = make_counselor()

    with pytest.raises(HTTPException) as exception_info:
        update_counselor(UpdateCounselorRequest(id=counselor.id, email=None), db=db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Field email cannot be null.'


def test_update_counselor_rejects_taken_email(db, make_counselor) -> None:
    make_counselor(email='taken@example.edu')
    counselor = make_counselor()

    with pytest.raises(HTTPException) as exception_info:
        update_counselor(UpdateCounselorRequest(id=counselor.id, email='taken@example.edu'), db=db)

    assert exception_info.value.status_code == 400


def test_update_missing_counselor_returns_not_found(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        update_counselor(UpdateCounselorRequest(id=uuid.uuid4(), location='Room 1'), db=db)

    assert exception_info.value.status_code == 404


def test_availability_is_stored_and_returned_verbatim(db, make_counselor) -> None:
    counselor = make_counselor()
    schedule = {'monday': [{'start': '09:00', 'end': '12:00'}], 'friday': []}

    updated = update_counselor_availability(
        counselor_id=counselor.id,
        data=UpdateAvailabilityRequest(availability=schedule),
        db=db,
    )

    assert updated.availability == schedule
    assert get_counselor_availability(counselor_id=counselor.id, db=db) == schedule


def test_availability_for_missing_counselor_returns_not_found(db) -> None:
    with pytest.raises(HTTPException) as update_info:
        update_counselor_availability(
            counselor_id=uuid.uuid4(),
            data=UpdateAvailabilityRequest(availability={}),
            db=db,
        )
    with pytest.raises(HTTPException) as read_info:
        get_counselor_availability(counselor_id=uuid.uuid4(), db=db)

    assert update_info.value.status_code == read_info.value.status_code == 404


def test_delete_counselor_returns_removed_row(db, make_counselor) -> None:
    counselor = make_counselor(email='gone@example.edu')

    response = delete_counselor(counselor_id=counselor.id, db=db)

    assert response['deletedCounselor'].email == 'gone@example.edu'
    assert db.query(Counselor).count() == 0


def test_delete_counselor_with_appointments_is_a_client_error(db, make_user, make_counselor, make_appointment) -> None:
    counselor = make_counselor()
    make_appointment(counselor, make_user(), datetime(2024, 1, 1, 10, 0))

    with pytest.raises(HTTPException) as exception_info:
        delete_counselor(counselor_id=counselor.id, db=db)

    assert exception_info.value.status_code == 400


def test_delete_missing_counselor_returns_not_found(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        delete_counselor(counselor_id=uuid.uuid4(), db=db)

    assert exception_info.value.status_code == 404


@pytest.mark.parametrize('field', ['first_name', 'last_name'])
def test_update_counselor_request_rejects_blank_names(field: str) -> None:
    with pytest.raises(ValidationError):
        UpdateCounselorRequest(id=uuid.uuid4(), **{field: ''})


def test_create_counselor_request_rejects_blank_first_name() -> None:
    with pytest.raises(ValidationError):
        CreateCounselorRequest(first_name='  ', last_name='Moss', email='ada@example.edu')
