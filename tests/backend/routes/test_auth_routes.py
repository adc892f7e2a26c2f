import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from backend.auth import jwt_handler, passwords
from backend.models.user import User
from backend.routes.auth_routes import LoginRequest, SignupRequest, login, signup


def _signup_request(**overrides) -> SignupRequest:
    payload = {
        'email': ' New.Student@Example.EDU ',
        'password': 'Secret123!',
        'first_name': 'Nia',
        'last_name': 'Lopez',
        'contact': '555-0199',
        'course': 'Biology',
        'level': 1,
        'roll_id': 'R-9000',
    }
    payload.update(overrides)
    return SignupRequest(**payload)


def test_signup_request_normalizes_email() -> None:
    assert _signup_request().email == 'new.student@example.edu'


def test_signup_request_rejects_blank_roll_id() -> None:
    with pytest.raises(ValidationError):
        _signup_request(roll_id='  ')


def test_signup_stores_hashed_password(db) -> None:
    response = signup(_signup_request(), db=db)

    user = db.query(User).filter(User.email == 'new.student@example.edu').one()
    assert response == {'message': f'User created with ID: {user.id}', 'userId': str(user.id)}
    assert user.password_hash != 'Secret123!'
    assert passwords.verify_password('Secret123!', user.password_hash)


def test_signup_rejects_duplicate_email(db, make_user) -> None:
    make_user(email='new.student@example.edu')

    with pytest.raises(HTTPException) as exception_info:
        signup(_signup_request(), db=db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'User already exists with that email or roll ID.'


def test_signup_rejects_duplicate_roll_id(db, make_user) -> None:
    make_user(roll_id='R-9000')

    with pytest.raises(HTTPException) as exception_info:
        signup(_signup_request(), db=db)

    assert exception_info.value.status_code == 400


def test_login_returns_user_id_and_token(db, make_user) -> None:
    user = make_user(email='login@example.edu', password='Secret123!')

    response = login(LoginRequest(email='LOGIN@example.edu', password='Secret123!'), db=db)

    assert response['message'] == 'Login successful!'
    assert response['userId'] == str(user.id)
    assert response['token_type'] == 'bearer'
    assert jwt_handler.decode_access_token(response['access_token'])['sub'] == str(user.id)


def test_login_failures_share_one_message(db, make_user) -> None:
    make_user(email='login@example.edu', password='Secret123!')

    with pytest.raises(HTTPException) as wrong_password:
        login(LoginRequest(email='login@example.edu', password='wrong'), db=db)
    with pytest.raises(HTTPException) as unknown_email:
        login(LoginRequest(email='nobody@example.edu', password='Secret123!'), db=db)

    assert wrong_password.value.status_code == unknown_email.value.status_code == 400
    assert wrong_password.value.detail == unknown_email.value.detail == 'Invalid email or password.'


def test_verify_password_rejects_malformed_hash() -> None:
    assert passwords.verify_password('Secret123!', 'not-a-bcrypt-hash') is False
