import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth import jwt_handler, passwords
from backend.core.errors import integrity_failure, store_failure
from backend.database import get_db
from backend.models.user import User

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_DETAIL = 'Invalid email or password.'
DUPLICATE_USER_DETAIL = 'User already exists with that email or roll ID.'


def _normalize_email(value: str) -> str:
    normalized = value.strip().lower()
    if not normalized:
        raise ValueError('Email is required.')
    return normalized


class SignupRequest(BaseModel):
    email: str
    password: str
    first_name: str
    last_name: str
    contact: str
    course: str
    level: int
    roll_id: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _normalize_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Password is required.')
        return value

    @field_validator('roll_id')
    @classmethod
    def validate_roll_id(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Roll ID is required.')
        return normalized


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _normalize_email(value)


@router.post('/signup', status_code=status.HTTP_201_CREATED)
def signup(data: SignupRequest, db: Session = Depends(get_db)):
    try:
        existing_user = db.query(User.id).filter(
            (User.email == data.email) | (User.roll_id == data.roll_id)
        ).first()
        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=DUPLICATE_USER_DETAIL,
            )

        user = User(
            email=data.email,
            password_hash=passwords.hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            contact=data.contact,
            course=data.course,
            level=data.level,
            roll_id=data.roll_id,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError as exc:
        raise integrity_failure(db, exc, DUPLICATE_USER_DETAIL) from exc
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Server error during signup.') from exc

    logger.info('Registered user %s', user.id)
    return {'message': f'User created with ID: {user.id}', 'userId': str(user.id)}


@router.post('/login')
def login(data: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = db.query(User).filter(User.email == data.email).first()
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Server error during login.') from exc

    # Unknown email and wrong password are indistinguishable to the caller.
    if user is None:
        passwords.verify_password(data.password, passwords.DUMMY_PASSWORD_HASH)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_CREDENTIALS_DETAIL)

    if not passwords.verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_CREDENTIALS_DETAIL)

    token = jwt_handler.create_access_token(subject=str(user.id))
    return {
        'message': 'Login successful!',
        'userId': str(user.id),
        'access_token': token,
        'token_type': 'bearer',
    }
