import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.core.errors import get_or_404, integrity_failure, patch_rejected, store_failure
from backend.database import get_db
from backend.models.thought_diary import ThoughtDiary
from backend.models.user import User
from backend.services.patching import PatchValidationError, apply_patch, collect_assignments

router = APIRouter(tags=['thought-diaries'])

ENTRY_NOT_FOUND = 'Diary entry not found.'


class CreateDiaryEntryRequest(BaseModel):
    student_id: uuid.UUID
    content: str
    title: str
    mood: str | None = None
    color: str | None = None

    @field_validator('content', 'title')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError('Value must not be blank.')
        return value


class UpdateDiaryEntryRequest(BaseModel):
    content: str | None = None
    mood: str | None = None
    title: str | None = None
    color: str | None = None

    @field_validator('content', 'title')
    @classmethod
    def validate_required_text(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError('Value must not be blank.')
        return value


class DiaryEntryResponse(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    entry_date: datetime
    content: str
    mood: str | None = None
    title: str
    color: str | None = None

    class Config:
        from_attributes = True


def ensure_entry_owner(entry: ThoughtDiary, current_user: User) -> None:
    if entry.student_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only the student who wrote this entry can change it.',
        )


@router.post('/thought-diaries', response_model=DiaryEntryResponse, status_code=status.HTTP_201_CREATED)
def create_diary_entry(data: CreateDiaryEntryRequest, db: Session = Depends(get_db)):
    try:
        get_or_404(db, User, data.student_id, 'Student not found.')

        entry = ThoughtDiary(
            student_id=data.student_id,
            content=data.content,
            mood=data.mood,
            title=data.title,
            color=data.color,
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)

        return entry
    except IntegrityError as exc:
        raise integrity_failure(db, exc, 'Student does not exist.') from exc
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error creating diary entry.') from exc


@router.get('/thought-diaries/{student_id}', response_model=list[DiaryEntryResponse])
def list_diary_entries(student_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        return db.query(ThoughtDiary).filter(
            ThoughtDiary.student_id == student_id,
        ).order_by(ThoughtDiary.entry_date.desc()).all()
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error retrieving diary entries.') from exc


@router.patch('/thought-diaries/{entry_id}', response_model=DiaryEntryResponse)
def update_diary_entry(
    entry_id: uuid.UUID,
    data: UpdateDiaryEntryRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        assignments = collect_assignments(data, ThoughtDiary)
    except PatchValidationError as exc:
        raise patch_rejected(exc) from exc

    try:
        entry = get_or_404(db, ThoughtDiary, entry_id, ENTRY_NOT_FOUND)
        ensure_entry_owner(entry, current_user)

        return apply_patch(db, entry, assignments)
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error updating diary entry.') from exc


@router.delete('/thought-diaries/{entry_id}')
def delete_diary_entry(
    entry_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        entry = get_or_404(db, ThoughtDiary, entry_id, ENTRY_NOT_FOUND)
        ensure_entry_owner(entry, current_user)
        deleted = DiaryEntryResponse.model_validate(entry)

        db.delete(entry)
        db.commit()

        return {'message': 'Diary entry deleted successfully.', 'deletedEntry': deleted}
    except SQLAlchemyError as exc:
        raise store_failure(db, exc, 'Error deleting diary entry.') from exc
