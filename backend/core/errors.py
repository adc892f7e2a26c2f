import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def integrity_failure(db: Session, exc: IntegrityError, detail: str) -> HTTPException:
    db.rollback()
    logger.info('Rejected write: %s (%s)', detail, exc.orig)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def store_failure(db: Session, exc: SQLAlchemyError, detail: str) -> HTTPException:
    db.rollback()
    logger.exception(detail, exc_info=exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


def get_or_404(db: Session, model: type, entity_id, detail: str):
    entity = db.get(model, entity_id)
    if entity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return entity


def patch_rejected(exc: ValueError) -> HTTPException:
    logger.info('Rejected partial update: %s', exc)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
