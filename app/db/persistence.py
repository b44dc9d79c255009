"""
Commit helpers that turn store failures into PersistenceError
"""
import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import PersistenceError

logger = logging.getLogger(__name__)


def commit_or_raise(db: Session, action: str, **context: Any) -> None:
    """
    Commit the session; on failure roll back and raise PersistenceError

    Args:
        db: Database session
        action: What was being written, used in the error message
        context: Identifiers (record id, key) attached to the error
    """
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("store failure while trying to %s: %s context=%s", action, exc, context)
        raise PersistenceError(f"Failed to {action}", cause=str(exc), **context) from exc
