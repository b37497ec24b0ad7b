# equipment_tracker/helpers/db_utils.py
"""
Database utility functions shared by the entity helpers.
"""
from contextlib import contextmanager
from typing import Type, TypeVar

from fastapi import HTTPException, status
from sqlalchemy import exc
from sqlalchemy.orm import Session

from equipment_tracker.core.logger import app_logger

# Type variable for model classes
ModelType = TypeVar("ModelType")


def get_entity_by_id(
    db: Session,
    model_class: Type[ModelType],
    entity_id: int,
    label: str = "Record",
) -> ModelType:
    """
    Fetch a row by primary key.

    Raises:
        HTTPException: 404 if the row does not exist
    """
    entity = db.get(model_class, entity_id)
    if entity is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} with id {entity_id} not found",
        )
    return entity


@contextmanager
def db_operation(db: Session, operation_name: str = "database operation"):
    """
    Context manager for database operations with proper exception handling.

    Rolls back on any failure. Integrity violations become 409, other
    database errors a generic 500; the original error is only logged.

    Usage:
        with db_operation(db, "create computer"):
            # database operations
            db.commit()
    """
    try:
        yield
    except HTTPException:
        db.rollback()
        raise
    except exc.IntegrityError as e:
        db.rollback()
        app_logger.warning(
            "Integrity error",
            extra={"operation": operation_name, "error": str(e.orig)},
        )
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Conflict with existing data during {operation_name}",
        )
    except exc.SQLAlchemyError:
        db.rollback()
        app_logger.exception("Database error", extra={"operation": operation_name})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Database error during {operation_name}",
        )
