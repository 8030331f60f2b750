# pranveda/repositories/base.py
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel

from pranveda.core.errors import StoreError

ModelT = TypeVar("ModelT", bound=SQLModel)


def save(session: Session, obj: ModelT) -> ModelT:
    """
    Insert or update a row and return it refreshed.

    Raises:
        StoreError: on any driver failure; the transaction is rolled back
        and the driver message is kept in `details` for the server log.
    """
    try:
        session.add(obj)
        session.commit()
        session.refresh(obj)
    except SQLAlchemyError as exc:
        session.rollback()
        raise StoreError(f"Failed to persist {type(obj).__name__}", details=str(exc)) from exc
    return obj
