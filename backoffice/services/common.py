"""
Shared plumbing for the write paths.

Services validate loose payloads with the Pydantic models, apply them to
SQLAlchemy rows and turn every failure into a MutationResult instead of
letting it escape to the caller.
"""

import logging
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Type, Union

import pydantic
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import ValidationError, StorageUnavailable

logger = logging.getLogger(__name__)

Payload = Union[Mapping[str, Any], pydantic.BaseModel]


def format_validation_errors(exc: pydantic.ValidationError) -> list:
    """Field-level messages such as "price_aed: 'abc' is not a valid amount"."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "Invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return messages


def validate_payload(model_cls: Type[pydantic.BaseModel], payload: Payload) -> pydantic.BaseModel:
    """
    Coerce `payload` into `model_cls`.

    Raises:
        ValidationError: with one message per offending field
    """
    if isinstance(payload, model_cls):
        return payload
    if isinstance(payload, pydantic.BaseModel):
        payload = payload.model_dump(exclude_unset=True)
    try:
        return model_cls.model_validate(dict(payload or {}))
    except pydantic.ValidationError as e:
        raise ValidationError(format_validation_errors(e)) from e


def column_values(model: pydantic.BaseModel, money_fields: Iterable[str] = (), partial: bool = False) -> Dict[str, Any]:
    """Plain column values for SQLAlchemy: enum members unwrapped, money as Decimal."""
    data = model.model_dump(exclude_unset=True) if partial else model.model_dump(exclude_none=True)
    money_fields = set(money_fields)
    values = {}
    for key, value in data.items():
        if isinstance(value, Enum):
            value = value.value
        elif key in money_fields and value is not None:
            value = Decimal(value)
        values[key] = value
    return values


def apply_fields(row, data: Mapping[str, Any], protected: Iterable[str] = ()) -> None:
    protected = set(protected)
    for key, value in data.items():
        if hasattr(row, key) and key not in protected:
            setattr(row, key, value)


def commit(db: Session, action: str, refresh=None) -> None:
    """
    Commit the session (and reload `refresh` from the database), rolling
    back on failure.

    Raises:
        StorageUnavailable: the database rejected the write
    """
    try:
        db.commit()
        if refresh is not None:
            db.refresh(refresh)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Error while trying to {action}: {e}")
        raise StorageUnavailable(f"Failed to {action}") from e


def fetch(db: Session, action: str, fn):
    """Run a read, translating driver errors into StorageUnavailable."""
    try:
        return fn()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Error while trying to {action}: {e}")
        raise StorageUnavailable(f"Failed to {action}") from e
