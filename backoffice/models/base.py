from datetime import datetime, timezone
from decimal import Decimal
import uuid

from sqlalchemy.orm import declarative_base

from ..core.money import decimal_to_str

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def row_to_dict(model) -> dict:
    """Column values as JSON-ready primitives (decimals as plain strings)."""
    data = {}
    for column in model.__table__.columns:
        value = getattr(model, column.key)
        if isinstance(value, Decimal):
            value = decimal_to_str(value)
        elif isinstance(value, datetime):
            value = value.isoformat()
        data[column.key] = value
    return data
