from datetime import datetime, timezone

from bson import ObjectId
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def new_object_id() -> str:
    return str(ObjectId())


def is_object_id(value) -> bool:
    return isinstance(value, (str, ObjectId)) and ObjectId.is_valid(value)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
