import uuid
from datetime import timezone
from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator
from sqlmodel import SQLModel


def generate_uuid() -> str:
    return str(uuid.uuid4())


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC timestamps on every backend

    SQLite keeps no offset, so values are normalized to UTC before they
    are stored and get UTC attached again when loaded.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class BaseModel(SQLModel):
    """Base class for all persisted billing entities"""
    pass
