"""Base SQLAlchemy declarative base for all models"""

from datetime import timezone

from sqlalchemy import DateTime, TypeDecorator
from sqlalchemy.orm import declarative_base


class UTCDateTime(TypeDecorator):
    """Timezone-aware timestamp that also round-trips through SQLite.

    Uses TIMESTAMP WITH TIME ZONE on PostgreSQL. SQLite drops the offset,
    so values read back without tzinfo are tagged as UTC.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


Base = declarative_base()
