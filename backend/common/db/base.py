from datetime import timezone

from sqlalchemy.orm import declarative_base
from sqlalchemy import BigInteger, DateTime
from sqlalchemy.types import TypeDecorator, Integer

Base = declarative_base()


class BigIntegerType(TypeDecorator):
    """A type that maps to BigInteger on PostgreSQL/MySQL and Integer on SQLite."""

    impl = Integer
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name in ("postgresql", "mysql"):
            return dialect.type_descriptor(BigInteger())
        else:
            return dialect.type_descriptor(Integer())


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime that is always stored and loaded as UTC.

    SQLite drops tzinfo on the way in, so naive values coming back are
    treated as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
