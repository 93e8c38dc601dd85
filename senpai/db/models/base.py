"""
Shared SQLAlchemy base and helpers.
"""
from sqlalchemy.orm import declarative_base
from datetime import datetime, UTC

# Register SQLite compilers for PostgreSQL-only types before any table is
# declared, so in-memory test databases can create the schema.
from .. import sqlite_compiler_shims  # noqa: F401


def now_utc():
    """Return an aware UTC datetime for default/updated timestamps."""
    return datetime.now(UTC)


def as_utc(value):
    """Attach UTC to naive datetimes read back from SQLite; pass others through."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


Base = declarative_base()
