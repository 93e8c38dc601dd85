"""SQLite compilation shims for PostgreSQL-specific SQLAlchemy types.

Installs a compiler for JSONB when the active dialect is SQLite so that
`Base.metadata.create_all()` succeeds in test runs backed by an in-memory
SQLite database. JSONB operators are not emulated; repositories only read
and write whole values.

Usage: imported for side-effects by senpai.db.models.base.
"""
from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(element, compiler, **kw):  # pragma: no cover - trivial
    # Stored as TEXT by SQLite's JSON affinity
    return "JSON"
