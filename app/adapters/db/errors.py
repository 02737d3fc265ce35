"""Classification of driver integrity errors.

Each driver signals a duplicate key differently: PostgreSQL drivers expose
SQLSTATE ``23505`` (``sqlstate`` on asyncpg/psycopg, ``pgcode`` on psycopg2),
SQLite exposes ``SQLITE_CONSTRAINT_UNIQUE`` or a ``UNIQUE constraint failed``
message. Callers branch on ``IntegrityViolation`` instead of those codes.
"""

from __future__ import annotations

from enum import Enum

from sqlalchemy.exc import IntegrityError

PG_UNIQUE_VIOLATION = "23505"
PG_NOT_NULL_VIOLATION = "23502"
PG_CHECK_VIOLATION = "23514"


class IntegrityViolation(str, Enum):
    UNIQUE = "unique"
    NOT_NULL = "not_null"
    CHECK = "check"
    OTHER = "other"


_PG_CODES = {
    PG_UNIQUE_VIOLATION: IntegrityViolation.UNIQUE,
    PG_NOT_NULL_VIOLATION: IntegrityViolation.NOT_NULL,
    PG_CHECK_VIOLATION: IntegrityViolation.CHECK,
}

_SQLITE_NAMES = {
    "SQLITE_CONSTRAINT_UNIQUE": IntegrityViolation.UNIQUE,
    "SQLITE_CONSTRAINT_PRIMARYKEY": IntegrityViolation.UNIQUE,
    "SQLITE_CONSTRAINT_NOTNULL": IntegrityViolation.NOT_NULL,
    "SQLITE_CONSTRAINT_CHECK": IntegrityViolation.CHECK,
}

_SQLITE_MESSAGES = {
    "UNIQUE constraint failed": IntegrityViolation.UNIQUE,
    "NOT NULL constraint failed": IntegrityViolation.NOT_NULL,
    "CHECK constraint failed": IntegrityViolation.CHECK,
}


def classify_integrity_error(exc: IntegrityError) -> IntegrityViolation:
    """Map a SQLAlchemy ``IntegrityError`` to the kind of constraint it broke."""

    orig = exc.orig

    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code in _PG_CODES:
        return _PG_CODES[code]

    name = getattr(orig, "sqlite_errorname", None)
    if name in _SQLITE_NAMES:
        return _SQLITE_NAMES[name]

    message = str(orig)
    for fragment, kind in _SQLITE_MESSAGES.items():
        if fragment in message:
            return kind

    return IntegrityViolation.OTHER
