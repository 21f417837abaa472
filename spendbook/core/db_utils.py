"""
Database utilities for error classification
"""
from sqlalchemy.exc import IntegrityError

# SQLSTATE for unique_violation on PostgreSQL
PG_UNIQUE_VIOLATION = "23505"
SQLITE_UNIQUE_VIOLATION = "SQLITE_CONSTRAINT_UNIQUE"
SQLITE_UNIQUE_VIOLATION_CODE = 2067


def is_unique_violation(exc: Exception) -> bool:
    """
    Check whether a database error is a uniqueness constraint violation.

    Looks at the stable error code exposed by the driver rather than the
    message text: ``sqlstate``/``pgcode`` for asyncpg and psycopg, and
    ``sqlite_errorname``/``sqlite_errorcode`` for sqlite3.
    """
    if not isinstance(exc, IntegrityError):
        return False

    orig = exc.orig
    for err in (orig, getattr(orig, "__cause__", None)):
        if err is None:
            continue
        code = getattr(err, "sqlstate", None) or getattr(err, "pgcode", None)
        if code == PG_UNIQUE_VIOLATION:
            return True
        if getattr(err, "sqlite_errorname", None) == SQLITE_UNIQUE_VIOLATION:
            return True
        if getattr(err, "sqlite_errorcode", None) == SQLITE_UNIQUE_VIOLATION_CODE:
            return True
    return False
