from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import ConflictError, DomainError, ValidationError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn_factory.release(conn)


@contextmanager
def db_transaction(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Like db_cursor, but every statement runs inside one explicit transaction."""
    conn = conn_factory.connect()
    try:
        conn.start_transaction()
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        logger.debug("Transaction rolled back", exc_info=True)
        raise
    finally:
        conn_factory.release(conn)


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def fetch_count(cur) -> int:
    row = cur.fetchone()
    if not row:
        return 0
    if isinstance(row, dict):
        return int(next(iter(row.values())) or 0)
    return int(row[0] or 0)


def placeholders(values: Sequence[Any]) -> str:
    return ", ".join(["%s"] * len(values))


LIKE_ESCAPE = "ESCAPE '\\\\'"


def like_pattern(value: str) -> str:
    """Substring pattern for `LIKE %s {LIKE_ESCAPE}`; wildcards in `value` match literally."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


@contextmanager
def integrity_errors(
    *,
    duplicate: Optional[Callable[[], DomainError]] = None,
    missing_parent: Optional[Callable[[], DomainError]] = None,
    referenced: Optional[Callable[[], DomainError]] = None,
):
    """Translate MySQL constraint violations into domain errors.

    Unclassified driver errors are re-raised untouched and end up as a 500.
    """
    try:
        yield
    except mysql.connector.IntegrityError as e:
        if e.errno == errorcode.ER_DUP_ENTRY:
            raise (duplicate() if duplicate else ConflictError("El registro ya existe.")) from e
        if e.errno == errorcode.ER_NO_REFERENCED_ROW_2:
            raise (missing_parent() if missing_parent else ValidationError("Referencia a un registro inexistente.")) from e
        if e.errno == errorcode.ER_ROW_IS_REFERENCED_2:
            raise (
                referenced()
                if referenced
                else ConflictError("No se puede eliminar: el registro tiene datos asociados.")
            ) from e
        raise
