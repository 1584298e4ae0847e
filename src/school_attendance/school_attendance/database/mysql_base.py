from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import DomainError, NotFoundError, StorageError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield ``(conn, cursor)`` on a fresh connection; commit on success.

    Connector errors surface as :class:`StorageError`, except foreign-key
    violations on insert which mean a referenced row is missing.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        raise StorageError(f"database unavailable: {e}") from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except DomainError:
        conn.rollback()
        raise
    except mysql.connector.Error as e:
        conn.rollback()
        if getattr(e, "errno", None) == errorcode.ER_NO_REFERENCED_ROW_2:
            raise NotFoundError("referenced student or class does not exist") from e
        raise StorageError(str(e)) from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def optional_str(value: Any) -> Optional[str]:
    """Normalize nullable VARCHAR columns (empty strings come back as None)."""

    if value is None:
        return None
    value = str(value)
    return value or None
