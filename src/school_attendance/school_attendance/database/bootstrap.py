from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.enums import RoleName
from .connection import DBConfig

logger = logging.getLogger(__name__)


def _connect(db_config: dict, *, with_database: bool = True):
    """Plain connection outside the pool."""
    config = DBConfig.from_dict(db_config)
    kwargs = dict(host=config.host, port=config.port, user=config.user, password=config.password, use_pure=True)
    if with_database:
        kwargs["database"] = config.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # schema.sql must work against whatever database DB_NAME points at
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_line_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal splitter: ';' inside quotes or backticks does not end a statement.
    buf: list[str] = []
    quote: str | None = None
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\" and quote in ("'", '"'):
            buf.append(ch)
            escape = True
            continue

        if ch in ("'", '"', "`"):
            if quote is None:
                quote = ch
            elif quote == ch:
                quote = None
            buf.append(ch)
            continue

        if ch == ";" and quote is None:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _exec_sql(cur, sql: str) -> int:
    count = 0
    for stmt in _iter_sql_statements(_strip_line_comments(sql)):
        cur.execute(stmt)
        count += 1
    return count


def ensure_database_exists(db_config: dict) -> None:
    name = DBConfig.from_dict(db_config).database
    conn = _connect(db_config, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(f"CREATE DATABASE IF NOT EXISTS `{name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")
        conn.commit()
    finally:
        conn.close()


def _run_script(db_config: dict, path: Path) -> int:
    sql = _strip_create_db_and_use(path.read_text(encoding="utf-8"))
    conn = _connect(db_config)
    try:
        count = _exec_sql(conn.cursor(), sql)
        conn.commit()
    except mysql.connector.Error:
        conn.rollback()
        raise
    finally:
        conn.close()
    logger.info("Applied %s (%d statements)", path.name, count)
    return count


def apply_schema(db_config: dict, *, schema_path: str | Path) -> int:
    """Create the database if needed, then every table of schema.sql (idempotent)."""
    ensure_database_exists(db_config)
    return _run_script(db_config, Path(schema_path))


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> int:
    """Insert the fixed role vocabulary (INSERT IGNORE, safe to repeat)."""
    return _run_script(db_config, Path(seed_path))


def ensure_admin_user(db_config: dict, *, username: str, password: str) -> None:
    """Create (or reactivate and reset) the first AdminApp account."""
    conn = _connect(db_config)
    try:
        cur = conn.cursor(dictionary=True)
        cur.execute("SELECT RoleID FROM Roles WHERE RoleName=%s", (RoleName.APP_ADMIN.value,))
        role = cur.fetchone()
        if not role:
            raise RuntimeError(f"Missing role {RoleName.APP_ADMIN.value!r}; apply seed.sql first")

        password_hash = generate_password_hash(password)
        cur.execute("SELECT UserID FROM Users WHERE Username=%s", (username,))
        existing = cur.fetchone()
        if existing:
            cur.execute(
                "UPDATE Users SET PasswordHash=%s, RoleID=%s, IsActive=1 WHERE UserID=%s",
                (password_hash, int(role["RoleID"]), int(existing["UserID"])),
            )
        else:
            cur.execute(
                """
                INSERT INTO Users (Username, PasswordHash, FirstName, LastName, RoleID, IsMinistryUser, IsActive)
                VALUES (%s, %s, %s, %s, %s, 0, 1)
                """,
                (username, password_hash, "Admin", "App", int(role["RoleID"])),
            )
        conn.commit()
        logger.info("Bootstrap admin user %r ready", username)
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(db_config)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
