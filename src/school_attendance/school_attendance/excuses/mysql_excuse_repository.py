from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional

from ..common.pagination import Page, PageRequest
from ..core.constants import EXCUSE_EXISTS_FOR_DATE
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetch_count, fetchall, fetchone, integrity_errors
from ..database.sql_fragments import inferred_group_id
from ..scope.filters import ScopeFilter
from .model import DailyExcuse, ExcuseFilter, NewExcuse
from .repository import ExcuseRepository

_COLUMNS = {
    "is_active": "IsActive",
    "notes": "Notes",
}

_SELECT = """
    SELECT de.ExcuseID, de.StudentID, de.GroupID, de.InstitutionID, de.ExcuseDate, de.MarkedByUserID,
           de.Notes, de.IsActive, de.CreatedAt, de.UpdatedAt,
           s.StudentUniqueID, s.FirstName, s.LastName
    FROM DailyExcuses de
    JOIN Students s ON s.StudentID = de.StudentID
"""


def _map(r: dict) -> DailyExcuse:
    return DailyExcuse(
        excuse_id=int(r["ExcuseID"]),
        student_id=int(r["StudentID"]),
        group_id=int(r["GroupID"]) if r.get("GroupID") is not None else None,
        institution_id=int(r["InstitutionID"]),
        excuse_date=r["ExcuseDate"],
        marked_by_user_id=r.get("MarkedByUserID"),
        notes=r.get("Notes"),
        is_active=bool(r.get("IsActive")),
        created_at=r.get("CreatedAt"),
        updated_at=r.get("UpdatedAt"),
        student_unique_id=r.get("StudentUniqueID"),
        first_name=r.get("FirstName"),
        last_name=r.get("LastName"),
    )


class MySQLExcuseRepository(ExcuseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, excuse: NewExcuse) -> int:
        with integrity_errors(duplicate=lambda: ValidationError(EXCUSE_EXISTS_FOR_DATE)):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"""
                    INSERT INTO DailyExcuses (StudentID, GroupID, InstitutionID, ExcuseDate, MarkedByUserID, Notes)
                    VALUES (%s, {inferred_group_id("%s")}, %s, %s, %s, %s)
                    """,
                    (
                        int(excuse.student_id),
                        int(excuse.student_id),
                        int(excuse.institution_id),
                        excuse.excuse_date,
                        int(excuse.marked_by_user_id),
                        excuse.notes,
                    ),
                )
                return int(cur.lastrowid)

    def get_by_id(self, excuse_id: int) -> Optional[DailyExcuse]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE de.ExcuseID=%s", (int(excuse_id),))
            r = fetchone(cur)
            return _map(r) if r else None

    def exists_for_date(self, *, student_id: int, excuse_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT ExcuseID FROM DailyExcuses WHERE StudentID=%s AND ExcuseDate=%s LIMIT 1",
                (int(student_id), excuse_date),
            )
            return fetchone(cur) is not None

    def list(self, *, scope: ScopeFilter, filters: ExcuseFilter, page: PageRequest) -> Page[DailyExcuse]:
        scope_clause, params = scope.sql("s.InstitutionID")
        clauses = [scope_clause]

        if filters.start_date is not None:
            clauses.append("de.ExcuseDate >= %s")
            params.append(filters.start_date)
        if filters.end_date is not None:
            clauses.append("de.ExcuseDate <= %s")
            params.append(filters.end_date)
        if filters.student_id is not None:
            clauses.append("de.StudentID=%s")
            params.append(int(filters.student_id))
        if filters.is_active is not None:
            clauses.append("de.IsActive=%s")
            params.append(1 if filters.is_active else 0)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM DailyExcuses de
                JOIN Students s ON s.StudentID = de.StudentID
                WHERE {where}
                """,
                tuple(params),
            )
            total = fetch_count(cur)

            cur.execute(
                f"{_SELECT} WHERE {where} ORDER BY {page.order_by} LIMIT %s OFFSET %s",
                tuple(params + [page.limit, page.offset]),
            )
            items = [_map(r) for r in fetchall(cur)]

        return Page(items=items, total=total, request=page)

    def update(self, excuse_id: int, changes: Mapping[str, Any]) -> bool:
        sets = []
        params: list[object] = []
        for field, value in changes.items():
            sets.append(f"{_COLUMNS[field]}=%s")
            params.append((1 if value else 0) if field == "is_active" else value)
        if not sets:
            return False

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE DailyExcuses SET {', '.join(sets)} WHERE ExcuseID=%s", tuple(params + [int(excuse_id)]))
            return cur.rowcount > 0

    def delete(self, excuse_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM DailyExcuses WHERE ExcuseID=%s", (int(excuse_id),))
            return cur.rowcount > 0
