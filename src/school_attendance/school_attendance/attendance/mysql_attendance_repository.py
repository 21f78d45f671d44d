from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional

from ..common.pagination import Page, PageRequest
from ..core.constants import ATTENDANCE_EXISTS_TODAY
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetch_count, fetchall, fetchone, integrity_errors
from ..database.sql_fragments import inferred_group_id
from ..scope.filters import ScopeFilter
from .model import AttendanceFilter, AttendanceRecord, NewAttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = {
    "attendance_type": "AttendanceType",
    "notes": "Notes",
}

_SELECT = """
    SELECT ar.RecordID, ar.StudentID, ar.InstitutionID, ar.GroupID, ar.AttendanceTimestamp, ar.AttendanceDate,
           ar.RecordedByUserID, ar.AttendanceType, ar.Notes, ar.CreatedAt, ar.UpdatedAt,
           s.StudentUniqueID, s.FirstName, s.LastName
    FROM AttendanceRecords ar
    JOIN Students s ON s.StudentID = ar.StudentID
"""


def _map(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["RecordID"]),
        student_id=int(r["StudentID"]),
        institution_id=int(r["InstitutionID"]),
        group_id=int(r["GroupID"]) if r.get("GroupID") is not None else None,
        attendance_timestamp=r["AttendanceTimestamp"],
        attendance_date=r["AttendanceDate"],
        recorded_by_user_id=r.get("RecordedByUserID"),
        attendance_type=r["AttendanceType"],
        notes=r.get("Notes"),
        created_at=r.get("CreatedAt"),
        updated_at=r.get("UpdatedAt"),
        student_unique_id=r.get("StudentUniqueID"),
        first_name=r.get("FirstName"),
        last_name=r.get("LastName"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, record: NewAttendanceRecord) -> int:
        # a concurrent mark for the same day trips uq_attendance_student_day
        with integrity_errors(duplicate=lambda: ValidationError(ATTENDANCE_EXISTS_TODAY)):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"""
                    INSERT INTO AttendanceRecords
                        (StudentID, InstitutionID, GroupID, AttendanceTimestamp, AttendanceDate,
                         RecordedByUserID, AttendanceType, Notes)
                    VALUES (%s, %s, {inferred_group_id("%s")}, %s, %s, %s, %s, %s)
                    """,
                    (
                        int(record.student_id),
                        int(record.institution_id),
                        int(record.student_id),
                        record.attendance_timestamp,
                        record.attendance_date,
                        int(record.recorded_by_user_id),
                        record.attendance_type,
                        record.notes,
                    ),
                )
                return int(cur.lastrowid)

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE ar.RecordID=%s", (int(record_id),))
            r = fetchone(cur)
            return _map(r) if r else None

    def exists_for_day(self, *, student_id: int, attendance_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT RecordID FROM AttendanceRecords WHERE StudentID=%s AND AttendanceDate=%s LIMIT 1",
                (int(student_id), attendance_date),
            )
            return fetchone(cur) is not None

    def list(self, *, scope: ScopeFilter, filters: AttendanceFilter, page: PageRequest) -> Page[AttendanceRecord]:
        scope_clause, params = scope.sql("s.InstitutionID")
        clauses = [scope_clause]

        if filters.start_date is not None:
            clauses.append("ar.AttendanceDate >= %s")
            params.append(filters.start_date)
        if filters.end_date is not None:
            clauses.append("ar.AttendanceDate <= %s")
            params.append(filters.end_date)
        if filters.student_id is not None:
            clauses.append("ar.StudentID=%s")
            params.append(int(filters.student_id))
        if filters.group_id is not None:
            clauses.append("ar.GroupID=%s")
            params.append(int(filters.group_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM AttendanceRecords ar
                JOIN Students s ON s.StudentID = ar.StudentID
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

    def update(self, record_id: int, changes: Mapping[str, Any]) -> bool:
        sets = [f"{_COLUMNS[field]}=%s" for field in changes]
        if not sets:
            return False

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE AttendanceRecords SET {', '.join(sets)} WHERE RecordID=%s",
                tuple(list(changes.values()) + [int(record_id)]),
            )
            return cur.rowcount > 0

    def delete(self, record_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM AttendanceRecords WHERE RecordID=%s", (int(record_id),))
            return cur.rowcount > 0
