from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import Gender, StudentStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    LIKE_ESCAPE,
    db_cursor,
    fetch_count,
    fetchall,
    fetchone,
    integrity_errors,
    like_pattern,
)
from ..database.sql_fragments import inferred_group_id
from ..scope.filters import ScopeFilter
from .model import NewStudent, Student, StudentFilter, StudentWithGroup
from .repository import StudentRepository

_COLUMNS = {
    "student_unique_id": "StudentUniqueID",
    "first_name": "FirstName",
    "last_name": "LastName",
    "gender": "Gender",
    "date_of_birth": "DateOfBirth",
    "status": "Status",
}

_SELECT = """
    SELECT s.StudentID, s.InstitutionID, s.StudentUniqueID, s.FirstName, s.LastName, s.Gender,
           s.DateOfBirth, s.EnrollmentDate, s.Status, s.CreatedAt, s.UpdatedAt
    FROM Students s
"""

_DUPLICATE = "Conflicto: Ya existe un estudiante con ese ID Único en esta institución."


def map_student(r: dict) -> Student:
    return Student(
        student_id=int(r["StudentID"]),
        institution_id=int(r["InstitutionID"]),
        student_unique_id=r["StudentUniqueID"],
        first_name=r["FirstName"],
        last_name=r["LastName"],
        gender=Gender(r.get("Gender") or Gender.OTHER.value),
        date_of_birth=r.get("DateOfBirth"),
        enrollment_date=r.get("EnrollmentDate"),
        status=StudentStatus(r.get("Status") or StudentStatus.ACTIVE.value),
        created_at=r.get("CreatedAt"),
        updated_at=r.get("UpdatedAt"),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, student: NewStudent) -> int:
        with integrity_errors(duplicate=lambda: ConflictError(_DUPLICATE)):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO Students (InstitutionID, StudentUniqueID, FirstName, LastName, Gender,
                                          DateOfBirth, EnrollmentDate, Status)
                    VALUES (%s, %s, %s, %s, %s, %s, CURDATE(), %s)
                    """,
                    (
                        int(student.institution_id),
                        student.student_unique_id,
                        student.first_name,
                        student.last_name,
                        student.gender.value,
                        student.date_of_birth,
                        student.status.value,
                    ),
                )
                return int(cur.lastrowid)

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE s.StudentID=%s", (int(student_id),))
            r = fetchone(cur)
            return map_student(r) if r else None

    def get_by_unique_id(self, *, institution_id: int, student_unique_id: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE s.InstitutionID=%s AND s.StudentUniqueID=%s",
                (int(institution_id), student_unique_id),
            )
            r = fetchone(cur)
            return map_student(r) if r else None

    def list(self, *, scope: ScopeFilter, filters: StudentFilter, page: PageRequest) -> Page[Student]:
        scope_clause, params = scope.sql("s.InstitutionID")
        clauses = [scope_clause]

        if filters.institution_id is not None:
            clauses.append("s.InstitutionID=%s")
            params.append(int(filters.institution_id))
        if filters.status is not None:
            clauses.append("s.Status=%s")
            params.append(filters.status.value)
        if filters.search:
            clauses.append(
                f"(s.FirstName LIKE %s {LIKE_ESCAPE} OR s.LastName LIKE %s {LIKE_ESCAPE}"
                f" OR s.StudentUniqueID LIKE %s {LIKE_ESCAPE})"
            )
            like = like_pattern(filters.search)
            params.extend([like, like, like])

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM Students s WHERE {where}", tuple(params))
            total = fetch_count(cur)

            cur.execute(
                f"{_SELECT} WHERE {where} ORDER BY {page.order_by} LIMIT %s OFFSET %s",
                tuple(params + [page.limit, page.offset]),
            )
            items = [map_student(r) for r in fetchall(cur)]

        return Page(items=items, total=total, request=page)

    def list_with_groups(self, *, institution_id: int) -> Sequence[StudentWithGroup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT x.*, g.GroupName
                FROM (
                    SELECT s.StudentID, s.InstitutionID, s.StudentUniqueID, s.FirstName, s.LastName, s.Gender,
                           s.DateOfBirth, s.EnrollmentDate, s.Status, s.CreatedAt, s.UpdatedAt,
                           {inferred_group_id("s.StudentID")} AS GroupID
                    FROM Students s
                    WHERE s.InstitutionID=%s
                ) x
                LEFT JOIN StudentGroups g ON g.GroupID = x.GroupID
                ORDER BY x.LastName, x.FirstName
                """,
                (int(institution_id),),
            )
            return [
                StudentWithGroup(student=map_student(r), group_id=r.get("GroupID"), group_name=r.get("GroupName"))
                for r in fetchall(cur)
            ]

    def update(self, student_id: int, changes: Mapping[str, Any]) -> bool:
        sets = []
        params: list[object] = []
        for field, value in changes.items():
            sets.append(f"{_COLUMNS[field]}=%s")
            params.append(value.value if isinstance(value, (Gender, StudentStatus)) else value)
        if not sets:
            return False

        with integrity_errors(duplicate=lambda: ConflictError(_DUPLICATE)):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"UPDATE Students SET {', '.join(sets)} WHERE StudentID=%s", tuple(params + [int(student_id)]))
                return cur.rowcount > 0
