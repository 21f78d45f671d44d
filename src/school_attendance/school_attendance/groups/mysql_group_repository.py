from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence, Set

from ..common.pagination import Page, PageRequest
from ..core.exceptions import ConflictError, ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    db_transaction,
    fetch_count,
    fetchall,
    fetchone,
    integrity_errors,
    placeholders,
)
from ..database.sql_fragments import inferred_group_id
from ..scope.filters import ScopeFilter
from ..students.mysql_student_repository import map_student
from .model import GroupFilter, GroupMember, StudentGroup
from .repository import GroupRepository, MembershipTransaction

_COLUMNS = {
    "group_name": "GroupName",
    "academic_year": "AcademicYear",
    "description": "Description",
    "is_active": "IsActive",
}

_SELECT = """
    SELECT g.GroupID, g.InstitutionID, g.GroupName, g.AcademicYear, g.Description, g.IsActive,
           g.CreatedAt, g.UpdatedAt
    FROM StudentGroups g
"""

_DUPLICATE = "Ya existe un grupo con ese nombre y año académico en su institución."


def _map(r: dict) -> StudentGroup:
    return StudentGroup(
        group_id=int(r["GroupID"]),
        institution_id=int(r["InstitutionID"]),
        group_name=r["GroupName"],
        academic_year=str(r["AcademicYear"]),
        description=r.get("Description"),
        is_active=bool(r.get("IsActive")),
        created_at=r.get("CreatedAt"),
        updated_at=r.get("UpdatedAt"),
    )


class _MySQLMembershipTransaction(MembershipTransaction):
    def __init__(self, cur):
        self._cur = cur

    def student_institutions(self, student_ids: Sequence[int]) -> Dict[int, int]:
        if not student_ids:
            return {}
        self._cur.execute(
            f"SELECT StudentID, InstitutionID FROM Students WHERE StudentID IN ({placeholders(student_ids)})",
            tuple(int(s) for s in student_ids),
        )
        return {int(r["StudentID"]): int(r["InstitutionID"]) for r in fetchall(self._cur)}

    def existing_members(self, group_id: int, student_ids: Sequence[int]) -> Set[int]:
        if not student_ids:
            return set()
        self._cur.execute(
            f"""
            SELECT StudentID FROM StudentGroupMembers
            WHERE GroupID=%s AND StudentID IN ({placeholders(student_ids)})
            """,
            tuple([int(group_id)] + [int(s) for s in student_ids]),
        )
        return {int(r["StudentID"]) for r in fetchall(self._cur)}

    def add_members(self, group_id: int, student_ids: Sequence[int]) -> None:
        if not student_ids:
            return
        self._cur.executemany(
            "INSERT IGNORE INTO StudentGroupMembers (StudentID, GroupID) VALUES (%s, %s)",
            [(int(s), int(group_id)) for s in student_ids],
        )


class MySQLGroupRepository(GroupRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        institution_id: int,
        group_name: str,
        academic_year: str,
        description: Optional[str],
        is_active: bool,
    ) -> int:
        with integrity_errors(duplicate=lambda: ConflictError(_DUPLICATE)):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO StudentGroups (InstitutionID, GroupName, AcademicYear, Description, IsActive)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (int(institution_id), group_name, academic_year, description, 1 if is_active else 0),
                )
                return int(cur.lastrowid)

    def get_by_id(self, group_id: int) -> Optional[StudentGroup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE g.GroupID=%s", (int(group_id),))
            r = fetchone(cur)
            return _map(r) if r else None

    def find_by_name(self, *, institution_id: int, group_name: str, academic_year: str) -> Optional[StudentGroup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE g.InstitutionID=%s AND g.GroupName=%s AND g.AcademicYear=%s",
                (int(institution_id), group_name, academic_year),
            )
            r = fetchone(cur)
            return _map(r) if r else None

    def list(self, *, scope: ScopeFilter, filters: GroupFilter, page: PageRequest) -> Page[StudentGroup]:
        scope_clause, params = scope.sql("g.InstitutionID")
        clauses = [scope_clause]

        if filters.academic_year:
            clauses.append("g.AcademicYear=%s")
            params.append(filters.academic_year)
        if filters.is_active is not None:
            clauses.append("g.IsActive=%s")
            params.append(1 if filters.is_active else 0)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM StudentGroups g WHERE {where}", tuple(params))
            total = fetch_count(cur)

            cur.execute(
                f"{_SELECT} WHERE {where} ORDER BY {page.order_by} LIMIT %s OFFSET %s",
                tuple(params + [page.limit, page.offset]),
            )
            items = [_map(r) for r in fetchall(cur)]

        return Page(items=items, total=total, request=page)

    def update(self, group_id: int, changes: Mapping[str, Any]) -> bool:
        sets = []
        params: list[object] = []
        for field, value in changes.items():
            sets.append(f"{_COLUMNS[field]}=%s")
            params.append((1 if value else 0) if field == "is_active" else value)
        if not sets:
            return False

        with integrity_errors(duplicate=lambda: ConflictError(_DUPLICATE)):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"UPDATE StudentGroups SET {', '.join(sets)} WHERE GroupID=%s",
                    tuple(params + [int(group_id)]),
                )
                return cur.rowcount > 0

    @contextmanager
    def membership_transaction(self) -> Iterator[MembershipTransaction]:
        with integrity_errors(
            missing_parent=lambda: ValidationError("Error de referencia: El grupo o uno de los estudiantes no existe.")
        ):
            with db_transaction(self._conn_factory) as (_, cur):
                yield _MySQLMembershipTransaction(cur)

    def remove_member(self, *, group_id: int, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM StudentGroupMembers WHERE GroupID=%s AND StudentID=%s",
                (int(group_id), int(student_id)),
            )
            return cur.rowcount > 0

    def list_members(self, *, group_id: int, page: PageRequest) -> Page[GroupMember]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM StudentGroupMembers WHERE GroupID=%s", (int(group_id),))
            total = fetch_count(cur)

            cur.execute(
                f"""
                SELECT s.StudentID, s.InstitutionID, s.StudentUniqueID, s.FirstName, s.LastName, s.Gender,
                       s.DateOfBirth, s.EnrollmentDate, s.Status, s.CreatedAt, s.UpdatedAt, gm.AssignmentDate
                FROM StudentGroupMembers gm
                JOIN Students s ON s.StudentID = gm.StudentID
                WHERE gm.GroupID=%s
                ORDER BY {page.order_by}
                LIMIT %s OFFSET %s
                """,
                (int(group_id), page.limit, page.offset),
            )
            items = [GroupMember(student=map_student(r), assignment_date=r.get("AssignmentDate")) for r in fetchall(cur)]

        return Page(items=items, total=total, request=page)

    def group_of_student(self, student_id: int) -> Optional[StudentGroup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + f" WHERE g.GroupID = {inferred_group_id('%s')}",
                (int(student_id),),
            )
            r = fetchone(cur)
            return _map(r) if r else None
