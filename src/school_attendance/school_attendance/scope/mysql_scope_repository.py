from __future__ import annotations

from typing import Dict, Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .authorizer import ResourceKind, Resolver


class MySQLScopeRepository:
    """Ownership lookups: any resource id -> its InstitutionID."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _scalar(self, sql: str, resource_id: int, column: str) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (int(resource_id),))
            r = fetchone(cur)
            if not r or r.get(column) is None:
                return None
            return int(r[column])

    def district_of(self, institution_id: int) -> Optional[int]:
        return self._scalar(
            "SELECT DistrictID FROM Institutions WHERE InstitutionID=%s", institution_id, "DistrictID"
        )

    def institution_of_institution(self, institution_id: int) -> Optional[int]:
        return self._scalar(
            "SELECT InstitutionID FROM Institutions WHERE InstitutionID=%s", institution_id, "InstitutionID"
        )

    def institution_of_student(self, student_id: int) -> Optional[int]:
        return self._scalar("SELECT InstitutionID FROM Students WHERE StudentID=%s", student_id, "InstitutionID")

    def institution_of_group(self, group_id: int) -> Optional[int]:
        return self._scalar("SELECT InstitutionID FROM StudentGroups WHERE GroupID=%s", group_id, "InstitutionID")

    def institution_of_attendance(self, record_id: int) -> Optional[int]:
        # ownership follows the student, not the denormalized column on the record
        return self._scalar(
            """
            SELECT s.InstitutionID
            FROM AttendanceRecords a
            JOIN Students s ON s.StudentID = a.StudentID
            WHERE a.RecordID=%s
            """,
            record_id,
            "InstitutionID",
        )

    def institution_of_excuse(self, excuse_id: int) -> Optional[int]:
        return self._scalar(
            """
            SELECT s.InstitutionID
            FROM DailyExcuses e
            JOIN Students s ON s.StudentID = e.StudentID
            WHERE e.ExcuseID=%s
            """,
            excuse_id,
            "InstitutionID",
        )

    def institution_of_template(self, template_id: int) -> Optional[int]:
        return self._scalar(
            """
            SELECT s.InstitutionID
            FROM BiometricTemplates b
            JOIN Students s ON s.StudentID = b.StudentID
            WHERE b.TemplateID=%s
            """,
            template_id,
            "InstitutionID",
        )

    def resolvers(self) -> Dict[ResourceKind, Resolver]:
        return {
            ResourceKind.INSTITUTION: self.institution_of_institution,
            ResourceKind.STUDENT: self.institution_of_student,
            ResourceKind.GROUP: self.institution_of_group,
            ResourceKind.ATTENDANCE_RECORD: self.institution_of_attendance,
            ResourceKind.EXCUSE: self.institution_of_excuse,
            ResourceKind.BIOMETRIC_TEMPLATE: self.institution_of_template,
        }
